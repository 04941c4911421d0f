"""
OpenCellID CSV Importer
=======================

Parses an OpenCellID / Mozilla Location Service cell export::

    radio,mcc,mnc,lac,cid,lon,lat,range,samples,changeable,created,updated,averageSignal
    LTE,310,410,12345,67890,-87.6298,41.8781,1000,10,1,1609459200,1609459200,-85

Rows whose required identity or position fields are missing or
non-numeric are skipped and counted.

References:
    - OpenCellID. Database schema.
      https://wiki.opencellid.org/wiki/Menu_map_view#Database
"""

from __future__ import annotations

import math
from typing import Optional

from pydantic import ValidationError

from shared.logger import SentryLogger

from sentry.collectors.csvtext import cell, column_index, non_empty_lines, tokenise
from sentry.core.models import CellTowerRecord, OpenCellIdImportResult

logger = SentryLogger("collectors.opencellid")

REQUIRED_COLUMNS = ("radio", "mcc", "mnc", "lac", "cid", "lon", "lat")


def _int_or_none(text: str) -> Optional[int]:
    try:
        return int(text)
    except ValueError:
        return None


def _finite_or_none(text: str) -> Optional[float]:
    try:
        value = float(text)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def parse_opencellid_csv(text: str) -> OpenCellIdImportResult:
    """Parse OpenCellID CSV *text*. Never raises."""
    lines = non_empty_lines(text)
    if not lines:
        return OpenCellIdImportResult()

    header_idx = next(
        (i for i, ln in enumerate(lines) if ln.lower().startswith("radio,")), -1
    )
    if header_idx < 0:
        logger.warning("No OpenCellID header found; nothing imported")
        return OpenCellIdImportResult(skipped_count=len(lines))

    headers = [h.strip().lower() for h in tokenise(lines[header_idx])]
    idx = {name: column_index(headers, name) for name in REQUIRED_COLUMNS}
    if any(i < 0 for i in idx.values()):
        missing = [name for name, i in idx.items() if i < 0]
        logger.warning(f"OpenCellID header missing column(s): {', '.join(missing)}")
        return OpenCellIdImportResult(skipped_count=len(lines))

    c_range = column_index(headers, "range")
    c_samples = column_index(headers, "samples")
    c_signal = column_index(headers, "averagesignal")

    towers: list[CellTowerRecord] = []
    skipped = 0

    for line in lines[header_idx + 1:]:
        cols = tokenise(line)
        if len(cols) < len(REQUIRED_COLUMNS):
            skipped += 1
            continue

        mcc = _int_or_none(cell(cols, idx["mcc"]))
        mnc = _int_or_none(cell(cols, idx["mnc"]))
        lac = _int_or_none(cell(cols, idx["lac"]))
        cid = _int_or_none(cell(cols, idx["cid"]))
        lon = _finite_or_none(cell(cols, idx["lon"]))
        lat = _finite_or_none(cell(cols, idx["lat"]))
        if None in (mcc, mnc, lac, cid, lon, lat):
            skipped += 1
            continue

        try:
            towers.append(
                CellTowerRecord(
                    radio=cell(cols, idx["radio"]),
                    mcc=mcc,
                    mnc=mnc,
                    lac=lac,
                    cid=cid,
                    lon=lon,
                    lat=lat,
                    range_meters=_int_or_none(cell(cols, c_range)) or 0,
                    samples=_int_or_none(cell(cols, c_samples)) or 0,
                    average_signal=_int_or_none(cell(cols, c_signal)) or 0,
                )
            )
        except ValidationError:
            skipped += 1

    logger.info(f"OpenCellID parse: {len(towers)} imported, {skipped} skipped")
    return OpenCellIdImportResult(
        towers=tuple(towers), imported_count=len(towers), skipped_count=skipped
    )
