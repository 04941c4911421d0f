"""
WiGLE CSV Importer
==================

Parses a WiGLE CSV (v1.4) export into day-grouped scan records.

Layout::

    WigleWifi-1.4,appRelease=...,model=...
    MAC,SSID,AuthMode,FirstSeen,Channel,RSSI,CurrentLatitude,CurrentLongitude,AltitudeMeters,AccuracyMeters,Type
    AA:BB:CC:DD:EE:FF,HomeNet,[WPA2-PSK-CCMP][ESS],2024-01-15 10:30:00,6,-65,...,WIFI

Only ``WIFI`` rows are imported (Bluetooth / cell rows are skipped).  Rows
are grouped by the UTC calendar day of ``FirstSeen``; each day becomes one
:class:`ScanRecord` stamped at that day's midnight, newest day first.

Quoted fields (commas and doubled quotes inside SSIDs) are handled by the
standard :mod:`csv` module.

References:
    - WiGLE.net. WiGLE CSV format. https://api.wigle.net/csvFormat.html
    - Shafranovich, Y. (2005). RFC 4180: Common Format and MIME Type for
      Comma-Separated Values (CSV) Files.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Optional

from pydantic import ValidationError

from shared.logger import SentryLogger

from sentry.collectors.csvtext import cell, column_index, non_empty_lines, tokenise
from sentry.core.models import GpsFix, NetworkObservation, ScanRecord, WigleImportResult
from sentry.core.radio import channel_to_frequency
from sentry.core.timeutils import datetime_to_ms, utc_day_bucket_ms

logger = SentryLogger("collectors.wigle")

_DATETIME_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%m/%d/%Y %H:%M:%S",
)
_DATE_ONLY_FORMAT = "%Y-%m-%d"


def parse_first_seen(value: str) -> Optional[int]:
    """Epoch milliseconds (UTC) of a WiGLE ``FirstSeen`` value, or ``None``."""
    text = value.strip()
    if not text:
        return None
    for fmt in _DATETIME_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        return datetime_to_ms(parsed.replace(tzinfo=timezone.utc))
    # Date-only exports, and datetimes with an unrecognised time part.
    try:
        parsed = datetime.strptime(text[:10], _DATE_ONLY_FORMAT)
    except ValueError:
        return None
    return datetime_to_ms(parsed.replace(tzinfo=timezone.utc))


def _as_int(text: str, default: int) -> int:
    try:
        return int(text)
    except ValueError:
        return default


def _as_finite(text: str) -> Optional[float]:
    try:
        value = float(text)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _gps(lat: str, lon: str, alt: str, acc: str) -> Optional[GpsFix]:
    """Fix from a row; altitude and accuracy fall back to 0.0 when blank."""
    latitude, longitude = _as_finite(lat), _as_finite(lon)
    if latitude is None or longitude is None:
        return None
    altitude, accuracy = _as_finite(alt), _as_finite(acc)
    try:
        return GpsFix(
            latitude=latitude,
            longitude=longitude,
            altitude=0.0 if altitude is None else altitude,
            accuracy=0.0 if accuracy is None else accuracy,
        )
    except ValidationError:
        return None


def _find_header(lines: list[str]) -> int:
    for idx, line in enumerate(lines):
        upper = line.upper()
        if upper.startswith("MAC,") or upper.startswith('"MAC"'):
            return idx
    return -1


def parse_wigle_csv(text: str) -> WigleImportResult:
    """Parse WiGLE CSV *text*. Never raises; unusable rows are counted as skipped.

    Returns:
        Day-grouped records (newest first) with imported and skipped counts.
    """
    lines = non_empty_lines(text)
    if len(lines) < 2:
        return WigleImportResult()

    header_idx = _find_header(lines)
    if header_idx < 0:
        logger.warning("No WiGLE column header found; nothing imported")
        return WigleImportResult(skipped_count=len(lines))

    headers = [h.strip().lower() for h in tokenise(lines[header_idx])]

    c_mac = column_index(headers, "mac")
    c_ssid = column_index(headers, "ssid")
    c_auth = column_index(headers, "authmode")
    c_seen = column_index(headers, "firstseen")
    c_channel = column_index(headers, "channel")
    c_rssi = column_index(headers, "rssi")
    c_lat = column_index(headers, "currentlatitude")
    c_lon = column_index(headers, "currentlongitude")
    c_alt = column_index(headers, "altitudemeters")
    c_acc = column_index(headers, "accuracymeters")
    c_type = column_index(headers, "type")

    if c_mac < 0 or c_ssid < 0:
        logger.warning("WiGLE header lacks MAC or SSID column; nothing imported")
        return WigleImportResult(skipped_count=len(lines))

    by_day: dict[int, list[NetworkObservation]] = {}
    imported = skipped = 0

    for line in lines[header_idx + 1:]:
        cols = tokenise(line)
        if len(cols) <= c_mac:
            skipped += 1
            continue

        row_type = cell(cols, c_type) if c_type >= 0 else "WIFI"
        if row_type.upper() != "WIFI":
            skipped += 1
            continue

        mac = cell(cols, c_mac)
        timestamp = parse_first_seen(cell(cols, c_seen))
        if not mac or timestamp is None:
            skipped += 1
            continue

        try:
            network = NetworkObservation(
                ssid=cell(cols, c_ssid),
                bssid=mac,
                capabilities=cell(cols, c_auth),
                rssi=_as_int(cell(cols, c_rssi), -100),
                frequency=channel_to_frequency(_as_int(cell(cols, c_channel), 0)),
                timestamp=timestamp,
                gps=_gps(
                    cell(cols, c_lat), cell(cols, c_lon),
                    cell(cols, c_alt), cell(cols, c_acc),
                ),
            )
        except ValidationError:
            logger.debug(f"Skipping row with malformed MAC {mac!r}")
            skipped += 1
            continue

        by_day.setdefault(utc_day_bucket_ms(timestamp), []).append(network)
        imported += 1

    records = sorted(
        (ScanRecord(timestamp_ms=day, networks=tuple(nets)) for day, nets in by_day.items()),
        key=lambda r: r.timestamp_ms,
        reverse=True,
    )
    logger.info(f"WiGLE parse: {imported} imported, {skipped} skipped, {len(records)} day(s)")
    return WigleImportResult(records=tuple(records), imported_count=imported, skipped_count=skipped)
