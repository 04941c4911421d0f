"""
Cell Tower Store
================

Bounded set of OpenCellID towers persisted as ``cell_towers.json``,
deduplicated by the five-tuple ``RADIO:mcc:mnc:lac:cid``.  Imports are
additive: an existing tower is never overwritten by a later import.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from shared.config import SentryConfig
from shared.logger import SentryLogger

from sentry.core.models import CellTowerRecord, tower_key
from sentry.storage.jsonfile import JsonFileStore

logger = SentryLogger("storage.cells")

DEFAULT_FILE_NAME = "cell_towers.json"
DEFAULT_MAX_TOWERS = 5000


def _tower_to_dict(tower: CellTowerRecord) -> dict[str, Any]:
    return {
        "radio": tower.radio,
        "mcc": tower.mcc,
        "mnc": tower.mnc,
        "lac": tower.lac,
        "cid": tower.cid,
        "lon": tower.lon,
        "lat": tower.lat,
        "rangeMeters": tower.range_meters,
        "samples": tower.samples,
        "averageSignal": tower.average_signal,
    }


def _tower_from_dict(data: Any) -> Optional[CellTowerRecord]:
    if not isinstance(data, dict):
        return None
    try:
        return CellTowerRecord(
            radio=data.get("radio"),
            mcc=data.get("mcc"),
            mnc=data.get("mnc"),
            lac=data.get("lac"),
            cid=data.get("cid"),
            lon=data.get("lon"),
            lat=data.get("lat"),
            range_meters=data.get("rangeMeters", 0),
            samples=data.get("samples", 0),
            average_signal=data.get("averageSignal", 0),
        )
    except ValidationError:
        return None


class CellTowerStore(JsonFileStore):
    """Persistence for imported cell towers."""

    def __init__(
        self,
        data_dir: str | Path,
        *,
        max_towers: int = DEFAULT_MAX_TOWERS,
        file_name: str = DEFAULT_FILE_NAME,
    ) -> None:
        super().__init__(Path(data_dir).expanduser() / file_name)
        self._max_towers = max(1, max_towers)

    @classmethod
    def from_config(cls, config: SentryConfig) -> CellTowerStore:
        return cls(
            config.data_path,
            max_towers=config.storage.max_towers,
            file_name=config.storage.towers_file,
        )

    def load_towers(self) -> list[CellTowerRecord]:
        """Stored towers in insertion order. Never raises."""
        return [t for t in map(_tower_from_dict, self._read_list()) if t is not None]

    def import_towers(self, incoming: Iterable[CellTowerRecord]) -> int:
        """Add towers whose key is not stored yet.

        When capacity is exceeded the oldest entries are dropped.

        Returns:
            Number of new towers that remain stored after trimming.
        """
        existing: dict[str, CellTowerRecord] = {t.key: t for t in self.load_towers()}
        new_keys: set[str] = set()
        for tower in incoming:
            key = tower.key
            if key not in existing:
                existing[key] = tower
                new_keys.add(key)

        merged = list(existing.values())
        if len(merged) > self._max_towers:
            logger.debug(f"Trimming {len(merged) - self._max_towers} oldest tower(s)")
            merged = merged[-self._max_towers:]
        self._write([_tower_to_dict(t) for t in merged])

        added = sum(1 for t in merged if t.key in new_keys)
        logger.info(f"Imported {added} new tower(s); {len(merged)} stored")
        return added

    def find(self, radio: str, mcc: int, mnc: int, lac: int, cid: int) -> Optional[CellTowerRecord]:
        """Tower matching the cell identity (radio compared case-insensitively)."""
        wanted = tower_key(radio, mcc, mnc, lac, cid)
        return next((t for t in self.load_towers() if t.key == wanted), None)

    def clear_towers(self) -> None:
        self._delete()
