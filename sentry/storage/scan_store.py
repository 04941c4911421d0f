"""
Scan History Store
==================

Bounded, newest-first scan history persisted as ``scan_history.json``.

Besides appending live scans, the store merges externally imported
observations (e.g. a WiGLE export) into day-aligned records: imported
observations are bucketed by UTC day, merged into an existing record whose
timestamp is exactly that day's midnight (deduplicated by BSSID), or
stored as a new record for that day.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from shared.config import SentryConfig
from shared.logger import SentryLogger

from sentry.core.models import NetworkObservation, ScanRecord
from sentry.core.timeutils import utc_day_bucket_ms
from sentry.storage.codec import record_from_dict, record_to_dict
from sentry.storage.jsonfile import JsonFileStore

logger = SentryLogger("storage.scan")

DEFAULT_FILE_NAME = "scan_history.json"
DEFAULT_MAX_RECORDS = 50


class ScanStore(JsonFileStore):
    """Scan-history persistence.

    Args:
        data_dir: Directory holding the history file.
        max_records: Capacity; the oldest records are evicted beyond it.
        file_name: History file name inside *data_dir*.
    """

    def __init__(
        self,
        data_dir: str | Path,
        *,
        max_records: int = DEFAULT_MAX_RECORDS,
        file_name: str = DEFAULT_FILE_NAME,
    ) -> None:
        super().__init__(Path(data_dir).expanduser() / file_name)
        self._max_records = max(1, max_records)

    @classmethod
    def from_config(cls, config: SentryConfig) -> ScanStore:
        return cls(
            config.data_path,
            max_records=config.storage.max_records,
            file_name=config.storage.history_file,
        )

    @property
    def max_records(self) -> int:
        return self._max_records

    # ------------------------------------------------------------------ #
    #  Public API
    # ------------------------------------------------------------------ #

    def load_history(self) -> list[ScanRecord]:
        """All stored records, newest first. Never raises."""
        raw = self._read_list()
        records = [r for r in map(record_from_dict, raw) if r is not None]
        if len(records) != len(raw):
            logger.warning(f"Skipped {len(raw) - len(records)} malformed record(s)")
        records.sort(key=lambda r: r.timestamp_ms, reverse=True)
        return records

    def append_record(self, record: ScanRecord) -> None:
        """Add *record* and evict the oldest records beyond capacity."""
        history = self.load_history()
        history.insert(0, record)
        history.sort(key=lambda r: r.timestamp_ms, reverse=True)
        evicted = len(history) - self._max_records
        if evicted > 0:
            logger.debug(f"Evicting {evicted} oldest record(s)")
        self._save(history[: self._max_records])
        logger.info(
            f"Stored scan of {len(record.networks)} network(s) "
            f"({record.flagged_count} flagged)"
        )

    def clear_history(self) -> None:
        self._delete()
        logger.info("Scan history cleared")

    def import_external_records(self, records: Iterable[ScanRecord]) -> int:
        """Merge imported observations into day-aligned records.

        Returns:
            The number of observations newly added that survive the
            capacity trim.
        """
        buckets: dict[int, list[NetworkObservation]] = {}
        for record in records:
            for network in record.networks:
                ts = network.timestamp or record.timestamp_ms
                buckets.setdefault(utc_day_bucket_ms(ts), []).append(network)

        if not buckets:
            return 0

        history = self.load_history()
        by_day: dict[int, int] = {}
        for idx, record in enumerate(history):
            by_day.setdefault(record.timestamp_ms, idx)

        added: dict[int, int] = {}
        with logger.operation("import"):
            for day, incoming in sorted(buckets.items()):
                idx = by_day.get(day)
                base = list(history[idx].networks) if idx is not None else []
                seen = {n.bssid for n in base}
                fresh: list[NetworkObservation] = []
                for network in incoming:
                    if network.bssid in seen:
                        continue
                    seen.add(network.bssid)
                    fresh.append(network)

                if not fresh:
                    continue
                merged = ScanRecord(timestamp_ms=day, networks=tuple(base + fresh))
                if idx is not None:
                    history[idx] = merged
                else:
                    by_day[day] = len(history)
                    history.append(merged)
                added[day] = len(fresh)
                logger.debug(f"Day {day}: {len(fresh)} new observation(s)")

        if not added:
            return 0

        history.sort(key=lambda r: r.timestamp_ms, reverse=True)
        kept = history[: self._max_records]
        self._save(kept)

        surviving = {r.timestamp_ms for r in kept}
        count = sum(n for day, n in added.items() if day in surviving)
        logger.info(f"Imported {count} observation(s) into {len(added)} day record(s)")
        return count

    # ------------------------------------------------------------------ #
    #  Internal helpers
    # ------------------------------------------------------------------ #

    def _save(self, records: list[ScanRecord]) -> None:
        self._write([record_to_dict(r) for r in records])
