"""
OUI Vendor Resolver
===================

Maps the first three octets of a BSSID to the IEEE-registered manufacturer.

The table is loaded lazily from one of two sources, in priority order:

1. a cache file written by :meth:`OuiResolver.refresh` on a previous run;
2. the ``oui.properties`` table bundled with the package.

File format: one ``KEY=VENDOR`` entry per line, where KEY is the
six-character upper-case hex prefix without separators (``ACD75B=T-Mobile``).
Lines starting with ``#`` or ``!`` are comments.

References:
    - IEEE Registration Authority. MA-L (OUI) public listing.
      https://standards-oui.ieee.org/
"""

from __future__ import annotations

import os
import threading
from importlib import resources
from pathlib import Path
from typing import Optional

from shared.config import SentryConfig
from shared.logger import SentryLogger

from sentry.core.radio import oui_key

logger = SentryLogger("lookup.oui")

BUNDLED_RESOURCE = "oui.properties"
DEFAULT_CACHE_FILE = "oui_cache.properties"
MIN_VALID_ENTRIES = 10


def parse_properties(text: str) -> dict[str, str]:
    """Parse ``KEY=VALUE`` lines; keys are upper-cased, comments skipped."""
    table: dict[str, str] = {}
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped[0] in "#!":
            continue
        key, sep, value = stripped.partition("=")
        if not sep:
            continue
        key = key.strip().upper()
        if key:
            table[key] = value.strip()
    return table


def _read_bundled() -> str:
    return (
        resources.files("sentry.data")
        .joinpath(BUNDLED_RESOURCE)
        .read_text(encoding="utf-8")
    )


class OuiTable:
    """Lazily loaded vendor table with explicit invalidation.

    The first :meth:`get` (or :meth:`load_if_absent`) parses the cache file
    if it exists and is non-empty, otherwise the bundled table.
    :meth:`invalidate` drops the parsed table so the next lookup re-reads.
    """

    def __init__(self, cache_path: Optional[Path]) -> None:
        self._cache_path = cache_path
        self._table: Optional[dict[str, str]] = None
        self._lock = threading.Lock()

    def load_if_absent(self) -> dict[str, str]:
        with self._lock:
            if self._table is None:
                self._table = self._load()
            return self._table

    def invalidate(self) -> None:
        with self._lock:
            self._table = None

    def get(self, key: str) -> str:
        return self.load_if_absent().get(key, "")

    @property
    def is_loaded(self) -> bool:
        return self._table is not None

    def _load(self) -> dict[str, str]:
        path = self._cache_path
        if path is not None and path.is_file() and path.stat().st_size > 0:
            try:
                table = parse_properties(path.read_text(encoding="utf-8"))
                logger.debug(f"Loaded {len(table)} OUI entries from cache")
                return table
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning(f"OUI cache unreadable, using bundled table: {exc}")
        try:
            table = parse_properties(_read_bundled())
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning(f"Bundled OUI table unavailable: {exc}")
            return {}
        logger.debug(f"Loaded {len(table)} bundled OUI entries")
        return table


class OuiResolver:
    """Vendor lookup and cache refresh.

    Args:
        data_dir: Directory holding the cache file; ``None`` disables the
            cache tier (bundled table only, refresh unavailable).
        cache_file: Cache file name inside *data_dir*.
        min_valid_entries: Entries a refresh must contain to be accepted.
    """

    def __init__(
        self,
        data_dir: str | Path | None = None,
        *,
        cache_file: str = DEFAULT_CACHE_FILE,
        min_valid_entries: int = MIN_VALID_ENTRIES,
    ) -> None:
        self._cache_path = (
            Path(data_dir).expanduser() / cache_file if data_dir is not None else None
        )
        self._min_valid = min_valid_entries
        self._table = OuiTable(self._cache_path)

    @classmethod
    def from_config(cls, config: SentryConfig) -> OuiResolver:
        return cls(
            config.data_path,
            cache_file=config.oui.cache_file,
            min_valid_entries=config.oui.min_valid_entries,
        )

    @property
    def table(self) -> OuiTable:
        return self._table

    @property
    def cache_path(self) -> Optional[Path]:
        return self._cache_path

    def lookup(self, bssid: str) -> str:
        """Manufacturer for *bssid*; empty when malformed or not listed."""
        key = oui_key(bssid)
        if key is None:
            return ""
        return self._table.get(key)

    def refresh(self, text: str) -> bool:
        """Replace the cache with *text* if it looks like a real table.

        Text with fewer than ``min_valid_entries`` lines containing ``=``
        (e.g. an HTML error page) is rejected and the cache is left intact.
        """
        if self._cache_path is None:
            logger.warning("OUI refresh ignored: no data directory configured")
            return False
        entries = sum(1 for line in text.splitlines() if "=" in line)
        if entries < self._min_valid:
            logger.warning(
                f"Rejected OUI update with {entries} entries (need {self._min_valid})"
            )
            return False

        self._cache_path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._cache_path.with_name(self._cache_path.name + ".tmp")
        tmp.write_text(text, encoding="utf-8")
        os.replace(tmp, self._cache_path)
        self._table.invalidate()
        logger.info(f"OUI cache updated with {entries} entries")
        return True
