"""Pinned-network persistence (``pinned_networks.json``), newest pin first."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from shared.config import SentryConfig
from shared.logger import SentryLogger

from sentry.core.models import PinnedNetwork
from sentry.core.radio import normalize_bssid
from sentry.storage.jsonfile import JsonFileStore

logger = SentryLogger("storage.pinned")

DEFAULT_FILE_NAME = "pinned_networks.json"


def _pin_from_dict(data: Any) -> Optional[PinnedNetwork]:
    if not isinstance(data, dict):
        return None
    try:
        return PinnedNetwork(
            bssid=data.get("bssid"),
            ssid=data.get("ssid") or "",
            pinned_at_ms=data.get("pinnedAtMs", 0),
            note=data.get("note") or "",
        )
    except ValidationError:
        return None


class PinnedStore(JsonFileStore):
    """Networks the user tracks long-term, keyed by BSSID."""

    def __init__(self, data_dir: str | Path, *, file_name: str = DEFAULT_FILE_NAME) -> None:
        super().__init__(Path(data_dir).expanduser() / file_name)

    @classmethod
    def from_config(cls, config: SentryConfig) -> PinnedStore:
        return cls(config.data_path, file_name=config.storage.pinned_file)

    def load_pinned(self) -> list[PinnedNetwork]:
        return [p for p in map(_pin_from_dict, self._read_list()) if p is not None]

    def pin(self, network: PinnedNetwork) -> bool:
        """Pin *network*, replacing an existing pin for the same BSSID.

        Returns:
            ``True`` for a new pin, ``False`` when an existing one was replaced.
        """
        pins = self.load_pinned()
        idx = next((i for i, p in enumerate(pins) if p.bssid == network.bssid), None)
        if idx is None:
            pins.insert(0, network)
        else:
            pins[idx] = network
        self._save(pins)
        logger.info(f"{'Pinned' if idx is None else 'Updated pin for'} {network.bssid}")
        return idx is None

    def unpin(self, bssid: str) -> None:
        """Remove the pin for *bssid*; no-op when not pinned."""
        target = normalize_bssid(bssid)
        pins = self.load_pinned()
        remaining = [p for p in pins if p.bssid != target]
        if len(remaining) != len(pins):
            self._save(remaining)

    def is_pinned(self, bssid: str) -> bool:
        target = normalize_bssid(bssid)
        return any(p.bssid == target for p in self.load_pinned())

    def _save(self, pins: list[PinnedNetwork]) -> None:
        self._write(
            [
                {"bssid": p.bssid, "ssid": p.ssid, "pinnedAtMs": p.pinned_at_ms, "note": p.note}
                for p in pins
            ]
        )
