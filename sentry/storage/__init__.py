"""
Sentry Storage
==============

Local JSON-file persistence.

Modules:
    codec         -- Scan record <-> JSON document conversion
    jsonfile      -- Tolerant read / atomic write base class
    scan_store    -- Bounded scan history with import merge
    cell_store    -- Imported OpenCellID towers
    pinned_store  -- User-pinned networks
"""

from sentry.storage.cell_store import CellTowerStore
from sentry.storage.pinned_store import PinnedStore
from sentry.storage.scan_store import ScanStore

__all__ = [
    "CellTowerStore",
    "PinnedStore",
    "ScanStore",
]
