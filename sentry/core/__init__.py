"""
Sentry Core
===========

Domain models and radio helpers.  Import the orchestration engine from
:mod:`sentry.core.engine`.
"""

from sentry.core.models import (
    AnalysisResult,
    CellTowerRecord,
    ChangeSeverity,
    ChangeType,
    GpsFix,
    NetworkChange,
    NetworkObservation,
    OpenCellIdImportResult,
    PinnedNetwork,
    RootScanData,
    ScanRecord,
    ThreatType,
    WigleImportResult,
)
from sentry.core.radio import Band, WifiStandard

__all__ = [
    "AnalysisResult",
    "Band",
    "CellTowerRecord",
    "ChangeSeverity",
    "ChangeType",
    "GpsFix",
    "NetworkChange",
    "NetworkObservation",
    "OpenCellIdImportResult",
    "PinnedNetwork",
    "RootScanData",
    "ScanRecord",
    "ThreatType",
    "WifiStandard",
    "WigleImportResult",
]
