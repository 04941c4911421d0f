"""
Sentry Analyzers
================

Detection engines of the WiFi Sentry core.

Modules:
    threat  -- Single-scan heuristic threat tagging (15 checks)
    change  -- Multi-scan temporal diff-and-score engine
"""

from sentry.analyzers.change import ChangeAnalyzer
from sentry.analyzers.threat import ThreatAnalyzer

__all__ = [
    "ChangeAnalyzer",
    "ThreatAnalyzer",
]
