"""
Sentry Output
=============

Console rendering and report generation.

Modules:
    console  -- Rich tables for networks, changes, history and imports
    report   -- JSON scan report
"""

from sentry.output.console import SentryConsoleOutput
from sentry.output.report import SentryReportGenerator

__all__ = [
    "SentryConsoleOutput",
    "SentryReportGenerator",
]
