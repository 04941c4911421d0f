"""
Sentry Collectors
=================

Offline importers turning third-party exports into sentry models.

Modules:
    wigle       -- WiGLE CSV v1.4 network export
    opencellid  -- OpenCellID / MLS cell tower export
    csvtext     -- Shared line and field helpers
"""

from sentry.collectors.opencellid import parse_opencellid_csv
from sentry.collectors.wigle import parse_wigle_csv

__all__ = [
    "parse_opencellid_csv",
    "parse_wigle_csv",
]
