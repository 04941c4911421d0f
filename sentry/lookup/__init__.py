"""
Sentry Lookup
=============

Reference-table lookups.

Modules:
    oui  -- BSSID vendor-prefix resolver with refreshable cache
"""

from sentry.lookup.oui import OuiResolver, OuiTable

__all__ = [
    "OuiResolver",
    "OuiTable",
]
