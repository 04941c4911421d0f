"""
WiFi Sentry -- Wi-Fi Threat & Change Analysis
=============================================

Analysis core of WiFi Sentry.  Tags each access point of a scan with
heuristic threat indicators (evil twin, beacon flood, MAC spoofing, BSSID
near-clone, deauth flood and more), keeps a bounded local scan history,
and scores changes across that history to surface downgrade attacks,
rogue replacements and networks that follow the user.

Modules:
    core.engine     -- Central orchestration engine
    core.models     -- Pydantic domain models
    core.radio      -- Frequency, capability and BSSID helpers
    analyzers       -- Threat and change analyzers
    collectors      -- WiGLE and OpenCellID CSV importers
    storage         -- JSON-file stores
    lookup          -- OUI vendor resolver
    output          -- Console and report output
    cli             -- Click-based command-line interface

References:
    - IEEE. (2020). IEEE Std 802.11-2020: Wireless LAN MAC and PHY
      Specifications.
    - Bauer, K., Gonzales, H., & McCoy, D. (2008). Mitigating Evil Twin
      Attacks in 802.11. IEEE IPCCC.
"""

__version__ = "1.0.0"
__tool__ = "WiFi Sentry"
__description__ = "Wi-Fi threat & change analysis"
