"""
Sentry Threat Analyzer
======================

Single-scan heuristic classifier.  Every network in a fresh scan is run
through fifteen independent checks; the union of the tags that fire is
attached to a copy of the observation.

Several checks compare the scan against prior history, for example to
suppress findings for BSSIDs that have been seen before, or to detect a
change relative to the last sighting.  Checks that need a baseline never
fire on the very first scan.

Attack patterns covered:
    - Evil twin / Karma / Pineapple impersonation of a known secured SSID
    - Beacon-spam hardware (Wi-Fi Marauder, mdk4) advertising many SSIDs
      or many fresh BSSIDs from one radio
    - Rogue copies of a known AP with a near-identical BSSID
    - Deauthentication floods and probe-only SSIDs reported by a
      privileged monitor-mode capture

References:
    - Bauer, K., Gonzales, H., & McCoy, D. (2008). Mitigating Evil Twin
      Attacks in 802.11. IEEE IPCCC.
    - Bellardo, J., & Savage, S. (2003). 802.11 Denial-of-Service
      Attacks: Real Vulnerabilities and Practical Solutions. USENIX
      Security Symposium.
    - Dai Zovi, D., & Macaulay, S. (2005). Attacking Automatic Wireless
      Network Selection. IEEE IAW. (Karma)
    - Viehbock, S. (2011). Brute forcing Wi-Fi Protected Setup.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

from shared.config import ThreatConfig
from shared.logger import SentryLogger

from sentry.core.models import NetworkObservation, RootScanData, ScanRecord, ThreatType
from sentry.core.radio import (
    Band,
    WifiStandard,
    bssid_octets,
    has_wps,
    is_locally_administered,
    is_open_capabilities,
    strip_infrastructure_tags,
)
from sentry.core.timeutils import now_ms as wall_clock_ms

logger = SentryLogger("analyzers.threat")

_PRE_AX_STANDARDS = frozenset({WifiStandard.LEGACY, WifiStandard.N, WifiStandard.AC})


# ---------------------------------------------------------------------------
# History index
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class _HistoryIndex:
    """Lookups over prior scans, built once per analysis."""

    known_bssids: set[str] = field(default_factory=set)
    bssids_by_ssid: dict[str, set[str]] = field(default_factory=dict)
    recent_bssids_by_ssid: dict[str, set[str]] = field(default_factory=dict)
    secured_ssids: set[str] = field(default_factory=set)
    latest_caps_by_ssid: dict[str, str] = field(default_factory=dict)
    latest_band_by_bssid: dict[str, Band] = field(default_factory=dict)

    @classmethod
    def build(cls, history: Sequence[ScanRecord], recent_cutoff_ms: int) -> _HistoryIndex:
        index = cls()
        # Newest first so the first sighting wins for the "latest" maps.
        for record in sorted(history, key=lambda r: r.timestamp_ms, reverse=True):
            recent = record.timestamp_ms >= recent_cutoff_ms
            for net in record.networks:
                if net.ssid:
                    index.latest_caps_by_ssid.setdefault(net.ssid, net.capabilities)
                    if not is_open_capabilities(net.capabilities):
                        index.secured_ssids.add(net.ssid)
                if not net.bssid:
                    continue
                index.known_bssids.add(net.bssid)
                if net.band is not Band.UNKNOWN:
                    index.latest_band_by_bssid.setdefault(net.bssid, net.band)
                if net.ssid:
                    index.bssids_by_ssid.setdefault(net.ssid, set()).add(net.bssid)
                    if recent:
                        index.recent_bssids_by_ssid.setdefault(net.ssid, set()).add(net.bssid)
        return index

    @property
    def has_baseline(self) -> bool:
        return bool(self.known_bssids)

    def knows_pair(self, ssid: str, bssid: str) -> bool:
        return bssid in self.bssids_by_ssid.get(ssid, ())


@dataclass(slots=True)
class _ScanIndex:
    """Lookups over the scan being analysed."""

    bssids_by_ssid: dict[str, set[str]] = field(default_factory=dict)
    by_oui: dict[str, list[NetworkObservation]] = field(default_factory=dict)

    @classmethod
    def build(cls, scan: Sequence[NetworkObservation]) -> _ScanIndex:
        index = cls()
        for net in scan:
            if net.ssid and net.bssid:
                index.bssids_by_ssid.setdefault(net.ssid, set()).add(net.bssid)
            oui = net.oui
            if oui is not None:
                index.by_oui.setdefault(oui, []).append(net)
        return index


# ---------------------------------------------------------------------------
# Threat Analyzer
# ---------------------------------------------------------------------------


class ThreatAnalyzer:
    """Tags each network of a fresh scan with the threats it exhibits.

    The analyzer is pure: the only clock read is the default for *now_ms*,
    which bounds the recency window of the multiple-BSSID check.

    Usage::

        analyzer = ThreatAnalyzer()
        tagged = analyzer.analyze(scan, store.load_history())
    """

    def __init__(self, config: Optional[ThreatConfig] = None) -> None:
        self._config = config or ThreatConfig()
        self._keywords = [k.lower() for k in self._config.suspicious_keywords if k]

    @property
    def config(self) -> ThreatConfig:
        return self._config

    def analyze(
        self,
        current_scan: Sequence[NetworkObservation],
        history: Sequence[ScanRecord],
        root_data: Optional[RootScanData] = None,
        now_ms: Optional[int] = None,
    ) -> list[NetworkObservation]:
        """Return *current_scan* in order, each network carrying its tags.

        Args:
            current_scan: Networks of the scan being classified.
            history: Prior scan records (any order).
            root_data: Privileged capture result; default means none.
            now_ms: Reference time for the recency window.
        """
        if not current_scan:
            return []

        root = root_data or RootScanData()
        now = wall_clock_ms() if now_ms is None else now_ms
        past = _HistoryIndex.build(history, now - self._config.recent_window_ms)
        scan = _ScanIndex.build(current_scan)

        tagged = [self._classify(net, current_scan, scan, past, root) for net in current_scan]

        flagged = sum(1 for n in tagged if n.is_flagged)
        logger.info(
            f"Threat analysis: {len(tagged)} network(s), {flagged} flagged, "
            f"{len(history)} history record(s)"
        )
        return tagged

    # ------------------------------------------------------------------ #
    #  Per-network classification
    # ------------------------------------------------------------------ #

    def _classify(
        self,
        net: NetworkObservation,
        current_scan: Sequence[NetworkObservation],
        scan: _ScanIndex,
        past: _HistoryIndex,
        root: RootScanData,
    ) -> NetworkObservation:
        checks = (
            (ThreatType.OPEN_NETWORK, net.is_open),
            (ThreatType.SUSPICIOUS_SSID, self._has_suspicious_keyword(net.ssid)),
            (ThreatType.MULTIPLE_BSSIDS, self._has_multiple_bssids(net, scan, past)),
            (ThreatType.SECURITY_CHANGE, self._has_security_change(net, past)),
            (ThreatType.EVIL_TWIN, self._is_evil_twin(net, past)),
            (ThreatType.MAC_SPOOFING_SUSPECTED, self._is_mac_spoofing(net, past)),
            (ThreatType.SUSPICIOUS_SIGNAL_STRENGTH, self._is_suspicious_signal(net, past)),
            (ThreatType.MULTI_SSID_SAME_OUI, self._is_multi_ssid_same_oui(net, scan, past)),
            (ThreatType.BEACON_FLOOD, self._is_beacon_flood(net, scan, past)),
            (ThreatType.INCONSISTENT_CAPABILITIES, self._has_inconsistent_capabilities(net)),
            (ThreatType.BSSID_NEAR_CLONE, self._is_near_clone(net, current_scan, past)),
            (ThreatType.WPS_VULNERABLE, has_wps(net.capabilities)),
            (ThreatType.CHANNEL_SHIFT, self._has_band_shift(net, past)),
            (ThreatType.DEAUTH_FLOOD, self._is_deauth_flood(root)),
            (ThreatType.PROBE_RESPONSE_ANOMALY, self._is_probe_only(net, root)),
        )
        threats = frozenset(tag for tag, fired in checks if fired)
        if threats:
            logger.debug(
                f"{net.bssid or '<no bssid>'} ({net.ssid!r}): "
                f"{', '.join(t.value for t in ThreatType if t in threats)}"
            )
        return net.with_threats(threats)

    # ------------------------------------------------------------------ #
    #  Individual checks
    # ------------------------------------------------------------------ #

    def _has_suspicious_keyword(self, ssid: str) -> bool:
        lower = ssid.lower()
        return any(k in lower for k in self._keywords)

    @staticmethod
    def _has_multiple_bssids(net: NetworkObservation, scan: _ScanIndex, past: _HistoryIndex) -> bool:
        """Same SSID with more than one BSSID in this scan plus the recent window."""
        if not net.ssid:
            return False
        bssids = scan.bssids_by_ssid.get(net.ssid, set()) | past.recent_bssids_by_ssid.get(net.ssid, set())
        return len(bssids) > 1

    @staticmethod
    def _has_security_change(net: NetworkObservation, past: _HistoryIndex) -> bool:
        """Security tokens differ from the latest historical sighting of the SSID."""
        if not net.ssid:
            return False
        previous = past.latest_caps_by_ssid.get(net.ssid)
        if previous is None:
            return False
        return strip_infrastructure_tags(previous) != strip_infrastructure_tags(net.capabilities)

    @staticmethod
    def _is_evil_twin(net: NetworkObservation, past: _HistoryIndex) -> bool:
        """Open AP impersonating an SSID known to be secured, from a new BSSID.

        An attacker can clone the name but neither the legitimate AP's MAC
        nor its key material.
        """
        if not net.is_open or not net.ssid or not net.bssid:
            return False
        if net.ssid not in past.secured_ssids:
            return False
        return not past.knows_pair(net.ssid, net.bssid)

    @staticmethod
    def _is_mac_spoofing(net: NetworkObservation, past: _HistoryIndex) -> bool:
        """Locally-administered BSSID not seen before.

        Enterprise controllers assign stable locally-administered BSSIDs;
        once such a BSSID is in history it is no longer reported.
        """
        if not is_locally_administered(net.bssid):
            return False
        return net.bssid not in past.known_bssids

    def _is_suspicious_signal(self, net: NetworkObservation, past: _HistoryIndex) -> bool:
        """Unknown BSSID unusually close once a baseline exists."""
        if not past.has_baseline or not net.bssid:
            return False
        if net.rssi < self._config.suspicious_rssi_dbm:
            return False
        return net.bssid not in past.known_bssids

    def _is_multi_ssid_same_oui(
        self, net: NetworkObservation, scan: _ScanIndex, past: _HistoryIndex
    ) -> bool:
        """Many distinct SSIDs from one vendor prefix (SSID spam).

        A deployment whose every BSSID is already in history is treated as
        a stable multi-SSID controller.
        """
        oui = net.oui
        if oui is None:
            return False
        group = [n for n in scan.by_oui.get(oui, []) if n.ssid]
        if len({n.ssid for n in group}) < self._config.multi_ssid_oui_threshold:
            return False
        if past.has_baseline and all(n.bssid in past.known_bssids for n in group):
            return False
        return True

    def _is_beacon_flood(self, net: NetworkObservation, scan: _ScanIndex, past: _HistoryIndex) -> bool:
        """New member of a burst of never-seen BSSIDs sharing one vendor prefix."""
        if not past.has_baseline or net.bssid in past.known_bssids:
            return False
        oui = net.oui
        if oui is None:
            return False
        fresh = {n.bssid for n in scan.by_oui.get(oui, []) if n.bssid not in past.known_bssids}
        return len(fresh) >= self._config.beacon_flood_threshold

    @staticmethod
    def _has_inconsistent_capabilities(net: NetworkObservation) -> bool:
        """PHY generation impossible on the observed band.

        802.11ac is 5 GHz only; the 6 GHz band requires 802.11ax or later.
        """
        band = net.band
        if net.wifi_standard is WifiStandard.AC and band is Band.GHZ_2_4:
            return True
        return band is Band.GHZ_6 and net.wifi_standard in _PRE_AX_STANDARDS

    def _is_near_clone(
        self,
        net: NetworkObservation,
        current_scan: Sequence[NetworkObservation],
        past: _HistoryIndex,
    ) -> bool:
        """New BSSID copying a known peer's SSID and all but its last octets.

        The peer must share the band, and the SSID/peer pairing must already
        be in history, so a first scan of a multi-AP deployment stays clean.
        """
        if not net.ssid or net.bssid in past.known_bssids:
            return False
        octets = bssid_octets(net.bssid)
        if octets is None:
            return False
        prefix_len = 6 - max(1, min(5, self._config.near_clone_differing_octets))
        prefix = octets[:prefix_len]

        for peer in current_scan:
            if peer.ssid != net.ssid or peer.bssid == net.bssid:
                continue
            peer_octets = bssid_octets(peer.bssid)
            if peer_octets is None or peer_octets[:prefix_len] != prefix:
                continue
            if (
                net.band is not Band.UNKNOWN
                and net.band is peer.band
                and past.knows_pair(net.ssid, peer.bssid)
            ):
                return True
        return False

    @staticmethod
    def _has_band_shift(net: NetworkObservation, past: _HistoryIndex) -> bool:
        """BSSID last seen on a different band than now."""
        if not net.bssid or net.band is Band.UNKNOWN:
            return False
        previous = past.latest_band_by_bssid.get(net.bssid)
        return previous is not None and previous is not net.band

    def _is_deauth_flood(self, root: RootScanData) -> bool:
        return root.root_active and root.deauth_frame_count > self._config.deauth_flood_threshold

    @staticmethod
    def _is_probe_only(net: NetworkObservation, root: RootScanData) -> bool:
        """SSID answered probes but never beaconed (Karma signature)."""
        return root.root_active and bool(net.ssid) and net.ssid in root.probe_only_ssids
