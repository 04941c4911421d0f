"""
Sentry Change Analyzer
======================

Multi-scan temporal engine.  Where the threat analyzer looks at one scan,
this analyzer looks across the stored timeline and reports changes in an
access point's advertised properties that hint at impersonation,
downgrade attacks or physical tracking.

For every BSSID seen at least twice the newest and oldest sightings are
compared (security label, channel, RSSI, security-relevant capability
tokens).  Two timeline-level patterns are checked in addition: a new BSSID
appearing for an established SSID, and an AP observed at GPS positions
far apart from each other.

Scoring
-------
Each event carries a base likelihood and a confidence in ``[0, 1]`` and a
fixed impact factor per change type::

    score = round_half_up(likelihood * 100 * impact * confidence)

clamped to ``[0, 100]``.  Severity buckets: >= 70 high, >= 40 medium.

References:
    - Kismet Wireless. WIDS alert reference (APSPOOF, CRYPTODROP,
      CHANCHANGE). https://www.kismetwireless.net/docs/
    - Sinnott, R. W. (1984). Virtues of the Haversine.
      Sky and Telescope, 68(2), 159.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from shared.config import ChangeConfig
from shared.logger import SentryLogger
from shared.math_utils import clamp, max_pairwise_distance, round_half_up

from sentry.core.models import (
    AnalysisResult,
    ChangeType,
    NetworkChange,
    NetworkObservation,
    ScanRecord,
)
from sentry.core.radio import (
    capability_tokens,
    is_cipher_token,
    is_wps_token,
    security_rank,
)
from sentry.core.timeutils import now_ms as wall_clock_ms

logger = SentryLogger("analyzers.change")

IMPACT_FACTORS: dict[ChangeType, float] = {
    ChangeType.SECURITY_DOWNGRADE: 2.0,
    ChangeType.SECURITY_UPGRADE: 0.5,
    ChangeType.CHANNEL_SHIFT: 1.5,
    ChangeType.NEW_BSSID_SAME_SSID: 1.8,
    ChangeType.SIGNAL_ANOMALY: 1.2,
    ChangeType.CAPABILITIES_CHANGED: 1.8,
    ChangeType.FOLLOWING_NETWORK: 2.0,
}

_CAPS_PREVIEW_LEN = 60


def change_score(change_type: ChangeType, likelihood: float, confidence: float) -> int:
    """Score in ``[0, 100]`` for one detection."""
    raw = likelihood * 100.0 * IMPACT_FACTORS[change_type] * confidence
    return int(clamp(round_half_up(raw), 0, 100))


@dataclass(frozen=True, slots=True)
class _Sighting:
    timestamp_ms: int
    network: NetworkObservation


class ChangeAnalyzer:
    """Diff-and-score engine over the stored scan timeline.

    Detection techniques:

    1. **Security downgrade / upgrade** -- the security label rank of the
       newest sighting differs from the oldest one.
    2. **Channel shift** -- resolved channel differs; a band change is
       rated more likely malicious than an in-band move (DFS).
    3. **Signal anomaly** -- RSSI moved by at least ``rssi_anomaly_dbm``.
    4. **Capabilities changed** -- a WPS token or a cipher token (CCMP /
       TKIP) appeared or disappeared; cosmetic token changes are ignored.
    5. **New BSSID, same SSID** -- the newest scan contains a never-seen
       BSSID for an SSID already established by other hardware.
    6. **Following network** -- the same BSSID seen at GPS fixes more than
       ``following_distance_m`` apart.

    Usage::

        analyzer = ChangeAnalyzer()
        result = analyzer.analyze(store.load_history())
        for change in result.changes:
            print(change.severity, change.description)
    """

    def __init__(self, config: Optional[ChangeConfig] = None) -> None:
        self._config = config or ChangeConfig()

    @property
    def config(self) -> ChangeConfig:
        return self._config

    # ------------------------------------------------------------------ #
    #  Public API
    # ------------------------------------------------------------------ #

    def analyze(self, records: Sequence[ScanRecord]) -> AnalysisResult:
        """Detect changes across *records* (any order, at least two needed)."""
        if len(records) < 2:
            return AnalysisResult(records_analyzed=len(records))

        ordered = sorted(records, key=lambda r: r.timestamp_ms, reverse=True)
        detected_at = ordered[0].timestamp_ms
        timelines = self._build_timelines(ordered)

        changes: list[NetworkChange] = []
        for bssid, sightings in timelines.items():
            if len(sightings) < 2:
                continue
            newest = sightings[0].network
            oldest = sightings[-1].network
            for detect in (
                self._detect_security_change,
                self._detect_channel_shift,
                self._detect_signal_anomaly,
                self._detect_capabilities_change,
            ):
                change = detect(bssid, newest, oldest, detected_at)
                if change is not None:
                    changes.append(change)

        changes.extend(self._detect_new_bssids(ordered))
        changes.extend(self._detect_following(timelines, detected_at))

        kept = sorted(
            (c for c in changes if c.score >= self._config.min_score),
            key=lambda c: c.score,
            reverse=True,
        )
        logger.info(
            f"Change analysis: {len(ordered)} record(s), {len(timelines)} BSSID(s), "
            f"{len(kept)} change(s) kept of {len(changes)}"
        )
        return AnalysisResult(changes=tuple(kept), records_analyzed=len(ordered))

    def analyze_current(
        self,
        current_scan: Sequence[NetworkObservation],
        history: Sequence[ScanRecord],
        now_ms: Optional[int] = None,
    ) -> AnalysisResult:
        """Analyse a fresh, unsaved scan against stored *history*."""
        if not history:
            return AnalysisResult()
        stamp = wall_clock_ms() if now_ms is None else now_ms
        synthetic = ScanRecord(timestamp_ms=stamp, networks=tuple(current_scan))
        return self.analyze([synthetic, *history])

    # ------------------------------------------------------------------ #
    #  Indexing
    # ------------------------------------------------------------------ #

    @staticmethod
    def _build_timelines(ordered: Sequence[ScanRecord]) -> dict[str, list[_Sighting]]:
        """BSSID -> sightings, newest first. Blank BSSIDs are ignored."""
        timelines: dict[str, list[_Sighting]] = {}
        for record in ordered:
            for net in record.networks:
                if net.bssid:
                    timelines.setdefault(net.bssid, []).append(
                        _Sighting(record.timestamp_ms, net)
                    )
        return timelines

    # ------------------------------------------------------------------ #
    #  Per-BSSID diffs
    # ------------------------------------------------------------------ #

    @staticmethod
    def _detect_security_change(
        bssid: str, newest: NetworkObservation, oldest: NetworkObservation, detected_at: int
    ) -> Optional[NetworkChange]:
        new_label = newest.security_label
        old_label = oldest.security_label
        new_rank = security_rank(new_label)
        old_rank = security_rank(old_label)
        if new_rank == old_rank:
            return None

        downgrade = new_rank < old_rank
        if downgrade:
            change_type = ChangeType.SECURITY_DOWNGRADE
            likelihood = 0.70
            note = "A security downgrade is a strong indicator of an evil-twin attack or misconfiguration."
        else:
            change_type = ChangeType.SECURITY_UPGRADE
            likelihood = 0.50
            note = "Security was upgraded; usually benign but worth noting."
        return NetworkChange(
            ssid=newest.ssid,
            bssid=bssid,
            change_type=change_type,
            previous_value=old_label,
            current_value=new_label,
            description=(
                f"Access point '{newest.ssid}' ({bssid}) changed security from "
                f"'{old_label}' to '{new_label}'. {note}"
            ),
            detected_at_ms=detected_at,
            score=change_score(change_type, likelihood, 0.75),
        )

    @staticmethod
    def _detect_channel_shift(
        bssid: str, newest: NetworkObservation, oldest: NetworkObservation, detected_at: int
    ) -> Optional[NetworkChange]:
        new_ch = newest.channel
        old_ch = oldest.channel
        if new_ch is None or old_ch is None or new_ch == old_ch:
            return None

        band_change = newest.band is not oldest.band
        if band_change:
            note = "A band change is unusual for a fixed AP."
        else:
            note = "Channel changes can be benign (DFS) but may indicate a rogue replacement."
        return NetworkChange(
            ssid=newest.ssid,
            bssid=bssid,
            change_type=ChangeType.CHANNEL_SHIFT,
            previous_value=f"ch{old_ch} ({oldest.band.value})",
            current_value=f"ch{new_ch} ({newest.band.value})",
            description=(
                f"Access point '{newest.ssid}' ({bssid}) moved from channel {old_ch} "
                f"({oldest.band.value}) to channel {new_ch} ({newest.band.value}). {note}"
            ),
            detected_at_ms=detected_at,
            score=change_score(ChangeType.CHANNEL_SHIFT, 0.60 if band_change else 0.35, 0.65),
        )

    def _detect_signal_anomaly(
        self, bssid: str, newest: NetworkObservation, oldest: NetworkObservation, detected_at: int
    ) -> Optional[NetworkChange]:
        delta = abs(newest.rssi - oldest.rssi)
        if delta < self._config.rssi_anomaly_dbm:
            return None

        direction = f"stronger (+{delta} dBm)" if newest.rssi > oldest.rssi else f"weaker (-{delta} dBm)"
        return NetworkChange(
            ssid=newest.ssid,
            bssid=bssid,
            change_type=ChangeType.SIGNAL_ANOMALY,
            previous_value=f"{oldest.rssi} dBm",
            current_value=f"{newest.rssi} dBm",
            description=(
                f"Access point '{newest.ssid}' ({bssid}) signal became {direction} between "
                f"scans, beyond the normal variance of a static AP. A mobile rogue device "
                f"may be positioned near the user."
            ),
            detected_at_ms=detected_at,
            score=change_score(ChangeType.SIGNAL_ANOMALY, 0.40, clamp(delta / 30.0, 0.3, 0.85)),
        )

    @staticmethod
    def _detect_capabilities_change(
        bssid: str, newest: NetworkObservation, oldest: NetworkObservation, detected_at: int
    ) -> Optional[NetworkChange]:
        new_tokens = capability_tokens(newest.capabilities)
        old_tokens = capability_tokens(oldest.capabilities)
        added = new_tokens - old_tokens
        removed = old_tokens - new_tokens
        if not added and not removed:
            return None

        wps_added = any(is_wps_token(t) for t in added)
        wps_removed = any(is_wps_token(t) for t in removed)
        ciphers_added = sorted(t for t in added if is_cipher_token(t))
        ciphers_removed = sorted(t for t in removed if is_cipher_token(t))
        cipher_change = bool(ciphers_added or ciphers_removed)
        if not (wps_added or wps_removed or cipher_change):
            return None

        notes: list[str] = []
        if wps_added:
            notes.append("WPS appeared (brute-force exposure).")
        if wps_removed:
            notes.append("WPS was removed.")
        if cipher_change:
            notes.append(
                f"Cipher suite changed: {', '.join(ciphers_removed) or '-'} -> "
                f"{', '.join(ciphers_added) or '-'}."
            )
        likelihood = 0.70 if (wps_added or cipher_change) else 0.45
        return NetworkChange(
            ssid=newest.ssid,
            bssid=bssid,
            change_type=ChangeType.CAPABILITIES_CHANGED,
            previous_value=oldest.capabilities[:_CAPS_PREVIEW_LEN],
            current_value=newest.capabilities[:_CAPS_PREVIEW_LEN],
            description=(
                f"Access point '{newest.ssid}' ({bssid}) advertised different capabilities. "
                + " ".join(notes)
            ),
            detected_at_ms=detected_at,
            score=change_score(ChangeType.CAPABILITIES_CHANGED, likelihood, 0.65),
        )

    # ------------------------------------------------------------------ #
    #  Timeline patterns
    # ------------------------------------------------------------------ #

    def _detect_new_bssids(self, ordered: Sequence[ScanRecord]) -> list[NetworkChange]:
        """Never-seen BSSIDs in the newest record for an established SSID.

        An SSID is established once older records hold at least
        ``new_bssid_min_known`` sightings of it from other BSSIDs.
        """
        latest = ordered[0]
        older = ordered[1:]

        older_bssids: set[str] = set()
        # SSID (case-folded) -> BSSID -> number of older sightings
        sightings: dict[str, dict[str, int]] = {}
        for record in older:
            for net in record.networks:
                if not net.bssid:
                    continue
                older_bssids.add(net.bssid)
                if net.ssid:
                    per_bssid = sightings.setdefault(net.ssid.casefold(), {})
                    per_bssid[net.bssid] = per_bssid.get(net.bssid, 0) + 1

        changes: list[NetworkChange] = []
        reported: set[str] = set()
        for net in latest.networks:
            if not net.ssid or not net.bssid or net.bssid in older_bssids or net.bssid in reported:
                continue
            known = {
                bssid: count
                for bssid, count in sightings.get(net.ssid.casefold(), {}).items()
                if bssid != net.bssid
            }
            if sum(known.values()) < self._config.new_bssid_min_known:
                continue

            reported.add(net.bssid)
            known_list = sorted(known)
            changes.append(
                NetworkChange(
                    ssid=net.ssid,
                    bssid=net.bssid,
                    change_type=ChangeType.NEW_BSSID_SAME_SSID,
                    previous_value=f"Known BSSID(s): {', '.join(known_list[:2])}",
                    current_value=f"New BSSID: {net.bssid} ({net.security_label})",
                    description=(
                        f"Network '{net.ssid}' was previously seen from {len(known_list)} known "
                        f"hardware address(es) but is now also broadcasting from a new, "
                        f"previously-unseen BSSID ({net.bssid})."
                    ),
                    detected_at_ms=latest.timestamp_ms,
                    score=change_score(ChangeType.NEW_BSSID_SAME_SSID, 0.65, 0.70),
                )
            )
        return changes

    def _detect_following(
        self, timelines: dict[str, list[_Sighting]], detected_at: int
    ) -> list[NetworkChange]:
        """BSSIDs observed at GPS fixes further apart than a fixed AP can be."""
        cfg = self._config
        changes: list[NetworkChange] = []
        for bssid, sightings in timelines.items():
            if len(sightings) < cfg.following_min_observations:
                continue
            fixes = [
                (s.network.gps.latitude, s.network.gps.longitude)
                for s in sightings
                if s.network.gps is not None
            ]
            if len(fixes) < cfg.following_min_gps_fixes:
                continue

            max_dist = max_pairwise_distance(fixes)
            if max_dist <= cfg.following_distance_m:
                continue

            net = sightings[0].network
            logger.debug(f"{bssid} seen {max_dist:.0f} m apart across {len(fixes)} fix(es)")
            changes.append(
                NetworkChange(
                    ssid=net.ssid,
                    bssid=bssid,
                    change_type=ChangeType.FOLLOWING_NETWORK,
                    previous_value=f"Observed at {len(fixes)} locations",
                    current_value=f"Max separation: {max_dist:.0f} m",
                    description=(
                        f"Network '{net.ssid}' ({bssid}) has been detected at locations up to "
                        f"{max_dist:.0f} metres apart. A legitimate fixed AP does not move; "
                        f"this matches mobile surveillance hotspots and Wi-Fi Pineapple "
                        f"deployments."
                    ),
                    detected_at_ms=detected_at,
                    score=change_score(
                        ChangeType.FOLLOWING_NETWORK,
                        clamp(max_dist / 2000.0, 0.4, 0.9),
                        clamp(len(fixes) / 5.0, 0.4, 0.9),
                    ),
                )
            )
        return changes
