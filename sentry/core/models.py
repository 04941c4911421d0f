"""
Sentry Core Data Models
=======================

Pydantic-based domain models for the WiFi Sentry analysis core: a single
scanned access point with its threat tags, timestamped scan records, the
neutral privileged-capture result, scored change events, and the rows
produced by the WiGLE and OpenCellID importers.

All value types are frozen; analyzers return new instances rather than
mutating their inputs.

References:
    - IEEE. (2020). IEEE Std 802.11-2020: Wireless LAN Medium Access Control
      (MAC) and Physical Layer (PHY) Specifications.
    - Bauer, K., Gonzales, H., & McCoy, D. (2008). Mitigating Evil Twin
      Attacks in 802.11. IEEE IPCCC.
    - Pydantic v2 Documentation. https://docs.pydantic.dev/latest/
"""

from __future__ import annotations

import enum
from typing import Iterable, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from sentry.core.radio import (
    Band,
    WifiStandard,
    capabilities_to_security_label,
    frequency_to_band,
    frequency_to_channel,
    is_open_capabilities,
    is_valid_bssid,
    normalize_bssid,
    oui_of,
)
from sentry.core.timeutils import now_ms

_E = TypeVar("_E", bound=enum.Enum)


def _parse_enum(cls: type[_E], raw: object) -> Optional[_E]:
    """Resolve *raw* by member name or value, case-insensitively."""
    if isinstance(raw, cls):
        return raw
    if not isinstance(raw, str):
        return None
    text = raw.strip()
    member = cls.__members__.get(text.upper())
    if member is not None:
        return member
    lowered = text.lower()
    for candidate in cls:
        if str(candidate.value).lower() == lowered:
            return candidate
    return None


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class ThreatType(str, enum.Enum):
    """Closed set of per-network threat tags assigned during one scan."""

    OPEN_NETWORK = "open_network"
    SUSPICIOUS_SSID = "suspicious_ssid"
    MULTIPLE_BSSIDS = "multiple_bssids"
    SECURITY_CHANGE = "security_change"
    EVIL_TWIN = "evil_twin"
    MAC_SPOOFING_SUSPECTED = "mac_spoofing_suspected"
    SUSPICIOUS_SIGNAL_STRENGTH = "suspicious_signal_strength"
    MULTI_SSID_SAME_OUI = "multi_ssid_same_oui"
    BEACON_FLOOD = "beacon_flood"
    INCONSISTENT_CAPABILITIES = "inconsistent_capabilities"
    BSSID_NEAR_CLONE = "bssid_near_clone"
    WPS_VULNERABLE = "wps_vulnerable"
    CHANNEL_SHIFT = "channel_shift"
    DEAUTH_FLOOD = "deauth_flood"
    PROBE_RESPONSE_ANOMALY = "probe_response_anomaly"

    @classmethod
    def parse(cls, raw: object) -> Optional[ThreatType]:
        """Tag for a stored name or value; ``None`` for unknown tags."""
        return _parse_enum(cls, raw)


class ChangeType(str, enum.Enum):
    """Closed set of cross-scan change events."""

    SECURITY_DOWNGRADE = "security_downgrade"
    SECURITY_UPGRADE = "security_upgrade"
    CHANNEL_SHIFT = "channel_shift"
    SIGNAL_ANOMALY = "signal_anomaly"
    CAPABILITIES_CHANGED = "capabilities_changed"
    NEW_BSSID_SAME_SSID = "new_bssid_same_ssid"
    FOLLOWING_NETWORK = "following_network"

    @classmethod
    def parse(cls, raw: object) -> Optional[ChangeType]:
        return _parse_enum(cls, raw)


class ChangeSeverity(str, enum.Enum):
    """Severity bucket derived from a change score."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def from_score(cls, score: int) -> ChangeSeverity:
        if score >= 70:
            return cls.HIGH
        if score >= 40:
            return cls.MEDIUM
        return cls.LOW


# ---------------------------------------------------------------------------
# Scan observations
# ---------------------------------------------------------------------------


class GpsFix(BaseModel):
    """Position at which a network was observed. All four fields are finite."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90.0, le=90.0, allow_inf_nan=False)
    longitude: float = Field(ge=-180.0, le=180.0, allow_inf_nan=False)
    altitude: float = Field(default=0.0, allow_inf_nan=False)
    accuracy: float = Field(default=0.0, ge=0.0, allow_inf_nan=False)


class NetworkObservation(BaseModel):
    """One access point as seen in one scan.

    Attributes:
        ssid: Network name; empty for hidden networks.
        bssid: Canonical upper-case colon-hex MAC, or empty when unknown.
        capabilities: Bracketed capability string, e.g. ``[WPA2-PSK-CCMP][ESS]``.
        rssi: Received signal strength in dBm.
        frequency: Centre frequency in MHz (0 when unknown).
        timestamp: Observation time in epoch milliseconds.
        wifi_standard: PHY generation, ``UNKNOWN`` when not reported.
        gps: Position fix, ``None`` when no complete fix was available.
        threats: Tags assigned by the threat analyzer.
    """

    model_config = ConfigDict(frozen=True)

    ssid: str = ""
    bssid: str = ""
    capabilities: str = ""
    rssi: int = -100
    frequency: int = 0
    timestamp: int = 0
    wifi_standard: WifiStandard = WifiStandard.UNKNOWN
    gps: Optional[GpsFix] = None
    threats: frozenset[ThreatType] = Field(default_factory=frozenset)

    @field_validator("ssid", "capabilities", mode="before")
    @classmethod
    def _none_as_empty(cls, v: object) -> object:
        return "" if v is None else v

    @field_validator("bssid", mode="before")
    @classmethod
    def _canonical_bssid(cls, v: object) -> str:
        if v is None:
            return ""
        bssid = normalize_bssid(str(v))
        if bssid and not is_valid_bssid(bssid):
            raise ValueError(f"malformed BSSID: {v!r}")
        return bssid

    @field_validator("wifi_standard", mode="before")
    @classmethod
    def _known_standard(cls, v: object) -> WifiStandard:
        return WifiStandard.from_code(v)

    # -- derived --------------------------------------------------------

    @property
    def is_flagged(self) -> bool:
        return bool(self.threats)

    @property
    def is_open(self) -> bool:
        return is_open_capabilities(self.capabilities)

    @property
    def band(self) -> Band:
        return frequency_to_band(self.frequency)

    @property
    def channel(self) -> Optional[int]:
        return frequency_to_channel(self.frequency)

    @property
    def oui(self) -> Optional[str]:
        return oui_of(self.bssid)

    @property
    def has_gps_fix(self) -> bool:
        return self.gps is not None

    @property
    def security_label(self) -> str:
        return capabilities_to_security_label(self.capabilities)

    @property
    def sorted_threats(self) -> list[ThreatType]:
        """Threat tags in declaration order, for stable output."""
        return [t for t in ThreatType if t in self.threats]

    def with_threats(self, threats: Iterable[ThreatType]) -> NetworkObservation:
        return self.model_copy(update={"threats": frozenset(threats)})


class ScanRecord(BaseModel):
    """A timestamped, complete scan."""

    model_config = ConfigDict(frozen=True)

    timestamp_ms: int
    networks: tuple[NetworkObservation, ...] = ()

    @property
    def flagged_count(self) -> int:
        return sum(1 for n in self.networks if n.is_flagged)


class RootScanData(BaseModel):
    """Result of a privileged monitor-mode capture window.

    The default instance means "no privileged data available" and is a
    harmless input to the threat analyzer.
    """

    model_config = ConfigDict(frozen=True)

    deauth_frame_count: int = Field(default=0, ge=0)
    probe_only_ssids: frozenset[str] = Field(default_factory=frozenset)
    root_active: bool = False


# ---------------------------------------------------------------------------
# Change analysis output
# ---------------------------------------------------------------------------


class NetworkChange(BaseModel):
    """A scored cross-scan change event. Recomputed on demand, never stored."""

    model_config = ConfigDict(frozen=True)

    ssid: str
    bssid: str
    change_type: ChangeType
    previous_value: str = ""
    current_value: str = ""
    description: str = ""
    detected_at_ms: int = 0
    score: int = Field(default=0, ge=0, le=100)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def severity(self) -> ChangeSeverity:
        return ChangeSeverity.from_score(self.score)


class AnalysisResult(BaseModel):
    """Outcome of one change-analysis pass, highest score first."""

    model_config = ConfigDict(frozen=True)

    changes: tuple[NetworkChange, ...] = ()
    records_analyzed: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def change_count(self) -> int:
        return len(self.changes)

    @property
    def high_severity_count(self) -> int:
        return sum(1 for c in self.changes if c.severity is ChangeSeverity.HIGH)


# ---------------------------------------------------------------------------
# Auxiliary records
# ---------------------------------------------------------------------------


class CellTowerRecord(BaseModel):
    """One cell tower from an OpenCellID export.

    Attributes:
        radio: Radio technology (GSM, UMTS, LTE, NR, CDMA), upper-cased.
        mcc: Mobile Country Code.
        mnc: Mobile Network Code.
        lac: Location Area Code (or Tracking Area Code for LTE).
        cid: Cell ID.
        lon: WGS-84 longitude.
        lat: WGS-84 latitude.
        range_meters: Estimated coverage radius.
        samples: Number of measurements.
        average_signal: Average signal strength in dBm.
    """

    model_config = ConfigDict(frozen=True)

    radio: str
    mcc: int
    mnc: int
    lac: int
    cid: int
    lon: float = Field(allow_inf_nan=False)
    lat: float = Field(allow_inf_nan=False)
    range_meters: int = 0
    samples: int = 0
    average_signal: int = 0

    @field_validator("radio", mode="before")
    @classmethod
    def _upper_radio(cls, v: object) -> object:
        return v.strip().upper() if isinstance(v, str) else v

    @property
    def key(self) -> str:
        return tower_key(self.radio, self.mcc, self.mnc, self.lac, self.cid)


def tower_key(radio: str, mcc: int, mnc: int, lac: int, cid: int) -> str:
    """Deduplication key ``RADIO:mcc:mnc:lac:cid``."""
    return f"{radio.upper()}:{mcc}:{mnc}:{lac}:{cid}"


class PinnedNetwork(BaseModel):
    """A network the user tracks long-term."""

    model_config = ConfigDict(frozen=True)

    bssid: str
    ssid: str = ""
    pinned_at_ms: int = Field(default_factory=now_ms)
    note: str = ""

    @field_validator("bssid", mode="before")
    @classmethod
    def _canonical_bssid(cls, v: object) -> object:
        return normalize_bssid(v) if isinstance(v, str) else v


class WigleImportResult(BaseModel):
    """Scan records reconstructed from a WiGLE CSV export."""

    model_config = ConfigDict(frozen=True)

    records: tuple[ScanRecord, ...] = ()
    imported_count: int = 0
    skipped_count: int = 0


class OpenCellIdImportResult(BaseModel):
    """Towers parsed from an OpenCellID CSV export."""

    model_config = ConfigDict(frozen=True)

    towers: tuple[CellTowerRecord, ...] = ()
    imported_count: int = 0
    skipped_count: int = 0
