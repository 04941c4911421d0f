"""
Radio & Capability Helpers
==========================

Pure functions translating the raw radio attributes of a scan result
(frequency, capability string, BSSID, RSSI, PHY generation code) into the
derived values the analyzers and the console output reason about.

Capability strings use the Android ``ScanResult.capabilities`` notation,
e.g. ``[WPA2-PSK-CCMP][RSN-PSK-CCMP][ESS][WPS]``.

References:
    - IEEE. (2020). IEEE Std 802.11-2020. Annex E: Country information
      and operating classes.
    - IEEE. (2014). IEEE Std 802-2014. Section 8.2: Universal and local
      addresses.
    - Android Open Source Project. android.net.wifi.ScanResult.
"""

from __future__ import annotations

import enum
import re
from typing import Optional


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class Band(str, enum.Enum):
    """Wi-Fi frequency band resolved from a centre frequency."""

    GHZ_2_4 = "2.4 GHz"
    GHZ_5 = "5 GHz"
    GHZ_6 = "6 GHz"
    UNKNOWN = ""


class WifiStandard(enum.IntEnum):
    """PHY generation codes as reported by the platform scan API."""

    UNKNOWN = 0
    LEGACY = 1
    N = 4
    AC = 5
    AX = 6
    AD = 7
    BE = 8

    @classmethod
    def from_code(cls, code: object) -> WifiStandard:
        """Map a raw integer code to a member, ``UNKNOWN`` for anything else."""
        try:
            return cls(int(code))  # type: ignore[call-overload]
        except (TypeError, ValueError):
            return cls.UNKNOWN


_STANDARD_LABELS: dict[WifiStandard, str] = {
    WifiStandard.LEGACY: "Legacy (802.11a/b/g)",
    WifiStandard.N: "Wi-Fi 4 (802.11n)",
    WifiStandard.AC: "Wi-Fi 5 (802.11ac)",
    WifiStandard.AX: "Wi-Fi 6 / 6E (802.11ax)",
    WifiStandard.AD: "WiGig (802.11ad)",
    WifiStandard.BE: "Wi-Fi 7 (802.11be)",
}

# Higher is stronger; unlisted labels rank as Open.
_SECURITY_RANKS: dict[str, int] = {
    "Open": 0,
    "WEP (insecure)": 1,
    "WPA": 2,
    "WPA-Enterprise": 3,
    "WPA2": 4,
    "WPA2-Enterprise": 5,
    "WPA3": 6,
    "WPA3-Enterprise": 6,
}

_INFRASTRUCTURE_TAGS = re.compile(r"\[(?:ESS|BSS|IBSS|WPS)\]")
_TOKEN_RE = re.compile(r"\[([^\]]*)\]")
_HEX_OCTET = re.compile(r"^[0-9A-Fa-f]{2}$")
_CIPHER_MARKERS = ("CCMP", "TKIP")


# ========================== Frequency / Band ===============================


def frequency_to_band(frequency_mhz: int) -> Band:
    """Resolve a centre frequency to its band (``Band.UNKNOWN`` otherwise)."""
    if 2400 <= frequency_mhz <= 2499:
        return Band.GHZ_2_4
    if 4900 <= frequency_mhz <= 5924:
        return Band.GHZ_5
    if 5925 <= frequency_mhz <= 7125:
        return Band.GHZ_6
    return Band.UNKNOWN


def frequency_to_channel(frequency_mhz: int) -> Optional[int]:
    """IEEE channel number for a centre frequency, ``None`` if unresolvable."""
    if frequency_mhz == 2484:
        return 14
    if 2412 <= frequency_mhz <= 2472:
        return (frequency_mhz - 2407) // 5
    if 5160 <= frequency_mhz <= 5885:
        return (frequency_mhz - 5000) // 5
    if 5955 <= frequency_mhz <= 7115:
        return (frequency_mhz - 5950) // 5
    return None


def channel_to_frequency(channel: int) -> int:
    """Centre frequency for a channel number as written by WiGLE exports.

    Channels above 177 are interpreted as 6 GHz. Returns ``0`` (unknown) for
    channel numbers that do not map to any band.
    """
    if channel == 14:
        return 2484
    if 1 <= channel <= 13:
        return 2407 + 5 * channel
    if 36 <= channel <= 177:
        return 5000 + 5 * channel
    if channel > 177:
        return 5950 + 5 * channel
    return 0


# ========================== Capabilities ===================================


def capability_tokens(capabilities: str) -> frozenset[str]:
    """Upper-cased bracketed tokens of a capability string."""
    return frozenset(
        tok.strip().upper() for tok in _TOKEN_RE.findall(capabilities) if tok.strip()
    )


def strip_infrastructure_tags(capabilities: str) -> str:
    """Remove [ESS] [BSS] [IBSS] [WPS], leaving only security tokens."""
    return _INFRASTRUCTURE_TAGS.sub("", capabilities.upper()).strip()


def is_open_capabilities(capabilities: str) -> bool:
    caps = capabilities.upper()
    return "WPA" not in caps and "WEP" not in caps and "SAE" not in caps


def has_wps(capabilities: str) -> bool:
    return any("WPS" in tok for tok in capability_tokens(capabilities))


def is_wps_token(token: str) -> bool:
    return "WPS" in token


def is_cipher_token(token: str) -> bool:
    return any(marker in token for marker in _CIPHER_MARKERS)


def capabilities_to_security_label(capabilities: str) -> str:
    """Friendly security label for a capability string."""
    caps = capabilities.upper()
    if "EAP-SUITE-B" in caps:
        return "WPA3-Enterprise"
    if "SAE" in caps:
        return "WPA3"
    if "WPA2" in caps or "RSN" in caps:
        return "WPA2-Enterprise" if "EAP" in caps else "WPA2"
    if "WPA" in caps:
        return "WPA-Enterprise" if "EAP" in caps else "WPA"
    if "WEP" in caps:
        return "WEP (insecure)"
    return "Open"


def security_rank(label: str) -> int:
    """Relative strength of a security label (Open = 0, WPA3 = 6)."""
    return _SECURITY_RANKS.get(label, 0)


# ========================== BSSID ==========================================


def normalize_bssid(raw: str) -> str:
    """Canonical upper-case colon-separated form of a MAC string.

    Accepts ``-`` as separator. Does not validate; see :func:`is_valid_bssid`.
    """
    return raw.strip().replace("-", ":").upper()


def bssid_octets(bssid: str) -> Optional[list[str]]:
    """The six hex octets of a BSSID, or ``None`` if malformed."""
    parts = bssid.split(":")
    if len(parts) != 6 or not all(_HEX_OCTET.match(p) for p in parts):
        return None
    return [p.upper() for p in parts]


def is_valid_bssid(bssid: str) -> bool:
    return bssid_octets(bssid) is not None


def oui_of(bssid: str) -> Optional[str]:
    """``AA:BB:CC`` vendor prefix, or ``None`` if the first three octets are
    not each exactly two hex digits."""
    parts = bssid.split(":")
    if len(parts) < 3 or not all(_HEX_OCTET.match(p) for p in parts[:3]):
        return None
    return ":".join(p.upper() for p in parts[:3])


def oui_key(bssid: str) -> Optional[str]:
    """Separator-free vendor-table key (``AABBCC``) for a BSSID."""
    prefix = oui_of(normalize_bssid(bssid))
    return prefix.replace(":", "") if prefix else None


def is_locally_administered(bssid: str) -> bool:
    """True when bit 0x02 of the first octet is set (IEEE 802 U/L bit)."""
    first = bssid.split(":", 1)[0]
    if not _HEX_OCTET.match(first):
        return False
    return bool(int(first, 16) & 0x02)


# ========================== Display ========================================


def rssi_to_percent(rssi_dbm: int) -> int:
    """Linear 0-100 signal quality between -100 dBm and -55 dBm."""
    clamped = max(-100, min(-55, rssi_dbm))
    return (clamped + 100) * 100 // 45


def rssi_to_label(rssi_dbm: int) -> str:
    if rssi_dbm >= -55:
        return "Excellent"
    if rssi_dbm >= -67:
        return "Good"
    if rssi_dbm >= -78:
        return "Fair"
    if rssi_dbm >= -89:
        return "Weak"
    return "No signal"


def wifi_standard_label(standard: WifiStandard | int) -> str:
    """Marketing name of a PHY generation; empty string when unknown."""
    return _STANDARD_LABELS.get(WifiStandard.from_code(standard), "")


# Reference RSSI at 1 m per band, free-space path-loss exponent 2.
_TX_POWER_AT_1M: dict[Band, int] = {
    Band.GHZ_2_4: -59,
    Band.GHZ_5: -65,
    Band.GHZ_6: -68,
}
_METRES_TO_FEET = 3.28084

_CHANNEL_WIDTHS: dict[int, str] = {
    0: "20 MHz",
    1: "40 MHz",
    2: "80 MHz",
    3: "160 MHz",
    4: "80+80 MHz",
    5: "320 MHz",
}


def rssi_to_distance_meters(rssi_dbm: int, frequency_mhz: int) -> float:
    """Rough free-space distance estimate from RSSI.

    .. math::

        d = 10^{(P_{1m} - RSSI) / 20}

    Unknown bands fall back to the 2.4 GHz reference power.
    """
    tx_power = _TX_POWER_AT_1M.get(frequency_to_band(frequency_mhz), -59)
    return 10 ** ((tx_power - rssi_dbm) / 20.0)


def format_distance(metres: float, *, use_feet: bool = False) -> str:
    """Approximate distance label such as ``~42 m``, ``~1.5 km`` or ``~33 ft``."""
    if use_feet:
        return f"~{round(metres * _METRES_TO_FEET)} ft"
    if metres >= 1000:
        return f"~{metres / 1000:.1f} km"
    return f"~{round(metres)} m"


def channel_width_label(code: int) -> str:
    """Channel width for a platform ``CHANNEL_WIDTH_*`` code, empty if unknown."""
    return _CHANNEL_WIDTHS.get(code, "")
