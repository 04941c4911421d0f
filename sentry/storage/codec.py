"""
JSON Wire Codec
===============

Converts scan records to and from the on-disk JSON document shape.

Observation keys::

    ssid, bssid, capabilities, rssi, frequency, timestamp, threats,
    wifiStandard?, latitude?, longitude?, altitude?, gpsAccuracy?

Record keys: ``timestampMs``, ``networks``.  Threat tags are written as
member names; unknown tags are dropped on read so that files written by a
newer release still load.  Optional keys are omitted rather than written as
``null`` or zero.

Decoding is tolerant: a malformed observation or record yields ``None``
and the caller skips it.
"""

from __future__ import annotations

import math
from typing import Any, Optional

from pydantic import ValidationError

from sentry.core.models import (
    GpsFix,
    NetworkObservation,
    RootScanData,
    ScanRecord,
    ThreatType,
)
from sentry.core.radio import WifiStandard
from shared.logger import SentryLogger

logger = SentryLogger("storage.codec")

_GPS_KEYS = ("latitude", "longitude", "altitude", "gpsAccuracy")


# ========================== Encode =========================================


def observation_to_dict(network: NetworkObservation) -> dict[str, Any]:
    data: dict[str, Any] = {
        "ssid": network.ssid,
        "bssid": network.bssid,
        "capabilities": network.capabilities,
        "rssi": network.rssi,
        "frequency": network.frequency,
        "timestamp": network.timestamp,
        "threats": [t.name for t in network.sorted_threats],
    }
    if network.wifi_standard is not WifiStandard.UNKNOWN:
        data["wifiStandard"] = int(network.wifi_standard)
    if network.gps is not None:
        data["latitude"] = network.gps.latitude
        data["longitude"] = network.gps.longitude
        data["altitude"] = network.gps.altitude
        data["gpsAccuracy"] = network.gps.accuracy
    return data


def record_to_dict(record: ScanRecord) -> dict[str, Any]:
    return {
        "timestampMs": record.timestamp_ms,
        "networks": [observation_to_dict(n) for n in record.networks],
    }


# ========================== Decode =========================================


def _finite(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value) if math.isfinite(value) else None


def _gps_from_dict(data: dict[str, Any]) -> Optional[GpsFix]:
    values = [_finite(data.get(key)) for key in _GPS_KEYS]
    if any(v is None for v in values):
        return None
    lat, lon, alt, acc = values
    try:
        return GpsFix(latitude=lat, longitude=lon, altitude=alt, accuracy=acc)
    except ValidationError:
        return None


def _threats_from(raw: Any) -> frozenset[ThreatType]:
    if not isinstance(raw, list):
        return frozenset()
    parsed = (ThreatType.parse(item) for item in raw)
    return frozenset(t for t in parsed if t is not None)


def observation_from_dict(data: Any) -> Optional[NetworkObservation]:
    """Decode one stored observation, ``None`` if it is unusable."""
    if not isinstance(data, dict):
        return None
    try:
        return NetworkObservation(
            ssid=data.get("ssid") or "",
            bssid=data.get("bssid") or "",
            capabilities=data.get("capabilities") or "",
            rssi=data.get("rssi", -100),
            frequency=data.get("frequency", 0),
            timestamp=data.get("timestamp", 0),
            wifi_standard=data.get("wifiStandard", 0),
            gps=_gps_from_dict(data),
            threats=_threats_from(data.get("threats")),
        )
    except ValidationError as exc:
        logger.debug(f"Skipping malformed observation: {exc.error_count()} error(s)")
        return None


def record_from_dict(data: Any) -> Optional[ScanRecord]:
    """Decode one stored record; malformed observations inside are dropped."""
    if not isinstance(data, dict):
        return None
    timestamp = data.get("timestampMs")
    if isinstance(timestamp, bool) or not isinstance(timestamp, int):
        return None
    raw_networks = data.get("networks")
    if not isinstance(raw_networks, list):
        raw_networks = []
    networks = [n for n in map(observation_from_dict, raw_networks) if n is not None]
    dropped = len(raw_networks) - len(networks)
    if dropped:
        logger.warning(f"Dropped {dropped} malformed observation(s) from record {timestamp}")
    return ScanRecord(timestamp_ms=timestamp, networks=tuple(networks))


def observations_from_json(payload: Any) -> list[NetworkObservation]:
    """Decode a scan-input document: a list of observations, or an object
    with a ``networks`` list."""
    if isinstance(payload, dict):
        payload = payload.get("networks")
    if not isinstance(payload, list):
        return []
    return [n for n in map(observation_from_dict, payload) if n is not None]


def root_data_from_dict(data: Any) -> RootScanData:
    """Decode a privileged-capture result; anything unusable is the neutral default.

    Keys: ``deauthFrameCount``, ``probeOnlySsids``, ``rootActive``.
    """
    if not isinstance(data, dict):
        return RootScanData()
    ssids = data.get("probeOnlySsids")
    if not isinstance(ssids, list):
        ssids = []
    try:
        return RootScanData(
            deauth_frame_count=data.get("deauthFrameCount", 0),
            probe_only_ssids=frozenset(s for s in ssids if isinstance(s, str) and s),
            root_active=bool(data.get("rootActive", False)),
        )
    except ValidationError as exc:
        logger.warning(f"Ignoring malformed root capture data: {exc.error_count()} error(s)")
        return RootScanData()
