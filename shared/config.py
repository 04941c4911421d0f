"""
WiFi Sentry Configuration Management
====================================

Centralized configuration for the WiFi Sentry analysis core using Python
dataclasses and TOML-based persistence.

Every detection threshold used by the analyzers lives here so that a
deployment can tune heuristics without touching code.  Missing keys fall
back to the dataclass defaults, unknown keys are ignored.

References:
    - Wiggins, A. (2011). The Twelve-Factor App. https://12factor.net/
    - TOML v1.0.0 Specification. https://toml.io/en/v1.0.0
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[no-redef]


# ---------------------------------------------------------------------------
# Default configuration file path relative to the project root
# ---------------------------------------------------------------------------
_DEFAULT_CONFIG_PATH: Path = Path(__file__).resolve().parent.parent / "config.toml"

DEFAULT_SUSPICIOUS_KEYWORDS: tuple[str, ...] = (
    "free", "guest", "public", "open", "hack", "evil", "pineapple",
    "starbucks", "airport", "hotel", "setup", "karma", "rogue",
    "pentest", "kali",
)


# ========================== Component Configs ==============================


@dataclass(frozen=False, slots=True)
class ThreatConfig:
    """Thresholds for the single-scan threat heuristics.

    Reference:
        Bauer, K., Gonzales, H., & McCoy, D. (2008). Mitigating Evil Twin
        Attacks in 802.11. IEEE IPCCC.
    """

    suspicious_keywords: list[str] = field(
        default_factory=lambda: list(DEFAULT_SUSPICIOUS_KEYWORDS)
    )
    recent_window_ms: int = 10 * 60 * 1000
    suspicious_rssi_dbm: int = -40
    multi_ssid_oui_threshold: int = 5
    beacon_flood_threshold: int = 4
    near_clone_differing_octets: int = 2
    deauth_flood_threshold: int = 10


@dataclass(frozen=False, slots=True)
class ChangeConfig:
    """Parameters for the multi-scan change engine."""

    rssi_anomaly_dbm: int = 15
    following_distance_m: float = 500.0
    following_min_observations: int = 3
    following_min_gps_fixes: int = 2
    new_bssid_min_known: int = 2
    min_score: int = 10


@dataclass(frozen=False, slots=True)
class StorageConfig:
    """Local JSON persistence settings."""

    max_records: int = 50
    max_towers: int = 5000
    history_file: str = "scan_history.json"
    towers_file: str = "cell_towers.json"
    pinned_file: str = "pinned_networks.json"


@dataclass(frozen=False, slots=True)
class OuiConfig:
    """Vendor-prefix table settings."""

    cache_file: str = "oui_cache.properties"
    min_valid_entries: int = 10


# =========================== Global Settings ===============================


@dataclass(frozen=False, slots=True)
class GlobalConfig:
    """Global settings: logging verbosity and the data directory."""

    log_level: str = "INFO"
    log_file: str = ""
    log_json: bool = False
    data_dir: str = "~/.wifisentry"
    quiet: bool = False
    debug: bool = False
    version: str = "1.0.0"


# =========================== Master Config =================================


@dataclass(frozen=False, slots=True)
class SentryConfig:
    """Master configuration aggregating component and global settings.

    Usage:
        >>> config = SentryConfig.load()                  # from default path
        >>> config = SentryConfig.load("custom.toml")     # from custom path
        >>> config.threat.suspicious_rssi_dbm
        -40
    """

    global_settings: GlobalConfig = field(default_factory=GlobalConfig)
    threat: ThreatConfig = field(default_factory=ThreatConfig)
    change: ChangeConfig = field(default_factory=ChangeConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    oui: OuiConfig = field(default_factory=OuiConfig)

    # ------------------------------------------------------------------ #
    #  TOML Loading
    # ------------------------------------------------------------------ #

    @classmethod
    def load(cls, path: str | Path | None = None) -> SentryConfig:
        """Load configuration from a TOML file.

        If *path* is ``None`` the loader looks for ``config.toml`` in the
        project root and returns pure defaults when it is absent.

        Raises:
            FileNotFoundError: If the specified path does not exist
                *and* was explicitly provided by the caller.
        """
        config_path = Path(path) if path is not None else _DEFAULT_CONFIG_PATH

        if not config_path.exists():
            if path is not None:
                raise FileNotFoundError(
                    f"Configuration file not found: {config_path}"
                )
            return cls()

        with open(config_path, "rb") as fh:
            raw: dict[str, Any] = tomllib.load(fh)

        return cls(
            global_settings=cls._build_section(GlobalConfig, raw.get("global", {})),
            threat=cls._build_section(ThreatConfig, raw.get("threat", {})),
            change=cls._build_section(ChangeConfig, raw.get("change", {})),
            storage=cls._build_section(StorageConfig, raw.get("storage", {})),
            oui=cls._build_section(OuiConfig, raw.get("oui", {})),
        )

    @property
    def data_path(self) -> Path:
        """Expanded data directory holding the JSON stores and OUI cache."""
        return Path(self.global_settings.data_dir).expanduser()

    def to_dict(self) -> dict[str, Any]:
        """Serialise the entire configuration tree to a plain dictionary."""
        return asdict(self)

    @staticmethod
    def _build_section(cls: type, data: dict[str, Any]) -> Any:
        """Instantiate a dataclass *cls* using only the keys it declares."""
        valid_keys = {f.name for f in cls.__dataclass_fields__.values()}  # type: ignore[attr-defined]
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        return cls(**filtered)


# ========================= Module-level convenience ========================

def get_config(path: str | Path | None = None) -> SentryConfig:
    """Module-level convenience wrapper around :meth:`SentryConfig.load`.

    Caches the result so that repeated imports share one instance.
    """
    if not hasattr(get_config, "_cached") or path is not None:
        get_config._cached = SentryConfig.load(path)  # type: ignore[attr-defined]
    return get_config._cached  # type: ignore[attr-defined]
