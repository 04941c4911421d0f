"""
Sentry Console Output
=====================

Rich-based renderers for WiFi Sentry results: the tagged-network table,
a per-threat summary, scored change events, stored history, import
summaries and the pinned-network list.

References:
    - Rich library: https://github.com/Textualize/rich
"""

from __future__ import annotations

from collections import Counter
from typing import Callable, Optional, Sequence

from rich.markup import escape
from rich.table import Table

from shared.console import SentryConsole

from sentry.core.models import (
    AnalysisResult,
    ChangeSeverity,
    NetworkObservation,
    OpenCellIdImportResult,
    PinnedNetwork,
    ScanRecord,
    ThreatType,
    WigleImportResult,
)
from sentry.core.radio import (
    format_distance,
    rssi_to_distance_meters,
    rssi_to_label,
    wifi_standard_label,
)
from sentry.core.timeutils import ms_to_datetime


# ---------------------------------------------------------------------------
# Colour mappings
# ---------------------------------------------------------------------------

_SEVERITY_STYLES: dict[ChangeSeverity, str] = {
    ChangeSeverity.HIGH: "sentry.high",
    ChangeSeverity.MEDIUM: "sentry.medium",
    ChangeSeverity.LOW: "sentry.low",
}

_SIGNAL_COLORS: dict[str, str] = {
    "Excellent": "bold bright_green",
    "Good": "bold green",
    "Fair": "bold yellow",
    "Weak": "bold bright_red",
    "No signal": "bold red",
}

_SECURITY_COLORS: dict[str, str] = {
    "WPA3-Enterprise": "bold bright_green",
    "WPA3": "bold bright_green",
    "WPA2-Enterprise": "bold green",
    "WPA2": "bold yellow",
    "WPA-Enterprise": "bold bright_red",
    "WPA": "bold bright_red",
    "WEP (insecure)": "bold red",
    "Open": "bold white on red",
}

# Tags that on their own indicate an active attack rather than hygiene.
_HOSTILE_THREATS = frozenset({
    ThreatType.EVIL_TWIN,
    ThreatType.BEACON_FLOOD,
    ThreatType.BSSID_NEAR_CLONE,
    ThreatType.DEAUTH_FLOOD,
    ThreatType.PROBE_RESPONSE_ANOMALY,
})


def _fmt_time(ms: int) -> str:
    return ms_to_datetime(ms).strftime("%Y-%m-%d %H:%M:%S UTC")


def _threat_cell(net: NetworkObservation) -> str:
    if not net.threats:
        return "[green]-[/green]"
    parts = []
    for tag in net.sorted_threats:
        style = "bold red" if tag in _HOSTILE_THREATS else "yellow"
        parts.append(f"[{style}]{tag.value}[/{style}]")
    return "\n".join(parts)


# ---------------------------------------------------------------------------
# Console Output
# ---------------------------------------------------------------------------


class SentryConsoleOutput:
    """Rich display methods for every WiFi Sentry command.

    Usage::

        output = SentryConsoleOutput(console)
        output.display_networks(tagged, vendor_lookup=resolver.lookup)
        output.display_changes(result)
    """

    def __init__(self, console: Optional[SentryConsole] = None) -> None:
        self._console = console or SentryConsole()

    @property
    def console(self) -> SentryConsole:
        return self._console

    def display_banner(self, version: str = "1.0.0") -> None:
        self._console.banner(version)

    # ------------------------------------------------------------------ #
    #  Scan results
    # ------------------------------------------------------------------ #

    def display_networks(
        self,
        networks: Sequence[NetworkObservation],
        vendor_lookup: Optional[Callable[[str], str]] = None,
    ) -> None:
        """Tagged-network table, flagged networks first then by signal."""
        self._console.section("Networks")

        table = Table(
            title=f"Scanned Networks ({len(networks)})",
            border_style="bright_cyan",
            header_style="bold bright_magenta",
            show_lines=True,
            padding=(0, 1),
        )
        table.add_column("BSSID", style="bright_white", width=19)
        table.add_column("SSID", style="bold")
        table.add_column("Band / CH", justify="center")
        table.add_column("Signal", justify="center")
        table.add_column("Security")
        table.add_column("Standard")
        table.add_column("Vendor", width=16)
        table.add_column("Threats")

        ordered = sorted(networks, key=lambda n: (not n.is_flagged, -n.rssi))
        for net in ordered:
            ssid = escape(net.ssid) if net.ssid else "[dim italic]<hidden>[/dim italic]"

            channel = net.channel
            band = net.band.value or "?"
            band_str = f"{band} / {channel}" if channel is not None else band

            label = rssi_to_label(net.rssi)
            color = _SIGNAL_COLORS.get(label, "")
            distance = format_distance(rssi_to_distance_meters(net.rssi, net.frequency))
            signal_str = f"[{color}]{net.rssi} dBm[/{color}]\n[dim]{distance}[/dim]"

            security = net.security_label
            sec_color = _SECURITY_COLORS.get(security, "")
            security_str = f"[{sec_color}]{security}[/{sec_color}]" if sec_color else security

            vendor = vendor_lookup(net.bssid) if vendor_lookup and net.bssid else ""

            table.add_row(
                net.bssid or "[dim]-[/dim]",
                ssid,
                band_str,
                signal_str,
                security_str,
                wifi_standard_label(net.wifi_standard) or "[dim]-[/dim]",
                escape(vendor[:16]) if vendor else "[dim]-[/dim]",
                _threat_cell(net),
            )

        self._console.rich.print(table)
        self._console.blank()

    def display_threat_summary(self, networks: Sequence[NetworkObservation]) -> None:
        """Per-threat counts over a tagged scan."""
        counts = Counter(t for n in networks for t in n.threats)
        flagged = sum(1 for n in networks if n.is_flagged)

        self._console.section("Threat Summary")
        if not counts:
            self._console.success(f"No threats among {len(networks)} network(s)")
            return

        rows = []
        for tag in ThreatType:
            if counts[tag]:
                style = "bold red" if tag in _HOSTILE_THREATS else "yellow"
                rows.append((f"[{style}]{tag.value}[/{style}]", counts[tag]))
        self._console.table(
            "Threats",
            ["Threat", "Networks"],
            rows,
            caption=f"{flagged} of {len(networks)} network(s) flagged",
        )
        self._console.blank()

    # ------------------------------------------------------------------ #
    #  Change analysis
    # ------------------------------------------------------------------ #

    def display_changes(self, result: AnalysisResult) -> None:
        """Change events, highest score first, coloured by severity."""
        self._console.section("Change Analysis")

        if not result.changes:
            self._console.info(
                f"No significant changes across {result.records_analyzed} record(s)"
            )
            return

        table = Table(
            title=f"Detected Changes ({result.change_count})",
            border_style="bright_cyan",
            header_style="bold bright_magenta",
            show_lines=True,
            padding=(0, 1),
        )
        table.add_column("Severity", justify="center", width=8)
        table.add_column("Score", justify="right", width=5)
        table.add_column("Type")
        table.add_column("SSID / BSSID")
        table.add_column("Previous -> Current")
        table.add_column("Description", ratio=1)

        for change in result.changes:
            style = _SEVERITY_STYLES[change.severity]
            table.add_row(
                f"[{style}]{change.severity.value.upper()}[/{style}]",
                str(change.score),
                change.change_type.value,
                f"{escape(change.ssid) or '[dim]<hidden>[/dim]'}\n[dim]{change.bssid}[/dim]",
                f"{escape(change.previous_value)}\n-> {escape(change.current_value)}",
                escape(change.description),
            )

        self._console.rich.print(table)
        self._console.print(
            f"[sentry.dim]{result.records_analyzed} record(s) analysed, "
            f"{result.high_severity_count} high severity[/sentry.dim]"
        )
        self._console.blank()

    # ------------------------------------------------------------------ #
    #  History / imports / pins
    # ------------------------------------------------------------------ #

    def display_history(self, records: Sequence[ScanRecord]) -> None:
        self._console.section("Scan History")
        if not records:
            self._console.info("History is empty")
            return
        rows = [
            (_fmt_time(r.timestamp_ms), len(r.networks), r.flagged_count)
            for r in records
        ]
        self._console.table(
            "Stored Scans",
            ["Recorded", "Networks", "Flagged"],
            rows,
            caption=f"{len(records)} record(s), newest first",
            styles=["bright_white", "", "bold yellow"],
        )

    def display_wigle_import(self, result: WigleImportResult, added: int) -> None:
        self._console.section("WiGLE Import")
        self._console.table(
            "Import Summary",
            ["Metric", "Value"],
            [
                ("Rows imported", result.imported_count),
                ("Rows skipped", result.skipped_count),
                ("Days covered", len(result.records)),
                ("Observations added to history", added),
            ],
        )

    def display_cell_import(self, result: OpenCellIdImportResult, added: int) -> None:
        self._console.section("Cell Tower Import")
        radios = Counter(t.radio for t in result.towers)
        rows: list[tuple[str, object]] = [
            ("Rows imported", result.imported_count),
            ("Rows skipped", result.skipped_count),
            ("New towers stored", added),
        ]
        rows.extend((f"  {radio}", count) for radio, count in sorted(radios.items()))
        self._console.table("Import Summary", ["Metric", "Value"], rows)

    def display_pins(self, pins: Sequence[PinnedNetwork]) -> None:
        self._console.section("Pinned Networks")
        if not pins:
            self._console.info("No pinned networks")
            return
        rows = [
            (p.bssid, escape(p.ssid) or "[dim]<hidden>[/dim]", _fmt_time(p.pinned_at_ms), escape(p.note))
            for p in pins
        ]
        self._console.table(
            "Pinned",
            ["BSSID", "SSID", "Pinned", "Note"],
            rows,
            styles=["bright_white", "bold", "", "dim"],
        )

    def display_vendor(self, bssid: str, vendor: str) -> None:
        if vendor:
            self._console.print(
                f"[bold]{escape(bssid)}[/bold] -> [bright_green]{escape(vendor)}[/bright_green]"
            )
        else:
            self._console.warning(f"No vendor known for {bssid}")
