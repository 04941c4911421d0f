"""
Sentry Engine
=============

Central orchestration for WiFi Sentry.  Wires the stores, analyzers,
importers and vendor resolver together behind one object configured from
:class:`~shared.config.SentryConfig`.

The engine follows a pipeline architecture for a live scan:
    1. Load: read stored history from the scan store
    2. Analysis: tag the fresh scan with the threat analyzer
    3. Persist: append the tagged scan as a new record
    4. Output: render tables and optionally write a JSON report

All operations are synchronous.  Store mutations are not locked; one
engine per data directory is expected to be the only writer.

References:
    - Evans, E. (2003). Domain-Driven Design. Addison-Wesley.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Optional, Sequence

from shared.config import SentryConfig
from shared.console import SentryConsole
from shared.logger import SentryLogger

from sentry.analyzers.change import ChangeAnalyzer
from sentry.analyzers.threat import ThreatAnalyzer
from sentry.collectors.opencellid import parse_opencellid_csv
from sentry.collectors.wigle import parse_wigle_csv
from sentry.core.models import (
    AnalysisResult,
    NetworkObservation,
    OpenCellIdImportResult,
    PinnedNetwork,
    RootScanData,
    ScanRecord,
    WigleImportResult,
)
from sentry.core.timeutils import now_ms as wall_clock_ms
from sentry.lookup.oui import OuiResolver
from sentry.output.console import SentryConsoleOutput
from sentry.output.report import SentryReportGenerator
from sentry.storage.cell_store import CellTowerStore
from sentry.storage.pinned_store import PinnedStore
from sentry.storage.scan_store import ScanStore

logger = SentryLogger("core.engine")


class SentryEngine:
    """Central orchestration engine for WiFi Sentry.

    Provides the operations behind every CLI command:
        - Scan: tag a fresh scan and store it
        - Changes: score cross-scan changes over history
        - Import: merge WiGLE networks and OpenCellID towers
        - Vendor lookup and OUI table refresh
        - Pinned-network management

    Usage::

        engine = SentryEngine(SentryConfig.load())
        tagged = engine.run_scan(observations)
        result = engine.analyze_changes()
    """

    def __init__(
        self,
        config: Optional[SentryConfig] = None,
        console: Optional[SentryConsole] = None,
    ) -> None:
        """Initialise the engine.

        Args:
            config: WiFi Sentry configuration. Uses defaults if None.
            console: SentryConsole for output. Creates one honouring the
                configured ``quiet`` flag if None.
        """
        self._config = config or SentryConfig()
        self._console = console or SentryConsole(quiet=self._config.global_settings.quiet)
        self._output = SentryConsoleOutput(self._console)

        # Stores
        self._scan_store = ScanStore.from_config(self._config)
        self._cell_store = CellTowerStore.from_config(self._config)
        self._pinned_store = PinnedStore.from_config(self._config)

        # Analyzers
        self._threat_analyzer = ThreatAnalyzer(self._config.threat)
        self._change_analyzer = ChangeAnalyzer(self._config.change)

        # Lookup / reporting
        self._oui = OuiResolver.from_config(self._config)
        self._report_gen = SentryReportGenerator(
            vendor_lookup=self._oui.lookup,
            version=self._config.global_settings.version,
        )

    # ------------------------------------------------------------------ #
    #  Accessors
    # ------------------------------------------------------------------ #

    @property
    def config(self) -> SentryConfig:
        return self._config

    @property
    def output(self) -> SentryConsoleOutput:
        return self._output

    @property
    def scan_store(self) -> ScanStore:
        return self._scan_store

    @property
    def cell_store(self) -> CellTowerStore:
        return self._cell_store

    @property
    def pinned_store(self) -> PinnedStore:
        return self._pinned_store

    @property
    def oui(self) -> OuiResolver:
        return self._oui

    # ------------------------------------------------------------------ #
    #  Scan pipeline
    # ------------------------------------------------------------------ #

    def run_scan(
        self,
        observations: Sequence[NetworkObservation],
        root_data: Optional[RootScanData] = None,
        *,
        store: bool = True,
        now_ms: Optional[int] = None,
        report_path: Optional[str | Path] = None,
    ) -> list[NetworkObservation]:
        """Tag a fresh scan against stored history and optionally persist it.

        Args:
            observations: Networks of the fresh scan.
            root_data: Privileged capture result; neutral when None.
            store: Append the tagged scan to history.
            now_ms: Scan time; defaults to the wall clock.
            report_path: Write a JSON report here when given.

        Returns:
            The tagged networks, in input order.
        """
        start = time.monotonic()
        stamp = wall_clock_ms() if now_ms is None else now_ms

        with logger.operation("scan"):
            history = self._scan_store.load_history()
            tagged = self._threat_analyzer.analyze(
                observations, history, root_data=root_data, now_ms=stamp
            )
            if store and tagged:
                self._scan_store.append_record(
                    ScanRecord(timestamp_ms=stamp, networks=tuple(tagged))
                )

        self._output.display_networks(tagged, vendor_lookup=self._oui.lookup)
        self._output.display_threat_summary(tagged)

        if report_path is not None:
            analysis = self._change_analyzer.analyze_current(tagged, history, now_ms=stamp)
            written = self._report_gen.generate_json(report_path, tagged, analysis)
            self._console.info(f"JSON report: {written}")

        flagged = sum(1 for n in tagged if n.is_flagged)
        logger.info(
            f"Scan complete: {len(tagged)} network(s), {flagged} flagged "
            f"in {time.monotonic() - start:.2f}s"
        )
        return tagged

    def analyze_changes(
        self,
        current_scan: Optional[Sequence[NetworkObservation]] = None,
        *,
        now_ms: Optional[int] = None,
    ) -> AnalysisResult:
        """Score changes over stored history, optionally with an unsaved scan."""
        history = self._scan_store.load_history()
        with logger.timed("change analysis"):
            if current_scan is None:
                result = self._change_analyzer.analyze(history)
            else:
                result = self._change_analyzer.analyze_current(current_scan, history, now_ms=now_ms)
        self._output.display_changes(result)
        return result

    # ------------------------------------------------------------------ #
    #  History
    # ------------------------------------------------------------------ #

    def history(self) -> list[ScanRecord]:
        records = self._scan_store.load_history()
        self._output.display_history(records)
        return records

    def clear_history(self) -> None:
        self._scan_store.clear_history()
        self._console.success("Scan history cleared")

    # ------------------------------------------------------------------ #
    #  Imports
    # ------------------------------------------------------------------ #

    def import_wigle(self, text: str) -> tuple[WigleImportResult, int]:
        """Parse a WiGLE CSV export and merge it into history.

        Returns:
            The parse result and the number of observations added.
        """
        result = parse_wigle_csv(text)
        added = self._scan_store.import_external_records(result.records) if result.records else 0
        self._output.display_wigle_import(result, added)
        return result, added

    def import_cells(self, text: str) -> tuple[OpenCellIdImportResult, int]:
        """Parse an OpenCellID CSV export and store new towers."""
        result = parse_opencellid_csv(text)
        added = self._cell_store.import_towers(result.towers) if result.towers else 0
        self._output.display_cell_import(result, added)
        return result, added

    # ------------------------------------------------------------------ #
    #  Vendor lookup
    # ------------------------------------------------------------------ #

    def lookup_vendor(self, bssid: str) -> str:
        vendor = self._oui.lookup(bssid)
        self._output.display_vendor(bssid, vendor)
        return vendor

    def refresh_oui(self, text: str) -> bool:
        accepted = self._oui.refresh(text)
        if accepted:
            self._console.success("OUI table updated")
        else:
            self._console.warning("OUI update rejected; keeping the current table")
        return accepted

    # ------------------------------------------------------------------ #
    #  Pinned networks
    # ------------------------------------------------------------------ #

    def pin_network(self, bssid: str, ssid: str = "", note: str = "") -> bool:
        created = self._pinned_store.pin(PinnedNetwork(bssid=bssid, ssid=ssid, note=note))
        self._console.success(f"{'Pinned' if created else 'Updated pin for'} {bssid}")
        return created

    def unpin_network(self, bssid: str) -> None:
        self._pinned_store.unpin(bssid)
        self._console.success(f"Unpinned {bssid}")

    def pinned_networks(self) -> list[PinnedNetwork]:
        pins = self._pinned_store.load_pinned()
        self._output.display_pins(pins)
        return pins
