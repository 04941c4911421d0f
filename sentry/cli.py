"""
WiFi Sentry CLI
===============

Click-based command-line interface for the WiFi Sentry analysis core.
Scans are supplied as JSON files produced by a platform scanner; the CLI
tags them, keeps the local history, scores cross-scan changes and manages
the auxiliary stores.

Commands:
    wifisentry scan SCAN_JSON          Tag a scan and store it
    wifisentry changes                 Score changes across history
    wifisentry history list|clear      Inspect or wipe stored scans
    wifisentry import wigle|cells CSV  Import WiGLE / OpenCellID exports
    wifisentry oui lookup|refresh      Vendor lookup and table refresh
    wifisentry pin|unpin|pins          Manage pinned networks

Common options:
    --config PATH       TOML configuration file
    --data-dir PATH     Override the data directory
    --quiet             Suppress console output
    --debug             Debug-level logging

Exit status is 1 for unreadable input, and for findings when
``--fail-on-threat`` / ``--fail-on-high`` is given.

References:
    - Click Documentation: https://click.palletsprojects.com/
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Optional

import click

from shared.config import SentryConfig
from shared.console import SentryConsole
from shared.logger import configure_logging

from sentry import __version__
from sentry.core.radio import is_valid_bssid, normalize_bssid


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _read_text(console: SentryConsole, path: str) -> str:
    """Read *path* as UTF-8 or exit with status 1."""
    try:
        return Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        console.error(f"Cannot read {path}: {exc.strerror or exc}")
        sys.exit(1)


def _read_json(console: SentryConsole, path: str) -> Any:
    text = _read_text(console, path)
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        console.error(f"{path} is not valid JSON: {exc.msg} (line {exc.lineno})")
        sys.exit(1)


def _engine(ctx: click.Context):
    from sentry.core.engine import SentryEngine

    return SentryEngine(config=ctx.obj["config"], console=ctx.obj["console"])


def _checked_bssid(console: SentryConsole, bssid: str) -> str:
    canonical = normalize_bssid(bssid)
    if not is_valid_bssid(canonical):
        console.error(f"Not a valid BSSID: {bssid}")
        sys.exit(1)
    return canonical


# ---------------------------------------------------------------------------
# CLI Group
# ---------------------------------------------------------------------------


@click.group(
    name="wifisentry",
    help=(
        "WIFI SENTRY - Wi-Fi threat & change analysis\n\n"
        "Tag scanned access points with evil-twin, beacon-flood, spoofing "
        "and related threat heuristics, and score changes across the "
        "stored scan history."
    ),
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to WiFi Sentry configuration file (TOML).",
)
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory for history, pins, towers and the OUI cache.",
)
@click.option(
    "--quiet",
    is_flag=True,
    default=False,
    help="Suppress console output.",
)
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug logging.",
)
@click.version_option(__version__, prog_name="wifisentry")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Optional[str],
    data_dir: Optional[str],
    quiet: bool,
    debug: bool,
) -> None:
    """WiFi Sentry - main CLI entry point."""
    ctx.ensure_object(dict)

    try:
        config = SentryConfig.load(config_path)
    except FileNotFoundError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    except ValueError as exc:
        # tomllib.TOMLDecodeError is a ValueError
        click.echo(f"Error: invalid configuration {config_path}: {exc}", err=True)
        sys.exit(1)

    settings = config.global_settings
    if data_dir is not None:
        settings.data_dir = data_dir
    settings.quiet = settings.quiet or quiet
    settings.debug = settings.debug or debug

    configure_logging(
        "DEBUG" if settings.debug else settings.log_level,
        log_file=settings.log_file or None,
        json_logs=settings.log_json,
        console_output=not settings.quiet,
    )

    ctx.obj["config"] = config
    ctx.obj["console"] = SentryConsole(quiet=settings.quiet)


# ---------------------------------------------------------------------------
# Scan Command
# ---------------------------------------------------------------------------


@cli.command(
    name="scan",
    help=(
        "Tag a scan with threat heuristics.\n\n"
        "SCAN_JSON is a list of observations (or an object with a "
        "'networks' list) using the history schema. The tagged scan is "
        "appended to the history unless --no-store is given."
    ),
)
@click.argument("scan_json", type=click.Path(dir_okay=False))
@click.option(
    "--root-data",
    type=click.Path(dir_okay=False),
    default=None,
    help="Privileged capture result (deauthFrameCount, probeOnlySsids, rootActive).",
)
@click.option(
    "--no-store",
    is_flag=True,
    default=False,
    help="Do not append the scan to history.",
)
@click.option(
    "--report", "-o",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write a JSON report to this path.",
)
@click.option(
    "--fail-on-threat",
    is_flag=True,
    default=False,
    help="Exit with status 1 if any network is flagged.",
)
@click.pass_context
def scan(
    ctx: click.Context,
    scan_json: str,
    root_data: Optional[str],
    no_store: bool,
    report: Optional[str],
    fail_on_threat: bool,
) -> None:
    """Tag a scan and store it."""
    console: SentryConsole = ctx.obj["console"]

    from sentry.storage.codec import observations_from_json, root_data_from_dict

    observations = observations_from_json(_read_json(console, scan_json))
    if not observations:
        console.warning(f"No usable observations in {scan_json}")

    root = root_data_from_dict(_read_json(console, root_data)) if root_data else None

    engine = _engine(ctx)
    engine.output.display_banner(__version__)
    tagged = engine.run_scan(observations, root, store=not no_store, report_path=report)

    if fail_on_threat and any(n.is_flagged for n in tagged):
        sys.exit(1)


# ---------------------------------------------------------------------------
# Change Analysis Command
# ---------------------------------------------------------------------------


@cli.command(
    name="changes",
    help=(
        "Score changes across the stored history.\n\n"
        "With --scan, an unsaved scan is analysed as the newest record."
    ),
)
@click.option(
    "--scan", "scan_json",
    type=click.Path(dir_okay=False),
    default=None,
    help="Fresh scan JSON to compare against history without storing it.",
)
@click.option(
    "--fail-on-high",
    is_flag=True,
    default=False,
    help="Exit with status 1 if any HIGH severity change is found.",
)
@click.pass_context
def changes(ctx: click.Context, scan_json: Optional[str], fail_on_high: bool) -> None:
    """Score cross-scan changes."""
    console: SentryConsole = ctx.obj["console"]

    current = None
    if scan_json:
        from sentry.storage.codec import observations_from_json

        current = observations_from_json(_read_json(console, scan_json))

    result = _engine(ctx).analyze_changes(current)
    if fail_on_high and result.high_severity_count > 0:
        sys.exit(1)


# ---------------------------------------------------------------------------
# History Commands
# ---------------------------------------------------------------------------


@cli.group(name="history", help="Inspect or clear the stored scan history.")
def history() -> None:
    pass


@history.command(name="list", help="List stored scans, newest first.")
@click.pass_context
def history_list(ctx: click.Context) -> None:
    _engine(ctx).history()


@history.command(name="clear", help="Delete the stored scan history.")
@click.confirmation_option(prompt="Delete all stored scans?")
@click.pass_context
def history_clear(ctx: click.Context) -> None:
    _engine(ctx).clear_history()


# ---------------------------------------------------------------------------
# Import Commands
# ---------------------------------------------------------------------------


@cli.group(name="import", help="Import third-party exports.")
def import_group() -> None:
    pass


@import_group.command(name="wigle", help="Merge a WiGLE CSV export into history.")
@click.argument("csv_file", type=click.Path(dir_okay=False))
@click.pass_context
def import_wigle(ctx: click.Context, csv_file: str) -> None:
    console: SentryConsole = ctx.obj["console"]
    text = _read_text(console, csv_file)
    with console.status("Importing WiGLE export..."):
        _engine(ctx).import_wigle(text)


@import_group.command(name="cells", help="Store towers from an OpenCellID CSV export.")
@click.argument("csv_file", type=click.Path(dir_okay=False))
@click.pass_context
def import_cells(ctx: click.Context, csv_file: str) -> None:
    console: SentryConsole = ctx.obj["console"]
    text = _read_text(console, csv_file)
    with console.status("Importing cell towers..."):
        _engine(ctx).import_cells(text)


# ---------------------------------------------------------------------------
# OUI Commands
# ---------------------------------------------------------------------------


@cli.group(name="oui", help="Vendor-prefix table.")
def oui() -> None:
    pass


@oui.command(name="lookup", help="Show the manufacturer for a BSSID.")
@click.argument("bssid")
@click.pass_context
def oui_lookup(ctx: click.Context, bssid: str) -> None:
    _engine(ctx).lookup_vendor(bssid)


@oui.command(
    name="refresh",
    help="Replace the cached table with a KEY=VENDOR file (e.g. a fresh download).",
)
@click.argument("table_file", type=click.Path(dir_okay=False))
@click.pass_context
def oui_refresh(ctx: click.Context, table_file: str) -> None:
    text = _read_text(ctx.obj["console"], table_file)
    if not _engine(ctx).refresh_oui(text):
        sys.exit(1)


# ---------------------------------------------------------------------------
# Pinned Networks
# ---------------------------------------------------------------------------


@cli.command(name="pin", help="Pin a network for long-term tracking.")
@click.argument("bssid")
@click.argument("ssid", required=False, default="")
@click.option("--note", default="", help="Free-text note.")
@click.pass_context
def pin(ctx: click.Context, bssid: str, ssid: str, note: str) -> None:
    canonical = _checked_bssid(ctx.obj["console"], bssid)
    _engine(ctx).pin_network(canonical, ssid, note)


@cli.command(name="unpin", help="Remove a pinned network.")
@click.argument("bssid")
@click.pass_context
def unpin(ctx: click.Context, bssid: str) -> None:
    canonical = _checked_bssid(ctx.obj["console"], bssid)
    _engine(ctx).unpin_network(canonical)


@cli.command(name="pins", help="List pinned networks.")
@click.pass_context
def pins(ctx: click.Context) -> None:
    _engine(ctx).pinned_networks()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """Entry point for the WiFi Sentry CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
