"""
WiFi Sentry Console Interface
=============================

Rich-powered console abstraction shared by every WiFi Sentry command.

Wraps :class:`rich.console.Console` with a fixed theme and helpers for
banners, section rules, severity-coloured one-line messages, tables and a
status spinner.

References:
    - Rich library: https://github.com/Textualize/rich
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Generator, Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

_SENTRY_THEME = Theme(
    {
        "sentry.banner": "bold bright_cyan",
        "sentry.section": "bold bright_magenta",
        "sentry.success": "bold green",
        "sentry.warning": "bold yellow",
        "sentry.error": "bold red",
        "sentry.info": "bold bright_blue",
        "sentry.dim": "dim white",
        "sentry.high": "bold red",
        "sentry.medium": "bold yellow",
        "sentry.low": "bold bright_cyan",
    }
)

_TAGLINE = "Wi-Fi threat & change analysis"


class SentryConsole:
    """Unified console interface for the WiFi Sentry CLI.

    Usage::

        con = SentryConsole()
        con.banner()
        con.section("Scan Results")
        con.success("Scan stored")
    """

    def __init__(self, *, quiet: bool = False, record: bool = False) -> None:
        """Initialise the console.

        Args:
            quiet:  Suppress all output (library / test mode).
            record: Enable Rich recording for text export.
        """
        self._console = Console(
            theme=_SENTRY_THEME,
            quiet=quiet,
            record=record,
            highlight=False,
        )

    @property
    def rich(self) -> Console:
        """Direct access to the underlying Rich Console instance."""
        return self._console

    def banner(self, version: str = "1.0.0") -> None:
        """Display the product banner panel."""
        self._console.print(
            Panel(
                f"[sentry.banner]WiFi Sentry[/sentry.banner]\n"
                f"[sentry.dim]{_TAGLINE}  |  v{version}[/sentry.dim]",
                border_style="bright_cyan",
                padding=(0, 2),
                expand=False,
            )
        )

    def section(self, title: str) -> None:
        """Print a prominent section rule."""
        self._console.rule(f"  {escape(title)}  ", style="sentry.section")

    # ------------------------------------------------------------------ #
    #  Message helpers (severity-coloured)
    # ------------------------------------------------------------------ #

    def success(self, message: str) -> None:
        self._console.print(
            f"[sentry.success][✔] SUCCESS:[/sentry.success] {escape(message)}"
        )

    def warning(self, message: str) -> None:
        self._console.print(
            f"[sentry.warning][⚠] WARNING:[/sentry.warning] {escape(message)}"
        )

    def error(self, message: str) -> None:
        self._console.print(
            f"[sentry.error][✘] ERROR:[/sentry.error] {escape(message)}"
        )

    def info(self, message: str) -> None:
        self._console.print(
            f"[sentry.info][ℹ] INFO:[/sentry.info] {escape(message)}"
        )

    # ------------------------------------------------------------------ #
    #  Table display
    # ------------------------------------------------------------------ #

    def table(
        self,
        title: str,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
        *,
        caption: str | None = None,
        styles: Sequence[str] | None = None,
    ) -> None:
        """Render a styled Rich table.

        Cells are stringified as-is, so callers may pass Rich markup;
        untrusted text (SSIDs, vendor names) must be escaped first.

        Args:
            title:    Table title.
            columns:  Column header labels.
            rows:     Row sequences.
            caption:  Optional footer caption.
            styles:   Optional per-column Rich style strings.
        """
        tbl = Table(
            title=title,
            caption=caption,
            border_style="bright_cyan",
            header_style="bold bright_magenta",
            show_lines=False,
            padding=(0, 1),
        )
        for idx, col_name in enumerate(columns):
            style = styles[idx] if styles and idx < len(styles) else ""
            tbl.add_column(col_name, style=style)

        for row in rows:
            tbl.add_row(*(str(cell) for cell in row))

        self._console.print(tbl)

    @contextmanager
    def status(self, message: str = "Working...") -> Generator[Any, None, None]:
        """Context-manager showing a spinner with a status message."""
        with self._console.status(
            f"[sentry.info]{escape(message)}[/sentry.info]",
            spinner="dots",
            spinner_style="bright_cyan",
        ) as status_obj:
            yield status_obj

    def print(self, *args: Any, **kwargs: Any) -> None:
        """Proxy to :meth:`rich.console.Console.print`."""
        self._console.print(*args, **kwargs)

    def blank(self, count: int = 1) -> None:
        for _ in range(count):
            self._console.print()

    def export_text(self) -> str:
        """Export recorded output as plain text (requires ``record=True``)."""
        return self._console.export_text()
