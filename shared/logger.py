"""
WiFi Sentry Structured Logger
=============================

Provides :class:`SentryLogger`, a thin context-carrying facade over the
stdlib :mod:`logging` hierarchy, and :func:`configure_logging`, which
attaches the output handlers once for the whole ``wifisentry`` tree.

Component loggers are created at import time and carry no handlers of their
own; records propagate to the ``wifisentry`` parent logger where a Rich
console handler and an optional rotating file handler (plain text or JSON
lines) are installed.  Until :func:`configure_logging` runs the tree stays
silent, which keeps library and test use quiet.

References:
    - Python logging HOWTO. https://docs.python.org/3/howto/logging.html
    - Rich library. https://github.com/Textualize/rich
"""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

ROOT_LOGGER_NAME = "wifisentry"

_LOG_THEME = Theme(
    {
        "log.level.debug": "dim cyan",
        "log.level.info": "bold bright_blue",
        "log.level.warning": "bold yellow",
        "log.level.error": "bold red",
        "log.level.critical": "bold white on red",
    }
)

# Silent until configured.
logging.getLogger(ROOT_LOGGER_NAME).addHandler(logging.NullHandler())


# ========================== JSON Formatter =================================


class _JSONFormatter(logging.Formatter):
    """Emit each log record as a single-line JSON object.

    Output fields::

        {
          "timestamp": "...",
          "level": "INFO",
          "logger": "wifisentry.threat",
          "message": "...",
          "component": "threat",
          "operation": "analyze",
          "extra": { ... }
        }
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for attr in ("component", "operation"):
            val = getattr(record, attr, None)
            if val is not None:
                entry[attr] = val

        extra = getattr(record, "sentry_extra", None)
        if extra is not None:
            entry["extra"] = extra

        if record.exc_info and record.exc_info[1] is not None:
            entry["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


class _ColorConsoleHandler(RichHandler):
    """:class:`rich.logging.RichHandler` writing to stderr with the log theme."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(
            console=Console(theme=_LOG_THEME, stderr=True),
            show_path=False,
            show_time=True,
            rich_tracebacks=True,
            tracebacks_show_locals=False,
            markup=False,
            **kwargs,
        )


# ========================== Configuration ==================================


def configure_logging(
    log_level: str = "INFO",
    *,
    log_file: str | Path | None = None,
    json_logs: bool = False,
    console_output: bool = True,
    max_bytes: int = 10_485_760,
    backup_count: int = 5,
) -> logging.Logger:
    """Install output handlers on the ``wifisentry`` logger tree.

    Safe to call repeatedly; previously installed handlers are replaced.

    Args:
        log_level:       Minimum severity (DEBUG, INFO, WARNING, ERROR).
        log_file:        Rotating log file path. ``None`` or ``""`` disables it.
        json_logs:       If ``True`` the file handler emits JSON lines.
        console_output:  Attach the Rich stderr handler.
        max_bytes:       Log-file size before rotation (default 10 MiB).
        backup_count:    Rotated backups to keep.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)
    root.propagate = False

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    if console_output:
        root.addHandler(_ColorConsoleHandler(level=level))

    if log_file:
        file_path = Path(log_file).expanduser()
        file_path.parent.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(
            filename=str(file_path),
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        fh.setLevel(level)
        if json_logs:
            fh.setFormatter(_JSONFormatter())
        else:
            fh.setFormatter(
                logging.Formatter(
                    fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                    datefmt="%Y-%m-%dT%H:%M:%S%z",
                )
            )
        root.addHandler(fh)

    if not root.handlers:
        root.addHandler(logging.NullHandler())
    return root


# ========================== SentryLogger ===================================


class SentryLogger:
    """Context-aware logger bound to one WiFi Sentry component.

    Usage::

        logger = SentryLogger("storage.scan")
        logger.info("Loaded history")
        with logger.operation("import"):
            logger.debug("Merging bucket", day=bucket)

    Keyword arguments other than ``exc_info``/``stack_info``/``stacklevel``
    are collected into the record's ``sentry_extra`` field.
    """

    def __init__(self, component: str) -> None:
        self._component = component
        self._operation: str | None = None
        self._logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{component}")

    class _OperationContext:
        """Temporarily binds an operation name to every record."""

        def __init__(self, parent: SentryLogger, operation: str) -> None:
            self._parent = parent
            self._operation = operation
            self._prev: str | None = None

        def __enter__(self) -> SentryLogger:
            self._prev = self._parent._operation
            self._parent._operation = self._operation
            return self._parent

        def __exit__(self, *exc: Any) -> None:
            self._parent._operation = self._prev

    def operation(self, name: str) -> _OperationContext:
        """Return a context manager that sets the *operation* field."""
        return self._OperationContext(self, name)

    # ------------------------------------------------------------------ #
    #  Log methods
    # ------------------------------------------------------------------ #

    def _enrich(self, kwargs: dict[str, Any]) -> dict[str, Any]:
        extra = kwargs.pop("extra", {}) or {}
        sentry_extra: dict[str, Any] = {}
        standard_keys = {"exc_info", "stack_info", "stacklevel"}
        for key in list(kwargs):
            if key not in standard_keys:
                sentry_extra[key] = kwargs.pop(key)

        extra["component"] = self._component
        extra["operation"] = self._operation
        if sentry_extra:
            extra["sentry_extra"] = sentry_extra
        kwargs["extra"] = extra
        return kwargs

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        if self._logger.isEnabledFor(logging.DEBUG):
            self._logger.debug(msg, *args, **self._enrich(kwargs))

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._logger.info(msg, *args, **self._enrich(kwargs))

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._logger.warning(msg, *args, **self._enrich(kwargs))

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._logger.error(msg, *args, **self._enrich(kwargs))

    def exception(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log an ERROR-level message with the current traceback."""
        kwargs["exc_info"] = kwargs.get("exc_info", True)
        self._logger.error(msg, *args, **self._enrich(kwargs))

    # ------------------------------------------------------------------ #
    #  Timing helper
    # ------------------------------------------------------------------ #

    class _TimingContext:
        """Measures a block and logs its duration at DEBUG."""

        def __init__(self, logger_inst: SentryLogger, label: str) -> None:
            self._logger = logger_inst
            self._label = label
            self._start: float = 0.0

        def __enter__(self) -> SentryLogger._TimingContext:
            self._start = time.perf_counter()
            return self

        def __exit__(self, *exc: Any) -> None:
            self._logger.debug(
                "Completed: %s (%.3f sec)", self._label, self.elapsed
            )

        @property
        def elapsed(self) -> float:
            return time.perf_counter() - self._start

    def timed(self, label: str) -> _TimingContext:
        """Context manager that logs the elapsed time of a block."""
        return self._TimingContext(self, label)

    @property
    def component(self) -> str:
        return self._component

    @property
    def underlying(self) -> logging.Logger:
        """Direct access to the stdlib :class:`logging.Logger`."""
        return self._logger
