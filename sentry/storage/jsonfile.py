"""
JSON File Store Base
====================

Shared read/write plumbing for the single-file JSON stores.

Reads never raise: a missing, empty, unreadable or unparseable file is
reported as ``None`` and logged.  Writes go to a sibling temporary file that
is then moved over the target with :func:`os.replace`, so a concurrent
reader sees either the old or the new document.

There is no locking; mutating calls on one file must be serialised by the
caller.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Optional

from shared.logger import SentryLogger

logger = SentryLogger("storage")


class JsonFileStore:
    """Base class for a store backed by one JSON document."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> Optional[Any]:
        if not self._path.exists():
            return None
        try:
            text = self._path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning(f"Cannot read {self._path.name}: {exc}")
            return None
        if not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            logger.warning(f"Corrupt JSON in {self._path.name} (line {exc.lineno}); ignoring")
            return None

    def _read_list(self) -> list[Any]:
        """The stored document if it is a JSON array, else an empty list."""
        payload = self._read()
        if payload is None:
            return []
        if not isinstance(payload, list):
            logger.warning(f"Unexpected document shape in {self._path.name}; ignoring")
            return []
        return payload

    def _write(self, payload: Any) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_name(self._path.name + ".tmp")
        with open(tmp, "w", encoding="utf-8") as fh:
            json.dump(payload, fh, ensure_ascii=False)
        os.replace(tmp, self._path)

    def _delete(self) -> None:
        self._path.unlink(missing_ok=True)
