"""Line and field helpers shared by the CSV importers."""

from __future__ import annotations

import csv


def non_empty_lines(text: str) -> list[str]:
    """Stripped, non-blank lines of *text*."""
    return [ln for ln in (raw.strip() for raw in text.splitlines()) if ln]


def tokenise(line: str) -> list[str]:
    """Split one CSV line into fields (RFC 4180 quoting, ``""`` escapes)."""
    try:
        return next(csv.reader([line]), [])
    except csv.Error:
        return []


def cell(cols: list[str], idx: int) -> str:
    """Stripped field at *idx*, empty when the column is absent."""
    return cols[idx].strip() if 0 <= idx < len(cols) else ""


def column_index(headers: list[str], name: str) -> int:
    return headers.index(name) if name in headers else -1
