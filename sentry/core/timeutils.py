"""UTC epoch-millisecond helpers shared by the importers and the scan store."""

from __future__ import annotations

import time
from datetime import datetime, timezone

_MS_PER_DAY = 86_400_000


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


def utc_day_bucket_ms(epoch_ms: int) -> int:
    """Epoch milliseconds of midnight UTC on the day containing *epoch_ms*.

    Floor division keeps pre-1970 timestamps on the correct day.
    """
    return (epoch_ms // _MS_PER_DAY) * _MS_PER_DAY


def ms_to_datetime(epoch_ms: int) -> datetime:
    return datetime.fromtimestamp(epoch_ms / 1000.0, tz=timezone.utc)


def datetime_to_ms(value: datetime) -> int:
    """Epoch milliseconds for *value*; naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return round(value.timestamp() * 1000)
