# single_safety/core/time_utils.py
from __future__ import annotations

from datetime import datetime, timezone


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def as_utc_aware(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        # assume naive values are UTC (common convention with SQLite)
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def from_epoch_seconds(value: str | int | float) -> datetime:
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def start_of_month(dt: datetime) -> datetime:
    return dt.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
