"""Exchange wall-clock helpers for the regular U.S. equity session."""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from functools import lru_cache

import numpy as np
import pandas as pd
import zoneinfo

from .config import REGULAR_CLOSE

NY = zoneinfo.ZoneInfo("America/New_York")


@lru_cache(maxsize=16)
def exchange_zone(name: str | None = None) -> zoneinfo.ZoneInfo:
    if not name:
        return NY
    return zoneinfo.ZoneInfo(name)


def ensure_aware(dt: datetime) -> datetime:
    """Coerce naive datetimes into UTC-aware values."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def session_close(day: date, tz_name: str | None = None) -> datetime:
    """Return the regular-session close for ``day`` as a UTC-aware datetime."""
    hour, minute = REGULAR_CLOSE
    local = datetime.combine(day, time(hour, minute), tzinfo=exchange_zone(tz_name))
    return local.astimezone(timezone.utc)


def to_exchange_index(index: pd.DatetimeIndex, tz_name: str | None = None) -> pd.DatetimeIndex:
    """Convert a bar index to exchange local time; naive stamps are UTC."""
    if index.tz is None:
        index = index.tz_localize("UTC")
    return index.tz_convert(exchange_zone(tz_name))


def minute_of_day(local_index: pd.DatetimeIndex) -> np.ndarray:
    return np.asarray(local_index.hour * 60 + local_index.minute)


def window_mask(local_index: pd.DatetimeIndex, start: tuple[int, int], end: tuple[int, int]) -> np.ndarray:
    """Boolean mask of bars whose wall clock lies in ``[start, end)``."""
    minutes = minute_of_day(local_index)
    lower = start[0] * 60 + start[1]
    upper = end[0] * 60 + end[1]
    return (minutes >= lower) & (minutes < upper)


def add_minutes(clock: tuple[int, int], minutes: int) -> tuple[int, int]:
    total = clock[0] * 60 + clock[1] + int(minutes)
    return divmod(total, 60)


__all__ = [
    "NY",
    "exchange_zone",
    "ensure_aware",
    "session_close",
    "to_exchange_index",
    "minute_of_day",
    "window_mask",
    "add_minutes",
]
