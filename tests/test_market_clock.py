from datetime import date, datetime, timezone

import pandas as pd

from riskplan.market_clock import (
    add_minutes,
    ensure_aware,
    session_close,
    to_exchange_index,
    window_mask,
)


def test_session_close_follows_daylight_saving() -> None:
    assert session_close(date(2024, 1, 2)) == datetime(2024, 1, 2, 21, 0, tzinfo=timezone.utc)
    assert session_close(date(2024, 6, 10)) == datetime(2024, 6, 10, 20, 0, tzinfo=timezone.utc)


def test_ensure_aware_treats_naive_as_utc() -> None:
    naive = datetime(2024, 6, 10, 13, 30)
    assert ensure_aware(naive) == datetime(2024, 6, 10, 13, 30, tzinfo=timezone.utc)


def test_window_mask_is_half_open() -> None:
    index = to_exchange_index(
        pd.DatetimeIndex(["2024-06-10 13:29", "2024-06-10 13:30", "2024-06-10 13:44", "2024-06-10 13:45"])
    )  # 09:29 .. 09:45 ET

    mask = window_mask(index, (9, 30), add_minutes((9, 30), 15))

    assert mask.tolist() == [False, True, True, False]


def test_add_minutes_rolls_hours() -> None:
    assert add_minutes((9, 30), 45) == (10, 15)
