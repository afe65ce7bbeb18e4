"""Key reference price extraction from raw OHLCV bars.

Every level is derived from the exchange wall clock rather than bar position,
so partial sessions and mixed bar intervals produce the same reference prices.
Missing data never raises: each unavailable level is reported as ``0.0``.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from ..calculations import atr as atr_series
from ..calculations import bollinger_bands, typical_price, vwap_bands
from ..config import PREMARKET_OPEN, REGULAR_CLOSE, REGULAR_OPEN, get_settings
from ..market_clock import add_minutes, to_exchange_index, window_mask
from ..schemas import Bar, KeyLevels

logger = logging.getLogger(__name__)

_OHLC = ("open", "high", "low", "close")
_PERIOD_FREQ = {
    "week": "W",
    "month": "M",
    "quarter": "Q",
    "year": "Y",
}


def _empty_frame() -> pd.DataFrame:
    return pd.DataFrame(columns=[*_OHLC, "volume"], index=pd.DatetimeIndex([], tz="UTC"))


def _row_from_bar(bar: Any) -> Optional[dict]:
    if isinstance(bar, Bar):
        return bar.model_dump()
    if isinstance(bar, Mapping):
        return dict(bar)
    return None


def bars_to_frame(bars: pd.DataFrame | Iterable[Bar | Mapping[str, Any]] | None) -> pd.DataFrame:
    """Normalise bars into a UTC-indexed frame with ``open/high/low/close/volume``."""

    if bars is None:
        return _empty_frame()

    if isinstance(bars, pd.DataFrame):
        frame = bars.copy()
        frame.columns = [str(col).lower() for col in frame.columns]
        if not isinstance(frame.index, pd.DatetimeIndex):
            if "time" not in frame.columns:
                return _empty_frame()
            frame.index = pd.to_datetime(frame["time"], unit="s", utc=True)
    else:
        rows = [row for row in (_row_from_bar(bar) for bar in bars) if row is not None]
        if not rows:
            return _empty_frame()
        frame = pd.DataFrame(rows)
        frame.columns = [str(col).lower() for col in frame.columns]
        if "time" not in frame.columns:
            return _empty_frame()
        frame.index = pd.to_datetime(frame["time"], unit="s", utc=True)

    if any(col not in frame.columns for col in ("high", "low", "close")):
        return _empty_frame()
    if "open" not in frame.columns:
        frame["open"] = frame["close"]
    if "volume" not in frame.columns:
        frame["volume"] = 0.0

    frame = frame[[*_OHLC, "volume"]].apply(pd.to_numeric, errors="coerce")
    frame["volume"] = frame["volume"].fillna(0.0).clip(lower=0.0)
    frame = frame.dropna(subset=["high", "low", "close"])
    if frame.index.tz is None:
        frame.index = frame.index.tz_localize("UTC")
    return frame.sort_index()


def _high_low(frame: pd.DataFrame) -> Tuple[float, float]:
    if frame.empty:
        return 0.0, 0.0
    return float(frame["high"].max()), float(frame["low"].min())


def _opening_range(
    frame: pd.DataFrame, local: pd.DatetimeIndex, dates: np.ndarray, session_day: Any, minutes: int
) -> Tuple[float, float]:
    mask = (dates == session_day) & window_mask(local, REGULAR_OPEN, add_minutes(REGULAR_OPEN, minutes))
    return _high_low(frame[mask])


def _prior_day(
    frame: pd.DataFrame, local: pd.DatetimeIndex, dates: np.ndarray, session_day: Any
) -> Tuple[float, float, float]:
    earlier = dates[dates < session_day]
    if earlier.size == 0:
        return 0.0, 0.0, 0.0
    prior_day = max(earlier)
    mask = (dates == prior_day) & window_mask(local, REGULAR_OPEN, REGULAR_CLOSE)
    session = frame[mask]
    if session.empty:
        return 0.0, 0.0, 0.0
    high, low = _high_low(session)
    return high, low, float(session["close"].iloc[-1])


def _premarket(
    frame: pd.DataFrame, local: pd.DatetimeIndex, dates: np.ndarray, session_day: Any
) -> Tuple[float, float]:
    mask = (dates == session_day) & window_mask(local, PREMARKET_OPEN, REGULAR_OPEN)
    return _high_low(frame[mask])


def _previous_period(frame: pd.DataFrame, local: pd.DatetimeIndex, freq: str) -> Tuple[float, float]:
    """High/low of the calendar bucket immediately before the last bar's bucket."""

    buckets = local.tz_localize(None).to_period(freq)
    current = buckets[-1]
    earlier = buckets[buckets < current]
    if len(earlier) == 0:
        return 0.0, 0.0
    return _high_low(frame[np.asarray(buckets == earlier.max())])


def _bollinger(closes: pd.Series, period: int, width: float) -> Tuple[float, float, float]:
    if len(closes) < period:
        return 0.0, 0.0, 0.0
    upper, middle, lower = bollinger_bands(closes, period=period, width=width)
    values = (float(upper.iloc[-1]), float(middle.iloc[-1]), float(lower.iloc[-1]))
    if not all(math.isfinite(value) for value in values):
        return 0.0, 0.0, 0.0
    return values


def compute_key_levels(
    bars: pd.DataFrame | Iterable[Bar | Mapping[str, Any]] | None,
    *,
    orb_minutes: int | None = None,
    bollinger_period: int | None = None,
    bollinger_k: float | None = None,
    tz: str | None = None,
) -> KeyLevels:
    """Derive the key level vocabulary from ``bars``.

    ``bars`` is either an OHLCV DataFrame indexed by timestamp (naive stamps
    are UTC) or a sequence of :class:`Bar`/mappings carrying an epoch
    ``time``.  The session of the last bar is the "current" session.
    """

    settings = get_settings()
    orb_minutes = orb_minutes or settings.orb_minutes
    bollinger_period = bollinger_period or settings.bollinger_period
    bollinger_k = bollinger_k or settings.bollinger_k
    tz = tz or settings.exchange_tz

    frame = bars_to_frame(bars)
    if frame.empty:
        logger.debug("no bars supplied; returning zero key levels")
        return KeyLevels.zeros()

    try:
        local = to_exchange_index(frame.index, tz)
        dates = np.asarray(local.date)
        session_day = dates[-1]

        orb_high, orb_low = _opening_range(frame, local, dates, session_day, orb_minutes)
        pdh, pdl, pdc = _prior_day(frame, local, dates, session_day)
        pm_high, pm_low = _premarket(frame, local, dates, session_day)
        week_high, week_low = _previous_period(frame, local, _PERIOD_FREQ["week"])
        month_high, month_low = _previous_period(frame, local, _PERIOD_FREQ["month"])
        quarter_high, quarter_low = _previous_period(frame, local, _PERIOD_FREQ["quarter"])
        year_high, year_low = _previous_period(frame, local, _PERIOD_FREQ["year"])

        price = typical_price(frame["high"], frame["low"], frame["close"])
        vwap_value, vwap_upper, vwap_lower = vwap_bands(price, frame["volume"])
        bb_upper, bb_middle, bb_lower = _bollinger(frame["close"], bollinger_period, bollinger_k)
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning("key level computation failed; returning zero levels", extra={"error": str(exc)})
        return KeyLevels.zeros()

    pivot = (pdh + pdl + pdc) / 3.0 if pdh > 0 and pdl > 0 and pdc > 0 else 0.0

    levels = KeyLevels(
        vwap=vwap_value,
        vwap_upper_band=vwap_upper,
        vwap_lower_band=vwap_lower,
        orb_high=orb_high,
        orb_low=orb_low,
        pre_market_high=pm_high,
        pre_market_low=pm_low,
        prior_day_high=pdh,
        prior_day_low=pdl,
        prior_day_close=pdc,
        prior_week_high=week_high,
        prior_week_low=week_low,
        prior_month_high=month_high,
        prior_month_low=month_low,
        prior_quarter_high=quarter_high,
        prior_quarter_low=quarter_low,
        prior_year_high=year_high,
        prior_year_low=year_low,
        bollinger_upper=bb_upper,
        bollinger_middle=bb_middle,
        bollinger_lower=bb_lower,
        daily_pivot=pivot,
    )
    logger.debug(
        "computed key levels",
        extra={"bars": len(frame), "session": str(session_day), "available": levels.available_count()},
    )
    return levels


def latest_atr(bars: pd.DataFrame | Iterable[Bar | Mapping[str, Any]] | None, period: int = 14) -> float:
    """Return the most recent ATR for ``bars`` or ``0.0`` when there is too little data."""

    frame = bars_to_frame(bars)
    if len(frame) < 2:
        return 0.0
    series = atr_series(frame["high"], frame["low"], frame["close"], period=period)
    value = float(series.iloc[-1])
    return value if math.isfinite(value) and value > 0 else 0.0


__all__ = ["bars_to_frame", "compute_key_levels", "latest_atr"]
