"""Indicator primitives consumed by the key level computation.

These functions operate on pandas Series and mirror the conventions of the
indicator library used elsewhere in the platform: cumulative session VWAP,
population standard deviation for bands, and a Wilder-smoothed ATR.
"""

from __future__ import annotations

import numpy as np
import pandas as pd


def typical_price(high: pd.Series, low: pd.Series, close: pd.Series) -> pd.Series:
    """Return the typical price ``(high + low + close) / 3``."""
    return (high + low + close) / 3.0


def atr(high: pd.Series, low: pd.Series, close: pd.Series, period: int = 14) -> pd.Series:
    """Compute the Average True Range (ATR).

    ATR is calculated with Wilder smoothing (``alpha = 1 / period``) of the
    True Range.

    Args:
        high: Series of high prices.
        low: Series of low prices.
        close: Series of closing prices.
        period: Lookback period. Default is 14.

    Returns:
        A pandas Series of ATR values.
    """
    prev_close = close.shift(1)
    tr1 = (high - low).abs()
    tr2 = (high - prev_close).abs()
    tr3 = (low - prev_close).abs()
    true_range = pd.concat([tr1, tr2, tr3], axis=1).max(axis=1)
    return true_range.ewm(alpha=1.0 / period, adjust=False).mean()


def vwap_bands(price: pd.Series, volume: pd.Series, width: float = 1.0) -> tuple[float, float, float]:
    """Return ``(vwap, upper, lower)`` for the whole series.

    The band is ``width`` volume-weighted standard deviations of ``price``
    around the VWAP.  Zero total volume returns ``(0, 0, 0)``.
    """
    total_volume = float(volume.sum())
    if not np.isfinite(total_volume) or total_volume <= 0:
        return 0.0, 0.0, 0.0
    center = float((price * volume).sum()) / total_volume
    variance = float((volume * (price - center) ** 2).sum()) / total_volume
    deviation = float(np.sqrt(max(variance, 0.0)))
    return center, center + width * deviation, center - width * deviation


def bollinger_bands(
    series: pd.Series, period: int = 20, width: float = 2.0
) -> tuple[pd.Series, pd.Series, pd.Series]:
    """Compute Bollinger Bands around a simple moving average.

    Args:
        series: Series of closing prices.
        period: Lookback period for the moving average (default 20).
        width: Number of standard deviations for the bands (default 2.0).

    Returns:
        A tuple ``(upper_band, middle, lower_band)`` as pandas Series.
    """
    ma = series.rolling(window=period).mean()
    std = series.rolling(window=period).std(ddof=0)
    upper = ma + width * std
    lower = ma - width * std
    return upper, ma, lower


__all__ = ["typical_price", "atr", "vwap_bands", "bollinger_bands"]
