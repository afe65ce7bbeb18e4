import numpy as np
import pandas as pd
import pytest

from riskplan.calculations import atr, bollinger_bands, typical_price, vwap_bands


def test_typical_price():
    high = pd.Series([3.0, 6.0])
    low = pd.Series([1.0, 3.0])
    close = pd.Series([2.0, 3.0])

    assert typical_price(high, low, close).tolist() == [2.0, 4.0]


def test_atr_uses_true_range_with_gaps():
    high = pd.Series([10.0, 12.0])
    low = pd.Series([9.0, 11.0])
    close = pd.Series([9.5, 11.5])

    series = atr(high, low, close, period=2)

    # second bar true range is high - prev close = 2.5; alpha = 0.5
    assert series.iloc[0] == pytest.approx(1.0)
    assert series.iloc[1] == pytest.approx(0.5 * 1.0 + 0.5 * 2.5)


def test_vwap_bands_volume_weighted():
    price = pd.Series([10.0, 20.0])
    volume = pd.Series([3.0, 1.0])

    center, upper, lower = vwap_bands(price, volume)

    assert center == pytest.approx(12.5)
    deviation = np.sqrt((3 * 2.5**2 + 1 * 7.5**2) / 4)
    assert upper == pytest.approx(12.5 + deviation)
    assert lower == pytest.approx(12.5 - deviation)


def test_vwap_bands_zero_volume_is_neutral():
    assert vwap_bands(pd.Series([1.0, 2.0]), pd.Series([0.0, 0.0])) == (0.0, 0.0, 0.0)


def test_bollinger_bands_warm_up_is_nan():
    series = pd.Series(np.arange(1.0, 6.0))

    upper, middle, lower = bollinger_bands(series, period=3, width=1.0)

    assert middle.isna().sum() == 2
    assert middle.iloc[-1] == pytest.approx(4.0)
    assert upper.iloc[-1] - middle.iloc[-1] == pytest.approx(np.std([3.0, 4.0, 5.0]))
    assert middle.iloc[-1] - lower.iloc[-1] == pytest.approx(np.std([3.0, 4.0, 5.0]))
