import pytest

from riskplan.plans.premium import (
    map_underlying_move_to_premium,
    percent_to_underlying_move,
    underlying_from_premium,
)
from riskplan.schemas import TradeType


def test_short_dated_trades_include_gamma_term():
    assert map_underlying_move_to_premium(2.0, 1.0, 0.5, 0.1, TradeType.DAY) == pytest.approx(2.2)
    assert map_underlying_move_to_premium(2.0, 1.0, 0.5, 0.1, TradeType.SCALP) == pytest.approx(2.2)


def test_longer_dated_trades_use_delta_only():
    assert map_underlying_move_to_premium(2.0, 1.0, 0.5, 0.1, TradeType.SWING) == pytest.approx(2.0)
    assert map_underlying_move_to_premium(2.0, 1.0, 0.5, 0.1, TradeType.LEAP) == pytest.approx(2.0)


def test_put_delta_loses_premium_on_up_move():
    assert map_underlying_move_to_premium(1.0, 3.0, -0.4, 0.0, TradeType.DAY) == pytest.approx(2.6)


def test_percent_move_goes_through_abs_delta():
    assert percent_to_underlying_move(100.0, 2.0, 0.5, 20.0) == pytest.approx(0.8)
    assert percent_to_underlying_move(100.0, 2.0, -0.5, 50.0) == pytest.approx(2.0)


def test_percent_move_without_premium_assumes_ten_times_leverage():
    assert percent_to_underlying_move(100.0, 0.0, 0.5, 20.0) == pytest.approx(2.0)
    assert percent_to_underlying_move(100.0, 2.0, 0.0, 20.0) == pytest.approx(2.0)


def test_underlying_from_premium_flips_for_puts():
    assert underlying_from_premium(3.0, 2.0, 100.0, 0.5, "C") == pytest.approx(102.0)
    assert underlying_from_premium(3.0, 2.0, 100.0, -0.5, "P") == pytest.approx(98.0)
    assert underlying_from_premium(1.5, 2.0, 100.0, 0.5, "C") == pytest.approx(99.0)


def test_underlying_from_premium_requires_inputs():
    assert underlying_from_premium(3.0, 2.0, 100.0, 0.0) is None
    assert underlying_from_premium(None, 2.0, 100.0, 0.5) is None
    assert underlying_from_premium(3.0, 0.0, 100.0, 0.5) is None
    assert underlying_from_premium(3.0, 2.0, None, 0.5) is None
