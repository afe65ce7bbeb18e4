import pytest

from riskplan.plans.liquidity import LiquidityThresholds, evaluate_liquidity
from riskplan.schemas import OptionQuote


def test_tight_active_contract_is_excellent():
    metrics = evaluate_liquidity(OptionQuote(bid=2.0, ask=2.01, volume=2000, open_interest=6000))

    assert metrics.quality == "excellent"
    assert metrics.spread == pytest.approx(0.01)
    assert metrics.spread_percent < 1
    assert metrics.warnings == ()


def test_moderate_contract_is_fair_with_warnings():
    metrics = evaluate_liquidity(OptionQuote(bid=1.96, ask=2.04, volume=500, open_interest=500))

    assert metrics.quality == "fair"
    assert metrics.spread_percent == pytest.approx(4.0)
    assert metrics.warnings == ("Low volume (<1000)", "Low open interest (<1000)")


def test_threshold_breach_forces_poor():
    metrics = evaluate_liquidity(OptionQuote(bid=1.96, ask=2.04, volume=20, open_interest=500))

    assert metrics.quality == "poor"
    assert "Volume below threshold (30)" in metrics.warnings


def test_custom_thresholds():
    thresholds = LiquidityThresholds(max_spread_percent=2.0, min_volume=0, min_open_interest=0)

    metrics = evaluate_liquidity(OptionQuote(bid=1.96, ask=2.04, volume=500, open_interest=500), thresholds)

    assert metrics.quality == "poor"
    assert "Spread above threshold (2%)" in metrics.warnings


def test_one_sided_book_is_a_full_spread():
    metrics = evaluate_liquidity(OptionQuote(bid=0.0, ask=2.0, volume=5000, open_interest=9000))

    assert metrics.spread_percent == 100.0
    assert metrics.quality == "poor"
    assert metrics.warnings[0] == "Wide spread (>5%)"
