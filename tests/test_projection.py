from __future__ import annotations

import pytest

from riskplan.plans.profiles import RISK_PROFILES
from riskplan.plans.projection import project_levels
from riskplan.schemas import KeyLevels, TradeType

DAY = RISK_PROFILES[TradeType.DAY]


def test_long_candidates_ranked_by_weight_then_distance():
    levels = KeyLevels(orb_high=101.0, prior_day_high=101.5, vwap=99.6)

    projected = project_levels(100.0, "long", levels, DAY, atr=2.0)

    assert [c.reason for c in projected.tp_candidates] == ["ORB", "PrevDayHL", "ATR (0.4x)", "ATR (0.8x)"]
    assert [c.price for c in projected.tp_candidates] == pytest.approx([101.0, 101.5, 100.8, 101.6])
    assert [c.reason for c in projected.sl_candidates] == ["VWAP", "ATR (0.25x)"]
    assert projected.sl_candidates[0].distance == pytest.approx(0.4)
    assert projected.sl_candidates[1].price == pytest.approx(99.5)


def test_levels_outside_atr_budget_are_dropped():
    # TP budget 2 * 0.8 = 1.6; SL budget 2 * 0.25 = 0.5
    levels = KeyLevels(prior_day_high=105.0, vwap=99.0)

    projected = project_levels(100.0, "long", levels, DAY, atr=2.0)

    assert all(c.reason.startswith("ATR") for c in projected.tp_candidates)
    assert all(c.reason.startswith("ATR") for c in projected.sl_candidates)


def test_unavailable_levels_are_never_candidates():
    levels = KeyLevels(orb_high=0.0, prior_day_high=-3.0, vwap=float("nan"))

    projected = project_levels(100.0, "long", levels, DAY, atr=2.0)

    assert len(projected.tp_candidates) == 2
    assert len(projected.sl_candidates) == 1


def test_short_uses_low_variants_and_mirrors_sides():
    levels = KeyLevels(orb_high=101.0, orb_low=99.0, vwap=100.4)

    projected = project_levels(100.0, "short", levels, DAY, atr=2.0)

    assert projected.tp_candidates[0].reason == "ORB"
    assert projected.tp_candidates[0].price == pytest.approx(99.0)
    assert projected.sl_candidates[0].reason == "VWAP"
    assert projected.sl_candidates[0].price == pytest.approx(100.4)
    atr_stop = [c for c in projected.sl_candidates if c.reason.startswith("ATR")][0]
    assert atr_stop.price == pytest.approx(100.5)


def test_without_atr_structural_levels_are_unbounded_and_nothing_is_synthesised():
    levels = KeyLevels(prior_day_high=105.0, vwap=97.0)

    projected = project_levels(100.0, "long", levels, DAY, atr=None)

    assert [c.reason for c in projected.tp_candidates] == ["PrevDayHL"]
    assert [c.reason for c in projected.sl_candidates] == ["VWAP"]
    assert project_levels(100.0, "long", KeyLevels(), DAY, atr=0.0).tp_candidates == ()


def test_profile_limits_eligible_levels():
    # LEAP profile does not use VWAP or ORB
    levels = KeyLevels(orb_high=101.0, vwap=99.0, prior_quarter_high=110.0)

    projected = project_levels(100.0, "long", levels, RISK_PROFILES[TradeType.LEAP], atr=5.0)

    assert [c.reason for c in projected.tp_candidates][0] == "QuarterlyHL"
    assert "ORB" not in [c.reason for c in projected.tp_candidates]
    assert "VWAP" not in [c.reason for c in projected.sl_candidates]
