from __future__ import annotations

import dataclasses

import pytest

from riskplan.plans.profiles import RISK_PROFILES, adjust_profile_by_confluence, get_risk_profile
from riskplan.schemas import TradeType


def test_every_trade_type_has_a_profile():
    assert set(RISK_PROFILES) == set(TradeType)
    for trade_type, profile in RISK_PROFILES.items():
        assert profile.trade_type is trade_type
        assert set(profile.use_levels) == set(profile.level_weights)
        assert all(0.0 <= weight <= 1.0 for weight in profile.level_weights.values())
        assert profile.tp_atr_frac[0] < profile.tp_atr_frac[1]


def test_registry_is_read_only():
    with pytest.raises(TypeError):
        RISK_PROFILES[TradeType.DAY] = RISK_PROFILES[TradeType.SCALP]  # type: ignore[index]
    with pytest.raises(TypeError):
        RISK_PROFILES[TradeType.DAY].level_weights["VWAP"] = 0.1  # type: ignore[index]
    with pytest.raises(dataclasses.FrozenInstanceError):
        RISK_PROFILES[TradeType.DAY].sl_atr_frac = 1.0  # type: ignore[misc]


def test_get_risk_profile_defaults_to_day():
    assert get_risk_profile(None) is RISK_PROFILES[TradeType.DAY]
    assert get_risk_profile("SWING") is RISK_PROFILES[TradeType.SWING]
    assert get_risk_profile("weird") is RISK_PROFILES[TradeType.DAY]


def test_strong_confluence_returns_new_widened_profile():
    base = RISK_PROFILES[TradeType.DAY]

    adjusted = adjust_profile_by_confluence(base, 85)

    assert adjusted is not base
    assert adjusted.level_weights["VWAP"] == pytest.approx(1.0)
    assert adjusted.level_weights["ORB"] == pytest.approx(0.99)
    assert adjusted.tp_atr_frac == pytest.approx((0.48, 0.96))
    assert adjusted.sl_atr_frac == base.sl_atr_frac
    # registry entry untouched
    assert RISK_PROFILES[TradeType.DAY].level_weights["ORB"] == pytest.approx(0.9)
    assert RISK_PROFILES[TradeType.DAY].tp_atr_frac == (0.4, 0.8)


def test_weak_confluence_tightens_profile():
    base = RISK_PROFILES[TradeType.DAY]

    adjusted = adjust_profile_by_confluence(base, 25)

    assert adjusted.level_weights["ORB"] == pytest.approx(0.81)
    assert adjusted.tp_atr_frac == pytest.approx((0.32, 0.64))
    assert adjusted.sl_atr_frac == pytest.approx(0.225)


def test_neutral_or_missing_confluence_is_identity():
    base = RISK_PROFILES[TradeType.SWING]

    assert adjust_profile_by_confluence(base, 55) is base
    assert adjust_profile_by_confluence(base, None) is base
