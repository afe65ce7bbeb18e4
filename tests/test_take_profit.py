from __future__ import annotations

from datetime import datetime, timezone

import pytest

from riskplan.plans.take_profit import (
    ContractRef,
    TakeProfitInput,
    calculate_take_profit,
    dte_default_target,
    has_minimal_risk_data,
)
from riskplan.schemas import KeyLevels

NOW = datetime(2024, 3, 12, 14, 0, tzinfo=timezone.utc)
CONTRACT = ContractRef(expiration="2024-03-20", strike=100.0, bid=1.9, ask=2.1)


def test_user_override_wins():
    result = calculate_take_profit(
        TakeProfitInput(entry_price=2.0, contract=CONTRACT, user_override=5.0, atr=2.0), now=NOW
    )

    assert result.target_price == 5.0
    assert result.source == "user_override"
    assert result.label == "Adjusted TP"
    assert result.confidence == 100


def test_risk_engine_used_when_levels_exist():
    payload = TakeProfitInput(
        entry_price=2.0,
        contract=CONTRACT,
        key_levels=KeyLevels(orb_high=101.0, vwap=99.6),
        atr=2.0,
    )

    result = calculate_take_profit(payload, now=NOW)

    assert result.source == "risk_engine"
    assert result.target_price == pytest.approx(101.0)
    assert result.confidence == 85
    assert result.label == "Initial TP"
    assert result.risk_details is not None
    assert result.risk_details.dte == 8


def test_dte_default_without_risk_data():
    payload = TakeProfitInput(entry_price=1.3, contract=CONTRACT)

    assert not has_minimal_risk_data(payload)
    result = calculate_take_profit(payload, now=NOW)

    assert result.source == "dte_default"
    assert result.target_price == pytest.approx(2.6)
    assert result.confidence == 60


def test_contract_mid_fallback_for_zero_entry():
    result = calculate_take_profit(TakeProfitInput(entry_price=0.0, contract=CONTRACT), now=NOW)

    assert result.source == "contract_mid_fallback"
    assert result.target_price == pytest.approx(3.0)
    assert result.confidence == 30


@pytest.mark.parametrize(
    "dte, expected",
    [(0, 1.3), (4, 1.5), (5, 2.0), (29, 2.0), (30, 2.5)],
)
def test_dte_default_tiers(dte, expected):
    assert dte_default_target(dte, 1.0) == pytest.approx(expected)


def test_dte_default_uses_tp_percent_when_given():
    assert dte_default_target(3, 2.0, tp_percent=40.0) == pytest.approx(2.8)
