from __future__ import annotations

from datetime import datetime, timezone

import pytest

from riskplan.schemas import (
    ChartLevelType,
    KeyLevels,
    LiveOptionPrices,
    RiskCalculationInput,
    RiskDefaults,
    TradeRecord,
    TradeType,
)
from riskplan.services.chart_levels import (
    build_chart_levels_for_candidate,
    build_chart_levels_for_trade,
    key_level_rows,
)

NOW = datetime(2024, 3, 12, 14, 0, tzinfo=timezone.utc)


def _by_type(rows, row_type):
    return [row for row in rows if row.type is row_type]


def test_stored_underlying_levels_produce_one_row_each():
    trade = TradeRecord(
        entry_price=1.2,
        target_price=1.8,
        stop_loss=0.9,
        underlying_at_entry=5.0,
        target_underlying_price=6.5,
        stop_underlying_price=4.0,
    )

    rows = build_chart_levels_for_trade(trade)

    assert [row.type for row in rows] == [ChartLevelType.ENTRY, ChartLevelType.TP, ChartLevelType.SL]
    assert [row.price for row in rows] == [5.0, 6.5, 4.0]
    assert [row.label for row in rows] == ["Entry", "TP1", "SL"]
    assert rows[1].meta.tp_index == 1


def test_option_prices_are_translated_through_delta():
    trade = TradeRecord(
        entry_price=2.0,
        target_price=3.0,
        stop_loss=1.5,
        underlying_at_entry=100.0,
        delta=0.5,
        option_type="C",
    )

    rows = build_chart_levels_for_trade(trade)

    assert _by_type(rows, ChartLevelType.TP)[0].price == pytest.approx(102.0)
    assert _by_type(rows, ChartLevelType.SL)[0].price == pytest.approx(99.0)


def test_put_targets_sit_below_entry():
    trade = TradeRecord(
        entry_price=2.0,
        target_price=3.0,
        stop_loss=1.5,
        underlying_at_entry=100.0,
        delta=-0.5,
        option_type="P",
    )

    rows = build_chart_levels_for_trade(trade)

    assert _by_type(rows, ChartLevelType.TP)[0].price == pytest.approx(98.0)
    assert _by_type(rows, ChartLevelType.SL)[0].price == pytest.approx(101.0)


def test_live_prices_override_stored_option_prices():
    trade = TradeRecord(entry_price=2.0, target_price=3.0, stop_loss=1.5, underlying_at_entry=100.0)

    rows = build_chart_levels_for_trade(trade, live_prices=LiveOptionPrices(target_price=3.5))

    assert _by_type(rows, ChartLevelType.TP)[0].price == pytest.approx(103.0)
    assert _by_type(rows, ChartLevelType.SL)[0].price == pytest.approx(99.0)


def test_extra_targets_and_key_levels_follow_in_fixed_order():
    trade = TradeRecord(
        underlying_at_entry=100.0,
        target_underlying_price=101.0,
        target_underlying_price2=102.0,
        target_underlying_price3=103.0,
        stop_underlying_price=99.0,
    )
    levels = KeyLevels(
        vwap=100.2,
        orb_high=100.8,
        orb_low=99.4,
        prior_day_high=104.0,
        pre_market_low=0.0,
        bollinger_lower=97.0,
    )

    rows = build_chart_levels_for_trade(trade, key_levels=levels)

    assert [row.label for row in rows] == [
        "Entry",
        "TP1",
        "TP2",
        "TP3",
        "SL",
        "ORB High",
        "ORB Low",
        "PDH",
        "VWAP",
        "BB Lower",
    ]
    assert [row.meta.tp_index for row in rows[1:4]] == [1, 2, 3]


def test_missing_entry_reference_drops_derived_rows():
    trade = TradeRecord(entry_price=2.0, target_price=3.0, stop_loss=1.5)

    assert build_chart_levels_for_trade(trade) == []


def test_key_level_rows_skip_unavailable_values():
    assert key_level_rows(None) == []
    assert key_level_rows(KeyLevels.zeros()) == []
    rows = key_level_rows(KeyLevels(vwap_upper_band=101.0, vwap_lower_band=99.0))
    assert [row.label for row in rows] == ["VWAP +1σ", "VWAP -1σ"]
    assert {row.type for row in rows} == {ChartLevelType.VWAP_BAND}


def test_candidate_rows_come_from_the_calculator():
    levels = KeyLevels(orb_high=101.0, prior_day_high=101.5, vwap=99.6)
    risk_input = RiskCalculationInput(
        entry_price=2.0,
        current_underlying_price=50.0,
        current_option_mid=2.0,
        atr=2.0,
        trade_type=TradeType.DAY,
        defaults=RiskDefaults(tp_percent=50.0, sl_percent=20.0),
    )

    rows = build_chart_levels_for_candidate(100.0, levels, risk_input, now=NOW)

    assert [row.label for row in rows] == ["TP1", "TP2", "SL", "ORB High", "PDH", "VWAP"]
    assert [row.price for row in rows[:3]] == pytest.approx([101.0, 101.5, 99.6])
    assert rows[0].meta.reason == "DAY: TP=ORB, SL=VWAP"
    assert rows[1].meta.reason is None


def test_unspecified_option_type_maps_like_a_call():
    base = dict(entry_price=2.0, target_price=3.0, stop_loss=1.5, underlying_at_entry=100.0, delta=0.5)

    untyped = build_chart_levels_for_trade(TradeRecord(**base))
    call = build_chart_levels_for_trade(TradeRecord(option_type="C", **base))

    assert [row.price for row in untyped] == [row.price for row in call]
    assert _by_type(untyped, ChartLevelType.TP)[0].price == pytest.approx(102.0)
