"""Flatten a trade plan and its key levels into ordered chart rows.

Charts are drawn on the underlying, so every row carries an underlying
price.  Option prices are only translated back through delta when a trade
has no stored underlying target/stop.  Rows are emitted in a fixed order
(entry, targets, stop, then key levels) and are never reordered or
deduplicated.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence

from ..plans.calculator import calculate_risk
from ..plans.premium import underlying_from_premium
from ..schemas import (
    ChartLevel,
    ChartLevelMeta,
    ChartLevelType,
    KeyLevels,
    LiveOptionPrices,
    RiskCalculationInput,
    RiskCalculationResult,
    TradeRecord,
    usable_price,
)

# (KeyLevels field, row type, label)
_KEY_LEVEL_ROWS: Sequence[tuple[str, ChartLevelType, str]] = (
    ("pre_market_high", ChartLevelType.PREMARKET_HIGH, "PM High"),
    ("pre_market_low", ChartLevelType.PREMARKET_LOW, "PM Low"),
    ("orb_high", ChartLevelType.ORB_HIGH, "ORB High"),
    ("orb_low", ChartLevelType.ORB_LOW, "ORB Low"),
    ("prior_day_high", ChartLevelType.PREV_DAY_HIGH, "PDH"),
    ("prior_day_low", ChartLevelType.PREV_DAY_LOW, "PDL"),
    ("vwap", ChartLevelType.VWAP, "VWAP"),
    ("vwap_upper_band", ChartLevelType.VWAP_BAND, "VWAP +1σ"),
    ("vwap_lower_band", ChartLevelType.VWAP_BAND, "VWAP -1σ"),
    ("bollinger_upper", ChartLevelType.BOLLINGER, "BB Upper"),
    ("bollinger_lower", ChartLevelType.BOLLINGER, "BB Lower"),
)


def key_level_rows(key_levels: Optional[KeyLevels]) -> List[ChartLevel]:
    if key_levels is None:
        return []
    rows = []
    for name, row_type, label in _KEY_LEVEL_ROWS:
        price = key_levels.price(name)
        if price is not None:
            rows.append(ChartLevel(type=row_type, label=label, price=price))
    return rows


def _target_row(index: int, price: Optional[float], reason: Optional[str] = None) -> Optional[ChartLevel]:
    value = usable_price(price)
    if value is None:
        return None
    return ChartLevel(
        type=ChartLevelType.TP,
        label=f"TP{index}",
        price=value,
        meta=ChartLevelMeta(tp_index=index, reason=reason),
    )


def _stop_row(price: Optional[float], reason: Optional[str] = None) -> Optional[ChartLevel]:
    value = usable_price(price)
    if value is None:
        return None
    return ChartLevel(type=ChartLevelType.SL, label="SL", price=value, meta=ChartLevelMeta(reason=reason))


def build_chart_levels_for_trade(
    trade: TradeRecord,
    key_levels: Optional[KeyLevels] = None,
    risk_result: Optional[RiskCalculationResult] = None,
    current_underlying_price: Optional[float] = None,
    live_prices: Optional[LiveOptionPrices] = None,
) -> List[ChartLevel]:
    """Return ENTRY, TP1..TP3, SL and key-level rows for an open trade.

    When TP1 or SL has to be derived from option prices, a trade without an
    ``option_type`` is treated as a call: a premium gain maps to a higher
    underlying price.  Set ``option_type="P"`` for puts.
    """

    base = (
        usable_price(trade.underlying_at_entry)
        or usable_price(trade.underlying_price_at_load)
        or usable_price(current_underlying_price)
    )
    delta = trade.delta or 0.5
    live = live_prices or LiveOptionPrices()
    reference_premium = (
        usable_price(live.current_mid) or usable_price(trade.entry_price) or usable_price(trade.contract_mid)
    )
    reason = risk_result.reasoning if risk_result is not None else None

    def from_option(option_price: Optional[float]) -> Optional[float]:
        return underlying_from_premium(option_price, reference_premium, base, delta, trade.option_type)

    rows: List[ChartLevel] = []
    if base is not None:
        rows.append(ChartLevel(type=ChartLevelType.ENTRY, label="Entry", price=base))

    tp1 = usable_price(trade.target_underlying_price)
    if tp1 is None:
        tp1 = from_option(usable_price(live.target_price) or trade.target_price)
    sl = usable_price(trade.stop_underlying_price)
    if sl is None:
        sl = from_option(usable_price(live.stop_loss) or trade.stop_loss)

    candidates = (
        _target_row(1, tp1, reason),
        _target_row(2, trade.target_underlying_price2),
        _target_row(3, trade.target_underlying_price3),
        _stop_row(sl, reason),
    )
    rows.extend(row for row in candidates if row is not None)
    rows.extend(key_level_rows(key_levels))
    return rows


def build_chart_levels_for_candidate(
    current_price: float,
    key_levels: KeyLevels,
    risk_input: RiskCalculationInput,
    *,
    now: datetime | None = None,
) -> List[ChartLevel]:
    """Run the calculator for a prospective entry and return its chart rows.

    ``current_price`` and ``key_levels`` replace the corresponding fields of
    ``risk_input`` so the rows always reflect the levels being drawn.
    """

    risk_input = risk_input.model_copy(
        update={"current_underlying_price": current_price, "key_levels": key_levels}
    )
    result = calculate_risk(risk_input, now=now)
    candidates = (
        _target_row(1, result.target_underlying_price, result.reasoning),
        _target_row(2, result.target_underlying_price2),
        _stop_row(result.stop_underlying_price, result.reasoning),
    )
    rows = [row for row in candidates if row is not None]
    rows.extend(key_level_rows(key_levels))
    return rows


__all__ = ["build_chart_levels_for_candidate", "build_chart_levels_for_trade", "key_level_rows"]
