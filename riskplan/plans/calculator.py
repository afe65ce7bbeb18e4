"""Take-profit / stop-loss calculation for a single option position.

``calculate_risk`` is the engine entry point.  It is a pure function of its
input (plus ``now`` for DTE), so callers can re-run it on every bar or price
tick without coordination.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from ..config import get_settings
from ..schemas import (
    ConfidenceTier,
    LiquidityQuality,
    RiskCalculationInput,
    RiskCalculationResult,
    TradeType,
    usable_price,
)
from ..telemetry import RISK_CALC_DURATION_MS, record_fallback
from .anchors import select_plan_anchors
from .classifier import resolve_trade_type
from .liquidity import evaluate_liquidity
from .models import LevelCandidate, TradePlanAnchors
from .premium import map_underlying_move_to_premium, percent_to_underlying_move
from .profiles import adjust_profile_by_confluence, get_risk_profile
from .projection import atr_reason, is_atr_reason, project_levels

logger = logging.getLogger(__name__)


def _percents(input: RiskCalculationInput) -> Tuple[float, float]:
    settings = get_settings()
    tp = input.defaults.tp_percent or settings.default_tp_percent
    sl = input.defaults.sl_percent or settings.default_sl_percent
    return tp, sl


def _ratio(reward: float, risk: float) -> float:
    return reward / risk if risk > 0 else 0.0


def _liquidity(input: RiskCalculationInput) -> Tuple[Optional[LiquidityQuality], List[str]]:
    if input.quote is None:
        return None, []
    metrics = evaluate_liquidity(input.quote)
    return metrics.quality, list(metrics.warnings)


def _confidence(used_levels: List[str]) -> ConfidenceTier:
    structural = [name for name in used_levels if not is_atr_reason(name)]
    if len(structural) >= 2:
        return "high"
    if not structural:
        return "low"
    return "medium"


def _percent_mode(input: RiskCalculationInput, now: datetime) -> RiskCalculationResult:
    tp, sl = _percents(input)
    entry = input.entry_price
    target = entry * (1 + tp / 100)
    stop = entry * (1 - sl / 100)

    trade_type: Optional[TradeType] = None
    dte: Optional[int] = None
    if input.expiration is not None:
        trade_type, dte = resolve_trade_type(input.expiration, input.trade_type, now, input.defaults.dte_thresholds)
    quality, warnings = _liquidity(input)

    return RiskCalculationResult(
        target_price=target,
        stop_loss=stop,
        risk_reward_ratio=_ratio(target - entry, entry - stop),
        confidence="medium",
        reasoning=f"Percent-based: +{tp:g}% target, -{sl:g}% stop",
        calculated_at=now,
        used_levels=["percent"],
        trade_type=trade_type,
        dte=dte,
        liquidity_quality=quality,
        liquidity_warnings=warnings,
    )


def _calculated_mode(input: RiskCalculationInput, now: datetime) -> RiskCalculationResult:
    trade_type, dte = resolve_trade_type(input.expiration, input.trade_type, now, input.defaults.dte_thresholds)
    profile = adjust_profile_by_confluence(get_risk_profile(trade_type), input.confluence_score)

    direction = input.direction
    sign = 1.0 if direction == "long" else -1.0
    reference = usable_price(input.current_underlying_price) or usable_price(input.entry_price) or 0.0
    mid = usable_price(input.current_option_mid)
    delta = input.delta if input.delta is not None else 0.5 * sign
    gamma = input.gamma or 0.0
    tp_percent, sl_percent = _percents(input)

    def premium_at(price: float) -> Optional[float]:
        if mid is None:
            return None
        return map_underlying_move_to_premium(price - reference, mid, delta, gamma, trade_type)

    projected = project_levels(reference, direction, input.key_levels, profile, input.atr)
    used_levels: List[str] = []

    target2: Optional[float] = None
    if projected.tp_candidates:
        tp1: LevelCandidate = projected.tp_candidates[0]
        target, target_reason = tp1.price, tp1.reason
        target_premium = premium_at(target)
        used_levels.append(tp1.reason)
        if len(projected.tp_candidates) > 1:
            target2 = projected.tp_candidates[1].price
    else:
        # No ATR and no structural level in reach: fall back to premium percent.
        target = reference + sign * percent_to_underlying_move(reference, mid or 0.0, delta, tp_percent)
        target_reason = f"{tp_percent:g}% premium"
        target_premium = mid * (1 + tp_percent / 100) if mid is not None else None
        record_fallback("target", "percent")

    if projected.sl_candidates:
        best_stop = projected.sl_candidates[0]
        stop, stop_reason = best_stop.price, best_stop.reason
        stop_premium = premium_at(stop)
        used_levels.append(best_stop.reason)
    else:
        stop = reference - sign * percent_to_underlying_move(reference, mid or 0.0, delta, sl_percent)
        stop_reason = f"{sl_percent:g}% premium"
        stop_premium = mid * (1 - sl_percent / 100) if mid is not None else None
        record_fallback("stop", "percent")

    if stop_reason == atr_reason(profile.sl_atr_frac):
        record_fallback("stop", "atr")

    quality, warnings = _liquidity(input)
    result = RiskCalculationResult(
        target_price=target,
        stop_loss=stop,
        target_price2=target2,
        target_premium=target_premium,
        target_premium2=premium_at(target2) if target2 is not None else None,
        stop_loss_premium=stop_premium,
        target_underlying_price=target,
        target_underlying_price2=target2,
        stop_underlying_price=stop,
        risk_reward_ratio=_ratio((target - reference) * sign, (reference - stop) * sign),
        confidence=_confidence(used_levels),
        reasoning=f"{trade_type.value}: TP={target_reason}, SL={stop_reason}",
        calculated_at=now,
        used_levels=used_levels,
        trade_type=trade_type,
        dte=dte,
        liquidity_quality=quality,
        liquidity_warnings=warnings,
    )
    logger.debug(
        "risk calculated",
        extra={
            "trade_type": trade_type.value,
            "direction": direction,
            "target": target,
            "stop": stop,
            "used_levels": used_levels,
        },
    )
    return result


def calculate_risk(input: RiskCalculationInput, *, now: datetime | None = None) -> RiskCalculationResult:
    """Return the TP/SL plan for ``input``.

    ``mode="percent"`` applies the default percentages to the entry premium.
    ``mode="calculated"`` anchors targets and stop on key levels around the
    current underlying price, falling back to ATR and then to a percent of
    premium.  ``now`` only affects DTE and ``calculated_at``.
    """

    now = now or datetime.now(timezone.utc)
    mode = input.defaults.mode
    started = time.perf_counter()
    try:
        if mode == "percent":
            return _percent_mode(input, now)
        return _calculated_mode(input, now)
    finally:
        RISK_CALC_DURATION_MS.labels(mode=mode).observe((time.perf_counter() - started) * 1000.0)


def build_trade_plan(
    input: RiskCalculationInput, *, now: datetime | None = None
) -> Tuple[RiskCalculationResult, TradePlanAnchors]:
    """Run ``calculate_risk`` and the anchor selector over the same input."""

    now = now or datetime.now(timezone.utc)
    result = calculate_risk(input, now=now)
    tp_percent, sl_percent = _percents(input)
    trade_type = result.trade_type
    if trade_type is None:
        trade_type, _ = resolve_trade_type(input.expiration, input.trade_type, now, input.defaults.dte_thresholds)
    anchors = select_plan_anchors(
        input.key_levels,
        input.current_underlying_price,
        input.direction,
        current_option_premium=input.current_option_mid,
        delta=input.delta,
        gamma=input.gamma or 0.0,
        atr=input.atr,
        trade_type=trade_type,
        tp_percent=tp_percent,
        sl_percent=sl_percent,
    )
    return result, anchors


def calculate_trailing_stop(high_water_mark: float, atr: float, atr_multiplier: float = 1.0) -> float:
    """Trail ``atr * atr_multiplier`` below the highest price reached since entry."""

    return high_water_mark - atr * atr_multiplier


def calculate_breakeven_stop(entry_price: float) -> float:
    return entry_price


__all__ = [
    "build_trade_plan",
    "calculate_breakeven_stop",
    "calculate_risk",
    "calculate_trailing_stop",
]
