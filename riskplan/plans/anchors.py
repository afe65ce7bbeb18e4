"""Structure-first stop/target anchor selection with a tiered fallback.

Stops and targets are anchored, in order of preference, to options-flow
levels (call/put walls, gamma wall, max pain), structural levels (VWAP, ORB,
prior day, prior week), an ATR multiple, and finally a default percent of
the option premium.  Every anchor carries the reason it was chosen and the
overall plan is scored so callers can tell a structural plan from a generic
one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Mapping, Optional, Sequence, Tuple

from ..config import STOP_SEARCH_PCT, TARGET_SEARCH_PCT
from ..schemas import AnchorType, Direction, KeyLevels, TradeType, usable_price
from ..telemetry import record_fallback
from .models import PlanAnchor, PlanQuality, TargetAnchor, TradePlanAnchors
from .premium import map_underlying_move_to_premium, percent_to_underlying_move

logger = logging.getLogger(__name__)

TARGET_LABELS = ("TP1", "TP2", "TP3")

ANCHOR_REASONS: Mapping[AnchorType, Mapping[str, str]] = MappingProxyType(
    {
        AnchorType.VWAP: MappingProxyType(
            {
                "stop": "Below VWAP invalidates bullish thesis",
                "target": "VWAP acts as magnetic mean-reversion target",
            }
        ),
        AnchorType.ORB_HIGH: MappingProxyType(
            {
                "stop": "Below ORB high invalidates opening breakout",
                "target": "ORB high is key intraday resistance",
            }
        ),
        AnchorType.ORB_LOW: MappingProxyType(
            {
                "stop": "Below ORB low confirms bearish breakdown",
                "target": "ORB low provides support for bounce",
            }
        ),
        AnchorType.PDH: MappingProxyType(
            {
                "stop": "Prior day high breakdown = failed test",
                "target": "Prior day high = major resistance to clear",
            }
        ),
        AnchorType.PDL: MappingProxyType(
            {
                "stop": "Below prior day low = bearish continuation",
                "target": "Prior day low = key support level",
            }
        ),
        AnchorType.GAMMA_WALL: MappingProxyType(
            {
                "stop": "Gamma flip level breach changes dealer hedging",
                "target": "Gamma wall creates price magnetism",
            }
        ),
        AnchorType.CALL_WALL: MappingProxyType(
            {
                "stop": "Above call wall = extreme bullish sentiment",
                "target": "Call wall = heavy resistance from dealer hedging",
            }
        ),
        AnchorType.PUT_WALL: MappingProxyType(
            {
                "stop": "Below put wall = dealer unwinding creates acceleration",
                "target": "Put wall = strong support from dealer hedging",
            }
        ),
        AnchorType.MAX_PAIN: MappingProxyType(
            {
                "stop": "Below max pain = move away from equilibrium",
                "target": "Max pain = gravitational pull for expiration",
            }
        ),
        AnchorType.WEEKLY_HIGH: MappingProxyType(
            {
                "stop": "Below weekly high = failed breakout",
                "target": "Weekly high = significant resistance",
            }
        ),
        AnchorType.WEEKLY_LOW: MappingProxyType(
            {
                "stop": "Below weekly low = bearish trend confirmation",
                "target": "Weekly low = major support level",
            }
        ),
        AnchorType.ATR_FALLBACK: MappingProxyType(
            {
                "stop": "ATR-based stop (no structural level found)",
                "target": "ATR-based target (no structural level found)",
            }
        ),
        AnchorType.PERCENT_FALLBACK: MappingProxyType(
            {
                "stop": "Percent-based stop (default risk parameters)",
                "target": "Percent-based target (default reward parameters)",
            }
        ),
    }
)

_ANCHOR_LABELS: Mapping[AnchorType, str] = MappingProxyType(
    {
        AnchorType.VWAP: "VWAP",
        AnchorType.ORB_HIGH: "ORB High",
        AnchorType.ORB_LOW: "ORB Low",
        AnchorType.PDH: "Prior Day High",
        AnchorType.PDL: "Prior Day Low",
        AnchorType.GAMMA_WALL: "Gamma Wall",
        AnchorType.CALL_WALL: "Call Wall",
        AnchorType.PUT_WALL: "Put Wall",
        AnchorType.MAX_PAIN: "Max Pain",
        AnchorType.WEEKLY_HIGH: "Weekly High",
        AnchorType.WEEKLY_LOW: "Weekly Low",
        AnchorType.ATR_FALLBACK: "ATR",
        AnchorType.PERCENT_FALLBACK: "Default %",
    }
)

_SHORT_ANCHOR_LABELS: Mapping[AnchorType, str] = MappingProxyType(
    {
        AnchorType.VWAP: "VWAP",
        AnchorType.ORB_HIGH: "ORH",
        AnchorType.ORB_LOW: "ORL",
        AnchorType.PDH: "PDH",
        AnchorType.PDL: "PDL",
        AnchorType.GAMMA_WALL: "GEX",
        AnchorType.CALL_WALL: "C.Wall",
        AnchorType.PUT_WALL: "P.Wall",
        AnchorType.MAX_PAIN: "MaxP",
        AnchorType.WEEKLY_HIGH: "WkH",
        AnchorType.WEEKLY_LOW: "WkL",
        AnchorType.ATR_FALLBACK: "ATR",
        AnchorType.PERCENT_FALLBACK: "%",
    }
)

# (anchor type, KeyLevels field, weight)
_STRUCTURAL_SOURCES: Tuple[Tuple[AnchorType, str, int], ...] = (
    (AnchorType.VWAP, "vwap", 90),
    (AnchorType.ORB_HIGH, "orb_high", 85),
    (AnchorType.ORB_LOW, "orb_low", 85),
    (AnchorType.PDH, "prior_day_high", 80),
    (AnchorType.PDL, "prior_day_low", 80),
    (AnchorType.WEEKLY_HIGH, "prior_week_high", 70),
    (AnchorType.WEEKLY_LOW, "prior_week_low", 70),
)

_FLOW_SOURCES: Tuple[Tuple[AnchorType, str, int], ...] = (
    (AnchorType.CALL_WALL, "call_wall", 95),
    (AnchorType.PUT_WALL, "put_wall", 95),
    (AnchorType.MAX_PAIN, "max_pain", 75),
    (AnchorType.GAMMA_WALL, "gamma_wall", 90),
)

_ATR_STOP_MULTIPLIER: Mapping[TradeType, float] = MappingProxyType(
    {TradeType.SCALP: 1.0, TradeType.DAY: 1.5, TradeType.SWING: 2.0, TradeType.LEAP: 2.0}
)

_ATR_TARGET_MULTIPLES: Mapping[TradeType, Tuple[float, ...]] = MappingProxyType(
    {
        TradeType.SCALP: (1.0, 1.5),
        TradeType.DAY: (1.5, 2.5, 3.5),
        TradeType.SWING: (2.0, 3.0, 4.0),
        TradeType.LEAP: (2.0, 3.0, 4.0),
    }
)


@dataclass(frozen=True)
class _Candidate:
    type: AnchorType
    price: float
    reason: str
    weight: int
    is_gamma: bool


def format_anchor_type(anchor_type: AnchorType | str) -> str:
    """Human label for an anchor type (``ORB_HIGH`` -> ``"ORB High"``)."""

    try:
        return _ANCHOR_LABELS[AnchorType(anchor_type)]
    except ValueError:
        return str(anchor_type)


def short_anchor_label(anchor_type: AnchorType | str) -> str:
    """Compact label for an anchor type (``ORB_HIGH`` -> ``"ORH"``)."""

    try:
        return _SHORT_ANCHOR_LABELS[AnchorType(anchor_type)]
    except ValueError:
        return str(anchor_type)


def _distance_percent(price: float, current: float) -> Optional[float]:
    if current <= 0:
        return None
    return (price - current) / current * 100.0


def build_anchor_candidates(
    key_levels: KeyLevels, current_price: float, direction: Direction
) -> Tuple[List[_Candidate], List[_Candidate]]:
    """Split usable structural and flow levels into ranked stop/target candidates."""

    stops: List[_Candidate] = []
    targets: List[_Candidate] = []
    if current_price <= 0:
        return stops, targets

    sign = 1.0 if direction == "long" else -1.0
    sources = [(anchor, key_levels.price(name), weight, False) for anchor, name, weight in _STRUCTURAL_SOURCES]
    if key_levels.options_flow is not None:
        sources.extend(
            (anchor, key_levels.flow_price(name), weight, True) for anchor, name, weight in _FLOW_SOURCES
        )

    for anchor, price, weight, is_gamma in sources:
        if price is None:
            continue
        offset = (price - current_price) * sign
        pct = abs(price - current_price) / current_price * 100.0
        reasons = ANCHOR_REASONS[anchor]
        if offset < 0 and pct <= STOP_SEARCH_PCT:
            stops.append(_Candidate(anchor, price, reasons["stop"], weight, is_gamma))
        elif offset > 0 and pct <= TARGET_SEARCH_PCT:
            targets.append(_Candidate(anchor, price, reasons["target"], weight, is_gamma))

    def rank(candidates: List[_Candidate]) -> List[_Candidate]:
        return sorted(candidates, key=lambda cand: (-cand.weight, abs(cand.price - current_price)))

    return rank(stops), rank(targets)


def score_plan_quality(stop: PlanAnchor, targets: Sequence[TargetAnchor]) -> Tuple[int, str]:
    score = 50
    if not stop.is_fallback:
        score += 20
    score += sum(10 for target in targets if not target.is_fallback)
    if stop.is_gamma:
        score += 10
    score += sum(5 for target in targets if target.is_gamma)
    if stop.is_fallback and all(target.is_fallback for target in targets):
        score -= 20
    score = min(100, max(0, score))
    if score >= 70:
        return score, "strong"
    if score >= 50:
        return score, "moderate"
    return score, "weak"


def select_plan_anchors(
    key_levels: KeyLevels,
    current_underlying_price: float,
    direction: Direction,
    *,
    current_option_premium: float = 0.0,
    delta: Optional[float] = None,
    gamma: float = 0.0,
    atr: Optional[float] = 0.0,
    trade_type: TradeType = TradeType.DAY,
    tp_percent: float = 50.0,
    sl_percent: float = 20.0,
) -> TradePlanAnchors:
    """Select one stop and up to three targets, each with its rationale."""

    trade_type = TradeType(trade_type)
    reference = usable_price(current_underlying_price)
    current = reference or 0.0
    premium = usable_price(current_option_premium)
    # Without a reference price only the percent tier can place anchors.
    atr_value = usable_price(atr) if reference is not None else None
    if delta is None:
        delta = 0.5 if direction == "long" else -0.5
    sign = 1.0 if direction == "long" else -1.0

    def premium_at(price: float) -> Optional[float]:
        if premium is None:
            return None
        return max(0.0, map_underlying_move_to_premium(price - current, premium, delta, gamma or 0.0, trade_type))

    def premium_scaled(percent: float) -> Optional[float]:
        return premium * (1 + percent / 100.0) if premium is not None else None

    stop_candidates, target_candidates = build_anchor_candidates(key_levels, current, direction)
    warnings: List[str] = []
    reasons: List[str] = []

    if stop_candidates:
        best = stop_candidates[0]
        stop = PlanAnchor(
            type=best.type,
            price=best.price,
            reason=best.reason,
            underlying_price=best.price,
            premium_price=premium_at(best.price),
            distance_percent=_distance_percent(best.price, current),
            is_fallback=False,
            is_gamma=best.is_gamma,
        )
        reasons.append(f"Stop anchored to {best.type.value}" + (" (gamma-based)" if best.is_gamma else ""))
    elif atr_value is not None:
        multiplier = _ATR_STOP_MULTIPLIER[trade_type]
        stop_price = max(0.0, current - sign * atr_value * multiplier)
        stop = PlanAnchor(
            type=AnchorType.ATR_FALLBACK,
            price=stop_price,
            reason=f"{multiplier:g}x ATR stop (no structural level found)",
            underlying_price=stop_price,
            premium_price=premium_at(stop_price),
            distance_percent=_distance_percent(stop_price, current),
            is_fallback=True,
        )
        warnings.append("No structural stop level found - using ATR fallback")
        reasons.append("Stop based on ATR (volatility-adjusted)")
        record_fallback("stop", "atr")
    else:
        move = percent_to_underlying_move(current, premium or 0.0, delta, sl_percent)
        stop_price = max(0.0, current - sign * move)
        stop = PlanAnchor(
            type=AnchorType.PERCENT_FALLBACK,
            price=stop_price,
            reason=f"{sl_percent:g}% option stop (no levels or ATR available)",
            underlying_price=stop_price,
            premium_price=premium_scaled(-sl_percent),
            distance_percent=_distance_percent(stop_price, current),
            is_fallback=True,
        )
        warnings.append("No structural levels or ATR - using percent-based fallback")
        reasons.append("Stop based on default risk percentage")
        record_fallback("stop", "percent")

    targets: List[TargetAnchor] = []
    if target_candidates:
        for label, candidate in zip(TARGET_LABELS, target_candidates):
            targets.append(
                TargetAnchor(
                    label=label,
                    type=candidate.type,
                    price=candidate.price,
                    reason=candidate.reason,
                    underlying_price=candidate.price,
                    premium_price=premium_at(candidate.price),
                    distance_percent=_distance_percent(candidate.price, current),
                    is_fallback=False,
                    is_gamma=candidate.is_gamma,
                )
            )
        if any(candidate.is_gamma for candidate in target_candidates):
            reasons.append("Targets include gamma-based levels")
        reasons.append(f"{len(targets)} structural target(s) identified")
    elif atr_value is not None:
        for label, multiple in zip(TARGET_LABELS, _ATR_TARGET_MULTIPLES[trade_type]):
            target_price = max(0.0, current + sign * atr_value * multiple)
            targets.append(
                TargetAnchor(
                    label=label,
                    type=AnchorType.ATR_FALLBACK,
                    price=target_price,
                    reason=f"{multiple:g}x ATR target",
                    underlying_price=target_price,
                    premium_price=premium_at(target_price),
                    distance_percent=_distance_percent(target_price, current),
                    is_fallback=True,
                )
            )
        warnings.append("No structural targets - using ATR-based levels")
        reasons.append("Targets based on ATR multiples")
        record_fallback("target", "atr")
    else:
        for label, pct in zip(TARGET_LABELS, (tp_percent, tp_percent * 1.5)):
            move = percent_to_underlying_move(current, premium or 0.0, delta, pct)
            target_price = max(0.0, current + sign * move)
            targets.append(
                TargetAnchor(
                    label=label,
                    type=AnchorType.PERCENT_FALLBACK,
                    price=target_price,
                    reason=f"{pct:.0f}% option target",
                    underlying_price=target_price,
                    premium_price=premium_scaled(pct),
                    distance_percent=_distance_percent(target_price, current),
                    is_fallback=True,
                )
            )
        warnings.append("Using percent-based targets (no structural levels)")
        reasons.append("Targets based on default reward percentages")
        record_fallback("target", "percent")

    score, level = score_plan_quality(stop, targets)
    logger.debug(
        "selected plan anchors",
        extra={
            "direction": direction,
            "trade_type": trade_type.value,
            "stop_type": stop.type.value,
            "targets": [target.type.value for target in targets],
            "quality": score,
        },
    )
    return TradePlanAnchors(
        stop_anchor=stop,
        targets=tuple(targets),
        plan_quality=PlanQuality(score=score, level=level, warnings=tuple(warnings), reasons=tuple(reasons)),
        direction=direction,
        current_underlying_price=current,
        trade_type=trade_type,
    )


__all__ = [
    "ANCHOR_REASONS",
    "TARGET_LABELS",
    "build_anchor_candidates",
    "format_anchor_type",
    "score_plan_quality",
    "select_plan_anchors",
    "short_anchor_label",
]
