"""Multi-factor confidence grade for a computed plan.

Four factors contribute up to 25 points each:

* data quality: key level coverage, ATR availability and data freshness
* market conditions: contract liquidity plus IV, flow and gamma coverage
* technical alignment: confluence score and a known trade type
* risk/reward: the plan's R:R and how many structural levels anchor it

Every check appends a line to ``reasoning`` prefixed with ``✓`` (full
credit), ``~`` (partial) or ``✗`` (none).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Literal, Mapping, Optional, Tuple

from ..plans.projection import is_atr_reason
from ..schemas import (
    ConfidenceTier,
    LiquidityQuality,
    RiskCalculationInput,
    RiskCalculationResult,
    TradeType,
    usable_price,
)
from ..telemetry import CONFIDENCE_GRADE_TOTAL

logger = logging.getLogger(__name__)

HIGH_GRADE_MIN = 85
MEDIUM_GRADE_MIN = 60

_LIQUIDITY_POINTS: Mapping[str, int] = {"excellent": 10, "good": 8, "fair": 5, "poor": 2}
_UNKNOWN_LIQUIDITY_POINTS = 3


@dataclass(frozen=True)
class ConfidenceContext:
    key_level_count: int = 0
    has_atr: bool = False
    data_age_seconds: Optional[float] = None
    liquidity_quality: Optional[LiquidityQuality] = None
    has_iv_data: bool = False
    has_flow_data: bool = False
    has_gamma_data: bool = False
    confluence_score: Optional[float] = None
    trade_type: Optional[TradeType] = None
    risk_reward_ratio: Optional[float] = None
    structural_levels_used: int = 0


@dataclass(frozen=True)
class ConfidenceBreakdown:
    data_quality: int
    market_conditions: int
    technical_alignment: int
    risk_reward: int


@dataclass(frozen=True)
class ConfidenceGrade:
    score: int
    grade: ConfidenceTier
    breakdown: ConfidenceBreakdown
    reasoning: Tuple[str, ...]


Mark = Literal["✓", "~", "✗"]


def _note(reasoning: List[str], mark: Mark, text: str) -> None:
    reasoning.append(f"{mark} {text}")


def _data_quality(ctx: ConfidenceContext, reasoning: List[str]) -> int:
    points = 0
    count = ctx.key_level_count
    if count >= 8:
        points += 10
        _note(reasoning, "✓", f"{count} key levels available")
    elif count >= 4:
        points += 7
        _note(reasoning, "~", f"{count} key levels available")
    elif count >= 1:
        points += 4
        _note(reasoning, "~", f"Only {count} key level(s) available")
    else:
        _note(reasoning, "✗", "No key levels available")

    if ctx.has_atr:
        points += 7
        _note(reasoning, "✓", "ATR available")
    else:
        _note(reasoning, "✗", "ATR missing")

    age = ctx.data_age_seconds
    if age is not None and age < 10:
        points += 8
        _note(reasoning, "✓", f"Data is fresh ({age:.0f}s old)")
    elif age is not None and age < 60:
        points += 4
        _note(reasoning, "~", f"Data is {age:.0f}s old")
    else:
        _note(reasoning, "✗", "Data is stale or age unknown")
    return points


def _market_conditions(ctx: ConfidenceContext, reasoning: List[str]) -> int:
    if ctx.liquidity_quality is None:
        points = _UNKNOWN_LIQUIDITY_POINTS
        _note(reasoning, "~", "Liquidity unknown")
    else:
        points = _LIQUIDITY_POINTS[ctx.liquidity_quality]
        mark: Mark = "✓" if ctx.liquidity_quality in ("excellent", "good") else (
            "~" if ctx.liquidity_quality == "fair" else "✗"
        )
        _note(reasoning, mark, f"Liquidity {ctx.liquidity_quality}")

    for present, label in (
        (ctx.has_iv_data, "IV data"),
        (ctx.has_flow_data, "Options flow data"),
        (ctx.has_gamma_data, "Gamma data"),
    ):
        if present:
            points += 5
            _note(reasoning, "✓", f"{label} available")
        else:
            _note(reasoning, "✗", f"{label} missing")
    return points


def _technical_alignment(ctx: ConfidenceContext, reasoning: List[str]) -> int:
    score = ctx.confluence_score
    if score is not None and score >= 80:
        points = 20
        _note(reasoning, "✓", f"Strong confluence ({score:.0f})")
    elif score is not None and score >= 60:
        points = 15
        _note(reasoning, "✓", f"Good confluence ({score:.0f})")
    elif score is not None and score >= 40:
        points = 10
        _note(reasoning, "~", f"Moderate confluence ({score:.0f})")
    else:
        points = 5
        label = f"Weak confluence ({score:.0f})" if score is not None else "Confluence unknown"
        _note(reasoning, "✗", label)

    if ctx.trade_type is not None:
        points += 5
        _note(reasoning, "✓", f"Trade type {TradeType(ctx.trade_type).value}")
    else:
        _note(reasoning, "✗", "Trade type unknown")
    return points


def _risk_reward(ctx: ConfidenceContext, reasoning: List[str]) -> int:
    ratio = ctx.risk_reward_ratio or 0.0
    if ratio >= 3:
        points = 20
        _note(reasoning, "✓", f"Excellent R:R ({ratio:.2f})")
    elif ratio >= 2:
        points = 15
        _note(reasoning, "✓", f"Good R:R ({ratio:.2f})")
    elif ratio >= 1.5:
        points = 10
        _note(reasoning, "~", f"Acceptable R:R ({ratio:.2f})")
    elif ratio >= 1:
        points = 5
        _note(reasoning, "~", f"Marginal R:R ({ratio:.2f})")
    else:
        points = 0
        _note(reasoning, "✗", f"Poor R:R ({ratio:.2f})")

    if ctx.structural_levels_used >= 2:
        points += 5
        _note(reasoning, "✓", f"{ctx.structural_levels_used} structural levels anchor the plan")
    else:
        _note(reasoning, "✗", "Fewer than two structural levels used")
    return points


def grade_for_score(score: int) -> ConfidenceTier:
    if score >= HIGH_GRADE_MIN:
        return "high"
    if score >= MEDIUM_GRADE_MIN:
        return "medium"
    return "low"


def grade_confidence(ctx: ConfidenceContext) -> ConfidenceGrade:
    reasoning: List[str] = []
    breakdown = ConfidenceBreakdown(
        data_quality=_data_quality(ctx, reasoning),
        market_conditions=_market_conditions(ctx, reasoning),
        technical_alignment=_technical_alignment(ctx, reasoning),
        risk_reward=_risk_reward(ctx, reasoning),
    )
    score = min(
        100,
        breakdown.data_quality + breakdown.market_conditions + breakdown.technical_alignment + breakdown.risk_reward,
    )
    grade = grade_for_score(score)
    CONFIDENCE_GRADE_TOTAL.labels(grade=grade).inc()
    logger.debug("confidence graded", extra={"score": score, "grade": grade})
    return ConfidenceGrade(score=score, grade=grade, breakdown=breakdown, reasoning=tuple(reasoning))


def confidence_context_from_plan(
    input: RiskCalculationInput,
    result: RiskCalculationResult,
    *,
    data_age_seconds: Optional[float] = None,
    has_iv_data: bool = False,
) -> ConfidenceContext:
    """Derive a grading context from a calculator run."""

    levels = input.key_levels
    flow = levels.options_flow
    has_gamma = bool(input.gamma) or levels.flow_price("gamma_wall") is not None
    structural = [name for name in result.used_levels if name != "percent" and not is_atr_reason(name)]
    return ConfidenceContext(
        key_level_count=levels.available_count(),
        has_atr=usable_price(input.atr) is not None,
        data_age_seconds=data_age_seconds,
        liquidity_quality=result.liquidity_quality,
        has_iv_data=has_iv_data,
        has_flow_data=flow is not None,
        has_gamma_data=has_gamma,
        confluence_score=input.confluence_score,
        trade_type=result.trade_type,
        risk_reward_ratio=result.risk_reward_ratio,
        structural_levels_used=len(structural),
    )


__all__ = [
    "ConfidenceBreakdown",
    "ConfidenceContext",
    "ConfidenceGrade",
    "HIGH_GRADE_MIN",
    "MEDIUM_GRADE_MIN",
    "confidence_context_from_plan",
    "grade_confidence",
    "grade_for_score",
]
