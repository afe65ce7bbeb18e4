"""Rank key levels into target and stop candidates for a risk profile."""

from __future__ import annotations

import logging
from typing import List, Mapping, Optional, Tuple

from ..config import ATR_SL_WEIGHT, ATR_TP_PRIMARY_WEIGHT, ATR_TP_SECONDARY_WEIGHT
from ..schemas import Direction, KeyLevels, usable_price
from ..telemetry import record_candidates
from .models import LevelCandidate, ProjectedCandidates, RiskProfile

logger = logging.getLogger(__name__)

# Profile level name -> (field used for long, field used for short).
LEVEL_FIELDS: Mapping[str, Tuple[str, str]] = {
    "PremarketHL": ("pre_market_high", "pre_market_low"),
    "ORB": ("orb_high", "orb_low"),
    "VWAP": ("vwap", "vwap"),
    "VWAPBands": ("vwap_upper_band", "vwap_lower_band"),
    "PrevDayHL": ("prior_day_high", "prior_day_low"),
    "WeeklyHL": ("prior_week_high", "prior_week_low"),
    "MonthlyHL": ("prior_month_high", "prior_month_low"),
    "QuarterlyHL": ("prior_quarter_high", "prior_quarter_low"),
    "YearlyHL": ("prior_year_high", "prior_year_low"),
    "Boll20": ("bollinger_upper", "bollinger_lower"),
}


def atr_reason(fraction: float) -> str:
    return f"ATR ({fraction:g}x)"


def is_atr_reason(reason: str) -> bool:
    return reason.startswith("ATR")


def resolve_level(key_levels: KeyLevels, level_name: str, direction: Direction) -> Optional[float]:
    fields = LEVEL_FIELDS.get(level_name)
    if fields is None:
        return None
    return key_levels.price(fields[0] if direction == "long" else fields[1])


def _rank(candidates: List[LevelCandidate]) -> Tuple[LevelCandidate, ...]:
    return tuple(sorted(candidates, key=lambda cand: (-cand.weight, cand.distance)))


def project_levels(
    reference: float,
    direction: Direction,
    key_levels: KeyLevels,
    profile: RiskProfile,
    atr: Optional[float],
) -> ProjectedCandidates:
    """Classify the profile's eligible levels around ``reference``.

    A level on the profitable side within ``ATR * tp_atr_frac[1]`` becomes a
    target candidate; one on the risk side within ``ATR * sl_atr_frac`` becomes
    a stop candidate.  ATR-multiple candidates are always appended when an ATR
    is available.  Without a usable ATR the budgets are not enforced and no
    synthetic candidates are produced.
    """

    ref = usable_price(reference)
    if ref is None:
        return ProjectedCandidates()
    atr_value = usable_price(atr)
    sign = 1.0 if direction == "long" else -1.0

    tp_budget = atr_value * profile.tp_atr_frac[1] if atr_value is not None else None
    sl_budget = atr_value * profile.sl_atr_frac if atr_value is not None else None

    targets: List[LevelCandidate] = []
    stops: List[LevelCandidate] = []
    for level_name in profile.use_levels:
        price = resolve_level(key_levels, level_name, direction)
        if price is None:
            continue
        distance = abs(price - ref)
        candidate = LevelCandidate(
            price=price,
            reason=level_name,
            weight=profile.weight_for(level_name),
            distance=distance,
        )
        offset = (price - ref) * sign
        if offset > 0 and (tp_budget is None or distance <= tp_budget):
            targets.append(candidate)
        elif offset < 0 and (sl_budget is None or distance <= sl_budget):
            stops.append(candidate)

    if atr_value is not None:
        near, far = profile.tp_atr_frac
        for fraction, weight in ((near, ATR_TP_PRIMARY_WEIGHT), (far, ATR_TP_SECONDARY_WEIGHT)):
            distance = atr_value * fraction
            targets.append(
                LevelCandidate(price=ref + sign * distance, reason=atr_reason(fraction), weight=weight, distance=distance)
            )
        distance = atr_value * profile.sl_atr_frac
        stops.append(
            LevelCandidate(
                price=ref - sign * distance,
                reason=atr_reason(profile.sl_atr_frac),
                weight=ATR_SL_WEIGHT,
                distance=distance,
            )
        )

    projected = ProjectedCandidates(tp_candidates=_rank(targets), sl_candidates=_rank(stops))
    record_candidates("target", len(projected.tp_candidates))
    record_candidates("stop", len(projected.sl_candidates))
    logger.debug(
        "projected level candidates",
        extra={
            "trade_type": profile.trade_type.value,
            "direction": direction,
            "targets": len(projected.tp_candidates),
            "stops": len(projected.sl_candidates),
        },
    )
    return projected


__all__ = ["LEVEL_FIELDS", "atr_reason", "is_atr_reason", "project_levels", "resolve_level"]
