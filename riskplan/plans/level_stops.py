"""Stop placement beyond support/resistance instead of a fixed distance.

Candidate levels on the risk side of the entry are scored on proximity,
strength and recency; the best one is offset by an ATR buffer so the stop
sits just past the level rather than on it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import List, Literal, Mapping, Optional, Sequence, Tuple, Union

from ..schemas import ConfidenceTier, Direction, KeyLevels, TradeType

logger = logging.getLogger(__name__)

LevelStrength = Literal["strong", "moderate", "weak"]

_STRENGTH_SCORES: Mapping[str, int] = MappingProxyType({"strong": 3, "moderate": 2, "weak": 1})


@dataclass(frozen=True)
class StopLevel:
    price: float
    type: str
    strength: LevelStrength
    label: str
    touch_count: Optional[int] = None


@dataclass(frozen=True)
class PreferenceWeights:
    proximity: float = 0.4
    strength: float = 0.4
    recency: float = 0.2


@dataclass(frozen=True)
class LevelStopConfig:
    max_stop_percent: float = 5.0
    min_stop_percent: float = 0.5
    buffer_atr_multiplier: float = 0.1
    fallback_atr_multiplier: float = 1.0
    weights: PreferenceWeights = field(default_factory=PreferenceWeights)


DEFAULT_LEVEL_STOP_CONFIG = LevelStopConfig()

TRADE_TYPE_STOP_OVERRIDES: Mapping[TradeType, Mapping[str, float]] = MappingProxyType(
    {
        TradeType.SCALP: MappingProxyType(
            {"max_stop_percent": 2.0, "min_stop_percent": 0.25, "buffer_atr_multiplier": 0.05, "fallback_atr_multiplier": 0.75}
        ),
        TradeType.DAY: MappingProxyType(
            {"max_stop_percent": 3.5, "min_stop_percent": 0.5, "buffer_atr_multiplier": 0.1, "fallback_atr_multiplier": 1.0}
        ),
        TradeType.SWING: MappingProxyType(
            {"max_stop_percent": 8.0, "min_stop_percent": 1.0, "buffer_atr_multiplier": 0.15, "fallback_atr_multiplier": 1.5}
        ),
        TradeType.LEAP: MappingProxyType(
            {"max_stop_percent": 15.0, "min_stop_percent": 2.0, "buffer_atr_multiplier": 0.2, "fallback_atr_multiplier": 2.0}
        ),
    }
)


@dataclass(frozen=True)
class AlternativeStop:
    price: float
    type: str
    label: str
    distance_percent: float
    reasoning: str


@dataclass(frozen=True)
class LevelStopResult:
    recommended_stop: float
    level_type: str
    level_label: str
    level_strength: LevelStrength
    distance_from_entry: float
    distance_percent: float
    reasoning: str
    confidence: ConfidenceTier
    alternatives: Tuple[AlternativeStop, ...] = ()
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class StopValidation:
    is_valid: bool
    issues: Tuple[str, ...] = ()
    suggestions: Tuple[str, ...] = ()


@dataclass(frozen=True)
class LevelTargets:
    t1: float
    t2: float
    t3: float
    reasoning: Tuple[str, ...] = ()


# (KeyLevels field, level type, strength, label)
_LEVEL_SOURCES: Tuple[Tuple[str, str, LevelStrength, str], ...] = (
    ("prior_day_high", "PriorDayHL", "strong", "Prior Day High"),
    ("prior_day_low", "PriorDayHL", "strong", "Prior Day Low"),
    ("prior_week_high", "WeekHL", "strong", "Weekly High"),
    ("prior_week_low", "WeekHL", "strong", "Weekly Low"),
    ("prior_month_high", "MonthHL", "strong", "Monthly High"),
    ("prior_month_low", "MonthHL", "strong", "Monthly Low"),
    ("orb_high", "ORB", "moderate", "ORB High"),
    ("orb_low", "ORB", "moderate", "ORB Low"),
    ("vwap", "VWAP", "moderate", "VWAP"),
    ("vwap_upper_band", "VWAP", "weak", "VWAP +1σ"),
    ("vwap_lower_band", "VWAP", "weak", "VWAP -1σ"),
    ("bollinger_upper", "Bollinger", "weak", "BB Upper"),
    ("bollinger_lower", "Bollinger", "weak", "BB Lower"),
    ("pre_market_high", "ORB", "moderate", "PM High"),
    ("pre_market_low", "ORB", "moderate", "PM Low"),
)

LevelsArg = Union[KeyLevels, Sequence[StopLevel]]


def extract_key_level_list(key_levels: KeyLevels) -> List[StopLevel]:
    """Flatten the usable fields of ``key_levels`` into tagged stop levels."""

    levels = []
    for name, level_type, strength, label in _LEVEL_SOURCES:
        price = key_levels.price(name)
        if price is not None:
            levels.append(StopLevel(price=price, type=level_type, strength=strength, label=label))
    return levels


def effective_config(trade_type: TradeType, config: LevelStopConfig = DEFAULT_LEVEL_STOP_CONFIG) -> LevelStopConfig:
    overrides = TRADE_TYPE_STOP_OVERRIDES.get(TradeType(trade_type), {})
    return replace(config, **overrides)


def _as_levels(key_levels: LevelsArg) -> List[StopLevel]:
    if isinstance(key_levels, KeyLevels):
        return extract_key_level_list(key_levels)
    return list(key_levels)


def _score(level: StopLevel, distance_percent: float, config: LevelStopConfig) -> float:
    proximity = (1 - distance_percent / config.max_stop_percent) * 100
    strength = _STRENGTH_SCORES[level.strength] * 33.33
    recency = min(100, (level.touch_count or 1) * 20)
    weights = config.weights
    return proximity * weights.proximity + strength * weights.strength + recency * weights.recency


def _iv_multiplier(iv_percentile: Optional[float]) -> Tuple[float, str]:
    if iv_percentile is None:
        return 1.0, ""
    if iv_percentile > 80:
        return 1.2, " (High IV: widened 20%)"
    if iv_percentile < 20:
        return 0.9, " (Low IV: tightened 10%)"
    return 1.0, ""


def calculate_level_aware_stop(
    entry_price: float,
    direction: Direction,
    key_levels: LevelsArg,
    atr: float,
    trade_type: TradeType = TradeType.DAY,
    config: LevelStopConfig = DEFAULT_LEVEL_STOP_CONFIG,
    iv_percentile: Optional[float] = None,
) -> LevelStopResult:
    """Place a stop just beyond the best-scoring level on the risk side.

    Falls back to an ATR-multiple stop when no level lies within
    ``max_stop_percent`` of the entry.
    """

    cfg = effective_config(trade_type, config)
    sign = 1.0 if direction == "long" else -1.0
    atr = max(atr or 0.0, 0.0)
    warnings: List[str] = []

    scored = []
    if entry_price > 0:
        for level in _as_levels(key_levels):
            if (entry_price - level.price) * sign <= 0:
                continue
            distance_percent = abs(entry_price - level.price) / entry_price * 100
            if distance_percent <= cfg.max_stop_percent:
                scored.append((_score(level, distance_percent, cfg), level))

    if not scored:
        stop = entry_price - sign * atr * cfg.fallback_atr_multiplier
        distance = abs(entry_price - stop)
        warnings.append("No key levels found within range, using ATR-based stop")
        return LevelStopResult(
            recommended_stop=stop,
            level_type="ATR",
            level_label=f"{cfg.fallback_atr_multiplier:g}x ATR",
            level_strength="weak",
            distance_from_entry=distance,
            distance_percent=distance / entry_price * 100 if entry_price > 0 else 0.0,
            reasoning=f"No suitable key levels found. Using {cfg.fallback_atr_multiplier:g}x ATR stop.",
            confidence="low",
            warnings=tuple(warnings),
        )

    # Stable sort keeps extraction order among equal scores.
    scored.sort(key=lambda item: item[0], reverse=True)
    primary = scored[0][1]

    iv_mult, iv_note = _iv_multiplier(iv_percentile)
    buffer = atr * cfg.buffer_atr_multiplier * iv_mult
    stop = primary.price - sign * buffer
    distance = abs(entry_price - stop)
    distance_percent = distance / entry_price * 100

    if distance_percent < cfg.min_stop_percent:
        warnings.append(f"Stop too tight ({distance_percent:.2f}%), consider wider placement")

    side = "Below" if direction == "long" else "Above"
    alternatives = []
    for _, level in scored[1:4]:
        alt_price = level.price - sign * buffer
        alternatives.append(
            AlternativeStop(
                price=alt_price,
                type=level.type,
                label=level.label,
                distance_percent=abs(entry_price - alt_price) / entry_price * 100,
                reasoning=f"{side} {level.label} ({level.strength})",
            )
        )

    if primary.strength == "strong" and distance_percent <= 3:
        confidence: ConfidenceTier = "high"
    elif primary.strength != "weak" or distance_percent <= 2:
        confidence = "medium"
    else:
        confidence = "low"

    logger.debug(
        "level-aware stop selected",
        extra={"level": primary.label, "stop": stop, "distance_percent": distance_percent},
    )
    return LevelStopResult(
        recommended_stop=stop,
        level_type=primary.type,
        level_label=primary.label,
        level_strength=primary.strength,
        distance_from_entry=distance,
        distance_percent=distance_percent,
        reasoning=(
            f"Stop placed {buffer:.2f} {side.lower()} {primary.label} ({primary.strength}) "
            f"at {primary.price:.2f}{iv_note}"
        ),
        confidence=confidence,
        alternatives=tuple(alternatives),
        warnings=tuple(warnings),
    )


def calculate_level_aware_targets(
    entry_price: float,
    direction: Direction,
    key_levels: LevelsArg,
    stop_distance: float,
) -> LevelTargets:
    """Pick targets near 1R, 2R and 3R, preferring real levels within tolerance."""

    sign = 1.0 if direction == "long" else -1.0
    candidates = sorted(
        (level for level in _as_levels(key_levels) if (level.price - entry_price) * sign > 0),
        key=lambda level: abs(level.price - entry_price),
    )

    def r_multiple(level: StopLevel) -> float:
        return abs(level.price - entry_price) / stop_distance if stop_distance > 0 else 0.0

    def nearest(target_r: float, tolerance: float) -> Optional[StopLevel]:
        for level in candidates:
            if target_r - tolerance <= r_multiple(level) <= target_r + tolerance:
                return level
        return None

    reasoning: List[str] = []
    level = nearest(1.0, 0.5)
    if level is not None:
        t1 = level.price
        reasoning.append(f"T1 at {level.label} ({r_multiple(level):.1f}R)")
    elif candidates:
        t1 = candidates[0].price
        reasoning.append(f"T1 at first level: {candidates[0].label}")
    else:
        t1 = entry_price + sign * stop_distance
        reasoning.append("T1 at 1R (no levels found)")

    prices = [t1]
    for index, (target_r, tolerance) in enumerate(((2.0, 0.75), (3.0, 1.0)), start=2):
        level = nearest(target_r, tolerance)
        if level is not None:
            prices.append(level.price)
            reasoning.append(f"T{index} at {level.label} ({r_multiple(level):.1f}R)")
        else:
            prices.append(entry_price + sign * stop_distance * target_r)
            reasoning.append(f"T{index} at {target_r:g}R (no suitable level)")

    return LevelTargets(t1=prices[0], t2=prices[1], t3=prices[2], reasoning=tuple(reasoning))


def validate_stop_placement(
    proposed_stop: float,
    entry_price: float,
    direction: Direction,
    key_levels: LevelsArg,
    atr: float,
) -> StopValidation:
    """Check a user-proposed stop for side, distance and level placement."""

    levels = _as_levels(key_levels)
    issues: List[str] = []
    suggestions: List[str] = []

    if direction == "long" and proposed_stop >= entry_price:
        issues.append("Stop must be below entry for long trades")
    if direction == "short" and proposed_stop <= entry_price:
        issues.append("Stop must be above entry for short trades")

    distance_percent = abs(proposed_stop - entry_price) / entry_price * 100 if entry_price > 0 else 0.0
    if distance_percent < 0.25:
        issues.append(f"Stop too tight ({distance_percent:.2f}%)")
        suggestions.append("Consider widening stop to avoid noise stop-outs")
    if distance_percent > 10:
        issues.append(f"Stop too wide ({distance_percent:.2f}%)")
        suggestions.append("Consider tighter stop or different trade type")

    near_level = any(abs(level.price - proposed_stop) < atr * 0.5 for level in levels)
    if levels and not near_level:
        suggestions.append("Stop is not near any key level - consider adjusting to a technical level")

    if direction == "long":
        crosses = any(proposed_stop > level.price and level.price < entry_price for level in levels)
    else:
        crosses = any(proposed_stop < level.price and level.price > entry_price for level in levels)
    if crosses:
        issues.append("Stop is above a support level (long) or below resistance (short)")
        suggestions.append("Place stop BEYOND the key level, not above it")

    return StopValidation(is_valid=not issues, issues=tuple(issues), suggestions=tuple(suggestions))


__all__ = [
    "AlternativeStop",
    "DEFAULT_LEVEL_STOP_CONFIG",
    "LevelStopConfig",
    "LevelStopResult",
    "LevelTargets",
    "PreferenceWeights",
    "StopLevel",
    "StopValidation",
    "TRADE_TYPE_STOP_OVERRIDES",
    "calculate_level_aware_stop",
    "calculate_level_aware_targets",
    "effective_config",
    "extract_key_level_list",
    "validate_stop_placement",
]
