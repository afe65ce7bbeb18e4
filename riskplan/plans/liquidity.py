"""Option contract liquidity grading from a bid/ask/volume/OI quote."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Tuple

from ..schemas import LiquidityQuality, OptionQuote

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LiquidityThresholds:
    max_spread_percent: float = 15.0
    min_volume: float = 30.0
    min_open_interest: float = 50.0


@dataclass(frozen=True)
class LiquidityMetrics:
    quality: LiquidityQuality
    spread: float
    spread_percent: float
    volume: float
    open_interest: float
    warnings: Tuple[str, ...] = ()


DEFAULT_LIQUIDITY_THRESHOLDS = LiquidityThresholds()


def _grade(spread_percent: float, volume: float, open_interest: float) -> LiquidityQuality:
    if spread_percent <= 1 and volume >= 1000 and open_interest >= 5000:
        return "excellent"
    if spread_percent <= 3 and volume >= 1000 and open_interest >= 2000:
        return "good"
    if spread_percent > 5 or volume < 100 or open_interest < 100:
        return "poor"
    return "fair"


def evaluate_liquidity(
    quote: OptionQuote, thresholds: LiquidityThresholds = DEFAULT_LIQUIDITY_THRESHOLDS
) -> LiquidityMetrics:
    """Grade ``quote`` and list every threshold it misses.

    A one-sided or empty book is treated as a 100% spread.  Breaching any of
    the caller thresholds forces the grade to ``poor``.
    """

    bid = max(quote.bid, 0.0)
    ask = max(quote.ask, 0.0)
    volume = max(quote.volume, 0.0)
    open_interest = max(quote.open_interest, 0.0)

    two_sided = bid > 0 and ask > 0
    mid = (bid + ask) / 2 if two_sided else 0.0
    spread = ask - bid if two_sided else 0.0
    spread_percent = spread / mid * 100 if mid > 0 else 100.0

    warnings = []
    if spread_percent > 5:
        warnings.append("Wide spread (>5%)")
    if volume < 1000:
        warnings.append("Low volume (<1000)")
    if open_interest < 1000:
        warnings.append("Low open interest (<1000)")

    quality = _grade(spread_percent, volume, open_interest)
    if spread_percent > thresholds.max_spread_percent:
        warnings.append(f"Spread above threshold ({thresholds.max_spread_percent:g}%)")
        quality = "poor"
    if volume < thresholds.min_volume:
        warnings.append(f"Volume below threshold ({thresholds.min_volume:g})")
        quality = "poor"
    if open_interest < thresholds.min_open_interest:
        warnings.append(f"Open interest below threshold ({thresholds.min_open_interest:g})")
        quality = "poor"

    if quality == "poor":
        logger.warning("poor option liquidity", extra={"spread_percent": spread_percent, "warnings": warnings})
    return LiquidityMetrics(
        quality=quality,
        spread=spread,
        spread_percent=spread_percent,
        volume=volume,
        open_interest=open_interest,
        warnings=tuple(warnings),
    )


__all__ = ["DEFAULT_LIQUIDITY_THRESHOLDS", "LiquidityMetrics", "LiquidityThresholds", "evaluate_liquidity"]
