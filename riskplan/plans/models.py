"""Value types shared by projection, anchor selection and the calculator."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from typing import Literal, Mapping, Optional, Tuple

from ..schemas import AnchorType, Direction, TradeType

QualityLevel = Literal["weak", "moderate", "strong"]
TargetLabel = Literal["TP1", "TP2", "TP3"]


@dataclass(frozen=True)
class RiskProfile:
    """Per trade-type analysis and budget parameters."""

    trade_type: TradeType
    tf_primary: str
    tf_secondary: str
    atr_tf: str
    atr_len: int
    vwap_mode: str
    use_levels: Tuple[str, ...]
    level_weights: Mapping[str, float]
    tp_atr_frac: Tuple[float, float]
    sl_atr_frac: float
    trail_step: float
    eod_cutoff: Optional[time] = None

    def weight_for(self, level_name: str) -> float:
        return float(self.level_weights.get(level_name, 0.5))


@dataclass(frozen=True)
class LevelCandidate:
    price: float
    reason: str
    weight: float
    distance: float


@dataclass(frozen=True)
class ProjectedCandidates:
    tp_candidates: Tuple[LevelCandidate, ...] = ()
    sl_candidates: Tuple[LevelCandidate, ...] = ()


@dataclass(frozen=True)
class PlanAnchor:
    type: AnchorType
    price: float
    reason: str
    underlying_price: Optional[float] = None
    premium_price: Optional[float] = None
    distance_percent: Optional[float] = None
    is_fallback: bool = False
    is_gamma: bool = False


@dataclass(frozen=True)
class TargetAnchor(PlanAnchor):
    label: TargetLabel = "TP1"


@dataclass(frozen=True)
class PlanQuality:
    score: int
    level: QualityLevel
    warnings: Tuple[str, ...] = ()
    reasons: Tuple[str, ...] = ()


@dataclass(frozen=True)
class TradePlanAnchors:
    stop_anchor: PlanAnchor
    targets: Tuple[TargetAnchor, ...]
    plan_quality: PlanQuality
    direction: Direction
    current_underlying_price: float
    trade_type: TradeType


__all__ = [
    "LevelCandidate",
    "PlanAnchor",
    "PlanQuality",
    "ProjectedCandidates",
    "QualityLevel",
    "RiskProfile",
    "TargetAnchor",
    "TargetLabel",
    "TradePlanAnchors",
]
