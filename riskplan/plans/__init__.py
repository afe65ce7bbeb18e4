"""Risk planning: classification, profiles, candidate projection and anchors."""

from .models import LevelCandidate, PlanAnchor, PlanQuality, ProjectedCandidates, RiskProfile, TargetAnchor, TradePlanAnchors
from .classifier import DEFAULT_DTE_THRESHOLDS, LEGACY_DTE_THRESHOLDS, compute_dte, infer_trade_type, resolve_trade_type
from .profiles import RISK_PROFILES, adjust_profile_by_confluence, get_risk_profile
from .projection import project_levels
from .premium import map_underlying_move_to_premium, underlying_from_premium
from .anchors import ANCHOR_REASONS, format_anchor_type, select_plan_anchors, short_anchor_label
from .liquidity import LiquidityMetrics, LiquidityThresholds, evaluate_liquidity
from .calculator import build_trade_plan, calculate_breakeven_stop, calculate_risk, calculate_trailing_stop
from .level_stops import calculate_level_aware_stop, calculate_level_aware_targets, validate_stop_placement
from .take_profit import TakeProfitInput, TakeProfitResult, calculate_take_profit

__all__ = [
    "LevelCandidate",
    "PlanAnchor",
    "PlanQuality",
    "ProjectedCandidates",
    "RiskProfile",
    "TargetAnchor",
    "TradePlanAnchors",
    "DEFAULT_DTE_THRESHOLDS",
    "LEGACY_DTE_THRESHOLDS",
    "compute_dte",
    "infer_trade_type",
    "resolve_trade_type",
    "RISK_PROFILES",
    "adjust_profile_by_confluence",
    "get_risk_profile",
    "project_levels",
    "map_underlying_move_to_premium",
    "underlying_from_premium",
    "ANCHOR_REASONS",
    "format_anchor_type",
    "select_plan_anchors",
    "short_anchor_label",
    "LiquidityMetrics",
    "LiquidityThresholds",
    "evaluate_liquidity",
    "build_trade_plan",
    "calculate_breakeven_stop",
    "calculate_risk",
    "calculate_trailing_stop",
    "calculate_level_aware_stop",
    "calculate_level_aware_targets",
    "validate_stop_placement",
    "TakeProfitInput",
    "TakeProfitResult",
    "calculate_take_profit",
]
