"""Static risk profiles keyed by trade type, plus confluence reweighting."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import time
from types import MappingProxyType
from typing import Mapping, Optional

from ..schemas import TradeType
from .models import RiskProfile

logger = logging.getLogger(__name__)

STRONG_CONFLUENCE = 70.0
WEAK_CONFLUENCE = 40.0


def _profile(trade_type: TradeType, weights: Mapping[str, float], **params) -> RiskProfile:
    return RiskProfile(
        trade_type=trade_type,
        use_levels=tuple(weights),
        level_weights=MappingProxyType(dict(weights)),
        vwap_mode="session",
        **params,
    )


RISK_PROFILES: Mapping[TradeType, RiskProfile] = MappingProxyType(
    {
        TradeType.SCALP: _profile(
            TradeType.SCALP,
            {"VWAP": 1.0, "ORB": 0.9, "PremarketHL": 0.8, "VWAPBands": 0.7, "Boll20": 0.6},
            tf_primary="1m",
            tf_secondary="5m",
            atr_tf="1m",
            atr_len=14,
            tp_atr_frac=(0.25, 0.5),
            sl_atr_frac=0.2,
            trail_step=0.1,
            eod_cutoff=time(15, 55),
        ),
        TradeType.DAY: _profile(
            TradeType.DAY,
            {
                "VWAP": 1.0,
                "ORB": 0.9,
                "PrevDayHL": 0.85,
                "PremarketHL": 0.75,
                "VWAPBands": 0.7,
                "Boll20": 0.6,
            },
            tf_primary="1m",
            tf_secondary="15m",
            atr_tf="5m",
            atr_len=14,
            tp_atr_frac=(0.4, 0.8),
            sl_atr_frac=0.25,
            trail_step=0.15,
            eod_cutoff=time(15, 50),
        ),
        TradeType.SWING: _profile(
            TradeType.SWING,
            {"WeeklyHL": 1.0, "PrevDayHL": 0.85, "MonthlyHL": 0.8, "VWAP": 0.6, "Boll20": 0.6},
            tf_primary="1h",
            tf_secondary="4h",
            atr_tf="1d",
            atr_len=14,
            tp_atr_frac=(1.0, 2.0),
            sl_atr_frac=0.75,
            trail_step=0.35,
        ),
        TradeType.LEAP: _profile(
            TradeType.LEAP,
            {"QuarterlyHL": 1.0, "MonthlyHL": 0.9, "YearlyHL": 0.9, "WeeklyHL": 0.75},
            tf_primary="1d",
            tf_secondary="1w",
            atr_tf="1d",
            atr_len=20,
            tp_atr_frac=(1.5, 3.0),
            sl_atr_frac=1.0,
            trail_step=0.5,
        ),
    }
)


def get_risk_profile(trade_type: TradeType | str | None) -> RiskProfile:
    """Return the registry profile for ``trade_type`` (``DAY`` when unknown)."""

    if trade_type is None:
        return RISK_PROFILES[TradeType.DAY]
    try:
        return RISK_PROFILES[TradeType(trade_type)]
    except ValueError:
        logger.debug("unknown trade type; using DAY profile", extra={"trade_type": str(trade_type)})
        return RISK_PROFILES[TradeType.DAY]


def _scale_weights(weights: Mapping[str, float], factor: float) -> Mapping[str, float]:
    return MappingProxyType({name: min(1.0, max(0.0, value * factor)) for name, value in weights.items()})


def adjust_profile_by_confluence(profile: RiskProfile, confluence: Optional[float]) -> RiskProfile:
    """Return a copy of ``profile`` reweighted for the confluence tier.

    Strong confluence (>= 70) trusts levels more and lets targets run;
    weak confluence (< 40) discounts levels and tightens targets and stop.
    The registry entry passed in is never modified.
    """

    if confluence is None:
        return profile
    if confluence >= STRONG_CONFLUENCE:
        return replace(
            profile,
            level_weights=_scale_weights(profile.level_weights, 1.1),
            tp_atr_frac=(profile.tp_atr_frac[0] * 1.2, profile.tp_atr_frac[1] * 1.2),
        )
    if confluence < WEAK_CONFLUENCE:
        return replace(
            profile,
            level_weights=_scale_weights(profile.level_weights, 0.9),
            tp_atr_frac=(profile.tp_atr_frac[0] * 0.8, profile.tp_atr_frac[1] * 0.8),
            sl_atr_frac=profile.sl_atr_frac * 0.9,
        )
    return profile


__all__ = [
    "RISK_PROFILES",
    "STRONG_CONFLUENCE",
    "WEAK_CONFLUENCE",
    "adjust_profile_by_confluence",
    "get_risk_profile",
]
