"""Resolve a single take-profit price for a position from the best available source.

Priority: user override, risk engine, DTE-based default, then contract mid x 1.5.
"""

from __future__ import annotations

from datetime import date, datetime
from types import MappingProxyType
from typing import Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..schemas import KeyLevels, RiskCalculationInput, RiskCalculationResult, RiskDefaults
from .calculator import calculate_risk
from .classifier import compute_dte

TakeProfitSource = Literal["user_override", "risk_engine", "dte_default", "contract_mid_fallback"]

_ENGINE_CONFIDENCE: Mapping[str, int] = MappingProxyType({"high": 85, "medium": 65, "low": 40})


class ContractRef(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    expiration: datetime | date | str
    strike: float
    bid: float = 0.0
    ask: float = 0.0

    @property
    def mid(self) -> float:
        return (self.bid + self.ask) / 2


class TakeProfitInput(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    entry_price: float
    contract: ContractRef
    user_override: Optional[float] = None
    key_levels: Optional[KeyLevels] = None
    current_underlying_price: Optional[float] = None
    current_option_mid: Optional[float] = None
    atr: Optional[float] = None
    defaults: RiskDefaults = Field(default_factory=RiskDefaults)


class TakeProfitResult(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    target_price: float
    source: TakeProfitSource
    label: str
    confidence: int
    risk_details: Optional[RiskCalculationResult] = None


def has_minimal_risk_data(input: TakeProfitInput) -> bool:
    if input.key_levels is not None and input.key_levels.available_count() >= 2:
        return True
    if input.atr is not None and input.atr > 0:
        return True
    return input.defaults.tp_percent is not None


def dte_default_target(dte: int, entry_price: float, tp_percent: Optional[float] = None) -> float:
    """Entry premium scaled by a DTE tier multiplier, or by ``tp_percent`` when given."""

    if tp_percent:
        return entry_price * (1 + tp_percent / 100)
    if dte == 0:
        multiplier = 1.3
    elif dte < 5:
        multiplier = 1.5
    elif dte < 30:
        multiplier = 2.0
    else:
        multiplier = 2.5
    return entry_price * multiplier


def calculate_take_profit(input: TakeProfitInput, *, now: datetime | None = None) -> TakeProfitResult:
    if input.user_override is not None and input.user_override > 0:
        return TakeProfitResult(
            target_price=input.user_override, source="user_override", label="Adjusted TP", confidence=100
        )

    if has_minimal_risk_data(input):
        risk = calculate_risk(
            RiskCalculationInput(
                entry_price=input.entry_price,
                current_underlying_price=input.current_underlying_price or input.contract.strike,
                current_option_mid=input.current_option_mid or input.contract.mid,
                key_levels=input.key_levels or KeyLevels(),
                atr=input.atr,
                defaults=input.defaults,
                expiration=input.contract.expiration,
            ),
            now=now,
        )
        if risk.target_price > 0 and risk.target_price != input.entry_price:
            return TakeProfitResult(
                target_price=risk.target_price,
                source="risk_engine",
                label="Initial TP",
                confidence=_ENGINE_CONFIDENCE[risk.confidence],
                risk_details=risk,
            )

    dte = compute_dte(input.contract.expiration, now) or 0
    default_target = dte_default_target(dte, input.entry_price, input.defaults.tp_percent)
    if default_target > 0:
        return TakeProfitResult(target_price=default_target, source="dte_default", label="Default TP", confidence=60)

    return TakeProfitResult(
        target_price=input.contract.mid * 1.5,
        source="contract_mid_fallback",
        label="Estimated TP",
        confidence=30,
    )


__all__ = [
    "ContractRef",
    "TakeProfitInput",
    "TakeProfitResult",
    "calculate_take_profit",
    "dte_default_target",
    "has_minimal_risk_data",
]
