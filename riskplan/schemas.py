"""Shared input/output contracts for the risk planning engine."""

from __future__ import annotations

import math
from datetime import date, datetime
from enum import Enum
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

Direction = Literal["long", "short"]
LiquidityQuality = Literal["excellent", "good", "fair", "poor"]
ConfidenceTier = Literal["high", "medium", "low"]


class TradeType(str, Enum):
    SCALP = "SCALP"
    DAY = "DAY"
    SWING = "SWING"
    LEAP = "LEAP"


class AnchorType(str, Enum):
    VWAP = "VWAP"
    ORB_HIGH = "ORB_HIGH"
    ORB_LOW = "ORB_LOW"
    PDH = "PDH"
    PDL = "PDL"
    GAMMA_WALL = "GAMMA_WALL"
    CALL_WALL = "CALL_WALL"
    PUT_WALL = "PUT_WALL"
    MAX_PAIN = "MAX_PAIN"
    WEEKLY_HIGH = "WEEKLY_HIGH"
    WEEKLY_LOW = "WEEKLY_LOW"
    ATR_FALLBACK = "ATR_FALLBACK"
    PERCENT_FALLBACK = "PERCENT_FALLBACK"


class ChartLevelType(str, Enum):
    ENTRY = "ENTRY"
    TP = "TP"
    SL = "SL"
    PREMARKET_HIGH = "PREMARKET_HIGH"
    PREMARKET_LOW = "PREMARKET_LOW"
    ORB_HIGH = "ORB_HIGH"
    ORB_LOW = "ORB_LOW"
    PREV_DAY_HIGH = "PREV_DAY_HIGH"
    PREV_DAY_LOW = "PREV_DAY_LOW"
    VWAP = "VWAP"
    VWAP_BAND = "VWAP_BAND"
    BOLLINGER = "BOLLINGER"
    TRAILING_STOP = "TRAILING_STOP"


def usable_price(value: float | None) -> float | None:
    """Return ``value`` when it is a real, positive price; otherwise ``None``."""

    if value is None:
        return None
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(price) or price <= 0:
        return None
    return price


class OptionsFlowLevels(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    gamma_wall: float | None = None
    call_wall: float | None = None
    put_wall: float | None = None
    max_pain: float | None = None


class KeyLevels(BaseModel):
    """Sparse record of reference prices; absent or non-positive means unavailable."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    vwap: float | None = None
    vwap_upper_band: float | None = None
    vwap_lower_band: float | None = None
    orb_high: float | None = None
    orb_low: float | None = None
    pre_market_high: float | None = None
    pre_market_low: float | None = None
    prior_day_high: float | None = None
    prior_day_low: float | None = None
    prior_day_close: float | None = None
    prior_week_high: float | None = None
    prior_week_low: float | None = None
    prior_month_high: float | None = None
    prior_month_low: float | None = None
    prior_quarter_high: float | None = None
    prior_quarter_low: float | None = None
    prior_year_high: float | None = None
    prior_year_low: float | None = None
    bollinger_upper: float | None = None
    bollinger_middle: float | None = None
    bollinger_lower: float | None = None
    daily_pivot: float | None = None
    options_flow: OptionsFlowLevels | None = None

    def price(self, name: str) -> float | None:
        return usable_price(getattr(self, name, None))

    def flow_price(self, name: str) -> float | None:
        if self.options_flow is None:
            return None
        return usable_price(getattr(self.options_flow, name, None))

    def available_count(self) -> int:
        count = sum(1 for name in _PRICE_FIELDS if self.price(name) is not None)
        if self.options_flow is not None:
            count += sum(
                1 for name in OptionsFlowLevels.model_fields if self.flow_price(name) is not None
            )
        return count

    @classmethod
    def zeros(cls) -> "KeyLevels":
        return cls(**{name: 0.0 for name in _PRICE_FIELDS})


_PRICE_FIELDS = tuple(name for name in KeyLevels.model_fields if name != "options_flow")


class DteThresholds(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    scalp: int = Field(ge=0)
    day: int = Field(ge=0)
    swing: int = Field(ge=0)

    @model_validator(mode="after")
    def _ascending(self) -> "DteThresholds":
        if not (self.scalp <= self.day <= self.swing):
            raise ValueError("DTE thresholds must satisfy scalp <= day <= swing.")
        return self


class RiskDefaults(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    mode: Literal["percent", "calculated"] = "calculated"
    tp_percent: float | None = Field(default=None, gt=0.0)
    sl_percent: float | None = Field(default=None, gt=0.0)
    dte_thresholds: DteThresholds | None = None


class OptionQuote(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    bid: float = 0.0
    ask: float = 0.0
    volume: float = 0.0
    open_interest: float = 0.0


class RiskCalculationInput(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    entry_price: float
    current_underlying_price: float
    current_option_mid: float = 0.0
    key_levels: KeyLevels = Field(default_factory=KeyLevels)
    atr: float | None = None
    defaults: RiskDefaults = Field(default_factory=RiskDefaults)
    delta: float | None = None
    gamma: float | None = None
    expiration: datetime | date | str | None = None
    trade_type: TradeType | None = None
    direction: Direction = "long"
    confluence_score: float | None = Field(default=None, ge=0.0, le=100.0)
    quote: OptionQuote | None = None


class RiskCalculationResult(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    target_price: float
    stop_loss: float
    target_price2: float | None = None
    target_premium: float | None = None
    target_premium2: float | None = None
    stop_loss_premium: float | None = None
    target_underlying_price: float | None = None
    target_underlying_price2: float | None = None
    stop_underlying_price: float | None = None
    risk_reward_ratio: float
    confidence: ConfidenceTier
    reasoning: str
    calculated_at: datetime
    used_levels: List[str] = Field(default_factory=list)
    trade_type: TradeType | None = None
    dte: int | None = None
    liquidity_quality: LiquidityQuality | None = None
    liquidity_warnings: List[str] = Field(default_factory=list)


class Bar(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    time: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


class ChartLevelMeta(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    tp_index: int | None = None
    reason: str | None = None


class ChartLevel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    type: ChartLevelType
    label: str
    price: float
    meta: ChartLevelMeta | None = None


class TradeRecord(BaseModel):
    """Subset of a stored trade needed to draw its levels."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    entry_price: float | None = None
    target_price: float | None = None
    stop_loss: float | None = None
    underlying_at_entry: float | None = None
    underlying_price_at_load: float | None = None
    target_underlying_price: float | None = None
    target_underlying_price2: float | None = None
    target_underlying_price3: float | None = None
    stop_underlying_price: float | None = None
    delta: float | None = None
    option_type: Literal["C", "P"] | None = None
    contract_mid: float | None = None


class LiveOptionPrices(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    target_price: float | None = None
    stop_loss: float | None = None
    current_mid: float | None = None


__all__ = [
    "AnchorType",
    "Bar",
    "ChartLevel",
    "ChartLevelMeta",
    "ChartLevelType",
    "ConfidenceTier",
    "Direction",
    "DteThresholds",
    "KeyLevels",
    "LiquidityQuality",
    "LiveOptionPrices",
    "OptionQuote",
    "OptionsFlowLevels",
    "RiskCalculationInput",
    "RiskCalculationResult",
    "RiskDefaults",
    "TradeRecord",
    "TradeType",
    "usable_price",
]
