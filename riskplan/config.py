"""Configuration module for the risk planning engine.

This module centralizes the reading of environment variables and provides a
`Settings` object that other modules can import.  It uses Pydantic's
`BaseSettings` to automatically read values from a `.env` file when present.

Engine entry points always accept explicit arguments; settings only supply the
defaults used when a caller leaves a parameter out.
"""

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="allow")

    exchange_tz: str = Field(
        default="America/New_York",
        validation_alias=AliasChoices("RISKPLAN_EXCHANGE_TZ", "EXCHANGE_TZ"),
    )
    orb_minutes: int = Field(
        default=15,
        ge=1,
        validation_alias=AliasChoices("RISKPLAN_ORB_MINUTES", "ORB_MINUTES"),
    )
    bollinger_period: int = Field(
        default=20,
        ge=2,
        validation_alias=AliasChoices("RISKPLAN_BOLLINGER_PERIOD", "BOLLINGER_PERIOD"),
    )
    bollinger_k: float = Field(
        default=2.0,
        gt=0.0,
        validation_alias=AliasChoices("RISKPLAN_BOLLINGER_K", "BOLLINGER_K"),
    )
    default_tp_percent: float = Field(
        default=50.0,
        gt=0.0,
        validation_alias=AliasChoices("RISKPLAN_TP_PERCENT", "DEFAULT_TP_PERCENT"),
    )
    default_sl_percent: float = Field(
        default=20.0,
        gt=0.0,
        validation_alias=AliasChoices("RISKPLAN_SL_PERCENT", "DEFAULT_SL_PERCENT"),
    )
    dte_threshold_preset: Literal["default", "legacy"] = Field(
        default="default",
        validation_alias=AliasChoices("RISKPLAN_DTE_PRESET", "DTE_THRESHOLD_PRESET"),
    )
    recompute_move_pct: float = Field(
        default=0.5,
        gt=0.0,
        validation_alias=AliasChoices("RISKPLAN_RECOMPUTE_MOVE_PCT", "RECOMPUTE_MOVE_PCT"),
    )
    recompute_move_pct_0dte: float = Field(
        default=0.2,
        gt=0.0,
        validation_alias=AliasChoices("RISKPLAN_RECOMPUTE_MOVE_PCT_0DTE", "RECOMPUTE_MOVE_PCT_0DTE"),
    )
    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("RISKPLAN_LOG_LEVEL", "LOG_LEVEL"),
    )

    @field_validator("dte_threshold_preset", mode="before")
    @classmethod
    def _lower_preset(cls, value: str) -> str:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        if isinstance(value, str):
            return value.strip().upper()
        return value


@lru_cache()
def get_settings() -> Settings:
    """Return the engine settings, parsed once and memoised by ``lru_cache``.

    Tests that change the environment call ``get_settings.cache_clear()``.
    """

    return Settings()


# Regular US equity session, exchange wall clock.
PREMARKET_OPEN: tuple[int, int] = (4, 0)
REGULAR_OPEN: tuple[int, int] = (9, 30)
REGULAR_CLOSE: tuple[int, int] = (16, 0)

STOP_SEARCH_PCT: float = 5.0
TARGET_SEARCH_PCT: float = 10.0

ATR_TP_PRIMARY_WEIGHT: float = 0.8
ATR_TP_SECONDARY_WEIGHT: float = 0.6
ATR_SL_WEIGHT: float = 0.7
