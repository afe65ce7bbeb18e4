from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from riskplan.config import get_settings
from riskplan.plans.classifier import (
    DEFAULT_DTE_THRESHOLDS,
    LEGACY_DTE_THRESHOLDS,
    compute_dte,
    default_thresholds,
    infer_trade_type,
    parse_expiration,
    resolve_trade_type,
)
from riskplan.schemas import DteThresholds, TradeType

NOW = datetime(2024, 1, 2, 15, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "days, expected",
    [
        (0, TradeType.SCALP),
        (1, TradeType.SCALP),
        (2, TradeType.SCALP),
        (3, TradeType.DAY),
        (14, TradeType.DAY),
        (15, TradeType.SWING),
        (60, TradeType.SWING),
        (61, TradeType.LEAP),
        (400, TradeType.LEAP),
    ],
)
def test_dte_boundaries_with_default_thresholds(days, expected):
    expiration = NOW + timedelta(days=days, hours=1)

    assert compute_dte(expiration, NOW) == days
    assert infer_trade_type(expiration, NOW, DEFAULT_DTE_THRESHOLDS) is expected


def test_legacy_thresholds_classify_short_dated_as_swing():
    expiration = NOW + timedelta(days=10, hours=1)

    assert infer_trade_type(expiration, NOW, LEGACY_DTE_THRESHOLDS) is TradeType.SWING
    assert infer_trade_type(expiration, NOW, DEFAULT_DTE_THRESHOLDS) is TradeType.DAY


def test_expired_contract_clamps_to_zero():
    assert compute_dte(NOW - timedelta(days=3), NOW) == 0


def test_iso_strings_and_bare_dates():
    assert compute_dte("2024-01-05T15:00:00Z", NOW) == 3
    assert compute_dte("2024-01-05T15:00:00", NOW) == 3
    # bare dates resolve to the 16:00 New York close (21:00 UTC in winter)
    assert parse_expiration("2024-01-02") == datetime(2024, 1, 2, 21, 0, tzinfo=timezone.utc)
    assert parse_expiration(date(2024, 1, 2)) == datetime(2024, 1, 2, 21, 0, tzinfo=timezone.utc)
    assert compute_dte("2024-01-02", NOW) == 0


def test_unparseable_expiration_is_ignored():
    assert compute_dte("next friday", NOW) is None
    assert infer_trade_type("next friday", NOW) is TradeType.DAY


def test_resolve_without_expiration_uses_explicit_or_day():
    assert resolve_trade_type(None, None, NOW) == (TradeType.DAY, None)
    assert resolve_trade_type(None, TradeType.SWING, NOW) == (TradeType.SWING, None)


def test_resolve_prefers_expiration_over_explicit_type():
    expiration = NOW + timedelta(days=30, hours=1)

    assert resolve_trade_type(expiration, TradeType.SCALP, NOW) == (TradeType.SWING, 30)


def test_threshold_preset_follows_settings(monkeypatch):
    get_settings.cache_clear()
    monkeypatch.setenv("RISKPLAN_DTE_PRESET", "legacy")
    try:
        assert default_thresholds() == LEGACY_DTE_THRESHOLDS
    finally:
        get_settings.cache_clear()


def test_thresholds_must_ascend():
    with pytest.raises(ValueError):
        DteThresholds(scalp=10, day=5, swing=30)
    with pytest.raises(ValueError):
        DteThresholds(scalp=-1, day=5, swing=30)
