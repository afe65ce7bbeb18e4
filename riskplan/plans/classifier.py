"""Days-to-expiration classification into trade-type tiers."""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, timezone
from typing import Optional, Tuple

from ..config import get_settings
from ..market_clock import ensure_aware, session_close
from ..schemas import DteThresholds, TradeType

logger = logging.getLogger(__name__)

DEFAULT_DTE_THRESHOLDS = DteThresholds(scalp=2, day=14, swing=60)
LEGACY_DTE_THRESHOLDS = DteThresholds(scalp=0, day=4, swing=29)

_SECONDS_PER_DAY = 86_400.0


def default_thresholds() -> DteThresholds:
    """Return the preset selected by ``dte_threshold_preset``."""

    if get_settings().dte_threshold_preset == "legacy":
        return LEGACY_DTE_THRESHOLDS
    return DEFAULT_DTE_THRESHOLDS


def parse_expiration(expiration: datetime | date | str | None) -> Optional[datetime]:
    """Coerce an expiration into a UTC-aware datetime.

    Bare dates (``date`` objects or ``YYYY-MM-DD`` strings) resolve to the
    regular-session close on that day.  Unparseable text yields ``None``.
    """

    if expiration is None:
        return None
    if isinstance(expiration, datetime):
        return ensure_aware(expiration)
    if isinstance(expiration, date):
        return session_close(expiration, get_settings().exchange_tz)

    text = str(expiration).strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        if len(text) == 10:
            return session_close(date.fromisoformat(text), get_settings().exchange_tz)
        return ensure_aware(datetime.fromisoformat(text))
    except ValueError:
        logger.debug("unparseable expiration", extra={"expiration": expiration})
        return None


def compute_dte(expiration: datetime | date | str | None, now: datetime | None = None) -> Optional[int]:
    """Whole days from ``now`` until ``expiration``, floored and clamped at zero."""

    expires_at = parse_expiration(expiration)
    if expires_at is None:
        return None
    current = ensure_aware(now) if now is not None else datetime.now(timezone.utc)
    days = (expires_at - current).total_seconds() / _SECONDS_PER_DAY
    return max(0, int(math.floor(days)))


def classify_dte(dte: int, thresholds: DteThresholds | None = None) -> TradeType:
    limits = thresholds or default_thresholds()
    if dte <= limits.scalp:
        return TradeType.SCALP
    if dte <= limits.day:
        return TradeType.DAY
    if dte <= limits.swing:
        return TradeType.SWING
    return TradeType.LEAP


def infer_trade_type(
    expiration: datetime | date | str,
    now: datetime | None = None,
    thresholds: DteThresholds | None = None,
) -> TradeType:
    """Map an expiration to ``SCALP|DAY|SWING|LEAP``; unparseable input maps to ``DAY``."""

    dte = compute_dte(expiration, now)
    if dte is None:
        return TradeType.DAY
    return classify_dte(dte, thresholds)


def resolve_trade_type(
    expiration: datetime | date | str | None,
    explicit: TradeType | None = None,
    now: datetime | None = None,
    thresholds: DteThresholds | None = None,
) -> Tuple[TradeType, Optional[int]]:
    """Return ``(trade_type, dte)`` for a pipeline run.

    An expiration always wins over the explicit type.  Without one the
    explicit type is used, defaulting to ``DAY``, and ``dte`` is ``None``.
    """

    dte = compute_dte(expiration, now)
    if dte is None:
        return (explicit or TradeType.DAY), None
    return classify_dte(dte, thresholds), dte


__all__ = [
    "DEFAULT_DTE_THRESHOLDS",
    "LEGACY_DTE_THRESHOLDS",
    "classify_dte",
    "compute_dte",
    "default_thresholds",
    "infer_trade_type",
    "parse_expiration",
    "resolve_trade_type",
]
