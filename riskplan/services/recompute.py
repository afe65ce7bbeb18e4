"""When a caller should re-run the risk engine for a live position."""

from __future__ import annotations

from typing import Optional

from ..config import get_settings


def move_threshold_pct(same_day_expiry: bool) -> float:
    settings = get_settings()
    return settings.recompute_move_pct_0dte if same_day_expiry else settings.recompute_move_pct


def should_recompute(
    last_price: Optional[float],
    price: float,
    bar_closed: bool = False,
    same_day_expiry: bool = False,
) -> bool:
    """Recompute on every bar close, or when price has moved past the threshold.

    The threshold is a percent of ``last_price`` (0.5% by default, 0.2% for
    same-day expiries).  Without a previous price there is nothing to
    compare against, so a recompute is always due.
    """

    if bar_closed:
        return True
    if last_price is None or last_price <= 0:
        return True
    move_pct = abs(price - last_price) / last_price * 100
    return move_pct > move_threshold_pct(same_day_expiry)


__all__ = ["move_threshold_pct", "should_recompute"]
