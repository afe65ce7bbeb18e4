"""Delta/gamma mapping between underlying moves and option premium."""

from __future__ import annotations

from typing import Literal, Optional

from ..schemas import TradeType, usable_price

_GAMMA_TRADE_TYPES = frozenset({TradeType.SCALP, TradeType.DAY})


def map_underlying_move_to_premium(
    move: float,
    current_premium: float,
    delta: float = 0.5,
    gamma: float = 0.0,
    trade_type: TradeType = TradeType.DAY,
) -> float:
    """Estimate the option premium after the underlying moves by ``move``.

    Short-dated trades (``SCALP``/``DAY``) include the second-order gamma
    term; ``SWING``/``LEAP`` use delta only.
    """

    premium = current_premium + delta * move
    if TradeType(trade_type) in _GAMMA_TRADE_TYPES and gamma:
        premium += 0.5 * gamma * move * move
    return premium


def percent_to_underlying_move(current_price: float, premium: float, delta: float, percent: float) -> float:
    """Underlying move equivalent to ``percent`` of the option premium.

    The premium change is converted through ``|delta|``.  Without a premium or
    delta the option is assumed to move about ten times the underlying.
    """

    if premium > 0 and delta:
        return premium * percent / 100.0 / abs(delta)
    return current_price * percent / 1000.0


def underlying_from_premium(
    option_price: Optional[float],
    reference_premium: Optional[float],
    reference_underlying: Optional[float],
    delta: Optional[float],
    option_type: Literal["C", "P"] | None = "C",
) -> Optional[float]:
    """Invert the delta term: the underlying price implied by ``option_price``.

    Calls gain with the underlying and puts lose, so a put's premium gain maps
    to a lower underlying price.  Returns ``None`` when any reference is
    missing or delta is zero.
    """

    price = usable_price(option_price)
    premium = usable_price(reference_premium)
    underlying = usable_price(reference_underlying)
    if price is None or premium is None or underlying is None or not delta:
        return None
    move = (price - premium) / abs(delta)
    if option_type == "P":
        return underlying - move
    return underlying + move


__all__ = ["map_underlying_move_to_premium", "percent_to_underlying_move", "underlying_from_premium"]
