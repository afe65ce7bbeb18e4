"""Key level computation from OHLCV bars."""

from .key_levels import bars_to_frame, compute_key_levels, latest_atr

__all__ = [
    "bars_to_frame",
    "compute_key_levels",
    "latest_atr",
]
