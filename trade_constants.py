"""Shared constants for signal evaluation and position risk management."""

from __future__ import annotations

MIN_CANDLES_FOR_INDICATORS = 35
"""Warm-up length driven by the MACD slow period plus its signal period."""

CROSSOVER_MACD_FAST = 12
CROSSOVER_MACD_SLOW = 26
CROSSOVER_MACD_SIGNAL = 9
"""Fixed MACD parameters for the entry crossover check, independent of the snapshot MACD."""

TAKE_PROFIT_R_MULTIPLES = (1.5, 2.5, 4.0)
"""R multiples of the initial risk distance for the three take-profit levels."""

TRAIL_ACTIVATION_R = 1.0
"""Profit in R at which the stop locks to breakeven and starts trailing."""
