"""Stop-loss, take-profit ladder and trailing-stop rules for an open position.

All functions are pure.  The trailing stop is a two-state machine:

* passive: profit below ``TRAIL_ACTIVATION_R``; no trailing stop, the position
  relies on the initial stop-loss.
* active: entered on the first tick at or beyond 1R and never left.  The stop
  trails the best price seen by ``atr * trailing_distance`` but never sits
  behind breakeven, and it only ever moves in the position's favour.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Tuple

from signal_schema import LONG, SIDES, IndicatorSnapshot, Signal, TrailingState
from trade_constants import TAKE_PROFIT_R_MULTIPLES, TRAIL_ACTIVATION_R


def _check_side(side: str) -> None:
    if side not in SIDES:
        raise ValueError(f"side must be 'long' or 'short' (got {side!r})")


def calculate_stop_loss(entry_price: float, side: str, snapshot: IndicatorSnapshot) -> float:
    """Initial stop from the entry-time bands.

    Long positions use the lower of the Keltner and Bollinger lower bands,
    shorts the higher of the two upper bands.  ``entry_price`` is accepted for
    symmetry with the other helpers and does not enter the formula.
    """

    _check_side(side)
    if side == LONG:
        return min(snapshot.keltner.lower, snapshot.bollinger.lower)
    return max(snapshot.keltner.upper, snapshot.bollinger.upper)


def calculate_take_profit_levels(entry_price: float, stop_loss: float, side: str) -> List[float]:
    """Three targets at 1.5R, 2.5R and 4R from ``entry_price``."""

    _check_side(side)
    risk = abs(entry_price - stop_loss)
    direction = 1.0 if side == LONG else -1.0
    return [entry_price + direction * risk * multiple for multiple in TAKE_PROFIT_R_MULTIPLES]


def profit_in_r(entry_price: float, current_price: float, initial_stop_loss: float, side: str) -> float:
    """Open profit as a multiple of the initial risk.

    With zero risk any profit is unbounded in R: ``inf`` for a gain, ``-inf``
    for a loss and 0.0 at the entry price.
    """

    _check_side(side)
    risk = abs(entry_price - initial_stop_loss)
    profit = current_price - entry_price if side == LONG else entry_price - current_price
    if risk <= 0:
        if profit == 0:
            return 0.0
        return math.copysign(math.inf, profit)
    return profit / risk


def update_trailing_stop(
    entry_price: float,
    current_price: float,
    state: TrailingState,
    initial_stop_loss: float,
    side: str,
    atr: float,
    trailing_distance: float,
) -> TrailingState:
    """Return the trailing state after one price tick.

    ``atr`` is the live ATR for this tick and ``trailing_distance`` the
    configured ATR multiple.  The input ``state`` is not modified.
    """

    _check_side(side)
    if atr is None or not math.isfinite(atr) or atr < 0:
        raise ValueError(f"atr must be a finite non-negative number (got {atr!r})")
    if trailing_distance <= 0:
        raise ValueError("trailing_distance must be positive")

    offset = atr * trailing_distance
    profit_r = profit_in_r(entry_price, current_price, initial_stop_loss, side)
    active = state.active or profit_r >= TRAIL_ACTIVATION_R

    if side == LONG:
        highest = current_price if state.highest_price is None else max(state.highest_price, current_price)
        if not active:
            return TrailingState(highest_price=highest, trailing_stop=None, active=False)
        stop = max(entry_price, highest - offset)
        if state.trailing_stop is not None:
            stop = max(stop, state.trailing_stop)
        return TrailingState(highest_price=highest, trailing_stop=stop, active=True)

    lowest = current_price if state.lowest_price is None else min(state.lowest_price, current_price)
    if not active:
        return TrailingState(lowest_price=lowest, trailing_stop=None, active=False)
    stop = min(entry_price, lowest + offset)
    if state.trailing_stop is not None:
        stop = min(stop, state.trailing_stop)
    return TrailingState(lowest_price=lowest, trailing_stop=stop, active=True)


@dataclass(frozen=True)
class PositionPlan:
    side: str
    entry_price: float
    stop_loss: float
    take_profits: Tuple[float, float, float]
    risk: float
    atr_at_entry: float
    trailing_distance: float

    @property
    def trailing_offset(self) -> float:
        """Distance the trailing stop keeps behind the best price at the entry ATR."""
        return self.atr_at_entry * self.trailing_distance

    def update_trailing(self, current_price: float, state: TrailingState, atr: float) -> TrailingState:
        """Advance ``state`` by one tick using this plan's entry, stop and trailing distance."""
        return update_trailing_stop(
            self.entry_price,
            current_price,
            state,
            self.stop_loss,
            self.side,
            atr,
            self.trailing_distance,
        )

    def to_dict(self) -> dict:
        return {
            "side": self.side,
            "entry_price": self.entry_price,
            "stop_loss": self.stop_loss,
            "take_profits": list(self.take_profits),
            "risk": self.risk,
            "atr_at_entry": self.atr_at_entry,
            "trailing_distance": self.trailing_distance,
            "trailing_offset": self.trailing_offset,
        }


def build_position_plan(signal: Signal, trailing_distance: float = 1.0) -> PositionPlan:
    """Entry-time risk levels for an accepted long/short signal.

    ``trailing_distance`` is the configured ATR multiple
    (``StrategyConfig.trailing_distance``) used once the trailing stop is active.
    """

    if not signal.is_entry:
        raise ValueError(f"cannot plan a position for a {signal.type!r} signal")
    if signal.snapshot is None:
        raise ValueError("signal carries no indicator snapshot")
    if trailing_distance <= 0:
        raise ValueError("trailing_distance must be positive")

    entry = signal.price
    stop = calculate_stop_loss(entry, signal.type, signal.snapshot)
    tp1, tp2, tp3 = calculate_take_profit_levels(entry, stop, signal.type)
    return PositionPlan(
        side=signal.type,
        entry_price=entry,
        stop_loss=stop,
        take_profits=(tp1, tp2, tp3),
        risk=abs(entry - stop),
        atr_at_entry=signal.snapshot.atr,
        trailing_distance=trailing_distance,
    )


__all__ = [
    "PositionPlan",
    "build_position_plan",
    "calculate_stop_loss",
    "calculate_take_profit_levels",
    "profit_in_r",
    "update_trailing_stop",
]
