"""Top-level orchestration: candles in, exactly one :class:`Signal` out."""

from __future__ import annotations

import logging
import time
from typing import Optional, Sequence

from config import StrategyConfig
from decision_metrics import INSUFFICIENT_DATA_REASON, SignalStats
from entry_evaluator import evaluate_long, evaluate_short
from observability import SignalObserver
from signal_schema import LONG, NONE, SHORT, Candle, Signal
from snapshot_builder import build_snapshot

logger = logging.getLogger(__name__)

NO_CANDLES_REASON = "No candle data"
NO_ENTRY_REASON = "No entry conditions met"


class SignalGenerator:
    """Evaluate the breakout strategy for one instrument.

    The generator holds configuration only.  ``observer`` is called with every
    long or short signal (for logging or alerting); failures inside it are
    logged and do not affect the returned signal.
    """

    def __init__(self, config: StrategyConfig, observer: Optional[SignalObserver] = None) -> None:
        self.config = config
        self.observer = observer

    def generate(
        self,
        primary_candles: Sequence[Candle],
        confirmation_candles: Optional[Sequence[Candle]] = None,
        stats: Optional[SignalStats] = None,
    ) -> Signal:
        signal = self._generate(primary_candles, confirmation_candles)
        if stats is not None:
            stats.record(signal)
        if signal.is_entry:
            self._notify(signal)
        return signal

    def _generate(
        self,
        primary_candles: Sequence[Candle],
        confirmation_candles: Optional[Sequence[Candle]],
    ) -> Signal:
        if not primary_candles:
            return Signal(
                type=NONE,
                reason=NO_CANDLES_REASON,
                timestamp=int(time.time() * 1000),
                price=0.0,
            )

        latest = primary_candles[-1]
        price = latest.close
        indicators = self.config.indicators

        snapshot = build_snapshot(primary_candles, indicators)
        if snapshot is None:
            return Signal(
                type=NONE,
                reason=INSUFFICIENT_DATA_REASON,
                timestamp=latest.close_time,
                price=price,
            )

        confirmation = None
        if confirmation_candles:
            confirmation = build_snapshot(confirmation_candles, indicators)

        tier = self.config.aggressiveness

        long_check = evaluate_long(price, snapshot, primary_candles, tier, confirmation)
        if long_check.signal:
            return Signal(
                type=LONG,
                reason=long_check.reason,
                timestamp=latest.close_time,
                price=price,
                snapshot=snapshot,
            )

        short_check = evaluate_short(price, snapshot, primary_candles, tier, confirmation)
        if short_check.signal:
            return Signal(
                type=SHORT,
                reason=short_check.reason,
                timestamp=latest.close_time,
                price=price,
                snapshot=snapshot,
            )

        logger.debug("[SIGNAL] long: %s | short: %s", long_check.reason, short_check.reason)
        return Signal(
            type=NONE,
            reason=NO_ENTRY_REASON,
            timestamp=latest.close_time,
            price=price,
            snapshot=snapshot,
        )

    def _notify(self, signal: Signal) -> None:
        if self.observer is None:
            return
        try:
            self.observer(signal)
        except Exception as exc:
            logger.debug("Signal observer failed: %s", exc, exc_info=True)


__all__ = ["NO_CANDLES_REASON", "NO_ENTRY_REASON", "SignalGenerator"]
