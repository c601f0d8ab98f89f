"""Guard pipeline turning an indicator snapshot into an entry decision.

Checks run in a fixed order and stop at the first failure, so the returned
reason always names the first unmet condition:

1. channel breakout: price beyond both the Keltner and the Bollinger band;
2. MACD crossover on the latest candle (fixed 12/26/9 parameters);
3. the auxiliary CCI / SuperTrend filter of the configured tier.

Tiers are data in ``TIER_FILTERS``; long and short share one routine and
differ only by the sign of each comparison.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from config import MACDConfig
from indicators import is_macd_bearish_crossover, is_macd_bullish_crossover
from signal_schema import (
    LONG,
    SHORT,
    TREND_DOWN,
    TREND_UP,
    Candle,
    EntryDecision,
    IndicatorSnapshot,
)
from trade_constants import CROSSOVER_MACD_FAST, CROSSOVER_MACD_SIGNAL, CROSSOVER_MACD_SLOW

logger = logging.getLogger(__name__)

CROSSOVER_MACD_CONFIG = MACDConfig(
    fast_period=CROSSOVER_MACD_FAST,
    slow_period=CROSSOVER_MACD_SLOW,
    signal_period=CROSSOVER_MACD_SIGNAL,
)


@dataclass(frozen=True)
class TierFilter:
    """Auxiliary filter for one aggressiveness tier.

    Longs need ``cci > cci_threshold``, shorts ``cci < -cci_threshold``.
    """

    name: str
    cci_threshold: float
    require_supertrend: bool


TIER_FILTERS: Dict[int, TierFilter] = {
    1: TierFilter(name="conservative", cci_threshold=100.0, require_supertrend=True),
    2: TierFilter(name="moderate", cci_threshold=50.0, require_supertrend=True),
    3: TierFilter(name="aggressive", cci_threshold=0.0, require_supertrend=False),
}


def _fmt(value: float) -> str:
    return f"{value:.2f}"


def _check_breakout(side: str, price: float, snapshot: IndicatorSnapshot) -> Optional[str]:
    if side == LONG:
        if not price > snapshot.keltner.upper:
            return (
                "Price did not break above Keltner upper band "
                f"({_fmt(price)} <= {_fmt(snapshot.keltner.upper)})"
            )
        if not price > snapshot.bollinger.upper:
            return (
                "Price did not break above Bollinger upper band "
                f"({_fmt(price)} <= {_fmt(snapshot.bollinger.upper)})"
            )
    else:
        if not price < snapshot.keltner.lower:
            return (
                "Price did not break below Keltner lower band "
                f"({_fmt(price)} >= {_fmt(snapshot.keltner.lower)})"
            )
        if not price < snapshot.bollinger.lower:
            return (
                "Price did not break below Bollinger lower band "
                f"({_fmt(price)} >= {_fmt(snapshot.bollinger.lower)})"
            )
    return None


def _check_crossover(side: str, candles: Sequence[Candle]) -> Optional[str]:
    detector = is_macd_bullish_crossover if side == LONG else is_macd_bearish_crossover
    label = "bullish" if side == LONG else "bearish"
    try:
        crossed = detector(candles, CROSSOVER_MACD_CONFIG)
    except Exception as exc:
        logger.warning("[ENTRY] MACD crossover check failed: %s", exc, exc_info=True)
        crossed = False
    if not crossed:
        return f"No {label} MACD crossover"
    return None


def _apply_tier_filter(side: str, snapshot: IndicatorSnapshot, tier: TierFilter) -> EntryDecision:
    cci = snapshot.cci
    if side == LONG:
        if not cci > tier.cci_threshold:
            return EntryDecision(
                signal=False,
                reason=f"CCI not strong enough ({cci:.0f} <= {tier.cci_threshold:.0f})",
            )
        if tier.require_supertrend and snapshot.supertrend.trend != TREND_UP:
            return EntryDecision(signal=False, reason="SuperTrend is not bullish")
        trend_note = " ST up" if tier.require_supertrend else ""
        return EntryDecision(
            signal=True,
            reason=f"Long ({tier.name}): KC+BB breakout + MACD bullish crossover CCI={cci:.0f}{trend_note}",
        )

    threshold = -tier.cci_threshold if tier.cci_threshold else 0.0
    if not cci < threshold:
        return EntryDecision(
            signal=False,
            reason=f"CCI not weak enough ({cci:.0f} >= {threshold:.0f})",
        )
    if tier.require_supertrend and snapshot.supertrend.trend != TREND_DOWN:
        return EntryDecision(signal=False, reason="SuperTrend is not bearish")
    trend_note = " ST down" if tier.require_supertrend else ""
    return EntryDecision(
        signal=True,
        reason=f"Short ({tier.name}): KC+BB breakdown + MACD bearish crossover CCI={cci:.0f}{trend_note}",
    )


def evaluate_entry(
    side: str,
    price: float,
    snapshot: IndicatorSnapshot,
    candles: Sequence[Candle],
    aggressiveness: int,
    confirmation: Optional[IndicatorSnapshot] = None,
) -> EntryDecision:
    """Run the guard pipeline for ``side``.

    ``confirmation`` (the higher timeframe snapshot) is accepted for
    interface stability but does not take part in the decision.
    """

    if side not in (LONG, SHORT):
        return EntryDecision(signal=False, reason=f"Unknown side {side!r}")
    tier = TIER_FILTERS.get(aggressiveness)
    if tier is None:
        return EntryDecision(signal=False, reason=f"Unknown aggressiveness tier {aggressiveness!r}")

    failure = _check_breakout(side, price, snapshot)
    if failure:
        return EntryDecision(signal=False, reason=failure)

    failure = _check_crossover(side, candles)
    if failure:
        return EntryDecision(signal=False, reason=failure)

    return _apply_tier_filter(side, snapshot, tier)


def evaluate_long(
    price: float,
    snapshot: IndicatorSnapshot,
    candles: Sequence[Candle],
    aggressiveness: int,
    confirmation: Optional[IndicatorSnapshot] = None,
) -> EntryDecision:
    return evaluate_entry(LONG, price, snapshot, candles, aggressiveness, confirmation)


def evaluate_short(
    price: float,
    snapshot: IndicatorSnapshot,
    candles: Sequence[Candle],
    aggressiveness: int,
    confirmation: Optional[IndicatorSnapshot] = None,
) -> EntryDecision:
    return evaluate_entry(SHORT, price, snapshot, candles, aggressiveness, confirmation)


__all__ = [
    "CROSSOVER_MACD_CONFIG",
    "TIER_FILTERS",
    "TierFilter",
    "evaluate_entry",
    "evaluate_long",
    "evaluate_short",
]
