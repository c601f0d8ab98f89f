"""Assemble a point-in-time :class:`IndicatorSnapshot` for one timeframe."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from config import IndicatorConfig
from indicators import (
    InsufficientDataError,
    atr_series,
    latest_bollinger,
    latest_cci,
    latest_keltner,
    latest_macd,
    latest_supertrend,
)
from signal_schema import Candle, IndicatorSnapshot, candles_to_frame
from trade_constants import MIN_CANDLES_FOR_INDICATORS

logger = logging.getLogger(__name__)


def build_snapshot(
    candles: Sequence[Candle],
    indicator_config: IndicatorConfig,
) -> Optional[IndicatorSnapshot]:
    """Return every indicator for the latest candle, or ``None``.

    ``None`` covers the warm-up period (fewer than
    ``MIN_CANDLES_FOR_INDICATORS`` candles), any adapter reporting
    insufficient data, and unexpected adapter errors.  The latter are logged
    and never propagate.
    """

    if len(candles) < MIN_CANDLES_FOR_INDICATORS:
        # Expected during warm-up, not worth a log line.
        return None

    try:
        df = candles_to_frame(candles)
        keltner = latest_keltner(df, indicator_config.keltner)
        bollinger = latest_bollinger(df, indicator_config.bollinger)
        macd = latest_macd(df, indicator_config.macd)
        cci = latest_cci(df, indicator_config.cci)
        supertrend = latest_supertrend(df, indicator_config.supertrend)
        atr_values = atr_series(
            df["high"].tolist(),
            df["low"].tolist(),
            df["close"].tolist(),
            indicator_config.keltner.atr_period,
        )
    except InsufficientDataError as exc:
        logger.debug("[SNAPSHOT] %s", exc)
        return None
    except Exception as exc:
        logger.warning("[SNAPSHOT] Error calculating indicators: %s", exc, exc_info=True)
        return None

    if (
        keltner is None
        or bollinger is None
        or macd is None
        or cci is None
        or supertrend is None
        or not atr_values
    ):
        return None

    return IndicatorSnapshot(
        keltner=keltner,
        bollinger=bollinger,
        macd=macd,
        cci=cci,
        supertrend=supertrend,
        atr=atr_values[-1],
    )


__all__ = ["build_snapshot"]
