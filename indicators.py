"""Indicator adapters used by the snapshot builder and the entry evaluator.

Each ``latest_*`` function takes the candle history (a list of
:class:`signal_schema.Candle` or a frame from ``candles_to_frame``) plus its
own parameter block and returns the value for the most recent bar.  When the
history is too short, or the value is still NaN because the indicator is
warming up, :class:`InsufficientDataError` is raised.  Any other exception is
a genuine failure and is left for the caller to handle.

Keltner, Bollinger, MACD, CCI and ATR come from the ``ta`` library.  ``ta``
has no SuperTrend so it is computed here from the ``ta`` ATR.
"""

from __future__ import annotations

import math
from typing import List, Sequence, Union

import numpy as np
import pandas as pd
from ta.trend import CCIIndicator, MACD
from ta.volatility import AverageTrueRange, BollingerBands, KeltnerChannel

from config import BollingerConfig, CCIConfig, KeltnerConfig, MACDConfig, SuperTrendConfig
from signal_schema import (
    TREND_DOWN,
    TREND_UP,
    Candle,
    ChannelBands,
    MACDValues,
    SuperTrendValue,
    candles_to_frame,
)

CandleInput = Union[Sequence[Candle], pd.DataFrame]


class InsufficientDataError(ValueError):
    """Raised when an indicator cannot produce a value for the latest bar yet."""


def _frame(candles: CandleInput) -> pd.DataFrame:
    if isinstance(candles, pd.DataFrame):
        return candles
    return candles_to_frame(candles)


def _require_length(df: pd.DataFrame, needed: int, name: str) -> None:
    if len(df) < needed:
        raise InsufficientDataError(
            f"Insufficient data for {name}: need {needed} candles, got {len(df)}"
        )


def _latest(series: pd.Series, name: str) -> float:
    if series is None or len(series) == 0:
        raise InsufficientDataError(f"Insufficient data for {name}: empty series")
    value = float(series.iloc[-1])
    if not math.isfinite(value):
        raise InsufficientDataError(f"Insufficient data for {name}: latest value is {value}")
    return value


def latest_keltner(candles: CandleInput, cfg: KeltnerConfig) -> ChannelBands:
    """EMA(close) midline with bands ``atr_multiple`` ATRs away."""

    df = _frame(candles)
    _require_length(df, max(cfg.ma_period, cfg.atr_period), "Keltner Channel")
    kc = KeltnerChannel(
        df["high"],
        df["low"],
        df["close"],
        window=cfg.ma_period,
        window_atr=cfg.atr_period,
        original_version=False,
        multiplier=cfg.atr_multiple,
    )
    return ChannelBands(
        upper=_latest(kc.keltner_channel_hband(), "Keltner Channel"),
        middle=_latest(kc.keltner_channel_mband(), "Keltner Channel"),
        lower=_latest(kc.keltner_channel_lband(), "Keltner Channel"),
    )


def latest_bollinger(candles: CandleInput, cfg: BollingerConfig) -> ChannelBands:
    df = _frame(candles)
    _require_length(df, cfg.period, "Bollinger Bands")
    bb = BollingerBands(df["close"], window=cfg.period, window_dev=cfg.deviation)
    return ChannelBands(
        upper=_latest(bb.bollinger_hband(), "Bollinger Bands"),
        middle=_latest(bb.bollinger_mavg(), "Bollinger Bands"),
        lower=_latest(bb.bollinger_lband(), "Bollinger Bands"),
    )


def _macd(df: pd.DataFrame, cfg: MACDConfig) -> MACD:
    return MACD(
        df["close"],
        window_slow=cfg.slow_period,
        window_fast=cfg.fast_period,
        window_sign=cfg.signal_period,
    )


def latest_macd(candles: CandleInput, cfg: MACDConfig) -> MACDValues:
    df = _frame(candles)
    _require_length(df, cfg.slow_period + cfg.signal_period - 1, "MACD")
    macd = _macd(df, cfg)
    return MACDValues(
        macd=_latest(macd.macd(), "MACD"),
        signal=_latest(macd.macd_signal(), "MACD"),
        histogram=_latest(macd.macd_diff(), "MACD"),
    )


def latest_cci(candles: CandleInput, cfg: CCIConfig) -> float:
    df = _frame(candles)
    _require_length(df, cfg.period, "CCI")
    cci = CCIIndicator(df["high"], df["low"], df["close"], window=cfg.period)
    return _latest(cci.cci(), "CCI")


def supertrend_series(df: pd.DataFrame, cfg: SuperTrendConfig) -> pd.DataFrame:
    """Return ``value`` and ``trend`` columns aligned with ``df``.

    Rows before the ATR warm-up are NaN / ``None``.  The first valid row starts
    in a down trend and flips once the close crosses the opposite final band.
    """

    high = df["high"].astype(float).reset_index(drop=True)
    low = df["low"].astype(float).reset_index(drop=True)
    close = df["close"].astype(float).reset_index(drop=True)
    closes = close.tolist()

    n = len(closes)
    values: List[float] = [np.nan] * n
    trends: List[object] = [None] * n
    start = cfg.period - 1
    if n <= start:
        return pd.DataFrame({"value": values, "trend": trends}, index=df.index)

    atr = AverageTrueRange(high, low, close, window=cfg.period).average_true_range()
    hl2 = (high + low) / 2
    basic_upper = (hl2 + cfg.multiplier * atr).tolist()
    basic_lower = (hl2 - cfg.multiplier * atr).tolist()

    final_upper = basic_upper[start]
    final_lower = basic_lower[start]
    trend = TREND_DOWN
    values[start] = final_upper
    trends[start] = trend

    for i in range(start + 1, n):
        prev_upper, prev_lower = final_upper, final_lower
        if basic_upper[i] < prev_upper or closes[i - 1] > prev_upper:
            final_upper = basic_upper[i]
        if basic_lower[i] > prev_lower or closes[i - 1] < prev_lower:
            final_lower = basic_lower[i]

        if trend == TREND_DOWN:
            trend = TREND_UP if closes[i] > final_upper else TREND_DOWN
        else:
            trend = TREND_DOWN if closes[i] < final_lower else TREND_UP

        values[i] = final_lower if trend == TREND_UP else final_upper
        trends[i] = trend

    return pd.DataFrame({"value": values, "trend": trends}, index=df.index)


def latest_supertrend(candles: CandleInput, cfg: SuperTrendConfig) -> SuperTrendValue:
    df = _frame(candles)
    _require_length(df, cfg.period + 1, "SuperTrend")
    st = supertrend_series(df, cfg)
    value = _latest(st["value"], "SuperTrend")
    trend = st["trend"].iloc[-1]
    if trend not in (TREND_UP, TREND_DOWN):
        raise InsufficientDataError("Insufficient data for SuperTrend: no trend state")
    return SuperTrendValue(value=value, trend=trend)


def atr_series(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    period: int,
) -> List[float]:
    """Wilder ATR aligned to the tail of the input.

    The ``period - 1`` warm-up bars are dropped, so the result is shorter than
    the input; an input shorter than ``period`` yields an empty list.
    """

    if period <= 0:
        raise ValueError("ATR period must be positive")
    if not (len(highs) == len(lows) == len(closes)):
        raise ValueError("highs, lows and closes must have the same length")
    if len(closes) < period:
        return []
    atr = AverageTrueRange(
        pd.Series(highs, dtype=float),
        pd.Series(lows, dtype=float),
        pd.Series(closes, dtype=float),
        window=period,
    ).average_true_range()
    return [float(v) for v in atr.iloc[period - 1:]]


def _last_two_macd_points(candles: CandleInput, cfg: MACDConfig):
    df = _frame(candles)
    if len(df) < cfg.slow_period + cfg.signal_period:
        return None
    macd = _macd(df, cfg)
    line = macd.macd()
    signal = macd.macd_signal()
    points = (
        float(line.iloc[-2]),
        float(signal.iloc[-2]),
        float(line.iloc[-1]),
        float(signal.iloc[-1]),
    )
    if not all(math.isfinite(p) for p in points):
        return None
    return points


def is_macd_bullish_crossover(candles: CandleInput, cfg: MACDConfig) -> bool:
    """MACD line moved from at-or-below the signal line to strictly above it on the last bar."""

    points = _last_two_macd_points(candles, cfg)
    if points is None:
        return False
    prev_macd, prev_signal, macd, signal = points
    return prev_macd <= prev_signal and macd > signal


def is_macd_bearish_crossover(candles: CandleInput, cfg: MACDConfig) -> bool:
    """MACD line moved from at-or-above the signal line to strictly below it on the last bar."""

    points = _last_two_macd_points(candles, cfg)
    if points is None:
        return False
    prev_macd, prev_signal, macd, signal = points
    return prev_macd >= prev_signal and macd < signal


__all__ = [
    "InsufficientDataError",
    "atr_series",
    "is_macd_bearish_crossover",
    "is_macd_bullish_crossover",
    "latest_bollinger",
    "latest_cci",
    "latest_keltner",
    "latest_macd",
    "latest_supertrend",
    "supertrend_series",
]
