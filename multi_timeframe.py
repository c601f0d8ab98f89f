"""
Multi‑timeframe helpers for the breakout engine.

The signal generator accepts an optional confirmation‑timeframe candle
series next to the primary one.  Feeds usually deliver only the primary
(e.g. 1‑minute) stream, so this module aggregates it into the higher
interval instead of requiring a second subscription.
"""

from __future__ import annotations

from typing import List, Sequence

import pandas as pd

from signal_schema import Candle, candles_to_frame

_OHLCV_AGG = {
    'open': 'first',
    'high': 'max',
    'low': 'min',
    'close': 'last',
    'volume': 'sum',
    'close_time': 'max',
}


def resample_candles(candles: Sequence[Candle], minutes: int) -> List[Candle]:
    """
    Aggregate ``candles`` into ``minutes``‑wide bars.

    Parameters
    ----------
    candles : sequence of Candle
        Primary‑timeframe candles in ascending time order.
    minutes : int
        Width of the target bar in minutes (e.g. ``5``).

    Returns
    -------
    list of Candle
        One candle per wall‑clock bucket, aligned to multiples of ``minutes``
        since the epoch.  ``open_time`` is the bucket start and ``close_time``
        its end.  A trailing bucket whose last source candle closes before the
        bucket end is still forming and is dropped.
    """
    if minutes <= 0:
        raise ValueError("minutes must be positive")
    if not candles:
        return []

    bucket_ms = minutes * 60_000
    df = candles_to_frame(candles)
    df.index = pd.to_datetime(df['open_time'].to_numpy(), unit='ms', utc=True)
    resampled = (
        df.resample(f"{minutes}min", label='left', closed='left', origin='epoch')
        .agg(_OHLCV_AGG)
        .dropna(subset=['open'])
    )

    out: List[Candle] = []
    for ts, row in resampled.iterrows():
        open_time = int(ts.value // 1_000_000)
        close_time = open_time + bucket_ms
        out.append(
            Candle(
                open=float(row['open']),
                high=float(row['high']),
                low=float(row['low']),
                close=float(row['close']),
                open_time=open_time,
                close_time=close_time,
                volume=float(row['volume']),
            )
        )

    last_source_close = int(candles[-1].close_time)
    if out and last_source_close < out[-1].close_time:
        out.pop()
    return out


__all__ = ["resample_candles"]
