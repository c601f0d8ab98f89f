"""Value objects shared by the indicator, signal and risk modules.

Everything here is immutable: candles arrive in ascending time order, a
snapshot is produced atomically for one timeframe, a ``Signal`` is produced
once per call and a ``TrailingState`` is replaced (never mutated) on every
price tick.  ``candles_to_frame``/``candles_from_frame`` convert between the
candle list and the pandas layout used by the indicator adapters.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

LONG = "long"
SHORT = "short"
NONE = "none"

TREND_UP = "up"
TREND_DOWN = "down"

SIDES = (LONG, SHORT)

CANDLE_COLUMNS = ["open_time", "close_time", "open", "high", "low", "close", "volume"]


@dataclass(frozen=True)
class Candle:
    """One OHLC bar; timestamps are epoch milliseconds."""

    open: float
    high: float
    low: float
    close: float
    open_time: int
    close_time: int
    volume: float = 0.0


@dataclass(frozen=True)
class ChannelBands:
    upper: float
    middle: float
    lower: float


@dataclass(frozen=True)
class MACDValues:
    macd: float
    signal: float
    histogram: float


@dataclass(frozen=True)
class SuperTrendValue:
    value: float
    trend: str  # TREND_UP or TREND_DOWN


@dataclass(frozen=True)
class IndicatorSnapshot:
    """Every indicator for one timeframe at one point in time.

    Built only by :func:`snapshot_builder.build_snapshot`; there is no partially
    populated snapshot.
    """

    keltner: ChannelBands
    bollinger: ChannelBands
    macd: MACDValues
    cci: float
    supertrend: SuperTrendValue
    atr: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Signal:
    type: str  # LONG, SHORT or NONE
    reason: str
    timestamp: int
    price: float
    snapshot: Optional[IndicatorSnapshot] = None

    @property
    def is_entry(self) -> bool:
        return self.type in SIDES

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "reason": self.reason,
            "timestamp": self.timestamp,
            "price": self.price,
            "snapshot": self.snapshot.to_dict() if self.snapshot is not None else None,
        }


@dataclass(frozen=True)
class EntryDecision:
    signal: bool
    reason: str


@dataclass(frozen=True)
class TrailingState:
    """Per-position trailing stop state threaded through by the caller.

    Only the extreme matching the position side is tracked: ``highest_price``
    for longs, ``lowest_price`` for shorts.  ``trailing_stop`` stays ``None``
    until the position reaches 1R and the state turns ``active``.
    """

    highest_price: Optional[float] = None
    lowest_price: Optional[float] = None
    trailing_stop: Optional[float] = None
    active: bool = False


def candles_to_frame(candles: Sequence[Candle]) -> pd.DataFrame:
    """Return ``candles`` as a DataFrame with one row per bar in input order."""

    if not candles:
        return pd.DataFrame(columns=CANDLE_COLUMNS, dtype=float)
    rows = [
        {
            "open_time": c.open_time,
            "close_time": c.close_time,
            "open": float(c.open),
            "high": float(c.high),
            "low": float(c.low),
            "close": float(c.close),
            "volume": float(c.volume),
        }
        for c in candles
    ]
    return pd.DataFrame(rows, columns=CANDLE_COLUMNS)


def _to_epoch_ms(value: Any) -> int:
    if isinstance(value, (int, float, np.integer, np.floating)) and not isinstance(value, bool):
        return int(value)
    ts = pd.Timestamp(value)
    if ts.tzinfo is None:
        ts = ts.tz_localize("UTC")
    return int(ts.value // 1_000_000)


def candles_from_frame(df: pd.DataFrame, bar_ms: Optional[int] = None) -> List[Candle]:
    """Build candles from an OHLC DataFrame.

    The frame needs ``open/high/low/close`` and either ``open_time`` and
    ``close_time`` columns or a single ``timestamp`` column (treated as the
    open time).  When only one timestamp is present the close time is the next
    bar's open time; ``bar_ms`` overrides that inference.
    """

    required = {"open", "high", "low", "close"}
    missing = required - set(df.columns)
    if missing:
        raise ValueError(f"missing OHLC columns: {', '.join(sorted(missing))}")

    if "open_time" in df.columns:
        open_times = [_to_epoch_ms(v) for v in df["open_time"]]
    elif "timestamp" in df.columns:
        open_times = [_to_epoch_ms(v) for v in df["timestamp"]]
    else:
        raise ValueError("frame needs an 'open_time' or 'timestamp' column")

    if "close_time" in df.columns:
        close_times = [_to_epoch_ms(v) for v in df["close_time"]]
    else:
        step = bar_ms
        if step is None:
            step = open_times[1] - open_times[0] if len(open_times) > 1 else 60_000
        close_times = [t + step for t in open_times]

    volumes: Iterable[float]
    if "volume" in df.columns:
        volumes = df["volume"].astype(float).tolist()
    else:
        volumes = [0.0] * len(df)

    return [
        Candle(
            open=float(o),
            high=float(h),
            low=float(lo),
            close=float(c),
            open_time=ot,
            close_time=ct,
            volume=float(v),
        )
        for o, h, lo, c, ot, ct, v in zip(
            df["open"], df["high"], df["low"], df["close"], open_times, close_times, volumes
        )
    ]


__all__ = [
    "LONG",
    "SHORT",
    "NONE",
    "TREND_UP",
    "TREND_DOWN",
    "Candle",
    "ChannelBands",
    "EntryDecision",
    "IndicatorSnapshot",
    "MACDValues",
    "Signal",
    "SuperTrendValue",
    "TrailingState",
    "candles_from_frame",
    "candles_to_frame",
]
