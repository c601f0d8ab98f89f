import math

import pytest

from signal_schema import (
    TREND_UP,
    Candle,
    ChannelBands,
    IndicatorSnapshot,
    MACDValues,
    SuperTrendValue,
)

START_MS = 1_704_067_200_000  # 2024-01-01T00:00:00Z
MINUTE_MS = 60_000


def build_candles(closes, start=START_MS, step=MINUTE_MS, spread=1.0):
    candles = []
    prev = closes[0]
    for i, close in enumerate(closes):
        open_time = start + i * step
        candles.append(
            Candle(
                open=float(prev),
                high=float(max(prev, close) + spread),
                low=float(min(prev, close) - spread),
                close=float(close),
                open_time=open_time,
                close_time=open_time + step,
                volume=10.0,
            )
        )
        prev = close
    return candles


def wave_closes(n, base=100.0, drift=0.1):
    return [base + 5 * math.sin(i / 5) + i * drift for i in range(n)]


@pytest.fixture
def make_candles():
    return build_candles


@pytest.fixture
def make_snapshot():
    def _make(
        kc_upper=2045.0,
        kc_lower=1955.0,
        bb_upper=2040.0,
        bb_lower=1960.0,
        cci=120.0,
        trend=TREND_UP,
        atr=10.0,
    ):
        return IndicatorSnapshot(
            keltner=ChannelBands(upper=kc_upper, middle=(kc_upper + kc_lower) / 2, lower=kc_lower),
            bollinger=ChannelBands(upper=bb_upper, middle=(bb_upper + bb_lower) / 2, lower=bb_lower),
            macd=MACDValues(macd=1.0, signal=0.5, histogram=0.5),
            cci=cci,
            supertrend=SuperTrendValue(value=1990.0, trend=trend),
            atr=atr,
        )

    return _make
