"""Central configuration loader for environment variables."""
from __future__ import annotations

from dataclasses import dataclass, field

from dotenv import load_dotenv

# Load environment variables once when this module is imported.
load_dotenv()

import os


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return float(default)
    try:
        return float(raw)
    except (TypeError, ValueError):
        return float(default)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return int(default)
    try:
        return int(float(raw))
    except (TypeError, ValueError):
        return int(default)


# ---------------------------------------------------------------------------
# Indicator parameter blocks
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class KeltnerConfig:
    """EMA midline offset by an ATR multiple."""

    ma_period: int = 20
    atr_period: int = 10
    atr_multiple: float = 2.0


@dataclass(frozen=True)
class BollingerConfig:
    period: int = 20
    deviation: float = 2.0


@dataclass(frozen=True)
class MACDConfig:
    fast_period: int = 12
    slow_period: int = 26
    signal_period: int = 9


@dataclass(frozen=True)
class CCIConfig:
    period: int = 20


@dataclass(frozen=True)
class SuperTrendConfig:
    period: int = 10
    multiplier: float = 3.0


@dataclass(frozen=True)
class IndicatorConfig:
    """One parameter block per indicator family consumed by the snapshot builder."""

    keltner: KeltnerConfig = field(default_factory=KeltnerConfig)
    bollinger: BollingerConfig = field(default_factory=BollingerConfig)
    macd: MACDConfig = field(default_factory=MACDConfig)
    cci: CCIConfig = field(default_factory=CCIConfig)
    supertrend: SuperTrendConfig = field(default_factory=SuperTrendConfig)


@dataclass(frozen=True)
class StrategyConfig:
    """Runtime knobs for the breakout strategy.

    ``aggressiveness`` selects the auxiliary filter tier (1 conservative,
    2 moderate, 3 aggressive).  ``trailing_distance`` is the ATR multiple the
    trailing stop keeps behind the best price once the position is at 1R.
    """

    indicators: IndicatorConfig = field(default_factory=IndicatorConfig)
    aggressiveness: int = 1
    trailing_distance: float = 1.0

    def validate(self) -> "StrategyConfig":
        """Raise ``ValueError`` when a parameter is out of range, else return ``self``."""

        if self.aggressiveness not in (1, 2, 3):
            raise ValueError(
                f"aggressiveness must be 1, 2 or 3 (got {self.aggressiveness!r})"
            )
        if self.trailing_distance <= 0:
            raise ValueError("trailing_distance must be positive")

        ind = self.indicators
        periods = {
            "keltner.ma_period": ind.keltner.ma_period,
            "keltner.atr_period": ind.keltner.atr_period,
            "bollinger.period": ind.bollinger.period,
            "macd.fast_period": ind.macd.fast_period,
            "macd.slow_period": ind.macd.slow_period,
            "macd.signal_period": ind.macd.signal_period,
            "cci.period": ind.cci.period,
            "supertrend.period": ind.supertrend.period,
        }
        for name, value in periods.items():
            if int(value) <= 0:
                raise ValueError(f"{name} must be a positive integer (got {value!r})")
        multipliers = {
            "keltner.atr_multiple": ind.keltner.atr_multiple,
            "bollinger.deviation": ind.bollinger.deviation,
            "supertrend.multiplier": ind.supertrend.multiplier,
        }
        for name, value in multipliers.items():
            if float(value) <= 0:
                raise ValueError(f"{name} must be positive (got {value!r})")
        if ind.macd.fast_period >= ind.macd.slow_period:
            raise ValueError("macd.fast_period must be shorter than macd.slow_period")
        return self


def load_indicator_config() -> IndicatorConfig:
    """Load indicator parameters from environment variables."""

    return IndicatorConfig(
        keltner=KeltnerConfig(
            ma_period=_env_int("KELTNER_MA_PERIOD", 20),
            atr_period=_env_int("KELTNER_ATR_PERIOD", 10),
            atr_multiple=_env_float("KELTNER_ATR_MULTIPLE", 2.0),
        ),
        bollinger=BollingerConfig(
            period=_env_int("BOLLINGER_PERIOD", 20),
            deviation=_env_float("BOLLINGER_DEVIATION", 2.0),
        ),
        macd=MACDConfig(
            fast_period=_env_int("MACD_FAST", 12),
            slow_period=_env_int("MACD_SLOW", 26),
            signal_period=_env_int("MACD_SIGNAL", 9),
        ),
        cci=CCIConfig(period=_env_int("CCI_PERIOD", 20)),
        supertrend=SuperTrendConfig(
            period=_env_int("SUPERTREND_PERIOD", 10),
            multiplier=_env_float("SUPERTREND_MULTIPLIER", 3.0),
        ),
    )


def load_strategy_config() -> StrategyConfig:
    """Load and validate the strategy configuration from environment variables."""

    return StrategyConfig(
        indicators=load_indicator_config(),
        aggressiveness=_env_int("STRATEGY_AGGRESSIVENESS", 1),
        trailing_distance=_env_float("TRAILING_DISTANCE_ATR", 1.0),
    ).validate()


__all__ = [
    "BollingerConfig",
    "CCIConfig",
    "IndicatorConfig",
    "KeltnerConfig",
    "MACDConfig",
    "StrategyConfig",
    "SuperTrendConfig",
    "load_indicator_config",
    "load_strategy_config",
]
