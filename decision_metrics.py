"""Caller-owned counters describing how signal checks turned out.

The generator never keeps counters of its own; callers that want diagnostics
pass a :class:`SignalStats` into ``SignalGenerator.generate`` and read or log
it whenever they like.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from signal_schema import LONG, SHORT, Signal

logger = logging.getLogger(__name__)

INSUFFICIENT_DATA_REASON = "Insufficient data for indicators"


@dataclass
class SignalStats:
    checks: int = 0
    indicator_failures: int = 0
    longs: int = 0
    shorts: int = 0
    nones: int = 0
    skip_reasons: Counter = field(default_factory=Counter)

    def record(self, signal: Signal) -> None:
        """Count one generator outcome."""

        self.checks += 1
        if signal.type == LONG:
            self.longs += 1
        elif signal.type == SHORT:
            self.shorts += 1
        else:
            self.nones += 1
            self.skip_reasons[signal.reason] += 1
            if signal.reason == INSUFFICIENT_DATA_REASON:
                self.indicator_failures += 1

    @property
    def signals(self) -> int:
        return self.longs + self.shorts

    def summary(self) -> Dict[str, Any]:
        return {
            "checks": self.checks,
            "indicator_failures": self.indicator_failures,
            "longs": self.longs,
            "shorts": self.shorts,
            "nones": self.nones,
            "skip_reasons": dict(self.skip_reasons),
        }

    def log_summary(self, target: Optional[logging.Logger] = None) -> None:
        parts = [
            f"checks={self.checks}",
            f"indicator_failures={self.indicator_failures}",
            f"longs={self.longs}",
            f"shorts={self.shorts}",
            f"nones={self.nones}",
        ]
        (target or logger).info("[METRIC] SIGNAL_SUMMARY: %s", ", ".join(parts))


__all__ = ["INSUFFICIENT_DATA_REASON", "SignalStats"]
