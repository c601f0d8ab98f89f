"""Command line entrypoint that evaluates one breakout signal from a candle CSV.

The CSV needs ``open/high/low/close`` columns and either ``open_time`` /
``close_time`` or a single ``timestamp`` column.  The resulting signal is
printed to stdout as JSON; diagnostics go to the rotating log.
"""
from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Sequence

import pandas as pd

from config import load_strategy_config
from decision_metrics import SignalStats
from log_utils import setup_logger
from multi_timeframe import resample_candles
from observability import make_signal_observer
from risk_manager import build_position_plan
from signal_generator import SignalGenerator
from signal_schema import candles_from_frame

logger = setup_logger(__name__)


def run_cli(args: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Evaluate the breakout strategy on a candle CSV.")
    parser.add_argument("--csv", type=Path, required=True, help="Path to an OHLC candle CSV")
    parser.add_argument(
        "--confirmation-minutes",
        type=int,
        default=None,
        help="Also build a confirmation snapshot from candles resampled to this many minutes",
    )
    parser.add_argument(
        "--aggressiveness",
        type=int,
        choices=[1, 2, 3],
        default=None,
        help="Filter tier: 1 conservative, 2 moderate, 3 aggressive (default from env)",
    )
    parser.add_argument(
        "--trailing-distance",
        type=float,
        default=None,
        help="ATR multiple for the trailing stop (default from env)",
    )
    parser.add_argument("--plan", action="store_true", help="Include stop-loss and take-profit levels")

    parsed = parser.parse_args(args=args)

    try:
        config = load_strategy_config()
        overrides: Dict[str, Any] = {}
        if parsed.aggressiveness is not None:
            overrides["aggressiveness"] = parsed.aggressiveness
        if parsed.trailing_distance is not None:
            overrides["trailing_distance"] = parsed.trailing_distance
        if overrides:
            config = replace(config, **overrides).validate()
    except ValueError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1

    if not parsed.csv.exists():
        print(f"CSV not found: {parsed.csv}", file=sys.stderr)
        return 1
    try:
        frame = pd.read_csv(parsed.csv)
        candles = candles_from_frame(frame)
    except (ValueError, pd.errors.ParserError) as exc:
        print(f"Unusable candle CSV {parsed.csv}: {exc}", file=sys.stderr)
        return 1

    confirmation = None
    if parsed.confirmation_minutes is not None:
        try:
            confirmation = resample_candles(candles, parsed.confirmation_minutes)
        except ValueError as exc:
            print(f"Invalid confirmation interval: {exc}", file=sys.stderr)
            return 1

    stats = SignalStats()
    generator = SignalGenerator(config, observer=make_signal_observer(logger))
    signal = generator.generate(candles, confirmation, stats=stats)
    stats.log_summary(logger)

    payload: Dict[str, Any] = signal.to_dict()
    if parsed.plan and signal.is_entry:
        payload["plan"] = build_position_plan(signal, config.trailing_distance).to_dict()
    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(run_cli())
