"""Lightweight observability helpers for structured logs.

The decision core never writes to stdout on its own.  Callers that want to see
emitted signals pass an observer into :class:`signal_generator.SignalGenerator`;
this module provides the default one:

* ``log_event`` emits JSON encoded log lines with a consistent schema so the
  caller's logger configuration can ship them to any sink.
* ``make_signal_observer`` wraps ``log_event`` into a ``Signal`` callback.
"""
from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, MutableMapping, Optional

from signal_schema import Signal

_OBSERVABILITY_LOGGER = logging.getLogger("observability")

SignalObserver = Callable[[Signal], None]


def log_event(logger: Optional[logging.Logger], event: str, **fields: Any) -> None:
    """Emit a structured JSON log entry.

    Parameters
    ----------
    logger:
        Logger instance to use.  When ``None`` the module level observability
        logger is used.
    event:
        Short event identifier.  Stored under the ``event`` key in the emitted
        payload.
    **fields:
        Additional key/value pairs to include in the log entry.  Values that are
        not JSON serialisable are written using ``repr``.
    """

    payload: MutableMapping[str, Any] = {"event": event, "ts": time.time()}
    payload.update(fields)
    target = logger or _OBSERVABILITY_LOGGER
    try:
        target.info(json.dumps(payload, sort_keys=True))
    except TypeError:
        serialisable = {k: _safe_json_value(v) for k, v in payload.items()}
        target.info(json.dumps(serialisable, sort_keys=True))


def _safe_json_value(value: Any) -> Any:
    try:
        json.dumps(value)
        return value
    except TypeError:
        return repr(value)


def make_signal_observer(logger: Optional[logging.Logger] = None) -> SignalObserver:
    """Return an observer that logs every emitted signal as a ``signal_found`` event."""

    def _observe(signal: Signal) -> None:
        log_event(
            logger,
            "signal_found",
            type=signal.type,
            price=signal.price,
            reason=signal.reason,
            timestamp=signal.timestamp,
        )

    return _observe


__all__ = ["SignalObserver", "log_event", "make_signal_observer"]
