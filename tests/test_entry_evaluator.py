import pytest

import entry_evaluator
from entry_evaluator import TIER_FILTERS, evaluate_entry, evaluate_long, evaluate_short
from signal_schema import LONG, TREND_DOWN, TREND_UP


@pytest.fixture
def crossover(monkeypatch):
    """Control the MACD crossover detectors and record calls."""

    state = {"bullish": True, "bearish": True, "calls": 0}

    def bullish(_candles, _cfg):
        state["calls"] += 1
        return state["bullish"]

    def bearish(_candles, _cfg):
        state["calls"] += 1
        return state["bearish"]

    monkeypatch.setattr(entry_evaluator, "is_macd_bullish_crossover", bullish)
    monkeypatch.setattr(entry_evaluator, "is_macd_bearish_crossover", bearish)
    return state


def test_long_conservative_accepts_full_setup(crossover, make_snapshot):
    decision = evaluate_long(2050.0, make_snapshot(cci=120.0), [], 1)
    assert decision.signal is True
    assert decision.reason.startswith("Long (conservative)")
    assert "CCI=120" in decision.reason


def test_keltner_failure_short_circuits(crossover, make_snapshot):
    decision = evaluate_long(2042.0, make_snapshot(), [], 1)
    assert decision.signal is False
    assert decision.reason.startswith("Price did not break above Keltner upper band")
    assert crossover["calls"] == 0


def test_bollinger_checked_after_keltner(crossover, make_snapshot):
    snap = make_snapshot(kc_upper=2040.0, bb_upper=2045.0)
    decision = evaluate_long(2044.0, snap, [], 1)
    assert decision.reason.startswith("Price did not break above Bollinger upper band")
    assert crossover["calls"] == 0


def test_breakout_is_strict(crossover, make_snapshot):
    decision = evaluate_long(2045.0, make_snapshot(), [], 3)
    assert decision.signal is False
    assert "Keltner" in decision.reason


def test_missing_crossover_reported(crossover, make_snapshot):
    crossover["bullish"] = False
    decision = evaluate_long(2050.0, make_snapshot(), [], 3)
    assert decision.signal is False
    assert decision.reason == "No bullish MACD crossover"


def test_crossover_error_counts_as_no_crossover(monkeypatch, make_snapshot):
    def broken(_candles, _cfg):
        raise RuntimeError("indicator failure")

    monkeypatch.setattr(entry_evaluator, "is_macd_bullish_crossover", broken)
    decision = evaluate_long(2050.0, make_snapshot(), [], 1)
    assert decision.signal is False
    assert decision.reason == "No bullish MACD crossover"


def test_weak_cci_rejected_by_conservative_tier(crossover, make_snapshot):
    decision = evaluate_long(2050.0, make_snapshot(cci=80.0), [], 1)
    assert decision.signal is False
    assert decision.reason == "CCI not strong enough (80 <= 100)"


def test_weak_cci_accepted_by_looser_tiers(crossover, make_snapshot):
    snap = make_snapshot(cci=80.0)
    moderate = evaluate_long(2050.0, snap, [], 2)
    aggressive = evaluate_long(2050.0, snap, [], 3)
    assert moderate.signal is True
    assert moderate.reason.startswith("Long (moderate)")
    assert aggressive.signal is True
    assert aggressive.reason.startswith("Long (aggressive)")


@pytest.mark.parametrize("tier,cci", [(1, 100.0), (2, 50.0), (3, 0.0)])
def test_cci_threshold_is_strict(crossover, make_snapshot, tier, cci):
    decision = evaluate_long(2050.0, make_snapshot(cci=cci), [], tier)
    assert decision.signal is False
    assert decision.reason.startswith("CCI not strong enough")


def test_supertrend_required_for_conservative_and_moderate(crossover, make_snapshot):
    snap = make_snapshot(cci=120.0, trend=TREND_DOWN)
    for tier in (1, 2):
        decision = evaluate_long(2050.0, snap, [], tier)
        assert decision.signal is False
        assert decision.reason == "SuperTrend is not bullish"
    assert evaluate_long(2050.0, snap, [], 3).signal is True


@pytest.mark.parametrize("cci", [-20.0, 0.0, 30.0, 50.0, 75.0, 100.0, 150.0])
@pytest.mark.parametrize("trend", [TREND_UP, TREND_DOWN])
def test_stricter_tier_acceptance_implies_looser(crossover, make_snapshot, cci, trend):
    snap = make_snapshot(cci=cci, trend=trend)
    accepted = [evaluate_long(2050.0, snap, [], tier).signal for tier in (1, 2, 3)]
    if accepted[0]:
        assert accepted[1]
    if accepted[1]:
        assert accepted[2]


def _short_snapshot(make_snapshot, **kwargs):
    params = dict(kc_lower=1955.0, bb_lower=1960.0, cci=-120.0, trend=TREND_DOWN)
    params.update(kwargs)
    return make_snapshot(**params)


def test_short_conservative_accepts_breakdown(crossover, make_snapshot):
    decision = evaluate_short(1950.0, _short_snapshot(make_snapshot), [], 1)
    assert decision.signal is True
    assert decision.reason.startswith("Short (conservative)")
    assert "CCI=-120" in decision.reason


def test_short_guards(crossover, make_snapshot):
    above_band = evaluate_short(1957.0, _short_snapshot(make_snapshot), [], 1)
    assert above_band.reason.startswith("Price did not break below Keltner lower band")

    between = evaluate_short(1958.0, _short_snapshot(make_snapshot, kc_lower=1960.0, bb_lower=1955.0), [], 1)
    assert between.reason.startswith("Price did not break below Bollinger lower band")

    crossover["bearish"] = False
    assert evaluate_short(1950.0, _short_snapshot(make_snapshot), [], 1).reason == "No bearish MACD crossover"


def test_short_cci_and_supertrend(crossover, make_snapshot):
    weak = evaluate_short(1950.0, _short_snapshot(make_snapshot, cci=-80.0), [], 1)
    assert weak.reason == "CCI not weak enough (-80 >= -100)"

    flat = evaluate_short(1950.0, _short_snapshot(make_snapshot, cci=10.0), [], 3)
    assert flat.reason == "CCI not weak enough (10 >= 0)"

    wrong_trend = evaluate_short(1950.0, _short_snapshot(make_snapshot, trend=TREND_UP), [], 2)
    assert wrong_trend.reason == "SuperTrend is not bearish"


def test_confirmation_snapshot_does_not_change_decision(crossover, make_snapshot):
    snap = make_snapshot(cci=120.0)
    other = make_snapshot(cci=-500.0, trend=TREND_DOWN)
    assert evaluate_long(2050.0, snap, [], 1) == evaluate_long(2050.0, snap, [], 1, other)


def test_unknown_tier_and_side(crossover, make_snapshot):
    assert evaluate_long(2050.0, make_snapshot(), [], 4).signal is False
    assert "Unknown aggressiveness tier" in evaluate_long(2050.0, make_snapshot(), [], 4).reason
    assert evaluate_entry("sideways", 2050.0, make_snapshot(), [], 1).signal is False


def test_tier_table():
    assert set(TIER_FILTERS) == {1, 2, 3}
    assert TIER_FILTERS[1].cci_threshold > TIER_FILTERS[2].cci_threshold > TIER_FILTERS[3].cci_threshold
    assert not TIER_FILTERS[3].require_supertrend
    assert evaluate_entry(LONG, 1.0, None, [], 9).signal is False


@pytest.mark.parametrize("tier", [1, 2, 3])
def test_long_needs_both_bands_at_every_tier(crossover, make_snapshot, tier):
    keltner_only = make_snapshot(kc_upper=2040.0, bb_upper=2060.0)
    bollinger_only = make_snapshot(kc_upper=2060.0, bb_upper=2040.0)

    kc = evaluate_long(2050.0, keltner_only, [], tier)
    bb = evaluate_long(2050.0, bollinger_only, [], tier)

    assert kc.signal is False
    assert kc.reason.startswith("Price did not break above Bollinger upper band")
    assert bb.signal is False
    assert bb.reason.startswith("Price did not break above Keltner upper band")
    assert crossover["calls"] == 0


@pytest.mark.parametrize("tier", [1, 2, 3])
def test_short_needs_both_bands_at_every_tier(crossover, make_snapshot, tier):
    keltner_only = _short_snapshot(make_snapshot, kc_lower=1960.0, bb_lower=1940.0)
    bollinger_only = _short_snapshot(make_snapshot, kc_lower=1940.0, bb_lower=1960.0)

    kc = evaluate_short(1950.0, keltner_only, [], tier)
    bb = evaluate_short(1950.0, bollinger_only, [], tier)

    assert kc.signal is False
    assert kc.reason.startswith("Price did not break below Bollinger lower band")
    assert bb.signal is False
    assert bb.reason.startswith("Price did not break below Keltner lower band")
    assert crossover["calls"] == 0


@pytest.mark.parametrize("tier,cci", [(1, -100.0), (2, -50.0), (3, 0.0)])
def test_short_cci_threshold_is_strict(crossover, make_snapshot, tier, cci):
    at_threshold = evaluate_short(1950.0, _short_snapshot(make_snapshot, cci=cci), [], tier)
    beyond = evaluate_short(1950.0, _short_snapshot(make_snapshot, cci=cci - 1.0), [], tier)

    assert at_threshold.signal is False
    assert at_threshold.reason.startswith("CCI not weak enough")
    assert beyond.signal is True
