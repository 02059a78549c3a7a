"""Tests for cross-strategy signal aggregation.

Tests verify:
- recompute is idempotent for identical inputs
- Duplicate (time, type) keys keep the first-registered strategy's marker
- Output is sorted by date descending
- Disabled strategies contribute nothing
- Empty candles leave the previous timeline untouched
- Strategy registry lookups and duplicate ids
"""

from collections.abc import Sequence

import pytest

from cryptosignal.exceptions import DuplicateStrategyError, UnknownStrategyError
from cryptosignal.models import Candle
from cryptosignal.signals.aggregator import (
    SignalAggregator,
    aggregate_signals,
    deduplicate_signals,
)
from cryptosignal.signals.base import SignalStrategy, create_signal_marker
from cryptosignal.signals.models import SignalContext, SignalMarker, SignalType
from cryptosignal.signals.sentiment import SentimentStrategy


class FixedStrategy(SignalStrategy):
    """Emits a fixed list of (time, type) markers regardless of input."""

    def __init__(self, strategy_id: str, emits: list[tuple[str, SignalType]]) -> None:
        super().__init__(strategy_id, strategy_id.title())
        self._emits = emits
        self.calls = 0

    def calculate(
        self,
        candles: Sequence[Candle],
        context: SignalContext | None = None,
    ) -> list[SignalMarker]:
        self.calls += 1
        if not self.is_enabled() or not candles:
            return []
        return [
            create_signal_marker(time, signal_type, f"{self.id}:{time}", "fixed", self.id)
            for time, signal_type in self._emits
        ]


def _marker(time: str, signal_type: SignalType = SignalType.BUY, strategy_id: str = "a") -> SignalMarker:
    return create_signal_marker(time, signal_type, "", "test", strategy_id)


class TestDeduplicateSignals:
    def test_sorted_descending(self) -> None:
        signals = [_marker("2024-01-01"), _marker("2024-03-01"), _marker("2024-02-01")]
        result = deduplicate_signals(signals)
        assert [s.time for s in result] == ["2024-03-01", "2024-02-01", "2024-01-01"]

    def test_first_marker_wins(self) -> None:
        first = _marker("2024-01-01", strategy_id="first")
        second = _marker("2024-01-01", strategy_id="second")
        result = deduplicate_signals([first, second])
        assert result == [first]

    def test_buy_and_sell_on_same_date_both_kept(self) -> None:
        buy = _marker("2024-01-01", SignalType.BUY)
        sell = _marker("2024-01-01", SignalType.SELL)
        result = deduplicate_signals([buy, sell])
        assert result == [buy, sell]

    def test_empty(self) -> None:
        assert deduplicate_signals([]) == []


class TestAggregateSignals:
    def test_skips_disabled_strategy(self, candles: list[Candle]) -> None:
        enabled = FixedStrategy("a", [("2024-01-01", SignalType.BUY)])
        disabled = FixedStrategy("b", [("2024-01-02", SignalType.SELL)])
        disabled.set_enabled(False)

        result = aggregate_signals(candles, [enabled, disabled], SignalContext())

        assert [s.strategy_id for s in result] == ["a"]
        assert disabled.calls == 0

    def test_preserves_registration_order_for_ties(self, candles: list[Candle]) -> None:
        a = FixedStrategy("a", [("2024-01-01", SignalType.BUY)])
        b = FixedStrategy("b", [("2024-01-01", SignalType.BUY), ("2024-01-02", SignalType.SELL)])

        result = aggregate_signals(candles, [b, a], SignalContext())

        assert [(s.time, s.strategy_id) for s in result] == [
            ("2024-01-02", "b"),
            ("2024-01-01", "b"),
        ]


class TestSignalAggregator:
    def test_tie_break_keeps_first_registered(self, candles: list[Candle]) -> None:
        first = FixedStrategy("first", [("2024-01-01", SignalType.BUY)])
        second = FixedStrategy("second", [("2024-01-01", SignalType.BUY)])
        aggregator = SignalAggregator([first, second])

        result = aggregator.recompute(candles)

        assert len(result) == 1
        assert result[0].strategy_id == "first"

    def test_idempotent(self, candles: list[Candle]) -> None:
        aggregator = SignalAggregator([
            FixedStrategy("a", [("2024-01-02", SignalType.SELL), ("2024-01-01", SignalType.BUY)]),
            FixedStrategy("b", [("2024-01-03", SignalType.BUY), ("2024-01-01", SignalType.BUY)]),
        ])

        first = aggregator.recompute(candles, sentiment_value=10)
        second = aggregator.recompute(candles, sentiment_value=10)

        assert first == second
        assert [s.time for s in first] == ["2024-01-03", "2024-01-02", "2024-01-01"]

    def test_empty_candles_keep_previous_timeline(self, candles: list[Candle]) -> None:
        aggregator = SignalAggregator([FixedStrategy("a", [("2024-01-01", SignalType.BUY)])])
        previous = aggregator.recompute(candles)

        assert aggregator.recompute([]) == previous
        assert aggregator.recompute(None) == previous
        assert aggregator.signals == previous

    def test_recompute_replaces_timeline(self, candles: list[Candle]) -> None:
        strategy = FixedStrategy("a", [("2024-01-01", SignalType.BUY)])
        aggregator = SignalAggregator([strategy])
        aggregator.recompute(candles)

        strategy.set_enabled(False)
        assert aggregator.recompute(candles) == ()
        assert aggregator.signals == ()

    def test_disabled_strategy_contributes_nothing(self, candles: list[Candle]) -> None:
        strategy = SentimentStrategy()
        strategy.set_enabled(False)
        aggregator = SignalAggregator([strategy])

        assert aggregator.recompute(candles, sentiment_value=0) == ()

    def test_sentiment_payload_reaches_strategy(self, candles: list[Candle]) -> None:
        aggregator = SignalAggregator([SentimentStrategy()])

        result = aggregator.recompute(candles, sentiment_value=90)

        assert len(result) == 1
        assert result[0].time == "2024-01-03"
        assert result[0].type == SignalType.SELL
        assert result[0].text == "FG:90"

    def test_does_not_keep_caller_candles(self, candles: list[Candle]) -> None:
        aggregator = SignalAggregator([SentimentStrategy()])
        aggregator.recompute(candles, sentiment_value=5)
        candles.clear()

        assert [s.time for s in aggregator.signals] == ["2024-01-03"]


class TestRegistry:
    def test_get_strategy(self) -> None:
        strategy = SentimentStrategy()
        aggregator = SignalAggregator([strategy])
        assert aggregator.get_strategy("feargreed") is strategy

    def test_unknown_strategy(self) -> None:
        aggregator = SignalAggregator([SentimentStrategy()])
        with pytest.raises(UnknownStrategyError, match="rsi"):
            aggregator.get_strategy("rsi")

    def test_duplicate_id_rejected(self) -> None:
        aggregator = SignalAggregator([SentimentStrategy()])
        with pytest.raises(DuplicateStrategyError):
            aggregator.register(SentimentStrategy())

    def test_strategies_in_registration_order(self) -> None:
        a = FixedStrategy("a", [])
        b = FixedStrategy("b", [])
        aggregator = SignalAggregator([a])
        aggregator.register(b)
        assert aggregator.strategies == (a, b)
