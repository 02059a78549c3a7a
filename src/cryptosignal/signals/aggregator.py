"""Cross-strategy signal aggregation.

Runs every enabled strategy over the same candle series, merges their
markers, keeps one marker per (date, direction) and orders the result
newest first. The output replaces the previous timeline in full; there is
no incremental merge.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from cryptosignal.exceptions import DuplicateStrategyError, UnknownStrategyError
from cryptosignal.logging import get_logger
from cryptosignal.models import Candle, SentimentPoint
from cryptosignal.signals.base import SignalStrategy
from cryptosignal.signals.models import SignalContext, SignalMarker, SignalType

logger = get_logger(__name__)


def deduplicate_signals(signals: Iterable[SignalMarker]) -> list[SignalMarker]:
    """Drop repeated (time, type) markers and sort by date descending.

    The first marker seen for a key wins, so earlier-registered strategies
    take precedence over later ones. The sort is stable: markers sharing a
    date keep their first-seen order.
    """
    seen: dict[tuple[str, SignalType], SignalMarker] = {}
    for signal in signals:
        seen.setdefault(signal.key, signal)
    return sorted(seen.values(), key=lambda s: s.time, reverse=True)


def aggregate_signals(
    candles: Sequence[Candle],
    strategies: Iterable[SignalStrategy],
    context: SignalContext,
) -> list[SignalMarker]:
    """Run enabled strategies in order and return the deduplicated timeline."""
    all_signals: list[SignalMarker] = []
    for strategy in strategies:
        if not strategy.is_enabled():
            continue
        signals = strategy.calculate(candles, context)
        logger.debug(
            "strategy_calculated",
            strategy_id=strategy.id,
            signals=len(signals),
        )
        all_signals.extend(signals)
    return deduplicate_signals(all_signals)


class SignalAggregator:
    """Holds registered strategies and the current canonical signal timeline.

    Args:
        strategies: Initial strategies, in registration (precedence) order.
    """

    def __init__(self, strategies: Iterable[SignalStrategy] = ()) -> None:
        self._strategies: list[SignalStrategy] = []
        self._signals: tuple[SignalMarker, ...] = ()
        for strategy in strategies:
            self.register(strategy)

    @property
    def strategies(self) -> tuple[SignalStrategy, ...]:
        return tuple(self._strategies)

    @property
    def signals(self) -> tuple[SignalMarker, ...]:
        """Current timeline, newest first."""
        return self._signals

    def register(self, strategy: SignalStrategy) -> None:
        if any(s.id == strategy.id for s in self._strategies):
            raise DuplicateStrategyError(f"Strategy '{strategy.id}' is already registered")
        self._strategies.append(strategy)
        logger.info("strategy_registered", strategy_id=strategy.id, name=strategy.name)

    def get_strategy(self, strategy_id: str) -> SignalStrategy:
        """Look up a registered strategy by id.

        Raises ``UnknownStrategyError`` if the id is not registered.
        """
        for strategy in self._strategies:
            if strategy.id == strategy_id:
                return strategy
        raise UnknownStrategyError(
            f"Unknown strategy '{strategy_id}'. "
            f"Available: {', '.join(s.id for s in self._strategies)}"
        )

    def recompute(
        self,
        candles: Sequence[Candle] | None,
        sentiment_value: int | None = None,
        sentiment_history: Iterable[SentimentPoint] | None = None,
    ) -> tuple[SignalMarker, ...]:
        """Rebuild the signal timeline from a fresh data snapshot.

        Without candles nothing is computed and the previous timeline is
        returned unchanged.

        Returns:
            The current timeline, newest first.
        """
        if not candles:
            return self._signals

        context = SignalContext(
            sentiment_value=sentiment_value,
            sentiment_history=tuple(sentiment_history or ()),
        )
        self._signals = tuple(aggregate_signals(candles, self._strategies, context))
        return self._signals
