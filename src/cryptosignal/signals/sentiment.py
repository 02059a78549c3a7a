"""Fear & Greed Index signal strategy.

Emits BUY when the index is at or below the buy threshold (extreme fear)
and SELL when it is at or above the sell threshold (extreme greed).

Two modes:
- Historical back-fill: every history point whose UTC date matches a candle
  is evaluated and marked on that candle. Unmatched points are skipped.
- Live: only the current index value is known; it is marked on the most
  recent candle.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from cryptosignal.logging import get_logger
from cryptosignal.models import Candle, epoch_to_date_key
from cryptosignal.signals.base import SignalStrategy, create_signal_marker
from cryptosignal.signals.models import SignalContext, SignalMarker, SignalType

if TYPE_CHECKING:
    from cryptosignal.config import SentimentStrategySettings

logger = get_logger(__name__)

#: Upper bound (inclusive) of each classification bucket, low to high.
_CLASSIFICATION_BUCKETS: tuple[tuple[int, str, str], ...] = (
    (20, "Extreme Fear", "extreme-fear"),
    (40, "Fear", "fear"),
    (60, "Neutral", "neutral"),
    (80, "Greed", "greed"),
)
_TOP_BUCKET = ("Extreme Greed", "extreme-greed")


def _bucket(value: int) -> tuple[str, str]:
    for upper, label, css_class in _CLASSIFICATION_BUCKETS:
        if value <= upper:
            return label, css_class
    return _TOP_BUCKET


def classify_sentiment(value: int) -> str:
    """Return the classification label for an index value.

    Buckets: <=20 Extreme Fear, <=40 Fear, <=60 Neutral, <=80 Greed,
    otherwise Extreme Greed.
    """
    return _bucket(value)[0]


def sentiment_css_class(value: int) -> str:
    """Return the display slug for an index value (e.g. "extreme-fear")."""
    return _bucket(value)[1]


def _clamp(value: int) -> int:
    return max(0, min(100, value))


@dataclass(frozen=True)
class SentimentThresholds:
    """Immutable threshold snapshot. Replaced, never mutated, on update."""

    buy_threshold: int = 20
    sell_threshold: int = 80

    @property
    def inverted(self) -> bool:
        """True when a single value can satisfy both the buy and sell test."""
        return self.buy_threshold >= self.sell_threshold


def evaluate_sentiment(
    value: int,
    time: str,
    thresholds: SentimentThresholds,
    strategy_id: str,
) -> SignalMarker | None:
    """Evaluate one index value against the thresholds.

    Both comparisons are inclusive. The buy test runs first, so with
    inverted thresholds a value satisfying both yields a single BUY.

    Returns:
        A marker dated ``time``, or None when neither threshold is crossed.
    """
    if value <= thresholds.buy_threshold:
        signal_type = SignalType.BUY
    elif value >= thresholds.sell_threshold:
        signal_type = SignalType.SELL
    else:
        return None

    return create_signal_marker(
        time,
        signal_type,
        f"FG:{value}",
        classify_sentiment(value),
        strategy_id,
    )


class SentimentStrategy(SignalStrategy):
    """Signal strategy driven by the crypto Fear & Greed Index.

    Args:
        buy_threshold: Index value at or below which BUY is emitted.
        sell_threshold: Index value at or above which SELL is emitted.
        enabled: Initial enabled state.
    """

    STRATEGY_ID = "feargreed"

    def __init__(
        self,
        buy_threshold: int = 20,
        sell_threshold: int = 80,
        enabled: bool = True,
    ) -> None:
        super().__init__(self.STRATEGY_ID, "Fear & Greed Index")
        self._thresholds = SentimentThresholds()
        self.update_settings(
            {"buy_threshold": buy_threshold, "sell_threshold": sell_threshold}
        )
        self.set_enabled(enabled)

    @classmethod
    def from_settings(cls, settings: SentimentStrategySettings) -> SentimentStrategy:
        return cls(
            buy_threshold=settings.buy_threshold,
            sell_threshold=settings.sell_threshold,
            enabled=settings.enabled,
        )

    @property
    def thresholds(self) -> SentimentThresholds:
        return self._thresholds

    def calculate(
        self,
        candles: Sequence[Candle],
        context: SignalContext | None = None,
    ) -> list[SignalMarker]:
        """Evaluate sentiment history (preferred) or the current value."""
        if not self.is_enabled():
            return []

        # Read once so a concurrent settings update cannot split a pass
        thresholds = self._thresholds
        context = context or SignalContext()
        signals: list[SignalMarker] = []

        if context.sentiment_history and candles:
            candle_map = {candle.time: candle for candle in candles}
            for point in context.sentiment_history:
                date_key = epoch_to_date_key(point.timestamp)
                if date_key not in candle_map:
                    continue
                signal = evaluate_sentiment(
                    int(point.value), date_key, thresholds, self.id
                )
                if signal is not None:
                    signals.append(signal)
        elif context.sentiment_value is not None and candles:
            latest_candle = candles[-1]
            signal = evaluate_sentiment(
                int(context.sentiment_value), latest_candle.time, thresholds, self.id
            )
            if signal is not None:
                signals.append(signal)

        return signals

    def get_settings(self) -> dict[str, Any]:
        return dataclasses.asdict(self._thresholds)

    def update_settings(self, settings: Mapping[str, Any]) -> None:
        """Apply a partial threshold update, clamping each value into [0, 100].

        Absent (or None) fields keep their current value; unknown keys are
        ignored. Inverted thresholds are accepted and logged as a warning.
        """
        changes: dict[str, int] = {}
        for name in ("buy_threshold", "sell_threshold"):
            value = settings.get(name)
            if value is not None:
                changes[name] = _clamp(value)
        if not changes:
            return

        self._thresholds = dataclasses.replace(self._thresholds, **changes)

        if self._thresholds.inverted:
            logger.warning(
                "inverted_thresholds",
                strategy_id=self.id,
                buy_threshold=self._thresholds.buy_threshold,
                sell_threshold=self._thresholds.sell_threshold,
            )
