"""Signal engine data models.

Signal markers are immutable: strategies create them, the aggregator only
filters and reorders them.
"""

from dataclasses import dataclass, field
from enum import Enum

from cryptosignal.models import SentimentPoint


class SignalType(str, Enum):
    """Direction of a signal event."""

    BUY = "buy"
    SELL = "sell"


@dataclass(frozen=True)
class SignalMarker:
    """A buy/sell event attributed to one candle date and one strategy."""

    time: str  # candle date key (YYYY-MM-DD)
    type: SignalType
    text: str  # short chart label, e.g. "FG:12"
    reason: str  # classification of the triggering value
    strategy_id: str  # weak reference to the originating strategy

    @property
    def key(self) -> tuple[str, SignalType]:
        """Deduplication key: one marker per date and direction."""
        return (self.time, self.type)


@dataclass(frozen=True)
class SignalContext:
    """Extra data passed to every strategy alongside the candle series.

    Strategies read the fields they understand and ignore the rest.
    """

    sentiment_value: int | None = None
    sentiment_history: tuple[SentimentPoint, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ChartMarker:
    """Renderer-facing marker descriptor (lightweight-charts marker shape)."""

    time: str
    position: str  # "belowBar" | "aboveBar"
    color: str
    shape: str  # "arrowUp" | "arrowDown"
    text: str
