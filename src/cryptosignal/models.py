"""Market data models shared by the providers and the signal engine.

Candle prices are floats: candles are display data for the chart and the
signal engine only uses their date keys.
"""

from dataclasses import dataclass
from datetime import datetime, timezone


@dataclass(frozen=True)
class Candle:
    """A single OHLCV bar keyed by its UTC calendar date.

    ``time`` is an ISO date string (YYYY-MM-DD). Lexical ordering of the key
    equals chronological ordering, so series are sorted and joined on it.
    """

    time: str
    open: float
    high: float
    low: float
    close: float
    volume: float


@dataclass(frozen=True)
class SentimentPoint:
    """One historical Fear & Greed Index value."""

    timestamp: int  # epoch seconds
    value: int  # 0-100
    classification: str = ""  # provider's label, informational only


@dataclass(frozen=True)
class SentimentReading:
    """The current Fear & Greed Index reading."""

    value: int
    classification: str
    timestamp: int
    time_until_update: int | None = None  # seconds until the provider refreshes


def epoch_to_date_key(epoch_seconds: int | str) -> str:
    """Convert epoch seconds to a UTC calendar date key (YYYY-MM-DD)."""
    return datetime.fromtimestamp(int(epoch_seconds), tz=timezone.utc).date().isoformat()
