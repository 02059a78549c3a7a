"""Signal strategy engine.

Provides the strategy contract, the Fear & Greed sentiment strategy, the
aggregator that merges strategy outputs into one deduplicated timeline, and
the projection of signals into chart markers.
"""

from cryptosignal.signals.aggregator import (
    SignalAggregator,
    aggregate_signals,
    deduplicate_signals,
)
from cryptosignal.signals.base import SignalStrategy, create_signal_marker
from cryptosignal.signals.chart import build_chart_markers, to_chart_marker, to_volume_bars
from cryptosignal.signals.models import ChartMarker, SignalContext, SignalMarker, SignalType
from cryptosignal.signals.sentiment import (
    SentimentStrategy,
    SentimentThresholds,
    classify_sentiment,
    evaluate_sentiment,
    sentiment_css_class,
)

__all__ = [
    "ChartMarker",
    "SentimentStrategy",
    "SentimentThresholds",
    "SignalAggregator",
    "SignalContext",
    "SignalMarker",
    "SignalStrategy",
    "SignalType",
    "aggregate_signals",
    "build_chart_markers",
    "classify_sentiment",
    "create_signal_marker",
    "deduplicate_signals",
    "evaluate_sentiment",
    "sentiment_css_class",
    "to_chart_marker",
    "to_volume_bars",
]
