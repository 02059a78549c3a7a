"""Projection of signals and candles into chart-widget data.

The chart widget (lightweight-charts) requires markers in ascending time
order; ``to_chart_marker`` does not reorder, ``build_chart_markers`` does.
"""

from collections.abc import Iterable

from cryptosignal.models import Candle
from cryptosignal.signals.models import ChartMarker, SignalMarker, SignalType

BUY_COLOR = "#00d26a"
SELL_COLOR = "#ff6b6b"
VOLUME_UP_COLOR = "#00d26a44"
VOLUME_DOWN_COLOR = "#ff6b6b44"


def to_chart_marker(signal: SignalMarker) -> ChartMarker:
    """Map a signal marker to its visual descriptor."""
    if signal.type == SignalType.BUY:
        return ChartMarker(
            time=signal.time,
            position="belowBar",
            color=BUY_COLOR,
            shape="arrowUp",
            text=signal.text or "Buy",
        )
    return ChartMarker(
        time=signal.time,
        position="aboveBar",
        color=SELL_COLOR,
        shape="arrowDown",
        text=signal.text or "Sell",
    )


def build_chart_markers(signals: Iterable[SignalMarker]) -> list[ChartMarker]:
    """Project signals and sort them ascending by date for the renderer."""
    markers = [to_chart_marker(signal) for signal in signals]
    markers.sort(key=lambda m: m.time)
    return markers


def to_volume_bars(candles: Iterable[Candle]) -> list[dict]:
    """Volume histogram points, tinted by candle direction."""
    return [
        {
            "time": candle.time,
            "value": candle.volume,
            "color": VOLUME_UP_COLOR if candle.close >= candle.open else VOLUME_DOWN_COLOR,
        }
        for candle in candles
    ]
