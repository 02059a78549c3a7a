"""Strategy contract shared by all signal strategies.

The aggregator depends only on ``SignalStrategy``; adding a new rule
(momentum, volume, ...) means adding a subclass, nothing else.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

from cryptosignal.models import Candle
from cryptosignal.signals.models import SignalContext, SignalMarker, SignalType


def create_signal_marker(
    time: str,
    signal_type: SignalType,
    text: str,
    reason: str,
    strategy_id: str,
) -> SignalMarker:
    """Build a signal marker. The only way strategies should create them."""
    return SignalMarker(
        time=time,
        type=SignalType(signal_type),
        text=text,
        reason=reason,
        strategy_id=strategy_id,
    )


class SignalStrategy(ABC):
    """Abstract base class for pluggable signal rules.

    Args:
        strategy_id: Unique identifier, stamped on every emitted marker.
        name: Display name.
    """

    def __init__(self, strategy_id: str, name: str) -> None:
        self.id = strategy_id
        self.name = name
        self._enabled = True

    @abstractmethod
    def calculate(
        self,
        candles: Sequence[Candle],
        context: SignalContext | None = None,
    ) -> list[SignalMarker]:
        """Derive signal markers from candles and extra data.

        Must not mutate ``candles``, must be deterministic, and must return
        an empty list rather than raise when disabled or when the inputs are
        insufficient.
        """
        ...

    def is_enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = bool(enabled)

    def get_settings(self) -> dict[str, Any]:
        """Snapshot of tunable settings. Strategies without tunables return {}."""
        return {}

    def update_settings(self, settings: Mapping[str, Any]) -> None:
        """Apply a partial settings update. Default: nothing to tune."""
        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, enabled={self.is_enabled()})"
