"""Application service -- owns the data snapshot and the refresh cycle.

Each refresh:
  1. FETCH: current Fear & Greed reading, its history and the candle series,
     concurrently
  2. STORE: replace the previous snapshot in full
  3. RECALCULATE: run the signal aggregator over the new snapshot

Strategy toggles and threshold changes only recalculate; they never refetch.
The auto-update loop repeats the refresh on a fixed interval until stopped.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from cryptosignal.config import AppSettings
from cryptosignal.exceptions import DataFetchError
from cryptosignal.logging import get_logger
from cryptosignal.market_data.candles import CandleClient
from cryptosignal.market_data.sentiment import FearGreedClient
from cryptosignal.models import Candle, SentimentPoint, SentimentReading
from cryptosignal.signals.aggregator import SignalAggregator
from cryptosignal.signals.chart import build_chart_markers, to_volume_bars
from cryptosignal.signals.models import ChartMarker, SignalMarker, SignalType

logger = get_logger(__name__)

#: Number of signals shown in the signal history panel.
RECENT_SIGNALS_LIMIT = 10


async def _gather_or_cancel(*coros: Awaitable[Any]) -> list[Any]:
    """Await all coroutines concurrently; on the first failure cancel the rest."""
    tasks = [asyncio.ensure_future(c) for c in coros]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


@dataclass
class AppState:
    """Latest data snapshot and the signals derived from it."""

    pair: str
    timeframe: str
    auto_update: bool = True
    sentiment: SentimentReading | None = None
    sentiment_history: tuple[SentimentPoint, ...] = ()
    candles: tuple[Candle, ...] = ()
    signals: tuple[SignalMarker, ...] = ()
    last_update_time: datetime | None = None


class SignalOrchestrator:
    """Coordinates the providers, the aggregator and the auto-update loop.

    Args:
        settings: Application-wide settings.
        candle_client: Candle provider.
        sentiment_client: Fear & Greed Index provider.
        aggregator: Signal aggregator with its registered strategies.
    """

    def __init__(
        self,
        settings: AppSettings,
        candle_client: CandleClient,
        sentiment_client: FearGreedClient,
        aggregator: SignalAggregator,
    ) -> None:
        self._settings = settings
        self._candle_client = candle_client
        self._sentiment_client = sentiment_client
        self._aggregator = aggregator
        self._state = AppState(
            pair=settings.market.pair,
            timeframe=settings.market.timeframe,
            auto_update=settings.refresh.auto_update,
        )
        self._refresh_lock = asyncio.Lock()
        self._auto_update_task: asyncio.Task | None = None

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def aggregator(self) -> SignalAggregator:
        return self._aggregator

    # ──────────────────────────────────────────────
    # Refresh / recalculate
    # ──────────────────────────────────────────────

    async def refresh(self) -> tuple[SignalMarker, ...]:
        """Fetch a fresh snapshot and recalculate signals.

        Refreshes are serialized; a refresh requested while another runs
        waits for it and then fetches again. Provider failures propagate as
        ``DataFetchError`` and leave the previous snapshot in place.
        """
        async with self._refresh_lock:
            pair, timeframe = self._state.pair, self._state.timeframe
            reading, history, candles = await _gather_or_cancel(
                self._sentiment_client.fetch_index(),
                self._sentiment_client.fetch_history(self._settings.sentiment.history_days),
                self._candle_client.fetch_candles(pair, timeframe),
            )

            self._state.sentiment = reading
            self._state.sentiment_history = tuple(history)
            self._state.candles = tuple(candles)
            self._state.last_update_time = datetime.now(timezone.utc)

            logger.info(
                "data_refreshed",
                pair=pair,
                timeframe=timeframe,
                sentiment=reading.value,
                history_points=len(history),
                candles=len(candles),
            )
            return self.recalculate()

    def recalculate(self) -> tuple[SignalMarker, ...]:
        """Re-run all enabled strategies over the stored snapshot."""
        state = self._state
        if not state.candles:
            logger.debug("recalculate_skipped_no_candles")
            return state.signals

        state.signals = self._aggregator.recompute(
            state.candles,
            sentiment_value=state.sentiment.value if state.sentiment else None,
            sentiment_history=state.sentiment_history,
        )
        logger.info(
            "signals_recalculated",
            total=len(state.signals),
            buy=sum(1 for s in state.signals if s.type == SignalType.BUY),
            sell=sum(1 for s in state.signals if s.type == SignalType.SELL),
            latest=state.signals[0].time if state.signals else None,
        )
        return state.signals

    async def switch_market(
        self, pair: str | None = None, timeframe: str | None = None
    ) -> tuple[SignalMarker, ...]:
        """Select a new pair and/or timeframe and refetch.

        If the refetch raises ``DataFetchError`` the previous selection is
        restored, so the selection always matches the stored snapshot.
        """
        previous = (self._state.pair, self._state.timeframe)
        if pair:
            self._state.pair = pair
        if timeframe:
            self._state.timeframe = timeframe
        try:
            return await self.refresh()
        except DataFetchError as e:
            self._state.pair, self._state.timeframe = previous
            logger.warning(
                "market_switch_reverted",
                pair=pair,
                timeframe=timeframe,
                restored_pair=previous[0],
                restored_timeframe=previous[1],
                error=str(e),
            )
            raise

    async def set_pair(self, pair: str) -> tuple[SignalMarker, ...]:
        return await self.switch_market(pair=pair)

    async def set_timeframe(self, timeframe: str) -> tuple[SignalMarker, ...]:
        return await self.switch_market(timeframe=timeframe)

    # ──────────────────────────────────────────────
    # Strategy configuration
    # ──────────────────────────────────────────────

    def set_strategy_enabled(self, strategy_id: str, enabled: bool) -> tuple[SignalMarker, ...]:
        """Toggle a strategy and recalculate. Raises ``UnknownStrategyError``."""
        strategy = self._aggregator.get_strategy(strategy_id)
        strategy.set_enabled(enabled)
        logger.info("strategy_toggled", strategy_id=strategy_id, enabled=enabled)
        return self.recalculate()

    def update_strategy_settings(
        self, strategy_id: str, settings: Mapping[str, Any]
    ) -> tuple[SignalMarker, ...]:
        """Apply a partial settings update and recalculate. Raises ``UnknownStrategyError``."""
        strategy = self._aggregator.get_strategy(strategy_id)
        strategy.update_settings(settings)
        logger.info(
            "strategy_settings_updated",
            strategy_id=strategy_id,
            settings=strategy.get_settings(),
        )
        return self.recalculate()

    # ──────────────────────────────────────────────
    # Presentation views
    # ──────────────────────────────────────────────

    def chart_markers(self) -> list[ChartMarker]:
        return build_chart_markers(self._state.signals)

    def volume_bars(self) -> list[dict]:
        return to_volume_bars(self._state.candles)

    def recent_signals(self, limit: int = RECENT_SIGNALS_LIMIT) -> list[SignalMarker]:
        """Most recent signals first, at most ``limit``."""
        return list(self._state.signals[:limit])

    def get_status(self) -> dict[str, Any]:
        state = self._state
        return {
            "pair": state.pair,
            "timeframe": state.timeframe,
            "auto_update": state.auto_update,
            "auto_update_running": self.auto_update_running,
            "update_interval_seconds": self._settings.refresh.interval_seconds,
            "sentiment_value": state.sentiment.value if state.sentiment else None,
            "candle_count": len(state.candles),
            "signal_count": len(state.signals),
            "last_update_time": (
                state.last_update_time.isoformat() if state.last_update_time else None
            ),
            "strategies": [
                {
                    "id": s.id,
                    "name": s.name,
                    "enabled": s.is_enabled(),
                    "settings": s.get_settings(),
                }
                for s in self._aggregator.strategies
            ],
        }

    # ──────────────────────────────────────────────
    # Auto update
    # ──────────────────────────────────────────────

    @property
    def auto_update_running(self) -> bool:
        return self._auto_update_task is not None and not self._auto_update_task.done()

    def start_auto_update(self) -> None:
        """Start the periodic refresh task. No-op if it is already running."""
        if self.auto_update_running:
            return
        self._auto_update_task = asyncio.create_task(self._auto_update_loop())

    async def stop_auto_update(self) -> None:
        """Cancel the periodic refresh task and wait for it to finish."""
        task = self._auto_update_task
        self._auto_update_task = None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("auto_update_stopped")

    async def set_auto_update(self, enabled: bool) -> None:
        self._state.auto_update = enabled
        if enabled:
            self.start_auto_update()
        else:
            await self.stop_auto_update()

    async def _auto_update_loop(self) -> None:
        """Refresh every ``interval_seconds``; failed cycles are logged, not fatal."""
        interval = self._settings.refresh.interval_seconds
        logger.info("auto_update_started", interval_seconds=interval)

        while True:
            await asyncio.sleep(interval)
            if not self._state.auto_update:
                continue
            try:
                await self.refresh()
            except Exception as e:
                logger.error("auto_update_cycle_failed", error=str(e), exc_info=True)
