"""Entry point for the crypto signal tool.

Wires all components together and either serves the dashboard API or, with
the dashboard disabled, runs a single refresh and logs the signal history.

Component wiring order (in _build_components):
1. Candle client (bitbank via ccxt)
2. Fear & Greed client
3. Strategies, in precedence order
4. SignalAggregator
5. SignalOrchestrator
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI

from cryptosignal.config import AppSettings
from cryptosignal.exceptions import DataFetchError
from cryptosignal.logging import get_logger, setup_logging
from cryptosignal.market_data.candles import BitbankCandleClient
from cryptosignal.market_data.sentiment import FearGreedClient
from cryptosignal.orchestrator import SignalOrchestrator
from cryptosignal.signals.aggregator import SignalAggregator
from cryptosignal.signals.sentiment import SentimentStrategy


def _build_components(settings: AppSettings) -> dict[str, Any]:
    """Build all components from settings.

    Earlier-registered strategies win deduplication ties, so register new
    strategies after the ones whose markers should take precedence.
    """
    candle_client = BitbankCandleClient(years_back=settings.market.years_back)
    sentiment_client = FearGreedClient(
        api_url=settings.sentiment.api_url,
        timeout_seconds=settings.sentiment.timeout_seconds,
    )

    aggregator = SignalAggregator([
        SentimentStrategy.from_settings(settings.feargreed),
    ])

    orchestrator = SignalOrchestrator(
        settings=settings,
        candle_client=candle_client,
        sentiment_client=sentiment_client,
        aggregator=aggregator,
    )

    return {
        "candle_client": candle_client,
        "sentiment_client": sentiment_client,
        "aggregator": aggregator,
        "orchestrator": orchestrator,
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initial refresh and auto update on startup; cleanup on shutdown."""
    logger = get_logger("cryptosignal.main")
    settings: AppSettings = app.state.settings
    components = app.state.components
    orchestrator: SignalOrchestrator = components["orchestrator"]

    app.state.orchestrator = orchestrator

    try:
        await orchestrator.refresh()
    except DataFetchError as e:
        # Dashboard still starts; the next auto update or manual refresh retries
        logger.error("initial_refresh_failed", error=str(e))

    if settings.refresh.auto_update:
        orchestrator.start_auto_update()

    logger.info("lifespan_started", pair=orchestrator.state.pair)

    yield

    await orchestrator.stop_auto_update()
    await components["candle_client"].close()
    logger.info("crypto_signal_tool_stopped")


async def run() -> None:
    """Run the crypto signal tool."""
    settings = AppSettings()

    setup_logging(settings.log_level)
    logger = get_logger("cryptosignal.main")

    components = _build_components(settings)

    if settings.dashboard.enabled:
        from cryptosignal.dashboard.app import create_dashboard_app

        app = create_dashboard_app(lifespan=lifespan)
        app.state.settings = settings
        app.state.components = components

        logger.info(
            "starting_with_dashboard",
            host=settings.dashboard.host,
            port=settings.dashboard.port,
            pair=settings.market.pair,
            timeframe=settings.market.timeframe,
        )

        config = uvicorn.Config(
            app,
            host=settings.dashboard.host,
            port=settings.dashboard.port,
            log_level="warning",  # Suppress uvicorn access logs
        )
        server = uvicorn.Server(config)
        await server.serve()
        return

    orchestrator: SignalOrchestrator = components["orchestrator"]
    try:
        await orchestrator.refresh()
        for signal in orchestrator.recent_signals():
            logger.info(
                "signal",
                time=signal.time,
                type=signal.type.value,
                reason=signal.reason,
                text=signal.text,
            )
    finally:
        await components["candle_client"].close()


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
