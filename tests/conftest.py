"""Shared test fixtures for the crypto signal tool."""

import pytest

from cryptosignal.config import (
    AppSettings,
    MarketSettings,
    RefreshSettings,
    SentimentStrategySettings,
)
from cryptosignal.models import Candle


@pytest.fixture
def candles() -> list[Candle]:
    """Three flat daily candles, 2024-01-01 .. 2024-01-03."""
    price = 5_000_000.0
    return [
        Candle(time=d, open=price, high=price, low=price, close=price, volume=1.5)
        for d in ("2024-01-01", "2024-01-02", "2024-01-03")
    ]


@pytest.fixture
def mock_settings() -> AppSettings:
    """AppSettings with test defaults (daily BTC/JPY, one extra year)."""
    return AppSettings(
        log_level="DEBUG",
        market=MarketSettings(pair="BTC/JPY", timeframe="1d", years_back=1),
        feargreed=SentimentStrategySettings(),
        refresh=RefreshSettings(auto_update=True, interval_seconds=600),
    )
