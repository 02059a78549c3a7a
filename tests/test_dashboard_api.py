"""Tests for the dashboard JSON API."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from cryptosignal.config import AppSettings
from cryptosignal.dashboard.app import create_dashboard_app
from cryptosignal.exceptions import DataFetchError
from cryptosignal.market_data.candles import CandleClient
from cryptosignal.market_data.sentiment import FearGreedClient
from cryptosignal.models import Candle, SentimentPoint, SentimentReading
from cryptosignal.orchestrator import SignalOrchestrator
from cryptosignal.signals.aggregator import SignalAggregator
from cryptosignal.signals.sentiment import SentimentStrategy


@pytest.fixture
def orchestrator(mock_settings: AppSettings, candles: list[Candle]) -> SignalOrchestrator:
    candle_client = MagicMock(spec=CandleClient)
    candle_client.fetch_candles = AsyncMock(return_value=candles)
    sentiment_client = MagicMock(spec=FearGreedClient)
    sentiment_client.fetch_index = AsyncMock(
        return_value=SentimentReading(value=12, classification="Extreme Fear", timestamp=1704240000)
    )
    sentiment_client.fetch_history = AsyncMock(return_value=[
        SentimentPoint(timestamp=1704240000, value=12),
        SentimentPoint(timestamp=1704153600, value=81),
    ])
    return SignalOrchestrator(
        settings=mock_settings,
        candle_client=candle_client,
        sentiment_client=sentiment_client,
        aggregator=SignalAggregator([SentimentStrategy()]),
    )


@pytest.fixture
def client(orchestrator: SignalOrchestrator) -> TestClient:
    app = create_dashboard_app()
    app.state.orchestrator = orchestrator
    return TestClient(app)


class TestReadEndpoints:
    def test_status_before_refresh(self, client: TestClient) -> None:
        resp = client.get("/api/status")
        assert resp.status_code == 200
        data = resp.json()
        assert data["signal_count"] == 0
        assert data["sentiment_value"] is None

    def test_sentiment_before_refresh(self, client: TestClient) -> None:
        assert client.get("/api/sentiment").json() == {"value": None}

    def test_refresh_then_signals(self, client: TestClient) -> None:
        resp = client.post("/api/refresh")
        assert resp.status_code == 200
        assert [s["time"] for s in resp.json()] == ["2024-01-03", "2024-01-02"]

        signals = client.get("/api/signals").json()
        assert signals[0] == {
            "time": "2024-01-03",
            "type": "buy",
            "text": "FG:12",
            "reason": "Extreme Fear",
            "strategy_id": "feargreed",
        }
        assert signals[1]["type"] == "sell"

    def test_signals_limit(self, client: TestClient) -> None:
        client.post("/api/refresh")
        assert len(client.get("/api/signals", params={"limit": 1}).json()) == 1
        assert len(client.get("/api/signals", params={"limit": 0}).json()) == 2

    def test_chart_markers_ascending(self, client: TestClient) -> None:
        client.post("/api/refresh")
        markers = client.get("/api/chart/markers").json()
        assert [m["time"] for m in markers] == ["2024-01-02", "2024-01-03"]
        assert markers[0]["position"] == "aboveBar"
        assert markers[1]["shape"] == "arrowUp"

    def test_chart_candles(self, client: TestClient) -> None:
        client.post("/api/refresh")
        data = client.get("/api/chart/candles").json()
        assert len(data["candles"]) == 3
        assert len(data["volume"]) == 3
        assert data["candles"][0]["time"] == "2024-01-01"

    def test_sentiment_badge(self, client: TestClient) -> None:
        client.post("/api/refresh")
        data = client.get("/api/sentiment").json()
        assert data["value"] == 12
        assert data["classification"] == "Extreme Fear"
        assert data["css_class"] == "extreme-fear"


class TestStrategyEndpoints:
    def test_list_strategies(self, client: TestClient) -> None:
        data = client.get("/api/strategies").json()
        assert [s["id"] for s in data] == ["feargreed"]

    def test_patch_settings_clamps(self, client: TestClient) -> None:
        client.post("/api/refresh")
        resp = client.patch(
            "/api/strategies/feargreed/settings", json={"sell_threshold": 250}
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["settings"] == {"buy_threshold": 20, "sell_threshold": 100}
        # 81 no longer crosses the sell threshold
        assert [s["type"] for s in data["signals"]] == ["buy"]

    def test_patch_unknown_strategy(self, client: TestClient) -> None:
        resp = client.patch("/api/strategies/rsi/settings", json={"buy_threshold": 10})
        assert resp.status_code == 404

    def test_disable_strategy(self, client: TestClient) -> None:
        client.post("/api/refresh")
        resp = client.post("/api/strategies/feargreed/enabled", json={"enabled": False})
        assert resp.status_code == 200
        assert resp.json() == {"enabled": False, "signals": []}

    def test_enable_unknown_strategy(self, client: TestClient) -> None:
        resp = client.post("/api/strategies/rsi/enabled", json={"enabled": True})
        assert resp.status_code == 404


class TestControlEndpoints:
    def test_refresh_failure_is_502(
        self, client: TestClient, orchestrator: SignalOrchestrator
    ) -> None:
        orchestrator._candle_client.fetch_candles.side_effect = DataFetchError("bitbank down")
        resp = client.post("/api/refresh")
        assert resp.status_code == 502
        assert "bitbank down" in resp.json()["detail"]

    def test_switch_market(self, client: TestClient, orchestrator: SignalOrchestrator) -> None:
        resp = client.post("/api/market", json={"pair": "ETH/JPY", "timeframe": "1w"})
        assert resp.status_code == 200
        assert resp.json()["pair"] == "ETH/JPY"
        orchestrator._candle_client.fetch_candles.assert_awaited_with("ETH/JPY", "1w")

    def test_switch_market_rejects_unknown_timeframe(
        self, client: TestClient, orchestrator: SignalOrchestrator
    ) -> None:
        resp = client.post("/api/market", json={"timeframe": "bogus"})

        assert resp.status_code == 422
        assert orchestrator.state.timeframe == "1d"
        orchestrator._candle_client.fetch_candles.assert_not_awaited()

    def test_failed_market_switch_keeps_selection(
        self, client: TestClient, orchestrator: SignalOrchestrator
    ) -> None:
        client.post("/api/refresh")
        orchestrator._candle_client.fetch_candles.side_effect = DataFetchError("bitbank down")

        resp = client.post("/api/market", json={"timeframe": "1w"})

        assert resp.status_code == 502
        status = client.get("/api/status").json()
        assert status["timeframe"] == "1d"
        assert status["candle_count"] == 3

    def test_auto_update_toggle(self, client: TestClient) -> None:
        resp = client.post("/api/auto-update", json={"enabled": False})
        assert resp.status_code == 200
        assert resp.json() == {"auto_update": False, "running": False}
