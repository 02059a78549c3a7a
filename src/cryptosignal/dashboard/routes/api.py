"""JSON API endpoints for the signal dashboard: signals, chart data, sentiment and strategy control."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, field_validator

from cryptosignal.exceptions import DataFetchError, UnknownStrategyError
from cryptosignal.logging import get_logger
from cryptosignal.market_data.candles import SUPPORTED_TIMEFRAMES
from cryptosignal.orchestrator import RECENT_SIGNALS_LIMIT, SignalOrchestrator
from cryptosignal.signals.models import ChartMarker, SignalMarker
from cryptosignal.signals.sentiment import classify_sentiment, sentiment_css_class

logger = get_logger(__name__)

router = APIRouter()


class ThresholdUpdate(BaseModel):
    """Partial strategy settings update; omitted fields are left unchanged."""

    buy_threshold: int | None = None
    sell_threshold: int | None = None


class EnabledUpdate(BaseModel):
    enabled: bool


class AutoUpdateRequest(BaseModel):
    enabled: bool


class MarketUpdate(BaseModel):
    pair: str | None = None
    timeframe: str | None = None

    @field_validator("timeframe")
    @classmethod
    def _check_timeframe(cls, value: str | None) -> str | None:
        if value is not None and value not in SUPPORTED_TIMEFRAMES:
            raise ValueError(
                f"unsupported timeframe {value!r}; expected one of {', '.join(SUPPORTED_TIMEFRAMES)}"
            )
        return value


def _orchestrator(request: Request) -> SignalOrchestrator:
    return request.app.state.orchestrator


def _signal_to_dict(signal: SignalMarker) -> dict[str, Any]:
    return {
        "time": signal.time,
        "type": signal.type.value,
        "text": signal.text,
        "reason": signal.reason,
        "strategy_id": signal.strategy_id,
    }


def _marker_to_dict(marker: ChartMarker) -> dict[str, Any]:
    return {
        "time": marker.time,
        "position": marker.position,
        "color": marker.color,
        "shape": marker.shape,
        "text": marker.text,
    }


def _signals_response(signals: tuple[SignalMarker, ...] | list[SignalMarker]) -> JSONResponse:
    return JSONResponse(content=[_signal_to_dict(s) for s in signals])


@router.get("/status")
async def get_status(request: Request) -> JSONResponse:
    """Current market selection, data counts and strategy states."""
    return JSONResponse(content=_orchestrator(request).get_status())


@router.get("/signals")
async def get_signals(request: Request, limit: int = RECENT_SIGNALS_LIMIT) -> JSONResponse:
    """Signal history, newest first. ``limit=0`` returns the full timeline."""
    orchestrator = _orchestrator(request)
    if limit <= 0:
        return _signals_response(orchestrator.state.signals)
    return _signals_response(orchestrator.recent_signals(limit))


@router.get("/chart/markers")
async def get_chart_markers(request: Request) -> JSONResponse:
    """Chart markers in ascending date order, ready for the renderer."""
    markers = _orchestrator(request).chart_markers()
    return JSONResponse(content=[_marker_to_dict(m) for m in markers])


@router.get("/chart/candles")
async def get_chart_candles(request: Request) -> JSONResponse:
    """Candle series and the matching volume histogram."""
    orchestrator = _orchestrator(request)
    candles = [
        {
            "time": c.time,
            "open": c.open,
            "high": c.high,
            "low": c.low,
            "close": c.close,
            "volume": c.volume,
        }
        for c in orchestrator.state.candles
    ]
    return JSONResponse(content={"candles": candles, "volume": orchestrator.volume_bars()})


@router.get("/sentiment")
async def get_sentiment(request: Request) -> JSONResponse:
    """Current Fear & Greed reading with its classification badge."""
    reading = _orchestrator(request).state.sentiment
    if reading is None:
        return JSONResponse(content={"value": None})
    return JSONResponse(content={
        "value": reading.value,
        "classification": classify_sentiment(reading.value),
        "css_class": sentiment_css_class(reading.value),
        "timestamp": reading.timestamp,
        "time_until_update": reading.time_until_update,
    })


@router.get("/strategies")
async def get_strategies(request: Request) -> JSONResponse:
    return JSONResponse(content=_orchestrator(request).get_status()["strategies"])


@router.patch("/strategies/{strategy_id}/settings")
async def update_strategy_settings(
    strategy_id: str, update: ThresholdUpdate, request: Request
) -> JSONResponse:
    """Apply a partial threshold update and return the recalculated signals."""
    orchestrator = _orchestrator(request)
    try:
        signals = orchestrator.update_strategy_settings(
            strategy_id, update.model_dump(exclude_none=True)
        )
    except UnknownStrategyError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    strategy = orchestrator.aggregator.get_strategy(strategy_id)
    return JSONResponse(content={
        "settings": strategy.get_settings(),
        "signals": [_signal_to_dict(s) for s in signals[:RECENT_SIGNALS_LIMIT]],
    })


@router.post("/strategies/{strategy_id}/enabled")
async def set_strategy_enabled(
    strategy_id: str, update: EnabledUpdate, request: Request
) -> JSONResponse:
    orchestrator = _orchestrator(request)
    try:
        signals = orchestrator.set_strategy_enabled(strategy_id, update.enabled)
    except UnknownStrategyError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    return JSONResponse(content={
        "enabled": update.enabled,
        "signals": [_signal_to_dict(s) for s in signals[:RECENT_SIGNALS_LIMIT]],
    })


@router.post("/refresh")
async def refresh(request: Request) -> JSONResponse:
    """Refetch all data now and return the recalculated signal history."""
    try:
        signals = await _orchestrator(request).refresh()
    except DataFetchError as e:
        logger.error("manual_refresh_failed", error=str(e))
        raise HTTPException(status_code=502, detail=str(e)) from e
    return _signals_response(signals[:RECENT_SIGNALS_LIMIT])


@router.post("/market")
async def update_market(update: MarketUpdate, request: Request) -> JSONResponse:
    """Switch pair and/or timeframe, then refetch.

    Unsupported timeframes are rejected with 422. A failed refetch keeps the
    previous selection and returns 502.
    """
    orchestrator = _orchestrator(request)
    try:
        await orchestrator.switch_market(pair=update.pair, timeframe=update.timeframe)
    except DataFetchError as e:
        logger.error("market_switch_refresh_failed", error=str(e))
        raise HTTPException(status_code=502, detail=str(e)) from e
    return JSONResponse(content=orchestrator.get_status())


@router.post("/auto-update")
async def set_auto_update(update: AutoUpdateRequest, request: Request) -> JSONResponse:
    orchestrator = _orchestrator(request)
    await orchestrator.set_auto_update(update.enabled)
    return JSONResponse(content={
        "auto_update": orchestrator.state.auto_update,
        "running": orchestrator.auto_update_running,
    })
