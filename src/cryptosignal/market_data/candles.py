"""Candle providers.

``CandleClient`` is the contract the application service depends on;
``BitbankCandleClient`` implements it with ccxt's async bitbank client.

bitbank serves 4-hour and longer candles one calendar year per request
(``/candlestick/<type>/YYYY``) and shorter candles one day per request
(``/candlestick/<type>/YYYYMMDD``), so yearly series are assembled from
several requests.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone

import ccxt.async_support as ccxt_async

from cryptosignal.exceptions import DataFetchError
from cryptosignal.logging import get_logger
from cryptosignal.models import Candle, epoch_to_date_key

logger = get_logger(__name__)

#: ccxt timeframes bitbank serves, shortest first.
SUPPORTED_TIMEFRAMES = ("1m", "5m", "15m", "30m", "1h", "4h", "8h", "12h", "1d", "1w", "1M")

#: Timeframes served per calendar year (and therefore fetched multi-year).
YEARLY_TIMEFRAMES = frozenset({"4h", "8h", "12h", "1d", "1w", "1M"})

# ccxt's bitbank timeframe table has no monthly entry
_CANDLE_TYPE_OVERRIDES = {"1M": "1month"}


def rows_to_candles(rows: list[list]) -> list[Candle]:
    """Convert ccxt OHLCV rows to candles sorted ascending by date key.

    Rows are ``[timestamp_ms, open, high, low, close, volume]``. When several
    rows map to the same date key the last one wins.
    """
    by_date: dict[str, Candle] = {}
    for timestamp_ms, open_, high, low, close, volume in rows:
        date_key = epoch_to_date_key(int(timestamp_ms) // 1000)
        by_date[date_key] = Candle(
            time=date_key,
            open=float(open_),
            high=float(high),
            low=float(low),
            close=float(close),
            volume=float(volume or 0),
        )
    return [by_date[key] for key in sorted(by_date)]


class CandleClient(ABC):
    """Abstract base class for candle providers."""

    @abstractmethod
    async def fetch_candles(self, pair: str, timeframe: str) -> list[Candle]:
        """Return candles sorted ascending by date key, one per key."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release network resources."""
        ...


class BitbankCandleClient(CandleClient):
    """bitbank public candle client using ccxt async.

    Args:
        years_back: Extra calendar years to fetch for yearly timeframes.
    """

    def __init__(self, years_back: int = 2) -> None:
        self._years_back = years_back
        self._exchange = ccxt_async.bitbank({"enableRateLimit": True})

    async def fetch_candles(self, pair: str, timeframe: str) -> list[Candle]:
        """Fetch candles for ``pair``.

        Yearly timeframes cover the current year plus ``years_back`` earlier
        years; a year that fails is logged and skipped. Other timeframes
        cover the current UTC day and raise ``DataFetchError`` on failure.
        """
        now = datetime.now(timezone.utc)

        if timeframe not in YEARLY_TIMEFRAMES:
            day_start = datetime(now.year, now.month, now.day, tzinfo=timezone.utc)
            try:
                day_rows = await self._fetch_rows(pair, timeframe, day_start)
            except ccxt_async.BaseError as e:
                raise DataFetchError(f"Candle fetch failed for {pair} {timeframe}: {e}") from e
            return rows_to_candles(day_rows)

        rows: list[list] = []
        for year in range(now.year - self._years_back, now.year + 1):
            year_start = datetime(year, 1, 1, tzinfo=timezone.utc)
            try:
                rows.extend(await self._fetch_rows(pair, timeframe, year_start))
            except ccxt_async.BaseError as e:
                logger.warning(
                    "candle_year_fetch_failed",
                    pair=pair,
                    timeframe=timeframe,
                    year=year,
                    error=str(e),
                )

        candles = rows_to_candles(rows)
        logger.info(
            "candles_fetched",
            pair=pair,
            timeframe=timeframe,
            count=len(candles),
            first=candles[0].time if candles else None,
            last=candles[-1].time if candles else None,
        )
        return candles

    async def _fetch_rows(self, pair: str, timeframe: str, since: datetime) -> list[list]:
        """Fetch one bitbank candlestick window starting at ``since``.

        ccxt always renders ``since`` as ``YYYYMMDD``; yearly candle types need
        ``YYYY`` in the path, so the date segment is overridden for them.
        """
        since_ms = int(since.timestamp() * 1000)
        params: dict[str, str] = {}
        if timeframe in YEARLY_TIMEFRAMES:
            params["yyyymmdd"] = str(since.year)
        if timeframe in _CANDLE_TYPE_OVERRIDES:
            params["candletype"] = _CANDLE_TYPE_OVERRIDES[timeframe]
        return await self._exchange.fetch_ohlcv(pair, timeframe, since=since_ms, params=params)

    async def close(self) -> None:
        """Clean up ccxt async resources."""
        await self._exchange.close()
