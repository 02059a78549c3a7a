"""alternative.me crypto Fear & Greed Index client.

https://alternative.me/crypto/fear-and-greed-index/

Uses urllib.request (stdlib) for the plain JSON endpoint; the blocking
call runs in a worker thread so the event loop stays free.
"""

import asyncio
import json
import urllib.error
import urllib.request

from cryptosignal.exceptions import DataFetchError
from cryptosignal.logging import get_logger
from cryptosignal.models import SentimentPoint, SentimentReading

logger = get_logger(__name__)


class FearGreedClient:
    """Fetches the current Fear & Greed Index and its daily history.

    Args:
        api_url: Endpoint base URL.
        timeout_seconds: HTTP timeout per request.
    """

    def __init__(
        self,
        api_url: str = "https://api.alternative.me/fng/",
        timeout_seconds: float = 10.0,
    ) -> None:
        self._api_url = api_url
        self._timeout = timeout_seconds

    def _fetch_entries(self, limit: int) -> list[dict]:
        """GET ``?limit=N`` and return the ``data`` entries, newest first."""
        url = f"{self._api_url}?limit={limit}"
        headers = {"Accept": "application/json", "User-Agent": "CryptoSignalTool/1.0"}
        req = urllib.request.Request(url, headers=headers)

        try:
            with urllib.request.urlopen(req, timeout=self._timeout) as resp:
                payload = json.loads(resp.read())
        except (urllib.error.URLError, TimeoutError, ValueError) as e:
            raise DataFetchError(f"Fear & Greed request failed: {e}") from e

        metadata = payload.get("metadata") or {}
        if metadata.get("error"):
            raise DataFetchError(f"Fear & Greed API error: {metadata['error']}")

        entries = payload.get("data")
        if not isinstance(entries, list):
            raise DataFetchError("Fear & Greed response has no data list")
        return entries

    def get_index(self) -> SentimentReading:
        """Blocking fetch of the latest reading."""
        entries = self._fetch_entries(1)
        if not entries:
            raise DataFetchError("Fear & Greed response is empty")
        latest = entries[0]
        try:
            until_update = latest.get("time_until_update")
            return SentimentReading(
                value=int(latest["value"]),
                classification=latest.get("value_classification", ""),
                timestamp=int(latest["timestamp"]),
                time_until_update=int(until_update) if until_update else None,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise DataFetchError(f"Malformed Fear & Greed entry: {latest!r}") from e

    def get_history(self, days: int = 30) -> list[SentimentPoint]:
        """Blocking fetch of the last ``days`` daily readings, newest first."""
        entries = self._fetch_entries(days)
        try:
            history = [
                SentimentPoint(
                    timestamp=int(item["timestamp"]),
                    value=int(item["value"]),
                    classification=item.get("value_classification", ""),
                )
                for item in entries
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise DataFetchError("Malformed Fear & Greed history") from e

        logger.info("sentiment_history_fetched", days=days, count=len(history))
        return history

    async def fetch_index(self) -> SentimentReading:
        return await asyncio.to_thread(self.get_index)

    async def fetch_history(self, days: int = 30) -> list[SentimentPoint]:
        return await asyncio.to_thread(self.get_history, days)
