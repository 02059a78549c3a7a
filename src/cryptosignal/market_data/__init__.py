"""Market data providers: bitbank candles and the Fear & Greed Index."""

from cryptosignal.market_data.candles import BitbankCandleClient, CandleClient, rows_to_candles
from cryptosignal.market_data.sentiment import FearGreedClient

__all__ = [
    "BitbankCandleClient",
    "CandleClient",
    "FearGreedClient",
    "rows_to_candles",
]
