"""Configuration system using pydantic-settings with environment variable loading."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class MarketSettings(BaseSettings):
    """Which market the candle provider fetches."""

    model_config = SettingsConfigDict(env_prefix="MARKET_")

    pair: str = "BTC/JPY"  # ccxt unified symbol on bitbank
    timeframe: str = "1d"  # ccxt timeframe: 1m, 5m, 15m, 30m, 1h, 4h, 8h, 12h, 1d, 1w, 1M
    years_back: int = 2  # extra calendar years fetched for 1d/1w/1M


class SentimentSettings(BaseSettings):
    """Fear & Greed Index provider settings."""

    model_config = SettingsConfigDict(env_prefix="SENTIMENT_")

    api_url: str = "https://api.alternative.me/fng/"
    history_days: int = 365
    timeout_seconds: float = 10.0


class SentimentStrategySettings(BaseSettings):
    """Initial state of the Fear & Greed signal strategy.

    Thresholds are clamped into [0, 100] when applied to the strategy.
    """

    model_config = SettingsConfigDict(env_prefix="FEARGREED_")

    enabled: bool = True
    buy_threshold: int = 20  # index <= this emits BUY
    sell_threshold: int = 80  # index >= this emits SELL


class RefreshSettings(BaseSettings):
    """Auto-refresh loop settings."""

    model_config = SettingsConfigDict(env_prefix="REFRESH_")

    auto_update: bool = True
    interval_seconds: int = 600  # 10 minutes


class DashboardSettings(BaseSettings):
    """Dashboard server configuration."""

    model_config = SettingsConfigDict(env_prefix="DASHBOARD_")

    host: str = "0.0.0.0"
    port: int = 8080
    enabled: bool = True


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    market: MarketSettings = MarketSettings()
    sentiment: SentimentSettings = SentimentSettings()
    feargreed: SentimentStrategySettings = SentimentStrategySettings()
    refresh: RefreshSettings = RefreshSettings()
    dashboard: DashboardSettings = DashboardSettings()
