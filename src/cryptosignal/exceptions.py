"""Custom exceptions for the crypto signal tool.

Provider and registry exceptions live here to avoid circular imports
between the signal engine, the data providers and the dashboard.
"""


class SignalToolError(Exception):
    """Base exception for all signal tool errors."""


class DataFetchError(SignalToolError):
    """Raised when a candle or sentiment provider call fails."""


class UnknownStrategyError(SignalToolError):
    """Raised when a strategy id is not registered with the aggregator."""


class DuplicateStrategyError(SignalToolError):
    """Raised when registering a strategy whose id is already taken."""
