"""Exception types raised by the funding monitor."""

from typing import Optional


class FundingMonitorError(Exception):
    """Base class for all funding monitor errors."""


class ExchangeRequestError(FundingMonitorError):
    """A REST request to an exchange failed after all retries."""
    
    def __init__(self, exchange: str, url: str, reason: Optional[str] = None):
        self.exchange = exchange
        self.url = url
        self.reason = reason
        message = f"{exchange}: request to {url} failed"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class UnknownExchangeError(FundingMonitorError):
    """Configuration names an exchange that has no adapter."""
    
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown exchange: {name}")
