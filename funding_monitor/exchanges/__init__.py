"""Exchange adapters for funding rate data."""

from .base import BaseExchange, RestRequest
from .registry import ExchangeRegistry

__all__ = [
    "BaseExchange",
    "RestRequest",
    "ExchangeRegistry",
]
