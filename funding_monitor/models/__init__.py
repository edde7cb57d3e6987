"""Data models for funding rate monitoring."""

from .funding_rate import (
    ExchangeName,
    RateTuple,
    FundingObservation,
    FundingSnapshot,
    SingleLegOpportunity,
    CrossExchangeOpportunity,
    ArbitrageReport,
    RetrievalSource,
    RetrievalResult,
)

__all__ = [
    "ExchangeName",
    "RateTuple",
    "FundingObservation",
    "FundingSnapshot",
    "SingleLegOpportunity",
    "CrossExchangeOpportunity",
    "ArbitrageReport",
    "RetrievalSource",
    "RetrievalResult",
]
