"""Services for funding rate retrieval and arbitrage analysis."""

from .rate_calculator import NegativeRateFeePolicy, RateMetrics, calculate_rates
from .settlement_tracker import SettlementFrequency, SettlementTracker, infer_frequency
from .funding_collector import FundingRateCollector
from .retrieval import RetrievalOrchestrator
from .arbitrage_analyzer import ArbitrageAnalyzer, AnalyzerConfig, normalize_symbol
from .pair_discovery import PairDiscovery

__all__ = [
    "NegativeRateFeePolicy",
    "RateMetrics",
    "calculate_rates",
    "SettlementFrequency",
    "SettlementTracker",
    "infer_frequency",
    "FundingRateCollector",
    "RetrievalOrchestrator",
    "ArbitrageAnalyzer",
    "AnalyzerConfig",
    "normalize_symbol",
    "PairDiscovery",
]
