"""
Arbitrage Analyzer Service

Finds single-exchange threshold crossings and cross-exchange funding
spreads in a funding snapshot.
"""

import re
from dataclasses import dataclass
from itertools import combinations
from typing import Dict, List, Optional, Tuple
from collections import defaultdict

from funding_monitor.models import (
    ArbitrageReport,
    CrossExchangeOpportunity,
    FundingObservation,
    FundingSnapshot,
    SingleLegOpportunity,
)
from funding_monitor.utils import get_logger


# Quote suffixes used by the supported exchanges:
# BTCUSDT (Binance, Bybit, Bitget), BTC_USDT (Gate.io), BTC-USDT-SWAP (OKX)
_QUOTE_SUFFIX = re.compile(r"(-USDT-SWAP|_USDT|USDT)$")

# Decimal places kept for spreads, so float noise cannot beat the fee
SPREAD_PRECISION = 10


def normalize_symbol(symbol: str) -> str:
    """
    Strip the quote suffix from an exchange symbol.

    BTCUSDT, BTC_USDT and BTC-USDT-SWAP all become BTC. A symbol that is
    already a base asset is returned unchanged.
    """
    symbol = symbol.strip().upper()
    base = _QUOTE_SUFFIX.sub("", symbol)
    return base or symbol


@dataclass
class AnalyzerConfig:
    """Configuration for arbitrage analysis."""

    # Single-leg APR thresholds (in percent)
    min_positive_apr: float = 50.0
    min_negative_apr: float = -50.0

    # Single-leg trading fee (in percent); cross-exchange pays it on both legs
    fee_percent: float = 0.3

    # Skip single-leg entries whose fee-adjusted daily rate is negative
    filter_negative_daily_net: bool = True

    # Minimum exchanges required for a symbol
    min_exchanges: int = 2


class ArbitrageAnalyzer:
    """
    Analyzes a funding snapshot to find arbitrage opportunities.

    Both reports are read-only passes over the same snapshot, so they are
    always consistent with each other.
    """

    def __init__(self, config: Optional[AnalyzerConfig] = None):
        self.config = config or AnalyzerConfig()
        self._logger = get_logger()

    def analyze(self, snapshot: FundingSnapshot) -> ArbitrageReport:
        """
        Build the full report for one snapshot.

        Args:
            snapshot: Current-cycle funding rates

        Returns:
            ArbitrageReport with single-leg and cross-exchange opportunities
        """
        positive, negative = self.find_single_leg(snapshot)
        cross_exchange = self.find_cross_exchange(snapshot)

        self._logger.info(
            f"[dim]Analyzer: {len(positive)} positive, {len(negative)} negative, "
            f"{len(cross_exchange)} cross-exchange opportunities[/]"
        )

        return ArbitrageReport(
            positive=positive,
            negative=negative,
            cross_exchange=cross_exchange,
        )

    def find_single_leg(
        self,
        snapshot: FundingSnapshot,
    ) -> Tuple[List[SingleLegOpportunity], List[SingleLegOpportunity]]:
        """
        Find rates crossing the APR thresholds.

        Returns:
            (positive sorted by APR descending, negative sorted by APR ascending)
        """
        positive: List[SingleLegOpportunity] = []
        negative: List[SingleLegOpportunity] = []

        for obs in snapshot.observations():
            if self.config.filter_negative_daily_net and obs.daily_net_percent < 0:
                continue

            if obs.apr >= self.config.min_positive_apr:
                positive.append(SingleLegOpportunity.from_observation(obs))
            elif obs.apr <= self.config.min_negative_apr:
                negative.append(SingleLegOpportunity.from_observation(obs))

        positive.sort(key=lambda x: x.apr, reverse=True)
        negative.sort(key=lambda x: x.apr)

        return positive, negative

    def _group_by_symbol(
        self,
        snapshot: FundingSnapshot,
    ) -> Dict[str, Dict[str, FundingObservation]]:
        """Group observations by normalized symbol, one per exchange."""
        symbol_rates: Dict[str, Dict[str, FundingObservation]] = defaultdict(dict)

        for obs in snapshot.observations():
            symbol_rates[normalize_symbol(obs.symbol)][obs.exchange] = obs

        return dict(symbol_rates)

    def find_cross_exchange(self, snapshot: FundingSnapshot) -> List[CrossExchangeOpportunity]:
        """
        Find funding spreads between exchanges that beat the round-trip fee.

        Returns:
            Opportunities sorted by net profit, highest first; empty if none
        """
        round_trip_fee = 2 * self.config.fee_percent
        opportunities = []

        for symbol, by_exchange in self._group_by_symbol(snapshot).items():
            # Need at least 2 exchanges
            if len(by_exchange) < self.config.min_exchanges:
                continue

            for rate_a, rate_b in combinations(by_exchange.values(), 2):
                spread = round(abs(rate_a.raw_rate - rate_b.raw_rate) * 100, SPREAD_PRECISION)
                net_profit = round(spread - round_trip_fee, SPREAD_PRECISION)
                if net_profit <= 0:
                    continue

                # Long on lower funding, short on higher funding
                if rate_a.raw_rate < rate_b.raw_rate:
                    long_rate, short_rate = rate_a, rate_b
                else:
                    long_rate, short_rate = rate_b, rate_a

                opportunities.append(CrossExchangeOpportunity(
                    normalized_symbol=symbol,
                    long_exchange=long_rate.exchange,
                    short_exchange=short_rate.exchange,
                    net_profit_percent=net_profit,
                    long_rate=long_rate.raw_rate,
                    short_rate=short_rate.raw_rate,
                    rate_diff_percent=spread,
                ))

        opportunities.sort(key=lambda x: x.net_profit_percent, reverse=True)
        return opportunities

    def get_stats(self, snapshot: FundingSnapshot) -> Dict:
        """Get statistics about the data."""
        symbol_rates = self._group_by_symbol(snapshot)
        multi_exchange = sum(1 for rates in symbol_rates.values() if len(rates) >= 2)

        return {
            "total_rates": snapshot.count(),
            "exchanges": sum(1 for name in snapshot.exchanges if snapshot.count(name)),
            "unique_symbols": len(symbol_rates),
            "multi_exchange_symbols": multi_exchange,
        }
