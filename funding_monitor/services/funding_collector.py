"""
Funding Rate Collector

Owns the current-cycle snapshot and turns raw rates into observations.
"""

import logging
from datetime import datetime
from typing import Iterable, Optional

from funding_monitor.models import FundingObservation, FundingSnapshot, RateTuple
from .rate_calculator import NegativeRateFeePolicy, calculate_rates
from .settlement_tracker import SettlementTracker

logger = logging.getLogger(__name__)


class FundingRateCollector:
    """
    Collects funding rates for one cycle at a time.

    Each incoming rate is resolved against the settlement tracker, run
    through the rate calculator and written into the snapshot straight away.
    clear() must be called once before every retrieval cycle.
    """

    def __init__(
        self,
        exchanges: Iterable[str],
        tracker: Optional[SettlementTracker] = None,
        fee_percent: float = 0.0,
        negative_fee_policy: NegativeRateFeePolicy = NegativeRateFeePolicy.ABSOLUTE,
    ):
        self.snapshot = FundingSnapshot(exchanges)
        self.tracker = tracker or SettlementTracker()
        self.fee_percent = fee_percent
        self.negative_fee_policy = NegativeRateFeePolicy(negative_fee_policy)

    @property
    def exchanges(self):
        return self.snapshot.exchanges

    def clear(self) -> None:
        """Empty the snapshot; the exchange key set is kept."""
        self.snapshot.clear()

    def update_rate(self, exchange: str, rate: RateTuple) -> FundingObservation:
        """
        Record a raw rate for an exchange.

        Args:
            exchange: Exchange name
            rate: Parsed (symbol, rate, next settlement) tuple

        Returns:
            The observation stored in the snapshot
        """
        frequency = self.tracker.observe(exchange, rate.symbol, rate.next_settlement_time)
        metrics = calculate_rates(
            rate.rate,
            self.fee_percent,
            frequency.frequency_per_day,
            self.negative_fee_policy,
        )

        observation = FundingObservation(
            exchange=exchange,
            symbol=rate.symbol,
            raw_rate=rate.rate,
            apr=metrics.apr,
            daily_rate_percent=metrics.daily_rate_percent,
            single_cycle_net_percent=metrics.single_cycle_net_percent,
            daily_net_percent=metrics.daily_net_percent,
            frequency_per_day=frequency.frequency_per_day,
            interval_hours=frequency.interval_hours,
            next_settlement_time=rate.next_settlement_time,
            observed_at=datetime.utcnow(),
        )
        self.snapshot.record(observation)

        logger.debug(
            f"[Collector] {exchange} {rate.symbol} -> {rate.rate} "
            f"(APR: {metrics.apr:.2f}%, Daily: {metrics.daily_rate_percent:.4f}%, "
            f"{frequency.frequency_per_day}/day)"
        )
        return observation
