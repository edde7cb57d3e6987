"""
Funding rate metrics.

Turns a raw funding rate into annualized, per-cycle and per-day figures,
net of a single-leg trading fee.
"""

from dataclasses import dataclass
from enum import Enum


class NegativeRateFeePolicy(str, Enum):
    """How the fee is applied to a negative (receivable) funding rate."""

    # Net = |rate| - fee: the receivable is treated like a positive yield
    ABSOLUTE = "absolute"

    # Net = rate + fee: the sign is kept and the fee moves it toward zero
    SIGNED = "signed"


@dataclass(frozen=True)
class RateMetrics:
    """Derived figures for one funding rate."""
    apr: float
    daily_rate_percent: float
    single_cycle_net_percent: float
    daily_net_percent: float


def calculate_rates(
    raw_rate: float,
    fee_percent: float,
    frequency_per_day: int,
    policy: NegativeRateFeePolicy = NegativeRateFeePolicy.ABSOLUTE,
) -> RateMetrics:
    """
    Calculate APR and fee-adjusted net rates.

    The fee is charged once per cycle and once per day, never per leg:
    holding one continuous position costs one leg's fee.

    Args:
        raw_rate: Funding rate as signed fraction (0.0001 = 0.01%)
        fee_percent: Single-leg fee in percentage points
        frequency_per_day: Settlements per day
        policy: Fee handling for negative rates

    Returns:
        RateMetrics
    """
    rate_percent = raw_rate * 100
    daily_rate_percent = raw_rate * frequency_per_day * 100
    apr = daily_rate_percent * 365

    if raw_rate >= 0:
        single_cycle_net = rate_percent - fee_percent
        daily_net = daily_rate_percent - fee_percent
    elif policy == NegativeRateFeePolicy.SIGNED:
        single_cycle_net = rate_percent + fee_percent
        daily_net = daily_rate_percent + fee_percent
    else:
        single_cycle_net = abs(rate_percent) - fee_percent
        daily_net = abs(daily_rate_percent) - fee_percent

    return RateMetrics(
        apr=apr,
        daily_rate_percent=daily_rate_percent,
        single_cycle_net_percent=single_cycle_net,
        daily_net_percent=daily_net,
    )
