"""Models for funding rate data."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional


class ExchangeName(str, Enum):
    """Exchanges with a funding rate adapter."""
    BINANCE = "binance"
    OKX = "okx"
    BYBIT = "bybit"
    BITGET = "bitget"
    GATE = "gate"


class RateTuple(NamedTuple):
    """A raw funding rate as parsed from an exchange response."""
    symbol: str
    rate: float
    next_settlement_time: Optional[int] = None  # epoch milliseconds


@dataclass
class FundingObservation:
    """Funding rate and derived metrics for one symbol on one exchange."""

    exchange: str
    symbol: str  # Exchange-native symbol (e.g. BTC-USDT-SWAP)
    raw_rate: float  # Current funding rate as decimal (e.g., 0.0001 = 0.01%)
    apr: float  # Annualized rate in percent
    daily_rate_percent: float
    single_cycle_net_percent: float  # Fee-adjusted, one settlement
    daily_net_percent: float  # Fee-adjusted, one day
    frequency_per_day: int = 3
    interval_hours: Optional[float] = None  # None when the default frequency was used
    next_settlement_time: Optional[int] = None  # epoch milliseconds
    observed_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def rate_percent(self) -> float:
        return self.raw_rate * 100

    def __repr__(self) -> str:
        return (
            f"FundingObservation(exchange={self.exchange}, symbol={self.symbol}, "
            f"rate={self.rate_percent:.4f}%, apr={self.apr:.2f}%, "
            f"freq={self.frequency_per_day}/day)"
        )


class FundingSnapshot:
    """
    Current-cycle funding rates: exchange -> symbol -> FundingObservation.

    The exchange key set is fixed at construction; clear() only empties
    the per-exchange maps.
    """

    def __init__(self, exchanges: Iterable[str]):
        self._exchanges: List[str] = list(exchanges)
        self._rates: Dict[str, Dict[str, FundingObservation]] = {}
        self.clear()

    @property
    def exchanges(self) -> List[str]:
        return list(self._exchanges)

    def clear(self) -> None:
        """Reset to an empty mapping for every configured exchange."""
        self._rates = {name: {} for name in self._exchanges}

    def record(self, observation: FundingObservation) -> None:
        """Store an observation, replacing any earlier one for the same key."""
        if observation.exchange not in self._rates:
            raise KeyError(f"Exchange not in snapshot: {observation.exchange}")
        self._rates[observation.exchange][observation.symbol] = observation

    def get_exchange(self, exchange: str) -> Dict[str, FundingObservation]:
        """Symbol map for one exchange."""
        return self._rates[exchange]

    def get(self, exchange: str, symbol: str) -> Optional[FundingObservation]:
        return self._rates.get(exchange, {}).get(symbol)

    def observations(self) -> Iterator[FundingObservation]:
        """Iterate all observations, exchange by exchange."""
        for symbols in self._rates.values():
            yield from symbols.values()

    def count(self, exchange: Optional[str] = None) -> int:
        if exchange is not None:
            return len(self._rates.get(exchange, {}))
        return sum(len(symbols) for symbols in self._rates.values())

    def __len__(self) -> int:
        return self.count()

    def __repr__(self) -> str:
        counts = ", ".join(f"{name}={len(s)}" for name, s in self._rates.items())
        return f"FundingSnapshot({counts})"


@dataclass
class SingleLegOpportunity:
    """A funding rate on one exchange crossing an APR threshold."""

    exchange: str
    symbol: str
    apr: float
    single_cycle_net_percent: float
    daily_net_percent: float
    frequency_per_day: int
    interval_hours: Optional[float] = None

    @property
    def interval_label(self) -> str:
        """Settlement interval annotation for reports."""
        if self.interval_hours is not None:
            return f"{self.interval_hours:.1f}h"
        return f"{self.frequency_per_day} times/day"

    @classmethod
    def from_observation(cls, obs: FundingObservation) -> "SingleLegOpportunity":
        return cls(
            exchange=obs.exchange,
            symbol=obs.symbol,
            apr=obs.apr,
            single_cycle_net_percent=obs.single_cycle_net_percent,
            daily_net_percent=obs.daily_net_percent,
            frequency_per_day=obs.frequency_per_day,
            interval_hours=obs.interval_hours,
        )


@dataclass
class CrossExchangeOpportunity:
    """
    A funding rate spread between two exchanges that exceeds round-trip fees.

    Strategy: Long on the exchange with the lower rate,
              Short on the exchange with the higher rate.
    """

    normalized_symbol: str  # Base asset (e.g., BTC)
    long_exchange: str
    short_exchange: str
    net_profit_percent: float  # Spread minus both legs' fees
    long_rate: float = 0.0  # Raw rate of the long leg
    short_rate: float = 0.0  # Raw rate of the short leg
    rate_diff_percent: float = 0.0  # Gross spread in percent

    def __repr__(self) -> str:
        return (
            f"CrossExchangeOpportunity({self.normalized_symbol}: "
            f"Long {self.long_exchange} {self.long_rate * 100:+.4f}%, "
            f"Short {self.short_exchange} {self.short_rate * 100:+.4f}%, "
            f"Net={self.net_profit_percent:.4f}%)"
        )


@dataclass
class ArbitrageReport:
    """Opportunities derived from one snapshot."""

    positive: List[SingleLegOpportunity] = field(default_factory=list)
    negative: List[SingleLegOpportunity] = field(default_factory=list)
    cross_exchange: List[CrossExchangeOpportunity] = field(default_factory=list)
    generated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def has_cross_exchange(self) -> bool:
        return bool(self.cross_exchange)


class RetrievalSource(str, Enum):
    """Which mechanism produced an exchange's rates."""
    REST = "rest"
    WEBSOCKET = "websocket"
    NONE = "none"


@dataclass
class RetrievalResult:
    """Outcome of one exchange's retrieval in a cycle."""

    exchange: str
    source: RetrievalSource = RetrievalSource.NONE
    count: int = 0
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        """Check if any rate was retrieved."""
        return self.count > 0
