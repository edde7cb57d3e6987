"""
Settlement Frequency Tracker

Infers how often an exchange settles funding for a symbol from the change
in its reported next-settlement timestamp between cycles.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

logger = logging.getLogger(__name__)

MS_PER_HOUR = 3_600_000
MS_PER_DAY = 86_400_000

# Accepted settlement interval range
MIN_INTERVAL_MS = MS_PER_HOUR
MAX_INTERVAL_MS = MS_PER_DAY

# Mapping exchange -> symbol -> last next-settlement timestamp (epoch ms)
Ledger = Dict[str, Dict[str, Optional[int]]]


@dataclass(frozen=True)
class SettlementFrequency:
    """Settlements per day, with the interval when it was inferred."""
    frequency_per_day: int
    interval_hours: Optional[float] = None

    @property
    def is_inferred(self) -> bool:
        return self.interval_hours is not None


def infer_frequency(
    current: Optional[int],
    previous: Optional[int],
) -> Optional[SettlementFrequency]:
    """
    Infer the settlement frequency from two next-settlement timestamps.

    Returns None when the timestamps do not give a usable interval: either
    is missing, current is not later than previous, or the interval is
    outside 1h..24h.
    """
    if current is None or previous is None or current <= previous:
        return None

    interval_ms = current - previous
    if interval_ms < MIN_INTERVAL_MS or interval_ms > MAX_INTERVAL_MS:
        return None

    return SettlementFrequency(
        # Half-up, so 9.6h (2.5/day) counts as 3
        frequency_per_day=max(1, int(MS_PER_DAY / interval_ms + 0.5)),
        interval_hours=round(interval_ms / MS_PER_HOUR, 1),
    )


class SettlementTracker:
    """
    Tracks next-settlement timestamps per (exchange, symbol).

    The ledger outlives cycles and is the only state persisted between runs.
    Whenever an entry changes the tracker is marked dirty until the ledger
    has been written back (see mark_persisted).
    """

    def __init__(
        self,
        default_frequencies: Optional[Dict[str, int]] = None,
        default_frequency: int = 3,
        ledger: Optional[Ledger] = None,
    ):
        """
        Args:
            default_frequencies: Per-exchange settlements per day
            default_frequency: Fallback for exchanges not listed
            ledger: Previously persisted timestamps
        """
        self._defaults = dict(default_frequencies or {})
        self._default_frequency = max(1, default_frequency)
        self._ledger: Ledger = {}
        self._inferred: Dict[tuple, SettlementFrequency] = {}
        self._dirty = False
        if ledger:
            self.load(ledger)

    def load(self, ledger: Ledger) -> None:
        """Replace the in-memory ledger with persisted data."""
        self._ledger = {exchange: dict(symbols) for exchange, symbols in ledger.items()}
        self._dirty = False

    @property
    def ledger(self) -> Ledger:
        """Copy of the current ledger."""
        return {exchange: dict(symbols) for exchange, symbols in self._ledger.items()}

    @property
    def is_dirty(self) -> bool:
        """True if the ledger changed since it was last persisted."""
        return self._dirty

    def mark_persisted(self) -> None:
        self._dirty = False

    def mark_dirty(self) -> None:
        """Flag the ledger for another write, e.g. after a failed flush."""
        self._dirty = True

    def default_for(self, exchange: str) -> SettlementFrequency:
        """Static default frequency for an exchange."""
        return SettlementFrequency(self._defaults.get(exchange, self._default_frequency))

    def get_last(self, exchange: str, symbol: str) -> Optional[int]:
        return self._ledger.get(exchange, {}).get(symbol)

    def observe(
        self,
        exchange: str,
        symbol: str,
        next_settlement_time: Optional[int],
    ) -> SettlementFrequency:
        """
        Record a next-settlement timestamp and return the frequency to use.

        Args:
            exchange: Exchange name
            symbol: Exchange-native symbol
            next_settlement_time: Epoch ms reported this cycle, if any

        Returns:
            Inferred frequency, or the exchange default
        """
        key = (exchange, symbol)
        previous = self.get_last(exchange, symbol)
        frequency = infer_frequency(next_settlement_time, previous)

        if frequency is not None:
            self._inferred[key] = frequency
        elif (
            next_settlement_time is not None
            and previous is not None
            and next_settlement_time > previous
        ):
            interval_h = (next_settlement_time - previous) / MS_PER_HOUR
            logger.warning(
                f"[Settlement] {exchange} {symbol}: interval {interval_h:.2f}h outside 1h-24h, "
                f"using default"
            )
            self._inferred.pop(key, None)
        elif next_settlement_time is not None and next_settlement_time == previous:
            # Settlement has not rolled over since the last cycle
            frequency = self._inferred.get(key)

        if next_settlement_time is not None and next_settlement_time != previous:
            self._ledger.setdefault(exchange, {})[symbol] = next_settlement_time
            self._dirty = True

        return frequency or self.default_for(exchange)
