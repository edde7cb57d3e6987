"""Base class for exchange adapters."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from funding_monitor.config import ExchangeEndpoints
from funding_monitor.models import RateTuple


@dataclass
class RestRequest:
    """A single REST call of an exchange's funding rate probe."""
    url: str
    params: Dict[str, str] = field(default_factory=dict)


class BaseExchange(ABC):
    """
    Abstract base class for all exchange adapters.

    An adapter knows how to build the REST and WebSocket requests for its
    exchange and how to parse the responses into RateTuple objects. It does
    no I/O itself; see DirectAPIExchange for the transport.
    """

    name: str = "base"
    display_name: str = "Base Exchange"

    def __init__(self, endpoints: ExchangeEndpoints):
        """
        Initialize exchange adapter.

        Args:
            endpoints: REST / WebSocket endpoints for this exchange
        """
        self.endpoints = endpoints

    def format_symbol(self, symbol: str) -> str:
        """
        Convert a canonical symbol (BTCUSDT) to the exchange's native format.

        The native format is what the exchange reports back, so recorded
        symbols always match it.
        """
        return symbol

    def format_symbols(self, symbols: Sequence[str]) -> List[str]:
        return [self.format_symbol(s) for s in symbols]

    @abstractmethod
    def build_rest_requests(self, symbols: Sequence[str]) -> List[RestRequest]:
        """
        Build the REST calls needed to fetch rates for the given symbols.

        Args:
            symbols: Exchange-formatted symbols

        Returns:
            One or more requests
        """
        pass

    @abstractmethod
    def parse_rest_body(self, body: Any) -> List[RateTuple]:
        """
        Parse a decoded REST response body.

        Only entries with a non-null rate produce a tuple. Filtering by the
        requested symbols is done by the caller.
        """
        pass

    def build_subscribe_messages(
        self,
        symbols: Sequence[str],
        batch_size: int = 10,
    ) -> List[Dict[str, Any]]:
        """Build subscription messages, at most batch_size symbols each."""
        batch_size = max(1, batch_size)
        messages = []
        for index, start in enumerate(range(0, len(symbols), batch_size), start=1):
            batch = list(symbols[start:start + batch_size])
            messages.append(self._build_subscribe_message(batch, index))
        return messages

    @abstractmethod
    def _build_subscribe_message(self, batch: List[str], index: int) -> Dict[str, Any]:
        """Build one subscription message for a batch of symbols."""
        pass

    @abstractmethod
    def parse_ws_frame(self, frame: Any) -> List[RateTuple]:
        """
        Extract zero or more rates from a decoded WebSocket frame.

        Irrelevant frames (acks, pongs, other channels) return [].
        """
        pass

    @staticmethod
    def _parse_rate(value: Any) -> Optional[float]:
        """Parse a funding rate field; None for missing or empty values."""
        if value is None or value == "":
            return None
        return float(value)

    @staticmethod
    def _parse_timestamp_ms(value: Any) -> Optional[int]:
        """Parse a timestamp in seconds or milliseconds to epoch milliseconds."""
        if value is None or value == "":
            return None

        try:
            ts = float(value)
        except (ValueError, TypeError):
            return None

        if ts <= 0:
            return None
        # Check if milliseconds or seconds
        if ts > 10000000000:
            return int(ts)
        return int(ts * 1000)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name}>"
