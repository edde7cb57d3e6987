"""Exchange registry for managing available exchange adapters."""

import logging
from typing import Dict, List, Optional, Type

from funding_monitor.config import ExchangeEndpoints, RetrievalConfig, get_config
from funding_monitor.exceptions import UnknownExchangeError
from funding_monitor.models import ExchangeName
from funding_monitor.exchanges.direct import (
    DirectAPIExchange,
    BinanceDirectExchange,
    BybitDirectExchange,
    OKXDirectExchange,
    BitgetDirectExchange,
    GateDirectExchange,
)

logger = logging.getLogger(__name__)


class ExchangeRegistry:
    """
    Registry of all exchange adapters.
    
    Every ExchangeName member maps to exactly one adapter class. Names
    outside that set raise UnknownExchangeError instead of being skipped.
    """
    
    _exchanges: Dict[ExchangeName, Type[DirectAPIExchange]] = {
        ExchangeName.BINANCE: BinanceDirectExchange,
        ExchangeName.OKX: OKXDirectExchange,
        ExchangeName.BYBIT: BybitDirectExchange,
        ExchangeName.BITGET: BitgetDirectExchange,
        ExchangeName.GATE: GateDirectExchange,
    }
    
    @classmethod
    def resolve(cls, name: str) -> ExchangeName:
        """Map a configured name to its ExchangeName."""
        try:
            return ExchangeName(name.lower())
        except ValueError:
            raise UnknownExchangeError(name) from None
    
    @classmethod
    def get_exchange_class(cls, name: str) -> Type[DirectAPIExchange]:
        """Get exchange class by name."""
        return cls._exchanges[cls.resolve(name)]
    
    @classmethod
    def get_exchange(
        cls,
        name: str,
        endpoints: Optional[ExchangeEndpoints] = None,
        retrieval: Optional[RetrievalConfig] = None,
    ) -> DirectAPIExchange:
        """
        Create an exchange adapter by name.
        
        Args:
            name: Exchange name (e.g., 'bybit', 'okx')
            endpoints: Endpoints to use (default from config)
            retrieval: Timeouts and batching (default from config)
            
        Raises:
            UnknownExchangeError: if no adapter exists for the name
        """
        exchange_class = cls.get_exchange_class(name)
        config = get_config()
        
        if endpoints is None:
            endpoints = config.exchange.endpoints.get(exchange_class.name)
            if endpoints is None:
                raise UnknownExchangeError(name)
        
        return exchange_class(endpoints, retrieval or config.retrieval)
    
    @classmethod
    def get_all_names(cls) -> List[str]:
        """Get list of all registered exchange names."""
        return [name.value for name in cls._exchanges]
    
    @classmethod
    def create_exchanges(
        cls,
        names: List[str],
        endpoints: Optional[Dict[str, ExchangeEndpoints]] = None,
        retrieval: Optional[RetrievalConfig] = None,
    ) -> Dict[str, DirectAPIExchange]:
        """
        Create adapters for the given exchange names.
        
        Raises:
            UnknownExchangeError: on the first name without an adapter
        """
        exchanges = {}
        for name in names:
            exchange_endpoints = endpoints.get(name) if endpoints else None
            exchange = cls.get_exchange(name, exchange_endpoints, retrieval)
            exchanges[exchange.name] = exchange
        
        logger.debug(f"Created adapters: {list(exchanges.keys())}")
        return exchanges

