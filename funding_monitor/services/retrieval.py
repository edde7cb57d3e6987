"""
Retrieval Orchestrator

Fetches funding rates from every configured exchange: REST first, then a
time-boxed WebSocket session when REST fails or returns nothing.
"""

import asyncio
import logging
from typing import Dict, List, Sequence

from funding_monitor.exchanges.direct import DirectAPIExchange
from funding_monitor.models import RateTuple, RetrievalResult, RetrievalSource
from .funding_collector import FundingRateCollector

logger = logging.getLogger(__name__)


class RetrievalOrchestrator:
    """
    Runs one retrieval pass per exchange per cycle.
    
    Exchanges are fetched concurrently. A failure on one exchange never
    affects the others; it simply contributes no rates this cycle.
    """
    
    def __init__(self, exchanges: Dict[str, DirectAPIExchange]):
        """
        Args:
            exchanges: Adapters keyed by exchange name
        """
        self.exchanges = exchanges
    
    async def fetch_all(
        self,
        collector: FundingRateCollector,
        symbols: Sequence[str],
    ) -> List[RetrievalResult]:
        """
        Fetch funding rates for the given canonical symbols into the collector.
        
        Args:
            collector: Collector whose snapshot receives the rates
            symbols: Canonical symbols (e.g. BTCUSDT)
            
        Returns:
            One RetrievalResult per exchange
        """
        if not symbols:
            logger.warning("No symbols to fetch funding rates for")
            return []
        
        logger.info(
            f"Fetching funding rates for {len(symbols)} symbols from "
            f"{len(self.exchanges)} exchanges: {list(self.exchanges.keys())}"
        )
        
        tasks = [
            self.fetch_exchange(exchange, collector, symbols)
            for exchange in self.exchanges.values()
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)
        
        valid_results = []
        for name, result in zip(self.exchanges.keys(), results):
            if isinstance(result, RetrievalResult):
                valid_results.append(result)
            else:
                logger.error(f"[{name.upper()}] Unexpected error during retrieval: {result}")
                valid_results.append(RetrievalResult(
                    exchange=name,
                    count=collector.snapshot.count(name),
                    error=str(result),
                ))
        
        total = sum(r.count for r in valid_results)
        logger.info(f"Fetched total of {total} funding rates from {len(valid_results)} exchanges")
        return valid_results
    
    async def fetch_exchange(
        self,
        exchange: DirectAPIExchange,
        collector: FundingRateCollector,
        symbols: Sequence[str],
    ) -> RetrievalResult:
        """Fetch one exchange: REST, then WebSocket if REST was unproductive."""
        name = exchange.name
        native_symbols = exchange.format_symbols(symbols)
        result = RetrievalResult(exchange=name)
        
        def on_rate(rate: RateTuple) -> None:
            collector.update_rate(name, rate)
        
        try:
            count = await exchange.fetch_via_rest(native_symbols, on_rate)
            if count:
                logger.info(f"[{name.upper()}] Fetched {count} funding rates via REST")
                result.source = RetrievalSource.REST
                result.count = collector.snapshot.count(name)
                return result
            logger.info(f"[{name.upper()}] REST returned no funding rates, trying WebSocket")
        except Exception as e:
            result.error = str(e)
            logger.warning(f"[{name.upper()}] REST fetch failed, trying WebSocket: {e}")
        
        try:
            count = await exchange.fetch_via_websocket(native_symbols, on_rate)
        except Exception as e:
            count = 0
            result.error = str(e)
            logger.error(f"[{name.upper()}] WebSocket fetch failed: {e}")
        
        if count:
            result.source = RetrievalSource.WEBSOCKET
        result.count = collector.snapshot.count(name)
        
        if not result.count:
            logger.warning(f"[{name.upper()}] No funding rates this cycle")
        return result
    
    async def close(self) -> None:
        """Close all exchange sessions."""
        for exchange in self.exchanges.values():
            try:
                await exchange.close()
            except Exception as e:
                logger.debug(f"Error closing exchange {exchange.name}: {e}")
