"""
Top Liquidity Pair Discovery.

Ranks USDT perpetuals by 24h quote volume on the source exchange and
caches the result in a JSON file.
"""

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import aiohttp

from funding_monitor.config import DiscoveryConfig, ExchangeEndpoints, get_config

logger = logging.getLogger(__name__)


@dataclass
class CachedPairs:
    """Pair list with the time it was fetched."""
    timestamp: float = 0.0
    pairs: List[str] = field(default_factory=list)

    def is_fresh(self, max_age: float) -> bool:
        return bool(self.pairs) and time.time() - self.timestamp < max_age


class PairDiscovery:
    """
    Provides the symbol universe for each cycle.

    Pairs are re-fetched when the cache is older than the configured
    duration; on fetch failure stale cached pairs are returned instead.
    """

    def __init__(
        self,
        endpoints: Optional[ExchangeEndpoints] = None,
        config: Optional[DiscoveryConfig] = None,
        request_timeout: Optional[float] = None,
    ):
        app_config = get_config()
        self.config = config or app_config.discovery
        self.endpoints = endpoints or app_config.exchange.endpoints[self.config.source_exchange]
        self.cache_path = Path(self.config.cache_file)
        self._timeout = request_timeout or app_config.retrieval.rest_timeout

    def _read_cache(self) -> CachedPairs:
        if not self.cache_path.exists():
            return CachedPairs()
        try:
            data = json.loads(self.cache_path.read_text(encoding="utf-8"))
            return CachedPairs(
                timestamp=float(data.get("timestamp", 0)),
                pairs=list(data.get("pairs", [])),
            )
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"[Pairs] Failed to read cache {self.cache_path}: {e}")
            return CachedPairs()

    def _write_cache(self, cache: CachedPairs) -> None:
        try:
            self.cache_path.parent.mkdir(parents=True, exist_ok=True)
            self.cache_path.write_text(
                json.dumps({"timestamp": cache.timestamp, "pairs": cache.pairs}),
                encoding="utf-8",
            )
        except OSError as e:
            logger.warning(f"[Pairs] Failed to write cache {self.cache_path}: {e}")

    def rank_pairs(self, tickers: List[dict]) -> List[str]:
        """Filter tickers by quote suffix and return the top symbols by volume."""
        symbol_key = self.endpoints.symbol_key
        volume_key = self.endpoints.volume_key or "quoteVolume"
        suffix = self.endpoints.filter_suffix

        ranked = []
        for item in tickers:
            symbol = item.get(symbol_key, "")
            if not symbol.endswith(suffix):
                continue
            try:
                volume = float(item.get(volume_key) or 0)
            except (ValueError, TypeError):
                continue
            ranked.append((symbol, volume))

        ranked.sort(key=lambda x: x[1], reverse=True)
        return [symbol for symbol, _ in ranked[:self.config.top_pairs_count]]

    async def _fetch_tickers(self) -> List[dict]:
        if not self.endpoints.rest_url_ticker:
            raise ValueError("No ticker URL configured for pair discovery")

        timeout = aiohttp.ClientTimeout(total=self._timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(self.endpoints.rest_url_ticker) as resp:
                resp.raise_for_status()
                return await resp.json(content_type=None)

    async def fetch_top_pairs(self) -> List[str]:
        """
        Get the top liquidity pairs, from cache when fresh.

        Returns:
            Canonical symbols ordered by volume, or [] if nothing is available
        """
        cache = self._read_cache()
        if cache.is_fresh(self.config.cache_duration):
            return cache.pairs

        try:
            tickers = await self._fetch_tickers()
            pairs = self.rank_pairs(tickers)
        except Exception as e:
            logger.error(f"[Pairs] Failed to fetch top pairs: {e}")
            return cache.pairs

        if not pairs:
            logger.warning("[Pairs] Ticker response contained no matching pairs")
            return cache.pairs

        self._write_cache(CachedPairs(timestamp=time.time(), pairs=pairs))
        logger.info(f"[Pairs] Updated top pairs: {len(pairs)}")
        return pairs
