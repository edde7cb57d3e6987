"""Tests for top-pair discovery and its JSON cache."""

import asyncio
import json
import time
from dataclasses import replace

from aiohttp import test_utils, web

from funding_monitor.config import DEFAULT_ENDPOINTS, DiscoveryConfig
from funding_monitor.services import PairDiscovery


TICKERS = [
    {"symbol": "ETHUSDT", "quoteVolume": "900000"},
    {"symbol": "BTCUSDT", "quoteVolume": "2000000"},
    {"symbol": "BTCUSDC", "quoteVolume": "9000000"},
    {"symbol": "DOGEUSDT", "quoteVolume": "100"},
    {"symbol": "BADUSDT", "quoteVolume": "n/a"},
]


def make_discovery(tmp_path, ticker_url=None, top=2):
    config = DiscoveryConfig(
        top_pairs_count=top,
        cache_duration=3600,
        cache_file=str(tmp_path / "pairs.json"),
        source_exchange="binance",
    )
    endpoints = replace(DEFAULT_ENDPOINTS["binance"], rest_url_ticker=ticker_url)
    return PairDiscovery(endpoints=endpoints, config=config, request_timeout=2.0)


def test_rank_pairs(tmp_path):
    discovery = make_discovery(tmp_path, top=3)

    assert discovery.rank_pairs(TICKERS) == ["BTCUSDT", "ETHUSDT", "DOGEUSDT"]


def test_fresh_cache_is_used(tmp_path):
    discovery = make_discovery(tmp_path)
    discovery.cache_path.write_text(json.dumps({"timestamp": time.time(), "pairs": ["SOLUSDT"]}))

    assert asyncio.run(discovery.fetch_top_pairs()) == ["SOLUSDT"]


def test_fetch_failure_returns_stale_cache(tmp_path):
    discovery = make_discovery(tmp_path, ticker_url=None)
    discovery.cache_path.write_text(json.dumps({"timestamp": 0, "pairs": ["SOLUSDT"]}))

    assert asyncio.run(discovery.fetch_top_pairs()) == ["SOLUSDT"]


def test_fetch_failure_without_cache_returns_empty(tmp_path):
    discovery = make_discovery(tmp_path, ticker_url=None)

    assert asyncio.run(discovery.fetch_top_pairs()) == []


def test_fetch_refreshes_cache(tmp_path):
    async def ticker(request):
        return web.json_response(TICKERS)

    app = web.Application()
    app.router.add_get("/ticker/24hr", ticker)

    async def scenario():
        server = test_utils.TestServer(app)
        await server.start_server()
        try:
            discovery = make_discovery(tmp_path, ticker_url=str(server.make_url("/ticker/24hr")))
            return discovery, await discovery.fetch_top_pairs()
        finally:
            await server.close()

    discovery, pairs = asyncio.run(scenario())

    assert pairs == ["BTCUSDT", "ETHUSDT"]
    cached = json.loads(discovery.cache_path.read_text())
    assert cached["pairs"] == ["BTCUSDT", "ETHUSDT"]
