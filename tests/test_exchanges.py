"""Tests for exchange adapters: symbol formats, request builders, parsers."""

import pytest

from funding_monitor.config import DEFAULT_ENDPOINTS, RetrievalConfig
from funding_monitor.exceptions import UnknownExchangeError
from funding_monitor.exchanges import ExchangeRegistry
from funding_monitor.exchanges.direct import (
    BinanceDirectExchange,
    BitgetDirectExchange,
    BybitDirectExchange,
    GateDirectExchange,
    OKXDirectExchange,
)
from funding_monitor.models import ExchangeName, RateTuple


def make(exchange_class):
    return exchange_class(DEFAULT_ENDPOINTS[exchange_class.name], RetrievalConfig())


class TestBinance:
    def test_rest(self):
        exchange = make(BinanceDirectExchange)
        requests = exchange.build_rest_requests(["BTCUSDT", "ETHUSDT"])
        assert len(requests) == 1
        assert requests[0].url.endswith("/fapi/v1/premiumIndex")

        body = [
            {"symbol": "BTCUSDT", "lastFundingRate": "0.00010000", "nextFundingTime": 1700000000000},
            {"symbol": "ETHUSDT", "lastFundingRate": "", "nextFundingTime": 1700000000000},
            {"symbol": "SOLUSDT", "lastFundingRate": "-0.00050000", "nextFundingTime": 0},
        ]
        assert exchange.parse_rest_body(body) == [
            RateTuple("BTCUSDT", 0.0001, 1700000000000),
            RateTuple("SOLUSDT", -0.0005, None),
        ]

    def test_subscribe_batches(self):
        exchange = make(BinanceDirectExchange)
        symbols = [f"C{i}USDT" for i in range(25)]

        messages = exchange.build_subscribe_messages(symbols, batch_size=10)

        assert [len(m["params"]) for m in messages] == [10, 10, 5]
        assert [m["id"] for m in messages] == [1, 2, 3]
        assert messages[0]["method"] == "SUBSCRIBE"
        assert messages[0]["params"][0] == "c0usdt@markPrice"

    def test_ws_frames(self):
        exchange = make(BinanceDirectExchange)
        frame = {"e": "markPriceUpdate", "s": "BTCUSDT", "r": "0.00020000", "T": 1700000000000}

        assert exchange.parse_ws_frame(frame) == [RateTuple("BTCUSDT", 0.0002, 1700000000000)]
        assert exchange.parse_ws_frame({"stream": "btcusdt@markPrice", "data": frame}) == [
            RateTuple("BTCUSDT", 0.0002, 1700000000000)
        ]
        assert exchange.parse_ws_frame({"result": None, "id": 1}) == []
        assert exchange.parse_ws_frame([1, 2]) == []


class TestOKX:
    def test_format_symbol(self):
        exchange = make(OKXDirectExchange)
        assert exchange.format_symbols(["BTCUSDT", "ETHUSDT"]) == ["BTC-USDT-SWAP", "ETH-USDT-SWAP"]
        assert exchange.format_symbol("BTC-USDT-SWAP") == "BTC-USDT-SWAP"

    def test_rest_one_request_per_symbol(self):
        exchange = make(OKXDirectExchange)
        requests = exchange.build_rest_requests(["BTC-USDT-SWAP", "ETH-USDT-SWAP"])
        assert [r.params for r in requests] == [
            {"instId": "BTC-USDT-SWAP"},
            {"instId": "ETH-USDT-SWAP"},
        ]

    def test_rest_body(self):
        exchange = make(OKXDirectExchange)
        body = {
            "code": "0",
            "data": [{
                "instId": "BTC-USDT-SWAP",
                "fundingRate": "0.0001",
                "fundingTime": "1700000000000",
                "nextFundingTime": "1700028800000",
            }],
        }
        assert exchange.parse_rest_body(body) == [
            RateTuple("BTC-USDT-SWAP", 0.0001, 1700000000000)
        ]
        assert exchange.parse_rest_body({"code": "51001", "msg": "not found", "data": []}) == []

    def test_ws_frames(self):
        exchange = make(OKXDirectExchange)
        frame = {
            "arg": {"channel": "funding-rate", "instId": "ETH-USDT-SWAP"},
            "data": [{"instId": "ETH-USDT-SWAP", "fundingRate": "-0.0003", "fundingTime": "1700000000000"}],
        }
        assert exchange.parse_ws_frame(frame) == [RateTuple("ETH-USDT-SWAP", -0.0003, 1700000000000)]
        assert exchange.parse_ws_frame({"event": "subscribe", "arg": frame["arg"]}) == []

        message = exchange.build_subscribe_messages(["ETH-USDT-SWAP"])[0]
        assert message == {"op": "subscribe", "args": [{"channel": "funding-rate", "instId": "ETH-USDT-SWAP"}]}


class TestBybit:
    def test_rest_body(self):
        exchange = make(BybitDirectExchange)
        assert exchange.build_rest_requests(["BTCUSDT"])[0].params == {"category": "linear"}

        body = {
            "retCode": 0,
            "result": {"list": [
                {"symbol": "BTCUSDT", "fundingRate": "0.0001", "nextFundingTime": "1700000000000"},
                {"symbol": "BTCPERP", "fundingRate": "", "nextFundingTime": ""},
            ]},
        }
        assert exchange.parse_rest_body(body) == [RateTuple("BTCUSDT", 0.0001, 1700000000000)]
        assert exchange.parse_rest_body({"retCode": 10001, "retMsg": "error"}) == []

    def test_ws_frames(self):
        exchange = make(BybitDirectExchange)
        frame = {
            "topic": "tickers.BTCUSDT",
            "type": "snapshot",
            "data": {"symbol": "BTCUSDT", "fundingRate": "0.0002", "nextFundingTime": "1700000000000"},
        }
        assert exchange.parse_ws_frame(frame) == [RateTuple("BTCUSDT", 0.0002, 1700000000000)]

        delta = {"topic": "tickers.BTCUSDT", "type": "delta", "data": {"symbol": "BTCUSDT", "markPrice": "1"}}
        assert exchange.parse_ws_frame(delta) == []
        assert exchange.parse_ws_frame({"success": True, "op": "subscribe"}) == []

        assert exchange.build_subscribe_messages(["BTCUSDT", "ETHUSDT"])[0] == {
            "op": "subscribe",
            "args": ["tickers.BTCUSDT", "tickers.ETHUSDT"],
        }


class TestBitget:
    def test_rest_body(self):
        exchange = make(BitgetDirectExchange)
        assert exchange.build_rest_requests(["BTCUSDT"])[0].params == {"productType": "USDT-FUTURES"}

        body = {"code": "00000", "data": [
            {"symbol": "BTCUSDT", "fundingRate": "0.000125", "nextUpdate": "1700000000000"},
        ]}
        assert exchange.parse_rest_body(body) == [RateTuple("BTCUSDT", 0.000125, 1700000000000)]
        assert exchange.parse_rest_body({"code": "40034", "msg": "bad", "data": None}) == []

    def test_ws_frames(self):
        exchange = make(BitgetDirectExchange)
        frame = {
            "action": "snapshot",
            "arg": {"instType": "USDT-FUTURES", "channel": "ticker", "instId": "BTCUSDT"},
            "data": [{"instId": "BTCUSDT", "fundingRate": "0.0001", "nextFundingTime": "1700000000000"}],
        }
        assert exchange.parse_ws_frame(frame) == [RateTuple("BTCUSDT", 0.0001, 1700000000000)]
        assert exchange.parse_ws_frame("pong") == []


class TestGate:
    def test_format_symbol(self):
        exchange = make(GateDirectExchange)
        assert exchange.format_symbol("BTCUSDT") == "BTC_USDT"
        assert exchange.format_symbol("BTC_USDT") == "BTC_USDT"

    def test_rest_body_seconds_timestamp(self):
        exchange = make(GateDirectExchange)
        body = [
            {"name": "BTC_USDT", "funding_rate": "0.0001", "funding_next_apply": 1700000000},
            {"name": "ETH_USDT", "funding_rate": None, "funding_next_apply": 1700000000},
        ]
        assert exchange.parse_rest_body(body) == [RateTuple("BTC_USDT", 0.0001, 1700000000000)]

    def test_ws_frames(self):
        exchange = make(GateDirectExchange)
        frame = {
            "channel": "futures.tickers",
            "event": "update",
            "result": [{"contract": "BTC_USDT", "funding_rate": "0.0001"}],
        }
        assert exchange.parse_ws_frame(frame) == [RateTuple("BTC_USDT", 0.0001, None)]
        assert exchange.parse_ws_frame({"event": "subscribe", "result": {"status": "success"}}) == []

        message = exchange.build_subscribe_messages(["BTC_USDT"])[0]
        assert message["channel"] == "futures.tickers"
        assert message["event"] == "subscribe"
        assert message["payload"] == ["BTC_USDT"]
        assert message["id"] == 1


class TestRegistry:
    def test_every_exchange_name_has_an_adapter(self):
        assert ExchangeRegistry.get_all_names() == [name.value for name in ExchangeName]

    def test_resolve_is_case_insensitive(self):
        assert ExchangeRegistry.resolve("OKX") is ExchangeName.OKX

    def test_unknown_exchange_fails_loudly(self):
        with pytest.raises(UnknownExchangeError):
            ExchangeRegistry.get_exchange_class("kraken")

        with pytest.raises(UnknownExchangeError):
            ExchangeRegistry.create_exchanges(["binance", "kraken"], DEFAULT_ENDPOINTS)

    def test_create_exchanges(self):
        exchanges = ExchangeRegistry.create_exchanges(["gate", "bybit"], DEFAULT_ENDPOINTS, RetrievalConfig())

        assert list(exchanges) == ["gate", "bybit"]
        assert isinstance(exchanges["gate"], GateDirectExchange)
        assert exchanges["bybit"].endpoints is DEFAULT_ENDPOINTS["bybit"]


@pytest.mark.parametrize("value,expected", [
    (1700000000000, 1700000000000),
    ("1700000000000", 1700000000000),
    (1700000000, 1700000000000),
    (0, None),
    ("", None),
    ("soon", None),
    (None, None),
])
def test_parse_timestamp_ms(value, expected):
    assert BinanceDirectExchange._parse_timestamp_ms(value) == expected
