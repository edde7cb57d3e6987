"""Gate.io direct API connector."""

import time
from typing import Any, Dict, List, Sequence

from funding_monitor.exchanges.base import RestRequest
from funding_monitor.models import ExchangeName, RateTuple
from .base import DirectAPIExchange


class GateDirectExchange(DirectAPIExchange):
    """
    Gate.io Futures API direct connector.
    
    API Docs: https://www.gate.io/docs/developers/apiv4/
    
    Endpoints used:
    - GET /api/v4/futures/usdt/contracts - All USDT contracts with funding
    - WS futures.tickers
    
    Gate.io names contracts BTC_USDT and reports funding_next_apply in seconds.
    """
    
    name = ExchangeName.GATE.value
    display_name = "Gate.io"
    
    def format_symbol(self, symbol: str) -> str:
        if symbol.endswith("USDT") and not symbol.endswith("_USDT"):
            return f"{symbol[:-4]}_USDT"
        return symbol
    
    def build_rest_requests(self, symbols: Sequence[str]) -> List[RestRequest]:
        return [RestRequest(self.endpoints.rest_url_funding)]
    
    def parse_rest_body(self, body: Any) -> List[RateTuple]:
        rates = []
        for contract in body:
            rate = self._parse_rate(contract.get("funding_rate"))
            if rate is None:
                continue
            rates.append(RateTuple(
                symbol=contract.get(self.endpoints.symbol_key, ""),
                rate=rate,
                next_settlement_time=self._parse_timestamp_ms(contract.get("funding_next_apply")),
            ))
        return rates
    
    def _build_subscribe_message(self, batch: List[str], index: int) -> Dict[str, Any]:
        return {
            "time": int(time.time()),
            "channel": "futures.tickers",
            "event": "subscribe",
            "payload": batch,
            "id": index,
        }
    
    def parse_ws_frame(self, frame: Any) -> List[RateTuple]:
        if not isinstance(frame, dict):
            return []
        
        result = frame.get("result")
        if frame.get("event") != "update" or not isinstance(result, list):
            return []
        
        rates = []
        for item in result:
            rate = self._parse_rate(item.get("funding_rate"))
            if not item.get("contract") or rate is None:
                continue
            rates.append(RateTuple(item["contract"], rate, None))
        return rates
