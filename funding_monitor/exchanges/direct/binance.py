"""Binance Futures direct API connector."""

from typing import Any, Dict, List, Sequence

from funding_monitor.exchanges.base import RestRequest
from funding_monitor.models import ExchangeName, RateTuple
from .base import DirectAPIExchange


class BinanceDirectExchange(DirectAPIExchange):
    """
    Binance USDT-M Futures direct API connector.
    
    API Docs: https://binance-docs.github.io/apidocs/futures/en/
    
    Endpoints used:
    - GET /fapi/v1/premiumIndex - All mark prices and funding rates
    - WS <symbol>@markPrice - Mark price stream with funding rate
    """
    
    name = ExchangeName.BINANCE.value
    display_name = "Binance"
    
    def build_rest_requests(self, symbols: Sequence[str]) -> List[RestRequest]:
        # premiumIndex without a symbol returns every market in one call
        return [RestRequest(self.endpoints.rest_url_funding)]
    
    def parse_rest_body(self, body: Any) -> List[RateTuple]:
        rates = []
        for item in body:
            rate = self._parse_rate(item.get("lastFundingRate"))
            if rate is None:
                continue
            rates.append(RateTuple(
                symbol=item.get(self.endpoints.symbol_key, ""),
                rate=rate,
                next_settlement_time=self._parse_timestamp_ms(item.get("nextFundingTime")),
            ))
        return rates
    
    def _build_subscribe_message(self, batch: List[str], index: int) -> Dict[str, Any]:
        return {
            "method": "SUBSCRIBE",
            "params": [f"{s.lower()}@markPrice" for s in batch],
            "id": index,
        }
    
    def parse_ws_frame(self, frame: Any) -> List[RateTuple]:
        if not isinstance(frame, dict):
            return []
        
        # Combined streams wrap the payload: {"stream": ..., "data": {...}}
        if "stream" in frame and isinstance(frame.get("data"), dict):
            frame = frame["data"]
        
        if frame.get("e") != "markPriceUpdate" or not frame.get("s"):
            return []
        
        rate = self._parse_rate(frame.get("r"))
        if rate is None:
            return []
        
        return [RateTuple(frame["s"], rate, self._parse_timestamp_ms(frame.get("T")))]
