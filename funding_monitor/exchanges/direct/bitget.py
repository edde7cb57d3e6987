"""Bitget direct API connector."""

from typing import Any, Dict, List, Sequence

from funding_monitor.exchanges.base import RestRequest
from funding_monitor.models import ExchangeName, RateTuple
from .base import DirectAPIExchange


class BitgetDirectExchange(DirectAPIExchange):
    """
    Bitget API direct connector.
    
    API Docs: https://www.bitget.com/api-doc/
    
    Endpoints used:
    - GET /api/v2/mix/market/current-fund-rate - Current funding rates
    - WS ticker channel (USDT-FUTURES)
    """
    
    name = ExchangeName.BITGET.value
    display_name = "Bitget"
    
    product_type = "USDT-FUTURES"
    
    def build_rest_requests(self, symbols: Sequence[str]) -> List[RestRequest]:
        return [RestRequest(self.endpoints.rest_url_funding, {"productType": self.product_type})]
    
    def parse_rest_body(self, body: Any) -> List[RateTuple]:
        if body.get("code") != "00000":
            self._logger.debug(f"{self.display_name}: API error {body.get('msg')}")
            return []
        
        rates = []
        for item in body.get("data") or []:
            rate = self._parse_rate(item.get("fundingRate"))
            if rate is None:
                continue
            rates.append(RateTuple(
                symbol=item.get(self.endpoints.symbol_key, ""),
                rate=rate,
                next_settlement_time=self._parse_timestamp_ms(item.get("nextUpdate")),
            ))
        return rates
    
    def _build_subscribe_message(self, batch: List[str], index: int) -> Dict[str, Any]:
        return {
            "op": "subscribe",
            "args": [
                {"instType": self.product_type, "channel": "ticker", "instId": s}
                for s in batch
            ],
        }
    
    def parse_ws_frame(self, frame: Any) -> List[RateTuple]:
        if not isinstance(frame, dict):
            return []
        
        arg = frame.get("arg") or {}
        if arg.get("channel") != "ticker" or "data" not in frame:
            return []
        
        rates = []
        for item in frame.get("data") or []:
            rate = self._parse_rate(item.get("fundingRate"))
            if rate is None:
                continue
            rates.append(RateTuple(
                symbol=item.get("instId") or arg.get("instId", ""),
                rate=rate,
                next_settlement_time=self._parse_timestamp_ms(item.get("nextFundingTime")),
            ))
        return rates
