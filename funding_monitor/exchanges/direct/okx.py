"""OKX direct API connector."""

from typing import Any, Dict, List, Sequence

from funding_monitor.exchanges.base import RestRequest
from funding_monitor.models import ExchangeName, RateTuple
from .base import DirectAPIExchange


class OKXDirectExchange(DirectAPIExchange):
    """
    OKX API direct connector.
    
    API Docs: https://www.okx.com/docs-v5/en/
    
    Endpoints used:
    - GET /api/v5/public/funding-rate - Funding rate, one instrument per call
    - WS funding-rate channel
    
    OKX names perpetual swaps BTC-USDT-SWAP. Its fundingTime field is the
    upcoming settlement; nextFundingTime is the one after it.
    """
    
    name = ExchangeName.OKX.value
    display_name = "OKX"
    
    def format_symbol(self, symbol: str) -> str:
        if symbol.endswith("USDT"):
            return f"{symbol[:-4]}-USDT-SWAP"
        return symbol
    
    def build_rest_requests(self, symbols: Sequence[str]) -> List[RestRequest]:
        return [
            RestRequest(self.endpoints.rest_url_funding, {"instId": s})
            for s in symbols
        ]
    
    def parse_rest_body(self, body: Any) -> List[RateTuple]:
        if str(body.get("code")) != "0":
            self._logger.debug(f"{self.display_name}: API error {body.get('code')} {body.get('msg')}")
            return []
        
        rates = []
        for item in body.get("data") or []:
            rate = self._parse_rate(item.get("fundingRate"))
            if rate is None:
                continue
            rates.append(RateTuple(
                symbol=item.get(self.endpoints.symbol_key, ""),
                rate=rate,
                next_settlement_time=self._parse_timestamp_ms(item.get("fundingTime")),
            ))
        return rates
    
    def _build_subscribe_message(self, batch: List[str], index: int) -> Dict[str, Any]:
        return {
            "op": "subscribe",
            "args": [{"channel": "funding-rate", "instId": s} for s in batch],
        }
    
    def parse_ws_frame(self, frame: Any) -> List[RateTuple]:
        if not isinstance(frame, dict):
            return []
        
        arg = frame.get("arg") or {}
        if arg.get("channel") != "funding-rate" or "data" not in frame:
            return []
        
        rates = []
        for item in frame.get("data") or []:
            rate = self._parse_rate(item.get("fundingRate"))
            if rate is None:
                continue
            rates.append(RateTuple(
                symbol=item.get("instId") or arg.get("instId", ""),
                rate=rate,
                next_settlement_time=self._parse_timestamp_ms(item.get("fundingTime")),
            ))
        return rates
