"""Bybit direct API connector."""

from typing import Any, Dict, List, Sequence

from funding_monitor.exchanges.base import RestRequest
from funding_monitor.models import ExchangeName, RateTuple
from .base import DirectAPIExchange


class BybitDirectExchange(DirectAPIExchange):
    """
    Bybit V5 API direct connector.
    
    API Docs: https://bybit-exchange.github.io/docs/v5/intro
    
    Endpoints used:
    - GET /v5/market/tickers - All linear tickers with funding rates
    - WS tickers.<symbol>
    """
    
    name = ExchangeName.BYBIT.value
    display_name = "Bybit"
    
    def build_rest_requests(self, symbols: Sequence[str]) -> List[RestRequest]:
        return [RestRequest(self.endpoints.rest_url_funding, {"category": "linear"})]
    
    def parse_rest_body(self, body: Any) -> List[RateTuple]:
        if body.get("retCode") != 0:
            self._logger.debug(f"{self.display_name}: API error {body.get('retMsg')}")
            return []
        
        rates = []
        for item in body.get("result", {}).get("list", []):
            rate = self._parse_rate(item.get("fundingRate"))
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
            "op": "subscribe",
            "args": [f"tickers.{s}" for s in batch],
        }
    
    def parse_ws_frame(self, frame: Any) -> List[RateTuple]:
        if not isinstance(frame, dict):
            return []
        
        data = frame.get("data")
        if not isinstance(data, dict) or not data.get("symbol"):
            return []
        
        # Delta updates omit unchanged fields
        rate = self._parse_rate(data.get("fundingRate"))
        if rate is None:
            return []
        
        return [RateTuple(
            data["symbol"],
            rate,
            self._parse_timestamp_ms(data.get("nextFundingTime")),
        )]
