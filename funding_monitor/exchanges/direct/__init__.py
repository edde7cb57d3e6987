"""Direct API exchange connectors."""

from .base import DirectAPIExchange
from .binance import BinanceDirectExchange
from .bybit import BybitDirectExchange
from .okx import OKXDirectExchange
from .bitget import BitgetDirectExchange
from .gate import GateDirectExchange

__all__ = [
    "DirectAPIExchange",
    "BinanceDirectExchange",
    "BybitDirectExchange",
    "OKXDirectExchange",
    "BitgetDirectExchange",
    "GateDirectExchange",
]
