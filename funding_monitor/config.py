"""
Centralized configuration for the Funding Rate Monitor.

All constants, thresholds, and settings are defined here.
Values can be overridden via environment variables; exchange endpoints
can additionally be overridden by a JSON document (EXCHANGES_CONFIG_PATH).
"""

import json
import os
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional
from pathlib import Path


DATA_DIR = Path(__file__).parent.parent / "data"


def _env_bool(key: str, default: bool = False) -> bool:
    """Get boolean from environment variable."""
    val = os.getenv(key, str(default)).lower()
    return val in ("true", "1", "yes", "on")


def _env_int(key: str, default: int) -> int:
    """Get integer from environment variable."""
    try:
        return int(os.getenv(key, str(default)))
    except ValueError:
        return default


def _env_float(key: str, default: float) -> float:
    """Get float from environment variable."""
    try:
        return float(os.getenv(key, str(default)))
    except ValueError:
        return default


def _env_list(key: str, default: Optional[List[str]] = None) -> List[str]:
    """Get comma-separated list from environment variable."""
    val = os.getenv(key, "")
    if not val:
        return default or []
    return [item.strip() for item in val.split(",") if item.strip()]


def _env_int_map(prefix: str) -> Dict[str, int]:
    """Get per-name integers from PREFIX<NAME> environment variables."""
    values = {}
    for key, val in os.environ.items():
        if not key.startswith(prefix) or len(key) == len(prefix):
            continue
        try:
            values[key[len(prefix):].lower()] = int(val)
        except ValueError:
            continue
    return values


@dataclass
class TelegramConfig:
    """Telegram notification configuration."""
    bot_token: str = field(default_factory=lambda: os.getenv("TELEGRAM_BOT_TOKEN", ""))
    chat_id: str = field(default_factory=lambda: os.getenv("TELEGRAM_CHAT_ID", ""))
    max_retries: int = field(default_factory=lambda: _env_int("TELEGRAM_MAX_RETRIES", 3))
    retry_delay: float = field(default_factory=lambda: _env_float("TELEGRAM_RETRY_DELAY", 2.0))

    @property
    def is_configured(self) -> bool:
        return bool(self.bot_token and self.chat_id)


@dataclass
class FundingConfig:
    """Funding rate thresholds and fee settings."""
    # APR thresholds in percent for single-leg opportunities
    min_positive_apr: float = field(default_factory=lambda: _env_float("MIN_POSITIVE_APR", 50.0))
    min_negative_apr: float = field(default_factory=lambda: _env_float("MIN_NEGATIVE_APR", -50.0))

    # Single-leg trading fee in percentage points (0.3 = 0.3%)
    fee_percent: float = field(default_factory=lambda: _env_float("TRANSACTION_FEE_PERCENT", 0.3))

    # Drop single-leg entries whose daily net is negative
    filter_negative_daily_net: bool = field(default_factory=lambda: _env_bool("FILTER_NEGATIVE_DAILY_NET", True))

    # "absolute" or "signed", see services.rate_calculator
    negative_rate_fee_policy: str = field(default_factory=lambda: os.getenv("NEGATIVE_RATE_FEE_POLICY", "absolute"))

    # Settlements per day when the interval cannot be inferred
    default_payments_per_day: int = field(default_factory=lambda: _env_int("DEFAULT_PAYMENTS_PER_DAY", 3))

    # Per-exchange overrides, e.g. DEFAULT_PAYMENTS_PER_DAY_BINANCE=6
    payments_per_day_overrides: Dict[str, int] = field(
        default_factory=lambda: _env_int_map("DEFAULT_PAYMENTS_PER_DAY_")
    )

    def payments_per_day_for(self, exchange: str) -> int:
        """Default settlements per day for an exchange."""
        return self.payments_per_day_overrides.get(exchange, self.default_payments_per_day)


@dataclass
class RetrievalConfig:
    """REST / WebSocket retrieval settings."""
    rest_timeout: float = field(default_factory=lambda: _env_float("REST_TIMEOUT", 5.0))
    rest_retries: int = field(default_factory=lambda: _env_int("REST_RETRIES", 2))
    ws_timeout: float = field(default_factory=lambda: _env_float("WS_TIMEOUT", 10.0))

    # Slower exchanges get a longer WebSocket allowance
    ws_timeout_slow: float = field(default_factory=lambda: _env_float("WS_TIMEOUT_SLOW", 15.0))
    ws_slow_exchanges: List[str] = field(default_factory=lambda: _env_list("WS_SLOW_EXCHANGES", ["gate"]))

    # Max symbols per subscription message
    ws_batch_size: int = field(default_factory=lambda: _env_int("WS_BATCH_SIZE", 10))

    def ws_timeout_for(self, exchange: str) -> float:
        """WebSocket session timeout for an exchange."""
        if exchange in self.ws_slow_exchanges:
            return self.ws_timeout_slow
        return self.ws_timeout


@dataclass
class DiscoveryConfig:
    """Top liquidity pair discovery settings."""
    top_pairs_count: int = field(default_factory=lambda: _env_int("TOP_PAIRS_COUNT", 50))
    cache_duration: int = field(default_factory=lambda: _env_int("PAIRS_CACHE_DURATION", 3600))
    cache_file: str = field(default_factory=lambda: os.getenv(
        "PAIRS_CACHE_FILE",
        str(DATA_DIR / "top_pairs_cache.json")
    ))
    source_exchange: str = field(default_factory=lambda: os.getenv("PAIRS_SOURCE_EXCHANGE", "binance"))


@dataclass
class MonitorConfig:
    """Outer loop settings."""
    push_interval: int = field(default_factory=lambda: _env_int("PUSH_INTERVAL", 300))
    ledger_db_path: str = field(default_factory=lambda: os.getenv(
        "LEDGER_DB_PATH",
        str(DATA_DIR / "funding_monitor.db")
    ))
    log_file: Optional[str] = field(default_factory=lambda: os.getenv("LOG_FILE") or None)


@dataclass
class ExchangeEndpoints:
    """Connection endpoints and field descriptors for one exchange."""
    rest_url_funding: str
    ws_url: str
    rest_url_ticker: Optional[str] = None
    symbol_key: str = "symbol"
    volume_key: Optional[str] = None
    filter_suffix: str = "USDT"


DEFAULT_ENDPOINTS: Dict[str, ExchangeEndpoints] = {
    "binance": ExchangeEndpoints(
        rest_url_funding="https://fapi.binance.com/fapi/v1/premiumIndex",
        ws_url="wss://fstream.binance.com/ws",
        rest_url_ticker="https://fapi.binance.com/fapi/v1/ticker/24hr",
        symbol_key="symbol",
        volume_key="quoteVolume",
        filter_suffix="USDT",
    ),
    "okx": ExchangeEndpoints(
        rest_url_funding="https://www.okx.com/api/v5/public/funding-rate",
        ws_url="wss://ws.okx.com:8443/ws/v5/public",
        symbol_key="instId",
        filter_suffix="-USDT-SWAP",
    ),
    "bybit": ExchangeEndpoints(
        rest_url_funding="https://api.bybit.com/v5/market/tickers",
        ws_url="wss://stream.bybit.com/v5/public/linear",
        symbol_key="symbol",
        volume_key="turnover24h",
        filter_suffix="USDT",
    ),
    "bitget": ExchangeEndpoints(
        rest_url_funding="https://api.bitget.com/api/v2/mix/market/current-fund-rate",
        ws_url="wss://ws.bitget.com/v2/ws/public",
        symbol_key="symbol",
        filter_suffix="USDT",
    ),
    "gate": ExchangeEndpoints(
        rest_url_funding="https://api.gateio.ws/api/v4/futures/usdt/contracts",
        ws_url="wss://fx-ws.gateio.ws/v4/ws/usdt",
        symbol_key="name",
        filter_suffix="_USDT",
    ),
}


def load_endpoints(path: Optional[str] = None) -> Dict[str, ExchangeEndpoints]:
    """
    Build the endpoint table, applying overrides from a JSON document.

    The document maps exchange name to a partial set of ExchangeEndpoints
    fields; unknown keys are ignored.
    """
    endpoints = dict(DEFAULT_ENDPOINTS)
    if not path:
        return endpoints

    with open(path, "r", encoding="utf-8") as f:
        overrides = json.load(f)

    known = set(ExchangeEndpoints.__dataclass_fields__)
    for name, values in overrides.items():
        values = {k: v for k, v in values.items() if k in known}
        if name in endpoints:
            endpoints[name] = replace(endpoints[name], **values)
        else:
            endpoints[name] = ExchangeEndpoints(**values)
    return endpoints


@dataclass
class ExchangeConfig:
    """Exchange-specific configuration."""
    # Exchanges to enable (empty = all)
    enabled_exchanges: List[str] = field(default_factory=lambda: _env_list("ENABLED_EXCHANGES"))

    # Exchanges to disable
    disabled_exchanges: List[str] = field(default_factory=lambda: _env_list("DISABLED_EXCHANGES"))

    endpoints: Dict[str, ExchangeEndpoints] = field(
        default_factory=lambda: load_endpoints(os.getenv("EXCHANGES_CONFIG_PATH"))
    )

    def active_exchanges(self) -> List[str]:
        """Names of exchanges to monitor, in endpoint table order."""
        names = []
        for name in self.endpoints:
            if self.disabled_exchanges and name in self.disabled_exchanges:
                continue
            if self.enabled_exchanges and name not in self.enabled_exchanges:
                continue
            names.append(name)
        return names


@dataclass
class Config:
    """Main configuration class."""
    telegram: TelegramConfig = field(default_factory=TelegramConfig)
    funding: FundingConfig = field(default_factory=FundingConfig)
    retrieval: RetrievalConfig = field(default_factory=RetrievalConfig)
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    exchange: ExchangeConfig = field(default_factory=ExchangeConfig)

    # Debug mode
    debug: bool = field(default_factory=lambda: _env_bool("DEBUG", False))

    # Log level
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create global config instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reload_config() -> Config:
    """Reload configuration from environment."""
    global _config
    _config = Config()
    return _config
