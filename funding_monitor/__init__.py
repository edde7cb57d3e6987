"""Perpetual funding rate monitor with Telegram arbitrage reports."""

__version__ = "1.0.0"
