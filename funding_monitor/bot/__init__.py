"""Report formatting and Telegram delivery."""

from .formatters import ReportFormatter
from .notifier import TelegramNotifier, split_message

__all__ = ["ReportFormatter", "TelegramNotifier", "split_message"]
