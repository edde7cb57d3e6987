#!/usr/bin/env python3
"""
Quick start script for the funding rate monitor.

Usage:
    python run_monitor.py
    python run_monitor.py --once --dry-run

Configure Telegram delivery via environment variables or a .env file:
    TELEGRAM_BOT_TOKEN=YOUR_TOKEN
    TELEGRAM_CHAT_ID=YOUR_CHAT_ID
"""

import sys

from funding_monitor.main import main

if __name__ == "__main__":
    sys.exit(main())
