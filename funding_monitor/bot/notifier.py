"""Telegram delivery of report messages."""

import asyncio
import logging
from typing import List, Optional

from telegram import Bot
from telegram.constants import ParseMode
from telegram.error import RetryAfter, TelegramError

from funding_monitor.config import TelegramConfig, get_config

logger = logging.getLogger(__name__)


def split_message(text: str, limit: int) -> List[str]:
    """Split text into chunks of at most limit characters, on line breaks."""
    if len(text) <= limit:
        return [text]
    
    chunks = []
    current = ""
    for line in text.split("\n"):
        # Hard-wrap single lines longer than the limit
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:limit])
            line = line[limit:]
        
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) > limit:
            chunks.append(current)
            current = line
        else:
            current = candidate
    
    if current:
        chunks.append(current)
    return chunks


class TelegramNotifier:
    """
    Sends messages to a Telegram chat.
    
    Delivery is best effort: failures are retried with a linear backoff and
    then logged. send() never raises.
    """
    
    MAX_MESSAGE_LENGTH = 4096
    
    def __init__(
        self,
        config: Optional[TelegramConfig] = None,
        bot: Optional[Bot] = None,
    ):
        self.config = config or get_config().telegram
        self._bot = bot
        self._initialized = bot is not None
    
    @property
    def is_configured(self) -> bool:
        return self._bot is not None or self.config.is_configured
    
    async def _get_bot(self) -> Bot:
        if self._bot is None:
            self._bot = Bot(self.config.bot_token)
        if not self._initialized:
            await self._bot.initialize()
            self._initialized = True
        return self._bot
    
    async def close(self) -> None:
        if self._bot is not None and self._initialized:
            try:
                await self._bot.shutdown()
            except Exception as e:
                logger.debug(f"[Telegram] Error during shutdown: {e}")
            self._initialized = False
    
    async def _send_chunk(self, bot: Bot, text: str) -> bool:
        retries = max(1, self.config.max_retries)
        
        for attempt in range(retries):
            try:
                await bot.send_message(
                    chat_id=self.config.chat_id,
                    text=text,
                    parse_mode=ParseMode.HTML,
                )
                return True
            except RetryAfter as e:
                delay = e.retry_after
                if hasattr(delay, "total_seconds"):
                    delay = delay.total_seconds()
                logger.warning(f"[Telegram] Rate limited, retrying in {delay}s")
                await asyncio.sleep(float(delay))
            except TelegramError as e:
                logger.warning(f"[Telegram] Send failed (attempt {attempt + 1}/{retries}): {e}")
                if attempt < retries - 1:
                    await asyncio.sleep(self.config.retry_delay * (attempt + 1))
        
        return False
    
    async def send(self, text: str) -> bool:
        """
        Send a message, split into several if it is too long.
        
        Returns:
            True if every part was delivered
        """
        if not self.is_configured:
            logger.warning("[Telegram] Bot token or chat id not configured, message not sent")
            return False
        
        try:
            bot = await self._get_bot()
            delivered = True
            for chunk in split_message(text, self.MAX_MESSAGE_LENGTH):
                delivered = await self._send_chunk(bot, chunk) and delivered
        except Exception as e:
            logger.error(f"[Telegram] Send failed: {e}")
            return False
        
        if delivered:
            logger.info("[Telegram] Message sent")
        else:
            logger.error("[Telegram] Message delivery failed")
        return delivered
