"""
Notification system for sending volume anomaly alerts to Telegram.
Handles message formatting and delivery with rate limiting.
"""
import asyncio
import logging
from typing import Optional, Tuple

from aiogram import Bot
from aiogram.exceptions import TelegramForbiddenError, TelegramRetryAfter

from core.errors import ConfigurationError, NotificationFailure
from core.models import AnomalyEvent
from utils.formatting import format_anomaly_alert

logger = logging.getLogger(__name__)


def parse_chat_destination(chat_config: Optional[str]) -> Tuple[int, Optional[int]]:
    """
    Parse chat destination from config string.

    Args:
        chat_config: Either "chat_id" or "chat_id:thread_id"

    Returns:
        Tuple of (chat_id, message_thread_id)
    """
    if not chat_config:
        raise ConfigurationError("Alert chat id is empty")

    try:
        if ':' in chat_config:
            chat_id_str, thread_id_str = chat_config.split(':', 1)
            return int(chat_id_str), int(thread_id_str)
        else:
            return int(chat_config), None
    except ValueError:
        raise ConfigurationError(f"Invalid chat destination format: {chat_config}") from None


class Notifier:
    """
    Sends anomaly alerts to a single Telegram chat (optionally a topic).
    Delivery failures are logged and reported as False, never raised.
    """

    def __init__(self, bot: Bot, chat_destination: str, rate_limit_delay: float = 0.05):
        """Initialize notifier with bot instance and destination."""
        self.bot = bot
        self.chat_id, self.thread_id = parse_chat_destination(chat_destination)
        self._rate_limit_delay = rate_limit_delay  # 50ms between messages
        self._blocked = False  # set once Telegram reports the bot blocked or removed

    async def notify_anomaly(self, event: AnomalyEvent) -> bool:
        """
        Send an anomaly alert.

        Returns:
            True if the message was delivered
        """
        if self._blocked:
            logger.debug(f"Skipping alert for {event.symbol}: chat {self.chat_id} is blocked")
            return False

        message = format_anomaly_alert(event)
        try:
            await self._send_message(self.chat_id, message, self.thread_id)
        except NotificationFailure as e:
            logger.error(f"Error sending anomaly alert for {event.symbol}: {e}")
            return False

        logger.info(f"✅ Alert for {event.symbol} sent to Telegram")
        return True

    async def send_text(self, text: str) -> bool:
        """Send an arbitrary text message (used for test messages)."""
        try:
            await self._send_message(self.chat_id, text, self.thread_id)
        except NotificationFailure as e:
            logger.error(str(e))
            return False
        return True

    async def _send_message(self, chat_id: int, text: str, message_thread_id: Optional[int] = None):
        """
        Send message with rate limiting and error handling.

        Raises:
            NotificationFailure: if the message could not be delivered
        """
        await asyncio.sleep(self._rate_limit_delay)

        try:
            await self._deliver(chat_id, text, message_thread_id)

        except TelegramRetryAfter as e:
            # Telegram rate limit hit
            logger.warning(f"Rate limit hit for chat {chat_id}, waiting {e.retry_after}s")
            await asyncio.sleep(e.retry_after)
            # Retry once
            try:
                await self._deliver(chat_id, text, message_thread_id)
            except Exception as retry_error:
                raise NotificationFailure(chat_id, f"retry failed: {retry_error}") from retry_error

        except TelegramForbiddenError as e:
            # Bot blocked or removed from the group
            logger.warning(f"Bot blocked or removed from chat {chat_id}")
            self._blocked = True
            raise NotificationFailure(chat_id, "bot blocked or removed from chat") from e

        except Exception as e:
            raise NotificationFailure(chat_id, str(e)) from e

    async def _deliver(self, chat_id: int, text: str, message_thread_id: Optional[int]):
        await self.bot.send_message(
            chat_id=chat_id,
            text=text,
            message_thread_id=message_thread_id,
            parse_mode=None,  # Plain text for better emoji support
            disable_web_page_preview=True
        )

    async def close(self):
        """Close the bot HTTP session."""
        await self.bot.session.close()
