#!/usr/bin/env python3
"""
Check Telegram alert delivery.

Verifies the bot token, sends a test message to ALERT_CHAT_ID and, with
--chat-ids, lists the chats that recently messaged the bot (to find the
id to put in ALERT_CHAT_ID).

Usage:
    python check_telegram.py
    python check_telegram.py --chat-ids
    python check_telegram.py --token TOKEN --chat CHAT_ID
"""
import argparse
import asyncio
import logging
import sys
from datetime import datetime

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError
from aiogram.utils.token import TokenValidationError

from bot.notifier import Notifier
from config import get_settings
from core.errors import ConfigurationError
from utils.formatting import format_timestamp

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def list_chat_ids(bot: Bot) -> int:
    """Print chats seen in pending bot updates."""
    updates = await bot.get_updates(limit=100, timeout=0)
    chats = {}
    for update in updates:
        message = update.message or update.channel_post or update.my_chat_member
        chat = getattr(message, "chat", None)
        if chat is not None:
            chats[chat.id] = chat

    if not chats:
        print("No chats found. Send any message to the bot (or add it to a group) and run again.")
        return 1

    print(f"Found {len(chats)} chat(s):")
    for chat in chats.values():
        title = chat.title or chat.username or chat.first_name or ""
        print(f"  {chat.id:>16}  {chat.type:<12} {title}")
    return 0


async def run(args: argparse.Namespace) -> int:
    try:
        settings = get_settings()
    except ConfigurationError as e:
        logger.error(f"❌ {e}")
        return 1

    token = args.token or settings.bot_token
    chat = args.chat or settings.alert_chat_id

    if not token:
        logger.error("❌ No bot token. Set BOT_TOKEN or pass --token")
        return 1

    try:
        bot = Bot(token=token)
    except TokenValidationError as e:
        logger.error(f"❌ Invalid bot token: {e}")
        return 1

    try:
        me = await bot.get_me()
        print(f"✅ Bot: {me.first_name} (@{me.username}, id {me.id})")

        if args.chat_ids:
            return await list_chat_ids(bot)

        if not chat:
            logger.error("❌ No chat id. Set ALERT_CHAT_ID or pass --chat (use --chat-ids to find it)")
            return 1

        notifier = Notifier(bot, chat, rate_limit_delay=0)
        message = "\n".join([
            "🧪 TEST NOTIFICATION",
            "",
            f"✅ Bot @{me.username} is configured",
            f"🕒 {format_timestamp(datetime.now())}",
            "",
            "You will receive abnormal volume alerts in this chat.",
        ])
        if await notifier.send_text(message):
            print(f"✅ Test message sent to {chat}")
            return 0
        return 1

    except ConfigurationError as e:
        logger.error(f"❌ {e}")
        return 1
    except TelegramAPIError as e:
        logger.error(f"❌ Telegram error: {e}")
        return 1
    finally:
        await bot.session.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Check Telegram alert delivery")
    parser.add_argument("--token", help="bot token (default: BOT_TOKEN)")
    parser.add_argument("--chat", help="chat id or chat_id:thread_id (default: ALERT_CHAT_ID)")
    parser.add_argument("--chat-ids", action="store_true", help="list chats that recently messaged the bot")
    return parser


if __name__ == "__main__":
    sys.exit(asyncio.run(run(build_parser().parse_args())))
