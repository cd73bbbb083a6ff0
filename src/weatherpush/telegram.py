"""Telegram-backed notification sink."""

from __future__ import annotations

import logging

from telegram import Bot, constants
from telegram.error import TelegramError

from weatherpush.exceptions import DeliveryError
from weatherpush.models.subscription import ChatId

_logger = logging.getLogger(__name__)

MAX_TEXT_LENGTH = constants.MessageLimit.MAX_TEXT_LENGTH


def clamp_message(text: str) -> str:
    """Shorten *text* to what Telegram accepts in one message."""
    if len(text) <= MAX_TEXT_LENGTH:
        return text
    return text[: MAX_TEXT_LENGTH - 1] + "…"


class TelegramSink:
    """:class:`~weatherpush.sink.NotificationSink` that posts to Telegram chats."""

    def __init__(self, bot: Bot) -> None:
        self._bot = bot

    async def send(self, chat_id: ChatId, text: str) -> None:
        try:
            await self._bot.send_message(chat_id=chat_id, text=clamp_message(text))
        except TelegramError as exc:
            _logger.debug("send_message to chat=%s failed: %r", chat_id, exc)
            raise DeliveryError(f"Could not deliver to chat {chat_id}: {exc}", chat_id=chat_id) from exc
