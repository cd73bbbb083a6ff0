"""Notification sink contract."""

from __future__ import annotations

from typing import Protocol

from weatherpush.models.subscription import ChatId


class NotificationSink(Protocol):
    """Deliver one message to one chat.

    Implementations raise :class:`~weatherpush.exceptions.DeliveryError`
    (or any exception) on failure. Callers log and move on; nothing is
    retried.
    """

    async def send(self, chat_id: ChatId, text: str) -> None: ...
