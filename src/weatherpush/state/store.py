"""Thread-safe in-memory subscription store.

This is the only component allowed to mutate the chat -> locations
mapping. Callers never see the live mapping; reads return copies taken
under the lock.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from types import MappingProxyType

from weatherpush.models.subscription import AddOutcome, ChatId, RemoveOutcome
from weatherpush.normalize import normalize_location

_logger = logging.getLogger(__name__)


class SubscriptionStore:
    """Mapping from chat identity to its set of subscribed locations.

    Locations are compared by their case-folded normalized form; the
    spelling used on the first successful :meth:`add` is what
    :meth:`list` and :meth:`snapshot` return. Per chat, locations keep
    insertion order.

    A chat entry is created on its first successful add and is never
    dropped, so removing the last location leaves an empty entry.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        # chat -> {casefolded key -> display name}; dicts keep insertion order.
        self._chats: dict[ChatId, dict[str, str]] = {}

    def add(self, chat_id: ChatId, location: str) -> AddOutcome:
        """Subscribe *chat_id* to *location*.

        Raises :class:`~weatherpush.exceptions.InvalidLocationError` for
        empty names; nothing is stored in that case.
        """
        display = normalize_location(location)
        key = display.casefold()
        with self._lock:
            locations = self._chats.setdefault(chat_id, {})
            if key in locations:
                return AddOutcome.ALREADY_PRESENT
            locations[key] = display
        _logger.debug("Subscribed chat=%s location=%s", chat_id, display)
        return AddOutcome.ADDED

    def remove(self, chat_id: ChatId, location: str) -> RemoveOutcome:
        """Unsubscribe *chat_id* from *location*."""
        key = normalize_location(location).casefold()
        with self._lock:
            locations = self._chats.get(chat_id)
            if locations is None or key not in locations:
                return RemoveOutcome.NOT_PRESENT
            display = locations.pop(key)
        _logger.debug("Unsubscribed chat=%s location=%s", chat_id, display)
        return RemoveOutcome.REMOVED

    def list(self, chat_id: ChatId) -> tuple[str, ...]:
        with self._lock:
            locations = self._chats.get(chat_id)
            return tuple(locations.values()) if locations else ()

    def has_chat(self, chat_id: ChatId) -> bool:
        """Whether *chat_id* ever subscribed (its set may now be empty)."""
        with self._lock:
            return chat_id in self._chats

    def chats(self) -> tuple[ChatId, ...]:
        with self._lock:
            return tuple(self._chats)

    def pair_count(self) -> int:
        """Total number of (chat, location) pairs."""
        with self._lock:
            return sum(len(locations) for locations in self._chats.values())

    def snapshot(self) -> Mapping[ChatId, tuple[str, ...]]:
        """Return a read-only copy of every chat's locations.

        The copy is taken in one critical section, so each chat appears
        either entirely before or entirely after any concurrent add or
        remove.
        """
        with self._lock:
            copied = {chat_id: tuple(locations.values()) for chat_id, locations in self._chats.items()}
        return MappingProxyType(copied)

    def __len__(self) -> int:
        with self._lock:
            return len(self._chats)
