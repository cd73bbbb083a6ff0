"""Chat command routing.

Translates bot commands into store and fetcher calls and replies through
the notification sink. The router owns command names, argument handling
and reply wording; the store and fetcher never see raw command text.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from telegram import Update
from telegram.ext import BaseHandler, CommandHandler, ContextTypes, MessageHandler, filters

from weatherpush.exceptions import FetchError, FetchErrorKind, InvalidLocationError
from weatherpush.fetcher import Fetcher
from weatherpush.formatting import format_conditions, format_fetch_error, format_location_list
from weatherpush.models.subscription import AddOutcome, ChatId, RemoveOutcome
from weatherpush.normalize import location_key, normalize_location
from weatherpush.sink import NotificationSink
from weatherpush.state.store import SubscriptionStore

_logger = logging.getLogger(__name__)

HELP_TEXT = (
    "I can send you weather updates. Use:\n"
    "- /addcity <cityname> to subscribe\n"
    "- /removecity <cityname> to unsubscribe\n"
    "- /mycities to see your list\n"
    "- /weather <cityname> to get instant weather"
)

UNKNOWN_COMMAND_TEXT = f"🤔 Sorry, I don't know that command.\n{HELP_TEXT}"

# Canonical command name -> every name the bot answers to.
COMMAND_ALIASES: dict[str, tuple[str, ...]] = {
    "start": ("start",),
    "help": ("help",),
    "addcity": ("addcity", "subscribe"),
    "removecity": ("removecity", "unsubscribe"),
    "mycities": ("mycities", "list"),
    "weather": ("weather", "lookup"),
}

_Handler = Callable[[ChatId, str, str | None], Awaitable[str]]
_Callback = Callable[[Update, ContextTypes.DEFAULT_TYPE], Awaitable[None]]


class CommandRouter:
    """Answer bot commands for one store, fetcher and sink.

    :meth:`handlers` returns the python-telegram-bot handlers to register
    on an ``Application``; :meth:`handle` is the same logic without the
    Telegram update wrapper.
    """

    def __init__(
        self,
        store: SubscriptionStore,
        fetcher: Fetcher,
        sink: NotificationSink,
        *,
        units: str = "metric",
    ) -> None:
        self._store = store
        self._fetcher = fetcher
        self._sink = sink
        self._units = units
        handlers: dict[str, _Handler] = {
            "start": self._start,
            "help": self._help,
            "addcity": self._subscribe,
            "removecity": self._unsubscribe,
            "mycities": self._list,
            "weather": self._lookup,
        }
        self._commands: dict[str, _Handler] = {
            alias: handlers[command] for command, aliases in COMMAND_ALIASES.items() for alias in aliases
        }

    def handlers(self) -> list[BaseHandler]:
        """One ``CommandHandler`` per command plus a catch-all for unknown commands."""
        registered: list[BaseHandler] = [
            CommandHandler(list(aliases), self._callback(command)) for command, aliases in COMMAND_ALIASES.items()
        ]
        registered.append(MessageHandler(filters.COMMAND, self._on_unknown_command))
        return registered

    def _callback(self, command: str) -> _Callback:
        async def callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
            chat = update.effective_chat
            if chat is None:
                return
            user = update.effective_user
            await self.handle(
                chat.id,
                command,
                " ".join(context.args or ()),
                first_name=user.first_name if user is not None else None,
            )

        return callback

    async def _on_unknown_command(self, update: Update, _context: ContextTypes.DEFAULT_TYPE) -> None:
        chat = update.effective_chat
        if chat is None:
            return
        await self._reply(chat.id, UNKNOWN_COMMAND_TEXT)

    async def handle(
        self,
        chat_id: ChatId,
        command: str,
        argument: str = "",
        *,
        first_name: str | None = None,
    ) -> str:
        """Run *command* for *chat_id*, send the reply and return it.

        Delivery failures are logged, not raised.
        """
        handler = self._commands.get(command.lower())
        if handler is None:
            reply = UNKNOWN_COMMAND_TEXT
        else:
            _logger.debug("Command /%s chat=%s", command, chat_id)
            reply = await handler(chat_id, argument.strip(), first_name)
        await self._reply(chat_id, reply)
        return reply

    async def _reply(self, chat_id: ChatId, text: str) -> None:
        try:
            await self._sink.send(chat_id, text)
        except Exception as exc:
            _logger.warning("Reply to chat=%s failed: %s", chat_id, exc)

    async def _start(self, _chat_id: ChatId, _argument: str, first_name: str | None) -> str:
        greeting = f"👋 Hello {first_name}!" if first_name else "👋 Hello!"
        return f"{greeting}\n{HELP_TEXT}"

    async def _help(self, _chat_id: ChatId, _argument: str, _first_name: str | None) -> str:
        return HELP_TEXT

    async def _subscribe(self, chat_id: ChatId, argument: str, _first_name: str | None) -> str:
        try:
            outcome = self._store.add(chat_id, argument)
        except InvalidLocationError:
            return "Usage: /addcity <cityname>"
        city = self._display_name(chat_id, argument)
        if outcome is AddOutcome.ADDED:
            return f"✅ Added {city} to your subscription list!"
        return f"ℹ️ {city} is already in your list."

    async def _unsubscribe(self, chat_id: ChatId, argument: str, _first_name: str | None) -> str:
        try:
            city = normalize_location(argument)
        except InvalidLocationError:
            return "Usage: /removecity <cityname>"
        if not self._store.has_chat(chat_id):
            return "❌ You don't have any subscriptions yet."
        outcome = self._store.remove(chat_id, city)
        if outcome is RemoveOutcome.REMOVED:
            return f"🗑 Removed {city} from your list."
        return f"ℹ️ {city} is not in your list."

    async def _list(self, chat_id: ChatId, _argument: str, _first_name: str | None) -> str:
        return format_location_list(self._store.list(chat_id))

    async def _lookup(self, _chat_id: ChatId, argument: str, _first_name: str | None) -> str:
        try:
            name = normalize_location(argument)
        except InvalidLocationError:
            return "Usage: /weather <cityname>"
        try:
            snapshot = await self._fetcher.fetch(name)
        except FetchError as exc:
            _logger.info("Lookup failed location=%s kind=%s: %s", name, exc.kind, exc)
            return format_fetch_error(name, exc.kind)
        except Exception:
            _logger.warning("Lookup crashed location=%s", name, exc_info=True)
            return format_fetch_error(name, FetchErrorKind.UNAVAILABLE)
        return format_conditions(snapshot, units=self._units)

    def _display_name(self, chat_id: ChatId, argument: str) -> str:
        """Stored spelling of *argument* for this chat."""
        key = location_key(argument)
        for location in self._store.list(chat_id):
            if location.casefold() == key:
                return location
        return normalize_location(argument)
