from __future__ import annotations

from types import SimpleNamespace

import pytest
from telegram.ext import CommandHandler, MessageHandler

from weatherpush.exceptions import DeliveryError, FetchError, FetchErrorKind
from weatherpush.models.condition import ConditionSnapshot
from weatherpush.models.subscription import ChatId
from weatherpush.router import COMMAND_ALIASES, HELP_TEXT, UNKNOWN_COMMAND_TEXT, CommandRouter
from weatherpush.state.store import SubscriptionStore


class _FakeFetcher:
    def __init__(self, failures: dict[str, FetchErrorKind] | None = None) -> None:
        self.failures = failures or {}
        self.calls: list[str] = []

    async def fetch(self, location: str) -> ConditionSnapshot:
        self.calls.append(location)
        if location in self.failures:
            raise FetchError("nope", kind=self.failures[location], location=location)
        return ConditionSnapshot(location=location, temperature=-3, humidity=75, wind_speed=6, description="snow")


class _BrokenFetcher:
    async def fetch(self, location: str) -> ConditionSnapshot:
        raise RuntimeError("provider client bug")


class _RecordingSink:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.messages: list[tuple[ChatId, str]] = []

    async def send(self, chat_id: ChatId, text: str) -> None:
        if self.fail:
            raise DeliveryError("blocked", chat_id=chat_id)
        self.messages.append((chat_id, text))


def _router(
    store: SubscriptionStore | None = None,
    fetcher: object | None = None,
    sink: _RecordingSink | None = None,
) -> tuple[CommandRouter, SubscriptionStore, _RecordingSink]:
    store = store if store is not None else SubscriptionStore()
    sink = sink if sink is not None else _RecordingSink()
    return CommandRouter(store, fetcher or _FakeFetcher(), sink), store, sink  # type: ignore[arg-type]


def _update(chat_id: int | None = 7, first_name: str | None = "Ada") -> SimpleNamespace:
    chat = SimpleNamespace(id=chat_id) if chat_id is not None else None
    user = SimpleNamespace(first_name=first_name) if first_name is not None else None
    return SimpleNamespace(effective_chat=chat, effective_user=user)


def test_handlers_register_every_alias() -> None:
    router, _store, _sink = _router()

    handlers = router.handlers()

    command_handlers = [h for h in handlers if isinstance(h, CommandHandler)]
    assert [set(h.commands) for h in command_handlers] == [set(aliases) for aliases in COMMAND_ALIASES.values()]
    assert {"subscribe", "unsubscribe", "list", "lookup"} <= set().union(*(h.commands for h in command_handlers))
    assert isinstance(handlers[-1], MessageHandler)


@pytest.mark.asyncio
async def test_command_callback_joins_arguments_and_reads_first_name() -> None:
    router, store, sink = _router()
    addcity = router.handlers()[2]
    start = router.handlers()[0]

    await addcity.callback(_update(), SimpleNamespace(args=["New", "York"]))  # type: ignore[arg-type]
    await start.callback(_update(first_name=None), SimpleNamespace(args=[]))  # type: ignore[arg-type]

    assert store.list(7) == ("New York",)
    assert sink.messages[0] == (7, "✅ Added New York to your subscription list!")
    assert sink.messages[1][1].startswith("👋 Hello!\n")


@pytest.mark.asyncio
async def test_callbacks_ignore_updates_without_chat() -> None:
    router, _store, sink = _router()
    handlers = router.handlers()

    await handlers[1].callback(_update(chat_id=None), SimpleNamespace(args=[]))  # type: ignore[arg-type]
    await handlers[-1].callback(_update(chat_id=None), SimpleNamespace(args=[]))  # type: ignore[arg-type]

    assert sink.messages == []


@pytest.mark.asyncio
async def test_unknown_command_handler_replies_with_help() -> None:
    router, _store, sink = _router()

    await router.handlers()[-1].callback(_update(), SimpleNamespace(args=None))  # type: ignore[arg-type]

    assert sink.messages == [(7, UNKNOWN_COMMAND_TEXT)]
    assert HELP_TEXT in UNKNOWN_COMMAND_TEXT


@pytest.mark.asyncio
async def test_start_greets_by_name() -> None:
    router, _store, sink = _router()

    reply = await router.handle(1, "start", first_name="Ada")

    assert reply.startswith("👋 Hello Ada!")
    assert HELP_TEXT in reply
    assert sink.messages == [(1, reply)]


@pytest.mark.asyncio
async def test_subscribe_and_list_flow() -> None:
    router, store, _sink = _router()

    assert await router.handle(1, "addcity", "Paris") == "✅ Added Paris to your subscription list!"
    assert await router.handle(1, "subscribe", "paris") == "ℹ️ Paris is already in your list."
    assert await router.handle(1, "addcity", " Tokyo ") == "✅ Added Tokyo to your subscription list!"
    assert await router.handle(1, "mycities") == "📍 Your cities: Paris, Tokyo"
    assert store.list(1) == ("Paris", "Tokyo")


@pytest.mark.asyncio
async def test_subscribe_without_city_shows_usage() -> None:
    router, store, _sink = _router()

    assert await router.handle(1, "addcity", "   ") == "Usage: /addcity <cityname>"
    assert not store.has_chat(1)


@pytest.mark.asyncio
async def test_unsubscribe_replies() -> None:
    router, store, _sink = _router()

    assert await router.handle(1, "removecity", "Paris") == "❌ You don't have any subscriptions yet."

    store.add(1, "Paris")
    assert await router.handle(1, "removecity", "PARIS") == "🗑 Removed PARIS from your list."
    assert await router.handle(1, "unsubscribe", "Paris") == "ℹ️ Paris is not in your list."
    assert await router.handle(1, "removecity") == "Usage: /removecity <cityname>"
    assert await router.handle(1, "list") == "❌ You have no subscribed cities."


@pytest.mark.asyncio
async def test_unsubscribe_without_city_from_new_chat_shows_usage() -> None:
    router, store, _sink = _router()

    assert await router.handle(99, "removecity") == "Usage: /removecity <cityname>"
    assert await router.handle(99, "unsubscribe", "  ") == "Usage: /removecity <cityname>"
    assert not store.has_chat(99)


@pytest.mark.asyncio
async def test_lookup_formats_conditions() -> None:
    fetcher = _FakeFetcher()
    router, _store, _sink = _router(fetcher=fetcher)

    reply = await router.handle(1, "weather", " Oslo ")

    assert "🌤 Weather in Oslo:" in reply
    assert "-3°C" in reply
    assert "75%" in reply
    assert "6 m/s" in reply
    assert "snow" in reply
    assert fetcher.calls == ["Oslo"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("kind", "fragment"),
    [
        (FetchErrorKind.NOT_FOUND, "Could not find a location called Atlantis"),
        (FetchErrorKind.UNAVAILABLE, "Weather service unavailable for Atlantis"),
        (FetchErrorKind.MALFORMED, "unreadable answer for Atlantis"),
    ],
)
async def test_lookup_failure_replies(kind: FetchErrorKind, fragment: str) -> None:
    router, _store, _sink = _router(fetcher=_FakeFetcher({"Atlantis": kind}))

    reply = await router.handle(1, "lookup", "Atlantis")

    assert fragment in reply


@pytest.mark.asyncio
async def test_lookup_replies_when_fetcher_raises_unexpectedly(caplog: pytest.LogCaptureFixture) -> None:
    router, _store, sink = _router(fetcher=_BrokenFetcher())

    reply = await router.handle(1, "weather", "Oslo")

    assert reply == "⚠ Weather service unavailable for Oslo, try again later."
    assert sink.messages == [(1, reply)]
    assert "Lookup crashed location=Oslo" in caplog.text


@pytest.mark.asyncio
async def test_lookup_without_city_shows_usage() -> None:
    fetcher = _FakeFetcher()
    router, _store, _sink = _router(fetcher=fetcher)

    assert await router.handle(1, "weather") == "Usage: /weather <cityname>"
    assert fetcher.calls == []


@pytest.mark.asyncio
async def test_unknown_command_replies_with_help() -> None:
    router, _store, sink = _router()

    reply = await router.handle(1, "forecast", "Paris")

    assert reply == UNKNOWN_COMMAND_TEXT
    assert sink.messages == [(1, reply)]


@pytest.mark.asyncio
async def test_reply_delivery_failure_is_not_raised() -> None:
    router, store, _sink = _router(sink=_RecordingSink(fail=True))

    reply = await router.handle(1, "addcity", "Paris")

    assert reply == "✅ Added Paris to your subscription list!"
    assert store.list(1) == ("Paris",)
