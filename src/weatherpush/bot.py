"""Telegram bot runtime wiring the store, fetcher, router and scheduler."""

from __future__ import annotations

import logging

from telegram import Update
from telegram.ext import Application, ContextTypes

from weatherpush.config import WeatherPushConfig
from weatherpush.fetcher import WeatherFetcher
from weatherpush.router import CommandRouter
from weatherpush.scheduler import BroadcastScheduler
from weatherpush.state.store import SubscriptionStore
from weatherpush.telegram import TelegramSink

_logger = logging.getLogger(__name__)


class WeatherBot:
    """Long-polling Telegram bot with scheduled condition pushes.

    Usage::

        WeatherBot(config).run()

    Updates are processed concurrently, so a slow lookup never blocks
    other chats. Command handlers and the broadcast scheduler share one
    :class:`SubscriptionStore`.

    Shutdown order: python-telegram-bot stops polling and finishes pending
    updates, then the scheduler gets ``config.shutdown_grace`` seconds to
    finish its cycle, then the bot and the fetcher release their HTTP
    sessions.
    """

    def __init__(
        self,
        config: WeatherPushConfig,
        *,
        store: SubscriptionStore | None = None,
        fetcher: WeatherFetcher | None = None,
    ) -> None:
        self._config = config
        self.store = store if store is not None else SubscriptionStore()
        self.fetcher = fetcher if fetcher is not None else WeatherFetcher(config)
        self.application = (
            Application.builder()
            .token(config.telegram_token)
            .base_url(f"{config.telegram_base_url.rstrip('/')}/bot")
            .concurrent_updates(True)
            .post_init(self._post_init)
            .post_stop(self._post_stop)
            .post_shutdown(self._post_shutdown)
            .build()
        )
        sink = TelegramSink(self.application.bot)
        self.router = CommandRouter(self.store, self.fetcher, sink, units=config.units)
        self.scheduler = BroadcastScheduler.from_config(config, self.store, self.fetcher, sink)
        self.application.add_handlers(self.router.handlers())
        self.application.add_error_handler(self._on_error)

    def run(self) -> None:
        """Poll Telegram until interrupted (SIGINT, SIGTERM)."""
        _logger.info("weatherpush bot running, push interval %.0fs", self._config.tick_interval)
        self.application.run_polling(
            allowed_updates=[Update.MESSAGE],
            timeout=self._config.poll_timeout,
        )
        _logger.info("weatherpush bot stopped")

    async def _post_init(self, _application: Application) -> None:
        await self.fetcher.open()
        self.scheduler.start()

    async def _post_stop(self, _application: Application) -> None:
        await self.scheduler.stop(grace=self._config.shutdown_grace)

    async def _post_shutdown(self, _application: Application) -> None:
        await self.fetcher.close()

    async def _on_error(self, update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        _logger.error("Error while handling update %s", update, exc_info=context.error)
