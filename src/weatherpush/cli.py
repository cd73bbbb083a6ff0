"""Command-line entry point.

Configuration comes from the environment (``OPENWEATHER_API_KEY``,
``TELEGRAM_TOKEN``, ``WEATHERPUSH_*``); flags override it.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from collections.abc import Sequence

from weatherpush.bot import WeatherBot
from weatherpush.config import WeatherPushConfig
from weatherpush.exceptions import FetchError, InvalidLocationError, WeatherPushConfigError
from weatherpush.fetcher import WeatherFetcher
from weatherpush.formatting import format_conditions, format_fetch_error

_logger = logging.getLogger("weatherpush")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="weatherpush",
        description="Telegram bot that pushes weather updates for subscribed cities.",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("WEATHERPUSH_LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Logging level (default: %(default)s, env WEATHERPUSH_LOG_LEVEL)",
    )
    sub = parser.add_subparsers(dest="command")

    run = sub.add_parser("run", help="Run the bot (default)")
    run.add_argument("--interval", type=float, default=None, help="Seconds between scheduled pushes")
    run.add_argument("--fetch-timeout", type=float, default=None, help="Seconds before a weather fetch gives up")

    lookup = sub.add_parser("lookup", help="Print current conditions for one city and exit")
    lookup.add_argument("city", nargs="+", help="City name")
    lookup.add_argument("--fetch-timeout", type=float, default=None, help="Seconds before the fetch gives up")
    return parser


def _config_from_args(args: argparse.Namespace) -> WeatherPushConfig:
    overrides: dict[str, float] = {}
    if getattr(args, "interval", None) is not None:
        overrides["tick_interval"] = args.interval
    if getattr(args, "fetch_timeout", None) is not None:
        overrides["fetch_timeout"] = args.fetch_timeout
    return WeatherPushConfig.from_env(**overrides)


async def _lookup(config: WeatherPushConfig, city: str) -> int:
    async with WeatherFetcher(config) as fetcher:
        try:
            snapshot = await fetcher.fetch(city)
        except FetchError as exc:
            print(format_fetch_error(city, exc.kind), file=sys.stderr)
            _logger.debug("Lookup failed", exc_info=True)
            return 1
    print(format_conditions(snapshot, units=config.units))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # python-telegram-bot logs every getUpdates request through httpx.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    try:
        config = _config_from_args(args)
        if args.command == "lookup":
            return asyncio.run(_lookup(config.validate(), " ".join(args.city)))
        WeatherBot(config.validate(require_telegram=True)).run()
    except (WeatherPushConfigError, InvalidLocationError) as exc:
        parser.error(str(exc))
    except KeyboardInterrupt:
        pass
    return 0
