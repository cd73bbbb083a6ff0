"""weatherpush - Telegram weather subscriptions with scheduled condition pushes."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("weatherpush")
except PackageNotFoundError:
    __version__ = "0+local"
from weatherpush.bot import WeatherBot
from weatherpush.config import WeatherPushConfig
from weatherpush.exceptions import (
    DeliveryError,
    FetchError,
    FetchErrorKind,
    InvalidLocationError,
    MalformedResponseError,
    WeatherPushConfigError,
    WeatherPushError,
    WeatherPushTransportError,
)
from weatherpush.fetcher import Fetcher, WeatherFetcher
from weatherpush.models import (
    AddOutcome,
    ChatId,
    ConditionSnapshot,
    CycleReport,
    PairResult,
    RemoveOutcome,
)
from weatherpush.router import CommandRouter
from weatherpush.scheduler import BroadcastScheduler, SchedulerState
from weatherpush.sink import NotificationSink
from weatherpush.state import SubscriptionStore
from weatherpush.telegram import TelegramSink

__all__ = [
    "__version__",
    "AddOutcome",
    "BroadcastScheduler",
    "ChatId",
    "CommandRouter",
    "ConditionSnapshot",
    "CycleReport",
    "DeliveryError",
    "FetchError",
    "FetchErrorKind",
    "Fetcher",
    "InvalidLocationError",
    "MalformedResponseError",
    "NotificationSink",
    "PairResult",
    "RemoveOutcome",
    "SchedulerState",
    "SubscriptionStore",
    "TelegramSink",
    "WeatherBot",
    "WeatherFetcher",
    "WeatherPushConfig",
    "WeatherPushConfigError",
    "WeatherPushError",
    "WeatherPushTransportError",
]
