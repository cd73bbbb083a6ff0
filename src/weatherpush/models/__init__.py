"""Data models for weatherpush."""

from weatherpush.models._base import UnixTimestamp, WeatherBaseModel, parse_unix_timestamp
from weatherpush.models.condition import ConditionSnapshot
from weatherpush.models.cycle import CycleReport, PairResult
from weatherpush.models.subscription import AddOutcome, ChatId, RemoveOutcome

__all__ = [
    "AddOutcome",
    "ChatId",
    "ConditionSnapshot",
    "CycleReport",
    "PairResult",
    "RemoveOutcome",
    "UnixTimestamp",
    "WeatherBaseModel",
    "parse_unix_timestamp",
]
