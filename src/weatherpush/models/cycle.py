"""Per-pair results and the report produced by one broadcast cycle."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from weatherpush.exceptions import FetchErrorKind
from weatherpush.models.condition import ConditionSnapshot
from weatherpush.models.subscription import ChatId


@dataclass(frozen=True, slots=True)
class PairResult:
    """Outcome of processing one (chat, location) pair.

    Exactly one of ``snapshot`` / ``error_kind`` is set. ``delivered`` is
    only meaningful for successful fetches; ``delivery_error`` holds the
    sink failure message when delivery did not go through.
    """

    chat_id: ChatId
    location: str
    snapshot: ConditionSnapshot | None = None
    error_kind: FetchErrorKind | None = None
    error_message: str = ""
    delivered: bool = False
    delivery_error: str = ""

    @property
    def fetched(self) -> bool:
        return self.snapshot is not None


@dataclass(slots=True)
class CycleReport:
    """Summary of one broadcast cycle."""

    started_at: datetime
    finished_at: datetime | None = None
    results: list[PairResult] = field(default_factory=list)
    cancelled: bool = False

    @property
    def pair_count(self) -> int:
        return len(self.results)

    @property
    def delivered(self) -> list[PairResult]:
        return [r for r in self.results if r.delivered]

    @property
    def fetch_failures(self) -> list[PairResult]:
        return [r for r in self.results if not r.fetched]

    @property
    def delivery_failures(self) -> list[PairResult]:
        return [r for r in self.results if r.fetched and not r.delivered]

    @property
    def duration(self) -> float | None:
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()
