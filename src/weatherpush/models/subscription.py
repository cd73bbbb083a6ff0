"""Subscription outcome types."""

from __future__ import annotations

from enum import StrEnum
from typing import TypeAlias

ChatId: TypeAlias = int | str
"""Opaque chat identity. Used only as a mapping key."""


class AddOutcome(StrEnum):
    ADDED = "added"
    ALREADY_PRESENT = "already_present"


class RemoveOutcome(StrEnum):
    REMOVED = "removed"
    NOT_PRESENT = "not_present"
