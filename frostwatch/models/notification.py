"""Notification intents, records and per-location state."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from frostwatch.models.common import LocationId, UserId


class NotificationKind(StrEnum):
    WARNING = "warning"
    NOW_FREEZING = "now_freezing"
    ALL_CLEAR = "all_clear"
    MORNING_SUMMARY = "morning_summary"


# Kinds that open a condition an all_clear can later resolve
OPENING_KINDS = frozenset({NotificationKind.WARNING, NotificationKind.NOW_FREEZING})


@dataclass(frozen=True)
class NotificationIntent:
    location_id: LocationId
    kind: NotificationKind
    temperature: float | None
    event_time: datetime | None
    resolves_id: int | None = None


@dataclass(frozen=True)
class NotificationRecord:
    id: int
    location_id: LocationId
    kind: NotificationKind
    temperature: float | None
    event_time: datetime | None
    sent: bool
    resolved: bool
    created_at: datetime | None = None
    details: dict = field(default_factory=dict)


@dataclass(frozen=True)
class NotificationState:
    kind: NotificationKind
    resolved: bool

    @property
    def unresolved_kind(self) -> NotificationKind | None:
        """The kind still awaiting an all_clear, if any."""
        if self.resolved or self.kind not in OPENING_KINDS:
            return None
        return self.kind

    @classmethod
    def from_record(cls, record: NotificationRecord) -> "NotificationState":
        return cls(kind=record.kind, resolved=record.resolved)


@dataclass(frozen=True)
class SummaryEntry:
    location_id: LocationId
    name: str
    temperature: float | None
    event_time: datetime | None


@dataclass(frozen=True)
class MorningSummary:
    owner_id: UserId
    entries: tuple[SummaryEntry, ...]
