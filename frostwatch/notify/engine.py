"""Notification engine: per-location freeze state machine.

States move Clear -> Warned -> Freezing -> Clear. Each tick yields at most
one intent per location, and an intent is never repeated while the condition
it reported is still unresolved.
"""

import logging
import threading
from collections import defaultdict

from frostwatch.models.forecast import Analysis
from frostwatch.models.location import Location
from frostwatch.models.notification import (
    NotificationIntent,
    NotificationKind,
    NotificationRecord,
    NotificationState,
)

logger = logging.getLogger(__name__)


class NotificationEngine:
    def __init__(self) -> None:
        self._locks: defaultdict[int, threading.Lock] = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()
        # Last intent this engine emitted per location, ahead of the store
        self._emitted: dict[int, tuple[NotificationState, int | None]] = {}

    def decide(
        self,
        location: Location,
        analysis: Analysis,
        last: NotificationRecord | None,
    ) -> NotificationIntent | None:
        """Return the intent to emit for this tick, or None.

        `last` is the most recent state-machine notification on record. The
        engine also remembers what it emitted itself, so two overlapping ticks
        reading the same stale record cannot both emit.
        """
        with self._lock_for(location.id):
            state, last_id = self._effective_state(location.id, last)
            intent = _transition(location, analysis, state, last_id)
            if intent is not None:
                self._emitted[location.id] = (
                    NotificationState(kind=intent.kind, resolved=False),
                    None,
                )
                logger.info(
                    "Location %d (%s): emitting %s", location.id, location.name, intent.kind
                )
            return intent

    def confirm(self, location_id: int, notification_id: int) -> None:
        """Attach the stored id to the last emitted intent for a location."""
        with self._lock_for(location_id):
            held = self._emitted.get(location_id)
            if held is not None:
                self._emitted[location_id] = (held[0], notification_id)

    def rollback(self, location_id: int) -> None:
        """Forget the last emitted intent, e.g. when persisting it failed."""
        with self._lock_for(location_id):
            self._emitted.pop(location_id, None)

    def forget_missing(self, active_ids: set[int]) -> int:
        """Drop held state for locations that no longer exist. Returns the count."""
        with self._locks_guard:
            gone = (set(self._locks) | set(self._emitted)) - active_ids
            for location_id in gone:
                self._locks.pop(location_id, None)
                self._emitted.pop(location_id, None)
        if gone:
            logger.debug("Forgot state for %d removed locations", len(gone))
        return len(gone)

    def _effective_state(
        self, location_id: int, last: NotificationRecord | None
    ) -> tuple[NotificationState | None, int | None]:
        held = self._emitted.get(location_id)
        if held is not None:
            state, held_id = held
            # The store caught up with (or moved past) what we emitted
            if last is not None and held_id is not None and last.id >= held_id:
                del self._emitted[location_id]
            else:
                return state, held_id
        if last is None:
            return None, None
        return NotificationState.from_record(last), last.id

    def _lock_for(self, location_id: int) -> threading.Lock:
        with self._locks_guard:
            return self._locks[location_id]


def _transition(
    location: Location,
    analysis: Analysis,
    state: NotificationState | None,
    last_id: int | None,
) -> NotificationIntent | None:
    unresolved = state.unresolved_kind if state is not None else None

    if analysis.is_below_freezing:
        if unresolved == NotificationKind.NOW_FREEZING:
            return None
        return NotificationIntent(
            location_id=location.id,
            kind=NotificationKind.NOW_FREEZING,
            temperature=analysis.current_temp,
            event_time=analysis.first_freeze_time,
        )

    if analysis.will_freeze_within_warning_window:
        if unresolved == NotificationKind.WARNING:
            return None
        return NotificationIntent(
            location_id=location.id,
            kind=NotificationKind.WARNING,
            temperature=analysis.first_freeze_temp,
            event_time=analysis.first_freeze_time,
        )

    if analysis.all_clear and unresolved is not None:
        return NotificationIntent(
            location_id=location.id,
            kind=NotificationKind.ALL_CLEAR,
            temperature=analysis.current_temp,
            event_time=None,
            resolves_id=last_id,
        )

    return None
