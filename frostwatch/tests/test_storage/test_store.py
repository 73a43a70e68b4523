"""Tests for the Store facade and its error translation."""

import pytest

from frostwatch.exceptions import PersistenceError
from frostwatch.models.geo import Coordinate
from frostwatch.models.notification import NotificationIntent, NotificationKind


class TestStore:
    def test_location_round_trip(self, store):
        user_id = store.upsert_user("100", "alice")
        loc_id = store.add_location(user_id, "Garden", Coordinate(52.52, 13.405))

        assert [loc.id for loc in store.get_all_locations()] == [loc_id]
        assert store.get_location(loc_id).owner_id == user_id
        assert store.get_user(user_id).chat_id == "100"

    def test_duplicate_name_is_persistence_error(self, store):
        user_id = store.upsert_user("100")
        store.add_location(user_id, "Garden", Coordinate(52.52, 13.405))
        with pytest.raises(PersistenceError):
            store.add_location(user_id, "Garden", Coordinate(50.0, 10.0))

    def test_all_clear_resolves_prior(self, store):
        user_id = store.upsert_user("100")
        loc_id = store.add_location(user_id, "Garden", Coordinate(52.52, 13.405))
        nid = store.record_notification(
            NotificationIntent(
                location_id=loc_id,
                kind=NotificationKind.WARNING,
                temperature=-1.0,
                event_time=None,
            )
        )
        assert store.get_last_notification(loc_id).resolved is False

        store.record_notification(
            NotificationIntent(
                location_id=loc_id,
                kind=NotificationKind.ALL_CLEAR,
                temperature=4.0,
                event_time=None,
                resolves_id=nid,
            )
        )
        resolved = store.conn.execute(
            "SELECT resolved FROM notifications WHERE id = ?", (nid,)
        ).fetchone()
        assert resolved["resolved"] == 1
        assert [r.id for r in store.get_unsent()] == [nid, nid + 1]

    def test_closed_connection_is_persistence_error(self, store):
        store.close()
        with pytest.raises(PersistenceError):
            store.get_all_locations()
