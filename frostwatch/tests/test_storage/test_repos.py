"""Tests for repository CRUD operations."""

import sqlite3
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from frostwatch.models.forecast import ForecastPoint, ForecastSeries
from frostwatch.models.geo import Coordinate
from frostwatch.models.notification import (
    MorningSummary,
    NotificationIntent,
    NotificationKind,
    SummaryEntry,
)
from frostwatch.storage import cache_repo, location_repo, notification_repo, user_repo
from frostwatch.storage.database import connect, run_migrations

T0 = datetime(2026, 1, 10, 12, 0, tzinfo=UTC)
BERLIN = Coordinate(52.52, 13.405)


@pytest.fixture
def db(tmp_path: Path) -> sqlite3.Connection:
    conn = connect(tmp_path / "test.db")
    run_migrations(conn)
    return conn


def _location(db: sqlite3.Connection, name: str = "Garden") -> int:
    user_id = user_repo.upsert_user(db, "100", "alice")
    return location_repo.add_location(db, user_id, name, BERLIN)


class TestUserRepo:
    def test_upsert_is_idempotent(self, db):
        first = user_repo.upsert_user(db, "100", "alice")
        second = user_repo.upsert_user(db, "100", "alice2")
        assert first == second
        user = user_repo.get_user(db, first)
        assert user is not None
        assert user.username == "alice2"

    def test_empty_username_keeps_existing(self, db):
        user_id = user_repo.upsert_user(db, "100", "alice")
        assert user_repo.upsert_user(db, "100") == user_id
        assert user_repo.get_user(db, user_id).username == "alice"

    def test_lookup_by_chat_id(self, db):
        user_id = user_repo.upsert_user(db, "555")
        user = user_repo.get_user_by_chat_id(db, "555")
        assert user is not None and user.id == user_id
        assert user_repo.get_user_by_chat_id(db, "nope") is None


class TestLocationRepo:
    def test_add_and_list(self, db):
        loc_id = _location(db)
        locations = location_repo.get_all_locations(db)
        assert [loc.id for loc in locations] == [loc_id]
        assert locations[0].coordinate == BERLIN
        assert locations[0].name == "Garden"

    def test_unique_name_per_owner(self, db):
        _location(db)
        with pytest.raises(sqlite3.IntegrityError):
            _location(db)

    def test_same_name_for_different_owners(self, db):
        a = user_repo.upsert_user(db, "1")
        b = user_repo.upsert_user(db, "2")
        location_repo.add_location(db, a, "Garden", BERLIN)
        location_repo.add_location(db, b, "Garden", BERLIN)
        assert len(location_repo.get_all_locations(db)) == 2
        assert len(location_repo.get_locations_for_user(db, a)) == 1

    def test_delete_checks_owner(self, db):
        loc_id = _location(db)
        other = user_repo.upsert_user(db, "999")
        assert location_repo.delete_location(db, loc_id, other) is False
        owner = location_repo.get_location(db, loc_id).owner_id
        assert location_repo.delete_location(db, loc_id, owner) is True
        assert location_repo.get_location(db, loc_id) is None


class TestNotificationRepo:
    def test_save_and_get_last(self, db):
        loc_id = _location(db)
        intent = NotificationIntent(
            location_id=loc_id,
            kind=NotificationKind.WARNING,
            temperature=-1.5,
            event_time=T0,
        )
        nid = notification_repo.save_intent(db, intent)

        last = notification_repo.get_last_notification(db, loc_id)
        assert last is not None
        assert last.id == nid
        assert last.kind == NotificationKind.WARNING
        assert last.temperature == -1.5
        assert last.event_time == T0
        assert last.sent is False
        assert last.resolved is False
        assert last.created_at is not None

    def test_all_clear_resolves_previous(self, db):
        loc_id = _location(db)
        warning_id = notification_repo.save_intent(
            db, NotificationIntent(loc_id, NotificationKind.WARNING, -1.0, T0)
        )
        notification_repo.save_intent(
            db,
            NotificationIntent(
                loc_id, NotificationKind.ALL_CLEAR, 4.0, None, resolves_id=warning_id
            ),
        )
        row = db.execute("SELECT resolved FROM notifications WHERE id = ?", (warning_id,)).fetchone()
        assert row["resolved"] == 1
        assert notification_repo.get_last_notification(db, loc_id).kind == NotificationKind.ALL_CLEAR

    def test_last_ignores_morning_summary(self, db):
        loc_id = _location(db)
        notification_repo.save_intent(
            db, NotificationIntent(loc_id, NotificationKind.WARNING, -1.0, T0)
        )
        notification_repo.save_morning_summary(
            db,
            MorningSummary(owner_id=1, entries=(SummaryEntry(loc_id, "Garden", -1.0, T0),)),
        )
        assert notification_repo.get_last_notification(db, loc_id).kind == NotificationKind.WARNING

    def test_morning_summary_details(self, db):
        loc_id = _location(db)
        nid = notification_repo.save_morning_summary(
            db,
            MorningSummary(owner_id=1, entries=(SummaryEntry(loc_id, "Garden", -1.0, T0),)),
        )
        (record,) = notification_repo.get_unsent(db)
        assert record.id == nid
        assert record.kind == NotificationKind.MORNING_SUMMARY
        assert record.details["entries"][0]["name"] == "Garden"
        assert record.details["entries"][0]["forecast_time"] == T0.isoformat()

    def test_mark_sent_and_unsent(self, db):
        loc_id = _location(db)
        a = notification_repo.save_intent(
            db, NotificationIntent(loc_id, NotificationKind.WARNING, -1.0, T0)
        )
        b = notification_repo.save_intent(
            db, NotificationIntent(loc_id, NotificationKind.NOW_FREEZING, -2.0, T0)
        )
        notification_repo.mark_sent(db, a)
        assert [r.id for r in notification_repo.get_unsent(db)] == [b]


class TestCacheRepo:
    def test_upsert_keeps_one_row_per_coordinate(self, db):
        cache_repo.upsert(db, BERLIN, "{}", T0)
        cache_repo.upsert(db, BERLIN, '{"points": []}', T0 + timedelta(hours=1))

        rows = db.execute("SELECT * FROM weather_cache").fetchall()
        assert len(rows) == 1
        assert rows[0]["data"] == '{"points": []}'

    def test_get_respects_expiry(self, db):
        cache_repo.upsert(db, BERLIN, "{}", T0)
        assert cache_repo.get(db, BERLIN, T0 - timedelta(seconds=1)) is not None
        assert cache_repo.get(db, BERLIN, T0) is None

    def test_delete_expired(self, db):
        cache_repo.upsert(db, BERLIN, "{}", T0)
        cache_repo.upsert(db, Coordinate(48.1, 11.5), "{}", T0 + timedelta(hours=2))
        assert cache_repo.delete_expired(db, T0 + timedelta(hours=1)) == 1
        assert len(cache_repo.get_all_unexpired(db, T0)) == 1

    def test_series_json(self):
        series = ForecastSeries(
            points=(ForecastPoint(T0, -1.0), ForecastPoint(T0 + timedelta(hours=3), 2.5)),
            location_name="Berlin",
        )
        assert cache_repo.series_from_json(cache_repo.series_to_json(series)) == series
