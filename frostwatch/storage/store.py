"""Store facade over the sqlite repositories.

Every sqlite failure surfaces as PersistenceError so callers can isolate it
to the location being processed.
"""

import sqlite3
from pathlib import Path

from frostwatch.models.geo import Coordinate
from frostwatch.models.location import Location, User
from frostwatch.models.notification import (
    MorningSummary,
    NotificationIntent,
    NotificationRecord,
)
from frostwatch.storage import location_repo, notification_repo, user_repo
from frostwatch.storage.database import connect, translate_errors


class Store:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    @classmethod
    def open(cls, db_path: str | Path) -> "Store":
        with translate_errors("connect"):
            return cls(connect(db_path))

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> "Store":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # --- Users ---

    def upsert_user(self, chat_id: str, username: str = "") -> int:
        with translate_errors("upsert user"):
            return user_repo.upsert_user(self.conn, chat_id, username)

    def get_user(self, user_id: int) -> User | None:
        with translate_errors("get user"):
            return user_repo.get_user(self.conn, user_id)

    def get_user_by_chat_id(self, chat_id: str) -> User | None:
        with translate_errors("get user"):
            return user_repo.get_user_by_chat_id(self.conn, chat_id)

    # --- Locations ---

    def get_all_locations(self) -> list[Location]:
        with translate_errors("load locations"):
            return location_repo.get_all_locations(self.conn)

    def get_locations_for_user(self, user_id: int) -> list[Location]:
        with translate_errors("load locations"):
            return location_repo.get_locations_for_user(self.conn, user_id)

    def add_location(self, user_id: int, name: str, coord: Coordinate) -> int:
        with translate_errors("add location"):
            return location_repo.add_location(self.conn, user_id, name, coord)

    def delete_location(self, location_id: int, user_id: int) -> bool:
        with translate_errors("delete location"):
            return location_repo.delete_location(self.conn, location_id, user_id)

    # --- Notifications ---

    def get_last_notification(self, location_id: int) -> NotificationRecord | None:
        with translate_errors("get last notification"):
            return notification_repo.get_last_notification(self.conn, location_id)

    def record_notification(self, intent: NotificationIntent) -> int:
        with translate_errors("record notification"):
            return notification_repo.save_intent(self.conn, intent)

    def record_morning_summary(self, summary: MorningSummary) -> int:
        with translate_errors("record morning summary"):
            return notification_repo.save_morning_summary(self.conn, summary)

    def mark_sent(self, notification_id: int) -> None:
        with translate_errors("mark sent"):
            notification_repo.mark_sent(self.conn, notification_id)

    def get_unsent(self) -> list[NotificationRecord]:
        with translate_errors("load unsent notifications"):
            return notification_repo.get_unsent(self.conn)

    def get_location(self, location_id: int) -> Location | None:
        with translate_errors("get location"):
            return location_repo.get_location(self.conn, location_id)
