"""Repository for emitted notifications."""

import json
import sqlite3

from frostwatch.models.common import parse_timestamp, utc_now_iso
from frostwatch.models.notification import (
    MorningSummary,
    NotificationIntent,
    NotificationKind,
    NotificationRecord,
)


def save_intent(conn: sqlite3.Connection, intent: NotificationIntent) -> int:
    """Persist an intent; resolves the record it closes in the same transaction."""
    cursor = conn.execute(
        "INSERT INTO notifications "
        "(location_id, notification_type, scheduled_for, temperature, forecast_time) "
        "VALUES (?, ?, ?, ?, ?)",
        (
            intent.location_id,
            intent.kind.value,
            utc_now_iso(),
            intent.temperature,
            intent.event_time.isoformat() if intent.event_time else None,
        ),
    )
    if intent.resolves_id is not None:
        conn.execute(
            "UPDATE notifications SET resolved = 1 WHERE id = ?", (intent.resolves_id,)
        )
    conn.commit()
    assert cursor.lastrowid is not None
    return cursor.lastrowid


def save_morning_summary(conn: sqlite3.Connection, summary: MorningSummary) -> int:
    """Persist a morning summary against its first listed location."""
    details = {
        "owner_id": summary.owner_id,
        "entries": [
            {
                "location_id": e.location_id,
                "name": e.name,
                "temperature": e.temperature,
                "forecast_time": e.event_time.isoformat() if e.event_time else None,
            }
            for e in summary.entries
        ],
    }
    cursor = conn.execute(
        "INSERT INTO notifications "
        "(location_id, notification_type, scheduled_for, details_json) "
        "VALUES (?, ?, ?, ?)",
        (
            summary.entries[0].location_id,
            NotificationKind.MORNING_SUMMARY.value,
            utc_now_iso(),
            json.dumps(details),
        ),
    )
    conn.commit()
    assert cursor.lastrowid is not None
    return cursor.lastrowid


def mark_sent(conn: sqlite3.Connection, notification_id: int) -> None:
    conn.execute("UPDATE notifications SET sent = 1 WHERE id = ?", (notification_id,))
    conn.commit()


def get_last_notification(
    conn: sqlite3.Connection, location_id: int
) -> NotificationRecord | None:
    """Most recent state-machine notification for a location.

    Morning summaries are a separate channel and are ignored here.
    """
    row = conn.execute(
        "SELECT * FROM notifications WHERE location_id = ? AND notification_type != ? "
        "ORDER BY id DESC LIMIT 1",
        (location_id, NotificationKind.MORNING_SUMMARY.value),
    ).fetchone()
    if row is None:
        return None
    return _row_to_record(row)


def get_unsent(conn: sqlite3.Connection) -> list[NotificationRecord]:
    rows = conn.execute(
        "SELECT * FROM notifications WHERE sent = 0 ORDER BY id"
    ).fetchall()
    return [_row_to_record(r) for r in rows]


def _row_to_record(row: sqlite3.Row) -> NotificationRecord:
    return NotificationRecord(
        id=row["id"],
        location_id=row["location_id"],
        kind=NotificationKind(row["notification_type"]),
        temperature=row["temperature"],
        event_time=parse_timestamp(row["forecast_time"]),
        sent=bool(row["sent"]),
        resolved=bool(row["resolved"]),
        created_at=parse_timestamp(row["created_at"]),
        details=json.loads(row["details_json"] or "{}"),
    )
