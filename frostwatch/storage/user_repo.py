"""Repository for chat users."""

import sqlite3

from frostwatch.models.location import User


def upsert_user(conn: sqlite3.Connection, chat_id: str, username: str = "") -> int:
    """Add or update a user by chat id. Returns the user id.

    An empty username leaves the stored one untouched.
    """
    conn.execute(
        "INSERT INTO users (chat_id, username) VALUES (?, ?) "
        "ON CONFLICT(chat_id) DO UPDATE SET username = "
        "CASE WHEN excluded.username != '' THEN excluded.username ELSE users.username END",
        (chat_id, username),
    )
    conn.commit()
    row = conn.execute("SELECT id FROM users WHERE chat_id = ?", (chat_id,)).fetchone()
    return row["id"]


def get_user(conn: sqlite3.Connection, user_id: int) -> User | None:
    row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
    if row is None:
        return None
    return _row_to_user(row)


def get_user_by_chat_id(conn: sqlite3.Connection, chat_id: str) -> User | None:
    row = conn.execute("SELECT * FROM users WHERE chat_id = ?", (chat_id,)).fetchone()
    if row is None:
        return None
    return _row_to_user(row)


def _row_to_user(row: sqlite3.Row) -> User:
    return User(id=row["id"], chat_id=row["chat_id"], username=row["username"])
