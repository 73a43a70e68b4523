"""Repository for monitored locations."""

import sqlite3

from frostwatch.models.geo import Coordinate
from frostwatch.models.location import Location


def add_location(
    conn: sqlite3.Connection, user_id: int, name: str, coord: Coordinate
) -> int:
    """Register a location for a user. Returns the row id.

    Raises sqlite3.IntegrityError if the user already has a location with this name.
    """
    cursor = conn.execute(
        "INSERT INTO locations (user_id, name, latitude, longitude) VALUES (?, ?, ?, ?)",
        (user_id, name, coord.latitude, coord.longitude),
    )
    conn.commit()
    assert cursor.lastrowid is not None
    return cursor.lastrowid


def delete_location(conn: sqlite3.Connection, location_id: int, user_id: int) -> bool:
    """Delete a location owned by user_id. Returns True if a row was removed."""
    cursor = conn.execute(
        "DELETE FROM locations WHERE id = ? AND user_id = ?", (location_id, user_id)
    )
    conn.commit()
    return cursor.rowcount > 0


def get_all_locations(conn: sqlite3.Connection) -> list[Location]:
    rows = conn.execute("SELECT * FROM locations ORDER BY id").fetchall()
    return [_row_to_location(r) for r in rows]


def get_locations_for_user(conn: sqlite3.Connection, user_id: int) -> list[Location]:
    rows = conn.execute(
        "SELECT * FROM locations WHERE user_id = ? ORDER BY id", (user_id,)
    ).fetchall()
    return [_row_to_location(r) for r in rows]


def get_location(conn: sqlite3.Connection, location_id: int) -> Location | None:
    row = conn.execute("SELECT * FROM locations WHERE id = ?", (location_id,)).fetchone()
    if row is None:
        return None
    return _row_to_location(row)


def _row_to_location(row: sqlite3.Row) -> Location:
    return Location(
        id=row["id"],
        owner_id=row["user_id"],
        name=row["name"],
        coordinate=Coordinate(row["latitude"], row["longitude"]),
    )
