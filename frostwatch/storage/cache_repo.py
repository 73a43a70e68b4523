"""Repository for the weather_cache table backing GeoCache."""

import json
import sqlite3
from contextlib import closing
from datetime import datetime
from pathlib import Path

from frostwatch.models.common import parse_timestamp
from frostwatch.models.forecast import CacheEntry, ForecastPoint, ForecastSeries
from frostwatch.models.geo import Coordinate
from frostwatch.storage.database import connect, translate_errors


def upsert(
    conn: sqlite3.Connection, coord: Coordinate, data: str, expires_at: datetime
) -> None:
    conn.execute(
        "INSERT INTO weather_cache (latitude, longitude, data, expires_at) "
        "VALUES (?, ?, ?, ?) "
        "ON CONFLICT(latitude, longitude) DO UPDATE SET "
        "data = excluded.data, expires_at = excluded.expires_at",
        (coord.latitude, coord.longitude, data, expires_at.isoformat()),
    )
    conn.commit()


def get(conn: sqlite3.Connection, coord: Coordinate, now: datetime) -> dict | None:
    row = conn.execute(
        "SELECT * FROM weather_cache WHERE latitude = ? AND longitude = ? "
        "AND expires_at > ?",
        (coord.latitude, coord.longitude, now.isoformat()),
    ).fetchone()
    if row is None:
        return None
    return dict(row)


def get_all_unexpired(conn: sqlite3.Connection, now: datetime) -> list[dict]:
    rows = conn.execute(
        "SELECT * FROM weather_cache WHERE expires_at > ? ORDER BY id",
        (now.isoformat(),),
    ).fetchall()
    return [dict(r) for r in rows]


def delete_expired(conn: sqlite3.Connection, now: datetime) -> int:
    cursor = conn.execute(
        "DELETE FROM weather_cache WHERE expires_at <= ?", (now.isoformat(),)
    )
    conn.commit()
    return cursor.rowcount


def series_to_json(series: ForecastSeries) -> str:
    return json.dumps(
        {
            "location_name": series.location_name,
            "points": [[p.timestamp.isoformat(), p.temperature] for p in series.points],
        }
    )


def series_from_json(data: str) -> ForecastSeries:
    raw = json.loads(data)
    points = []
    for ts, temp in raw.get("points", []):
        parsed = parse_timestamp(ts)
        if parsed is None:
            raise ValueError(f"Bad cached timestamp: {ts!r}")
        points.append(ForecastPoint(timestamp=parsed, temperature=float(temp)))
    return ForecastSeries(points=tuple(points), location_name=raw.get("location_name", ""))


class SqliteCacheStore:
    """Write-through persistence for GeoCache. Opens a connection per call."""

    def __init__(self, db_path: str | Path):
        self.db_path = db_path

    def upsert(self, entry: CacheEntry) -> None:
        with translate_errors("cache upsert"), closing(connect(self.db_path)) as conn:
            upsert(conn, entry.coordinate, series_to_json(entry.series), entry.expires_at)

    def get_all_unexpired(self, now: datetime) -> list[CacheEntry]:
        with translate_errors("cache load"), closing(connect(self.db_path)) as conn:
            rows = get_all_unexpired(conn, now)
        entries = []
        for row in rows:
            try:
                entries.append(_row_to_entry(row))
            except (ValueError, TypeError, json.JSONDecodeError):
                continue
        return entries

    def delete_expired(self, now: datetime) -> int:
        with translate_errors("cache sweep"), closing(connect(self.db_path)) as conn:
            return delete_expired(conn, now)


def _row_to_entry(row: dict) -> CacheEntry:
    expires_at = parse_timestamp(row["expires_at"])
    if expires_at is None:
        raise ValueError(f"Bad cache expiry: {row['expires_at']!r}")
    return CacheEntry(
        coordinate=Coordinate(row["latitude"], row["longitude"]),
        series=series_from_json(row["data"]),
        expires_at=expires_at,
    )
