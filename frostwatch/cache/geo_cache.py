"""In-memory geo cache of forecast series with optional sqlite write-through.

Entries are keyed by exact coordinate. Nearby lookups scan unexpired entries
in first-insertion order of their coordinate key; refreshing an existing key
keeps its position.
"""

import logging
import threading
from collections.abc import Callable
from datetime import datetime, timedelta

from frostwatch.exceptions import PersistenceError
from frostwatch.geo import haversine_m
from frostwatch.models.common import utc_now
from frostwatch.models.forecast import CacheEntry, ForecastSeries
from frostwatch.models.geo import Coordinate
from frostwatch.storage.cache_repo import SqliteCacheStore

logger = logging.getLogger(__name__)


class GeoCache:
    def __init__(
        self,
        store: SqliteCacheStore | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self._clock = clock
        self._entries: dict[Coordinate, CacheEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, coord: Coordinate) -> ForecastSeries | None:
        """Exact-match lookup. Expired entries are treated as missing."""
        with self._lock:
            entry = self._entries.get(coord)
        if entry is None or entry.is_expired(self._clock()):
            return None
        return entry.series

    def get_nearby(self, coord: Coordinate, radius_m: float) -> ForecastSeries | None:
        """Exact match, else the first unexpired entry within radius_m metres."""
        exact = self.get(coord)
        if exact is not None:
            return exact

        now = self._clock()
        for entry in self._snapshot():
            if entry.is_expired(now):
                continue
            if haversine_m(coord, entry.coordinate) <= radius_m:
                logger.debug(
                    "Nearby cache hit for %s from %s", coord, entry.coordinate
                )
                return entry.series
        return None

    def put(self, coord: Coordinate, series: ForecastSeries, ttl_seconds: float) -> CacheEntry:
        """Insert or replace the entry for coord and reset its expiry."""
        entry = CacheEntry(
            coordinate=coord,
            series=series,
            expires_at=self._clock() + timedelta(seconds=ttl_seconds),
        )
        with self._lock:
            self._entries[coord] = entry

        if self.store is not None:
            try:
                self.store.upsert(entry)
            except PersistenceError:
                logger.warning("Could not persist cache entry for %s", coord, exc_info=True)
        return entry

    def sweep(self) -> int:
        """Drop expired entries. Returns how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [c for c, e in self._entries.items() if e.is_expired(now)]
            for coord in expired:
                del self._entries[coord]

        if self.store is not None:
            try:
                self.store.delete_expired(now)
            except PersistenceError:
                logger.warning("Could not sweep persisted cache", exc_info=True)

        if expired:
            logger.info("Swept %d expired cache entries", len(expired))
        return len(expired)

    def restore(self) -> int:
        """Load unexpired entries from the backing store. Returns the count."""
        if self.store is None:
            return 0
        entries = self.store.get_all_unexpired(self._clock())
        with self._lock:
            for entry in entries:
                self._entries.setdefault(entry.coordinate, entry)
        logger.info("Restored %d cache entries", len(entries))
        return len(entries)

    def _snapshot(self) -> list[CacheEntry]:
        with self._lock:
            return list(self._entries.values())
