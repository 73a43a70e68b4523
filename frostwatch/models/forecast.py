"""Forecast time-series models."""

from dataclasses import dataclass
from datetime import datetime

from frostwatch.models.geo import Coordinate


@dataclass(frozen=True)
class ForecastPoint:
    timestamp: datetime  # tz-aware UTC
    temperature: float  # degrees C


@dataclass(frozen=True)
class ForecastSeries:
    points: tuple[ForecastPoint, ...]
    location_name: str = ""

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self):
        return iter(self.points)


@dataclass(frozen=True)
class CacheEntry:
    coordinate: Coordinate
    series: ForecastSeries
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


@dataclass(frozen=True)
class Analysis:
    current_temp: float
    is_below_freezing: bool
    first_freeze_time: datetime | None
    first_freeze_temp: float | None
    will_freeze_within_warning_window: bool
    freeze_expected_today: bool
    all_clear: bool
