"""Forecast analysis: freeze state and crossings for one series.

`analyze` is pure: the same inputs always give the same Analysis, and the
input series is never mutated. Points are ordered by (timestamp, temperature)
so that shuffled input gives identical results.
"""

from datetime import UTC, datetime, time, timedelta, tzinfo

from frostwatch.exceptions import EmptySeriesError
from frostwatch.models.forecast import Analysis, ForecastPoint, ForecastSeries


def analyze(
    series: ForecastSeries,
    threshold_temp: float,
    warning_window: timedelta,
    now: datetime | None = None,
    tz: tzinfo = UTC,
) -> Analysis:
    """Analyze a forecast series against a freeze threshold.

    `now` defaults to the earliest point's timestamp. The current reading is
    the latest point at or before `now`, or the earliest point if all of them
    lie ahead; crossings are searched from there on.
    `tz` decides where local midnight falls for `freeze_expected_today`.
    """
    if not series.points:
        raise EmptySeriesError("Cannot analyze an empty forecast series")

    points = sorted(series.points, key=lambda p: (p.timestamp, p.temperature))
    if now is None:
        now = points[0].timestamp
    # Readings older than the latest one at or before `now` are history
    start = _current_index(points, now)
    current = points[start]

    is_below = current.temperature <= threshold_temp
    first_freeze = _first_at_or_below(points[start:], threshold_temp)

    will_freeze_soon = False
    freeze_today = False
    if first_freeze is not None:
        lead = first_freeze.timestamp - now
        will_freeze_soon = timedelta(0) < lead <= warning_window
        freeze_today = not is_below and first_freeze.timestamp < next_midnight(now, tz)

    return Analysis(
        current_temp=current.temperature,
        is_below_freezing=is_below,
        first_freeze_time=first_freeze.timestamp if first_freeze else None,
        first_freeze_temp=first_freeze.temperature if first_freeze else None,
        will_freeze_within_warning_window=will_freeze_soon,
        freeze_expected_today=freeze_today,
        all_clear=first_freeze is None,
    )


def next_midnight(now: datetime, tz: tzinfo) -> datetime:
    """The first local midnight strictly after `now`, as an aware datetime."""
    local = now.astimezone(tz)
    tomorrow = local.date() + timedelta(days=1)
    return datetime.combine(tomorrow, time.min, tzinfo=tz)


def _current_index(points: list[ForecastPoint], now: datetime) -> int:
    index = 0
    for i, p in enumerate(points):
        if p.timestamp > now:
            break
        if p.timestamp != points[index].timestamp:
            index = i
    return index


def _first_at_or_below(
    points: list[ForecastPoint], threshold_temp: float
) -> ForecastPoint | None:
    for p in points:
        if p.temperature <= threshold_temp:
            return p
    return None
