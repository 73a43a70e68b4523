"""Turn a raw OpenWeather payload into a ForecastSeries."""

from datetime import UTC, datetime

from frostwatch.exceptions import ProviderError
from frostwatch.models.forecast import ForecastPoint, ForecastSeries


def parse_forecast(raw: dict) -> ForecastSeries:
    """Extract (time, temperature) samples, ascending by time.

    Raises ProviderError if an entry is malformed. An empty `list` yields an
    empty series; callers decide what that means.
    """
    items = raw.get("list")
    if items is None:
        raise ProviderError("Forecast payload has no 'list' field")
    if not isinstance(items, list):
        raise ProviderError("Forecast 'list' is not an array")

    points: list[ForecastPoint] = []
    for item in items:
        try:
            ts = datetime.fromtimestamp(int(item["dt"]), tz=UTC)
            temp = float(item["main"]["temp"])
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderError(f"Malformed forecast entry: {item!r}") from e
        points.append(ForecastPoint(timestamp=ts, temperature=temp))

    points.sort(key=lambda p: p.timestamp)
    city = raw.get("city") or {}
    name = city.get("name", "") if isinstance(city, dict) else ""
    return ForecastSeries(points=tuple(points), location_name=name or "")
