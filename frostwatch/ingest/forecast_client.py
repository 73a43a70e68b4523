"""Forecast client: resolves a series for a coordinate through the geo cache."""

import logging
import threading

from frostwatch.cache.geo_cache import GeoCache
from frostwatch.exceptions import EmptySeriesError
from frostwatch.ingest.openweather_client import OpenWeatherClient
from frostwatch.ingest.series_parser import parse_forecast
from frostwatch.models.forecast import ForecastSeries
from frostwatch.models.geo import Coordinate

logger = logging.getLogger(__name__)


class ForecastClient:
    def __init__(
        self,
        provider: OpenWeatherClient,
        cache: GeoCache,
        radius_m: float,
        ttl_seconds: float,
    ):
        self.provider = provider
        self.cache = cache
        self.radius_m = radius_m
        self.ttl_seconds = ttl_seconds
        self._calls_lock = threading.Lock()
        self.provider_calls = 0

    def fetch(self, coord: Coordinate, force_refresh: bool = False) -> ForecastSeries:
        """Return the forecast for coord, hitting the provider only on a cache miss.

        ProviderError propagates unchanged; there is no stale-cache fallback.
        """
        if not force_refresh:
            cached = self.cache.get(coord)
            if cached is None:
                cached = self.cache.get_nearby(coord, self.radius_m)
            if cached is not None:
                logger.debug("Cache hit for %s", coord)
                return cached

        with self._calls_lock:
            self.provider_calls += 1
        raw = self.provider.get_forecast(coord.latitude, coord.longitude)
        series = parse_forecast(raw)
        if not series.points:
            raise EmptySeriesError(f"Provider returned no forecast points for {coord}")

        self.cache.put(coord, series, self.ttl_seconds)
        logger.info("Fetched %d forecast points for %s", len(series), coord)
        return series
