"""OpenWeatherMap 5-day / 3-hour forecast API client."""

import logging

import httpx

from frostwatch.exceptions import ProviderError

logger = logging.getLogger(__name__)

OPENWEATHER_BASE_URL = "https://api.openweathermap.org"
DEFAULT_USER_AGENT = "frostwatch/0.1.0"


class OpenWeatherClient:
    """Thin provider wrapper. Failures are raised once; the next tick retries."""

    def __init__(
        self,
        api_key: str,
        base_url: str = OPENWEATHER_BASE_URL,
        units: str = "metric",
        count: int = 40,
        timeout: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.units = units
        self.count = count
        self.timeout = timeout
        self.user_agent = user_agent

    def get_forecast(self, lat: float, lon: float) -> dict:
        """Fetch the raw forecast payload for a coordinate."""
        url = f"{self.base_url}/data/2.5/forecast"
        params = {
            "lat": lat,
            "lon": lon,
            "appid": self.api_key,
            "units": self.units,
            "cnt": self.count,
        }
        headers = {"User-Agent": self.user_agent, "Accept": "application/json"}

        try:
            resp = httpx.get(url, params=params, headers=headers, timeout=self.timeout)
        except httpx.TimeoutException as e:
            raise ProviderError(f"Forecast request timed out for {lat},{lon}") from e
        except httpx.RequestError as e:
            raise ProviderError(f"Forecast request failed for {lat},{lon}: {e}") from e

        if resp.status_code != 200:
            logger.warning(
                "OpenWeather returned %d for %.4f,%.4f", resp.status_code, lat, lon
            )
            raise ProviderError(
                f"Forecast provider returned HTTP {resp.status_code}",
                http_status=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise ProviderError("Forecast provider returned invalid JSON") from e
        if not isinstance(data, dict):
            raise ProviderError("Forecast payload is not a JSON object")
        return data
