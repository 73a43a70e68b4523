"""Tests for the OpenWeather client with mocked httpx."""

import json
from pathlib import Path

import httpx
import pytest
import respx

from frostwatch.exceptions import ProviderError
from frostwatch.ingest.openweather_client import OpenWeatherClient

FIXTURE_DIR = Path(__file__).parent.parent / "fixtures"
FORECAST_URL = "https://test-owm.example.com/data/2.5/forecast"


@pytest.fixture
def owm() -> OpenWeatherClient:
    return OpenWeatherClient(api_key="secret", base_url="https://test-owm.example.com/")


@pytest.fixture
def berlin_forecast() -> dict:
    with open(FIXTURE_DIR / "openweather_forecast.json") as f:
        return json.load(f)


class TestGetForecast:
    @respx.mock
    def test_success(self, owm: OpenWeatherClient, berlin_forecast: dict):
        respx.get(FORECAST_URL).mock(return_value=httpx.Response(200, json=berlin_forecast))

        result = owm.get_forecast(52.52, 13.405)
        assert len(result["list"]) == 5
        assert result["city"]["name"] == "Berlin"

    @respx.mock
    def test_query_params(self, owm: OpenWeatherClient, berlin_forecast: dict):
        route = respx.get(FORECAST_URL).mock(
            return_value=httpx.Response(200, json=berlin_forecast)
        )

        owm.get_forecast(52.52, 13.405)
        params = route.calls[0].request.url.params
        assert params["lat"] == "52.52"
        assert params["lon"] == "13.405"
        assert params["appid"] == "secret"
        assert params["units"] == "metric"
        assert params["cnt"] == "40"
        assert "frostwatch" in route.calls[0].request.headers["user-agent"]

    @respx.mock
    def test_http_error_carries_status(self, owm: OpenWeatherClient):
        respx.get(FORECAST_URL).mock(return_value=httpx.Response(401, json={"cod": 401}))

        with pytest.raises(ProviderError) as exc_info:
            owm.get_forecast(52.52, 13.405)
        assert exc_info.value.http_status == 401

    @respx.mock
    def test_no_inline_retry(self, owm: OpenWeatherClient):
        route = respx.get(FORECAST_URL).mock(return_value=httpx.Response(503))

        with pytest.raises(ProviderError):
            owm.get_forecast(52.52, 13.405)
        assert route.call_count == 1

    @respx.mock
    def test_timeout_is_provider_error(self, owm: OpenWeatherClient):
        respx.get(FORECAST_URL).mock(side_effect=httpx.ReadTimeout("slow"))

        with pytest.raises(ProviderError, match="timed out") as exc_info:
            owm.get_forecast(52.52, 13.405)
        assert exc_info.value.http_status is None

    @respx.mock
    def test_connect_error(self, owm: OpenWeatherClient):
        respx.get(FORECAST_URL).mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(ProviderError):
            owm.get_forecast(52.52, 13.405)

    @respx.mock
    def test_invalid_json(self, owm: OpenWeatherClient):
        respx.get(FORECAST_URL).mock(return_value=httpx.Response(200, text="<html>"))

        with pytest.raises(ProviderError, match="invalid JSON"):
            owm.get_forecast(52.52, 13.405)
