"""Wires the long-lived collaborators shared by every pipeline run."""

import logging
from dataclasses import dataclass
from pathlib import Path

from frostwatch.cache.geo_cache import GeoCache
from frostwatch.config.schema import FrostConfig
from frostwatch.exceptions import ConfigError
from frostwatch.ingest.forecast_client import ForecastClient
from frostwatch.ingest.openweather_client import OpenWeatherClient
from frostwatch.notify.engine import NotificationEngine
from frostwatch.notify.telegram import LogDeliverer, TelegramDeliverer
from frostwatch.storage.cache_repo import SqliteCacheStore
from frostwatch.storage.database import init_db

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    config: FrostConfig
    db_path: str
    cache: GeoCache
    forecasts: ForecastClient
    engine: NotificationEngine
    deliverer: TelegramDeliverer | LogDeliverer


def build_runtime(config: FrostConfig, db_path: str | Path) -> Runtime:
    """Create the database, cache, clients and engine for one process."""
    if not config.provider.api_key:
        raise ConfigError(
            "No OpenWeather API key: set provider.api_key or FROSTWATCH_OPENWEATHER_API_KEY"
        )
    applied = init_db(db_path)
    if applied:
        logger.info("Applied migrations: %s", ", ".join(applied))

    store = SqliteCacheStore(db_path) if config.cache.persist else None
    cache = GeoCache(store=store)
    cache.restore()

    provider = OpenWeatherClient(
        api_key=config.provider.api_key,
        base_url=config.provider.base_url,
        units=config.provider.units,
        count=config.provider.count,
        timeout=config.provider.timeout_seconds,
    )
    forecasts = ForecastClient(
        provider,
        cache,
        radius_m=config.cache.radius_m,
        ttl_seconds=config.cache.ttl_seconds,
    )

    if config.telegram.enabled:
        if not config.telegram.bot_token:
            raise ConfigError("Telegram enabled but no bot token configured")
        deliverer: TelegramDeliverer | LogDeliverer = TelegramDeliverer(
            config.telegram.bot_token,
            api_base=config.telegram.api_base,
            timeout=config.telegram.timeout_seconds,
        )
    else:
        deliverer = LogDeliverer()

    return Runtime(
        config=config,
        db_path=str(db_path),
        cache=cache,
        forecasts=forecasts,
        engine=NotificationEngine(),
        deliverer=deliverer,
    )
