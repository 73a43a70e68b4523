"""Pydantic v2 configuration schema with strict validation."""

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator


class MonitorConfig(BaseModel):
    model_config = {"extra": "forbid"}

    threshold_temp_c: float = Field(default=0.0, ge=-60.0, le=40.0)
    warning_window_hours: float = Field(default=6.0, gt=0.0, le=120.0)
    timezone: str = "UTC"

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown timezone: {v}") from e
        return v

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


class CacheConfig(BaseModel):
    model_config = {"extra": "forbid"}

    radius_m: float = Field(default=10_000.0, ge=0.0)
    ttl_seconds: int = Field(default=3600, ge=1)
    sweep_interval_minutes: int = Field(default=180, ge=1)
    persist: bool = True


class ProviderConfig(BaseModel):
    model_config = {"extra": "forbid"}

    base_url: str = "https://api.openweathermap.org"
    api_key: str = ""
    units: str = "metric"
    count: int = Field(default=40, ge=1, le=40)
    timeout_seconds: float = Field(default=30.0, gt=0.0)


class TelegramConfig(BaseModel):
    model_config = {"extra": "forbid"}

    enabled: bool = False
    bot_token: str = ""
    api_base: str = "https://api.telegram.org"
    timeout_seconds: float = Field(default=15.0, gt=0.0)


class OpsConfig(BaseModel):
    model_config = {"extra": "forbid"}

    poll_interval_minutes: int = Field(default=60, ge=1)
    morning_summary_hour: int = Field(default=7, ge=0, le=23)
    max_workers: int = Field(default=4, ge=1, le=32)
    grouping_precision: int = Field(default=2, ge=0, le=6)


class FrostConfig(BaseModel):
    model_config = {"extra": "forbid"}

    monitor: MonitorConfig = MonitorConfig()
    cache: CacheConfig = CacheConfig()
    provider: ProviderConfig = ProviderConfig()
    telegram: TelegramConfig = TelegramConfig()
    ops: OpsConfig = OpsConfig()
