"""YAML config loader with environment overrides for secrets."""

import json
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from frostwatch.config.schema import FrostConfig
from frostwatch.exceptions import ConfigError

# env var -> (section, key)
ENV_OVERRIDES = {
    "FROSTWATCH_OPENWEATHER_API_KEY": ("provider", "api_key"),
    "FROSTWATCH_TELEGRAM_BOT_TOKEN": ("telegram", "bot_token"),
}


def load_config(path: str | Path | None = None, env: dict[str, str] | None = None) -> FrostConfig:
    """Load and validate config from a YAML file.

    A missing file yields defaults. Secrets from the environment win over YAML.
    """
    raw: dict = {}
    if path is not None and Path(path).exists():
        with open(path) as f:
            try:
                raw = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigError(f"Config root must be a mapping: {path}")

    if env is None:
        env = dict(os.environ)
    for var, (section, key) in ENV_OVERRIDES.items():
        value = env.get(var)
        if value:
            raw.setdefault(section, {})[key] = value

    try:
        return FrostConfig(**raw)
    except ValidationError as e:
        raise ConfigError(str(e)) from e


def redacted_json(config: FrostConfig) -> str:
    """Config as JSON with secrets masked, for display."""
    data = config.model_dump()
    for section, key in ENV_OVERRIDES.values():
        if data[section].get(key):
            data[section][key] = "***"
    return json.dumps(data, indent=2)
