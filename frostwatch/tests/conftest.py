"""Shared test fixtures."""

from pathlib import Path

import pytest
import yaml

from frostwatch.config.schema import FrostConfig
from frostwatch.storage.database import init_db
from frostwatch.storage.store import Store


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Path to a freshly migrated SQLite database."""
    path = tmp_path / "data" / "test.db"
    init_db(path)
    return path


@pytest.fixture
def store(db_path: Path):
    s = Store.open(db_path)
    yield s
    s.close()


@pytest.fixture
def default_config() -> FrostConfig:
    return FrostConfig(provider={"api_key": "test-key"})


@pytest.fixture
def config_yaml_path(tmp_path: Path) -> Path:
    """Write a minimal valid config YAML and return its path."""
    data = {
        "monitor": {"threshold_temp_c": 1.0, "warning_window_hours": 4},
        "cache": {"radius_m": 5000},
        "provider": {"api_key": "yaml-key"},
    }
    path = tmp_path / "test_config.yaml"
    with open(path, "w") as f:
        yaml.dump(data, f)
    return path


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
