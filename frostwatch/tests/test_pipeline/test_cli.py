"""CLI tests: user and location management, config display, one-shot poll."""

import json
from pathlib import Path

import httpx
import pytest
import respx
import yaml

from frostwatch.cli import main
from frostwatch.storage.store import Store

OWM_URL = "https://test-owm.example.com/data/2.5/forecast"


@pytest.fixture(autouse=True)
def no_env_secrets(monkeypatch):
    monkeypatch.delenv("FROSTWATCH_OPENWEATHER_API_KEY", raising=False)
    monkeypatch.delenv("FROSTWATCH_TELEGRAM_BOT_TOKEN", raising=False)


@pytest.fixture
def cli_db(tmp_path: Path) -> str:
    return str(tmp_path / "data" / "cli.db")


@pytest.fixture
def cli_config(tmp_path: Path) -> str:
    data = {
        "provider": {
            "api_key": "yaml-key",
            "base_url": "https://test-owm.example.com",
        },
    }
    path = tmp_path / "frostwatch.yaml"
    path.write_text(yaml.dump(data))
    return str(path)


def _run(cli_db: str, cli_config: str, *args: str) -> int:
    return main(["--db", cli_db, "--config", cli_config, *args])


class TestUsersAndLocations:
    def test_users_add(self, cli_db, cli_config, capsys):
        assert _run(cli_db, cli_config, "users", "add", "100", "--username", "alice") == 0
        assert "User 100 registered" in capsys.readouterr().out

        with Store.open(cli_db) as store:
            user = store.get_user_by_chat_id("100")
        assert user.username == "alice"

    def test_location_lifecycle(self, cli_db, cli_config, capsys):
        assert _run(cli_db, cli_config, "locations", "add", "100", "Garden", "52.52", "13.405") == 0
        assert "Added location 1: Garden (52.5200,13.4050)" in capsys.readouterr().out

        assert _run(cli_db, cli_config, "locations", "list", "100") == 0
        assert "[1] Garden" in capsys.readouterr().out

        assert _run(cli_db, cli_config, "locations", "remove", "100", "1") == 0
        assert _run(cli_db, cli_config, "locations", "list") == 0
        assert "No locations" in capsys.readouterr().out

    def test_duplicate_location_name(self, cli_db, cli_config, capsys):
        _run(cli_db, cli_config, "locations", "add", "100", "Garden", "52.52", "13.405")
        assert _run(cli_db, cli_config, "locations", "add", "100", "Garden", "48.1", "11.5") == 1
        assert "could not add 'Garden'" in capsys.readouterr().out

    def test_invalid_coordinate(self, cli_db, cli_config, capsys):
        assert _run(cli_db, cli_config, "locations", "add", "100", "Pole", "91", "0") == 1
        assert "latitude out of range" in capsys.readouterr().out

    def test_remove_other_users_location(self, cli_db, cli_config):
        _run(cli_db, cli_config, "locations", "add", "100", "Garden", "52.52", "13.405")
        _run(cli_db, cli_config, "users", "add", "200")
        assert _run(cli_db, cli_config, "locations", "remove", "200", "1") == 1


class TestConfigShow:
    def test_secrets_masked(self, cli_db, cli_config, capsys, monkeypatch):
        monkeypatch.setenv("FROSTWATCH_TELEGRAM_BOT_TOKEN", "123:secret")
        assert _run(cli_db, cli_config, "config", "show") == 0

        out = capsys.readouterr().out
        shown = json.loads(out)
        assert shown["provider"]["api_key"] == "***"
        assert shown["telegram"]["bot_token"] == "***"
        assert "secret" not in out

    def test_invalid_config(self, cli_db, tmp_path):
        bad = tmp_path / "bad.yaml"
        bad.write_text("monitor:\n  timezone: Mars/Olympus\n")
        assert _run(cli_db, str(bad), "config", "show") == 2

    def test_unusable_db_path(self, tmp_path, cli_config, capsys):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        assert _run(str(blocker / "cli.db"), cli_config, "users", "add", "100") == 1
        assert "Database error" in capsys.readouterr().out


class TestPoll:
    def test_missing_api_key(self, cli_db, tmp_path):
        assert _run(cli_db, str(tmp_path / "absent.yaml"), "poll") == 2

    @respx.mock
    def test_poll_end_to_end(self, cli_db, cli_config, fixtures_dir):
        payload = json.loads((fixtures_dir / "openweather_forecast.json").read_text())
        route = respx.get(OWM_URL).mock(return_value=httpx.Response(200, json=payload))

        _run(cli_db, cli_config, "locations", "add", "100", "Garden", "52.52", "13.405")
        _run(cli_db, cli_config, "locations", "add", "100", "Shed", "52.521", "13.406")
        assert _run(cli_db, cli_config, "poll") == 0

        assert route.call_count == 1
        with Store.open(cli_db) as store:
            kinds = [
                r[0]
                for r in store.conn.execute(
                    "SELECT notification_type FROM notifications ORDER BY id"
                )
            ]
            cached = store.conn.execute("SELECT COUNT(*) FROM weather_cache").fetchone()[0]
        assert kinds == ["warning", "warning"]
        assert cached == 1

    @respx.mock
    def test_poll_provider_down(self, cli_db, cli_config):
        respx.get(OWM_URL).mock(return_value=httpx.Response(503))
        _run(cli_db, cli_config, "locations", "add", "100", "Garden", "52.52", "13.405")
        assert _run(cli_db, cli_config, "poll") == 1

    def test_sweep(self, cli_db, cli_config, capsys):
        assert _run(cli_db, cli_config, "sweep") == 0
        assert "Removed 0 expired cache entries" in capsys.readouterr().out

    def test_summary_json(self, cli_db, cli_config, capsys):
        assert _run(cli_db, cli_config, "summary", "--json") == 0
        shown = json.loads(capsys.readouterr().out)
        assert shown["kind"] == "summary"
        assert shown["locations"] == 0
