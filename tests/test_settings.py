from unittest.mock import patch

import pytest

from filegate.__main__ import main
from filegate.settings import Settings


def test_defaults_without_environment():
    s = Settings.from_env({})

    assert s.host == "127.0.0.1"
    assert s.port == 3000
    assert s.external_api_url == "http://localhost:4000/api"
    assert s.http_timeout_seconds == 10.0
    assert s.http_retries == 0
    assert s.http_retry_delay_seconds == 0.3
    assert s.log_level == "INFO"


def test_values_are_read_from_environment():
    s = Settings.from_env(
        {
            "PORT": "8080",
            "EXTERNAL_API_URL": "https://files.example/api",
            "HTTP_TIMEOUT_SECONDS": "2.5",
            "HTTP_RETRIES": "3",
            "HTTP_RETRY_DELAY_SECONDS": "0.1",
            "LOG_LEVEL": "debug",
        }
    )

    assert s.port == 8080
    assert s.external_api_url == "https://files.example/api"
    assert s.log_level == "DEBUG"

    cfg = s.http_client_config()
    assert cfg.timeout_seconds == 2.5
    assert cfg.retries == 3
    assert cfg.backoff_base_seconds == 0.1


def test_blank_values_fall_back_to_defaults():
    env = {"PORT": "  ", "EXTERNAL_API_URL": ""}
    assert Settings.from_env(env) == Settings()


@pytest.mark.parametrize(
    "env",
    [
        {"PORT": "eighty"},
        {"PORT": "0"},
        {"HTTP_RETRIES": "-1"},
        {"HTTP_TIMEOUT_SECONDS": "soon"},
        {"EXTERNAL_API_URL": "files.example/api"},
        {"LOG_LEVEL": "LOUD"},
    ],
)
def test_invalid_values_are_rejected(env):
    with pytest.raises(ValueError):
        Settings.from_env(env).http_client_config()


def test_environment_is_used_by_default(monkeypatch):
    monkeypatch.setenv("PORT", "4321")

    assert Settings.from_env().port == 4321


def test_main_serves_app_with_cli_overrides(monkeypatch):
    monkeypatch.setenv("PORT", "4321")
    monkeypatch.delenv("HOST", raising=False)

    with patch("filegate.__main__.uvicorn.run") as run:
        assert main(["--port", "9000", "--log-level", "warning"]) == 0

    _, kwargs = run.call_args
    assert kwargs == {
        "host": "127.0.0.1",
        "port": 9000,
        "log_level": "warning",
    }
