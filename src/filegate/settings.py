"""Process configuration read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from filegate.networking import HttpClientConfig

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def _env_str(env: Mapping[str, str], name: str, default: str) -> str:
    raw = env.get(name, "").strip()
    return raw or default


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    """Read an integer environment variable."""

    raw = env.get(name, "").strip()
    if not raw:
        return int(default)
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name, "").strip()
    if not raw:
        return float(default)
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


@dataclass(frozen=True)
class Settings:
    """Server and upstream settings.

    Environment:
      - HOST, PORT: listening address (127.0.0.1:3000)
      - EXTERNAL_API_URL: upstream base URL (http://localhost:4000/api)
      - HTTP_TIMEOUT_SECONDS, HTTP_RETRIES, HTTP_RETRY_DELAY_SECONDS
      - LOG_LEVEL
    """

    host: str = "127.0.0.1"
    port: int = 3000
    external_api_url: str = "http://localhost:4000/api"
    http_timeout_seconds: float = 10.0
    http_retries: int = 0
    http_retry_delay_seconds: float = 0.3
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not 0 < self.port < 65536:
            raise ValueError("port must be between 1 and 65535")
        url = self.external_api_url.lower()
        if not url.startswith(("http://", "https://")):
            raise ValueError(
                "external_api_url must be an absolute http(s) URL"
            )
        object.__setattr__(self, "log_level", self.log_level.upper())
        if self.log_level not in _LOG_LEVELS:
            raise ValueError(f"unknown log level: {self.log_level}")

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None
    ) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            host=_env_str(env, "HOST", cls.host),
            port=_env_int(env, "PORT", cls.port),
            external_api_url=_env_str(
                env, "EXTERNAL_API_URL", cls.external_api_url
            ),
            http_timeout_seconds=_env_float(
                env, "HTTP_TIMEOUT_SECONDS", cls.http_timeout_seconds
            ),
            http_retries=_env_int(env, "HTTP_RETRIES", cls.http_retries),
            http_retry_delay_seconds=_env_float(
                env, "HTTP_RETRY_DELAY_SECONDS", cls.http_retry_delay_seconds
            ),
            log_level=_env_str(env, "LOG_LEVEL", cls.log_level),
        )

    def http_client_config(self) -> HttpClientConfig:
        """Executor defaults derived from these settings."""

        return HttpClientConfig(
            timeout_seconds=self.http_timeout_seconds,
            retries=self.http_retries,
            backoff_base_seconds=self.http_retry_delay_seconds,
        )
