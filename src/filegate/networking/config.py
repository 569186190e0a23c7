"""Configuration models for the HttpClient executor."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping


def _default_headers() -> Mapping[str, str]:
    """Return immutable empty default headers mapping."""

    return MappingProxyType({})


@dataclass(frozen=True)
class HttpClientConfig:
    """Configuration for HttpClient behavior.

    Timeout, retries and backoff are the defaults for every request; a
    ``RequestSpec`` may override each of them per call.
    """

    user_agent: str | None = None
    default_headers: Mapping[str, str] = field(
        default_factory=_default_headers
    )
    timeout_seconds: float = 10.0
    retries: int = 0
    backoff_base_seconds: float = 0.3
    verify_tls: bool = True
    base_url: str | None = None

    def __post_init__(self) -> None:
        if self.retries < 0:
            raise ValueError("retries must be >= 0")
        if self.backoff_base_seconds < 0:
            raise ValueError("backoff_base_seconds must be >= 0")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        if self.base_url is not None and not self.base_url.strip():
            raise ValueError("base_url must not be blank when provided")

        # Freeze copied headers to avoid post-init mutation side effects.
        object.__setattr__(
            self,
            "default_headers",
            MappingProxyType(dict(self.default_headers)),
        )
