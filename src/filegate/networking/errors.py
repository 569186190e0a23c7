"""Error taxonomy for outbound HTTP calls.

Everything the executor raises derives from :class:`HttpClientError`.
Only :class:`TransportError` (and its timeout subclass) is retried.
"""

from __future__ import annotations

from typing import Any, Mapping


class HttpClientError(Exception):
    """Base class for failures raised by the networking layer."""

    def __init__(
        self, message: str, *, meta: Mapping[str, Any] | None = None
    ) -> None:
        super().__init__(message)
        self.meta: dict[str, Any] = dict(meta or {})


class TransportUnavailableError(HttpClientError):
    """No usable transport was supplied to the client. Not retryable."""


class TransportError(HttpClientError):
    """The network exchange could not be completed (DNS, refused, reset)."""


class RequestTimeoutError(TransportError):
    """The attempt deadline elapsed before a response arrived."""


class HttpStatusError(HttpClientError):
    """A response arrived with a non-2xx status. Never retried."""

    def __init__(
        self,
        status: int,
        body: Any = None,
        *,
        meta: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(f"Request failed with status {status}", meta=meta)
        self.status = status
        self.body = body


class ResponseDecodeError(HttpClientError):
    """A success body could not be decoded in strict JSON mode."""

    def __init__(
        self,
        message: str,
        text: str,
        *,
        meta: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message, meta=meta)
        self.text = text
