"""Value types passed between the executor, its callers and the transport."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Generic, Iterable, Mapping, TypeVar, Union

from requests.structures import CaseInsensitiveDict

T = TypeVar("T")


class ResponseType(str, Enum):
    """How a successful response body is handed back to the caller."""

    JSON = "json"
    TEXT = "text"
    BYTES = "bytes"
    BLOB = "blob"


@dataclass(frozen=True)
class MultipartForm:
    """Multipart form payload, sent as-is by the transport.

    ``files`` follows the requests convention: field name to a
    ``(filename, content[, content_type])`` tuple.
    """

    fields: Mapping[str, str] = field(default_factory=dict)
    files: Mapping[str, tuple[Any, ...]] = field(default_factory=dict)


@dataclass(frozen=True)
class Blob:
    """Opaque binary payload together with its declared content type."""

    data: bytes
    content_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class Decoded(Generic[T]):
    value: T


@dataclass(frozen=True)
class RawText:
    text: str


DecodeResult = Union[Decoded[Any], RawText]


@dataclass(frozen=True)
class RequestSpec:
    """Everything needed to perform one outbound call.

    ``timeout_seconds``, ``retries`` and ``retry_delay_seconds`` left as
    None fall back to the client's configuration. Params whose value is
    None are dropped from the query string.
    """

    url: str
    method: str = "GET"
    headers: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({})
    )
    params: Mapping[str, Any] | None = None
    body: Any = None
    timeout_seconds: float | None = None
    retries: int | None = None
    retry_delay_seconds: float | None = None
    response_type: ResponseType = ResponseType.JSON
    strict_json: bool = False

    def __post_init__(self) -> None:
        if not self.url:
            raise ValueError("url must not be empty")
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0 when provided")
        if self.retries is not None and self.retries < 0:
            raise ValueError("retries must be >= 0 when provided")
        if (
            self.retry_delay_seconds is not None
            and self.retry_delay_seconds < 0
        ):
            raise ValueError("retry_delay_seconds must be >= 0 when provided")
        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(
            self, "response_type", ResponseType(self.response_type)
        )
        object.__setattr__(
            self, "headers", MappingProxyType(dict(self.headers))
        )


@dataclass(frozen=True)
class OutboundRequest:
    """A fully prepared request as the transport receives it."""

    method: str
    url: str
    headers: Mapping[str, str]
    body: Any = None


@dataclass
class TransportResponse:
    """Status, headers and an unread body stream for one attempt.

    ``on_close`` releases the underlying connection; it runs once, after
    the body is read or when the response is discarded unread.
    """

    status: int
    headers: Mapping[str, str]
    stream: Iterable[bytes]
    on_close: Callable[[], None] | None = None
    _closed: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        self.headers = CaseInsensitiveDict(self.headers)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def content_type(self) -> str:
        return self.headers.get("Content-Type") or ""

    def read(self) -> bytes:
        """Consume the full body stream, then release the connection."""

        try:
            return b"".join(self.stream)
        finally:
            self.close()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        close = getattr(self.stream, "close", None)
        if close is not None:
            close()
        if self.on_close is not None:
            self.on_close()
