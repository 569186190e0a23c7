from .client import HttpClient, decode_json
from .config import HttpClientConfig
from .errors import (
    HttpClientError,
    HttpStatusError,
    RequestTimeoutError,
    ResponseDecodeError,
    TransportError,
    TransportUnavailableError,
)
from .transport import CancelToken, RequestsTransport, Transport, deadline
from .types import (
    Blob,
    Decoded,
    MultipartForm,
    OutboundRequest,
    RawText,
    RequestSpec,
    ResponseType,
    TransportResponse,
)
from .urls import build_url

__all__ = [
    "Blob",
    "CancelToken",
    "Decoded",
    "HttpClient",
    "HttpClientConfig",
    "HttpClientError",
    "HttpStatusError",
    "MultipartForm",
    "OutboundRequest",
    "RawText",
    "RequestSpec",
    "RequestTimeoutError",
    "RequestsTransport",
    "ResponseDecodeError",
    "ResponseType",
    "Transport",
    "TransportError",
    "TransportResponse",
    "TransportUnavailableError",
    "build_url",
    "deadline",
    "decode_json",
]
