"""Resilient HTTP request executor for the filegate networking layer.

All outbound HTTP in filegate goes through :class:`HttpClient`. One call
may span several attempts: transport failures and timeouts are retried with
exponential backoff, while a received non-2xx status is raised at once.
The executor never logs; callers decide what to report.
"""

from __future__ import annotations

import json
from collections.abc import Mapping as MappingABC
from time import sleep
from typing import Any, Callable, Mapping

import requests
from requests.structures import CaseInsensitiveDict

from .config import HttpClientConfig
from .errors import (
    HttpClientError,
    HttpStatusError,
    RequestTimeoutError,
    ResponseDecodeError,
    TransportError,
    TransportUnavailableError,
)
from .transport import (
    CancelToken,
    RequestsTransport,
    Transport,
    classify_requests_error,
    deadline,
)
from .types import (
    Blob,
    Decoded,
    DecodeResult,
    OutboundRequest,
    RawText,
    RequestSpec,
    ResponseType,
    TransportResponse,
)
from .urls import build_url

# Only these are serialized as JSON; text, binary, file-like and form
# payloads go to the transport untouched.
_STRUCTURED_BODIES = (MappingABC, list, tuple)


def decode_json(text: str) -> DecodeResult:
    """Parse ``text`` as JSON, tagging the raw text when it is not JSON."""
    try:
        return Decoded(json.loads(text))
    except ValueError:
        return RawText(text)


def _charset(content_type: str) -> str:
    for part in content_type.split(";")[1:]:
        key, _, value = part.strip().partition("=")
        if key.lower() == "charset" and value:
            return value.strip("\"' ")
    return "utf-8"


def _text(payload: bytes, content_type: str) -> str:
    try:
        return payload.decode(_charset(content_type), errors="replace")
    except LookupError:
        return payload.decode("utf-8", errors="replace")


def _is_json(content_type: str) -> bool:
    return "application/json" in content_type.lower()


class HttpClient:
    """Outbound request executor (sync).

    Requests are described by a :class:`RequestSpec`; ``get`` and ``post``
    build one for the common cases. Each attempt runs under its own deadline
    and reads the response body exactly once.
    """

    def __init__(
        self,
        config: HttpClientConfig,
        transport: Transport | None = None,
        *,
        sleep: Callable[[float], None] = sleep,
    ) -> None:
        """Create a new HttpClient.

        Args:
            config: Default timeout, retry and backoff settings.
            transport: Capability performing one exchange. Defaults to a
                requests-backed transport built from ``config``.
            sleep: Blocking sleep used between attempts.

        Raises:
            TransportUnavailableError: ``transport`` cannot perform requests.
        """
        if transport is None:
            transport = RequestsTransport(config)
        elif not callable(getattr(transport, "perform", None)):
            raise TransportUnavailableError(
                f"{type(transport).__name__} does not implement perform(); "
                "supply a Transport such as RequestsTransport"
            )
        self._config = config
        self._transport = transport
        self._sleep = sleep

    def _get_timeout(self, override: float | None) -> float:
        """Resolve timeout preference."""
        if override is not None:
            return override
        return self._config.timeout_seconds

    def _get_retries(self, override: int | None) -> int:
        if override is not None:
            return override
        return self._config.retries

    def _sleep_between_attempts(self, base: float, attempt: int) -> None:
        """Sleep before retry ``attempt`` (1 for the first retry)."""
        self._sleep(base * (2 ** (attempt - 1)))

    def _build_meta(
        self,
        method: str,
        request_url: str,
        attempts: int,
        timeout: float,
        status: int | None = None,
        final_error: str | None = None,
    ) -> dict[str, Any]:
        """Construct metadata dictionary for a finished call."""
        meta: dict[str, Any] = {}
        meta["method"] = method
        meta["url"] = request_url
        meta["attempts"] = attempts
        meta["timeout_s"] = timeout
        if status is not None:
            meta["status"] = status
        if final_error is not None:
            meta["final_error"] = final_error
        return meta

    @staticmethod
    def _prepare(spec: RequestSpec) -> OutboundRequest:
        """Build the URL and serialize structured bodies as JSON."""
        headers: CaseInsensitiveDict[str] = CaseInsensitiveDict(spec.headers)
        body = spec.body
        if (
            isinstance(body, _STRUCTURED_BODIES)
            and "Content-Type" not in headers
        ):
            body = json.dumps(body)
            headers["Content-Type"] = "application/json"
        return OutboundRequest(
            method=spec.method,
            url=build_url(spec.url, spec.params),
            headers=headers,
            body=body,
        )

    def _perform(
        self, request: OutboundRequest, token: CancelToken
    ) -> TransportResponse:
        try:
            return self._transport.perform(request, token)
        except requests.exceptions.RequestException as exc:
            raise classify_requests_error(exc) from exc
        except TimeoutError as exc:
            raise RequestTimeoutError(str(exc) or "request timed out") from exc
        except OSError as exc:
            raise TransportError(str(exc)) from exc

    def _attempt(
        self, request: OutboundRequest, timeout: float
    ) -> TransportResponse:
        """Run one exchange under a deadline; the timer ends with the scope."""
        with deadline(timeout) as token:
            response = self._perform(request, token)
            if token.cancelled:
                response.close()
                raise RequestTimeoutError(
                    f"request timed out after {timeout}s"
                )
        return response

    def _decode(
        self,
        spec: RequestSpec,
        response: TransportResponse,
        meta: Mapping[str, Any],
    ) -> Any:
        payload = response.read()
        content_type = response.content_type

        if not response.ok:
            body: Any = _text(payload, content_type)
            if _is_json(content_type):
                result = decode_json(body)
                if isinstance(result, Decoded):
                    body = result.value
            raise HttpStatusError(
                response.status,
                body,
                meta={**meta, "status": response.status},
            )

        if spec.response_type is ResponseType.BYTES:
            return payload
        if spec.response_type is ResponseType.BLOB:
            return Blob(payload, content_type or None)

        text = _text(payload, content_type)
        if spec.response_type is ResponseType.TEXT:
            return text

        result = decode_json(text) if _is_json(content_type) else RawText(text)
        if isinstance(result, Decoded):
            return result.value
        if spec.strict_json:
            raise ResponseDecodeError(
                "response body is not valid JSON", result.text, meta=meta
            )
        return result.text

    def request(self, spec: RequestSpec) -> Any:
        """Execute ``spec`` with retries and return the decoded body.

        Raises:
            HttpStatusError: The response status was not 2xx.
            TransportError: Every attempt failed at the transport level;
                ``RequestTimeoutError`` when the last one timed out.
            ResponseDecodeError: ``strict_json`` was set and the body was
                not JSON.
        """
        timeout = self._get_timeout(spec.timeout_seconds)
        retries = self._get_retries(spec.retries)
        backoff_base = (
            spec.retry_delay_seconds
            if spec.retry_delay_seconds is not None
            else self._config.backoff_base_seconds
        )
        outbound = self._prepare(spec)

        attempt = 0
        last_error: TransportError | None = None
        while attempt <= retries:
            meta = self._build_meta(
                spec.method, outbound.url, attempt + 1, timeout
            )
            try:
                response = self._attempt(outbound, timeout)
                return self._decode(spec, response, meta)
            except TransportError as exc:
                last_error = exc
                attempt += 1
                if attempt > retries:
                    break
                self._sleep_between_attempts(backoff_base, attempt)

        if last_error is not None:
            last_error.meta.update(
                self._build_meta(
                    spec.method,
                    outbound.url,
                    attempt,
                    timeout,
                    final_error=type(last_error).__name__,
                )
            )
            raise last_error
        raise HttpClientError("request failed without a specific error")

    def get(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
        timeout: float | None = None,
        retries: int | None = None,
        response_type: ResponseType = ResponseType.JSON,
    ) -> Any:
        """Perform an HTTP GET request.

        Args:
            url: Absolute or relative URL to request.
            headers: Optional per-request headers.
            params: Optional query parameters; None values are dropped.
            timeout: Override timeout in seconds for each attempt.
            retries: Override retry budget for transport failures.
            response_type: How to decode a successful body.

        Returns:
            The decoded response body.
        """
        return self.request(
            RequestSpec(
                url=url,
                headers=headers or {},
                params=params,
                timeout_seconds=timeout,
                retries=retries,
                response_type=response_type,
            )
        )

    def post(
        self,
        url: str,
        *,
        body: Any = None,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
        timeout: float | None = None,
        retries: int | None = None,
        response_type: ResponseType = ResponseType.JSON,
    ) -> Any:
        """Perform an HTTP POST request.

        Mapping, list and tuple ``body`` values are sent as JSON unless a
        Content-Type header is given; anything else (text, bytes, files,
        ``MultipartForm``) goes out unchanged.
        """
        return self.request(
            RequestSpec(
                url=url,
                method="POST",
                headers=headers or {},
                params=params,
                body=body,
                timeout_seconds=timeout,
                retries=retries,
                response_type=response_type,
            )
        )
