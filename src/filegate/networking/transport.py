"""Transport capability used by the HttpClient executor.

A transport performs exactly one HTTP exchange. The executor hands it a
:class:`CancelToken` armed by :func:`deadline`; the token fires when the
attempt's timeout elapses and is disarmed as soon as the scope exits.
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import Future
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Protocol
from urllib.parse import urljoin

import requests

from .config import HttpClientConfig
from .errors import HttpClientError, RequestTimeoutError, TransportError
from .types import MultipartForm, OutboundRequest, TransportResponse
from .urls import is_absolute

_CHUNK_SIZE = 64 * 1024


def classify_requests_error(
    exc: requests.exceptions.RequestException,
) -> HttpClientError:
    """Map a requests exception onto the filegate error taxonomy."""
    if isinstance(exc, requests.exceptions.Timeout):
        return RequestTimeoutError(str(exc))
    if isinstance(
        exc,
        (
            requests.exceptions.ConnectionError,
            requests.exceptions.ChunkedEncodingError,
        ),
    ):
        return TransportError(str(exc))
    # Invalid URLs and similar caller mistakes are not transient.
    return HttpClientError(str(exc))


class CancelToken:
    """One-shot cancellation flag bound to an attempt deadline."""

    def __init__(self, timeout_seconds: float) -> None:
        self.timeout_seconds = timeout_seconds
        self._expires_at = time.monotonic() + timeout_seconds
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def on_cancel(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` when the token fires, or now if it already has."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def remaining(self) -> float:
        """Seconds left before the deadline, never negative."""
        return max(0.0, self._expires_at - time.monotonic())

    def wait(self, timeout: float | None = None) -> bool:
        return self._event.wait(timeout)


@contextmanager
def deadline(timeout_seconds: float) -> Iterator[CancelToken]:
    """Yield a token that is cancelled once ``timeout_seconds`` elapse.

    The timer is cancelled on every exit path, so a late firing can never
    touch a finished attempt.
    """
    token = CancelToken(timeout_seconds)
    timer = threading.Timer(timeout_seconds, token.cancel)
    timer.daemon = True
    timer.start()
    try:
        yield token
    finally:
        timer.cancel()


class Transport(Protocol):
    def perform(
        self, request: OutboundRequest, token: CancelToken
    ) -> TransportResponse: ...


def _close_abandoned(future: Future[requests.Response]) -> None:
    if future.exception() is None:
        future.result().close()


class RequestsTransport:
    """Transport backed by a shared ``requests.Session``.

    The blocking requests call runs on a worker thread and is raced against
    the token, so an attempt ends when the token fires even if the server
    keeps trickling bytes. A response arriving after that is closed and
    its connection released.
    """

    def __init__(
        self,
        config: HttpClientConfig,
        session: requests.Session | None = None,
    ) -> None:
        self._config = config
        self._session = session if session is not None else requests.Session()
        if self._config.user_agent:
            self._session.headers["User-Agent"] = self._config.user_agent
        self._session.headers.update(self._config.default_headers)

    def _resolve_url(self, url: str) -> str:
        base_url = self._config.base_url
        if base_url is None or is_absolute(url):
            return url
        return urljoin(base_url.rstrip("/") + "/", url.lstrip("/"))

    @staticmethod
    def _payload(body: Any) -> dict[str, Any]:
        if isinstance(body, MultipartForm):
            return {"data": dict(body.fields), "files": dict(body.files)}
        return {"data": body}

    @staticmethod
    def _iter_body(response: requests.Response) -> Iterator[bytes]:
        try:
            yield from response.iter_content(chunk_size=_CHUNK_SIZE)
        except requests.exceptions.RequestException as exc:
            raise classify_requests_error(exc) from exc

    def _send(
        self, request: OutboundRequest, timeout: float
    ) -> requests.Response:
        try:
            return self._session.request(
                request.method,
                self._resolve_url(request.url),
                headers=dict(request.headers),
                timeout=timeout,
                stream=True,
                verify=self._config.verify_tls,
                **self._payload(request.body),
            )
        except requests.exceptions.RequestException as exc:
            raise classify_requests_error(exc) from exc

    def _run(
        self,
        future: Future[requests.Response],
        request: OutboundRequest,
        timeout: float,
    ) -> None:
        try:
            future.set_result(self._send(request, timeout))
        except Exception as exc:
            future.set_exception(exc)

    def perform(
        self, request: OutboundRequest, token: CancelToken
    ) -> TransportResponse:
        timeout = token.remaining()
        if token.cancelled or timeout <= 0:
            raise RequestTimeoutError(
                "deadline elapsed before the request was sent"
            )

        future: Future[requests.Response] = Future()
        wake = threading.Event()
        future.add_done_callback(lambda _: wake.set())
        token.on_cancel(wake.set)
        threading.Thread(
            target=self._run,
            args=(future, request, timeout),
            name="filegate-transport",
            daemon=True,
        ).start()

        wake.wait()
        if not future.done():
            future.add_done_callback(_close_abandoned)
            raise RequestTimeoutError(
                f"no response within {token.timeout_seconds}s"
            )

        response = future.result()
        return TransportResponse(
            status=response.status_code,
            headers=response.headers,
            stream=self._iter_body(response),
            on_close=response.close,
        )

    def close(self) -> None:
        self._session.close()
