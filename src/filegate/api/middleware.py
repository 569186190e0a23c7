from __future__ import annotations

import logging
import time
from typing import Callable, Optional
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

log = logging.getLogger("filegate.api")

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and log how it went.

    A client-supplied X-Request-ID is reused when it is short enough. The
    log line carries the upstream failure a route recorded on
    ``request.state.upstream_error`` so a 500 can be traced to the files
    API; those lines go out at WARNING.
    """

    def __init__(self, app, *, max_len: int = 128):
        super().__init__(app)
        self._max_len = max_len

    async def dispatch(self, request: Request, call_next: Callable):
        rid = request.headers.get(REQUEST_ID_HEADER)
        if not rid or len(rid) > self._max_len:
            rid = uuid4().hex
        request.state.request_id = rid
        request.state.upstream_error = None

        start = time.monotonic()
        response: Optional[Response] = None
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = rid
            return response
        finally:
            upstream_error = request.state.upstream_error
            log.log(
                logging.WARNING if upstream_error else logging.INFO,
                "api_request",
                extra={
                    "request_id": rid,
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": getattr(response, "status_code", None),
                    "upstream_error": upstream_error,
                    "duration_ms": int((time.monotonic() - start) * 1000),
                },
            )
