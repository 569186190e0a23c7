from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, FastAPI
from fastapi.responses import JSONResponse
from starlette.requests import Request

from filegate import __version__
from filegate.api.middleware import RequestContextMiddleware
from filegate.files import ExternalApiError, FileService
from filegate.networking import HttpClient
from filegate.settings import Settings

log = logging.getLogger("filegate.api")


def _message(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


def _upstream_failure(request: Request, exc: ExternalApiError) -> JSONResponse:
    """Record the upstream cause for the access log and answer 500."""

    cause = exc.__cause__
    request.state.upstream_error = type(cause or exc).__name__
    return _message(500, "Internal server error")


def build_files_router(service: FileService) -> APIRouter:
    """Routes for listing files and fetching one by name."""

    router = APIRouter(prefix="/api/files", tags=["files"])

    @router.get("", response_model=None)
    def list_files(request: Request) -> Any:
        try:
            return service.list_files()
        except ExternalApiError as e:
            log.exception("Error getting files")
            return _upstream_failure(request, e)

    @router.get("/{name}", response_model=None)
    def get_file_by_name(name: str, request: Request) -> Any:
        try:
            file = service.get_file_by_name(name)
        except ExternalApiError as e:
            log.exception("Error getting file by name")
            return _upstream_failure(request, e)
        if file is None:
            return _message(404, "File not found")
        return file.to_dict()

    return router


def create_app(
    settings: Optional[Settings] = None,
    *,
    file_service: Optional[FileService] = None,
) -> FastAPI:
    """Create the FastAPI app.

    ``file_service`` replaces the one built from ``settings``; tests use it
    to avoid the network.
    """

    settings = settings or Settings.from_env()
    if file_service is None:
        client = HttpClient(settings.http_client_config())
        file_service = FileService(client, settings.external_api_url)

    log.setLevel(settings.log_level)

    app = FastAPI(title="filegate", version=__version__)
    app.state.settings = settings
    app.state.file_service = file_service

    app.add_middleware(RequestContextMiddleware)

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {"ok": True, "upstream": file_service.base_url}

    app.include_router(build_files_router(file_service))

    return app
