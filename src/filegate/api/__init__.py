"""HTTP API exposing the upstream file listing."""

from .server import create_app  # noqa: F401
