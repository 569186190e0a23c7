"""File lookup backed by the upstream files API.

The upstream exposes a single listing endpoint returning
``{"files": ["name", ...]}``; lookups by name scan that list.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from filegate.networking import HttpClient, HttpClientError

log = logging.getLogger("filegate.files")


class ExternalApiError(Exception):
    """The upstream files API could not be reached or answered an error."""


@dataclass(frozen=True)
class FileRecord:
    """A file known to the upstream service."""

    name: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name}


def _extract_names(payload: Any) -> List[str]:
    """Pull the name list out of a listing body.

    Anything other than an object with a list under ``files`` counts as an
    empty listing; non-string entries are skipped.
    """

    if not isinstance(payload, dict):
        return []
    items = payload.get("files")
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, str)]


class FileService:
    """List upstream files and find one by exact name."""

    def __init__(
        self,
        client: HttpClient,
        base_url: str,
        *,
        retries: Optional[int] = None,
    ):
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._retries = retries

    @property
    def base_url(self) -> str:
        return self._base_url

    def _fetch_names(self) -> List[str]:
        payload = self._client.get(
            f"{self._base_url}/files", retries=self._retries
        )
        return _extract_names(payload)

    def list_files(self) -> List[str]:
        """Return every file name the upstream knows about."""

        try:
            return self._fetch_names()
        except HttpClientError as e:
            log.error("Error fetching files: %s", e)
            raise ExternalApiError(
                "External api error while fetching files"
            ) from e

    def get_file_by_name(self, name: str) -> Optional[FileRecord]:
        """Return the file called ``name``, or None when there is none."""

        try:
            names = self._fetch_names()
        except HttpClientError as e:
            log.error("Error fetching file by name: %s", e)
            raise ExternalApiError(
                "External api error while fetching file by name"
            ) from e

        for candidate in names:
            if candidate == name:
                return FileRecord(name=candidate)
        return None
