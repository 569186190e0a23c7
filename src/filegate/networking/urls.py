"""Query-string assembly for outbound request URLs."""

from __future__ import annotations

import re
from typing import Any, Mapping
from urllib.parse import urlencode, urljoin, urlsplit, urlunsplit

_ABSOLUTE_URL = re.compile(r"^https?://", re.IGNORECASE)

# Anchor used only to normalize relative URLs; it never leaks into the result.
_RELATIVE_ANCHOR = "http://localhost/"


def is_absolute(url: str) -> bool:
    return bool(_ABSOLUTE_URL.match(url))


def _param_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_url(url: str, params: Mapping[str, Any] | None = None) -> str:
    """Append ``params`` to ``url``'s query string.

    Parameters whose value is None are skipped. An absolute ``http(s)`` URL
    stays absolute; a relative URL comes back as path plus query only.
    Without params the URL is returned untouched.
    """
    if not params:
        return url

    pairs = [
        (key, _param_value(value))
        for key, value in params.items()
        if value is not None
    ]
    absolute = is_absolute(url)
    parts = urlsplit(url if absolute else urljoin(_RELATIVE_ANCHOR, url))
    extra = urlencode(pairs)
    query = "&".join(q for q in (parts.query, extra) if q)

    if absolute:
        return urlunsplit(
            (parts.scheme, parts.netloc, parts.path, query, parts.fragment)
        )
    return f"{parts.path}?{query}" if query else parts.path
