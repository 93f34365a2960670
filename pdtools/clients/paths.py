import re
from typing import Optional
from urllib.parse import urlencode

DEFAULT_VERSION = "v1"
RAW = "raw"
VERSIONS = ("v1", "v2")

_VERSIONED = re.compile(r"^/v\d+(/|$)")


def resolve_path(logical_path: str, version: Optional[str] = None) -> str:
    """
    Compute the concrete request path for a logical endpoint.

    Args:
        logical_path: Endpoint path, optionally with a query string
        version: 'v1', 'v2' or 'raw'. Anything else falls back to 'v1'.

    Returns:
        The path with the version prefix applied. A path that already names a
        version is returned unchanged, whatever the hint says.
    """
    path = logical_path if logical_path.startswith("/") else f"/{logical_path}"
    if _VERSIONED.match(path) or version == RAW:
        return path
    if version not in VERSIONS:
        version = DEFAULT_VERSION
    return f"/{version}{path}"


def with_query(path: str, **params) -> str:
    """Append query parameters to a path, skipping None values."""
    query = urlencode({k: v for k, v in params.items() if v is not None})
    if not query:
        return path
    separator = "&" if "?" in path else "?"
    return f"{path}{separator}{query}"
