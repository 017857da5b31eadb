"""URL parsing, formatting, and resolution for request descriptors."""

from __future__ import annotations

from typing import Any
from urllib.parse import SplitResult, urljoin, urlsplit, urlunsplit

from core.errors import InvalidInputError


_SLASHED_SCHEMES = {"http", "https", "ftp", "ws", "wss"}


def coerce_url(source: Any) -> str:
    """
    Turn a URL-like input into a string.

    Objects exposing ``href`` (WHATWG-style URL objects) are stringified via
    that field; anything else goes through ``str()``.
    """
    href = getattr(source, "href", None)
    if href:
        return str(href)
    return str(source)


def parse_url(url: str) -> SplitResult:
    """
    Split and normalize a URL.

    Rules:
    - Surrounding whitespace is stripped
    - Scheme and host are lower-cased
    - Hierarchical URLs with a host get "/" as their empty path

    Raises:
        InvalidInputError: If the URL cannot be split or its port is invalid.
    """
    try:
        parsed = urlsplit(url.strip())
        port = parsed.port
    except ValueError as exc:
        raise InvalidInputError(f"Invalid URL {url!r}: {exc}") from exc

    scheme = parsed.scheme.lower()
    netloc = parsed.netloc
    path = parsed.path

    if scheme in _SLASHED_SCHEMES and netloc:
        hostname = parsed.hostname or ""
        userinfo, _, _ = netloc.rpartition("@")
        host_port = hostname if ":" not in hostname else f"[{hostname}]"
        if port is not None:
            host_port = f"{host_port}:{port}"
        netloc = f"{userinfo}@{host_port}" if userinfo else host_port
        if not path:
            path = "/"

    return SplitResult(scheme, netloc, path, parsed.query, parsed.fragment)


def format_url(parsed: SplitResult) -> str:
    return urlunsplit(parsed)


def resolve_url(base: str, location: str) -> str:
    """Resolve a (possibly relative) Location against the request URL."""
    try:
        joined = urljoin(base, location)
    except ValueError as exc:
        raise InvalidInputError(f"Invalid URL {location!r}: {exc}") from exc
    return format_url(parse_url(joined))
