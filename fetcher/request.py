"""Request descriptor and transport option construction."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator

from core.body import Body, HasBody, get_total_bytes
from core.config import FetchConfig
from core.errors import InvalidInputError
from core.headers import Headers
from core.models import FetchOptions, RedirectMode
from fetcher.urls import coerce_url, format_url, parse_url


_BODYLESS_METHODS = {"GET", "HEAD"}
_EMPTY_BODY_LENGTH_METHODS = {"POST", "PUT"}


def _pick(explicit: Any, inherited: Any, default: Any) -> Any:
    if explicit is not None:
        return explicit
    if inherited is not None:
        return inherited
    return default


class Request(HasBody):
    """
    Normalized description of one HTTP exchange.

    Built from a URL (string or ``href``-bearing object) or from a prior
    Request, plus options (see ``core.models.FetchOptions``). Values given
    explicitly win over the prior Request's, which win over FetchConfig
    defaults.

    Examples:
      Request("https://example.com/api", method="post", body='{"a": 1}')
      Request(previous, headers={"X-Retry": "1"})   # inherits a body clone
    """

    def __init__(self, resource: Any, **options: Any) -> None:
        init = FetchOptions(**options)
        prior = resource if isinstance(resource, Request) else None

        if prior is not None:
            self._parsed_url = prior._parsed_url
        else:
            self._parsed_url = parse_url(coerce_url(resource))

        method = _pick(init.method, prior.method if prior else None, FetchConfig.DEFAULT_METHOD)
        self.method = method.upper()

        inherits_body = prior is not None and prior._body is not None
        if (init.body is not None or inherits_body) and self.method in _BODYLESS_METHODS:
            raise InvalidInputError("Request with GET/HEAD method cannot have body")

        self.timeout: int = _pick(init.timeout, prior.timeout if prior else None, 0)
        self.size: int = _pick(init.size, prior.size if prior else None, 0)

        if isinstance(init.body, Body):
            self._body: Body | None = init.body
        elif init.body is not None:
            self._body = Body(init.body, size=self.size, timeout=self.timeout, url=self.url)
        elif inherits_body:
            self._body = prior._body.clone()
        else:
            self._body = None

        self.redirect = RedirectMode(
            _pick(init.redirect, prior.redirect if prior else None, RedirectMode.FOLLOW)
        )
        self.headers = Headers(_pick(init.headers, prior.headers if prior else None, None))

        if init.body is not None and not self.headers.has("Content-Type"):
            content_type = self._body.content_type
            if content_type is not None:
                self.headers.append("Content-Type", content_type)

        self.follow: int = _pick(
            init.follow, prior.follow if prior else None, FetchConfig.DEFAULT_FOLLOW
        )
        self.compress: bool = _pick(
            init.compress, prior.compress if prior else None, FetchConfig.DEFAULT_COMPRESS
        )
        self.counter: int = _pick(init.counter, prior.counter if prior else None, 0)
        self.agent = _pick(init.agent, prior.agent if prior else None, None)

    @property
    def url(self) -> str:
        return format_url(self._parsed_url)

    def clone(self) -> Request:
        """Independent copy with its own body; the redirect counter is kept."""
        return Request(self)

    def __repr__(self) -> str:
        return f"<Request [{self.method}] {self.url}>"


@dataclass(slots=True)
class TransportOptions:
    """Everything the transport needs for one exchange."""

    url: str
    protocol: str
    hostname: str
    port: int | None
    path: str
    method: str
    headers: dict[str, list[str]]
    body: bytes | Iterator[bytes] | None
    agent: Any
    timeout: int

    def header_fields(self) -> dict[str, str]:
        """Single-line header fields; repeated values are comma-joined."""
        return {name: ", ".join(values) for name, values in self.headers.items()}

    @property
    def timeout_seconds(self) -> float | None:
        return self.timeout / 1000 if self.timeout else None


def build_transport_options(request: Request) -> TransportOptions:
    """
    Convert a Request into transport-ready options.

    Raises:
        InvalidInputError: If the URL is not absolute or not HTTP(S).
    """
    parsed = request._parsed_url
    headers = Headers(request.headers)

    if not headers.has("Accept"):
        headers.set("Accept", FetchConfig.DEFAULT_ACCEPT)

    if not parsed.scheme or not parsed.hostname:
        raise InvalidInputError("Only absolute URLs are supported")

    if parsed.scheme not in FetchConfig.ALLOWED_PROTOCOLS:
        raise InvalidInputError("Only HTTP(S) protocols are supported")

    content_length = None
    if request._body is None and request.method in _EMPTY_BODY_LENGTH_METHODS:
        content_length = "0"
    if request._body is not None:
        total_bytes = get_total_bytes(request._body)
        if total_bytes is not None:
            content_length = str(total_bytes)
    if content_length is not None:
        headers.set("Content-Length", content_length)

    if not headers.has("User-Agent"):
        headers.set("User-Agent", FetchConfig.USER_AGENT)

    if request.compress:
        headers.set("Accept-Encoding", FetchConfig.ACCEPT_ENCODING)

    if not headers.has("Connection") and not request.agent:
        headers.set("Connection", "close")

    path = parsed.path or "/"
    if parsed.query:
        path = f"{path}?{parsed.query}"

    return TransportOptions(
        url=request.url,
        protocol=f"{parsed.scheme}:",
        hostname=parsed.hostname,
        port=parsed.port,
        path=path,
        method=request.method,
        headers=headers.raw(),
        body=request._body.payload() if request._body is not None else None,
        agent=request.agent,
        timeout=request.timeout,
    )
