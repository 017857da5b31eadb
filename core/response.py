"""Response: the terminal result of a fetch."""

from __future__ import annotations

from http.client import responses as _STATUS_TEXT
from typing import Any, Callable

from core.body import Body, HasBody
from core.headers import Headers, HeadersInit


class Response(HasBody):
    """
    Response object similar to the Web Response API.

    The body is consumed at most once (``text()``, ``bytes()``, ``json()``,
    ``blob()`` or iterating ``body``). Use ``clone()`` before reading to get
    a second, independent copy.

    Examples:
      Response("hello")                                   # text/plain, 200
      Response(b"raw", status=201, headers={"X-Id": "1"})
      Response(Blob([data], type="image/png"), url="file:///tmp/a.png")
    """

    def __init__(
        self,
        body: Any = None,
        *,
        url: str = "",
        status: int = 200,
        status_text: str | None = None,
        headers: HeadersInit = None,
        size: int = 0,
        timeout: int = 0,
        on_close: Callable[[], None] | None = None,
    ) -> None:
        self.url = url
        self.status = status
        self.status_text = status_text if status_text is not None else _STATUS_TEXT.get(status, "")
        self.headers = Headers(headers)
        self.size = size
        self.timeout = timeout
        self._on_close = on_close

        if isinstance(body, Body):
            self._body = body
        else:
            self._body = Body(body, size=size, timeout=timeout, url=url)

        if body is not None and not self.headers.has("Content-Type"):
            content_type = self._body.content_type
            if content_type:
                self.headers.append("Content-Type", content_type)

    @property
    def ok(self) -> bool:
        """True for 2xx statuses."""
        return 200 <= self.status < 300

    def clone(self) -> Response:
        """Copy with an independently consumable body; fails once read."""
        return Response(
            self._body.clone(),
            url=self.url,
            status=self.status,
            status_text=self.status_text,
            headers=self.headers,
            size=self.size,
            timeout=self.timeout,
        )

    def close(self) -> None:
        """Release the transport connection without reading the body."""
        if self._on_close is not None:
            on_close, self._on_close = self._on_close, None
            on_close()

    def __enter__(self) -> Response:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<Response [{self.status}] {self.url}>"
