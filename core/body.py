"""Single-consumption body shared by Request and Response."""

from __future__ import annotations

import itertools
import json
import time
from typing import Any, Iterable, Iterator

from core.config import FetchConfig
from core.errors import FetchError
from core.models import FetchErrorKind


class Blob:
    """Immutable bytes with a media type, built from bytes/str/Blob parts."""

    def __init__(self, parts: Iterable[Any] = (), type: str = "") -> None:
        buffers: list[bytes] = []
        for part in parts:
            if isinstance(part, Blob):
                buffers.append(part._data)
            elif isinstance(part, str):
                buffers.append(part.encode("utf-8"))
            else:
                buffers.append(bytes(part))
        self._data = b"".join(buffers)
        self.type = type.lower() if type and type.isascii() else ""

    @property
    def size(self) -> int:
        return len(self._data)

    def bytes(self) -> bytes:
        return self._data

    def text(self) -> str:
        return self._data.decode("utf-8", errors="replace")

    def slice(self, start: int = 0, end: int | None = None, type: str = "") -> Blob:
        return Blob([self._data[start:end]], type=type)

    def __repr__(self) -> str:
        return f"Blob(size={self.size}, type={self.type!r})"


def _iter_file(fileobj: Any, chunk_size: int) -> Iterator[bytes]:
    while True:
        chunk = fileobj.read(chunk_size)
        if not chunk:
            return
        yield chunk


class Body:
    """
    Content holder with a "pulled once" guarantee.

    The source is normalized to one of: nothing, a buffer (bytes), a Blob, or
    a stream (an iterator of bytes). Buffers and blobs can be re-materialized
    for clones and redirects; streams are teed on clone and are spent once
    read.

    ``size`` (bytes) and ``timeout`` (ms) bound consumption; 0 disables each.
    """

    def __init__(
        self,
        source: Any = None,
        *,
        size: int = 0,
        timeout: int = 0,
        url: str = "",
    ) -> None:
        self.size = size
        self.timeout = timeout
        self.url = url
        self._used = False
        self._buffer: bytes | None = None
        self._blob: Blob | None = None
        self._stream: Iterator[bytes] | None = None

        if source is None:
            pass
        elif isinstance(source, Body):
            raise TypeError("Body sources must be unwrapped; use Body.clone()")
        elif isinstance(source, Blob):
            self._blob = source
        elif isinstance(source, str):
            self._buffer = source.encode("utf-8")
        elif isinstance(source, (bytes, bytearray, memoryview)):
            self._buffer = bytes(source)
        elif hasattr(source, "read"):
            self._stream = _iter_file(source, FetchConfig.CHUNK_SIZE)
        elif isinstance(source, Iterable):
            self._stream = iter(source)
        else:
            self._buffer = str(source).encode("utf-8")

        self._content_type = extract_content_type(source)

    @property
    def used(self) -> bool:
        return self._used

    @property
    def is_empty(self) -> bool:
        return self._buffer is None and self._blob is None and self._stream is None

    @property
    def replayable(self) -> bool:
        """True when the content can be produced again (buffer or blob)."""
        return self._stream is None

    @property
    def content_type(self) -> str | None:
        return self._content_type

    def total_bytes(self) -> int | None:
        """Byte length when known without reading: 0 when empty, None for streams."""
        if self._buffer is not None:
            return len(self._buffer)
        if self._blob is not None:
            return self._blob.size
        if self._stream is not None:
            return None
        return 0

    def clone(self) -> Body:
        """Independent copy; stream sources are teed between the two bodies."""
        if self._used:
            raise TypeError("cannot clone body after it is used")
        copy = Body(size=self.size, timeout=self.timeout, url=self.url)
        copy._buffer = self._buffer
        copy._blob = self._blob
        copy._content_type = self._content_type
        if self._stream is not None:
            self._stream, copy._stream = itertools.tee(self._stream)
        return copy

    def payload(self) -> bytes | Iterator[bytes] | None:
        """Content in the shape the transport sends; spends stream sources."""
        if self._buffer is not None:
            return self._buffer
        if self._blob is not None:
            return self._blob.bytes()
        if self._stream is not None:
            self._mark_used()
            return self._stream
        return None

    def iter_chunks(self) -> Iterator[bytes]:
        """Yield the content once, enforcing the size and timeout limits."""
        self._mark_used()
        return self._limited(self._chunks())

    def read(self) -> bytes:
        return b"".join(self.iter_chunks())

    def _mark_used(self) -> None:
        if self._used:
            raise TypeError(f"body used already for: {self.url}")
        self._used = True

    def _chunks(self) -> Iterator[bytes]:
        if self._buffer is not None:
            if self._buffer:
                yield self._buffer
        elif self._blob is not None:
            if self._blob.size:
                yield self._blob.bytes()
        elif self._stream is not None:
            try:
                for chunk in self._stream:
                    if chunk:
                        yield bytes(chunk)
            finally:
                close = getattr(self._stream, "close", None)
                if close is not None:
                    close()

    def _limited(self, chunks: Iterator[bytes]) -> Iterator[bytes]:
        deadline = None
        if self.timeout:
            deadline = time.monotonic() + self.timeout / 1000
        accumulated = 0
        try:
            for chunk in chunks:
                if deadline is not None and time.monotonic() > deadline:
                    raise FetchError(
                        f"Response timeout while trying to fetch {self.url} (over {self.timeout}ms)",
                        FetchErrorKind.BODY_TIMEOUT,
                    )
                accumulated += len(chunk)
                if self.size and accumulated > self.size:
                    raise FetchError(
                        f"content size at {self.url} over limit: {self.size}",
                        FetchErrorKind.MAX_SIZE,
                    )
                yield chunk
        finally:
            # Stop the source so the connection is released on early exit
            chunks.close()


def extract_content_type(source: Any) -> str | None:
    """Content-Type implied by a body source, or None."""
    if isinstance(source, str):
        return "text/plain;charset=UTF-8"
    if isinstance(source, Blob):
        return source.type or None
    return None


def get_total_bytes(body: Body | None) -> int | None:
    if body is None:
        return 0
    return body.total_bytes()


class HasBody:
    """
    Body capability for entities holding a ``_body`` (Body or None).

    Request and Response keep their own Body instance and expose its
    behaviour through these methods.
    """

    _body: Body | None

    @property
    def body(self) -> Iterable[bytes] | None:
        """The content stream; iterating it consumes the body."""
        if self._body is None or self._body.is_empty:
            return None
        return _LazyStream(self._body)

    @property
    def body_used(self) -> bool:
        return self._body is not None and self._body.used

    def bytes(self) -> bytes:
        if self._body is None:
            return b""
        return self._body.read()

    def text(self) -> str:
        return self.bytes().decode("utf-8", errors="replace")

    def json(self) -> Any:
        return json.loads(self.text())

    def blob(self) -> Blob:
        content_type = ""
        headers = getattr(self, "headers", None)
        if headers is not None:
            content_type = headers.get("Content-Type") or ""
        return Blob([self.bytes()], type=content_type)

    def iter_bytes(self) -> Iterator[bytes]:
        """Stream the content chunk by chunk (single consumption)."""
        if self._body is None:
            return iter(())
        return self._body.iter_chunks()

    def total_bytes(self) -> int | None:
        return get_total_bytes(self._body)


class _LazyStream:
    """Iterable view over a Body; consumption starts on first iteration."""

    def __init__(self, body: Body) -> None:
        self._body = body

    def __iter__(self) -> Iterator[bytes]:
        return self._body.iter_chunks()
