"""Content-Encoding removal for response body streams."""

from __future__ import annotations

import zlib
from typing import Iterable, Iterator

from core.headers import Headers


GZIP_CODINGS = {"gzip", "x-gzip"}
DEFLATE_CODINGS = {"deflate", "x-deflate"}

_GZIP_WBITS = 16 + zlib.MAX_WBITS
_ZLIB_WBITS = zlib.MAX_WBITS
_RAW_DEFLATE_WBITS = -zlib.MAX_WBITS

_GZIP_MAGIC = b"\x1f\x8b"


def should_decode(headers: Headers, *, method: str, compress: bool, status: int) -> bool:
    """
    Whether the body should go through a decoder at all.

    Skipped when compression is disabled, for HEAD requests, when there is no
    Content-Encoding, and for 204/304 responses.
    """
    if not compress or method == "HEAD":
        return False
    if headers.get("Content-Encoding") is None:
        return False
    return status not in (204, 304)


def decode_body_stream(
    chunks: Iterable[bytes],
    headers: Headers,
    *,
    method: str,
    compress: bool,
    status: int,
) -> Iterator[bytes]:
    """Return the logical byte stream for a raw response body."""
    if not should_decode(headers, method=method, compress=compress, status=status):
        return iter(chunks)

    codings = headers.get("Content-Encoding")

    if codings in GZIP_CODINGS:
        return _inflate(chunks, _GZIP_WBITS)

    if codings in DEFLATE_CODINGS:
        return _inflate_sniffed(chunks)

    # Unsupported codings are handed back untouched
    return iter(chunks)


def is_zlib_wrapped(first_byte: int) -> bool:
    """A zlib header's CMF byte declares method 8 (deflate) in its low nibble."""
    return (first_byte & 0x0F) == 0x08


def peek_first_chunk(chunks: Iterable[bytes]) -> tuple[bytes | None, Iterator[bytes]]:
    """
    Pull the first non-empty chunk and return it with a stream that still
    starts with it.
    """
    iterator = iter(chunks)
    for chunk in iterator:
        if chunk:
            return chunk, _prepend(chunk, iterator)
    return None, iter(())


def _prepend(first: bytes, rest: Iterator[bytes]) -> Iterator[bytes]:
    yield first
    yield from rest


def _inflate_sniffed(chunks: Iterable[bytes]) -> Iterator[bytes]:
    # Old IIS/Apache servers send deflate without the zlib header
    first, stream = peek_first_chunk(chunks)
    if first is None:
        return
    wbits = _ZLIB_WBITS if is_zlib_wrapped(first[0]) else _RAW_DEFLATE_WBITS
    yield from _inflate(stream, wbits)


def _inflate(chunks: Iterable[bytes], wbits: int) -> Iterator[bytes]:
    decompressor = zlib.decompressobj(wbits)
    finished = False
    pending = b""
    for chunk in chunks:
        if finished:
            continue
        data = pending + chunk
        pending = b""
        while data:
            if decompressor.eof:
                # A gzip body may hold several members back to back
                if wbits == _GZIP_WBITS and len(data) < len(_GZIP_MAGIC):
                    pending = data
                    break
                if wbits == _GZIP_WBITS and data.startswith(_GZIP_MAGIC):
                    decompressor = zlib.decompressobj(wbits)
                else:
                    # Trailing bytes after the end of the compressed stream are ignored
                    finished = True
                    break
            output = decompressor.decompress(data)
            if output:
                yield output
            data = decompressor.unused_data if decompressor.eof else b""
    # flush() tolerates a truncated stream, like a sync-flush finish
    tail = decompressor.flush()
    if tail:
        yield tail
