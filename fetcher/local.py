"""Responses for URLs served without the network: file: and data:."""

from __future__ import annotations

import base64
import re
from pathlib import Path

from core.body import Blob
from core.response import Response


_FILE_URL = re.compile(r"^file://(.*)$", re.DOTALL)
_DATA_URL = re.compile(r"^data:(.*?)(;base64)?,", re.DOTALL)

DEFAULT_DATA_MEDIA_TYPE = "text/plain;charset=US-ASCII"


def fetch_local(url: str) -> Response | None:
    """
    Serve ``file://`` and ``data:`` URLs, or return None for anything else.

    Raises:
        OSError: If the referenced file cannot be read.
        binascii.Error: If base64 data is malformed.
    """
    match = _FILE_URL.match(url)
    if match:
        return read_file_url(url, match.group(1))

    match = _DATA_URL.match(url)
    if match:
        return decode_data_url(url, match)

    return None


def read_file_url(url: str, path: str) -> Response:
    data = Path(path).read_bytes()
    return Response(Blob([data]), url=url)


def decode_data_url(url: str, match: re.Match[str]) -> Response:
    media_type = match.group(1) or DEFAULT_DATA_MEDIA_TYPE
    payload = url[match.end():]
    if match.group(2):
        data = base64.b64decode(payload)
    else:
        data = payload.encode("utf-8")

    body = Blob([data], type=media_type)
    return Response(
        body,
        url=url,
        status=200,
        status_text="OK",
        headers={"Content-Type": media_type},
        size=body.size,
    )
