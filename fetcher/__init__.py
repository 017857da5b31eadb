"""Fetcher subsystem: request pipeline, redirects, and content decoding."""

from fetcher.http import fetch
from fetcher.http import Fetcher
from fetcher.decoding import decode_body_stream
from fetcher.logging import emit_event, emit_fetch_log
from fetcher.redirects import RedirectDecision, is_redirect, resolve_redirect
from fetcher.request import Request, TransportOptions, build_transport_options

__all__ = [
    "fetch",
    "Fetcher",
    "decode_body_stream",
    "emit_event",
    "emit_fetch_log",
    "RedirectDecision",
    "is_redirect",
    "resolve_redirect",
    "Request",
    "TransportOptions",
    "build_transport_options",
]
