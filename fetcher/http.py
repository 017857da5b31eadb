"""HTTP fetch orchestrator: redirects, timeouts, and content decoding."""

from __future__ import annotations

import threading
import time
import zlib
from collections.abc import Callable
from typing import Any, Iterable, Iterator
from uuid import uuid4

import requests
from urllib3.exceptions import HTTPError as StreamError
from urllib3.exceptions import ReadTimeoutError

from core.body import Body
from core.config import FetchConfig
from core.errors import FetchError
from core.headers import Headers
from core.models import FetchErrorKind, FetchLog, RedirectAction
from core.response import Response
from fetcher.decoding import decode_body_stream
from fetcher.local import fetch_local
from fetcher.logging import emit_event, emit_fetch_log
from fetcher.redirects import resolve_redirect
from fetcher.request import Request, TransportOptions, build_transport_options
from fetcher.urls import coerce_url


SessionFactory = Callable[[], requests.Session]
EventHook = Callable[[str, dict[str, object]], None]


def _resource_url(resource: Any) -> str:
    if isinstance(resource, Request):
        return resource.url
    return coerce_url(resource)


def _transport_headers(response: requests.Response) -> Any:
    """Raw urllib3 headers keep repeated fields apart; fall back to requests'."""
    raw = getattr(response, "raw", None)
    raw_headers = getattr(raw, "headers", None)
    if raw_headers is not None:
        return raw_headers
    return response.headers


def _abort(
    transport_response: requests.Response | None,
    owned_session: requests.Session | None,
) -> None:
    if transport_response is not None:
        transport_response.close()
    if owned_session is not None:
        owned_session.close()


class Fetcher:
    """
    Drive fetch calls over an injected ``requests`` transport.

    Each call builds a Request, sends it, and walks redirect hops in a loop
    bounded by the request's ``follow`` limit. A per-call ``agent`` session
    takes precedence over ``session_factory``; sessions created from the
    factory live for one call and are closed with the response.
    """

    def __init__(
        self,
        session_factory: SessionFactory | None = None,
        log_fetches: bool = False,
        event_logger: EventHook | None = None,
        chunk_size: int = FetchConfig.CHUNK_SIZE,
    ) -> None:
        """Initialize transport factory and event sinks."""
        self.session_factory = session_factory or requests.Session
        self.log_fetches = log_fetches
        self.event_logger = event_logger or (self._default_event_logger if log_fetches else None)
        self.chunk_size = chunk_size

    @staticmethod
    def _default_event_logger(event_type: str, payload: dict[str, object]) -> None:
        """Default event sink writing to structured JSON stdout."""
        emit_event(event_type, **payload)

    def _emit(self, event_type: str, payload: dict[str, object]) -> None:
        if self.event_logger:
            self.event_logger(event_type, payload)

    def fetch(self, resource: Any, **options: Any) -> Response:
        """
        Fetch a URL (or Request) and return the terminal Response.

        Raises:
            FetchError: Transport failure, timeout, or redirect policy error.
            InvalidInputError: Body on GET/HEAD, relative or non-HTTP(S) URL.
            OSError: Unreadable ``file://`` path.
        """
        local = fetch_local(_resource_url(resource))
        if local is not None:
            return local

        request = Request(resource, **options)
        fetch_id = str(uuid4())
        start = time.monotonic()
        initial = request

        owned_session = request.agent is None
        session = request.agent if request.agent is not None else self.session_factory()

        transport_response = None
        try:
            while True:
                transport_options = build_transport_options(request)
                transport_response = self._send(session, transport_options)
                headers = Headers.from_transport(_transport_headers(transport_response))
                status = transport_response.status_code

                decision = resolve_redirect(request, status, headers)

                if decision.action is RedirectAction.FOLLOW:
                    transport_response.close()
                    self._emit(
                        "redirect_followed",
                        {
                            "fetch_id": fetch_id,
                            "from_url": request.url,
                            "to_url": decision.location,
                            "status_code": status,
                            "counter": decision.next_request.counter,
                        },
                    )
                    request = decision.next_request
                    continue

                if decision.action is RedirectAction.ERROR:
                    transport_response.close()
                    raise decision.error

                if decision.location is not None:
                    headers.set("Location", decision.location)
                break
        except FetchError as exc:
            _abort(transport_response, session if owned_session else None)
            self._log_fetch(initial, request, start, error_kind=exc.kind)
            raise
        except Exception:
            _abort(transport_response, session if owned_session else None)
            raise

        response = self._build_response(
            request,
            transport_response,
            headers,
            session if owned_session else None,
        )
        self._log_fetch(initial, request, start, status_code=status)
        return response

    def _send(
        self,
        session: requests.Session,
        options: TransportOptions,
    ) -> requests.Response:
        headers: dict[str, str | None] = dict(options.header_fields())
        if not any(name.lower() == "accept-encoding" for name in headers):
            # Drop the session's default so compress=False sends no coding
            headers["Accept-Encoding"] = None

        def exchange() -> requests.Response:
            try:
                return session.request(
                    options.method,
                    options.url,
                    headers=headers,
                    data=options.body,
                    allow_redirects=False,
                    stream=True,
                    timeout=options.timeout_seconds,
                )
            except requests.Timeout as exc:
                raise FetchError(
                    f"network timeout at: {options.url}",
                    FetchErrorKind.REQUEST_TIMEOUT,
                    exc,
                ) from exc
            except requests.RequestException as exc:
                raise FetchError(
                    f"request to {options.url} failed, reason: {exc}",
                    FetchErrorKind.SYSTEM,
                    exc,
                ) from exc

        if options.timeout_seconds is None:
            return exchange()
        return _await_headers(exchange, options.timeout_seconds, options.url)

    def _build_response(
        self,
        request: Request,
        transport_response: requests.Response,
        headers: Headers,
        owned_session: requests.Session | None,
    ) -> Response:
        def release() -> None:
            _abort(transport_response, owned_session)

        raw_chunks = transport_response.raw.stream(self.chunk_size, decode_content=False)
        decoded = decode_body_stream(
            raw_chunks,
            headers,
            method=request.method,
            compress=request.compress,
            status=transport_response.status_code,
        )
        body = Body(
            _guard_stream(decoded, request.url, request.timeout, release),
            size=request.size,
            timeout=request.timeout,
            url=request.url,
        )
        return Response(
            body,
            url=request.url,
            status=transport_response.status_code,
            status_text=transport_response.reason or None,
            headers=headers,
            size=request.size,
            timeout=request.timeout,
            on_close=release,
        )

    def _log_fetch(
        self,
        initial: Request,
        final: Request,
        start: float,
        status_code: int | None = None,
        error_kind: FetchErrorKind | None = None,
    ) -> None:
        if not self.log_fetches:
            return
        emit_fetch_log(
            FetchLog(
                url=initial.url,
                final_url=final.url,
                method=initial.method,
                status_code=status_code,
                redirect_count=final.counter - initial.counter,
                latency_ms=int((time.monotonic() - start) * 1000),
                error_kind=error_kind,
            )
        )


def _guard_stream(
    chunks: Iterable[bytes],
    url: str,
    timeout: int,
    release: Callable[[], None],
) -> Iterator[bytes]:
    """Map mid-body transport and decoder failures onto FetchError."""
    try:
        yield from chunks
    except ReadTimeoutError as exc:
        raise FetchError(
            f"Response timeout while trying to fetch {url} (over {timeout}ms)",
            FetchErrorKind.BODY_TIMEOUT,
            exc,
        ) from exc
    except (StreamError, zlib.error, OSError) as exc:
        raise FetchError(
            f"invalid response body at: {url} reason: {exc}",
            FetchErrorKind.SYSTEM,
            exc,
        ) from exc
    finally:
        release()


def _await_headers(
    exchange: Callable[[], requests.Response],
    seconds: float,
    url: str,
) -> requests.Response:
    """
    Run one exchange with a hard deadline on the response headers.

    The exchange runs on a daemon thread. Past the deadline the call fails
    with request-timeout, and a late response is closed when it arrives.
    """
    lock = threading.Lock()
    done = threading.Event()
    state: dict[str, Any] = {"abandoned": False, "response": None, "error": None}

    def worker() -> None:
        response = None
        error = None
        try:
            response = exchange()
        except Exception as exc:
            error = exc
        with lock:
            if state["abandoned"]:
                if response is not None:
                    response.close()
                return
            state["response"] = response
            state["error"] = error
            done.set()

    threading.Thread(target=worker, name="fetch-exchange", daemon=True).start()
    done.wait(seconds)

    with lock:
        if not done.is_set():
            state["abandoned"] = True
            raise FetchError(f"network timeout at: {url}", FetchErrorKind.REQUEST_TIMEOUT)

    if state["error"] is not None:
        raise state["error"]
    return state["response"]


_default_fetcher = Fetcher()


def fetch(resource: Any, **options: Any) -> Response:
    """
    Fetch a resource the way ``window.fetch`` does.

    ``resource`` is a URL string, an object with ``href``, or a Request.
    Options: method, headers, body, redirect, follow, compress, counter,
    agent, timeout (ms), size (bytes).

    Example:
      resp = fetch("https://example.com/data", timeout=5000)
      if resp.ok:
          payload = resp.json()
    """
    return _default_fetcher.fetch(resource, **options)
