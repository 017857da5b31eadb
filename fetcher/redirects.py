"""Redirect handling per the fetch standard's HTTP-redirect fetch."""

from __future__ import annotations

from dataclasses import dataclass

from core.config import FetchConfig
from core.errors import FetchError
from core.headers import Headers
from core.models import FetchErrorKind, RedirectAction, RedirectMode
from fetcher.request import Request
from fetcher.urls import resolve_url


def is_redirect(code: int) -> bool:
    """True for 301, 302, 303, 307 and 308."""
    return code in FetchConfig.REDIRECT_STATUSES


@dataclass(slots=True)
class RedirectDecision:
    """Decision payload for one received response."""

    action: RedirectAction
    next_request: Request | None = None
    error: FetchError | None = None
    location: str | None = None


def _rewrites_to_get(status: int, method: str) -> bool:
    # 303 always; 301/302 only after POST
    return status == 303 or (status in (301, 302) and method == "POST")


def resolve_redirect(request: Request, status: int, headers: Headers) -> RedirectDecision:
    """
    Decide what to do with a response: follow it, fail, or hand it back.

    Manual mode returns TERMINAL with ``location`` set to the absolute form of
    any Location header. When following, ``next_request`` is a new Request
    for the resolved URL with ``counter`` advanced by one.
    """
    location = headers.get("Location")

    if not is_redirect(status) or request.redirect is RedirectMode.MANUAL:
        absolute = None
        if request.redirect is RedirectMode.MANUAL and location is not None:
            absolute = resolve_url(request.url, location)
        return RedirectDecision(action=RedirectAction.TERMINAL, location=absolute)

    if request.redirect is RedirectMode.ERROR:
        return RedirectDecision(
            action=RedirectAction.ERROR,
            error=FetchError(
                f"redirect mode is set to error: {request.url}",
                FetchErrorKind.NO_REDIRECT,
            ),
        )

    if request.counter >= request.follow:
        return RedirectDecision(
            action=RedirectAction.ERROR,
            error=FetchError(
                f"maximum redirect reached at: {request.url}",
                FetchErrorKind.MAX_REDIRECT,
            ),
        )

    if not location:
        return RedirectDecision(
            action=RedirectAction.ERROR,
            error=FetchError(
                f"redirect location header missing at: {request.url}",
                FetchErrorKind.INVALID_REDIRECT,
            ),
        )

    next_url = resolve_url(request.url, location)
    next_headers = Headers(request.headers)

    if _rewrites_to_get(status, request.method):
        method = "GET"
        body = None
        next_headers.delete("Content-Length")
    else:
        method = request.method
        body = None
        if request._body is not None:
            if not request._body.replayable:
                return RedirectDecision(
                    action=RedirectAction.ERROR,
                    error=FetchError(
                        f"Cannot follow redirect with body being a readable stream: {request.url}",
                        FetchErrorKind.UNSUPPORTED_REDIRECT,
                    ),
                    location=next_url,
                )
            body = request._body.clone()

    next_request = Request(
        next_url,
        method=method,
        headers=next_headers,
        body=body,
        redirect=request.redirect,
        follow=request.follow,
        compress=request.compress,
        counter=request.counter + 1,
        agent=request.agent,
        timeout=request.timeout,
        size=request.size,
    )
    return RedirectDecision(
        action=RedirectAction.FOLLOW,
        next_request=next_request,
        location=next_url,
    )
