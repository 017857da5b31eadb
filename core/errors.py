"""Exception types raised by the fetch pipeline."""

from __future__ import annotations

from core.models import FetchErrorKind


class InvalidInputError(TypeError):
    """Raised synchronously for requests that can never be sent."""


class FetchError(Exception):
    """
    Operational failure of a fetch.

    - message: human-readable description, includes the URL involved.
    - kind: FetchErrorKind token (``system``, ``request-timeout``, ...).
    - cause: the underlying transport/decoder exception, if any.
    """

    def __init__(
        self,
        message: str,
        kind: FetchErrorKind | str,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = FetchErrorKind(kind)
        self.cause = cause

    @property
    def type(self) -> str:
        """The kind as its plain string token."""
        return self.kind.value

    def __repr__(self) -> str:
        return f"FetchError({self.message!r}, kind={self.kind.value!r})"
