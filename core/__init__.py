"""Core module for fetch-compat."""

from core.models import (
    FetchErrorKind,
    FetchLog,
    FetchOptions,
    RedirectAction,
    RedirectMode,
)
from core.config import FetchConfig
from core.errors import FetchError, InvalidInputError
from core.headers import Headers
from core.body import Blob, Body, HasBody
from core.response import Response

__all__ = [
    "FetchErrorKind",
    "FetchLog",
    "FetchOptions",
    "RedirectAction",
    "RedirectMode",
    "FetchConfig",
    "FetchError",
    "InvalidInputError",
    "Headers",
    "Blob",
    "Body",
    "HasBody",
    "Response",
]
