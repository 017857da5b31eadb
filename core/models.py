"""
Core Pydantic models and enums for fetch-compat.

Design principles:
- Option records are validated once, at the entry point
- Enum values match the string tokens of the fetch standard
- Log models serialize deterministically (for structured event lines)
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator


# ============================================================================
# Enums
# ============================================================================

class RedirectMode(str, Enum):
    """How a redirect status is handled."""
    FOLLOW = "follow"
    ERROR = "error"
    MANUAL = "manual"  # Return the 3xx itself, Location made absolute


class FetchErrorKind(str, Enum):
    """Why did a fetch fail?"""
    SYSTEM = "system"  # Transport failure: refused, DNS, reset, bad body
    REQUEST_TIMEOUT = "request-timeout"
    NO_REDIRECT = "no-redirect"
    MAX_REDIRECT = "max-redirect"
    INVALID_REDIRECT = "invalid-redirect"
    UNSUPPORTED_REDIRECT = "unsupported-redirect"
    MAX_SIZE = "max-size"
    BODY_TIMEOUT = "body-timeout"


class RedirectAction(str, Enum):
    """Outcome of evaluating one response against the redirect rules."""
    FOLLOW = "follow"
    ERROR = "error"
    TERMINAL = "terminal"


# ============================================================================
# Fetch Options
# ============================================================================

class FetchOptions(BaseModel):
    """
    Recognized options for a fetch call or a Request.

    Every field defaults to None, meaning "not given": the Request falls back
    to the prior Request's value (when built from one) and then to
    FetchConfig defaults.

    Example:
      FetchOptions(method="post", body=b"{}", redirect="manual", timeout=5000)
    """
    method: Optional[str] = None
    headers: Optional[Any] = None  # Headers, mapping, or iterable of pairs
    body: Optional[Any] = None  # bytes, str, Blob, file-like, or iterable of bytes

    redirect: Optional[RedirectMode] = None
    follow: Optional[int] = Field(default=None, ge=0)
    compress: Optional[bool] = None
    counter: Optional[int] = Field(default=None, ge=0)

    agent: Optional[Any] = None  # requests.Session reused across calls

    timeout: Optional[int] = Field(default=None, ge=0)  # milliseconds, 0 = none
    size: Optional[int] = Field(default=None, ge=0)  # bytes, 0 = unlimited

    @field_validator("method")
    @classmethod
    def validate_method(cls, v: Optional[str]) -> Optional[str]:
        """Reject blank methods; casing is normalized by the Request."""
        if v is not None and not v.strip():
            raise ValueError("method must not be blank")
        return v

    class Config:
        arbitrary_types_allowed = True
        extra = "forbid"


# ============================================================================
# Fetch Logging
# ============================================================================

class FetchLog(BaseModel):
    """
    Log entry for a single fetch call (all of its redirect hops).
    """
    id: str = Field(default_factory=lambda: str(uuid4()))
    url: str
    final_url: Optional[str] = None
    method: str

    status_code: Optional[int] = None  # Terminal HTTP status
    redirect_count: int = 0
    latency_ms: Optional[int] = None  # Time to terminal response headers

    error_kind: Optional[FetchErrorKind] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
