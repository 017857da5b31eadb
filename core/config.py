"""
Default fetch configuration for fetch-compat.

These settings are class-level constants. Per-call behaviour is controlled
through fetch options; these values only supply the defaults and the fixed
protocol rules the pipeline enforces.
"""

from typing import FrozenSet, Set


class FetchConfig:
    """
    Immutable defaults for request construction and execution.
    """

    # ========================================================================
    # Request Defaults
    # ========================================================================

    DEFAULT_FOLLOW: int = 20
    """Maximum redirect hops when the caller does not set `follow`."""

    DEFAULT_COMPRESS: bool = True
    """Negotiate gzip/deflate unless the caller opts out."""

    DEFAULT_METHOD: str = "GET"

    # ========================================================================
    # Transport Rules
    # ========================================================================

    # Protocol whitelist for the network path (file: and data: are served locally)
    ALLOWED_PROTOCOLS: Set[str] = {"http", "https"}
    """Only HTTP(S) goes through the transport."""

    REDIRECT_STATUSES: FrozenSet[int] = frozenset({301, 302, 303, 307, 308})
    """Status codes the redirect resolver acts on."""

    ACCEPT_ENCODING: str = "gzip,deflate"
    """Accept-Encoding sent when compression is enabled."""

    DEFAULT_ACCEPT: str = "*/*"

    USER_AGENT: str = "fetch-compat/0.1 (+python-requests)"
    """User-Agent sent when the caller does not supply one."""

    # ========================================================================
    # Streaming
    # ========================================================================

    CHUNK_SIZE: int = 8192
    """Bytes requested per read from the raw transport stream."""

    @classmethod
    def validate(cls) -> None:
        """
        Validate configuration at startup.

        Raises:
            AssertionError: If any constraint is violated.
        """
        assert cls.DEFAULT_FOLLOW >= 0, "DEFAULT_FOLLOW must be >= 0"

        assert cls.ALLOWED_PROTOCOLS, "ALLOWED_PROTOCOLS must not be empty"

        assert all(
            300 <= code <= 399 for code in cls.REDIRECT_STATUSES
        ), "REDIRECT_STATUSES must be 3xx codes"

        assert cls.CHUNK_SIZE > 0, "CHUNK_SIZE must be > 0"

        assert cls.USER_AGENT.strip(), "USER_AGENT must not be blank"


# Validate at module import time
FetchConfig.validate()
