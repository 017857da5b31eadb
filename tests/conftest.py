"""
Shared pytest fixtures and configuration for fetch-compat tests.
"""

import gzip
import zlib

import pytest


PLAIN_TEXT = b"hello world, hello fetch"


# ============================================================================
# Fixtures: Encoded Payloads
# ============================================================================

@pytest.fixture
def plain_text() -> bytes:
    """Uncompressed reference payload."""
    return PLAIN_TEXT


@pytest.fixture
def gzip_payload() -> bytes:
    """PLAIN_TEXT gzip-compressed."""
    return gzip.compress(PLAIN_TEXT)


@pytest.fixture
def zlib_payload() -> bytes:
    """PLAIN_TEXT deflate-compressed with the 2-byte zlib header (0x78 0x9c)."""
    return zlib.compress(PLAIN_TEXT)


@pytest.fixture
def raw_deflate_payload() -> bytes:
    """PLAIN_TEXT deflate-compressed without any zlib header."""
    compressor = zlib.compressobj(wbits=-zlib.MAX_WBITS)
    return compressor.compress(PLAIN_TEXT) + compressor.flush()


# ============================================================================
# Fixtures: Helpers
# ============================================================================

@pytest.fixture
def chunked():
    """Split a payload into fixed-size chunks (simulates socket reads)."""

    def _split(payload: bytes, size: int = 4) -> list[bytes]:
        return [payload[index : index + size] for index in range(0, len(payload), size)]

    return _split
