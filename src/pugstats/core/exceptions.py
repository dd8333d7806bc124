"""
Domain errors raised by the stats engine and cache layer.

The API layer maps these onto HTTP error envelopes (see api/errors.py);
the CLI reports them and exits non-zero.
"""

from typing import Any


class PugStatsError(Exception):
    """Base exception for pugstats errors."""

    def __init__(self, message: str, code: str = "INTERNAL_ERROR"):
        super().__init__(message)
        self.message = message
        self.code = code


class NotFoundError(PugStatsError):
    """A player (or player page) identifier did not resolve."""

    def __init__(self, resource: str, identifier: Any):
        super().__init__(f"{resource} {identifier!r} not found", code="NOT_FOUND")
        self.resource = resource
        self.identifier = identifier


class DataSourceUnavailableError(PugStatsError):
    """The backing store failed; callers decide whether to retry."""

    def __init__(self, message: str):
        super().__init__(message, code="DATA_SOURCE_UNAVAILABLE")


class CacheUnavailableError(PugStatsError):
    """A cache write or delete failed."""

    def __init__(self, message: str):
        super().__init__(message, code="CACHE_UNAVAILABLE")


class MalformedCacheEntryError(PugStatsError):
    """A cached blob could not be decoded. Never escapes the cache layer."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Malformed cache entry {key!r}: {reason}", code="MALFORMED_CACHE_ENTRY")
        self.key = key
