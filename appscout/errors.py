"""
Exceptions raised outside the extraction engine.

The engine itself never raises; these cover the fetch layer, URL builders
and tool argument validation.
"""

from typing import Optional


class AppScoutError(Exception):
    """Base class for appscout errors."""


class FetchError(AppScoutError):
    """A document could not be fetched after all attempts."""

    def __init__(self, url: str, status: Optional[int] = None, reason: str = ""):
        self.url = url
        self.status = status
        self.reason = reason
        detail = f"HTTP {status}" if status is not None else (reason or "request failed")
        if status is not None and reason:
            detail = f"{detail} ({reason})"
        super().__init__(f"Failed to fetch {url}: {detail}")


class InvalidArgumentError(AppScoutError, ValueError):
    """A required tool argument is missing or malformed."""
