"""Exception hierarchy for the Match Tracker."""
from __future__ import annotations


class TrackerError(Exception):
    """Base class for expected, retryable I/O failures."""


class ProviderError(TrackerError):
    """The fixture provider could not be reached or returned an unreadable payload."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class StoreError(TrackerError):
    """A fixture store read or write failed."""
