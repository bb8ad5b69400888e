"""Error taxonomy shared by the query compiler, dispatcher and iterators."""

from __future__ import annotations

from typing import Any, Sequence


class NewsTrackerError(Exception):
    """Base class for all NewsTracker errors."""


class InvalidExpressionError(NewsTrackerError, ValueError):
    """A combinator or field value was constructed with an invalid shape."""


class MalformedQueryError(NewsTrackerError, ValueError):
    """An explicit query document or JSON text could not be parsed."""


class InvalidDateError(NewsTrackerError, ValueError):
    """A date field value does not describe a calendar date."""


class RetryableTransportError(NewsTrackerError):
    """A single request attempt failed in a way that may succeed on retry.

    Only raised and handled inside the dispatcher.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class FatalDispatchError(NewsTrackerError):
    """A request failed permanently.

    Attributes:
        attempts: Number of attempts made before giving up.
        status_code: Last HTTP status code when known.
    """

    def __init__(self, message: str, *, attempts: int, status_code: int | None = None) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.status_code = status_code


class IterationAbortedError(NewsTrackerError):
    """A page fetch failed during iteration.

    Attributes:
        page: 1-based page number that failed.
        partial_items: Items returned together with the failure, if any.
    """

    def __init__(self, message: str, *, page: int, partial_items: Sequence[Any] = ()) -> None:
        super().__init__(message)
        self.page = page
        self.partial_items = tuple(partial_items)
