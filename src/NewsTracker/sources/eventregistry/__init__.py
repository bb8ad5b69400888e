"""Event registry source: HTTP dispatcher, response decoding and paged iterators."""

from __future__ import annotations

from NewsTracker.sources.eventregistry.client import EventRegistryApiClient, RequestPacer
from NewsTracker.sources.eventregistry.iterator import (
    Batch,
    IteratorCursor,
    QueryArticlesIter,
    QueryEventArticlesIter,
    QueryEventsIter,
)

__all__ = [
    "Batch",
    "EventRegistryApiClient",
    "IteratorCursor",
    "QueryArticlesIter",
    "QueryEventArticlesIter",
    "QueryEventsIter",
    "RequestPacer",
]
