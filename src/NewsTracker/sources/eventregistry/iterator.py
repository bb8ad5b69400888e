"""Paged iteration over search results.

Each iterator turns a paged listing into a lazy sequence of batches. Pages are
fetched strictly in order starting at page 1; iteration stops when the
service-reported total is consumed, a page comes back empty, the reported
page count is exhausted, or `max_items` is reached. A failed page is reported
as a batch carrying an `IterationAbortedError` and ends the iteration.

Every call to `iter_batches`, `__iter__` or `execute` starts over from page 1.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any, Mapping, Protocol, Sequence

from NewsTracker.core.errors import FatalDispatchError, IterationAbortedError
from NewsTracker.core.models import QueryResponse
from NewsTracker.core.query import (
    ComplexArticleQuery,
    ComplexEventQuery,
    QueryArticles,
    QueryEvent,
    QueryEvents,
)
from NewsTracker.core.results import (
    MAX_BATCH_SIZE,
    ListingResult,
    RequestArticlesInfo,
    RequestedResult,
    RequestEventArticles,
    RequestEventsInfo,
)

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100
UNLIMITED = -1


class QueryDispatcher(Protocol):
    def exec_query(self, query: Any, *, results: Sequence[RequestedResult] | None = None) -> QueryResponse: ...


@dataclass(slots=True)
class IteratorCursor:
    """Progress of one pass over a paged listing.

    Attributes:
        page: Next page to request (1-based).
        consumed: Items handed to the caller so far.
        total: Total matches reported by the first page.
        pages: Page count reported by the first page.
        done: Whether the pass has finished.
    """

    page: int = 1
    consumed: int = 0
    total: int | None = None
    pages: int | None = None
    done: bool = False


@dataclass(frozen=True, slots=True)
class Batch:
    """Items of one fetched page.

    Attributes:
        items: Items of the page, truncated to the remaining `max_items`.
        page: Page number the items came from.
        total_results: Total matches reported by the service, when known.
        error: Set when the page failed; `items` then holds partial results.
    """

    items: tuple[Mapping[str, Any], ...]
    page: int
    total_results: int | None = None
    error: IterationAbortedError | None = None


class _PagedIterator:
    """Shared paging loop of the concrete iterators."""

    def __init__(
        self,
        client: QueryDispatcher,
        query: Any,
        listing: ListingResult,
        *,
        max_items: int = UNLIMITED,
    ) -> None:
        if isinstance(max_items, bool) or not isinstance(max_items, int) or max_items < UNLIMITED:
            raise ValueError("max_items must be -1 (unlimited) or a non-negative integer")
        self._client = client
        self._query = query
        self._listing = listing
        self.max_items = max_items
        self.last_error: IterationAbortedError | None = None

    @property
    def query(self) -> Any:
        return self._query

    @property
    def batch_size(self) -> int:
        return self._listing.count

    def count(self) -> int:
        """Return the total number of matches reported by the service.

        Raises:
            FatalDispatchError: When the request fails.
        """
        request = self._listing.with_page(1, count=1)
        response = self._client.exec_query(self._query, results=[request])
        section = response.section(request.result_type)
        if section is None or section.total_results is None:
            return 0
        return section.total_results

    def iter_batches(self) -> Iterator[Batch]:
        """Yield one `Batch` per fetched page, starting at page 1."""
        cursor = IteratorCursor()
        while not cursor.done:
            if self._cap_reached(cursor):
                break
            request = self._listing.with_page(cursor.page)
            try:
                response = self._client.exec_query(self._query, results=[request])
            except FatalDispatchError as error:
                logger.warning("Page %d failed: %s", cursor.page, error)
                yield Batch((), cursor.page, cursor.total, _aborted(f"Page {cursor.page} failed: {error}", cursor.page, (), error))
                return

            section = response.section(request.result_type)
            if section is None:
                logger.warning("Page %d response has no %s section", cursor.page, request.result_type)
                yield Batch((), cursor.page, cursor.total, _aborted(
                    f"Page {cursor.page} response has no {request.result_type} section", cursor.page, ()
                ))
                return

            if cursor.total is None:
                cursor.total = section.total_results
                cursor.pages = section.pages
                logger.debug("Listing reports total=%s pages=%s", cursor.total, cursor.pages)

            items = self._truncate(list(section.results), cursor)
            if section.error:
                logger.warning("Page %d returned an error: %s", cursor.page, section.error)
                yield Batch(tuple(items), cursor.page, cursor.total, _aborted(
                    f"Page {cursor.page} returned an error: {section.error}", cursor.page, items
                ))
                return
            if not items:
                logger.debug("Page %d is empty; stop", cursor.page)
                break

            cursor.consumed += len(items)
            yield Batch(tuple(items), cursor.page, cursor.total)

            cursor.page += 1
            if cursor.total is not None and cursor.consumed >= cursor.total:
                cursor.done = True
            elif cursor.pages is not None and cursor.page > cursor.pages:
                cursor.done = True

        logger.debug("Iteration finished after %d items", cursor.consumed)

    def __iter__(self) -> Iterator[Mapping[str, Any]]:
        """Yield items lazily; a failed page is recorded in `last_error`."""
        self.last_error = None
        for batch in self.iter_batches():
            yield from batch.items
            if batch.error is not None:
                self.last_error = batch.error

    def execute(
        self,
        on_batch: Callable[[list[Mapping[str, Any]], IterationAbortedError | None], None],
        on_complete: Callable[[], None] | None = None,
    ) -> None:
        """Drive the iteration through callbacks.

        Args:
            on_batch: Called with each page's items and its error (None on success).
            on_complete: Called once after the last batch, including after a failure.
        """
        for batch in self.iter_batches():
            on_batch(list(batch.items), batch.error)
        if on_complete is not None:
            on_complete()

    def _cap_reached(self, cursor: IteratorCursor) -> bool:
        return self.max_items != UNLIMITED and cursor.consumed >= self.max_items

    def _truncate(self, items: list[Mapping[str, Any]], cursor: IteratorCursor) -> list[Mapping[str, Any]]:
        if self.max_items == UNLIMITED:
            return items
        return items[: max(self.max_items - cursor.consumed, 0)]


class QueryArticlesIter(_PagedIterator):
    """Iterate over all articles matching an article query.

    Example:
        >>> it = QueryArticlesIter(client, QueryArticles(keywords="Tesla"), max_items=300)
        >>> for article in it:
        ...     print(article["uri"])
    """

    def __init__(
        self,
        client: QueryDispatcher,
        query: QueryArticles,
        *,
        sort_by: str | None = "rel",
        sort_by_asc: bool = False,
        return_info: Mapping[str, Any] | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_items: int = UNLIMITED,
    ) -> None:
        if not isinstance(query, QueryArticles):
            raise TypeError(f"QueryArticlesIter expects QueryArticles, got {type(query).__name__}")
        listing = RequestArticlesInfo(
            return_info=return_info,
            count=_clamp_batch_size(batch_size),
            sort_by=sort_by,
            sort_by_asc=sort_by_asc,
        )
        super().__init__(client, query, listing, max_items=max_items)

    @classmethod
    def init_with_complex_query(
        cls,
        client: QueryDispatcher,
        query: ComplexArticleQuery | Any,
        **kwargs: Any,
    ) -> QueryArticlesIter:
        """Create an iterator over an explicit query (tree, JSON text or `ComplexArticleQuery`)."""
        return cls(client, QueryArticles.from_complex_query(query), **kwargs)


class QueryEventsIter(_PagedIterator):
    """Iterate over all events matching an event query."""

    def __init__(
        self,
        client: QueryDispatcher,
        query: QueryEvents,
        *,
        sort_by: str | None = "rel",
        sort_by_asc: bool = False,
        return_info: Mapping[str, Any] | None = None,
        batch_size: int = 50,
        max_items: int = UNLIMITED,
    ) -> None:
        if not isinstance(query, QueryEvents):
            raise TypeError(f"QueryEventsIter expects QueryEvents, got {type(query).__name__}")
        listing = RequestEventsInfo(
            return_info=return_info,
            count=_clamp_batch_size(batch_size),
            sort_by=sort_by,
            sort_by_asc=sort_by_asc,
        )
        super().__init__(client, query, listing, max_items=max_items)

    @classmethod
    def init_with_complex_query(
        cls,
        client: QueryDispatcher,
        query: ComplexEventQuery | Any,
        **kwargs: Any,
    ) -> QueryEventsIter:
        return cls(client, QueryEvents.from_complex_query(query), **kwargs)


class QueryEventArticlesIter(_PagedIterator):
    """Iterate over the articles reported about one event."""

    def __init__(
        self,
        client: QueryDispatcher,
        event_uri: str,
        *,
        lang: Sequence[str] | str | None = None,
        sort_by: str | None = "cosSim",
        sort_by_asc: bool = False,
        return_info: Mapping[str, Any] | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_items: int = UNLIMITED,
    ) -> None:
        langs: tuple[str, ...]
        if lang is None:
            langs = ()
        elif isinstance(lang, str):
            langs = (lang,)
        else:
            langs = tuple(lang)
        listing = RequestEventArticles(
            return_info=return_info,
            count=_clamp_batch_size(batch_size),
            sort_by=sort_by,
            sort_by_asc=sort_by_asc,
            lang=langs,
        )
        super().__init__(client, QueryEvent(event_uri, requested_result=listing), listing, max_items=max_items)


def _clamp_batch_size(batch_size: int) -> int:
    if isinstance(batch_size, bool) or not isinstance(batch_size, int) or batch_size < 1:
        raise ValueError("batch_size must be a positive integer")
    if batch_size > MAX_BATCH_SIZE:
        logger.warning("batch_size %d exceeds the service maximum; using %d", batch_size, MAX_BATCH_SIZE)
        return MAX_BATCH_SIZE
    return batch_size


def _aborted(
    message: str,
    page: int,
    items: Sequence[Mapping[str, Any]],
    cause: BaseException | None = None,
) -> IterationAbortedError:
    error = IterationAbortedError(message, page=page, partial_items=items)
    error.__cause__ = cause
    return error
