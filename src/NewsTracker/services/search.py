"""Search service running configured queries through the paged iterators."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol, Sequence

from NewsTracker.core.errors import IterationAbortedError
from NewsTracker.core.models import QueryResponse
from NewsTracker.core.query import QueryArticles, QuerySpec
from NewsTracker.core.results import RequestedResult
from NewsTracker.sources.eventregistry.iterator import QueryArticlesIter, QueryEventsIter
from NewsTracker.utils.log import log


class SearchClient(Protocol):
    """What the service needs from the API client."""

    def exec_query(self, query: Any, *, results: Sequence[RequestedResult] | None = None) -> QueryResponse:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class SearchOutcome:
    """Collected results of one query.

    Attributes:
        query: The query that was run.
        items: Items collected before iteration stopped.
        pages: Number of pages fetched, including a failed one.
        total_results: Total matches reported by the service.
        error: Page failure that ended the iteration early, if any.
    """

    query: QuerySpec
    items: tuple[Mapping[str, Any], ...]
    pages: int
    total_results: int | None = None
    error: IterationAbortedError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class NewsSearchService:
    """Application service that runs article and event queries."""

    client: SearchClient
    max_items: int = -1
    batch_size: int = 100
    sort_by: str | None = "rel"
    sort_by_asc: bool = False
    return_info: Mapping[str, Any] = field(default_factory=dict)

    def run(self, spec: QuerySpec) -> SearchOutcome:
        """Collect the items of one query.

        A page failure does not raise: the items gathered so far are returned
        together with the error.

        Args:
            spec: Query to run.

        Returns:
            Collected items and paging summary.
        """
        iterator_cls = QueryArticlesIter if isinstance(spec.builder, QueryArticles) else QueryEventsIter
        iterator = iterator_cls(
            self.client,
            spec.builder,
            sort_by=self.sort_by,
            sort_by_asc=self.sort_by_asc,
            return_info=self.return_info or None,
            batch_size=self.batch_size,
            max_items=self.max_items,
        )

        items: list[Mapping[str, Any]] = []
        pages = 0
        total: int | None = None
        error: IterationAbortedError | None = None
        for batch in iterator.iter_batches():
            pages += 1
            total = batch.total_results if batch.total_results is not None else total
            items.extend(batch.items)
            log.debug("Query %s page=%d items=%d", spec.name or "unnamed", batch.page, len(batch.items))
            if batch.error is not None:
                error = batch.error

        if error is not None:
            log.warning("Query %s stopped early: %s (kept %d items)", spec.name or "unnamed", error, len(items))
        else:
            log.info("Query %s completed: %d items from %d pages (total=%s)", spec.name or "unnamed", len(items), pages, total)
        return SearchOutcome(query=spec, items=tuple(items), pages=pages, total_results=total, error=error)

    def close(self) -> None:
        """Close the API client."""
        try:
            self.client.close()
        except Exception as error:  # noqa: BLE001 - close failure must be isolated
            log.warning("Search client close failed: %s", error)
