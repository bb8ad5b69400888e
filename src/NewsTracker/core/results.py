"""Requested result sections.

A single request can ask the service for several named result sections at
once (for example the article list and a concept aggregate). Each section is
described by a `RequestedResult` that contributes its own prefixed
parameters to the request body. `return_info` is an opaque mapping of flags
that is merged into the body as given.
"""

from __future__ import annotations

import copy
import dataclasses
from dataclasses import dataclass
from typing import Any, ClassVar, Final, Mapping

MAX_BATCH_SIZE: Final = 200
MAX_URI_LIST_SIZE: Final = 50000


@dataclass(frozen=True, slots=True)
class RequestedResult:
    """Base class for one requested result section.

    Attributes:
        return_info: Opaque result-shape flags passed through unchanged.
    """

    return_info: Mapping[str, Any] | None = None

    result_type: ClassVar[str] = ""
    target: ClassVar[str] = ""

    def params(self) -> dict[str, Any]:
        """Return the request body parameters for this section."""
        out = self._own_params()
        if self.return_info:
            out.update(copy.deepcopy(dict(self.return_info)))
        return out

    def _own_params(self) -> dict[str, Any]:
        return {}


@dataclass(frozen=True, slots=True)
class ListingResult(RequestedResult):
    """Paged listing section (``<type>Page``, ``<type>Count``, sorting)."""

    page: int = 1
    count: int = 100
    sort_by: str | None = "date"
    sort_by_asc: bool = False

    max_count: ClassVar[int] = MAX_BATCH_SIZE

    def __post_init__(self) -> None:
        if isinstance(self.page, bool) or not isinstance(self.page, int) or self.page < 1:
            raise ValueError(f"{self.result_type} page must be a positive integer")
        if isinstance(self.count, bool) or not isinstance(self.count, int):
            raise ValueError(f"{self.result_type} count must be an integer")
        if not 1 <= self.count <= self.max_count:
            raise ValueError(f"{self.result_type} count must be between 1 and {self.max_count}")

    def _own_params(self) -> dict[str, Any]:
        prefix = self.result_type
        out: dict[str, Any] = {
            f"{prefix}Page": self.page,
            f"{prefix}Count": self.count,
            f"{prefix}SortByAsc": self.sort_by_asc,
        }
        if self.sort_by:
            out[f"{prefix}SortBy"] = self.sort_by
        return out

    def with_page(self, page: int, count: int | None = None) -> ListingResult:
        """Return a copy positioned on another page."""
        return dataclasses.replace(self, page=page, count=self.count if count is None else count)


@dataclass(frozen=True, slots=True)
class RequestArticlesInfo(ListingResult):
    result_type: ClassVar[str] = "articles"
    target: ClassVar[str] = "articles"


@dataclass(frozen=True, slots=True)
class RequestArticlesUriWgtList(ListingResult):
    count: int = 50000
    sort_by: str | None = "fq"

    result_type: ClassVar[str] = "uriWgtList"
    target: ClassVar[str] = "articles"
    max_count: ClassVar[int] = MAX_URI_LIST_SIZE


@dataclass(frozen=True, slots=True)
class RequestArticlesConceptAggr(RequestedResult):
    concept_count: int = 25

    result_type: ClassVar[str] = "conceptAggr"
    target: ClassVar[str] = "articles"

    def _own_params(self) -> dict[str, Any]:
        return {"conceptAggrConceptCount": self.concept_count}


@dataclass(frozen=True, slots=True)
class RequestArticlesCategoryAggr(RequestedResult):
    result_type: ClassVar[str] = "categoryAggr"
    target: ClassVar[str] = "articles"


@dataclass(frozen=True, slots=True)
class RequestArticlesSourceAggr(RequestedResult):
    source_count: int = 50

    result_type: ClassVar[str] = "sourceAggr"
    target: ClassVar[str] = "articles"

    def _own_params(self) -> dict[str, Any]:
        return {"sourceAggrSourceCount": self.source_count}


@dataclass(frozen=True, slots=True)
class RequestArticlesKeywordAggr(RequestedResult):
    sample_size: int = 500

    result_type: ClassVar[str] = "keywordAggr"
    target: ClassVar[str] = "articles"

    def _own_params(self) -> dict[str, Any]:
        return {"keywordAggrSampleSize": self.sample_size}


@dataclass(frozen=True, slots=True)
class RequestEventsInfo(ListingResult):
    result_type: ClassVar[str] = "events"
    target: ClassVar[str] = "events"


@dataclass(frozen=True, slots=True)
class RequestEventsUriWgtList(ListingResult):
    count: int = 50000
    sort_by: str | None = "rel"

    result_type: ClassVar[str] = "uriWgtList"
    target: ClassVar[str] = "events"
    max_count: ClassVar[int] = MAX_URI_LIST_SIZE


@dataclass(frozen=True, slots=True)
class RequestEventsConceptAggr(RequestedResult):
    concept_count: int = 20

    result_type: ClassVar[str] = "conceptAggr"
    target: ClassVar[str] = "events"

    def _own_params(self) -> dict[str, Any]:
        return {"conceptAggrConceptCount": self.concept_count}


@dataclass(frozen=True, slots=True)
class RequestEventsConceptTrends(RequestedResult):
    concept_count: int = 10

    result_type: ClassVar[str] = "conceptTrends"
    target: ClassVar[str] = "events"

    def _own_params(self) -> dict[str, Any]:
        return {"conceptTrendsConceptCount": self.concept_count}


@dataclass(frozen=True, slots=True)
class RequestEventsCategoryAggr(RequestedResult):
    result_type: ClassVar[str] = "categoryAggr"
    target: ClassVar[str] = "events"


@dataclass(frozen=True, slots=True)
class RequestEventArticles(ListingResult):
    """Articles reported about a single event."""

    sort_by: str | None = "cosSim"
    lang: tuple[str, ...] = ()

    result_type: ClassVar[str] = "articles"
    target: ClassVar[str] = "event"

    def _own_params(self) -> dict[str, Any]:
        out = ListingResult._own_params(self)
        if self.lang:
            out["articlesLang"] = list(self.lang)
        return out
