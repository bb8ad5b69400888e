from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional, Sequence


@dataclass(frozen=True, slots=True)
class ResultSection:
    """One named result section of a service response.

    Attributes:
        name: Result type name (e.g. "articles", "conceptAggr").
        results: Items of the section; empty for aggregates without a list.
        total_results: Total number of matches reported by the service.
        page: 1-based page of this listing, when paged.
        pages: Total number of pages reported by the service.
        count: Page size used by the service.
        error: Section-level error message reported by the service.
        raw: The undecoded section mapping.
    """

    name: str
    results: Sequence[Mapping[str, Any]] = ()
    total_results: Optional[int] = None
    page: Optional[int] = None
    pages: Optional[int] = None
    count: Optional[int] = None
    error: Optional[str] = None
    raw: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "results", tuple(self.results))
        object.__setattr__(self, "raw", MappingProxyType(dict(self.raw)))


@dataclass(frozen=True, slots=True)
class QueryResponse:
    """Decoded response of one dispatched request.

    Attributes:
        sections: Result sections keyed by result type name.
        raw: The full decoded JSON body.
    """

    sections: Mapping[str, ResultSection]
    raw: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "sections", MappingProxyType(dict(self.sections)))

    def section(self, name: str) -> ResultSection | None:
        """Return a section by name, or None when the service omitted it."""
        return self.sections.get(name)
