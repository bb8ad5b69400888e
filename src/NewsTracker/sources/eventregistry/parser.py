"""Decode service response bodies into `QueryResponse` objects."""

from __future__ import annotations

from typing import Any, Mapping

from NewsTracker.core.models import QueryResponse, ResultSection


def decode_response(sections: Mapping[str, Any], body: Mapping[str, Any]) -> QueryResponse:
    """Decode every result section of a response.

    Args:
        sections: Mapping holding the sections (the body itself, or the entry
            of a looked-up URI for single-item queries).
        body: The full decoded body, kept as `raw`.

    Returns:
        Response with sections keyed by result type name.
    """
    decoded: dict[str, ResultSection] = {}
    for name, value in sections.items():
        if isinstance(value, Mapping):
            decoded[name] = decode_section(name, value)
    return QueryResponse(sections=decoded, raw=body)


def decode_section(name: str, data: Mapping[str, Any]) -> ResultSection:
    """Decode one result section, tolerating missing paging metadata."""
    results = data.get("results")
    items = [item for item in results if isinstance(item, Mapping)] if isinstance(results, list) else []
    error = data.get("error")
    return ResultSection(
        name=name,
        results=items,
        total_results=_as_int(data.get("totalResults")),
        page=_as_int(data.get("page")),
        pages=_as_int(data.get("pages")),
        count=_as_int(data.get("count")),
        error=str(error) if error else None,
        raw=data,
    )


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None
