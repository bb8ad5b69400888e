"""Search configuration and query parsing (``search`` and ``queries`` sections).

A configured query is either flat::

    - NAME: ev-market
      TYPE: articles
      keywords:
        AND: [electric vehicle, battery]
      lang: [eng, deu]
      ignore_source_uri: example.com
      date_start: 2024-01-01

or explicit, with the compiled document under ``COMPLEX``::

    - NAME: explicit
      TYPE: events
      COMPLEX: '{"$query": {"$or": [{"conceptUri": "..."}, {"keyword": "..."}]}}'

Flat field names are the builder parameters. A plain list is combined by the
field default; ``{AND: [...]}`` / ``{OR: [...]}`` choose the combination.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Mapping

from NewsTracker.config.common import (
    expect_bool,
    expect_int,
    expect_mapping,
    expect_optional_str,
    expect_str,
    get_required_value,
    get_section,
)
from NewsTracker.core.coercion import QueryItems
from NewsTracker.core.errors import NewsTrackerError
from NewsTracker.core.query import QueryArticles, QueryEvents, QuerySpec

_RESERVED_KEYS = ("NAME", "TYPE", "COMPLEX")
_QUERY_TYPES: Mapping[str, type[QueryArticles] | type[QueryEvents]] = {
    "articles": QueryArticles,
    "events": QueryEvents,
}
_WRAPPERS = {"AND": QueryItems.AND, "OR": QueryItems.OR}


@dataclass(frozen=True, slots=True)
class SearchConfig:
    """Configured queries and iteration settings.

    Attributes:
        queries: Queries run by the ``search`` command, in order.
        max_items: Items to collect per query, -1 for all.
        batch_size: Items requested per page.
        sort_by: Sort field passed to the service, None for its default.
        sort_by_asc: Ascending sort when true.
        return_info: Opaque result-shape flags sent with every page request.
    """

    queries: tuple[QuerySpec, ...]
    max_items: int
    batch_size: int
    sort_by: str | None
    sort_by_asc: bool
    return_info: Mapping[str, Any] = field(default_factory=dict)


def load_search(raw: Mapping[str, Any]) -> SearchConfig:
    """Load the ``search`` section and the ``queries`` list.

    Raises:
        TypeError: If config types are invalid.
        ValueError: If required keys are missing or a query does not compile.
    """
    queries_obj = raw.get("queries")
    if queries_obj is None:
        raise ValueError("Missing required config: queries")
    if not isinstance(queries_obj, list):
        raise TypeError("queries must be a list")
    queries = tuple(parse_query_spec(item, f"queries[{idx}]") for idx, item in enumerate(queries_obj))

    section = get_section(raw, "search", required=True)
    return_info = section.get("return_info")
    return SearchConfig(
        queries=queries,
        max_items=expect_int(get_required_value(section, "max_items", "search.max_items"), "search.max_items"),
        batch_size=expect_int(get_required_value(section, "batch_size", "search.batch_size"), "search.batch_size"),
        sort_by=expect_optional_str(section.get("sort_by"), "search.sort_by"),
        sort_by_asc=expect_bool(section.get("sort_by_asc", False), "search.sort_by_asc"),
        return_info=expect_mapping(return_info, "search.return_info") if return_info is not None else {},
    )


def check_search(config: SearchConfig) -> None:
    """Validate search settings.

    Raises:
        ValueError: If values violate search constraints.
    """
    if not config.queries:
        raise ValueError("queries must include at least one query")
    if config.max_items == 0 or config.max_items < -1:
        raise ValueError("search.max_items must be -1 or positive")
    if config.batch_size <= 0:
        raise ValueError("search.batch_size must be positive")
    names = [q.name for q in config.queries if q.name]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise ValueError(f"queries has duplicate NAME values: {duplicates}")


def parse_query_spec(value: Any, config_key: str) -> QuerySpec:
    """Parse one query mapping into a `QuerySpec`.

    Args:
        value: Query mapping value.
        config_key: Full key path used in error messages.

    Returns:
        Query spec holding a ready builder.

    Raises:
        TypeError: If the query shape or a value type is invalid.
        ValueError: If the query type is unknown or the fields do not compile.
    """
    if not isinstance(value, Mapping):
        raise TypeError(f"{config_key} must be an object")

    name = None
    if "NAME" in value:
        name = expect_str(value["NAME"], f"{config_key}.NAME").strip() or None

    type_name = expect_str(value.get("TYPE", "articles"), f"{config_key}.TYPE").strip().lower()
    builder_cls = _QUERY_TYPES.get(type_name)
    if builder_cls is None:
        raise ValueError(f"{config_key}.TYPE must be one of {sorted(_QUERY_TYPES)}")

    params: dict[str, Any] = {}
    for key, item in value.items():
        if key in _RESERVED_KEYS:
            continue
        if not isinstance(key, str):
            raise TypeError(f"{config_key} field names must be strings")
        params[key] = _parse_field_value(item, f"{config_key}.{key}")

    complex_value = value.get("COMPLEX")
    if complex_value is not None and params:
        raise ValueError(f"{config_key}.COMPLEX cannot be combined with flat fields: {sorted(params)}")

    try:
        if complex_value is not None:
            if not isinstance(complex_value, (str, Mapping)):
                raise TypeError(f"{config_key}.COMPLEX must be JSON text or an object")
            builder = builder_cls.from_complex_query(complex_value)
        else:
            if not params:
                raise ValueError(f"{config_key} must include at least one field or COMPLEX")
            builder = builder_cls(**params)
    except NewsTrackerError as error:
        raise ValueError(f"{config_key}: {error}") from error
    except TypeError as error:
        if str(error).startswith(config_key):
            raise
        raise ValueError(f"{config_key}: {error}") from error
    return QuerySpec(name=name, builder=builder)


def _parse_field_value(value: Any, config_key: str) -> Any:
    """Convert a YAML field value into a builder argument."""
    if isinstance(value, Mapping):
        if len(value) != 1 or next(iter(value)) not in _WRAPPERS:
            raise ValueError(f"{config_key} must be a value, a list, or a single AND/OR list")
        op, items = next(iter(value.items()))
        if not isinstance(items, list) or not items:
            raise ValueError(f"{config_key}.{op} must be a non-empty list")
        return _WRAPPERS[op]([_expect_scalar(item, f"{config_key}.{op}[{idx}]") for idx, item in enumerate(items)])
    if isinstance(value, list):
        return [_expect_scalar(item, f"{config_key}[{idx}]") for idx, item in enumerate(value)]
    return _expect_scalar(value, config_key)


def _expect_scalar(value: Any, config_key: str) -> Any:
    if value is None or isinstance(value, (str, int, float, bool, date)):
        return value
    raise TypeError(f"{config_key} must be a string, number, boolean or date")
