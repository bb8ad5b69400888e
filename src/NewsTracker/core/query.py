"""Query builders.

Two ways to describe a search compile to the same document shape:

- flat builders (`QueryArticles`, `QueryEvents`) take one keyword argument
  per field plus an ``ignore_<field>`` counterpart, and compile them to
  ``AND(positive..., NOT(OR(ignored...)))``
- explicit builders (`ComplexArticleQuery`, `ComplexEventQuery`) take a
  ready combinator tree or its JSON text

Both expose `compile()` (the compiled document) and the flat builders add
`build_payload()` (the request body sent by the client).
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar, Final, Mapping, Sequence

from NewsTracker.core.coercion import coerce_field
from NewsTracker.core.combinators import And, Node, Not, Or
from NewsTracker.core.conditions import CombineMode, all_fields
from NewsTracker.core.document import parse_filters, parse_query, serialize_query
from NewsTracker.core.errors import InvalidExpressionError, MalformedQueryError
from NewsTracker.core.results import RequestArticlesInfo, RequestEventArticles, RequestedResult, RequestEventsInfo

ARTICLE_FILTER_PARAMS: Final[Mapping[str, str]] = {
    "is_duplicate_filter": "isDuplicate",
    "has_duplicate_filter": "hasDuplicate",
    "event_filter": "hasEvent",
}

_POSITIVE_MODIFIERS: Final[Mapping[str, str]] = {
    "keywords_loc": "keywordLoc",
    "category_include_sub": "categoryIncludeSub",
}
_IGNORE_MODIFIERS: Final[Mapping[str, str]] = {
    "ignore_keywords_loc": "keywordLoc",
    "ignore_category_include_sub": "categoryIncludeSub",
}


def compile_flat_fields(
    params: Mapping[str, Any],
    *,
    allow_ignore: bool = True,
    allow_event_fields: bool = True,
) -> Node | None:
    """Compile flat field parameters into a combinator tree.

    Args:
        params: Keyword parameters (field names, ``ignore_*`` names, modifiers).
        allow_ignore: Whether ``ignore_*`` parameters are accepted.
        allow_event_fields: Whether event-only fields are accepted.

    Returns:
        ``AND(positive..., NOT(...))`` or None when no field is populated.

    Raises:
        TypeError: For unknown parameter names.
        InvalidExpressionError: For invalid values.
        InvalidDateError: For unparseable dates.
    """
    _check_param_names(params, allow_ignore=allow_ignore, allow_event_fields=allow_event_fields)

    positive_mods = _modifiers(params, _POSITIVE_MODIFIERS)
    ignore_mods = _modifiers(params, _IGNORE_MODIFIERS)

    positives: list[Node] = []
    ignored: list[Node] = []
    for field in all_fields():
        node = coerce_field(
            field,
            params.get(field.param),
            modifiers=_for_field(field.modifier, positive_mods),
        )
        if node is not None:
            positives.append(node)
        if field.multi:
            ignore_node = coerce_field(
                field,
                params.get(f"ignore_{field.param}"),
                default_mode=CombineMode.ANY,
                modifiers=_for_field(field.modifier, ignore_mods),
            )
            if ignore_node is not None:
                ignored.append(ignore_node)

    branches = list(positives)
    if len(ignored) == 1:
        branches.append(Not(ignored[0]))
    elif ignored:
        branches.append(Not(Or(tuple(ignored))))
    if not branches:
        return None
    return And(tuple(branches))


def base_query(*, exclude: Node | None = None, **fields: Any) -> Node:
    """Build a positive-only subtree from flat fields.

    Args:
        exclude: Optional subtree whose matches are removed.
        **fields: Field parameters (no ``ignore_*``).

    Raises:
        InvalidExpressionError: If no field is populated.
    """
    root = compile_flat_fields(fields, allow_ignore=False)
    if root is None:
        raise InvalidExpressionError("base_query requires at least one field")
    if exclude is None:
        return root
    return And((root, Not(exclude)))


class _ExplicitQuery:
    """Shared state of the explicit builders."""

    allow_filters: ClassVar[bool] = False

    def __init__(self, query: Node | str | Mapping[str, Any], filters: Mapping[str, str] | None = None) -> None:
        if isinstance(query, Node):
            self._root = query
            parsed_filters: dict[str, str] = {}
        else:
            parsed = parse_query(query)
            self._root = parsed.root
            parsed_filters = dict(parsed.filters)
        parsed_filters.update(filters or {})
        if parsed_filters and not self.allow_filters:
            raise MalformedQueryError(f"{type(self).__name__} does not support $filter")
        self._filters = parse_filters(parsed_filters)

    @property
    def root(self) -> Node:
        return self._root

    @property
    def filters(self) -> Mapping[str, str]:
        return dict(self._filters)

    def compile(self) -> dict[str, Any]:
        """Return the compiled document."""
        return serialize_query(self._root, self._filters)


class ComplexArticleQuery(_ExplicitQuery):
    """Explicit article query from a tree or its JSON form.

    Args:
        query: Combinator tree, JSON text or mapping with ``$query``.
        is_duplicate_filter: ``skipDuplicates`` / ``keepOnlyDuplicates`` / ``keepAll``.
        has_duplicate_filter: ``skipHasDuplicates`` / ``keepOnlyHasDuplicates`` / ``keepAll``.
        event_filter: ``skipArticlesWithoutEvent`` / ``keepOnlyArticlesWithoutEvent`` / ``keepAll``.
    """

    allow_filters: ClassVar[bool] = True

    def __init__(
        self,
        query: Node | str | Mapping[str, Any],
        *,
        is_duplicate_filter: str | None = None,
        has_duplicate_filter: str | None = None,
        event_filter: str | None = None,
    ) -> None:
        filters = _article_filters(
            {
                "is_duplicate_filter": is_duplicate_filter,
                "has_duplicate_filter": has_duplicate_filter,
                "event_filter": event_filter,
            }
        )
        super().__init__(query, filters)


class ComplexEventQuery(_ExplicitQuery):
    """Explicit event query from a tree or its JSON form."""


class _FlatQuery(ABC):
    """Shared behavior of the flat builders."""

    path: ClassVar[str] = ""
    kind: ClassVar[str] = ""
    explicit_type: ClassVar[type[_ExplicitQuery]] = _ExplicitQuery
    allow_event_fields: ClassVar[bool] = True
    allow_filters: ClassVar[bool] = False

    def __init__(self, *, requested_result: RequestedResult | None = None, **params: Any) -> None:
        filter_params = {name: params.pop(name) for name in list(params) if name in ARTICLE_FILTER_PARAMS}
        if filter_params and not self.allow_filters:
            raise TypeError(f"{type(self).__name__} got unexpected parameters: {sorted(filter_params)}")
        self._filters = _article_filters(filter_params)
        self._root = compile_flat_fields(params, allow_event_fields=self.allow_event_fields)
        self._requested: list[RequestedResult] = []
        self.set_requested_result(requested_result or self._default_result())

    @classmethod
    def from_complex_query(cls, query: _ExplicitQuery | Node | str | Mapping[str, Any]) -> _FlatQuery:
        """Create a builder whose state is the given explicit query."""
        return cls().init_with_complex_query(query)

    def init_with_complex_query(self, query: _ExplicitQuery | Node | str | Mapping[str, Any]) -> _FlatQuery:
        """Replace the builder state with an explicit query.

        Previously set flat fields and filters are discarded.

        Returns:
            This builder, for chaining.
        """
        explicit = query if isinstance(query, _ExplicitQuery) else self.explicit_type(query)
        if not isinstance(explicit, self.explicit_type):
            raise TypeError(f"{type(self).__name__} expects {self.explicit_type.__name__}")
        self._root = explicit.root
        self._filters = dict(explicit.filters)
        return self

    @property
    def root(self) -> Node | None:
        return self._root

    @property
    def requested_results(self) -> tuple[RequestedResult, ...]:
        return tuple(self._requested)

    def set_requested_result(self, result: RequestedResult) -> None:
        """Replace all requested sections with `result`."""
        self._check_result(result)
        self._requested = [result]

    def add_requested_result(self, result: RequestedResult) -> None:
        """Request an additional result section."""
        self._check_result(result)
        if any(r.result_type == result.result_type for r in self._requested):
            raise ValueError(f"Result section already requested: {result.result_type}")
        self._requested.append(result)

    def compile(self) -> dict[str, Any]:
        """Return the compiled document."""
        return serialize_query(self._root, self._filters)

    def build_payload(self, results: Sequence[RequestedResult] | None = None) -> dict[str, Any]:
        """Return the request body.

        Args:
            results: Sections to request instead of the configured ones.
        """
        return build_result_payload({"query": json.dumps(self.compile())}, results or self._requested)

    def extract_sections(self, body: Mapping[str, Any]) -> Mapping[str, Any]:
        """Return the mapping that holds the result sections of a response body."""
        return body

    @abstractmethod
    def _default_result(self) -> RequestedResult:
        """Return the listing section requested when none is configured."""

    def _check_result(self, result: RequestedResult) -> None:
        if not isinstance(result, RequestedResult):
            raise TypeError(f"Expected a RequestedResult, got {type(result).__name__}")
        if result.target != self.kind:
            raise ValueError(f"{type(result).__name__} cannot be requested from {type(self).__name__}")


class QueryArticles(_FlatQuery):
    """Flat article search.

    Example:
        >>> q = QueryArticles(keywords="obama", ignore_lang=["eng", "deu"])
        >>> q.compile()["$query"]["$and"][1]
        {'$not': {'$or': [{'lang': 'eng'}, {'lang': 'deu'}]}}
    """

    path: ClassVar[str] = "/api/v1/article/getArticles"
    kind: ClassVar[str] = "articles"
    explicit_type: ClassVar[type[_ExplicitQuery]] = ComplexArticleQuery
    allow_event_fields: ClassVar[bool] = False
    allow_filters: ClassVar[bool] = True

    def _default_result(self) -> RequestedResult:
        return RequestArticlesInfo()


class QueryEvents(_FlatQuery):
    """Flat event search."""

    path: ClassVar[str] = "/api/v1/event/getEvents"
    kind: ClassVar[str] = "events"
    explicit_type: ClassVar[type[_ExplicitQuery]] = ComplexEventQuery

    def _default_result(self) -> RequestedResult:
        return RequestEventsInfo()


class QueryEvent:
    """Lookup of a single event by URI, used to list the event's articles."""

    path: ClassVar[str] = "/api/v1/event/getEvent"
    kind: ClassVar[str] = "event"

    def __init__(self, event_uri: str, *, requested_result: RequestedResult | None = None) -> None:
        if not isinstance(event_uri, str) or not event_uri.strip():
            raise ValueError("event_uri must be a non-empty string")
        self.event_uri = event_uri.strip()
        result = requested_result or RequestEventArticles()
        if result.target != self.kind:
            raise ValueError(f"{type(result).__name__} cannot be requested from QueryEvent")
        self._requested = [result]

    @property
    def requested_results(self) -> tuple[RequestedResult, ...]:
        return tuple(self._requested)

    def build_payload(self, results: Sequence[RequestedResult] | None = None) -> dict[str, Any]:
        return build_result_payload({"eventUri": self.event_uri}, results or self._requested)

    def extract_sections(self, body: Mapping[str, Any]) -> Mapping[str, Any]:
        section = body.get(self.event_uri)
        return section if isinstance(section, Mapping) else {}


def build_result_payload(base: Mapping[str, Any], results: Sequence[RequestedResult]) -> dict[str, Any]:
    """Merge requested sections into a request body."""
    if not results:
        raise ValueError("At least one result section must be requested")
    payload = dict(base)
    types = [r.result_type for r in results]
    payload["resultType"] = types[0] if len(types) == 1 else types
    for result in results:
        payload.update(result.params())
    return payload


def _check_param_names(params: Mapping[str, Any], *, allow_ignore: bool, allow_event_fields: bool) -> None:
    allowed: set[str] = set(_POSITIVE_MODIFIERS)
    if allow_ignore:
        allowed.update(_IGNORE_MODIFIERS)
    for field in all_fields():
        if field.events_only and not allow_event_fields:
            continue
        allowed.add(field.param)
        if field.multi and allow_ignore:
            allowed.add(f"ignore_{field.param}")
    unknown = sorted(set(params) - allowed)
    if unknown:
        raise TypeError(f"Unexpected query parameters: {unknown}")


def _modifiers(params: Mapping[str, Any], names: Mapping[str, str]) -> dict[str, Any]:
    return {key: params[name] for name, key in names.items() if params.get(name) is not None}


def _for_field(modifier: str | None, modifiers: Mapping[str, Any]) -> dict[str, Any]:
    if modifier and modifier in modifiers:
        return {modifier: modifiers[modifier]}
    return {}


def _article_filters(params: Mapping[str, Any]) -> dict[str, str]:
    raw = {ARTICLE_FILTER_PARAMS[name]: value for name, value in params.items() if value is not None}
    try:
        return parse_filters(raw)
    except MalformedQueryError as error:
        raise InvalidExpressionError(str(error)) from error


@dataclass(frozen=True, slots=True)
class QuerySpec:
    """A named search to run.

    Attributes:
        name: Optional display name.
        builder: Article or event query to iterate over.
    """

    name: str | None
    builder: QueryArticles | QueryEvents

    @property
    def kind(self) -> str:
        return self.builder.kind
