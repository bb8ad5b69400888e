"""Compiled query documents: serialization and parsing.

A compiled document has the shape::

    {
        "$query": { ...combinator tree... },
        "$filter": { "isDuplicate": "skipDuplicates", ... }   # optional
    }

`parse_query` accepts the canonical form produced by `serialize_query` and the
shorthand forms the service also understands:

- an object with several keys means the AND of those keys, in order
- a field value may be a scalar, a list (combined by the field default), or
  ``{"$and": [...]}`` / ``{"$or": [...]}`` of scalars
- ``keywordLoc`` / ``categoryIncludeSub`` apply to the field conditions of the
  object they appear in
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Final, Mapping

from NewsTracker.core.combinators import AND_KEY, NOT_KEY, OR_KEY, And, Node, Not, Or
from NewsTracker.core.conditions import (
    FIELDS_BY_KEY,
    MODIFIER_KEYS,
    CombineMode,
    ConditionField,
    make_condition,
)
from NewsTracker.core.errors import InvalidDateError, InvalidExpressionError, MalformedQueryError

QUERY_KEY: Final = "$query"
FILTER_KEY: Final = "$filter"

FILTER_VALUES: Final[Mapping[str, frozenset[str]]] = {
    "isDuplicate": frozenset({"skipDuplicates", "keepOnlyDuplicates", "keepAll"}),
    "hasDuplicate": frozenset({"skipHasDuplicates", "keepOnlyHasDuplicates", "keepAll"}),
    "hasEvent": frozenset({"skipArticlesWithoutEvent", "keepOnlyArticlesWithoutEvent", "keepAll"}),
}


@dataclass(frozen=True, slots=True)
class ParsedQuery:
    """Result of parsing a compiled document.

    Attributes:
        root: Normalized combinator tree from ``$query``.
        filters: Result filters from ``$filter`` (may be empty).
    """

    root: Node
    filters: Mapping[str, str] = field(default_factory=dict)


def serialize_query(root: Node | None, filters: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Build the compiled document for a tree.

    Args:
        root: Tree to serialize. None produces an empty (match-all) ``$query``.
        filters: Optional result filters.

    Returns:
        A fresh JSON-compatible mapping.
    """
    document: dict[str, Any] = {QUERY_KEY: root.serialize() if root is not None else {}}
    if filters:
        document[FILTER_KEY] = dict(filters)
    return document


def parse_query(source: str | Mapping[str, Any]) -> ParsedQuery:
    """Parse a compiled document given as JSON text or as a mapping.

    Raises:
        MalformedQueryError: If the text is not JSON, the ``$query`` root is
            missing or empty, unknown ``$`` keys or fields appear, or a value
            has the wrong type for its field.
    """
    data = _load(source)
    for key in data:
        if key not in (QUERY_KEY, FILTER_KEY):
            raise MalformedQueryError(f"Unknown key at document root: {key}")
    if QUERY_KEY not in data:
        raise MalformedQueryError(f"Query document is missing {QUERY_KEY}")
    root = _parse_object(data[QUERY_KEY], QUERY_KEY)
    filters = parse_filters(data.get(FILTER_KEY))
    return ParsedQuery(root=root, filters=filters)


def parse_filters(value: Any) -> dict[str, str]:
    """Validate a ``$filter`` mapping.

    Raises:
        MalformedQueryError: For unknown filter names or values.
    """
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise MalformedQueryError(f"{FILTER_KEY} must be an object")
    out: dict[str, str] = {}
    for name, setting in value.items():
        allowed = FILTER_VALUES.get(name)
        if allowed is None:
            raise MalformedQueryError(f"Unknown filter: {name}")
        if setting not in allowed:
            raise MalformedQueryError(f"{FILTER_KEY}.{name} must be one of {sorted(allowed)}")
        out[name] = setting
    return out


def _load(source: str | Mapping[str, Any]) -> Mapping[str, Any]:
    if isinstance(source, str):
        try:
            data = json.loads(source)
        except json.JSONDecodeError as error:
            raise MalformedQueryError(f"Query text is not valid JSON: {error}") from error
    else:
        data = source
    if not isinstance(data, Mapping):
        raise MalformedQueryError("Query document must be an object")
    return data


def _parse_object(value: Any, path: str) -> Node:
    """Parse one JSON object of the query language into a node."""
    if not isinstance(value, Mapping):
        raise MalformedQueryError(f"{path} must be an object")
    if not value:
        raise MalformedQueryError(f"{path} must not be empty")

    modifiers = {key: value[key] for key in value if key in MODIFIER_KEYS}
    used_modifiers: set[str] = set()
    nodes: list[Node] = []

    for key, item in value.items():
        if key in MODIFIER_KEYS:
            continue
        item_path = f"{path}.{key}"
        if key in (AND_KEY, OR_KEY):
            nodes.append(_parse_group(key, item, item_path))
        elif key == NOT_KEY:
            nodes.append(Not(_parse_object(item, item_path)))
        elif key.startswith("$"):
            raise MalformedQueryError(f"Unknown operator: {item_path}")
        else:
            field_def = FIELDS_BY_KEY.get(key)
            if field_def is None:
                raise MalformedQueryError(f"Unknown query field: {item_path}")
            field_mods = {}
            if field_def.modifier and field_def.modifier in modifiers:
                field_mods[field_def.modifier] = modifiers[field_def.modifier]
                used_modifiers.add(field_def.modifier)
            nodes.append(_parse_field(field_def, item, field_mods, item_path))

    unused = set(modifiers) - used_modifiers
    if unused:
        raise MalformedQueryError(f"{path} has modifiers without their field: {sorted(unused)}")
    if len(nodes) == 1:
        return nodes[0]
    return And(tuple(nodes))


def _parse_group(key: str, value: Any, path: str) -> Node:
    if not isinstance(value, list) or not value:
        raise MalformedQueryError(f"{path} must be a non-empty list")
    children = tuple(_parse_object(child, f"{path}[{idx}]") for idx, child in enumerate(value))
    if len(children) == 1:
        return children[0]
    return And(children) if key == AND_KEY else Or(children)


def _parse_field(
    field_def: ConditionField,
    value: Any,
    modifiers: Mapping[str, Any],
    path: str,
) -> Node:
    mode = field_def.default_mode
    if isinstance(value, Mapping):
        if len(value) != 1 or next(iter(value)) not in (AND_KEY, OR_KEY):
            raise MalformedQueryError(f"{path} must be a value, a list, or a single $and/$or")
        key, value = next(iter(value.items()))
        mode = CombineMode.ALL if key == AND_KEY else CombineMode.ANY
        if not isinstance(value, list):
            raise MalformedQueryError(f"{path}.{key} must be a list")

    values = value if isinstance(value, list) else [value]
    if not values:
        raise MalformedQueryError(f"{path} must not be an empty list")
    if len(values) > 1 and not field_def.multi:
        raise MalformedQueryError(f"{path} accepts a single value")

    children = []
    for item in values:
        if isinstance(item, (Mapping, list)):
            raise MalformedQueryError(f"{path} values must be scalars")
        try:
            children.append(make_condition(field_def, item, modifiers))
        except (InvalidExpressionError, InvalidDateError) as error:
            raise MalformedQueryError(f"{path}: {error}") from error

    if len(children) == 1:
        return children[0]
    return And(tuple(children)) if mode is CombineMode.ALL else Or(tuple(children))
