"""Normalize flat field inputs into combinator subtrees.

A field value supplied to a flat builder is one of:

- absent (``None`` or a blank string): the field is omitted
- a scalar: a single condition
- a plain list: conditions combined by the field's default mode
- a `QueryItems` wrapper: conditions combined by the wrapper's mode

`classify` resolves the raw input into one of these variants once;
`coerce_field` turns the variant into a node.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Union

from NewsTracker.core.combinators import And, Node, Or
from NewsTracker.core.conditions import CombineMode, ConditionField, make_condition
from NewsTracker.core.errors import InvalidExpressionError


@dataclass(frozen=True, slots=True)
class QueryItems:
    """Explicit combination wrapper for several values of one field.

    Use ``QueryItems.AND([...])`` when all values must match and
    ``QueryItems.OR([...])`` when any value is enough.
    """

    mode: CombineMode
    values: tuple[Any, ...]

    def __post_init__(self) -> None:
        if not self.values:
            raise InvalidExpressionError("QueryItems requires at least one value")

    @classmethod
    def AND(cls, values: Iterable[Any]) -> QueryItems:  # noqa: N802 - mirrors the query language
        return cls(CombineMode.ALL, _as_tuple(values))

    @classmethod
    def OR(cls, values: Iterable[Any]) -> QueryItems:  # noqa: N802 - mirrors the query language
        return cls(CombineMode.ANY, _as_tuple(values))


@dataclass(frozen=True, slots=True)
class Absent:
    pass


@dataclass(frozen=True, slots=True)
class Scalar:
    value: Any


@dataclass(frozen=True, slots=True)
class ValueList:
    values: tuple[Any, ...]


@dataclass(frozen=True, slots=True)
class Wrapped:
    items: QueryItems


FieldValue = Union[Absent, Scalar, ValueList, Wrapped]


def classify(value: Any) -> FieldValue:
    """Resolve a raw field input into a `FieldValue` variant.

    Raises:
        InvalidExpressionError: If a combinator node is given as a field value.
    """
    if value is None:
        return Absent()
    if isinstance(value, QueryItems):
        return Wrapped(value)
    if isinstance(value, Node):
        raise InvalidExpressionError("Query nodes cannot be used as field values; combine them with and_/or_")
    if isinstance(value, str):
        return Scalar(value) if value.strip() else Absent()
    if isinstance(value, (list, tuple)):
        values = tuple(value)
        return ValueList(values) if values else Absent()
    return Scalar(value)


def coerce_field(
    field: ConditionField,
    value: Any,
    *,
    default_mode: CombineMode | None = None,
    modifiers: Mapping[str, Any] | None = None,
) -> Node | None:
    """Compile a flat field value into a node.

    Args:
        field: Target field description.
        value: Raw value (absent, scalar, list or `QueryItems`).
        default_mode: Overrides the field default for plain lists.
        modifiers: Modifier keys attached to every produced condition.

    Returns:
        A condition, an AND/OR of conditions, or None when absent.

    Raises:
        InvalidExpressionError: If several values are given for a
            single-valued field, or a value has the wrong type.
        InvalidDateError: If a date value does not parse.
    """
    resolved = classify(value)
    if isinstance(resolved, Absent):
        return None
    if isinstance(resolved, Scalar):
        return make_condition(field, resolved.value, modifiers)

    if isinstance(resolved, Wrapped):
        mode = resolved.items.mode
        values = resolved.items.values
    else:
        mode = default_mode or field.default_mode
        values = resolved.values

    if not field.multi and len(values) > 1:
        raise InvalidExpressionError(f"{field.key} accepts a single value")
    children = tuple(make_condition(field, item, modifiers) for item in values)
    if len(children) == 1:
        return children[0]
    return And(children) if mode is CombineMode.ALL else Or(children)


def _as_tuple(values: Iterable[Any]) -> tuple[Any, ...]:
    if isinstance(values, str):
        return (values,)
    return tuple(values)
