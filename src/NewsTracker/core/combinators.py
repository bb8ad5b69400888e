"""Boolean combinator tree over atomic filter conditions.

A query is an immutable tree of four node kinds:

- `Condition`: one service field with one value (e.g. ``conceptUri = X``)
- `And`: every child must match
- `Or`: at least one child must match
- `Not`: the single child must not match

Serialization follows the service query language: ``$and`` / ``$or`` hold an
ordered list of child objects, ``$not`` holds a single object, and a condition
is a plain ``{field: value}`` object. An `And` or `Or` with a single child
serializes exactly like that child.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from NewsTracker.core.errors import InvalidExpressionError

AND_KEY = "$and"
OR_KEY = "$or"
NOT_KEY = "$not"


@dataclass(frozen=True, slots=True)
class Node(ABC):
    """Base class of all combinator tree nodes."""

    @abstractmethod
    def serialize(self) -> dict[str, Any]:
        """Return the JSON-compatible fragment for this subtree."""

    def __and__(self, other: Node) -> And:
        return and_(self, other)

    def __or__(self, other: Node) -> Or:
        return or_(self, other)

    def __invert__(self) -> Not:
        return not_(self)


@dataclass(frozen=True, slots=True)
class Condition(Node):
    """Atomic condition on a single service field.

    Attributes:
        field: Service-facing field name (e.g. ``keyword``).
        value: Normalized value (string token/URI, ``YYYY-MM-DD`` date or int).
        modifiers: Extra keys serialized next to the field, such as
            ``keywordLoc``. Stored as sorted pairs to keep nodes hashable.
    """

    field: str
    value: str | int
    modifiers: tuple[tuple[str, Any], ...] = ()

    def serialize(self) -> dict[str, Any]:
        out: dict[str, Any] = {self.field: self.value}
        out.update(self.modifiers)
        return out


@dataclass(frozen=True, slots=True)
class And(Node):
    """Conjunction of one or more child nodes."""

    children: tuple[Node, ...]

    def __post_init__(self) -> None:
        _check_children("AND", self.children)

    def serialize(self) -> dict[str, Any]:
        if len(self.children) == 1:
            return self.children[0].serialize()
        return {AND_KEY: [child.serialize() for child in self.children]}


@dataclass(frozen=True, slots=True)
class Or(Node):
    """Disjunction of one or more child nodes."""

    children: tuple[Node, ...]

    def __post_init__(self) -> None:
        _check_children("OR", self.children)

    def serialize(self) -> dict[str, Any]:
        if len(self.children) == 1:
            return self.children[0].serialize()
        return {OR_KEY: [child.serialize() for child in self.children]}


@dataclass(frozen=True, slots=True)
class Not(Node):
    """Negation of exactly one child node."""

    child: Node

    def __post_init__(self) -> None:
        if not isinstance(self.child, Node):
            raise InvalidExpressionError(f"NOT requires a query node, got {type(self.child).__name__}")

    def serialize(self) -> dict[str, Any]:
        return {NOT_KEY: self.child.serialize()}


def and_(*children: Node | Iterable[Node], exclude: Node | None = None) -> And:
    """Build an AND node.

    Accepts children either as positional arguments or as a single list.

    Args:
        children: Child nodes.
        exclude: Optional node whose matches are removed from the result.

    Returns:
        The AND node, wrapped as ``AND(node, NOT(exclude))`` when `exclude` is set.

    Raises:
        InvalidExpressionError: If no children are given.
    """
    node = And(_collect(children))
    if exclude is None:
        return node
    return And((node, not_(exclude)))


def or_(*children: Node | Iterable[Node], exclude: Node | None = None) -> Or | And:
    """Build an OR node.

    Accepts children either as positional arguments or as a single list.

    Args:
        children: Child nodes.
        exclude: Optional node whose matches are removed from the result.

    Returns:
        The OR node, or ``AND(OR(...), NOT(exclude))`` when `exclude` is set.

    Raises:
        InvalidExpressionError: If no children are given.
    """
    node = Or(_collect(children))
    if exclude is None:
        return node
    return And((node, not_(exclude)))


def not_(subject: Node) -> Not:
    """Build a NOT node around `subject`."""
    return Not(subject)


def normalize(node: Node) -> Node:
    """Collapse single-child AND/OR nodes recursively.

    Two trees with equal normalized forms serialize identically.
    """
    if isinstance(node, (And, Or)):
        children = tuple(normalize(child) for child in node.children)
        if len(children) == 1:
            return children[0]
        return type(node)(children)
    if isinstance(node, Not):
        return Not(normalize(node.child))
    return node


def iter_conditions(node: Node) -> Iterable[Condition]:
    """Yield every condition of the tree in document order."""
    if isinstance(node, Condition):
        yield node
    elif isinstance(node, Not):
        yield from iter_conditions(node.child)
    elif isinstance(node, (And, Or)):
        for child in node.children:
            yield from iter_conditions(child)


def freeze_modifiers(modifiers: Mapping[str, Any] | None) -> tuple[tuple[str, Any], ...]:
    """Turn a modifier mapping into the sorted pair tuple stored on conditions."""
    if not modifiers:
        return ()
    return tuple(sorted(modifiers.items()))


def _collect(children: tuple[Node | Iterable[Node], ...]) -> tuple[Node, ...]:
    if len(children) == 1 and isinstance(children[0], (list, tuple)):
        return tuple(children[0])
    return tuple(children)  # type: ignore[arg-type]


def _check_children(kind: str, children: tuple[Node, ...]) -> None:
    if not isinstance(children, tuple):
        raise InvalidExpressionError(f"{kind} children must be a tuple of query nodes")
    if not children:
        raise InvalidExpressionError(f"{kind} requires at least one child")
    for idx, child in enumerate(children):
        if not isinstance(child, Node):
            raise InvalidExpressionError(
                f"{kind} child {idx} must be a query node, got {type(child).__name__}"
            )
