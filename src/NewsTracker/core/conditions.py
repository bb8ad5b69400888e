"""Atomic condition vocabulary.

Every filterable field is described by a `ConditionField` entry: the name the
service expects, the value kind, whether several values may be given and, for
multi-valued fields, how a plain list of values is combined by default.

The default combination modes are per-field data and are deliberately not
derived from a general rule:

- keyword, conceptUri: ALL of the values must match
- every other multi-valued field: ANY of the values is enough
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Final, Mapping

from dateutil import parser as dt_parser

from NewsTracker.core.combinators import Condition, freeze_modifiers
from NewsTracker.core.errors import InvalidDateError, InvalidExpressionError

DATE_FORMAT: Final = "%Y-%m-%d"
KEYWORD_LOCATIONS: Final = frozenset({"body", "title", "body,title"})
# Full calendar date, optionally followed by a time part.
_CALENDAR_DATE_RE: Final = re.compile(r"^(?:\d{4}-\d{2}-\d{2}|\d{8})(?:[T ]|$)")


class FieldKind(str, Enum):
    """Value type accepted by a field."""

    URI = "uri"
    TOKEN = "token"
    DATE = "date"
    COUNT = "count"


class CombineMode(str, Enum):
    """How several values of one field are combined."""

    ALL = "and"
    ANY = "or"


@dataclass(frozen=True, slots=True)
class ConditionField:
    """Description of one filterable field.

    Attributes:
        key: Service-facing field name.
        param: Python keyword parameter used by the flat builders.
        kind: Value kind.
        multi: Whether several values can be supplied.
        default_mode: Combination mode for a plain list of values.
        modifier: Optional modifier key serialized next to the condition.
        events_only: Field only exists for event queries.
    """

    key: str
    param: str
    kind: FieldKind
    multi: bool = False
    default_mode: CombineMode = CombineMode.ANY
    modifier: str | None = None
    events_only: bool = False


_FIELD_LIST: Final[tuple[ConditionField, ...]] = (
    ConditionField("keyword", "keywords", FieldKind.TOKEN, True, CombineMode.ALL, "keywordLoc"),
    ConditionField("conceptUri", "concept_uri", FieldKind.URI, True, CombineMode.ALL),
    ConditionField("categoryUri", "category_uri", FieldKind.URI, True, CombineMode.ANY, "categoryIncludeSub"),
    ConditionField("sourceUri", "source_uri", FieldKind.URI, True, CombineMode.ANY),
    ConditionField("sourceLocationUri", "source_location_uri", FieldKind.URI, True, CombineMode.ANY),
    ConditionField("sourceGroupUri", "source_group_uri", FieldKind.URI, True, CombineMode.ANY),
    ConditionField("locationUri", "location_uri", FieldKind.URI, True, CombineMode.ANY),
    ConditionField("lang", "lang", FieldKind.TOKEN, True, CombineMode.ANY),
    ConditionField("dateStart", "date_start", FieldKind.DATE),
    ConditionField("dateEnd", "date_end", FieldKind.DATE),
    ConditionField("dateMentionStart", "date_mention_start", FieldKind.DATE),
    ConditionField("dateMentionEnd", "date_mention_end", FieldKind.DATE),
    ConditionField("minArticlesInEvent", "min_articles_in_event", FieldKind.COUNT, events_only=True),
    ConditionField("maxArticlesInEvent", "max_articles_in_event", FieldKind.COUNT, events_only=True),
)

FIELDS_BY_KEY: Final[Mapping[str, ConditionField]] = {f.key: f for f in _FIELD_LIST}
FIELDS_BY_PARAM: Final[Mapping[str, ConditionField]] = {f.param: f for f in _FIELD_LIST}
MODIFIER_KEYS: Final = frozenset(f.modifier for f in _FIELD_LIST if f.modifier)


def all_fields() -> tuple[ConditionField, ...]:
    """Return every field in declaration order."""
    return _FIELD_LIST


def get_field(key: str) -> ConditionField:
    """Look up a field by its service-facing name.

    Raises:
        KeyError: If the field is not part of the vocabulary.
    """
    try:
        return FIELDS_BY_KEY[key]
    except KeyError:
        raise KeyError(f"Unknown query field: {key}") from None


def format_date(value: Any) -> str:
    """Return a date value in ``YYYY-MM-DD`` form.

    Args:
        value: A `date`, `datetime` or a date string.

    Returns:
        The formatted date.

    Raises:
        InvalidDateError: If the value is not a date or does not parse as one.
    """
    if isinstance(value, datetime):
        return value.date().strftime(DATE_FORMAT)
    if isinstance(value, date):
        return value.strftime(DATE_FORMAT)
    if not isinstance(value, str):
        raise InvalidDateError(f"Expected a date or date string, got {type(value).__name__}")
    text = value.strip()
    if not text:
        raise InvalidDateError("Date string is empty")
    if not _CALENDAR_DATE_RE.match(text):
        raise InvalidDateError(f"Invalid date: {value!r} is not a full calendar date")
    try:
        parsed = dt_parser.isoparse(text)
    except (ValueError, OverflowError) as error:
        raise InvalidDateError(f"Invalid date: {value!r}") from error
    return parsed.date().strftime(DATE_FORMAT)


def normalize_value(field: ConditionField, value: Any) -> str | int:
    """Validate a single scalar value for `field` and return its wire form.

    Raises:
        InvalidDateError: For unparseable dates.
        InvalidExpressionError: For values of the wrong type.
    """
    if field.kind is FieldKind.DATE:
        return format_date(value)
    if field.kind is FieldKind.COUNT:
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidExpressionError(f"{field.key} must be an integer, got {value!r}")
        if value < 0:
            raise InvalidExpressionError(f"{field.key} must not be negative")
        return value
    if not isinstance(value, str):
        raise InvalidExpressionError(f"{field.key} values must be strings, got {type(value).__name__}")
    text = value.strip()
    if not text:
        raise InvalidExpressionError(f"{field.key} value must not be empty")
    return text


def check_modifier(field: ConditionField, name: str, value: Any) -> Any:
    """Validate a modifier value attached to `field`."""
    if field.modifier != name:
        raise InvalidExpressionError(f"{name} cannot be applied to {field.key}")
    if name == "keywordLoc":
        if value not in KEYWORD_LOCATIONS:
            raise InvalidExpressionError(f"keywordLoc must be one of {sorted(KEYWORD_LOCATIONS)}")
        return value
    if not isinstance(value, bool):
        raise InvalidExpressionError(f"{name} must be a boolean")
    return value


def make_condition(field: ConditionField, value: Any, modifiers: Mapping[str, Any] | None = None) -> Condition:
    """Build a validated `Condition` for a single value."""
    checked: dict[str, Any] = {}
    for name, mod_value in (modifiers or {}).items():
        checked[name] = check_modifier(field, name, mod_value)
    return Condition(field=field.key, value=normalize_value(field, value), modifiers=freeze_modifiers(checked))


def condition(key: str, value: Any, **modifiers: Any) -> Condition:
    """Convenience constructor: ``condition("lang", "eng")``.

    Raises:
        InvalidExpressionError: If `key` is not a known field or the value is invalid.
    """
    try:
        field = get_field(key)
    except KeyError as error:
        raise InvalidExpressionError(error.args[0]) from error
    return make_condition(field, value, modifiers)
