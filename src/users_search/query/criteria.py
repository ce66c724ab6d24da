"""Query – the filter criterion union and its parser.

A filter is a mapping ``property name -> value or operator object``::

    {
        "username": "yahoo",                           # ExactValue
        "firstName": {"match": "Jo"},                  # Match
        "age": {"gte": 18, "lte": 30},                 # Range
        "#multi": {"fields": ["firstName", "lastName"], "match": "Joe"},
    }

:func:`parse_criterion` turns one entry into exactly one of the frozen
dataclasses below; anything else is a :class:`ValidationError`.
"""
from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from users_search.kernel.errors import ValidationError
from users_search.query.fields import MULTI_PROPERTY, FieldResolver

__all__ = [
    "Criterion",
    "Eq",
    "ExactValue",
    "Exists",
    "IsEmpty",
    "Match",
    "MultiField",
    "Ne",
    "OperatorKind",
    "Range",
    "parse_criterion",
]


class OperatorKind(str, Enum):
    EQ = "eq"
    NE = "ne"
    MATCH = "match"
    GTE = "gte"
    LTE = "lte"
    EXISTS = "exists"
    ISEMPTY = "isempty"


@dataclass(frozen=True)
class ExactValue:
    value: str


@dataclass(frozen=True)
class Eq:
    value: str


@dataclass(frozen=True)
class Ne:
    value: str


@dataclass(frozen=True)
class Match:
    text: str


@dataclass(frozen=True)
class Range:
    gte: int | float | None = None
    lte: int | float | None = None


@dataclass(frozen=True)
class Exists:
    pass


@dataclass(frozen=True)
class IsEmpty:
    pass


@dataclass(frozen=True)
class MultiField:
    fields: tuple[str, ...]
    match: str


Criterion = Union[ExactValue, Eq, Ne, Match, Range, Exists, IsEmpty, MultiField]

_RANGE_KEYS = frozenset({OperatorKind.GTE.value, OperatorKind.LTE.value})


def _unsupported(prop_name: str, keys: Any) -> ValidationError:
    return ValidationError(
        "unsupported filter operator",
        errors=[{"field": prop_name, "reason": f"operators {sorted(map(str, keys))!r} are not supported"}],
    )


def _require_text(prop_name: str, op: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ValidationError(
            "filter value must be a string",
            errors=[{"field": prop_name, "operator": op, "reason": f"got {type(value).__name__}"}],
        )
    return value


def _require_bound(prop_name: str, op: str, value: Any) -> int | float:
    # bounds are embedded in the query text, so only finite numbers get through
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ValidationError(
            "range bound must be a finite number",
            errors=[{"field": prop_name, "operator": op, "reason": f"got {value!r}"}],
        )
    return value


def _parse_multi(value: Any) -> MultiField:
    fields = FieldResolver.multi_fields(value)
    extra_keys = set(value) - {"fields", "match"}
    if len(fields) < 2 or extra_keys or "match" not in value:
        raise ValidationError(
            "malformed multi-field filter",
            errors=[{"field": MULTI_PROPERTY, "reason": "expected {'fields': [>= 2 names], 'match': text}"}],
        )
    return MultiField(fields=fields, match=_require_text(MULTI_PROPERTY, "match", value["match"]))


def parse_criterion(prop_name: str, value: Any) -> Criterion:
    """Parse a raw filter entry into a :data:`Criterion`."""
    if prop_name == MULTI_PROPERTY:
        return _parse_multi(value)

    if isinstance(value, str):
        return ExactValue(value)

    if not isinstance(value, Mapping) or not value:
        raise _unsupported(prop_name, value.keys() if isinstance(value, Mapping) else [type(value).__name__])

    keys = set(value)
    if keys <= _RANGE_KEYS:
        return Range(
            gte=_require_bound(prop_name, "gte", value["gte"]) if "gte" in value else None,
            lte=_require_bound(prop_name, "lte", value["lte"]) if "lte" in value else None,
        )
    if len(keys) != 1:
        raise _unsupported(prop_name, keys)

    (key,) = keys
    try:
        kind = OperatorKind(key)
    except ValueError:
        raise _unsupported(prop_name, keys) from None

    operand = value[key]
    match kind:
        case OperatorKind.EQ:
            return Eq(_require_text(prop_name, key, operand))
        case OperatorKind.NE:
            return Ne(_require_text(prop_name, key, operand))
        case OperatorKind.MATCH:
            return Match(_require_text(prop_name, key, operand))
        case OperatorKind.EXISTS:
            return Exists()
        case OperatorKind.ISEMPTY:
            return IsEmpty()
        case OperatorKind.GTE | OperatorKind.LTE:
            # covered by the range branch above
            raise _unsupported(prop_name, keys)
