"""Query – RediSearch expression tree and its serializer.

Nodes are immutable and carry no operator semantics; the criterion compiler
decides which shapes to build. :func:`render` is the only place that knows
the engine's textual syntax::

    render(clause(field("username"), tag(param("f_username"))))
    # '@username:{$f_username}'
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Union

__all__ = [
    "EMPTY_MARKER",
    "UNION_SEPARATOR",
    "Clause",
    "Conjunction",
    "Expression",
    "FieldRef",
    "FieldUnion",
    "Literal",
    "MatchAll",
    "MatchAny",
    "Negation",
    "NumericRange",
    "ParamRef",
    "Tag",
    "clause",
    "conjunction",
    "field",
    "format_number",
    "literal",
    "match_all",
    "match_any",
    "negate",
    "numeric_range",
    "param",
    "render",
    "tag",
    "union",
]

UNION_SEPARATOR = "|"
# Literal the engine stores for an absent / empty attribute.
EMPTY_MARKER = '""'


@dataclass(frozen=True)
class FieldRef:
    name: str


@dataclass(frozen=True)
class FieldUnion:
    """Several fields searched as one: a hit on any member matches."""
    names: tuple[str, ...]


@dataclass(frozen=True)
class ParamRef:
    name: str


@dataclass(frozen=True)
class Literal:
    """Fixed engine token embedded verbatim. Never built from caller input."""
    text: str


@dataclass(frozen=True)
class Tag:
    value: ParamRef


@dataclass(frozen=True)
class MatchAny:
    """Prefix-capable token match, ``($p*)``."""
    value: ParamRef


@dataclass(frozen=True)
class NumericRange:
    lower: float | int | None = None
    upper: float | int | None = None


@dataclass(frozen=True)
class Clause:
    target: FieldRef | FieldUnion
    value: Tag | MatchAny | NumericRange | Literal


@dataclass(frozen=True)
class Negation:
    operand: Clause


@dataclass(frozen=True)
class Conjunction:
    operands: tuple[Clause | Negation, ...]


@dataclass(frozen=True)
class MatchAll:
    pass


Expression = Union[Clause, Negation, Conjunction, MatchAll]


# ---------------------------------------------------------------------------
# Constructors
# ---------------------------------------------------------------------------

def field(name: str) -> FieldRef:
    return FieldRef(name)


def union(names: tuple[str, ...] | list[str]) -> FieldUnion:
    return FieldUnion(tuple(names))


def param(name: str) -> ParamRef:
    return ParamRef(name)


def literal(text: str) -> Literal:
    return Literal(text)


def tag(value: ParamRef) -> Tag:
    return Tag(value)


def match_any(value: ParamRef) -> MatchAny:
    return MatchAny(value)


def numeric_range(lower: float | int | None = None, upper: float | int | None = None) -> NumericRange:
    return NumericRange(lower, upper)


def clause(target: FieldRef | FieldUnion, value: Tag | MatchAny | NumericRange | Literal) -> Clause:
    return Clause(target, value)


def negate(operand: Clause) -> Negation:
    return Negation(operand)


def conjunction(operands: list[Clause | Negation] | tuple[Clause | Negation, ...]) -> Conjunction:
    return Conjunction(tuple(operands))


def match_all() -> MatchAll:
    return MatchAll()


# ---------------------------------------------------------------------------
# Serializer
# ---------------------------------------------------------------------------

def format_number(value: float | int | None, *, unbounded: str) -> str:
    """Render a range bound; ``None`` becomes the *unbounded* sentinel."""
    if value is None:
        return unbounded
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"range bound must be a number, got {type(value).__name__}")
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"range bound must be finite, got {value!r}")
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def _render_target(target: FieldRef | FieldUnion) -> str:
    match target:
        case FieldRef(name=name):
            return f"@{name}"
        case FieldUnion(names=names):
            return "@" + UNION_SEPARATOR.join(names)
    raise TypeError(f"not a field reference: {target!r}")


def _render_value(value: Tag | MatchAny | NumericRange | Literal) -> str:
    match value:
        case Tag(value=ParamRef(name=name)):
            return "{$" + name + "}"
        case MatchAny(value=ParamRef(name=name)):
            return f"(${name}*)"
        case NumericRange(lower=lower, upper=upper):
            lo = format_number(lower, unbounded="-inf")
            hi = format_number(upper, unbounded="+inf")
            return f"[{lo} {hi}]"
        case Literal(text=text):
            return text
    raise TypeError(f"not a value expression: {value!r}")


def render(node: Expression) -> str:
    """Serialize *node* into RediSearch query text."""
    match node:
        case Clause(target=target, value=value):
            return f"{_render_target(target)}:{_render_value(value)}"
        case Negation(operand=operand):
            return "-" + render(operand)
        case Conjunction(operands=operands):
            if not operands:
                return "*"
            return " ".join(render(op) for op in operands)
        case MatchAll():
            return "*"
    raise TypeError(f"not an expression: {node!r}")
