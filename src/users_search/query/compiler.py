"""Query – compile one filter criterion into a clause plus its parameters."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from users_search.kernel.errors import ValidationError
from users_search.query import expressions as ex
from users_search.query.criteria import (
    Criterion,
    Eq,
    ExactValue,
    Exists,
    IsEmpty,
    Match,
    MultiField,
    Ne,
    Range,
    parse_criterion,
)
from users_search.query.fields import MULTI_PROPERTY, FieldResolver

__all__ = ["CompiledClause", "CriterionCompiler", "param_name"]

_UNSAFE_PARAM_CHAR = re.compile(r"[^A-Za-z0-9]")
# escapes are lowercase hex, so ``_x_`` never comes out of _escape
_UNION_MARK = "_x_"


def _escape(name: str) -> str:
    return _UNSAFE_PARAM_CHAR.sub(lambda m: f"_{ord(m.group()):x}_", name)


def param_name(target: ex.FieldRef | ex.FieldUnion, suffix: str | None = None) -> str:
    """Deterministic parameter name for *target*, e.g. ``f_firstName_x_lastName_m``.

    Letters and digits are kept; any other character, ``_`` included, becomes
    ``_<hex code point>_``. Distinct targets therefore never share a name:
    ``first-name`` binds ``f_first_2d_name`` and ``first_name`` binds
    ``f_first_5f_name``.
    """
    if isinstance(target, ex.FieldUnion):
        base = _UNION_MARK.join(_escape(name) for name in target.names)
    else:
        base = _escape(target.name)
    parts = ["f", base]
    if suffix:
        parts.append(suffix)
    return "_".join(parts)


@dataclass(frozen=True)
class CompiledClause:
    expression: ex.Clause | ex.Negation
    params: tuple[tuple[str, str], ...] = ()

    @property
    def text(self) -> str:
        return ex.render(self.expression)

    @property
    def fields(self) -> tuple[str, ...]:
        """Physical fields the clause reads."""
        target = self.expression.operand.target if isinstance(self.expression, ex.Negation) else self.expression.target
        if isinstance(target, ex.FieldUnion):
            return target.names
        return (target.name,)


class CriterionCompiler:
    """Translate ``(property, value-or-operator)`` into engine syntax.

    User supplied strings only ever reach the engine as bound parameters.
    Range bounds and the empty marker are the only tokens written into the
    query text, and bounds are validated as finite numbers first.
    """

    def __init__(self, resolver: FieldResolver | None = None) -> None:
        self._resolver = resolver or FieldResolver()

    @property
    def resolver(self) -> FieldResolver:
        return self._resolver

    def compile(self, prop_name: str, value_or_expr: Any) -> CompiledClause:
        criterion = parse_criterion(prop_name, value_or_expr)
        return self.compile_criterion(prop_name, criterion)

    def compile_criterion(self, prop_name: str, criterion: Criterion) -> CompiledClause:
        if isinstance(criterion, MultiField):
            target = self._resolver.resolve(MULTI_PROPERTY, {"fields": criterion.fields})
        else:
            target = self._resolver.resolve(prop_name)

        match criterion:
            case ExactValue(value=value):
                name = param_name(target)
                return CompiledClause(ex.clause(target, ex.tag(ex.param(name))), ((name, value),))
            case Eq(value=value):
                name = param_name(target, "eq")
                return CompiledClause(ex.clause(target, ex.tag(ex.param(name))), ((name, value),))
            case Ne(value=value):
                name = param_name(target, "ne")
                negated = ex.negate(ex.clause(target, ex.tag(ex.param(name))))
                return CompiledClause(negated, ((name, value),))
            case Match(text=text) | MultiField(match=text):
                name = param_name(target, "m")
                return CompiledClause(ex.clause(target, ex.match_any(ex.param(name))), ((name, text),))
            case Range(gte=gte, lte=lte):
                if gte is None and lte is None:
                    raise ValidationError("unsupported filter operator", errors=[{"field": prop_name, "reason": "empty range"}])
                # an inverted range is passed through; the engine matches nothing
                return CompiledClause(ex.clause(target, ex.numeric_range(gte, lte)))
            case Exists():
                return CompiledClause(ex.negate(ex.clause(target, ex.literal(ex.EMPTY_MARKER))))
            case IsEmpty():
                return CompiledClause(ex.clause(target, ex.literal(ex.EMPTY_MARKER)))
        raise ValidationError("unsupported filter operator", errors=[{"field": prop_name}])
