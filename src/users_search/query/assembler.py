"""Query – assemble a whole filter mapping into one conjunctive query."""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from users_search.kernel.errors import InternalError, ValidationError
from users_search.query import expressions as ex
from users_search.query.compiler import CompiledClause, CriterionCompiler

__all__ = ["CompiledQuery", "QueryAssembler"]


@dataclass(frozen=True)
class CompiledQuery:
    """Query text, its ordered parameter bindings and the tree it came from."""

    expression: ex.Expression
    params: tuple[tuple[str, str], ...] = ()

    @property
    def text(self) -> str:
        return ex.render(self.expression)

    @property
    def param_map(self) -> dict[str, str]:
        return dict(self.params)

    @property
    def param_names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.params)

    @property
    def is_match_all(self) -> bool:
        return isinstance(self.expression, ex.MatchAll)


class QueryAssembler:
    def __init__(self, compiler: CriterionCompiler | None = None) -> None:
        self._compiler = compiler or CriterionCompiler()

    @property
    def compiler(self) -> CriterionCompiler:
        return self._compiler

    def assemble(
        self,
        filter_map: Mapping[str, Any] | None,
        indexed_fields: Iterable[str] | None = None,
    ) -> CompiledQuery:
        """Compile *filter_map* in insertion order.

        When *indexed_fields* is given every field a clause reads must be
        one of them.
        """
        if not filter_map:
            return CompiledQuery(ex.match_all())

        known = frozenset(indexed_fields) if indexed_fields is not None else None
        clauses: list[CompiledClause] = []
        params: list[tuple[str, str]] = []
        seen: dict[str, tuple[str, tuple[str, ...]]] = {}

        for prop_name, value in filter_map.items():
            compiled = self._compiler.compile(prop_name, value)
            if known is not None:
                unknown = [name for name in compiled.fields if name not in known]
                if unknown:
                    raise ValidationError(
                        "filter references fields that are not indexed",
                        errors=[{"field": prop_name, "reason": f"not indexed: {', '.join(unknown)}"}],
                    )
            for name, bound in compiled.params:
                if name in seen:
                    first, first_fields = seen[name]
                    if first_fields == compiled.fields:
                        # '#' and the identity field name the same field
                        raise ValidationError(
                            f"filter names field {', '.join(compiled.fields)!r} more than once",
                            errors=[{"field": prop_name, "reason": f"same field as {first!r}"}],
                        )
                    raise InternalError(
                        f"parameter {name!r} bound by both {first!r} and {prop_name!r}",
                        detail={"param": name, "properties": [first, prop_name]},
                    )
                seen[name] = (prop_name, compiled.fields)
                params.append((name, bound))
            clauses.append(compiled)

        return CompiledQuery(
            ex.conjunction([c.expression for c in clauses]),
            tuple(params),
        )
