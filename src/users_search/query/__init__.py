"""Query – filter DSL compiler targeting RediSearch."""
from users_search.query.assembler import CompiledQuery, QueryAssembler
from users_search.query.compiler import CompiledClause, CriterionCompiler, param_name
from users_search.query.criteria import (
    Criterion,
    Eq,
    ExactValue,
    Exists,
    IsEmpty,
    Match,
    MultiField,
    Ne,
    OperatorKind,
    Range,
    parse_criterion,
)
from users_search.query.expressions import EMPTY_MARKER, render
from users_search.query.fields import ID_FIELD, ID_PROPERTY, MULTI_PROPERTY, FieldResolver

__all__ = [
    "EMPTY_MARKER",
    "ID_FIELD",
    "ID_PROPERTY",
    "MULTI_PROPERTY",
    "CompiledClause",
    "CompiledQuery",
    "Criterion",
    "CriterionCompiler",
    "Eq",
    "ExactValue",
    "Exists",
    "FieldResolver",
    "IsEmpty",
    "Match",
    "MultiField",
    "Ne",
    "OperatorKind",
    "QueryAssembler",
    "Range",
    "param_name",
    "parse_criterion",
    "render",
]
