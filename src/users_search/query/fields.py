"""Query – map filter property names onto physical index fields."""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from users_search.kernel.errors import ValidationError
from users_search.query.expressions import FieldRef, FieldUnion, field, union

__all__ = ["ID_FIELD", "ID_PROPERTY", "MULTI_PROPERTY", "FieldResolver"]

ID_FIELD = "id"
ID_PROPERTY = "#"
MULTI_PROPERTY = "#multi"


class FieldResolver:
    """Resolve ``#``, ``#multi`` and plain property names."""

    def __init__(self, id_field: str = ID_FIELD) -> None:
        self._id_field = id_field

    @property
    def id_field(self) -> str:
        return self._id_field

    def resolve(self, prop_name: str, extra: Mapping[str, Any] | None = None) -> FieldRef | FieldUnion:
        if prop_name == ID_PROPERTY:
            return field(self._id_field)
        if prop_name == MULTI_PROPERTY:
            return union(self.multi_fields(extra))
        return field(prop_name)

    @staticmethod
    def multi_fields(extra: Mapping[str, Any] | None) -> tuple[str, ...]:
        fields = extra.get("fields") if isinstance(extra, Mapping) else None
        if (
            isinstance(fields, (str, bytes))
            or not isinstance(fields, Sequence)
            or not fields
            or not all(isinstance(name, str) and name for name in fields)
        ):
            raise ValidationError(
                "malformed multi-field filter",
                errors=[{"field": MULTI_PROPERTY, "reason": "'fields' must be a non-empty list of names"}],
            )
        return tuple(fields)
