"""Application listing – ListRequest, ListResult, UserRecord."""
from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from users_search.kernel.errors import ValidationError

__all__ = ["ListRequest", "ListResult", "UserRecord"]


@dataclasses.dataclass(frozen=True)
class ListRequest:
    """One listing call: audience, sort field, window and filter."""

    audience: str
    criteria: str | None = None
    offset: int = 0
    limit: int = 10
    filter: Mapping[str, Any] = dataclasses.field(default_factory=dict)
    include_default_audience: bool = False

    def __post_init__(self) -> None:
        if self.filter is None:
            object.__setattr__(self, "filter", {})
        if not isinstance(self.filter, Mapping):
            raise ValidationError("invalid list request", errors=[{"field": "filter", "reason": "must be an object"}])
        object.__setattr__(self, "filter", MappingProxyType(dict(self.filter)))

    def validate(self, max_limit: int) -> None:
        errors: list[dict[str, Any]] = []
        if not isinstance(self.audience, str) or not self.audience:
            errors.append({"field": "audience", "reason": "must be a non-empty string"})
        if isinstance(self.offset, bool) or not isinstance(self.offset, int) or self.offset < 0:
            errors.append({"field": "offset", "reason": "must be an integer >= 0"})
        if isinstance(self.limit, bool) or not isinstance(self.limit, int) or not 0 < self.limit <= max_limit:
            errors.append({"field": "limit", "reason": f"must be an integer in (0, {max_limit}]"})
        if self.criteria is not None and (not isinstance(self.criteria, str) or not self.criteria):
            errors.append({"field": "criteria", "reason": "must be a non-empty field name"})
        if errors:
            raise ValidationError("invalid list request", errors=errors)

    @classmethod
    def from_params(cls, params: Mapping[str, Any], *, default_limit: int = 10) -> "ListRequest":
        """Build a request from a decoded transport payload.

        Keys follow the wire names: ``audience``, ``criteria``, ``offset``,
        ``limit``, ``filter``, ``public``.
        """
        if "audience" not in params:
            raise ValidationError("invalid list request", errors=[{"field": "audience", "reason": "is required"}])
        return cls(
            audience=params["audience"],
            criteria=params.get("criteria"),
            offset=params.get("offset", 0),
            limit=params.get("limit", default_limit),
            filter=params.get("filter") or {},
            include_default_audience=bool(params.get("public", False)),
        )


@dataclasses.dataclass(frozen=True)
class UserRecord:
    id: str
    metadata: Mapping[str, Mapping[str, Any]]

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "metadata": {aud: dict(attrs) for aud, attrs in self.metadata.items()}}


@dataclasses.dataclass(frozen=True)
class ListResult:
    users: tuple[UserRecord, ...] = ()
    total: int = 0
    offset: int = 0
    limit: int = 0

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.users) < self.total

    @property
    def ids(self) -> list[str]:
        return [user.id for user in self.users]

    @classmethod
    def empty(cls, request: ListRequest) -> "ListResult":
        return cls(users=(), total=0, offset=request.offset, limit=request.limit)

    def to_dict(self) -> dict[str, Any]:
        return {
            "users": [user.to_dict() for user in self.users],
            "cursor": self.offset + len(self.users),
            "page": self.offset // self.limit + 1 if self.limit else 1,
            "pages": -(-self.total // self.limit) if self.limit else 0,
            "total": self.total,
        }
