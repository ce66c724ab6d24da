"""Domain errors – rejected input and missing resources."""

from __future__ import annotations

from typing import Any

from users_search.kernel.errors.base import BaseError


class DomainError(BaseError):
    """Raised when a request cannot be served as stated."""

    default_code = "domain_error"


class ValidationError(DomainError):
    """Input data does not meet validation rules.

    ``errors`` lists field-level failures, e.g.
    ``[{"field": "limit", "reason": "must be <= 1000"}]``.
    """

    default_code = "validation_error"

    def __init__(
        self,
        message: str,
        *,
        errors: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.errors: list[dict[str, Any]] = errors or []

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base["errors"] = self.errors
        return base


class NotFoundError(DomainError):
    """The requested resource does not exist."""

    default_code = "not_found"

    def __init__(
        self,
        resource: str,
        identifier: Any = None,
        *,
        message: str | None = None,
        **kwargs: Any,
    ) -> None:
        if message is None:
            message = f"{resource} not found"
            if identifier is not None:
                message = f"{resource} '{identifier}' not found"
        super().__init__(message, **kwargs)
        self.resource = resource
        self.identifier = identifier


class IndexNotRegisteredError(NotFoundError):
    """No search index has been provisioned for an audience."""

    default_code = "index_not_registered"

    def __init__(self, audience: str, **kwargs: Any) -> None:
        super().__init__(
            "search_index",
            audience,
            message=f"Search index does not registered for '{audience}'",
            detail={"audience": audience},
            **kwargs,
        )
        self.audience = audience


__all__ = [
    "DomainError",
    "IndexNotRegisteredError",
    "NotFoundError",
    "ValidationError",
]
