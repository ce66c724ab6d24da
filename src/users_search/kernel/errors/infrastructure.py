"""Infrastructure errors – search engine and store failures."""

from __future__ import annotations

from typing import Any

from users_search.kernel.errors.base import BaseError


class InfrastructureError(BaseError):
    """Infrastructure / I/O failure that is not a business rule violation."""

    default_code = "infrastructure_error"


class ConnectionError(InfrastructureError):  # noqa: A001
    """Failed to reach an external resource (Redis, search module, …)."""

    default_code = "connection_error"

    def __init__(
        self,
        resource: str,
        message: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message or f"Could not connect to '{resource}'", **kwargs)
        self.resource = resource


class QueryExecutionError(InfrastructureError):
    """The search engine rejected or failed to run a compiled query."""

    default_code = "query_execution_error"

    def __init__(
        self,
        index_name: str,
        message: str | None = None,
        *,
        query: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message or f"Query against '{index_name}' failed", **kwargs)
        self.index_name = index_name
        self.query = query
        self.detail.setdefault("index", index_name)
        if query is not None:
            self.detail.setdefault("query", query)


__all__ = [
    "ConnectionError",
    "InfrastructureError",
    "QueryExecutionError",
]
