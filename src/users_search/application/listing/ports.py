"""Application listing – search engine and metadata store ports."""
from __future__ import annotations

import dataclasses
from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from users_search.application.registry import IndexDescriptor
from users_search.query import CompiledQuery

__all__ = ["MetadataStore", "SearchEngine", "SearchHit", "SearchPage"]


@dataclasses.dataclass(frozen=True)
class SearchHit:
    """One matching identity and whichever fields were asked for."""
    id: str
    fields: Mapping[str, Any] = dataclasses.field(default_factory=dict)


@dataclasses.dataclass(frozen=True)
class SearchPage:
    hits: tuple[SearchHit, ...]
    total: int


@runtime_checkable
class SearchEngine(Protocol):
    """Executes a compiled query against one index.

    With *sort_by* the engine orders hits by that field ascending; without
    it the order is unspecified. Rejected queries raise
    :class:`~users_search.kernel.errors.QueryExecutionError`.
    """

    async def search(
        self,
        index: IndexDescriptor,
        query: CompiledQuery,
        *,
        offset: int,
        limit: int,
        sort_by: str | None = None,
        return_fields: Sequence[str] = (),
    ) -> SearchPage: ...


@runtime_checkable
class MetadataStore(Protocol):
    async def fetch(self, identity: str, audiences: Sequence[str]) -> dict[str, dict[str, Any]]: ...
