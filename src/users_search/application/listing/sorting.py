"""Application listing – deterministic ordering on top of any search engine.

Order is ascending by the lowercased string form of the sort field, hits
without the field last (where RediSearch puts them), ties broken by
ascending identity. Engines only promise a value order, so the final
ordering is always computed here:

* **native** – the field is a sortable TEXT or TAG field: read the first
  ``offset + limit + 1`` hits in engine order, keep reading while hits tie
  with the last one in the window, then re-sort and slice.
* **scan** – the field is not sortable, is NUMERIC (the engine would order
  by number), or no sort field was given: read every match in batches and
  sort in memory.

Both strategies yield the same sequence for the same data, so pages
compose: ``window(O, L) + window(O+L, L) == window(O, 2L)``.
"""
from __future__ import annotations

from typing import Any

from users_search.application.listing.ports import SearchEngine, SearchHit, SearchPage
from users_search.application.registry import IndexDescriptor
from users_search.query import CompiledQuery

__all__ = ["SortedWindow", "sort_key"]


def sort_key(hit: SearchHit, sort_by: str | None) -> tuple[bool, str, str]:
    if sort_by is None:
        return (False, "", hit.id)
    value: Any = hit.fields.get(sort_by)
    if value is None:
        return (True, "", hit.id)
    return (False, str(value).lower(), hit.id)


def _value_key(hit: SearchHit, sort_by: str) -> tuple[bool, str]:
    return sort_key(hit, sort_by)[:2]


class SortedWindow:
    """Fetch one page of hits in the deterministic order."""

    def __init__(self, engine: SearchEngine, batch_size: int = 1000) -> None:
        self._engine = engine
        self._batch_size = batch_size

    async def fetch(
        self,
        index: IndexDescriptor,
        query: CompiledQuery,
        *,
        offset: int,
        limit: int,
        sort_by: str | None,
    ) -> tuple[list[SearchHit], int]:
        """Return ``(hits in window, total matches)``."""
        if sort_by is not None and index.sorts_natively(sort_by):
            rows, total = await self._native(index, query, offset + limit, sort_by)
        else:
            rows, total = await self._scan(index, query, sort_by)
        rows.sort(key=lambda hit: sort_key(hit, sort_by))
        return rows[offset:offset + limit], total

    async def _page(
        self,
        index: IndexDescriptor,
        query: CompiledQuery,
        offset: int,
        limit: int,
        sort_by: str | None,
        native: bool,
    ) -> SearchPage:
        return await self._engine.search(
            index,
            query,
            offset=offset,
            limit=limit,
            sort_by=sort_by if native else None,
            return_fields=(sort_by,) if sort_by else (),
        )

    async def _native(
        self,
        index: IndexDescriptor,
        query: CompiledQuery,
        window: int,
        sort_by: str,
    ) -> tuple[list[SearchHit], int]:
        # one extra row tells whether the boundary value continues past the window
        page = await self._page(index, query, 0, window + 1, sort_by, native=True)
        rows = list(page.hits)
        total = page.total
        if len(rows) <= window:
            return rows, total

        boundary = _value_key(rows[window - 1], sort_by)
        if _value_key(rows[window], sort_by) != boundary:
            return rows[:window], total

        # hits tying with the boundary may sit further on in engine order
        cursor = len(rows)
        while cursor < total:
            page = await self._page(index, query, cursor, self._batch_size, sort_by, native=True)
            if not page.hits:
                break
            for hit in page.hits:
                if _value_key(hit, sort_by) != boundary:
                    return rows, total
                rows.append(hit)
            cursor += len(page.hits)
        return rows, total

    async def _scan(
        self,
        index: IndexDescriptor,
        query: CompiledQuery,
        sort_by: str | None,
    ) -> tuple[list[SearchHit], int]:
        rows: list[SearchHit] = []
        page = await self._page(index, query, 0, self._batch_size, sort_by, native=False)
        total = page.total
        rows.extend(page.hits)
        while page.hits and len(rows) < total:
            page = await self._page(index, query, len(rows), self._batch_size, sort_by, native=False)
            rows.extend(page.hits)
        # ids are unique per index; a document can shift between batches if
        # the index changes mid-scan
        unique: dict[str, SearchHit] = {}
        for hit in rows:
            unique.setdefault(hit.id, hit)
        return list(unique.values()), total
