"""Redis adapter – RedisSearchEngine (FT.SEARCH)."""
from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from redis.commands.search.query import Query
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError
from redis.exceptions import TimeoutError as RedisTimeoutError

from users_search.adapters.redis.connection import RedisConnection
from users_search.adapters.redis.keys import decode_value, identity_from_key
from users_search.application.listing.ports import SearchHit, SearchPage
from users_search.application.registry import IndexDescriptor
from users_search.kernel.errors import ConnectionError, QueryExecutionError
from users_search.query import CompiledQuery


class RedisSearchEngine:
    """Run compiled queries with ``FT.SEARCH ... PARAMS ... DIALECT n``.

    Filter values travel only in ``PARAMS``; the query text holds parameter
    references, validated numeric bounds and the empty marker.
    """

    def __init__(self, connection: RedisConnection, *, key_prefix: str = "", dialect: int = 2) -> None:
        self._connection = connection
        self._prefix = key_prefix
        self._dialect = dialect

    def build_query(
        self,
        query: CompiledQuery,
        *,
        offset: int,
        limit: int,
        sort_by: str | None = None,
        return_fields: Sequence[str] = (),
    ) -> Query:
        q = Query(query.text).paging(offset, limit).dialect(self._dialect)
        if sort_by is not None:
            q = q.sort_by(sort_by, asc=True)
        if return_fields:
            q = q.return_fields(*return_fields)
        else:
            q = q.no_content()
        return q

    async def search(
        self,
        index: IndexDescriptor,
        query: CompiledQuery,
        *,
        offset: int,
        limit: int,
        sort_by: str | None = None,
        return_fields: Sequence[str] = (),
    ) -> SearchPage:
        q = self.build_query(query, offset=offset, limit=limit, sort_by=sort_by, return_fields=return_fields)
        client = self._connection.client
        try:
            raw = await client.ft(index.index_name).search(q, query_params=query.param_map or None)
        except ResponseError as exc:
            raise QueryExecutionError(index.index_name, str(exc), query=query.text, cause=exc) from exc
        except (RedisConnectionError, RedisTimeoutError) as exc:
            raise ConnectionError("redis", cause=exc) from exc
        return self._to_page(raw, return_fields)

    def _to_page(self, raw: Any, return_fields: Sequence[str]) -> SearchPage:
        # RESP3 clients get a dict reply, RESP2 a parsed Result object
        if isinstance(raw, dict):
            total = int(raw.get("total_results", 0))
            docs = [(r["id"], r.get("extra_attributes") or {}) for r in raw.get("results", [])]
        else:
            total = int(raw.total)
            docs = [(doc.id, {name: getattr(doc, name, None) for name in return_fields}) for doc in raw.docs]

        hits = tuple(
            SearchHit(
                id=identity_from_key(self._prefix, key),
                fields={name: decode_value(attrs.get(name)) for name in return_fields if attrs.get(name) is not None},
            )
            for key, attrs in docs
        )
        return SearchPage(hits=hits, total=total)


__all__ = ["RedisSearchEngine"]
