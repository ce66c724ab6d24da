"""Application listing – ListService, the listing use case."""
from __future__ import annotations

import asyncio
from collections.abc import Sequence

from users_search.application.listing.ports import MetadataStore, SearchEngine
from users_search.application.listing.request import ListRequest, ListResult, UserRecord
from users_search.application.listing.sorting import SortedWindow
from users_search.application.registry import IndexRegistry
from users_search.config.settings import ListingSettings
from users_search.kernel.errors import QueryExecutionError, ValidationError
from users_search.observability.logging import get_logger
from users_search.query import ID_PROPERTY, QueryAssembler

__all__ = ["ListService"]

_log = get_logger(__name__)


class ListService:
    """List the identities of an audience matching a filter.

    Steps: validate the window, resolve the audience's index, compile the
    filter, run it with the deterministic sort, then hydrate each identity
    with its audience-scoped metadata.

    Engine failures while executing a query (``QueryExecutionError``) are
    logged and reported as an empty result. Unknown audiences, invalid
    requests and compiler invariant violations are raised.
    """

    def __init__(
        self,
        registry: IndexRegistry,
        engine: SearchEngine,
        metadata: MetadataStore,
        *,
        settings: ListingSettings | None = None,
        assembler: QueryAssembler | None = None,
    ) -> None:
        self._settings = settings or ListingSettings()
        self._registry = registry
        self._engine = engine
        self._metadata = metadata
        self._assembler = assembler or QueryAssembler()
        self._window = SortedWindow(engine, batch_size=self._settings.scan_batch_size)

    @property
    def settings(self) -> ListingSettings:
        return self._settings

    async def list(self, request: ListRequest) -> ListResult:
        request.validate(self._settings.max_limit)
        index = self._registry.resolve(request.audience)

        sort_by = self._id_field if request.criteria == ID_PROPERTY else request.criteria
        if sort_by is not None and sort_by != self._id_field and not index.is_indexed(sort_by):
            raise ValidationError(
                "sort field is not indexed",
                errors=[{"field": "criteria", "reason": f"{request.criteria!r} is not indexed for {request.audience!r}"}],
            )
        indexed = index.indexed_fields | {self._id_field}
        compiled = self._assembler.assemble(request.filter, indexed_fields=indexed)

        log = _log.bind(audience=request.audience, index=index.index_name)
        log.debug(
            "listing.request",
            query=compiled.text,
            param_names=list(compiled.param_names),
            criteria=sort_by,
            offset=request.offset,
            limit=request.limit,
        )

        try:
            hits, total = await self._window.fetch(
                index,
                compiled,
                offset=request.offset,
                limit=request.limit,
                sort_by=sort_by,
            )
        except QueryExecutionError as exc:
            log.warning("listing.query_failed", query=compiled.text, error=exc.message)
            return ListResult.empty(request)

        audiences = self._audiences(request)
        metadata = await asyncio.gather(*(self._metadata.fetch(hit.id, audiences) for hit in hits))
        users = tuple(UserRecord(id=hit.id, metadata=meta) for hit, meta in zip(hits, metadata))

        log.debug("listing.completed", total=total, returned=len(users))
        return ListResult(users=users, total=total, offset=request.offset, limit=request.limit)

    @property
    def _id_field(self) -> str:
        return self._assembler.compiler.resolver.id_field

    def _audiences(self, request: ListRequest) -> Sequence[str]:
        default = self._settings.default_audience
        if request.include_default_audience and default != request.audience:
            return (request.audience, default)
        return (request.audience,)
