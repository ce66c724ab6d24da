"""Wire a Redis-backed :class:`ListService` with an explicit lifecycle."""
from __future__ import annotations

import contextlib
from collections.abc import AsyncIterator

from users_search.adapters.redis import RedisConnection, RedisMetadataStore, RedisSearchEngine
from users_search.application.listing import ListService
from users_search.application.registry import IndexRegistry
from users_search.config.settings import EnvSettingsLoader, ListingSettings
from users_search.observability.logging import JsonLoggerFactory, get_logger

__all__ = ["build_list_service", "open_list_service"]

_log = get_logger(__name__)


def build_list_service(connection: RedisConnection, registry: IndexRegistry, settings: ListingSettings) -> ListService:
    engine = RedisSearchEngine(connection, key_prefix=settings.key_prefix, dialect=settings.search_dialect)
    metadata = RedisMetadataStore(connection, key_prefix=settings.key_prefix)
    return ListService(registry, engine, metadata, settings=settings)


@contextlib.asynccontextmanager
async def open_list_service(
    registry: IndexRegistry,
    settings: ListingSettings | None = None,
    *,
    configure_logging: bool = False,
) -> AsyncIterator[ListService]:
    """Connect to Redis, yield a ready service, disconnect on exit.

    Example::

        async with open_list_service(registry) as service:
            result = await service.list(ListRequest(audience="*.localhost"))
    """
    settings = settings or EnvSettingsLoader().load(ListingSettings)
    if configure_logging:
        JsonLoggerFactory.configure(settings.log_level)

    connection = RedisConnection(settings.redis_url)
    await connection.connect()
    _log.info("listing.connected", audiences=sorted(registry.snapshot()))
    try:
        yield build_list_service(connection, registry, settings)
    finally:
        await connection.close()
        _log.info("listing.disconnected")
