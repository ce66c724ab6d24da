"""Redis adapter – RedisConnection."""
from __future__ import annotations

from typing import Any

from users_search.kernel.errors import ConnectionError


def _require_redis() -> Any:
    try:
        import redis.asyncio as aioredis
        return aioredis
    except ImportError as exc:
        raise ImportError("Install 'redis' to use the Redis adapter") from exc


class RedisConnection:
    """Owns one async Redis client with an explicit connect/close lifecycle.

    ::

        async with RedisConnection(settings.redis_url) as conn:
            engine = RedisSearchEngine(conn)
    """

    def __init__(self, url: str, **kwargs: Any) -> None:
        self._url = url
        self._kwargs = {"decode_responses": True, **kwargs}
        self._client: Any = None

    @property
    def client(self) -> Any:
        if self._client is None:
            raise ConnectionError("redis", "Redis connection is not open")
        return self._client

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    async def connect(self) -> "RedisConnection":
        if self._client is not None:
            return self
        aioredis = _require_redis()
        client = aioredis.from_url(self._url, **self._kwargs)
        try:
            await client.ping()
        except aioredis.RedisError as exc:
            await client.aclose()
            raise ConnectionError("redis", cause=exc) from exc
        self._client = client
        return self

    async def close(self) -> None:
        if self._client is None:
            return
        client, self._client = self._client, None
        await client.aclose()

    async def __aenter__(self) -> "RedisConnection":
        return await self.connect()

    async def __aexit__(self, *_: object) -> None:
        await self.close()


__all__ = ["RedisConnection"]
