"""Redis adapter – RedisMetadataStore."""
from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from redis.exceptions import RedisError

from users_search.adapters.redis.connection import RedisConnection
from users_search.adapters.redis.keys import decode_value, metadata_key
from users_search.kernel.errors import ConnectionError


class RedisMetadataStore:
    """Read audience-scoped attribute hashes for one identity."""

    def __init__(self, connection: RedisConnection, key_prefix: str = "") -> None:
        self._connection = connection
        self._prefix = key_prefix

    async def fetch(self, identity: str, audiences: Sequence[str]) -> dict[str, dict[str, Any]]:
        client = self._connection.client
        try:
            async with client.pipeline(transaction=False) as pipe:
                for audience in audiences:
                    pipe.hgetall(metadata_key(self._prefix, identity, audience))
                rows = await pipe.execute()
        except RedisError as exc:
            raise ConnectionError("redis", f"Failed to read metadata of '{identity}'", cause=exc) from exc

        return {
            audience: {name: decode_value(raw) for name, raw in (row or {}).items()}
            for audience, row in zip(audiences, rows)
        }


__all__ = ["RedisMetadataStore"]
