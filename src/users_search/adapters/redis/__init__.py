"""Redis adapter – connection, RediSearch engine, metadata store.

Requires ``redis`` (redis-py >= 5) talking to a server with the search
module loaded (Redis Stack / Redis 8).
"""
from users_search.adapters.redis.connection import RedisConnection
from users_search.adapters.redis.keys import decode_value, identity_from_key, metadata_key
from users_search.adapters.redis.metadata_store import RedisMetadataStore
from users_search.adapters.redis.search_engine import RedisSearchEngine

__all__ = [
    "RedisConnection",
    "RedisMetadataStore",
    "RedisSearchEngine",
    "decode_value",
    "identity_from_key",
    "metadata_key",
]
