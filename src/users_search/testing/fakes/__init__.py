"""Testing fakes – in-memory search engine and metadata store."""
from users_search.testing.fakes.metadata_store import InMemoryMetadataStore
from users_search.testing.fakes.search_engine import InMemorySearchEngine, tokenize

__all__ = ["InMemoryMetadataStore", "InMemorySearchEngine", "tokenize"]
