"""Application registry – provisioned search indexes by audience."""
from users_search.application.registry.registry import IndexDescriptor, IndexRegistry

__all__ = ["IndexDescriptor", "IndexRegistry"]
