"""
users_search – filtered, paginated identity listing over RediSearch.

Import path convention::

    from users_search.kernel.errors import ValidationError
    from users_search.query import QueryAssembler
    from users_search.application.listing import ListRequest, ListService
    from users_search.adapters.redis import RedisConnection, RedisSearchEngine
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
