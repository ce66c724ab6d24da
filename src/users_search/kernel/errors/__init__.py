"""Kernel error hierarchy – public re-export surface.

Hierarchy::

    BaseError
    ├── InternalError            (base.py)
    ├── DomainError              (domain.py)
    │   ├── ValidationError
    │   └── NotFoundError
    │       └── IndexNotRegisteredError
    ├── ApplicationError         (application.py)
    └── InfrastructureError      (infrastructure.py)
        ├── ConnectionError
        └── QueryExecutionError
"""

from users_search.kernel.errors.application import ApplicationError
from users_search.kernel.errors.base import BaseError, InternalError
from users_search.kernel.errors.domain import (
    DomainError,
    IndexNotRegisteredError,
    NotFoundError,
    ValidationError,
)
from users_search.kernel.errors.infrastructure import (
    ConnectionError,
    InfrastructureError,
    QueryExecutionError,
)

__all__ = [
    "ApplicationError",
    "BaseError",
    "ConnectionError",
    "DomainError",
    "IndexNotRegisteredError",
    "InfrastructureError",
    "InternalError",
    "NotFoundError",
    "QueryExecutionError",
    "ValidationError",
]
