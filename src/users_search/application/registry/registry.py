"""Application registry – per-audience search index lookup."""
from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from users_search.kernel.errors import IndexNotRegisteredError, ValidationError
from users_search.observability.logging import get_logger

__all__ = ["IndexDescriptor", "IndexRegistry"]

_log = get_logger(__name__)


@dataclass(frozen=True)
class IndexDescriptor:
    """A provisioned search index for one audience. Immutable once published."""

    audience: str
    index_name: str
    indexed_fields: frozenset[str] = field(default_factory=frozenset)
    sortable_fields: frozenset[str] = field(default_factory=frozenset)
    # NUMERIC fields; the engine orders them by number, not by string form
    numeric_fields: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        object.__setattr__(self, "indexed_fields", frozenset(self.indexed_fields))
        object.__setattr__(self, "sortable_fields", frozenset(self.sortable_fields))
        object.__setattr__(self, "numeric_fields", frozenset(self.numeric_fields))
        if not self.audience:
            raise ValidationError("audience must not be empty")
        if not self.index_name:
            raise ValidationError("index_name must not be empty")
        stray = self.sortable_fields - self.indexed_fields
        if stray:
            raise ValidationError(
                "sortable fields must be indexed",
                errors=[{"field": name, "reason": "sortable but not indexed"} for name in sorted(stray)],
            )
        stray = self.numeric_fields - self.indexed_fields
        if stray:
            raise ValidationError(
                "numeric fields must be indexed",
                errors=[{"field": name, "reason": "numeric but not indexed"} for name in sorted(stray)],
            )

    def is_indexed(self, name: str) -> bool:
        return name in self.indexed_fields

    def is_sortable(self, name: str) -> bool:
        return name in self.sortable_fields

    def is_numeric(self, name: str) -> bool:
        return name in self.numeric_fields

    def sorts_natively(self, name: str) -> bool:
        """Whether the engine's SORTBY order equals the listing order for *name*.

        Holds for sortable TEXT and TAG fields only: numeric fields sort by
        value instead of by string form.
        """
        return name in self.sortable_fields and name not in self.numeric_fields


class IndexRegistry:
    """Read-only lookup of :class:`IndexDescriptor` by audience.

    Readers see an immutable snapshot. Writers build a new mapping and swap
    the reference, so a reader never observes a half-applied update.
    Lookups never create an index.
    """

    def __init__(self, descriptors: Iterable[IndexDescriptor] = ()) -> None:
        self._write_lock = threading.Lock()
        self._snapshot: Mapping[str, IndexDescriptor] = self._build(descriptors)

    @staticmethod
    def _build(descriptors: Iterable[IndexDescriptor]) -> Mapping[str, IndexDescriptor]:
        return MappingProxyType({d.audience: d for d in descriptors})

    def resolve(self, audience: str) -> IndexDescriptor:
        descriptor = self._snapshot.get(audience)
        if descriptor is None:
            raise IndexNotRegisteredError(audience)
        return descriptor

    def snapshot(self) -> Mapping[str, IndexDescriptor]:
        return self._snapshot

    def __contains__(self, audience: object) -> bool:
        return audience in self._snapshot

    def __len__(self) -> int:
        return len(self._snapshot)

    # Provisioning hooks -------------------------------------------------

    def publish(self, descriptor: IndexDescriptor) -> None:
        with self._write_lock:
            updated = dict(self._snapshot)
            updated[descriptor.audience] = descriptor
            self._snapshot = MappingProxyType(updated)
        _log.info("registry.published", audience=descriptor.audience, index=descriptor.index_name)

    def withdraw(self, audience: str) -> None:
        with self._write_lock:
            updated = dict(self._snapshot)
            if updated.pop(audience, None) is None:
                return
            self._snapshot = MappingProxyType(updated)
        _log.info("registry.withdrawn", audience=audience)

    def replace(self, descriptors: Iterable[IndexDescriptor]) -> None:
        snapshot = self._build(descriptors)
        with self._write_lock:
            self._snapshot = snapshot
        _log.info("registry.replaced", audiences=sorted(snapshot))
