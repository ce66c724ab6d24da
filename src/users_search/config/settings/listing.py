"""Config settings – ListingSettings."""
from __future__ import annotations

import dataclasses
from typing import ClassVar

from users_search.config.settings.base import Settings
from users_search.config.validation import InvalidSettingValueError

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


@dataclasses.dataclass
class ListingSettings(Settings):
    """Runtime knobs for the listing path. Env prefix ``USERS_SEARCH_``."""

    _prefix: ClassVar[str] = "USERS_SEARCH"

    redis_url: str = "redis://localhost:6379/0"
    # hash tag keeps every key of the service on one cluster slot
    key_prefix: str = "{ms-users}"
    default_audience: str = "*.localhost"
    default_limit: int = 10
    max_limit: int = 1000
    scan_batch_size: int = 1000
    search_dialect: int = 2
    log_level: str = "INFO"

    def _invalid(self, name: str, reason: str) -> InvalidSettingValueError:
        return InvalidSettingValueError(name, getattr(self, name), reason, env_key=self.env_key(name))

    def _validate(self) -> None:
        if self.max_limit < 1:
            raise self._invalid("max_limit", "must be >= 1")
        if not 0 < self.default_limit <= self.max_limit:
            raise self._invalid("default_limit", f"must be in (0, {self.max_limit}]")
        if self.scan_batch_size < 1:
            raise self._invalid("scan_batch_size", "must be >= 1")
        if self.search_dialect < 2:
            # parameter binding needs DIALECT 2
            raise self._invalid("search_dialect", "must be >= 2")
        if not self.default_audience:
            raise self._invalid("default_audience", "must not be empty")
        if self.log_level.upper() not in _LOG_LEVELS:
            raise self._invalid("log_level", f"must be one of {sorted(_LOG_LEVELS)}")


__all__ = ["ListingSettings"]
