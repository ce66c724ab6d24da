"""Config validation errors.

Every error names both the settings field and the environment variable it
is read from, so an operator can fix the deployment without reading code.
"""
from __future__ import annotations

from users_search.kernel.errors import ApplicationError


class ConfigError(ApplicationError):
    """Settings could not be loaded or are inconsistent."""

    default_code = "config_error"


class MissingRequiredSettingError(ConfigError):
    """A field without a default has no environment variable set."""

    default_code = "missing_required_setting"

    def __init__(self, setting_name: str, *, env_key: str | None = None) -> None:
        self.setting_name = setting_name
        self.env_key = env_key or setting_name.upper()
        super().__init__(
            f"Set {self.env_key} to configure '{setting_name}'",
            detail={"setting": setting_name, "env_key": self.env_key},
        )


class InvalidSettingValueError(ConfigError):
    """A setting is present but out of range or of the wrong type."""

    default_code = "invalid_setting_value"

    def __init__(self, setting_name: str, value: object, reason: str, *, env_key: str | None = None) -> None:
        self.setting_name = setting_name
        self.env_key = env_key or setting_name.upper()
        self.value = value
        self.reason = reason
        super().__init__(
            f"{self.env_key}={value!r} is invalid: {reason}",
            detail={"setting": setting_name, "env_key": self.env_key, "value": repr(value), "reason": reason},
        )


__all__ = ["ConfigError", "InvalidSettingValueError", "MissingRequiredSettingError"]
