"""Config – env-based settings for the listing service."""

from users_search.config.settings import DotenvSettingsLoader, EnvSettingsLoader, ListingSettings, Settings, SettingsLoader
from users_search.config.validation import ConfigError, InvalidSettingValueError, MissingRequiredSettingError

__all__ = [
    "ConfigError",
    "DotenvSettingsLoader",
    "EnvSettingsLoader",
    "InvalidSettingValueError",
    "ListingSettings",
    "MissingRequiredSettingError",
    "Settings",
    "SettingsLoader",
]
