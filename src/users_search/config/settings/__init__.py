"""Config settings – env-based configuration."""
from users_search.config.settings.base import Settings
from users_search.config.settings.listing import ListingSettings
from users_search.config.settings.loaders import DotenvSettingsLoader, EnvSettingsLoader, SettingsLoader

__all__ = ["DotenvSettingsLoader", "EnvSettingsLoader", "ListingSettings", "Settings", "SettingsLoader"]
