"""Configuration module - settings and environment management."""

from crefeed.config.settings import (
    ConfigurationError,
    DEFAULT_ENABLED_SOURCES,
    MANDATORY_SOURCE,
    Settings,
    load_settings,
)

__all__ = [
    "ConfigurationError",
    "DEFAULT_ENABLED_SOURCES",
    "MANDATORY_SOURCE",
    "Settings",
    "load_settings",
]
