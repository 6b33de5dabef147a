"""Configuration module for the generation gateway."""

from .settings import ConfigurationError, Settings, get_settings


__all__ = ["ConfigurationError", "Settings", "get_settings"]
