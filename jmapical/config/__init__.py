"""Configuration management for jmapical."""

from .settings import (
    DEFAULT_PROD_ID,
    ConverterSettings,
    LoggingSettings,
    get_settings,
    reset_settings,
)

__all__ = [
    "DEFAULT_PROD_ID",
    "ConverterSettings",
    "LoggingSettings",
    "get_settings",
    "reset_settings",
]
