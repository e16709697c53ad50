"""Settings management using Pydantic for type validation and configuration."""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PROD_ID = "-//jmapical//EN"


def _apply_setting(model: BaseModel, setting: str, value: Any) -> None:
    """Assign a value read from YAML, keeping the current one if it does not validate."""
    try:
        setattr(model, setting, value)
    except ValidationError as e:
        logging.warning(f"Ignoring invalid YAML value for {setting}: {e.errors()[0]['msg']}")


class LoggingSettings(BaseModel):
    """Logging configuration settings."""

    model_config = ConfigDict(validate_assignment=True)

    console_enabled: bool = Field(default=True, description="Enable console logging")
    console_level: str = Field(
        default="WARNING",
        description="Console log level: DEBUG, VERBOSE, INFO, WARNING, ERROR, CRITICAL",
    )
    console_colors: bool = Field(
        default=True, description="Enable colored console output (auto-detected)"
    )
    third_party_level: str = Field(
        default="WARNING", description="Log level for third-party libraries"
    )


class ConverterSettings(BaseSettings):
    """Converter settings with environment variable support."""

    prod_id: str = Field(
        default=DEFAULT_PROD_ID, description="PRODID written to newly created calendars"
    )
    pretty_json: bool = Field(
        default=False, description="Indent JSON produced by the string helpers"
    )
    add_timezones: bool = Field(
        default=True, description="Add VTIMEZONE components for referenced timezones"
    )
    max_delegation_hops: int = Field(
        default=64, description="Maximum DELEGATED-TO hops followed for rsvpResponse"
    )
    config_file: Optional[Path] = Field(
        default=None, description="YAML configuration file (defaults to config/jmapical.yaml)"
    )

    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_prefix="JMAPICAL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_assignment=True,
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._load_yaml_config(explicit=set(kwargs))

    def _find_config_file(self) -> Optional[Path]:
        """Find config file, checking the configured path first, then the working directory."""
        if self.config_file is not None:
            return self.config_file if self.config_file.exists() else None

        local_config = Path.cwd() / "config" / "jmapical.yaml"
        if local_config.exists():
            return local_config
        return None

    def _load_logging_config(self, config_data: dict) -> None:
        """Load logging configuration from YAML data."""
        logging_config = config_data.get("logging")
        if not isinstance(logging_config, dict):
            return

        for setting in LoggingSettings.model_fields:
            if setting in logging_config:
                _apply_setting(self.logging, setting, logging_config[setting])

    def _load_yaml_config(self, explicit: set) -> None:
        """Load configuration from YAML file if it exists.

        Values given as keyword arguments or environment variables win over
        the file.
        """
        config_file = self._find_config_file()
        if not config_file:
            return

        try:
            with config_file.open() as f:
                config_data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            # Don't fail if YAML loading fails, just continue with defaults/env vars
            logging.warning(f"Could not load YAML config from {config_file}: {e}")
            return

        if not isinstance(config_data, dict):
            return

        for setting in ("prod_id", "pretty_json", "add_timezones", "max_delegation_hops"):
            env_name = f"JMAPICAL_{setting.upper()}"
            if setting in config_data and setting not in explicit and env_name not in os.environ:
                _apply_setting(self, setting, config_data[setting])
        self._load_logging_config(config_data)


# Global settings management
_settings_instance: Optional[ConverterSettings] = None


def get_settings() -> ConverterSettings:
    """Get the global settings instance, creating it lazily if needed.

    Returns:
        ConverterSettings: The global settings instance
    """
    if globals()["_settings_instance"] is None:
        globals()["_settings_instance"] = ConverterSettings()
    return globals()["_settings_instance"]


def reset_settings() -> None:
    """Reset the global settings instance (primarily for testing)."""
    globals()["_settings_instance"] = None
