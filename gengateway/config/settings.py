import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from gengateway.core.logging import get_logger

from .core import ApiSettings, CorrectionSettings, HTTPSettings, LoggingSettings


__all__ = ["Settings", "ConfigurationError", "find_toml_config_file", "get_settings"]


CONFIG_FILE_NAMES = (".gengateway.toml", "gengateway.toml")


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


def find_toml_config_file() -> Path | None:
    """Find the first TOML configuration file in the usual locations.

    Order: ``.gengateway.toml`` / ``gengateway.toml`` in the current directory,
    then ``config.toml`` in ``$XDG_CONFIG_HOME/gengateway/``.
    """
    cwd = Path.cwd()
    for name in CONFIG_FILE_NAMES:
        candidate = cwd / name
        if candidate.is_file():
            return candidate

    xdg_config = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    candidate = Path(xdg_config) / "gengateway" / "config.toml"
    if candidate.is_file():
        return candidate
    return None


class Settings(BaseSettings):
    """
    Configuration settings for the generation gateway.

    Settings are loaded from environment variables, .env files, and TOML configuration files.
    Environment variables take precedence over TOML file values. Nested values use
    ``__`` as delimiter, e.g. ``API__BASE_URL`` or ``LOGGING__LEVEL``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    api: ApiSettings = Field(
        default_factory=ApiSettings,
        description="Backend endpoint configuration",
    )

    http: HTTPSettings = Field(
        default_factory=HTTPSettings,
        description="HTTP client configuration settings",
    )

    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration",
    )

    correction: CorrectionSettings = Field(
        default_factory=CorrectionSettings,
        description="Tool-call correction engine settings",
    )

    def model_dump_safe(self) -> dict[str, Any]:
        """
        Dump model data with sensitive information masked.

        Returns:
            dict: Configuration with sensitive data masked
        """
        return self.model_dump(mode="json")

    @classmethod
    def load_toml_config(cls, toml_path: Path) -> dict[str, Any]:
        """Load configuration from a TOML file."""
        try:
            with toml_path.open("rb") as f:
                return tomllib.load(f)
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read TOML config file {toml_path}: {e}"
            ) from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML syntax in {toml_path}: {e}") from e

    @classmethod
    def from_config(
        cls,
        config_path: Path | str | None = None,
        **kwargs: Any,
    ) -> "Settings":
        """Create Settings from a TOML file, environment and keyword overrides.

        Precedence, lowest first: TOML file, environment variables, ``kwargs``.
        """
        if config_path is None:
            config_path_env = os.environ.get("CONFIG_FILE")
            if config_path_env:
                config_path = Path(config_path_env)

        if isinstance(config_path, str):
            config_path = Path(config_path)

        if config_path is None:
            config_path = find_toml_config_file()

        config_data: dict[str, Any] = {}
        if config_path is not None:
            if config_path.suffix.lower() != ".toml":
                raise ConfigurationError(
                    f"Unsupported config file format: {config_path.suffix}. "
                    "Only TOML (.toml) files are supported."
                )
            config_data = cls.load_toml_config(config_path)
            logger = get_logger(__name__)
            logger.info("config_file_loaded", path=str(config_path))

        try:
            env_settings = cls()
            merged = _merge_sections(
                config_data, env_settings.model_dump(exclude_unset=True)
            )
            merged = _merge_sections(merged, kwargs)
            return cls.model_validate(merged)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e


def _merge_sections(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge_sections(merged[key], value)
        else:
            merged[key] = value
    return merged


@lru_cache
def get_settings() -> Settings:
    """Get the process-wide settings instance."""
    return Settings.from_config()
