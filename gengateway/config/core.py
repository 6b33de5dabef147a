"""Core configuration settings - backend API, HTTP, logging and correction."""

import os

from pydantic import BaseModel, Field, SecretStr, field_validator

from gengateway.models.types import ApiFormat


# === Backend API Configuration ===


class ApiSettings(BaseModel):
    """Backend endpoint configuration."""

    base_url: str = Field(
        default="https://dashscope.aliyuncs.com/compatible-mode/v1",
        description="Backend base URL; trailing slashes are ignored",
    )

    api_key: SecretStr = Field(
        default=SecretStr(""),
        description="API key sent as Bearer token or x-api-key header",
    )

    format: ApiFormat = Field(
        default=ApiFormat.QWEN,
        description="Configured wire protocol (openai, anthropic, qwen)",
    )

    model: str = Field(
        default="qwen-plus",
        description="Default model identifier used by the CLI",
    )

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slashes(cls, v: str) -> str:
        """Normalize the base URL."""
        return v.rstrip("/")


# === HTTP Configuration ===


class HTTPSettings(BaseModel):
    """HTTP client configuration settings.

    No timeout is applied unless configured; the gateway never retries.
    """

    timeout: float | None = Field(
        default=None,
        description="Read/write timeout in seconds (None disables it)",
    )

    connect_timeout: float | None = Field(
        default=None,
        description="Connection timeout in seconds (None disables it)",
    )

    http2: bool = Field(
        default=False,
        description="Enable HTTP/2 (requires the h2 package)",
    )

    verify: bool = Field(
        default=True,
        description="Verify TLS certificates",
    )


# === Logging Configuration ===


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    format: str = Field(
        default="auto",
        description="Logging output format: 'console', 'json' or 'auto'",
    )

    file: str | None = Field(
        default=None,
        description="Path to JSON log file",
    )

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        upper_v = v.upper()
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if upper_v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return upper_v

    @field_validator("format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate and normalize log format."""
        lower_v = v.lower()
        valid_formats = ["auto", "console", "json"]
        if lower_v not in valid_formats:
            raise ValueError(f"Invalid log format: {v}. Must be one of {valid_formats}")
        return lower_v


# === Tool-call Correction Configuration ===


def _default_project_root() -> str:
    return os.getcwd().rstrip(os.sep) + os.sep


class CorrectionSettings(BaseModel):
    """Tool-call correction engine configuration."""

    project_root: str | None = Field(
        default_factory=_default_project_root,
        description="Local path prefix stripped from tool-call paths; None keeps paths",
    )

    @field_validator("project_root")
    @classmethod
    def ensure_trailing_separator(cls, v: str | None) -> str | None:
        """Only whole directory prefixes are stripped."""
        if v and not v.endswith("/"):
            return v + "/"
        return v
