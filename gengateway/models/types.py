"""Shared enumerations and literal types."""

from enum import Enum
from typing import Literal


class ApiFormat(str, Enum):
    """Wire protocol spoken to the backend."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    QWEN = "qwen"  # OpenAI-compatible


class FinishReason(str, Enum):
    """Canonical reason a generation stopped."""

    STOP = "STOP"
    MAX_TOKENS = "MAX_TOKENS"
    SAFETY = "SAFETY"
    OTHER = "OTHER"


CanonicalRole = Literal["user", "model"]
OpenAIMessageRole = Literal["system", "user", "assistant", "tool"]
AnthropicMessageRole = Literal["user", "assistant"]
