"""Request and response translators for the supported wire protocols."""

from .anthropic import AnthropicStreamProcessor, AnthropicTranslator
from .base import BaseTranslator, StreamProcessor
from .openai import OpenAIStreamProcessor, OpenAITranslator
from .qwen import QwenTranslator
from .selector import (
    TRANSLATOR_CLASSES,
    is_official_anthropic_host,
    resolve_api_format,
    select_translator,
)
from .sequence import validate_message_sequence


__all__ = [
    "TRANSLATOR_CLASSES",
    "AnthropicStreamProcessor",
    "AnthropicTranslator",
    "BaseTranslator",
    "OpenAIStreamProcessor",
    "OpenAITranslator",
    "QwenTranslator",
    "StreamProcessor",
    "is_official_anthropic_host",
    "resolve_api_format",
    "select_translator",
    "validate_message_sequence",
]
