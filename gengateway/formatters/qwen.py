"""Qwen (DashScope compatible mode) translator.

DashScope speaks the OpenAI chat completions dialect, tool declarations
included, so the Qwen profile only differs in its format tag.
"""

from gengateway.models.types import ApiFormat

from .openai import OpenAITranslator


class QwenTranslator(OpenAITranslator):
    """Translator for Qwen models served through DashScope."""

    api_format = ApiFormat.QWEN
