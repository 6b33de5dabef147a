"""Protocol selection for a configured endpoint."""

from collections.abc import Mapping
from types import MappingProxyType
from urllib.parse import urlsplit

from gengateway.config.constants import ANTHROPIC_API_HOST
from gengateway.correction import ToolFormatConverter
from gengateway.core.logging import get_logger
from gengateway.models.types import ApiFormat

from .anthropic import AnthropicTranslator
from .base import BaseTranslator
from .openai import OpenAITranslator
from .qwen import QwenTranslator


logger = get_logger(__name__)


TRANSLATOR_CLASSES: Mapping[ApiFormat, type[BaseTranslator]] = MappingProxyType(
    {
        ApiFormat.OPENAI: OpenAITranslator,
        ApiFormat.ANTHROPIC: AnthropicTranslator,
        ApiFormat.QWEN: QwenTranslator,
    }
)


def endpoint_host(endpoint: str) -> str:
    """Lower-cased hostname of ``endpoint``; empty if it has none."""
    endpoint = endpoint.strip()
    if "://" not in endpoint:
        endpoint = "//" + endpoint
    try:
        hostname = urlsplit(endpoint).hostname
    except ValueError:
        return ""
    return (hostname or "").lower()


def is_official_anthropic_host(endpoint: str) -> bool:
    """Whether ``endpoint`` points at the official Anthropic API host."""
    return endpoint_host(endpoint) == ANTHROPIC_API_HOST


def resolve_api_format(configured: ApiFormat, endpoint: str) -> ApiFormat:
    """
    Decide which wire protocol to speak with ``endpoint``.

    The Anthropic protocol is only used against the official host; any
    third-party endpoint is assumed to be OpenAI compatible, whatever the
    configured format says.

    Args:
        configured: Format from configuration
        endpoint: Backend base URL

    Returns:
        The protocol to use for this call
    """
    official = is_official_anthropic_host(endpoint)

    if configured == ApiFormat.ANTHROPIC and official:
        resolved = ApiFormat.ANTHROPIC
    elif not official:
        resolved = ApiFormat.OPENAI
        if configured != ApiFormat.OPENAI:
            logger.debug(
                "api_format_overridden",
                configured=configured.value,
                resolved=resolved.value,
                host=endpoint_host(endpoint),
            )
    else:
        resolved = configured

    return resolved


def select_translator(
    configured: ApiFormat,
    endpoint: str,
    converter: ToolFormatConverter | None = None,
) -> BaseTranslator:
    """Resolve the protocol for ``endpoint`` and build its translator."""
    api_format = resolve_api_format(configured, endpoint)
    logger.debug(
        "api_format_resolved", configured=configured.value, resolved=api_format.value
    )
    return TRANSLATOR_CLASSES[api_format](converter)
