"""Mapping tables and helpers shared by the protocol translators."""

import json
import uuid
from collections import deque
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from gengateway.core.logging import get_logger
from gengateway.models.canonical import FunctionCall, FunctionResponse
from gengateway.models.types import FinishReason


logger = get_logger(__name__)


OPENAI_TO_CANONICAL_FINISH_REASON: Mapping[str, FinishReason] = MappingProxyType(
    {
        "stop": FinishReason.STOP,
        "length": FinishReason.MAX_TOKENS,
        "content_filter": FinishReason.SAFETY,
    }
)

ANTHROPIC_TO_CANONICAL_FINISH_REASON: Mapping[str, FinishReason] = MappingProxyType(
    {
        "end_turn": FinishReason.STOP,
        "stop_sequence": FinishReason.STOP,
        "tool_use": FinishReason.STOP,
        "max_tokens": FinishReason.MAX_TOKENS,
    }
)


def map_openai_finish_reason(reason: str | None) -> FinishReason:
    """Map an OpenAI/Qwen ``finish_reason``; unknown or missing is OTHER."""
    if not reason:
        return FinishReason.OTHER
    return OPENAI_TO_CANONICAL_FINISH_REASON.get(reason, FinishReason.OTHER)


def map_anthropic_stop_reason(reason: str | None) -> FinishReason:
    """Map an Anthropic ``stop_reason``; unknown or missing is OTHER."""
    if not reason:
        return FinishReason.OTHER
    return ANTHROPIC_TO_CANONICAL_FINISH_REASON.get(reason, FinishReason.OTHER)


def has_tool_name(name: str | None) -> bool:
    """Tool calls with a missing or blank name are never surfaced."""
    return bool(name and name.strip())


def parse_tool_arguments(arguments: str | None) -> dict[str, Any] | None:
    """Parse JSON-encoded tool arguments.

    Blank input means no arguments. Returns ``None`` when the text is not a
    JSON object.
    """
    if arguments is None or not arguments.strip():
        return {}
    try:
        parsed = json.loads(arguments)
    except json.JSONDecodeError:
        return None
    if not isinstance(parsed, dict):
        return None
    return parsed


class ToolCallIds:
    """Assigns wire ids to function calls and pairs responses with them.

    Calls keep their own id when they have one, otherwise get a fresh
    ``<prefix><hex>`` id. A response without an id answers the oldest
    unanswered call of the same name.
    """

    def __init__(self, prefix: str) -> None:
        self.prefix = prefix
        self._pending: dict[str, deque[str]] = {}

    def new_id(self) -> str:
        return f"{self.prefix}{uuid.uuid4().hex[:24]}"

    def for_call(self, call: FunctionCall) -> str:
        call_id = call.id or self.new_id()
        self._pending.setdefault(call.name, deque()).append(call_id)
        return call_id

    def for_response(self, response: FunctionResponse) -> str:
        pending = self._pending.get(response.name)
        if response.id:
            if pending and response.id in pending:
                pending.remove(response.id)
            return response.id
        if pending:
            return pending.popleft()
        logger.debug("tool_response_unpaired", tool_name=response.name)
        return self.new_id()


def dump_tool_response(response: Any) -> str:
    """Serialize a tool result for the wire."""
    return json.dumps(response)
