"""Translation between canonical models and the Anthropic Messages API."""

from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from gengateway.config.constants import (
    ANTHROPIC_MESSAGES_ENDPOINT,
    ANTHROPIC_MESSAGES_SUFFIX,
    ANTHROPIC_VERSION,
    DEFAULT_MAX_TOKENS,
)
from gengateway.core.errors import BackendStreamError, EmptyResponseError
from gengateway.core.logging import get_logger
from gengateway.models.anthropic import (
    AnthropicTool,
    CreateMessageRequest,
    MessageResponse,
    MessageStreamEvent,
    ResponseContentBlock,
    ToolChoice,
    Usage,
)
from gengateway.models.canonical import (
    CanonicalRequest,
    CanonicalResponse,
    CanonicalResponseChunk,
    Content,
    Part,
    UsageMetadata,
)
from gengateway.models.types import ApiFormat
from gengateway.streaming.decoder import StreamEvent

from .base import BaseTranslator, PendingToolCall, StreamProcessor
from .sequence import validate_message_sequence
from .shared import (
    ToolCallIds,
    dump_tool_response,
    has_tool_name,
    map_anthropic_stop_reason,
)


logger = get_logger(__name__)

TOOL_USE_ID_PREFIX = "toolu_"


def convert_usage(usage: Usage | None) -> UsageMetadata | None:
    """Map Anthropic usage counters; the total is input plus output."""
    if usage is None:
        return None
    input_tokens = usage.input_tokens or 0
    output_tokens = usage.output_tokens or 0
    return UsageMetadata(
        prompt_token_count=input_tokens,
        candidates_token_count=output_tokens,
        total_token_count=input_tokens + output_tokens,
    )


class AnthropicStreamProcessor(StreamProcessor):
    """Incremental translation of Messages API stream events.

    Text deltas are emitted as they arrive. A ``tool_use`` block is opened by
    ``content_block_start``, collects its ``input_json_delta`` fragments and
    is emitted on ``content_block_stop``.
    """

    def __init__(self, correct_text: Callable[[str], str]) -> None:
        super().__init__(correct_text)
        self._input_tokens = 0
        self._output_tokens = 0
        self._handlers: dict[
            str, Callable[[MessageStreamEvent], CanonicalResponseChunk | None]
        ] = {
            "message_start": self._on_message_start,
            "content_block_start": self._on_content_block_start,
            "content_block_delta": self._on_content_block_delta,
            "content_block_stop": self._on_content_block_stop,
            "message_delta": self._on_message_delta,
            "error": self._on_error,
        }

    def is_end_of_stream(self, event: StreamEvent) -> bool:
        return event.is_done or event.data.get("type") == "message_stop"

    def process(self, data: dict[str, Any]) -> CanonicalResponseChunk | None:
        try:
            event = MessageStreamEvent.model_validate(data)
        except ValidationError as e:
            logger.debug("stream_event_ignored", error=str(e))
            return None

        handler = self._handlers.get(event.type)
        if handler is None:
            # ping and unknown event types
            return None
        return handler(event)

    def _on_message_start(self, event: MessageStreamEvent) -> None:
        if event.message is not None and event.message.usage is not None:
            self._update_usage(event.message.usage)
        return None

    def _on_content_block_start(
        self, event: MessageStreamEvent
    ) -> CanonicalResponseChunk | None:
        block = event.content_block
        if block is None:
            return None

        if block.type == "tool_use":
            if not has_tool_name(block.name):
                logger.debug("tool_use_without_name_ignored", index=event.index)
                return None
            self._calls[event.index or 0] = PendingToolCall(
                name=block.name or "",
                id=block.id,
                initial_input=dict(block.input or {}),
            )
            return None

        if block.type == "text" and block.text:
            return self._text_chunk(block.text)
        return None

    def _on_content_block_delta(
        self, event: MessageStreamEvent
    ) -> CanonicalResponseChunk | None:
        delta = event.delta
        if delta is None:
            return None

        if delta.type == "text_delta" and delta.text:
            return self._text_chunk(delta.text)

        if delta.type == "input_json_delta":
            pending = self._calls.get(event.index or 0)
            if pending is not None:
                pending.arguments += delta.partial_json or ""
        return None

    def _on_content_block_stop(
        self, event: MessageStreamEvent
    ) -> CanonicalResponseChunk | None:
        pending = self._calls.pop(event.index or 0, None)
        if pending is None:
            return None
        part = pending.to_part()
        if part is None:
            return None
        return CanonicalResponseChunk(parts=[part])

    def _on_message_delta(self, event: MessageStreamEvent) -> None:
        if event.delta is not None and event.delta.stop_reason:
            self.finish_reason = map_anthropic_stop_reason(event.delta.stop_reason)
        if event.usage is not None:
            self._update_usage(event.usage)
        return None

    def _on_error(self, event: MessageStreamEvent) -> None:
        error = event.error
        error_type = (error.type if error else None) or "error"
        message = (error.message if error else None) or ""
        logger.warning("stream_error_event", error_type=error_type, message=message)
        raise BackendStreamError(error_type, message)

    def _text_chunk(self, text: str) -> CanonicalResponseChunk:
        return CanonicalResponseChunk(parts=[Part.from_text(self.correct_text(text))])

    def _update_usage(self, usage: Usage) -> None:
        if usage.input_tokens is not None:
            self._input_tokens = usage.input_tokens
        if usage.output_tokens is not None:
            self._output_tokens = usage.output_tokens
        self.usage = UsageMetadata(
            prompt_token_count=self._input_tokens,
            candidates_token_count=self._output_tokens,
            total_token_count=self._input_tokens + self._output_tokens,
        )


class AnthropicTranslator(BaseTranslator):
    """Translator for the official Anthropic Messages API."""

    api_format = ApiFormat.ANTHROPIC

    def endpoint_url(self, base_url: str) -> str:
        url = base_url.rstrip("/")
        if url.endswith(ANTHROPIC_MESSAGES_SUFFIX):
            return url
        return url + ANTHROPIC_MESSAGES_ENDPOINT

    def build_headers(self, api_key: str) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }

    def build_request(
        self, request: CanonicalRequest, *, stream: bool = False
    ) -> dict[str, Any]:
        """
        Convert a canonical request to a Messages API body.

        The message list is repaired so it starts with a user turn and
        alternates roles.

        Args:
            request: Canonical request
            stream: Whether the backend should stream the response

        Returns:
            Anthropic format request body
        """
        ids = ToolCallIds(TOOL_USE_ID_PREFIX)
        messages = validate_message_sequence(
            [self._convert_content(content, ids) for content in request.contents]
        )

        tools = None
        tool_choice = None
        if request.tools:
            tools = [
                AnthropicTool(
                    name=tool.name,
                    description=tool.description,
                    input_schema=tool.parameters,
                )
                for tool in request.tools
            ]
            tool_choice = ToolChoice(type="auto")

        anthropic_request = CreateMessageRequest.model_validate(
            {
                "model": request.model,
                "messages": messages,
                "system": request.system_instruction or None,
                "max_tokens": request.config.max_output_tokens or DEFAULT_MAX_TOKENS,
                "temperature": request.config.temperature,
                "top_p": request.config.top_p,
                "stream": stream,
                "tools": tools,
                "tool_choice": tool_choice,
            }
        )

        logger.debug(
            "request_translated",
            api_format=self.api_format.value,
            model=request.model,
            message_count=len(messages),
            tool_count=len(request.tools),
        )

        return anthropic_request.model_dump(exclude_none=True)

    def _convert_content(self, content: Content, ids: ToolCallIds) -> dict[str, Any]:
        """Build one wire message; tool results lead a user turn."""
        role = "assistant" if content.role == "model" else "user"
        results: list[dict[str, Any]] = []
        blocks: list[dict[str, Any]] = []

        for part in content.parts:
            if part.text is not None:
                if part.text:
                    blocks.append({"type": "text", "text": part.text})
            elif part.function_call is not None:
                call = part.function_call
                blocks.append(
                    {
                        "type": "tool_use",
                        "id": ids.for_call(call),
                        "name": call.name,
                        "input": call.args,
                    }
                )
            elif part.function_response is not None:
                response = part.function_response
                results.append(
                    {
                        "type": "tool_result",
                        "tool_use_id": ids.for_response(response),
                        "content": dump_tool_response(response.response),
                    }
                )

        return {"role": role, "content": results + blocks}

    def parse_response(self, payload: Any) -> CanonicalResponse:
        """
        Convert a Messages API response to a canonical response.

        Raises:
            EmptyResponseError: If the body carries no content blocks
        """
        try:
            response = MessageResponse.model_validate(payload)
        except ValidationError as e:
            raise EmptyResponseError(f"Malformed messages response: {e}") from e

        if not response.content:
            raise EmptyResponseError("No content in messages response")

        parts: list[Part] = []
        for block in response.content:
            part = self._convert_block(block)
            if part is not None:
                parts.append(part)

        return CanonicalResponse(
            parts=parts,
            finish_reason=map_anthropic_stop_reason(response.stop_reason),
            usage=convert_usage(response.usage),
        )

    def _convert_block(self, block: ResponseContentBlock) -> Part | None:
        if block.type == "text":
            if not block.text:
                return None
            return Part.from_text(self.correct_text(block.text))

        if block.type == "tool_use":
            if not has_tool_name(block.name):
                logger.debug("tool_use_without_name_dropped", tool_use_id=block.id)
                return None
            return Part.from_function_call(
                block.name or "", dict(block.input or {}), id=block.id
            )

        logger.debug("content_block_ignored", block_type=block.type)
        return None

    def create_stream_processor(self) -> AnthropicStreamProcessor:
        return AnthropicStreamProcessor(self.correct_text)
