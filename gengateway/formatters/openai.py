"""Translation between canonical models and the OpenAI chat completions API."""

from typing import Any

from pydantic import ValidationError

from gengateway.config.constants import OPENAI_CHAT_COMPLETIONS_PATH
from gengateway.core.errors import BackendStreamError, EmptyResponseError
from gengateway.core.logging import get_logger
from gengateway.models.canonical import (
    CanonicalRequest,
    CanonicalResponse,
    CanonicalResponseChunk,
    Content,
    Part,
    UsageMetadata,
)
from gengateway.models.openai import (
    OpenAIChatCompletionRequest,
    OpenAIChatCompletionResponse,
    OpenAIFunction,
    OpenAIFunctionCall,
    OpenAIMessage,
    OpenAIResponseMessage,
    OpenAIResponseToolCall,
    OpenAIStreamingChatCompletionResponse,
    OpenAIStreamingFunction,
    OpenAIStreamingToolCall,
    OpenAITool,
    OpenAIToolCall,
    OpenAIUsage,
)
from gengateway.models.types import ApiFormat

from .base import BaseTranslator, PendingToolCall, StreamProcessor
from .shared import (
    ToolCallIds,
    dump_tool_response,
    has_tool_name,
    map_openai_finish_reason,
    parse_tool_arguments,
)


logger = get_logger(__name__)

TOOL_CALL_ID_PREFIX = "call_"


def convert_usage(usage: OpenAIUsage | None) -> UsageMetadata | None:
    """Map OpenAI usage counters; missing counters count as zero."""
    if usage is None:
        return None
    prompt = usage.prompt_tokens or 0
    completion = usage.completion_tokens or 0
    total = usage.total_tokens if usage.total_tokens is not None else prompt + completion
    return UsageMetadata(
        prompt_token_count=prompt,
        candidates_token_count=completion,
        total_token_count=total,
    )


class OpenAIStreamProcessor(StreamProcessor):
    """Incremental translation of chat completion chunks.

    Tool calls are keyed by their ``index``. A call is emitted on the chunk
    that names it when its arguments already form a JSON object; otherwise
    the argument fragments are buffered. A buffered call is flushed as soon
    as anything else is generated after it, and at the end of the stream.
    """

    def process(self, data: dict[str, Any]) -> CanonicalResponseChunk | None:
        if "error" in data and not data.get("choices"):
            error = data["error"]
            if isinstance(error, dict):
                raise BackendStreamError(
                    str(error.get("type") or error.get("code") or "error"),
                    str(error.get("message", "")),
                )
            raise BackendStreamError("error", str(error))

        try:
            chunk = OpenAIStreamingChatCompletionResponse.model_validate(data)
        except ValidationError as e:
            logger.debug("stream_chunk_ignored", error=str(e))
            return None

        if chunk.usage is not None:
            self.usage = convert_usage(chunk.usage)

        if not chunk.choices:
            return None

        choice = chunk.choices[0]
        parts: list[Part] = []

        if choice.delta is not None:
            if choice.delta.content:
                parts.extend(self.pending_parts())
                parts.append(Part.from_text(self.correct_text(choice.delta.content)))
            for tool_call in choice.delta.tool_calls or []:
                parts.extend(self._track_tool_call(tool_call))

        finish_reason = None
        if choice.finish_reason:
            finish_reason = map_openai_finish_reason(choice.finish_reason)
            self.finish_reason = finish_reason
            parts.extend(self.pending_parts())

        if not parts:
            return None

        return CanonicalResponseChunk(parts=parts, finish_reason=finish_reason)

    def _track_tool_call(self, tool_call: OpenAIStreamingToolCall) -> list[Part]:
        index = tool_call.index if tool_call.index is not None else 0
        function = tool_call.function or OpenAIStreamingFunction()
        pending = self._calls.get(index)
        emitted: list[Part] = []

        if has_tool_name(function.name):
            # Earlier calls are complete once a new one is named, including
            # backends that reuse index 0 for consecutive calls
            emitted.extend(self.pending_parts())

            call = PendingToolCall(
                name=function.name or "",
                id=tool_call.id,
                arguments=function.arguments or "",
            )
            if (
                call.arguments.strip()
                and parse_tool_arguments(call.arguments) is not None
            ):
                part = call.to_part()
                if part is not None:
                    emitted.append(part)
            else:
                self._calls[index] = call
            return emitted

        if pending is None:
            logger.debug("stream_tool_call_fragment_ignored", index=index)
            return emitted

        if tool_call.id and pending.id is None:
            pending.id = tool_call.id
        pending.arguments += function.arguments or ""
        return emitted


class OpenAITranslator(BaseTranslator):
    """Translator for OpenAI-compatible chat completions backends."""

    api_format = ApiFormat.OPENAI

    def endpoint_url(self, base_url: str) -> str:
        url = base_url.rstrip("/")
        if url.endswith(OPENAI_CHAT_COMPLETIONS_PATH):
            return url
        return url + OPENAI_CHAT_COMPLETIONS_PATH

    def build_headers(self, api_key: str) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
        }

    def build_request(
        self, request: CanonicalRequest, *, stream: bool = False
    ) -> dict[str, Any]:
        """
        Convert a canonical request to a chat completions body.

        Args:
            request: Canonical request
            stream: Whether the backend should stream the response

        Returns:
            OpenAI format request body
        """
        messages = self._convert_contents(request)

        tools = None
        tool_choice = None
        if request.tools:
            tools = [
                OpenAITool(
                    function=OpenAIFunction(
                        name=tool.name,
                        description=tool.description,
                        parameters=tool.parameters,
                    )
                )
                for tool in request.tools
            ]
            tool_choice = "auto"

        openai_request = OpenAIChatCompletionRequest(
            model=request.model,
            messages=messages,
            temperature=request.config.temperature,
            max_tokens=request.config.max_output_tokens,
            top_p=request.config.top_p,
            stream=stream,
            tools=tools,
            tool_choice=tool_choice,
        )

        logger.debug(
            "request_translated",
            api_format=self.api_format.value,
            model=request.model,
            message_count=len(messages),
            tool_count=len(request.tools),
        )

        return openai_request.model_dump(exclude_none=True)

    def _convert_contents(self, request: CanonicalRequest) -> list[OpenAIMessage]:
        messages: list[OpenAIMessage] = []
        ids = ToolCallIds(TOOL_CALL_ID_PREFIX)

        if request.system_instruction:
            messages.append(
                OpenAIMessage(role="system", content=request.system_instruction)
            )

        for content in request.contents:
            if content.role == "model":
                assistant = self._convert_model_turn(content, ids)
                if assistant is not None:
                    messages.append(assistant)
            else:
                messages.extend(self._convert_user_turn(content, ids))

        return messages

    def _convert_user_turn(
        self, content: Content, ids: ToolCallIds
    ) -> list[OpenAIMessage]:
        messages: list[OpenAIMessage] = []
        texts: list[str] = []

        for part in content.parts:
            if part.function_response is not None:
                response = part.function_response
                messages.append(
                    OpenAIMessage(
                        role="tool",
                        tool_call_id=ids.for_response(response),
                        name=response.name,
                        content=dump_tool_response(response.response),
                    )
                )
            elif part.text is not None:
                texts.append(part.text)

        # tool messages precede the text of the same turn
        if texts:
            messages.append(OpenAIMessage(role="user", content="".join(texts)))
        return messages

    def _convert_model_turn(
        self, content: Content, ids: ToolCallIds
    ) -> OpenAIMessage | None:
        texts: list[str] = []
        tool_calls: list[OpenAIToolCall] = []

        for part in content.parts:
            if part.function_call is not None:
                call = part.function_call
                tool_calls.append(
                    OpenAIToolCall(
                        id=ids.for_call(call),
                        function=OpenAIFunctionCall(
                            name=call.name, arguments=dump_tool_response(call.args)
                        ),
                    )
                )
            elif part.text is not None:
                texts.append(part.text)

        if not texts and not tool_calls:
            return None

        return OpenAIMessage(
            role="assistant",
            content="".join(texts) if texts else None,
            tool_calls=tool_calls or None,
        )

    def parse_response(self, payload: Any) -> CanonicalResponse:
        """
        Convert a chat completions response to a canonical response.

        Raises:
            EmptyResponseError: If the body carries no choice or message
        """
        try:
            response = OpenAIChatCompletionResponse.model_validate(payload)
        except ValidationError as e:
            raise EmptyResponseError(
                f"Malformed chat completion response: {e}"
            ) from e

        if not response.choices:
            raise EmptyResponseError("No choices in chat completion response")

        choice = response.choices[0]
        if choice.message is None:
            raise EmptyResponseError("First choice carries no message")

        return CanonicalResponse(
            parts=self._convert_message(choice.message),
            finish_reason=map_openai_finish_reason(choice.finish_reason),
            usage=convert_usage(response.usage),
        )

    def _convert_message(self, message: OpenAIResponseMessage) -> list[Part]:
        parts: list[Part] = []
        if message.content:
            parts.append(Part.from_text(self.correct_text(message.content)))
        for tool_call in message.tool_calls or []:
            part = self._convert_tool_call(tool_call)
            if part is not None:
                parts.append(part)
        return parts

    def _convert_tool_call(self, tool_call: OpenAIResponseToolCall) -> Part | None:
        function = tool_call.function
        if function is None or not has_tool_name(function.name):
            logger.debug("tool_call_without_name_dropped", tool_call_id=tool_call.id)
            return None

        args = parse_tool_arguments(function.arguments)
        if args is None:
            logger.warning(
                "tool_call_dropped",
                tool_name=function.name,
                reason="arguments are not a JSON object",
            )
            return None

        return Part.from_function_call(function.name, args, id=tool_call.id)

    def create_stream_processor(self) -> OpenAIStreamProcessor:
        return OpenAIStreamProcessor(self.correct_text)
