"""Anthropic Messages API wire models."""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from .types import AnthropicMessageRole


class TextBlock(BaseModel):
    """Text content block."""

    type: Literal["text"] = "text"
    text: str


class ToolUseBlock(BaseModel):
    """Tool invocation requested by the assistant."""

    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: dict[str, Any] = Field(default_factory=dict)


class ToolResultBlock(BaseModel):
    """Tool output sent back by the user turn."""

    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str
    content: str


ContentBlock = Annotated[
    TextBlock | ToolUseBlock | ToolResultBlock, Field(discriminator="type")
]


class AnthropicMessage(BaseModel):
    """Message of the ``messages`` array."""

    role: AnthropicMessageRole
    content: str | list[ContentBlock]

    model_config = ConfigDict(extra="forbid")


class AnthropicTool(BaseModel):
    """Tool definition."""

    name: str
    description: str | None = None
    input_schema: dict[str, Any] | None = None


class ToolChoice(BaseModel):
    """How the model should use tools."""

    type: Literal["auto", "any", "tool", "none"] = "auto"
    name: str | None = None


class CreateMessageRequest(BaseModel):
    """Body of ``POST /v1/messages``."""

    model: str
    messages: list[AnthropicMessage]
    system: str | None = None
    max_tokens: Annotated[int, Field(ge=1, description="Required by the API")]
    temperature: float | None = None
    top_p: float | None = None
    stream: bool | None = None
    tools: list[AnthropicTool] | None = None
    tool_choice: ToolChoice | None = None

    model_config = ConfigDict(extra="forbid")


# Response side


class ResponseContentBlock(BaseModel):
    """Content block of a response; unknown block types are tolerated."""

    type: str
    text: str | None = None
    id: str | None = None
    name: str | None = None
    input: dict[str, Any] | None = None

    model_config = ConfigDict(extra="ignore")


class Usage(BaseModel):
    """Token usage counters."""

    input_tokens: int | None = None
    output_tokens: int | None = None

    model_config = ConfigDict(extra="ignore")


class MessageResponse(BaseModel):
    """Unary Messages API response."""

    id: str | None = None
    model: str | None = None
    content: list[ResponseContentBlock] | None = None
    stop_reason: str | None = None
    usage: Usage | None = None

    model_config = ConfigDict(extra="ignore")


# Streaming


class StreamDelta(BaseModel):
    """Delta of ``content_block_delta`` and ``message_delta`` events."""

    type: str | None = None
    text: str | None = None
    partial_json: str | None = None
    stop_reason: str | None = None

    model_config = ConfigDict(extra="ignore")


class StreamError(BaseModel):
    """Error payload of an ``error`` event."""

    type: str | None = None
    message: str | None = None

    model_config = ConfigDict(extra="ignore")


class MessageStreamEvent(BaseModel):
    """One ``data:`` event of a Messages API stream."""

    type: str
    index: int | None = None
    message: MessageResponse | None = None
    content_block: ResponseContentBlock | None = None
    delta: StreamDelta | None = None
    usage: Usage | None = None
    error: StreamError | None = None

    model_config = ConfigDict(extra="ignore")
