"""OpenAI-compatible wire models (also spoken by Qwen).

Request models are strict so the translator can only build bodies the chat
completions endpoint accepts. Response models ignore unknown fields because
compatible backends add vendor extensions freely.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from .types import OpenAIMessageRole


class OpenAIFunctionCall(BaseModel):
    """Function name and JSON-encoded arguments of a tool call."""

    name: str
    arguments: str = "{}"


class OpenAIToolCall(BaseModel):
    """Tool call attached to an assistant message."""

    id: str
    type: Literal["function"] = "function"
    function: OpenAIFunctionCall


class OpenAIMessage(BaseModel):
    """Chat message sent to the backend."""

    role: Annotated[
        OpenAIMessageRole, Field(description="The role of the message sender")
    ]
    content: str | None = None
    tool_calls: list[OpenAIToolCall] | None = None
    tool_call_id: str | None = None
    name: str | None = None

    model_config = ConfigDict(extra="forbid")


class OpenAIFunction(BaseModel):
    """Function definition."""

    name: str = Field(..., description="The name of the function")
    description: str | None = Field(
        None, description="A description of what the function does"
    )
    parameters: dict[str, Any] | None = Field(
        None, description="The parameters the function accepts as JSON Schema"
    )

    model_config = ConfigDict(extra="forbid")


class OpenAITool(BaseModel):
    """Tool definition."""

    type: Literal["function"] = "function"
    function: OpenAIFunction


class OpenAIChatCompletionRequest(BaseModel):
    """Body of ``POST /chat/completions``."""

    model: str
    messages: list[OpenAIMessage]
    temperature: float | None = None
    max_tokens: int | None = None
    top_p: float | None = None
    stream: bool | None = None
    tools: list[OpenAITool] | None = None
    tool_choice: Literal["none", "auto"] | None = None

    model_config = ConfigDict(extra="forbid")


# Response side


class OpenAIResponseToolCall(BaseModel):
    """Tool call in a unary response."""

    id: str | None = None
    type: str | None = "function"
    function: OpenAIFunctionCall | None = None

    model_config = ConfigDict(extra="ignore")


class OpenAIResponseMessage(BaseModel):
    """Assistant message of a choice."""

    role: str | None = None
    content: str | None = None
    tool_calls: list[OpenAIResponseToolCall] | None = None

    model_config = ConfigDict(extra="ignore")


class OpenAIChoice(BaseModel):
    """A single completion choice."""

    index: int = 0
    message: OpenAIResponseMessage | None = None
    finish_reason: str | None = None

    model_config = ConfigDict(extra="ignore")


class OpenAIUsage(BaseModel):
    """Token usage counters; any may be missing."""

    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    total_tokens: int | None = None

    model_config = ConfigDict(extra="ignore")


class OpenAIChatCompletionResponse(BaseModel):
    """Unary chat completion response."""

    id: str | None = None
    model: str | None = None
    choices: list[OpenAIChoice] | None = None
    usage: OpenAIUsage | None = None

    model_config = ConfigDict(extra="ignore")


# Streaming


class OpenAIStreamingFunction(BaseModel):
    """Partial function data of a streamed tool call."""

    name: str | None = None
    arguments: str | None = None

    model_config = ConfigDict(extra="ignore")


class OpenAIStreamingToolCall(BaseModel):
    """Partial tool call, keyed by ``index`` across chunks."""

    index: int | None = None
    id: str | None = None
    type: str | None = None
    function: OpenAIStreamingFunction | None = None

    model_config = ConfigDict(extra="ignore")


class OpenAIStreamingDelta(BaseModel):
    """Delta carried by a streamed choice."""

    role: str | None = None
    content: str | None = None
    tool_calls: list[OpenAIStreamingToolCall] | None = None

    model_config = ConfigDict(extra="ignore")


class OpenAIStreamingChoice(BaseModel):
    """A streamed choice."""

    index: int = 0
    delta: OpenAIStreamingDelta | None = None
    finish_reason: str | None = None

    model_config = ConfigDict(extra="ignore")


class OpenAIStreamingChatCompletionResponse(BaseModel):
    """One ``data:`` event of a chat completions stream."""

    id: str | None = None
    choices: list[OpenAIStreamingChoice] | None = None
    usage: OpenAIUsage | None = None

    model_config = ConfigDict(extra="ignore")
