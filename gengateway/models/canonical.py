"""Canonical, protocol-neutral request and response models.

These are the only shapes callers exchange with the gateway. Wire models for
each backend live next to this module and never cross the public boundary.
"""

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .types import CanonicalRole, FinishReason


class FunctionCall(BaseModel):
    """A structured request from the model to invoke a named tool."""

    name: Annotated[str, Field(description="Tool name")]
    args: Annotated[
        dict[str, Any], Field(description="Tool arguments as a JSON object")
    ] = Field(default_factory=dict)
    id: Annotated[
        str | None, Field(description="Call identifier, synthesized when absent")
    ] = None


class FunctionResponse(BaseModel):
    """The result of a tool invocation sent back to the model."""

    name: Annotated[str, Field(description="Tool name that produced the result")]
    response: Annotated[Any, Field(description="JSON-serializable tool output")] = (
        None
    )
    id: Annotated[
        str | None, Field(description="Identifier of the call being answered")
    ] = None


class Part(BaseModel):
    """One content part: text, a function call or a function response."""

    text: str | None = None
    function_call: FunctionCall | None = None
    function_response: FunctionResponse | None = None

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def validate_single_kind(self) -> "Part":
        """Ensure exactly one kind of payload is set."""
        populated = [
            value
            for value in (self.text, self.function_call, self.function_response)
            if value is not None
        ]
        if len(populated) != 1:
            raise ValueError(
                "A part must carry exactly one of text, function_call or function_response"
            )
        return self

    @classmethod
    def from_text(cls, text: str) -> "Part":
        return cls(text=text)

    @classmethod
    def from_function_call(
        cls, name: str, args: dict[str, Any] | None = None, id: str | None = None
    ) -> "Part":
        return cls(function_call=FunctionCall(name=name, args=args or {}, id=id))

    @classmethod
    def from_function_response(
        cls, name: str, response: Any, id: str | None = None
    ) -> "Part":
        return cls(
            function_response=FunctionResponse(name=name, response=response, id=id)
        )


class Content(BaseModel):
    """A single conversation turn."""

    role: Annotated[CanonicalRole, Field(description="Turn author")]
    parts: Annotated[list[Part], Field(description="Ordered content parts")] = Field(
        default_factory=list
    )


class GenerationConfig(BaseModel):
    """Sampling configuration forwarded to the backend."""

    temperature: float | None = None
    max_output_tokens: Annotated[int | None, Field(ge=1)] = None
    top_p: float | None = None


class FunctionDeclaration(BaseModel):
    """A tool the model may call."""

    name: Annotated[str, Field(description="Tool name")]
    description: str | None = None
    parameters: Annotated[
        dict[str, Any] | None, Field(description="JSON Schema of the parameters")
    ] = None


class CanonicalRequest(BaseModel):
    """Protocol-neutral content-generation request."""

    model: Annotated[str, Field(description="Backend model identifier")]
    contents: Annotated[list[Content], Field(description="Ordered turns")] = Field(
        default_factory=list
    )
    system_instruction: str | None = None
    config: GenerationConfig = Field(default_factory=GenerationConfig)
    tools: list[FunctionDeclaration] = Field(default_factory=list)


class UsageMetadata(BaseModel):
    """Token accounting reported by the backend."""

    prompt_token_count: int = 0
    candidates_token_count: int = 0
    total_token_count: int = 0


class CanonicalResponse(BaseModel):
    """Protocol-neutral content-generation response."""

    parts: list[Part] = Field(default_factory=list)
    finish_reason: FinishReason | None = None
    usage: UsageMetadata | None = None

    @property
    def text(self) -> str:
        """Concatenated text of all text parts."""
        return "".join(part.text for part in self.parts if part.text is not None)

    @property
    def function_calls(self) -> list[FunctionCall]:
        """Function calls in generation order."""
        return [
            part.function_call
            for part in self.parts
            if part.function_call is not None
        ]


class CanonicalResponseChunk(CanonicalResponse):
    """Incremental response carrying only the delta since the previous chunk.

    The terminal chunk of a stream has no parts, ``finish_reason`` ``STOP`` and
    ``done`` set.
    """

    done: bool = False

    @classmethod
    def terminal(cls, usage: UsageMetadata | None = None) -> "CanonicalResponseChunk":
        return cls(parts=[], finish_reason=FinishReason.STOP, usage=usage, done=True)


class CountTokensResponse(BaseModel):
    """Estimated token count for a request."""

    total_tokens: int
