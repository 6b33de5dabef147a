"""Translator interfaces shared by the three wire protocols."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, ClassVar

from gengateway.correction import ToolFormatConverter
from gengateway.core.logging import get_logger
from gengateway.models.canonical import (
    CanonicalRequest,
    CanonicalResponse,
    CanonicalResponseChunk,
    Part,
    UsageMetadata,
)
from gengateway.models.types import ApiFormat, FinishReason
from gengateway.streaming.decoder import StreamEvent

from .shared import parse_tool_arguments


logger = get_logger(__name__)


@dataclass
class PendingToolCall:
    """A streamed tool call whose arguments are still arriving."""

    name: str
    id: str | None = None
    arguments: str = ""
    initial_input: dict[str, Any] = field(default_factory=dict)

    def to_part(self) -> Part | None:
        """Build the function-call part, or ``None`` if the arguments are invalid."""
        if self.arguments.strip():
            args = parse_tool_arguments(self.arguments)
        else:
            args = dict(self.initial_input)
        if args is None:
            logger.warning(
                "stream_tool_call_dropped",
                tool_name=self.name,
                reason="arguments are not a JSON object",
            )
            return None
        return Part.from_function_call(self.name, args, id=self.id)


class StreamProcessor(ABC):
    """Turns decoded events of one stream into incremental canonical responses.

    A processor holds the per-stream state (partial tool calls, finish
    reason, usage) and must not be reused across calls.
    """

    def __init__(self, correct_text: Callable[[str], str]) -> None:
        self.correct_text = correct_text
        self.finish_reason: FinishReason | None = None
        self.usage: UsageMetadata | None = None
        self._calls: dict[int, PendingToolCall] = {}

    def is_end_of_stream(self, event: StreamEvent) -> bool:
        """Whether ``event`` is the protocol's end-of-stream sentinel."""
        return event.is_done

    @abstractmethod
    def process(self, data: dict[str, Any]) -> CanonicalResponseChunk | None:
        """Translate one event payload; ``None`` suppresses the event."""

    def pending_parts(self) -> list[Part]:
        """Flush buffered tool calls in index order, dropping invalid ones."""
        parts: list[Part] = []
        for index in sorted(self._calls):
            part = self._calls[index].to_part()
            if part is not None:
                parts.append(part)
        self._calls.clear()
        return parts

    def complete(self) -> list[CanonicalResponseChunk]:
        """Chunks to emit once the stream has ended, terminal chunk last."""
        chunks: list[CanonicalResponseChunk] = []
        leftover = self.pending_parts()
        if leftover:
            chunks.append(
                CanonicalResponseChunk(parts=leftover, finish_reason=self.finish_reason)
            )
        chunks.append(CanonicalResponseChunk.terminal(usage=self.usage))
        return chunks


class BaseTranslator(ABC):
    """Translates canonical requests to one wire protocol and responses back.

    Every text fragment leaving a translator has been through the tool-call
    correction engine.
    """

    api_format: ClassVar[ApiFormat]

    def __init__(self, converter: ToolFormatConverter | None = None) -> None:
        self.converter = converter or ToolFormatConverter()

    def correct_text(self, text: str) -> str:
        return self.converter.convert(text)

    @abstractmethod
    def endpoint_url(self, base_url: str) -> str:
        """Full URL of the generation endpoint for ``base_url``."""

    @abstractmethod
    def build_headers(self, api_key: str) -> dict[str, str]:
        """Request headers, including authentication."""

    @abstractmethod
    def build_request(
        self, request: CanonicalRequest, *, stream: bool = False
    ) -> dict[str, Any]:
        """Wire request body for ``request``."""

    @abstractmethod
    def parse_response(self, payload: Any) -> CanonicalResponse:
        """Canonical response for a unary wire response body."""

    @abstractmethod
    def create_stream_processor(self) -> StreamProcessor:
        """Fresh processor for one streamed response."""
