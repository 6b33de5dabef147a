"""Server-Sent Events framing for streamed backend responses.

The decoder is protocol agnostic: it turns transport bytes into ``data:``
payloads and knows nothing about OpenAI or Anthropic event shapes.

Key components:
- StreamEvent: one decoded event (a JSON object, or the end-of-stream marker)
- SSEDecoder: incremental byte-to-event decoder, tolerant of split frames
- SSEEventSource: adapts an httpx streaming response to decoded events
"""

import codecs
import json
import warnings
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any, Literal

import httpx

from gengateway.config.constants import SSE_DATA_PREFIX, SSE_DONE_SENTINEL
from gengateway.core.errors import DecodeWarning
from gengateway.core.logging import get_logger


logger = get_logger(__name__)


@dataclass
class StreamEvent:
    """A decoded ``data:`` event."""

    type: Literal["data", "done"]
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def is_done(self) -> bool:
        return self.type == "done"


class SSEDecoder:
    """Incremental SSE decoder.

    Bytes are decoded with a stateful UTF-8 decoder, so a multi-byte character
    split across two reads is reassembled, and text is buffered until a full
    line is available. Malformed JSON payloads are dropped one event at a
    time; decoding never raises.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self.discarded = 0

    def feed(self, chunk: bytes) -> list[StreamEvent]:
        """Consume one transport read and return the events it completed."""
        self._buffer += self._decoder.decode(chunk)
        return self._drain_lines()

    def flush(self) -> list[StreamEvent]:
        """Decode whatever is left once the transport reports end-of-data."""
        self._buffer += self._decoder.decode(b"", final=True)
        events = self._drain_lines()
        if self._buffer:
            line, self._buffer = self._buffer, ""
            event = self._parse_line(line)
            if event is not None:
                events.append(event)
        return events

    def _drain_lines(self) -> list[StreamEvent]:
        events: list[StreamEvent] = []
        lines = self._buffer.split("\n")
        self._buffer = lines.pop()
        for line in lines:
            event = self._parse_line(line)
            if event is not None:
                events.append(event)
        return events

    def _parse_line(self, line: str) -> StreamEvent | None:
        line = line.rstrip("\r")
        if not line.startswith(SSE_DATA_PREFIX):
            return None

        payload = line[len(SSE_DATA_PREFIX) :]
        if payload.startswith(" "):
            payload = payload[1:]
        payload = payload.strip()

        if not payload:
            return None
        if payload == SSE_DONE_SENTINEL:
            return StreamEvent(type="done")

        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            self._discard(payload, f"invalid JSON: {e.msg}")
            return None

        if not isinstance(data, dict):
            self._discard(payload, "payload is not a JSON object")
            return None

        return StreamEvent(type="data", data=data)

    def _discard(self, payload: str, reason: str) -> None:
        self.discarded += 1
        logger.debug("sse_event_discarded", reason=reason, payload=payload[:200])
        warnings.warn(
            f"Discarded malformed stream event ({reason})", DecodeWarning, stacklevel=4
        )


class SSEEventSource:
    """Event source for SSE (Server-Sent Events) responses."""

    def __init__(self, response: httpx.Response) -> None:
        """Initialize with httpx streaming response."""
        self.response = response
        self.decoder = SSEDecoder()

    def get_events(self) -> AsyncIterator[StreamEvent]:
        """Decode the response body into events until the transport ends."""
        return self._get_events_impl()

    async def _get_events_impl(self) -> AsyncIterator[StreamEvent]:
        async for chunk in self.response.aiter_bytes():
            for event in self.decoder.feed(chunk):
                yield event

        for event in self.decoder.flush():
            yield event
