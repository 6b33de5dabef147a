"""Tests for the SSE streaming decoder."""

import pytest

from gengateway.core.errors import DecodeWarning
from gengateway.streaming.decoder import SSEDecoder, SSEEventSource, StreamEvent
from tests.helpers import MockResponse, sse_body


FRAMES = sse_body(
    {"id": 1, "text": "héllo wörld"},
    {"id": 2, "text": "日本語 🎉"},
    {"id": 3, "nested": {"list": [1, 2, 3]}},
    "[DONE]",
)


def _decode(chunks: list[bytes]) -> list[StreamEvent]:
    decoder = SSEDecoder()
    events: list[StreamEvent] = []
    for chunk in chunks:
        events.extend(decoder.feed(chunk))
    events.extend(decoder.flush())
    return events


@pytest.mark.unit
class TestSSEDecoder:
    """Test SSEDecoder framing."""

    def test_single_read(self) -> None:
        events = _decode([FRAMES])

        assert [event.type for event in events] == ["data", "data", "data", "done"]
        assert events[0].data == {"id": 1, "text": "héllo wörld"}
        assert events[1].data == {"id": 2, "text": "日本語 🎉"}
        assert events[3].is_done

    def test_many_events_in_one_read(self) -> None:
        body = sse_body(*({"n": n} for n in range(20_000)))
        decoder = SSEDecoder()

        events = decoder.feed(body + b'data: {"n": "tail"')

        assert [event.data for event in events] == [{"n": n} for n in range(20_000)]
        assert decoder.feed(b"}\n") == [StreamEvent(type="data", data={"n": "tail"})]

    def test_every_two_way_split_decodes_identically(self) -> None:
        expected = _decode([FRAMES])

        for split in range(len(FRAMES) + 1):
            assert _decode([FRAMES[:split], FRAMES[split:]]) == expected, split

    def test_byte_by_byte(self) -> None:
        expected = _decode([FRAMES])
        chunks = [FRAMES[i : i + 1] for i in range(len(FRAMES))]

        assert _decode(chunks) == expected

    def test_uneven_chunks(self) -> None:
        expected = _decode([FRAMES])
        sizes = [3, 7, 1, 13, 2, 5]
        chunks: list[bytes] = []
        pos = 0
        index = 0
        while pos < len(FRAMES):
            size = sizes[index % len(sizes)]
            chunks.append(FRAMES[pos : pos + size])
            pos += size
            index += 1

        assert _decode(chunks) == expected

    def test_multibyte_character_split_across_reads(self) -> None:
        payload = 'data: {"text": "€"}\n\n'.encode()
        euro_at = payload.index("€".encode())

        events = _decode([payload[: euro_at + 1], payload[euro_at + 1 :]])

        assert events == [StreamEvent(type="data", data={"text": "€"})]

    def test_done_is_not_parsed_as_json(self) -> None:
        assert _decode([b"data: [DONE]\n\n"]) == [StreamEvent(type="done")]

    def test_ignores_non_data_lines(self) -> None:
        body = (
            b": keep-alive\n"
            b"event: message_start\n"
            b"id: 7\n"
            b"retry: 100\n"
            b"\n"
            b'data: {"ok": true}\n\n'
        )

        assert _decode([body]) == [StreamEvent(type="data", data={"ok": True})]

    def test_crlf_and_no_space_after_colon(self) -> None:
        body = b'data:{"a": 1}\r\n\r\ndata: {"b": 2}\r\n\r\n'

        assert [event.data for event in _decode([body])] == [{"a": 1}, {"b": 2}]

    def test_empty_payloads_are_skipped(self) -> None:
        assert _decode([b"data:\n\ndata:   \n\n"]) == []

    def test_malformed_json_discards_only_that_event(self) -> None:
        body = b'data: {"a": 1}\n\ndata: {broken\n\ndata: {"b": 2}\n\n'
        decoder = SSEDecoder()

        with pytest.warns(DecodeWarning):
            events = decoder.feed(body)

        assert [event.data for event in events] == [{"a": 1}, {"b": 2}]
        assert decoder.discarded == 1

    def test_non_object_payload_is_discarded(self) -> None:
        decoder = SSEDecoder()

        with pytest.warns(DecodeWarning):
            events = decoder.feed(b"data: [1, 2]\n\n")

        assert events == []

    def test_flush_handles_unterminated_last_line(self) -> None:
        decoder = SSEDecoder()

        assert decoder.feed(b'data: {"tail": true}') == []
        assert decoder.flush() == [StreamEvent(type="data", data={"tail": True})]


@pytest.mark.unit
class TestSSEEventSource:
    """Test the httpx response adapter."""

    async def test_get_events(self) -> None:
        response = MockResponse([FRAMES[:10], FRAMES[10:40], FRAMES[40:]])
        source = SSEEventSource(response)  # type: ignore[arg-type]

        events = [event async for event in source.get_events()]

        assert events == _decode([FRAMES])

    async def test_ends_with_transport(self) -> None:
        source = SSEEventSource(MockResponse([b'data: {"x": 1}\n']))  # type: ignore[arg-type]

        events = [event async for event in source.get_events()]

        assert events == [StreamEvent(type="data", data={"x": 1})]
