"""Tests for the Anthropic Messages API translator."""

import itertools
import json
from typing import Any

import pytest

from gengateway.core.errors import EmptyResponseError
from gengateway.formatters.anthropic import AnthropicTranslator
from gengateway.models.canonical import (
    CanonicalRequest,
    Content,
    GenerationConfig,
    Part,
)
from gengateway.models.types import FinishReason


@pytest.fixture
def translator() -> AnthropicTranslator:
    return AnthropicTranslator()


def _turn(role: str, kind: str) -> Content:
    parts = {
        "text": [Part.from_text(f"{role} says hi")],
        "blank": [Part.from_text("")],
        "empty": [],
        "call": [Part.from_function_call("lookup", {"q": role})],
        "result": [Part.from_function_response("lookup", {"ok": True})],
    }[kind]
    return Content(role=role, parts=parts)


def _conversations() -> list[list[Content]]:
    turns = [
        ("user", "text"),
        ("user", "blank"),
        ("user", "result"),
        ("model", "text"),
        ("model", "empty"),
        ("model", "call"),
    ]
    conversations: list[list[Content]] = [[]]
    for length in (1, 2, 3):
        for combo in itertools.product(turns, repeat=length):
            conversations.append([_turn(role, kind) for role, kind in combo])
    return conversations


@pytest.mark.unit
class TestEndpointAndHeaders:
    """Test URL and header construction."""

    @pytest.mark.parametrize(
        ("base_url", "expected"),
        [
            ("https://api.anthropic.com", "https://api.anthropic.com/v1/messages"),
            ("https://api.anthropic.com/", "https://api.anthropic.com/v1/messages"),
            (
                "https://api.anthropic.com/v1/messages",
                "https://api.anthropic.com/v1/messages",
            ),
        ],
    )
    def test_endpoint_url(
        self, translator: AnthropicTranslator, base_url: str, expected: str
    ) -> None:
        assert translator.endpoint_url(base_url) == expected

    def test_headers(self, translator: AnthropicTranslator) -> None:
        assert translator.build_headers("sk-ant") == {
            "Content-Type": "application/json",
            "x-api-key": "sk-ant",
            "anthropic-version": "2023-06-01",
        }


@pytest.mark.unit
class TestBuildRequest:
    """Test canonical to Messages API translation."""

    def test_simple_request(
        self, translator: AnthropicTranslator, simple_request: CanonicalRequest
    ) -> None:
        body = translator.build_request(simple_request, stream=True)

        assert body == {
            "model": "test-model",
            "system": "You are terse.",
            "messages": [
                {
                    "role": "user",
                    "content": [{"type": "text", "text": "Hello there"}],
                }
            ],
            "max_tokens": 128,
            "temperature": 0.2,
            "top_p": 0.9,
            "stream": True,
        }

    def test_max_tokens_defaults(self, translator: AnthropicTranslator) -> None:
        request = CanonicalRequest(
            model="m",
            contents=[_turn("user", "text")],
            config=GenerationConfig(),
        )

        body = translator.build_request(request)

        assert body["max_tokens"] == 4096
        assert body["stream"] is False
        assert "system" not in body

    def test_tool_round_trip(
        self, translator: AnthropicTranslator, tool_request: CanonicalRequest
    ) -> None:
        body = translator.build_request(tool_request)
        messages: list[dict[str, Any]] = body["messages"]

        assert [message["role"] for message in messages] == [
            "user",
            "assistant",
            "user",
        ]

        text_block, tool_use = messages[1]["content"]
        assert text_block == {"type": "text", "text": "Let me check."}
        assert tool_use["type"] == "tool_use"
        assert tool_use["id"].startswith("toolu_")
        assert tool_use["name"] == "get_weather"
        assert tool_use["input"] == {"city": "Paris"}

        tool_result, thanks = messages[2]["content"]
        assert tool_result["type"] == "tool_result"
        assert tool_result["tool_use_id"] == tool_use["id"]
        assert json.loads(tool_result["content"]) == {"temp": 21}
        assert thanks == {"type": "text", "text": "Thanks"}

        assert body["tool_choice"] == {"type": "auto"}
        assert body["tools"][0]["name"] == "get_weather"
        assert body["tools"][0]["input_schema"]["type"] == "object"

    def test_system_never_in_messages(
        self, translator: AnthropicTranslator, simple_request: CanonicalRequest
    ) -> None:
        body = translator.build_request(simple_request)

        assert all(message["role"] != "system" for message in body["messages"])

    def test_leading_model_turn_gets_placeholder(
        self, translator: AnthropicTranslator
    ) -> None:
        request = CanonicalRequest(model="m", contents=[_turn("model", "text")])

        messages = translator.build_request(request)["messages"]

        assert messages[0] == {
            "role": "user",
            "content": "Please respond to the following.",
        }
        assert messages[1]["role"] == "assistant"

    def test_empty_conversation(self, translator: AnthropicTranslator) -> None:
        request = CanonicalRequest(model="m", contents=[])

        assert translator.build_request(request)["messages"] == [
            {"role": "user", "content": "Hello"}
        ]

    @pytest.mark.parametrize("contents", _conversations())
    def test_messages_start_with_user_and_alternate(
        self, translator: AnthropicTranslator, contents: list[Content]
    ) -> None:
        request = CanonicalRequest(model="m", contents=contents)

        messages = translator.build_request(request)["messages"]

        assert messages
        assert messages[0]["role"] == "user"
        for previous, current in zip(messages, messages[1:], strict=False):
            assert previous["role"] != current["role"]
        for message in messages:
            assert message["content"]


@pytest.mark.unit
class TestParseResponse:
    """Test Messages API response translation."""

    def test_text_and_tool_use(self, translator: AnthropicTranslator) -> None:
        response = translator.parse_response(
            {
                "id": "msg_1",
                "content": [
                    {"type": "text", "text": "Checking."},
                    {
                        "type": "tool_use",
                        "id": "toolu_1",
                        "name": "get_weather",
                        "input": {"city": "Paris"},
                    },
                    {"type": "tool_use", "id": "toolu_2", "name": "", "input": {}},
                ],
                "stop_reason": "tool_use",
                "usage": {"input_tokens": 12, "output_tokens": 8},
            }
        )

        assert response.text == "Checking."
        [call] = response.function_calls
        assert call.name == "get_weather"
        assert call.id == "toolu_1"
        assert call.args == {"city": "Paris"}
        assert response.finish_reason == FinishReason.STOP
        assert response.usage is not None
        assert response.usage.total_token_count == 20

    @pytest.mark.parametrize(
        ("reason", "expected"),
        [
            ("end_turn", FinishReason.STOP),
            ("stop_sequence", FinishReason.STOP),
            ("tool_use", FinishReason.STOP),
            ("max_tokens", FinishReason.MAX_TOKENS),
            ("refusal", FinishReason.OTHER),
            (None, FinishReason.OTHER),
        ],
    )
    def test_stop_reason_table(
        self,
        translator: AnthropicTranslator,
        reason: str | None,
        expected: FinishReason,
    ) -> None:
        response = translator.parse_response(
            {"content": [{"type": "text", "text": "x"}], "stop_reason": reason}
        )

        assert response.finish_reason == expected

    def test_missing_usage_counters_default_to_zero(
        self, translator: AnthropicTranslator
    ) -> None:
        response = translator.parse_response(
            {"content": [{"type": "text", "text": "x"}], "usage": {"output_tokens": 3}}
        )

        assert response.usage is not None
        assert response.usage.prompt_token_count == 0
        assert response.usage.total_token_count == 3

    @pytest.mark.parametrize("payload", [{"content": []}, {"id": "msg"}, []])
    def test_empty_content_raises(
        self, translator: AnthropicTranslator, payload: Any
    ) -> None:
        with pytest.raises(EmptyResponseError):
            translator.parse_response(payload)
