"""Shared fixtures for the gateway test suite."""

import pytest

from gengateway.core.logging import setup_logging
from gengateway.models.canonical import (
    CanonicalRequest,
    Content,
    FunctionDeclaration,
    GenerationConfig,
    Part,
)


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom settings."""
    config.option.asyncio_mode = "auto"
    setup_logging(level="DEBUG", fmt="console")


@pytest.fixture
def simple_request() -> CanonicalRequest:
    """Single user turn with a system instruction."""
    return CanonicalRequest(
        model="test-model",
        system_instruction="You are terse.",
        contents=[Content(role="user", parts=[Part.from_text("Hello there")])],
        config=GenerationConfig(temperature=0.2, max_output_tokens=128, top_p=0.9),
    )


@pytest.fixture
def tool_request() -> CanonicalRequest:
    """Conversation with a tool round trip and a declared tool."""
    return CanonicalRequest(
        model="test-model",
        contents=[
            Content(role="user", parts=[Part.from_text("What is the weather?")]),
            Content(
                role="model",
                parts=[
                    Part.from_text("Let me check."),
                    Part.from_function_call("get_weather", {"city": "Paris"}),
                ],
            ),
            Content(
                role="user",
                parts=[
                    Part.from_function_response("get_weather", {"temp": 21}),
                    Part.from_text("Thanks"),
                ],
            ),
        ],
        tools=[
            FunctionDeclaration(
                name="get_weather",
                description="Current weather",
                parameters={
                    "type": "object",
                    "properties": {"city": {"type": "string"}},
                },
            )
        ],
    )
