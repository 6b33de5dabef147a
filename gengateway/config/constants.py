"""Configuration constants for the gateway."""

# URL Constants
ANTHROPIC_API_HOST = "api.anthropic.com"

# API Endpoints
ANTHROPIC_MESSAGES_ENDPOINT = "/v1/messages"
ANTHROPIC_MESSAGES_SUFFIX = "/messages"
OPENAI_CHAT_COMPLETIONS_PATH = "/chat/completions"

# Headers
ANTHROPIC_VERSION = "2023-06-01"

# Anthropic requires max_tokens on every request
DEFAULT_MAX_TOKENS = 4096

# Streaming
SSE_DATA_PREFIX = "data:"
SSE_DONE_SENTINEL = "[DONE]"

# Token estimation
CHARS_PER_TOKEN = 4
