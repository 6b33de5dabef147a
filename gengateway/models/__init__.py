"""Canonical and wire data models."""

from .canonical import (
    CanonicalRequest,
    CanonicalResponse,
    CanonicalResponseChunk,
    Content,
    CountTokensResponse,
    FunctionCall,
    FunctionDeclaration,
    FunctionResponse,
    GenerationConfig,
    Part,
    UsageMetadata,
)
from .types import ApiFormat, FinishReason


__all__ = [
    "ApiFormat",
    "CanonicalRequest",
    "CanonicalResponse",
    "CanonicalResponseChunk",
    "Content",
    "CountTokensResponse",
    "FinishReason",
    "FunctionCall",
    "FunctionDeclaration",
    "FunctionResponse",
    "GenerationConfig",
    "Part",
    "UsageMetadata",
]
