"""Tool-call correction engine."""

from .converter import (
    ConversionResult,
    ToolCallResult,
    ToolFormatConverter,
    ToolInvocation,
    auto_fix_tool_calls,
)
from .tables import DEPRECATED_TOOL_NAMES, TOOL_STRUCTURES


__all__ = [
    "DEPRECATED_TOOL_NAMES",
    "TOOL_STRUCTURES",
    "ConversionResult",
    "ToolCallResult",
    "ToolFormatConverter",
    "ToolInvocation",
    "auto_fix_tool_calls",
]
