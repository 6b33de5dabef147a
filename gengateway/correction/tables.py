"""Static tables of the tool-call correction engine.

Both tables are read-only mappings shared by every call.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any


DEPRECATED_TOOL_NAMES: Mapping[str, str] = MappingProxyType(
    {
        "read_file": "use_read_file",
        "write_file": "use_write_file",
        "list_files": "use_list_files",
        "search_files": "use_search_files",
        "command": "use_command",
        "search_and_replace": "use_search_and_replace",
        "definition_names": "use_definition_names",
        "codebase": "use_codebase",
        "web_search": "use_web_search",
        "mcp_tools": "use_mcp_tools",
        "clear_publish": "use_clear_publish",
        # The "view" form of str_replace_editor reads a file
        "str_replace_editor": "use_read_file",
    }
)

# Envelope used by other assistants for multi-tool invocations
FUNCTION_CALLS_TAG = "function_calls"
STR_REPLACE_EDITOR = "str_replace_editor"


def _flat(params: dict[str, Any]) -> dict[str, Any]:
    return dict(params)


def _read_file_args(params: dict[str, Any]) -> dict[str, Any]:
    return {
        "file": {
            "path": params.get("path"),
            "line_range": params.get("line_range"),
        }
    }


@dataclass(frozen=True)
class ToolStructure:
    """How a canonical tool expects its parameters to be laid out.

    ``wrapper`` names the element the structured parameters are nested under;
    ``None`` means the parameters are emitted flat inside the tool element.
    """

    wrapper: str | None
    structure: Callable[[dict[str, Any]], dict[str, Any]] = _flat
    required: tuple[str, ...] = field(default=())


TOOL_STRUCTURES: Mapping[str, ToolStructure] = MappingProxyType(
    {
        "use_read_file": ToolStructure(
            wrapper="args", structure=_read_file_args, required=("path",)
        ),
        "use_write_file": ToolStructure(wrapper=None),
        "use_list_files": ToolStructure(wrapper=None),
        "use_search_files": ToolStructure(wrapper=None),
        "use_command": ToolStructure(wrapper=None),
        "use_search_and_replace": ToolStructure(wrapper=None),
    }
)

DEFAULT_TOOL_STRUCTURE = ToolStructure(wrapper=None)


def canonical_tool_name(name: str) -> str:
    """Translate a legacy tool name; unknown names pass through unchanged."""
    return DEPRECATED_TOOL_NAMES.get(name, name)


def needs_conversion(name: str) -> bool:
    return name in DEPRECATED_TOOL_NAMES or name == FUNCTION_CALLS_TAG


def tool_structure(name: str) -> ToolStructure:
    return TOOL_STRUCTURES.get(name, DEFAULT_TOOL_STRUCTURE)
