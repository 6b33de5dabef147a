"""Tool-call format correction.

Some backends write tool invocations as ad hoc markup inside generated text
instead of using the structured tool-call channel. ``ToolFormatConverter``
recognises two shapes and rewrites them into the canonical tool markup:

* legacy tag pairs such as ``<read_file><path>a.py</path></read_file>``;
* ``<function_calls>`` envelopes holding an ``<invoke name="str_replace_editor">``
  directive with ``<parameter name="...">`` values.

Only the matched span is replaced. Anything that is not recognised, or is
recognised but incomplete, is kept byte for byte.
"""

from dataclasses import dataclass, field
from typing import Any

from gengateway.core.logging import get_logger

from .scanner import (
    TagSpan,
    find_invoke_name,
    parse_named_parameters,
    parse_tag_parameters,
    scan_tag_spans,
)
from .tables import (
    FUNCTION_CALLS_TAG,
    STR_REPLACE_EDITOR,
    canonical_tool_name,
    needs_conversion,
    tool_structure,
)


logger = get_logger(__name__)


@dataclass
class ToolInvocation:
    """Tool name and parameters recovered from markup."""

    name: str
    params: dict[str, Any] = field(default_factory=dict)


@dataclass
class ToolCallResult:
    """Outcome for one detected tag span."""

    original: str
    tool_name: str
    needs_conversion: bool
    converted: str | None = None

    @property
    def is_correct(self) -> bool:
        return not self.needs_conversion


@dataclass
class ConversionResult:
    """Outcome of one correction pass over a text."""

    original: str
    converted: str
    modified: bool
    tool_calls: list[ToolCallResult] = field(default_factory=list)


def _render_element(name: str, value: Any) -> str:
    if isinstance(value, dict):
        inner = "".join(
            _render_element(key, nested)
            for key, nested in value.items()
            if nested is not None
        )
        return f"<{name}>{inner}</{name}>"
    return f"<{name}>{value}</{name}>"


class ToolFormatConverter:
    """Detects and rewrites malformed tool-invocation markup.

    Args:
        project_root: Local path prefix removed from ``path`` parameters so
            that absolute paths become project-relative. ``None`` or an empty
            string keeps paths unchanged.
    """

    def __init__(self, project_root: str | None = None) -> None:
        self.project_root = project_root or None

    def convert(self, text: str) -> str:
        """Rewrite ``text`` until no span needs conversion.

        Returns ``text`` itself when nothing was rewritten. Each rewrite
        removes one legacy opening tag, so the loop terminates, and repeating
        the call on its result changes nothing.
        """
        converted = text
        result = self.intercept(converted)
        while result.modified:
            converted = result.converted
            result = self.intercept(converted)
        return converted

    def intercept(self, text: str) -> ConversionResult:
        """Run a single correction pass over the top-level spans of ``text``."""
        spans = scan_tag_spans(text)
        if not spans:
            return ConversionResult(original=text, converted=text, modified=False)

        pieces: list[str] = []
        tool_calls: list[ToolCallResult] = []
        cursor = 0
        modified = False

        for span in spans:
            original = span.source(text)
            result = ToolCallResult(
                original=original,
                tool_name=span.name,
                needs_conversion=needs_conversion(span.name),
            )
            if result.needs_conversion:
                result.converted = self._convert_span(text, span)
            tool_calls.append(result)

            pieces.append(text[cursor : span.start])
            if result.converted is not None:
                pieces.append(result.converted)
                modified = True
            else:
                pieces.append(original)
            cursor = span.end

        if not modified:
            return ConversionResult(
                original=text, converted=text, modified=False, tool_calls=tool_calls
            )

        pieces.append(text[cursor:])
        return ConversionResult(
            original=text,
            converted="".join(pieces),
            modified=True,
            tool_calls=tool_calls,
        )

    def parse_invocation(self, text: str, span: TagSpan) -> ToolInvocation | None:
        """Recover the canonical tool invocation a span stands for."""
        body = span.body(text)
        if span.name == FUNCTION_CALLS_TAG:
            return self._parse_function_calls(body)

        params: dict[str, Any] = parse_tag_parameters(body)
        if not params:
            return None
        if "path" in params:
            params["path"] = self._relative_path(params["path"])
        return ToolInvocation(name=canonical_tool_name(span.name), params=params)

    def build_markup(self, invocation: ToolInvocation) -> str | None:
        """Serialize an invocation in the layout its tool expects."""
        structure = tool_structure(invocation.name)
        if any(invocation.params.get(key) is None for key in structure.required):
            return None

        structured = structure.structure(invocation.params)
        if structure.wrapper:
            inner = _render_element(structure.wrapper, structured)
        else:
            inner = "".join(
                _render_element(key, value)
                for key, value in structured.items()
                if value is not None
            )
        return f"<{invocation.name}>{inner}</{invocation.name}>"

    def _convert_span(self, text: str, span: TagSpan) -> str | None:
        invocation = self.parse_invocation(text, span)
        if invocation is None:
            return None
        converted = self.build_markup(invocation)
        if converted is not None:
            logger.debug(
                "tool_call_converted",
                original_name=span.name,
                tool_name=invocation.name,
            )
        return converted

    def _parse_function_calls(self, body: str) -> ToolInvocation | None:
        if find_invoke_name(body) != STR_REPLACE_EDITOR:
            return None

        directives = parse_named_parameters(body)
        command = directives.get("command")
        path = directives.get("path")
        if command is None or path is None:
            return None

        command = command.strip()
        path = self._relative_path(path.strip())

        if command == "view":
            return ToolInvocation(name="use_read_file", params={"path": path})

        if command == "create":
            file_text = directives.get("file_text")
            if file_text is None:
                return None
            return ToolInvocation(
                name="use_write_file",
                params={
                    "path": path,
                    "content": file_text,
                    "line_count": len(file_text.split("\n")),
                },
            )

        if command == "str_replace":
            old_str = directives.get("old_str")
            new_str = directives.get("new_str")
            if old_str is None or new_str is None:
                return None
            return ToolInvocation(
                name="use_search_and_replace",
                params={"path": path, "search": old_str, "replace": new_str},
            )

        return None

    def _relative_path(self, path: str) -> str:
        if self.project_root and path.startswith(self.project_root):
            return path[len(self.project_root) :]
        return path


def auto_fix_tool_calls(text: str, project_root: str | None = None) -> str:
    """Correct tool-call markup in model output, returning it unchanged if clean."""
    return ToolFormatConverter(project_root).convert(text)
