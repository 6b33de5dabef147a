"""Tests for the tool-call correction engine."""

import pytest

from gengateway.correction import (
    DEPRECATED_TOOL_NAMES,
    TOOL_STRUCTURES,
    ToolFormatConverter,
    ToolInvocation,
    auto_fix_tool_calls,
)
from gengateway.correction.scanner import parse_named_parameters, scan_tag_spans


PROJECT_ROOT = "/Users/x/project/"


@pytest.fixture
def converter() -> ToolFormatConverter:
    return ToolFormatConverter(PROJECT_ROOT)


SAMPLES = [
    "",
    "plain text without markup",
    "a < b and c > d",
    "<read_file><path>/Users/x/project/app.ts</path></read_file>",
    "before <write_file><path>a.txt</path><content>hi</content></write_file> after",
    "<read_file><read_file><path>x</path></read_file></read_file>",
    "<command><command>ls</command></command>",
    "<unclosed><read_file><path>a</path></read_file>",
    "<use_read_file><args><file><path>a</path></file></args></use_read_file>",
    (
        "<function_calls><invoke name=\"str_replace_editor\">"
        "<parameter name=\"command\">view</parameter>"
        "<parameter name=\"path\">/Users/x/project/src/main.py</parameter>"
        "</invoke></function_calls>"
    ),
    "<b>bold</b> and <i>italic</i>",
    "<list_files></list_files>",
]


@pytest.mark.unit
class TestScanner:
    """Test the tag-span scanner."""

    def test_top_level_spans(self) -> None:
        text = "x <a><b>1</b></a> y <c>2</c>"

        spans = scan_tag_spans(text)

        assert [span.name for span in spans] == ["a", "c"]
        assert spans[0].source(text) == "<a><b>1</b></a>"
        assert spans[0].body(text) == "<b>1</b>"

    def test_unclosed_tag_is_skipped(self) -> None:
        text = "<a> <b>ok</b>"

        assert [span.name for span in scan_tag_spans(text)] == ["b"]

    def test_attributes_are_not_tags(self) -> None:
        assert scan_tag_spans('<invoke name="x">y</invoke>') == []

    def test_many_unclosed_tags(self) -> None:
        text = "<a>" * 5000 + "<b>done</b>"

        assert [span.name for span in scan_tag_spans(text)] == ["b"]

    def test_named_parameters_keep_values_verbatim(self) -> None:
        body = (
            '<parameter name="old_str">  a\n</parameter>'
            '<parameter name="old_str">second</parameter>'
        )

        assert parse_named_parameters(body) == {"old_str": "  a\n"}


@pytest.mark.unit
class TestToolFormatConverter:
    """Test legacy markup conversion."""

    def test_read_file_example(self, converter: ToolFormatConverter) -> None:
        text = "<read_file><path>/Users/x/project/app.ts</path></read_file>"

        assert converter.convert(text) == (
            "<use_read_file><args><file><path>app.ts</path></file></args>"
            "</use_read_file>"
        )

    def test_read_file_with_line_range(self, converter: ToolFormatConverter) -> None:
        text = (
            "<read_file>\n  <path>src/a.py</path>\n"
            "  <line_range>1-20</line_range>\n</read_file>"
        )

        assert converter.convert(text) == (
            "<use_read_file><args><file><path>src/a.py</path>"
            "<line_range>1-20</line_range></file></args></use_read_file>"
        )

    def test_flat_tools(self, converter: ToolFormatConverter) -> None:
        text = (
            "Writing now: <write_file><path>/Users/x/project/a.txt</path>"
            "<content>hello</content></write_file> done."
        )

        assert converter.convert(text) == (
            "Writing now: <use_write_file><path>a.txt</path>"
            "<content>hello</content></use_write_file> done."
        )

    @pytest.mark.parametrize("legacy", sorted(DEPRECATED_TOOL_NAMES))
    def test_every_legacy_name_is_renamed(
        self, converter: ToolFormatConverter, legacy: str
    ) -> None:
        text = f"<{legacy}><path>p</path><query>q</query></{legacy}>"

        result = converter.convert(text)

        assert result.startswith(f"<{DEPRECATED_TOOL_NAMES[legacy]}>")
        assert result.endswith(f"</{DEPRECATED_TOOL_NAMES[legacy]}>")

    def test_span_without_parameters_is_unchanged(
        self, converter: ToolFormatConverter
    ) -> None:
        text = "<read_file>just prose</read_file>"

        assert converter.convert(text) is text

    def test_read_file_without_path_is_unchanged(
        self, converter: ToolFormatConverter
    ) -> None:
        text = "<read_file><line_range>1-2</line_range></read_file>"

        assert converter.convert(text) is text

    def test_untouched_text_is_preserved(self, converter: ToolFormatConverter) -> None:
        text = "  lead\n<b>x</b>\t<list_files><path>d</path></list_files>\n trail  "

        assert converter.convert(text) == (
            "  lead\n<b>x</b>\t<use_list_files><path>d</path></use_list_files>\n trail  "
        )

    def test_path_outside_project_root_is_kept(
        self, converter: ToolFormatConverter
    ) -> None:
        text = "<read_file><path>/etc/hosts</path></read_file>"

        assert "<path>/etc/hosts</path>" in converter.convert(text)

    def test_no_project_root(self) -> None:
        text = "<read_file><path>/Users/x/project/app.ts</path></read_file>"

        assert "<path>/Users/x/project/app.ts</path>" in auto_fix_tool_calls(text)


@pytest.mark.unit
class TestFunctionCallsEnvelope:
    """Test str_replace_editor envelope conversion."""

    @staticmethod
    def _envelope(**params: str) -> str:
        inner = "".join(
            f'<parameter name="{name}">{value}</parameter>'
            for name, value in params.items()
        )
        return (
            '<function_calls><invoke name="str_replace_editor">'
            f"{inner}</invoke></function_calls>"
        )

    def test_view(self, converter: ToolFormatConverter) -> None:
        text = self._envelope(command="view", path="/Users/x/project/src/main.py")

        assert converter.convert(text) == (
            "<use_read_file><args><file><path>src/main.py</path></file></args>"
            "</use_read_file>"
        )

    def test_create(self, converter: ToolFormatConverter) -> None:
        text = self._envelope(command="create", path="new.py", file_text="a\nb\nc")

        assert converter.convert(text) == (
            "<use_write_file><path>new.py</path><content>a\nb\nc</content>"
            "<line_count>3</line_count></use_write_file>"
        )

    def test_str_replace(self, converter: ToolFormatConverter) -> None:
        text = self._envelope(
            command="str_replace", path="a.py", old_str="x = 1", new_str="x = 2"
        )

        assert converter.convert(text) == (
            "<use_search_and_replace><path>a.py</path><search>x = 1</search>"
            "<replace>x = 2</replace></use_search_and_replace>"
        )

    @pytest.mark.parametrize(
        "params",
        [
            {"command": "undo_edit", "path": "a.py"},
            {"command": "view"},
            {"path": "a.py"},
            {"command": "create", "path": "a.py"},
            {"command": "str_replace", "path": "a.py", "old_str": "x"},
        ],
    )
    def test_incomplete_or_unknown_is_unchanged(
        self, converter: ToolFormatConverter, params: dict[str, str]
    ) -> None:
        text = self._envelope(**params)

        assert converter.convert(text) is text

    def test_other_invoke_is_unchanged(self, converter: ToolFormatConverter) -> None:
        text = (
            '<function_calls><invoke name="bash">'
            '<parameter name="command">ls</parameter></invoke></function_calls>'
        )

        assert converter.convert(text) is text


@pytest.mark.unit
class TestProperties:
    """Identity and idempotence over a sample corpus."""

    @pytest.mark.parametrize(
        "text",
        ["", "hello", "a < b > c", "<>text</>", "<a b>x</a b>", "</read_file> stray"],
    )
    def test_identity_without_tag_pairs(
        self, converter: ToolFormatConverter, text: str
    ) -> None:
        assert converter.convert(text) is text

    @pytest.mark.parametrize("text", SAMPLES)
    def test_idempotent(self, converter: ToolFormatConverter, text: str) -> None:
        once = converter.convert(text)

        assert converter.convert(once) == once

    def test_intercept_reports_spans(self, converter: ToolFormatConverter) -> None:
        result = converter.intercept(
            "<b>x</b><read_file><path>a</path></read_file>"
        )

        assert result.modified
        assert [call.tool_name for call in result.tool_calls] == ["b", "read_file"]
        assert result.tool_calls[0].is_correct
        assert not result.tool_calls[1].is_correct


@pytest.mark.unit
class TestTables:
    """Test the static tables."""

    def test_tables_are_read_only(self) -> None:
        with pytest.raises(TypeError):
            DEPRECATED_TOOL_NAMES["read_file"] = "other"  # type: ignore[index]
        with pytest.raises(TypeError):
            TOOL_STRUCTURES["x"] = TOOL_STRUCTURES["use_read_file"]  # type: ignore[index]

    def test_every_structure_is_reachable_from_a_legacy_name(self) -> None:
        assert set(TOOL_STRUCTURES) <= set(DEPRECATED_TOOL_NAMES.values())

    def test_build_markup_requires_path_for_read_file(
        self, converter: ToolFormatConverter
    ) -> None:
        assert converter.build_markup(ToolInvocation("use_read_file", {})) is None
