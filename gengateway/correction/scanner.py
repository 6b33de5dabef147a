"""Tag-span scanner for embedded tool-invocation markup.

Finds top-level ``<name>...</name>`` pairs left to right. A pair closes at the
first matching closing tag after its opening tag; spans never overlap and an
opening tag without a closing tag is skipped. Closing-tag positions are
remembered per tag name, so each name costs one forward pass over the text.
"""

import re
from dataclasses import dataclass


OPEN_TAG = re.compile(r"<(\w+)>", re.ASCII)
INVOKE_NAME = re.compile(r'<invoke name="([^"]+)"')
PARAMETER_OPEN = re.compile(r'<parameter name="([^"]+)">')
PARAMETER_CLOSE = "</parameter>"


@dataclass(frozen=True)
class TagSpan:
    """A matched tag pair; offsets index into the scanned text."""

    name: str
    start: int
    end: int
    body_start: int
    body_end: int

    def source(self, text: str) -> str:
        return text[self.start : self.end]

    def body(self, text: str) -> str:
        return text[self.body_start : self.body_end]


def scan_tag_spans(text: str) -> list[TagSpan]:
    """Return the top-level tag pairs of ``text`` in order."""
    spans: list[TagSpan] = []
    next_close: dict[str, int] = {}
    pos = 0

    while True:
        match = OPEN_TAG.search(text, pos)
        if match is None:
            break

        name = match.group(1)
        body_start = match.end()
        close_tag = f"</{name}>"

        close_at = next_close.get(name)
        if close_at is None or (close_at != -1 and close_at < body_start):
            close_at = text.find(close_tag, body_start)
            next_close[name] = close_at

        if close_at == -1:
            pos = body_start
            continue

        end = close_at + len(close_tag)
        spans.append(
            TagSpan(
                name=name,
                start=match.start(),
                end=end,
                body_start=body_start,
                body_end=close_at,
            )
        )
        pos = end

    return spans


def parse_tag_parameters(body: str) -> dict[str, str]:
    """Read the top-level tag pairs of ``body`` as stripped parameter values."""
    return {span.name: span.body(body).strip() for span in scan_tag_spans(body)}


def find_invoke_name(body: str) -> str | None:
    match = INVOKE_NAME.search(body)
    return match.group(1) if match else None


def parse_named_parameters(body: str) -> dict[str, str]:
    """Read ``<parameter name="...">value</parameter>`` directives.

    Values are returned verbatim; the first directive of a given name wins.
    """
    params: dict[str, str] = {}
    pos = 0
    while True:
        match = PARAMETER_OPEN.search(body, pos)
        if match is None:
            break
        close_at = body.find(PARAMETER_CLOSE, match.end())
        if close_at == -1:
            break
        params.setdefault(match.group(1), body[match.end() : close_at])
        pos = close_at + len(PARAMETER_CLOSE)
    return params
