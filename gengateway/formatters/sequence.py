"""Message ordering repair for the Anthropic Messages API.

The API rejects conversations that do not start with a user turn, that repeat
a role twice in a row, or that contain empty messages.
"""

from typing import Any


PLACEHOLDER_USER_TEXT = "Please respond to the following."
DEFAULT_USER_TEXT = "Hello"


def _is_empty(content: Any) -> bool:
    if content is None:
        return True
    if isinstance(content, str):
        return content.strip() == ""
    return len(content) == 0


def _as_blocks(content: str | list[dict[str, Any]]) -> list[dict[str, Any]]:
    if isinstance(content, str):
        return [{"type": "text", "text": content}]
    return list(content)


def _merge_content(
    previous: str | list[dict[str, Any]], current: str | list[dict[str, Any]]
) -> str | list[dict[str, Any]]:
    if isinstance(previous, str) and isinstance(current, str):
        return previous + "\n" + current
    return _as_blocks(previous) + _as_blocks(current)


def validate_message_sequence(
    messages: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Return a copy of ``messages`` that satisfies Anthropic's ordering rules.

    - empty messages are dropped;
    - adjacent messages of the same role are merged;
    - a placeholder user message is prepended when the first one is not from
      the user;
    - an empty conversation becomes a single default user message.

    Args:
        messages: Wire messages as ``{"role": ..., "content": ...}`` dicts

    Returns:
        New list; the input and its messages are left untouched
    """
    validated: list[dict[str, Any]] = []

    for message in messages:
        content = message.get("content")
        if _is_empty(content):
            continue

        if validated and validated[-1]["role"] == message["role"]:
            last = validated[-1]
            last["content"] = _merge_content(last["content"], content)
        else:
            copied = content if isinstance(content, str) else list(content)
            validated.append({"role": message["role"], "content": copied})

    if validated and validated[0]["role"] != "user":
        validated.insert(0, {"role": "user", "content": PLACEHOLDER_USER_TEXT})

    if not validated:
        validated.append({"role": "user", "content": DEFAULT_USER_TEXT})

    return validated
