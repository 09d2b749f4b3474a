"""Boundary extraction: isolate the structured payload from prose and fences."""

from __future__ import annotations

import re

_FENCED_BLOCK = re.compile(r"```[a-zA-Z0-9_-]*[ \t]*\r?\n?(.*?)```", re.DOTALL)
_LEADING_FENCE = re.compile(r"^```[a-zA-Z0-9_-]*[ \t]*\r?\n?")
_TRAILING_FENCE = re.compile(r"\r?\n?```\s*$")


def strip_fences(text: str) -> str:
    """Remove a leading ```lang marker and a trailing ``` marker, if present."""
    text = text.strip()
    text = _LEADING_FENCE.sub("", text, count=1)
    return _TRAILING_FENCE.sub("", text, count=1).strip()


def extract_payload(raw: str) -> str:
    """Return the span from the first ``{`` to the last ``}`` of *raw*.

    A fenced code block that contains a brace wins over surrounding prose.
    When the text opens a brace but never closes one after it, everything
    from the opening brace on is kept so the balancer can finish it.  Text
    with no opening brace is returned trimmed.  Never raises.
    """
    if not raw:
        return ""
    text = raw.lstrip("\ufeff")

    block = _FENCED_BLOCK.search(text)
    if block and "{" in block.group(1):
        text = block.group(1)
    else:
        text = strip_fences(text)

    start = text.find("{")
    if start == -1:
        return text.strip()
    end = text.rfind("}")
    if end < start:
        return text[start:].rstrip()
    return text[start : end + 1]
