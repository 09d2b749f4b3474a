"""Bracket balancing for truncated payloads.

Append-only: the result always starts with the input, so the balancer never
loses content and always terminates.
"""

from __future__ import annotations

_PAIRS = {"{": "}", "[": "]"}


def balance_brackets(text: str) -> str:
    """Close whatever *text* left open, innermost first.

    In order: an unterminated string is closed, a dangling object key gets
    ``: null`` and a dangling colon gets ``null``, then the missing ``}`` /
    ``]`` are appended in reverse nesting order.  A closer that does not match
    the innermost opener is ignored for counting.  Balanced text is returned
    unchanged.
    """
    stack: list[str] = []
    in_string = False
    escaped = False
    last = ""  # last significant character outside strings ('"' after a string)
    before_string = ""

    for ch in text:
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
                last = '"'
            continue
        if ch == '"':
            in_string = True
            before_string = last
            continue
        if ch in _PAIRS:
            stack.append(ch)
        elif ch in "}]":
            if stack and _PAIRS[stack[-1]] == ch:
                stack.pop()
        if not ch.isspace():
            last = ch

    suffix = ""
    if in_string:
        suffix += '\\"' if escaped else '"'
        last = '"'
    if stack:
        if stack[-1] == "{" and last == '"' and before_string in ("{", ","):
            suffix += ": null"
        elif last == ":":
            suffix += " null"
        suffix += "".join(_PAIRS[opener] for opener in reversed(stack))
    return text + suffix
