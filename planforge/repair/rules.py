"""Pattern repair: an ordered table of text-level structural rules.

Every rule is a pure ``str -> str`` transform and is idempotent on its own.
All rules but ``normalize_string_whitespace`` only touch text *outside*
double-quoted string literals, so string content is never rewritten by a
structural rule.  ``apply_rules`` runs the table in order until a full pass
changes nothing, which makes the repairer as a whole idempotent.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from planforge.config import get_settings

# A double-quoted literal; an unterminated one runs to the end of the text
_STRING = re.compile(r'"(?:[^"\\]|\\.)*"?', re.DOTALL)

_UNQUOTED_KEY = re.compile(r"(?<=[{,])(\s*)([A-Za-z_$][\w$.-]*)(\s*):")
_SINGLE_QUOTED = re.compile(r"'((?:[^'\\\n]|\\.)*)'")
_TRAILING_COMMA = re.compile(r",[\s,]*(?=[}\]])")
_ADJACENT_CONTAINERS = re.compile(r"([}\]])(\s*)(?=[{\[])")
_CLOSER_AT_END = re.compile(r"([}\]])(\s*)$")
_REPEATED_COMMAS = re.compile(r",(?:\s*,)+")
_COMMENT = re.compile(r"/\*.*?\*/|//[^\n]*", re.DOTALL)
_CONTROL_CHARS = re.compile(r"\r\n|[\x00-\x1f]")
_LITERALS = {
    "True": "true",
    "TRUE": "true",
    "False": "false",
    "FALSE": "false",
    "None": "null",
    "NULL": "null",
    "Null": "null",
}
_LITERAL = re.compile(r"(?<![\w$.])(" + "|".join(_LITERALS) + r")(?![\w$.])")


@dataclass(frozen=True)
class RepairRule:
    """One named, idempotent text transform in the repair table."""

    name: str
    transform: Callable[[str], str]
    description: str = ""

    def __call__(self, text: str) -> str:
        return self.transform(text)


def split_strings(text: str) -> list[tuple[bool, str]]:
    """Split *text* into ``(is_string, chunk)`` segments, in order."""
    segments: list[tuple[bool, str]] = []
    last = 0
    for m in _STRING.finditer(text):
        if m.start() > last:
            segments.append((False, text[last : m.start()]))
        segments.append((True, m.group()))
        last = m.end()
    if last < len(text):
        segments.append((False, text[last:]))
    return segments


def _outside_strings(fn: Callable[[str], str]) -> Callable[[str], str]:
    def transform(text: str) -> str:
        return "".join(chunk if is_string else fn(chunk) for is_string, chunk in split_strings(text))

    transform.__name__ = fn.__name__
    transform.__doc__ = fn.__doc__
    return transform


# ── Rules, in table order ───────────────────────────────────────────────


@_outside_strings
def quote_unquoted_keys(chunk: str) -> str:
    """``{title: 1}`` -> ``{"title": 1}``."""
    return _UNQUOTED_KEY.sub(r'\1"\2"\3:', chunk)


def _double_quote(m: re.Match[str]) -> str:
    inner = m.group(1).replace("\\'", "'")
    inner = re.sub(r'(?<!\\)"', r'\\"', inner)
    return f'"{inner}"'


@_outside_strings
def convert_single_quotes(chunk: str) -> str:
    """``{'a': 'b'}`` -> ``{"a": "b"}``."""
    return _SINGLE_QUOTED.sub(_double_quote, chunk)


@_outside_strings
def remove_trailing_commas(chunk: str) -> str:
    """``[1, 2,]`` -> ``[1, 2]``."""
    return _TRAILING_COMMA.sub(lambda m: m.group().replace(",", ""), chunk)


def insert_missing_commas(text: str) -> str:
    """Insert commas between adjacent containers and adjacent strings.

    Covers ``} {``, ``] [``, ``} [``, ``] {``, a closer followed by a string,
    and two strings separated only by whitespace.
    """
    segments = split_strings(text)
    out: list[str] = []
    for i, (is_string, chunk) in enumerate(segments):
        if is_string:
            if i > 0 and segments[i - 1][0]:
                out.append(",")
            out.append(chunk)
            continue
        chunk = _ADJACENT_CONTAINERS.sub(r"\1,\2", chunk)
        followed_by_string = i + 1 < len(segments)
        if followed_by_string:
            if i > 0 and not chunk.strip():
                chunk = "," + chunk
            else:
                chunk = _CLOSER_AT_END.sub(r"\1,\2", chunk)
        out.append(chunk)
    return "".join(out)


@_outside_strings
def collapse_repeated_commas(chunk: str) -> str:
    """``[1,,2]`` -> ``[1,2]``."""
    return _REPEATED_COMMAS.sub(",", chunk)


@_outside_strings
def strip_comments(chunk: str) -> str:
    """Drop ``/* block */`` and ``// line`` comments."""
    return _COMMENT.sub("", chunk)


def normalize_string_whitespace(text: str) -> str:
    """Replace raw newlines and other control characters inside strings with a space."""
    return "".join(
        _CONTROL_CHARS.sub(" ", chunk) if is_string else chunk for is_string, chunk in split_strings(text)
    )


@_outside_strings
def normalize_literals(chunk: str) -> str:
    """``True``/``FALSE``/``None`` -> ``true``/``false``/``null``."""
    return _LITERAL.sub(lambda m: _LITERALS[m.group(1)], chunk)


REPAIR_RULES: tuple[RepairRule, ...] = (
    RepairRule("quote_unquoted_keys", quote_unquoted_keys, "quote bare object keys"),
    RepairRule("convert_single_quotes", convert_single_quotes, "single-quoted keys/values to double quotes"),
    RepairRule("remove_trailing_commas", remove_trailing_commas, "drop commas before a closing delimiter"),
    RepairRule("insert_missing_commas", insert_missing_commas, "comma between adjacent containers/strings"),
    RepairRule("collapse_repeated_commas", collapse_repeated_commas, "',,' -> ','"),
    RepairRule("strip_comments", strip_comments, "remove block and line comments"),
    RepairRule("normalize_string_whitespace", normalize_string_whitespace, "raw newlines in strings to spaces"),
    RepairRule("normalize_literals", normalize_literals, "Python/uppercase literals to JSON literals"),
)


def apply_rules(
    text: str,
    rules: Iterable[RepairRule] = REPAIR_RULES,
    *,
    max_passes: int | None = None,
) -> str:
    """Run *rules* in order, repeating full passes until the text is stable."""
    rules = tuple(rules)
    passes = max_passes if max_passes is not None else get_settings().repair_max_rule_passes
    for _ in range(passes):
        before = text
        for rule in rules:
            text = rule(text)
        if text == before:
            break
    return text
