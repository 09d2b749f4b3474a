"""Parse attempts and the diagnostics they produce.

The repair loop never looks at a decoder's message text.  ``attempt_parse``
is the default pluggable parse-attempt function; it wraps ``json.loads`` and
translates a :class:`json.JSONDecodeError` into a :class:`ParseDiagnostic`
through :func:`diagnose`.  Another decoder can be plugged in by supplying any
callable with the same ``str -> ParseResult`` shape.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any


class DiagnosticKind(str, Enum):
    """Why a parse attempt failed, independent of decoder wording."""

    EXPECTED_COMMA_OR_CLOSING = "expected_comma_or_closing"
    EXPECTED_COLON = "expected_colon"
    UNEXPECTED_TOKEN = "unexpected_token"
    UNEXPECTED_END = "unexpected_end"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ParseDiagnostic:
    """Structured record of a failed parse.

    ``position`` is a character offset into the parsed text, or ``None`` when
    the decoder could not say where it failed.  ``token`` is the character at
    ``position`` (``None`` past the end of input).
    """

    kind: DiagnosticKind
    position: int | None = None
    expected_token: str | None = None
    token: str | None = None
    message: str = ""


@dataclass(frozen=True)
class ParseResult:
    """Outcome of one parse attempt: a value, or a diagnostic."""

    value: Any = None
    diagnostic: ParseDiagnostic | None = None

    @property
    def ok(self) -> bool:
        return self.diagnostic is None


ParseFn = Callable[[str], ParseResult]

_CLOSERS = "}]"


def attempt_parse(text: str) -> ParseResult:
    """Parse *text* strictly with the standard decoder."""
    try:
        return ParseResult(value=json.loads(text))
    except json.JSONDecodeError as exc:
        return ParseResult(diagnostic=diagnose(exc))
    except ValueError as exc:
        # e.g. integer literals past the interpreter's digit limit
        return ParseResult(diagnostic=ParseDiagnostic(DiagnosticKind.UNKNOWN, message=str(exc)))
    except RecursionError:
        return ParseResult(diagnostic=ParseDiagnostic(DiagnosticKind.UNKNOWN, message="nesting too deep"))


def diagnose(exc: json.JSONDecodeError) -> ParseDiagnostic:
    """Translate a stdlib decoder error into a :class:`ParseDiagnostic`."""
    doc, pos, msg = exc.doc, exc.pos, exc.msg
    if pos is None or pos < 0:
        return ParseDiagnostic(DiagnosticKind.UNKNOWN, message=msg)

    # Only whitespace left: the text was cut short
    if not doc[pos:].strip() or msg.startswith("Unterminated string"):
        return ParseDiagnostic(DiagnosticKind.UNEXPECTED_END, position=pos, message=msg)

    if msg.startswith("Expecting ',' delimiter"):
        return _at(DiagnosticKind.EXPECTED_COMMA_OR_CLOSING, doc, pos, msg, expected=",")
    if msg.startswith("Expecting ':' delimiter"):
        return _at(DiagnosticKind.EXPECTED_COLON, doc, pos, msg, expected=":")

    if msg.startswith("Invalid \\"):
        # Some decoder builds point past the backslash
        if doc[pos] != "\\":
            pos = max(doc.rfind("\\", 0, pos + 1), 0)
        return _at(DiagnosticKind.UNEXPECTED_TOKEN, doc, pos, msg)

    if "trailing comma" not in msg and doc[pos] in _CLOSERS:
        # A closer where a key or value was expected: the comma before it is the culprit
        prev = len(doc[:pos].rstrip()) - 1
        if prev >= 0 and doc[prev] == ",":
            pos = prev
    return _at(DiagnosticKind.UNEXPECTED_TOKEN, doc, pos, msg)


def _at(kind: DiagnosticKind, doc: str, pos: int, msg: str, expected: str | None = None) -> ParseDiagnostic:
    token = doc[pos] if pos < len(doc) else None
    return ParseDiagnostic(kind, position=pos, expected_token=expected, token=token, message=msg)


def structure_counts(text: str) -> dict[str, int]:
    """Raw delimiter and quote counts, for diagnostics logging."""
    return {ch: text.count(ch) for ch in "{}[]\"'"}
