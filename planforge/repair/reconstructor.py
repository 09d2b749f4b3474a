"""Field-level salvage for text that no repair could make parse.

For each known field of a schema the reconstructor looks for ``"key":``
followed by a value of the expected shape.  Strings are decoded from their
literal; arrays and objects are cut out by a string-aware bracket scan and
parsed on their own, and a fragment that is truncated or does not parse is
simply left out.  Only fields actually found end up in the result; the
normalizer fills in the rest.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from planforge.repair.diagnostics import attempt_parse
from planforge.schemas.models import SchemaKind

logger = logging.getLogger(__name__)

_STRING_LITERAL = re.compile(r'"(?:[^"\\]|\\.)*"', re.DOTALL)
_OPENERS = {"array": "[", "object": "{"}


@dataclass(frozen=True)
class FieldPattern:
    key: str
    shape: str  # "string" | "array" | "object"
    parent: str | None = None


_DOC_SECTIONS = (
    FieldPattern("projectOverview", "object", "documentation"),
    FieldPattern("technicalArchitecture", "object", "documentation"),
    FieldPattern("developerGuide", "object", "documentation"),
    FieldPattern("userGuide", "object", "documentation"),
    FieldPattern("operationsGuide", "object", "documentation"),
    FieldPattern("apiReference", "object", "documentation"),
)

FIELD_PATTERNS: dict[SchemaKind, tuple[FieldPattern, ...]] = {
    SchemaKind.PROJECT_STRUCTURE: (
        FieldPattern("title", "string"),
        FieldPattern("description", "string"),
        FieldPattern("coreFeatures", "array"),
        FieldPattern("suggestedFeatures", "array"),
    ),
    SchemaKind.SPRINT_PLAN: (
        FieldPattern("projectAnalysis", "object"),
        FieldPattern("developerSprintPlan", "object"),
        FieldPattern("aiSprintPlan", "object"),
    ),
    SchemaKind.COST_ESTIMATION: (
        FieldPattern("overview", "object"),
        FieldPattern("costCategories", "array"),
        FieldPattern("optimizationStrategies", "array"),
        FieldPattern("environmentCosts", "object"),
        FieldPattern("assumptions", "array"),
        FieldPattern("recommendations", "array"),
    ),
    SchemaKind.DOCUMENTATION: _DOC_SECTIONS,
}


def _depth_map(text: str) -> list[int]:
    """Nesting depth at each offset; -1 marks offsets inside a string literal."""
    depths = [0] * len(text)
    depth = 0
    in_string = False
    escaped = False
    for i, ch in enumerate(text):
        if in_string:
            depths[i] = -1
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
            depths[i] = depth
            continue
        if ch in "{[":
            depth += 1
        elif ch in "}]":
            depth = max(depth - 1, 0)
        depths[i] = depth
    return depths


def enclosed_span(text: str, start: int) -> str | None:
    """Text from the opener at *start* through its matching closer, or ``None`` if unclosed."""
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in "{[":
            depth += 1
        elif ch in "}]":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return None


def _read_value(text: str, start: int, shape: str) -> Any:
    if shape == "string":
        m = _STRING_LITERAL.match(text, start)
        if not m:
            return None
        try:
            return json.loads(m.group(), strict=False)
        except json.JSONDecodeError:
            return None
    if not text.startswith(_OPENERS[shape], start):
        return None
    span = enclosed_span(text, start)
    if span is None:
        return None
    result = attempt_parse(span)
    return result.value if result.ok else None


def extract_field(text: str, pattern: FieldPattern, depths: list[int] | None = None) -> Any:
    """Value of the shallowest well-formed occurrence of *pattern* in *text*, or ``None``."""
    depths = depths if depths is not None else _depth_map(text)
    key = re.compile(r'"%s"\s*:\s*' % re.escape(pattern.key))
    candidates = [m for m in key.finditer(text) if depths[m.start()] >= 0]
    candidates.sort(key=lambda m: depths[m.start()])
    for m in candidates:
        value = _read_value(text, m.end(), pattern.shape)
        if value is not None:
            return value
    return None


def reconstruct(text: str, kind: SchemaKind | str) -> dict[str, Any] | None:
    """Rebuild a partial object of *kind* from *text*; ``None`` when nothing was found."""
    kind = SchemaKind(kind)
    if not text:
        return None
    depths = _depth_map(text)
    rebuilt: dict[str, Any] = {}
    for pattern in FIELD_PATTERNS[kind]:
        value = extract_field(text, pattern, depths)
        if value is None:
            continue
        target = rebuilt.setdefault(pattern.parent, {}) if pattern.parent else rebuilt
        target[pattern.key] = value

    if not rebuilt:
        return None
    logger.info("Reconstructed %s fields for %s", _field_names(rebuilt), kind.value)
    return rebuilt


def _field_names(rebuilt: dict[str, Any]) -> list[str]:
    names = []
    for key, value in rebuilt.items():
        if key == "documentation" and isinstance(value, dict):
            names.extend(value)
        else:
            names.append(key)
    return names
