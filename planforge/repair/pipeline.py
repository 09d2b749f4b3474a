"""Staged recovery of structured data from raw model output.

    extract -> direct parse -> pattern repair -> error-driven loop
            -> bracket balancer (then back into the loop) -> reconstructor
            -> placeholder -> normalizer

Each stage runs only when every earlier one failed to produce a parse.  The
pipeline is total: :func:`recover` returns a schema-conformant object for
any input and never raises, except in strict mode where an implausible
result is rejected with :class:`ImplausibleResultError`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from planforge.config import get_settings
from planforge.core.log import logging_observer
from planforge.repair.balancer import balance_brackets
from planforge.repair.diagnostics import ParseFn, attempt_parse, structure_counts
from planforge.repair.events import Observer, Stage, StageEvent
from planforge.repair.extractor import extract_payload
from planforge.repair.reconstructor import reconstruct
from planforge.repair.repair_loop import Edit, LoopStatus, run_repair_loop
from planforge.repair.rules import apply_rules
from planforge.schemas.fallback import synthesize_fallback
from planforge.schemas.models import SchemaKind
from planforge.schemas.normalizer import normalize_with_status


class ImplausibleResultError(ValueError):
    """Strict mode rejected a recovered object; the object is on ``.result``."""

    def __init__(self, message: str, result: RecoveryResult):
        super().__init__(message)
        self.result = result


@dataclass(frozen=True)
class RepairOutcome:
    """Result of the text-level stages.

    ``candidate`` is the payload after pattern repair, the text later stages
    salvage from when nothing parsed.
    """

    ok: bool
    value: Any
    stage: Stage
    text: str
    candidate: str = ""
    edits: tuple[Edit, ...] = ()


@dataclass(frozen=True)
class RecoveryResult:
    kind: SchemaKind
    data: dict[str, Any]
    stage: Stage
    was_modified: bool
    used_fallback: bool = False
    edits: tuple[Edit, ...] = field(default=(), repr=False)


def repair_json(
    raw: str,
    *,
    observer: Observer | None = None,
    parse: ParseFn = attempt_parse,
    max_attempts: int | None = None,
) -> RepairOutcome:
    """Run the text-level stages on *raw* until one of them parses."""
    emit = observer if observer is not None else logging_observer
    text = extract_payload(raw or "")
    emit(StageEvent(Stage.EXTRACT, "done", {"length": len(text)}))

    result = parse(text)
    if result.ok:
        emit(StageEvent(Stage.DIRECT, "parsed"))
        return RepairOutcome(True, result.value, Stage.DIRECT, text, text)
    emit(StageEvent(Stage.DIRECT, "failed", {"kind": result.diagnostic.kind.value, **structure_counts(text)}))

    text = apply_rules(text)
    candidate = text
    result = parse(text)
    if result.ok:
        emit(StageEvent(Stage.PATTERN, "parsed"))
        return RepairOutcome(True, result.value, Stage.PATTERN, text, candidate)
    emit(StageEvent(Stage.PATTERN, "failed", {"kind": result.diagnostic.kind.value}))

    budget = max_attempts if max_attempts is not None else get_settings().repair_max_attempts
    seen: set[tuple[str, int, int]] = set()
    edits: list[Edit] = []
    stage = Stage.ERROR_LOOP

    # Each round either stops or grows the text through the balancer
    for _ in range(budget + 1):
        outcome = run_repair_loop(text, parse=parse, max_attempts=budget, observer=emit, seen=seen)
        budget -= outcome.attempts
        edits.extend(outcome.edits)
        text = outcome.text
        if outcome.status is LoopStatus.PARSED:
            return RepairOutcome(True, outcome.value, stage, text, candidate, tuple(edits))
        if outcome.status is not LoopStatus.NEEDS_BALANCE:
            break

        balanced = balance_brackets(text)
        if balanced == text:
            emit(StageEvent(Stage.BALANCER, "unchanged"))
            break
        emit(StageEvent(Stage.BALANCER, "appended", {"suffix": balanced[len(text) :]}))
        text = balanced
        stage = Stage.BALANCER

    return RepairOutcome(False, None, stage, text, candidate, tuple(edits))


def _usable(value: Any) -> bool:
    if isinstance(value, dict):
        return True
    return isinstance(value, list) and any(isinstance(item, dict) for item in value)


def recover(
    raw: str,
    kind: SchemaKind | str,
    *,
    observer: Observer | None = None,
    strict: bool | None = None,
    parse: ParseFn = attempt_parse,
) -> RecoveryResult:
    """Turn *raw* model output into a valid object of schema *kind*."""
    kind = SchemaKind(kind)
    emit = observer if observer is not None else logging_observer
    outcome = repair_json(raw, observer=emit, parse=parse)

    used_fallback = False
    if outcome.ok and _usable(outcome.value):
        value, stage = outcome.value, outcome.stage
    else:
        value = reconstruct(outcome.candidate or outcome.text, kind)
        if value is not None:
            stage = Stage.RECONSTRUCTOR
            emit(StageEvent(Stage.RECONSTRUCTOR, "recovered", {"schema": kind.value, "fields": sorted(value)}))
        else:
            value = synthesize_fallback(kind)
            stage = Stage.FALLBACK
            used_fallback = True
            emit(StageEvent(Stage.FALLBACK, "used", {"schema": kind.value}))

    data, modified, placeholder = normalize_with_status(value, kind)
    if placeholder and not used_fallback:
        stage = Stage.FALLBACK
        used_fallback = True
        emit(StageEvent(Stage.FALLBACK, "used", {"schema": kind.value, "reason": "invalid"}))
    emit(StageEvent(Stage.NORMALIZE, "modified" if modified else "unchanged", {"schema": kind.value}))
    result = RecoveryResult(kind, data, stage, modified, used_fallback, outcome.edits)

    if strict is None:
        strict = get_settings().strict_mode
    if strict:
        ensure_plausible(result, observer=emit)
    return result


# (path of keys, description) of collections that must not come back empty
_REQUIRED_COLLECTIONS: dict[SchemaKind, tuple[tuple[tuple[str, ...], str], ...]] = {
    SchemaKind.PROJECT_STRUCTURE: ((("coreFeatures",), "core features"),),
    SchemaKind.SPRINT_PLAN: (
        (("developerSprintPlan", "sprints"), "developer sprints"),
        (("aiSprintPlan", "sprints"), "AI-assisted sprints"),
    ),
    SchemaKind.COST_ESTIMATION: ((("costCategories",), "cost categories"),),
    SchemaKind.DOCUMENTATION: (),
}


def _lookup(data: dict[str, Any], path: tuple[str, ...]) -> Any:
    value: Any = data
    for key in path:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def ensure_plausible(
    result: RecoveryResult,
    *,
    min_core_features: int | None = None,
    observer: Observer | None = None,
) -> RecoveryResult:
    """Reject placeholder output and empty required collections.

    Returns *result* unchanged when it passes, raises
    :class:`ImplausibleResultError` otherwise.
    """
    emit = observer if observer is not None else logging_observer
    threshold = min_core_features if min_core_features is not None else get_settings().min_core_features

    problems = []
    if result.used_fallback:
        problems.append("no content could be recovered")
    for path, label in _REQUIRED_COLLECTIONS[result.kind]:
        items = _lookup(result.data, path)
        count = len(items) if isinstance(items, list) else 0
        minimum = threshold if path == ("coreFeatures",) else 1
        if count < minimum:
            problems.append(f"{label}: {count} < {minimum}")

    if problems:
        emit(StageEvent(Stage.STRICT, "rejected", {"schema": result.kind.value, "problems": problems}))
        raise ImplausibleResultError(f"Implausible {result.kind.value}: " + "; ".join(problems), result)
    emit(StageEvent(Stage.STRICT, "accepted", {"schema": result.kind.value}))
    return result
