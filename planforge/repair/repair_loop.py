"""Error-driven repair: parse, read the diagnostic, make one targeted edit, repeat.

Policy, by diagnostic kind:

=============================  ==========================================
expected comma/closing         insert ``,`` before the reported position
expected colon after key       insert ``:`` at the reported position
unexpected ``'``               replace it with ``"``
unexpected newline / CR        replace it with a space
unexpected anything else       delete the offending character
unexpected end of input        hand off to the bracket balancer
no position reported           hand off to the bracket balancer
=============================  ==========================================

The loop stops after ``max_attempts`` edits, and earlier when an edit would
repeat an earlier one (same action, position and text length) or would leave
the text unchanged; either means it is cycling.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from planforge.config import get_settings
from planforge.repair.diagnostics import DiagnosticKind, ParseDiagnostic, ParseFn, attempt_parse
from planforge.repair.events import Observer, Stage, StageEvent


class LoopStatus(str, Enum):
    PARSED = "parsed"
    NEEDS_BALANCE = "needs_balance"
    EXHAUSTED = "exhausted"
    STALLED = "stalled"


@dataclass(frozen=True)
class Edit:
    action: str  # "insert" | "replace" | "delete"
    position: int
    text: str = ""

    def apply(self, source: str) -> str:
        if self.action == "insert":
            return source[: self.position] + self.text + source[self.position :]
        if self.action == "replace":
            return source[: self.position] + self.text + source[self.position + 1 :]
        return source[: self.position] + source[self.position + 1 :]


@dataclass(frozen=True)
class LoopOutcome:
    status: LoopStatus
    text: str
    value: Any = None
    edits: tuple[Edit, ...] = ()
    diagnostic: ParseDiagnostic | None = None

    @property
    def attempts(self) -> int:
        return len(self.edits)


@dataclass
class _LoopState:
    text: str
    edits: list[Edit] = field(default_factory=list)


def plan_edit(text: str, diagnostic: ParseDiagnostic) -> Edit | None:
    """Choose the single edit for *diagnostic*, or ``None`` to hand off to the balancer."""
    pos = diagnostic.position
    if pos is None or diagnostic.kind in (DiagnosticKind.UNEXPECTED_END, DiagnosticKind.UNKNOWN):
        return None
    if pos >= len(text):
        return None

    if diagnostic.kind is DiagnosticKind.EXPECTED_COMMA_OR_CLOSING:
        return Edit("insert", pos, ",")
    if diagnostic.kind is DiagnosticKind.EXPECTED_COLON:
        return Edit("insert", pos, ":")

    char = text[pos]
    if char == "'":
        return Edit("replace", pos, '"')
    if char in "\r\n":
        return Edit("replace", pos, " ")
    return Edit("delete", pos)


def run_repair_loop(
    text: str,
    *,
    parse: ParseFn = attempt_parse,
    max_attempts: int | None = None,
    observer: Observer | None = None,
    seen: set[tuple[str, int, int]] | None = None,
) -> LoopOutcome:
    """Drive *text* towards a successful parse one diagnostic at a time.

    ``seen`` may be shared between calls so that re-entering the loop after
    the balancer still refuses to repeat an earlier edit.
    """
    limit = max_attempts if max_attempts is not None else get_settings().repair_max_attempts
    seen = seen if seen is not None else set()
    state = _LoopState(text)

    while True:
        result = parse(state.text)
        if result.ok:
            return _finish(LoopStatus.PARSED, state, observer, value=result.value)

        diagnostic = result.diagnostic
        if len(state.edits) >= limit:
            return _finish(LoopStatus.EXHAUSTED, state, observer, diagnostic=diagnostic)

        edit = plan_edit(state.text, diagnostic)
        if edit is None:
            return _finish(LoopStatus.NEEDS_BALANCE, state, observer, diagnostic=diagnostic)

        key = (edit.action, edit.position, len(state.text))
        updated = edit.apply(state.text)
        if key in seen or updated == state.text:
            return _finish(LoopStatus.STALLED, state, observer, diagnostic=diagnostic)

        seen.add(key)
        state.edits.append(edit)
        state.text = updated
        if observer is not None:
            observer(
                StageEvent(
                    Stage.ERROR_LOOP,
                    "edit",
                    {
                        "attempt": len(state.edits),
                        "kind": diagnostic.kind.value,
                        "position": edit.position,
                        "action": edit.action,
                    },
                )
            )


def _finish(
    status: LoopStatus,
    state: _LoopState,
    observer: Observer | None,
    *,
    value: Any = None,
    diagnostic: ParseDiagnostic | None = None,
) -> LoopOutcome:
    if observer is not None:
        detail: dict[str, Any] = {"attempts": len(state.edits)}
        if diagnostic is not None:
            detail["kind"] = diagnostic.kind.value
            detail["position"] = diagnostic.position
        observer(StageEvent(Stage.ERROR_LOOP, status.value, detail))
    return LoopOutcome(status, state.text, value, tuple(state.edits), diagnostic)
