"""Stage identifiers and the observer side-channel of the repair pipeline."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Stage(str, Enum):
    EXTRACT = "extract"
    DIRECT = "direct_parse"
    PATTERN = "pattern_repair"
    ERROR_LOOP = "error_loop"
    BALANCER = "balancer"
    RECONSTRUCTOR = "reconstructor"
    FALLBACK = "fallback"
    NORMALIZE = "normalize"
    STRICT = "strict"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class StageEvent:
    """Emitted at every stage boundary; ``detail`` is free-form and JSON-friendly."""

    stage: Stage
    outcome: str
    detail: dict[str, Any] = field(default_factory=dict)


Observer = Callable[[StageEvent], None]
