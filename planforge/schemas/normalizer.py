"""Normalization of parsed values into the domain schemas.

Values that validate come back as ``model_dump(by_alias=True)``.  A value
pydantic still rejects after shape coercion loses only the offending
entries: each failing location is removed and validation runs again, so the
field default applies there and the rest of the object survives.  The
placeholder replaces the whole object only when pruning cannot converge.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from pydantic import ValidationError

from planforge.schemas.fallback import synthesize_fallback
from planforge.schemas.models import SchemaKind, model_for

logger = logging.getLogger(__name__)

_MAX_PRUNES = 25


def _prune(data: Any, loc: tuple[Any, ...]) -> bool:
    """Remove the entry at *loc* from *data* in place; False if it is not there."""
    if not loc:
        return False
    *parents, leaf = loc
    node = data
    for key in parents:
        if isinstance(node, dict) and key in node:
            node = node[key]
        elif isinstance(node, list) and isinstance(key, int) and -len(node) <= key < len(node):
            node = node[key]
        else:
            return False
    if isinstance(node, dict) and leaf in node:
        del node[leaf]
        return True
    if isinstance(node, list) and isinstance(leaf, int) and -len(node) <= leaf < len(node):
        del node[leaf]
        return True
    return False


def normalize_with_status(value: Any, kind: SchemaKind | str) -> tuple[dict[str, Any], bool, bool]:
    """Like :func:`normalize`, returning ``(data, was_modified, used_placeholder)``."""
    kind = SchemaKind(kind)
    candidate = value
    if isinstance(value, list):
        candidate = next((item for item in value if isinstance(item, dict)), {})
    schema = model_for(kind)

    pruned: list[tuple[Any, ...]] = []
    for _ in range(_MAX_PRUNES + 1):
        try:
            model = schema.model_validate(candidate)
            break
        except ValidationError as exc:
            error = exc.errors()[0]
            loc = tuple(error["loc"])
            # A required field is absent: drop the entry that needs it
            if error["type"] == "missing":
                loc = loc[:-1]
            if not pruned:
                candidate = copy.deepcopy(candidate)
            if len(pruned) >= _MAX_PRUNES or not _prune(candidate, loc):
                logger.warning("Normalization failed for %s, using placeholder: %s", kind.value, exc.errors()[:3])
                return synthesize_fallback(kind), True, True
            pruned.append(loc)

    if pruned:
        logger.info("Dropped %d invalid field(s) from %s: %s", len(pruned), kind.value, pruned[:5])
    data = model.model_dump(by_alias=True)
    return data, data != value, False


def normalize(value: Any, kind: SchemaKind | str) -> tuple[dict[str, Any], bool]:
    """Coerce a parsed value into the *kind* schema.

    Returns ``(data, was_modified)``.  ``was_modified`` is False only when
    *value* already conformed and came back unchanged.  A top-level list is
    reduced to its first object.
    """
    data, modified, _ = normalize_with_status(value, kind)
    return data, modified
