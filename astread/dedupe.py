"""Collapse near-duplicate function detections."""

from __future__ import annotations

from typing import Iterable, List

from .models import DECLARED, FunctionRecord

LINE_TOLERANCE = 2


def _same_entity(a: FunctionRecord, b: FunctionRecord, tolerance: int) -> bool:
    return a.name == b.name and abs(a.line - b.line) <= tolerance


def dedupe_functions(
    functions: Iterable[FunctionRecord],
    tolerance: int = LINE_TOLERANCE,
) -> List[FunctionRecord]:
    """Return *functions* with same-name records within *tolerance* lines merged.

    A ``declared`` record replaces a variable-bound one for the same entity,
    taking the position of the first record it replaces; otherwise the
    first record seen wins.  No two returned records describe the same
    entity, so applying this again returns the list unchanged.
    """
    kept: List[FunctionRecord] = []
    for func in functions:
        matches = [i for i, existing in enumerate(kept) if _same_entity(existing, func, tolerance)]
        if not matches:
            kept.append(func)
            continue
        if func.subtype != DECLARED or any(kept[i].subtype == DECLARED for i in matches):
            continue
        kept[matches[0]] = func
        for i in reversed(matches[1:]):
            del kept[i]
    return kept
