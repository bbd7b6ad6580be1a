"""Line-range arithmetic over 1-indexed, inclusive source spans."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple


@dataclass(frozen=True)
class Excerpt:
    code: str
    context_before: str
    context_after: str
    window_start: int
    window_end: int


def clamp_window(
    start: int,
    end: int,
    before: int,
    total_lines: int,
    after: Optional[int] = None,
) -> Tuple[int, int]:
    """Widen ``[start, end]`` by the context sizes and clamp to ``[1, total_lines]``.

    Negative context sizes count as zero.
    """
    if after is None:
        after = before
    before, after = max(0, before), max(0, after)
    return max(1, start - before), min(total_lines, end + after)


def slice_lines(lines: Sequence[str], start: int, end: int) -> str:
    """Join lines ``start..end`` (1-indexed, inclusive), clamped to *lines*."""
    start = max(1, start)
    end = min(len(lines), end)
    if end < start:
        return ""
    return "\n".join(lines[start - 1:end])


def extract_range(
    lines: Sequence[str],
    start: int,
    end: int,
    context_lines: int = 0,
    include_context: bool = True,
) -> Excerpt:
    """Carve ``[start, end]`` plus surrounding context out of *lines*.

    ``context_before + "\\n" + code + "\\n" + context_after`` (skipping empty
    context parts) is always a contiguous substring of ``"\\n".join(lines)``.
    """
    total = len(lines)
    start = max(1, start)
    end = min(total, max(start, end))
    if not include_context:
        context_lines = 0
    window_start, window_end = clamp_window(start, end, context_lines, total)
    return Excerpt(
        code=slice_lines(lines, start, end),
        context_before=slice_lines(lines, window_start, start - 1),
        context_after=slice_lines(lines, end + 1, window_end),
        window_start=window_start,
        window_end=window_end,
    )
