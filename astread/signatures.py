"""One-line display signatures for functions and methods."""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

PLACEHOLDER = "..."


def format_params(params: Iterable[Optional[str]]) -> str:
    """Join parameter names; ``None`` marks a non-simple binding."""
    return ", ".join(p if p else PLACEHOLDER for p in params)


def render_signature(
    name: str,
    params: Iterable[Optional[str]],
    modifiers: Sequence[str] = (),
    keyword: Optional[str] = None,
    arrow: bool = False,
) -> str:
    """Render e.g. ``static validate(email)`` or ``async function load(id)``.

    With *arrow* the name is omitted: ``async (a, b) => {...}``.
    """
    prefix = "".join(f"{m} " for m in modifiers)
    param_list = format_params(params)
    if arrow:
        return f"{prefix}({param_list}) => {{...}}"
    if keyword:
        prefix = f"{prefix}{keyword} "
    return f"{prefix}{name}({param_list})"


def render_bound_signature(name: str, value_signature: str) -> str:
    """Signature for a function expression bound to a variable."""
    return f"{name} = {value_signature}"
