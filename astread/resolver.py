"""Target qualifiers and their resolution to exact source ranges.

A qualifier names one entity: ``class:Name``, ``class:Name.member``,
``method:member`` or ``function:name``.  The grammar adapter finds the
node; this module turns the node's span into a :class:`TargetResult` and
builds the not-found hints.
"""

from __future__ import annotations

import logging
from typing import Any

from .errors import TargetNotFoundError
from .grammars.base import GrammarAdapter
from .models import Qualifier, SourceDocument, TargetResult
from .ranges import extract_range

logger = logging.getLogger(__name__)

ENTITY_KINDS = ("class", "method", "function")
LISTING_KINDS = ("imports", "exports")

OUTLINE_HINT = "Try using mode='outline' first to see available entities"


def parse_qualifier(text: str) -> Qualifier:
    """Split ``kind:Owner.member`` into its parts.

    Only the first ``:`` and the first ``.`` are significant.
    """
    kind, _, path = text.strip().partition(":")
    owner, dot, member = path.partition(".")
    if dot:
        return Qualifier(raw=text, kind=kind, name=member, class_name=owner or None)
    return Qualifier(raw=text, kind=kind, name=path)


def resolve_target(
    adapter: GrammarAdapter,
    root: Any,
    doc: SourceDocument,
    qualifier: Qualifier,
    context_lines: int = 5,
    include_context: bool = True,
) -> TargetResult:
    """Extract the first entity matching *qualifier* with its context.

    Raises:
        TargetNotFoundError: when nothing matches; the hint depends on the
            qualifier form.
    """
    message = f"{qualifier.kind} '{qualifier.path}' not found in file"
    if qualifier.kind not in ENTITY_KINDS or not qualifier.name:
        raise TargetNotFoundError(message, OUTLINE_HINT)

    span = adapter.resolve(root, qualifier)
    if span is None:
        logger.debug("No match for %r in %s", qualifier.raw, doc.path)
        raise TargetNotFoundError(message, not_found_hint(adapter, root, doc, qualifier))

    excerpt = extract_range(doc.lines, span.start_line, span.end_line, context_lines, include_context)
    logger.debug("Resolved %r to lines %d-%d", qualifier.raw, span.start_line, span.end_line)
    return TargetResult(
        target_type=span.target_type,
        target_name=span.name,
        class_name=span.class_name,
        line=span.start_line,
        end_line=span.end_line,
        code=excerpt.code,
        context_before=excerpt.context_before,
        context_after=excerpt.context_after,
    )


def not_found_hint(adapter: GrammarAdapter, root: Any, doc: SourceDocument, qualifier: Qualifier) -> str:
    name = qualifier.name
    if qualifier.kind in ("function", "method"):
        return (
            f"Method '{name}' not found. If it's a class method, try:\n"
            f"  • 'class:ClassName.{name}' (if you know the class name)\n"
            f"  • 'method:{name}' (to search all classes)\n"
            f"  • Use mode='outline' to see all available methods"
        )
    if qualifier.kind == "class" and qualifier.class_name:
        owner = qualifier.class_name
        classes = adapter.classify(root, doc).classes
        if any(c.name == owner for c in classes):
            return (
                f"Method '{name}' not found in class '{owner}'.\n"
                f"Use mode='outline' to see all methods in this class."
            )
        return f"Class '{owner}' not found. Use mode='outline' to see available classes."
    return OUTLINE_HINT
