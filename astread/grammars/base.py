"""Grammar adapter contract and tree helpers shared by every adapter.

An adapter maps one grammar's node kinds onto the common record types.  It
only classifies and resolves; deduplication, range extraction and signature
rendering are grammar-agnostic and live outside the adapters.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence, Tuple

from ..models import Outline, Qualifier, SourceDocument, Symbol, TargetSpan


class GrammarAdapter(ABC):
    """Classify and resolve declarations for one grammar family."""

    languages: Tuple[str, ...] = ()

    @abstractmethod
    def classify(self, root: Any, doc: SourceDocument) -> Outline:
        """Walk the tree once and return every declaration found.

        Function candidates are returned before deduplication.
        """
        ...

    @abstractmethod
    def resolve(self, root: Any, qualifier: Qualifier) -> Optional[TargetSpan]:
        """Return the span of the first node matching *qualifier*, if any."""
        ...

    @abstractmethod
    def symbols(self, root: Any, doc: SourceDocument) -> List[Symbol]:
        """Return every searchable declaration and call site, in tree order."""
        ...


# ===================================================================
# Node helpers
# ===================================================================

def node_text(node: Optional[Any]) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8")


def start_line(node: Any) -> int:
    return node.start_point[0] + 1


def end_line(node: Any) -> int:
    return node.end_point[0] + 1


def column(node: Any, doc: SourceDocument) -> int:
    """Character column of *node*; tree-sitter counts bytes."""
    row, offset = node.start_point
    if row >= doc.line_count:
        return offset
    prefix = doc.lines[row].encode("utf-8")[:offset]
    return len(prefix.decode("utf-8", "replace"))


def has_child_type(node: Any, *types: str) -> bool:
    return any(child.type in types for child in node.children)


def first_child_of_type(node: Any, *types: str) -> Optional[Any]:
    for child in node.children:
        if child.type in types:
            return child
    return None


def within_spans(line: int, spans: Sequence[Tuple[int, int]]) -> bool:
    return any(start <= line <= end for start, end in spans)


def scope_path(node: Any, scopes: dict) -> Optional[str]:
    """Describe the enclosing named scopes of *node*, outermost first.

    *scopes* maps a node type to the qualifier prefix it contributes, for
    instance ``{"class_declaration": "class"}``.
    """
    parts: List[str] = []
    current = node.parent
    while current is not None:
        prefix = scopes.get(current.type)
        if prefix:
            name = current.child_by_field_name("name")
            if name is not None:
                parts.append(f"{prefix}:{node_text(name)}")
        current = current.parent
    return " > ".join(reversed(parts)) if parts else None
