"""Syntax tree provider built on Tree-sitter.

Grammars come from the per-language ``tree-sitter-*`` packages and are
loaded lazily.  Tree-sitter never refuses input: it produces a concrete
syntax tree containing ``ERROR`` and ``MISSING`` nodes instead.  This module
turns such trees into a :class:`~astread.errors.ParseFailure` so callers
never mistake a broken file for one without declarations.
"""

from __future__ import annotations

import importlib
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple, Union

from .errors import ErrorKind, ParseFailure

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Language <-> file-extension mapping
# ---------------------------------------------------------------------------
LANGUAGE_MAP: Dict[str, str] = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
    ".py": "python",
    ".pyw": "python",
}

DEFAULT_LANGUAGE = "javascript"

# Map language name -> (module, factory attribute) providing the Language capsule
_GRAMMAR_MODULES: Dict[str, Tuple[str, str]] = {
    "javascript": ("tree_sitter_javascript", "language"),
    "typescript": ("tree_sitter_typescript", "language_typescript"),
    "tsx": ("tree_sitter_typescript", "language_tsx"),
    "python": ("tree_sitter_python", "language"),
}


def detect_language(file_path: Union[str, Path]) -> str:
    """Return the grammar name for *file_path*, defaulting to JavaScript."""
    return LANGUAGE_MAP.get(Path(file_path).suffix.lower(), DEFAULT_LANGUAGE)


def is_source_file(file_path: Union[str, Path]) -> bool:
    return Path(file_path).suffix.lower() in LANGUAGE_MAP


@lru_cache(maxsize=None)
def _load_language(language: str) -> Any:
    from tree_sitter import Language  # type: ignore[import-untyped]

    mod_name, factory = _GRAMMAR_MODULES[language]
    mod = importlib.import_module(mod_name)
    logger.debug("Loaded tree-sitter grammar for %s", language)
    return Language(getattr(mod, factory)())


def parse_source(text: str, language: str) -> Any:
    """Parse *text* with the *language* grammar and return the tree.

    Raises:
        ParseFailure: when the grammar is unavailable or the tree contains
            syntax errors.
    """
    if language not in _GRAMMAR_MODULES:
        raise ParseFailure(f"No grammar available for language '{language}'", ErrorKind.PARSE_UNKNOWN)
    try:
        from tree_sitter import Parser as TSParser  # type: ignore[import-untyped]

        ts_lang = _load_language(language)
    except ImportError as exc:
        mod_name = _GRAMMAR_MODULES[language][0]
        logger.warning(
            "Grammar package '%s' not installed for language '%s'. "
            "Install with: pip install %s",
            mod_name, language, mod_name.replace("_", "-"),
        )
        raise ParseFailure(f"Grammar for '{language}' could not be loaded: {exc}", ErrorKind.PARSE_UNKNOWN) from exc

    source_bytes = text.encode("utf-8")
    tree = TSParser(ts_lang).parse(source_bytes)
    if tree.root_node.has_error:
        raise ParseFailure(describe_syntax_error(tree.root_node, len(source_bytes.rstrip())))
    return tree


def describe_syntax_error(root: Any, source_length: int) -> str:
    """Build a parser-style message for the first broken node under *root*.

    The wording feeds :func:`~astread.errors.classify_parse_error`: missing
    tokens and errors running into the end of input read as unterminated
    constructs, anything else as an unexpected token.
    """
    node = _first_error_node(root)
    if node is None:
        return "Syntax tree reported an error without an error node"
    line, column = node.start_point[0] + 1, node.start_point[1]
    if node.is_missing:
        return f"Unterminated construct: missing '{node.type}' at line {line}, column {column}"
    if node.end_byte >= source_length and node.start_byte < node.end_byte:
        return f"Unterminated construct starting at line {line}, column {column} runs to eof"
    snippet = (node.text or b"").decode("utf-8", errors="replace").strip().split("\n")[0][:40]
    return f"Unexpected token '{snippet}' at line {line}, column {column}"


def _first_error_node(node: Any) -> Optional[Any]:
    stack = [node]
    while stack:
        current = stack.pop()
        if current.is_missing or current.type == "ERROR":
            return current
        stack.extend(
            child for child in reversed(current.children)
            if child.has_error or child.is_missing
        )
    return None


def walk(node: Any) -> Iterator[Any]:
    """Yield *node* and every descendant in document (pre-)order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))
