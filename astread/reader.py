"""The four read modes: ``full``, ``outline``, ``lines`` and ``target``.

:func:`execute` is the operation boundary.  Every failure raised by the
loader, the tree provider or the resolver is turned into an error record
here, so callers always receive a result dictionary.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .config import CONTEXT_LINES, LINES_ABOVE, LINES_BELOW
from .dedupe import dedupe_functions
from .errors import FULL_MODE_HINT, AstReadError, ErrorKind, InvalidRequestError, ParseFailure
from .grammars import get_adapter
from .models import ErrorRecord, Outline, OutlineFailure, OutlineOutcome, OutlineSuccess, SourceDocument
from .parser import detect_language, parse_source
from .ranges import clamp_window, slice_lines
from .resolver import LISTING_KINDS, parse_qualifier, resolve_target
from .source import load_source

logger = logging.getLogger(__name__)

MODES = ("full", "outline", "lines", "target")

TARGET_FORMAT_HINT = (
    "Use one of: 'function:name', 'class:Name', 'class:Name.member', "
    "'method:member', 'imports', 'exports'"
)


class ReadRequest(BaseModel):
    """Arguments of one read operation.

    camelCase keys (``filePath``, ``linesAbove``, ...) are accepted alongside
    the field names.  Values are checked strictly: ``"5"`` is not a line.
    """

    model_config = ConfigDict(strict=True, populate_by_name=True)

    file_path: str = Field(..., min_length=1, alias="filePath", description="Path of the file to read")
    mode: str = Field(default="full", description="One of: full, outline, lines, target")
    target: Optional[str] = Field(default=None, description="Entity qualifier when mode='target'")
    line: Optional[int] = Field(default=None, description="1-indexed line when mode='lines'")
    lines_above: int = Field(default=LINES_ABOVE, ge=0, alias="linesAbove", description="Lines shown above")
    lines_below: int = Field(default=LINES_BELOW, ge=0, alias="linesBelow", description="Lines shown below")
    context: bool = Field(default=True, description="Include surrounding lines with a target")
    context_lines: int = Field(default=CONTEXT_LINES, ge=0, alias="contextLines",
                               description="Lines of context around a target")
    verbose: bool = Field(default=True, description="Full result; False adds a one-line summary")

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        # null means "use the default"
        if isinstance(data, Mapping):
            return {key: value for key, value in data.items() if value is not None}
        return data

    @classmethod
    def from_mapping(cls, params: Mapping[str, Any]) -> "ReadRequest":
        """Build a request from a JSON-style mapping.

        Raises:
            InvalidRequestError: for a missing path or a mistyped field.
        """
        try:
            return cls.model_validate(dict(params))
        except ValidationError as exc:
            raise InvalidRequestError.from_validation(exc) from exc


# ===================================================================
# Entry points
# ===================================================================

def read_file(params: Mapping[str, Any]) -> Dict[str, Any]:
    """Validate a request mapping and execute it."""
    try:
        request = ReadRequest.from_mapping(params)
    except InvalidRequestError as exc:
        path = params.get("file_path", params.get("filePath"))
        mode = params.get("mode")
        return ErrorRecord(exc.kind, exc.message, path if isinstance(path, str) else None,
                           mode if isinstance(mode, str) else "full").to_dict()
    return execute(request)


def execute(request: ReadRequest) -> Dict[str, Any]:
    """Run *request* and return its result or error record as a dict."""
    try:
        doc = load_source(request.file_path)
        handler = _HANDLERS.get(request.mode)
        if handler is None:
            return _error(request, ErrorKind.INVALID_MODE,
                          f"Unknown mode: {request.mode}. Expected one of: {', '.join(MODES)}")
        return handler(request, doc)
    except AstReadError as exc:
        return _error(request, exc.kind, exc.message, exc.hint)
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Failed to read %s: %s", request.file_path, exc)
        return _error(request, ErrorKind.READ_ERROR, f"Failed to read file: {exc}", FULL_MODE_HINT)


def build_outline(doc: SourceDocument, language: Optional[str] = None) -> OutlineOutcome:
    """Parse *doc* and classify its declarations.

    A parse failure yields :class:`OutlineFailure` carrying an empty
    ``partial_structure``; it is never reported as an empty success.
    """
    language = language or detect_language(doc.path)
    try:
        tree = parse_source(doc.text, language)
    except ParseFailure as exc:
        logger.debug("Outline of %s failed: %s", doc.path, exc.message)
        return OutlineFailure(ErrorRecord(
            kind=exc.kind,
            message=f"Failed to parse file: {exc.message}",
            file_path=doc.path,
            mode="outline",
            hint=exc.hint,
            partial_structure=Outline().structure(),
        ))
    outline = get_adapter(language).classify(tree.root_node, doc)
    return OutlineSuccess(outline.with_functions(dedupe_functions(outline.functions)), language)


# ===================================================================
# Mode handlers
# ===================================================================

def _read_full(request: ReadRequest, doc: SourceDocument) -> Dict[str, Any]:
    return {
        "success": True,
        "mode": "full",
        "file_path": request.file_path,
        "line_count": doc.line_count,
        "size_bytes": doc.size_bytes,
        "content": doc.text,
    }


def _read_outline(request: ReadRequest, doc: SourceDocument) -> Dict[str, Any]:
    outcome = build_outline(doc)
    if isinstance(outcome, OutlineFailure):
        return outcome.error.to_dict()

    stats = outcome.outline.stats()
    result: Dict[str, Any] = {
        "success": True,
        "mode": "outline",
        "file_path": request.file_path,
        "language": outcome.language,
        "structure": outcome.outline.structure(),
        "stats": stats,
    }
    if not request.verbose:
        result["summary"] = (
            f"File analyzed: {_plural(stats['function_count'], 'function')}, "
            f"{_plural(stats['class_count'], 'class', 'classes')}, "
            f"{_plural(stats['import_count'], 'import')}, "
            f"{_plural(stats['export_count'], 'export')}"
        )
    return result


def _read_lines(request: ReadRequest, doc: SourceDocument) -> Dict[str, Any]:
    line = request.line
    if line is None:
        return _error(request, ErrorKind.MISSING_LINE, "line parameter required when mode='lines'")
    total = doc.line_count
    if line < 1 or line > total:
        return _error(request, ErrorKind.LINE_OUT_OF_RANGE,
                      f"Line {line} out of range (file has {total} lines)")

    start, end = clamp_window(line, line, request.lines_above, total, request.lines_below)
    result: Dict[str, Any] = {
        "success": True,
        "mode": "lines",
        "file_path": request.file_path,
        "target_line": line,
        "start_line": start,
        "end_line": end,
        "total_lines": total,
        "lines_above": line - start,
        "lines_below": end - line,
        "content": slice_lines(doc.lines, start, end),
    }
    if not request.verbose:
        result["summary"] = f"Showing line {line} ({start}-{end} of {total} total lines)"
    return result


def _read_target(request: ReadRequest, doc: SourceDocument) -> Dict[str, Any]:
    if not request.target:
        return _error(request, ErrorKind.MISSING_TARGET,
                      "target parameter required when mode='target'", TARGET_FORMAT_HINT)

    qualifier = parse_qualifier(request.target)
    if qualifier.kind in LISTING_KINDS:
        return _read_listing(request, doc, qualifier.kind)

    language = detect_language(doc.path)
    tree = parse_source(doc.text, language)
    target = resolve_target(
        get_adapter(language),
        tree.root_node,
        doc,
        qualifier,
        context_lines=request.context_lines,
        include_context=request.context,
    )
    result = target.to_dict()
    result["file_path"] = request.file_path
    if not request.verbose:
        entity = f"{target.class_name}.{target.target_name}" if target.class_name else target.target_name
        line_count = target.end_line - target.line + 1
        result["summary"] = f"Extracted {target.target_type} '{entity}' ({_plural(line_count, 'line')})"
    return result


def _read_listing(request: ReadRequest, doc: SourceDocument, kind: str) -> Dict[str, Any]:
    """``imports`` / ``exports`` targets return the outline's list."""
    outcome = build_outline(doc)
    if isinstance(outcome, OutlineFailure):
        outcome.error.mode = request.mode
        return outcome.error.to_dict()

    items = outcome.outline.structure()[kind]
    result: Dict[str, Any] = {
        "success": True,
        "mode": "target",
        "file_path": request.file_path,
        "target_type": kind,
        kind: items,
    }
    if not request.verbose:
        result["summary"] = f"Found {_plural(len(items), kind[:-1])}"
    return result


_HANDLERS: Dict[str, Callable[[ReadRequest, SourceDocument], Dict[str, Any]]] = {
    "full": _read_full,
    "outline": _read_outline,
    "lines": _read_lines,
    "target": _read_target,
}


# ===================================================================
# Helpers
# ===================================================================

def _error(request: ReadRequest, kind: ErrorKind, message: str, hint: Optional[str] = None) -> Dict[str, Any]:
    return ErrorRecord(kind, message, request.file_path, request.mode, hint).to_dict()


def _plural(count: int, singular: str, plural: Optional[str] = None) -> str:
    word = singular if count == 1 else (plural or f"{singular}s")
    return f"{count} {word}"
