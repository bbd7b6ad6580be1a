"""Structural search over one source file or a directory tree.

Source files are parsed and matched symbol by symbol (declarations, imports,
exports, call sites).  Other searchable files fall back to a line-by-line
regex scan.
"""

from __future__ import annotations

import logging
import os
import re
from fnmatch import fnmatch
from pathlib import Path
from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple, get_args

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .config import SEARCH_CONTEXT, SKIP_DIRS
from .errors import (
    AstReadError,
    InvalidPatternError,
    InvalidRequestError,
    ParseFailure,
    PathNotFoundError,
)
from .grammars import get_adapter
from .models import ErrorRecord, SearchMatch, SourceDocument, Symbol
from .parser import detect_language, is_source_file, parse_source
from .source import load_source

logger = logging.getLogger(__name__)

SymbolType = Literal["function", "class", "import", "export", "variable", "call", "all"]
SYMBOL_TYPES = get_args(SymbolType)
OutputMode = Literal["content", "file_paths"]
MODIFIERS = ("async", "static", "export", "const", "let", "var", "private", "public", "protected", "get", "set")

# Non-source files searched as plain text when ``include_non_code`` is set
TEXT_EXTENSIONS = {
    ".md", ".mdx", ".txt", ".rst",
    ".json", ".yaml", ".yml", ".toml", ".ini", ".cfg", ".conf",
    ".html", ".htm", ".xml", ".svg",
    ".css", ".scss", ".sass", ".less",
    ".sh", ".bash", ".zsh", ".fish", ".ps1", ".bat", ".cmd",
    ".rb", ".rake", ".go", ".rs",
    ".c", ".cpp", ".cc", ".cxx", ".h", ".hpp", ".hxx",
    ".java", ".cs", ".php", ".swift", ".m", ".mm", ".kt", ".kts", ".scala", ".vue",
    ".sql", ".graphql", ".gql", ".proto",
}
TEXT_FILENAMES = {
    "Dockerfile", "Makefile", "Rakefile", "Procfile",
    ".gitignore", ".dockerignore", ".eslintrc", ".prettierrc", ".babelrc",
    ".env", ".env.example", ".env.local",
    "LICENSE", "README", "CHANGELOG", "TODO", "AUTHORS",
}


class SearchRequest(BaseModel):
    """Arguments of one search."""

    model_config = ConfigDict(strict=True)

    pattern: str = Field(..., description="Regular expression matched against symbol names")
    path: str = Field(default=".", description="File or directory to search")
    glob_pattern: Optional[str] = Field(default=None, description="Only files whose name or relative path match")
    case_insensitive: bool = Field(default=False, description="Case-insensitive matching")
    context: Optional[int] = Field(default=None, ge=0, description="Lines before and after each match")
    context_before: Optional[int] = Field(default=None, ge=0, description="Lines before each match")
    context_after: Optional[int] = Field(default=None, ge=0, description="Lines after each match")
    output_mode: OutputMode = Field(default="content", description="Matches or file list")
    type: SymbolType = Field(default="all", description="Symbol category to keep")
    modifiers: List[str] = Field(default_factory=list, description="Modifiers every match must carry")
    head_limit: Optional[int] = Field(default=None, ge=0, description="Return at most this many matches")
    include_non_code: bool = Field(default=False, description="Also scan docs and config files as text")

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, Mapping):
            return {key: value for key, value in data.items() if value is not None}
        return data

    @field_validator("type", mode="before")
    @classmethod
    def lower_type(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value

    @classmethod
    def from_mapping(cls, params: Mapping[str, Any]) -> "SearchRequest":
        try:
            return cls.model_validate(dict(params))
        except ValidationError as exc:
            raise InvalidRequestError.from_validation(exc) from exc

    @property
    def window(self) -> Tuple[int, int]:
        """Lines of context (before, after); ``context`` overrides both."""
        if self.context is not None:
            return self.context, self.context
        before = self.context_before if self.context_before is not None else SEARCH_CONTEXT
        after = self.context_after if self.context_after is not None else SEARCH_CONTEXT
        return before, after


# ===================================================================
# Entry points
# ===================================================================

def search_code(params: Mapping[str, Any]) -> Dict[str, Any]:
    """Validate a request mapping and run the search."""
    try:
        request = SearchRequest.from_mapping(params)
    except InvalidRequestError as exc:
        path = params.get("path")
        return ErrorRecord(exc.kind, exc.message, path if isinstance(path, str) else None, "search").to_dict()
    return search(request)


def search(request: SearchRequest) -> Dict[str, Any]:
    """Run *request*; failures come back as error records."""
    try:
        return _search(request)
    except AstReadError as exc:
        return ErrorRecord(exc.kind, exc.message, request.path, "search", exc.hint).to_dict()


def _search(request: SearchRequest) -> Dict[str, Any]:
    root = Path(request.path)
    if not root.exists():
        raise PathNotFoundError(f"Path not found: {request.path}")
    try:
        regex = re.compile(request.pattern, re.IGNORECASE if request.case_insensitive else 0)
    except re.error as exc:
        raise InvalidPatternError(f"Invalid pattern '{request.pattern}': {exc}") from exc

    files = [root] if root.is_file() else find_files(root, request.glob_pattern, request.include_non_code)
    if not files:
        return {
            "success": True,
            "total_matches": 0,
            "files_searched": 0,
            "matches": [],
            "message": "No code files found in search path",
        }

    matches: List[SearchMatch] = []
    files_with_matches: List[str] = []
    skipped: List[str] = []
    for file_path in files:
        try:
            found = search_file(file_path, regex, request)
        except ParseFailure as exc:
            logger.warning("Skipping %s: %s", file_path, exc.message)
            skipped.append(str(file_path))
            continue
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Skipping unreadable %s: %s", file_path, exc)
            skipped.append(str(file_path))
            continue
        if found:
            files_with_matches.append(str(file_path))
            matches.extend(found)

    result: Dict[str, Any] = {
        "success": True,
        "total_matches": len(matches),
        "files_searched": len(files),
        "skipped": skipped,
    }
    if request.output_mode == "file_paths":
        result["files"] = files_with_matches
        return result

    limit = request.head_limit
    shown = matches[:limit] if limit is not None and limit >= 0 else matches
    result["matches"] = [m.to_dict() for m in shown]
    result["truncated"] = len(shown) < len(matches)
    return result


# ===================================================================
# File discovery
# ===================================================================

def is_text_file(file_path: Path) -> bool:
    return file_path.suffix.lower() in TEXT_EXTENSIONS or file_path.name in TEXT_FILENAMES


def find_files(root: Path, glob_pattern: Optional[str] = None, include_non_code: bool = False) -> List[Path]:
    """Collect searchable files under *root* in sorted order.

    Directories in :data:`SKIP_DIRS` and dot-directories are not entered.
    """
    results: List[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in SKIP_DIRS and not d.startswith("."))
        for filename in sorted(filenames):
            file_path = Path(dirpath) / filename
            if not (is_source_file(file_path) or (include_non_code and is_text_file(file_path))):
                continue
            if glob_pattern and not _glob_matches(file_path, root, glob_pattern):
                continue
            results.append(file_path)
    return results


def _glob_matches(file_path: Path, root: Path, glob_pattern: str) -> bool:
    relative = file_path.relative_to(root).as_posix()
    return fnmatch(file_path.name, glob_pattern) or fnmatch(relative, glob_pattern)


# ===================================================================
# Matching
# ===================================================================

def search_file(file_path: Path, regex: re.Pattern, request: SearchRequest) -> List[SearchMatch]:
    """Return the matches in one file.

    Raises:
        ParseFailure: if a source file does not parse.
    """
    doc = load_source(file_path)
    if not is_source_file(file_path):
        return text_matches(doc, regex, *request.window)

    language = detect_language(file_path)
    tree = parse_source(doc.text, language)
    symbols = get_adapter(language).symbols(tree.root_node, doc)
    return symbol_matches(doc, symbols, regex, request)


def symbol_matches(
    doc: SourceDocument,
    symbols: List[Symbol],
    regex: re.Pattern,
    request: SearchRequest,
) -> List[SearchMatch]:
    wanted = request.type.lower()
    required = [m.lower() for m in request.modifiers]
    # A pattern naming a required modifier matches every symbol carrying it.
    modifier_pattern = request.pattern.lower() in required
    before, after = request.window

    matches: List[SearchMatch] = []
    for symbol in symbols:
        if wanted != "all" and symbol.category != wanted:
            continue
        if not all(m in symbol.modifiers for m in required):
            continue
        if not (modifier_pattern or name_matches(regex, symbol.name)):
            continue
        code, lines_before, lines_after = line_context(doc, symbol.line, before, after)
        matches.append(SearchMatch(
            file=doc.path,
            line=symbol.line,
            column=symbol.column,
            match_type=symbol.match_type,
            name=symbol.name,
            code=code,
            before=lines_before,
            after=lines_after,
            scope=symbol.scope,
            jsdoc=symbol.jsdoc,
            modifiers=symbol.modifiers,
        ))
    return matches


def name_matches(regex: re.Pattern, name: str) -> bool:
    """Match the whole name or, for dotted names, its last segment."""
    if regex.search(name):
        return True
    return "." in name and regex.search(name.rsplit(".", 1)[1]) is not None


def text_matches(doc: SourceDocument, regex: re.Pattern, before: int, after: int) -> List[SearchMatch]:
    matches: List[SearchMatch] = []
    for number, line in enumerate(doc.lines, start=1):
        for match in regex.finditer(line):
            code, lines_before, lines_after = line_context(doc, number, before, after)
            matches.append(SearchMatch(
                file=doc.path,
                line=number,
                column=match.start(),
                match_type="text_match",
                name=match.group(0),
                code=code,
                before=lines_before,
                after=lines_after,
            ))
    return matches


def line_context(doc: SourceDocument, line: int, before: int, after: int) -> Tuple[str, List[str], List[str]]:
    """Return ``(line text, lines before, lines after)`` clamped to the file."""
    index = line - 1
    start = max(0, index - max(0, before))
    end = min(doc.line_count, line + max(0, after))
    code = doc.lines[index] if 0 <= index < doc.line_count else ""
    return code, list(doc.lines[start:index]), list(doc.lines[index + 1:end])
