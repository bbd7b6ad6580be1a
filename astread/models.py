"""Core data models shared by the loader, grammar adapters and read modes."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple, Union

from .errors import ErrorKind

DECLARED = "declared"
VARIABLE_BOUND = "variable-bound"

# Function record ``type`` values that count as a keyword declaration.
DECLARED_TYPES = frozenset({"function_declaration"})


# ===================================================================
# Source
# ===================================================================

@dataclass(frozen=True)
class SourceDocument:
    path: str
    text: str
    lines: Tuple[str, ...]

    @classmethod
    def from_text(cls, path: str, text: str) -> "SourceDocument":
        return cls(path=path, text=text, lines=tuple(text.split("\n")))

    @property
    def line_count(self) -> int:
        return len(self.lines)

    @property
    def size_bytes(self) -> int:
        return len(self.text.encode("utf-8"))

    def raw_line(self, line: int) -> str:
        """Return the stripped text of 1-indexed *line*, or ``""``."""
        if 1 <= line <= len(self.lines):
            return self.lines[line - 1].strip()
        return ""


# ===================================================================
# Declaration records
# ===================================================================

@dataclass
class FunctionRecord:
    name: str
    line: int
    column: int
    is_async: bool
    signature: str
    type: str
    jsdoc: Optional[str] = None

    @property
    def subtype(self) -> str:
        return DECLARED if self.type in DECLARED_TYPES else VARIABLE_BOUND

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "line": self.line,
            "column": self.column,
            "async": self.is_async,
            "signature": self.signature,
            "type": self.type,
        }
        if self.jsdoc:
            data["jsdoc"] = self.jsdoc
        return data


@dataclass
class MethodRecord:
    name: str
    line: int
    is_async: bool
    is_static: bool
    signature: str
    class_name: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "line": self.line,
            "async": self.is_async,
            "static": self.is_static,
            "signature": self.signature,
            "class_name": self.class_name,
        }


@dataclass
class ClassRecord:
    name: str
    line: int
    column: int
    methods: List[MethodRecord] = field(default_factory=list)
    extends: Optional[str] = None
    jsdoc: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "line": self.line,
            "column": self.column,
            "methods": [m.to_dict() for m in self.methods],
        }
        if self.extends:
            data["extends"] = self.extends
        if self.jsdoc:
            data["jsdoc"] = self.jsdoc
        return data


@dataclass
class ImportRecord:
    source: str
    imported: List[str]
    line: int
    raw: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "imported": list(self.imported),
            "line": self.line,
            "raw": self.raw,
        }


@dataclass
class ExportRecord:
    type: str  # "named" | "default"
    line: int
    raw: str
    name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type, "line": self.line, "raw": self.raw}
        if self.name is not None:
            data["name"] = self.name
        return data


@dataclass
class Outline:
    functions: List[FunctionRecord] = field(default_factory=list)
    classes: List[ClassRecord] = field(default_factory=list)
    imports: List[ImportRecord] = field(default_factory=list)
    exports: List[ExportRecord] = field(default_factory=list)

    def with_functions(self, functions: List[FunctionRecord]) -> "Outline":
        return replace(self, functions=list(functions))

    def structure(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            "functions": [f.to_dict() for f in self.functions],
            "classes": [c.to_dict() for c in self.classes],
            "imports": [i.to_dict() for i in self.imports],
            "exports": [e.to_dict() for e in self.exports],
        }

    def stats(self) -> Dict[str, int]:
        return {
            "function_count": len(self.functions),
            "class_count": len(self.classes),
            "import_count": len(self.imports),
            "export_count": len(self.exports),
        }


# ===================================================================
# Errors and outcomes
# ===================================================================

@dataclass
class ErrorRecord:
    kind: ErrorKind
    message: str
    file_path: Optional[str] = None
    mode: Optional[str] = None
    hint: Optional[str] = None
    partial_structure: Optional[Dict[str, List[Any]]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "success": False,
            "error": self.message,
            "error_type": self.kind.value,
            "file_path": self.file_path,
            "mode": self.mode,
        }
        if self.hint:
            data["hint"] = self.hint
        if self.partial_structure is not None:
            data["partial_structure"] = self.partial_structure
        return data


@dataclass
class OutlineSuccess:
    outline: Outline
    language: str
    success: bool = field(default=True, init=False)


@dataclass
class OutlineFailure:
    error: ErrorRecord
    success: bool = field(default=False, init=False)


OutlineOutcome = Union[OutlineSuccess, OutlineFailure]


# ===================================================================
# Targets
# ===================================================================

@dataclass(frozen=True)
class Qualifier:
    """A parsed target string such as ``class:Cache.get`` or ``imports``."""

    raw: str
    kind: str
    name: str = ""
    class_name: Optional[str] = None

    @property
    def path(self) -> str:
        if self.class_name:
            return f"{self.class_name}.{self.name}"
        return self.name


@dataclass(frozen=True)
class TargetSpan:
    """Inclusive line span of a node matched by a grammar adapter."""

    target_type: str
    name: str
    start_line: int
    end_line: int
    class_name: Optional[str] = None


@dataclass
class TargetResult:
    target_type: str
    target_name: str
    line: int
    end_line: int
    code: str
    context_before: str = ""
    context_after: str = ""
    class_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "success": True,
            "mode": "target",
            "target_type": self.target_type,
            "target_name": self.target_name,
        }
        if self.class_name:
            data["class_name"] = self.class_name
        data.update({
            "line": self.line,
            "end_line": self.end_line,
            "code": self.code,
            "context_before": self.context_before,
            "context_after": self.context_after,
        })
        return data


# ===================================================================
# Search
# ===================================================================

@dataclass(frozen=True)
class Symbol:
    """A searchable declaration or call site reported by a grammar adapter."""

    name: str
    line: int
    column: int
    match_type: str
    category: str  # function | class | import | export | variable | call
    modifiers: Tuple[str, ...] = ()
    scope: Optional[str] = None
    jsdoc: Optional[str] = None


@dataclass
class SearchMatch:
    file: str
    line: int
    column: int
    match_type: str
    name: str
    code: str
    before: List[str] = field(default_factory=list)
    after: List[str] = field(default_factory=list)
    scope: Optional[str] = None
    jsdoc: Optional[str] = None
    modifiers: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "file": self.file,
            "line": self.line,
            "column": self.column,
            "match_type": self.match_type,
            "name": self.name,
            "code": self.code,
            "context": {"before": list(self.before), "after": list(self.after)},
        }
        if self.scope:
            data["scope"] = self.scope
        if self.jsdoc:
            data["jsdoc"] = self.jsdoc
        if self.modifiers:
            data["modifiers"] = list(self.modifiers)
        return data
