"""Error taxonomy and the typed exceptions raised inside the read pipeline.

Components raise :class:`AstReadError` subclasses; the operation layer
(:mod:`astread.reader`, :mod:`astread.search`) converts them into error
records so nothing escapes to the caller.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import ValidationError


class ErrorKind(str, Enum):
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    READ_ERROR = "READ_ERROR"
    MISSING_LINE = "MISSING_LINE"
    LINE_OUT_OF_RANGE = "LINE_OUT_OF_RANGE"
    MISSING_TARGET = "MISSING_TARGET"
    TARGET_NOT_FOUND = "TARGET_NOT_FOUND"
    SYNTAX_UNSUPPORTED = "SYNTAX_UNSUPPORTED"
    UNCLOSED_CONSTRUCT = "UNCLOSED_CONSTRUCT"
    PARSE_UNKNOWN = "PARSE_UNKNOWN"
    INVALID_MODE = "INVALID_MODE"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    PATH_NOT_FOUND = "PATH_NOT_FOUND"
    INVALID_PATTERN = "INVALID_PATTERN"


PARSE_ERROR_KINDS = frozenset({
    ErrorKind.SYNTAX_UNSUPPORTED,
    ErrorKind.UNCLOSED_CONSTRUCT,
    ErrorKind.PARSE_UNKNOWN,
})

FULL_MODE_HINT = "Try using mode='full' to read the entire file without parsing."

_PARSE_HINTS = {
    ErrorKind.SYNTAX_UNSUPPORTED: (
        "File may contain syntax errors or use unsupported language features. "
        "Try using mode='full' instead."
    ),
    ErrorKind.UNCLOSED_CONSTRUCT: (
        "File appears to have unclosed brackets or strings. Check file syntax."
    ),
    ErrorKind.PARSE_UNKNOWN: FULL_MODE_HINT,
}


def classify_parse_error(message: str) -> ErrorKind:
    """Map the text of a parser error onto a parse-failure kind."""
    lowered = message.lower()
    if "unexpected token" in lowered:
        return ErrorKind.SYNTAX_UNSUPPORTED
    if "eof" in lowered or "unterminated" in lowered:
        return ErrorKind.UNCLOSED_CONSTRUCT
    return ErrorKind.PARSE_UNKNOWN


def parse_hint(kind: ErrorKind) -> str:
    return _PARSE_HINTS.get(kind, FULL_MODE_HINT)


def describe_validation_error(exc: ValidationError) -> str:
    """Flatten pydantic errors into ``field: message; ...``."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "request"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)


# ===================================================================
# Exceptions
# ===================================================================

class AstReadError(Exception):
    """Base class for failures that become error records at the boundary."""

    kind: ErrorKind = ErrorKind.PARSE_UNKNOWN

    def __init__(self, message: str, hint: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint


class SourceNotFoundError(AstReadError):
    kind = ErrorKind.FILE_NOT_FOUND


class ParseFailure(AstReadError):
    """The syntax tree could not be built; carries the classified kind."""

    def __init__(self, message: str, kind: Optional[ErrorKind] = None) -> None:
        self.kind = kind or classify_parse_error(message)
        super().__init__(message, parse_hint(self.kind))


class TargetNotFoundError(AstReadError):
    kind = ErrorKind.TARGET_NOT_FOUND


class InvalidRequestError(AstReadError):
    """A request mapping carried a missing or mistyped field."""

    kind = ErrorKind.VALIDATION_ERROR

    @classmethod
    def from_validation(cls, exc: ValidationError) -> "InvalidRequestError":
        return cls(describe_validation_error(exc))


class PathNotFoundError(AstReadError):
    kind = ErrorKind.PATH_NOT_FOUND


class InvalidPatternError(AstReadError):
    kind = ErrorKind.INVALID_PATTERN
