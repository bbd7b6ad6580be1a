"""Grammar adapters keyed by language name."""

from __future__ import annotations

from typing import Dict

from .base import GrammarAdapter
from .javascript import JavaScriptAdapter
from .python import PythonAdapter

_ADAPTERS: Dict[str, GrammarAdapter] = {}
for _adapter in (JavaScriptAdapter(), PythonAdapter()):
    for _language in _adapter.languages:
        _ADAPTERS[_language] = _adapter


def get_adapter(language: str) -> GrammarAdapter:
    """Return the adapter for *language*; raises ``KeyError`` when unknown."""
    return _ADAPTERS[language]


__all__ = ["GrammarAdapter", "get_adapter"]
