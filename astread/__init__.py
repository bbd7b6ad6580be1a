"""AST-aware file reading for coding agents."""

__version__ = "0.3.0"
