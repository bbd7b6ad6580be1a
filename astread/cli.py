"""Typer-based CLI for AST-aware file reading and structural search."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from . import __version__, config
from .reader import ReadRequest, execute
from .search import MODIFIERS, SYMBOL_TYPES, SearchRequest, search

app = typer.Typer(
    help="AST-aware file reader: outlines, targeted extraction and structural search.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"astread v{__version__}")
        raise typer.Exit()


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def log_level_callback(value: str) -> str:
    """Reject unknown logging levels before they reach ``logging``."""
    level = value.upper()
    if level not in LOG_LEVELS:
        raise typer.BadParameter(f"must be one of: {', '.join(LOG_LEVELS)}")
    return level


def configure_logging(level: str) -> None:
    """Send log records to stderr so stdout stays valid JSON."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    log_level: str = typer.Option(
        config.LOG_LEVEL,
        "--log-level",
        callback=log_level_callback,
        help="Logging level written to stderr (DEBUG, INFO, WARNING, ERROR).",
    ),
):
    """Read source files the way an agent needs them: whole, outlined, by line or by entity."""
    configure_logging(log_level)


def _emit(result: Dict[str, Any]) -> None:
    typer.echo(json.dumps(result, indent=2, ensure_ascii=False))
    if not result.get("success"):
        raise typer.Exit(code=1)


@app.command("full")
def read_full(
    file_path: Path = typer.Argument(..., help="File to read."),
):
    """Print the whole file with its line count and size."""
    _emit(execute(ReadRequest(file_path=str(file_path), mode="full")))


@app.command("outline")
def read_outline(
    file_path: Path = typer.Argument(..., help="File to outline."),
    brief: bool = typer.Option(False, "--brief", help="Add a one-line summary."),
):
    """List functions, classes, imports and exports."""
    _emit(execute(ReadRequest(file_path=str(file_path), mode="outline", verbose=not brief)))


@app.command("lines")
def read_lines(
    file_path: Path = typer.Argument(..., help="File to read."),
    line: Optional[int] = typer.Option(None, "--line", "-l", help="1-indexed line to centre on."),
    above: int = typer.Option(config.LINES_ABOVE, "--above", min=0, help="Lines to show above."),
    below: int = typer.Option(config.LINES_BELOW, "--below", min=0, help="Lines to show below."),
):
    """Print a window of lines around one line."""
    _emit(execute(ReadRequest(
        file_path=str(file_path),
        mode="lines",
        line=line,
        lines_above=above,
        lines_below=below,
    )))


@app.command("target")
def read_target(
    file_path: Path = typer.Argument(..., help="File to read."),
    qualifier: str = typer.Argument(
        ...,
        help="function:name, class:Name, class:Name.member, method:member, imports or exports.",
    ),
    no_context: bool = typer.Option(False, "--no-context", help="Omit surrounding lines."),
    context_lines: int = typer.Option(config.CONTEXT_LINES, "--context-lines", "-C", min=0,
                                      help="Lines of context."),
):
    """Extract one named entity with surrounding context."""
    _emit(execute(ReadRequest(
        file_path=str(file_path),
        mode="target",
        target=qualifier,
        context=not no_context,
        context_lines=context_lines,
    )))


@app.command("search")
def search_command(
    pattern: str = typer.Argument(..., help="Regular expression matched against names."),
    path: Path = typer.Argument(Path("."), help="File or directory to search."),
    symbol_type: str = typer.Option("all", "--type", "-t", help=f"One of: {', '.join(SYMBOL_TYPES)}."),
    modifiers: Optional[List[str]] = typer.Option(
        None, "--modifier", "-m", help=f"Required modifier, repeatable: {', '.join(MODIFIERS)}.",
    ),
    glob_pattern: Optional[str] = typer.Option(None, "--glob", "-g", help="Only files matching this glob."),
    case_insensitive: bool = typer.Option(False, "--ignore-case", "-i", help="Case-insensitive matching."),
    context: Optional[int] = typer.Option(None, "--context", "-C", min=0, help="Lines of context around matches."),
    files_only: bool = typer.Option(False, "--files-only", help="List matching files instead of matches."),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=0, help="Show at most N matches."),
    include_non_code: bool = typer.Option(
        False, "--include-non-code", help="Also scan docs and config files as plain text.",
    ),
):
    """Search declarations, imports, exports and calls by name."""
    if symbol_type.lower() not in SYMBOL_TYPES:
        raise typer.BadParameter(f"--type must be one of: {', '.join(SYMBOL_TYPES)}")
    _emit(search(SearchRequest(
        pattern=pattern,
        path=str(path),
        glob_pattern=glob_pattern,
        case_insensitive=case_insensitive,
        context=context,
        output_mode="file_paths" if files_only else "content",
        type=symbol_type,
        modifiers=list(modifiers or []),
        head_limit=limit,
        include_non_code=include_non_code,
    )))


if __name__ == "__main__":
    app()
