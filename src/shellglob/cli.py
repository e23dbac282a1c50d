# Command-line interface definition for shellglob.
# This file is responsible only for argument parsing, validation,
# and dispatch into core application logic.

from __future__ import annotations

from typing import List

import typer
from rich.console import Console

from shellglob import __version__
from shellglob.compiler import compile_pattern
from shellglob.core import run_match, run_walk
from shellglob.errors import PatternError
from shellglob.models import MatchOptions

app = typer.Typer(
    add_completion=False,
    help="Find files with Unix shell-style wildcard patterns (*, ?, [...], **).",
)
console = Console()


def _build_options(
    ignore_case: bool,
    literal_separator: bool,
    literal_leading_dot: bool,
) -> MatchOptions:
    return MatchOptions(
        case_sensitive=not ignore_case,
        require_literal_separator=literal_separator,
        require_literal_leading_dot=literal_leading_dot,
    )


def _validate(patterns: List[str]) -> None:
    # Reject every malformed pattern before any output is produced.
    for pattern in patterns:
        try:
            compile_pattern(pattern)
        except PatternError as exc:
            raise typer.BadParameter(f"{pattern!r}: {exc}")


@app.command(help="Print every filesystem path matching the given patterns.")
def walk(
    patterns: List[str] = typer.Argument(
        None,
        help="Wildcard patterns, absolute or relative to the current directory.",
    ),
    ignore_case: bool = typer.Option(
        False, "--ignore-case", "-i",
        help="Match names case-insensitively.",
        rich_help_panel="Matching",
    ),
    literal_leading_dot: bool = typer.Option(
        False, "--literal-leading-dot",
        help="Hidden names (leading '.') only match a literal '.' in the pattern.",
        rich_help_panel="Matching",
    ),
    expand_user: bool = typer.Option(
        False, "--expand-user",
        help="Expand a leading ~ or ~user to the home directory.",
        rich_help_panel="Matching",
    ),
    summary: bool = typer.Option(
        False, "--summary",
        help="Print match and error counts to stderr when done.",
    ),
    version: bool = typer.Option(
        False, "--version",
        help="Show version and exit.",
    ),
):
    # Handle version early and exit cleanly.
    if version:
        console.print(__version__)
        raise typer.Exit(code=0)

    if not patterns:
        raise typer.BadParameter("at least one pattern is required")
    _validate(patterns)

    # Walking always requires literal separators, so there is no flag for it.
    opts = _build_options(ignore_case, True, literal_leading_dot)

    counters = run_walk(patterns, opts, expand_user=expand_user, summary=summary)
    if counters.errors:
        raise typer.Exit(code=1)


@app.command(help="Check candidate strings against a pattern without touching the filesystem.")
def match(
    pattern: str = typer.Argument(..., help="Wildcard pattern."),
    candidates: List[str] = typer.Argument(..., help="Strings to test."),
    ignore_case: bool = typer.Option(
        False, "--ignore-case", "-i",
        help="Match case-insensitively.",
        rich_help_panel="Matching",
    ),
    literal_separator: bool = typer.Option(
        False, "--literal-separator",
        help="Wildcards never match a path separator.",
        rich_help_panel="Matching",
    ),
    literal_leading_dot: bool = typer.Option(
        False, "--literal-leading-dot",
        help="A leading '.' must be matched by a literal '.'.",
        rich_help_panel="Matching",
    ),
):
    _validate([pattern])
    opts = _build_options(ignore_case, literal_separator, literal_leading_dot)

    counters = run_match(pattern, candidates, opts)
    if counters.unmatched:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
