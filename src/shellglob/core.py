# Core orchestration logic for the shellglob command line.
# This file runs walks and matches and reports results through rich.
#
# It intentionally contains no CLI parsing and no matching logic of its own.

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from rich.console import Console

from shellglob.compiler import compile_pattern
from shellglob.errors import GlobError
from shellglob.matcher import matches_with
from shellglob.models import MatchOptions
from shellglob.traverse import walk_with

console = Console()
_err = Console(stderr=True)


# Simple counters used for the optional summary block and the exit code.
@dataclass
class Counters:
    matched: int = 0
    unmatched: int = 0
    errors: int = 0


def run_walk(
    patterns: Iterable[str],
    options: MatchOptions,
    expand_user: bool = False,
    summary: bool = False,
) -> Counters:
    # Print every path matching any of the patterns.
    # Unreadable entries are reported and counted; the walk carries on.
    counters = Counters()

    for pattern in patterns:
        with walk_with(pattern, options, expand_user=expand_user) as paths:
            for item in paths:
                if isinstance(item, GlobError):
                    counters.errors += 1
                    _err.print(f"[red]ERROR:[/red] {item}", markup=True, highlight=False)
                    continue
                counters.matched += 1
                console.print(str(item), markup=False, highlight=False, soft_wrap=True)

    if summary:
        _print_summary(counters)
    return counters


def run_match(pattern: str, candidates: Iterable[str], options: MatchOptions) -> Counters:
    # Test each candidate string against one pattern; no filesystem access.
    counters = Counters()
    compiled = compile_pattern(pattern)

    for candidate in candidates:
        if matches_with(compiled, candidate, options):
            counters.matched += 1
            console.print(f"[green]match[/green]     {candidate}", highlight=False)
        else:
            counters.unmatched += 1
            console.print(f"[yellow]no match[/yellow]  {candidate}", highlight=False)

    return counters


def _print_summary(counters: Counters) -> None:
    # Summary goes to stderr so stdout stays a clean list of paths.
    _err.print()
    _err.print("[bold]Summary[/bold]")
    _err.print(f"Matched: {counters.matched}")
    _err.print(f"Errors:  {counters.errors}")
