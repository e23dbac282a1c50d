# Backtracking matcher for compiled shellglob patterns.
# Both levels (components, then characters within one component) run on
# explicit work stacks with a visited set, so call depth stays flat and
# runs of "*" or "**" cannot blow up exponentially.
#
# Matching never raises; malformed patterns are a compile-time concern.

from __future__ import annotations

import os
from typing import List, Optional, Set, Tuple

from shellglob.compiler import is_separator, split_components
from shellglob.models import (
    MatchOptions,
    Pattern,
    TokenGroup,
    TokenKind,
    is_recursive_group,
)

DEFAULT_OPTIONS = MatchOptions()


def matches(pattern: Pattern, candidate: str) -> bool:
    """Match with default options (case-sensitive, no literal requirements)."""
    return matches_with(pattern, candidate, DEFAULT_OPTIONS)


def matches_path(pattern: Pattern, path, options: Optional[MatchOptions] = None) -> bool:
    # Accept str or any os.PathLike; bytes paths never match.
    text = os.fspath(path)
    if not isinstance(text, str):
        return False
    return matches_with(pattern, text, options or DEFAULT_OPTIONS)


def matches_with(pattern: Pattern, candidate: str, options: MatchOptions) -> bool:
    """Decide whether ``candidate`` matches ``pattern`` under ``options``."""
    groups = pattern.tokens
    components = split_components(candidate)

    stack: List[Tuple[int, int]] = [(0, 0)]
    seen: Set[Tuple[int, int]] = set()

    while stack:
        frame = stack.pop()
        if frame in seen:
            continue
        seen.add(frame)
        gi, ci = frame

        if gi == len(groups):
            if ci == len(components):
                return True
            continue

        group = groups[gi]

        if is_recursive_group(group):
            # "**" swallows components ci..k-1 for every reachable k.
            # Pushed in reverse so the fewest-consumed split is tried first.
            reachable = ci
            while reachable < len(components) and _recursive_may_consume(
                components[reachable], options
            ):
                reachable += 1
            for k in range(reachable, ci - 1, -1):
                stack.append((gi + 1, k))
            continue

        if ci < len(components) and match_component(group, components[ci], options):
            stack.append((gi + 1, ci + 1))

    return False


def _recursive_may_consume(component: str, options: MatchOptions) -> bool:
    return not (options.require_literal_leading_dot and component.startswith("."))


def match_component(group: TokenGroup, text: str, options: MatchOptions) -> bool:
    """Match one token group against one path component."""
    stack: List[Tuple[int, int]] = [(0, 0)]
    seen: Set[Tuple[int, int]] = set()

    while stack:
        frame = stack.pop()
        if frame in seen:
            continue
        seen.add(frame)
        ti, si = frame

        if ti == len(group):
            if si == len(text):
                return True
            continue

        token = group[ti]
        kind = token.kind

        if kind is TokenKind.any_sequence:
            # Longest run is pushed last so it is explored first.
            end = si
            while end < len(text) and not _requires_literal(text, end, options):
                end += 1
            for k in range(si, end + 1):
                stack.append((ti + 1, k))
            continue

        if kind is TokenKind.any_recursive_sequence:
            # Only reachable when a "**" group is matched as a plain component.
            stack.append((ti + 1, len(text)))
            continue

        if si == len(text):
            continue
        c = text[si]

        if kind is TokenKind.char:
            ok = _chars_eq(c, token.char, options.case_sensitive)
        elif kind is TokenKind.any_char:
            ok = not _requires_literal(text, si, options)
        elif kind is TokenKind.any_within:
            ok = not _requires_literal(text, si, options) and (
                _in_ranges(token.ranges, c, options.case_sensitive) != token.negated
            )
        else:
            raise AssertionError(f"unhandled token kind: {kind}")

        if ok:
            stack.append((ti + 1, si + 1))

    return False


def _requires_literal(text: str, index: int, options: MatchOptions) -> bool:
    # True when text[index] may only be consumed by a literal Char token.
    c = text[index]
    if options.require_literal_separator and is_separator(c):
        return True
    if options.require_literal_leading_dot and index == 0 and c == ".":
        return True
    return False


def _chars_eq(a: str, b: str, case_sensitive: bool) -> bool:
    if a == b:
        return True
    if not case_sensitive:
        return a.casefold() == b.casefold()
    return False


def _in_ranges(ranges, c: str, case_sensitive: bool) -> bool:
    for lo, hi in ranges:
        if lo <= c <= hi:
            return True
        if case_sensitive:
            continue

        folded = c.casefold()
        flo, fhi = lo.casefold(), hi.casefold()
        if lo == hi:
            if folded == flo:
                return True
        elif len(folded) == len(flo) == len(fhi) == 1 and flo <= folded <= fhi:
            return True
    return False
