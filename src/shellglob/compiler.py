# Wildcard pattern compiler for shellglob.
# Turns a pattern string into per-component token groups.
# This module is pure logic and must remain side-effect free.

from __future__ import annotations

import os
import re
from typing import List, Tuple

from shellglob.errors import PatternError
from shellglob.models import (
    ANY_CHAR,
    ANY_RECURSIVE_SEQUENCE,
    ANY_SEQUENCE,
    CharRange,
    Pattern,
    PatternToken,
    TokenGroup,
    is_recursive_group,
)

# "/" is always a separator; the host may add its own (e.g. "\\" on Windows).
SEPARATORS = frozenset(c for c in ("/", os.sep, os.altsep) if c)

_SEPARATOR_RE = re.compile("[" + re.escape("".join(sorted(SEPARATORS))) + "]")

# Characters that make a pattern component more than a literal name.
_MAGIC_RE = re.compile(r"[*?\[]")

# Characters escape() wraps in a single-character class.
_ESCAPED = frozenset("*?[]")

ERROR_WILDCARDS = "wildcards are either regular `*` or recursive `**`"
ERROR_RECURSIVE_WILDCARDS = "recursive wildcards must form a single path component"
ERROR_INVALID_RANGE = "invalid range pattern"
ERROR_UNTERMINATED_CLASS = "unterminated character class"


def is_separator(c: str) -> bool:
    return c in SEPARATORS


def split_components(text: str) -> List[str]:
    # Split on every separator; empty components are kept so that
    # "/a" and "a/" stay distinguishable from "a".
    return _SEPARATOR_RE.split(text)


def has_magic(text: str) -> bool:
    """Report whether a string contains any wildcard-significant character."""
    return _MAGIC_RE.search(text) is not None


def escape(literal: str) -> str:
    """Return a pattern that matches ``literal`` exactly and nothing else.

    Each of ``* ? [ ]`` is wrapped in a one-character class, so ``*`` becomes
    ``[*]``. ``!`` needs no escaping because it is only special inside brackets.
    """
    return "".join(f"[{c}]" if c in _ESCAPED else c for c in literal)


def compile_pattern(pattern: str) -> Pattern:
    """Compile a Unix shell style pattern.

    - ``?`` matches any single character
    - ``*`` matches any (possibly empty) run of characters
    - ``**`` matches zero or more whole path components and must form a
      component of its own, so ``a/**/b`` is valid but ``a**/b`` is not
    - ``[...]`` matches one character from the class, ``[!...]`` or ``[^...]``
      one character outside it; ``]`` right after the opening bracket is literal

    Raises PatternError, carrying a 1-based offset, for malformed input.
    """
    groups: List[TokenGroup] = []
    current: List[PatternToken] = []

    i = 0
    n = len(pattern)
    while i < n:
        c = pattern[i]

        if c in SEPARATORS:
            groups.append(tuple(current))
            current = []
            i += 1

        elif c == "?":
            current.append(ANY_CHAR)
            i += 1

        elif c == "*":
            start = i
            while i < n and pattern[i] == "*":
                i += 1
            count = i - start

            if count > 2:
                raise PatternError(ERROR_WILDCARDS, start + 3)
            if count == 1:
                current.append(ANY_SEQUENCE)
                continue

            # Anything already in this component means "**" is glued to it.
            if current:
                raise PatternError(ERROR_RECURSIVE_WILDCARDS, start + 1)
            if i < n and pattern[i] not in SEPARATORS:
                raise PatternError(ERROR_RECURSIVE_WILDCARDS, i + 1)
            current.append(ANY_RECURSIVE_SEQUENCE)

        elif c == "[":
            token, i = _parse_class(pattern, i)
            current.append(token)

        else:
            current.append(PatternToken.literal(c))
            i += 1

    groups.append(tuple(current))

    return Pattern(original=pattern, tokens=_collapse_recursive(groups))


def _parse_class(pattern: str, start: int) -> Tuple[PatternToken, int]:
    # Parse "[...]" beginning at pattern[start] == "[".
    # Returns the token and the index just past the closing bracket.
    i = start + 1
    negated = False
    if i < len(pattern) and pattern[i] in "!^":
        negated = True
        i += 1

    body_start = i
    if i < len(pattern) and pattern[i] == "]":
        i += 1

    end = pattern.find("]", i)
    if end < 0:
        raise PatternError(ERROR_UNTERMINATED_CLASS, start + 1)

    body = pattern[body_start:end]
    ranges: List[CharRange] = []
    j = 0
    while j < len(body):
        # A "-" first or last in the class is literal.
        if j + 2 < len(body) and body[j + 1] == "-":
            lo, hi = body[j], body[j + 2]
            if lo > hi:
                raise PatternError(ERROR_INVALID_RANGE, body_start + j + 1)
            ranges.append((lo, hi))
            j += 3
        else:
            ranges.append((body[j], body[j]))
            j += 1

    return PatternToken.within(tuple(ranges), negated), end + 1


def _collapse_recursive(groups: List[TokenGroup]) -> Tuple[TokenGroup, ...]:
    # "a/**/**/b" means the same as "a/**/b".
    out: List[TokenGroup] = []
    for group in groups:
        if out and is_recursive_group(group) and is_recursive_group(out[-1]):
            continue
        out.append(group)
    return tuple(out)
