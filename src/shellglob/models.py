# Shared data models for shellglob.
# Lives in its own module so compiler, matcher and traverse can share
# the same value types without importing each other.

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


@dataclass(frozen=True)
class MatchOptions:
    """Options that change how a compiled pattern is matched.

    Defaults are always case-sensitive, regardless of platform.
    """

    case_sensitive: bool = True

    # Wildcards and character classes never consume a separator.
    require_literal_separator: bool = False

    # A component's leading "." must be matched by a literal "." in the pattern.
    require_literal_leading_dot: bool = False


class TokenKind(str, Enum):
    char = "char"
    any_char = "any-char"
    any_sequence = "any-sequence"
    any_recursive_sequence = "any-recursive-sequence"
    any_within = "any-within"


# Inclusive (lo, hi) character range; a single character is (c, c).
CharRange = Tuple[str, str]


@dataclass(frozen=True)
class PatternToken:
    kind: TokenKind
    char: Optional[str] = None
    ranges: Tuple[CharRange, ...] = ()
    negated: bool = False

    @classmethod
    def literal(cls, c: str) -> "PatternToken":
        return cls(TokenKind.char, char=c)

    @classmethod
    def within(cls, ranges: Tuple[CharRange, ...], negated: bool) -> "PatternToken":
        return cls(TokenKind.any_within, ranges=ranges, negated=negated)

    def __str__(self) -> str:
        if self.kind is TokenKind.char:
            return self.char or ""
        if self.kind is TokenKind.any_char:
            return "?"
        if self.kind is TokenKind.any_sequence:
            return "*"
        if self.kind is TokenKind.any_recursive_sequence:
            return "**"
        body = "".join(lo if lo == hi else f"{lo}-{hi}" for lo, hi in self.ranges)
        return f"[{'!' if self.negated else ''}{body}]"


ANY_CHAR = PatternToken(TokenKind.any_char)
ANY_SEQUENCE = PatternToken(TokenKind.any_sequence)
ANY_RECURSIVE_SEQUENCE = PatternToken(TokenKind.any_recursive_sequence)

# One path component's worth of tokens.
TokenGroup = Tuple[PatternToken, ...]


@dataclass(frozen=True)
class Pattern:
    """A compiled shell-style wildcard pattern.

    ``tokens`` holds one group per path component. A group that is exactly
    ``(ANY_RECURSIVE_SEQUENCE,)`` stands for ``**``.
    """

    original: str
    tokens: Tuple[TokenGroup, ...]

    @classmethod
    def compile(cls, pattern: str) -> "Pattern":
        from shellglob.compiler import compile_pattern

        return compile_pattern(pattern)

    @property
    def is_recursive(self) -> bool:
        return any(is_recursive_group(g) for g in self.tokens)

    def matches(self, candidate: str) -> bool:
        from shellglob.matcher import matches

        return matches(self, candidate)

    def matches_with(self, candidate: str, options: MatchOptions) -> bool:
        from shellglob.matcher import matches_with

        return matches_with(self, candidate, options)

    def matches_path(self, path, options: Optional[MatchOptions] = None) -> bool:
        from shellglob.matcher import matches_path

        return matches_path(self, path, options)

    def __str__(self) -> str:
        return self.original


def is_recursive_group(group: TokenGroup) -> bool:
    return len(group) == 1 and group[0].kind is TokenKind.any_recursive_sequence


def literal_text(group: TokenGroup) -> Optional[str]:
    # The plain string a group spells, or None if it holds any wildcard.
    chars = []
    for token in group:
        if token.kind is not TokenKind.char:
            return None
        chars.append(token.char)
    return "".join(chars)


class EntryKind(str, Enum):
    file = "file"
    directory = "directory"
    broken_link = "broken-link"
