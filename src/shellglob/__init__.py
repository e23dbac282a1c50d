# Package initialization for shellglob.
# Re-exports the public API; all functional code lives in submodules.

from shellglob.compiler import compile_pattern, escape, has_magic
from shellglob.errors import GlobError, PatternError
from shellglob.matcher import matches, matches_path, matches_with
from shellglob.models import MatchOptions, Pattern, PatternToken, TokenKind
from shellglob.traverse import Paths, glob, iter_paths, walk, walk_with

__all__ = [
    "__version__",
    "GlobError",
    "MatchOptions",
    "Pattern",
    "PatternError",
    "PatternToken",
    "Paths",
    "TokenKind",
    "compile_pattern",
    "escape",
    "glob",
    "has_magic",
    "iter_paths",
    "matches",
    "matches_path",
    "matches_with",
    "walk",
    "walk_with",
]

# Package version.
# This is duplicated in pyproject.toml; keep them in sync.
__version__ = "0.1.0"
