# Error types for shellglob.
# PatternError is raised while compiling; GlobError is yielded, not raised,
# by the path iterator so a single bad entry never ends a walk.

from __future__ import annotations

from pathlib import Path
from typing import Optional


class PatternError(ValueError):
    """A wildcard pattern could not be compiled.

    ``pos`` is the 1-based character offset of the offending input.
    """

    def __init__(self, msg: str, pos: int):
        super().__init__(msg, pos)
        self.msg = msg
        self.pos = pos

    def __str__(self) -> str:
        return f"Pattern syntax error near position {self.pos}: {self.msg}"


class GlobError(Exception):
    """An I/O failure met while walking, tied to the path being processed."""

    def __init__(self, path: Path, error: OSError):
        super().__init__(path, error)
        self.path = Path(path)
        self.error = error

    @property
    def errno(self) -> Optional[int]:
        return self.error.errno

    def __str__(self) -> str:
        return f"attempting to read `{self.path}` resulted in an error: {self.error}"
