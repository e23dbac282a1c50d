# Lazy filesystem traversal guided by a compiled shellglob pattern.
# Only directories the pattern can still match are read, and every
# directory is read inside a single scandir() context so no handle
# outlives one step of the iterator.
#
# I/O failures are yielded as GlobError items; they never end the walk.

from __future__ import annotations

import dataclasses
import os
import stat
from collections import deque
from pathlib import Path
from typing import (
    Deque,
    FrozenSet,
    Iterable,
    Iterator,
    List,
    Optional,
    Tuple,
    Union,
)

from shellglob.compiler import SEPARATORS, compile_pattern, escape
from shellglob.errors import GlobError
from shellglob.matcher import match_component
from shellglob.models import (
    EntryKind,
    MatchOptions,
    Pattern,
    TokenGroup,
    TokenKind,
    is_recursive_group,
    literal_text,
)

GlobResult = Union[Path, GlobError]

# A missing entry is simply not a match.
_MISSING = (FileNotFoundError, NotADirectoryError)

_SPECIAL_NAMES = (".", "..")


@dataclasses.dataclass
class _Entry:
    name: str
    path: str
    dir_entry: Optional[os.DirEntry] = None


@dataclasses.dataclass
class _Frame:
    # One directory on the traversal stack.
    path: str
    indices: FrozenSet[int]
    ancestors: FrozenSet[Tuple[int, int]] = frozenset()
    announce: bool = False
    entries: Optional[List[_Entry]] = None
    position: int = 0


class Paths:
    """Iterator over the filesystem entries matching a pattern.

    Yields ``pathlib.Path`` for every match and ``GlobError`` for every entry
    that could not be read, in depth-first order with each directory's entries
    sorted by name. Single pass; build a new one to walk again.
    """

    def __init__(
        self,
        pattern: Pattern,
        options: MatchOptions,
        anchor: str = "",
        require_dir: bool = False,
    ):
        self.pattern = pattern
        self.options = options
        self._groups: Tuple[TokenGroup, ...] = tuple(g for g in pattern.tokens if g)
        self._anchor = anchor
        self._require_dir = require_dir
        self._literal: Optional[str] = None
        self._out: Deque[GlobResult] = deque()
        self._stack: List[_Frame] = []
        self._start()

    def __iter__(self) -> "Paths":
        return self

    def __next__(self) -> GlobResult:
        while True:
            if self._out:
                return self._out.popleft()
            if self._literal is not None:
                path, self._literal = self._literal, None
                self._check_literal(path)
                continue
            if not self._stack:
                raise StopIteration

            frame = self._stack[-1]
            if frame.entries is None:
                self._read(frame)
            elif frame.position < len(frame.entries):
                entry = frame.entries[frame.position]
                frame.position += 1
                self._visit(frame, entry)
            else:
                self._stack.pop()

    def close(self) -> None:
        # Directory handles are never held between steps; dropping the
        # stack is all that is needed.
        self._literal = None
        self._stack.clear()
        self._out.clear()

    def __enter__(self) -> "Paths":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # -- setup ---------------------------------------------------------------

    def _start(self) -> None:
        groups = self._groups
        if not groups:
            # Nothing but an anchor, e.g. "/".
            if self._anchor:
                self._literal = self._anchor
            return

        # The literal prefix becomes the starting directory.
        prefix: List[str] = []
        for group in groups:
            text = literal_text(group)
            if text is None:
                break
            prefix.append(text)

        start = os.path.join(self._anchor, *prefix) if (self._anchor or prefix) else ""

        if len(prefix) == len(groups):
            self._literal = start
            return

        indices, consumed = self._closure({len(prefix)})
        self._stack.append(
            _Frame(path=start, indices=indices, announce=consumed and bool(start))
        )

    def _check_literal(self, path: str) -> None:
        # A fully literal pattern needs one existence check, no directory reads.
        try:
            kind = _lookup_kind(path)
        except OSError as err:
            self._out.append(GlobError(Path(path), err))
            return
        if kind is None:
            return
        if self._require_dir and kind is not EntryKind.directory:
            return
        self._out.append(Path(path))

    def _closure(self, indices: Iterable[int]) -> Tuple[FrozenSet[int], bool]:
        # Follow "**" groups through their zero-component alternative.
        # Returns the pending indices and whether the pattern is used up.
        n = len(self._groups)
        pending = set()
        consumed = False
        todo = list(indices)
        while todo:
            idx = todo.pop()
            if idx == n:
                consumed = True
                continue
            if idx in pending:
                continue
            pending.add(idx)
            if is_recursive_group(self._groups[idx]):
                todo.append(idx + 1)
        return frozenset(pending), consumed

    # -- directory reads -------------------------------------------------------

    def _read(self, frame: _Frame) -> None:
        try:
            if not frame.ancestors and self._has_recursive(frame.indices):
                st = os.stat(frame.path or os.curdir)
                frame.ancestors = frame.ancestors | {(st.st_dev, st.st_ino)}

            literals = self._direct_names(frame.indices)
            if literals is not None:
                frame.entries = [
                    _Entry(name, _join(frame.path, name)) for name in sorted(literals)
                ]
            else:
                frame.entries = self._list(frame)
        except OSError as err:
            self._stack.pop()
            if not isinstance(err, _MISSING):
                self._out.append(GlobError(Path(frame.path or os.curdir), err))
            return

        if frame.announce:
            self._out.append(Path(frame.path))

    def _direct_names(self, indices: FrozenSet[int]) -> Optional[FrozenSet[str]]:
        # Names to look up directly, or None when the directory must be listed.
        if not self.options.case_sensitive:
            return None
        names = set()
        for idx in indices:
            text = literal_text(self._groups[idx])
            if text is None:
                return None
            names.add(text)
        return frozenset(names)

    def _list(self, frame: _Frame) -> List[_Entry]:
        with os.scandir(frame.path or os.curdir) as it:
            dir_entries = sorted(it, key=lambda e: e.name)

        entries = [_Entry(e.name, _join(frame.path, e.name), e) for e in dir_entries]

        # "." and ".." never come back from scandir; offer them when a
        # component names them or starts with a literal ".".
        specials = [
            _Entry(name, _join(frame.path, name))
            for name in _SPECIAL_NAMES
            if any(self._wants_special(idx, name) for idx in frame.indices)
        ]
        return sorted(specials + entries, key=lambda e: e.name)

    def _wants_special(self, idx: int, name: str) -> bool:
        group = self._groups[idx]
        if is_recursive_group(group):
            return False
        text = literal_text(group)
        if text is not None:
            return text == name
        first = group[0]
        return first.kind is TokenKind.char and first.char == "." and match_component(
            group, name, self.options
        )

    # -- per-entry step --------------------------------------------------------

    def _visit(self, frame: _Frame, entry: _Entry) -> None:
        n = len(self._groups)
        hits = [idx for idx in frame.indices if self._name_hits(idx, entry.name)]
        if not hits:
            return

        try:
            kind = _entry_kind(entry)
        except OSError as err:
            self._out.append(GlobError(Path(entry.path), err))
            return
        if kind is None:
            return

        matched = False
        following = set()
        for idx in hits:
            group = self._groups[idx]
            if is_recursive_group(group):
                if kind is EntryKind.directory:
                    following.add(idx)
                continue
            if kind is EntryKind.broken_link and literal_text(group) is None:
                # Broken links only answer to their exact name.
                continue
            if idx + 1 == n:
                matched = True
            elif kind is EntryKind.directory:
                following.add(idx + 1)

        indices, consumed = self._closure(following)
        matched = matched or consumed

        if matched and (not self._require_dir or kind is EntryKind.directory):
            self._out.append(Path(entry.path))

        if not indices:
            return

        ancestors = frame.ancestors
        if entry.name not in _SPECIAL_NAMES and self._has_recursive(indices):
            try:
                # DirEntry caches its stat result, so this is not a second call.
                st = entry.dir_entry.stat() if entry.dir_entry else os.stat(entry.path)
            except OSError as err:
                self._out.append(GlobError(Path(entry.path), err))
                return
            identity = (st.st_dev, st.st_ino)
            if identity in ancestors:
                # Symlink cycle back into the current descent chain.
                return
            ancestors = ancestors | {identity}

        self._stack.append(_Frame(path=entry.path, indices=indices, ancestors=ancestors))

    def _has_recursive(self, indices: Iterable[int]) -> bool:
        return any(is_recursive_group(self._groups[idx]) for idx in indices)

    def _name_hits(self, idx: int, name: str) -> bool:
        group = self._groups[idx]
        if is_recursive_group(group):
            if name in _SPECIAL_NAMES:
                return False
            return not (self.options.require_literal_leading_dot and name.startswith("."))
        text = literal_text(group)
        if text is not None:
            if self.options.case_sensitive:
                return name == text
            return name.casefold() == text.casefold()
        if name in _SPECIAL_NAMES and not self._wants_special(idx, name):
            return False
        return match_component(group, name, self.options)


def _join(parent: str, name: str) -> str:
    return os.path.join(parent, name) if parent else name


def _entry_kind(entry: _Entry) -> Optional[EntryKind]:
    # Classify once per entry; None means the entry does not exist.
    if entry.dir_entry is None:
        return _lookup_kind(entry.path)

    de = entry.dir_entry
    if de.is_symlink():
        try:
            st = de.stat()
        except _MISSING:
            return EntryKind.broken_link
        return EntryKind.directory if stat.S_ISDIR(st.st_mode) else EntryKind.file
    return EntryKind.directory if de.is_dir(follow_symlinks=False) else EntryKind.file


def _lookup_kind(path: str) -> Optional[EntryKind]:
    try:
        st = os.lstat(path)
    except _MISSING:
        return None
    if not stat.S_ISLNK(st.st_mode):
        return EntryKind.directory if stat.S_ISDIR(st.st_mode) else EntryKind.file
    try:
        st = os.stat(path)
    except _MISSING:
        return EntryKind.broken_link
    return EntryKind.directory if stat.S_ISDIR(st.st_mode) else EntryKind.file


def _split_anchor(pattern: str) -> Tuple[str, str]:
    # Separate the drive and root (e.g. "C:\\" or "/") from the rest.
    drive, rest = os.path.splitdrive(pattern)
    i = 0
    while i < len(rest) and rest[i] in SEPARATORS:
        i += 1
    return drive + rest[:i], rest[i:]


def _expand_user(pattern: str) -> str:
    # Replace a leading "~" or "~user" with the home directory, escaped so
    # wildcard characters in it are taken literally.
    if not pattern.startswith("~"):
        return pattern
    end = 1
    while end < len(pattern) and pattern[end] not in SEPARATORS:
        end += 1
    head = pattern[:end]
    expanded = os.path.expanduser(head)
    if expanded == head:
        return pattern
    return escape(expanded) + pattern[end:]


def walk(pattern: str) -> Paths:
    """Return an iterator over the paths matching ``pattern``.

    The pattern may be absolute or relative to the current directory.
    Raises PatternError right away for an invalid pattern.
    """
    return walk_with(pattern, MatchOptions())


def walk_with(pattern: str, options: MatchOptions, expand_user: bool = False) -> Paths:
    """Like walk(), with explicit match options.

    ``require_literal_separator`` is always enabled while walking.
    """
    compile_pattern(pattern)
    if expand_user:
        pattern = _expand_user(pattern)

    options = dataclasses.replace(options, require_literal_separator=True)
    anchor, body = _split_anchor(pattern)
    require_dir = bool(body) and body[-1] in SEPARATORS
    return Paths(compile_pattern(body), options, anchor=anchor, require_dir=require_dir)


def iter_paths(pattern: str, options: Optional[MatchOptions] = None) -> Iterator[Path]:
    # Successful matches only; error items are dropped.
    for item in walk_with(pattern, options or MatchOptions()):
        if isinstance(item, Path):
            yield item


def glob(pattern: str, options: Optional[MatchOptions] = None) -> List[Path]:
    """Collect every matching path, skipping unreadable entries."""
    return list(iter_paths(pattern, options))
