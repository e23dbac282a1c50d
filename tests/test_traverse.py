# Unit tests for shellglob.traverse.
# These tests validate lazy directory walking, ordering and error items.

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import List

import pytest

from shellglob.compiler import escape
from shellglob.errors import GlobError, PatternError
from shellglob.models import MatchOptions
from shellglob.traverse import Paths, glob, iter_paths, walk, walk_with

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="POSIX file names and symlinks")


def _mk(root: Path, spec: List[str]) -> None:
    # Entries ending in "/" are directories, everything else an empty file.
    for item in spec:
        target = root / item
        if item.endswith("/"):
            target.mkdir(parents=True, exist_ok=True)
        else:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text("", encoding="utf-8")


def _g(pattern: str, options: MatchOptions = MatchOptions()) -> List[str]:
    return [p.as_posix() for p in glob(pattern, options)]


@pytest.fixture
def tree(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    _mk(tmp_path, [
        "aaa/apple/",
        "aaa/orange/",
        "aaa/tomato/tomato.txt",
        "aaa/tomato/tomoto.txt",
        "bbb/specials/!",
        "bbb/specials/[",
        "bbb/specials/]",
        "ccc/",
        "xyz/x",
        "xyz/y",
        "xyz/z",
        "r/current_dir.md",
        "r/one/a.md",
        "r/one/another/a.md",
        "r/one/another/deep/spelunking.md",
        "r/another/a.md",
        "r/two/b.md",
        "r/three/c.md",
    ])
    if sys.platform != "win32":
        _mk(tmp_path, ["bbb/specials/*", "bbb/specials/?"])
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_recursive_wildcard_yields_base_and_every_directory(tree: Path) -> None:
    expected = [
        "r",
        "r/another",
        "r/one",
        "r/one/another",
        "r/one/another/deep",
        "r/three",
        "r/two",
    ]
    assert _g("r/**") == expected
    assert _g("r/**/**") == expected


def test_recursive_wildcard_followed_by_star(tree: Path) -> None:
    assert _g("r/**/*") == [
        "r/another",
        "r/another/a.md",
        "r/current_dir.md",
        "r/one",
        "r/one/a.md",
        "r/one/another",
        "r/one/another/a.md",
        "r/one/another/deep",
        "r/one/another/deep/spelunking.md",
        "r/three",
        "r/three/c.md",
        "r/two",
        "r/two/b.md",
    ]


def test_recursive_wildcard_followed_by_patterns(tree: Path) -> None:
    assert _g("r/**/*.md") == [
        "r/another/a.md",
        "r/current_dir.md",
        "r/one/a.md",
        "r/one/another/a.md",
        "r/one/another/deep/spelunking.md",
        "r/three/c.md",
        "r/two/b.md",
    ]
    assert _g("r/one/**/a.md") == ["r/one/a.md", "r/one/another/a.md"]
    assert _g("r/one/**/**/a.md") == ["r/one/a.md", "r/one/another/a.md"]
    assert _g("r/**/another/a.md") == ["r/another/a.md", "r/one/another/a.md"]


def test_literal_patterns(tree: Path) -> None:
    assert _g("") == []
    assert _g(".") == ["."]
    assert _g("..") == [".."]
    assert _g("aaa") == ["aaa"]
    assert _g("aaa/") == ["aaa"]
    assert _g("a") == []
    assert _g("aa") == []
    assert _g("aaaa") == []
    assert _g("aaa/apple") == ["aaa/apple"]
    assert _g("aaa/apple/nope") == []
    assert _g("aaa/tomato/tomato.txt/") == []


def test_wildcard_patterns(tree: Path) -> None:
    assert _g("???/") == ["aaa", "bbb", "ccc", "xyz"]
    assert _g("aaa/tomato/tom?to.txt") == ["aaa/tomato/tomato.txt", "aaa/tomato/tomoto.txt"]
    assert _g("xyz/?") == ["xyz/x", "xyz/y", "xyz/z"]
    for pattern in ("a*", "*a*", "a*a", "aaa*", "*aaa", "*aaa*", "*a*a*a*", "aaa*/"):
        assert _g(pattern) == ["aaa"], pattern
    assert _g("aaa/*") == ["aaa/apple", "aaa/orange", "aaa/tomato"]
    assert _g("aaa/*a*") == ["aaa/apple", "aaa/orange", "aaa/tomato"]
    assert _g("*/*/*.txt") == ["aaa/tomato/tomato.txt", "aaa/tomato/tomoto.txt"]
    assert _g("*/*/t[aob]m?to[.]t[!y]t") == ["aaa/tomato/tomato.txt", "aaa/tomato/tomoto.txt"]


def test_dot_components(tree: Path) -> None:
    assert _g("./aaa") == ["aaa"]
    assert _g("./*") == _g("*")
    assert _g("*/..")[-1] == "xyz/.."
    assert _g("aaa/../bbb") == ["aaa/../bbb"]
    assert _g("nonexistent/../bbb") == []
    assert _g("aaa/tomato/tomato.txt/..") == []


def test_character_class_patterns(tree: Path) -> None:
    assert _g("aa[a]") == ["aaa"]
    assert _g("aa[abc]") == ["aaa"]
    assert _g("a[bca]a") == ["aaa"]
    assert _g("aa[b]") == []
    assert _g("aa[xyz]") == []
    assert _g("aa[]]") == []
    assert _g("aa[!b]") == ["aaa"]
    assert _g("aa[!bcd]") == ["aaa"]
    assert _g("a[!bcd]a") == ["aaa"]
    assert _g("aa[!a]") == []
    assert _g("aa[!abc]") == []


@posix_only
def test_special_file_names(tree: Path) -> None:
    assert _g("bbb/specials/[[]") == ["bbb/specials/["]
    assert _g("bbb/specials/!") == ["bbb/specials/!"]
    assert _g("bbb/specials/[]]") == ["bbb/specials/]"]
    assert _g("bbb/specials/[*]") == ["bbb/specials/*"]
    assert _g("bbb/specials/[?]") == ["bbb/specials/?"]
    assert _g("bbb/specials/[![]") == [
        "bbb/specials/!", "bbb/specials/*", "bbb/specials/?", "bbb/specials/]",
    ]
    assert _g("bbb/specials/[!]]") == [
        "bbb/specials/!", "bbb/specials/*", "bbb/specials/?", "bbb/specials/[",
    ]
    assert _g("bbb/specials/[!!]") == [
        "bbb/specials/*", "bbb/specials/?", "bbb/specials/[", "bbb/specials/]",
    ]


def test_media_example(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _mk(tmp_path, ["media/a.jpg", "media/sub/b.jpg", "media/sub/c.png"])
    monkeypatch.chdir(tmp_path)
    assert _g("media/**/*.jpg") == ["media/a.jpg", "media/sub/b.jpg"]


def test_invalid_pattern_raises_before_iteration(tmp_path: Path) -> None:
    with pytest.raises(PatternError) as info:
        walk("a/**b")
    assert info.value.pos == 5
    with pytest.raises(PatternError):
        walk("abc[def")


def test_absolute_pattern(tmp_path: Path) -> None:
    _mk(tmp_path, ["one.txt", "two.txt", "three.md"])
    found = list(walk(escape(str(tmp_path)) + "/*.txt"))
    assert found == [tmp_path / "one.txt", tmp_path / "two.txt"]
    assert all(p.is_absolute() for p in found)


def test_fully_literal_pattern_reads_no_directory(tree: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def _no_scandir(path):
        raise AssertionError(f"unexpected directory read: {path}")

    monkeypatch.setattr(os, "scandir", _no_scandir)
    assert _g("aaa/tomato/tomato.txt") == ["aaa/tomato/tomato.txt"]


def test_literal_components_are_looked_up_directly(tree: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    reads = []
    real_scandir = os.scandir

    def _counting_scandir(path):
        reads.append(path)
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", _counting_scandir)
    assert _g("*/tomato") == ["aaa/tomato"]
    assert reads == [os.curdir]


def test_case_insensitive_walk(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _mk(tmp_path, ["Report.TXT", "notes.md", "Docs/Readme.Txt"])
    monkeypatch.chdir(tmp_path)
    options = MatchOptions(case_sensitive=False)
    assert _g("*.txt", options) == ["Report.TXT"]
    assert _g("*.txt") == []
    assert _g("*/readme.txt", options) == ["Docs/Readme.Txt"]


def test_literal_leading_dot_walk(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _mk(tmp_path, [".hidden", "shown", ".git/config.txt", "src/main.txt"])
    monkeypatch.chdir(tmp_path)
    options = MatchOptions(require_literal_leading_dot=True)
    assert _g("*", options) == ["shown", "src"]
    assert ".hidden" in _g(".*", options)
    assert _g("**/*.txt", options) == ["src/main.txt"]
    assert _g("**/*.txt") == [".git/config.txt", "src/main.txt"]


def test_multiple_recursive_wildcards_yield_each_path_once(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _mk(tmp_path, ["a/a/b", "a/b"])
    monkeypatch.chdir(tmp_path)
    assert _g("**/a/**/b") == ["a/a/b", "a/b"]


def test_expand_user(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _mk(tmp_path, ["notes.txt", "todo.txt"])
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("USERPROFILE", str(tmp_path))
    found = list(walk_with("~/*.txt", MatchOptions(), expand_user=True))
    assert found == [tmp_path / "notes.txt", tmp_path / "todo.txt"]
    assert list(walk("~/*.txt")) == []


def test_iterator_is_lazy_and_closable(tree: Path) -> None:
    paths = walk("r/**/*.md")
    assert isinstance(paths, Paths)
    assert next(paths) == Path("r/another/a.md")
    paths.close()
    assert list(paths) == []

    with walk("xyz/?") as paths:
        assert next(paths) == Path("xyz/x")
    assert list(paths) == []


def test_iter_paths_yields_only_paths(tree: Path) -> None:
    assert list(iter_paths("xyz/*")) == [Path("xyz/x"), Path("xyz/y"), Path("xyz/z")]


@posix_only
def test_broken_symlink_only_matches_by_exact_name(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _mk(tmp_path, ["links/real.txt"])
    os.symlink("missing-target", tmp_path / "links" / "dangling")
    monkeypatch.chdir(tmp_path)

    assert _g("links/*") == ["links/real.txt"]
    assert _g("links/dangling") == ["links/dangling"]
    assert _g("links/**") == ["links"]


@posix_only
def test_symlink_cycle_terminates(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _mk(tmp_path, ["c/sub/file.txt"])
    os.symlink("..", tmp_path / "c" / "sub" / "loop")
    monkeypatch.chdir(tmp_path)

    assert _g("c/**/*.txt") == ["c/sub/file.txt"]
    assert _g("c/**") == ["c", "c/sub", "c/sub/loop"]


@posix_only
def test_self_referencing_symlink_is_an_error_item(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _mk(tmp_path, ["d/ok.txt"])
    os.symlink("selfloop", tmp_path / "d" / "selfloop")
    monkeypatch.chdir(tmp_path)

    items = list(walk("d/*"))
    assert items[0] == Path("d/ok.txt")
    assert isinstance(items[1], GlobError)
    assert items[1].path == Path("d/selfloop")


@pytest.mark.skipif(
    sys.platform == "win32" or (hasattr(os, "geteuid") and os.geteuid() == 0),
    reason="permission bits are not enforced here",
)
def test_unreadable_directory_does_not_stop_the_walk(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _mk(tmp_path, ["top/a/x.txt", "top/locked/y.txt", "top/z/w.txt"])
    locked = tmp_path / "top" / "locked"
    monkeypatch.chdir(tmp_path)

    locked.chmod(0)
    try:
        items = list(walk("top/**/*.txt"))
    finally:
        locked.chmod(0o755)

    assert items[0] == Path("top/a/x.txt")
    assert isinstance(items[1], GlobError)
    assert items[1].path == Path("top/locked")
    assert isinstance(items[1].error, PermissionError)
    assert "top/locked" in str(items[1])
    assert items[2] == Path("top/z/w.txt")
    assert len(items) == 3


@posix_only
def test_link_through_a_file_is_broken_not_an_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _mk(tmp_path, ["f"])
    os.symlink("f/x", tmp_path / "badlink")
    monkeypatch.chdir(tmp_path)

    assert list(walk("*")) == [Path("f")]
    assert list(walk("badlink")) == [Path("badlink")]


def test_scandir_failure_is_reported_and_siblings_still_match(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _mk(tmp_path, ["top/a/x.txt", "top/locked/y.txt", "top/z/w.txt"])
    monkeypatch.chdir(tmp_path)
    real_scandir = os.scandir
    locked = os.path.join("top", "locked")

    def _denying_scandir(path):
        if path == locked:
            raise PermissionError(13, "Permission denied", path)
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", _denying_scandir)
    items = list(walk("top/**/*.txt"))

    assert items[0] == Path("top/a/x.txt")
    assert isinstance(items[1], GlobError)
    assert items[1].path == Path("top/locked")
    assert isinstance(items[1].error, PermissionError)
    assert items[2] == Path("top/z/w.txt")
    assert len(items) == 3


def test_recursive_walk_reuses_directory_entry_stat(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _mk(tmp_path, ["top/a/b/x.txt", "top/c/y.txt"])
    monkeypatch.chdir(tmp_path)
    calls = []
    real_stat = os.stat

    def _counting_stat(path, *args, **kwargs):
        calls.append(os.fspath(path))
        return real_stat(path, *args, **kwargs)

    monkeypatch.setattr(os, "stat", _counting_stat)
    found = [p.as_posix() for p in glob("top/**/*.txt")]

    assert found == ["top/a/b/x.txt", "top/c/y.txt"]
    # Only the starting directory is stat'ed by path; listed entries are not.
    assert calls == ["top"]
