"""Tests for glob matching over template-relative paths."""

from __future__ import annotations

from pathlib import PurePosixPath

import pytest

from treescaffold.errors import ConfigError, PatternError
from treescaffold.scaffolder.matcher import PathMatcher

pytestmark = pytest.mark.unit


def test_empty_matcher_matches_nothing():
    matcher = PathMatcher.compile([])
    assert not matcher.matches("anything")
    assert not PathMatcher.compile(None).matches("x")


def test_leading_dot_slash_is_stripped():
    matcher = PathMatcher.compile(["./target", "././build"])
    assert matcher.patterns == ["target", "build"]
    assert matcher.matches("target")
    assert matcher.matches("build")


def test_exact_name_does_not_match_descendants():
    matcher = PathMatcher.compile(["target"])
    assert not matcher.matches("target/debug")
    assert not matcher.matches("src/target")


def test_star_crosses_separators():
    matcher = PathMatcher.compile(["assets/*"])
    assert matcher.matches("assets/logo.png")
    assert matcher.matches("assets/icons/a.svg")
    assert not matcher.matches("src/assets")


def test_question_mark_and_classes():
    matcher = PathMatcher.compile(["file?.[ch]"])
    assert matcher.matches("file1.c")
    assert matcher.matches("fileA.h")
    assert not matcher.matches("file10.c")


def test_double_star_prefix_matches_at_root():
    matcher = PathMatcher.compile(["**/node_modules"])
    assert matcher.matches("node_modules")
    assert matcher.matches("web/node_modules")


def test_accepts_pure_paths():
    matcher = PathMatcher.compile(["*.bin"])
    assert matcher.matches(PurePosixPath("data/blob.bin"))


def test_empty_pattern_matches_nothing():
    matcher = PathMatcher.compile(["./", ""])
    assert not matcher.matches("")
    assert not matcher.matches("anything")


def test_inner_double_star_matches_zero_directories():
    matcher = PathMatcher.compile(["src/**/*.tmp"])
    assert matcher.matches("src/x.tmp")
    assert matcher.matches("src/a/b/x.tmp")
    assert not matcher.matches("lib/x.tmp")


def test_brace_alternation():
    matcher = PathMatcher.compile(["*.{png,jpg}", "{docs,site}/{a,b{1,2}}"])
    assert matcher.matches("logo.png")
    assert matcher.matches("img/photo.jpg")
    assert not matcher.matches("logo.gif")
    assert matcher.matches("site/b2")
    assert not matcher.matches("site/b3")


@pytest.mark.parametrize("pattern", ["*.{png,jpg", "a}b"])
def test_unbalanced_braces_rejected(pattern):
    with pytest.raises(PatternError) as excinfo:
        PathMatcher.compile([pattern])
    assert isinstance(excinfo.value, ConfigError)
    assert excinfo.value.pattern == pattern


def test_repr_lists_patterns():
    assert repr(PathMatcher.compile(["a*"])) == "PathMatcher(['a*'])"
