"""Glob matching over template-relative paths.

Patterns follow :mod:`fnmatch` semantics (``*`` and ``?`` may cross ``/``,
``[...]`` character classes) with two extensions:

- ``{a,b}`` alternation, which may nest;
- ``**/`` also matches zero directories, so ``**/node_modules`` excludes a
  top-level ``node_modules`` and ``src/**/*.tmp`` matches ``src/x.tmp``.

A pattern that is empty once ``./`` prefixes are stripped matches nothing.
"""

from __future__ import annotations

import fnmatch
import re
from collections.abc import Iterable
from pathlib import PurePath

from ..errors import PatternError

_ANY_DIRS = "**/"


def _normalize(pattern: str) -> str:
    """Strip author-relative ``./`` prefixes (``./target`` -> ``target``)."""
    while pattern.startswith("./"):
        pattern = pattern[2:]
    return pattern


def _expand_braces(pattern: str) -> list[str]:
    """Expand ``{a,b}`` groups into every alternative, left to right.

    Raises ``ValueError`` on an unbalanced brace.
    """
    start = pattern.find("{")
    if start < 0:
        if "}" in pattern:
            raise ValueError("unopened alternate group")
        return [pattern]
    if "}" in pattern[:start]:
        raise ValueError("unopened alternate group")

    depth = 0
    options: list[str] = []
    option_start = start + 1
    for index in range(start, len(pattern)):
        char = pattern[index]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                options.append(pattern[option_start:index])
                end = index
                break
        elif char == "," and depth == 1:
            options.append(pattern[option_start:index])
            option_start = index + 1
    else:
        raise ValueError("unclosed alternate group")

    prefix, suffix = pattern[:start], pattern[end + 1:]
    expanded: list[str] = []
    for option in options:
        expanded.extend(_expand_braces(prefix + option + suffix))
    return expanded


def _expand_any_dirs(pattern: str) -> list[str]:
    """Every variant of *pattern* with each ``**/`` kept or dropped."""
    index = pattern.find(_ANY_DIRS)
    while index > 0 and pattern[index - 1] != "/":
        index = pattern.find(_ANY_DIRS, index + 1)
    if index < 0:
        return [pattern]
    head = pattern[:index]
    rests = _expand_any_dirs(pattern[index + len(_ANY_DIRS):])
    return [head + _ANY_DIRS + rest for rest in rests] + [head + rest for rest in rests]


class PathMatcher:
    """Compiled set of glob patterns.

    Matching is a pure function of the relative path.  An empty pattern list
    matches nothing.
    """

    def __init__(self, patterns: list[str], regexes: list[re.Pattern[str]]) -> None:
        self.patterns = patterns
        self._regexes = regexes

    @classmethod
    def compile(cls, patterns: Iterable[str] | None) -> "PathMatcher":
        """Compile *patterns*, raising ``PatternError`` on an unusable one."""
        normalized: list[str] = []
        regexes: list[re.Pattern[str]] = []
        for raw in patterns or []:
            pattern = _normalize(raw)
            normalized.append(pattern)
            if not pattern:
                continue
            try:
                alternatives = [
                    variant
                    for option in _expand_braces(pattern)
                    for variant in _expand_any_dirs(option)
                ]
                regexes.extend(re.compile(fnmatch.translate(alt)) for alt in dict.fromkeys(alternatives))
            except (ValueError, re.error) as exc:
                raise PatternError(raw, str(exc)) from exc
        return cls(normalized, regexes)

    def matches(self, relative_path: str | PurePath) -> bool:
        if not self._regexes:
            return False
        if isinstance(relative_path, PurePath):
            relative_path = relative_path.as_posix()
        return any(regex.match(relative_path) for regex in self._regexes)

    def __repr__(self) -> str:
        return f"PathMatcher({self.patterns!r})"
