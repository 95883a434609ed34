"""Shared pytest fixtures for the treescaffold test suite.

Provides reusable fixtures for:
- Building template trees (with or without a ``.scaffold.toml``)
- A scripted prompter that replays canned answers
- A recording hook runner that captures commands instead of spawning them
- Silencing the Rich console during tests
"""

from __future__ import annotations

import textwrap
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any, Optional

import pytest

from treescaffold import utils
from treescaffold.models import StringValue


# ---------------------------------------------------------------------------
# Console
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def quiet_console(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep Rich output out of the test logs."""
    monkeypatch.setattr(utils.console, "quiet", True)


# ---------------------------------------------------------------------------
# Template trees
# ---------------------------------------------------------------------------

TemplateFactory = Callable[..., Path]


@pytest.fixture
def make_template(tmp_path: Path) -> TemplateFactory:
    """Factory that writes a template tree under ``tmp_path/template``.

    ``files`` maps POSIX relative paths to ``str`` or ``bytes`` content; a
    path ending in ``/`` creates an empty directory.  ``descriptor`` is
    written (dedented) to ``.scaffold.toml`` when given.
    """

    def _make(
        files: dict[str, str | bytes],
        descriptor: Optional[str] = None,
        name: str = "template",
    ) -> Path:
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)
        for relative, content in files.items():
            path = root / relative
            if relative.endswith("/"):
                path.mkdir(parents=True, exist_ok=True)
                continue
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content, encoding="utf-8")
        if descriptor is not None:
            (root / ".scaffold.toml").write_text(textwrap.dedent(descriptor), encoding="utf-8")
        return root

    return _make


@pytest.fixture
def target_dir(tmp_path: Path) -> Path:
    """Destination path for generated projects (not created)."""
    return tmp_path / "out" / "demo"


@pytest.fixture
def demo_params() -> dict[str, Any]:
    return {"name": StringValue(value="demo")}


# ---------------------------------------------------------------------------
# Prompter
# ---------------------------------------------------------------------------


class ScriptedPrompter:
    """Prompter that replays queued answers and records every question."""

    def __init__(self, answers: Sequence[Any] = ()) -> None:
        self.answers = list(answers)
        self.calls: list[tuple[str, str, Any]] = []

    def _next(self, method: str, message: str, extra: Any = None) -> Any:
        self.calls.append((method, message, extra))
        if not self.answers:
            raise EOFError("no more scripted answers")
        answer = self.answers.pop(0)
        if isinstance(answer, BaseException):
            raise answer
        return answer

    def ask_string(self, message: str, default: Optional[str] = None) -> str:
        return self._next("string", message, default)

    def ask_integer(self, message: str, default: Optional[int] = None) -> int:
        return self._next("integer", message, default)

    def ask_float(self, message: str, default: Optional[float] = None) -> float:
        return self._next("float", message, default)

    def ask_bool(self, message: str, default: bool = False) -> bool:
        return self._next("boolean", message, default)

    def select(self, message: str, items: Sequence[str], default: int = 0) -> int:
        return self._next("select", message, (list(items), default))

    def multi_select(
        self, message: str, items: Sequence[str], defaults: Sequence[int] = ()
    ) -> list[int]:
        return self._next("multiselect", message, (list(items), list(defaults)))

    @property
    def asked(self) -> list[str]:
        return [message for _, message, _ in self.calls]


@pytest.fixture
def scripted_prompter() -> Callable[..., ScriptedPrompter]:
    def _make(*answers: Any) -> ScriptedPrompter:
        return ScriptedPrompter(answers)

    return _make


# ---------------------------------------------------------------------------
# Hook runner
# ---------------------------------------------------------------------------


class RecordingHookRunner:
    """Hook runner that records commands and the target tree at call time."""

    def __init__(self, fail_on: Optional[str] = None) -> None:
        self.fail_on = fail_on
        self.calls: list[tuple[str, Path]] = []
        self.files_seen: list[list[str]] = []

    def run(self, command_line: str, cwd: str | Path) -> int:
        from treescaffold.errors import HookFailure
        from treescaffold.hooks import split_command

        cwd = Path(cwd)
        split_command(command_line)
        self.calls.append((command_line, cwd))
        self.files_seen.append(
            sorted(p.relative_to(cwd).as_posix() for p in cwd.rglob("*") if p.is_file())
        )
        if self.fail_on is not None and command_line == self.fail_on:
            raise HookFailure(command_line, returncode=1)
        return 0

    @property
    def commands(self) -> list[str]:
        return [command for command, _ in self.calls]


@pytest.fixture
def hook_runner() -> RecordingHookRunner:
    return RecordingHookRunner()
