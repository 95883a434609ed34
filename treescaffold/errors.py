"""Exception hierarchy for treescaffold.

Every failure is terminal for the current run.  Each exception carries the
``stage`` it belongs to so the CLI can tell the user where things went wrong
(configuration, source, resolution, filesystem, render or hook).
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class ScaffoldError(Exception):
    """Base class for every error raised by treescaffold."""

    stage = "scaffold"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigError(ScaffoldError):
    """The descriptor file could not be read or validated."""

    stage = "configuration"

    MALFORMED = "malformed"
    MISSING_REQUIRED_FIELD = "missing_required_field"

    def __init__(self, message: str, kind: str = MALFORMED) -> None:
        self.kind = kind
        super().__init__(message)


class PatternError(ConfigError):
    """A glob pattern from ``exclude`` or ``disable_templating`` is invalid."""

    def __init__(self, pattern: str, reason: str) -> None:
        self.pattern = pattern
        super().__init__(f"Invalid pattern {pattern!r}: {reason}")


class SourceError(ScaffoldError):
    """The template source could not be located or fetched."""

    stage = "source"

    def __init__(self, message: str, command: str = "", stderr: str = "") -> None:
        self.command = command
        self.stderr = stderr
        super().__init__(message)


# ---------------------------------------------------------------------------
# Parameter resolution
# ---------------------------------------------------------------------------


class ResolverError(ScaffoldError):
    """Parameter values could not be resolved."""

    stage = "resolution"

    INVALID_CLI_PARAM = "invalid_cli_param"
    PROMPT_FAILED = "prompt_failed"
    MISSING_VALUES = "missing_values"

    def __init__(self, message: str, kind: str, parameter: Optional[str] = None) -> None:
        self.kind = kind
        self.parameter = parameter
        super().__init__(message)


# ---------------------------------------------------------------------------
# Materialization
# ---------------------------------------------------------------------------


class MaterializationError(ScaffoldError):
    """Base class for failures while producing the target tree."""

    stage = "filesystem"


class DirectoryExistsError(MaterializationError):
    """The target directory exists and neither force nor append was requested."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Cannot create {path} because it already exists")


class ScaffoldIOError(MaterializationError):
    """A filesystem operation on the target tree failed."""

    def __init__(self, operation: str, path: Path, reason: str) -> None:
        self.operation = operation
        self.path = path
        super().__init__(f"Cannot {operation} {path}: {reason}")


class InvalidEncodingError(MaterializationError):
    """A templated file is not valid UTF-8."""

    stage = "render"

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(
            f"Cannot render {path}: file is not valid UTF-8 "
            "(list it under template.disable_templating to copy it verbatim)"
        )


class TemplateRenderError(MaterializationError):
    """The templating engine rejected a content, path, hook or notes template."""

    stage = "render"

    CONTENT = "content"
    PATH = "path"
    HOOK = "hook"
    NOTES = "notes"

    def __init__(self, target: str, location: str, reason: str) -> None:
        self.target = target
        self.location = location
        super().__init__(f"Cannot render {target} template {location!r}: {reason}")


class HookFailure(ScaffoldError):
    """A pre- or post-generation hook could not be spawned or exited non-zero."""

    stage = "hook"

    def __init__(
        self,
        command: str,
        returncode: Optional[int] = None,
        reason: str = "",
    ) -> None:
        self.command = command
        self.returncode = returncode
        self.reason = reason
        if returncode is not None:
            detail = f"exit {returncode}"
        else:
            detail = reason or "could not be spawned"
        super().__init__(f"Hook failed ({detail}): {command}")
