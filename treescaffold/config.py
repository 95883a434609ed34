"""treescaffold configuration.

Typed models for the ``.scaffold.toml`` descriptor that sits at the root of
every template, plus the runtime-only options supplied on the command line.
All settings are Pydantic v2 models so the descriptor is validated once, at
load time, and the rest of the system can rely on the declared shape.

A descriptor looks like::

    [template]
    exclude = ["./target"]
    disable_templating = ["assets/*"]
    notes = "Generated {{name}} in {{target_dir}}"

    [parameters.lang]
    type = "select"
    message = "Which language?"
    values = ["rust", "go"]

    [hooks]
    pre = ["echo {{name}}"]
    post = ["git init"]
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigError
from .models import ConflictPolicy, ParameterType, Value, value_from_native

SCAFFOLD_FILENAME = ".scaffold.toml"


# ---------------------------------------------------------------------------
# Descriptor sections
# ---------------------------------------------------------------------------


class TemplateSection(BaseModel):
    """The ``[template]`` table: file selection and post-generation notes."""

    exclude: list[str] = Field(
        default_factory=list, description="Globs of template paths never copied"
    )
    disable_templating: list[str] = Field(
        default_factory=list,
        description="Globs of template files copied byte-for-byte (paths are still rendered)",
    )
    notes: Optional[str] = Field(
        default=None, description="Template rendered and shown after generation"
    )


class HooksSection(BaseModel):
    """The ``[hooks]`` table: commands run in the target directory."""

    pre: list[str] = Field(default_factory=list)
    post: list[str] = Field(default_factory=list)

    @field_validator("pre", "post")
    @classmethod
    def _reject_blank_commands(cls, commands: list[str]) -> list[str]:
        for command in commands:
            if not command.strip():
                raise ValueError("hook commands must not be blank")
        return commands


class ParameterSpec(BaseModel):
    """A single entry of the ``[parameters]`` table."""

    message: str = Field(..., description="Prompt shown to the user")
    required: bool = Field(default=False)
    type: ParameterType = Field(..., description="How the value is collected")
    default: Optional[Value] = Field(default=None, description="Interactive default")
    values: Optional[list[Value]] = Field(
        default=None, description="Allowed values for select/multiselect"
    )
    tags: Optional[list[str]] = Field(default=None)

    @field_validator("default", mode="before")
    @classmethod
    def _tag_default(cls, value: Any) -> Any:
        if value is None:
            return None
        return value_from_native(value)

    @field_validator("values", mode="before")
    @classmethod
    def _tag_values(cls, values: Any) -> Any:
        if values is None:
            return None
        if not isinstance(values, list):
            raise ValueError("values must be an array")
        return [value_from_native(item) for item in values]

    @property
    def allowed_values(self) -> list[Value]:
        return list(self.values or [])


class ScaffoldDescription(BaseModel):
    """Parsed ``.scaffold.toml``.

    Every table is optional.  Unknown keys are ignored so that templates
    written for newer releases still load.  Parameter declaration order is
    preserved and is the order in which values are prompted for.
    """

    template: TemplateSection = Field(default_factory=TemplateSection)
    parameters: dict[str, ParameterSpec] = Field(default_factory=dict)
    hooks: HooksSection = Field(default_factory=HooksSection)

    @property
    def exclude_patterns(self) -> list[str]:
        return self.template.exclude

    @property
    def disable_templating_patterns(self) -> list[str]:
        return self.template.disable_templating

    @property
    def notes(self) -> Optional[str]:
        return self.template.notes

    @property
    def hooks_pre(self) -> list[str]:
        return self.hooks.pre

    @property
    def hooks_post(self) -> list[str]:
        return self.hooks.post


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def parse_description(data: bytes | str) -> ScaffoldDescription:
    """Parse and validate descriptor bytes.

    Raises:
        ConfigError: ``kind="malformed"`` for invalid UTF-8, invalid TOML or
            wrongly-typed fields; ``kind="missing_required_field"`` when a
            mandatory field (such as a parameter's ``message``) is absent.
    """
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ConfigError(f"{SCAFFOLD_FILENAME} is not valid UTF-8: {exc}") from exc

    try:
        raw = tomllib.loads(data)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Malformed {SCAFFOLD_FILENAME}: {exc}") from exc

    try:
        return ScaffoldDescription.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(
            f"Invalid {SCAFFOLD_FILENAME}: {_describe_errors(exc)}",
            kind=_error_kind(exc),
        ) from exc


def load_description(template_dir: str | Path) -> ScaffoldDescription:
    """Read and parse the descriptor at the root of *template_dir*."""
    path = Path(template_dir) / SCAFFOLD_FILENAME
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise ConfigError(f"Cannot open {SCAFFOLD_FILENAME} in {template_dir}: {exc}") from exc
    return parse_description(data)


def _error_kind(exc: ValidationError) -> str:
    if any(err["type"] == "missing" for err in exc.errors()):
        return ConfigError.MISSING_REQUIRED_FIELD
    return ConfigError.MALFORMED


def _describe_errors(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err["loc"])
        parts.append(f"{location}: {err['msg']}")
    return "; ".join(parts)


# ---------------------------------------------------------------------------
# Runtime options
# ---------------------------------------------------------------------------


class ScaffoldOptions(BaseModel):
    """Runtime-only settings, typically built by the CLI entry point."""

    template_path: str = Field(..., description="Local directory or git URL ending in .git")
    repository_template_path: Optional[Path] = Field(
        default=None, description="Template location inside the repository"
    )
    git_ref: Optional[str] = Field(default=None, description="Commit, tag or branch to check out")
    project_name: Optional[str] = Field(default=None, description="Skips the name prompt")
    target_dir: Optional[Path] = Field(
        default=None, description="Defaults to ./<project name>"
    )
    force: bool = Field(default=False, description="Replace an existing target directory")
    append: bool = Field(
        default=False, description="Add missing files to an existing target directory"
    )
    default_parameters: list[str] = Field(
        default_factory=list, description="Raw key=value overrides"
    )

    @property
    def conflict_policy(self) -> ConflictPolicy:
        return ConflictPolicy.from_flags(force=self.force, append=self.append)
