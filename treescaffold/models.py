"""Core data types shared by the resolver and the materialization engine.

Parameter values are a closed tagged union of pydantic models discriminated
by ``kind``.  The same representation is used for values read from the
descriptor (defaults, allowed values), values collected from prompts or the
command line, and the bindings handed to the template renderer.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

I64_MIN = -(2**63)
I64_MAX = 2**63 - 1


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class ParameterType(str, Enum):
    """How a declared parameter is collected from the user."""
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    SELECT = "select"
    MULTISELECT = "multiselect"


class ConflictPolicy(str, Enum):
    """What to do when a target directory or file already exists."""
    FAIL = "fail"
    FORCE = "force"
    APPEND = "append"

    @classmethod
    def from_flags(cls, force: bool = False, append: bool = False) -> "ConflictPolicy":
        """Derive the policy from CLI flags.  ``force`` wins over ``append``."""
        if force:
            return cls.FORCE
        if append:
            return cls.APPEND
        return cls.FAIL


class EntryKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"


# ---------------------------------------------------------------------------
# Parameter values
# ---------------------------------------------------------------------------

class _ValueBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    def to_native(self) -> Any:  # pragma: no cover - overridden
        raise NotImplementedError

    def __str__(self) -> str:
        return str(self.to_native())


class StringValue(_ValueBase):
    kind: Literal["string"] = "string"
    value: str

    def to_native(self) -> str:
        return self.value


class IntegerValue(_ValueBase):
    kind: Literal["integer"] = "integer"
    value: int = Field(..., ge=I64_MIN, le=I64_MAX)

    def to_native(self) -> int:
        return self.value


class FloatValue(_ValueBase):
    kind: Literal["float"] = "float"
    value: float

    def to_native(self) -> float:
        return self.value


class BooleanValue(_ValueBase):
    kind: Literal["boolean"] = "boolean"
    value: bool

    def to_native(self) -> bool:
        return self.value


class ArrayValue(_ValueBase):
    kind: Literal["array"] = "array"
    items: list[Value] = Field(default_factory=list)

    def to_native(self) -> list[Any]:
        return [item.to_native() for item in self.items]

    def __str__(self) -> str:
        return ", ".join(str(item) for item in self.items)


Value = Annotated[
    Union[StringValue, IntegerValue, FloatValue, BooleanValue, ArrayValue],
    Field(discriminator="kind"),
]

ArrayValue.model_rebuild()

_VALUE_ADAPTER: TypeAdapter[Any] = TypeAdapter(Value)

ParameterSet = dict[str, Value]


def value_from_native(obj: Any) -> Value:
    """Convert a plain Python/TOML value into the matching ``Value`` variant.

    Already-tagged values (model instances or ``{"kind": ...}`` dicts) are
    accepted as-is.  Raises ``ValueError`` for anything outside the union
    (tables, datetimes, ``None``).
    """
    if isinstance(obj, _ValueBase):
        return obj  # type: ignore[return-value]
    # bool is a subclass of int, so it must be checked first.
    if isinstance(obj, bool):
        return BooleanValue(value=obj)
    if isinstance(obj, int):
        return IntegerValue(value=obj)
    if isinstance(obj, float):
        return FloatValue(value=obj)
    if isinstance(obj, str):
        return StringValue(value=obj)
    if isinstance(obj, (list, tuple)):
        return ArrayValue(items=[value_from_native(item) for item in obj])
    if isinstance(obj, Mapping) and "kind" in obj:
        return _VALUE_ADAPTER.validate_python(dict(obj))
    raise ValueError(f"Unsupported parameter value: {obj!r}")


def parameters_to_context(params: Mapping[str, Value]) -> dict[str, Any]:
    """Flatten a parameter set into the plain dict bound inside templates."""
    return {name: value.to_native() for name, value in params.items()}


# ---------------------------------------------------------------------------
# Traversal and results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SourceEntry:
    """One entry of the template tree, as produced by traversal."""

    relative_path: PurePosixPath
    kind: EntryKind
    mode: int
    raw_bytes: Optional[bytes] = None

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIRECTORY


class MaterializationResult(BaseModel):
    """Summary of a completed materialization run."""

    target_dir: Path = Field(..., description="Canonical path of the generated project")
    directories_created: list[Path] = Field(default_factory=list)
    files_written: list[Path] = Field(default_factory=list)
    files_skipped: list[Path] = Field(
        default_factory=list,
        description="Existing files left untouched under the append policy",
    )
    notes: Optional[str] = Field(default=None, description="Rendered post-generation notes")
    parameters: dict[str, Value] = Field(
        default_factory=dict, description="Final parameter set, including target_dir"
    )
