"""Parameter resolution.

Builds the final parameter set for a run from three sources, in priority
order: values seeded on the command line (``--param key=value`` and
``--name``), then interactive answers for every declared parameter that is
still missing, in declaration order.  A project ``name`` is always present
in the result.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Optional, Protocol

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, FloatPrompt, IntPrompt, Prompt

from .config import ParameterSpec
from .errors import ResolverError
from .models import (
    ArrayValue,
    BooleanValue,
    FloatValue,
    IntegerValue,
    ParameterType,
    StringValue,
    Value,
)
from .utils import console as default_console
from .utils import print_warning

NAME_PARAMETER = "name"
NAME_PROMPT = "What is the name of your generated project?"


# ---------------------------------------------------------------------------
# Prompting collaborator
# ---------------------------------------------------------------------------


class Prompter(Protocol):
    """Source of interactive answers.  Implementations block on user input."""

    def ask_string(self, message: str, default: Optional[str] = None) -> str: ...

    def ask_integer(self, message: str, default: Optional[int] = None) -> int: ...

    def ask_float(self, message: str, default: Optional[float] = None) -> float: ...

    def ask_bool(self, message: str, default: bool = False) -> bool: ...

    def select(self, message: str, items: Sequence[str], default: int = 0) -> int: ...

    def multi_select(
        self, message: str, items: Sequence[str], defaults: Sequence[int] = ()
    ) -> list[int]: ...


class RichPrompter:
    """Terminal prompter built on ``rich.prompt``.

    Select and multi-select questions are shown as a numbered list; answers
    are 1-based item numbers.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or default_console

    def ask_string(self, message: str, default: Optional[str] = None) -> str:
        if default is None:
            return Prompt.ask(message, console=self.console)
        return Prompt.ask(message, console=self.console, default=default)

    def ask_integer(self, message: str, default: Optional[int] = None) -> int:
        if default is None:
            return IntPrompt.ask(message, console=self.console)
        return IntPrompt.ask(message, console=self.console, default=default)

    def ask_float(self, message: str, default: Optional[float] = None) -> float:
        if default is None:
            return FloatPrompt.ask(message, console=self.console)
        return FloatPrompt.ask(message, console=self.console, default=default)

    def ask_bool(self, message: str, default: bool = False) -> bool:
        return Confirm.ask(message, console=self.console, default=default)

    def select(self, message: str, items: Sequence[str], default: int = 0) -> int:
        self._show_items(items)
        choices = [str(number) for number in range(1, len(items) + 1)]
        answer = Prompt.ask(
            message,
            console=self.console,
            choices=choices,
            default=str(default + 1),
            show_choices=False,
        )
        return int(answer) - 1

    def multi_select(
        self, message: str, items: Sequence[str], defaults: Sequence[int] = ()
    ) -> list[int]:
        self._show_items(items)
        default = ",".join(str(index + 1) for index in defaults)
        while True:
            answer = Prompt.ask(
                f"{message} (comma-separated numbers, empty for none)",
                console=self.console,
                default=default,
                show_default=bool(default),
            )
            try:
                return _parse_selection(answer, len(items))
            except ValueError as exc:
                print_warning(str(exc))

    def _show_items(self, items: Sequence[str]) -> None:
        for number, item in enumerate(items, start=1):
            self.console.print(f"  [bold]{number}[/bold]) {escape(item)}", highlight=False)


def _parse_selection(answer: str, count: int) -> list[int]:
    """Parse ``"1, 3"`` into zero-based indices, preserving order, dropping repeats."""
    indices: list[int] = []
    for token in answer.replace(" ", "").split(","):
        if not token:
            continue
        if not token.isdigit() or not 1 <= int(token) <= count:
            raise ValueError(f"Please enter numbers between 1 and {count}")
        index = int(token) - 1
        if index not in indices:
            indices.append(index)
    return indices


# ---------------------------------------------------------------------------
# Command-line seeding
# ---------------------------------------------------------------------------


def parse_cli_parameters(items: Iterable[str] | None) -> dict[str, Value]:
    """Parse repeatable ``key=value`` overrides.

    The value is everything after the first ``=`` and may be empty.  Values
    are always typed as strings.

    Raises:
        ResolverError: ``kind="invalid_cli_param"`` when an item has no
            ``=`` or an empty key.
    """
    parameters: dict[str, Value] = {}
    for item in items or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise ResolverError(
                f"Invalid argument: {item!r} (expected key=value)",
                kind=ResolverError.INVALID_CLI_PARAM,
                parameter=key or None,
            )
        parameters[key] = StringValue(value=value)
    return parameters


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class ParameterResolver:
    """Produces the final, named parameter set for a run."""

    def __init__(self, prompter: Prompter | None = None) -> None:
        self.prompter: Prompter = prompter or RichPrompter()

    def resolve(
        self,
        parameters: Mapping[str, ParameterSpec],
        seeded: Mapping[str, Value] | None = None,
        project_name_override: Optional[str] = None,
    ) -> dict[str, Value]:
        """Resolve every declared parameter not already present in *seeded*.

        Declared parameters are asked for strictly in declaration order.  If
        ``name`` is neither seeded nor declared, it is asked for last.
        """
        resolved: dict[str, Value] = dict(seeded or {})
        if project_name_override is not None:
            resolved[NAME_PARAMETER] = StringValue(value=project_name_override)

        pending = [(name, spec) for name, spec in parameters.items() if name not in resolved]
        if NAME_PARAMETER not in resolved and NAME_PARAMETER not in parameters:
            pending.append(
                (
                    NAME_PARAMETER,
                    ParameterSpec(message=NAME_PROMPT, required=True, type=ParameterType.STRING),
                )
            )

        for name, spec in pending:
            resolved[name] = self._resolve_one(name, spec)

        name_value = resolved[NAME_PARAMETER]
        if not isinstance(name_value, StringValue):
            resolved[NAME_PARAMETER] = StringValue(value=str(name_value))
        return resolved

    def _resolve_one(self, name: str, spec: ParameterSpec) -> Value:
        try:
            if spec.type is ParameterType.STRING:
                return self._ask_string(spec)
            if spec.type is ParameterType.INTEGER:
                default = spec.default.to_native() if isinstance(spec.default, IntegerValue) else None
                return IntegerValue(value=self.prompter.ask_integer(spec.message, default))
            if spec.type is ParameterType.FLOAT:
                default = (
                    float(spec.default.to_native())
                    if isinstance(spec.default, (FloatValue, IntegerValue))
                    else None
                )
                return FloatValue(value=self.prompter.ask_float(spec.message, default))
            if spec.type is ParameterType.BOOLEAN:
                default = spec.default.value if isinstance(spec.default, BooleanValue) else False
                return BooleanValue(value=self.prompter.ask_bool(spec.message, default))
            if spec.type is ParameterType.SELECT:
                return self._ask_select(name, spec)
            return self._ask_multi_select(name, spec)
        except (EOFError, ValueError, OSError) as exc:
            raise ResolverError(
                f"Cannot read a value for {name!r}: {exc}",
                kind=ResolverError.PROMPT_FAILED,
                parameter=name,
            ) from exc

    def _ask_string(self, spec: ParameterSpec) -> StringValue:
        default = str(spec.default) if spec.default is not None else None
        while True:
            answer = self.prompter.ask_string(spec.message, default)
            if answer or not spec.required:
                return StringValue(value=answer)
            print_warning("A value is required.")

    def _ask_select(self, name: str, spec: ParameterSpec) -> Value:
        values = spec.allowed_values
        if not values:
            raise ResolverError(
                f"Cannot make a select parameter {name!r} with empty values",
                kind=ResolverError.MISSING_VALUES,
                parameter=name,
            )
        default = values.index(spec.default) if spec.default in values else 0
        index = self.prompter.select(spec.message, [str(v) for v in values], default)
        if not 0 <= index < len(values):
            raise ValueError(f"selection {index} is out of range")
        return values[index]

    def _ask_multi_select(self, name: str, spec: ParameterSpec) -> ArrayValue:
        values = spec.allowed_values
        if not values:
            return ArrayValue(items=[])
        defaults: list[int] = []
        if isinstance(spec.default, ArrayValue):
            defaults = [values.index(item) for item in spec.default.items if item in values]
        indices = self.prompter.multi_select(spec.message, [str(v) for v in values], defaults)
        for index in indices:
            if not 0 <= index < len(values):
                raise ValueError(f"selection {index} is out of range")
        return ArrayValue(items=[values[index] for index in indices])
