"""Shared console output helpers for treescaffold.

All user-facing progress and error reporting goes through the module-level
Rich ``console`` so that output styling stays consistent and tests can
redirect or silence it in one place.
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.rule import Rule
from rich.text import Text

console = Console()

# ---------------------------------------------------------------------------
# Stage labels
# ---------------------------------------------------------------------------


STAGE_LABELS: dict[str, str] = {
    "configuration": "Configuration",
    "source": "Template source",
    "resolution": "Parameter resolution",
    "filesystem": "Filesystem",
    "render": "Rendering",
    "hook": "Hooks",
}

STAGE_COLORS: dict[str, str] = {
    "pre_hooks": "magenta",
    "tree": "cyan",
    "notes": "yellow",
    "post_hooks": "magenta",
}


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_stage_header(stage: str, title: str) -> None:
    """Print a rule announcing a materialization stage."""
    color = STAGE_COLORS.get(stage, "cyan")
    console.print(Rule(f"[bold {color}]{title}[/bold {color}]", style=color))


def print_step(message: str) -> None:
    """Print a single progress line (directory creation, hook command...)."""
    console.print(f"  [cyan]>[/cyan] {escape(message)}", highlight=False)


def print_notes(notes: str) -> None:
    """Show rendered template notes in a panel."""
    console.print(Panel(Text(notes), title="Notes", border_style="yellow"))


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{escape(message)}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{escape(message)}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{escape(message)}[/bold yellow]")


def describe_stage(stage: str) -> str:
    """Human-readable label for an error stage."""
    return STAGE_LABELS.get(stage, stage.capitalize())
