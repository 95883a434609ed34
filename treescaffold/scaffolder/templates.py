"""Jinja2 template rendering for project scaffolding.

Provides the TemplateRenderer class which renders template text (file
contents, hook commands, notes) and destination paths against a resolved
parameter context.  When constructed with a template directory, templates
may ``{% include %}`` or ``{% import %}`` other files from that directory.
"""

from __future__ import annotations

import re
from pathlib import Path, PurePath
from typing import Any

from jinja2 import BaseLoader, Environment, FileSystemLoader, TemplateError

# Exceptions a render call may raise: template syntax/runtime errors plus
# whatever a filter or expression raises on bad operands.
RENDER_ERRORS: tuple[type[BaseException], ...] = (
    TemplateError,
    TypeError,
    ValueError,
    ArithmeticError,
)

_PASSTHROUGH_PARTS = frozenset({".", ".."})


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 template strings for project scaffolding.

    Undefined variables render as empty strings, so a template may reference
    optional parameters that were never declared.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        self.template_dir = Path(template_dir) if template_dir is not None else None
        loader: BaseLoader
        if self.template_dir is not None:
            loader = FileSystemLoader(str(self.template_dir))
        else:
            loader = BaseLoader()
        self.env = Environment(
            loader=loader,
            autoescape=False,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        # Register custom filters
        self.env.filters["slugify"] = _slugify_filter
        self.env.filters["pascal_case"] = _pascal_case_filter
        self.env.filters["snake_case"] = _snake_case_filter
        self.env.filters["camel_case"] = _camel_case_filter
        self._markers = (
            self.env.variable_start_string,
            self.env.block_start_string,
            self.env.comment_start_string,
        )

    # -- String rendering --------------------------------------------------

    def has_template_syntax(self, text: str) -> bool:
        """Return ``True`` if *text* contains any Jinja2 delimiter."""
        return any(marker in text for marker in self._markers)

    def render_string(self, template_string: str, context: dict[str, Any]) -> str:
        """Render an inline template string with the provided context.

        Text without any template delimiter is returned unchanged, byte for
        byte (Jinja2 would otherwise normalise line endings).
        """
        if not self.has_template_syntax(template_string):
            return template_string
        template = self.env.from_string(template_string)
        return template.render(**context)

    # -- Path rendering ----------------------------------------------------

    def render_path(self, path: str | PurePath, context: dict[str, Any]) -> Path:
        """Render a destination path one component at a time.

        Each component is rendered on its own and the results are rejoined
        with the native separator, so a placeholder is never split by (or
        merged across) a separator.  The anchor and ``.``/``..`` components
        pass through untouched; components that render empty are dropped.
        """
        source = PurePath(path)
        parts: list[str] = []
        for index, part in enumerate(source.parts):
            if (index == 0 and source.anchor and part == source.anchor) or part in _PASSTHROUGH_PARTS:
                parts.append(part)
                continue
            rendered = self.render_string(part, context)
            if rendered:
                parts.append(rendered)
        return Path(*parts) if parts else Path()


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

def _slugify_filter(value: str) -> str:
    """Convert a string to a URL/filename-safe slug."""
    slug = re.sub(r"[^a-z0-9]+", "-", str(value).lower().strip())
    return slug.strip("-")


def _pascal_case_filter(value: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``SomeThing``."""
    parts = re.split(r"[-_\s]+", str(value))
    return "".join(word.capitalize() for word in parts if word)


def _snake_case_filter(value: str) -> str:
    """Convert ``SomeThing`` or ``some-thing`` to ``some_thing``."""
    s1 = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", str(value))
    s2 = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s1)
    return re.sub(r"[-\s]+", "_", s2).lower()


def _camel_case_filter(value: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``someThing``."""
    pascal = _pascal_case_filter(value)
    if pascal:
        return pascal[0].lower() + pascal[1:]
    return ""
