"""treescaffold orchestrator and command-line entry point.

``Scaffolder`` ties the pieces together: it locates the template, loads its
``.scaffold.toml``, resolves parameter values (from the command line and
interactive prompts), compiles the exclusion and templating patterns and
hands everything to the :class:`MaterializationEngine`.

Usage::

    treescaffold ./templates/service -n demo --param lang=go
    treescaffold https://github.com/acme/templates.git -r service -t v1.2.0 -a
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

from .config import ScaffoldDescription, ScaffoldOptions, load_description
from .errors import ConfigError, ScaffoldError
from .hooks import HookRunner
from .models import MaterializationResult, StringValue, Value, value_from_native
from .resolver import NAME_PARAMETER, ParameterResolver, Prompter, parse_cli_parameters
from .scaffolder.engine import MaterializationEngine
from .scaffolder.matcher import PathMatcher
from .scaffolder.templates import TemplateRenderer
from .source import resolve_template_dir
from .utils import describe_stage, print_error, print_warning


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class Scaffolder:
    """Scaffolds a project from one template.

    Attributes:
        description: The parsed template descriptor.
        template_dir: Local directory holding the template tree.
        options: Runtime options (target, conflict flags, overrides).
    """

    def __init__(
        self,
        description: ScaffoldDescription,
        template_dir: str | Path,
        options: ScaffoldOptions,
        prompter: Prompter | None = None,
        renderer: TemplateRenderer | None = None,
        hook_runner: HookRunner | None = None,
    ) -> None:
        self.description = description
        self.template_dir = Path(template_dir)
        self.options = options
        self.resolver = ParameterResolver(prompter)
        self.engine = MaterializationEngine(renderer=renderer, hook_runner=hook_runner)

    @classmethod
    def from_options(cls, options: ScaffoldOptions, **kwargs: Any) -> "Scaffolder":
        """Locate (or clone) the template and load its descriptor."""
        template_dir = resolve_template_dir(
            options.template_path,
            options.repository_template_path,
            options.git_ref,
        )
        return cls(load_description(template_dir), template_dir, options, **kwargs)

    @property
    def name(self) -> Optional[str]:
        return self.options.project_name

    # -- Parameters --------------------------------------------------------

    def fetch_parameters_value(self) -> dict[str, Value]:
        """Prompt for every declared parameter not supplied on the command line."""
        seeded = parse_cli_parameters(self.options.default_parameters)
        return self.resolver.resolve(
            self.description.parameters,
            seeded=seeded,
            project_name_override=self.options.project_name,
        )

    # -- Scaffolding -------------------------------------------------------

    def scaffold(self) -> MaterializationResult:
        """Resolve parameters interactively, then generate the project."""
        return self._scaffold(self.fetch_parameters_value())

    def scaffold_with_parameters(self, parameters: Mapping[str, Any]) -> MaterializationResult:
        """Generate the project without prompting.

        *parameters* may hold ``Value`` instances or plain Python values; they
        take precedence over ``--param`` overrides.  The project name must be
        set on the options.
        """
        if not self.options.project_name:
            raise ConfigError(
                "project_name must be set to scaffold without prompting",
                kind=ConfigError.MISSING_REQUIRED_FIELD,
            )
        merged = parse_cli_parameters(self.options.default_parameters)
        try:
            merged.update({key: value_from_native(value) for key, value in parameters.items()})
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc
        merged[NAME_PARAMETER] = StringValue(value=self.options.project_name)
        return self._scaffold(merged)

    def _scaffold(self, parameters: dict[str, Value]) -> MaterializationResult:
        exclude = PathMatcher.compile(self.description.exclude_patterns)
        disable_templating = PathMatcher.compile(self.description.disable_templating_patterns)
        return self.engine.materialize(
            self.template_dir,
            parameters,
            target_root=self.options.target_dir,
            conflict_policy=self.options.conflict_policy,
            hooks_pre=self.description.hooks_pre,
            hooks_post=self.description.hooks_post,
            disable_templating=disable_templating,
            exclude=exclude,
            notes=self.description.notes,
        )


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="treescaffold",
        description="Scaffold a new project from a template directory",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  treescaffold ./templates/service -n demo\n"
            "  treescaffold ./templates/service -n demo -d ./out --param lang=go\n"
            "  treescaffold git@github.com:acme/templates.git -r service -t v1.2.0\n"
        ),
    )
    parser.add_argument(
        "template",
        help="Template location: a local directory or a git URL ending in .git",
    )
    parser.add_argument(
        "-r", "--path",
        dest="repository_template_path",
        default=None,
        help="Template location inside the repository if it is not at the root",
    )
    parser.add_argument(
        "-t", "--git-ref",
        dest="git_ref",
        default=None,
        help="Commit hash, tag or branch to check out after cloning",
    )
    parser.add_argument(
        "-n", "--name",
        dest="project_name",
        default=None,
        help="Name of the generated project (skips the name prompt)",
    )
    parser.add_argument(
        "-d", "--target-directory",
        dest="target_dir",
        default=None,
        help="Target directory (default: ./<project name>)",
    )
    parser.add_argument(
        "-f", "--force",
        action="store_true",
        help="Replace the target directory if it exists",
    )
    parser.add_argument(
        "-a", "--append",
        action="store_true",
        help="Add files to an existing target directory without overwriting existing files",
    )
    parser.add_argument(
        "--param",
        dest="default_parameters",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Supply a parameter value (repeatable); values are always strings",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for ``treescaffold``.  Returns the process exit code."""
    args = build_parser().parse_args(argv)

    options = ScaffoldOptions(
        template_path=args.template,
        repository_template_path=args.repository_template_path,
        git_ref=args.git_ref,
        project_name=args.project_name,
        target_dir=Path(args.target_dir) if args.target_dir else None,
        force=args.force,
        append=args.append,
        default_parameters=args.default_parameters,
    )

    try:
        Scaffolder.from_options(options).scaffold()
    except ScaffoldError as exc:
        print_error(f"{describe_stage(exc.stage)} failed: {exc}")
        return 1
    except KeyboardInterrupt:
        print_warning("Aborted.")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
