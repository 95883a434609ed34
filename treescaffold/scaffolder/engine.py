"""Materialization engine.

Turns a template tree plus a resolved parameter set into a concrete target
tree.  A run is a fixed pipeline of stages executed strictly in order:

1. ``resolve_target`` -- create (or replace, or reuse) the target directory
   and expose it to templates as ``target_dir``;
2. ``pre_hooks``      -- render and run the pre-generation commands;
3. ``tree``           -- walk the template tree, creating directories and
   rendering or copying files;
4. ``notes``          -- render the post-generation notes;
5. ``post_hooks``     -- render and run the post-generation commands.

The first error aborts the run.  Nothing already written is rolled back:
re-run with the force policy to start over, or with the append policy to
resume.
"""

from __future__ import annotations

import os
import shutil
import stat
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Optional

from ..config import SCAFFOLD_FILENAME
from ..errors import (
    DirectoryExistsError,
    InvalidEncodingError,
    ScaffoldIOError,
    TemplateRenderError,
)
from ..hooks import HookRunner
from ..models import (
    ConflictPolicy,
    EntryKind,
    MaterializationResult,
    SourceEntry,
    StringValue,
    Value,
    parameters_to_context,
)
from ..utils import print_notes, print_stage_header, print_step, print_success
from .matcher import PathMatcher
from .templates import RENDER_ERRORS, TemplateRenderer

VCS_DIRECTORIES = frozenset({".git"})


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------


def iter_source_entries(
    template_dir: str | Path,
    exclude: PathMatcher | None = None,
) -> Iterator[SourceEntry]:
    """Yield the template tree in stable pre-order (sorted by name).

    Skipped: the descriptor file at the root, anything inside a ``.git``
    directory, and every path matched by *exclude*.  An excluded directory
    is pruned, so none of its descendants are ever visited.  Symlinked
    directories are yielded but not descended into.
    """
    root = Path(template_dir)
    yield from _walk(root, PurePosixPath(), exclude or PathMatcher.compile([]))


def _walk(root: Path, relative_dir: PurePosixPath, exclude: PathMatcher) -> Iterator[SourceEntry]:
    directory = root / relative_dir
    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError as exc:
        raise ScaffoldIOError("open", directory, str(exc)) from exc

    for entry in entries:
        relative_path = relative_dir / entry.name
        if entry.name in VCS_DIRECTORIES:
            continue
        if relative_path == PurePosixPath(SCAFFOLD_FILENAME):
            continue
        if exclude.matches(relative_path):
            continue

        try:
            mode = entry.stat().st_mode
            is_dir = entry.is_dir()
        except OSError as exc:
            raise ScaffoldIOError("open", Path(entry.path), str(exc)) from exc

        if is_dir:
            yield SourceEntry(relative_path=relative_path, kind=EntryKind.DIRECTORY, mode=mode)
            if not entry.is_symlink():
                yield from _walk(root, relative_path, exclude)
            continue

        try:
            raw_bytes = Path(entry.path).read_bytes()
        except OSError as exc:
            raise ScaffoldIOError("open", Path(entry.path), str(exc)) from exc
        yield SourceEntry(
            relative_path=relative_path,
            kind=EntryKind.FILE,
            mode=mode,
            raw_bytes=raw_bytes,
        )


# ---------------------------------------------------------------------------
# Per-run state
# ---------------------------------------------------------------------------


@dataclass
class _Run:
    template_dir: Path
    params: dict[str, Value]
    target_root: Optional[Path]
    policy: ConflictPolicy
    hooks_pre: list[str]
    hooks_post: list[str]
    disable_templating: PathMatcher
    exclude: PathMatcher
    notes: Optional[str]
    renderer: TemplateRenderer
    target_dir: Path = field(default_factory=Path)
    context: dict[str, Any] = field(default_factory=dict)
    created_dirs: set[Path] = field(default_factory=set)
    directories_created: list[Path] = field(default_factory=list)
    files_written: list[Path] = field(default_factory=list)
    files_skipped: list[Path] = field(default_factory=list)
    rendered_notes: Optional[str] = None


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class MaterializationEngine:
    """Produces a target tree from a template tree and a parameter set.

    The renderer and hook runner are collaborators: pass substitutes to
    observe or replace template rendering and process spawning.
    """

    STAGES: tuple[str, ...] = ("resolve_target", "pre_hooks", "tree", "notes", "post_hooks")

    def __init__(
        self,
        renderer: TemplateRenderer | None = None,
        hook_runner: HookRunner | None = None,
    ) -> None:
        self.renderer = renderer
        self.hook_runner = hook_runner or HookRunner()

    # -- Public API --------------------------------------------------------

    def materialize(
        self,
        template_dir: str | Path,
        params: dict[str, Value],
        target_root: str | Path | None = None,
        conflict_policy: ConflictPolicy = ConflictPolicy.FAIL,
        hooks_pre: Sequence[str] = (),
        hooks_post: Sequence[str] = (),
        disable_templating: PathMatcher | None = None,
        exclude: PathMatcher | None = None,
        notes: Optional[str] = None,
    ) -> MaterializationResult:
        """Run every stage in order and return a summary of what was done.

        Args:
            template_dir: Root of the template tree.
            params: Resolved parameters; must contain a ``name``.
            target_root: Destination directory.  Defaults to ``./<name>``.
            conflict_policy: How existing directories and files are handled.
            hooks_pre: Commands run in the target directory before any
                entry is materialized.
            hooks_post: Commands run after every entry is materialized.
            disable_templating: Files whose content is copied verbatim.
            exclude: Paths never copied (directories prune their subtree).
            notes: Notes template rendered with the final parameters.

        Raises:
            MaterializationError: On any filesystem, encoding or render
                failure.
            HookFailure: When a hook cannot be spawned or exits non-zero.
        """
        if "name" not in params:
            raise ValueError("The parameter set must contain a project 'name'")

        template_path = Path(template_dir)
        run = _Run(
            template_dir=template_path,
            params=dict(params),
            target_root=Path(target_root) if target_root is not None else None,
            policy=conflict_policy,
            hooks_pre=list(hooks_pre),
            hooks_post=list(hooks_post),
            disable_templating=disable_templating or PathMatcher.compile([]),
            exclude=exclude or PathMatcher.compile([]),
            notes=notes,
            renderer=self.renderer or TemplateRenderer(template_path),
        )

        for stage in self.STAGES:
            getattr(self, f"_stage_{stage}")(run)

        return MaterializationResult(
            target_dir=run.target_dir,
            directories_created=run.directories_created,
            files_written=run.files_written,
            files_skipped=run.files_skipped,
            notes=run.rendered_notes,
            parameters=run.params,
        )

    # -- Stages ------------------------------------------------------------

    def _stage_resolve_target(self, run: _Run) -> None:
        name = str(run.params["name"])
        target = run.target_root if run.target_root is not None else Path.cwd() / name

        if target.exists():
            if run.policy is ConflictPolicy.FAIL:
                raise DirectoryExistsError(target)
            if run.policy is ConflictPolicy.FORCE:
                print_step(f"Override directory {target}")
                self._remove(target)
            else:
                print_step(f"Append to directory {target}")
        else:
            print_step(f"Creating directory {target}")

        try:
            target.mkdir(parents=True, exist_ok=True)
            target = target.resolve(strict=True)
        except OSError as exc:
            raise ScaffoldIOError("create", target, str(exc)) from exc

        run.target_dir = target
        run.created_dirs.add(target)
        run.params["target_dir"] = StringValue(value=str(target))
        run.context = parameters_to_context(run.params)

    def _stage_pre_hooks(self, run: _Run) -> None:
        self._run_hooks(run, run.hooks_pre, "pre_hooks", "Triggering pre-hooks")

    def _stage_tree(self, run: _Run) -> None:
        print_stage_header("tree", "Templating files")
        for entry in iter_source_entries(run.template_dir, run.exclude):
            if entry.is_dir:
                self._materialize_directory(run, entry)
            else:
                self._materialize_file(run, entry)
        print_success(f"Your project {run.params['name']} has been generated successfully")

    def _stage_notes(self, run: _Run) -> None:
        if run.notes:
            run.rendered_notes = self._render(
                run, run.notes, TemplateRenderError.NOTES, "template.notes"
            )
            print_notes(run.rendered_notes)

    def _stage_post_hooks(self, run: _Run) -> None:
        self._run_hooks(run, run.hooks_post, "post_hooks", "Triggering post-hooks")

    # -- Entries -----------------------------------------------------------

    def _materialize_directory(self, run: _Run, entry: SourceEntry) -> None:
        destination = self._destination(run, entry)
        # Already produced by this run (target root, or two template
        # directories rendering to the same name).
        if destination in run.created_dirs:
            return

        if destination.exists():
            if run.policy is ConflictPolicy.APPEND:
                return
            if run.policy is ConflictPolicy.FORCE:
                self._remove(destination)

        try:
            destination.mkdir(parents=True)
        except OSError as exc:
            raise ScaffoldIOError("create", destination, str(exc)) from exc
        run.created_dirs.add(destination)
        run.directories_created.append(destination)

    def _materialize_file(self, run: _Run, entry: SourceEntry) -> None:
        raw_bytes = entry.raw_bytes or b""
        location = entry.relative_path.as_posix()

        if run.disable_templating.matches(entry.relative_path):
            content = raw_bytes
        else:
            try:
                text = raw_bytes.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise InvalidEncodingError(run.template_dir / entry.relative_path) from exc
            content = self._render(run, text, TemplateRenderError.CONTENT, location).encode("utf-8")

        destination = self._destination(run, entry)
        if destination.exists() and run.policy is ConflictPolicy.APPEND:
            run.files_skipped.append(destination)
            return

        if not destination.parent.is_dir():
            try:
                destination.parent.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise ScaffoldIOError("create", destination.parent, str(exc)) from exc

        try:
            handle = open(destination, "wb")
        except OSError as exc:
            raise ScaffoldIOError("open", destination, str(exc)) from exc
        with handle:
            try:
                handle.write(content)
            except OSError as exc:
                raise ScaffoldIOError("write", destination, str(exc)) from exc

        try:
            os.chmod(destination, stat.S_IMODE(entry.mode))
        except OSError as exc:
            raise ScaffoldIOError("chmod", destination, str(exc)) from exc
        run.files_written.append(destination)

    def _destination(self, run: _Run, entry: SourceEntry) -> Path:
        try:
            relative = run.renderer.render_path(entry.relative_path, run.context)
        except RENDER_ERRORS as exc:
            raise TemplateRenderError(
                TemplateRenderError.PATH, entry.relative_path.as_posix(), str(exc)
            ) from exc
        return run.target_dir / relative

    # -- Helpers -----------------------------------------------------------

    def _render(self, run: _Run, text: str, target: str, location: str) -> str:
        try:
            return run.renderer.render_string(text, run.context)
        except RENDER_ERRORS as exc:
            raise TemplateRenderError(target, location, str(exc)) from exc

    def _run_hooks(self, run: _Run, commands: list[str], stage: str, title: str) -> None:
        if not commands:
            return
        print_stage_header(stage, title)
        rendered = [
            self._render(run, command, TemplateRenderError.HOOK, command) for command in commands
        ]
        for command in rendered:
            print_step(command)
            self.hook_runner.run(command, cwd=run.target_dir)

    @staticmethod
    def _remove(path: Path) -> None:
        try:
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path)
            else:
                path.unlink()
        except OSError as exc:
            raise ScaffoldIOError("remove", path, str(exc)) from exc
