"""Template source acquisition.

A template location is either a local directory or a git repository URL
ending in ``.git``.  Repositories are cloned with the ``git`` CLI into a
deterministic temporary directory (one per URL), optionally checked out at a
given commit, tag or branch.  An in-repository subpath may point at a
template that does not live at the repository root.
"""

from __future__ import annotations

import hashlib
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Optional

from .errors import SourceError
from .utils import print_step


def is_git_location(location: str) -> bool:
    """Return ``True`` if *location* should be cloned rather than read locally."""
    return location.rstrip("/").endswith(".git")


def clone_dir_for(location: str) -> Path:
    """Temporary clone directory for *location* (stable across runs)."""
    digest = hashlib.md5(location.encode("utf-8")).hexdigest()
    return Path(tempfile.gettempdir()) / f"treescaffold-{digest}"


def _run_git(*args: str, cwd: str | Path | None = None) -> str:
    """Run a git command and return its stdout.

    Raises SourceError if git is missing or the command exits non-zero.
    """
    cmd = ["git", *args]
    cmd_str = " ".join(cmd)
    try:
        completed = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd else None,
            capture_output=True,
            text=True,
            check=False,
        )
    except FileNotFoundError as exc:
        raise SourceError("git is not installed or not on PATH", command=cmd_str) from exc

    stderr = completed.stderr.strip()
    if completed.returncode != 0:
        raise SourceError(
            f"Git command failed (exit {completed.returncode}): {cmd_str}\n{stderr}",
            command=cmd_str,
            stderr=stderr,
        )
    return completed.stdout.strip()


def clone_repository(location: str, target: Path, git_ref: Optional[str] = None) -> Path:
    """Clone *location* into *target*, replacing anything already there."""
    if target.exists():
        shutil.rmtree(target)
    target.parent.mkdir(parents=True, exist_ok=True)

    print_step(f"Cloning repository {location}")
    _run_git("clone", "--quiet", location, str(target))
    if git_ref:
        _run_git("checkout", "--quiet", git_ref, cwd=target)
    return target


def resolve_template_dir(
    location: str,
    subpath: str | Path | None = None,
    git_ref: Optional[str] = None,
) -> Path:
    """Return the local directory holding the template.

    Raises:
        SourceError: If cloning fails or the resulting directory is missing.
    """
    if is_git_location(location):
        root = clone_repository(location, clone_dir_for(location), git_ref)
    else:
        if git_ref:
            raise SourceError(f"A git ref can only be used with a repository URL: {location}")
        root = Path(location).expanduser()

    template_dir = root / subpath if subpath else root
    if not template_dir.is_dir():
        raise SourceError(f"Template directory not found: {template_dir}")
    return template_dir.resolve()
