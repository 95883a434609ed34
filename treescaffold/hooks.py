"""Pre- and post-generation hook execution.

Hook commands are split into an argv using POSIX shell-word rules (quotes
are honoured; pipes, redirections and other operators are not interpreted)
and spawned directly, without a shell, in an explicit working directory.
Output is inherited from the parent process so the user sees it live.
"""

from __future__ import annotations

import shlex
import subprocess
from pathlib import Path

from .errors import HookFailure


def split_command(command_line: str) -> list[str]:
    """Split *command_line* into an argv list.

    Raises:
        HookFailure: If the quoting is unbalanced or nothing is left after
            splitting.
    """
    try:
        argv = shlex.split(command_line)
    except ValueError as exc:
        raise HookFailure(command_line, reason=f"cannot split command line: {exc}") from exc
    if not argv:
        raise HookFailure(command_line, reason="empty after splitting")
    return argv


class HookRunner:
    """Spawns hook commands one at a time and waits for each to finish.

    There is no timeout: a hook that never exits blocks the run.
    """

    def run(self, command_line: str, cwd: str | Path) -> int:
        """Run *command_line* in *cwd* and return its exit status.

        Raises:
            HookFailure: If the program cannot be spawned or exits non-zero.
        """
        argv = split_command(command_line)
        try:
            completed = subprocess.run(argv, cwd=str(cwd), check=False)
        except FileNotFoundError as exc:
            raise HookFailure(command_line, reason=f"command not found: {argv[0]}") from exc
        except PermissionError as exc:
            raise HookFailure(command_line, reason=f"permission denied: {argv[0]}") from exc
        except OSError as exc:
            raise HookFailure(command_line, reason=str(exc)) from exc

        if completed.returncode != 0:
            raise HookFailure(command_line, returncode=completed.returncode)
        return completed.returncode
