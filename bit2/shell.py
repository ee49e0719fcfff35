"""
shell.py

Responsibility: Run external CLIs (`bun`, `git`, `turso`, `gh`, `wrangler`, ...).

Every subprocess bit2 starts goes through this module so failures surface uniformly
as `CommandError` and every command is logged at DEBUG level.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

logger = logging.getLogger(__name__)


class CommandError(RuntimeError):
    def __init__(self, cmd: Sequence[str], output: str = "", returncode: int | None = None) -> None:
        self.cmd = list(cmd)
        self.output = output
        self.returncode = returncode
        msg = f"Command failed: {' '.join(self.cmd)}"
        if output.strip():
            msg += f"\n\n{output.strip()}"
        super().__init__(msg)


@dataclass(frozen=True)
class CommandResult:
    returncode: int
    stdout: str
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


Runner = Callable[..., CommandResult]


def run(
    cmd: Sequence[str],
    *,
    cwd: str | Path | None = None,
    env: dict[str, str] | None = None,
    input_text: str | None = None,
    check: bool = True,
) -> CommandResult:
    """
    Run a subprocess command and capture its output.

    Raises `CommandError` if the executable cannot be found, or on a non-zero exit
    status when `check` is true.
    """
    logger.debug("$ %s", " ".join(cmd))
    try:
        proc = subprocess.run(
            list(cmd),
            cwd=str(cwd) if cwd is not None else None,
            env=env,
            input=input_text,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
    except FileNotFoundError as e:
        raise CommandError(cmd, f"{cmd[0]}: command not found") from e

    result = CommandResult(returncode=proc.returncode, stdout=proc.stdout or "", stderr=proc.stderr or "")
    if check and not result.ok:
        raise CommandError(cmd, result.stderr or result.stdout, proc.returncode)
    return result


def run_interactive(cmd: Sequence[str], *, cwd: str | Path | None = None, env: dict[str, str] | None = None) -> int:
    """
    Run a command attached to the current terminal (dev server, database shell).
    """
    logger.debug("$ %s", " ".join(cmd))
    try:
        return subprocess.call(list(cmd), cwd=str(cwd) if cwd is not None else None, env=env)
    except FileNotFoundError as e:
        raise CommandError(cmd, f"{cmd[0]}: command not found") from e


def which(name: str) -> bool:
    return shutil.which(name) is not None


def succeeds(cmd: Sequence[str], *, runner: Runner | None = None, cwd: str | Path | None = None) -> bool:
    """
    True if `cmd` runs and exits 0. Used for `whoami`-style probes.
    """
    try:
        return (runner or run)(cmd, cwd=cwd, check=False).ok
    except CommandError:
        return False
