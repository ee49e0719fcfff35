"""
git.py

Responsibility: Local git operations on a generated project (init, commit, remote, push).

Repository hosting (GitHub REST API, `glab`) lives in `github_client.py` and
`deploy.py`; this module only talks to the local `git` binary.
"""

from __future__ import annotations

from pathlib import Path

from bit2 import shell
from bit2.shell import CommandError, Runner


class Git:
    def __init__(self, cwd: str | Path, runner: Runner | None = None) -> None:
        self.cwd = Path(cwd)
        self._run = runner or shell.run

    def _git(self, *args: str, check: bool = True) -> shell.CommandResult:
        return self._run(["git", *args], cwd=self.cwd, check=check)

    def is_repo(self) -> bool:
        return shell.succeeds(["git", "rev-parse", "--is-inside-work-tree"], runner=self._run, cwd=self.cwd)

    def init_and_commit(self, message: str = "Initial commit") -> None:
        """
        Initialize the repository on `main` if needed and commit everything.
        A clean tree is not an error.
        """
        if not self.is_repo():
            self._git("init")
        self._git("checkout", "-B", "main")
        self._git("add", "-A")
        if self.has_uncommitted_changes():
            self._git("commit", "-m", message)

    def has_uncommitted_changes(self) -> bool:
        return bool(self._git("status", "--porcelain").stdout.strip())

    def remote_url(self, name: str = "origin") -> str | None:
        res = self._git("remote", "get-url", name, check=False)
        return res.stdout.strip() if res.ok and res.stdout.strip() else None

    def set_remote(self, url: str, name: str = "origin") -> None:
        if self.remote_url(name) is None:
            self._git("remote", "add", name, url)
        else:
            self._git("remote", "set-url", name, url)

    def push(self, branch: str = "main", remote: str = "origin") -> None:
        self._git("push", "-u", remote, branch)

    def last_commit(self) -> str | None:
        try:
            out = self._git("log", "--oneline", "-1").stdout.strip()
        except CommandError:
            return None
        return out or None

    def unpushed_commits(self, branch: str = "main", remote: str = "origin") -> int | None:
        """
        Number of local commits not on `remote/branch`, or None if that ref is unknown.
        """
        res = self._git("rev-list", "--count", f"{remote}/{branch}..HEAD", check=False)
        if not res.ok:
            return None
        try:
            return int(res.stdout.strip())
        except ValueError:
            return None
