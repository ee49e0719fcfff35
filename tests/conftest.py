from __future__ import annotations

from pathlib import Path

import pytest

from bit2.shell import CommandError, CommandResult


class FakeRunner:
    """
    Stand-in for `bit2.shell.run`.

    `responses` maps a command prefix (tuple) to a stdout string, a return code,
    a CommandResult or an exception instance. The longest matching prefix wins;
    unmatched commands succeed with empty output.
    """

    def __init__(self, responses: dict[tuple[str, ...], object] | None = None) -> None:
        self.responses = dict(responses or {})
        self.calls: list[list[str]] = []
        self.inputs: list[str | None] = []

    def __call__(self, cmd, *, cwd=None, env=None, input_text=None, check=True) -> CommandResult:
        cmd = list(cmd)
        self.calls.append(cmd)
        self.inputs.append(input_text)

        resp: object = ""
        for prefix in sorted(self.responses, key=len, reverse=True):
            if tuple(cmd[: len(prefix)]) == prefix:
                resp = self.responses[prefix]
                break

        if isinstance(resp, BaseException):
            raise resp
        if isinstance(resp, CommandResult):
            result = resp
        elif isinstance(resp, int):
            result = CommandResult(returncode=resp, stdout="", stderr="error" if resp else "")
        else:
            result = CommandResult(returncode=0, stdout=str(resp))

        if check and not result.ok:
            raise CommandError(cmd, result.stderr or result.stdout, result.returncode)
        return result

    def called(self, *prefix: str) -> list[list[str]]:
        return [c for c in self.calls if tuple(c[: len(prefix)]) == prefix]


@pytest.fixture()
def fake_runner():
    return FakeRunner


@pytest.fixture()
def project_dir(tmp_path: Path) -> Path:
    """A freshly scaffolded project (no bun install) with dev.db initialized."""
    from bit2.project import scaffold_project

    return scaffold_project("my-app", tmp_path, install=False)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in ("TURSO_DATABASE_URL", "NODE_ENV", "GITHUB_TOKEN", "DEBUG"):
        monkeypatch.delenv(var, raising=False)
