"""
turso.py

Responsibility: Wrap the `turso` CLI.

This module must be the only place that builds `turso ...` command lines or parses
their output. Output parsing is deliberately loose (regex / strip) because the CLI's
human-readable format is not a stable interface.
"""

from __future__ import annotations

import re

from bit2 import shell
from bit2.shell import CommandError, Runner

_LOCATION_RE = re.compile(r"Locations?:\s*(.+)")
_URL_RE = re.compile(r"(libsql://\S+)")


class TursoCLI:
    def __init__(self, runner: Runner | None = None) -> None:
        self._run = runner or shell.run

    def _out(self, *args: str) -> str:
        return self._run(["turso", *args]).stdout.strip()

    def is_installed(self) -> bool:
        return shell.succeeds(["turso", "--version"], runner=self._run)

    def is_authenticated(self) -> bool:
        return shell.succeeds(["turso", "auth", "whoami"], runner=self._run)

    def database_exists(self, name: str) -> bool:
        return shell.succeeds(["turso", "db", "show", name], runner=self._run)

    def create_database(self, name: str) -> None:
        self._run(["turso", "db", "create", name])

    def destroy_database(self, name: str) -> None:
        self._run(["turso", "db", "destroy", name, "--yes"])

    def database_url(self, name: str) -> str:
        out = self._out("db", "show", "--url", name)
        m = _URL_RE.search(out)
        return m.group(1) if m else out

    def create_token(self, name: str) -> str:
        return self._out("db", "tokens", "create", name)

    def location(self, name: str) -> str | None:
        """
        Primary location from `turso db show`, or None if the output has none.
        """
        try:
            out = self._out("db", "show", name)
        except CommandError:
            return None
        m = _LOCATION_RE.search(out)
        return m.group(1).strip() if m else None

    def execute(self, name: str, statement: str) -> str:
        # Passed as a separate argv entry, so quotes in the statement need no escaping.
        return self._out("db", "shell", name, statement)

    def open_shell(self, name: str) -> int:
        return shell.run_interactive(["turso", "db", "shell", name])
