"""
deploy_state.py

Responsibility: Read and write `.env.bit2`, the marker file that remembers a project's
deployment between invocations (`status`, `open`, `logs`, re-running `deploy`).

Format: `BIT2_<KEY>=<value>` lines. Other lines are ignored, values may contain `=`.
Auth tokens are never stored here.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path

STATE_FILE = ".env.bit2"
_PREFIX = "BIT2_"


@dataclass(frozen=True)
class DeploymentConfig:
    project_name: str = ""
    provider: str = ""
    deployment_url: str = ""
    created_at: str = ""
    database_url: str = ""
    git_remote: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.project_name and self.provider)


_KEYS = {f.name for f in fields(DeploymentConfig)}


def parse_deployment_config(text: str) -> DeploymentConfig:
    values: dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line.startswith(_PREFIX) or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key[len(_PREFIX) :].strip().lower()
        if key in _KEYS:
            values[key] = value.strip()
    return DeploymentConfig(**values)


def read_deployment_config(path: str | Path = STATE_FILE) -> DeploymentConfig | None:
    """
    Returns None if the file does not exist.
    """
    p = Path(path)
    if not p.exists():
        return None
    return parse_deployment_config(p.read_text(encoding="utf-8"))


def write_deployment_config(config: DeploymentConfig, path: str | Path = STATE_FILE) -> None:
    lines = ["# Written by bit2 deploy. Safe to commit: contains no secrets."]
    for f in fields(DeploymentConfig):
        value = getattr(config, f.name)
        if value:
            lines.append(f"{_PREFIX}{f.name.upper()}={value}")
    Path(path).write_text("\n".join(lines) + "\n", encoding="utf-8")
