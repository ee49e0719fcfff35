"""
project_spec.py

Responsibility: Load an optional project spec markdown file for `bit2 new --spec`.

A spec lets a project be scaffolded repeatably from a checked-in file instead of CLI
flags. It prefers YAML frontmatter at the top of the markdown file and falls back to
a tiny "key: value" parser (best-effort).

    ---
    project_name: my-app
    description: Quotes for every day
    provider: cloudflare
    git:
      host: github
      private: true
    variables:
      site_title: Daily Stoic
    ---
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

PROVIDERS = ("cloudflare", "vercel", "netlify")
GIT_HOSTS = ("github", "gitlab")


class SpecError(ValueError):
    pass


@dataclass(frozen=True)
class GitSpec:
    """Git hosting configuration from the `git:` frontmatter key."""

    host: str = "github"
    private: bool = True


@dataclass(frozen=True)
class ProjectSpec:
    project_name: str
    description: str = ""
    provider: str = "cloudflare"
    git: GitSpec = field(default_factory=GitSpec)
    variables: dict[str, Any] = field(default_factory=dict)


def _parse_yaml_frontmatter(text: str) -> tuple[dict[str, Any] | None, str]:
    """
    If the markdown begins with YAML frontmatter delimited by '---', parse it.
    Returns (frontmatter_dict_or_none, remaining_markdown_text).
    """
    text = text.replace("\r\n", "\n")
    if not text.startswith("---\n"):
        return None, text

    end = text.find("\n---\n", 4)
    if end == -1:
        raise SpecError("YAML frontmatter starts with '---' but no closing '---' was found.")

    try:
        data = yaml.safe_load(text[4:end]) or {}
    except yaml.YAMLError as e:
        raise SpecError(f"Invalid YAML frontmatter: {e}") from e
    if not isinstance(data, dict):
        raise SpecError("YAML frontmatter must be a mapping/object at the top level.")
    return data, text[end + len("\n---\n") :]


def _best_effort_kv_parse(text: str) -> dict[str, Any]:
    """
    Reads lines like `key: value` (ignores markdown headings and empty lines) and
    stops at the first blank line after having found at least one pair.
    """
    out: dict[str, Any] = {}
    found_any = False
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            if found_any and not line:
                break
            continue
        if ":" not in line:
            continue
        k, v = line.split(":", 1)
        k = k.strip()
        if not k:
            continue
        found_any = True
        out[k] = v.strip()
    return out


def _mapping(data: dict[str, Any], key: str) -> dict[str, Any]:
    raw = data.get(key) or {}
    if not isinstance(raw, dict):
        raise SpecError(f"`{key}` must be an object/mapping when provided.")
    return raw


def parse_project_spec(spec_path: str | Path) -> ProjectSpec:
    path = Path(spec_path)
    if not path.exists():
        raise SpecError(f"Spec file does not exist: {path}")
    text = path.read_text(encoding="utf-8")

    frontmatter, _rest = _parse_yaml_frontmatter(text)
    data = frontmatter if frontmatter is not None else _best_effort_kv_parse(text)

    project_name = str(data.get("project_name") or data.get("name") or "").strip()
    if not project_name:
        raise SpecError("Spec must define `project_name` (YAML frontmatter recommended).")

    provider = str(data.get("provider") or "cloudflare").strip().lower()
    if provider not in PROVIDERS:
        raise SpecError(f"Unknown provider {provider!r}; expected one of: {', '.join(PROVIDERS)}")

    git_raw = _mapping(data, "git")
    host = str(git_raw.get("host") or "github").strip().lower()
    if host not in GIT_HOSTS:
        raise SpecError(f"Unknown git host {host!r}; expected one of: {', '.join(GIT_HOSTS)}")

    vars_raw = _mapping(data, "variables")
    # Stable key order for the renderer.
    variables = dict(sorted(vars_raw.items(), key=lambda kv: str(kv[0])))

    return ProjectSpec(
        project_name=project_name,
        description=str(data.get("description") or "").strip(),
        provider=provider,
        git=GitSpec(host=host, private=bool(git_raw.get("private", True))),
        variables=variables,
    )
