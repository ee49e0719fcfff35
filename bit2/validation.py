"""
validation.py

Responsibility: Validate user-supplied project names, repository URLs and database URLs.

Validators return a `ValidationResult` instead of raising so callers can decide how
to report the problem (CLI error, status warning, ...).
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_PROJECT_NAME_RE = re.compile(r"^[a-z0-9][a-z0-9._-]*$")
_RESERVED_NAMES = frozenset({"node_modules", "favicon.ico", "test", "tests"})

_GITHUB_REPO_PATTERNS = (
    re.compile(r"^https://github\.com/([^/]+)/([^/]+?)(?:\.git)?/?$"),
    re.compile(r"^git@github\.com:([^/]+)/([^/]+?)(?:\.git)?$"),
    re.compile(r"github\.com[:/]([^/]+)/([^/]+?)(?:\.git)?$"),
)

PROJECT_NAME_RULES = (
    "Must be lowercase",
    "Can contain letters, numbers, hyphens, underscores, dots",
    "Cannot start or end with dots or hyphens",
    "Examples: my-app, cool_project, app.v2",
)


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error: str = ""
    owner: str = ""
    repo: str = ""
    kind: str = ""


def validate_project_name(name: str | None) -> ValidationResult:
    if not name or not isinstance(name, str):
        return ValidationResult(False, "Project name is required")

    if len(name) > 100:
        return ValidationResult(False, "Project name must be between 1 and 100 characters")

    if not _PROJECT_NAME_RE.match(name):
        return ValidationResult(
            False,
            "Project name must be lowercase and can only contain letters, numbers, "
            "hyphens, underscores, and dots",
        )

    if name.startswith((".", "-")) or name.endswith((".", "-")):
        return ValidationResult(False, "Project name cannot start or end with a dot or hyphen")

    if name.lower() in _RESERVED_NAMES:
        return ValidationResult(False, f'"{name}" is a reserved name')

    return ValidationResult(True)


def validate_github_repo(url: str) -> ValidationResult:
    """
    Accepts https and ssh GitHub remotes, with or without a `.git` suffix.
    """
    url = url.strip()
    for pattern in _GITHUB_REPO_PATTERNS:
        m = pattern.search(url)
        if m:
            return ValidationResult(True, owner=m.group(1), repo=m.group(2))
    return ValidationResult(False, "Invalid GitHub repository URL")


def validate_database_url(url: str) -> ValidationResult:
    if url.startswith("file:"):
        return ValidationResult(True, kind="local")
    if url.startswith("libsql://") or ".turso.io" in url:
        return ValidationResult(True, kind="turso")
    return ValidationResult(False, "Invalid database URL format")
