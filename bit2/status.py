"""
status.py

Responsibility: `bit2 status`, a read-only health report for the current project.

Each check returns a `CheckResult`; a check that raises is reported as failed and
never aborts the remaining checks.
"""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable

from bit2.database import LOCAL_DB_FILE, SCHEMA_FILE
from bit2.deploy_state import STATE_FILE, read_deployment_config
from bit2.git import Git
from bit2.project import REQUIRED_FILES, read_package_json
from bit2.providers import get_provider
from bit2.turso import TursoCLI
from bit2.validation import validate_github_repo

logger = logging.getLogger(__name__)

SUCCESS = "success"
WARNING = "warning"
ERROR = "error"

_ICONS = {SUCCESS: "✔", WARNING: "⚠", ERROR: "✖"}

REQUIRED_DEPENDENCIES = ("astro", "@libsql/client")
ADAPTER_PROVIDERS = ("cloudflare", "vercel", "netlify")


@dataclass(frozen=True)
class CheckResult:
    status: str
    message: str
    details: list[str] = field(default_factory=list)


def check_project_structure(root: Path) -> CheckResult:
    missing = [f for f in REQUIRED_FILES if not (root / f).exists()]
    if not missing:
        return CheckResult(SUCCESS, "All required files present")
    return CheckResult(ERROR, f"Missing {len(missing)} file(s)", [f"Missing: {f}" for f in missing])


def check_dependencies(root: Path) -> CheckResult:
    pkg = read_package_json(root)
    deps = pkg.get("dependencies") or {}
    missing = [d for d in REQUIRED_DEPENDENCIES if d not in deps]
    if missing:
        return CheckResult(ERROR, f"Missing dependencies: {', '.join(missing)}")

    all_deps = {**deps, **(pkg.get("devDependencies") or {})}
    has_adapter = any(d.startswith("@astrojs/") and any(p in d for p in ADAPTER_PROVIDERS) for d in all_deps)
    suffix = " with deployment adapter" if has_adapter else ""
    if not (root / "node_modules").exists():
        return CheckResult(WARNING, "Dependencies need installation", ["Run: bun install"])
    return CheckResult(SUCCESS, f"Dependencies installed{suffix}")


def check_database(root: Path) -> CheckResult:
    if not (root / SCHEMA_FILE).exists():
        return CheckResult(ERROR, "Schema file missing")
    if (root / LOCAL_DB_FILE).exists():
        return CheckResult(SUCCESS, "Local database ready")
    return CheckResult(WARNING, "Database not initialized", ["Run: bit2 migrate"])


def check_git_repo(root: Path, git: Git | None = None) -> CheckResult:
    git = git or Git(root)
    if not git.is_repo():
        return CheckResult(WARNING, "Not a git repository", ["Run: bit2 deploy OR git init"])
    if git.has_uncommitted_changes():
        return CheckResult(WARNING, "Uncommitted changes", ['Run: git add . && git commit -m "Update"'])
    remote = git.remote_url()
    if remote is None:
        return CheckResult(WARNING, "No remote repository", ["Run: bit2 deploy to create a repository"])
    repo = validate_github_repo(remote)
    details = [f"GitHub: {repo.owner}/{repo.repo}"] if repo.valid else [f"Remote: {remote}"]
    return CheckResult(SUCCESS, "Git repository with remote", details)


def check_turso_database(root: Path, turso: TursoCLI | None = None) -> CheckResult:
    turso = turso or TursoCLI()
    name = str(read_package_json(root).get("name") or "")
    if not turso.is_authenticated():
        return CheckResult(WARNING, "Not authenticated with Turso", ["Run: turso auth signup"])
    if not turso.database_exists(name):
        return CheckResult(WARNING, "Turso database not found", [f"Run: bit2 deploy OR turso db create {name}"])
    return CheckResult(
        SUCCESS,
        "Turso database exists",
        [f"Database URL: {turso.database_url(name)}", "Use bit2 db to get connection details"],
    )


def _last_deploy_info(git: Git) -> str:
    commit = git.last_commit()
    if not commit:
        return "No recent commits"
    pending = git.unpushed_commits()
    if pending is None:
        return f"{commit[:50]} (remote unknown)"
    if pending:
        return f"{commit[:50]} ({pending} commit(s) not yet pushed)"
    return f"{commit[:50]} (deployed)"


def check_deployment_config(root: Path, git: Git | None = None) -> CheckResult:
    config = read_deployment_config(root / STATE_FILE)
    if config is None or not config.is_complete:
        return CheckResult(WARNING, "No deployment configuration", ["Run: bit2 deploy to set up deployment"])

    provider = get_provider(config.provider)
    details = [
        f"Project: {config.project_name}",
        f"Provider: {provider.display_name}",
        f"Dashboard: {provider.dashboard_url(config.project_name)}",
    ]
    if config.deployment_url:
        details.append(f"URL: {config.deployment_url}")
    if config.created_at:
        try:
            created = datetime.fromisoformat(config.created_at).strftime("%Y-%m-%d")
        except ValueError:
            created = config.created_at
        details.append(f"Created: {created}")
    details.append(f"Last Deploy: {_last_deploy_info(git or Git(root))}")
    details.append("Commands: bit2 open | bit2 logs | bit2 db | bit2 deploy")
    return CheckResult(SUCCESS, f"Deployed on {config.provider}", details)


CHECKS: list[tuple[str, Callable[[Path], CheckResult]]] = [
    ("Project Structure", check_project_structure),
    ("Dependencies", check_dependencies),
    ("Database", check_database),
    ("Git Repository", check_git_repo),
    ("Turso Database", check_turso_database),
    ("Deployment Config", check_deployment_config),
]


def run_checks(root: Path) -> list[tuple[str, CheckResult]]:
    results = []
    for name, check in CHECKS:
        try:
            result = check(root)
        except Exception as e:  # noqa: BLE001
            logger.debug("Check %s raised", name, exc_info=e)
            result = CheckResult(ERROR, "Check failed", [str(e)] if str(e) else [])
        results.append((name, result))
    return results


def status_cmd(args: argparse.Namespace) -> int:
    logger.info("∴ bit2 Project Status")
    logger.info("")
    for name, result in run_checks(Path.cwd()):
        line = f"{_ICONS[result.status]} {name}: {result.message}"
        if result.status == SUCCESS:
            logger.info(line)
        elif result.status == WARNING:
            logger.warning(line)
        else:
            logger.error(line)
        for detail in result.details:
            logger.info("  %s", detail)
        logger.info("")

    logger.info("NEXT STEPS")
    logger.info("  • Local dev:  bit2 dev OR bun dev")
    logger.info("  • Database:   bit2 db info|shell|token")
    logger.info("  • Deployment: bit2 deploy OR bit2 open")
    return 0
