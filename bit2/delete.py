"""
delete.py

Responsibility: `bit2 delete`, removing a project's cloud resources and local files.

Works from inside the project (`bit2 delete`) or from its parent directory
(`bit2 delete NAME`). Cloud resource failures are reported with a manual URL and do
not stop the remaining deletions.
"""

from __future__ import annotations

import argparse
import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from bit2.deploy_state import STATE_FILE, read_deployment_config
from bit2.errors import Bit2Error, ErrorCode
from bit2.github_client import GitHubClient, GitHubError, resolve_github_token
from bit2.project import project_name_from
from bit2.providers import PROVIDERS, Provider, get_provider
from bit2.shell import CommandError
from bit2.turso import TursoCLI
from bit2.validation import validate_github_repo

logger = logging.getLogger(__name__)


@dataclass
class DeletionItem:
    kind: str
    name: str
    delete: Callable[[], None]
    manual_url: str = ""
    details: list[str] = field(default_factory=list)


def _turso_item(turso: TursoCLI, name: str) -> DeletionItem | None:
    if not (turso.is_authenticated() and turso.database_exists(name)):
        return None
    return DeletionItem(
        kind="Turso Database",
        name=name,
        delete=lambda: turso.destroy_database(name),
        manual_url="https://app.turso.tech",
        details=["All data will be permanently lost"],
    )


def _github_item(name: str, recorded_remote: str = "") -> DeletionItem | None:
    """
    The repository recorded by `bit2 deploy`, or `<viewer>/<name>` when nothing is
    recorded. A recorded non-GitHub remote (GitLab) means there is no GitHub repo.
    """
    recorded = validate_github_repo(recorded_remote) if recorded_remote else None
    if recorded is not None and not recorded.valid:
        return None
    token = resolve_github_token()
    if not token:
        return None
    try:
        gh = GitHubClient(token)
        if recorded is not None:
            owner, name = recorded.owner, recorded.repo
        else:
            owner = gh.viewer_login()
        if gh.get_repo(owner, name) is None:
            return None
    except GitHubError as e:
        logger.debug("Skipping GitHub lookup: %s", e)
        return None

    def delete() -> None:
        try:
            gh.delete_repo(owner, name)
        except GitHubError as e:
            if e.status_code == 403:
                raise Bit2Error(
                    str(e),
                    ErrorCode.AUTH_FAILED,
                    [
                        "Grant delete_repo permission: gh auth refresh -h github.com -s delete_repo",
                        f"Or delete manually: https://github.com/{owner}/{name}/settings",
                    ],
                ) from e
            raise

    return DeletionItem(
        kind="GitHub Repository",
        name=f"{owner}/{name}",
        delete=delete,
        manual_url=f"https://github.com/{owner}/{name}/settings",
        details=["All code history will be permanently lost"],
    )


def _provider_item(provider: Provider, name: str) -> DeletionItem | None:
    if not (provider.is_authenticated() and provider.project_exists(name)):
        return None
    return DeletionItem(
        kind=provider.display_name,
        name=name,
        delete=lambda: provider.delete_project(name),
        manual_url=provider.dashboard_url(name),
        details=[f"Live site: {provider.canonical_url(name)}"],
    )


def gather_deletion_plan(name: str, project_dir: Path) -> list[DeletionItem]:
    plan: list[DeletionItem] = []
    config = read_deployment_config(project_dir / STATE_FILE)

    turso_item = _turso_item(TursoCLI(), name)
    if turso_item:
        plan.append(turso_item)

    gh_item = _github_item(name, config.git_remote if config else "")
    if gh_item:
        plan.append(gh_item)

    # The recorded provider if there is one; otherwise probe all of them.
    names = [config.provider] if config and config.provider else list(PROVIDERS)
    for provider_name in names:
        item = _provider_item(get_provider(provider_name), name)
        if item:
            plan.append(item)
    return plan


def confirm_deletion(name: str, input_fn: Callable[[str], str] = input) -> bool:
    logger.warning("⚠️  This action cannot be undone!")
    try:
        answer = input_fn(f'Type "{name}" to confirm deletion: ')
    except EOFError:
        return False
    return answer.strip() == name


def _resolve_target(project_name: str | None) -> tuple[str, Path, bool]:
    if project_name:
        project_dir = Path.cwd() / project_name
        if not project_dir.is_dir():
            raise Bit2Error(f'Directory "{project_name}" not found.', ErrorCode.FILE_NOT_FOUND)
        if not (project_dir / "package.json").exists():
            raise Bit2Error(
                f'"{project_name}" doesn\'t appear to be a bit2 project (no package.json).',
                ErrorCode.INVALID_INPUT,
            )
        return project_name_from(project_dir), project_dir.resolve(), False

    root = Path.cwd()
    return project_name_from(root), root.resolve(), True


def delete_cmd(args: argparse.Namespace) -> int:
    logger.info("∴ Delete bit2 project and infrastructure")
    logger.info("")
    name, project_dir, inside = _resolve_target(args.project_name)

    plan = gather_deletion_plan(name, project_dir)

    logger.info("DANGER ZONE")
    logger.info("⚠️  This will permanently delete:")
    if not plan:
        logger.info("Nothing to delete - no cloud resources found.")
    for item in plan:
        logger.info("  • %s: %s", item.kind, item.name)
        for detail in item.details:
            logger.info("    %s", detail)
    logger.info("  • Local project files: %s", project_dir)
    logger.info("")

    if not args.force and not confirm_deletion(name):
        logger.info("Deletion cancelled.")
        return 0

    logger.info("🗑️  Starting deletion process...")
    for item in plan:
        try:
            item.delete()
        except (CommandError, GitHubError, Bit2Error) as e:
            logger.warning("⚠ Failed to delete %s: %s", item.kind, e)
            for step in getattr(e, "recovery_steps", []):
                logger.info("  • %s", step)
            if item.manual_url:
                logger.info("  You may need to delete manually: %s", item.manual_url)
        else:
            logger.info("✔ %s deleted", item.kind)

    if inside:
        os.chdir(project_dir.parent)
    try:
        shutil.rmtree(project_dir)
    except OSError as e:
        logger.warning("⚠ Failed to remove local files: %s", e)
        logger.info("Please manually delete: %s", project_dir)
    else:
        logger.info("✔ Local project files removed")

    logger.info("")
    logger.info('✅ Project "%s" has been removed.', name)
    if inside:
        logger.info("📁 Your shell is still in the deleted directory. Run: cd ..")
    return 0
