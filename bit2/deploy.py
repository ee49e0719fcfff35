"""
deploy.py

Responsibility: `deploy`, `logs` and `open` commands.

High-level flow of `bit2 deploy`:
1) Check prerequisites (Turso CLI + login, git host credentials, provider CLI + login)
2) Create or reuse the Turso database, mint an auth token, apply the schema remotely
3) Commit the project and push it to a new (or existing) GitHub/GitLab repository
4) Create the provider project, set TURSO_* env vars and deploy
5) Record the result in `.env.bit2`

Concerns stay isolated in their own modules:
- Turso CLI: `turso.py`
- GitHub REST API: `github_client.py`
- local git: `git.py`
- hosting providers: `providers.py`
"""

from __future__ import annotations

import argparse
import logging
import re
import webbrowser
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from bit2 import shell
from bit2.database import MigrationError, RemoteDatabase, initialize_database
from bit2.deploy_state import STATE_FILE, DeploymentConfig, read_deployment_config, write_deployment_config
from bit2.errors import Bit2Error, ErrorCode
from bit2.git import Git
from bit2.github_client import GitHubClient, GitHubError, resolve_github_token, tokenized_https_remote
from bit2.project import project_name_from, project_settings, read_package_json, require_turso_auth
from bit2.providers import Provider, get_provider
from bit2.shell import CommandError
from bit2.turso import TursoCLI
from bit2.validation import validate_database_url, validate_github_repo

logger = logging.getLogger(__name__)

_GITLAB_URL_RE = re.compile(r"https://gitlab\.com/[\w./-]+")


@dataclass(frozen=True)
class DatabaseInfo:
    name: str
    url: str
    auth_token: str
    created: bool


# --------------------------------------------------------------------------- steps


def check_prerequisites(turso: TursoCLI, provider: Provider, git_host: str, *, manual: bool) -> None:
    require_turso_auth(turso)

    if not shell.which("git"):
        raise Bit2Error("git not found", ErrorCode.MISSING_DEPENDENCY, ["Install git: https://git-scm.com/downloads"])

    if git_host == "gitlab":
        if not shell.succeeds(["glab", "auth", "status"]):
            raise Bit2Error(
                "Not authenticated with GitLab",
                ErrorCode.AUTH_REQUIRED,
                ["Install the GitLab CLI (glab)", "Run: glab auth login"],
            )
    elif not resolve_github_token():
        raise Bit2Error(
            "GitHub token is required",
            ErrorCode.AUTH_REQUIRED,
            ["Set GITHUB_TOKEN", "Or log in with the GitHub CLI: gh auth login"],
        )

    if manual:
        return
    if not provider.is_available():
        raise Bit2Error(
            f"{provider.display_name} CLI not found",
            ErrorCode.MISSING_DEPENDENCY,
            [f"Install: {provider.install_hint}"],
        )
    if not provider.is_authenticated():
        raise Bit2Error(
            f"Not authenticated with {provider.display_name}",
            ErrorCode.AUTH_REQUIRED,
            [f"Run: {provider.login_hint}"],
        )


def setup_turso_database(turso: TursoCLI, name: str, project_dir: Path) -> DatabaseInfo:
    """
    Create the database on first deploy, reuse it afterwards. The schema is always
    re-applied (it is idempotent); seed data only goes into a freshly created database.
    """
    created = False
    try:
        if turso.database_exists(name):
            logger.info("Reusing Turso database %s", name)
        else:
            turso.create_database(name)
            created = True
        url = turso.database_url(name)
        token = turso.create_token(name)
    except CommandError as e:
        raise Bit2Error(f"Turso database setup failed: {e}", ErrorCode.DATABASE_CONNECTION_FAILED) from e
    if not validate_database_url(url).valid:
        raise Bit2Error(f"Unexpected database URL from turso: {url!r}", ErrorCode.DATABASE_CONNECTION_FAILED)

    try:
        initialize_database(project_dir, RemoteDatabase(turso, name), seed=created)
    except (MigrationError, FileNotFoundError) as e:
        raise Bit2Error(f"Remote migration failed: {e}", ErrorCode.DATABASE_MIGRATION_FAILED) from e

    return DatabaseInfo(name=name, url=url, auth_token=token, created=created)


def _push_github(git: Git, name: str, *, private: bool, description: str, owner: str | None) -> str:
    token = resolve_github_token()
    try:
        gh = GitHubClient(token)
        owner = owner or gh.viewer_login()
        repo = gh.get_repo(owner, name) or gh.create_repo(
            owner=owner, name=name, private=private, description=description
        )
    except GitHubError as e:
        raise Bit2Error(str(e), ErrorCode.API_ERROR) from e

    try:
        git.set_remote(tokenized_https_remote(repo.clone_url, token))
        git.push()
    except CommandError as e:
        raise Bit2Error(f"git push failed: {e}", ErrorCode.GIT_PUSH_FAILED) from e
    finally:
        # Never leave the token in .git/config.
        git.set_remote(repo.clone_url)
    return repo.html_url


def _push_gitlab(git: Git, name: str, *, private: bool) -> str:
    visibility = "--private" if private else "--public"
    try:
        out = shell.run(["glab", "repo", "create", name, visibility, "--defaultBranch", "main"], cwd=git.cwd)
    except CommandError as e:
        raise Bit2Error(f"GitLab repository creation failed: {e}", ErrorCode.API_ERROR) from e

    remote = git.remote_url()
    if remote is None:
        m = _GITLAB_URL_RE.search(out.stdout + out.stderr)
        if not m:
            raise Bit2Error("Could not determine the GitLab repository URL", ErrorCode.API_ERROR)
        remote = m.group(0).rstrip("/")
        git.set_remote(remote if remote.endswith(".git") else remote + ".git")
    try:
        git.push()
    except CommandError as e:
        raise Bit2Error(f"git push failed: {e}", ErrorCode.GIT_PUSH_FAILED) from e
    return remote.removesuffix(".git")


def setup_git_repository(
    project_dir: Path,
    name: str,
    *,
    git_host: str,
    private: bool,
    description: str = "",
    owner: str | None = None,
) -> str:
    """
    Commit the project and push it to the hosting service. Returns the repo web URL.
    """
    git = Git(project_dir)
    try:
        git.init_and_commit("Deploy with bit2")
    except CommandError as e:
        raise Bit2Error(f"git commit failed: {e}", ErrorCode.GIT_NOT_INITIALIZED) from e

    if git_host == "gitlab":
        return _push_gitlab(git, name, private=private)
    return _push_github(git, name, private=private, description=description, owner=owner)


def _has_adapter(project_dir: Path, provider: Provider) -> bool:
    pkg = read_package_json(project_dir)
    deps = {**(pkg.get("dependencies") or {}), **(pkg.get("devDependencies") or {})}
    return provider.adapter in deps


def deploy_to_provider(provider: Provider, name: str, project_dir: Path, db: DatabaseInfo) -> str:
    try:
        if not _has_adapter(project_dir, provider):
            logger.info("Adding %s adapter...", provider.adapter)
            provider.add_adapter(project_dir)
        if not provider.project_exists(name):
            provider.create_project(name, project_dir)
        provider.set_env(name, "TURSO_DATABASE_URL", db.url, project_dir)
        provider.set_env(name, "TURSO_AUTH_TOKEN", db.auth_token, project_dir)
        return provider.deploy(name, project_dir)
    except CommandError as e:
        raise Bit2Error(
            f"{provider.display_name} deployment failed: {e}",
            ErrorCode.DEPLOYMENT_FAILED,
            [f"Check the dashboard: {provider.dashboard_url(name)}"],
        ) from e


def display_manual_setup(name: str, db: DatabaseInfo) -> None:
    logger.info("")
    logger.info("🚀 Cloudflare Pages Setup Instructions:")
    logger.info("")
    logger.info("1. Go to dashboard.cloudflare.com → Workers & Pages → Create → Pages → Connect to Git")
    logger.info("2. Select repo: %s", name)
    logger.info("3. Build settings:")
    logger.info("   - Framework preset: Astro")
    logger.info("   - Build command: bun run build")
    logger.info("   - Build output directory: dist")
    logger.info("4. Environment variables:")
    logger.info("   - TURSO_DATABASE_URL: %s", db.url)
    logger.info("   - TURSO_AUTH_TOKEN: %s", db.auth_token)
    logger.info("5. Save and Deploy!")
    logger.info("")
    logger.info("✅ Auto-deploys on every push to main")


def deployment_plan(name: str, provider: Provider, git_host: str, *, manual: bool, private: bool) -> list[str]:
    steps = [
        f"Create or reuse Turso database '{name}' and apply src/db/schema.sql",
        "Create a Turso auth token",
        f"Commit the project and push to a {'private' if private else 'public'} {git_host} repository '{name}'",
    ]
    if manual:
        steps.append("Print manual Cloudflare Pages setup instructions")
    else:
        steps += [
            f"Add the {provider.adapter} adapter if missing",
            f"Create {provider.display_name} project '{name}' if missing",
            "Set TURSO_DATABASE_URL and TURSO_AUTH_TOKEN on the project",
            f"Deploy to {provider.display_name} ({provider.canonical_url(name)})",
        ]
    steps.append(f"Record the deployment in {STATE_FILE}")
    return steps


# --------------------------------------------------------------------------- commands


def _recorded_github_owner(previous: DeploymentConfig | None) -> str | None:
    if previous is None or not previous.git_remote:
        return None
    repo = validate_github_repo(previous.git_remote)
    return repo.owner if repo.valid else None


def deploy_cmd(args: argparse.Namespace) -> int:
    root = Path.cwd()
    name = project_name_from(root)
    previous = read_deployment_config(root / STATE_FILE)

    # Precedence: command line, last deployment, settings written by `bit2 new`.
    default_provider, git_settings = project_settings(root)
    recorded_provider = previous.provider if previous else ""
    provider = get_provider(args.provider or recorded_provider or default_provider or "cloudflare")
    git_host = args.git_host or git_settings.host
    private = git_settings.private and not args.public
    owner = args.github_owner or _recorded_github_owner(previous)
    manual = bool(args.local)

    if args.dry_run:
        logger.info("∴ Deployment plan for %s (dry run, nothing will be executed):", name)
        for i, step in enumerate(deployment_plan(name, provider, git_host, manual=manual, private=private), 1):
            logger.info("  %d. %s", i, step)
        return 0

    logger.info("🚀 Starting deployment of %s to %s...", name, provider.display_name)
    turso = TursoCLI()
    check_prerequisites(turso, provider, git_host, manual=manual)
    logger.info("✔ Prerequisites checked")

    db = setup_turso_database(turso, name, root)
    logger.info("✔ Turso database %s (%s)", "created" if db.created else "ready", db.url)

    description = str(read_package_json(root).get("description") or "")
    repo_url = setup_git_repository(
        root, name, git_host=git_host, private=private, description=description, owner=owner
    )
    logger.info("✔ Repository pushed: %s", repo_url)

    if manual:
        display_manual_setup(name, db)
        deployment_url = ""
    else:
        deployment_url = deploy_to_provider(provider, name, root, db)
        logger.info("✔ Deployed: %s", deployment_url)

    created_at = previous.created_at if previous and previous.created_at else datetime.now(timezone.utc).isoformat()
    write_deployment_config(
        DeploymentConfig(
            project_name=name,
            provider=provider.name,
            deployment_url=deployment_url,
            created_at=created_at,
            database_url=db.url,
            git_remote=repo_url,
        ),
        root / STATE_FILE,
    )

    logger.info("")
    logger.info("✅ Deployment complete!")
    logger.info("Dashboard: %s", provider.dashboard_url(name))
    logger.info("Commands: bit2 status | bit2 open | bit2 logs")
    return 0


def _load_deployment(root: Path) -> DeploymentConfig:
    config = read_deployment_config(root / STATE_FILE)
    if config is None:
        raise Bit2Error("No deployment found", ErrorCode.FILE_NOT_FOUND, ["Run: bit2 deploy"])
    if not config.is_complete:
        raise Bit2Error("Incomplete deployment configuration", ErrorCode.INVALID_INPUT, ["Try running: bit2 deploy"])
    return config


def logs_cmd(args: argparse.Namespace) -> int:
    config = _load_deployment(Path.cwd())
    provider = get_provider(config.provider)
    name = config.project_name

    logger.info("📋 Fetching %s deployment logs...", provider.display_name)
    logger.info("")
    if not provider.is_available():
        logger.warning("⚠ %s CLI not available or not authenticated", provider.display_name)
        logger.info("💡 View logs at: %s", provider.dashboard_url(name))
        logger.info("• Install CLI: %s", provider.install_hint)
        logger.info("• Login: %s", provider.login_hint)
        return 0

    try:
        out = provider.list_deployments(name)
    except CommandError as e:
        raise Bit2Error(f"Failed to fetch logs: {e}", ErrorCode.API_ERROR, [f"Dashboard: {provider.dashboard_url(name)}"]) from e

    lines = [line for line in out.splitlines() if line.strip()][: args.limit]
    logger.info("Recent deployments:")
    if lines:
        for line in lines:
            logger.info("%s", line)
    else:
        logger.info("No recent deployments found")
    logger.info("")
    logger.info("💡 Dashboard: %s", provider.dashboard_url(name))
    return 0


def open_cmd(args: argparse.Namespace) -> int:
    config = _load_deployment(Path.cwd())
    provider = get_provider(config.provider)
    url = config.deployment_url if args.site and config.deployment_url else provider.dashboard_url(config.project_name)

    logger.info("Opening %s...", url)
    if webbrowser.open(url):
        logger.info("✅ Opened: %s", url)
    else:
        logger.warning("⚠ Could not open browser automatically")
        logger.info("URL: %s", url)
    return 0
