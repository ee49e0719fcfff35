"""
project.py

Responsibility: Commands that work on a local bit2 project: `new`, `dev`, `build`,
`migrate`, `db` and the `test` self-check.

Handlers take the parsed argparse namespace and return an exit code. Failures are
raised as `Bit2Error` and reported by `cli.main`.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import shutil
import tempfile
import time
from datetime import datetime
from pathlib import Path
from typing import Any

from bit2 import __version__, shell
from bit2.database import (
    LOCAL_DB_FILE,
    SCHEMA_FILE,
    LocalDatabase,
    MigrationError,
    RemoteDatabase,
    count_rows,
    initialize_database,
    list_tables,
)
from bit2.deploy_state import STATE_FILE
from bit2.errors import Bit2Error, ErrorCode
from bit2.project_spec import GIT_HOSTS, GitSpec, ProjectSpec, SpecError, parse_project_spec
from bit2.renderer import RenderError, render_template_dir, template_dir_for
from bit2.shell import CommandError
from bit2.turso import TursoCLI
from bit2.validation import PROJECT_NAME_RULES, validate_database_url, validate_project_name

logger = logging.getLogger(__name__)

BUN_INSTALL_HINT = "curl -fsSL https://bun.sh/install | bash"

# Files every generated project must contain (checked by `status` and `test`).
REQUIRED_FILES = (
    "package.json",
    "astro.config.mjs",
    "src/pages/index.astro",
    "src/layouts/Layout.astro",
    "src/db/client.ts",
    "src/db/schema.sql",
    "src/db/seed.sql",
    "src/pages/api/quotes.json.ts",
    "src/pages/api/quote/random.json.ts",
)


def read_package_json(root: str | Path = ".") -> dict[str, Any]:
    path = Path(root) / "package.json"
    if not path.exists():
        raise Bit2Error(
            "No package.json found. Are you in a bit2 project?",
            ErrorCode.FILE_NOT_FOUND,
            ["Run this command from your project root", "Or create a project: bit2 new <project-name>"],
        )
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except ValueError as e:
        raise Bit2Error(f"Could not parse package.json: {e}", ErrorCode.INVALID_INPUT) from e
    if not isinstance(data, dict):
        raise Bit2Error("package.json must contain a JSON object", ErrorCode.INVALID_INPUT)
    return data


def project_name_from(root: str | Path = ".") -> str:
    name = str(read_package_json(root).get("name") or "").strip()
    if not name:
        raise Bit2Error("package.json has no `name` field", ErrorCode.INVALID_INPUT)
    return name


def project_settings(root: str | Path = ".") -> tuple[str | None, GitSpec]:
    """
    The `bit2` section of package.json written by `bit2 new`: (provider, git hosting).
    Missing or malformed entries fall back to the defaults.
    """
    section = read_package_json(root).get("bit2")
    section = section if isinstance(section, dict) else {}
    git = section.get("git")
    git = git if isinstance(git, dict) else {}

    provider = str(section.get("provider") or "").strip().lower() or None
    host = str(git.get("host") or "github").strip().lower()
    if host not in GIT_HOSTS:
        host = "github"
    return provider, GitSpec(host=host, private=git.get("private") is not False)


def require_turso_auth(turso: TursoCLI) -> None:
    if not turso.is_installed():
        raise Bit2Error(
            "Turso CLI not found",
            ErrorCode.MISSING_DEPENDENCY,
            ["Install: curl -sSfL https://get.tur.so/install.sh | bash"],
        )
    if not turso.is_authenticated():
        raise Bit2Error("Not authenticated with Turso", ErrorCode.AUTH_REQUIRED, ["Run: turso auth signup"])


# --------------------------------------------------------------------------- new


def _build_context(name: str, spec: ProjectSpec | None, provider: str) -> dict[str, object]:
    variables = dict(spec.variables) if spec else {}
    git = spec.git if spec else GitSpec()
    return {
        "project_name": name,
        "description": spec.description if spec else "",
        "provider": provider,
        "git_host": git.host,
        "git_private": git.private,
        "bit2_version": __version__,
        "variables": variables,
        **variables,  # convenience access: {{ some_var }}
    }


def scaffold_project(
    name: str,
    parent_dir: str | Path,
    *,
    spec: ProjectSpec | None = None,
    provider: str = "cloudflare",
    install: bool = True,
    templates_dir: str | Path | None = None,
) -> Path:
    """
    Render the astro-app template into `parent_dir/name`, install dependencies and
    create `dev.db` from the schema and seed files. Returns the project path.
    """
    project_dir = Path(parent_dir).resolve() / name
    if project_dir.exists():
        raise Bit2Error(f"Directory {name} already exists!", ErrorCode.DIRECTORY_EXISTS)

    logger.info("Setting up project...")
    try:
        result = render_template_dir(
            template_dir=template_dir_for(templates_dir=templates_dir),
            destination_dir=project_dir,
            context=_build_context(name, spec, provider),
        )
    except (RenderError, OSError) as e:
        shutil.rmtree(project_dir, ignore_errors=True)
        raise Bit2Error(f"Failed to create project: {e}") from e
    logger.info("✔ Project files created (%d rendered, %d copied)", result.rendered_files, result.copied_files)

    if install:
        try:
            shell.run(["bun", "install"], cwd=project_dir)
            logger.info("✔ Dependencies installed")
        except CommandError as e:
            logger.warning("⚠ Could not install dependencies")
            logger.debug("%s", e)
            logger.info("Please run manually:  cd %s && bun install", name)

    try:
        schema_count, seed_count = initialize_database(project_dir, LocalDatabase(project_dir / LOCAL_DB_FILE))
    except (MigrationError, OSError) as e:
        logger.warning("⚠ Could not initialize database: %s", e)
        logger.info("Please run manually:  cd %s && bit2 migrate", name)
    else:
        logger.info(
            "✔ Database initialized with tables and seed data (%d schema, %d seed statements)",
            schema_count,
            seed_count,
        )
    return project_dir


def new_cmd(args: argparse.Namespace) -> int:
    spec: ProjectSpec | None = None
    if args.spec:
        try:
            spec = parse_project_spec(args.spec)
        except SpecError as e:
            raise Bit2Error(str(e), ErrorCode.INVALID_INPUT) from e

    name = args.project_name or (spec.project_name if spec else "")
    validation = validate_project_name(name)
    if not validation.valid:
        raise Bit2Error(f"Invalid project name: {validation.error}", ErrorCode.INVALID_INPUT, list(PROJECT_NAME_RULES))

    provider = args.provider or (spec.provider if spec else "cloudflare")
    install = not args.skip_install
    if install and not shell.which("bun"):
        raise Bit2Error(
            "Bun is required to create and run bit2 projects",
            ErrorCode.MISSING_DEPENDENCY,
            [f"Install with: {BUN_INSTALL_HINT}", "Or pass --skip-install"],
        )

    logger.info("∴ Creating new Astro + libSQL project: %s", name)
    scaffold_project(
        name,
        Path.cwd(),
        spec=spec,
        provider=provider,
        install=install,
        templates_dir=args.templates_dir,
    )

    logger.info("")
    logger.info("✅ Project created and initialized successfully!")
    logger.info("")
    logger.info("Next steps:")
    logger.info("  cd %s", name)
    logger.info("  bit2 dev")
    logger.info("")
    logger.info("or check project status: bit2 status")
    return 0


# --------------------------------------------------------------------------- dev / build


def dev_cmd(args: argparse.Namespace) -> int:
    root = Path.cwd()
    if not (root / "astro.config.mjs").exists() or not (root / "package.json").exists():
        raise Bit2Error(
            "Not in a bit2 project directory!",
            ErrorCode.FILE_NOT_FOUND,
            ["Run bit2 new <project-name> first."],
        )

    env = dict(os.environ, NODE_ENV="development")

    logger.info("∴ Starting development server...")
    logger.info("📦 Installing dependencies...")
    if shell.run_interactive(["bun", "install"], cwd=root, env=env) != 0:
        raise Bit2Error("Failed to install dependencies", ErrorCode.DEPENDENCY_INSTALL_FAILED)

    if not (root / LOCAL_DB_FILE).exists():
        logger.warning("⚠ %s not found, run: bit2 migrate", LOCAL_DB_FILE)

    logger.info("🔥 Starting Astro dev server...")
    logger.info("Database: Using local SQLite file (./%s)", LOCAL_DB_FILE)
    code = shell.run_interactive(["bun", "run", "dev"], cwd=root, env=env)
    logger.info("Dev server exited with code %d", code)
    return code


def build_cmd(args: argparse.Namespace) -> int:
    read_package_json()
    logger.info("Building Astro application...")
    try:
        res = shell.run(["bun", "run", "build"], cwd=Path.cwd())
    except CommandError as e:
        raise Bit2Error(f"Build failed\n{e.output}", ErrorCode.BUILD_FAILED) from e

    logger.info("✔ Build completed successfully!")
    if res.stdout.strip():
        logger.info("%s", res.stdout.rstrip())
    if res.stderr.strip():
        logger.warning("Build warnings:\n%s", res.stderr.rstrip())
    logger.info("✓ Build output: /dist")
    return 0


# --------------------------------------------------------------------------- migrate


def _wants_remote(args: argparse.Namespace) -> bool:
    if getattr(args, "remote", False):
        return True
    url = os.environ.get("TURSO_DATABASE_URL", "").strip()
    if url and validate_database_url(url).kind == "local":
        return False
    return os.environ.get("NODE_ENV") == "production" or bool(url)


def migrate_cmd(args: argparse.Namespace) -> int:
    root = Path.cwd()
    logger.info("∴ Running database migrations...")
    if not (root / SCHEMA_FILE).exists():
        raise Bit2Error(f"No schema.sql file found at ./{SCHEMA_FILE.as_posix()}", ErrorCode.FILE_NOT_FOUND)

    if _wants_remote(args):
        turso = TursoCLI()
        require_turso_auth(turso)
        target: LocalDatabase | RemoteDatabase = RemoteDatabase(turso, project_name_from(root))
    else:
        target = LocalDatabase(root / LOCAL_DB_FILE)

    logger.info("Running migrations against %s...", target.label)
    try:
        schema_count, seed_count = initialize_database(root, target, seed=not args.no_seed)
    except MigrationError as e:
        recovery = ["Make sure you have the Turso CLI installed and are authenticated."] if isinstance(target, RemoteDatabase) else []
        raise Bit2Error(f"Migration failed: {e}", ErrorCode.DATABASE_MIGRATION_FAILED, recovery) from e

    logger.info("✔ Schema applied (%d statements)", schema_count)
    if seed_count:
        logger.info("✔ Seed data applied (%d statements)", seed_count)
    logger.info("✅ Database migrations completed successfully!")
    return 0


# --------------------------------------------------------------------------- db


def _db_info(turso: TursoCLI, name: str) -> None:
    logger.info("📊 Database Information")
    logger.info("")
    logger.info("Local Database:")
    db_file = Path.cwd() / LOCAL_DB_FILE
    if db_file.exists():
        st = db_file.stat()
        logger.info("  File: ./%s (%.1f KB)", LOCAL_DB_FILE, st.st_size / 1024)
        logger.info("  Modified: %s", datetime.fromtimestamp(st.st_mtime).strftime("%Y-%m-%d"))
    else:
        logger.info("  No local database (run: bit2 migrate)")
    logger.info("")

    logger.info("Turso Database:")
    if not turso.database_exists(name):
        logger.info('  Database "%s" not found', name)
        logger.info("  Run: bit2 db create")
        return
    logger.info("  Name: %s", name)
    logger.info("  URL: %s", turso.database_url(name))
    location = turso.location(name)
    if location:
        logger.info("  Location: %s", location)
    logger.info("  Auth Token: use \"bit2 db token\" to generate")


def _db_create(turso: TursoCLI, name: str) -> int:
    if turso.database_exists(name):
        logger.warning('⚠ Database "%s" already exists', name)
        return 0
    try:
        turso.create_database(name)
    except CommandError as e:
        raise Bit2Error(f"Failed to create database: {e}", ErrorCode.DATABASE_CONNECTION_FAILED) from e
    logger.info('✅ Database "%s" created successfully', name)
    logger.info("Next steps:")
    logger.info("  • bit2 db info (to see connection details)")
    logger.info("  • bit2 migrate --remote (to apply the schema)")
    logger.info("  • bit2 deploy (to set up production deployment)")
    return 0


def _db_token(turso: TursoCLI, name: str) -> int:
    if not turso.database_exists(name):
        raise Bit2Error(f'Database "{name}" not found', ErrorCode.FILE_NOT_FOUND, ["Run: bit2 db create"])
    try:
        token = turso.create_token(name)
        url = turso.database_url(name)
    except CommandError as e:
        raise Bit2Error(f"Failed to generate token: {e}", ErrorCode.AUTH_FAILED) from e

    logger.info("🔑 Database Credentials:")
    logger.info("")
    logger.info("TURSO_DATABASE_URL=%s", url)
    logger.info("TURSO_AUTH_TOKEN=%s", token)
    logger.info("")
    logger.info("Add these to your deployment platform.")
    if (Path.cwd() / STATE_FILE).exists():
        logger.info("💡 The database URL is also recorded in your %s file", STATE_FILE)
    return 0


def db_cmd(args: argparse.Namespace) -> int:
    name = project_name_from()
    turso = TursoCLI()
    require_turso_auth(turso)

    action = args.action or "info"
    if action == "info":
        _db_info(turso, name)
        return 0
    if action == "shell":
        logger.info("🗄️  Opening database shell for %s (type .quit to close)", name)
        return turso.open_shell(name)
    if action == "create":
        return _db_create(turso, name)
    if action == "token":
        return _db_token(turso, name)
    raise Bit2Error(f"Unknown action: {action}", ErrorCode.INVALID_INPUT, ["Actions: info, shell, create, token"])


# --------------------------------------------------------------------------- test


def selftest_cmd(args: argparse.Namespace) -> int:
    """
    Scaffold a throwaway project and check its files and database.
    """
    logger.info("∴ Running bit2 self-test...")
    name = f"test-{int(time.time())}"

    with tempfile.TemporaryDirectory(prefix="bit2-selftest-") as tmp:
        project_dir = scaffold_project(name, tmp, install=False, templates_dir=args.templates_dir)
        logger.info("✔ Project creation")

        missing = [f for f in REQUIRED_FILES if not (project_dir / f).exists()]
        if missing:
            raise Bit2Error(f"Missing required file(s): {', '.join(missing)}")
        logger.info("✔ Project structure")

        db_file = project_dir / LOCAL_DB_FILE
        if not db_file.exists():
            raise Bit2Error("Database file was not created", ErrorCode.DATABASE_MIGRATION_FAILED)
        tables = list_tables(db_file)
        for table in ("quotes", "users", "posts"):
            if table not in tables:
                raise Bit2Error(f"Missing table: {table}", ErrorCode.DATABASE_MIGRATION_FAILED)
        if count_rows(db_file, "quotes") == 0:
            raise Bit2Error("Database tables are empty - seed data not loaded", ErrorCode.DATABASE_MIGRATION_FAILED)
        logger.info("✔ Database initialization (quotes, users, posts)")

    logger.info("")
    logger.info("🎉 All tests passed! bit2 is working correctly.")
    return 0
