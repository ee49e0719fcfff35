"""
cli.py

Responsibility: CLI entrypoint for bit2.

Builds the argparse parser, configures logging and dispatches to a command handler.
Handlers live next to the code they orchestrate:
- `project.py`: new, dev, build, migrate, db, test
- `deploy.py`: deploy, logs, open
- `status.py`: status
- `delete.py`: delete

Every handler returns an exit code; `Bit2Error` (and anything unexpected) is turned
into an exit code by `errors.handle_error`.
"""

from __future__ import annotations

import argparse

from bit2 import __version__
from bit2.delete import delete_cmd
from bit2.deploy import deploy_cmd, logs_cmd, open_cmd
from bit2.errors import debug_enabled, handle_error
from bit2.logging_setup import setup_logging
from bit2.project import build_cmd, db_cmd, dev_cmd, migrate_cmd, new_cmd, selftest_cmd
from bit2.project_spec import GIT_HOSTS, PROVIDERS
from bit2.status import status_cmd


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="bit2",
        description="Scaffold Astro webapps with libSQL/Turso database integration",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging (also enabled by DEBUG=1)")
    sub = p.add_subparsers(dest="command", required=True)

    n = sub.add_parser("new", help="Create new Astro + libSQL project")
    n.add_argument("project_name", nargs="?", default=None, help="Project (and directory) name")
    n.add_argument("--spec", default=None, help="Markdown project spec with YAML frontmatter")
    n.add_argument("--provider", choices=PROVIDERS, default=None, help="Deployment provider mentioned in the README")
    n.add_argument("--skip-install", action="store_true", help="Do not run `bun install`")
    n.add_argument("--templates-dir", default=None, help="Directory containing an `astro-app` template")
    n.set_defaults(func=new_cmd)

    d = sub.add_parser("dev", help="Start development server with Bun + local libSQL file")
    d.set_defaults(func=dev_cmd)

    b = sub.add_parser("build", help="Build the Astro application for production")
    b.set_defaults(func=build_cmd)

    dep = sub.add_parser("deploy", help="Automated deployment with a Turso database")
    dep.add_argument("--dry-run", action="store_true", help="Preview deployment without executing")
    dep.add_argument("--local", action="store_true", help="Create database + repo only, print manual Pages setup")
    dep.add_argument("--provider", choices=PROVIDERS, default=None, help="Hosting provider (default: recorded or cloudflare)")
    dep.add_argument("--git-host", choices=GIT_HOSTS, default=None, help="Where to push the repository (default: from package.json, else github)")
    dep.add_argument("--github-owner", default=None, help="GitHub owner (user or org); default: recorded owner, else authenticated user")
    dep.add_argument("--public", action="store_true", help="Create a public repository (default: private unless package.json says otherwise)")
    dep.set_defaults(func=deploy_cmd)

    m = sub.add_parser("migrate", help="Run database migrations")
    m.add_argument("--remote", action="store_true", help="Run against the Turso database instead of dev.db")
    m.add_argument("--no-seed", action="store_true", help="Only apply schema.sql")
    m.set_defaults(func=migrate_cmd)

    s = sub.add_parser("status", help="Check project health and deployment status")
    s.set_defaults(func=status_cmd)

    db = sub.add_parser("db", help="Turso database info, shell, create, token")
    db.add_argument("action", nargs="?", default="info", choices=("info", "shell", "create", "token"))
    db.set_defaults(func=db_cmd)

    lg = sub.add_parser("logs", help="Show recent deployments")
    lg.add_argument("--limit", type=int, default=10, help="Number of lines to show (default: 10)")
    lg.set_defaults(func=logs_cmd)

    o = sub.add_parser("open", help="Open the provider dashboard")
    o.add_argument("--site", action="store_true", help="Open the live site instead of the dashboard")
    o.set_defaults(func=open_cmd)

    t = sub.add_parser("test", help="Run a self-test to verify bit2 is working correctly")
    t.add_argument("--templates-dir", default=None, help=argparse.SUPPRESS)
    t.set_defaults(func=selftest_cmd)

    rm = sub.add_parser("delete", help="Delete project and all associated cloud resources")
    rm.add_argument("project_name", nargs="?", default=None, help="Project directory (default: current project)")
    rm.add_argument("--force", action="store_true", help="Skip confirmation prompt")
    rm.set_defaults(func=delete_cmd)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    setup_logging("DEBUG" if args.verbose or debug_enabled() else "INFO")
    try:
        return int(args.func(args))
    except KeyboardInterrupt:
        return 130
    except Exception as e:  # noqa: BLE001
        return handle_error(e)


if __name__ == "__main__":
    raise SystemExit(main())
