"""
bit2 package

This package implements bit2, a CLI that scaffolds Astro + libSQL/Turso web apps
and automates their deployment.

Key responsibilities are split across modules:
- `sql_split.py`: split SQL scripts into individually executable statements
- `renderer.py`: deterministic template rendering/copying into a project directory
- `project_spec.py`: parse an optional markdown project spec (YAML frontmatter)
- `database.py`: apply SQL files to the local `dev.db` or a remote Turso database
- `turso.py`, `git.py`, `github_client.py`, `providers.py`: external CLIs and APIs
- `deploy_state.py`: the `.env.bit2` marker file remembering prior deployments
- `cli.py`: CLI entrypoint; command handlers live in `project.py`, `deploy.py`,
  `status.py`, `delete.py`
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "2.0.0"
