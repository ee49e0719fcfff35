"""
database.py

Responsibility: Apply schema/seed SQL files to the project's databases.

Two targets share one code path:
- `LocalDatabase`: the file-backed `dev.db` used by `bit2 dev`, via SQLAlchemy.
- `RemoteDatabase`: a Turso database, one `turso db shell` invocation per statement.

Scripts are always split with `split_sql_statements` first.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Protocol

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from bit2.shell import CommandError
from bit2.sql_split import split_sql_statements
from bit2.turso import TursoCLI

logger = logging.getLogger(__name__)

LOCAL_DB_FILE = "dev.db"
SCHEMA_FILE = Path("src/db/schema.sql")
SEED_FILE = Path("src/db/seed.sql")


class MigrationError(RuntimeError):
    def __init__(self, index: int, statement: str, cause: BaseException) -> None:
        self.index = index
        self.statement = statement
        preview = statement if len(statement) <= 80 else statement[:77] + "..."
        super().__init__(f"Statement {index + 1} failed: {preview}\n{cause}")


class Target(Protocol):
    label: str

    def execute_all(self, statements: list[str]) -> None: ...


def _sqlite_engine(path: Path) -> Engine:
    return create_engine(f"sqlite:///{path}", future=True)


@dataclass
class LocalDatabase:
    path: Path

    @property
    def label(self) -> str:
        return f"local database ({self.path.name})"

    def execute_all(self, statements: list[str]) -> None:
        engine = _sqlite_engine(self.path)
        try:
            with engine.begin() as conn:
                for i, stmt in enumerate(statements):
                    try:
                        conn.exec_driver_sql(stmt)
                    except SQLAlchemyError as e:
                        raise MigrationError(i, stmt, e) from e
        finally:
            engine.dispose()


@dataclass
class RemoteDatabase:
    turso: TursoCLI
    name: str

    @property
    def label(self) -> str:
        return f"Turso database ({self.name})"

    def execute_all(self, statements: list[str]) -> None:
        for i, stmt in enumerate(statements):
            try:
                self.turso.execute(self.name, stmt)
            except CommandError as e:
                raise MigrationError(i, stmt, e) from e


def apply_sql(statements: Iterable[str], target: Target) -> int:
    stmts = list(statements)
    target.execute_all(stmts)
    return len(stmts)


def apply_sql_file(path: str | Path, target: Target) -> int:
    """
    Read a `.sql` file, split it and execute each statement against `target`.
    Returns the number of statements executed.
    """
    sql_path = Path(path)
    statements = split_sql_statements(sql_path.read_text(encoding="utf-8-sig"))
    logger.debug("Applying %d statement(s) from %s to %s", len(statements), sql_path, target.label)
    return apply_sql(statements, target)


def initialize_database(project_dir: str | Path, target: Target, *, seed: bool = True) -> tuple[int, int]:
    """
    Apply the project's schema (required) and seed (optional) files.
    Returns (schema_statement_count, seed_statement_count).
    """
    root = Path(project_dir)
    schema_path = root / SCHEMA_FILE
    if not schema_path.exists():
        raise FileNotFoundError(f"No schema.sql file found at {schema_path}")
    schema_count = apply_sql_file(schema_path, target)

    seed_count = 0
    seed_path = root / SEED_FILE
    if seed and seed_path.exists():
        seed_count = apply_sql_file(seed_path, target)
    return schema_count, seed_count


def list_tables(path: str | Path) -> list[str]:
    engine = _sqlite_engine(Path(path))
    try:
        return sorted(t for t in inspect(engine).get_table_names() if not t.startswith("sqlite_"))
    finally:
        engine.dispose()


def count_rows(path: str | Path, table: str) -> int:
    engine = _sqlite_engine(Path(path))
    try:
        with engine.connect() as conn:
            # Table names come from list_tables(), never from user input.
            return int(conn.execute(text(f'SELECT COUNT(*) FROM "{table}"')).scalar_one())
    finally:
        engine.dispose()
