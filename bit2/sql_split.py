"""
sql_split.py

Responsibility: Split a SQL script into statements that can be executed one at a time.

Both the local database (SQLAlchemy) and the Turso CLI accept a single statement per
call, so schema and seed files are broken up here first.

Known limitations:
- Only full-line `--` comments are removed. A `--` after SQL on the same line stays
  in the statement.
- Block comments (`/* ... */`) are not recognised.
- An unterminated quote swallows the rest of the script into one trailing statement.
"""

from __future__ import annotations


def _strip_comment_lines(sql_script: str) -> str:
    lines = []
    # A leading byte order mark would hide a comment on the first line.
    for raw in sql_script.removeprefix("\ufeff").split("\n"):
        line = raw.strip()
        if not line or line.startswith("--"):
            continue
        lines.append(raw)
    return "\n".join(lines)


def split_sql_statements(sql_script: str) -> list[str]:
    """
    Split `sql_script` on semicolons that are outside single/double quoted literals.

    Returned statements are stripped, non-empty, in source order and without their
    terminating semicolon. A doubled single quote (`''`) inside a literal is kept
    as-is and does not end the literal.
    """
    sql = _strip_comment_lines(sql_script)

    statements: list[str] = []
    current: list[str] = []
    in_single = in_double = False
    i = 0
    n = len(sql)
    while i < n:
        ch = sql[i]

        if ch == "'" and not in_double:
            if i + 1 < n and sql[i + 1] == "'":
                current.append("''")
                i += 2
                continue
            in_single = not in_single
        elif ch == '"' and not in_single:
            in_double = not in_double
        elif ch == ";" and not (in_single or in_double):
            if s := "".join(current).strip():
                statements.append(s)
            current = []
            i += 1
            continue

        current.append(ch)
        i += 1

    if s := "".join(current).strip():
        statements.append(s)
    return statements
