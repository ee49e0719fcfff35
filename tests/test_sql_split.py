from __future__ import annotations

from pathlib import Path

import pytest

from bit2.sql_split import split_sql_statements

TEMPLATE_DB = Path(__file__).resolve().parents[1] / "bit2" / "templates" / "astro-app" / "src" / "db"


def test_empty_script():
    assert split_sql_statements("") == []


def test_comment_only_script():
    assert split_sql_statements("-- just a comment\n") == []
    assert split_sql_statements("   \n  -- indented comment\n\n") == []


def test_single_statement_drops_semicolon():
    assert split_sql_statements("CREATE TABLE t (id INTEGER);") == ["CREATE TABLE t (id INTEGER)"]


def test_semicolon_inside_single_quotes_is_kept():
    assert split_sql_statements("INSERT INTO t VALUES ('a;b');") == ["INSERT INTO t VALUES ('a;b')"]


def test_doubled_single_quote_escape():
    assert split_sql_statements("INSERT INTO t VALUES ('it''s ok');") == ["INSERT INTO t VALUES ('it''s ok')"]


def test_doubled_quote_followed_by_semicolon_in_literal():
    sql = "INSERT INTO t VALUES ('don''t; stop');\nSELECT 1;"
    assert split_sql_statements(sql) == ["INSERT INTO t VALUES ('don''t; stop')", "SELECT 1"]


def test_trailing_statement_without_semicolon():
    assert split_sql_statements("A;\nB") == ["A", "B"]


def test_comment_lines_between_statements():
    assert split_sql_statements("-- c\nA;\n-- c2\nB;") == ["A", "B"]


def test_semicolon_inside_double_quotes():
    assert split_sql_statements('CREATE TABLE "a;b" (x);') == ['CREATE TABLE "a;b" (x)']


def test_single_quote_inside_double_quotes_does_not_toggle():
    assert split_sql_statements("SELECT \"it's;\";\nSELECT 2;") == ["SELECT \"it's;\"", "SELECT 2"]


def test_multiline_statement_keeps_inner_newlines():
    sql = "CREATE TABLE t (\n  id INTEGER,\n  name TEXT\n);\n"
    assert split_sql_statements(sql) == ["CREATE TABLE t (\n  id INTEGER,\n  name TEXT\n)"]


def test_windows_line_endings():
    assert split_sql_statements("-- c\r\nA;\r\nB;\r\n") == ["A", "B"]


def test_trailing_comment_after_sql_is_not_stripped():
    # Only whole-line comments are removed.
    assert split_sql_statements("SELECT 1; -- note\nSELECT 2;") == ["SELECT 1", "-- note\nSELECT 2"]


def test_block_comments_are_not_recognised():
    assert split_sql_statements("/* a; b */ SELECT 1;") == ["/* a", "b */ SELECT 1"]


def test_unterminated_quote_swallows_rest_of_script():
    sql = "INSERT INTO t VALUES ('oops);\nSELECT 1;"
    assert split_sql_statements(sql) == ["INSERT INTO t VALUES ('oops);\nSELECT 1;"]


def test_empty_statements_are_skipped():
    assert split_sql_statements(";;  ;\nA;;B;") == ["A", "B"]


@pytest.mark.parametrize(
    "sql",
    [
        "",
        ";",
        "A; ;B",
        "-- x\n\n;\n",
        "INSERT INTO t VALUES ('a;b'), (\"c;d\");",
        "x = 'unterminated",
    ],
)
def test_no_empty_statements(sql):
    assert all(s.strip() for s in split_sql_statements(sql))


def test_resplitting_joined_statements_is_stable():
    sql = (
        "CREATE TABLE t (id INTEGER, v TEXT);\n"
        "INSERT INTO t VALUES (1, 'a;b');\n"
        "INSERT INTO t VALUES (2, 'it''s');\n"
        "SELECT * FROM t"
    )
    first = split_sql_statements(sql)
    assert split_sql_statements(";\n".join(first) + ";") == first


def test_bundled_template_sql_files():
    schema = split_sql_statements((TEMPLATE_DB / "schema.sql").read_text(encoding="utf-8"))
    seed = split_sql_statements((TEMPLATE_DB / "seed.sql").read_text(encoding="utf-8"))

    assert len(schema) == 6
    assert schema[0].startswith("CREATE TABLE IF NOT EXISTS quotes")
    assert len(seed) == 3
    assert "It''s not what happens to you" in seed[0]
    assert seed[2].endswith("run \"bit2 migrate\" to reset.', 2)")


def test_leading_byte_order_mark_does_not_hide_comment():
    assert split_sql_statements("\ufeff-- schema\nCREATE TABLE t (x);") == ["CREATE TABLE t (x)"]
