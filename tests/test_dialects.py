"""Unit tests for the Dialect implementations."""

from __future__ import annotations

import logging

import pytest
from helpers import ALL_DIALECTS, count_placeholders

from polysql import BuiltSQL, CompilationError
from polysql.dialect.registry import DialectFactory


def _d(name: str):
    return DialectFactory.create(name)


# ---------------------------------------------------------------------------
# Placeholders and quoting
# ---------------------------------------------------------------------------


def test_placeholder_styles():
    assert _d("mysql").placeholder(3) == "?"
    assert _d("sqlite").placeholder(3) == "?"
    assert _d("postgresql").placeholder(3) == "$3"
    assert _d("sqlserver").placeholder(3) == "@p3"
    assert _d("sqlserver").placeholder(3, "id") == "@id3"
    assert _d("oracle").placeholder(3) == ":3"
    assert _d("oracle").placeholder(3, "id") == ":id"


def test_placeholders_start_offset():
    assert _d("postgresql").placeholders(3, start=4) == ["$4", "$5", "$6"]


def test_identifier_quoting():
    assert _d("mysql").quote_identifier("users") == "`users`"
    assert _d("sqlite").quote_identifier("users") == "`users`"
    assert _d("postgresql").quote_identifier("users") == '"users"'
    assert _d("oracle").quote_identifier("users") == '"users"'
    assert _d("sqlserver").quote_identifier("users") == "[users]"


def test_dotted_identifiers_quoted_per_part():
    assert _d("postgresql").quote_identifier("app.users") == '"app"."users"'
    assert _d("sqlserver").quote_identifier("dbo.users") == "[dbo].[users]"
    assert _d("mysql").quote_identifier("t.*") == "`t`.*"


def test_closing_quote_doubled():
    assert _d("sqlserver").quote_identifier("a]b") == "[a]]b]"
    assert _d("postgresql").quote_identifier('a"b') == '"a""b"'


def test_table_reference_alias_keyword():
    assert _d("mysql").table_reference("users", "t") == "`users` AS t"
    assert _d("oracle").table_reference("users", "t") == '"users" t'
    assert _d("postgresql").table_reference("users") == '"users"'


# ---------------------------------------------------------------------------
# Pagination: bound order equals textual order
# ---------------------------------------------------------------------------


def test_mysql_pagination_binds_offset_then_limit():
    page = _d("mysql").build_pagination(10, 18, 2)
    assert page.sql == " LIMIT ?, ?"
    assert page.params == [10, 18]
    assert page.new_index == 4


def test_sqlite_pagination_binds_limit_then_offset():
    page = _d("sqlite").build_pagination(10, 18, 0)
    assert page.sql == " LIMIT ? OFFSET ?"
    assert page.params == [18, 10]


def test_postgres_pagination_continues_numbering():
    page = _d("postgresql").build_pagination(0, 10, 2)
    assert page.sql == " LIMIT $3 OFFSET $4"
    assert page.params == [10, 0]
    assert page.new_index == 4


def test_sqlserver_pagination_offset_fetch():
    page = _d("sqlserver").build_pagination(10, 20, 0)
    assert page.sql == " OFFSET @p1 ROWS FETCH NEXT @p2 ROWS ONLY"
    assert page.params == [10, 20]


def test_oracle_pagination_offset_fetch():
    page = _d("oracle").build_pagination(5, 15, 1)
    assert page.sql == " OFFSET :2 ROWS FETCH NEXT :3 ROWS ONLY"
    assert page.params == [5, 15]


def test_legacy_oracle_wraps_query_in_rownum():
    dialect = _d("oracle11g")
    page = dialect.build_pagination(20, 10, 1)
    assert page.sql == ""
    assert page.params == [30, 20]
    sql = dialect.apply_pagination('SELECT t.* FROM "users" t WHERE id = :1', page)
    assert sql == (
        'SELECT * FROM (SELECT a.*, ROWNUM rnum FROM (SELECT t.* FROM "users" t WHERE id = :1) a '
        "WHERE ROWNUM <= :2) WHERE rnum > :3"
    )


# ---------------------------------------------------------------------------
# Regex predicates
# ---------------------------------------------------------------------------


def test_regex_predicates():
    assert _d("mysql").regex_match("name", "?") == "name REGEXP ?"
    assert _d("postgresql").regex_match("name", "$1") == "name ~ $1"
    assert _d("oracle").regex_match("name", ":1") == "REGEXP_LIKE(name, :1)"


def test_sqlserver_regex_unsupported():
    with pytest.raises(CompilationError):
        _d("sqlserver").regex_match("name", "@p1")


# ---------------------------------------------------------------------------
# INSERT family
# ---------------------------------------------------------------------------


def test_insert_placeholder_count_matches_params_everywhere():
    for name in ALL_DIALECTS:
        built = _d(name).build_insert("users", ["name", "age", "email"], ["Ann", 30, "a@x.io"])
        assert isinstance(built, BuiltSQL)
        assert built.params == ["Ann", 30, "a@x.io"]
        assert count_placeholders(built.sql, name) == 3, name


def test_postgres_insert_returning():
    built = _d("postgresql").build_insert("users", ["name"], ["Ann"], ["id"])
    assert built.sql == 'INSERT INTO "users" ("name") VALUES ($1) RETURNING "id"'


def test_sqlserver_insert_output_precedes_values():
    built = _d("sqlserver").build_insert("users", ["name"], ["Ann"], ["id"])
    assert built.sql == "INSERT INTO [users] ([name]) OUTPUT INSERTED.[id] VALUES (@p1)"


def test_oracle_insert_returning_into_out_binds():
    built = _d("oracle").build_insert("users", ["name"], ["Ann"], ["id", "created_at"])
    assert built.sql.endswith('RETURNING "id", "created_at" INTO :out1, :out2')
    assert built.params == ["Ann"]
    assert built.out_binds == ["out1", "out2"]


def test_out_binds_empty_without_returning():
    assert _d("oracle").build_insert("users", ["name"], ["Ann"]).out_binds == []
    assert _d("postgresql").build_insert("users", ["name"], ["Ann"], ["id"]).out_binds == []


def test_mysql_ignores_returning_with_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="polysql"):
        built = _d("mysql").build_insert("users", ["name"], ["Ann"], ["id"])
    assert "RETURNING" not in built.sql
    assert "does not support RETURNING" in caplog.text


def test_mariadb_supports_returning():
    built = _d("mariadb").build_insert("users", ["name"], ["Ann"], ["id"])
    assert built.sql.endswith("RETURNING `id`")


def test_batch_insert_three_by_three():
    rows = [[1, "a", True], [2, "b", False], [3, "c", True]]
    for name in ALL_DIALECTS:
        built = _d(name).build_batch_insert("items", ["id", "label", "active"], rows)
        assert len(built.params) == 9, name
        assert count_placeholders(built.sql, name) == 9, name
        assert built.params == [1, "a", True, 2, "b", False, 3, "c", True]


def test_postgres_batch_insert_numbering_continues_across_rows():
    built = _d("postgresql").build_batch_insert("items", ["a", "b"], [[1, 2], [3, 4]])
    assert built.sql == 'INSERT INTO "items" ("a", "b") VALUES ($1, $2), ($3, $4)'


def test_oracle_batch_insert_uses_insert_all():
    built = _d("oracle").build_batch_insert("items", ["a"], [[1], [2]])
    assert built.sql == (
        'INSERT ALL INTO "items" ("a") VALUES (:1) INTO "items" ("a") VALUES (:2) '
        "SELECT 1 FROM DUAL"
    )


# ---------------------------------------------------------------------------
# Upserts
# ---------------------------------------------------------------------------


def test_mysql_upsert_on_duplicate_key():
    built = _d("mysql").build_upsert("users", ["id", "name"], [1, "Ann"], ["id"], ["name"])
    assert built.sql == (
        "INSERT INTO `users` (`id`, `name`) VALUES (?, ?) "
        "ON DUPLICATE KEY UPDATE `name` = VALUES(`name`)"
    )


def test_mysql_upsert_without_updates_is_insert_ignore():
    built = _d("mysql").build_upsert("users", ["id"], [1], ["id"], [])
    assert built.sql.startswith("INSERT IGNORE INTO `users`")


def test_postgres_upsert_on_conflict():
    built = _d("postgresql").build_upsert("users", ["id", "name"], [1, "Ann"], ["id"], ["name"])
    assert built.sql == (
        'INSERT INTO "users" ("id", "name") VALUES ($1, $2) '
        'ON CONFLICT ("id") DO UPDATE SET "name" = EXCLUDED."name"'
    )


def test_sqlite_upsert_do_nothing():
    built = _d("sqlite").build_upsert("users", ["id"], [1], ["id"], [])
    assert built.sql.endswith("ON CONFLICT (`id`) DO NOTHING")


def test_merge_upserts_bind_every_value_once():
    for name in ["sqlserver", "oracle"]:
        built = _d(name).build_upsert("users", ["id", "name"], [1, "Ann"], ["id"], ["name"])
        assert built.sql.startswith("MERGE INTO")
        assert "WHEN MATCHED THEN UPDATE SET" in built.sql
        assert count_placeholders(built.sql, name) == 2
        assert built.params == [1, "Ann"]
    assert _d("sqlserver").build_upsert("u", ["id"], [1], ["id"], []).sql.endswith(";")
    assert "FROM DUAL" in _d("oracle").build_upsert("u", ["id"], [1], ["id"], []).sql


def test_as_named_keys_match_sqlserver_placeholders():
    built = _d("sqlserver").build_insert("users", ["a", "b"], [1, 2])
    assert built.as_named() == {"p1": 1, "p2": 2}
