"""Unit tests for DDLBuilder."""

from __future__ import annotations

import pytest

from polysql import (
    ColumnDefinition,
    CompilationError,
    DDLBuilder,
    InvalidIdentifierError,
    InvalidRequestError,
    TableDefinition,
)
from polysql import create_ddl_builder

USERS = {
    "tableName": "users",
    "columns": [
        {"name": "id", "type": "bigint", "primary": True, "increment": True},
        {"name": "email", "type": "varchar", "length": 120, "nullable": False, "unique": True},
        {"name": "active", "type": "boolean", "default": True},
        {"name": "bio", "type": "text", "default": None},
        {"name": "balance", "type": "decimal", "precision": 12, "scale": 4, "default": 0},
    ],
    "indexes": [{"name": "idx_users_email", "columns": ["email"], "unique": True}],
}


# ---------------------------------------------------------------------------
# CREATE TABLE
# ---------------------------------------------------------------------------


def test_create_table_mysql():
    sql = DDLBuilder("mysql").build_create_table({
        **USERS,
        "engine": "InnoDB",
        "charset": "utf8mb4",
        "comment": "People's accounts",
    })
    assert sql == (
        "CREATE TABLE `users` (\n"
        "  id BIGINT AUTO_INCREMENT NOT NULL,\n"
        "  email VARCHAR(120) NOT NULL,\n"
        "  active TINYINT(1) DEFAULT 1,\n"
        "  bio TEXT DEFAULT NULL,\n"
        "  balance DECIMAL(12, 4) DEFAULT 0,\n"
        "  PRIMARY KEY (id),\n"
        "  UNIQUE (email)\n"
        ") ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COMMENT='People''s accounts';"
    )


def test_create_table_postgres_uses_serial_types():
    sql = DDLBuilder("pg").build_create_table(USERS)
    assert "id BIGSERIAL NOT NULL" in sql
    assert "active BOOLEAN DEFAULT TRUE" in sql
    assert sql.startswith('CREATE TABLE "users" (')
    assert "ENGINE" not in sql


def test_create_table_sqlite_inlines_autoincrement_primary_key():
    sql = DDLBuilder("sqlite").build_create_table(USERS)
    assert "id INTEGER PRIMARY KEY AUTOINCREMENT NOT NULL" in sql
    assert "PRIMARY KEY (id)" not in sql
    assert "email TEXT NOT NULL" in sql


def test_create_table_sqlserver_identity():
    sql = DDLBuilder("mssql").build_create_table(USERS)
    assert "id BIGINT IDENTITY(1,1) NOT NULL" in sql
    assert "email NVARCHAR(120) NOT NULL" in sql
    assert "active BIT DEFAULT 1" in sql


def test_create_table_oracle_identity():
    sql = DDLBuilder("oracle").build_create_table(USERS)
    assert "id NUMBER(19) GENERATED BY DEFAULT AS IDENTITY NOT NULL" in sql
    assert "email VARCHAR2(120) NOT NULL" in sql
    assert "balance NUMBER(12, 4) DEFAULT 0" in sql


def test_mysql_compatible_engine_gets_table_options():
    sql = DDLBuilder("tidb").build_create_table({**USERS, "engine": "InnoDB"})
    assert sql.endswith(") ENGINE=InnoDB;")


def test_if_not_exists():
    sql = DDLBuilder("sqlite").build_create_table({**USERS, "ifNotExists": True})
    assert sql.startswith("CREATE TABLE IF NOT EXISTS `users`")


def test_varchar_and_decimal_defaults():
    builder = DDLBuilder("mysql")
    assert builder.map_type(ColumnDefinition(name="a", type="varchar")) == "VARCHAR(255)"
    assert builder.map_type(ColumnDefinition(name="a", type="decimal")) == "DECIMAL(10, 2)"
    assert builder.map_type(ColumnDefinition(name="a", type="JSON")) == "JSON"


def test_unknown_type_passes_through_upper_cased():
    builder = DDLBuilder("postgresql")
    assert builder.map_type(ColumnDefinition(name="a", type="uuid")) == "UUID"
    assert builder.map_type(ColumnDefinition(name="a", type="char", length=2)) == "CHAR(2)"


def test_unknown_type_validated():
    with pytest.raises(InvalidIdentifierError):
        DDLBuilder("mysql").build_create_table({
            "tableName": "t",
            "columns": [{"name": "a", "type": "INT); DROP TABLE users; --"}],
        })


def test_column_comment_mysql_only():
    table = {"tableName": "t", "columns": [{"name": "a", "type": "int", "comment": "it's a"}]}
    assert "COMMENT 'it''s a'" in DDLBuilder("mysql").build_create_table(table)
    assert "COMMENT" not in DDLBuilder("postgresql").build_create_table(table)


def test_default_literals():
    builder = DDLBuilder("mysql")
    assert builder.format_default(None) == "NULL"
    assert builder.format_default(False) == "0"
    assert builder.format_default(2.5) == "2.5"
    assert builder.format_default("current_timestamp") == "CURRENT_TIMESTAMP"
    assert builder.format_default("now()") == "now()"
    assert builder.format_default("O'Brien") == "'O''Brien'"
    assert builder.format_default("x() -- y") == "'x() -- y'"


def test_omitted_default_emits_nothing():
    sql = DDLBuilder("mysql").build_create_table({
        "tableName": "t",
        "columns": [{"name": "a", "type": "int"}],
    })
    assert "DEFAULT" not in sql


def test_build_schema_appends_indexes():
    statements = DDLBuilder("postgresql").build_schema(USERS)
    assert len(statements) == 2
    assert statements[1] == 'CREATE UNIQUE INDEX idx_users_email ON "users" (email);'


def test_invalid_definition_is_invalid_request():
    with pytest.raises(InvalidRequestError):
        DDLBuilder("mysql").build_create_table({"tableName": "t", "columns": []})


def test_model_definition_accepted():
    definition = TableDefinition(table_name="t", columns=[ColumnDefinition(name="a", type="int")])
    assert create_ddl_builder("sqlite").build_create_table(definition) == (
        "CREATE TABLE `t` (\n  a INTEGER\n);"
    )


# ---------------------------------------------------------------------------
# DROP / INDEX
# ---------------------------------------------------------------------------


def test_drop_table():
    assert DDLBuilder("mysql").build_drop_table("users") == "DROP TABLE IF EXISTS `users`;"
    assert DDLBuilder("pg").build_drop_table("users", if_exists=False) == 'DROP TABLE "users";'


def test_create_index():
    sql = DDLBuilder("mssql").build_create_index("users", {"name": "ix_name", "columns": ["last", "first"]})
    assert sql == "CREATE INDEX ix_name ON [users] (last, first);"


# ---------------------------------------------------------------------------
# ALTER TABLE
# ---------------------------------------------------------------------------


def test_alter_add_column_per_dialect():
    action = [{"type": "add_column", "column": {"name": "age", "type": "int"}}]
    assert DDLBuilder("mysql").build_alter_table("users", action) == [
        "ALTER TABLE `users` ADD COLUMN age INT;"
    ]
    assert DDLBuilder("mssql").build_alter_table("users", action) == [
        "ALTER TABLE [users] ADD age INT;"
    ]
    assert DDLBuilder("oracle").build_alter_table("users", action) == [
        'ALTER TABLE "users" ADD (age NUMBER(10));'
    ]


def test_alter_modify_column_per_dialect():
    action = [{"type": "modify_column", "column": {"name": "name", "type": "varchar", "length": 50}}]
    assert DDLBuilder("mysql").build_alter_table("users", action) == [
        "ALTER TABLE `users` MODIFY COLUMN name VARCHAR(50);"
    ]
    assert DDLBuilder("pg").build_alter_table("users", action) == [
        'ALTER TABLE "users" ALTER COLUMN name TYPE VARCHAR(50);'
    ]
    assert DDLBuilder("mssql").build_alter_table("users", action) == [
        "ALTER TABLE [users] ALTER COLUMN name NVARCHAR(50);"
    ]
    assert DDLBuilder("oracle").build_alter_table("users", action) == [
        'ALTER TABLE "users" MODIFY (name VARCHAR2(50));'
    ]
    with pytest.raises(CompilationError):
        DDLBuilder("sqlite").build_alter_table("users", action)


def test_alter_rename_column():
    action = [{"type": "rename_column", "old_name": "fname", "new_name": "first_name"}]
    assert DDLBuilder("pg").build_alter_table("users", action) == [
        'ALTER TABLE "users" RENAME COLUMN fname TO first_name;'
    ]
    assert DDLBuilder("mssql").build_alter_table("users", action) == [
        "EXEC sp_rename 'users.fname', 'first_name', 'COLUMN';"
    ]


def test_alter_index_actions():
    actions = [
        {"type": "add_index", "index": {"name": "ix_a", "columns": ["a"]}},
        {"type": "drop_index", "index_name": "ix_a"},
    ]
    assert DDLBuilder("mysql").build_alter_table("users", actions) == [
        "CREATE INDEX ix_a ON `users` (a);",
        "DROP INDEX ix_a ON `users`;",
    ]
    assert DDLBuilder("pg").build_alter_table("users", actions)[1] == "DROP INDEX ix_a;"


def test_alter_rename_table_and_drop_column():
    actions = [
        {"type": "drop_column", "column_name": "legacy"},
        {"type": "rename_table", "new_name": "members"},
    ]
    assert DDLBuilder("sqlite").build_alter_table("users", actions) == [
        "ALTER TABLE `users` DROP COLUMN legacy;",
        "ALTER TABLE `users` RENAME TO `members`;",
    ]
    assert DDLBuilder("mssql").build_alter_table("users", actions)[1] == (
        "EXEC sp_rename 'users', 'members';"
    )


def test_alter_unknown_action_rejected():
    with pytest.raises(InvalidRequestError):
        DDLBuilder("mysql").build_alter_table("users", [{"type": "truncate"}])


def test_alter_identifiers_validated():
    with pytest.raises(InvalidIdentifierError):
        DDLBuilder("mysql").build_alter_table(
            "users", [{"type": "drop_column", "column_name": "a; DROP TABLE users"}]
        )


# ---------------------------------------------------------------------------
# String literals
# ---------------------------------------------------------------------------


def test_mysql_literal_doubles_backslashes():
    comment = "x\\', 1); DROP TABLE users; -- "
    sql = DDLBuilder("mysql").build_create_table({
        "tableName": "users",
        "columns": [{"name": "id", "type": "int", "comment": comment, "default": "a\\'b"}],
        "comment": "t\\'",
    })
    assert "COMMENT 'x\\\\'', 1); DROP TABLE users; -- '" in sql
    assert "DEFAULT 'a\\\\''b'" in sql
    assert sql.endswith(" COMMENT='t\\\\''';")


def test_mysql_family_engines_escape_backslashes():
    assert DDLBuilder("mariadb").quote_literal("a\\b") == "'a\\\\b'"


def test_other_dialects_keep_backslashes():
    assert DDLBuilder("postgresql").format_default("a\\'b") == "'a\\''b'"
    assert DDLBuilder("sqlite").quote_literal("C:\\tmp") == "'C:\\tmp'"
