"""DDL statement builder.

``DDLBuilder`` renders CREATE / DROP / ALTER TABLE and CREATE INDEX
statements from :mod:`polysql.schema.ddl` definitions.  Engine differences
are keyed on :attr:`Dialect.family <polysql.dialect.base.Dialect.family>`,
so MySQL-compatible engines (MariaDB, TiDB, OceanBase ...) share MySQL's
type names and table options.

Table names are quoted with the dialect's identifier quotes; column, index
and type names are validated and emitted bare.  Every statement ends with
``;``.
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from pydantic import TypeAdapter, ValidationError

from polysql.dialect.base import Dialect
from polysql.dialect.registry import DialectFactory
from polysql.errors import CompilationError, InvalidRequestError
from polysql.schema.ddl import (
    AddColumn,
    AddIndex,
    AlterAction,
    ColumnDefinition,
    DropColumn,
    DropIndex,
    IndexDefinition,
    ModifyColumn,
    RenameColumn,
    RenameTable,
    TableDefinition,
)
from polysql.schema.request import parse_request
from polysql.utils.logging import get_logger
from polysql.validate.identifier import (
    is_safe_format_value,
    validate_identifier,
    validate_identifiers,
)

logger = get_logger("ddl")

_ALTER_ACTIONS = TypeAdapter(list[AlterAction])

MYSQL = "mysql"
POSTGRESQL = "postgresql"
SQLITE = "sqlite"
SQLSERVER = "sqlserver"
ORACLE = "oracle"

# Portable type name -> family -> native type.  ``{length}``, ``{precision}``
# and ``{scale}`` are filled from the column definition.
TYPE_MAP: dict[str, dict[str, str]] = {
    "int": {MYSQL: "INT", POSTGRESQL: "INTEGER", SQLITE: "INTEGER", SQLSERVER: "INT", ORACLE: "NUMBER(10)"},
    "bigint": {MYSQL: "BIGINT", POSTGRESQL: "BIGINT", SQLITE: "INTEGER", SQLSERVER: "BIGINT", ORACLE: "NUMBER(19)"},
    "tinyint": {MYSQL: "TINYINT", POSTGRESQL: "SMALLINT", SQLITE: "INTEGER", SQLSERVER: "TINYINT", ORACLE: "NUMBER(3)"},
    "varchar": {
        MYSQL: "VARCHAR({length})",
        POSTGRESQL: "VARCHAR({length})",
        SQLITE: "TEXT",
        SQLSERVER: "NVARCHAR({length})",
        ORACLE: "VARCHAR2({length})",
    },
    "text": {MYSQL: "TEXT", POSTGRESQL: "TEXT", SQLITE: "TEXT", SQLSERVER: "NVARCHAR(MAX)", ORACLE: "CLOB"},
    "boolean": {MYSQL: "TINYINT(1)", POSTGRESQL: "BOOLEAN", SQLITE: "INTEGER", SQLSERVER: "BIT", ORACLE: "NUMBER(1)"},
    "datetime": {MYSQL: "DATETIME", POSTGRESQL: "TIMESTAMP", SQLITE: "TEXT", SQLSERVER: "DATETIME2", ORACLE: "TIMESTAMP"},
    "date": {MYSQL: "DATE", POSTGRESQL: "DATE", SQLITE: "TEXT", SQLSERVER: "DATE", ORACLE: "DATE"},
    "decimal": {
        MYSQL: "DECIMAL({precision}, {scale})",
        POSTGRESQL: "DECIMAL({precision}, {scale})",
        SQLITE: "REAL",
        SQLSERVER: "DECIMAL({precision}, {scale})",
        ORACLE: "NUMBER({precision}, {scale})",
    },
    "json": {MYSQL: "JSON", POSTGRESQL: "JSONB", SQLITE: "TEXT", SQLSERVER: "NVARCHAR(MAX)", ORACLE: "CLOB"},
    "blob": {MYSQL: "BLOB", POSTGRESQL: "BYTEA", SQLITE: "BLOB", SQLSERVER: "VARBINARY(MAX)", ORACLE: "BLOB"},
}

DEFAULT_LENGTH = 255
DEFAULT_PRECISION = 10
DEFAULT_SCALE = 2

# Defaults emitted verbatim rather than as string literals.
_DEFAULT_KEYWORDS = frozenset({"CURRENT_TIMESTAMP", "CURRENT_DATE", "CURRENT_TIME"})


def _quote_literal(text: str) -> str:
    return "'" + text.replace("'", "''") + "'"


class DDLBuilder:
    """Builds DDL statements for one dialect.

    Args:
        dialect: A :class:`~polysql.dialect.base.Dialect` or a dialect name /
            alias.
    """

    def __init__(self, dialect: Dialect | str) -> None:
        self._dialect = DialectFactory.get(dialect)

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    @property
    def family(self) -> str:
        return self._dialect.family

    # ------------------------------------------------------------------
    # CREATE / DROP
    # ------------------------------------------------------------------

    def build_create_table(self, definition: TableDefinition | dict[str, Any]) -> str:
        """Render ``CREATE TABLE`` for ``definition``.

        Primary key columns are collected into a table-level
        ``PRIMARY KEY (...)`` constraint, except for an auto-increment
        primary key on SQLite, which must be declared inline.

        Returns:
            A single statement terminated by ``;``.
        """
        definition = parse_request(TableDefinition, definition)
        table = self._table(definition.table_name)

        body = [self._column_def(col) for col in definition.columns]
        primary = [
            col.name
            for col in definition.columns
            if col.primary and not self._inline_primary_key(col)
        ]
        if primary:
            body.append(f"PRIMARY KEY ({', '.join(primary)})")
        body.extend(
            f"UNIQUE ({col.name})" for col in definition.columns if col.unique and not col.primary
        )

        if_not_exists = "IF NOT EXISTS " if definition.if_not_exists else ""
        sql = f"CREATE TABLE {if_not_exists}{table} (\n  " + ",\n  ".join(body) + "\n)"
        if self.family == MYSQL:
            sql += self._mysql_table_options(definition)
        return sql + ";"

    def build_schema(self, definition: TableDefinition | dict[str, Any]) -> list[str]:
        """Return ``CREATE TABLE`` followed by one ``CREATE INDEX`` per index."""
        definition = parse_request(TableDefinition, definition)
        statements = [self.build_create_table(definition)]
        statements.extend(
            self.build_create_index(definition.table_name, index) for index in definition.indexes
        )
        return statements

    def build_drop_table(self, table_name: str, if_exists: bool = True) -> str:
        if_exists_sql = "IF EXISTS " if if_exists else ""
        return f"DROP TABLE {if_exists_sql}{self._table(table_name)};"

    def build_create_index(self, table_name: str, index: IndexDefinition | dict[str, Any]) -> str:
        index = parse_request(IndexDefinition, index)
        unique = "UNIQUE " if index.unique else ""
        columns = ", ".join(validate_identifiers(index.columns))
        return (
            f"CREATE {unique}INDEX {validate_identifier(index.name)} "
            f"ON {self._table(table_name)} ({columns});"
        )

    # ------------------------------------------------------------------
    # ALTER
    # ------------------------------------------------------------------

    def build_alter_table(
        self,
        table_name: str,
        actions: Sequence[AlterAction | dict[str, Any]],
    ) -> list[str]:
        """Render one statement per ALTER action, in order.

        Raises:
            CompilationError: If the dialect cannot express an action
                (e.g. ``modify_column`` on SQLite).
        """
        parsed = self._coerce_actions(actions)
        return [self._alter(table_name, action) for action in parsed]

    def _alter(self, table_name: str, action: Any) -> str:
        table = self._table(table_name)
        family = self.family

        if isinstance(action, AddColumn):
            column = self._column_def(action.column)
            if family == ORACLE:
                return f"ALTER TABLE {table} ADD ({column});"
            if family == SQLSERVER:
                return f"ALTER TABLE {table} ADD {column};"
            return f"ALTER TABLE {table} ADD COLUMN {column};"

        if isinstance(action, DropColumn):
            return f"ALTER TABLE {table} DROP COLUMN {validate_identifier(action.column_name)};"

        if isinstance(action, ModifyColumn):
            if family == MYSQL:
                return f"ALTER TABLE {table} MODIFY COLUMN {self._column_def(action.column)};"
            if family == POSTGRESQL:
                name = validate_identifier(action.column.name)
                return f"ALTER TABLE {table} ALTER COLUMN {name} TYPE {self.map_type(action.column)};"
            if family == SQLSERVER:
                return f"ALTER TABLE {table} ALTER COLUMN {self._column_def(action.column)};"
            if family == ORACLE:
                return f"ALTER TABLE {table} MODIFY ({self._column_def(action.column)});"
            raise CompilationError(
                f"{self._dialect.name} cannot modify a column in place.", clause="ALTER TABLE"
            )

        if isinstance(action, RenameColumn):
            old = validate_identifier(action.old_name)
            new = validate_identifier(action.new_name)
            if family == SQLSERVER:
                return (
                    f"EXEC sp_rename {_quote_literal(f'{validate_identifier(table_name)}.{old}')}, "
                    f"{_quote_literal(new)}, 'COLUMN';"
                )
            return f"ALTER TABLE {table} RENAME COLUMN {old} TO {new};"

        if isinstance(action, AddIndex):
            return self.build_create_index(table_name, action.index)

        if isinstance(action, DropIndex):
            index = validate_identifier(action.index_name)
            if family in (MYSQL, SQLSERVER):
                return f"DROP INDEX {index} ON {table};"
            return f"DROP INDEX {index};"

        if isinstance(action, RenameTable):
            new = validate_identifier(action.new_name)
            if family == SQLSERVER:
                return (
                    f"EXEC sp_rename {_quote_literal(validate_identifier(table_name))}, "
                    f"{_quote_literal(new)};"
                )
            return f"ALTER TABLE {table} RENAME TO {self._dialect.quote_identifier(new)};"

        raise CompilationError(f"Unknown ALTER action {action!r}.", clause="ALTER TABLE")

    # ------------------------------------------------------------------
    # Column rendering
    # ------------------------------------------------------------------

    def map_type(self, column: ColumnDefinition) -> str:
        """Return the native type for ``column`` in this dialect.

        Portable names are looked up in :data:`TYPE_MAP`; anything else is
        validated as an identifier and passed through upper-cased (with
        ``(length)`` when a length is given).
        """
        type_name = column.type.strip().lower()
        if column.increment and self.family == POSTGRESQL:
            return "BIGSERIAL" if type_name == "bigint" else "SERIAL"

        template = TYPE_MAP.get(type_name, {}).get(self.family)
        if template is not None:
            return template.format(
                length=column.length or DEFAULT_LENGTH,
                precision=column.precision or DEFAULT_PRECISION,
                scale=column.scale if column.scale is not None else DEFAULT_SCALE,
            )

        native = validate_identifier(column.type.strip()).upper()
        if column.length:
            return f"{native}({column.length})"
        return native

    def _column_def(self, column: ColumnDefinition) -> str:
        parts = [validate_identifier(column.name), self.map_type(column)]

        if self._inline_primary_key(column):
            parts.append("PRIMARY KEY AUTOINCREMENT")
        elif column.increment:
            increment = self._auto_increment_keyword()
            if increment:
                parts.append(increment)

        if not column.nullable or column.primary:
            parts.append("NOT NULL")

        if column.has_default and not column.increment:
            parts.append(f"DEFAULT {self.format_default(column.default)}")

        if column.comment and self.family == MYSQL:
            parts.append(f"COMMENT {self.quote_literal(column.comment)}")

        return " ".join(parts)

    def _inline_primary_key(self, column: ColumnDefinition) -> bool:
        return self.family == SQLITE and column.increment and column.primary

    def _auto_increment_keyword(self) -> str:
        if self.family == MYSQL:
            return "AUTO_INCREMENT"
        if self.family == SQLSERVER:
            return "IDENTITY(1,1)"
        if self.family == ORACLE:
            return "GENERATED BY DEFAULT AS IDENTITY"
        if self.family == SQLITE:
            # Only valid on an INTEGER PRIMARY KEY; the rowid already
            # auto-assigns otherwise.
            logger.debug("Ignoring auto-increment on a non-primary SQLite column")
        return ""

    def format_default(self, value: Any) -> str:
        """Render a column default as a SQL literal.

        ``None`` → ``NULL``; booleans → ``TRUE``/``FALSE`` on PostgreSQL and
        ``1``/``0`` elsewhere; numbers verbatim; ``CURRENT_TIMESTAMP`` and
        safe function calls such as ``now()`` verbatim; other strings are
        single-quoted with embedded quotes doubled.
        """
        if value is None:
            return "NULL"
        if isinstance(value, bool):
            if self.family == POSTGRESQL:
                return "TRUE" if value else "FALSE"
            return "1" if value else "0"
        if isinstance(value, (int, float)):
            return str(value)
        text = str(value)
        if text.upper() in _DEFAULT_KEYWORDS:
            return text.upper()
        if "(" in text and is_safe_format_value(text):
            return text
        return self.quote_literal(text)

    def quote_literal(self, text: str) -> str:
        """Return ``text`` as a single-quoted string literal.

        Quotes are doubled everywhere.  MySQL-family servers also treat
        ``\\`` as an escape character inside literals, so backslashes are
        doubled there first.
        """
        if self.family == MYSQL:
            text = text.replace("\\", "\\\\")
        return _quote_literal(text)

    def _mysql_table_options(self, definition: TableDefinition) -> str:
        options = ""
        if definition.engine:
            options += f" ENGINE={validate_identifier(definition.engine)}"
        if definition.charset:
            options += f" DEFAULT CHARSET={validate_identifier(definition.charset)}"
        if definition.collation:
            options += f" COLLATE={validate_identifier(definition.collation)}"
        if definition.comment:
            options += f" COMMENT={self.quote_literal(definition.comment)}"
        return options

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _table(self, name: str) -> str:
        return self._dialect.quote_identifier(validate_identifier(name))

    @staticmethod
    def _coerce_actions(actions: Sequence[Any]) -> list[Any]:
        try:
            return _ALTER_ACTIONS.validate_python(list(actions))
        except ValidationError as exc:
            raise InvalidRequestError(
                f"ALTER actions are invalid: {exc}",
                details={"errors": exc.errors(include_url=False)},
            ) from exc

