"""MySQL dialect and its protocol-compatible variants."""

from __future__ import annotations

from typing import Any, ClassVar

from polysql.dialect.base import BuiltSQL, Dialect, Pagination


class MySQLDialect(Dialect):
    """MySQL 5.7+ / 8.0 flavoured SQL.

    Parameter style: ``?`` – positional, compatible with ``PyMySQL`` and
    ``mysql-connector-python`` (``paramstyle`` translated by the driver
    layer).  Identifiers are quoted with backticks.

    Pagination is ``LIMIT ?, ?`` and binds ``(offset, limit)``, the same
    order the two values appear in the clause.
    """

    quote_chars: ClassVar[tuple[str, str]] = ("`", "`")
    family: ClassVar[str] = "mysql"

    @property
    def name(self) -> str:
        return "mysql"

    def placeholder(self, index: int, name: str | None = None) -> str:
        return "?"

    def build_pagination(self, offset: int, limit: int, current_index: int) -> Pagination:
        return Pagination(
            sql=" LIMIT ?, ?",
            params=[offset, limit],
            new_index=current_index + 2,
            placeholders=("?", "?"),
        )

    def build_upsert(
        self,
        table: str,
        columns: list[str],
        values: list[Any],
        conflict_columns: list[str],
        update_columns: list[str],
    ) -> BuiltSQL:
        # MySQL infers the conflict target from the table's unique keys.
        insert_sql = (
            f"{self.quote_identifier(table)} ({self.quote_columns(columns)}) "
            f"VALUES ({', '.join(self.placeholders(len(values)))})"
        )
        if not update_columns:
            return BuiltSQL(
                sql=f"INSERT IGNORE INTO {insert_sql}", params=list(values), dialect=self.name
            )
        updates = ", ".join(
            f"{self.quote_identifier(c)} = VALUES({self.quote_identifier(c)})"
            for c in update_columns
        )
        return BuiltSQL(
            sql=f"INSERT INTO {insert_sql} ON DUPLICATE KEY UPDATE {updates}",
            params=list(values),
            dialect=self.name,
        )


class MariaDBDialect(MySQLDialect):
    """MariaDB: MySQL syntax plus ``INSERT ... RETURNING`` (10.5+)."""

    supports_returning: ClassVar[bool] = True

    @property
    def name(self) -> str:
        return "mariadb"


class TiDBDialect(MySQLDialect):
    """TiDB: MySQL wire protocol and syntax."""

    @property
    def name(self) -> str:
        return "tidb"
