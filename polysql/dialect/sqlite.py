"""SQLite dialect."""
from __future__ import annotations

from typing import Any, ClassVar

from polysql.dialect.base import BuiltSQL, Dialect, Pagination


class SQLiteDialect(Dialect):
    """SQLite 3.35+ flavoured SQL.

    Parameter style: ``?`` – compatible with Python's built-in ``sqlite3``
    positional execution (``cursor.execute(sql, params)``).

    Note: ``REGEXP`` only works once the application registers a
    ``regexp`` function on the connection.
    """

    quote_chars: ClassVar[tuple[str, str]] = ("`", "`")
    family: ClassVar[str] = "sqlite"
    supports_returning: ClassVar[bool] = True

    @property
    def name(self) -> str:
        return "sqlite"

    def placeholder(self, index: int, name: str | None = None) -> str:
        return "?"

    def build_pagination(self, offset: int, limit: int, current_index: int) -> Pagination:
        return Pagination(
            sql=" LIMIT ? OFFSET ?",
            params=[limit, offset],
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
        sql = (
            f"INSERT INTO {self.quote_identifier(table)} ({self.quote_columns(columns)}) "
            f"VALUES ({', '.join(self.placeholders(len(values)))}) "
            f"ON CONFLICT ({self.quote_columns(conflict_columns)}) "
        )
        if update_columns:
            updates = ", ".join(
                f"{self.quote_identifier(c)} = excluded.{self.quote_identifier(c)}"
                for c in update_columns
            )
            sql += f"DO UPDATE SET {updates}"
        else:
            sql += "DO NOTHING"
        return BuiltSQL(sql=sql, params=list(values), dialect=self.name)
