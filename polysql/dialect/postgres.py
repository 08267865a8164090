"""PostgreSQL dialect."""

from __future__ import annotations

from typing import Any, ClassVar

from polysql.dialect.base import BuiltSQL, Dialect, Pagination


class PostgreSQLDialect(Dialect):
    """PostgreSQL 10+ flavoured SQL.

    Parameter style: ``$1, $2 ...`` – numbered, as used by ``asyncpg`` and
    server-side prepared statements.  Every placeholder number is unique
    within a statement, so the builder's running index must never be
    reset mid-statement.
    """

    quote_chars: ClassVar[tuple[str, str]] = ('"', '"')
    family: ClassVar[str] = "postgresql"
    supports_returning: ClassVar[bool] = True

    @property
    def name(self) -> str:
        return "postgresql"

    def placeholder(self, index: int, name: str | None = None) -> str:
        return f"${index}"

    def build_pagination(self, offset: int, limit: int, current_index: int) -> Pagination:
        limit_ph = self.placeholder(current_index + 1)
        offset_ph = self.placeholder(current_index + 2)
        return Pagination(
            sql=f" LIMIT {limit_ph} OFFSET {offset_ph}",
            params=[limit, offset],
            new_index=current_index + 2,
            placeholders=(limit_ph, offset_ph),
        )

    def regex_match(self, key: str, placeholder: str) -> str:
        return f"{key} ~ {placeholder}"

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
                f"{self.quote_identifier(c)} = EXCLUDED.{self.quote_identifier(c)}"
                for c in update_columns
            )
            sql += f"DO UPDATE SET {updates}"
        else:
            sql += "DO NOTHING"
        return BuiltSQL(sql=sql, params=list(values), dialect=self.name)
