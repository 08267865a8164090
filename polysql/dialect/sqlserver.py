"""SQL Server dialect."""

from __future__ import annotations

from typing import Any, ClassVar

from polysql.dialect.base import BuiltSQL, Dialect, Pagination
from polysql.errors import CompilationError


class SQLServerDialect(Dialect):
    """SQL Server 2012+ flavoured SQL.

    Parameter style: ``@p1, @p2 ...`` – named, because ``tedious`` /
    ``pytds`` style drivers bind by name rather than by position.  Use
    :meth:`~polysql.dialect.base.BuiltSQL.as_named` to get the matching
    dict.

    Note: ``OFFSET ... FETCH`` is only valid after ``ORDER BY``; the SELECT
    builder adds ``ORDER BY (SELECT NULL)`` when the request has no order.
    """

    quote_chars: ClassVar[tuple[str, str]] = ("[", "]")
    family: ClassVar[str] = "sqlserver"
    supports_returning: ClassVar[bool] = True
    requires_order_for_pagination: ClassVar[bool] = True

    @property
    def name(self) -> str:
        return "sqlserver"

    def placeholder(self, index: int, name: str | None = None) -> str:
        return f"@{name or 'p'}{index}"

    def build_pagination(self, offset: int, limit: int, current_index: int) -> Pagination:
        offset_ph = self.placeholder(current_index + 1)
        limit_ph = self.placeholder(current_index + 2)
        return Pagination(
            sql=f" OFFSET {offset_ph} ROWS FETCH NEXT {limit_ph} ROWS ONLY",
            params=[offset, limit],
            new_index=current_index + 2,
            placeholders=(offset_ph, limit_ph),
        )

    def regex_match(self, key: str, placeholder: str) -> str:
        raise CompilationError(
            "SQL Server has no regular-expression operator; use 'like' instead.",
            clause="WHERE",
        )

    def build_insert(
        self,
        table: str,
        columns: list[str],
        values: list[Any],
        returning: list[str] | None = None,
    ) -> BuiltSQL:
        output = ""
        if returning:
            cols = ", ".join(f"INSERTED.{self.quote_identifier(c)}" for c in returning)
            output = f" OUTPUT {cols}"
        sql = (
            f"INSERT INTO {self.quote_identifier(table)} ({self.quote_columns(columns)})"
            f"{output} VALUES ({', '.join(self.placeholders(len(values)))})"
        )
        return BuiltSQL(sql=sql, params=list(values), dialect=self.name)

    def build_upsert(
        self,
        table: str,
        columns: list[str],
        values: list[Any],
        conflict_columns: list[str],
        update_columns: list[str],
    ) -> BuiltSQL:
        quote = self.quote_identifier
        source = ", ".join(
            f"{ph} AS {quote(c)}" for ph, c in zip(self.placeholders(len(values)), columns)
        )
        on = " AND ".join(f"target.{quote(c)} = source.{quote(c)}" for c in conflict_columns)
        parts = [
            f"MERGE INTO {quote(table)} AS target",
            f"USING (SELECT {source}) AS source",
            f"ON {on}",
        ]
        if update_columns:
            sets = ", ".join(f"target.{quote(c)} = source.{quote(c)}" for c in update_columns)
            parts.append(f"WHEN MATCHED THEN UPDATE SET {sets}")
        source_cols = ", ".join(f"source.{quote(c)}" for c in columns)
        parts.append(
            f"WHEN NOT MATCHED THEN INSERT ({self.quote_columns(columns)}) VALUES ({source_cols});"
        )
        return BuiltSQL(sql=" ".join(parts), params=list(values), dialect=self.name)
