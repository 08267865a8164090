"""Oracle dialects (12c+ and legacy ROWNUM pagination)."""

from __future__ import annotations

from typing import Any, ClassVar

from polysql.dialect.base import BuiltSQL, Dialect, Pagination


class OracleDialect(Dialect):
    """Oracle 12c+ flavoured SQL.

    Parameter style: ``:1, :2 ...`` – numeric binds accepted positionally by
    ``python-oracledb``.

    Oracle rejects ``AS`` before a table alias, so FROM clauses read
    ``"users" t``.  Multi-row inserts use ``INSERT ALL``.
    """

    quote_chars: ClassVar[tuple[str, str]] = ('"', '"')
    family: ClassVar[str] = "oracle"
    supports_returning: ClassVar[bool] = True
    alias_keyword: ClassVar[str] = ""

    @property
    def name(self) -> str:
        return "oracle"

    def placeholder(self, index: int, name: str | None = None) -> str:
        if name:
            return f":{name}"
        return f":{index}"

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
        return f"REGEXP_LIKE({key}, {placeholder})"

    def build_insert(
        self,
        table: str,
        columns: list[str],
        values: list[Any],
        returning: list[str] | None = None,
    ) -> BuiltSQL:
        """Build a single-row INSERT, with ``RETURNING ... INTO`` when asked.

        ``params`` holds only the inserted values.  The output variables
        (``:out1``, ``:out2`` ...) are listed in ``out_binds``; with
        ``python-oracledb`` the executor appends one ``cursor.var(...)`` per
        name, in order, to the bound values.
        """
        sql = (
            f"INSERT INTO {self.quote_identifier(table)} ({self.quote_columns(columns)}) "
            f"VALUES ({', '.join(self.placeholders(len(values)))})"
        )
        out_binds: list[str] = []
        if returning:
            out_binds = [f"out{i}" for i in range(1, len(returning) + 1)]
            out_vars = ", ".join(f":{name}" for name in out_binds)
            sql += f" RETURNING {self.quote_columns(returning)} INTO {out_vars}"
        return BuiltSQL(sql=sql, params=list(values), dialect=self.name, out_binds=out_binds)

    def build_batch_insert(
        self,
        table: str,
        columns: list[str],
        rows: list[list[Any]],
    ) -> BuiltSQL:
        target = f"{self.quote_identifier(table)} ({self.quote_columns(columns)})"
        params: list[Any] = []
        clauses: list[str] = []
        for values in rows:
            phs = self.placeholders(len(values), len(params) + 1)
            clauses.append(f"INTO {target} VALUES ({', '.join(phs)})")
            params.extend(values)
        sql = f"INSERT ALL {' '.join(clauses)} SELECT 1 FROM DUAL"
        return BuiltSQL(sql=sql, params=params, dialect=self.name)

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
            f"MERGE INTO {quote(table)} target",
            f"USING (SELECT {source} FROM DUAL) source",
            f"ON ({on})",
        ]
        if update_columns:
            sets = ", ".join(f"target.{quote(c)} = source.{quote(c)}" for c in update_columns)
            parts.append(f"WHEN MATCHED THEN UPDATE SET {sets}")
        source_cols = ", ".join(f"source.{quote(c)}" for c in columns)
        parts.append(
            f"WHEN NOT MATCHED THEN INSERT ({self.quote_columns(columns)}) VALUES ({source_cols})"
        )
        return BuiltSQL(sql=" ".join(parts), params=list(values), dialect=self.name)


class LegacyOracleDialect(OracleDialect):
    """Oracle 11g and older: no ``OFFSET ... FETCH``.

    Pagination wraps the finished query in two ROWNUM filters and binds
    ``(offset + limit, offset)``, the order the filters appear in the
    wrapper.
    """

    @property
    def name(self) -> str:
        return "oracle11g"

    def build_pagination(self, offset: int, limit: int, current_index: int) -> Pagination:
        upper_ph = self.placeholder(current_index + 1)
        lower_ph = self.placeholder(current_index + 2)
        return Pagination(
            sql="",
            params=[offset + limit, offset],
            new_index=current_index + 2,
            placeholders=(upper_ph, lower_ph),
        )

    def apply_pagination(self, sql: str, pagination: Pagination) -> str:
        upper_ph, lower_ph = pagination.placeholders
        return (
            f"SELECT * FROM (SELECT a.*, ROWNUM rnum FROM ({sql}) a "
            f"WHERE ROWNUM <= {upper_ph}) WHERE rnum > {lower_ph}"
        )
