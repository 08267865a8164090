"""Dialect abstractions: BuiltSQL, Pagination and the Dialect ABC.

The Template Method pattern (GoF) is used:
- ``Dialect`` implements the statement shapes shared by most databases
  (quoting, INSERT, multi-row VALUES).
- Concrete dialects override the parts that really differ: placeholder
  syntax, pagination, RETURNING support, upserts and regex matching.

Dialects are stateless.  One instance per dialect is cached by
:class:`~polysql.dialect.registry.DialectFactory` and shared freely.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar

from polysql.utils.logging import get_logger

logger = get_logger("dialect")


@dataclass
class BuiltSQL:
    """The output of every builder.

    Attributes:
        sql: The SQL text with dialect-specific placeholders.
        params: Values for the placeholders, in the order they appear in
            ``sql``.
        dialect: Canonical name of the dialect that produced ``sql``.
        out_binds: Names of output bind variables in ``sql`` (Oracle
            ``RETURNING ... INTO :out1``).  They are not part of
            ``params``; the executor must supply a variable for each.
    """

    sql: str
    params: list[Any] = field(default_factory=list)
    dialect: str = ""
    out_binds: list[str] = field(default_factory=list)

    def as_named(self, prefix: str = "p") -> dict[str, Any]:
        """Return the params keyed by placeholder name.

        Drivers that bind by name (SQL Server's ``@p1, @p2 ...``) take
        this dict instead of the positional list.

        Args:
            prefix: Placeholder name prefix used when the statement was
                built (``p`` unless a caller passed its own).

        Returns:
            ``{"p1": params[0], "p2": params[1], ...}``
        """
        return {f"{prefix}{i}": value for i, value in enumerate(self.params, start=1)}


@dataclass(frozen=True)
class Pagination:
    """Pagination fragment produced by :meth:`Dialect.build_pagination`.

    Attributes:
        sql: Clause appended to the query (may be empty when the dialect
            wraps the query instead, see :meth:`Dialect.apply_pagination`).
        params: Bound values in textual placeholder order.
        new_index: Placeholder index after the pagination placeholders.
        placeholders: The placeholder strings, in the same order as
            ``params``.
    """

    sql: str
    params: list[Any]
    new_index: int
    placeholders: tuple[str, ...] = ()


class Dialect(ABC):
    """Abstract base for database dialects.

    Subclasses set the class attributes and implement the abstract
    methods; :class:`~polysql.compile.builder.SQLBuilder` only talks to
    this interface.
    """

    #: Opening / closing identifier quote characters.
    quote_chars: ClassVar[tuple[str, str]] = ('"', '"')
    #: Dialects sharing DDL syntax report the same family.
    family: ClassVar[str] = ""
    #: Whether ``INSERT ... RETURNING`` (or an equivalent) is available.
    supports_returning: ClassVar[bool] = False
    #: Keyword between a table and its alias (Oracle rejects ``AS``).
    alias_keyword: ClassVar[str] = "AS"
    #: Whether OFFSET pagination is only valid after an ORDER BY.
    requires_order_for_pagination: ClassVar[bool] = False

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the canonical dialect name (e.g. ``'postgresql'``)."""

    def get_type(self) -> str:
        """Return the canonical dialect name."""
        return self.name

    # ------------------------------------------------------------------
    # Placeholders and quoting
    # ------------------------------------------------------------------

    @abstractmethod
    def placeholder(self, index: int, name: str | None = None) -> str:
        """Return the placeholder for the ``index``-th parameter (1-based).

        Args:
            index: 1-based position of the parameter in the statement.
            name: Optional placeholder name for dialects that bind by name.

        Returns:
            Dialect-specific placeholder string.
        """

    def placeholders(self, count: int, start: int = 1) -> list[str]:
        """Return ``count`` consecutive placeholders starting at ``start``."""
        return [self.placeholder(i) for i in range(start, start + count)]

    def quote_identifier(self, name: str) -> str:
        """Return a properly-quoted SQL identifier.

        Dotted names (``schema.table``, ``t.column``) are quoted part by
        part; ``*`` is left bare.

        Args:
            name: Validated identifier.

        Returns:
            Quoted identifier.
        """
        return ".".join(self._quote_part(part) for part in name.split("."))

    def _quote_part(self, part: str) -> str:
        if part == "*":
            return part
        opening, closing = self.quote_chars
        escaped = part.replace(closing, closing * 2)
        return f"{opening}{escaped}{closing}"

    def quote_columns(self, columns: list[str]) -> str:
        """Return a comma-separated list of quoted column names."""
        return ", ".join(self.quote_identifier(c) for c in columns)

    def table_reference(self, table: str, alias: str | None = None) -> str:
        """Return ``<quoted table> [AS] <alias>`` for a FROM clause."""
        table_sql = self.quote_identifier(table)
        if not alias:
            return table_sql
        if self.alias_keyword:
            return f"{table_sql} {self.alias_keyword} {alias}"
        return f"{table_sql} {alias}"

    # ------------------------------------------------------------------
    # Pagination
    # ------------------------------------------------------------------

    @abstractmethod
    def build_pagination(self, offset: int, limit: int, current_index: int) -> Pagination:
        """Build the pagination clause for ``[offset, limit]``.

        Args:
            offset: Zero-based number of rows to skip.
            limit: Maximum number of rows to return.
            current_index: Number of placeholders already emitted.

        Returns:
            :class:`Pagination` whose params follow the textual order of its
            placeholders.
        """

    def apply_pagination(self, sql: str, pagination: Pagination) -> str:
        """Attach ``pagination`` to a complete SELECT statement."""
        return f"{sql}{pagination.sql}"

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    def regex_match(self, key: str, placeholder: str) -> str:
        """Return a regular-expression predicate on ``key``."""
        return f"{key} REGEXP {placeholder}"

    # ------------------------------------------------------------------
    # INSERT family
    # ------------------------------------------------------------------

    def build_insert(
        self,
        table: str,
        columns: list[str],
        values: list[Any],
        returning: list[str] | None = None,
    ) -> BuiltSQL:
        """Build a single-row INSERT.

        Args:
            table: Validated table name.
            columns: Validated column names.
            values: Values in column order.
            returning: Columns to return, where the dialect supports it.

        Returns:
            :class:`BuiltSQL` whose params are ``values``.
        """
        sql = (
            f"INSERT INTO {self.quote_identifier(table)} ({self.quote_columns(columns)}) "
            f"VALUES ({', '.join(self.placeholders(len(values)))})"
        )
        if returning:
            if self.supports_returning:
                sql += f" RETURNING {self.quote_columns(returning)}"
            else:
                logger.warning(
                    "%s does not support RETURNING; ignoring returning=%s", self.name, returning
                )
        return BuiltSQL(sql=sql, params=list(values), dialect=self.name)

    def build_batch_insert(
        self,
        table: str,
        columns: list[str],
        rows: list[list[Any]],
    ) -> BuiltSQL:
        """Build a multi-row ``INSERT ... VALUES (...), (...)``.

        Args:
            table: Validated table name.
            columns: Validated column names shared by every row.
            rows: One value list per row, in column order.

        Returns:
            :class:`BuiltSQL` with the row values flattened in row order.
        """
        params: list[Any] = []
        groups: list[str] = []
        for values in rows:
            groups.append(f"({', '.join(self.placeholders(len(values), len(params) + 1))})")
            params.extend(values)
        sql = (
            f"INSERT INTO {self.quote_identifier(table)} ({self.quote_columns(columns)}) "
            f"VALUES {', '.join(groups)}"
        )
        return BuiltSQL(sql=sql, params=params, dialect=self.name)

    @abstractmethod
    def build_upsert(
        self,
        table: str,
        columns: list[str],
        values: list[Any],
        conflict_columns: list[str],
        update_columns: list[str],
    ) -> BuiltSQL:
        """Build an insert-or-update statement.

        Args:
            table: Validated table name.
            columns: Validated column names.
            values: Values in column order.
            conflict_columns: Columns identifying an existing row.
            update_columns: Columns overwritten when the row exists.

        Returns:
            :class:`BuiltSQL` whose params are ``values``.
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
