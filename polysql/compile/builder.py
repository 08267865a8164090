"""Request → SQL statement builders.

``SQLBuilder`` is the top-level orchestrator.  It wires together the
clause-level sub-builders and assembles the final statement text.  All
database-specific behaviour is delegated to the injected
:class:`~polysql.dialect.base.Dialect`.

Sub-builder hierarchy
---------------------
SQLBuilder
  ├── ConditionCompiler   (conditions.py)
  │     └── OperatorRegistry handlers (operators.py)
  └── SetClauseBuilder    (update.py)
        └── CaseUpdateBuilder

Runtime context
---------------
Every ``build_*`` call creates its own
:class:`~polysql.compile.context.RuntimeContext`.  SET, WHERE and
pagination placeholders are all drawn from it, so numbering starts at 1
for each statement, ``params`` follows the textual placeholder order, and
a single builder can be shared between threads.

Structural input (table, columns, aliases, GROUP BY / ORDER BY fields) is
validated with :func:`~polysql.validate.identifier.validate_identifier`
before it is concatenated; values only ever travel as parameters.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from polysql.compile.conditions import ConditionCompiler, ConditionsInput, coerce_conditions
from polysql.compile.context import CompilationContext, RuntimeContext
from polysql.compile.update import SetClauseBuilder
from polysql.dialect.base import BuiltSQL, Dialect
from polysql.dialect.registry import DialectFactory
from polysql.errors import (
    CompilationError,
    EmptyBatchInsertError,
    InvalidRequestError,
)
from polysql.schema.operators import AGGREGATE_FUNCTIONS, SORT_DIRECTIONS
from polysql.schema.options import BuilderOptions
from polysql.schema.request import (
    AggregateParams,
    DeleteParams,
    QueryParams,
    UpdateParams,
    parse_request,
)
from polysql.utils.logging import get_logger
from polysql.validate.identifier import validate_identifier, validate_identifiers

logger = get_logger("builder")


@dataclass
class QueryBuiltSQL(BuiltSQL):
    """SELECT output with the individual clauses echoed for inspection."""

    select: str = ""
    where: str = ""
    order_by: str = ""
    group_by: str = ""
    limit: str = ""


@dataclass
class UpdateBuiltSQL(BuiltSQL):
    """UPDATE output with the SET assignments and WHERE body echoed."""

    set: list[str] = field(default_factory=list)
    where: str = ""


@dataclass
class DeleteBuiltSQL(BuiltSQL):
    """DELETE output with the WHERE body echoed."""

    where: str = ""


class SQLBuilder:
    """Builds parameterized statements for one dialect.

    Args:
        dialect: A :class:`~polysql.dialect.base.Dialect` instance or a
            dialect name / alias.  Defaults to ``options.dialect``.
        options: Builder configuration; defaults to ``BuilderOptions()``.

    Raises:
        UnsupportedDialectError: If ``dialect`` names no registered dialect.
    """

    def __init__(
        self,
        dialect: Dialect | str | None = None,
        options: BuilderOptions | None = None,
    ) -> None:
        self._options = options or BuilderOptions()
        resolved = DialectFactory.get(dialect if dialect is not None else self._options.dialect)
        self._ctx = CompilationContext(dialect=resolved, table_alias=self._options.table_alias)
        self._conditions = ConditionCompiler(resolved)
        self._set = SetClauseBuilder()

    @property
    def dialect(self) -> Dialect:
        """The dialect statements are built for."""
        return self._ctx.dialect

    @property
    def options(self) -> BuilderOptions:
        """The builder configuration."""
        return self._options

    # ------------------------------------------------------------------
    # SELECT family
    # ------------------------------------------------------------------

    def build_select(self, params: QueryParams | Mapping[str, Any]) -> QueryBuiltSQL:
        """Build ``SELECT ... FROM <table> AS t WHERE ...``.

        Clause order is fixed: WHERE, GROUP BY, ORDER BY, pagination.

        Args:
            params: Query request (model or plain dict).

        Returns:
            :class:`QueryBuiltSQL` with the SQL, params and echoed clauses.
        """
        request = parse_request(QueryParams, params)
        dialect = self.dialect
        alias = self._ctx.table_alias
        runtime = RuntimeContext(dialect)
        table_sql = dialect.table_reference(validate_identifier(request.table_name), alias)

        select = ", ".join(validate_identifiers(request.select)) if request.select else f"{alias}.*"
        where = self._conditions.build(request.conditions, runtime)
        group_by = self._group_by(request.group_by)
        order_by = self._order_by(request.order_by)

        pagination = None
        if request.pagination is not None:
            if not order_by and dialect.requires_order_for_pagination:
                order_by = " ORDER BY (SELECT NULL)"
            pagination = runtime.paginate(*request.pagination)

        sql = f"SELECT {select} FROM {table_sql} WHERE {where}{group_by}{order_by}"
        if pagination is not None:
            sql = dialect.apply_pagination(sql, pagination)

        result = QueryBuiltSQL(
            sql=sql,
            params=runtime.params,
            dialect=dialect.name,
            select=select,
            where=where,
            order_by=order_by,
            group_by=group_by,
            limit=pagination.sql if pagination is not None else "",
        )
        self._log("select", result)
        return result

    def build_count(self, params: QueryParams | Mapping[str, Any]) -> BuiltSQL:
        """Build ``SELECT COUNT(*) AS total`` over the request's conditions."""
        request = parse_request(QueryParams, params)
        runtime = RuntimeContext(self.dialect)
        table_sql = self.dialect.table_reference(
            validate_identifier(request.table_name), self._ctx.table_alias
        )
        where = self._conditions.build(request.conditions, runtime)
        result = BuiltSQL(
            sql=f"SELECT COUNT(*) AS total FROM {table_sql} WHERE {where}",
            params=runtime.params,
            dialect=self.dialect.name,
        )
        self._log("count", result)
        return result

    def build_aggregate(self, params: AggregateParams | Mapping[str, Any]) -> BuiltSQL:
        """Build an aggregate SELECT such as ``SELECT SUM(amount) AS total``.

        Only ``count``, ``sum``, ``max``, ``min``, ``avg`` and ``abs`` are
        recognised (case-insensitively).  Other function names are dropped
        from the SELECT list without an error; the drop is logged at DEBUG.

        Raises:
            CompilationError: If no recognised aggregate remains.
        """
        request = parse_request(AggregateParams, params)
        runtime = RuntimeContext(self.dialect)

        select_parts: list[str] = []
        for agg in request.aggregate:
            fn = AGGREGATE_FUNCTIONS.get(agg.function.strip().lower())
            if fn is None:
                logger.debug("Dropping unsupported aggregate function %r", agg.function)
                continue
            select_parts.append(
                f"{fn}({validate_identifier(agg.field)}) AS {validate_identifier(agg.name)}"
            )
        if not select_parts:
            raise CompilationError("No supported aggregate function in request.", clause="SELECT")

        table_sql = self.dialect.table_reference(
            validate_identifier(request.table_name), self._ctx.table_alias
        )
        where = self._conditions.build(request.conditions, runtime)
        group_by = self._group_by(request.group_by)
        result = BuiltSQL(
            sql=f"SELECT {', '.join(select_parts)} FROM {table_sql} WHERE {where}{group_by}",
            params=runtime.params,
            dialect=self.dialect.name,
        )
        self._log("aggregate", result)
        return result

    def build_where(self, conditions: ConditionsInput) -> BuiltSQL:
        """Compile conditions on their own (placeholders start at 1).

        ``conditions`` may be a condition list or a simple-object mapping.
        """
        return self._conditions.compile(coerce_conditions(conditions))

    # ------------------------------------------------------------------
    # UPDATE / DELETE
    # ------------------------------------------------------------------

    def build_update(self, params: UpdateParams | Mapping[str, Any]) -> UpdateBuiltSQL:
        """Build ``UPDATE <table> SET ... WHERE ...``.

        SET placeholders precede WHERE placeholders.  Refusing an empty
        WHERE is the caller's job (see
        :class:`~polysql.policy.guard.OperationGuard`).

        Raises:
            CompilationError: If every update item was skipped.
        """
        request = parse_request(UpdateParams, params)
        runtime = RuntimeContext(self.dialect)
        table_sql = self.dialect.quote_identifier(validate_identifier(request.table_name))

        assignments = self._set.build(request.update, runtime)
        if not assignments:
            raise CompilationError("UPDATE request has no assignments.", clause="SET")
        where = self._conditions.build(request.conditions, runtime)

        result = UpdateBuiltSQL(
            sql=f"UPDATE {table_sql} SET {', '.join(assignments)} WHERE {where}",
            params=runtime.params,
            dialect=self.dialect.name,
            set=assignments,
            where=where,
        )
        self._log("update", result)
        return result

    def build_delete(self, params: DeleteParams | Mapping[str, Any]) -> DeleteBuiltSQL:
        """Build ``DELETE FROM <table> WHERE ...``.

        An empty condition list yields ``WHERE 1=1``; refusing it is the
        caller's job (see :class:`~polysql.policy.guard.OperationGuard`).
        """
        request = parse_request(DeleteParams, params)
        runtime = RuntimeContext(self.dialect)
        table_sql = self.dialect.quote_identifier(validate_identifier(request.table_name))
        where = self._conditions.build(request.conditions, runtime)
        result = DeleteBuiltSQL(
            sql=f"DELETE FROM {table_sql} WHERE {where}",
            params=runtime.params,
            dialect=self.dialect.name,
            where=where,
        )
        self._log("delete", result)
        return result

    # ------------------------------------------------------------------
    # INSERT family
    # ------------------------------------------------------------------

    def build_insert(
        self,
        table: str,
        data: Mapping[str, Any],
        returning: list[str] | None = None,
    ) -> BuiltSQL:
        """Build a single-row INSERT from a column -> value mapping.

        Args:
            table: Target table.
            data: Column -> value; key order is the column order.
            returning: Columns to return where the dialect supports it.
        """
        validate_identifier(table)
        if not data:
            raise InvalidRequestError(f"Cannot insert an empty row into '{table}'.")
        columns = validate_identifiers(list(data))
        result = self.dialect.build_insert(
            table,
            columns,
            [data[c] for c in columns],
            validate_identifiers(returning) if returning else None,
        )
        self._log("insert", result)
        return result

    def build_batch_insert(self, table: str, rows: list[Mapping[str, Any]]) -> BuiltSQL:
        """Build a multi-row INSERT.

        The column list is taken from the first row; every other row must
        have exactly the same keys.

        Raises:
            EmptyBatchInsertError: If ``rows`` is empty.
            InvalidRequestError: If rows do not share the same keys.
        """
        validate_identifier(table)
        if not rows:
            raise EmptyBatchInsertError(table)
        columns = validate_identifiers(list(rows[0]))
        if not columns:
            raise InvalidRequestError(f"Cannot insert an empty row into '{table}'.")
        expected = set(columns)
        values: list[list[Any]] = []
        for position, row in enumerate(rows):
            if set(row) != expected:
                raise InvalidRequestError(
                    f"Row {position} of batch insert into '{table}' does not match "
                    f"the columns of the first row.",
                    details={"row": position, "expected": columns, "got": list(row)},
                )
            values.append([row[c] for c in columns])
        result = self.dialect.build_batch_insert(table, columns, values)
        self._log("batch insert", result)
        return result

    def build_upsert(
        self,
        table: str,
        data: Mapping[str, Any],
        conflict_columns: list[str],
        update_columns: list[str] | None = None,
    ) -> BuiltSQL:
        """Build an insert-or-update statement.

        Args:
            table: Target table.
            data: Column -> value for the inserted row.
            conflict_columns: Columns that identify an existing row.
            update_columns: Columns overwritten on conflict; defaults to every
                non-conflict column of ``data``.
        """
        validate_identifier(table)
        if not data:
            raise InvalidRequestError(f"Cannot upsert an empty row into '{table}'.")
        if not conflict_columns:
            raise InvalidRequestError(f"Upsert into '{table}' needs conflict columns.")
        columns = validate_identifiers(list(data))
        conflict = validate_identifiers(conflict_columns)
        if update_columns is None:
            updates = [c for c in columns if c not in conflict]
        else:
            updates = validate_identifiers(update_columns)
        result = self.dialect.build_upsert(
            table, columns, [data[c] for c in columns], conflict, updates
        )
        self._log("upsert", result)
        return result

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _group_by(fields: list[str]) -> str:
        if not fields:
            return ""
        return f" GROUP BY {', '.join(validate_identifiers(fields))}"

    @staticmethod
    def _order_by(order: dict[str, str]) -> str:
        parts: list[str] = []
        for name, direction in order.items():
            validate_identifier(name)
            if direction in SORT_DIRECTIONS:
                parts.append(f"{name} {direction}")
        return f" ORDER BY {', '.join(parts)}" if parts else ""

    def _log(self, kind: str, result: BuiltSQL) -> None:
        if self._options.log_statements:
            logger.debug(
                "Built %s for %s: %s (%d params)",
                kind,
                result.dialect,
                result.sql,
                len(result.params),
            )
