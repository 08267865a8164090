"""polysql – Cross-database parameterized SQL from JSON-shaped requests.

Describe the statement, not the SQL.

Public API
----------
``build_request``
    Parse, guard and build a SELECT / COUNT / aggregate / UPDATE / DELETE
    request in one call.

``create_builder`` / ``create_ddl_builder``
    Shortcuts for :class:`SQLBuilder` / :class:`DDLBuilder` of a dialect.

Re-exported types
-----------------
``SQLBuilder``, ``DDLBuilder``, ``BuilderOptions``, ``OperationGuard``,
``PolicyConfig``, the request models, ``QueryBuilder``, the condition
helpers (``eq``, ``in_``, ``or_``...), ``BuiltSQL`` and all error classes.

Extensibility
-------------
New dialects can be registered via::

    from polysql.dialect.registry import DialectFactory

    @DialectFactory.register("cockroachdb", "crdb")
    class CockroachDialect(PostgreSQLDialect):
        ...

After registration, ``SQLBuilder("crdb")`` picks it up automatically.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from polysql.compile.builder import DeleteBuiltSQL, QueryBuiltSQL, SQLBuilder, UpdateBuiltSQL
from polysql.compile.conditions import ConditionCompiler
from polysql.compile.operators import OperatorRegistry
from polysql.ddl.builder import DDLBuilder
from polysql.dialect.base import BuiltSQL, Dialect
from polysql.dialect.mysql import MariaDBDialect, MySQLDialect, TiDBDialect
from polysql.dialect.oracle import LegacyOracleDialect, OracleDialect
from polysql.dialect.postgres import PostgreSQLDialect
from polysql.dialect.registry import DialectFactory
from polysql.dialect.sqlite import SQLiteDialect
from polysql.dialect.sqlserver import SQLServerDialect
from polysql.errors import (
    BuildError,
    CompilationError,
    EmptyBatchInsertError,
    InvalidConditionError,
    InvalidIdentifierError,
    InvalidRequestError,
    MissingConditionError,
    OperationNotAllowedError,
    PolicyViolationError,
    PolySQLError,
    RowLimitExceededError,
    UnsafeFormatValueError,
    UnsupportedDialectError,
)
from polysql.policy.guard import OperationGuard, PolicyConfig, TablePolicy
from polysql.schema.converters import table_from_sqlalchemy
from polysql.schema.ddl import ColumnDefinition, IndexDefinition, TableDefinition
from polysql.schema.options import BuilderOptions, BuilderOptionsBuilder
from polysql.schema.request import (
    AggregateParams,
    DeleteParams,
    QueryBuilder,
    QueryParams,
    UpdateParams,
    parse_request,
)
from polysql.schema.where import (
    ColumnRef,
    Condition,
    and_,
    between,
    col,
    contains,
    ends_with,
    eq,
    gt,
    gte,
    in_,
    is_not_null,
    is_null,
    is_simple_where,
    like,
    lt,
    lte,
    ne,
    not_between,
    not_in,
    not_like,
    or_,
    parse_simple_where,
    starts_with,
)

# ---------------------------------------------------------------------------
# Register built-in dialects with DialectFactory
# ---------------------------------------------------------------------------

DialectFactory.register_class(
    "mysql", MySQLDialect, aliases=("oceanbase", "polardb", "tdsql", "greatsql")
)
DialectFactory.register_class("mariadb", MariaDBDialect)
DialectFactory.register_class("tidb", TiDBDialect)
DialectFactory.register_class("postgresql", PostgreSQLDialect, aliases=("postgres", "pg"))
DialectFactory.register_class("sqlite", SQLiteDialect, aliases=("sqlite3",))
DialectFactory.register_class("sqlserver", SQLServerDialect, aliases=("mssql",))
DialectFactory.register_class("oracle", OracleDialect)
DialectFactory.register_class("oracle11g", LegacyOracleDialect)

__all__ = [
    # Core pipeline
    "build_request",
    "create_builder",
    "create_ddl_builder",
    # Builders
    "SQLBuilder",
    "DDLBuilder",
    "ConditionCompiler",
    "OperatorRegistry",
    # Results
    "BuiltSQL",
    "QueryBuiltSQL",
    "UpdateBuiltSQL",
    "DeleteBuiltSQL",
    # Request models
    "Condition",
    "QueryParams",
    "AggregateParams",
    "UpdateParams",
    "DeleteParams",
    "QueryBuilder",
    # Condition helpers
    "parse_simple_where",
    "is_simple_where",
    "ColumnRef",
    "col",
    "eq",
    "ne",
    "gt",
    "gte",
    "lt",
    "lte",
    "in_",
    "not_in",
    "between",
    "not_between",
    "like",
    "contains",
    "starts_with",
    "ends_with",
    "not_like",
    "is_null",
    "is_not_null",
    "and_",
    "or_",
    # DDL models
    "TableDefinition",
    "ColumnDefinition",
    "IndexDefinition",
    "table_from_sqlalchemy",
    # Configuration
    "BuilderOptions",
    "BuilderOptionsBuilder",
    # Dialects
    "Dialect",
    "DialectFactory",
    "MySQLDialect",
    "MariaDBDialect",
    "TiDBDialect",
    "PostgreSQLDialect",
    "SQLiteDialect",
    "SQLServerDialect",
    "OracleDialect",
    "LegacyOracleDialect",
    # Policy
    "OperationGuard",
    "PolicyConfig",
    "TablePolicy",
    # Errors
    "PolySQLError",
    "UnsupportedDialectError",
    "BuildError",
    "InvalidIdentifierError",
    "UnsafeFormatValueError",
    "InvalidConditionError",
    "InvalidRequestError",
    "EmptyBatchInsertError",
    "CompilationError",
    "PolicyViolationError",
    "OperationNotAllowedError",
    "MissingConditionError",
    "RowLimitExceededError",
]

OPERATIONS = ("select", "count", "aggregate", "update", "delete")


def create_builder(
    dialect: Dialect | str | None = None,
    options: BuilderOptions | None = None,
) -> SQLBuilder:
    """Return a :class:`SQLBuilder` for ``dialect`` (default: ``options.dialect``).

    Raises:
        UnsupportedDialectError: If ``dialect`` is unknown.
    """
    return SQLBuilder(dialect, options)


def create_ddl_builder(dialect: Dialect | str = "mysql") -> DDLBuilder:
    """Return a :class:`DDLBuilder` for ``dialect``."""
    return DDLBuilder(dialect)


def build_request(
    operation: str,
    request: str | Mapping[str, Any],
    dialect: Dialect | str | None = None,
    policy: PolicyConfig | None = None,
    options: BuilderOptions | None = None,
) -> BuiltSQL:
    """Parse, guard, and build one request.

    This is the main entry point for request-driven callers::

        built = polysql.build_request(
            "delete",
            request_json,
            dialect="pg",
            policy=PolicyConfig(default_limit=100),
        )
        cursor.execute(built.sql, built.params)

    Args:
        operation: ``select``, ``count``, ``aggregate``, ``update`` or
            ``delete``.
        request: JSON text or an already-decoded mapping.
        dialect: Dialect instance, name or alias; defaults to
            ``options.dialect`` (MySQL).
        policy: Optional policy; defaults to ``PolicyConfig()``, which still
            refuses full-table UPDATE / DELETE.
        options: Optional builder options.

    Returns:
        The built statement.

    Raises:
        InvalidRequestError: If ``request`` is not valid JSON, does not match
            the request model, or ``operation`` is unknown.
        PolicyViolationError: (or subclass) if the guard refuses the request.
        BuildError: (or subclass) if the request cannot be built.
    """
    guard = OperationGuard(policy)
    builder = SQLBuilder(dialect, options)

    # 1. Parse
    if isinstance(request, str):
        try:
            request = json.loads(request)
        except json.JSONDecodeError as exc:
            raise InvalidRequestError(f"Invalid JSON: {exc}") from exc

    # 2. Guard and build
    operation = operation.strip().lower()
    if operation == "select":
        return builder.build_select(guard.guard_select(request))
    if operation == "count":
        params = parse_request(QueryParams, request)
        guard.assert_allowed(params.table_name, "select")
        return builder.build_count(params)
    if operation == "aggregate":
        params = parse_request(AggregateParams, request)
        guard.assert_allowed(params.table_name, "select")
        return builder.build_aggregate(params)
    if operation == "update":
        return builder.build_update(guard.guard_update(request))
    if operation == "delete":
        return builder.build_delete(guard.guard_delete(request))
    raise InvalidRequestError(
        f"Unknown operation {operation!r}.", details={"supported": list(OPERATIONS)}
    )
