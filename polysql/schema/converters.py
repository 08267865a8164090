"""Utilities for building DDL definitions from external sources.

SQLAlchemy converter
--------------------
:func:`table_from_sqlalchemy` turns a SQLAlchemy :class:`~sqlalchemy.Table`
into a :class:`~polysql.schema.ddl.TableDefinition` that
:class:`~polysql.ddl.builder.DDLBuilder` can render for any dialect.

Install the optional dependency before using this module::

    pip install "polysql[sqlalchemy]"

Example::

    from sqlalchemy import Column, Integer, MetaData, String, Table
    from polysql import DDLBuilder
    from polysql.schema.converters import table_from_sqlalchemy

    users = Table(
        "users", MetaData(),
        Column("id", Integer, primary_key=True),
        Column("email", String(120), nullable=False, unique=True),
    )
    print(DDLBuilder("pg").build_create_table(table_from_sqlalchemy(users)))
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from polysql.schema.ddl import ColumnDefinition, IndexDefinition, TableDefinition

if TYPE_CHECKING:
    from sqlalchemy import Column, Table


def table_from_sqlalchemy(table: Table) -> TableDefinition:
    """Build a :class:`TableDefinition` from a SQLAlchemy ``Table``.

    Generic SQLAlchemy types map to the portable DDL type names
    (``Integer`` → ``int``, ``String`` → ``varchar`` ...); anything else
    keeps its compiled type name.  The table's auto-increment column (as
    SQLAlchemy determines it) is flagged ``increment``.  Scalar Python-side
    defaults and plain-string server defaults are carried over; callables
    and SQL expressions are not.

    MySQL table options given as ``mysql_engine``, ``mysql_charset`` and
    ``mysql_collate`` keyword arguments are carried over too.

    Args:
        table: A SQLAlchemy :class:`~sqlalchemy.schema.Table`, reflected or
            declared.

    Returns:
        A :class:`TableDefinition` mirroring the table.

    Raises:
        ImportError: If ``sqlalchemy`` is not installed.
    """
    try:
        import sqlalchemy  # noqa: F401
    except ImportError as exc:
        raise ImportError(
            "SQLAlchemy is required for table_from_sqlalchemy(). "
            'Install it with: pip install "polysql[sqlalchemy]"'
        ) from exc

    autoincrement_column = table.autoincrement_column
    columns = [
        _column_definition(col, increment=col is autoincrement_column)
        for col in table.columns
    ]
    indexes = [
        IndexDefinition(
            name=index.name,
            columns=[col.name for col in index.columns],
            unique=bool(index.unique),
        )
        for index in sorted(table.indexes, key=lambda i: i.name or "")
        if index.name
    ]
    return TableDefinition(
        table_name=table.name,
        columns=columns,
        indexes=indexes,
        comment=table.comment,
        engine=table.kwargs.get("mysql_engine"),
        charset=table.kwargs.get("mysql_charset") or table.kwargs.get("mysql_default_charset"),
        collation=table.kwargs.get("mysql_collate"),
    )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _column_definition(col: Column, *, increment: bool) -> ColumnDefinition:
    fields: dict[str, Any] = {
        "name": col.name,
        "primary": bool(col.primary_key),
        "increment": increment,
        # col.nullable is True/False once the column is attached to a table;
        # treat an unset value as nullable.
        "nullable": col.nullable is not False,
        "comment": col.comment,
        "unique": bool(col.unique),
    }
    fields.update(_type_fields(col.type))

    default = _scalar_default(col)
    if default is not _NO_DEFAULT:
        fields["default"] = default
    return ColumnDefinition(**fields)


def _type_fields(sa_type: Any) -> dict[str, Any]:
    """Map a SQLAlchemy type instance to ``type`` / ``length`` / precision."""
    from sqlalchemy import types

    # Subclasses first: BigInteger/SmallInteger extend Integer, Text extends
    # String, Float extends Numeric.
    if isinstance(sa_type, types.Boolean):
        return {"type": "boolean"}
    if isinstance(sa_type, types.BigInteger):
        return {"type": "bigint"}
    if isinstance(sa_type, types.SmallInteger):
        return {"type": "tinyint"}
    if isinstance(sa_type, types.Integer):
        return {"type": "int"}
    if isinstance(sa_type, types.Text):
        return {"type": "text"}
    if isinstance(sa_type, types.String):
        return {"type": "varchar", "length": sa_type.length}
    if isinstance(sa_type, types.Float):
        return {"type": "float"}
    if isinstance(sa_type, types.Numeric):
        return {"type": "decimal", "precision": sa_type.precision, "scale": sa_type.scale}
    if isinstance(sa_type, types.DateTime):
        return {"type": "datetime"}
    if isinstance(sa_type, types.Date):
        return {"type": "date"}
    if isinstance(sa_type, types.JSON):
        return {"type": "json"}
    if isinstance(sa_type, types.LargeBinary):
        return {"type": "blob"}
    return {"type": type(sa_type).__visit_name__}


_NO_DEFAULT = object()


def _scalar_default(col: Column) -> Any:
    default = col.default
    if default is not None and getattr(default, "is_scalar", False):
        return default.arg
    server_default = col.server_default
    if server_default is not None and isinstance(getattr(server_default, "arg", None), str):
        return server_default.arg
    return _NO_DEFAULT
