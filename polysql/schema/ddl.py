"""Pydantic models describing tables for the DDL builder.

``TableDefinition`` is dialect-neutral: column types use portable names
(``int``, ``varchar``, ``decimal`` ...) that
:class:`~polysql.ddl.builder.DDLBuilder` maps to each engine's spelling.
Definitions can be written by hand or converted from SQLAlchemy metadata
with :func:`~polysql.schema.converters.table_from_sqlalchemy`.
"""
from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ColumnDefinition(BaseModel):
    """A single column of a table.

    ``default`` is only rendered when it was explicitly provided, so
    ``default=None`` yields ``DEFAULT NULL`` while omitting it yields no
    DEFAULT clause at all.

    Attributes:
        name: Column name.
        type: Portable type name (``int``, ``varchar``, ...) or a native
            type name passed through upper-cased.
        primary: Part of the primary key.
        increment: Auto-incrementing / identity column.
        nullable: ``False`` emits ``NOT NULL``.  Primary key columns are
            always ``NOT NULL``.
        default: Default value, rendered as a SQL literal.
        comment: Column comment (MySQL family only).
        unique: Emit a ``UNIQUE`` constraint for this column.
        length: Length for ``varchar`` and pass-through types.
        precision: Precision for ``decimal``.
        scale: Scale for ``decimal``.
    """

    model_config = ConfigDict(extra="forbid")

    name: str
    type: str
    primary: bool = False
    increment: bool = False
    nullable: bool = True
    default: Any = None
    comment: str | None = None
    unique: bool = False
    length: int | None = Field(default=None, gt=0)
    precision: int | None = Field(default=None, gt=0)
    scale: int | None = Field(default=None, ge=0)

    @property
    def has_default(self) -> bool:
        return "default" in self.model_fields_set


class IndexDefinition(BaseModel):
    """A (possibly unique) index over one or more columns."""

    model_config = ConfigDict(extra="forbid")

    name: str
    columns: list[str] = Field(min_length=1)
    unique: bool = False


class TableDefinition(BaseModel):
    """A complete table: columns, indexes and MySQL table options.

    Attributes:
        table_name: Table name (``tableName`` is accepted too).
        columns: Ordered column definitions.
        indexes: Indexes created after the table.
        comment: Table comment (MySQL family only).
        charset: Default character set (MySQL family only).
        collation: Default collation (MySQL family only).
        engine: Storage engine (MySQL family only).
        if_not_exists: Emit ``IF NOT EXISTS``.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    table_name: str = Field(alias="tableName")
    columns: list[ColumnDefinition] = Field(min_length=1)
    indexes: list[IndexDefinition] = Field(default_factory=list)
    comment: str | None = None
    charset: str | None = None
    collation: str | None = None
    engine: str | None = None
    if_not_exists: bool = Field(default=False, alias="ifNotExists")


# ---------------------------------------------------------------------------
# ALTER TABLE actions (discriminated on ``type``)
# ---------------------------------------------------------------------------


class AddColumn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["add_column"] = "add_column"
    column: ColumnDefinition


class DropColumn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["drop_column"] = "drop_column"
    column_name: str


class ModifyColumn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["modify_column"] = "modify_column"
    column: ColumnDefinition


class RenameColumn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["rename_column"] = "rename_column"
    old_name: str
    new_name: str


class AddIndex(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["add_index"] = "add_index"
    index: IndexDefinition


class DropIndex(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["drop_index"] = "drop_index"
    index_name: str


class RenameTable(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["rename_table"] = "rename_table"
    new_name: str


AlterAction = Annotated[
    AddColumn | DropColumn | ModifyColumn | RenameColumn | AddIndex | DropIndex | RenameTable,
    Field(discriminator="type"),
]
