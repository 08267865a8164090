"""polysql schema models: requests, builder options and DDL definitions."""
from polysql.schema.ddl import (
    AlterAction,
    ColumnDefinition,
    IndexDefinition,
    TableDefinition,
)
from polysql.schema.options import BuilderOptions, BuilderOptionsBuilder
from polysql.schema.request import (
    AggregateItem,
    AggregateParams,
    DeleteParams,
    QueryBuilder,
    QueryParams,
    TableConfigs,
    UpdateCaseField,
    UpdateCaseItem,
    UpdateFieldItem,
    UpdateParams,
    parse_request,
)
from polysql.schema.where import Condition, parse_simple_where

__all__ = [
    "AlterAction",
    "ColumnDefinition",
    "IndexDefinition",
    "TableDefinition",
    "BuilderOptions",
    "BuilderOptionsBuilder",
    "AggregateItem",
    "AggregateParams",
    "Condition",
    "DeleteParams",
    "QueryBuilder",
    "QueryParams",
    "TableConfigs",
    "UpdateCaseField",
    "UpdateCaseItem",
    "UpdateFieldItem",
    "UpdateParams",
    "parse_request",
    "parse_simple_where",
]
