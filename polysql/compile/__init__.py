"""polysql compilation layer: request models → parameterized SQL."""
from polysql.compile.builder import DeleteBuiltSQL, QueryBuiltSQL, SQLBuilder, UpdateBuiltSQL
from polysql.compile.conditions import ConditionCompiler
from polysql.compile.context import CompilationContext, RuntimeContext
from polysql.compile.operators import OperatorRegistry
from polysql.compile.update import CaseUpdateBuilder, SetClauseBuilder

__all__ = [
    "SQLBuilder",
    "QueryBuiltSQL",
    "UpdateBuiltSQL",
    "DeleteBuiltSQL",
    "ConditionCompiler",
    "CompilationContext",
    "RuntimeContext",
    "OperatorRegistry",
    "SetClauseBuilder",
    "CaseUpdateBuilder",
]
