"""polysql dialect layer: placeholder, quoting and pagination strategies."""
from polysql.dialect.base import BuiltSQL, Dialect, Pagination
from polysql.dialect.mysql import MariaDBDialect, MySQLDialect, TiDBDialect
from polysql.dialect.oracle import LegacyOracleDialect, OracleDialect
from polysql.dialect.postgres import PostgreSQLDialect
from polysql.dialect.registry import DialectFactory
from polysql.dialect.sqlite import SQLiteDialect
from polysql.dialect.sqlserver import SQLServerDialect

__all__ = [
    "BuiltSQL",
    "Dialect",
    "Pagination",
    "DialectFactory",
    "MySQLDialect",
    "MariaDBDialect",
    "TiDBDialect",
    "PostgreSQLDialect",
    "SQLiteDialect",
    "SQLServerDialect",
    "OracleDialect",
    "LegacyOracleDialect",
]
