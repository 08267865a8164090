"""polysql DDL layer: table definitions → CREATE / ALTER / DROP statements."""
from polysql.ddl.builder import TYPE_MAP, DDLBuilder

__all__ = ["DDLBuilder", "TYPE_MAP"]
