"""Builder configuration.

``BuilderOptions`` is the only configuration the statement builders read.
Create it directly or compose it through the fluent builder, which also
resolves dialect aliases up front so a typo fails at configuration time
rather than on the first query::

    from polysql import BuilderOptions, SQLBuilder

    options = (
        BuilderOptions.builder("pg")
        .table_alias("u")
        .log_statements()
        .build()
    )
    builder = SQLBuilder(options=options)
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator

from polysql.dialect.registry import DialectFactory
from polysql.validate.identifier import IDENTIFIER_PATTERN


class BuilderOptions(BaseModel):
    """Configuration for :class:`~polysql.compile.builder.SQLBuilder`.

    Attributes:
        dialect: Dialect name or alias (default ``'mysql'``).
        table_alias: Alias of the target table in SELECT / COUNT /
            aggregate statements; conditions may reference it
            (``t.status``).
        log_statements: Log every built statement (SQL text and parameter
            count) at DEBUG level on the ``polysql.builder`` logger.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    dialect: str = "mysql"
    table_alias: str = "t"
    log_statements: bool = False

    @field_validator("table_alias")
    @classmethod
    def _check_alias(cls, v: str) -> str:
        if not IDENTIFIER_PATTERN.fullmatch(v) or "." in v or "*" in v:
            raise ValueError(f"table_alias must be a bare identifier, got {v!r}")
        return v

    @classmethod
    def builder(cls, dialect: str = "mysql") -> "BuilderOptionsBuilder":
        """Return a :class:`BuilderOptionsBuilder` for ``dialect``.

        Args:
            dialect: Dialect name or alias.

        Returns:
            A fresh :class:`BuilderOptionsBuilder`.
        """
        return BuilderOptionsBuilder(dialect)


class BuilderOptionsBuilder:
    """Fluent builder for :class:`BuilderOptions`.

    Always obtained via :meth:`BuilderOptions.builder`.
    """

    def __init__(self, dialect: str) -> None:
        self._dialect = dialect
        self._table_alias = "t"
        self._log_statements = False

    def table_alias(self, alias: str) -> "BuilderOptionsBuilder":
        """Use ``alias`` for the target table instead of ``t``."""
        self._table_alias = alias
        return self

    def log_statements(self, enabled: bool = True) -> "BuilderOptionsBuilder":
        """Log each built statement at DEBUG level."""
        self._log_statements = enabled
        return self

    def build(self) -> BuilderOptions:
        """Validate and return the configured :class:`BuilderOptions`.

        The dialect is resolved to its canonical name.

        Raises:
            UnsupportedDialectError: If the dialect name is unknown.
        """
        return BuilderOptions(
            dialect=DialectFactory.resolve(self._dialect),
            table_alias=self._table_alias,
            log_statements=self._log_statements,
        )
