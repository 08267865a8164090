"""Compilation context value objects.

``CompilationContext`` packages the static ``(dialect, table_alias)`` pair
shared by every sub-builder.  ``RuntimeContext`` is the per-statement
parameter accumulator: a fresh one is created by every ``build_*`` call,
so placeholder numbering always restarts at 1 and no state leaks between
calls or threads.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from polysql.dialect.base import Dialect, Pagination


@dataclass(frozen=True)
class CompilationContext:
    """Immutable context for one builder.

    Attributes:
        dialect: Target dialect.
        table_alias: Alias given to the target table in SELECT statements.
    """

    dialect: Dialect
    table_alias: str = "t"


@dataclass
class RuntimeContext:
    """Accumulates bound parameters during a single build.

    Every placeholder in a statement is obtained through :meth:`bind`, so
    ``index`` always equals ``len(params)`` and numbered dialects
    (``$n``, ``@pn``, ``:n``) never reuse a number.
    """

    dialect: Dialect
    params: list[Any] = field(default_factory=list)
    index: int = 0

    def bind(self, value: Any, name: str | None = None) -> str:
        """Store ``value`` and return the placeholder that refers to it."""
        self.index += 1
        self.params.append(value)
        return self.dialect.placeholder(self.index, name)

    def bind_many(self, values: list[Any]) -> list[str]:
        """Bind each value in order and return their placeholders."""
        return [self.bind(v) for v in values]

    def paginate(self, offset: int, limit: int) -> Pagination:
        """Build the dialect's pagination fragment and record its params."""
        pagination = self.dialect.build_pagination(offset, limit, self.index)
        self.params.extend(pagination.params)
        self.index = pagination.new_index
        return pagination
