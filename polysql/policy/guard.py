"""Operation guard: safety checks applied before a request is built.

The statement builders compile whatever they are given, so an
UPDATE or DELETE whose conditions were all skipped compiles to
``WHERE 1=1``.  ``OperationGuard`` is the layer that refuses such requests
and enforces a few other runtime rules:

* **Operation access control**: per-table allowed operations, read-only
  tables, a global table deny list / allow list and a default decision for
  unlisted tables.
* **Full-table write protection**: UPDATE / DELETE must keep at least one
  condition after the empty-value skip rule, unless explicitly allowed.
* **Row limits**: SELECT gets a default page size and a maximum page size;
  batch INSERT gets a maximum row count.

Runtime policy is configured entirely in :class:`PolicyConfig` and
:class:`TablePolicy`.

Example::

    guard = OperationGuard(
        PolicyConfig(
            default_limit=50,
            max_limit=500,
            tables={"audit_log": TablePolicy(read_only=True)},
        )
    )

    request = guard.guard_select(request)
    built = builder.build_select(request)
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from polysql.errors import (
    MissingConditionError,
    OperationNotAllowedError,
    RowLimitExceededError,
)
from polysql.schema.request import (
    DeleteParams,
    FilteredRequest,
    QueryParams,
    UpdateParams,
    parse_request,
)
from polysql.utils.logging import get_logger

logger = get_logger("policy")

SELECT = "select"
INSERT = "insert"
UPDATE = "update"
DELETE = "delete"

OPERATIONS = frozenset({SELECT, INSERT, UPDATE, DELETE})
WRITE_OPERATIONS = frozenset({INSERT, UPDATE, DELETE})


@dataclass
class TablePolicy:
    """Per-table runtime policy rules.

    Attributes:
        allowed_operations: Operations permitted on the table.  Empty (the
            default) means every operation not excluded by ``read_only``.
        read_only: Deny ``insert``, ``update`` and ``delete``.
        allow_full_table_writes: Override
            :attr:`PolicyConfig.allow_full_table_writes` for this table.
        max_limit: Override :attr:`PolicyConfig.max_limit` for this table.
        max_insert_rows: Override :attr:`PolicyConfig.max_insert_rows` for
            this table.
    """

    allowed_operations: list[str] = field(default_factory=list)
    read_only: bool = False
    allow_full_table_writes: bool | None = None
    max_limit: int | None = None
    max_insert_rows: int | None = None


@dataclass
class PolicyConfig:
    """Runtime policy configuration applied to every request.

    Attributes:
        tables: Per-table policies.  Table names in ``tables``,
            ``allowed_tables`` and ``denied_tables`` match case-insensitively.
        allowed_tables: If non-empty, only these tables may be used.
        denied_tables: Tables on which every operation is refused.
        default_allow: Decision for tables with no :class:`TablePolicy`
            when ``allowed_tables`` is empty.
        allow_full_table_writes: Permit UPDATE / DELETE with no surviving
            condition.
        default_limit: Page size injected into SELECT requests without a
            usable ``limit`` (``0`` = no injection).
        max_limit: Largest page size; larger counts are clamped and
            requests without a limit get it when ``default_limit`` is ``0``
            (``0`` = unlimited).
        max_insert_rows: Largest batch INSERT (``0`` = unlimited).
    """

    tables: dict[str, TablePolicy] = field(default_factory=dict)
    allowed_tables: list[str] = field(default_factory=list)
    denied_tables: list[str] = field(default_factory=list)
    default_allow: bool = True
    allow_full_table_writes: bool = False
    default_limit: int = 0
    max_limit: int = 0
    max_insert_rows: int = 0

    def policy_for(self, table_name: str) -> TablePolicy | None:
        key = table_name.lower()
        for name, tpol in self.tables.items():
            if name.lower() == key:
                return tpol
        return None

    def max_limit_for(self, table_name: str) -> int:
        tpol = self.policy_for(table_name)
        if tpol is not None and tpol.max_limit is not None:
            return tpol.max_limit
        return self.max_limit

    def max_insert_rows_for(self, table_name: str) -> int:
        tpol = self.policy_for(table_name)
        if tpol is not None and tpol.max_insert_rows is not None:
            return tpol.max_insert_rows
        return self.max_insert_rows

    def full_table_writes_allowed(self, table_name: str) -> bool:
        tpol = self.policy_for(table_name)
        if tpol is not None and tpol.allow_full_table_writes is not None:
            return tpol.allow_full_table_writes
        return self.allow_full_table_writes


class OperationGuard:
    """Applies :class:`PolicyConfig` rules to requests.

    ``guard_*`` methods accept a request model or a plain dict and return
    the (possibly modified) request model; they never mutate their input.
    Every refusal is logged at WARNING on the ``polysql.policy`` logger
    before the error is raised.

    Args:
        config: Policy rules; defaults to ``PolicyConfig()``.
    """

    def __init__(self, config: PolicyConfig | None = None) -> None:
        self._config = config or PolicyConfig()

    @property
    def config(self) -> PolicyConfig:
        return self._config

    # ------------------------------------------------------------------
    # Access control
    # ------------------------------------------------------------------

    def check(self, table: str, operation: str) -> bool:
        """Return ``True`` if ``operation`` is permitted on ``table``.

        Rules are applied in order: global deny list, global allow list,
        per-table policy, ``default_allow``.  Table names are compared
        case-insensitively.
        """
        operation = operation.lower()
        config = self._config
        if _contains(config.denied_tables, table):
            return False
        if config.allowed_tables and not _contains(config.allowed_tables, table):
            return False

        tpol = config.policy_for(table)
        if tpol is None:
            return bool(config.allowed_tables) or config.default_allow
        if tpol.read_only and operation in WRITE_OPERATIONS:
            return False
        if tpol.allowed_operations:
            return operation in {op.lower() for op in tpol.allowed_operations}
        return True

    def assert_allowed(self, table: str, operation: str) -> None:
        """Raise :class:`OperationNotAllowedError` unless :meth:`check` passes."""
        if not self.check(table, operation):
            logger.warning("Refused %s on table %r: operation not allowed", operation, table)
            raise OperationNotAllowedError(table, operation)

    # ------------------------------------------------------------------
    # Per-statement guards
    # ------------------------------------------------------------------

    def guard_select(self, params: QueryParams | Mapping[str, Any]) -> QueryParams:
        """Check access and enforce the page size of a SELECT request.

        A request without a usable ``[offset, count]`` limit gets
        ``[0, default_limit]``, or ``[0, max_limit]`` when there is no default
        page size.  A count above ``max_limit`` is clamped.

        Returns:
            A new :class:`QueryParams` when the limit changed, otherwise the
            validated input.
        """
        request = parse_request(QueryParams, params)
        table = request.table_name
        self.assert_allowed(table, SELECT)

        max_limit = self._config.max_limit_for(table)
        pagination = request.pagination
        if pagination is None:
            count = self._config.default_limit
            if max_limit > 0 and (count <= 0 or count > max_limit):
                count = max_limit
            if count > 0:
                return request.model_copy(update={"limit": [0, count]})
            return request

        offset, count = pagination
        if max_limit > 0 and count > max_limit:
            logger.warning(
                "Clamping page size on table %r from %d to %d", table, count, max_limit
            )
            return request.model_copy(update={"limit": [offset, max_limit]})
        return request

    def guard_update(self, params: UpdateParams | Mapping[str, Any]) -> UpdateParams:
        """Check access and refuse an UPDATE with no surviving condition.

        Raises:
            OperationNotAllowedError: If updates are not allowed on the table.
            MissingConditionError: If every condition was skipped and
                full-table writes are not allowed.
        """
        request = parse_request(UpdateParams, params)
        self.assert_allowed(request.table_name, UPDATE)
        self._require_conditions(request, UPDATE)
        return request

    def guard_delete(self, params: DeleteParams | Mapping[str, Any]) -> DeleteParams:
        """Check access and refuse a DELETE with no surviving condition.

        Raises:
            OperationNotAllowedError: If deletes are not allowed on the table.
            MissingConditionError: If every condition was skipped and
                full-table writes are not allowed.
        """
        request = parse_request(DeleteParams, params)
        self.assert_allowed(request.table_name, DELETE)
        self._require_conditions(request, DELETE)
        return request

    def guard_insert(self, table: str, rows: Mapping[str, Any] | list[Mapping[str, Any]]) -> None:
        """Check access and the row count of an INSERT.

        Args:
            table: Target table.
            rows: A single row or a batch of rows.

        Raises:
            OperationNotAllowedError: If inserts are not allowed on the table.
            RowLimitExceededError: If the batch exceeds ``max_insert_rows``.
        """
        self.assert_allowed(table, INSERT)
        count = 1 if isinstance(rows, Mapping) else len(rows)
        limit = self._config.max_insert_rows_for(table)
        if limit > 0 and count > limit:
            logger.warning(
                "Refused insert of %d rows into %r: limit is %d", count, table, limit
            )
            raise RowLimitExceededError(table, INSERT, count, limit)

    def _require_conditions(self, request: FilteredRequest, operation: str) -> None:
        table = request.table_name
        if request.effective_conditions or self._config.full_table_writes_allowed(table):
            return
        logger.warning("Refused %s on table %r: no effective condition", operation, table)
        raise MissingConditionError(table, operation)


def _contains(names: list[str], table: str) -> bool:
    key = table.lower()
    return any(name.lower() == key for name in names)
