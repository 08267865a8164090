"""Custom exception hierarchy for polysql.

All public errors inherit from PolySQLError so callers can catch the base
class for any polysql-specific failure.  Every error here describes a
malformed request or configuration; nothing is transient and nothing is
retried.
"""
from __future__ import annotations

from typing import Any


class PolySQLError(Exception):
    """Base exception for all polysql errors."""


class UnsupportedDialectError(PolySQLError):
    """Raised when the dialect factory is given an unknown dialect name.

    Args:
        name: The requested dialect name or alias.
        supported: Names the factory knows about.
    """

    def __init__(self, name: str, supported: list[str]) -> None:
        super().__init__(
            f"Unsupported database dialect: '{name}'. "
            f"Supported dialects: {', '.join(supported)}."
        )
        self.name = name
        self.supported = supported


class BuildError(PolySQLError):
    """Raised when a request cannot be turned into SQL.

    Args:
        message: Human-readable description.
        code: Machine-readable error code (e.g. INVALID_IDENTIFIER).
        details: Extra context about the offending input.
    """

    def __init__(
        self,
        message: str,
        code: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details: dict[str, Any] = details or {}

    def to_error_response(self) -> dict[str, Any]:
        """Returns a structured error response for API consumers."""
        return {
            "error": self.code,
            "message": str(self),
            "details": self.details,
        }


class InvalidIdentifierError(BuildError):
    """Raised when a table, column or alias name is not a plain identifier."""

    def __init__(self, identifier: Any) -> None:
        super().__init__(
            f"Invalid SQL identifier: {identifier!r}.",
            code="INVALID_IDENTIFIER",
            details={"identifier": identifier},
        )
        self.identifier = identifier


class UnsafeFormatValueError(BuildError):
    """Raised when a ``format: true`` value contains disallowed characters."""

    def __init__(self, key: str, value: Any) -> None:
        super().__init__(
            f"Unsafe raw value for '{key}': {value!r}.",
            code="UNSAFE_FORMAT_VALUE",
            details={"key": key, "value": value},
        )


class InvalidConditionError(BuildError):
    """Raised when a condition's value does not fit its operator."""

    def __init__(self, message: str, key: str | None = None, operator: str | None = None) -> None:
        super().__init__(
            message,
            code="INVALID_CONDITION",
            details={"key": key, "operator": operator},
        )


class InvalidRequestError(BuildError):
    """Raised when a request object has the wrong shape."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, code="INVALID_REQUEST", details=details)


class EmptyBatchInsertError(BuildError):
    """Raised when a batch insert is requested with no rows."""

    def __init__(self, table: str) -> None:
        super().__init__(
            f"Cannot build batch insert into '{table}' with an empty row list.",
            code="EMPTY_BATCH_INSERT",
            details={"table": table},
        )


class CompilationError(BuildError):
    """Raised when a statement cannot be assembled for the target dialect.

    Args:
        message: Human-readable description.
        clause: The clause being compiled when the error occurred.
    """

    def __init__(self, message: str, clause: str | None = None) -> None:
        super().__init__(message, code="COMPILATION_ERROR", details={"clause": clause})
        self.clause = clause


class PolicyViolationError(BuildError):
    """Raised when a request breaks an :class:`~polysql.policy.guard.OperationGuard` rule."""


class OperationNotAllowedError(PolicyViolationError):
    """Raised when an operation is not permitted on a table."""

    def __init__(self, table: str, operation: str) -> None:
        super().__init__(
            f'Operation "{operation}" is not allowed on table "{table}".',
            code="OPERATION_NOT_ALLOWED",
            details={"table": table, "operation": operation},
        )


class MissingConditionError(PolicyViolationError):
    """Raised when an UPDATE or DELETE would affect the whole table."""

    def __init__(self, table: str, operation: str) -> None:
        super().__init__(
            f"{operation.capitalize()} on '{table}' requires at least one condition "
            f"to prevent a full table {operation}.",
            code="MISSING_CONDITION",
            details={"table": table, "operation": operation},
        )


class RowLimitExceededError(PolicyViolationError):
    """Raised when a request exceeds the configured row limit."""

    def __init__(self, table: str, operation: str, requested: int, limit: int) -> None:
        super().__init__(
            f'Operation "{operation}" on table "{table}" would affect {requested} rows, '
            f"exceeding limit of {limit}.",
            code="ROW_LIMIT_EXCEEDED",
            details={
                "table": table,
                "operation": operation,
                "requested": requested,
                "limit": limit,
            },
        )
