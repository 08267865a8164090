"""Condition operator registry and the built-in operator handlers.

Each handler turns one surviving :class:`~polysql.schema.request.Condition`
into exactly one SQL fragment, binding its values through the shared
:class:`~polysql.compile.context.RuntimeContext`.  New operators can be
added without modifying :class:`~polysql.compile.conditions.ConditionCompiler`::

    @OperatorRegistry.register("ilike")
    def _ilike(op, condition, key, runtime):
        return f"{key} ILIKE {runtime.bind(condition.value)}"

Unknown operator tags resolve to the ``=`` handler.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, ClassVar

from polysql.compile.context import RuntimeContext
from polysql.errors import InvalidConditionError
from polysql.schema.operators import (
    NULL_SENTINEL,
    ComparisonOp,
    FuzzyOp,
    MembershipOp,
    NullOp,
    PatternOp,
    RangeOp,
)
from polysql.schema.where import Condition
from polysql.validate.identifier import validate_format_value

#: ``(op, condition, validated_key, runtime) -> sql_fragment``
OperatorHandler = Callable[[str, Condition, str, RuntimeContext], str]

DEFAULT_OPERATOR = ComparisonOp.EQ.value


class OperatorRegistry:
    """Registry mapping operator tags to SQL rendering handlers."""

    _operators: ClassVar[dict[str, OperatorHandler]] = {}

    @classmethod
    def register(cls, *names: str) -> Callable[[OperatorHandler], OperatorHandler]:
        """Decorator that registers a handler under one or more tags.

        Args:
            *names: Operator tags (lower case, e.g. ``"not in"``).

        Returns:
            A decorator that registers and returns the handler.
        """

        def decorator(handler: OperatorHandler) -> OperatorHandler:
            for name in names:
                cls._operators[name] = handler
            return handler

        return decorator

    @classmethod
    def register_handler(cls, name: str, handler: OperatorHandler) -> None:
        """Register an operator handler without using the decorator form."""
        cls._operators[name] = handler

    @classmethod
    def get(cls, name: str) -> OperatorHandler | None:
        """Return the handler for ``name``, or ``None`` if not registered."""
        return cls._operators.get(name)

    @classmethod
    def resolve(cls, name: str) -> tuple[str, OperatorHandler]:
        """Return ``(effective_op, handler)``, falling back to ``=``."""
        handler = cls._operators.get(name)
        if handler is None:
            return DEFAULT_OPERATOR, cls._operators[DEFAULT_OPERATOR]
        return name, handler

    @classmethod
    def registered_operators(cls) -> list[str]:
        """Return the sorted list of registered operator tags."""
        return sorted(cls._operators)


def _as_list(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


# ---------------------------------------------------------------------------
# Built-in handlers
# ---------------------------------------------------------------------------


@OperatorRegistry.register(*(op.value for op in ComparisonOp))
def _comparison(op: str, condition: Condition, key: str, runtime: RuntimeContext) -> str:
    if condition.format:
        return f"{key} {op} {validate_format_value(condition.key, condition.value)}"
    return f"{key} {op} {runtime.bind(condition.value)}"


@OperatorRegistry.register(*(op.value for op in MembershipOp))
def _membership(op: str, condition: Condition, key: str, runtime: RuntimeContext) -> str:
    values = _as_list(condition.value)
    if not values:
        # "IN ()" is a syntax error everywhere; NULL never matches.
        return f"{key} {op.upper()} (NULL)"
    return f"{key} {op.upper()} ({', '.join(runtime.bind_many(values))})"


_FUZZY_PATTERNS: dict[str, str] = {
    FuzzyOp.LEFT.value: "%{}",
    FuzzyOp.RIGHT.value: "{}%",
    FuzzyOp.BOTH.value: "%{}%",
}


@OperatorRegistry.register(*(op.value for op in FuzzyOp))
def _fuzzy(op: str, condition: Condition, key: str, runtime: RuntimeContext) -> str:
    pattern = _FUZZY_PATTERNS[op].format(condition.value)
    return f"{key} LIKE {runtime.bind(pattern)}"


@OperatorRegistry.register(PatternOp.LIKE.value, PatternOp.NOT_LIKE.value)
def _like(op: str, condition: Condition, key: str, runtime: RuntimeContext) -> str:
    return f"{key} {op.upper()} {runtime.bind(condition.value)}"


@OperatorRegistry.register(PatternOp.REGEXP.value, PatternOp.TILDE.value)
def _regexp(op: str, condition: Condition, key: str, runtime: RuntimeContext) -> str:
    return runtime.dialect.regex_match(key, runtime.bind(condition.value))


@OperatorRegistry.register(*(op.value for op in RangeOp))
def _between(op: str, condition: Condition, key: str, runtime: RuntimeContext) -> str:
    value = condition.value
    if not isinstance(value, (list, tuple)) or len(value) < 2:
        raise InvalidConditionError(
            f"'{op}' on '{condition.key}' needs a [low, high] list, got {value!r}.",
            key=condition.key,
            operator=op,
        )
    low, high = runtime.bind_many([value[0], value[1]])
    return f"{key} {op.upper()} {low} AND {high}"


@OperatorRegistry.register(*(op.value for op in NullOp))
def _null_check(op: str, condition: Condition, key: str, runtime: RuntimeContext) -> str:
    value = condition.value
    if not isinstance(value, str) or value.strip().lower() != NULL_SENTINEL:
        raise InvalidConditionError(
            f"'{op}' on '{condition.key}' only accepts the value 'null', got {value!r}.",
            key=condition.key,
            operator=op,
        )
    return f"{key} {op.upper()} NULL"
