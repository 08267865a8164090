"""WHERE-clause compiler.

``ConditionCompiler`` walks a condition list left to right (the order is
the AND/OR chain order, so it is significant), drops optional conditions
whose value is ``None`` or ``""``, validates each remaining key and asks
the :class:`~polysql.compile.operators.OperatorRegistry` for the fragment.

When nothing survives, the body is the tautology ``1=1`` so statements can
always be written as ``... WHERE <body>``.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from polysql.compile.context import RuntimeContext
from polysql.compile.operators import OperatorRegistry
from polysql.dialect.base import BuiltSQL, Dialect
from polysql.errors import InvalidRequestError
from polysql.schema.where import Condition, parse_simple_where
from polysql.validate.identifier import validate_identifier

#: WHERE body used when no condition survives.
TAUTOLOGY = "1=1"

#: A condition list, or a simple-object mapping that parses into one.
ConditionsInput = list[Condition | dict[str, Any]] | Mapping[str, Any]


def coerce_conditions(conditions: ConditionsInput) -> list[Condition]:
    """Validate plain dicts into :class:`Condition` models.

    A mapping is read as the simple-object syntax.
    """
    if isinstance(conditions, Mapping):
        return parse_simple_where(conditions)
    result: list[Condition] = []
    for item in conditions:
        if isinstance(item, Condition):
            result.append(item)
            continue
        try:
            result.append(Condition.model_validate(item))
        except ValidationError as exc:
            raise InvalidRequestError(
                f"Condition structure is invalid: {exc}", details={"condition": item}
            ) from exc
    return result


class ConditionCompiler:
    """Compiles condition lists to a SQL boolean expression.

    Args:
        dialect: Dialect used for placeholders and dialect-specific
            predicates.
    """

    def __init__(self, dialect: Dialect) -> None:
        self._dialect = dialect

    def compile(self, conditions: ConditionsInput) -> BuiltSQL:
        """Compile ``conditions`` on their own, numbering placeholders from 1.

        Returns:
            :class:`~polysql.dialect.base.BuiltSQL` whose ``sql`` is the WHERE
            body (without the ``WHERE`` keyword).
        """
        runtime = RuntimeContext(self._dialect)
        sql = self.build(coerce_conditions(conditions), runtime)
        return BuiltSQL(sql=sql, params=runtime.params, dialect=self._dialect.name)

    def build(self, conditions: list[Condition], runtime: RuntimeContext) -> str:
        """Compile ``conditions`` into ``runtime``, returning the WHERE body.

        Used by statement builders so the WHERE placeholders continue the
        statement's numbering.
        """
        parts: list[str] = []
        for condition in conditions:
            if condition.is_skipped:
                continue
            key = validate_identifier(condition.key)
            op, handler = OperatorRegistry.resolve(condition.operator)
            fragment = handler(op, condition, key, runtime)
            if parts:
                parts.append(f"{condition.logic.upper()} {fragment}")
            else:
                parts.append(fragment)
        return " ".join(parts) if parts else TAUTOLOGY
