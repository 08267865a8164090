"""SET-clause builders for UPDATE statements.

Classes
-------
SetClauseBuilder:  one assignment per update item
CaseUpdateBuilder: ``key = (CASE case_field WHEN ... ELSE key END)``

Both bind through the statement's shared
:class:`~polysql.compile.context.RuntimeContext`, so SET placeholders come
before the WHERE placeholders in numbering and in ``params``.
"""
from __future__ import annotations

from polysql.compile.context import RuntimeContext
from polysql.schema.operators import UpdateOp, resolve_update_op
from polysql.schema.request import UpdateCaseField, UpdateFieldItem
from polysql.validate.identifier import validate_identifier


def assignment_expr(key: str, op: UpdateOp, placeholder: str) -> str:
    """Return the right-hand side of an assignment to ``key``."""
    if op is UpdateOp.PLUS:
        return f"{key} + {placeholder}"
    if op is UpdateOp.REDUCE:
        return f"{key} - {placeholder}"
    return placeholder


class CaseUpdateBuilder:
    """Builds a multi-branch conditional assignment.

    Every branch binds two values, the discriminant (``case_value``) and
    the result, in that order.  The expression always ends with
    ``ELSE key END`` so rows matching no branch keep their current value.
    """

    def build(self, item: UpdateCaseField, runtime: RuntimeContext) -> str | None:
        """Return the assignment, or ``None`` when the item has no branches."""
        if not item.case_item:
            return None
        key = validate_identifier(item.key)
        case_field = validate_identifier(item.case_field)

        parts = [f"{key} = (CASE {case_field}"]
        for branch in item.case_item:
            when_ph = runtime.bind(branch.case_value)
            then_ph = runtime.bind(branch.value)
            then_sql = assignment_expr(key, resolve_update_op(branch.operator), then_ph)
            parts.append(f"WHEN {when_ph} THEN {then_sql}")
        parts.append(f"ELSE {key} END)")
        return " ".join(parts)


class SetClauseBuilder:
    """Builds the assignment list of an UPDATE statement.

    Plain items without a ``value`` or whose value is ``""`` are skipped;
    ``None``, ``0`` and ``False`` are real update targets and are bound
    as-is.
    """

    def __init__(self) -> None:
        self._case = CaseUpdateBuilder()

    def build(
        self,
        items: list[UpdateCaseField | UpdateFieldItem],
        runtime: RuntimeContext,
    ) -> list[str]:
        assignments: list[str] = []
        for item in items:
            if isinstance(item, UpdateCaseField):
                sql = self._case.build(item, runtime)
                if sql is not None:
                    assignments.append(sql)
                continue
            if "value" not in item.model_fields_set:
                continue
            if isinstance(item.value, str) and item.value == "":
                continue
            key = validate_identifier(item.key)
            placeholder = runtime.bind(item.value)
            assignments.append(
                f"{key} = {assignment_expr(key, resolve_update_op(item.operator), placeholder)}"
            )
        return assignments
