"""WHERE conditions: the ``Condition`` model and two ways to build lists of them.

Condition lists ("keyword items") are what the compiler consumes.  Besides
writing them out, callers can use:

**Simple-object syntax**, a mapping from column to value or to an
operator object::

    parse_simple_where({
        "status": 1,                          # status = ?
        "type": [1, 2],                       # type IN (?, ?)
        "deleted_at": None,                   # deleted_at IS NULL
        "age": {"$gte": 18, "$lt": 65},       # age >= ? AND age < ?
        "$or": [{"name": {"$like": "ann"}}, {"email": {"$endsWith": "@x.io"}}],
    })

``$or`` groups are flattened: the first condition of every group after the
first is joined with ``OR``, the rest with ``AND``.  No parentheses are
added, so the usual AND-before-OR precedence applies.

**Helper functions**, for Python callers::

    and_(eq("status", 1), between("age", 18, 65))
    or_(eq("role", "admin"), col("owner_id").eq(7))
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, field_validator

from polysql.errors import InvalidConditionError
from polysql.schema.operators import NULL_SENTINEL, is_empty_value


class Condition(BaseModel):
    """A single WHERE predicate (a "keyword item").

    Attributes:
        key: Column the predicate applies to.
        value: Scalar or list value.  ``None`` and ``""`` make the condition
            optional: it is skipped entirely.
        logic: Connective to the previous predicate (``and`` / ``or``).
        operator: Operator tag; unknown tags compile as ``=``.
        format: Splice ``value`` into the SQL instead of binding it.  Only
            honoured for comparison operators, and only for values made of
            plain tokens (column names, numbers, arithmetic, calls).
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    key: str
    value: Any = None
    logic: Literal["and", "or"] = "and"
    operator: str = "="
    format: bool = False

    @field_validator("logic", mode="before")
    @classmethod
    def _normalise_logic(cls, v: Any) -> Any:
        if v is None:
            return "and"
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("operator", mode="before")
    @classmethod
    def _normalise_operator(cls, v: Any) -> Any:
        if v is None:
            return "="
        return str(v).strip().lower()

    @property
    def is_skipped(self) -> bool:
        """``True`` when the value marks this condition as an optional no-op."""
        return is_empty_value(self.value)


# ---------------------------------------------------------------------------
# Simple-object syntax
# ---------------------------------------------------------------------------

#: ``$operator`` -> condition operator tag, for operators that take the value as-is.
SIMPLE_OPERATORS: dict[str, str] = {
    "$eq": "=",
    "$ne": "<>",
    "$neq": "<>",
    "$gt": ">",
    "$gte": ">=",
    "$lt": "<",
    "$lte": "<=",
    "$in": "in",
    "$nin": "not in",
    "$notIn": "not in",
    "$like": "%%",
    "$contains": "%%",
    "$startsWith": "x%",
    "$endsWith": "%",
    "$regexp": "regexp",
}

_RANGE_OPERATORS = {"$between": "between", "$notBetween": "not between"}
_NULL_OPERATORS = frozenset({"$isNull", "$isNotNull"})
_GROUP_KEYS = frozenset({"$or", "$and"})


def parse_simple_where(where: Mapping[str, Any], logic: str = "and") -> list[Condition]:
    """Convert the simple-object syntax into a condition list.

    Args:
        where: Column -> value or ``{"$op": value}`` mapping, optionally
            with ``$or`` / ``$and`` lists of nested mappings.
        logic: Connective for the conditions produced at this level.

    Returns:
        Conditions in mapping order.

    Raises:
        InvalidConditionError: On an unknown ``$`` key or operator, a
            non-list ``$or`` / ``$and``, or the disabled ``$raw`` operator.
    """
    result: list[Condition] = []
    for key, value in where.items():
        if key in _GROUP_KEYS:
            result.extend(_parse_group(key, value))
            continue
        if key.startswith("$"):
            raise InvalidConditionError(f"Unknown top-level key {key!r}.", key=key)

        if isinstance(value, Mapping):
            result.extend(_parse_operators(key, value, logic))
        elif isinstance(value, (list, tuple)):
            result.append(Condition(key=key, operator="in", value=list(value), logic=logic))
        elif value is None:
            result.append(Condition(key=key, operator="is", value=NULL_SENTINEL, logic=logic))
        else:
            result.append(Condition(key=key, operator="=", value=value, logic=logic))
    return result


def is_simple_where(obj: Any) -> bool:
    """Return ``True`` if ``obj`` looks like the simple-object syntax.

    Request bodies (mappings with ``where`` or ``keyword``) and condition
    lists are not.
    """
    if not isinstance(obj, Mapping):
        return False
    if "where" in obj or "keyword" in obj:
        return False
    for key, value in obj.items():
        if key in _GROUP_KEYS:
            if not isinstance(value, (list, tuple)):
                return False
            continue
        if isinstance(value, Mapping) and not all(
            op in SIMPLE_OPERATORS or op in _RANGE_OPERATORS or op in _NULL_OPERATORS
            for op in value
        ):
            return False
    return True


def _parse_group(group: str, value: Any) -> list[Condition]:
    if not isinstance(value, (list, tuple)):
        raise InvalidConditionError(f"{group} expects a list of mappings.", key=group)
    result: list[Condition] = []
    for i, sub_where in enumerate(value):
        if not isinstance(sub_where, Mapping):
            raise InvalidConditionError(f"{group} expects a list of mappings.", key=group)
        conditions = parse_simple_where(sub_where, "and")
        if group == "$or" and i > 0 and conditions:
            conditions[0] = conditions[0].model_copy(update={"logic": "or"})
        result.extend(conditions)
    return result


def _parse_operators(key: str, ops: Mapping[str, Any], logic: str) -> list[Condition]:
    result: list[Condition] = []
    for op, value in ops.items():
        if op in SIMPLE_OPERATORS:
            result.append(Condition(key=key, operator=SIMPLE_OPERATORS[op], value=value, logic=logic))
        elif op in _RANGE_OPERATORS:
            # Incomplete ranges are dropped like other optional filters.
            if isinstance(value, (list, tuple)) and len(value) >= 2:
                result.append(
                    Condition(key=key, operator=_RANGE_OPERATORS[op], value=list(value), logic=logic)
                )
        elif op == "$isNull":
            if value is True:
                result.append(Condition(key=key, operator="is", value=NULL_SENTINEL, logic=logic))
            elif value is False:
                result.append(Condition(key=key, operator="is not", value=NULL_SENTINEL, logic=logic))
        elif op == "$isNotNull":
            if value is True:
                result.append(Condition(key=key, operator="is not", value=NULL_SENTINEL, logic=logic))
        elif op == "$raw":
            raise InvalidConditionError(
                "The $raw operator is disabled; use a parameterized operator.", key=key, operator=op
            )
        else:
            raise InvalidConditionError(f"Unknown operator {op!r}.", key=key, operator=op)
    return result


# ---------------------------------------------------------------------------
# Condition helpers
# ---------------------------------------------------------------------------


def eq(key: str, value: Any) -> Condition:
    return Condition(key=key, operator="=", value=value)


def ne(key: str, value: Any) -> Condition:
    return Condition(key=key, operator="<>", value=value)


def gt(key: str, value: Any) -> Condition:
    return Condition(key=key, operator=">", value=value)


def gte(key: str, value: Any) -> Condition:
    return Condition(key=key, operator=">=", value=value)


def lt(key: str, value: Any) -> Condition:
    return Condition(key=key, operator="<", value=value)


def lte(key: str, value: Any) -> Condition:
    return Condition(key=key, operator="<=", value=value)


def in_(key: str, values: Iterable[Any]) -> Condition:
    return Condition(key=key, operator="in", value=list(values))


def not_in(key: str, values: Iterable[Any]) -> Condition:
    return Condition(key=key, operator="not in", value=list(values))


def between(key: str, low: Any, high: Any) -> Condition:
    return Condition(key=key, operator="between", value=[low, high])


def not_between(key: str, low: Any, high: Any) -> Condition:
    return Condition(key=key, operator="not between", value=[low, high])


def like(key: str, value: str) -> Condition:
    """``key LIKE '%value%'``."""
    return Condition(key=key, operator="%%", value=value)


contains = like


def starts_with(key: str, value: str) -> Condition:
    """``key LIKE 'value%'``."""
    return Condition(key=key, operator="x%", value=value)


def ends_with(key: str, value: str) -> Condition:
    """``key LIKE '%value'``."""
    return Condition(key=key, operator="%", value=value)


def not_like(key: str, value: str) -> Condition:
    """``key NOT LIKE '%value%'``."""
    return Condition(key=key, operator="not like", value=f"%{value}%")


def is_null(key: str) -> Condition:
    return Condition(key=key, operator="is", value=NULL_SENTINEL)


def is_not_null(key: str) -> Condition:
    return Condition(key=key, operator="is not", value=NULL_SENTINEL)


def and_(*conditions: Condition) -> list[Condition]:
    """Join ``conditions`` with ``AND``."""
    return [c.model_copy(update={"logic": "and"}) for c in conditions]


def or_(*conditions: Condition) -> list[Condition]:
    """Join ``conditions`` with ``OR``; the first keeps ``AND`` to what precedes it."""
    return [
        c.model_copy(update={"logic": "and" if i == 0 else "or"})
        for i, c in enumerate(conditions)
    ]


class ColumnRef:
    """Column handle whose methods build conditions on that column.

    Example::

        age = col("age")
        conditions = [age.gte(18), age.lt(65)]
    """

    def __init__(self, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        return f"col({self.name!r})"

    def eq(self, value: Any) -> Condition:
        return eq(self.name, value)

    def ne(self, value: Any) -> Condition:
        return ne(self.name, value)

    def gt(self, value: Any) -> Condition:
        return gt(self.name, value)

    def gte(self, value: Any) -> Condition:
        return gte(self.name, value)

    def lt(self, value: Any) -> Condition:
        return lt(self.name, value)

    def lte(self, value: Any) -> Condition:
        return lte(self.name, value)

    def in_(self, values: Iterable[Any]) -> Condition:
        return in_(self.name, values)

    def not_in(self, values: Iterable[Any]) -> Condition:
        return not_in(self.name, values)

    def between(self, low: Any, high: Any) -> Condition:
        return between(self.name, low, high)

    def like(self, value: str) -> Condition:
        return like(self.name, value)

    def starts_with(self, value: str) -> Condition:
        return starts_with(self.name, value)

    def ends_with(self, value: str) -> Condition:
        return ends_with(self.name, value)

    def is_null(self) -> Condition:
        return is_null(self.name)

    def is_not_null(self) -> Condition:
        return is_not_null(self.name)


def col(name: str) -> ColumnRef:
    """Return a :class:`ColumnRef` for ``name``."""
    return ColumnRef(name)
