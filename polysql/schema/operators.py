"""Constants for condition operators, update operators and aggregates.

Conditions carry their operator as a short tag (``"="``, ``"in"``,
``"%%"``...).  This module defines the known tags and the lookup tables
shared by the condition compiler, the UPDATE compiler and the aggregate
builder.

Unknown condition operators compile as ``=`` and unknown aggregate
functions are dropped from the SELECT list.  Both are long-standing
conventions of the request format rather than errors, so callers that
build requests dynamically should check their tags against
:data:`CONDITION_OPERATORS` and :data:`AGGREGATE_FUNCTIONS`.
"""

from __future__ import annotations

from enum import Enum


class ComparisonOp(str, Enum):
    """Binary comparison operators (one bound value)."""

    EQ = "="
    GT = ">"
    LT = "<"
    NE = "<>"
    GTE = ">="
    LTE = "<="


class MembershipOp(str, Enum):
    """Membership operators (list value)."""

    IN = "in"
    NOT_IN = "not in"


class FuzzyOp(str, Enum):
    """LIKE shorthands with implicit ``%`` placement."""

    LEFT = "%"
    RIGHT = "x%"
    BOTH = "%%"


class PatternOp(str, Enum):
    """Explicit pattern operators (caller supplies the wildcards)."""

    LIKE = "like"
    NOT_LIKE = "not like"
    REGEXP = "regexp"
    TILDE = "~"


class RangeOp(str, Enum):
    """Range operators (two-element list value)."""

    BETWEEN = "between"
    NOT_BETWEEN = "not between"


class NullOp(str, Enum):
    """Null checks (value must be the NULL sentinel)."""

    IS = "is"
    IS_NOT = "is not"


class LogicalOp(str, Enum):
    """Connectives joining consecutive conditions."""

    AND = "and"
    OR = "or"


class UpdateOp(str, Enum):
    """Assignment styles for UPDATE items and CASE branches."""

    REPLACE = "replace"
    PLUS = "plus"
    REDUCE = "reduce"


#: Every operator tag the condition compiler recognises.
CONDITION_OPERATORS: frozenset[str] = frozenset(
    op.value
    for group in (ComparisonOp, MembershipOp, FuzzyOp, PatternOp, RangeOp, NullOp)
    for op in group
)

#: Operators that may splice a raw ``format: true`` value.
FORMAT_OPERATORS: frozenset[str] = frozenset(op.value for op in ComparisonOp)

#: Aggregate whitelist: request name (lower case) -> SQL function.
AGGREGATE_FUNCTIONS: dict[str, str] = {
    "count": "COUNT",
    "sum": "SUM",
    "max": "MAX",
    "min": "MIN",
    "avg": "AVG",
    "abs": "ABS",
}

#: Value of ``is`` / ``is not`` conditions (compared case-insensitively).
NULL_SENTINEL = "null"

#: ORDER BY directions that are honoured; anything else is ignored.
SORT_DIRECTIONS: frozenset[str] = frozenset({"ASC", "DESC"})


def is_empty_value(value: object) -> bool:
    """Return ``True`` for the values that make a condition optional."""
    return value is None or (isinstance(value, str) and value == "")


def resolve_update_op(op: str | None) -> UpdateOp:
    """Map an update operator tag to :class:`UpdateOp`, defaulting to replace."""
    try:
        return UpdateOp((op or UpdateOp.REPLACE.value).strip().lower())
    except ValueError:
        return UpdateOp.REPLACE
