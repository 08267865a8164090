"""Unit tests for ConditionCompiler and the operator handlers."""

from __future__ import annotations

import pytest
from helpers import ALL_DIALECTS, count_placeholders

from polysql import (
    CompilationError,
    Condition,
    ConditionCompiler,
    InvalidConditionError,
    InvalidIdentifierError,
    InvalidRequestError,
    OperatorRegistry,
    UnsafeFormatValueError,
)
from polysql.dialect.registry import DialectFactory


def _compile(conditions, dialect: str = "mysql"):
    return ConditionCompiler(DialectFactory.create(dialect)).compile(conditions)


# ---------------------------------------------------------------------------
# Skip rule and tautology
# ---------------------------------------------------------------------------


def test_empty_list_is_tautology():
    built = _compile([])
    assert built.sql == "1=1"
    assert built.params == []


def test_none_and_empty_string_values_skipped():
    built = _compile([
        {"key": "a", "value": None},
        {"key": "b", "value": ""},
        {"key": "c", "value": 3},
    ])
    assert built.sql == "c = ?"
    assert built.params == [3]


def test_all_skipped_is_tautology():
    built = _compile([{"key": "a", "value": None}, {"key": "b", "value": ""}])
    assert built.sql == "1=1"
    assert built.params == []


def test_zero_and_false_are_not_skipped():
    built = _compile([{"key": "a", "value": 0}, {"key": "b", "value": False}])
    assert built.sql == "a = ? AND b = ?"
    assert built.params == [0, False]


def test_skipped_condition_key_is_not_validated():
    built = _compile([{"key": "bad key", "value": None}])
    assert built.sql == "1=1"


# ---------------------------------------------------------------------------
# Logic chaining
# ---------------------------------------------------------------------------


def test_first_fragment_bare_later_fragments_prefixed():
    built = _compile([
        {"key": "a", "value": 1, "logic": "or"},
        {"key": "b", "value": 2},
        {"key": "c", "value": 3, "logic": "OR"},
    ])
    assert built.sql == "a = ? AND b = ? OR c = ?"


def test_logic_prefix_uses_condition_after_skipped_one():
    built = _compile([
        {"key": "a", "value": None},
        {"key": "b", "value": 2, "logic": "or"},
        {"key": "c", "value": 3, "logic": "or"},
    ])
    assert built.sql == "b = ? OR c = ?"


def test_invalid_logic_rejected():
    with pytest.raises(InvalidRequestError):
        _compile([{"key": "a", "value": 1, "logic": "xor; DROP"}])


# ---------------------------------------------------------------------------
# Operators
# ---------------------------------------------------------------------------


def test_comparison_operators():
    for op in ["=", ">", "<", "<>", ">=", "<="]:
        built = _compile([{"key": "age", "operator": op, "value": 18}])
        assert built.sql == f"age {op} ?"
        assert built.params == [18]


def test_unknown_operator_falls_back_to_equals():
    built = _compile([{"key": "age", "operator": "!~~", "value": 18}])
    assert built.sql == "age = ?"


def test_operator_normalised():
    built = _compile([{"key": "name", "operator": "  NOT LIKE ", "value": "a%"}])
    assert built.sql == "name NOT LIKE ?"


def test_in_binds_each_item():
    built = _compile([{"key": "id", "operator": "in", "value": [1, 2, 3]}], "postgresql")
    assert built.sql == "id IN ($1, $2, $3)"
    assert built.params == [1, 2, 3]


def test_not_in():
    built = _compile([{"key": "id", "operator": "not in", "value": [7]}])
    assert built.sql == "id NOT IN (?)"


def test_in_empty_list_matches_nothing():
    built = _compile([{"key": "id", "operator": "in", "value": []}])
    assert built.sql == "id IN (NULL)"
    assert built.params == []


def test_in_scalar_is_one_element_list():
    built = _compile([{"key": "id", "operator": "in", "value": 5}])
    assert built.sql == "id IN (?)"
    assert built.params == [5]


def test_fuzzy_match_patterns():
    left = _compile([{"key": "name", "operator": "%", "value": "son"}])
    right = _compile([{"key": "name", "operator": "x%", "value": "Jo"}])
    both = _compile([{"key": "name", "operator": "%%", "value": "an"}])
    assert left.sql == right.sql == both.sql == "name LIKE ?"
    assert left.params == ["%son"]
    assert right.params == ["Jo%"]
    assert both.params == ["%an%"]


def test_between_binds_first_two_items():
    built = _compile([{"key": "age", "operator": "between", "value": [18, 65, 99]}], "postgresql")
    assert built.sql == "age BETWEEN $1 AND $2"
    assert built.params == [18, 65]


def test_not_between():
    built = _compile([{"key": "age", "operator": "not between", "value": [1, 2]}])
    assert built.sql == "age NOT BETWEEN ? AND ?"


def test_between_needs_two_items():
    with pytest.raises(InvalidConditionError) as exc_info:
        _compile([{"key": "age", "operator": "between", "value": [18]}])
    assert exc_info.value.details["key"] == "age"
    with pytest.raises(InvalidConditionError):
        _compile([{"key": "age", "operator": "between", "value": 18}])


def test_is_null_and_is_not_null():
    built = _compile([
        {"key": "deleted_at", "operator": "is", "value": "null"},
        {"key": "email", "operator": "is not", "value": "NULL"},
    ])
    assert built.sql == "deleted_at IS NULL AND email IS NOT NULL"
    assert built.params == []


def test_is_requires_null_sentinel():
    with pytest.raises(InvalidConditionError):
        _compile([{"key": "deleted_at", "operator": "is", "value": "1 OR 1=1"}])


def test_regexp_per_dialect():
    assert _compile([{"key": "n", "operator": "regexp", "value": "^a"}]).sql == "n REGEXP ?"
    assert _compile([{"key": "n", "operator": "~", "value": "^a"}], "postgresql").sql == "n ~ $1"
    assert (
        _compile([{"key": "n", "operator": "regexp", "value": "^a"}], "oracle").sql
        == "REGEXP_LIKE(n, :1)"
    )
    with pytest.raises(CompilationError):
        _compile([{"key": "n", "operator": "regexp", "value": "^a"}], "sqlserver")


# ---------------------------------------------------------------------------
# Raw format values
# ---------------------------------------------------------------------------


def test_format_value_spliced_without_param():
    built = _compile([{"key": "updated_at", "operator": ">", "value": "created_at", "format": True}])
    assert built.sql == "updated_at > created_at"
    assert built.params == []


def test_unsafe_format_value_rejected():
    with pytest.raises(UnsafeFormatValueError):
        _compile([{"key": "a", "value": "1; DELETE FROM users", "format": True}])
    with pytest.raises(UnsafeFormatValueError):
        _compile([{"key": "a", "value": "b -- comment", "format": True}])


# ---------------------------------------------------------------------------
# Safety and numbering
# ---------------------------------------------------------------------------


def test_condition_key_validated():
    with pytest.raises(InvalidIdentifierError):
        _compile([{"key": "id = 1 OR 1", "value": 1}])


def test_placeholder_count_matches_params_everywhere():
    conditions = [
        {"key": "a", "value": 1},
        {"key": "b", "operator": "in", "value": [1, 2, 3]},
        {"key": "c", "operator": "between", "value": [1, 9]},
        {"key": "d", "operator": "%%", "value": "x"},
        {"key": "e", "operator": "is", "value": "null"},
        {"key": "f", "value": None},
    ]
    for name in ALL_DIALECTS:
        built = _compile(conditions, name)
        assert count_placeholders(built.sql, name) == len(built.params) == 7, name


def test_each_compile_restarts_numbering():
    compiler = ConditionCompiler(DialectFactory.create("postgresql"))
    first = compiler.compile([{"key": "a", "value": 1}])
    second = compiler.compile([{"key": "a", "value": 1}])
    assert first.sql == second.sql == "a = $1"


def test_model_instances_accepted():
    built = _compile([Condition(key="a", value=1)])
    assert built.sql == "a = ?"


def test_malformed_condition_is_invalid_request():
    with pytest.raises(InvalidRequestError):
        _compile([{"value": 1}])


def test_custom_operator_registration():
    @OperatorRegistry.register("ilike")
    def _ilike(op, condition, key, runtime):
        return f"{key} ILIKE {runtime.bind(condition.value)}"

    try:
        built = _compile([{"key": "name", "operator": "ILIKE", "value": "a%"}], "postgresql")
        assert built.sql == "name ILIKE $1"
        assert "ilike" in OperatorRegistry.registered_operators()
    finally:
        OperatorRegistry._operators.pop("ilike", None)
