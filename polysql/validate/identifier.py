"""Identifier and raw-value validation.

Values reach the database as bound parameters, so the only way to inject
SQL through a request is via the *structural* parts that are concatenated
into the statement text: table names, column names, aliases and
``format: true`` values.  Every one of them goes through this module
before any SQL text is assembled.
"""
from __future__ import annotations

import re
from typing import Any

from polysql.errors import InvalidIdentifierError, UnsafeFormatValueError

#: Letters, digits and underscores, optionally dot-qualified (``t.id``,
#: ``app.users``) or starred (``t.*``, ``*``).
IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_*][A-Za-z0-9_.*]*$")

#: Tokens allowed in a ``format: true`` value: identifiers, numbers, spaces,
#: parentheses and arithmetic.  No quotes, no comment markers, no ``;`` and
#: no placeholder characters.
FORMAT_VALUE_PATTERN = re.compile(r"^[A-Za-z0-9_().+\-*/ ]+$")

#: Comment openers are rejected even though their characters are allowed.
_COMMENT_MARKERS = ("--", "/*", "*/")


def is_safe_format_value(text: str) -> bool:
    """Return ``True`` if ``text`` may be spliced into SQL verbatim."""
    return bool(FORMAT_VALUE_PATTERN.fullmatch(text)) and not any(
        marker in text for marker in _COMMENT_MARKERS
    )


def validate_identifier(name: Any) -> str:
    """Return ``name`` unchanged if it is a plain SQL identifier.

    Args:
        name: Candidate table / column / alias name.

    Returns:
        The same string.

    Raises:
        InvalidIdentifierError: If ``name`` is not a string or contains
            anything beyond the identifier alphabet.
    """
    if not isinstance(name, str) or not IDENTIFIER_PATTERN.fullmatch(name):
        raise InvalidIdentifierError(name)
    return name


def validate_identifiers(names: list[str]) -> list[str]:
    """Validate every name in ``names`` and return them in order."""
    return [validate_identifier(n) for n in names]


def validate_format_value(key: str, value: Any) -> str:
    """Return the textual form of a raw ``format: true`` value.

    Args:
        key: Column the value belongs to (for the error message).
        value: Value to splice into SQL.

    Raises:
        UnsafeFormatValueError: If the value contains characters outside
            :data:`FORMAT_VALUE_PATTERN` or opens a SQL comment.
    """
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise UnsafeFormatValueError(key, value)
    text = str(value)
    if not is_safe_format_value(text):
        raise UnsafeFormatValueError(key, value)
    return text
