"""Input validation for structural SQL fragments."""
from polysql.validate.identifier import (
    is_safe_format_value,
    validate_format_value,
    validate_identifier,
    validate_identifiers,
)

__all__ = [
    "validate_identifier",
    "validate_identifiers",
    "validate_format_value",
    "is_safe_format_value",
]
