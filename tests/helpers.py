"""Assertion helpers shared by the polysql tests."""
from __future__ import annotations

import re

#: Every canonical dialect name registered by the package.
ALL_DIALECTS = [
    "mysql", "mariadb", "tidb", "postgresql", "sqlite",
    "sqlserver", "oracle", "oracle11g",
]

_PLACEHOLDER_PATTERNS = {
    "mysql": r"\?",
    "mariadb": r"\?",
    "tidb": r"\?",
    "sqlite": r"\?",
    "postgresql": r"\$\d+",
    "sqlserver": r"@p\d+",
    "oracle": r":\d+",
    "oracle11g": r":\d+",
}


def count_placeholders(sql: str, dialect: str) -> int:
    """Count the dialect's parameter placeholders in ``sql``."""
    return len(re.findall(_PLACEHOLDER_PATTERNS[dialect], sql))


def numbered_placeholders(sql: str) -> list[int]:
    """Return the numbers of ``$n`` / ``@pn`` / ``:n`` placeholders in order."""
    return [int(n) for n in re.findall(r"(?:\$|@p|:)(\d+)", sql)]
