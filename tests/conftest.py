"""Shared pytest fixtures for polysql unit tests."""
from __future__ import annotations

import pytest
from helpers import ALL_DIALECTS

from polysql import SQLBuilder
from polysql.dialect.registry import DialectFactory


@pytest.fixture(scope="session")
def mysql() -> SQLBuilder:
    return SQLBuilder("mysql")


@pytest.fixture(scope="session")
def pg() -> SQLBuilder:
    return SQLBuilder("postgresql")


@pytest.fixture(scope="session")
def sqlite() -> SQLBuilder:
    return SQLBuilder("sqlite")


@pytest.fixture(scope="session")
def mssql() -> SQLBuilder:
    return SQLBuilder("sqlserver")


@pytest.fixture(scope="session")
def oracle() -> SQLBuilder:
    return SQLBuilder("oracle")


@pytest.fixture(scope="session")
def all_builders() -> dict[str, SQLBuilder]:
    """One builder per registered dialect, keyed by canonical name."""
    return {name: SQLBuilder(name) for name in ALL_DIALECTS}


@pytest.fixture
def users_query() -> dict:
    """A SELECT request touching every clause."""
    return {
        "select": ["t.id", "t.name"],
        "where": [
            {"key": "t.status", "value": 1},
            {"key": "t.name", "operator": "%%", "value": "ann"},
        ],
        "orderBy": {"t.id": "DESC"},
        "limit": [10, 18],
        "configs": {"tableName": "users"},
    }


@pytest.fixture(autouse=True)
def _restore_dialect_registry():
    """Undo any dialect registrations a test makes."""
    dialects = dict(DialectFactory._dialects)
    aliases = dict(DialectFactory._aliases)
    yield
    DialectFactory._dialects.clear()
    DialectFactory._dialects.update(dialects)
    DialectFactory._aliases.clear()
    DialectFactory._aliases.update(aliases)
    DialectFactory.clear_cache()
