"""Dialect registry (Open/Closed Principle).

``DialectFactory`` maps dialect names and aliases to
:class:`~polysql.dialect.base.Dialect` classes.  Built-in dialects are
registered in :mod:`polysql`; applications add their own without touching
the builders::

    from polysql.dialect.registry import DialectFactory

    @DialectFactory.register("cockroachdb", "crdb")
    class CockroachDialect(PostgreSQLDialect):
        ...

Unknown names raise :class:`~polysql.errors.UnsupportedDialectError`.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import ClassVar

from polysql.dialect.base import Dialect
from polysql.errors import UnsupportedDialectError
from polysql.utils.logging import get_logger

logger = get_logger("dialect.registry")


class DialectFactory:
    """Registry mapping dialect names and aliases to :class:`Dialect` classes.

    Lookups are case-insensitive.  Dialects are stateless, so one instance
    per canonical name is created on first use and shared afterwards.

    Example::

        dialect = DialectFactory.create("pg")
        dialect.get_type()   # 'postgresql'
    """

    _dialects: ClassVar[dict[str, type[Dialect]]] = {}
    _aliases: ClassVar[dict[str, str]] = {}
    _instances: ClassVar[dict[str, Dialect]] = {}

    @classmethod
    def register(cls, name: str, *aliases: str) -> Callable[[type[Dialect]], type[Dialect]]:
        """Decorator that registers a dialect class under ``name``.

        Args:
            name: Canonical dialect name (e.g. ``"postgresql"``).
            *aliases: Extra names resolving to the same dialect.

        Returns:
            A decorator that registers and returns the dialect class.
        """

        def decorator(dialect_cls: type[Dialect]) -> type[Dialect]:
            cls.register_class(name, dialect_cls, aliases)
            return dialect_cls

        return decorator

    @classmethod
    def register_class(
        cls,
        name: str,
        dialect_cls: type[Dialect],
        aliases: tuple[str, ...] | list[str] = (),
    ) -> None:
        """Register a dialect class without using the decorator form.

        Re-registering a name replaces the class and drops any cached
        instance.

        Args:
            name: Canonical dialect name.
            dialect_cls: The :class:`Dialect` subclass to register.
            aliases: Extra names resolving to ``name``.
        """
        key = name.lower()
        cls._dialects[key] = dialect_cls
        cls._instances.pop(key, None)
        for alias in aliases:
            cls.register_alias(alias, key)

    @classmethod
    def register_alias(cls, alias: str, name: str) -> None:
        """Make ``alias`` resolve to the registered dialect ``name``."""
        cls._aliases[alias.lower()] = name.lower()

    @classmethod
    def resolve(cls, name: str) -> str:
        """Return the canonical dialect name for ``name`` or an alias.

        Raises:
            UnsupportedDialectError: If neither a dialect nor an alias
                matches.
        """
        key = name.strip().lower() if isinstance(name, str) else ""
        key = cls._aliases.get(key, key)
        if key not in cls._dialects:
            raise UnsupportedDialectError(str(name), cls.supported())
        return key

    @classmethod
    def create(cls, name: str) -> Dialect:
        """Return the shared dialect instance for ``name``.

        Args:
            name: Dialect name or alias (case-insensitive).

        Returns:
            The cached :class:`Dialect` instance.

        Raises:
            UnsupportedDialectError: If no dialect is registered for ``name``.
        """
        key = cls.resolve(name)
        dialect = cls._instances.get(key)
        if dialect is None:
            dialect = cls._dialects[key]()
            cls._instances[key] = dialect
            logger.debug("Resolved dialect %r to %s", name, type(dialect).__name__)
        return dialect

    @classmethod
    def get(cls, dialect: Dialect | str) -> Dialect:
        """Return ``dialect`` itself, or the registered dialect it names."""
        if isinstance(dialect, Dialect):
            return dialect
        return cls.create(dialect)

    @classmethod
    def supported(cls) -> list[str]:
        """Return the sorted list of dialect names and aliases."""
        return sorted(set(cls._dialects) | set(cls._aliases))

    @classmethod
    def is_supported(cls, name: str) -> bool:
        """Return ``True`` if ``name`` resolves to a registered dialect."""
        key = name.strip().lower()
        return cls._aliases.get(key, key) in cls._dialects

    @classmethod
    def clear_cache(cls) -> None:
        """Drop cached dialect instances."""
        cls._instances.clear()
