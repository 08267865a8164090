"""Logger helper for polysql.

polysql never installs handlers; applications decide where records go.
All loggers live under the ``polysql`` namespace so a single
``logging.getLogger("polysql").setLevel(...)`` controls the library.
"""

from __future__ import annotations

import logging

__all__ = ("get_logger",)

ROOT_LOGGER_NAME = "polysql"

logging.getLogger(ROOT_LOGGER_NAME).addHandler(logging.NullHandler())


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger under the ``polysql`` namespace.

    Args:
        name: Logger name. If not provided, returns the root polysql logger.

    Returns:
        Logger instance
    """
    if name is None:
        return logging.getLogger(ROOT_LOGGER_NAME)

    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"

    return logging.getLogger(name)
