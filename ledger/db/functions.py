"""SQL functions whose SQLite built-ins disagree with other backends."""
from __future__ import annotations

import sqlite3

from sqlalchemy import event
from sqlalchemy.engine import Engine


def fold_case(value: str | None) -> str | None:
    """Lower-case ``value`` the way ``lower()`` does on every supported backend."""

    return value.lower() if isinstance(value, str) else value


@event.listens_for(Engine, "connect")
def _register_sqlite_functions(dbapi_connection, connection_record) -> None:
    # SQLite's built-in lower() only folds ASCII letters.
    if isinstance(dbapi_connection, sqlite3.Connection):
        dbapi_connection.create_function("lower", 1, fold_case, deterministic=True)
