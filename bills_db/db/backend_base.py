"""
Backend base interfaces for the bills database layer.

This module defines the minimal contracts that all database backends
(local SQLite, the managed Postgres store) must satisfy.

Backends must expose:

    backend.connect()    -> raw_connection
    backend.helpers      -> module with:
                              - safe_execute(conn, query, params)
                              - safe_fetch_all(conn, query, params)
                              - safe_fetch_one(conn, query, params)
                              - safe_executemany(conn, query, seq)
                              - row_to_dict(row)
    backend.paramstyle   -> "qmark" or "format"

    backend.init_schema(conn)  # optional
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Protocol, runtime_checkable


# ---------------------------------------------------------------------------
# Abstract Base Backend
# ---------------------------------------------------------------------------

class DBBackend(ABC):
    """
    Abstract base class for a bills DB backend.

    Concrete subclasses may define any constructor signature they want
    (e.g. SQLiteBackend(db_path), PostgresBackend(dsn)).

    Queries throughout the registry layer are written with "?" placeholders.
    Backends whose driver expects "%s" declare paramstyle = "format" and
    DBConnection rewrites the placeholders before execution.
    """

    paramstyle: str = "qmark"

    @property
    @abstractmethod
    def helpers(self) -> Any:
        """
        Return the helper module associated with this backend.
        """
        raise NotImplementedError

    @abstractmethod
    def connect(self) -> Any:
        """
        Acquire and return a new raw DB-API 2.0 connection.
        """
        raise NotImplementedError

    def init_schema(self, conn: Any, table: str) -> None:
        """
        Optional schema bootstrap.

        The local SQLite backend creates the bills table here. The remote
        Postgres store is managed elsewhere, so the default is a no-op.
        """
        return None


# ---------------------------------------------------------------------------
# Structural Protocol
# ---------------------------------------------------------------------------

@runtime_checkable
class BackendLike(Protocol):
    """
    Structural protocol for objects usable as a bills DB backend.
    """

    helpers: Any

    def connect(self) -> Any:
        ...

    def init_schema(self, conn: Any, table: str) -> None:
        ...


# ---------------------------------------------------------------------------
# Runtime Guard
# ---------------------------------------------------------------------------

def ensure_backend(backend: Any) -> BackendLike:
    """
    Validate that an object behaves like a bills DB backend.

    Raises:
        TypeError if required attributes are missing.
    """
    if not isinstance(backend, BackendLike):
        missing = [
            name
            for name in ("connect", "helpers", "init_schema")
            if not hasattr(backend, name)
        ]
        if missing:
            raise TypeError(
                f"Invalid bills DB backend {backend!r}: missing attributes {missing}"
            )

    return backend  # type: ignore[return-value]


__all__ = [
    "DBBackend",
    "BackendLike",
    "ensure_backend",
]
