"""
bills_db.db

Database backend abstraction layer for the bills store.

This package provides:

- A backend-agnostic connection abstraction:
      * DBConnection
      * DBPool

- Helper functions for safe SQL execution and row mapping

- Concrete database backend implementations:
      * SQLiteBackend   (local development + tests)
      * PostgresBackend (the remote managed database)
"""

from .connection import DBConnection, DBPool
from .sqlite_backend import SQLiteBackend, quote_ident
from .postgres_backend import PostgresBackend
from .backend_base import DBBackend, BackendLike, ensure_backend
from .helpers import (
    to_paramstyle,
    safe_execute,
    safe_executemany,
    safe_fetch_all,
    safe_fetch_one,
    row_to_dict,
)

__all__ = [
    # Connection / Pool
    "DBConnection",
    "DBPool",

    # Backends
    "SQLiteBackend",
    "PostgresBackend",
    "DBBackend",
    "BackendLike",
    "ensure_backend",
    "quote_ident",

    # Helpers
    "to_paramstyle",
    "safe_execute",
    "safe_executemany",
    "safe_fetch_all",
    "safe_fetch_one",
    "row_to_dict",
]
