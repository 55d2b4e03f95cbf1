"""
Unified database connection abstraction for the bills store.

This file defines:
- DBConnection: a wrapper around a live database handle
- DBPool: simple factory handing out backend connections

All SQL in the registry layer is written with "?" placeholders; the
connection translates them to the backend's paramstyle.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional

from .backend_base import ensure_backend

logger = logging.getLogger(__name__)


class DBConnection:
    """
    Thin wrapper around a raw DB-API 2.0 connection.

    Notes:
        - The dashboard only reads, but commit() is kept for the local
          development importer.
        - Safe to close() multiple times.
    """

    def __init__(self, raw_conn: Any, helpers: Any, paramstyle: str = "qmark"):
        self.raw = raw_conn
        self.helpers = helpers
        self.paramstyle = paramstyle

    def _q(self, query: str) -> str:
        return self.helpers.to_paramstyle(query, self.paramstyle)

    # ------------------------------------------------------------------
    # SQL execution wrappers
    # ------------------------------------------------------------------

    def execute(self, query: str, params: Optional[tuple] = None):
        return self.helpers.safe_execute(self.raw, self._q(query), params)

    def executemany(self, query: str, seq: Iterable[tuple]):
        return self.helpers.safe_executemany(self.raw, self._q(query), seq)

    def fetch_all(self, query: str, params: Optional[tuple] = None) -> List[dict]:
        """
        Execute a SELECT statement and return a list of dict rows.
        """
        rows = self.helpers.safe_fetch_all(self.raw, self._q(query), params)
        return [self.helpers.row_to_dict(r) for r in rows]

    def fetch_one(self, query: str, params: Optional[tuple] = None) -> Optional[dict]:
        row = self.helpers.safe_fetch_one(self.raw, self._q(query), params)
        return self.helpers.row_to_dict(row) if row else None

    def fetch_columns(self, query: str, params: Optional[tuple] = None) -> List[str]:
        """
        Run a query and return the names of its result columns.

        Used to inspect the bills table shape (optional columns such as
        days_to_approval) without relying on there being any rows.
        """
        cur = self.execute(query, params)
        return self.helpers.column_names(cur)

    # ------------------------------------------------------------------
    # Transaction and connection lifecycle
    # ------------------------------------------------------------------

    def commit(self) -> None:
        try:
            self.raw.commit()
        except Exception as e:
            raise RuntimeError(f"Commit failed: {e}") from e

    def rollback(self) -> None:
        try:
            self.raw.rollback()
        except Exception:
            logger.debug("rollback failed", exc_info=True)

    def close(self) -> None:
        try:
            self.raw.close()
        except Exception:
            logger.debug("close failed", exc_info=True)


# ----------------------------------------------------------------------
# DB Pool
# ----------------------------------------------------------------------

class DBPool:
    """
    Simple database connection factory.

        with db_pool.connection() as conn:
            rows = conn.fetch_all("SELECT ...")
    """

    def __init__(self, backend: Any):
        self.backend = ensure_backend(backend)

    def get(self) -> DBConnection:
        raw = self.backend.connect()
        return DBConnection(
            raw,
            self.backend.helpers,
            getattr(self.backend, "paramstyle", "qmark"),
        )

    def connection(self) -> "_ConnectionContext":
        return _ConnectionContext(self)


class _ConnectionContext:
    """
    Internal context manager for DBConnection.
    """

    def __init__(self, pool: DBPool):
        self.pool = pool
        self.conn: Optional[DBConnection] = None

    def __enter__(self) -> DBConnection:
        self.conn = self.pool.get()
        return self.conn

    def __exit__(self, exc_type, exc, tb):
        if self.conn is None:
            return False

        if exc_type is not None:
            self.conn.rollback()

        self.conn.close()
        return False
