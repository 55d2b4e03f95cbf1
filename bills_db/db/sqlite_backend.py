"""
SQLite backend for the bills store.

Used for:
    - local development against an exported copy of the bills table
    - tests

The column layout mirrors the remote table exactly, including the
camel-case "policyArea" and "isAct" columns.
"""

from __future__ import annotations

import re
import sqlite3
from pathlib import Path

from . import helpers
from .backend_base import DBBackend


_IDENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def quote_ident(name: str) -> str:
    """Quote a table name after checking it is a plain identifier."""
    if not _IDENT.match(name or ""):
        raise ValueError(f"Invalid table name: {name!r}")
    return f'"{name}"'


# ----------------------------------------------------------------------
# Canonical Schema
# ----------------------------------------------------------------------

SQL_SCHEMA = """
CREATE TABLE IF NOT EXISTS {table} (
    id                  TEXT PRIMARY KEY,
    title               TEXT,
    "policyArea"        TEXT,
    current_house       TEXT,
    status              TEXT,
    originating_house   TEXT,
    introduction_date   TEXT,
    days_to_approval    INTEGER,
    "isAct"             BOOLEAN DEFAULT 0
);

CREATE INDEX IF NOT EXISTS {index} ON {table}("policyArea");
"""


# ----------------------------------------------------------------------
# Backend implementation
# ----------------------------------------------------------------------

class SQLiteBackend(DBBackend):
    """
    Minimal SQLite backend.

    Parameters
    ----------
    db_path : str
        Path to the SQLite database file.
    """

    paramstyle = "qmark"

    def __init__(self, db_path: str):
        self.path = Path(db_path)
        self._helpers = helpers

    @property
    def helpers(self):
        return self._helpers

    def connect(self) -> sqlite3.Connection:
        """
        Open a SQLite3 connection with dict-like rows.
        """
        conn = sqlite3.connect(str(self.path))
        conn.row_factory = sqlite3.Row
        return conn

    def init_schema(self, conn, table: str) -> None:
        """
        Create the bills table if it does not exist.

        Idempotent – safe to call multiple times.
        """
        ident = quote_ident(table)
        cur = conn.cursor()
        cur.executescript(
            SQL_SCHEMA.format(table=ident, index=quote_ident(f"idx_{table}_policy_area"))
        )
        conn.commit()
