"""
Shared DB helper utilities.

Every query issued by the bills registry goes through these wrappers so
that driver errors surface as a RuntimeError carrying the offending query,
and rows come back as plain dicts regardless of backend.

Backends import this module as `.helpers`
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Optional


_QMARK = re.compile(r"\?")


# ----------------------------------------------------------------------
# Placeholder translation
# ----------------------------------------------------------------------

def to_paramstyle(query: str, paramstyle: str) -> str:
    """
    Rewrite "?" placeholders for drivers that use the "format" style.

    psycopg2 expects "%s"; literal percent signs must then be doubled.
    Queries in this package never embed "?" inside string literals.
    """
    if paramstyle != "format":
        return query
    return _QMARK.sub("%s", query.replace("%", "%%"))


# ----------------------------------------------------------------------
# Execution helpers
# ----------------------------------------------------------------------

def safe_execute(conn: Any, query: str, params: Optional[tuple] = None):
    """
    Execute a single SQL statement and return the raw cursor.

    Raises
    ------
    RuntimeError
        Wrapped execution error with the query and parameters attached.
    """
    cur = conn.cursor()
    try:
        cur.execute(query, params or ())
    except Exception as e:
        raise RuntimeError(
            f"DB execute failed: {e} | Query: {query!r} | Params: {params!r}"
        ) from e
    return cur


def safe_executemany(conn: Any, query: str, seq: Iterable[tuple]):
    """Execute the same SQL statement for multiple parameter sets."""
    cur = conn.cursor()
    try:
        cur.executemany(query, seq)
    except Exception as e:
        raise RuntimeError(
            f"DB executemany failed: {e} | Query: {query!r}"
        ) from e
    return cur


def safe_fetch_all(conn: Any, query: str, params: Optional[tuple] = None):
    cur = safe_execute(conn, query, params)
    return cur.fetchall()


def safe_fetch_one(conn: Any, query: str, params: Optional[tuple] = None):
    cur = safe_execute(conn, query, params)
    return cur.fetchone()


def column_names(cursor: Any) -> list:
    """Column names of the last statement run on ``cursor``."""
    return [d[0] for d in (cursor.description or [])]


# ----------------------------------------------------------------------
# Row mapping
# ----------------------------------------------------------------------

def row_to_dict(row: Any) -> dict:
    """
    Convert sqlite3.Row or psycopg2 RealDictRow to a plain Python dict.
    """
    if row is None:
        return {}

    if hasattr(row, "keys"):
        return {k: row[k] for k in row.keys()}

    return dict(enumerate(row))


__all__ = [
    "to_paramstyle",
    "safe_execute",
    "safe_executemany",
    "safe_fetch_all",
    "safe_fetch_one",
    "column_names",
    "row_to_dict",
]
