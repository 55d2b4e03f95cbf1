"""
Bills DB - Registry package.

This package provides:
    - the BillRecord data model
    - DBBillRegistry, the read-only query layer over the bills table

The registry sits above the database backend (SQLite, Postgres) and is
used by the BillsDB façade and the dashboard API modules.
"""

from .models import BillRecord, as_bool
from .bill_registry import DBBillRegistry, FILTER_COLUMNS

__all__ = [
    "BillRecord",
    "as_bool",
    "DBBillRegistry",
    "FILTER_COLUMNS",
]
