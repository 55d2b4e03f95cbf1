"""
DB-backed Bill Registry.

Read-only queries against the bills table: full listings, paginated
searches, equality-filtered counts and the per-policy-area projections
used by the dashboard charts.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .models import BillRecord, as_bool
from ..db.connection import DBPool
from ..db.sqlite_backend import quote_ident


# Python-side filter names -> SQL columns
FILTER_COLUMNS: Dict[str, str] = {
    "policy_area": '"policyArea"',
    "is_act": '"isAct"',
    "status": "status",
    "current_house": "current_house",
    "originating_house": "originating_house",
}


class DBBillRegistry:
    """
    Database-backed registry for bill records.

    Schema (canonical):
        all_bills_uk(
            id TEXT PRIMARY KEY,
            title TEXT,
            "policyArea" TEXT,
            current_house TEXT,
            status TEXT,
            originating_house TEXT,
            introduction_date TEXT,
            days_to_approval INTEGER NULL,
            "isAct" BOOLEAN
        )
    """

    def __init__(self, pool: DBPool, table: str = "all_bills_uk"):
        self.pool = pool
        self.table = quote_ident(table)

    # ------------------------------------------------------------------
    # Shape probing
    # ------------------------------------------------------------------

    def columns(self) -> List[str]:
        """Column names of the bills table."""
        with self.pool.connection() as conn:
            return conn.fetch_columns(f"SELECT * FROM {self.table} LIMIT 1")

    def first_row(self) -> Optional[Dict[str, Any]]:
        with self.pool.connection() as conn:
            return conn.fetch_one(f"SELECT * FROM {self.table} LIMIT 1")

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    def list_bills(
        self,
        *,
        limit: Optional[int] = None,
        offset: int = 0,
        search: Optional[str] = None,
        policy_area: Optional[str] = None,
    ) -> List[BillRecord]:
        """
        List bills ordered by id.

        search:
            Case-insensitive substring match on the title.
        policy_area:
            Exact policy area match.
        """
        where, params = self._where(search=search, policy_area=policy_area)
        query = f"SELECT * FROM {self.table}{where} ORDER BY id"
        if limit is not None:
            query += " LIMIT ? OFFSET ?"
            params += (int(limit), int(offset))

        with self.pool.connection() as conn:
            rows = conn.fetch_all(query, params)
        return [self._row_to_rec(r) for r in rows]

    def count_bills(self, search: Optional[str] = None, **equals: Any) -> int:
        """
        Count bills, optionally filtered by equality on FILTER_COLUMNS.

            registry.count_bills()                  # all bills
            registry.count_bills(is_act=False)      # rejected bills
        """
        where, params = self._where(search=search, **equals)
        with self.pool.connection() as conn:
            row = conn.fetch_one(
                f"SELECT COUNT(*) AS n FROM {self.table}{where}", params
            )
        return int(row["n"]) if row else 0

    # ------------------------------------------------------------------
    # Chart projections
    # ------------------------------------------------------------------

    def policy_area_days(self) -> List[Tuple[str, float]]:
        """(policy area, days_to_approval) for bills with a known duration."""
        with self.pool.connection() as conn:
            rows = conn.fetch_all(
                f'SELECT "policyArea" AS policy_area, days_to_approval '
                f"FROM {self.table} WHERE days_to_approval IS NOT NULL"
            )
        return [(r["policy_area"], float(r["days_to_approval"])) for r in rows]

    def rejected_policy_areas(self) -> List[str]:
        """Policy area of every bill that did not become an Act."""
        with self.pool.connection() as conn:
            rows = conn.fetch_all(
                f'SELECT "policyArea" AS policy_area FROM {self.table} '
                f'WHERE "isAct" = ?',
                (False,),
            )
        return [r["policy_area"] for r in rows]

    # ------------------------------------------------------------------
    # Local development import
    # ------------------------------------------------------------------

    def insert_bills(self, records: Iterable[BillRecord]) -> int:
        rows = [
            (
                r.id, r.title, r.policy_area, r.current_house, r.status,
                r.originating_house, r.introduction_date, r.days_to_approval,
                bool(r.is_act),
            )
            for r in records
        ]
        with self.pool.connection() as conn:
            conn.executemany(
                f'INSERT OR REPLACE INTO {self.table} (id, title, "policyArea", '
                f"current_house, status, originating_house, introduction_date, "
                f'days_to_approval, "isAct") VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)',
                rows,
            )
            conn.commit()
        return len(rows)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _where(self, search: Optional[str] = None, **equals: Any) -> Tuple[str, tuple]:
        clauses: List[str] = []
        params: List[Any] = []

        for name, value in equals.items():
            if value is None:
                continue
            col = FILTER_COLUMNS.get(name)
            if col is None:
                raise ValueError(f"Unsupported bill filter: {name!r}")
            clauses.append(f"{col} = ?")
            params.append(bool(value) if name == "is_act" else value)

        if search:
            clauses.append("LOWER(title) LIKE ?")
            params.append(f"%{search.strip().lower()}%")

        if not clauses:
            return "", ()
        return " WHERE " + " AND ".join(clauses), tuple(params)

    def _row_to_rec(self, row: Dict[str, Any]) -> BillRecord:
        """
        Map a raw SQL row dict to a BillRecord.
        """
        days = row.get("days_to_approval")
        if days is not None:
            try:
                days_f = float(days)
                days = int(days_f) if math.isfinite(days_f) else None
            except (TypeError, ValueError):
                days = None

        bill_id = row.get("id")
        title = row.get("title") or ""
        return BillRecord(
            id=str(bill_id) if bill_id is not None else title,
            title=title,
            policy_area=row.get("policyArea"),
            current_house=row.get("current_house"),
            status=row.get("status"),
            originating_house=row.get("originating_house"),
            introduction_date=row.get("introduction_date"),
            days_to_approval=days,
            is_act=as_bool(row.get("isAct")),
        )
