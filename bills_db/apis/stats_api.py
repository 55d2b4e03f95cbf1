"""
Stats API - dashboard series computed from the bills table.

Every function takes the BillsDB façade and returns plain JSON-ready
structures. Database failures propagate as RuntimeError from the helpers
layer; build_dashboard() is the only place that turns them into
per-widget error messages.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, List, Optional

import numpy as np
import pandas as pd

from bills_db.core import BillsDB

logger = logging.getLogger(__name__)


# Returned when the bills table has no usable approval durations
FALLBACK_APPROVAL_TIMES: List[Dict[str, Any]] = [
    {"name": "Education", "days": 120},
    {"name": "Health", "days": 90},
    {"name": "Transport", "days": 150},
    {"name": "Environment", "days": 130},
    {"name": "Defense", "days": 110},
]


@dataclass
class WidgetResult:
    data: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ----------------------------------------------------------------------
# Internal helpers
# ----------------------------------------------------------------------

def _round_half_up(x: float) -> int:
    return int(np.floor(x + 0.5))


def _pct(part: int, total: int) -> float:
    return round(100.0 * part / total, 1) if total else 0.0


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def fetch_bills(db: BillsDB) -> List[Dict[str, Any]]:
    """Every bill in the table, in wire shape."""
    return [b.to_dict() for b in db.list_bills()]


def fetch_approval_time_by_policy_area(db: BillsDB) -> List[Dict[str, Any]]:
    """
    Average days_to_approval per policy area, rounded half up.

    The fixed fallback series is returned when the table is empty or
    has no days_to_approval column.
    """
    first = db.first_bill_row()
    if first is None or "days_to_approval" not in first:
        logger.info("days_to_approval unavailable, using fallback approval series")
        return [dict(r) for r in FALLBACK_APPROVAL_TIMES]

    rows = db.policy_area_days()
    if not rows:
        return []

    df = pd.DataFrame(rows, columns=["name", "days"])
    means = df.groupby("name", sort=False)["days"].mean()
    return [{"name": str(name), "days": _round_half_up(v)} for name, v in means.items()]


def fetch_rejections_by_policy_area(db: BillsDB) -> List[Dict[str, Any]]:
    """Count of bills with isAct = false per policy area."""
    areas = db.rejected_policy_areas()
    if not areas:
        return []

    counts = pd.Series(areas, dtype=object).fillna("Unknown").value_counts(sort=False)
    return [{"name": str(name), "value": int(n)} for name, n in counts.items()]


def fetch_summary_stats(db: BillsDB) -> Dict[str, Any]:
    """
    Headline figures: total bills, average processing time (days, or
    None when no durations are recorded) and approval / rejection rates
    as percentages.
    """
    total = db.count_bills()
    approved = db.count_bills(is_act=True) if total else 0

    days = [d for _, d in db.policy_area_days()] if total else []
    avg_days = _round_half_up(float(np.mean(days))) if days else None

    return {
        "total_bills": total,
        "average_processing_days": avg_days,
        "approval_rate": _pct(approved, total),
        "rejection_rate": _pct(total - approved, total),
    }


def fetch_bill_status_table(db: BillsDB, limit: int = 10) -> List[Dict[str, Any]]:
    """Title, policy area and Approved / Rejected for the first bills."""
    return [
        {
            "id": b.id,
            "title": b.title,
            "policyArea": b.policy_area,
            "status": "Approved" if b.is_act else "Rejected",
        }
        for b in db.list_bills(limit=limit)
    ]


def search_bills(
    db: BillsDB,
    query: Optional[str] = None,
    policy_area: Optional[str] = None,
    limit: int = 25,
    offset: int = 0,
) -> Dict[str, Any]:
    """Paginated title search for the bills explorer."""
    items = db.list_bills(limit=limit, offset=offset, search=query, policy_area=policy_area)
    total = db.count_bills(search=query, policy_area=policy_area)
    return {
        "total": total,
        "limit": limit,
        "offset": offset,
        "items": [b.to_dict() for b in items],
    }


def build_dashboard(db: BillsDB) -> Dict[str, WidgetResult]:
    """
    Load every dashboard widget independently. A widget whose query
    fails carries its error message; the others still load.
    """
    widgets: Dict[str, Callable[[BillsDB], Any]] = {
        "summary": fetch_summary_stats,
        "approval_times": fetch_approval_time_by_policy_area,
        "rejections": fetch_rejections_by_policy_area,
        "status_table": fetch_bill_status_table,
    }

    out: Dict[str, WidgetResult] = {}
    for name, fn in widgets.items():
        try:
            out[name] = WidgetResult(data=fn(db))
        except Exception as exc:
            logger.warning("dashboard widget %s failed: %s", name, exc)
            out[name] = WidgetResult(error=str(exc))
    return out


__all__ = [
    "WidgetResult",
    "FALLBACK_APPROVAL_TIMES",
    "fetch_bills",
    "fetch_approval_time_by_policy_area",
    "fetch_rejections_by_policy_area",
    "fetch_summary_stats",
    "fetch_bill_status_table",
    "search_bills",
    "build_dashboard",
]
