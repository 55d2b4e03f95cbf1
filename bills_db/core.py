from __future__ import annotations

"""
Core façade for the bills database subsystem.

BillsDB is the single, high-level entrypoint used by:

    - the backend API (dashboard statistics, bills explorer, graph sources),
    - local tooling (importing a CSV export into SQLite for development).

It wraps:

    - DB backend + pool
    - the bill registry
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import pandas as pd

from .config import BillsDBConfig, load_config
from .db import DBPool, SQLiteBackend, PostgresBackend
from .registry import BillRecord, DBBillRegistry, as_bool

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# BillsDB façade
# ---------------------------------------------------------------------------

@dataclass
class BillsDB:
    """
    High-level façade over the bills store.

    One instance per process; safe to hand to API handlers since every
    call opens and closes its own connection.
    """

    config: BillsDBConfig
    db_pool: DBPool
    bill_registry: DBBillRegistry

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_config(
        cls,
        config: Optional[BillsDBConfig] = None,
        *,
        init_schema: bool = True,
    ) -> "BillsDB":
        """
        Construct a BillsDB instance from a BillsDBConfig.

        This selects the backend and, for local SQLite databases,
        bootstraps the bills table.
        """
        cfg = config or load_config()

        if cfg.enable_logging:
            logging.basicConfig(level=logging.INFO)
            logger.info("Initializing BillsDB with config: %s", cfg)

        backend = _create_backend_from_config(cfg)
        db_pool = DBPool(backend)

        if init_schema:
            conn = backend.connect()
            try:
                backend.init_schema(conn, cfg.table)
            finally:
                try:
                    conn.close()
                except Exception:
                    logger.exception("Error closing DB connection during schema init")

        return cls(
            config=cfg,
            db_pool=db_pool,
            bill_registry=DBBillRegistry(db_pool, table=cfg.table),
        )

    @classmethod
    def from_env(cls, *, init_schema: bool = True) -> "BillsDB":
        """Construct BillsDB using environment variables."""
        return cls.from_config(load_config(), init_schema=init_schema)

    # ------------------------------------------------------------------
    # Bill queries
    # ------------------------------------------------------------------

    def list_bills(
        self,
        *,
        limit: Optional[int] = None,
        offset: int = 0,
        search: Optional[str] = None,
        policy_area: Optional[str] = None,
    ) -> List[BillRecord]:
        return self.bill_registry.list_bills(
            limit=limit, offset=offset, search=search, policy_area=policy_area
        )

    def count_bills(self, search: Optional[str] = None, **equals: Any) -> int:
        return self.bill_registry.count_bills(search=search, **equals)

    def bill_columns(self) -> List[str]:
        return self.bill_registry.columns()

    def first_bill_row(self) -> Optional[Dict[str, Any]]:
        return self.bill_registry.first_row()

    def policy_area_days(self):
        return self.bill_registry.policy_area_days()

    def rejected_policy_areas(self) -> List[str]:
        return self.bill_registry.rejected_policy_areas()

    # ------------------------------------------------------------------
    # Local development import
    # ------------------------------------------------------------------

    def import_csv(self, path: str) -> int:
        """
        Load a CSV export of the bills table into a local SQLite database.

        The remote store is never written to; this refuses to run against
        any backend other than SQLite.
        """
        if not isinstance(self.db_pool.backend, SQLiteBackend):
            raise RuntimeError("import_csv is only supported for the local SQLite backend")

        df = pd.read_csv(path)
        records = records_from_frame(df)
        n = self.bill_registry.insert_bills(records)
        logger.info("Imported %d bills from %s", n, path)
        return n


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def records_from_frame(df: pd.DataFrame) -> List[BillRecord]:
    """
    Convert a DataFrame shaped like the bills table into BillRecords.

    Accepts either the table's own column names ("policyArea", "isAct")
    or their snake_case equivalents.
    """
    df = df.rename(columns={"policy_area": "policyArea", "is_act": "isAct"})
    df = df.astype(object).where(pd.notna(df), None)

    out: List[BillRecord] = []
    for row in df.to_dict(orient="records"):
        title = str(row.get("title") or "")
        bill_id = row.get("id")
        days = row.get("days_to_approval")
        out.append(
            BillRecord(
                id=str(bill_id) if bill_id is not None else title,
                title=title,
                policy_area=row.get("policyArea"),
                current_house=row.get("current_house"),
                status=row.get("status"),
                originating_house=row.get("originating_house"),
                introduction_date=row.get("introduction_date"),
                days_to_approval=int(float(days)) if days is not None else None,
                is_act=as_bool(row.get("isAct")),
            )
        )
    return out


def _create_backend_from_config(config: BillsDBConfig):
    """
    Instantiate the appropriate DB backend for a given configuration.
    """
    name = (config.db_backend or "").lower()

    if name == "sqlite":
        return SQLiteBackend(config.db_uri)

    if name in ("postgres", "postgresql", "psql"):
        return PostgresBackend(config.db_uri)

    raise ValueError(f"Unsupported bills DB backend: {config.db_backend!r}")


# ---------------------------------------------------------------------------
# Convenience
# ---------------------------------------------------------------------------

def create_bills_db(
    config: Optional[BillsDBConfig] = None,
    *,
    init_schema: bool = True,
) -> BillsDB:
    """
    Convenience constructor used by the API service and scripts.
    """
    return BillsDB.from_config(config, init_schema=init_schema)


__all__ = [
    "BillsDB",
    "create_bills_db",
    "records_from_frame",
]
