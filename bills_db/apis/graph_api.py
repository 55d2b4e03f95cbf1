"""
Graph API - resolves a graph source into a parsed graph for the
knowledge-graph viewer.

Sources:
    sample  the bundled three-bill triple document
    bills   every bill in the table, expanded into a graph
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from bills_db.core import BillsDB
from bills_graphs.ingest import (
    DEFAULT_EMIT,
    SAMPLE_MARKUP,
    ParseResult,
    graph_from_records,
    parse_markup,
)

GRAPH_SOURCES = ("sample", "bills")


# ----------------------------------------------------------------------
# Request Models
# ----------------------------------------------------------------------

@dataclass
class GraphRequest:
    source: str = "sample"
    include_act_flag: bool = False


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def load_graph_source(
    db: BillsDB,
    req: GraphRequest,
    emit: Callable = DEFAULT_EMIT,
) -> ParseResult:
    source = (req.source or "sample").strip().lower()

    if source == "sample":
        return parse_markup(SAMPLE_MARKUP, emit=emit)

    if source == "bills":
        graph = graph_from_records(
            db.list_bills(), include_act_flag=req.include_act_flag, emit=emit
        )
        return ParseResult(graph=graph)

    raise ValueError(f"Unknown graph source: {req.source!r} (expected one of {GRAPH_SOURCES})")


__all__ = ["GraphRequest", "GRAPH_SOURCES", "load_graph_source"]
