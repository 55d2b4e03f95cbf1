"""
Bills knowledge-graph package.

Graph model, ingestion, category policy, force-directed layout,
interactive sessions, styling, rendering and analytics.
"""

# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------
from .model import Node, Edge, Graph, NodeCategory

# ---------------------------------------------------------------------------
# Configuration and presets
# ---------------------------------------------------------------------------
from .presets import (
    LayoutConfig,
    VisualStyle,
    DEFAULT_LAYOUT,
    DEFAULT_STYLE,
)
from .classify import CategoryPolicy, DEFAULT_POLICY, humanize_label

# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------
from .ingest import (
    ParseResult,
    SkippedLine,
    graph_from_triplets,
    parse_markup,
    graph_from_records,
    graph_from_json,
    load_graph_file,
    demo_graph,
    SAMPLE_MARKUP,
)

# ---------------------------------------------------------------------------
# Layout and sessions
# ---------------------------------------------------------------------------
from .layout import Bounds, repulsion_force, initialize_positions, step, simulate
from .session import (
    LayoutSession,
    LayoutState,
    SessionBusy,
    SessionDisposed,
    SessionRegistry,
    Frame,
)

# ---------------------------------------------------------------------------
# Styling, rendering and analytics
# ---------------------------------------------------------------------------
from .styling import compute_node_styles, compute_edge_styles, NodeStyleMaps, EdgeStyleMaps
from .render2d import draw_frame
from .charts import rejections_chart, approval_time_chart
from .analytics import GraphStats, compute_graph_stats, category_counts

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
__all__ = [
    # Model
    "Node",
    "Edge",
    "Graph",
    "NodeCategory",

    # Config
    "LayoutConfig",
    "VisualStyle",
    "DEFAULT_LAYOUT",
    "DEFAULT_STYLE",
    "CategoryPolicy",
    "DEFAULT_POLICY",
    "humanize_label",

    # Ingestion
    "ParseResult",
    "SkippedLine",
    "graph_from_triplets",
    "parse_markup",
    "graph_from_records",
    "graph_from_json",
    "load_graph_file",
    "demo_graph",
    "SAMPLE_MARKUP",

    # Layout
    "Bounds",
    "repulsion_force",
    "initialize_positions",
    "step",
    "simulate",
    "LayoutSession",
    "LayoutState",
    "SessionBusy",
    "SessionDisposed",
    "SessionRegistry",
    "Frame",

    # Styling / rendering / analytics
    "compute_node_styles",
    "compute_edge_styles",
    "NodeStyleMaps",
    "EdgeStyleMaps",
    "draw_frame",
    "rejections_chart",
    "approval_time_chart",
    "GraphStats",
    "compute_graph_stats",
    "category_counts",
]
