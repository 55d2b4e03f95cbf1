"""
Styling maps for the bills graph renderers.

Colour encodes node category. Hovering (or dragging) a node emphasises it,
its neighbours and its incident edges while the rest of the graph is
dimmed. Pinned nodes carry a marker ring.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Set, Tuple

from .model import Graph
from .presets import VisualStyle, DEFAULT_STYLE


@dataclass
class NodeStyleMaps:
    sizes: Dict[str, float] = field(default_factory=dict)
    colors: Dict[str, str] = field(default_factory=dict)
    alphas: Dict[str, float] = field(default_factory=dict)
    label_sizes: Dict[str, int] = field(default_factory=dict)
    pinned: Set[str] = field(default_factory=set)


@dataclass
class EdgeStyleMaps:
    # keyed by edge index, since parallel edges are common
    widths: Dict[int, float] = field(default_factory=dict)
    colors: Dict[int, str] = field(default_factory=dict)
    highlighted: Set[int] = field(default_factory=set)


def _focus_set(graph: Graph, highlighted: Optional[str]) -> Set[str]:
    if highlighted is None or highlighted not in graph:
        return set()
    return {highlighted, *graph.neighbors(highlighted)}


def compute_node_styles(
    graph: Graph,
    highlighted: Optional[str] = None,
    style: VisualStyle = DEFAULT_STYLE,
) -> NodeStyleMaps:
    focus = _focus_set(graph, highlighted)
    maps = NodeStyleMaps()
    fallback = style.category_colors.get("property", "#999999")

    for n in graph.nodes:
        maps.colors[n.id] = style.category_colors.get(n.category.value, fallback)
        is_focus = n.id == highlighted
        maps.sizes[n.id] = style.node_size_highlight if is_focus else style.node_size
        maps.label_sizes[n.id] = style.label_size_highlight if n.id in focus else style.label_size
        if focus and n.id not in focus:
            maps.alphas[n.id] = style.node_alpha_dimmed
        else:
            maps.alphas[n.id] = style.node_alpha
        if n.pinned:
            maps.pinned.add(n.id)
    return maps


def compute_edge_styles(
    graph: Graph,
    highlighted: Optional[str] = None,
    style: VisualStyle = DEFAULT_STYLE,
) -> EdgeStyleMaps:
    maps = EdgeStyleMaps()
    for i, e in enumerate(graph.edges):
        if highlighted is not None and highlighted in (e.source, e.target):
            maps.highlighted.add(i)
            maps.widths[i] = style.edge_width_highlight
            maps.colors[i] = style.edge_color_highlight
        else:
            maps.widths[i] = style.edge_width
            maps.colors[i] = style.edge_color
    return maps


def legend_entries(style: VisualStyle = DEFAULT_STYLE) -> Tuple[Tuple[str, str], ...]:
    labels = {
        "bill": "Bill",
        "house": "House",
        "status": "Status",
        "policyArea": "Policy area",
        "property": "Property",
    }
    return tuple((labels.get(k, k), c) for k, c in style.category_colors.items())


__all__ = [
    "NodeStyleMaps",
    "EdgeStyleMaps",
    "compute_node_styles",
    "compute_edge_styles",
    "legend_entries",
]
