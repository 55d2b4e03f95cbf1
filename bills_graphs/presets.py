"""
Preset configuration for the bills graph layout and renderers.

The layout constants are tuned for a few dozen nodes on a surface of
roughly 800 x 600 pixels: connected nodes settle around link_distance
apart while unconnected ones drift further out.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict, field
from typing import Any, Dict, Optional


# --------------------------------------------------------------------------- #
# Physics
# --------------------------------------------------------------------------- #

@dataclass(frozen=True)
class LayoutConfig:
    repulsion: float = 800.0
    min_distance: float = 30.0        # floor used in the inverse-square term
    link_distance: float = 100.0      # target separation of connected nodes
    link_strength: float = 0.01
    center_strength: float = 0.0005
    damping: float = 0.85
    max_velocity: float = 10.0
    margin: float = 20.0
    initial_spread: float = 0.5       # central fraction of the surface
    seed: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# --------------------------------------------------------------------------- #
# Visual style
# --------------------------------------------------------------------------- #

@dataclass
class VisualStyle:
    background_color: str = "#f9fafb"

    category_colors: Dict[str, str] = field(default_factory=lambda: {
        "bill": "#9b87f5",
        "house": "#0ea5e9",
        "status": "#f59e0b",
        "policyArea": "#10b981",
        "property": "#d6bcfa",
    })

    node_size: float = 140.0
    node_size_highlight: float = 260.0
    node_alpha: float = 0.95
    node_alpha_dimmed: float = 0.35
    node_edge_color: str = "#ffffff"

    pinned_marker_color: str = "#ef4444"
    pinned_marker_width: float = 2.0

    edge_color: str = "#cccccc"
    edge_color_highlight: str = "#7e69ab"
    edge_width: float = 1.0
    edge_width_highlight: float = 2.5
    edge_alpha: float = 0.8

    label_color: str = "#374151"
    label_size: int = 8
    label_size_highlight: int = 10
    edge_label_size: int = 7

    bar_color: str = "#9b87f5"

    dpi: int = 100

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


DEFAULT_LAYOUT = LayoutConfig()
DEFAULT_STYLE = VisualStyle()
