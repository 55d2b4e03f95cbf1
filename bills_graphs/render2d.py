# render2d.py

"""
2D frame renderer for the bills knowledge graph.

This is the thin adapter between the layout engine and a drawing
surface: it takes the current Graph (positions already computed by the
session) and paints it with matplotlib, returning PNG bytes. Surface
coordinates are screen-like, so the y axis is inverted.
"""

from __future__ import annotations

import io
from typing import Optional

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
from matplotlib.colors import to_rgba  # noqa: E402
from matplotlib.lines import Line2D  # noqa: E402

from .layout.force2d import Bounds  # noqa: E402
from .model import Graph  # noqa: E402
from .presets import VisualStyle, DEFAULT_STYLE  # noqa: E402
from .styling import compute_edge_styles, compute_node_styles, legend_entries  # noqa: E402


def draw_frame(
    graph: Graph,
    bounds: Bounds,
    style: VisualStyle = DEFAULT_STYLE,
    *,
    highlighted: Optional[str] = None,
    title: str = "",
    outfile: Optional[str] = None,
    show_legend: bool = True,
) -> bytes:
    """
    Render the graph at its current positions and return PNG bytes.

    An empty graph renders a blank surface.
    """
    fig, ax = plt.subplots(
        figsize=(bounds.width / style.dpi, bounds.height / style.dpi),
        facecolor=style.background_color,
    )
    try:
        ax.set_facecolor(style.background_color)
        ax.set_xlim(0, bounds.width)
        ax.set_ylim(bounds.height, 0)
        ax.set_xticks([])
        ax.set_yticks([])
        for spine in ax.spines.values():
            spine.set_visible(False)

        if not graph.is_empty:
            _draw_graph(ax, graph, style, highlighted)
            if show_legend:
                handles = [
                    Line2D([0], [0], marker="o", color="none", markerfacecolor=c,
                           markersize=7, label=label)
                    for label, c in legend_entries(style)
                ]
                ax.legend(handles=handles, loc="lower left", fontsize=7, frameon=False)

        if title:
            ax.set_title(title, fontsize=10, color=style.label_color, loc="left")

        fig.subplots_adjust(left=0, right=1, bottom=0, top=0.95 if title else 1)
        buf = io.BytesIO()
        fig.savefig(buf, format="png", dpi=style.dpi, facecolor=style.background_color)
    finally:
        plt.close(fig)

    data = buf.getvalue()
    if outfile:
        with open(outfile, "wb") as f:
            f.write(data)
    return data


def _draw_graph(ax, graph: Graph, style: VisualStyle, highlighted: Optional[str]) -> None:
    node_styles = compute_node_styles(graph, highlighted, style)
    edge_styles = compute_edge_styles(graph, highlighted, style)

    # Edges: plain ones first so highlighted edges sit on top
    order = sorted(range(len(graph.edges)), key=lambda i: i in edge_styles.highlighted)
    for i in order:
        e = graph.edges[i]
        s, t = graph.node(e.source), graph.node(e.target)
        is_hl = i in edge_styles.highlighted
        ax.plot(
            [s.x, t.x],
            [s.y, t.y],
            color=edge_styles.colors[i],
            linewidth=edge_styles.widths[i],
            alpha=style.edge_alpha,
            solid_capstyle="round",
            zorder=2 if is_hl else 1,
        )
        if is_hl and e.label:
            ax.text(
                (s.x + t.x) / 2.0,
                (s.y + t.y) / 2.0,
                e.label,
                fontsize=style.edge_label_size,
                color=style.edge_color_highlight,
                ha="center",
                va="center",
                zorder=5,
            )

    ax.scatter(
        [n.x for n in graph.nodes],
        [n.y for n in graph.nodes],
        s=[node_styles.sizes[n.id] for n in graph.nodes],
        c=[to_rgba(node_styles.colors[n.id], node_styles.alphas[n.id]) for n in graph.nodes],
        edgecolors=style.node_edge_color,
        linewidths=0.8,
        zorder=3,
    )

    pinned = [n for n in graph.nodes if n.id in node_styles.pinned]
    if pinned:
        ax.scatter(
            [n.x for n in pinned],
            [n.y for n in pinned],
            s=[node_styles.sizes[n.id] * 1.8 for n in pinned],
            facecolors="none",
            edgecolors=style.pinned_marker_color,
            linewidths=style.pinned_marker_width,
            zorder=4,
        )

    for n in graph.nodes:
        ax.text(
            n.x,
            n.y + 14,
            n.label,
            fontsize=node_styles.label_sizes[n.id],
            color=style.label_color,
            alpha=node_styles.alphas[n.id],
            ha="center",
            va="top",
            zorder=5,
        )
