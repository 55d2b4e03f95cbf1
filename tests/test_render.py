"""
Styling, renderer, chart and analytics tests.
"""

import numpy as np

from bills_graphs.analytics import category_counts, compute_graph_stats
from bills_graphs.charts import approval_time_chart, rejections_chart
from bills_graphs.ingest import demo_graph
from bills_graphs.layout import Bounds, initialize_positions
from bills_graphs.model import Graph
from bills_graphs.presets import DEFAULT_STYLE
from bills_graphs.render2d import draw_frame
from bills_graphs.styling import compute_edge_styles, compute_node_styles

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"
BOUNDS = Bounds(400, 300)


def _placed():
    return initialize_positions(demo_graph(), BOUNDS, rng=np.random.default_rng(0))


class TestStyling:

    def test_highlight_emphasises_neighbourhood(self):
        g = demo_graph()
        nodes = compute_node_styles(g, "Bill1919")
        assert nodes.sizes["Bill1919"] == DEFAULT_STYLE.node_size_highlight
        assert nodes.alphas["Education"] == DEFAULT_STYLE.node_alpha
        assert nodes.alphas["Lords"] == DEFAULT_STYLE.node_alpha_dimmed

        edges = compute_edge_styles(g, "Bill1919")
        assert len(edges.highlighted) == 4
        for i in edges.highlighted:
            assert edges.colors[i] == DEFAULT_STYLE.edge_color_highlight

    def test_colours_follow_category(self):
        g = demo_graph()
        nodes = compute_node_styles(g)
        assert nodes.colors["Commons"] == DEFAULT_STYLE.category_colors["house"]
        assert nodes.colors["Education"] == DEFAULT_STYLE.category_colors["policyArea"]
        assert len(set(nodes.alphas.values())) == 1

    def test_pinned_marker(self):
        g = demo_graph()
        g.node("Lords").pinned = True
        assert compute_node_styles(g).pinned == {"Lords"}


class TestRender:

    def test_frame_png(self, tmp_path):
        out = tmp_path / "frame.png"
        data = draw_frame(_placed(), BOUNDS, highlighted="Bill2862", outfile=str(out))
        assert data.startswith(PNG_MAGIC)
        assert out.read_bytes() == data

    def test_empty_graph_renders_blank_surface(self):
        assert draw_frame(Graph(), BOUNDS).startswith(PNG_MAGIC)

    def test_charts(self):
        rows = [{"name": "Health", "value": 2}, {"name": "Transport", "value": 1}]
        assert rejections_chart(rows).startswith(PNG_MAGIC)
        assert approval_time_chart([{"name": "Education", "days": 120}]).startswith(PNG_MAGIC)
        assert rejections_chart([]).startswith(PNG_MAGIC)


class TestAnalytics:

    def test_sample_stats(self):
        stats = compute_graph_stats(demo_graph())
        assert stats.n_nodes == 10
        assert stats.n_edges == 14
        assert stats.n_components == 1

    def test_empty_stats(self):
        assert compute_graph_stats(Graph()).n_components == 0

    def test_category_counts(self):
        assert category_counts(demo_graph()) == {
            "bill": 3,
            "house": 3,
            "status": 2,
            "policyArea": 1,
            "property": 1,
        }
