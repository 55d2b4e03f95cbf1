"""
Summary statistics for a bills graph.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, asdict
from typing import Any, Dict

import networkx as nx
import numpy as np

from .model import Graph, NodeCategory


@dataclass
class GraphStats:
    n_nodes: int
    n_edges: int
    density: float
    avg_degree: float
    n_components: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def compute_graph_stats(graph: Graph) -> GraphStats:
    if graph.is_empty:
        return GraphStats(0, 0, 0.0, 0.0, 0)

    G = nx.Graph(graph.to_networkx())
    n = G.number_of_nodes()

    density = float(nx.density(G)) if n > 1 else 0.0
    avg_degree = float(np.mean([d for _, d in G.degree()]))

    return GraphStats(
        n_nodes=n,
        n_edges=len(graph.edges),
        density=density,
        avg_degree=avg_degree,
        n_components=nx.number_connected_components(G),
    )


def category_counts(graph: Graph) -> Dict[str, int]:
    """Node count per category, with every category present."""
    counts = Counter(n.category.value for n in graph.nodes)
    return {c.value: counts.get(c.value, 0) for c in NodeCategory}


__all__ = ["GraphStats", "compute_graph_stats", "category_counts"]
