"""
Graph data model for the bills knowledge graph.

A Graph is an ordered collection of uniquely identified Nodes plus the
directed, labelled Edges between them. Nodes also carry their own
simulation state (position, velocity, pinned flag) so that a layout step
can be expressed as Graph -> Graph.

Graphs are rebuilt wholesale whenever their source changes; nothing here
supports incremental merging.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace, asdict
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

import networkx as nx


class NodeCategory(str, Enum):
    BILL = "bill"
    HOUSE = "house"
    STATUS = "status"
    POLICY_AREA = "policyArea"
    PROPERTY = "property"

    @classmethod
    def coerce(cls, value: Any) -> "NodeCategory":
        """Map a raw category string onto the enum, defaulting to PROPERTY."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            return cls.PROPERTY


@dataclass
class Node:
    id: str
    label: str
    category: NodeCategory = NodeCategory.PROPERTY

    # Simulation state
    x: float = 0.0
    y: float = 0.0
    vx: float = 0.0
    vy: float = 0.0
    pinned: bool = False

    @property
    def position(self) -> Tuple[float, float]:
        return self.x, self.y

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["category"] = self.category.value
        return d


@dataclass(frozen=True)
class Edge:
    source: str
    target: str
    label: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"source": self.source, "target": self.target, "label": self.label}


@dataclass
class Graph:
    """
    Nodes (unique by id, insertion ordered) and the edges between them.

    Always construct through Graph.build() when the inputs are untrusted:
    it enforces id uniqueness and drops dangling edges.
    """

    nodes: List[Node] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)
    _index: Dict[str, int] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._index = {n.id: i for i, n in enumerate(self.nodes)}

    # ------------------------------------------------------------------ #
    # Construction
    # ------------------------------------------------------------------ #

    @classmethod
    def build(cls, nodes: Iterable[Node], edges: Iterable[Edge]) -> "Graph":
        """
        Build a graph, keeping the first node seen for each id and
        dropping edges whose source or target is missing.
        """
        uniq: Dict[str, Node] = {}
        for n in nodes:
            if n.id not in uniq:
                uniq[n.id] = n

        kept = [e for e in edges if e.source in uniq and e.target in uniq]
        return cls(nodes=list(uniq.values()), edges=kept)

    def copy(self) -> "Graph":
        """Copy with independent node state; edges are immutable and shared."""
        return Graph(nodes=[replace(n) for n in self.nodes], edges=list(self.edges))

    # ------------------------------------------------------------------ #
    # Lookups
    # ------------------------------------------------------------------ #

    @property
    def is_empty(self) -> bool:
        return not self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._index

    def node(self, node_id: str) -> Node:
        try:
            return self.nodes[self._index[node_id]]
        except KeyError:
            raise KeyError(f"Unknown node: {node_id!r}") from None

    def get(self, node_id: str) -> Optional[Node]:
        idx = self._index.get(node_id)
        return self.nodes[idx] if idx is not None else None

    def index_of(self, node_id: str) -> int:
        return self._index[node_id]

    def node_ids(self) -> List[str]:
        return [n.id for n in self.nodes]

    def incident_edges(self, node_id: str) -> List[Edge]:
        return [e for e in self.edges if e.source == node_id or e.target == node_id]

    def neighbors(self, node_id: str) -> List[str]:
        out: List[str] = []
        for e in self.incident_edges(node_id):
            other = e.target if e.source == node_id else e.source
            if other not in out:
                out.append(other)
        return out

    # ------------------------------------------------------------------ #
    # Conversion
    # ------------------------------------------------------------------ #

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [
                {"id": n.id, "label": n.label, "type": n.category.value}
                for n in self.nodes
            ],
            "edges": [e.to_dict() for e in self.edges],
        }

    def to_networkx(self) -> nx.MultiDiGraph:
        """
        Directed multigraph view; parallel edges with different labels
        (e.g. currentHouse and originatingHouse to the same house) are kept.
        """
        G = nx.MultiDiGraph()
        for n in self.nodes:
            G.add_node(n.id, label=n.label, category=n.category.value)
        for e in self.edges:
            G.add_edge(e.source, e.target, label=e.label)
        return G


__all__ = [
    "NodeCategory",
    "Node",
    "Edge",
    "Graph",
]
