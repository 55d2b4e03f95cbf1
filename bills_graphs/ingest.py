"""
Graph ingestion: turn the supported source encodings into a Graph.

Sources
  - subject / predicate / object triplets
  - a line-oriented triple markup (a small, forgiving subset of Turtle)
  - flat bill records as stored in the bills table
  - the JSON shape produced by Graph.to_dict()

Every reader is lenient. Input it does not recognise is skipped rather
than raised; the markup reader reports skipped lines as diagnostics in
its ParseResult so callers may surface them.
"""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .classify import CategoryPolicy, DEFAULT_POLICY, humanize_label
from .model import Edge, Graph, Node, NodeCategory

logger = logging.getLogger(__name__)

Triplet = Tuple[str, str, str]


def DEFAULT_EMIT(kind: str, payload: Optional[Dict[str, Any]] = None) -> None:
    """Fallback no-op event emitter."""
    return None


# ============================================================================ #
# Result types
# ============================================================================ #

@dataclass(frozen=True)
class SkippedLine:
    line_no: int
    text: str
    reason: str


@dataclass
class ParseResult:
    graph: Graph
    triplets: List[Triplet] = field(default_factory=list)
    skipped: List[SkippedLine] = field(default_factory=list)

    @property
    def has_warnings(self) -> bool:
        return bool(self.skipped)

    def diagnostics(self) -> List[Dict[str, Any]]:
        return [
            {"line": s.line_no, "text": s.text, "reason": s.reason}
            for s in self.skipped
        ]


# ============================================================================ #
# Builder shared by all readers
# ============================================================================ #

class _GraphBuilder:
    def __init__(self, policy: CategoryPolicy):
        self.policy = policy
        self.nodes: Dict[str, Node] = {}
        self.edges: List[Edge] = []

    def add_node(self, node_id: str, label: str, category: NodeCategory) -> None:
        if node_id not in self.nodes:
            self.nodes[node_id] = Node(id=node_id, label=label, category=category)

    def add_subject(self, subject: str) -> None:
        self.add_node(subject, subject, self.policy.classify_subject(subject))

    def add_triplet(self, subject: str, predicate: str, obj: str) -> None:
        self.add_subject(subject)
        self.add_node(obj, humanize_label(obj), self.policy.classify_object(obj))
        self.edges.append(Edge(source=subject, target=obj, label=predicate))

    def build(self) -> Graph:
        return Graph.build(self.nodes.values(), self.edges)


# ============================================================================ #
# Input A: triplets
# ============================================================================ #

def _coerce_triplet(item: Any) -> Optional[Triplet]:
    if isinstance(item, Mapping):
        parts = (item.get("subject"), item.get("predicate"), item.get("object"))
    elif isinstance(item, (tuple, list)) and len(item) == 3:
        parts = tuple(item)
    else:
        return None

    if any(p is None for p in parts):
        return None
    s, p, o = (str(x).strip() for x in parts)
    if not s or not p or not o:
        return None
    return s, p, o


def graph_from_triplets(
    triplets: Iterable[Any],
    policy: CategoryPolicy = DEFAULT_POLICY,
    emit: Callable = DEFAULT_EMIT,
) -> Graph:
    """
    Build a graph from (subject, predicate, object) triplets.

    Each distinct subject or object value becomes exactly one node; each
    triplet becomes one edge labelled by its predicate. Items that are not
    complete triplets are ignored.
    """
    builder = _GraphBuilder(policy)
    n_skipped = 0
    for item in triplets:
        t = _coerce_triplet(item)
        if t is None:
            n_skipped += 1
            continue
        builder.add_triplet(*t)

    graph = builder.build()
    emit("log", {
        "message": "[ingest] triplets loaded",
        "nodes": len(graph.nodes),
        "edges": len(graph.edges),
        "skipped": n_skipped,
    })
    return graph


# ============================================================================ #
# Input B: line-oriented triple markup
# ============================================================================ #

_TOKEN = re.compile(r'"(?:[^"\\]|\\.)*"(?:@[\w-]+|\^\^\S+)?|<[^>]*>|\S+')
_TERMINATORS = ";.,"
_BOOLEANS = ("true", "false")


def _normalise_token(tok: str) -> str:
    """
    Reduce a markup token to a bare identifier.

        ns1:Bill1919          -> Bill1919
        <http://x.org/a/Lords> -> Lords
        "Some title"@en       -> Some title
        Commons ;             -> Commons
    """
    if tok.startswith('"'):
        end = tok.rfind('"')
        return tok[1:end] if end > 0 else tok.strip('"')

    if tok.startswith("<") and tok.endswith(">"):
        iri = tok[1:-1].rstrip("/#")
        return re.split(r"[/#]", iri)[-1]

    tok = tok.rstrip(_TERMINATORS)
    if ":" in tok and not tok.startswith("_:"):
        tok = tok.split(":", 1)[1]
    return tok


def _tokens(line: str) -> List[str]:
    out: List[str] = []
    for raw in _TOKEN.findall(line):
        if raw.startswith("#"):
            break
        tok = _normalise_token(raw)
        if tok:
            out.append(tok)
    return out


def _object_id(predicate: str, obj: str) -> str:
    # Keeps "isAct true" and "isRejected true" from collapsing into a
    # single shared "true" node.
    if obj.lower() in _BOOLEANS:
        return f"{predicate}_{obj.lower()}"
    return obj


def parse_markup(
    text: str,
    policy: CategoryPolicy = DEFAULT_POLICY,
    emit: Callable = DEFAULT_EMIT,
) -> ParseResult:
    """
    Parse the triple markup into a graph.

    A line without leading whitespace starts a new subject, optionally
    followed by its first predicate and object(s). Indented lines add
    further predicate/object pairs to the current subject. Blank lines,
    "@" directives and "#" comments are ignored.
    """
    builder = _GraphBuilder(policy)
    triplets: List[Triplet] = []
    skipped: List[SkippedLine] = []
    current: Optional[str] = None

    if text.startswith("\ufeff"):
        text = text[1:]

    for line_no, raw in enumerate(text.splitlines(), start=1):
        stripped = raw.strip()
        if not stripped or stripped.startswith(("@", "#")):
            continue
        if stripped.upper().startswith(("PREFIX ", "BASE ")):
            continue

        tokens = _tokens(stripped)
        if not tokens:
            continue

        if not raw[:1].isspace():
            current = tokens[0]
            rest = tokens[1:]
        elif current is None:
            skipped.append(SkippedLine(line_no, raw, "continuation line without a subject"))
            continue
        else:
            rest = tokens

        if not rest:
            builder.add_subject(current)
            continue
        if len(rest) < 2:
            skipped.append(SkippedLine(line_no, raw, "predicate without an object"))
            continue

        predicate = "type" if rest[0] == "a" else rest[0]
        for obj in rest[1:]:
            t = (current, predicate, _object_id(predicate, obj))
            builder.add_triplet(*t)
            triplets.append(t)

    graph = builder.build()
    for s in skipped:
        logger.debug("skipped markup line %d (%s): %r", s.line_no, s.reason, s.text)
    emit("log", {
        "message": "[ingest] markup parsed",
        "nodes": len(graph.nodes),
        "edges": len(graph.edges),
        "skipped": len(skipped),
    })
    return ParseResult(graph=graph, triplets=triplets, skipped=skipped)


# ============================================================================ #
# Input C: flat bill records
# ============================================================================ #

_RECORD_FIELDS: Dict[str, Tuple[str, ...]] = {
    "id": ("id",),
    "title": ("title",),
    "policy_area": ("policyArea", "policy_area"),
    "current_house": ("current_house", "currentHouse"),
    "status": ("status",),
    "originating_house": ("originating_house", "originatingHouse"),
    "is_act": ("is_act", "isAct"),
}

# (record field, edge label, category of the shared target node)
_RECORD_RELATIONS: Tuple[Tuple[str, str, NodeCategory], ...] = (
    ("policy_area", "belongsTo", NodeCategory.POLICY_AREA),
    ("current_house", "currentHouse", NodeCategory.HOUSE),
    ("status", "hasStatus", NodeCategory.STATUS),
    ("originating_house", "originatingHouse", NodeCategory.HOUSE),
)

ACT_NODE_ID = "isAct_true"


def _field(record: Any, name: str) -> Any:
    for key in _RECORD_FIELDS[name]:
        if isinstance(record, Mapping):
            if record.get(key) is not None:
                return record[key]
        elif getattr(record, key, None) is not None:
            return getattr(record, key)
    return None


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def graph_from_records(
    records: Iterable[Any],
    policy: CategoryPolicy = DEFAULT_POLICY,
    include_act_flag: bool = False,
    emit: Callable = DEFAULT_EMIT,
) -> Graph:
    """
    Expand bill records into a graph.

    Every record yields one bill node plus an edge to each of its policy
    area, current house, status and originating house that is present.
    Those category nodes are shared between bills. With include_act_flag,
    enacted bills also point at a shared "Act" node.
    """
    builder = _GraphBuilder(policy)

    for rec in records:
        title = _text(_field(rec, "title"))
        bill_id = _text(_field(rec, "id")) or title
        if bill_id is None:
            continue

        builder.add_node(bill_id, title or bill_id, NodeCategory.BILL)

        for name, label, category in _RECORD_RELATIONS:
            value = _text(_field(rec, name))
            if value is None:
                continue
            builder.add_node(value, value, category)
            builder.edges.append(Edge(source=bill_id, target=value, label=label))

        is_act = _field(rec, "is_act")
        if include_act_flag and is_act is not None and str(is_act).lower() in ("1", "true", "t"):
            builder.add_node(ACT_NODE_ID, "Act", NodeCategory.PROPERTY)
            builder.edges.append(Edge(source=bill_id, target=ACT_NODE_ID, label="isAct"))

    graph = builder.build()
    emit("log", {
        "message": "[ingest] records expanded",
        "nodes": len(graph.nodes),
        "edges": len(graph.edges),
    })
    return graph


# ============================================================================ #
# Input D: JSON
# ============================================================================ #

def _json_list(payload: Mapping, key: str) -> list:
    items = payload.get(key)
    return items if isinstance(items, list) else []


def _json_shape_problems(payload: Any) -> List[SkippedLine]:
    if not isinstance(payload, Mapping):
        return [SkippedLine(1, "", "JSON document is not an object")]
    problems = []
    for key in ("nodes", "edges"):
        value = payload.get(key)
        if value is not None and not isinstance(value, list):
            problems.append(SkippedLine(1, repr(value)[:80], f"\"{key}\" is not a list"))
    return problems


def graph_from_json(payload: Any) -> Graph:
    """
    Read {"nodes": [{id, label, type}], "edges": [{source, target, label}]}.
    """
    if not isinstance(payload, Mapping):
        return Graph()

    nodes: List[Node] = []
    for item in _json_list(payload, "nodes"):
        if not isinstance(item, Mapping) or item.get("id") is None:
            continue
        node_id = str(item["id"])
        nodes.append(Node(
            id=node_id,
            label=str(item.get("label") or node_id),
            category=NodeCategory.coerce(item.get("type", item.get("category"))),
        ))

    edges: List[Edge] = []
    for item in _json_list(payload, "edges"):
        if not isinstance(item, Mapping):
            continue
        if item.get("source") is None or item.get("target") is None:
            continue
        edges.append(Edge(
            source=str(item["source"]),
            target=str(item["target"]),
            label=str(item.get("label") or ""),
        ))

    return Graph.build(nodes, edges)


def load_graph_file(
    data: Union[bytes, str, os.PathLike],
    name: str = "",
    policy: CategoryPolicy = DEFAULT_POLICY,
    emit: Callable = DEFAULT_EMIT,
) -> ParseResult:
    """
    Ingest a graph file: ".json" files are read as graph JSON, anything
    else as triple markup. ``data`` is either the file contents (an
    upload held in memory) or a path on disk.
    """
    if isinstance(data, os.PathLike):
        path = Path(data)
        name = name or path.name
        data = path.read_bytes()

    text = data.decode("utf-8-sig", errors="replace") if isinstance(data, bytes) else data
    if text.startswith("\ufeff"):
        text = text[1:]

    if name.lower().endswith(".json"):
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            return ParseResult(
                graph=Graph(),
                skipped=[SkippedLine(exc.lineno, "", f"invalid JSON: {exc.msg}")],
            )
        return ParseResult(
            graph=graph_from_json(payload),
            skipped=_json_shape_problems(payload),
        )

    return parse_markup(text, policy=policy, emit=emit)


# ============================================================================ #
# Sample document
# ============================================================================ #

SAMPLE_MARKUP = """@prefix ns1: <http://example.org/legislation/> .
@prefix xsd: <http://www.w3.org/2001/XMLSchema#> .

ns1:Bill1919 ns1:belongsTo ns1:Education ;
    ns1:currentHouse ns1:Commons ;
    ns1:hasStatus ns1:2nd_reading ;
    ns1:originatingHouse ns1:Commons .

ns1:Bill2862 ns1:belongsTo ns1:Education ;
    ns1:currentHouse ns1:Unassigned ;
    ns1:hasStatus ns1:Royal_Assent ;
    ns1:isAct true ;
    ns1:originatingHouse ns1:Commons .

ns1:Bill2868 ns1:belongsTo ns1:Education ;
    ns1:currentHouse ns1:Unassigned ;
    ns1:hasStatus ns1:Royal_Assent ;
    ns1:isAct true ;
    ns1:originatingHouse ns1:Lords .
"""


def demo_graph() -> Graph:
    return parse_markup(SAMPLE_MARKUP).graph


__all__ = [
    "Triplet",
    "SkippedLine",
    "ParseResult",
    "DEFAULT_EMIT",
    "graph_from_triplets",
    "parse_markup",
    "graph_from_records",
    "graph_from_json",
    "load_graph_file",
    "ACT_NODE_ID",
    "SAMPLE_MARKUP",
    "demo_graph",
]
