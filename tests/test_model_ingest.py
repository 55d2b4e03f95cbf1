"""
Graph model and ingestion tests.
"""

import json

import pytest

from bills_graphs.ingest import (
    ACT_NODE_ID,
    SAMPLE_MARKUP,
    graph_from_json,
    graph_from_records,
    graph_from_triplets,
    load_graph_file,
    parse_markup,
)
from bills_graphs.model import Edge, Graph, Node, NodeCategory
from tests.conftest import SAMPLE_BILLS


def _no_dangling(graph: Graph) -> bool:
    ids = set(graph.node_ids())
    return all(e.source in ids and e.target in ids for e in graph.edges)


class TestGraphModel:

    def test_build_keeps_first_node_and_drops_dangling_edges(self):
        g = Graph.build(
            [Node("a", "first"), Node("b", "B"), Node("a", "second")],
            [Edge("a", "b", "x"), Edge("a", "missing", "y")],
        )
        assert g.node_ids() == ["a", "b"]
        assert g.node("a").label == "first"
        assert g.edges == [Edge("a", "b", "x")]

    def test_copy_is_independent(self):
        g = Graph.build([Node("a", "A", x=1.0)], [])
        c = g.copy()
        c.node("a").x = 5.0
        assert g.node("a").x == 1.0

    def test_unknown_node_raises(self):
        with pytest.raises(KeyError):
            Graph().node("nope")

    def test_neighbors_are_unique(self):
        g = Graph.build(
            [Node("b", "B"), Node("h", "H")],
            [Edge("b", "h", "currentHouse"), Edge("b", "h", "originatingHouse")],
        )
        assert g.neighbors("b") == ["h"]
        assert len(g.incident_edges("b")) == 2


class TestTriplets:

    def test_one_node_per_distinct_value(self):
        triplets = [
            ("Bill1", "belongsTo", "Education"),
            ("Bill2", "belongsTo", "Education"),
            ("Bill2", "currentHouse", "Lords"),
            ("Bill1", "relatedTo", "Bill2"),
        ]
        g = graph_from_triplets(triplets)
        distinct = {s for s, _, _ in triplets} | {o for _, _, o in triplets}
        assert set(g.node_ids()) == distinct
        assert len(g.node_ids()) == len(distinct)
        assert len(g.edges) == len(triplets)
        assert _no_dangling(g)

    def test_incomplete_items_are_ignored(self):
        g = graph_from_triplets([
            ("Bill1", "belongsTo", "Health"),
            ("Bill1", "belongsTo"),
            {"subject": "Bill2", "predicate": "", "object": "Health"},
            {"subject": "Bill3", "predicate": "currentHouse", "object": "Commons"},
        ])
        assert set(g.node_ids()) == {"Bill1", "Health", "Bill3", "Commons"}

    def test_emit_receives_summary(self):
        events = []
        graph_from_triplets([("Bill1", "p", "o")], emit=lambda k, p=None: events.append((k, p)))
        assert events and events[0][0] == "log"
        assert events[0][1]["nodes"] == 2


class TestMarkup:

    def test_sample_document(self):
        result = parse_markup(SAMPLE_MARKUP)
        g = result.graph

        assert not result.has_warnings
        assert len(g) == 10
        assert len(g.edges) == 14
        assert _no_dangling(g)

        cat = {n.id: n.category for n in g.nodes}
        for bill in ("Bill1919", "Bill2862", "Bill2868"):
            assert cat[bill] is NodeCategory.BILL
        for house in ("Commons", "Lords", "Unassigned"):
            assert cat[house] is NodeCategory.HOUSE
        assert cat["2nd_reading"] is NodeCategory.STATUS
        assert cat["Royal_Assent"] is NodeCategory.STATUS
        assert cat["Education"] is NodeCategory.POLICY_AREA
        assert cat["isAct_true"] is NodeCategory.PROPERTY

    def test_labels_are_humanised(self):
        g = parse_markup(SAMPLE_MARKUP).graph
        assert g.node("Royal_Assent").label == "Royal Assent"

    def test_boolean_objects_are_scoped_to_predicate(self):
        text = "ns1:Bill1 ns1:isAct true ;\n    ns1:isRejected true .\n"
        g = parse_markup(text).graph
        assert "isAct_true" in g
        assert "isRejected_true" in g
        assert "true" not in g

    def test_skipped_lines_are_reported(self):
        text = (
            "    ns1:orphan ns1:Value .\n"
            "ns1:Bill1 ns1:belongsTo ns1:Health ;\n"
            "    ns1:dangling ;\n"
        )
        result = parse_markup(text)
        assert result.has_warnings
        reasons = [d["reason"] for d in result.diagnostics()]
        assert reasons == ["continuation line without a subject", "predicate without an object"]
        assert [d["line"] for d in result.diagnostics()] == [1, 3]
        assert set(result.graph.node_ids()) == {"Bill1", "Health"}

    def test_rdf_type_shorthand_and_iris(self):
        text = "<http://example.org/Bill9> a <http://example.org/types/Bill> .\n"
        result = parse_markup(text)
        assert result.triplets == [("Bill9", "type", "Bill")]

    def test_empty_document(self):
        result = parse_markup("")
        assert result.graph.is_empty
        assert result.triplets == []


class TestRecords:

    def test_four_relations_per_bill(self):
        g = graph_from_records([b.to_dict() for b in SAMPLE_BILLS[:1]])
        labels = sorted(e.label for e in g.edges)
        assert labels == ["belongsTo", "currentHouse", "hasStatus", "originatingHouse"]
        assert g.node("B1").category is NodeCategory.BILL
        assert g.node("B1").label == "Schools Funding Bill"
        # current and originating house are the same shared node
        assert g.node("Commons").category is NodeCategory.HOUSE
        assert len(g) == 4

    def test_act_flag_is_opt_in(self):
        plain = graph_from_records(SAMPLE_BILLS)
        assert ACT_NODE_ID not in plain

        flagged = graph_from_records(SAMPLE_BILLS, include_act_flag=True)
        act_edges = [e for e in flagged.edges if e.target == ACT_NODE_ID]
        assert {e.source for e in act_edges} == {"B1", "B2"}
        assert flagged.node(ACT_NODE_ID).label == "Act"

    def test_shared_category_nodes(self):
        g = graph_from_records(SAMPLE_BILLS)
        assert g.node("Education").category is NodeCategory.POLICY_AREA
        assert len(g.incident_edges("Education")) == 2
        assert _no_dangling(g)


class TestJSON:

    def test_round_trip_shape(self):
        src = parse_markup(SAMPLE_MARKUP).graph
        g = graph_from_json(json.loads(json.dumps(src.to_dict())))
        assert g.node_ids() == src.node_ids()
        assert [n.category for n in g.nodes] == [n.category for n in src.nodes]

    def test_unknown_type_becomes_property(self):
        g = graph_from_json({
            "nodes": [{"id": "x", "type": "mystery"}, {"id": "y"}],
            "edges": [{"source": "x", "target": "y"}, {"source": "x", "target": "z"}],
        })
        assert g.node("x").category is NodeCategory.PROPERTY
        assert len(g.edges) == 1

    def test_load_graph_file_dispatch(self):
        payload = json.dumps({"nodes": [{"id": "a"}], "edges": []}).encode()
        assert load_graph_file(payload, "graph.json").graph.node_ids() == ["a"]
        assert len(load_graph_file(SAMPLE_MARKUP.encode(), "bills.ttl").graph) == 10

    def test_load_graph_file_from_path(self, tmp_path):
        path = tmp_path / "bills.ttl"
        path.write_text(SAMPLE_MARKUP)
        assert len(load_graph_file(path).graph) == 10

    def test_invalid_json_is_a_diagnostic(self):
        result = load_graph_file(b"{not json", "broken.json")
        assert result.graph.is_empty
        assert result.has_warnings

    def test_scalar_nodes_are_skipped(self):
        result = load_graph_file(b'{"nodes": 5, "edges": []}', "g.json")
        assert result.graph.is_empty
        assert [d["reason"] for d in result.diagnostics()] == ['"nodes" is not a list']

    def test_scalar_edges_are_skipped(self):
        payload = json.dumps({"nodes": [{"id": "a"}, {"id": "b"}], "edges": "x"}).encode()
        result = load_graph_file(payload, "g.json")
        assert result.graph.node_ids() == ["a", "b"]
        assert result.graph.edges == []
        assert [d["reason"] for d in result.diagnostics()] == ['"edges" is not a list']

    def test_non_object_document(self):
        result = load_graph_file(b"[1, 2, 3]", "g.json")
        assert result.graph.is_empty
        assert result.diagnostics()[0]["reason"] == "JSON document is not an object"

    def test_graph_from_json_ignores_scalar_fields(self):
        assert graph_from_json({"nodes": 5}).is_empty
        assert graph_from_json({"nodes": True, "edges": 1.5}).is_empty


class TestByteOrderMark:

    def test_markup_upload_with_bom(self):
        result = load_graph_file(b"\xef\xbb\xbf" + SAMPLE_MARKUP.encode(), "bills.ttl")
        assert not result.has_warnings
        assert len(result.graph) == 10
        assert not any(n.id.startswith("\ufeff") for n in result.graph.nodes)

    def test_json_upload_with_bom(self):
        payload = b"\xef\xbb\xbf" + json.dumps({"nodes": [{"id": "a"}]}).encode()
        assert load_graph_file(payload, "g.json").graph.node_ids() == ["a"]

    def test_bom_in_decoded_text(self):
        result = parse_markup("\ufeff" + SAMPLE_MARKUP)
        assert len(result.graph) == 10

    def test_malformed_subject_line_adds_no_node(self):
        text = "ns1:Bill1 ns1:belongsTo\nns1:Bill2 ns1:belongsTo ns1:Health .\n"
        result = parse_markup(text)
        assert [d["line"] for d in result.diagnostics()] == [1]
        assert set(result.graph.node_ids()) == {"Bill2", "Health"}

    def test_subject_only_line_keeps_node(self):
        result = parse_markup("ns1:Bill1\n    ns1:belongsTo ns1:Health .\nns1:Bill2\n")
        assert set(result.graph.node_ids()) == {"Bill1", "Health", "Bill2"}
