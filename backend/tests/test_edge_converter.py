"""Tests for storage edge -> editor edge conversion."""

from schemas.behavior_graph import BehaviorGraphEdge
from translators.edge_converter import convert_edge, convert_edges


class TestEdgeConversion:
    def test_default_input_is_omitted_on_target(self):
        edge = convert_edge(BehaviorGraphEdge.connect("a", "b", source_port="$out", target_port="$in"))

        assert edge.source_node_id == "a"
        assert edge.source_port_id == "$out"
        assert edge.target_node_id == "b"
        assert edge.target_port_id is None

    def test_named_ports_are_kept(self):
        edge = convert_edge(BehaviorGraphEdge.connect("a", "b", source_port="yes", target_port="arg"))
        assert edge.source_port_id == "yes"
        assert edge.target_port_id == "arg"

    def test_editor_aliases(self):
        edge = convert_edge(BehaviorGraphEdge.connect("a", "b"))
        assert edge.model_dump(by_alias=True) == {
            "sourceNodeID": "a",
            "targetNodeID": "b",
            "sourcePortID": "$out",
            "targetPortID": None,
        }

    def test_edge_order_is_kept(self):
        edges = [BehaviorGraphEdge.connect("a", "b"), BehaviorGraphEdge.connect("b", "c", source_port="no")]
        converted = convert_edges(edges)
        assert [(e.source_node_id, e.target_node_id) for e in converted] == [("a", "b"), ("b", "c")]
