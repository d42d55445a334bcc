"""Tests for combinator membership inference."""

from typing import Dict, List

from schemas.behavior_graph import BehaviorGraphEdge, BehaviorGraphNode
from translators.context import ConversionContext
from translators.structure_inference import infer_phase_structure
from utils.settings import TranslatorSettings


def _node(node_id: str, kind: str) -> BehaviorGraphNode:
    return BehaviorGraphNode(id=node_id, type=kind)


def _edge(source: str, target: str) -> BehaviorGraphEdge:
    return BehaviorGraphEdge.connect(source, target)


def _chain():
    nodes = [
        _node("seq1", "sequence"),
        _node("cond1", "condition"),
        _node("act1", "invoke"),
        _node("act2", "invoke"),
    ]
    edges = [_edge("seq1", "cond1"), _edge("cond1", "act1"), _edge("act1", "act2")]
    return nodes, edges


def _distances(edges: List[BehaviorGraphEdge], start: str) -> Dict[str, int]:
    distance = {start: 0}
    frontier = [start]
    while frontier:
        following = []
        for node_id in frontier:
            for edge in edges:
                if edge.source_node == node_id and edge.target_node not in distance:
                    distance[edge.target_node] = distance[node_id] + 1
                    following.append(edge.target_node)
        frontier = following
    return distance


class TestDirectMembership:
    def test_combinator_targets_become_children(self):
        nodes = [_node("par", "parallel"), _node("a", "invoke"), _node("b", "invoke")]
        edges = [_edge("par", "a"), _edge("par", "b")]

        assignment = infer_phase_structure(nodes, edges)

        assert assignment.children == {"par": ["a", "b"]}
        assert assignment.top_level == []
        assert assignment.parent_of("b") == "par"

    def test_combinator_to_combinator_edges_do_not_nest(self):
        nodes = [_node("seq", "sequence"), _node("fb", "fallback"), _node("a", "invoke")]
        edges = [_edge("seq", "fb"), _edge("fb", "a")]

        assignment = infer_phase_structure(nodes, edges)

        assert assignment.children == {"seq": [], "fb": ["a"]}
        assert assignment.parent_of("fb") is None

    def test_first_claimant_wins(self):
        nodes = [_node("s1", "sequence"), _node("s2", "sequence"), _node("a", "invoke")]
        edges = [_edge("s1", "a"), _edge("s2", "a")]

        assignment = infer_phase_structure(nodes, edges)

        assert assignment.children == {"s1": ["a"], "s2": []}

    def test_unknown_endpoints_are_ignored(self):
        nodes = [_node("seq", "sequence"), _node("a", "invoke")]
        edges = [_edge("seq", "ghost"), _edge("ghost", "a")]

        assignment = infer_phase_structure(nodes, edges)

        assert assignment.children == {"seq": []}
        assert assignment.top_level == ["a"]


class TestPropagation:
    def test_two_hop_chain_is_absorbed_three_hop_is_not(self):
        """act1 (two hops) joins seq1; act2 (three hops) stays top level."""
        nodes, edges = _chain()
        context = ConversionContext()

        assignment = infer_phase_structure(nodes, edges, context)

        assert assignment.children == {"seq1": ["cond1", "act1"]}
        assert assignment.top_level == ["act2"]
        assert len(context.warnings) == 1
        assert "act2" in context.warnings[0]
        assert "seq1" in context.warnings[0]

    def test_every_stranded_node_is_reported(self):
        nodes, edges = _chain()
        nodes.append(_node("act3", "invoke"))
        edges.append(_edge("act2", "act3"))
        context = ConversionContext()

        assignment = infer_phase_structure(nodes, edges, context)

        assert assignment.top_level == ["act2", "act3"]
        assert len(context.warnings) == 2
        assert "'act2'" in context.warnings[0]
        assert "'act3'" in context.warnings[1]
        assert all("'seq1'" in w for w in context.warnings)

    def test_result_does_not_depend_on_edge_order(self):
        nodes, edges = _chain()
        assignment = infer_phase_structure(nodes, list(reversed(edges)))
        assert assignment.children == {"seq1": ["cond1", "act1"]}
        assert assignment.top_level == ["act2"]

    def test_containment_is_bounded_to_two_hops(self):
        nodes = [
            _node("seq", "sequence"),
            _node("c1", "condition"), _node("c2", "condition"),
            _node("a1", "invoke"), _node("a2", "invoke"), _node("a3", "invoke"),
        ]
        edges = [
            _edge("seq", "c1"), _edge("seq", "c2"),
            _edge("c1", "a1"), _edge("c2", "a2"), _edge("a2", "a3"),
        ]

        assignment = infer_phase_structure(nodes, edges)
        distance = _distances(edges, "seq")

        for combinator_id, child_ids in assignment.children.items():
            for child_id in child_ids:
                assert distance[child_id] <= 2
        assert "a3" in assignment.top_level

    def test_fixed_point_mode_absorbs_long_chains(self):
        nodes, edges = _chain()
        nodes.append(_node("act3", "invoke"))
        edges.append(_edge("act2", "act3"))
        context = ConversionContext(TranslatorSettings(containment_fixed_point=True))

        assignment = infer_phase_structure(nodes, edges, context)

        assert assignment.children == {"seq1": ["cond1", "act1", "act2", "act3"]}
        assert assignment.top_level == []
        assert context.warnings == []

    def test_fixed_point_mode_terminates_on_cycles(self):
        nodes = [_node("seq", "sequence"), _node("a", "invoke"), _node("b", "invoke")]
        edges = [_edge("seq", "a"), _edge("a", "b"), _edge("b", "a")]
        context = ConversionContext(TranslatorSettings(containment_fixed_point=True))

        assignment = infer_phase_structure(nodes, edges, context)

        assert assignment.children == {"seq": ["a", "b"]}

    def test_fresh_assignment_every_call(self):
        nodes, edges = _chain()
        first = infer_phase_structure(nodes, edges)
        second = infer_phase_structure(nodes, edges)
        assert first == second
        assert first is not second
        assert first.children is not second.children
