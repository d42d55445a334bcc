"""
Structural Inference

The storage service encodes combinator nesting only through connectivity.
This module reconstructs which leaf nodes belong to which combinator
(sequence / fallback / parallel) from the flat edge list.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from schemas.behavior_graph import BehaviorGraphEdge, BehaviorGraphNode, is_combinator
from translators.context import ConversionContext

logger = logging.getLogger(__name__)


@dataclass
class PhaseAssignment:
    """Combinator membership derived from one graph. Never persisted."""

    children: Dict[str, List[str]] = field(default_factory=dict)
    top_level: List[str] = field(default_factory=list)
    owner: Dict[str, str] = field(default_factory=dict)

    def parent_of(self, node_id: str) -> Optional[str]:
        return self.owner.get(node_id)

    def _assign(self, node_id: str, combinator_id: str) -> None:
        self.owner[node_id] = combinator_id
        self.children[combinator_id].append(node_id)


def infer_phase_structure(
    nodes: List[BehaviorGraphNode],
    edges: List[BehaviorGraphEdge],
    context: Optional[ConversionContext] = None,
) -> PhaseAssignment:
    """
    Assign leaf nodes to their enclosing combinators.

    1. Every non-combinator targeted directly by a combinator becomes its child.
    2. One propagation pass: a non-combinator targeted by a direct child joins
       that child's combinator. Children of children stop there, so a node
       three hops away stays at the top level (reported as a warning).

    With `containment_fixed_point` enabled, step 2 repeats until nothing
    changes and any acyclic chain is absorbed.

    A node claimed by more than one combinator belongs to the first claimant
    in edge order.
    """
    context = context or ConversionContext()
    by_id: Dict[str, BehaviorGraphNode] = {n.id: n for n in nodes if n.id}

    assignment = PhaseAssignment()
    for node in nodes:
        if not node.id:
            continue
        if is_combinator(node.type):
            assignment.children[node.id] = []

    def leaf_target(edge: BehaviorGraphEdge) -> Optional[str]:
        target = by_id.get(edge.target_node)
        if target is None or is_combinator(target.type):
            return None
        if edge.target_node in assignment.owner:
            return None
        return edge.target_node

    # Direct pass
    for edge in edges:
        source = by_id.get(edge.source_node)
        if source is None or not is_combinator(source.type):
            continue
        target_id = leaf_target(edge)
        if target_id is not None:
            assignment._assign(target_id, source.id)

    # Propagation pass, reading membership as it stood before the pass
    frontier = dict(assignment.owner)
    while frontier:
        added: Dict[str, str] = {}
        for edge in edges:
            combinator_id = frontier.get(edge.source_node)
            if combinator_id is None:
                continue
            target_id = leaf_target(edge)
            if target_id is not None:
                assignment._assign(target_id, combinator_id)
                added[target_id] = combinator_id

        if not context.settings.containment_fixed_point:
            _report_gaps(assignment, edges, by_id, context)
            break
        frontier = added

    assignment.top_level = [
        n.id for n in nodes
        if n.id and not is_combinator(n.type) and n.id not in assignment.owner
    ]

    for combinator_id, child_ids in assignment.children.items():
        logger.debug(f"Phase {combinator_id} contains: {child_ids}")

    return assignment


def _report_gaps(assignment: PhaseAssignment, edges: List[BehaviorGraphEdge],
                 by_id: Dict[str, BehaviorGraphNode], context: ConversionContext) -> None:
    """Warn for every leaf reachable from a combinator's members but left unassigned."""
    stranded: Dict[str, str] = {}
    frontier = dict(assignment.owner)
    while frontier:
        reached: Dict[str, str] = {}
        for edge in edges:
            combinator_id = frontier.get(edge.source_node)
            if combinator_id is None:
                continue
            target = by_id.get(edge.target_node)
            if target is None or is_combinator(target.type):
                continue
            if target.id in assignment.owner or target.id in stranded:
                continue
            stranded[target.id] = combinator_id
            reached[target.id] = combinator_id
        frontier = reached

    for node_id, combinator_id in stranded.items():
        context.warn(
            f"Node '{node_id}' is more than two hops below combinator "
            f"'{combinator_id}' and was left at the top level"
        )
