"""
Edge Converter

Rewrites storage edges into editor edges. An absent target port means the
default input by editor convention, so `$in` is dropped on the target side.
The source side keeps `$out`: a default output (a branch's unconditional
fallthrough, for one) has to stay visible.
"""

from typing import List

from schemas.behavior_graph import BehaviorGraphEdge, DEFAULT_INPUT_PORT
from schemas.workflow import WorkflowEdge


def convert_edge(edge: BehaviorGraphEdge) -> WorkflowEdge:
    target_port = edge.target_port
    if target_port == DEFAULT_INPUT_PORT:
        target_port = None

    return WorkflowEdge(
        source_node_id=edge.source_node,
        source_port_id=edge.source_port,
        target_node_id=edge.target_node,
        target_port_id=target_port,
    )


def convert_edges(edges: List[BehaviorGraphEdge]) -> List[WorkflowEdge]:
    return [convert_edge(edge) for edge in edges]
