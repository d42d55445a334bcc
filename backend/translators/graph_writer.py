"""
Graph Writer

Converts an edited workflow document back to the storage-service graph
format for saving. Inferred nesting is not written back (the storage
format encodes it through edges alone); node and edge identity and payload
are.
"""

import copy
import logging
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from schemas.behavior_graph import (
    BehaviorGraph, BehaviorGraphEdge, BehaviorGraphNode, CallExpression, ConditionGroup,
    GraphPort, PredicateRecord, DEFAULT_INPUT_PORT, DEFAULT_OUTPUT_PORT,
)
from schemas.workflow import START_SCOPE, ConditionRow, EditorNodeType, WorkflowDocument, WorkflowNode
from translators.condition_codec import LOOSE_ROW_PREFIX
from translators.context import GraphTranslationError
from translators.type_tables import (
    GRAPH_TYPE_TO_STORAGE, unmap_node_kind, unmap_operator, unmap_primitive_type,
)

logger = logging.getLogger(__name__)


def workflow_to_graph(workflow: Union[WorkflowDocument, Dict[str, Any]], graph_id: str,
                      name: str = "", graph_type: str = "behavior") -> BehaviorGraph:
    """Convert a workflow document back to the storage graph schema."""
    if not isinstance(workflow, WorkflowDocument):
        try:
            workflow = WorkflowDocument.model_validate(workflow)
        except ValidationError as e:
            raise GraphTranslationError(f"Invalid workflow document: {e}") from e

    nodes = [_write_node(node) for node in workflow.nodes]

    node_ids = {n.id for n in nodes}
    edges: List[BehaviorGraphEdge] = []
    for edge in workflow.edges:
        for endpoint in (edge.source_node_id, edge.target_node_id):
            if endpoint not in node_ids:
                raise GraphTranslationError(f"Edge references unknown node '{endpoint}'")
        edges.append(BehaviorGraphEdge.connect(
            edge.source_node_id,
            edge.target_node_id,
            source_port=edge.source_port_id,
            target_port=edge.target_port_id or DEFAULT_INPUT_PORT,
        ))

    graph = BehaviorGraph(
        id=graph_id,
        name=name,
        type=GRAPH_TYPE_TO_STORAGE.get(graph_type, graph_type),
        nodes=nodes,
        edges=edges,
    )
    logger.info(f"Wrote graph '{graph_id}': {len(nodes)} nodes, {len(edges)} edges")
    return graph


def _write_node(node: WorkflowNode) -> BehaviorGraphNode:
    data = node.data
    fields: Dict[str, Any] = copy.deepcopy(data.get("extra") or {})
    fields.update(
        id=node.id,
        name=data.get("name"),
        desc=data.get("description") or None,
        type=unmap_node_kind(node.type, data),
    )
    if data.get("threshold") is not None:
        fields["threshold"] = data["threshold"]

    if node.type != EditorNodeType.INVOKE.value:
        carried = data.get("graphPorts") or {}
        fields["inputs"] = _raw_ports(carried.get("inputs"))
        fields["outputs"] = _raw_ports(carried.get("outputs"))

    if node.type == EditorNodeType.START.value:
        fields["data"] = {"title": data.get("title"), "outputs": copy.deepcopy(data.get("outputs") or {})}

    elif node.type == EditorNodeType.INVOKE.value:
        control = data.get("controlPorts") or {}
        fields["inputs"] = _raw_ports(control.get("inputs")) + _write_ports(data.get("inputs"))
        fields["outputs"] = _raw_ports(control.get("outputs")) + _write_ports(data.get("outputs"))
        fields["exp"] = _call_expression(node, data)

    elif node.type == EditorNodeType.CONDITION.value:
        shape, groups = _write_groups(data)
        if shape == "state" and len(groups) == 1:
            fields["state"] = groups[0]
        elif groups:
            fields["states"] = groups
        fields["exp"] = _call_expression(node, data)

    elif node.type == EditorNodeType.PHASE.value:
        fields["stateData"] = ConditionGroup(order=data.get("order"), phase=data.get("phase"))

    return BehaviorGraphNode(**fields)


def _write_ports(ports: Optional[Dict[str, Dict[str, Any]]]) -> List[GraphPort]:
    written = []
    for port_id, port in (ports or {}).items():
        if port.get("synthetic"):
            continue
        written.append(GraphPort(
            id=port_id,
            type=port.get("originalType") or unmap_primitive_type(port.get("type")),
            name=port.get("name"),
            desc=port.get("description") or None,
        ))
    return written


def _raw_ports(ports: Optional[List[Dict[str, Any]]]) -> List[GraphPort]:
    return [GraphPort.model_validate(p) for p in (ports or [])]


def _call_expression(node: WorkflowNode, data: Dict[str, Any]) -> Optional[CallExpression]:
    if data.get("callExpression"):
        return CallExpression.model_validate(data["callExpression"])

    function_id = (data.get("functionMeta") or {}).get("id")
    body = data.get("expression") or None
    if function_id == node.id:
        function_id = None
    if function_id or body:
        return CallExpression(id=function_id, body=body)
    return None


def _write_groups(data: Dict[str, Any]):
    """Regroup state-keyed condition rows; loose rows are not state-backed."""
    groups: Dict[str, ConditionGroup] = {}
    for meta in data.get("stateMeta") or []:
        group = ConditionGroup.model_validate(meta)
        groups[group.id or DEFAULT_OUTPUT_PORT] = group

    for raw in data.get("conditions") or []:
        row = ConditionRow.model_validate(raw)
        if row.key.startswith(LOOSE_ROW_PREFIX):
            continue
        if row.key not in groups:
            groups[row.key] = ConditionGroup(id=row.key)
        groups[row.key].conditions.append(_write_predicate(row))

    return data.get("stateShape", "states"), list(groups.values())


def _write_predicate(row: ConditionRow) -> PredicateRecord:
    segments = list(row.value.left.content)
    if segments and segments[0] == START_SCOPE:
        segments = segments[1:]
    token, negation = unmap_operator(row.value.operator)
    return PredicateRecord(
        segments=segments,
        value=row.value.right.content,
        compareOperator=token,
        negation=negation,
        partial=row.partial,
    )
