"""
Node Converter

Per-kind transform from a storage-service node to an editor node.
"""

import copy
import logging
from typing import Any, Dict, List, Optional

from schemas.behavior_graph import (
    BehaviorGraphNode, GraphPort, CONDITION_ID_PREFIX, DEFAULT_INPUT_PORT, DEFAULT_OUTPUT_PORT,
)
from schemas.workflow import EditorNodeType, WorkflowNode
from translators.condition_codec import LOOSE_ROW_PREFIX, decode_groups, decode_textual, placeholder_row
from translators.context import ConversionContext
from translators.type_tables import map_node_kind, map_primitive_type

SYNTHETIC_OUTPUT = {
    "name": "output",
    "type": "object",
    "description": "Default output port",
    "synthetic": True,
}


def resolve_editor_type(node: BehaviorGraphNode, context: Optional[ConversionContext] = None) -> str:
    # The storage service sometimes tags branch nodes with the wrong kind;
    # the reserved id prefix is authoritative.
    if node.id and node.id.startswith(CONDITION_ID_PREFIX):
        return EditorNodeType.CONDITION.value
    return map_node_kind(node.type, context)


class NodeConverter:
    """
    Converts storage nodes to editor nodes for one translation call.

    Positions are left at the origin; the orchestrator places nodes after
    structural inference.
    """

    def __init__(self, context: ConversionContext, start_outputs: Optional[Dict[str, Any]] = None):
        self.context = context
        self.start_outputs = start_outputs

    def convert(self, node: BehaviorGraphNode) -> Optional[WorkflowNode]:
        if not node.id:
            self.context.warn(
                f"Dropping node without id (name={node.name!r}, type={node.type!r})",
                level=logging.ERROR,
            )
            return None

        editor_type = resolve_editor_type(node, self.context)
        data: Dict[str, Any] = {
            "title": node.name or node.id,
            "name": node.name,
            "description": node.desc or "",
        }

        if editor_type == EditorNodeType.START.value:
            data.update(self._start_payload())
        elif editor_type == EditorNodeType.INVOKE.value:
            data.update(self._invoke_payload(node))
        elif editor_type == EditorNodeType.CONDITION.value:
            data.update(self._condition_payload(node))
        elif editor_type == EditorNodeType.PHASE.value:
            data.update(self._phase_payload(node))

        data["backendType"] = node.type
        if editor_type != EditorNodeType.INVOKE.value:
            data["graphPorts"] = {
                "inputs": [p.model_dump() for p in node.inputs],
                "outputs": [p.model_dump() for p in node.outputs],
            }
        if node.threshold is not None:
            data["threshold"] = node.threshold
        if node.model_extra:
            data["extra"] = copy.deepcopy(node.model_extra)

        return WorkflowNode(id=node.id, type=editor_type, data=data)

    # ---------- Per-kind payloads ----------

    def _start_payload(self) -> Dict[str, Any]:
        # Filled by the entity/module property composer; never invented here.
        return {"outputs": copy.deepcopy(self.start_outputs) if self.start_outputs else {}}

    def _invoke_payload(self, node: BehaviorGraphNode) -> Dict[str, Any]:
        outputs = self._convert_ports(node.outputs, skip=DEFAULT_OUTPUT_PORT)
        if not outputs:
            outputs = {DEFAULT_OUTPUT_PORT: dict(SYNTHETIC_OUTPUT)}

        function_id = node.exp.id if node.exp and node.exp.id else node.id
        return {
            "title": node.name or f"Invoke {node.id}",
            "functionMeta": {
                "id": function_id,
                "name": node.name,
                "description": f"Action: {node.name}",
                "functionType": "backend-action",
            },
            "inputs": self._convert_ports(node.inputs, skip=DEFAULT_INPUT_PORT, with_value=True),
            "outputs": outputs,
            "controlPorts": self._control_ports(node),
            "callExpression": node.exp.model_dump() if node.exp else None,
        }

    def _condition_payload(self, node: BehaviorGraphNode) -> Dict[str, Any]:
        groups = node.condition_groups()
        rows = decode_groups(groups, self.context)
        body = node.exp.body if node.exp else None
        if not rows and body:
            rows = decode_textual(body, f"{LOOSE_ROW_PREFIX}0", self.context)
        if not rows:
            rows = [placeholder_row()]

        title = node.name or "Condition"
        if node.id.startswith(CONDITION_ID_PREFIX):
            base_name = node.id[len(CONDITION_ID_PREFIX):] or "Condition"
            title = f"{base_name} condition"

        return {
            "title": title,
            "conditions": [row.model_dump() for row in rows],
            "expression": body or "",
            "callExpression": node.exp.model_dump() if node.exp else None,
            "stateShape": "states" if node.states is not None else "state",
            "stateMeta": [
                group.model_dump(exclude={"conditions"}) for group in groups
            ],
        }

    def _phase_payload(self, node: BehaviorGraphNode) -> Dict[str, Any]:
        state_data = node.stateData
        order = node.order_hint()
        return {
            "phaseType": node.type,
            "phase": state_data.phase if state_data else None,
            "order": order if order is not None else self.context.settings.default_order,
            "children": [],
        }

    # ---------- Ports ----------

    def _convert_ports(self, ports: List[GraphPort], skip: str,
                       with_value: bool = False) -> Dict[str, Dict[str, Any]]:
        result: Dict[str, Dict[str, Any]] = {}
        for port in ports:
            if not port.id or port.id == skip:
                continue
            entry = {
                "name": port.name or port.id,
                "type": map_primitive_type(port.type, self.context),
                "description": port.desc or "",
                "originalType": port.type,
            }
            if with_value:
                entry["value"] = None
            result[port.id] = entry
        return result

    def _control_ports(self, node: BehaviorGraphNode) -> Dict[str, List[Dict[str, Any]]]:
        return {
            "inputs": [p.model_dump() for p in node.inputs if p.id == DEFAULT_INPUT_PORT],
            "outputs": [p.model_dump() for p in node.outputs if p.id == DEFAULT_OUTPUT_PORT],
        }
