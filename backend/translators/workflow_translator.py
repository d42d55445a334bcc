"""
Workflow Translator

Converts a storage-service behavior graph into the editor's workflow
document. Structural inference, node and edge conversion and placement are
all done here deterministically, fresh for every call.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from schemas.behavior_graph import BehaviorGraph, BehaviorGraphEdge, BehaviorGraphNode, find_dangling_edges
from schemas.workflow import EditorNodeType, WorkflowDocument, WorkflowNode
from translators.context import ConversionContext, GraphTranslationError
from translators.edge_converter import convert_edges
from translators.layout import LayoutAssigner
from translators.node_converter import NodeConverter
from translators.structure_inference import infer_phase_structure
from translators.type_tables import GRAPH_TYPE_TO_EDITOR
from utils.settings import TranslatorSettings

logger = logging.getLogger(__name__)


class WorkflowTranslator:
    """
    Deterministic translator from a behavior graph to a workflow document.

    Holds configuration only; every call builds its own lookups and drops
    them on return, so two calls never share state.
    """

    def __init__(self, settings: Optional[TranslatorSettings] = None):
        self.settings = settings or TranslatorSettings()

    def translate(self, graph: Union[BehaviorGraph, Dict[str, Any]],
                  start_outputs: Optional[Dict[str, Any]] = None) -> WorkflowDocument:
        """
        Convert a behavior graph to the editor format.

        Args:
            graph: Storage-service graph document (model or raw dict)
            start_outputs: Output schema from the entity/module property
                composer, attached verbatim to start nodes

        Returns:
            WorkflowDocument; recovered problems are listed in
            metadata["warnings"]
        """
        context = ConversionContext(self.settings)
        graph = self._coerce(graph, context)

        for problem in find_dangling_edges(graph):
            context.warn(problem)

        assignment = infer_phase_structure(graph.nodes, graph.edges, context)
        converter = NodeConverter(context, start_outputs)
        layout = LayoutAssigner()

        nodes: List[WorkflowNode] = []
        seen_ids = set()
        for graph_node in graph.nodes:
            if graph_node.id and graph_node.id in seen_ids:
                context.warn(f"Dropping duplicate node id '{graph_node.id}'", level=logging.ERROR)
                continue

            try:
                node = converter.convert(graph_node)
            except (ValueError, TypeError) as e:
                context.warn(f"Failed to convert node '{graph_node.id}': {e}", level=logging.ERROR)
                continue
            if node is None:
                continue

            seen_ids.add(node.id)
            order = graph_node.order_hint()
            if order is None:
                order = self.settings.default_order
            node.parent_id = assignment.parent_of(node.id)
            node.position = layout.place(node.type, order)
            nodes.append(node)

        for node in nodes:
            if node.type == EditorNodeType.PHASE.value:
                node.data["children"] = list(assignment.children.get(node.id, []))

        logger.info(
            f"Translated graph '{graph.id}': {len(nodes)} nodes, {len(graph.edges)} edges, "
            f"{len(context.warnings)} warnings"
        )

        return WorkflowDocument(
            nodes=nodes,
            edges=convert_edges(graph.edges),
            layout_hint="auto",
            metadata={
                "graph_id": graph.id,
                "graph_name": graph.name,
                "graph_type": GRAPH_TYPE_TO_EDITOR.get(graph.type, graph.type),
                "top_level": list(assignment.top_level),
                "warnings": list(context.warnings),
            },
        )

    @staticmethod
    def _coerce(graph: Union[BehaviorGraph, Dict[str, Any]],
                context: ConversionContext) -> BehaviorGraph:
        """
        Validate the document header, then each node and edge on its own.

        A malformed node or edge is dropped and reported; only a document
        without a usable header is rejected.
        """
        if isinstance(graph, BehaviorGraph):
            return graph
        if not isinstance(graph, dict):
            raise GraphTranslationError("Invalid behavior graph document: expected an object")

        raw_nodes = graph.get("nodes") or []
        raw_edges = graph.get("edges") or []
        if not isinstance(raw_nodes, list) or not isinstance(raw_edges, list):
            raise GraphTranslationError("Invalid behavior graph document: nodes and edges must be lists")

        try:
            header = BehaviorGraph.model_validate({**graph, "nodes": [], "edges": []})
        except ValidationError as e:
            raise GraphTranslationError(f"Invalid behavior graph document: {e}") from e

        header.nodes = _validate_each(raw_nodes, BehaviorGraphNode, "node", context)
        header.edges = _validate_each(raw_edges, BehaviorGraphEdge, "edge", context)
        return header


def _validate_each(items: List[Any], model, label: str, context: ConversionContext) -> list:
    valid = []
    for index, raw in enumerate(items):
        try:
            valid.append(model.model_validate(raw))
        except ValidationError as e:
            name = raw.get("id") if isinstance(raw, dict) else None
            first = e.errors()[0]
            location = ".".join(str(part) for part in first["loc"])
            context.warn(
                f"Dropping invalid {label} '{name or index}': {location}: {first['msg']}",
                level=logging.ERROR,
            )
    return valid
