"""
Deterministic Translator Layer

Converts storage-service behavior graphs to the editor's workflow format
and back. No I/O; every call is self-contained.
"""

from .workflow_translator import WorkflowTranslator
from .graph_writer import workflow_to_graph
from .context import GraphTranslationError

__all__ = ['WorkflowTranslator', 'workflow_to_graph', 'GraphTranslationError']
