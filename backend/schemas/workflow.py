# schemas/workflow.py
from __future__ import annotations
from typing import List, Optional, Dict, Any
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field

START_SCOPE = "$start"

# ---------- Core Enums ----------

class EditorNodeType(str, Enum):
    START = "start"
    INVOKE = "invoke"
    CONDITION = "condition"
    PHASE = "phase"

class EditorOperator(str, Enum):
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"
    EQ = "eq"
    NEQ = "neq"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    IN = "in"
    NIN = "nin"

# ---------- Condition Models ----------

class RefOperand(BaseModel):
    type: str = "ref"
    content: List[str] = Field(default_factory=lambda: [START_SCOPE])

class ConstantOperand(BaseModel):
    type: str = "constant"
    content: Any = ""

class ConditionValue(BaseModel):
    left: RefOperand
    operator: str
    right: ConstantOperand

class ConditionRow(BaseModel):
    key: str
    value: ConditionValue
    partial: bool = False

# ---------- Graph Models ----------

class Position(BaseModel):
    x: float = 0
    y: float = 0

class Viewport(BaseModel):
    x: float = 0
    y: float = 0
    zoom: float = 1

class WorkflowNode(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    type: str
    position: Position = Field(default_factory=Position)
    parent_id: Optional[str] = Field(default=None, alias="parentID")
    data: Dict[str, Any] = Field(default_factory=dict)

class WorkflowEdge(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    source_node_id: str = Field(alias="sourceNodeID")
    target_node_id: str = Field(alias="targetNodeID")
    source_port_id: Optional[str] = Field(default=None, alias="sourcePortID")
    target_port_id: Optional[str] = Field(default=None, alias="targetPortID")

class WorkflowDocument(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    nodes: List[WorkflowNode] = Field(default_factory=list)
    edges: List[WorkflowEdge] = Field(default_factory=list)
    viewport: Viewport = Field(default_factory=Viewport)
    # The editing surface re-runs its own layout when this is "auto".
    layout_hint: str = Field(default="auto", alias="layoutHint")
    metadata: Dict[str, Any] = Field(default_factory=dict)

    def node_by_id(self, node_id: str) -> Optional[WorkflowNode]:
        return next((n for n in self.nodes if n.id == node_id), None)

    def children_of(self, parent_id: str) -> List[WorkflowNode]:
        return [n for n in self.nodes if n.parent_id == parent_id]
