# schemas/behavior_graph.py
from __future__ import annotations
from typing import List, Optional, Union, Any
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------- Reserved Tokens ----------

DEFAULT_INPUT_PORT = "$in"
DEFAULT_OUTPUT_PORT = "$out"
CONDITION_ID_PREFIX = "$condition/"

# ---------- Core Enums ----------

class BackendNodeKind(str, Enum):
    NEST = "nest"
    INVOKE = "invoke"
    ACTION = "action"
    CONDITION = "condition"
    SEQUENCE = "sequence"
    FALLBACK = "fallback"
    PARALLEL = "parallel"

COMBINATOR_KINDS = frozenset({
    BackendNodeKind.SEQUENCE.value,
    BackendNodeKind.FALLBACK.value,
    BackendNodeKind.PARALLEL.value,
})

def is_combinator(kind: Optional[str]) -> bool:
    return kind in COMBINATOR_KINDS

# ---------- Node Payload Models ----------

class GraphPort(BaseModel):
    id: Optional[str] = None
    type: Optional[str] = None  # single-letter primitive code: s | n | b | u
    name: Optional[str] = None
    desc: Optional[str] = None

class PredicateRecord(BaseModel):
    segments: Optional[List[str]] = None
    field: Optional[str] = None  # older records carry a bare field instead of segments
    value: Any = ""
    compareOperator: Optional[str] = None
    negation: bool = False
    partial: bool = False

class ConditionGroup(BaseModel):
    """One named predicate group (a `state` in the storage service)."""

    id: Optional[str] = None
    order: Optional[Union[int, float]] = None
    phase: Optional[str] = None
    match: Optional[str] = None
    conditions: List[PredicateRecord] = Field(default_factory=list)

    @field_validator("conditions", mode="before")
    @classmethod
    def _null_conditions(cls, v):
        return [] if v is None else v

class CallExpression(BaseModel):
    id: Optional[str] = None
    body: Optional[str] = None

# ---------- Graph Models ----------

class BehaviorGraphNode(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    name: Optional[str] = None
    desc: Optional[str] = None
    type: Optional[str] = BackendNodeKind.INVOKE.value
    inputs: List[GraphPort] = Field(default_factory=list)
    outputs: List[GraphPort] = Field(default_factory=list)

    # Condition state arrives as a single group (`state`) or as a list of
    # groups (`states`) depending on the storage service version.
    state: Optional[ConditionGroup] = None
    states: Optional[List[ConditionGroup]] = None
    stateData: Optional[ConditionGroup] = None

    exp: Optional[CallExpression] = None
    threshold: Optional[Union[int, float]] = None

    @field_validator("inputs", "outputs", mode="before")
    @classmethod
    def _null_ports(cls, v):
        return [] if v is None else v

    def condition_groups(self) -> List[ConditionGroup]:
        """Groups in document order, whichever physical shape was sent."""
        if self.states is not None:
            return list(self.states)
        if self.state is not None:
            return [self.state]
        return []

    def order_hint(self) -> Optional[Union[int, float]]:
        for group in (self.stateData, self.state):
            if group is not None and group.order is not None:
                return group.order
        return None

class GraphSocket(BaseModel):
    node: str
    socket: Optional[str] = None

class BehaviorGraphEdge(BaseModel):
    """
    Directed edge as stored by the graph service.

    The storage naming is inverted: `input` is the SOURCE endpoint and
    `output` is the TARGET endpoint.
    """

    input: GraphSocket
    output: GraphSocket

    @property
    def source_node(self) -> str:
        return self.input.node

    @property
    def source_port(self) -> Optional[str]:
        return self.input.socket

    @property
    def target_node(self) -> str:
        return self.output.node

    @property
    def target_port(self) -> Optional[str]:
        return self.output.socket

    @classmethod
    def connect(cls, source_node: str, target_node: str,
                source_port: Optional[str] = DEFAULT_OUTPUT_PORT,
                target_port: Optional[str] = DEFAULT_INPUT_PORT) -> "BehaviorGraphEdge":
        return cls(
            input=GraphSocket(node=source_node, socket=source_port),
            output=GraphSocket(node=target_node, socket=target_port),
        )

class BehaviorGraph(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str = ""
    type: str = "graph"
    nodes: List[BehaviorGraphNode] = Field(default_factory=list)
    edges: List[BehaviorGraphEdge] = Field(default_factory=list)

# ---------- Validation Helpers ----------

def find_dangling_edges(graph: BehaviorGraph) -> List[str]:
    """
    Report edges whose endpoints do not reference nodes of the same graph.
    """
    errs: List[str] = []
    node_ids = {n.id for n in graph.nodes if n.id}

    for e in graph.edges:
        if e.source_node not in node_ids:
            errs.append(f"Edge source '{e.source_node}' not found")
        if e.target_node not in node_ids:
            errs.append(f"Edge target '{e.target_node}' not found")

    return errs
