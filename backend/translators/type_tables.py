"""
Type & Operator Tables

Static bidirectional maps between the storage service vocabulary and the
editor vocabulary. Every forward table is total: unknown tokens resolve to
an explicit default through one shared EnumTable lookup.
"""

from typing import Dict, Optional, Tuple

from schemas.behavior_graph import BackendNodeKind
from schemas.workflow import EditorNodeType, EditorOperator
from translators.context import ConversionContext


class EnumTable:
    """
    A named token table with an explicit fallback.

    Lookups are pure; the only side effect is reporting an unknown token to
    the optional per-call context, which logs it at most once.
    """

    def __init__(self, name: str, mapping: Dict[str, str], default: str):
        self.name = name
        self._mapping = dict(mapping)
        self.default = default

    def __contains__(self, token: object) -> bool:
        return token in self._mapping

    def lookup(self, token: Optional[str], context: Optional[ConversionContext] = None) -> str:
        if token in self._mapping:
            return self._mapping[token]
        # An absent token is the documented default, not an unknown one.
        if token is not None and context is not None:
            context.report_unknown(self.name, str(token), self.default)
        return self.default

    def inverse(self, name: str, default: str) -> "EnumTable":
        """Build the reverse table. Later entries win on duplicate values."""
        return EnumTable(name, {v: k for k, v in self._mapping.items()}, default)


NODE_KIND_TABLE = EnumTable(
    "node kind",
    {
        BackendNodeKind.NEST.value: EditorNodeType.START.value,
        BackendNodeKind.ACTION.value: EditorNodeType.INVOKE.value,
        BackendNodeKind.INVOKE.value: EditorNodeType.INVOKE.value,
        BackendNodeKind.CONDITION.value: EditorNodeType.CONDITION.value,
        BackendNodeKind.SEQUENCE.value: EditorNodeType.PHASE.value,
        BackendNodeKind.FALLBACK.value: EditorNodeType.PHASE.value,
        BackendNodeKind.PARALLEL.value: EditorNodeType.PHASE.value,
    },
    default=EditorNodeType.INVOKE.value,
)

PRIMITIVE_TYPE_TABLE = EnumTable(
    "primitive type",
    {
        "s": "string",
        "n": "number",
        "b": "boolean",
        "u": "object",
    },
    default="string",
)

OPERATOR_TABLE = EnumTable(
    "operator",
    {
        "EMPTY": EditorOperator.IS_EMPTY.value,
        "NOT_EMPTY": EditorOperator.IS_NOT_EMPTY.value,
        "EQUALS": EditorOperator.EQ.value,
        "NOT_EQUALS": EditorOperator.NEQ.value,
        "CONTAINS": EditorOperator.CONTAINS.value,
        "AMONG": EditorOperator.IN.value,
    },
    default=EditorOperator.EQ.value,
)

# One-way: the complement side (neq, is_not_empty, ...) passes through unchanged.
NEGATION_TABLE: Dict[str, str] = {
    EditorOperator.IS_EMPTY.value: EditorOperator.IS_NOT_EMPTY.value,
    EditorOperator.EQ.value: EditorOperator.NEQ.value,
    EditorOperator.CONTAINS.value: EditorOperator.NOT_CONTAINS.value,
    EditorOperator.IN.value: EditorOperator.NIN.value,
}

SYMMETRIC_NEGATION_TABLE: Dict[str, str] = dict(NEGATION_TABLE)
SYMMETRIC_NEGATION_TABLE.update({v: k for k, v in NEGATION_TABLE.items()})

PRIMITIVE_CODE_TABLE = PRIMITIVE_TYPE_TABLE.inverse("editor type", default="s")

# editor operator -> (storage token, negation flag)
REVERSE_OPERATOR_TABLE: Dict[str, Tuple[str, bool]] = {
    EditorOperator.IS_EMPTY.value: ("EMPTY", False),
    EditorOperator.IS_NOT_EMPTY.value: ("NOT_EMPTY", False),
    EditorOperator.EQ.value: ("EQUALS", False),
    EditorOperator.NEQ.value: ("NOT_EQUALS", False),
    EditorOperator.CONTAINS.value: ("CONTAINS", False),
    EditorOperator.NOT_CONTAINS.value: ("CONTAINS", True),
    EditorOperator.IN.value: ("AMONG", False),
    EditorOperator.NIN.value: ("AMONG", True),
}

GRAPH_TYPE_TO_EDITOR = {"graph": "behavior"}
GRAPH_TYPE_TO_STORAGE = {v: k for k, v in GRAPH_TYPE_TO_EDITOR.items()}


def map_node_kind(kind: Optional[str], context: Optional[ConversionContext] = None) -> str:
    return NODE_KIND_TABLE.lookup(kind, context)


def map_primitive_type(code: Optional[str], context: Optional[ConversionContext] = None) -> str:
    return PRIMITIVE_TYPE_TABLE.lookup(code, context)


def map_operator(token: Optional[str], context: Optional[ConversionContext] = None) -> str:
    return OPERATOR_TABLE.lookup(token, context)


def apply_negation(operator: str, symmetric: bool = False) -> str:
    """
    Swap an operator for its complement; operators without one pass through.

    By default only the positive operators have a complement, so negating
    `neq` leaves it as `neq`. With `symmetric` both sides of every pair swap
    and negation is an involution.
    """
    table = SYMMETRIC_NEGATION_TABLE if symmetric else NEGATION_TABLE
    return table.get(operator, operator)


def unmap_node_kind(editor_type: str, data: Optional[dict] = None) -> str:
    """Editor node type back to the storage kind, preferring the kind the node was loaded with."""
    if editor_type == EditorNodeType.START.value:
        return BackendNodeKind.NEST.value
    carried = (data or {}).get("backendType")
    if carried:
        return carried
    if editor_type == EditorNodeType.PHASE.value:
        return (data or {}).get("phaseType") or BackendNodeKind.SEQUENCE.value
    return editor_type


def unmap_primitive_type(editor_type: Optional[str]) -> str:
    return PRIMITIVE_CODE_TABLE.lookup(editor_type)


def unmap_operator(operator: str) -> Tuple[str, bool]:
    return REVERSE_OPERATOR_TABLE.get(operator, ("EQUALS", False))
