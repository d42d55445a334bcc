"""
Condition Expression Codec

Normalizes the two physical shapes a branch predicate can arrive in, the
legacy textual expression and the structured predicate record, into one
ConditionRow shape. Nothing downstream of this module looks at which shape
a predicate came from.

Textual grammar (one production, optionally negated):

    expression := "!" "(" predicate ")" | predicate
    predicate  := "(" DQSTRING WORD value ")"
    value      := DQSTRING | SQSTRING | LIST

e.g. ("vehicle/speed" EQUALS "10"), !(("tags" AMONG ["a", "b"]))
"""

import json
import logging
import re
from typing import Any, List, NamedTuple, Optional

from schemas.behavior_graph import ConditionGroup, DEFAULT_OUTPUT_PORT, PredicateRecord
from schemas.workflow import (
    START_SCOPE, ConditionRow, ConditionValue, ConstantOperand, EditorOperator, RefOperand,
)
from translators.context import ConversionContext, GraphTranslationError
from translators.type_tables import apply_negation, map_operator

logger = logging.getLogger(__name__)

LOOSE_ROW_PREFIX = "if_"


class MalformedPredicateError(GraphTranslationError):
    """Raised when a textual predicate does not follow the predicate grammar"""

    def __init__(self, expression: str, reason: str):
        super().__init__(f"Malformed predicate {expression!r}: {reason}")
        self.expression = expression
        self.reason = reason


class Token(NamedTuple):
    kind: str
    text: str
    offset: int


class ParsedPredicate(NamedTuple):
    field_path: str
    operator_token: str
    value: Any
    negated: bool


_TOKEN_PATTERN = re.compile(r"""
    (?P<dq>"[^"]*")
  | (?P<sq>'[^']*')
  | (?P<list>\[[^\]]*\])
  | (?P<word>\w+)
  | (?P<bang>!)
  | (?P<lparen>\()
  | (?P<rparen>\))
""", re.VERBOSE)


def tokenize(expression: str) -> List[Token]:
    tokens: List[Token] = []
    pos = 0
    length = len(expression)
    while pos < length:
        if expression[pos].isspace():
            pos += 1
            continue
        match = _TOKEN_PATTERN.match(expression, pos)
        if match is None:
            raise MalformedPredicateError(
                expression, f"unexpected character {expression[pos]!r} at offset {pos}"
            )
        tokens.append(Token(match.lastgroup, match.group(), pos))
        pos = match.end()
    return tokens


class _PredicateParser:
    def __init__(self, expression: str):
        self.expression = expression
        self.tokens = tokenize(expression)
        self.index = 0

    def _peek(self) -> Optional[Token]:
        if self.index < len(self.tokens):
            return self.tokens[self.index]
        return None

    def _expect(self, *kinds: str) -> Token:
        token = self._peek()
        if token is None:
            raise MalformedPredicateError(
                self.expression, f"expected {' or '.join(kinds)}, got end of input"
            )
        if token.kind not in kinds:
            raise MalformedPredicateError(
                self.expression,
                f"expected {' or '.join(kinds)} at offset {token.offset}, got {token.text!r}",
            )
        self.index += 1
        return token

    def parse(self) -> ParsedPredicate:
        if not self.tokens:
            raise MalformedPredicateError(self.expression, "empty expression")

        negated = False
        first = self._peek()
        if first.kind == "bang":
            negated = True
            self.index += 1
            self._expect("lparen")
            field, operator, value = self._predicate()
            self._expect("rparen")
        else:
            field, operator, value = self._predicate()

        trailing = self._peek()
        if trailing is not None:
            raise MalformedPredicateError(
                self.expression, f"unexpected {trailing.text!r} at offset {trailing.offset}"
            )
        return ParsedPredicate(field, operator, value, negated)

    def _predicate(self):
        self._expect("lparen")
        field = self._expect("dq").text[1:-1]
        if not field:
            raise MalformedPredicateError(self.expression, "empty field path")
        operator = self._expect("word").text
        value_token = self._expect("dq", "sq", "list")
        self._expect("rparen")

        if value_token.kind == "list":
            value = parse_list_literal(value_token.text[1:-1])
        else:
            value = value_token.text[1:-1]
        return field, operator, value


def parse_list_literal(inner: str) -> List[Any]:
    """Parse the inside of a bracketed list, degrading to a comma split."""
    try:
        parsed = json.loads(f"[{inner}]")
    except ValueError:
        return [item.strip().replace('"', "").replace("'", "") for item in inner.split(",")]
    return parsed


def parse_predicate_expression(expression: str) -> ParsedPredicate:
    """Parse one textual predicate. Raises MalformedPredicateError."""
    return _PredicateParser(expression.strip()).parse()


def build_condition_value(segments: List[str], operator_token: Optional[str], negated: bool,
                          literal: Any, context: Optional[ConversionContext] = None) -> ConditionValue:
    operator = map_operator(operator_token, context)
    if negated:
        symmetric = context is not None and context.settings.symmetric_negation
        operator = apply_negation(operator, symmetric=symmetric)
    return ConditionValue(
        left=RefOperand(content=[START_SCOPE, *segments]),
        operator=operator,
        right=ConstantOperand(content=literal),
    )


def decode_textual(expression: Optional[str], key: str,
                   context: Optional[ConversionContext] = None) -> List[ConditionRow]:
    """
    Decode a legacy textual predicate into zero or one rows.

    A malformed expression yields no rows; callers read "no predicate" as
    "always true" and carry on with the rest of the document.
    """
    if not expression or not expression.strip():
        return []

    try:
        parsed = parse_predicate_expression(expression)
    except MalformedPredicateError as e:
        if context is not None:
            context.warn(str(e))
        else:
            logger.warning(str(e))
        return []

    value = build_condition_value(
        parsed.field_path.split("/"), parsed.operator_token, parsed.negated, parsed.value, context
    )
    return [ConditionRow(key=key, value=value)]


def decode_record(record: PredicateRecord, group_id: str,
                  context: Optional[ConversionContext] = None) -> ConditionRow:
    """Decode one structured predicate record, keyed by its owning group."""
    if isinstance(record.segments, list):
        segments = list(record.segments)
    else:
        segments = [record.field or "unknown"]

    value = build_condition_value(
        segments,
        record.compareOperator or "EQUALS",
        record.negation,
        "" if record.value is None else record.value,
        context,
    )
    return ConditionRow(key=group_id, value=value, partial=record.partial)


def decode_groups(groups: List[ConditionGroup],
                  context: Optional[ConversionContext] = None) -> List[ConditionRow]:
    rows: List[ConditionRow] = []
    for group in groups:
        group_id = group.id or DEFAULT_OUTPUT_PORT
        for record in group.conditions:
            rows.append(decode_record(record, group_id, context))
    return rows


def placeholder_row() -> ConditionRow:
    """The row shown for a branch with no usable predicate: a non-empty check."""
    return ConditionRow(
        key=f"{LOOSE_ROW_PREFIX}0",
        value=ConditionValue(
            left=RefOperand(content=[START_SCOPE, "id"]),
            operator=EditorOperator.IS_NOT_EMPTY.value,
            right=ConstantOperand(content=""),
        ),
    )
