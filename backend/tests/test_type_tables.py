"""Tests for the kind, primitive type and operator tables."""

import logging

import pytest

from translators.context import ConversionContext
from translators.type_tables import (
    NEGATION_TABLE,
    SYMMETRIC_NEGATION_TABLE,
    apply_negation,
    map_node_kind,
    map_operator,
    map_primitive_type,
    unmap_node_kind,
    unmap_operator,
    unmap_primitive_type,
)


class TestNodeKindTable:
    """Storage node kinds -> editor node types."""

    @pytest.mark.parametrize("kind,expected", [
        ("nest", "start"),
        ("invoke", "invoke"),
        ("action", "invoke"),
        ("condition", "condition"),
        ("sequence", "phase"),
        ("fallback", "phase"),
        ("parallel", "phase"),
    ])
    def test_known_kinds(self, kind, expected):
        assert map_node_kind(kind) == expected

    def test_unknown_kind_falls_back_to_invoke(self):
        """Unknown future kinds still render as an actionable node."""
        assert map_node_kind("teleport") == "invoke"
        assert map_node_kind(None) == "invoke"

    def test_reverse_start_is_nest(self):
        assert unmap_node_kind("start") == "nest"
        assert unmap_node_kind("invoke") == "invoke"
        assert unmap_node_kind("phase", {"phaseType": "fallback"}) == "fallback"

    def test_reverse_prefers_the_loaded_kind(self):
        assert unmap_node_kind("invoke", {"backendType": "action"}) == "action"
        assert unmap_node_kind("invoke", {"backendType": "wait"}) == "wait"
        assert unmap_node_kind("phase", {"backendType": "parallel", "phaseType": "parallel"}) == "parallel"
        assert unmap_node_kind("start", {"backendType": None}) == "nest"


class TestPrimitiveTypeTable:
    @pytest.mark.parametrize("code,expected", [
        ("s", "string"),
        ("n", "number"),
        ("b", "boolean"),
        ("u", "object"),
        ("x", "string"),
        (None, "string"),
    ])
    def test_mapping(self, code, expected):
        assert map_primitive_type(code) == expected

    def test_reverse(self):
        assert unmap_primitive_type("number") == "n"
        assert unmap_primitive_type("object") == "u"
        assert unmap_primitive_type("mystery") == "s"


class TestOperatorTable:
    @pytest.mark.parametrize("token,expected", [
        ("EMPTY", "is_empty"),
        ("NOT_EMPTY", "is_not_empty"),
        ("EQUALS", "eq"),
        ("NOT_EQUALS", "neq"),
        ("CONTAINS", "contains"),
        ("AMONG", "in"),
    ])
    def test_known_operators(self, token, expected):
        assert map_operator(token) == expected

    def test_unknown_operator_falls_back_to_eq(self):
        assert map_operator("GREATER_THAN") == "eq"

    def test_negation_is_one_way_by_default(self):
        """Only the positive side of each pair has a complement."""
        for operator, complement in NEGATION_TABLE.items():
            assert apply_negation(operator) == complement
            assert apply_negation(complement) == complement

    def test_symmetric_negation_is_an_involution(self):
        for operator in SYMMETRIC_NEGATION_TABLE:
            assert apply_negation(apply_negation(operator, symmetric=True), symmetric=True) == operator
            assert apply_negation(operator, symmetric=True) != operator
        assert len(SYMMETRIC_NEGATION_TABLE) == 8

    def test_negation_passes_unpaired_operators_through(self):
        assert apply_negation("gt") == "gt"
        assert apply_negation("gt", symmetric=True) == "gt"

    def test_reverse_operator_carries_negation(self):
        assert unmap_operator("nin") == ("AMONG", True)
        assert unmap_operator("not_contains") == ("CONTAINS", True)
        assert unmap_operator("neq") == ("NOT_EQUALS", False)


class TestLookupPurity:
    """Lookups return the same answer regardless of call order or context."""

    def test_referential_transparency(self):
        tokens = ["EQUALS", "BOGUS", "AMONG", "BOGUS", "EMPTY"]
        first = [map_operator(t) for t in tokens]
        second = [map_operator(t, ConversionContext()) for t in reversed(tokens)]
        assert first == list(reversed(second))
        assert [map_node_kind(k) for k in ("nest", "x", "nest")] == ["start", "invoke", "start"]

    def test_unknown_value_reported_once_per_context(self, caplog):
        context = ConversionContext()
        with caplog.at_level(logging.WARNING):
            for _ in range(3):
                map_operator("GREATER_THAN", context)
            map_primitive_type("z", context)

        assert len(context.warnings) == 2
        assert sum("GREATER_THAN" in r.getMessage() for r in caplog.records) == 1

    def test_reporting_is_not_shared_across_contexts(self):
        first, second = ConversionContext(), ConversionContext()
        map_node_kind("teleport", first)
        map_node_kind("teleport", second)
        assert len(first.warnings) == 1
        assert len(second.warnings) == 1
