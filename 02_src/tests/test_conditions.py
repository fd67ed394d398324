"""Tests for workflow step conditions."""

import pytest

from agent_core.models import StepCondition
from agent_core.workflow.conditions import conditions_met, evaluate, lookup

DATA = {
    "overall_status": "MASHBOOH",
    "confidence_score": 62.5,
    "ingredients": ["sugar", "gelatin"],
    "product": {"name": "Gummy Bears", "origin": {"country": "DE"}},
}


class TestLookup:
    """Tests for dotted path lookup."""

    def test_nested_path(self):
        assert lookup(DATA, "product.origin.country") == "DE"

    def test_missing_path(self):
        assert not evaluate(StepCondition("product.weight", "eq", None), DATA)

    def test_non_mapping_input(self):
        assert not evaluate(StepCondition("x", "eq", 1), "plain text")


class TestEvaluate:
    """Tests for each operator."""

    @pytest.mark.parametrize(
        "condition, expected",
        [
            (StepCondition("overall_status", "eq", "MASHBOOH"), True),
            (StepCondition("overall_status", "ne", "HALAL"), True),
            (StepCondition("missing", "ne", "HALAL"), True),
            (StepCondition("confidence_score", "gt", 50), True),
            (StepCondition("confidence_score", "lt", 50), False),
            (StepCondition("overall_status", "in", ["HARAM", "MASHBOOH"]), True),
            (StepCondition("overall_status", "in", "MASHBOOH"), False),
            (StepCondition("ingredients", "contains", "gelatin"), True),
            (StepCondition("product.name", "contains", "Bears"), True),
            (StepCondition("overall_status", "gt", 5), False),
            (StepCondition("confidence_score", "between", 5), False),
        ],
    )
    def test_operators(self, condition, expected):
        assert evaluate(condition, DATA) is expected

    def test_all_conditions_must_hold(self):
        conditions = (
            StepCondition("overall_status", "eq", "MASHBOOH"),
            StepCondition("confidence_score", "gt", 90),
        )
        assert not conditions_met(conditions, DATA)
        assert conditions_met(conditions[:1], DATA)
        assert conditions_met((), DATA)
