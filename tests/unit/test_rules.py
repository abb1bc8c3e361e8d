"""Tests for the trigger interpreter."""

import pytest

from citywise.core.types import (
    Discipline,
    Operator,
    ProjectAttributes,
    ProjectType,
    Requirement,
    RequirementRule,
    RuleTrigger,
)
from citywise.requirements.rules import (
    evaluate_trigger,
    field_value,
    in_jurisdiction,
    matches_project_type,
    rule_fires,
)

_REQ = Requirement("Test", "", Discipline.GENERAL)


class TestEvaluateTrigger:
    def test_missing_value_never_passes(self):
        attrs = ProjectAttributes(project_type=ProjectType.ADU)
        for op in Operator:
            assert evaluate_trigger(RuleTrigger("square_footage", op, 100), attrs) is False

    def test_unknown_field_reads_none(self):
        attrs = ProjectAttributes()
        assert field_value(attrs, "basement_depth") is None
        assert evaluate_trigger(RuleTrigger("basement_depth", Operator.EQUALS, 0), attrs) is False

    def test_string_true_equals_bool(self):
        attrs = ProjectAttributes(structural_changes=True)
        assert evaluate_trigger(RuleTrigger("structural_changes", Operator.EQUALS, "true"), attrs)

    def test_false_is_a_known_value(self):
        attrs = ProjectAttributes(structural_changes=False)
        assert evaluate_trigger(RuleTrigger("structural_changes", Operator.EQUALS, False), attrs)

    def test_numeric_string_equals_number(self):
        attrs = ProjectAttributes(square_footage=500)
        assert evaluate_trigger(RuleTrigger("square_footage", Operator.EQUALS, "500"), attrs)

    def test_enum_compared_case_insensitively(self):
        attrs = ProjectAttributes(project_type=ProjectType.ADU)
        assert evaluate_trigger(RuleTrigger("project_type", Operator.EQUALS, "adu"), attrs)

    def test_not_equals(self):
        attrs = ProjectAttributes(property_type="residential")
        assert evaluate_trigger(RuleTrigger("property_type", Operator.NOT_EQUALS, "commercial"), attrs)
        assert not evaluate_trigger(RuleTrigger("property_type", Operator.NOT_EQUALS, "Residential"), attrs)

    def test_in(self):
        attrs = ProjectAttributes(project_type=ProjectType.REMODEL)
        trigger = RuleTrigger("project_type", Operator.IN, ["ADDITION", "REMODEL"])
        assert evaluate_trigger(trigger, attrs)
        assert not evaluate_trigger(RuleTrigger("project_type", Operator.IN, ["ADU"]), attrs)

    def test_in_with_scalar(self):
        attrs = ProjectAttributes(stories=2)
        assert evaluate_trigger(RuleTrigger("stories", Operator.IN, 2), attrs)

    @pytest.mark.parametrize(
        "op, value, expected",
        [
            (Operator.GREATER_THAN, 200, True),
            (Operator.GREATER_THAN, 300, False),
            (Operator.GREATER_THAN_OR_EQUAL, 300, True),
            (Operator.LESS_THAN, 300, False),
            (Operator.LESS_THAN_OR_EQUAL, 300, True),
            (Operator.LESS_THAN, "400", True),
        ],
    )
    def test_ordered(self, op, value, expected):
        attrs = ProjectAttributes(square_footage=300)
        assert evaluate_trigger(RuleTrigger("square_footage", op, value), attrs) is expected

    def test_ordered_non_numeric_is_false(self):
        attrs = ProjectAttributes(property_type="residential")
        assert evaluate_trigger(RuleTrigger("property_type", Operator.GREATER_THAN, 5), attrs) is False

    def test_operator_given_as_string(self):
        attrs = ProjectAttributes(square_footage=300)
        assert evaluate_trigger(RuleTrigger("square_footage", "GREATER_THAN", 200), attrs)


class TestRuleScope:
    def test_empty_project_types_is_wildcard(self):
        rule = RequirementRule("Any", "Phoenix", _REQ)
        assert matches_project_type(rule, ProjectAttributes())

    def test_typed_rule_needs_known_type(self):
        rule = RequirementRule("ADU only", "Phoenix", _REQ, project_types=frozenset({ProjectType.ADU}))
        assert not matches_project_type(rule, ProjectAttributes())
        assert not matches_project_type(rule, ProjectAttributes(project_type=ProjectType.REMODEL))
        assert matches_project_type(rule, ProjectAttributes(project_type=ProjectType.ADU))

    def test_jurisdiction_case_insensitive(self):
        rule = RequirementRule("Any", "Phoenix", _REQ)
        assert in_jurisdiction(rule, " phoenix ")
        assert not in_jurisdiction(rule, "Mesa")

    def test_rule_fires_requires_all_triggers(self):
        rule = RequirementRule(
            "Big electrical", "Phoenix", _REQ,
            triggers=(
                RuleTrigger("electrical_work", Operator.EQUALS, True),
                RuleTrigger("electrical_service_amps", Operator.GREATER_THAN_OR_EQUAL, 200),
            ),
        )
        assert rule_fires(rule, ProjectAttributes(electrical_work=True, electrical_service_amps=400))
        assert not rule_fires(rule, ProjectAttributes(electrical_work=True, electrical_service_amps=100))
        # amps are cleared when there is no electrical work
        assert not rule_fires(rule, ProjectAttributes(electrical_work=False, electrical_service_amps=400))
