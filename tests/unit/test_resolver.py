"""Tests for requirement resolution and the permit checklist."""

import pytest

from citywise.core.errors import RuleSetUnavailable
from citywise.core.types import (
    Discipline,
    Operator,
    ProjectAttributes,
    ProjectType,
    Requirement,
    RequirementRule,
    RuleTrigger,
    ZoningRule,
)
from citywise.requirements.catalog import STRUCTURAL_PLANS, TOPOGRAPHIC_SURVEY
from citywise.requirements.resolver import permit_checklist, resolve
from citywise.zoning.districts import PHOENIX

R16 = PHOENIX.districts["R-1-6"].rules


def _names(reqs: list[Requirement]) -> list[str]:
    return [r.name for r in reqs]


class TestScenarios:
    def test_adu_nine_entries_in_order(self, adu_attrs):
        assert _names(resolve(adu_attrs)) == [
            "Topographic Survey",
            "Structural Engineering Plans",
            "Soils Report",
            "Civil Engineering Plans",
            "Plumbing Plans",
            "Electrical Plans",
            "Electrical Service Upgrade",
            "HVAC Plans",
            "Energy Code Compliance",
        ]

    def test_remodel_300_sqft_gets_hvac(self, remodel_attrs):
        """HVAC gates on square_footage > 200, so 300 fires it."""
        assert _names(resolve(remodel_attrs)) == ["Topographic Survey", "HVAC Plans"]

    def test_remodel_at_200_sqft_boundary(self):
        attrs = ProjectAttributes(project_type=ProjectType.REMODEL, jurisdiction="Phoenix", square_footage=200)
        assert _names(resolve(attrs)) == ["Topographic Survey"]

    def test_unknown_size_skips_hvac(self):
        attrs = ProjectAttributes(project_type=ProjectType.REMODEL, jurisdiction="Phoenix")
        assert _names(resolve(attrs)) == ["Topographic Survey"]

    def test_service_upgrade_needs_200_amps(self):
        attrs = ProjectAttributes(
            project_type=ProjectType.REMODEL, jurisdiction="Phoenix",
            electrical_work=True, electrical_service_amps=100,
        )
        names = _names(resolve(attrs))
        assert "Electrical Plans" in names
        assert "Electrical Service Upgrade" not in names

    def test_addition_structural_without_flag(self):
        attrs = ProjectAttributes(project_type=ProjectType.ADDITION, jurisdiction="Phoenix")
        names = _names(resolve(attrs))
        assert names[:3] == ["Topographic Survey", "Structural Engineering Plans", "Soils Report"]
        assert "Energy Code Compliance" in names
        assert "Civil Engineering Plans" not in names


class TestProperties:
    def test_deterministic(self, adu_attrs):
        assert resolve(adu_attrs, [], R16) == resolve(adu_attrs, [], R16)

    def test_idempotent_re_resolution(self, adu_attrs):
        first = resolve(adu_attrs, [], R16)
        second = resolve(adu_attrs, first, R16)
        rule_derived = [r for r in second if r.source == "rule"]
        assert rule_derived == []
        first_disciplines = {r.discipline for r in first}
        assert {r.discipline for r in second} <= first_disciplines

    @pytest.mark.parametrize("project_type", list(ProjectType) + [None])
    def test_exactly_one_survey(self, project_type):
        attrs = ProjectAttributes(project_type=project_type, jurisdiction="Phoenix", square_footage=5000,
                                  structural_changes=True)
        names = _names(resolve(attrs, [TOPOGRAPHIC_SURVEY], R16))
        assert names.count("Topographic Survey") == 1
        assert names[0] == "Topographic Survey"

    def test_existing_structural_entry_wins(self, adu_attrs):
        custom = Requirement(
            name="Structural Engineering",
            description="Our engineer is already on it",
            discipline=Discipline.STRUCTURAL,
            source="custom",
        )
        result = resolve(adu_attrs, [custom])
        assert [r for r in result if r.discipline == Discipline.STRUCTURAL] == []

    def test_existing_entry_with_same_name_wins(self, adu_attrs):
        """A stored entry blocks a rule of the same name even under another discipline."""
        custom = Requirement(
            name="energy code compliance",
            description="Filed by the owner",
            discipline=Discipline.MECHANICAL,
            source="custom",
        )
        names = _names(resolve(adu_attrs, [custom]))
        assert "Energy Code Compliance" not in names
        # Mechanical is covered by the same entry
        assert "HVAC Plans" not in names
        assert "Plumbing Plans" in names
        assert "Electrical Service Upgrade" in names

    def test_names_unique(self, adu_attrs):
        names = _names(resolve(adu_attrs))
        assert len(names) == len(set(names))


class TestJurisdiction:
    def test_case_insensitive(self, adu_attrs):
        adu_attrs.jurisdiction = "PHOENIX"
        assert len(resolve(adu_attrs)) == 9

    def test_unknown_jurisdiction_raises(self, adu_attrs):
        adu_attrs.jurisdiction = "Tucson"
        with pytest.raises(RuleSetUnavailable, match="Tucson"):
            resolve(adu_attrs)

    def test_empty_jurisdiction_zoning_only(self, adu_attrs):
        adu_attrs.jurisdiction = ""
        result = resolve(adu_attrs, [], R16)
        assert all(r.source == "zoning" for r in result)
        assert "Topographic Survey" not in _names(result)

    def test_explicit_rules_filtered_by_jurisdiction(self, adu_attrs):
        rules = [
            RequirementRule("Mesa only", "Mesa", STRUCTURAL_PLANS),
        ]
        assert _names(resolve(adu_attrs, rules=rules)) == ["Topographic Survey"]


class TestZoning:
    def test_appended_after_rules_in_stored_order(self, adu_attrs):
        result = resolve(adu_attrs, [], R16)
        zoning = [r for r in result if r.source == "zoning"]
        assert _names(result)[:9] == _names(resolve(adu_attrs))
        # ADU: everything but the NEW_CONSTRUCTION-only minimum lot size
        assert _names(zoning) == [
            "Front Setback", "Rear Setback", "Side Setback",
            "Maximum Lot Coverage", "Maximum Height", "Parking Requirement",
        ]

    def test_zoning_carries_values(self, adu_attrs):
        front = next(r for r in resolve(adu_attrs, [], R16) if r.name == "Front Setback")
        assert front.category == "SETBACK"
        assert front.value_number == 20
        assert front.unit == "feet"

    def test_zoning_not_deduplicated_against_rules(self, adu_attrs):
        existing = [Requirement("Front Setback", "", Discipline.GENERAL, source="zoning")]
        names = _names(resolve(adu_attrs, existing, R16))
        assert "Front Setback" in names
        assert "Energy Code Compliance" in names

    def test_wildcard_zoning_rule(self, remodel_attrs):
        rule = ZoningRule("USE", "Permitted Use", value_text="Single-family dwelling")
        assert "Permitted Use" in _names(resolve(remodel_attrs, [], [rule]))

    def test_typed_rule_skipped_for_unknown_type(self):
        attrs = ProjectAttributes(jurisdiction="Phoenix")
        result = resolve(attrs, [], R16)
        assert [r for r in result if r.source == "zoning"] == []


class TestCustomRules:
    def test_and_of_triggers(self):
        rule = RequirementRule(
            name="Large ADU",
            jurisdiction="Phoenix",
            requirement=Requirement("Energy Model", "", Discipline.MECHANICAL),
            triggers=(RuleTrigger("square_footage", Operator.GREATER_THAN, 800),),
            project_types=frozenset({ProjectType.ADU}),
        )
        small = ProjectAttributes(project_type=ProjectType.ADU, jurisdiction="Phoenix", square_footage=600)
        large = ProjectAttributes(project_type=ProjectType.ADU, jurisdiction="Phoenix", square_footage=900)
        assert "Energy Model" not in _names(resolve(small, rules=[rule]))
        assert "Energy Model" in _names(resolve(large, rules=[rule]))


class TestPermitChecklist:
    def test_small_addition_otc(self):
        attrs = ProjectAttributes(project_type=ProjectType.ADDITION, jurisdiction="Phoenix", square_footage=400)
        assert _names(permit_checklist(attrs)) == ["Over-the-Counter Permit", "Building Permit"]

    def test_otc_boundary_inclusive(self):
        attrs = ProjectAttributes(project_type=ProjectType.ADDITION, jurisdiction="Phoenix", square_footage=500)
        assert "Over-the-Counter Permit" in _names(permit_checklist(attrs))
        assert "Plan Review" not in _names(permit_checklist(attrs))

    def test_large_addition_plan_review(self):
        attrs = ProjectAttributes(project_type=ProjectType.ADDITION, jurisdiction="Phoenix", square_footage=501)
        names = _names(permit_checklist(attrs))
        assert "Plan Review" in names
        assert "Over-the-Counter Permit" not in names

    def test_structural_addition_not_otc(self):
        attrs = ProjectAttributes(
            project_type=ProjectType.ADDITION, jurisdiction="Phoenix",
            square_footage=300, structural_changes=True,
        )
        names = _names(permit_checklist(attrs))
        assert "Over-the-Counter Permit" not in names
        assert "Structural Engineering" in names

    def test_adu(self, adu_attrs):
        assert _names(permit_checklist(adu_attrs)) == [
            "Plan Review",
            "Structural Engineering",
            "Property Survey",
            "Plumbing Permit",
            "Electrical Permit",
            "Building Permit",
        ]

    def test_unknown_jurisdiction(self, adu_attrs):
        adu_attrs.jurisdiction = "Flagstaff"
        with pytest.raises(RuleSetUnavailable):
            permit_checklist(adu_attrs)
