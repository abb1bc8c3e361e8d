"""Built-in rule tables, keyed by jurisdiction.

Two kinds of rule set per jurisdiction:

    requirements — engineering/design deliverables (structural plans, soils
                   report, ...). Drives the project checklist.
    permits      — which permits and reviews the city will issue.

Rules are data. Thresholds are read from settings when a table is built, so
an env override (e.g. HVAC_PLANS_MIN_SQFT) takes effect without code edits.
Adding a jurisdiction means registering another builder in RULE_SETS.
"""

from collections.abc import Callable

from citywise.config import settings
from citywise.core.errors import RuleSetUnavailable
from citywise.core.types import (
    Discipline,
    Operator,
    ProjectType,
    Requirement,
    RequirementRule,
    RuleTrigger,
)

REQUIREMENTS = "requirements"
PERMITS = "permits"

# Emitted for every project with a known jurisdiction, ahead of any rule output
TOPOGRAPHIC_SURVEY = Requirement(
    name="Topographic Survey",
    description="Required boundary and topographic survey showing property lines, easements, and existing improvements",
    discipline=Discipline.CIVIL,
    source="baseline",
)

# ---------------------------------------------------------------------------
# Phoenix: engineering deliverables
# ---------------------------------------------------------------------------

STRUCTURAL_PLANS = Requirement(
    name="Structural Engineering Plans",
    description="Sealed structural plans for foundations, framing, and load-bearing elements",
    discipline=Discipline.STRUCTURAL,
)
SOILS_REPORT = Requirement(
    name="Soils Report",
    description="Geotechnical investigation for foundation design",
    discipline=Discipline.CIVIL,
)
CIVIL_PLANS = Requirement(
    name="Civil Engineering Plans",
    description="Site grading, drainage, and utility connection plans",
    discipline=Discipline.CIVIL,
)
PLUMBING_PLANS = Requirement(
    name="Plumbing Plans",
    description="Water supply, drainage, and venting plans showing fixture locations and pipe sizing",
    discipline=Discipline.PLUMBING,
)
ELECTRICAL_PLANS = Requirement(
    name="Electrical Plans",
    description="Single-line diagram, panel schedule, and lighting/receptacle layout",
    discipline=Discipline.ELECTRICAL,
)
SERVICE_UPGRADE = Requirement(
    name="Electrical Service Upgrade",
    description="Utility coordination for new 200A service entrance",
    discipline=Discipline.ELECTRICAL,
)
HVAC_PLANS = Requirement(
    name="HVAC Plans",
    description="Heating, ventilation, and air conditioning system design with Manual J load calculations",
    discipline=Discipline.MECHANICAL,
)
ENERGY_CODE = Requirement(
    name="Energy Code Compliance",
    description="REScheck or COMcheck analysis showing compliance with 2021 IECC",
    discipline=Discipline.GENERAL,
)

_STRUCTURAL = RuleTrigger("structural_changes", Operator.EQUALS, True, "Structural changes present")
_PLUMBING = RuleTrigger("plumbing_work", Operator.EQUALS, True, "Plumbing work involved")
_ELECTRICAL = RuleTrigger("electrical_work", Operator.EQUALS, True, "Electrical work involved")


def phoenix_requirement_rules() -> list[RequirementRule]:
    """Phoenix engineering-deliverable rules, in checklist order."""
    j = "Phoenix"
    addition_or_adu = frozenset({ProjectType.ADDITION, ProjectType.ADU})
    return [
        RequirementRule(
            name="Structural Changes Require Structural Plans",
            jurisdiction=j,
            requirement=STRUCTURAL_PLANS,
            triggers=(_STRUCTURAL,),
        ),
        RequirementRule(
            name="Additions and ADUs Require Structural Plans",
            jurisdiction=j,
            requirement=STRUCTURAL_PLANS,
            project_types=addition_or_adu,
        ),
        RequirementRule(
            name="Structural Changes Require Soils Report",
            jurisdiction=j,
            requirement=SOILS_REPORT,
            triggers=(_STRUCTURAL,),
        ),
        RequirementRule(
            name="Additions and ADUs Require Soils Report",
            jurisdiction=j,
            requirement=SOILS_REPORT,
            project_types=addition_or_adu,
        ),
        RequirementRule(
            name="Site Work Requires Civil Plans",
            jurisdiction=j,
            requirement=CIVIL_PLANS,
            project_types=frozenset({ProjectType.NEW_CONSTRUCTION, ProjectType.ADU}),
        ),
        RequirementRule(
            name="Plumbing Work Requires Plumbing Plans",
            jurisdiction=j,
            requirement=PLUMBING_PLANS,
            triggers=(_PLUMBING,),
        ),
        RequirementRule(
            name="Electrical Work Requires Electrical Plans",
            jurisdiction=j,
            requirement=ELECTRICAL_PLANS,
            triggers=(_ELECTRICAL,),
        ),
        RequirementRule(
            name="Large Service Requires Service Upgrade",
            jurisdiction=j,
            requirement=SERVICE_UPGRADE,
            triggers=(
                _ELECTRICAL,
                RuleTrigger(
                    "electrical_service_amps", Operator.GREATER_THAN_OR_EQUAL,
                    settings.service_upgrade_min_amps,
                    f"Service of {settings.service_upgrade_min_amps:g}A or more",
                ),
            ),
        ),
        RequirementRule(
            name="Conditioned Space Requires HVAC Plans",
            jurisdiction=j,
            requirement=HVAC_PLANS,
            triggers=(
                RuleTrigger(
                    "square_footage", Operator.GREATER_THAN, settings.hvac_plans_min_sqft,
                    f"Square footage greater than {settings.hvac_plans_min_sqft:g}",
                ),
            ),
        ),
        RequirementRule(
            name="New Conditioned Space Requires Energy Compliance",
            jurisdiction=j,
            requirement=ENERGY_CODE,
            project_types=frozenset({ProjectType.ADDITION, ProjectType.ADU, ProjectType.NEW_CONSTRUCTION}),
        ),
    ]


# ---------------------------------------------------------------------------
# Phoenix: permit checklist
# ---------------------------------------------------------------------------

PLAN_REVIEW = Requirement(
    name="Plan Review",
    description="Full architectural plan review by Phoenix P&D staff. Required when projects exceed thresholds or involve complex construction.",
    discipline=Discipline.GENERAL,
    category="PERMIT",
)
OTC_PERMIT = Requirement(
    name="Over-the-Counter Permit",
    description="Express permit issued same-day for simple projects meeting prescriptive code requirements.",
    discipline=Discipline.GENERAL,
    category="PERMIT",
)
STRUCTURAL_ENGINEERING = Requirement(
    name="Structural Engineering",
    description="Sealed structural calculations and plans from Arizona-licensed structural engineer.",
    discipline=Discipline.STRUCTURAL,
    category="ENGINEERING",
)
BUILDING_PERMIT = Requirement(
    name="Building Permit",
    description="Standard building permit issued after plan approval.",
    discipline=Discipline.GENERAL,
    category="PERMIT",
)
PLUMBING_PERMIT = Requirement(
    name="Plumbing Permit",
    description="Required when moving or adding plumbing fixtures.",
    discipline=Discipline.PLUMBING,
    category="PERMIT",
)
ELECTRICAL_PERMIT = Requirement(
    name="Electrical Permit",
    description="Required when adding or modifying electrical systems.",
    discipline=Discipline.ELECTRICAL,
    category="PERMIT",
)
PROPERTY_SURVEY = Requirement(
    name="Property Survey",
    description="Professional land survey showing property boundaries and setbacks.",
    discipline=Discipline.CIVIL,
    category="SURVEY",
)


def phoenix_permit_rules() -> list[RequirementRule]:
    """Phoenix permit/review rules, in checklist order."""
    j = "Phoenix"
    otc_max = settings.otc_permit_max_sqft
    adu = frozenset({ProjectType.ADU})
    trades = frozenset({ProjectType.ADDITION, ProjectType.REMODEL, ProjectType.ADU})
    return [
        RequirementRule(
            name="Addition Over 500 SF",
            jurisdiction=j,
            requirement=PLAN_REVIEW,
            project_types=frozenset({ProjectType.ADDITION}),
            triggers=(
                RuleTrigger("square_footage", Operator.GREATER_THAN, otc_max,
                            f"Square footage greater than {otc_max:g}"),
            ),
            description=f"Additions exceeding {otc_max:g} SF require plan review.",
        ),
        RequirementRule(
            name="Small Addition OTC",
            jurisdiction=j,
            requirement=OTC_PERMIT,
            project_types=frozenset({ProjectType.ADDITION}),
            triggers=(
                RuleTrigger("square_footage", Operator.LESS_THAN_OR_EQUAL, otc_max,
                            f"Square footage {otc_max:g} or less"),
                RuleTrigger("structural_changes", Operator.EQUALS, False, "No structural changes"),
            ),
            description=f"Single level additions of {otc_max:g} SF or less with no structural changes qualify for OTC.",
        ),
        RequirementRule(
            name="Structural Changes Require Engineering",
            jurisdiction=j,
            requirement=STRUCTURAL_ENGINEERING,
            project_types=frozenset({ProjectType.ADDITION, ProjectType.REMODEL}),
            triggers=(_STRUCTURAL,),
            description="Any structural work requires structural engineering.",
        ),
        RequirementRule(
            name="ADU Requires Plan Review",
            jurisdiction=j,
            requirement=PLAN_REVIEW,
            project_types=adu,
            description="All ADUs require full plan review.",
        ),
        RequirementRule(
            name="ADU Requires Structural Engineering",
            jurisdiction=j,
            requirement=STRUCTURAL_ENGINEERING,
            project_types=adu,
            description="ADUs require structural engineering.",
        ),
        RequirementRule(
            name="ADU Requires Survey",
            jurisdiction=j,
            requirement=PROPERTY_SURVEY,
            project_types=adu,
            description="ADUs require property survey.",
        ),
        RequirementRule(
            name="Plumbing Work Requires Permit",
            jurisdiction=j,
            requirement=PLUMBING_PERMIT,
            project_types=trades,
            triggers=(_PLUMBING,),
            description="Moving or adding plumbing fixtures requires permit.",
        ),
        RequirementRule(
            name="Electrical Work Requires Permit",
            jurisdiction=j,
            requirement=ELECTRICAL_PERMIT,
            project_types=trades,
            triggers=(_ELECTRICAL,),
            description="Adding or modifying electrical requires permit.",
        ),
        RequirementRule(
            name="Construction Requires Building Permit",
            jurisdiction=j,
            requirement=BUILDING_PERMIT,
            project_types=frozenset({
                ProjectType.ADDITION, ProjectType.REMODEL, ProjectType.ADU,
                ProjectType.NEW_CONSTRUCTION, ProjectType.GARAGE_CONVERSION, ProjectType.PATIO_COVER,
            }),
            description="Building work requires a building permit once plans are approved.",
        ),
    ]


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

RULE_SETS: dict[str, dict[str, Callable[[], list[RequirementRule]]]] = {
    "phoenix": {
        REQUIREMENTS: phoenix_requirement_rules,
        PERMITS: phoenix_permit_rules,
    },
}


def known_jurisdictions() -> list[str]:
    return sorted(RULE_SETS)


def get_rule_set(jurisdiction: str, kind: str = REQUIREMENTS) -> list[RequirementRule]:
    """Load the built-in rules of one kind for a jurisdiction.

    Raises:
        RuleSetUnavailable: No table is registered, or the table is empty.
    """
    builders = RULE_SETS.get(jurisdiction.strip().casefold())
    if builders is None:
        raise RuleSetUnavailable(jurisdiction, "no rule set registered")
    builder = builders.get(kind)
    if builder is None:
        raise RuleSetUnavailable(jurisdiction, f"no {kind} rules registered")
    rules = builder()
    if not rules:
        raise RuleSetUnavailable(jurisdiction, f"{kind} rule set is empty")
    return rules
