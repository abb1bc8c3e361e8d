"""Consultant roster: which professional disciplines a project needs.

Separate from the requirement checklist. The checklist lists deliverables
(plans, reports); this lists the people who produce them.

Profiles are tried in order and the first matching one is used:

    ADU               — fixed roster for accessory dwelling units
    small remodel     — remodels under 500 sq ft
    general           — everything else, with note amendments for large
                        lots, multi-story and large projects
"""

import logging
from dataclasses import dataclass, field

from citywise.core.types import EngineeringDiscipline, Operator, ProjectAttributes, ProjectType, RuleTrigger
from citywise.requirements.rules import triggers_pass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Condition:
    """Project-type scope AND triggers. Empty project_types = any type."""

    project_types: frozenset[ProjectType] = frozenset()
    triggers: tuple[RuleTrigger, ...] = ()

    def holds(self, attrs: ProjectAttributes) -> bool:
        if self.project_types and attrs.project_type not in self.project_types:
            return False
        return triggers_pass(self.triggers, attrs)


@dataclass(frozen=True)
class DisciplineRule:
    """Adds a discipline when any of its conditions holds (OR)."""

    discipline: str
    notes: str
    when: tuple[Condition, ...] = (Condition(),)


@dataclass(frozen=True)
class NoteAmendment:
    """Rewrites (or appends to) a discipline's notes when the condition holds."""

    discipline: str
    text: str
    when: Condition
    append: bool = False


@dataclass(frozen=True)
class EngineeringProfile:
    name: str
    applies: Condition
    rules: tuple[DisciplineRule, ...]
    amendments: tuple[NoteAmendment, ...] = field(default_factory=tuple)


def _sqft(op: Operator, value: float) -> RuleTrigger:
    return RuleTrigger("square_footage", op, value)


_ADU = frozenset({ProjectType.ADU})
_NEW = frozenset({ProjectType.NEW_CONSTRUCTION})
_ADDITION = frozenset({ProjectType.ADDITION})
_NEW_OR_ADDITION = frozenset({ProjectType.NEW_CONSTRUCTION, ProjectType.ADDITION})
_COMMERCIAL = Condition(triggers=(RuleTrigger("property_type", Operator.EQUALS, "commercial"),))

PROFILES: tuple[EngineeringProfile, ...] = (
    EngineeringProfile(
        name="adu",
        applies=Condition(project_types=_ADU),
        rules=(
            DisciplineRule("Architect of Record", "Licensed architect required for ADU design and permit stamping."),
            DisciplineRule("Structural Engineer", "Structural calculations and foundation design for the ADU structure."),
            DisciplineRule("MEP Engineer", "Electrical, plumbing, and HVAC plans for ADU utilities."),
            DisciplineRule(
                "Energy Code Compliance",
                "Energy efficiency calculations required for larger ADUs.",
                when=(Condition(triggers=(_sqft(Operator.GREATER_THAN, 800),)),),
            ),
        ),
    ),
    EngineeringProfile(
        name="small_remodel",
        applies=Condition(
            project_types=frozenset({ProjectType.REMODEL}),
            triggers=(_sqft(Operator.LESS_THAN, 500),),
        ),
        rules=(
            DisciplineRule(
                "Permit Plans",
                "Basic permit drawings showing proposed changes. May require structural review for wall modifications.",
            ),
            DisciplineRule(
                "MEP Review",
                "Electrical and plumbing review for permit compliance. Full MEP plans if relocating utilities.",
                when=(Condition(triggers=(_sqft(Operator.GREATER_THAN, 200),)),),
            ),
        ),
    ),
    EngineeringProfile(
        name="general",
        applies=Condition(),
        rules=(
            DisciplineRule(
                "Architect of Record",
                "Licensed architect required for design and permit stamping. "
                "Can be fulfilled by structural engineer for smaller projects.",
                when=(Condition(project_types=_NEW_OR_ADDITION),
                      Condition(triggers=(_sqft(Operator.GREATER_THAN, 1000),))),
            ),
            DisciplineRule(
                "Structural Engineer",
                "Structural calculations, foundation design, and PE stamp required. "
                "Can serve as Architect of Record for smaller projects.",
                when=(Condition(project_types=_NEW_OR_ADDITION),
                      Condition(triggers=(_sqft(Operator.GREATER_THAN, 500),))),
            ),
            DisciplineRule(
                "Civil Engineer",
                "Site plan, grading plan, drainage design, and utility connections required",
                when=(Condition(project_types=_NEW),
                      Condition(project_types=_ADDITION, triggers=(_sqft(Operator.GREATER_THAN, 1500),))),
            ),
            DisciplineRule(
                "MEP Engineer",
                "Mechanical, Electrical, and Plumbing plans with load calculations and equipment schedules",
                when=(Condition(triggers=(_sqft(Operator.GREATER_THAN, 500),)),
                      Condition(project_types=_NEW)),
            ),
            DisciplineRule(
                "Geotechnical Engineer",
                "Soils investigation required for foundation design and bearing capacity determination",
                when=(Condition(project_types=_NEW),),
            ),
            DisciplineRule(
                "Land Surveyor",
                "Boundary and topographic survey with existing conditions and setback verification",
                when=(Condition(project_types=_NEW),
                      Condition(project_types=_ADDITION, triggers=(_sqft(Operator.GREATER_THAN, 1000),))),
            ),
            DisciplineRule(
                "Fire Protection Engineer",
                "Fire sprinkler system design and fire alarm system plans required for commercial properties",
                when=(_COMMERCIAL,),
            ),
            DisciplineRule(
                "ADA Compliance Specialist",
                "Accessibility compliance review and design for commercial properties per ADA requirements",
                when=(_COMMERCIAL,),
            ),
        ),
        amendments=(
            NoteAmendment(
                "Civil Engineer",
                ". Large lot may require additional drainage studies and environmental impact considerations.",
                when=Condition(triggers=(RuleTrigger("lot_size", Operator.GREATER_THAN, 20000),)),
                append=True,
            ),
            NoteAmendment(
                "Structural Engineer",
                "Multi-story structural analysis required, including lateral load design and seismic/wind calculations",
                when=Condition(triggers=(RuleTrigger("stories", Operator.GREATER_THAN, 1),)),
            ),
            NoteAmendment(
                "MEP Engineer",
                "MEP plans with multi-story considerations, fire safety systems, and vertical distribution requirements",
                when=Condition(triggers=(RuleTrigger("stories", Operator.GREATER_THAN, 1),)),
            ),
            NoteAmendment(
                "Architect of Record",
                "Licensed architect required for large projects. Must coordinate all disciplines and provide sealed drawings.",
                when=Condition(triggers=(_sqft(Operator.GREATER_THAN, 2000),)),
            ),
        ),
    ),
)


def select_profile(attrs: ProjectAttributes) -> EngineeringProfile:
    for profile in PROFILES:
        if profile.applies.holds(attrs):
            return profile
    return PROFILES[-1]


def engineering_disciplines(attrs: ProjectAttributes) -> list[EngineeringDiscipline]:
    """Disciplines the project team needs, in profile order."""
    profile = select_profile(attrs)
    roster = [
        EngineeringDiscipline(discipline=rule.discipline, required=True, notes=rule.notes)
        for rule in profile.rules
        if any(cond.holds(attrs) for cond in rule.when)
    ]

    by_name = {d.discipline: d for d in roster}
    for amendment in profile.amendments:
        target = by_name.get(amendment.discipline)
        if target is None or not amendment.when.holds(attrs):
            continue
        target.notes = target.notes + amendment.text if amendment.append else amendment.text

    logger.debug(
        "Engineering profile %s: %d disciplines", profile.name, len(roster),
        extra={"project_type": attrs.project_type.value if attrs.project_type else None},
    )
    return roster
