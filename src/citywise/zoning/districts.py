"""Zoning district reference data and project-type filtering of zoning rules."""

import logging

from citywise.core.types import (
    Discipline,
    Municipality,
    ProjectType,
    Requirement,
    ZoningDistrict,
    ZoningRule,
)

logger = logging.getLogger(__name__)

_ALL_BUILDING = (ProjectType.ADDITION, ProjectType.REMODEL, ProjectType.ADU, ProjectType.NEW_CONSTRUCTION)
_NO_ADU = (ProjectType.ADDITION, ProjectType.REMODEL, ProjectType.NEW_CONSTRUCTION)
_NEW = (ProjectType.NEW_CONSTRUCTION,)


def _setback(side: str, feet: float, types: tuple[ProjectType, ...], description: str = "") -> ZoningRule:
    return ZoningRule(
        category="SETBACK",
        name=f"{side} Setback",
        value_number=feet,
        unit="feet",
        project_types=types,
        description=description,
    )


PHOENIX = Municipality(
    name="Phoenix",
    state="Arizona",
    districts={
        "R-1-6": ZoningDistrict(
            code="R-1-6",
            name="Single-Family Residential",
            description="Single-family residential district with minimum lot size of 6,000 square feet",
            rules=[
                _setback("Front", 20, _ALL_BUILDING, "Minimum 20-foot setback from front property line"),
                _setback("Rear", 15, _ALL_BUILDING, "Minimum 15-foot setback from rear property line"),
                _setback("Side", 5, _ALL_BUILDING, "Minimum 5-foot setback from side property lines"),
                ZoningRule("LOT_SIZE", "Minimum Lot Size", 6000, unit="square feet", project_types=_NEW,
                           description="Minimum lot size of 6,000 square feet for new construction"),
                ZoningRule("LOT_COVERAGE", "Maximum Lot Coverage", 65, unit="percent", project_types=_ALL_BUILDING,
                           description="Maximum 65% of lot can be covered by structures"),
                ZoningRule("HEIGHT", "Maximum Height", 30, unit="feet", project_types=_ALL_BUILDING,
                           description="Maximum structure height of 30 feet"),
                ZoningRule("PARKING", "Parking Requirement", value_text="2 spaces per dwelling unit",
                           project_types=(ProjectType.ADU, ProjectType.NEW_CONSTRUCTION),
                           description="Two off-street parking spaces required per dwelling unit"),
            ],
        ),
        "R-2": ZoningDistrict(
            code="R-2",
            name="Two-Family Residential",
            description="Two-family residential district allowing duplexes",
            rules=[
                _setback("Front", 20, _NO_ADU),
                _setback("Rear", 15, _NO_ADU),
                _setback("Side", 5, _NO_ADU),
                ZoningRule("LOT_SIZE", "Minimum Lot Size", 5000, unit="square feet", project_types=_NEW),
                ZoningRule("HEIGHT", "Maximum Height", 30, unit="feet", project_types=_NO_ADU),
                ZoningRule("PARKING", "Parking Requirement", value_text="2 spaces per dwelling unit",
                           project_types=_NEW),
            ],
        ),
        "R-3": ZoningDistrict(
            code="R-3",
            name="Multi-Family Residential",
            description="Multi-family residential district allowing apartments and townhomes",
            rules=[
                _setback("Front", 15, (ProjectType.NEW_CONSTRUCTION, ProjectType.ADDITION)),
                _setback("Rear", 10, (ProjectType.NEW_CONSTRUCTION, ProjectType.ADDITION)),
                ZoningRule("HEIGHT", "Maximum Height", 45, unit="feet",
                           project_types=(ProjectType.NEW_CONSTRUCTION, ProjectType.ADDITION)),
                ZoningRule("PARKING", "Parking Requirement", value_text="1.5 spaces per unit", project_types=_NEW),
            ],
        ),
    },
)

MUNICIPALITIES: dict[str, Municipality] = {"phoenix": PHOENIX}


def _normalize_code(code: str) -> str:
    """'r1-6', 'R 1 6', 'R-1-6' → 'R16' for lookup."""
    return "".join(ch for ch in code.upper() if ch.isalnum())


def get_district(code: str, jurisdiction: str = "Phoenix") -> ZoningDistrict | None:
    """Look up a zoning district by code, tolerant of case and punctuation.

    Returns None for unknown jurisdictions or codes. Callers then resolve
    with no zoning rules.
    """
    municipality = MUNICIPALITIES.get(jurisdiction.strip().casefold())
    if municipality is None or not code:
        return None
    wanted = _normalize_code(code)
    for district_code, district in municipality.districts.items():
        if _normalize_code(district_code) == wanted:
            return district
    logger.info("Unknown zoning district %s", code, extra={"jurisdiction": jurisdiction})
    return None


def applicable_zoning_rules(rules: list[ZoningRule], project_type: ProjectType | None) -> list[ZoningRule]:
    """Zoning rules that apply to a project type, in stored order.

    A rule with no project_types applies to everything. A rule scoped to
    specific types does not apply to a project whose type is unknown.
    """
    return [
        r for r in rules
        if not r.project_types or (project_type is not None and project_type in r.project_types)
    ]


def format_zoning_value(rule: ZoningRule) -> str:
    """'20 feet', '65 percent', '2 spaces per dwelling unit'."""
    if rule.value_number is not None:
        value = f"{rule.value_number:g}"
        return f"{value} {rule.unit}".strip()
    return rule.value_text


def zoning_requirement(rule: ZoningRule) -> Requirement:
    """Convert a zoning rule into a checklist entry."""
    value = format_zoning_value(rule)
    description = rule.description or (f"{rule.name}: {value}" if value else rule.name)
    return Requirement(
        name=rule.name,
        description=description,
        discipline=Discipline.GENERAL,
        source="zoning",
        category=rule.category,
        value_number=rule.value_number,
        value_text=rule.value_text,
        unit=rule.unit,
    )


def setbacks_from_rules(rules: list[ZoningRule]) -> dict[str, float]:
    """Setback distances by side: {'front': 20.0, 'rear': 15.0, 'side': 5.0}."""
    result: dict[str, float] = {}
    for rule in rules:
        if rule.category != "SETBACK" or rule.value_number is None:
            continue
        side = rule.name.lower().replace("setback", "").strip()
        result[side] = rule.value_number
    return result


def max_lot_coverage_pct(rules: list[ZoningRule]) -> float | None:
    for rule in rules:
        if rule.category == "LOT_COVERAGE" and rule.value_number is not None:
            return rule.value_number
    return None
