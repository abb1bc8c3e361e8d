"""Requirement resolution: ProjectAttributes → ordered checklist.

Pure functions, no I/O. Output order:

    1. Topographic Survey (always, when the jurisdiction is known)
    2. Rule-derived requirements, in rule-table order
    3. Zoning-derived entries, in stored order

A rule-derived requirement is dropped when the caller already has an entry
of the same discipline or the same name, so re-running resolution against persisted
requirements (including ones a user entered by hand) adds nothing new.
"""

import logging
from collections.abc import Iterable

import mlflow
from mlflow.entities import SpanType

from citywise.core.types import ProjectAttributes, Requirement, RequirementRule, ZoningRule
from citywise.requirements.catalog import PERMITS, REQUIREMENTS, TOPOGRAPHIC_SURVEY, get_rule_set
from citywise.requirements.rules import in_jurisdiction, rule_fires
from citywise.zoning.districts import applicable_zoning_rules, zoning_requirement

logger = logging.getLogger(__name__)


def _covered(existing: Iterable[Requirement]) -> tuple[set, set[str]]:
    """Disciplines and casefolded names already claimed by stored entries."""
    disciplines: set = set()
    names: set[str] = set()
    for req in existing:
        # Survey and zoning entries are emitted independently and claim nothing
        if req.source in ("baseline", "zoning") or req.name.casefold() == TOPOGRAPHIC_SURVEY.name.casefold():
            continue
        disciplines.add(req.discipline)
        names.add(req.name.casefold())
    return disciplines, names


def fired_requirements(
    attrs: ProjectAttributes,
    rules: list[RequirementRule],
) -> list[Requirement]:
    """Requirements of every firing rule, first occurrence of each name only."""
    seen: set[str] = set()
    out: list[Requirement] = []
    for rule in rules:
        if not in_jurisdiction(rule, attrs.jurisdiction) or not rule_fires(rule, attrs):
            continue
        key = rule.requirement.name.casefold()
        if key in seen:
            continue
        seen.add(key)
        out.append(rule.requirement)
    return out


@mlflow.trace(name="resolve_requirements", span_type=SpanType.CHAIN)
def resolve(
    attrs: ProjectAttributes,
    existing_requirements: Iterable[Requirement] = (),
    zoning_rules: Iterable[ZoningRule] = (),
    rules: list[RequirementRule] | None = None,
) -> list[Requirement]:
    """Build the requirement checklist for a project.

    Args:
        attrs: Normalised project attributes.
        existing_requirements: Requirements already stored for the project.
        zoning_rules: Rules of the parcel's zoning district.
        rules: Pre-loaded rule set (e.g. from the database). Defaults to the
            built-in table for attrs.jurisdiction.

    Returns:
        Ordered requirements. Only zoning entries when the jurisdiction is
        empty.

    Raises:
        RuleSetUnavailable: The jurisdiction's rule set can't be loaded.
    """
    jurisdiction = attrs.jurisdiction.strip()
    result: list[Requirement] = []

    if jurisdiction:
        if rules is None:
            rules = get_rule_set(jurisdiction, REQUIREMENTS)
        result.append(TOPOGRAPHIC_SURVEY)

        covered_disciplines, covered_names = _covered(existing_requirements)
        for req in fired_requirements(attrs, rules):
            if req.discipline in covered_disciplines:
                logger.debug("Skipping %s: %s already covered", req.name, req.discipline.value)
                continue
            if req.name.casefold() in covered_names:
                logger.debug("Skipping %s: already on the project", req.name)
                continue
            result.append(req)

    zoning = applicable_zoning_rules(list(zoning_rules), attrs.project_type)
    result.extend(zoning_requirement(zr) for zr in zoning)

    logger.info(
        "Resolved %d requirements (%d zoning)",
        len(result), len(zoning),
        extra={
            "jurisdiction": jurisdiction,
            "project_type": attrs.project_type.value if attrs.project_type else None,
        },
    )
    return result


@mlflow.trace(name="permit_checklist", span_type=SpanType.CHAIN)
def permit_checklist(
    attrs: ProjectAttributes,
    rules: list[RequirementRule] | None = None,
) -> list[Requirement]:
    """Permits and reviews the city will require for a project.

    Raises:
        RuleSetUnavailable: No permit rules for attrs.jurisdiction.
    """
    if rules is None:
        rules = get_rule_set(attrs.jurisdiction, PERMITS)
    return fired_requirements(attrs, rules)
