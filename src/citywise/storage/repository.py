"""Rule, zoning and checklist persistence.

Functions take an open AsyncSession and never commit; the caller owns the
transaction. Rule loading failures surface as RuleSetUnavailable so a
broken database can't masquerade as "nothing required".
"""

import json
import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from citywise.core.errors import RuleSetUnavailable
from citywise.core.types import (
    Discipline,
    Operator,
    ProjectType,
    Requirement,
    RequirementRule,
    RuleTrigger,
    ZoningRule,
)
from citywise.requirements.catalog import PERMITS, REQUIREMENTS, RULE_SETS
from citywise.storage.models import (
    ProjectRequirementRow,
    RequirementRuleRow,
    RuleTriggerRow,
    TaskRow,
    ZoningRuleRow,
)
from citywise.zoning.districts import MUNICIPALITIES

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Row <-> domain conversion
# ---------------------------------------------------------------------------

def _decode_value(raw: str) -> Any:
    """Trigger values are stored JSON-encoded; bare legacy strings pass through."""
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        return raw


def _encode_value(value: Any) -> str:
    if isinstance(value, (set, frozenset, tuple)):
        value = sorted(value, key=str)
    return json.dumps(value)


def _project_types(values: list[str] | None) -> frozenset[ProjectType]:
    types = set()
    for v in values or []:
        try:
            types.add(ProjectType(v))
        except ValueError:
            logger.warning("Ignoring unknown project type %r", v)
    return frozenset(types)


def _discipline(value: str | None) -> Discipline:
    try:
        return Discipline((value or "").lower())
    except ValueError:
        return Discipline.GENERAL


def rule_from_row(row: RequirementRuleRow) -> RequirementRule:
    """Build a RequirementRule from its row.

    Raises:
        ValueError: Unknown operator or discipline in the stored rule.
    """
    return RequirementRule(
        name=row.name,
        jurisdiction=row.jurisdiction,
        requirement=Requirement(
            name=row.requirement_name,
            description=row.requirement_description or "",
            discipline=Discipline(row.discipline),
            required=row.required if row.required is not None else True,
            category=row.category or "",
        ),
        triggers=tuple(
            RuleTrigger(
                field=t.field,
                operator=Operator(t.operator),
                value=_decode_value(t.value),
                description=t.description or "",
            )
            for t in row.triggers
        ),
        project_types=_project_types(row.project_types),
        description=row.description or "",
        source_document=row.source_document or "",
    )


def rule_to_row(rule: RequirementRule, kind: str, position: int) -> RequirementRuleRow:
    req = rule.requirement
    return RequirementRuleRow(
        jurisdiction=rule.jurisdiction,
        kind=kind,
        name=rule.name,
        description=rule.description,
        source_document=rule.source_document,
        project_types=sorted(pt.value for pt in rule.project_types),
        position=position,
        active=True,
        requirement_name=req.name,
        requirement_description=req.description,
        discipline=req.discipline.value,
        required=req.required,
        category=req.category,
        triggers=[
            RuleTriggerRow(
                field=t.field,
                operator=Operator(t.operator).value,
                value=_encode_value(t.value),
                description=t.description,
                position=i,
            )
            for i, t in enumerate(rule.triggers)
        ],
    )


def zoning_rule_from_row(row: ZoningRuleRow) -> ZoningRule:
    return ZoningRule(
        category=row.category,
        name=row.name,
        value_number=row.value_number,
        value_text=row.value_text or "",
        unit=row.unit or "",
        project_types=tuple(sorted(_project_types(row.project_types), key=lambda pt: pt.value)),
        description=row.description or "",
    )


def requirement_from_row(row: ProjectRequirementRow) -> Requirement:
    return Requirement(
        name=row.name,
        description=row.description or "",
        discipline=_discipline(row.discipline),
        required=row.required if row.required is not None else True,
        source=row.source or "custom",
        category=row.category or "",
        value_number=row.value_number,
        value_text=row.value_text or "",
        unit=row.unit or "",
    )


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

async def load_rule_set(
    session: AsyncSession,
    jurisdiction: str,
    kind: str = REQUIREMENTS,
) -> list[RequirementRule]:
    """Active rules of one kind for a jurisdiction, in rule-table order.

    Raises:
        RuleSetUnavailable: Database error, malformed rule, or no active rules.
    """
    stmt = (
        select(RequirementRuleRow)
        .where(
            func.lower(RequirementRuleRow.jurisdiction) == jurisdiction.strip().lower(),
            RequirementRuleRow.kind == kind,
            RequirementRuleRow.active.is_(True),
        )
        .order_by(RequirementRuleRow.position, RequirementRuleRow.id)
    )
    try:
        result = await session.execute(stmt)
        rows = result.scalars().all()
        rules = [rule_from_row(row) for row in rows]
    except (SQLAlchemyError, OSError) as e:
        logger.error("Rule set load failed: %s", e, extra={"jurisdiction": jurisdiction})
        raise RuleSetUnavailable(jurisdiction, f"database error: {e}") from e
    except ValueError as e:
        raise RuleSetUnavailable(jurisdiction, f"malformed rule: {e}") from e

    if not rules:
        raise RuleSetUnavailable(jurisdiction, f"no active {kind} rules")
    logger.debug("Loaded %d %s rules", len(rules), kind, extra={"jurisdiction": jurisdiction})
    return rules


async def load_zoning_rules(
    session: AsyncSession,
    municipality: str,
    district_code: str,
) -> list[ZoningRule]:
    """Zoning rules of one district in stored order. Unknown district → [].

    Raises:
        RuleSetUnavailable: The zoning table can't be read.
    """
    stmt = (
        select(ZoningRuleRow)
        .where(
            func.lower(ZoningRuleRow.municipality) == municipality.strip().lower(),
            func.upper(ZoningRuleRow.district_code) == district_code.strip().upper(),
        )
        .order_by(ZoningRuleRow.position, ZoningRuleRow.id)
    )
    try:
        result = await session.execute(stmt)
        rows = result.scalars().all()
    except (SQLAlchemyError, OSError) as e:
        logger.error("Zoning rule load failed: %s", e, extra={"jurisdiction": municipality})
        raise RuleSetUnavailable(municipality, f"zoning table unavailable: {e}") from e
    return [zoning_rule_from_row(row) for row in rows]


async def load_project_requirements(session: AsyncSession, project_id: str) -> list[Requirement]:
    result = await session.execute(
        select(ProjectRequirementRow)
        .where(ProjectRequirementRow.project_id == project_id)
        .order_by(ProjectRequirementRow.id)
    )
    return [requirement_from_row(row) for row in result.scalars().all()]


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------

async def persist_requirements(
    session: AsyncSession,
    project_id: str,
    requirements: list[Requirement],
) -> list[Requirement]:
    """Store requirements whose names aren't stored for the project yet.

    Existing rows (including user edits) are never touched.
    Returns the newly stored requirements.
    """
    stored = {req.name.casefold() for req in await load_project_requirements(session, project_id)}
    added: list[Requirement] = []
    rows = []
    for req in requirements:
        key = req.name.casefold()
        if key in stored:
            continue
        stored.add(key)
        added.append(req)
        rows.append(ProjectRequirementRow(
            project_id=project_id,
            name=req.name,
            description=req.description,
            discipline=req.discipline.value,
            required=req.required,
            source=req.source,
            category=req.category,
            value_number=req.value_number,
            value_text=req.value_text,
            unit=req.unit,
        ))
    if rows:
        session.add_all(rows)
        await session.flush()
    logger.info("Stored %d new requirements for project %s", len(rows), project_id)
    return added


async def requirements_to_tasks(session: AsyncSession, project_id: str) -> int:
    """Create a 'Complete <name>' task for each required entry without one.

    Returns the number of tasks created.
    """
    requirements = await load_project_requirements(session, project_id)
    result = await session.execute(
        select(TaskRow.requirement_name).where(TaskRow.project_id == project_id)
    )
    have_task = {name.casefold() for name in result.scalars().all() if name}

    rows = [
        TaskRow(
            project_id=project_id,
            title=f"Complete {req.name}",
            description=req.description,
            status="pending",
            requirement_name=req.name,
        )
        for req in requirements
        if req.required and req.name.casefold() not in have_task
    ]
    if rows:
        session.add_all(rows)
        await session.flush()
    logger.info("Created %d tasks for project %s", len(rows), project_id)
    return len(rows)


async def seed_reference_data(session: AsyncSession) -> dict[str, int]:
    """Insert the built-in rule tables and zoning districts.

    A (jurisdiction, kind) rule set or a (municipality, district) zoning set
    that already has rows is left alone, so seeding is safe to re-run.
    """
    counts = {"rules": 0, "zoning_rules": 0}

    for builders in RULE_SETS.values():
        for kind in (REQUIREMENTS, PERMITS):
            builder = builders.get(kind)
            if builder is None:
                continue
            rules = builder()
            if not rules:
                continue
            jurisdiction = rules[0].jurisdiction
            existing = await session.execute(
                select(func.count(RequirementRuleRow.id)).where(
                    func.lower(RequirementRuleRow.jurisdiction) == jurisdiction.lower(),
                    RequirementRuleRow.kind == kind,
                )
            )
            if existing.scalar_one():
                logger.info("Rules already seeded: %s/%s", jurisdiction, kind)
                continue
            session.add_all([rule_to_row(rule, kind, i) for i, rule in enumerate(rules)])
            counts["rules"] += len(rules)

    for municipality in MUNICIPALITIES.values():
        for district in municipality.districts.values():
            existing = await session.execute(
                select(func.count(ZoningRuleRow.id)).where(
                    ZoningRuleRow.municipality == municipality.name,
                    ZoningRuleRow.district_code == district.code,
                )
            )
            if existing.scalar_one():
                continue
            session.add_all([
                ZoningRuleRow(
                    municipality=municipality.name,
                    district_code=district.code,
                    district_name=district.name,
                    category=rule.category,
                    name=rule.name,
                    value_number=rule.value_number,
                    value_text=rule.value_text,
                    unit=rule.unit,
                    project_types=[pt.value for pt in rule.project_types],
                    description=rule.description,
                    position=i,
                )
                for i, rule in enumerate(district.rules)
            ])
            counts["zoning_rules"] += len(district.rules)

    await session.flush()
    logger.info("Seeded %d rules, %d zoning rules", counts["rules"], counts["zoning_rules"])
    return counts
