"""Checklist pipeline — attributes → resolved, persisted requirements and tasks.

Steps:
    1. Load the jurisdiction's rule set and the parcel's zoning rules
    2. Load what the project already has stored
    3. Resolve
    4. Store new entries and create tasks for them

Runs in one transaction; any failure rolls everything back.
"""

import logging
import time

from sqlalchemy.ext.asyncio import AsyncSession

from citywise.config import settings
from citywise.core.types import ChecklistResult, ProjectAttributes
from citywise.requirements.resolver import resolve
from citywise.storage.db import get_session
from citywise.storage.repository import (
    load_project_requirements,
    load_rule_set,
    load_zoning_rules,
    persist_requirements,
    requirements_to_tasks,
)

logger = logging.getLogger(__name__)


async def generate_checklist(
    project_id: str,
    attrs: ProjectAttributes,
    zoning_district: str | None = None,
) -> ChecklistResult:
    """Resolve a project's checklist against stored rules and persist it.

    Raises:
        RuleSetUnavailable: The rule set or zoning table can't be loaded.
    """
    start = time.monotonic()
    jurisdiction = attrs.jurisdiction.strip()
    session: AsyncSession = await get_session()

    try:
        rules = await load_rule_set(session, jurisdiction) if jurisdiction else []
        zoning = []
        if zoning_district:
            zoning = await load_zoning_rules(session, jurisdiction or settings.default_jurisdiction, zoning_district)
        existing = await load_project_requirements(session, project_id)

        requirements = resolve(attrs, existing, zoning, rules=rules)
        added = await persist_requirements(session, project_id, requirements)
        tasks_created = await requirements_to_tasks(session, project_id)

        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()

    logger.info(
        "Checklist for %s: %d resolved, %d new, %d tasks",
        project_id, len(requirements), len(added), tasks_created,
        extra={
            "jurisdiction": jurisdiction,
            "step": "checklist",
            "duration_ms": round((time.monotonic() - start) * 1000),
        },
    )
    return ChecklistResult(
        project_id=project_id,
        requirements=requirements,
        added=added,
        tasks_created=tasks_created,
    )
