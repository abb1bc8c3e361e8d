"""Tests for the checklist pipeline (storage mocked)."""

import pytest
from unittest.mock import AsyncMock, patch

from citywise.core.errors import RuleSetUnavailable
from citywise.core.types import Discipline, Requirement
from citywise.requirements.catalog import phoenix_requirement_rules
from citywise.zoning.districts import PHOENIX

MODULE = "citywise.pipeline.checklist"


def _patches(session, rules=None, zoning=None, existing=None, added=None, tasks=0):
    return (
        patch(f"{MODULE}.get_session", new_callable=AsyncMock, return_value=session),
        patch(f"{MODULE}.load_rule_set", new_callable=AsyncMock,
              return_value=rules if rules is not None else phoenix_requirement_rules()),
        patch(f"{MODULE}.load_zoning_rules", new_callable=AsyncMock, return_value=zoning or []),
        patch(f"{MODULE}.load_project_requirements", new_callable=AsyncMock, return_value=existing or []),
        patch(f"{MODULE}.persist_requirements", new_callable=AsyncMock,
              side_effect=lambda s, pid, reqs: list(reqs) if added is None else added),
        patch(f"{MODULE}.requirements_to_tasks", new_callable=AsyncMock, return_value=tasks),
    )


class TestGenerateChecklist:
    @pytest.mark.asyncio
    async def test_resolves_persists_and_commits(self, adu_attrs):
        from citywise.pipeline.checklist import generate_checklist

        session = AsyncMock()
        p_session, p_rules, p_zoning, p_existing, p_persist, p_tasks = _patches(
            session, zoning=PHOENIX.districts["R-1-6"].rules, tasks=9,
        )
        with p_session, p_rules as mock_rules, p_zoning as mock_zoning, p_existing, p_persist, p_tasks:
            result = await generate_checklist("p1", adu_attrs, "R-1-6")

        mock_rules.assert_awaited_once_with(session, "Phoenix")
        mock_zoning.assert_awaited_once_with(session, "Phoenix", "R-1-6")
        assert result.project_id == "p1"
        assert result.requirements[0].name == "Topographic Survey"
        assert len(result.requirements) == 15
        assert result.added == result.requirements
        assert result.tasks_created == 9
        session.commit.assert_awaited_once()
        session.rollback.assert_not_awaited()
        session.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_existing_entries_suppress_rules(self, remodel_attrs):
        from citywise.pipeline.checklist import generate_checklist

        stored = [Requirement("Mechanical design", "By our HVAC contractor", Discipline.MECHANICAL, source="custom")]
        session = AsyncMock()
        patches = _patches(session, existing=stored, added=[])
        with patches[0], patches[1], patches[2] as mock_zoning, patches[3], patches[4], patches[5]:
            result = await generate_checklist("p2", remodel_attrs)

        mock_zoning.assert_not_awaited()
        assert [r.name for r in result.requirements] == ["Topographic Survey"]
        assert result.added == []

    @pytest.mark.asyncio
    async def test_rule_set_failure_rolls_back(self, adu_attrs):
        from citywise.pipeline.checklist import generate_checklist

        session = AsyncMock()
        patches = _patches(session)
        with patches[0], patches[1] as mock_rules, patches[2], patches[3], patches[4] as mock_persist, patches[5]:
            mock_rules.side_effect = RuleSetUnavailable("Phoenix", "no active requirements rules")
            with pytest.raises(RuleSetUnavailable):
                await generate_checklist("p3", adu_attrs)

        mock_persist.assert_not_awaited()
        session.commit.assert_not_awaited()
        session.rollback.assert_awaited_once()
        session.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_no_jurisdiction_skips_rules(self, adu_attrs):
        from citywise.pipeline.checklist import generate_checklist

        adu_attrs.jurisdiction = ""
        session = AsyncMock()
        patches = _patches(session, zoning=PHOENIX.districts["R-1-6"].rules)
        with patches[0], patches[1] as mock_rules, patches[2] as mock_zoning, patches[3], patches[4], patches[5]:
            result = await generate_checklist("p4", adu_attrs, "R-1-6")

        mock_rules.assert_not_awaited()
        mock_zoning.assert_awaited_once_with(session, "Phoenix", "R-1-6")
        assert all(r.source == "zoning" for r in result.requirements)
