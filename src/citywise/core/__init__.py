"""Core domain types shared across all citywise modules."""

from citywise.core.errors import CityWiseError, RuleSetUnavailable
from citywise.core.types import (
    DataSource,
    Discipline,
    Operator,
    ProjectAttributes,
    ProjectType,
    PropertyReport,
    RawIntake,
    ReconciledField,
    Requirement,
    RequirementRule,
    RuleTrigger,
    TranscriptTurn,
    ZoningRule,
)

__all__ = [
    "CityWiseError",
    "DataSource",
    "Discipline",
    "Operator",
    "ProjectAttributes",
    "ProjectType",
    "PropertyReport",
    "RawIntake",
    "ReconciledField",
    "Requirement",
    "RequirementRule",
    "RuleSetUnavailable",
    "RuleTrigger",
    "TranscriptTurn",
    "ZoningRule",
]
