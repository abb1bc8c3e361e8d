"""Pydantic request/response models for the CityWise API.

These are the API contract — decoupled from the internal domain dataclasses.
We bridge them using dataclasses.asdict() in the route handlers.
"""

from typing import Any

from pydantic import BaseModel, Field

from citywise.config import settings
from citywise.core.types import (
    DataSource,
    Discipline,
    ProjectAttributes,
    ProjectType,
    Requirement,
    ZoningRule,
)


# ---------------------------------------------------------------------------
# Attributes
# ---------------------------------------------------------------------------

class TranscriptTurnModel(BaseModel):
    role: str = Field(..., examples=["user"])
    content: str


class ExtractRequest(BaseModel):
    """Request body for POST /api/v1/attributes/extract."""

    project_type: str | None = Field(None, examples=["ADU"])
    jurisdiction: str | None = None
    form: dict[str, Any] | None = None
    transcript: list[TranscriptTurnModel] = []
    conversation: str = ""
    lot_size: float | None = Field(None, ge=0)


class AttributesModel(BaseModel):
    project_type: ProjectType | None = None
    jurisdiction: str = Field(default_factory=lambda: settings.default_jurisdiction)
    square_footage: float | None = Field(None, ge=0)
    structural_changes: bool = False
    plumbing_work: bool = False
    electrical_work: bool = False
    electrical_service_amps: float | None = Field(None, ge=0)
    lot_size: float | None = Field(None, ge=0)
    stories: int | None = Field(None, ge=0)
    property_type: str | None = None

    def to_domain(self) -> ProjectAttributes:
        return ProjectAttributes(**self.model_dump())


# ---------------------------------------------------------------------------
# Requirements
# ---------------------------------------------------------------------------

class RequirementModel(BaseModel):
    name: str
    description: str = ""
    discipline: Discipline
    required: bool = True
    source: str = "custom"
    category: str = ""
    value_number: float | None = None
    value_text: str = ""
    unit: str = ""

    def to_domain(self) -> Requirement:
        return Requirement(**self.model_dump())


class ZoningRuleModel(BaseModel):
    category: str
    name: str
    value_number: float | None = None
    value_text: str = ""
    unit: str = ""
    project_types: list[ProjectType] = []
    description: str = ""

    def to_domain(self) -> ZoningRule:
        data = self.model_dump()
        data["project_types"] = tuple(self.project_types)
        return ZoningRule(**data)


class ResolveRequest(BaseModel):
    """Request body for POST /api/v1/requirements/resolve.

    Zoning comes from explicit `zoning_rules` when given, else from the
    built-in district table via `zoning_district`.
    """

    attributes: AttributesModel
    existing_requirements: list[RequirementModel] = []
    zoning_district: str | None = Field(None, examples=["R-1-6"])
    zoning_rules: list[ZoningRuleModel] | None = None


class AttributesRequest(BaseModel):
    attributes: AttributesModel


class RequirementListResponse(BaseModel):
    jurisdiction: str
    project_type: ProjectType | None = None
    requirements: list[RequirementModel]
    count: int


class EngineeringDisciplineModel(BaseModel):
    discipline: str
    required: bool
    notes: str


class EngineeringResponse(BaseModel):
    disciplines: list[EngineeringDisciplineModel]


class ProjectChecklistRequest(BaseModel):
    attributes: AttributesModel
    zoning_district: str | None = None


class ChecklistResponse(BaseModel):
    project_id: str
    requirements: list[RequirementModel]
    added: list[RequirementModel]
    tasks_created: int


# ---------------------------------------------------------------------------
# Property report
# ---------------------------------------------------------------------------

class PropertyRequest(BaseModel):
    """Request body for POST /api/v1/property/reconcile."""

    apn: str = Field(..., min_length=3, max_length=30, examples=["123-45-678"])
    address: str | None = Field(None, max_length=200)


class ReconciledFieldModel(BaseModel):
    value: Any = None
    source: DataSource
    assessor_value: Any = None
    regrid_value: Any = None
    has_conflict: bool = False


class PropertyReportResponse(BaseModel):
    apn: str
    assessor_found: bool
    regrid_found: bool
    fields: dict[str, ReconciledFieldModel]
    conflicts: list[str]


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

class EdgeLabelRequest(BaseModel):
    """Boundary ring as [lng, lat] pairs; street_point likewise."""

    boundary: list[tuple[float, float]] = Field(..., min_length=3)
    street_point: tuple[float, float] | None = None
    zoning_district: str | None = Field(None, description="Zoning code for the buildable-area estimate, e.g. R-1-6")
    lot_width_ft: float | None = Field(None, gt=0)
    lot_depth_ft: float | None = Field(None, gt=0)


class EdgeLabelModel(BaseModel):
    edge_index: int
    side: str
    bearing: float


class BuildableAreaModel(BaseModel):
    lot_area_sqft: float
    buildable_width_ft: float
    buildable_depth_ft: float
    envelope_sqft: float
    max_footprint_sqft: float
    governing: str
    notes: list[str] = []


class EdgeLabelResponse(BaseModel):
    method: str
    labels: list[EdgeLabelModel]
    buildable_area: BuildableAreaModel | None = None


class ErrorResponse(BaseModel):
    detail: str
