"""API route handlers for CityWise.

POST /api/v1/attributes/extract              — intake → project attributes
POST /api/v1/requirements/resolve            — attributes → requirement checklist
POST /api/v1/requirements/permits            — attributes → permit checklist
POST /api/v1/requirements/engineering        — attributes → consultant roster
POST /api/v1/projects/{project_id}/checklist — resolve against stored rules and persist
POST /api/v1/property/reconcile              — APN → reconciled property report
POST /api/v1/parcels/edge-labels             — boundary → front/rear/left/right (+ buildable area)
"""

import asyncio
import logging
from dataclasses import asdict

from fastapi import APIRouter, HTTPException

from citywise.api.schemas import (
    AttributesModel,
    AttributesRequest,
    ChecklistResponse,
    EdgeLabelRequest,
    EdgeLabelResponse,
    EngineeringResponse,
    ErrorResponse,
    ExtractRequest,
    ProjectChecklistRequest,
    PropertyReportResponse,
    PropertyRequest,
    RequirementListResponse,
    ResolveRequest,
)
from citywise.config import settings
from citywise.core.errors import RuleSetUnavailable
from citywise.core.types import ProjectAttributes, RawIntake, Requirement, TranscriptTurn
from citywise.geometry.edges import estimate_buildable_area, label_edges
from citywise.pipeline.checklist import generate_checklist
from citywise.pipeline.property_report import build_property_report
from citywise.requirements.engineering import engineering_disciplines
from citywise.requirements.extractor import extract_attributes
from citywise.requirements.resolver import permit_checklist, resolve
from citywise.zoning.districts import get_district

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["requirements"])

REPORT_TIMEOUT = 60  # seconds

_UNAVAILABLE = {503: {"model": ErrorResponse, "description": "Rule set unavailable"}}


def _requirement_list(attrs: ProjectAttributes, requirements: list[Requirement]) -> RequirementListResponse:
    return RequirementListResponse(
        jurisdiction=attrs.jurisdiction,
        project_type=attrs.project_type,
        requirements=[asdict(r) for r in requirements],
        count=len(requirements),
    )


@router.post("/attributes/extract", response_model=AttributesModel)
async def extract(request: ExtractRequest):
    """Normalise a form submission and/or conversation into project attributes."""
    intake = RawIntake(
        project_type=request.project_type,
        jurisdiction=request.jurisdiction,
        form=request.form,
        transcript=[TranscriptTurn(role=t.role, content=t.content) for t in request.transcript],
        conversation=request.conversation,
        lot_size=request.lot_size,
    )
    return AttributesModel(**asdict(extract_attributes(intake)))


@router.post("/requirements/resolve", response_model=RequirementListResponse, responses=_UNAVAILABLE)
async def resolve_requirements(request: ResolveRequest):
    """Resolve the requirement checklist against the built-in rule tables."""
    attrs = request.attributes.to_domain()

    if request.zoning_rules is not None:
        zoning = [zr.to_domain() for zr in request.zoning_rules]
    elif request.zoning_district:
        district = get_district(request.zoning_district, attrs.jurisdiction or settings.default_jurisdiction)
        zoning = district.rules if district else []
    else:
        zoning = []

    try:
        requirements = resolve(
            attrs,
            [r.to_domain() for r in request.existing_requirements],
            zoning,
        )
    except RuleSetUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    return _requirement_list(attrs, requirements)


@router.post("/requirements/permits", response_model=RequirementListResponse, responses=_UNAVAILABLE)
async def permits(request: AttributesRequest):
    attrs = request.attributes.to_domain()
    try:
        requirements = permit_checklist(attrs)
    except RuleSetUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    return _requirement_list(attrs, requirements)


@router.post("/requirements/engineering", response_model=EngineeringResponse)
async def engineering(request: AttributesRequest):
    disciplines = engineering_disciplines(request.attributes.to_domain())
    return EngineeringResponse(disciplines=[asdict(d) for d in disciplines])


@router.post(
    "/projects/{project_id}/checklist",
    response_model=ChecklistResponse,
    responses={
        **_UNAVAILABLE,
        502: {"model": ErrorResponse, "description": "Storage error"},
    },
)
async def project_checklist(project_id: str, request: ProjectChecklistRequest):
    """Resolve against the stored rule tables and persist new entries and tasks."""
    try:
        result = await generate_checklist(
            project_id, request.attributes.to_domain(), request.zoning_district,
        )
    except RuleSetUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.exception("Checklist generation failed for project %s", project_id)
        raise HTTPException(status_code=502, detail=str(e))
    return ChecklistResponse(**asdict(result))


@router.post(
    "/property/reconcile",
    response_model=PropertyReportResponse,
    responses={
        502: {"model": ErrorResponse, "description": "Lookup error"},
        504: {"model": ErrorResponse, "description": "Lookup timeout"},
    },
)
async def reconcile_report(request: PropertyRequest):
    """Fetch assessor and Regrid data for a parcel and reconcile them."""
    try:
        report = await asyncio.wait_for(
            build_property_report(request.apn, request.address),
            timeout=REPORT_TIMEOUT,
        )
    except asyncio.TimeoutError:
        raise HTTPException(status_code=504, detail=f"Property lookup timed out after {REPORT_TIMEOUT}s")
    except Exception as e:
        logger.exception("Property report error for APN: %s", request.apn)
        raise HTTPException(status_code=502, detail=str(e))

    return PropertyReportResponse(
        apn=report.apn,
        assessor_found=report.assessor_found,
        regrid_found=report.regrid_found,
        fields={name: asdict(f) for name, f in report.fields.items()},
        conflicts=report.conflicts(),
    )


@router.post("/parcels/edge-labels", response_model=EdgeLabelResponse)
async def edge_labels(request: EdgeLabelRequest):
    """Label parcel edges; with lot dimensions, also estimate the buildable area."""
    try:
        labels = label_edges(request.boundary, request.street_point)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    buildable = None
    if request.lot_width_ft is not None and request.lot_depth_ft is not None:
        zoning = []
        if request.zoning_district:
            district = get_district(request.zoning_district, settings.default_jurisdiction)
            zoning = district.rules if district else []
        area = estimate_buildable_area(request.lot_width_ft, request.lot_depth_ft, zoning)
        buildable = asdict(area) if area else None

    return EdgeLabelResponse(
        method="street" if request.street_point else "compass",
        labels=[asdict(label) for label in labels],
        buildable_area=buildable,
    )
