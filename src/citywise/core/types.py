"""Domain types for the CityWise permitting and zoning platform.

All shared dataclasses and type definitions live here to prevent
circular imports and establish a single source of truth for the
domain model. Every other module imports from here.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class ProjectType(str, Enum):
    """Residential project categories recognised by the rule tables."""

    ADDITION = "ADDITION"
    REMODEL = "REMODEL"
    ADU = "ADU"
    NEW_CONSTRUCTION = "NEW_CONSTRUCTION"
    DEMOLITION = "DEMOLITION"
    GARAGE_CONVERSION = "GARAGE_CONVERSION"
    PATIO_COVER = "PATIO_COVER"
    FENCE = "FENCE"
    POOL = "POOL"
    SOLAR = "SOLAR"


class Discipline(str, Enum):
    """Engineering/design specialty a requirement belongs to."""

    STRUCTURAL = "structural"
    CIVIL = "civil"
    ELECTRICAL = "electrical"
    MECHANICAL = "mechanical"
    PLUMBING = "plumbing"
    GENERAL = "general"


class Operator(str, Enum):
    """Comparison operators available to rule triggers."""

    EQUALS = "EQUALS"
    NOT_EQUALS = "NOT_EQUALS"
    GREATER_THAN = "GREATER_THAN"
    GREATER_THAN_OR_EQUAL = "GREATER_THAN_OR_EQUAL"
    LESS_THAN = "LESS_THAN"
    LESS_THAN_OR_EQUAL = "LESS_THAN_OR_EQUAL"
    IN = "IN"


class DataSource(str, Enum):
    """Property data providers the reconciler arbitrates between."""

    ASSESSOR = "assessor"
    REGRID = "regrid"


# ---------------------------------------------------------------------------
# Intake → attributes
# ---------------------------------------------------------------------------

@dataclass
class TranscriptTurn:
    """One message of a scoping conversation."""

    role: str       # "user" or "assistant"
    content: str


@dataclass
class RawIntake:
    """Unnormalised project intake: a form submission and/or a conversation.

    `conversation` is a flat transcript with no speaker roles (older
    projects store it that way); `transcript` carries role-tagged turns.
    """

    project_type: str | None = None
    jurisdiction: str | None = None
    form: dict[str, Any] | None = None
    transcript: list[TranscriptTurn] = field(default_factory=list)
    conversation: str = ""
    lot_size: float | None = None


@dataclass
class ProjectAttributes:
    """Canonical project description consumed by the rule engine.

    Rebuilt from intake data on every resolution; never persisted.
    """

    project_type: ProjectType | None = None
    jurisdiction: str = ""
    square_footage: float | None = None
    structural_changes: bool = False
    plumbing_work: bool = False
    electrical_work: bool = False
    electrical_service_amps: float | None = None
    lot_size: float | None = None
    stories: int | None = None
    property_type: str | None = None    # "residential" / "commercial"

    def __post_init__(self) -> None:
        # Service size only means something when electrical work is in scope
        if not self.electrical_work:
            self.electrical_service_amps = None


# ---------------------------------------------------------------------------
# Requirements and rules
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Requirement:
    """A single checklist entry produced by the resolver."""

    name: str
    description: str
    discipline: Discipline
    required: bool = True
    source: str = "rule"    # "baseline", "rule", "zoning", "custom"

    # Populated for zoning-derived entries only
    category: str = ""
    value_number: float | None = None
    value_text: str = ""
    unit: str = ""


@dataclass(frozen=True)
class RuleTrigger:
    """One field comparison: `<field> <operator> <value>`."""

    field: str
    operator: Operator
    value: Any
    description: str = ""


@dataclass(frozen=True)
class RequirementRule:
    """Declarative mapping from trigger conditions to a requirement.

    Fires when every trigger passes (AND). OR is expressed by several
    rules targeting the same requirement. Empty `project_types` = any type.
    """

    name: str
    jurisdiction: str
    requirement: Requirement
    triggers: tuple[RuleTrigger, ...] = ()
    project_types: frozenset[ProjectType] = frozenset()
    description: str = ""
    source_document: str = ""


@dataclass
class ChecklistResult:
    """Outcome of resolving and persisting a project's checklist."""

    project_id: str
    requirements: list[Requirement] = field(default_factory=list)   # full resolver output
    added: list[Requirement] = field(default_factory=list)          # newly stored entries
    tasks_created: int = 0


# ---------------------------------------------------------------------------
# Zoning reference data
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ZoningRule:
    """A dimensional/use standard of a zoning district (setback, height, ...)."""

    category: str                       # SETBACK, LOT_SIZE, LOT_COVERAGE, HEIGHT, PARKING, USE
    name: str                           # e.g., "Front Setback"
    value_number: float | None = None   # e.g., 20.0
    value_text: str = ""                # e.g., "2 spaces per dwelling unit"
    unit: str = ""                      # e.g., "feet"
    project_types: tuple[ProjectType, ...] = ()
    description: str = ""


@dataclass
class ZoningDistrict:
    """A zoning district with its rules in stored order."""

    code: str
    name: str
    description: str = ""
    rules: list[ZoningRule] = field(default_factory=list)


@dataclass
class Municipality:
    """A jurisdiction's zoning districts keyed by district code."""

    name: str
    state: str
    districts: dict[str, ZoningDistrict] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Engineering disciplines (consultant roster for a project)
# ---------------------------------------------------------------------------

@dataclass
class EngineeringDiscipline:
    """A professional discipline a project needs on its team."""

    discipline: str     # e.g., "Structural Engineer"
    required: bool
    notes: str


# ---------------------------------------------------------------------------
# Property records from the two parcel-data providers
# ---------------------------------------------------------------------------

@dataclass
class ValuationEntry:
    """One tax year of assessor valuation history."""

    tax_year: int | None = None
    full_cash_value: float | None = None
    limited_property_value: float | None = None


@dataclass
class AssessorRecord:
    """Maricopa County Assessor data for one parcel. None = not provided."""

    apn: str
    street: str | None = None
    city: str | None = None
    state: str | None = "AZ"
    zip: str | None = None
    property_class: str | None = None
    property_type: str | None = None
    subdivision: str | None = None
    school_district: str | None = None
    tax_area: str | None = None
    legal_description: str | None = None
    zoning: str | None = None

    # Lot
    lot_size_sqft: float | None = None
    lot_acres: float | None = None

    # Valuation
    full_cash_value: float | None = None
    limited_property_value: float | None = None
    land_value: float | None = None
    improvement_value: float | None = None
    assessed_value: float | None = None
    tax_year: int | None = None

    # Residential characteristics (from the `res` endpoint)
    living_area_sqft: float | None = None
    year_built: int | None = None
    bedrooms: int | None = None
    bathrooms: float | None = None
    stories: int | None = None
    garage_spaces: int | None = None
    pool: bool | None = None

    valuation_history: list[ValuationEntry] = field(default_factory=list)


@dataclass
class RegridParcel:
    """Parcel data from the Regrid search API. None = not provided."""

    apn: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None
    county: str | None = None

    # Owner
    owner: str | None = None
    owner_address: str | None = None

    subdivision: str | None = None
    zoning: str | None = None
    zoning_description: str | None = None
    land_use: str | None = None

    # Lot
    lot_size_sqft: float | None = None
    lot_acres: float | None = None

    # Building
    year_built: int | None = None
    living_area_sqft: float | None = None
    bedrooms: int | None = None
    bathrooms: float | None = None
    stories: int | None = None

    # Valuation / tax
    land_value: float | None = None
    improvement_value: float | None = None
    full_cash_value: float | None = None
    assessed_value: float | None = None
    tax_amount: float | None = None
    tax_year: int | None = None
    last_sale_date: str | None = None
    last_sale_price: float | None = None

    flood_zone: str | None = None
    school_district: str | None = None

    # Location; boundary is the outer ring as (lng, lat) pairs
    lat: float | None = None
    lng: float | None = None
    boundary: list[tuple[float, float]] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Reconciliation output
# ---------------------------------------------------------------------------

@dataclass
class ReconciledField(Generic[T]):
    """One property attribute after merging the two providers."""

    value: T
    source: DataSource
    assessor_value: T | None = None
    regrid_value: T | None = None
    has_conflict: bool = False


@dataclass
class PropertyReport:
    """Unified property report — every attribute tagged with its winning source."""

    apn: str
    fields: dict[str, ReconciledField] = field(default_factory=dict)
    assessor_found: bool = False
    regrid_found: bool = False

    def conflicts(self) -> list[str]:
        """Names of fields where the providers disagree, in report order."""
        return [name for name, f in self.fields.items() if f.has_conflict]


# ---------------------------------------------------------------------------
# Parcel geometry
# ---------------------------------------------------------------------------

@dataclass
class EdgeLabel:
    """Side label for one parcel boundary edge."""

    edge_index: int
    side: str           # "front", "rear", "left", "right"
    bearing: float      # centroid → edge midpoint, degrees in [0, 360)


@dataclass
class BuildableArea:
    """Setback-reduced building envelope for a rectangular lot."""

    lot_area_sqft: float
    buildable_width_ft: float
    buildable_depth_ft: float
    envelope_sqft: float
    max_footprint_sqft: float
    governing: str                      # "setbacks" or "lot_coverage"
    notes: list[str] = field(default_factory=list)
