"""Source reconciliation — merge assessor and Regrid parcel data field by field.

Each field is reconciled on its own: the precedence source's value wins when
both providers have one, and a disagreement beyond the field's tolerance is
flagged for human review rather than resolved. There is no cross-field
checking.

Precedence lives in FIELD_PRECEDENCE. The assessor wins for address,
building and valuation fields. Regrid wins for zoning, ownership, tax bill
and sale history, which the assessor feed doesn't carry.
"""

import datetime
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import mlflow
from mlflow.entities import SpanType

from citywise.config import settings
from citywise.core.types import AssessorRecord, DataSource, PropertyReport, ReconciledField, RegridParcel

logger = logging.getLogger(__name__)

# Returns True when two present values agree
ToleranceFn = Callable[[Any, Any], bool]


def _is_missing(val: Any) -> bool:
    return val is None or (isinstance(val, str) and not val.strip())


def _is_number(val: Any) -> bool:
    return isinstance(val, (int, float)) and not isinstance(val, bool)


def values_agree(a: Any, b: Any, tolerance: float | ToleranceFn | None = None) -> bool:
    """Compare two present values.

    Numbers agree within an absolute tolerance (default exact). Anything
    else compares as case-insensitive, whitespace-trimmed text.
    """
    if callable(tolerance):
        return bool(tolerance(a, b))
    if _is_number(a) and _is_number(b):
        return abs(a - b) <= (tolerance or 0)
    return str(a).strip().casefold() == str(b).strip().casefold()


def reconcile(
    field: str,
    assessor_value: Any,
    regrid_value: Any,
    precedence: DataSource | str,
    tolerance: float | ToleranceFn | None = None,
    default: Any = None,
) -> ReconciledField:
    """Reconcile one property attribute from the two providers.

    Args:
        field: Attribute name, for logging.
        assessor_value: Value from the county assessor, None if absent.
        regrid_value: Value from Regrid, None if absent.
        precedence: Provider whose value wins when both are present.
        tolerance: Absolute numeric tolerance, or a callable returning True
            when two values agree.
        default: Value (or zero-arg callable) used when neither provider has one.
    """
    precedence = DataSource(precedence)
    has_assessor = not _is_missing(assessor_value)
    has_regrid = not _is_missing(regrid_value)

    if has_assessor and has_regrid:
        winner = assessor_value if precedence is DataSource.ASSESSOR else regrid_value
        conflict = not values_agree(assessor_value, regrid_value, tolerance)
        if conflict:
            logger.info("Conflict on %s: assessor=%r regrid=%r", field, assessor_value, regrid_value)
        return ReconciledField(
            value=winner, source=precedence,
            assessor_value=assessor_value, regrid_value=regrid_value,
            has_conflict=conflict,
        )
    if has_assessor:
        return ReconciledField(value=assessor_value, source=DataSource.ASSESSOR, assessor_value=assessor_value)
    if has_regrid:
        return ReconciledField(value=regrid_value, source=DataSource.REGRID, regrid_value=regrid_value)

    value = default() if callable(default) else default
    return ReconciledField(value=value, source=precedence)


# ---------------------------------------------------------------------------
# Per-field configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FieldRule:
    """How one report field is sourced and compared."""

    assessor_attr: str | None
    regrid_attr: str | None
    precedence: DataSource
    tolerance: float | ToleranceFn | None = None
    default: Any = None


def _area_tolerance() -> float:
    return settings.area_conflict_tolerance_sqft


def _area_agree(a: Any, b: Any) -> bool:
    return abs(float(a) - float(b)) <= _area_tolerance()


def _current_year() -> int:
    return datetime.date.today().year


A = DataSource.ASSESSOR
R = DataSource.REGRID

FIELD_PRECEDENCE: dict[str, FieldRule] = {
    # Address
    "street": FieldRule("street", "address", A, default=""),
    "city": FieldRule("city", "city", A, default=""),
    "state": FieldRule("state", "state", A, default="AZ"),
    "zip": FieldRule("zip", "zip", A, default=""),
    "subdivision": FieldRule("subdivision", "subdivision", A, default=""),
    "school_district": FieldRule("school_district", "school_district", A, default=""),
    # Zoning / ownership
    "zoning": FieldRule("zoning", "zoning", R, default=""),
    "owner": FieldRule(None, "owner", R, default=""),
    "owner_address": FieldRule(None, "owner_address", R, default=""),
    # Lot and building
    "lot_size_sqft": FieldRule("lot_size_sqft", "lot_size_sqft", A, tolerance=_area_agree, default=0),
    "lot_acres": FieldRule("lot_acres", "lot_acres", A, tolerance=0.01, default=0),
    "living_area_sqft": FieldRule("living_area_sqft", "living_area_sqft", A, tolerance=_area_agree, default=0),
    "year_built": FieldRule("year_built", "year_built", A),
    "bedrooms": FieldRule("bedrooms", "bedrooms", A),
    "bathrooms": FieldRule("bathrooms", "bathrooms", A),
    "stories": FieldRule("stories", "stories", A, default=1),
    # Valuation
    "full_cash_value": FieldRule("full_cash_value", "full_cash_value", A, default=0),
    "land_value": FieldRule("land_value", "land_value", A, default=0),
    "improvement_value": FieldRule("improvement_value", "improvement_value", A, default=0),
    "assessed_value": FieldRule("assessed_value", "assessed_value", A, default=0),
    "tax_year": FieldRule("tax_year", "tax_year", A, default=_current_year),
    # Regrid-only tax and sale history
    "tax_amount": FieldRule(None, "tax_amount", R),
    "last_sale_date": FieldRule(None, "last_sale_date", R),
    "last_sale_price": FieldRule(None, "last_sale_price", R),
    "flood_zone": FieldRule(None, "flood_zone", R),
}


@mlflow.trace(name="reconcile_property", span_type=SpanType.CHAIN)
def reconcile_property(
    assessor: AssessorRecord | None,
    regrid: RegridParcel | None,
    apn: str = "",
) -> PropertyReport:
    """Build a unified property report from whichever providers answered."""
    report = PropertyReport(
        apn=apn or (assessor.apn if assessor else "") or (regrid.apn if regrid and regrid.apn else ""),
        assessor_found=assessor is not None,
        regrid_found=regrid is not None,
    )
    for name, rule in FIELD_PRECEDENCE.items():
        a_val = getattr(assessor, rule.assessor_attr) if assessor is not None and rule.assessor_attr else None
        r_val = getattr(regrid, rule.regrid_attr) if regrid is not None and rule.regrid_attr else None
        report.fields[name] = reconcile(name, a_val, r_val, rule.precedence, rule.tolerance, rule.default)

    conflicts = report.conflicts()
    logger.info(
        "Property report: %d fields, %d conflicts%s",
        len(report.fields), len(conflicts), f" ({', '.join(conflicts)})" if conflicts else "",
        extra={"apn": report.apn},
    )
    return report
