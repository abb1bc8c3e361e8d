"""Maricopa County Assessor client — APN to parcel, residential and valuation data.

Three JSON endpoints under settings.assessor_base_url:

    parcel     — address, legal, zoning, lot size, current valuation (required)
    res        — residential characteristics (optional)
    valuation  — valuation history (optional)

The assessor has changed field-name casing over the years (SitusCity,
SITUS_CITY, situs_city), so every field is read through _pick().
"""

import logging
import re
from typing import Any

import httpx
import mlflow
from mlflow.entities import SpanType

from citywise.config import settings
from citywise.core.types import AssessorRecord, ValuationEntry

logger = logging.getLogger(__name__)

ASSESSOR_TIMEOUT = 20.0
_HEADERS = {"Accept": "application/json"}


def normalize_apn(apn: str) -> str:
    """'123-45-678' → '12345678'. Dashes and whitespace are dropped."""
    return re.sub(r"[-\s]", "", apn or "")


def _pick(data: dict | None, *keys: str) -> Any:
    """First present, non-blank value among alternative spellings of a field."""
    if not data:
        return None
    for key in keys:
        val = data.get(key)
        if val is None or (isinstance(val, str) and not val.strip()):
            continue
        return val
    return None


def _safe_float(val) -> float | None:
    """Convert a value to float, stripping currency symbols and commas."""
    if val is None or isinstance(val, bool):
        return None
    s = str(val).replace("$", "").replace(",", "").strip()
    if not s:
        return None
    try:
        return float(s)
    except (ValueError, TypeError):
        return None


def _safe_int(val) -> int | None:
    num = _safe_float(val)
    return int(num) if num is not None else None


def _safe_str(val) -> str | None:
    return str(val).strip() if val is not None else None


def _safe_bool(val) -> bool | None:
    if val is None:
        return None
    if isinstance(val, bool):
        return val
    return str(val).strip().lower() in ("true", "yes", "y", "1")


def parse_valuation_history(data: Any) -> list[ValuationEntry]:
    """Valuation rows, newest first as returned. Unparseable rows are skipped."""
    if isinstance(data, dict):
        data = data.get("Valuations") or data.get("valuations") or []
    if not isinstance(data, list):
        return []
    entries = []
    for row in data:
        if not isinstance(row, dict):
            continue
        entries.append(ValuationEntry(
            tax_year=_safe_int(_pick(row, "TaxYear", "TAX_YEAR", "tax_year")),
            full_cash_value=_safe_float(_pick(row, "FullCashValue", "FCV", "full_cash_value")),
            limited_property_value=_safe_float(_pick(row, "LimitedPropertyValue", "LPV", "limited_property_value")),
        ))
    return entries


def build_assessor_record(
    apn: str,
    parcel: dict,
    residential: dict | None = None,
    valuation: Any = None,
) -> AssessorRecord:
    """Map raw assessor payloads onto an AssessorRecord."""
    return AssessorRecord(
        apn=normalize_apn(apn),
        street=_safe_str(_pick(parcel, "SitusAddress", "SITUS_ADDRESS", "situs_address")),
        city=_safe_str(_pick(parcel, "SitusCity", "SITUS_CITY", "situs_city")),
        zip=_safe_str(_pick(parcel, "SitusZip", "SITUS_ZIP", "situs_zip")),
        property_class=_safe_str(_pick(parcel, "PropertyClass", "PROPERTY_CLASS")),
        property_type=_safe_str(_pick(parcel, "PropertyType", "PROPERTY_TYPE")),
        subdivision=_safe_str(_pick(parcel, "Subdivision", "SUBDIVISION")),
        school_district=_safe_str(_pick(parcel, "SchoolDistrict", "SCHOOL_DISTRICT")),
        tax_area=_safe_str(_pick(parcel, "TaxArea", "TAX_AREA")),
        legal_description=_safe_str(_pick(parcel, "LegalDescription", "LEGAL_DESCRIPTION")),
        zoning=_safe_str(_pick(parcel, "Zoning", "ZONING")),
        lot_size_sqft=_safe_float(_pick(parcel, "LotSqFt", "LOT_SQFT")),
        lot_acres=_safe_float(_pick(parcel, "LotAcres", "LOT_ACRES")),
        full_cash_value=_safe_float(_pick(parcel, "FullCashValue", "FCV")),
        limited_property_value=_safe_float(_pick(parcel, "LimitedPropertyValue", "LPV")),
        land_value=_safe_float(_pick(parcel, "LandValue", "LAND_VALUE")),
        improvement_value=_safe_float(_pick(parcel, "ImprovementValue", "IMPROVEMENT_VALUE")),
        assessed_value=_safe_float(_pick(parcel, "AssessedValue", "ASSESSED_VALUE")),
        tax_year=_safe_int(_pick(parcel, "TaxYear", "TAX_YEAR")),
        living_area_sqft=_safe_float(_pick(residential, "LivingArea", "LIVING_AREA")),
        year_built=_safe_int(_pick(residential, "YearBuilt", "YEAR_BUILT")),
        bedrooms=_safe_int(_pick(residential, "Bedrooms", "BEDROOMS")),
        bathrooms=_safe_float(_pick(residential, "Bathrooms", "BATHROOMS")),
        stories=_safe_int(_pick(residential, "Stories", "STORIES")),
        garage_spaces=_safe_int(_pick(residential, "GarageSpaces", "GARAGE_SPACES")),
        pool=_safe_bool(_pick(residential, "Pool", "POOL")),
        valuation_history=parse_valuation_history(valuation),
    )


async def _get_optional(client: httpx.AsyncClient, endpoint: str, apn: str) -> Any:
    """GET a secondary endpoint; failures are logged and read as no data."""
    try:
        resp = await client.get(f"{settings.assessor_base_url}/{endpoint}", params={"parcel": apn})
        resp.raise_for_status()
        return resp.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("Assessor %s lookup failed: %s", endpoint, e, extra={"apn": apn})
        return None


@mlflow.trace(name="fetch_assessor_record", span_type=SpanType.TOOL)
async def fetch_assessor_record(apn: str) -> AssessorRecord | None:
    """Fetch an assessor record by APN.

    Returns None when the APN is blank or the parcel endpoint has no data.

    Raises:
        httpx.HTTPStatusError: The parcel endpoint returned an error status.
    """
    clean = normalize_apn(apn)
    if not clean:
        return None

    async with httpx.AsyncClient(timeout=ASSESSOR_TIMEOUT, headers=_HEADERS) as client:
        resp = await client.get(f"{settings.assessor_base_url}/parcel", params={"parcel": clean})
        resp.raise_for_status()
        parcel = resp.json()
        if not parcel or not isinstance(parcel, dict):
            logger.warning("No assessor parcel data", extra={"apn": clean})
            return None

        residential = await _get_optional(client, "res", clean)
        valuation = await _get_optional(client, "valuation", clean)

    record = build_assessor_record(clean, parcel, residential if isinstance(residential, dict) else None, valuation)
    logger.info(
        "Assessor record: %s, zoning=%s, lot=%s sqft",
        record.street or "N/A", record.zoning or "N/A", record.lot_size_sqft,
        extra={"apn": clean},
    )
    return record
