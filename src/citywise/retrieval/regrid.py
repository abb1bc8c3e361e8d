"""Regrid parcel search (v1 search API).

Returns the top hit for an address or APN query. Parcel attributes live
under result.properties.fields; the boundary is the GeoJSON geometry.
"""

import logging
from typing import Any

import httpx
import mlflow
from mlflow.entities import SpanType

from citywise.config import settings
from citywise.core.types import RegridParcel

logger = logging.getLogger(__name__)

REGRID_TIMEOUT = 15.0
SQFT_PER_ACRE = 43_560


def _first(props: dict, *keys: str) -> Any:
    for key in keys:
        val = props.get(key)
        if val is None or val == "" or val == 0:
            continue
        return val
    return None


def _num(val) -> float | None:
    if val is None or isinstance(val, bool):
        return None
    try:
        return float(str(val).replace(",", "").replace("$", ""))
    except ValueError:
        return None


def _int(val) -> int | None:
    num = _num(val)
    return int(num) if num is not None else None


def _str(val) -> str | None:
    return str(val).strip() if val is not None else None


def outer_ring(geometry: dict | None) -> list[tuple[float, float]]:
    """Outer ring of a Polygon/MultiPolygon as (lng, lat) pairs."""
    if not geometry:
        return []
    coords = geometry.get("coordinates") or []
    if geometry.get("type") == "MultiPolygon":
        coords = coords[0] if coords else []
    if not coords or not coords[0]:
        return []
    return [(float(pt[0]), float(pt[1])) for pt in coords[0]]


def parse_regrid_result(result: dict, query: str = "") -> RegridParcel:
    """Map one Regrid search hit onto a RegridParcel."""
    properties = result.get("properties") or {}
    props = properties.get("fields") or {}

    acres = _num(_first(props, "gisacre", "ll_gisacre"))
    lot_sqft = _num(props.get("sqft"))
    if lot_sqft is None and acres:
        lot_sqft = float(round(acres * SQFT_PER_ACRE))

    return RegridParcel(
        apn=_str(props.get("parcelnumb")),
        address=_str(_first(props, "address") or properties.get("headline") or query or None),
        city=_str(_first(props, "city", "scity")),
        state=_str(_first(props, "state2", "sstate")),
        zip=_str(_first(props, "szip5", "szip")),
        county=_str(_first(props, "county", "scounty")),
        owner=_str(props.get("owner") or None),
        owner_address=_str(_first(props, "mailadd", "mail_address1")),
        subdivision=_str(props.get("subdivision") or None),
        zoning=_str(props.get("zoning") or None),
        zoning_description=_str(props.get("zoning_description") or None),
        land_use=_str(_first(props, "usedesc", "landuse", "usecode")),
        lot_size_sqft=lot_sqft,
        lot_acres=acres,
        year_built=_int(props.get("yearbuilt")),
        living_area_sqft=_num(_first(props, "recrdareano", "improvarea")),
        bedrooms=_int(props.get("bedrooms")),
        bathrooms=_num(_first(props, "bathrooms", "bathfixtures")),
        stories=_int(props.get("stories")),
        land_value=_num(_first(props, "landval", "assessed_land")),
        improvement_value=_num(_first(props, "improvval", "assessed_improvement")),
        full_cash_value=_num(_first(props, "totalval", "assessed_total")),
        assessed_value=_num(_first(props, "assdtotval", "marketvalu")),
        tax_amount=_num(_first(props, "taxtot", "tax_amount")),
        tax_year=_int(_first(props, "taxyear", "tax_year")),
        last_sale_date=_str(_first(props, "saledt", "sale_date")),
        last_sale_price=_num(_first(props, "price", "saleprice")),
        flood_zone=_str(_first(props, "fld_zone", "flood_zone")),
        school_district=_str(props.get("schooldist") or None),
        lat=_num(props.get("lat")),
        lng=_num(props.get("lon")),
        boundary=outer_ring(result.get("geometry")),
    )


@mlflow.trace(name="search_regrid_parcel", span_type=SpanType.TOOL)
async def search_regrid_parcel(query: str) -> RegridParcel | None:
    """Search Regrid by address (or APN) and return the top hit.

    Returns None without an API token or when the search has no results.

    Raises:
        httpx.HTTPStatusError: Regrid returned an error status.
    """
    if not settings.regrid_api_token:
        logger.error("REGRID_API_TOKEN not set")
        return None

    async with httpx.AsyncClient(timeout=REGRID_TIMEOUT) as client:
        resp = await client.get(
            settings.regrid_search_url,
            params={"query": query, "token": settings.regrid_api_token},
        )
        resp.raise_for_status()
        data = resp.json()

    results = data.get("results") or []
    if not results:
        logger.warning("No Regrid results for: %s", query)
        return None

    parcel = parse_regrid_result(results[0], query)
    logger.info(
        "Regrid parcel: zoning=%s, lot=%s sqft, %d boundary points",
        parcel.zoning or "N/A", parcel.lot_size_sqft, len(parcel.boundary),
        extra={"apn": parcel.apn},
    )
    return parcel
