"""Property report pipeline — APN (+ address) to reconciled report.

Fetches both providers concurrently, then reconciles field by field.
A provider that errors is treated as not found; the report says which
providers answered.
"""

import asyncio
import logging
import time

from citywise.core.types import PropertyReport
from citywise.reconcile.reconciler import reconcile_property
from citywise.retrieval.assessor import fetch_assessor_record, normalize_apn
from citywise.retrieval.regrid import search_regrid_parcel

logger = logging.getLogger(__name__)


async def build_property_report(apn: str, address: str | None = None) -> PropertyReport:
    """Look up a parcel in both providers and reconcile the results.

    Regrid is searched by address when one is given, else by APN.
    """
    clean = normalize_apn(apn)
    start = time.monotonic()

    assessor, regrid = await asyncio.gather(
        fetch_assessor_record(clean),
        search_regrid_parcel(address or clean),
        return_exceptions=True,
    )
    if isinstance(assessor, Exception):
        logger.warning("Assessor lookup failed: %s", assessor, extra={"apn": clean, "step": "assessor"})
        assessor = None
    if isinstance(regrid, Exception):
        logger.warning("Regrid lookup failed: %s", regrid, extra={"apn": clean, "step": "regrid"})
        regrid = None

    report = reconcile_property(assessor, regrid, apn=clean)
    logger.info(
        "Property report built (assessor=%s, regrid=%s)",
        report.assessor_found, report.regrid_found,
        extra={"apn": clean, "duration_ms": round((time.monotonic() - start) * 1000)},
    )
    return report
