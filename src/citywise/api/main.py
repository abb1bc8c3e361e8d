"""CityWise API — FastAPI application for permit and engineering checklists.

Run:
    uvicorn citywise.api.main:app --reload
    # or
    citywise-api
"""

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from urllib.parse import urlparse

import mlflow
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from starlette.middleware.base import BaseHTTPMiddleware

from citywise import __version__
from citywise.api.routes import router
from citywise.config import settings
from citywise.observability.logging import correlation_id, setup_logging
from citywise.requirements.catalog import known_jurisdictions
from citywise.storage.db import dispose_db, get_session, init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize logging, tracing and DB on startup."""
    setup_logging()

    mlflow.set_tracking_uri(settings.mlflow_tracking_uri)
    mlflow.set_experiment(settings.mlflow_experiment_name)
    logger.info("MLflow tracing enabled: %s", settings.mlflow_tracking_uri)

    parsed = urlparse(settings.database_url)
    redacted_host = f"{parsed.hostname}:{parsed.port}" if parsed.port else parsed.hostname
    logger.info("Connecting to database at %s/%s", redacted_host, parsed.path.lstrip("/"))
    try:
        await asyncio.wait_for(init_db(), timeout=15)
        logger.info("Database initialized successfully")
    except asyncio.TimeoutError:
        logger.error("Database init timed out after 15s; serving built-in rule tables only")
    except Exception as e:
        logger.error("Database init failed: %s; serving built-in rule tables only", e)
    logger.info("CityWise API ready")
    yield
    logger.info("Shutting down")
    await dispose_db()


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """Set correlation ID from X-Request-ID header or generate a new one."""

    async def dispatch(self, request: Request, call_next):
        cid = request.headers.get("x-request-id", str(uuid.uuid4()))
        token = correlation_id.set(cid)
        try:
            response = await call_next(request)
            response.headers["x-request-id"] = cid
            return response
        finally:
            correlation_id.reset(token)


app = FastAPI(
    title="CityWise",
    description="Permit, engineering-requirement and zoning checklists for "
    "Phoenix-area residential projects.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(CorrelationIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.get("/health")
async def health():
    """Health check — DB connectivity and built-in rule sets."""
    checks = {"rule_sets": known_jurisdictions()}

    session = None
    try:
        session = await get_session()
        await session.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {e}"
    finally:
        if session:
            await session.close()

    status = "healthy" if checks.get("database") == "ok" else "degraded"
    return {"status": status, "checks": checks}


def run():
    """Entry point for citywise-api console script."""
    uvicorn.run("citywise.api.main:app", host="0.0.0.0", port=8000, reload=True)
