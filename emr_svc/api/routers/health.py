"""
Health and readiness endpoints for operational visibility.

- /health: Liveness probe (is the app running?)
- /ready: Readiness probe (can the database be reached and are the query
  templates loaded?)

No authentication required (internal/infrastructure use).
"""
import logging
import time
from contextlib import closing
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from emr_svc.core.dependencies import get_database, get_query_registry
from emr_svc.core.query_registry import QueryRegistry
from emr_svc.repositories.base import Database

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

VERSION = "1.0.0"


# =============================================================================
# RESPONSE MODELS
# =============================================================================

class HealthResponse(BaseModel):
    """Response model for /health endpoint."""
    status: str  # "healthy"
    version: str
    timestamp: str  # ISO 8601 UTC


class DependencyStatus(BaseModel):
    """Status of a single dependency."""
    name: str
    status: str  # "ok", "unavailable"
    latency_ms: Optional[float] = None
    message: Optional[str] = None


class ReadyResponse(BaseModel):
    """Response model for /ready endpoint."""
    status: str  # "ready", "not_ready"
    dependencies: List[DependencyStatus]
    timestamp: str


def _timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


# =============================================================================
# HEALTH ENDPOINT (LIVENESS)
# =============================================================================

@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness probe",
    description="Check if the application is running. Returns immediately without checking dependencies."
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="healthy", version=VERSION, timestamp=_timestamp())


# =============================================================================
# READINESS ENDPOINT
# =============================================================================

def _check_database(db: Database) -> DependencyStatus:
    """Round trip a trivial query through a fresh connection."""
    start = time.perf_counter()
    try:
        with closing(db.get_connection()) as conn:
            conn.execute("SELECT 1").fetchone()
    except Exception as e:
        logger.error("Database health check failed", extra={"error": str(e)})
        return DependencyStatus(
            name="database",
            status="unavailable",
            latency_ms=round((time.perf_counter() - start) * 1000, 2),
            message=f"Connection failed: {type(e).__name__}"
        )
    return DependencyStatus(
        name="database",
        status="ok",
        latency_ms=round((time.perf_counter() - start) * 1000, 2),
        message="SQLite connection healthy"
    )


def _check_query_registry(registry: QueryRegistry) -> DependencyStatus:
    count = len(registry)
    if count == 0:
        return DependencyStatus(name="query_registry", status="unavailable", message="No templates loaded")
    return DependencyStatus(name="query_registry", status="ok", message=f"{count} templates loaded")


@router.get(
    "/ready",
    response_model=ReadyResponse,
    summary="Readiness probe",
    description="Check that the database and query templates are available. Returns 503 if not ready."
)
def readiness_check(
    response: Response,
    db: Database = Depends(get_database),
    registry: QueryRegistry = Depends(get_query_registry),
) -> ReadyResponse:
    dependencies = [_check_database(db), _check_query_registry(registry)]

    if any(d.status != "ok" for d in dependencies):
        status = "not_ready"
        response.status_code = 503
    else:
        status = "ready"

    return ReadyResponse(status=status, dependencies=dependencies, timestamp=_timestamp())


@router.get("/", summary="API root")
async def root() -> Dict[str, Any]:
    """Service name, version and links to documentation."""
    return {
        "service": "KenyaEMR Service API",
        "version": VERSION,
        "docs": "/docs",
        "health": "/health",
        "ready": "/ready",
    }
