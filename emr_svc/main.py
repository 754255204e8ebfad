"""
FastAPI application entry point for the KenyaEMR Service API.

This module configures and creates the FastAPI application with:
- Structured JSON Logging: Request/response logging with request ids
- Dependency Injection: Services and repositories injected via Depends()
- Exception Handling: Consistent error responses via setup_exception_handlers()
- Lifespan Management: Database and query template initialization

Architecture Overview:
    ┌─────────────────────────────────────────────────────────────┐
    │                     FastAPI Application                     │
    ├─────────────────────────────────────────────────────────────┤
    │  Middleware                                                 │
    │    ├── LoggingMiddleware  - Request logging, X-Request-ID   │
    │    └── CORSMiddleware     - Cross-origin support            │
    ├─────────────────────────────────────────────────────────────┤
    │  Routers (api/routers/)                                     │
    │    ├── health.py       - /health, /ready                    │
    │    ├── queries.py      - named query execution              │
    │    ├── identifiers.py  - identifier sources and minting     │
    │    ├── facility.py     - setup, default location, UPNs      │
    │    └── sms.py          - SMS notifications                  │
    ├─────────────────────────────────────────────────────────────┤
    │  Services (services/)     ← Injected via Depends()          │
    │    ├── QueryService       - registry → binder → rows        │
    │    ├── IdentifierService  - provision / mint / validate     │
    │    ├── EmrService         - facility setup and lookups      │
    │    └── SmsService         - SMS gateway client              │
    ├─────────────────────────────────────────────────────────────┤
    │  Repositories (repositories/)   ← Injected into Services    │
    ├─────────────────────────────────────────────────────────────┤
    │  Database (SQLite)              ← Injected into Repositories│
    └─────────────────────────────────────────────────────────────┘
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from emr_svc.api.routers import (
    facility_router,
    health_router,
    identifiers_router,
    queries_router,
    sms_router,
)
from emr_svc.core.config import API_HOST, API_PORT, API_RELOAD, settings
from emr_svc.core.dependencies import get_database, get_query_registry
from emr_svc.core.exceptions import setup_exception_handlers
from emr_svc.core.logging_config import setup_logging
from emr_svc.core.middleware import LoggingMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: configure logging, open the database (creating the schema) and
    load the query templates, so a broken template file fails the start
    rather than the first request.
    """
    setup_logging(level="INFO", json_format=True)

    logger = logging.getLogger(__name__)
    logger.info("Starting KenyaEMR Service API...")

    settings.ensure_directories()
    db = get_database()
    registry = get_query_registry()
    logger.info(
        "Service initialized",
        extra={"db_path": db.db_path, "query_count": len(registry)}
    )

    yield

    logger.info("KenyaEMR Service API shutting down...")


app = FastAPI(
    title="KenyaEMR Service API",
    description="Named SQL queries, patient identifier generation and facility setup for KenyaEMR.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan
)

# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================
setup_exception_handlers(app)

# =============================================================================
# MIDDLEWARE
# =============================================================================
# Executed in reverse order of registration: LoggingMiddleware sees every request first.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(LoggingMiddleware)

# =============================================================================
# ROUTERS
# =============================================================================
app.include_router(health_router)
app.include_router(queries_router)
app.include_router(identifiers_router)
app.include_router(facility_router)
app.include_router(sms_router)


if __name__ == "__main__":
    uvicorn.run(
        "emr_svc.main:app",
        host=API_HOST,
        port=API_PORT,
        reload=API_RELOAD
    )
