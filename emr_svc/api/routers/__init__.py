"""
API routers module.

This module contains all API route definitions organized by domain.
"""
from emr_svc.api.routers.facility import router as facility_router
from emr_svc.api.routers.health import router as health_router
from emr_svc.api.routers.identifiers import router as identifiers_router
from emr_svc.api.routers.queries import router as queries_router
from emr_svc.api.routers.sms import router as sms_router

__all__ = ["facility_router", "health_router", "identifiers_router", "queries_router", "sms_router"]
