"""
Repository layer for database access.

This module contains all database access operations, encapsulating SQL and data persistence logic.
"""
from emr_svc.repositories.base import Database
from emr_svc.repositories.global_property_repository import GlobalPropertyRepository
from emr_svc.repositories.identifier_repository import IdentifierRepository
from emr_svc.repositories.lab_result_repository import LabResultRepository
from emr_svc.repositories.location_repository import LocationRepository
from emr_svc.repositories.visit_repository import VisitRepository

__all__ = [
    "Database",
    "GlobalPropertyRepository",
    "IdentifierRepository",
    "LabResultRepository",
    "LocationRepository",
    "VisitRepository",
]
