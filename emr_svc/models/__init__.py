"""
Domain models for the EMR service.

Plain dataclasses built from database rows by the repositories.
"""
from emr_svc.models.identifier import IdentifierSourceConfig, IdentifierType
from emr_svc.models.location import Location
from emr_svc.models.visit import Visit

__all__ = ["IdentifierSourceConfig", "IdentifierType", "Location", "Visit"]
