"""
Service layer for facility setup and EMR lookups.

Covers the facility-wide state a KenyaEMR install needs before it can
register patients: the default location, its MFL code, and the medical
record number / HIV unique patient number sources.

Architecture:
    API Layer (routers) → EmrService → GlobalProperty/Location/Visit repositories
                                     → IdentifierService

Dependency Injection:
    Use emr_svc.core.dependencies.get_emr_service() in routers with Depends().
"""
import logging
import threading
from datetime import date, datetime
from typing import List, Optional, Union

from emr_svc.core import metadata
from emr_svc.core.datetime_utils import day_bounds
from emr_svc.core.exceptions import ConfigError, LocationNotFoundError
from emr_svc.core.privileges import (
    GET_GLOBAL_PROPERTIES,
    GET_LOCATION_ATTRIBUTE_TYPES,
    GET_LOCATIONS,
    proxy_privileges,
)
from emr_svc.models import Location, Visit
from emr_svc.repositories import GlobalPropertyRepository, LocationRepository, VisitRepository
from emr_svc.services.identifier_service import IdentifierService

logger = logging.getLogger(__name__)

DEFAULT_UPN_COMMENT = "KenyaEMR Service"


class SetupState:
    """
    Process-wide "setup complete" flag.

    Setup cannot be undone, so once every piece is found configured the flag
    is latched and later checks skip the database. The flag only moves from
    incomplete to complete; reset() exists for tests.
    """

    def __init__(self):
        self._complete = False
        self._lock = threading.Lock()

    @property
    def complete(self) -> bool:
        return self._complete

    def mark_complete(self) -> None:
        with self._lock:
            if not self._complete:
                self._complete = True
                logger.info("Facility setup complete")

    def reset(self) -> None:
        with self._lock:
            self._complete = False


setup_state = SetupState()


class EmrService:
    """
    Facility setup and lookup operations.
    """

    def __init__(
        self,
        global_property_repository: GlobalPropertyRepository,
        location_repository: LocationRepository,
        visit_repository: VisitRepository,
        identifier_service: IdentifierService,
        state: SetupState = setup_state,
    ):
        """
        Initialize the EMR service.

        Args:
            global_property_repository: Stores the default location.
            location_repository: Location lookups.
            visit_repository: Visit lookups.
            identifier_service: MRN / UPN sources.
            state: Setup latch; the module-level instance unless a test passes its own.
        """
        self._properties = global_property_repository
        self._locations = location_repository
        self._visits = visit_repository
        self._identifiers = identifier_service
        self._state = state

    # =========================================================================
    # SETUP
    # =========================================================================

    def is_setup_required(self) -> bool:
        """
        Whether the default location, MRN source or UPN source is still missing.
        """
        if self._state.complete:
            return False

        configured = (
            self.get_default_location() is not None
            and self._identifiers.find_source(metadata.OPENMRS_ID_UUID) is not None
            and self._identifiers.find_source(metadata.UNIQUE_PATIENT_NUMBER_UUID) is not None
        )
        if configured:
            self._state.mark_complete()
        return not configured

    def setup_mrn_identifier_source(self, start_from: Optional[str] = None):
        return self._identifiers.setup_mrn_identifier_source(start_from)

    def setup_hiv_unique_identifier_source(self, start_from: Optional[str] = None):
        return self._identifiers.setup_hiv_unique_identifier_source(start_from)

    # =========================================================================
    # DEFAULT LOCATION
    # =========================================================================

    def set_default_location(self, location_id: int) -> Location:
        """
        Make a location the facility's default.

        Raises:
            LocationNotFoundError: If the location does not exist.
        """
        location = self._locations.get_by_id(location_id)
        if location is None:
            raise LocationNotFoundError(detail=f"Location {location_id} not found", location_id=location_id)

        self._properties.set(
            metadata.GP_DEFAULT_LOCATION,
            str(location.id),
            description="The facility for which this installation is configured",
        )
        logger.info(f"Default location set to {location.name}", extra={"location_id": location.id})
        return location

    def get_default_location(self) -> Optional[Location]:
        """
        Get the facility's default location, or None if it is not set.

        Raises:
            ConfigError: If the stored value is not a location id.
        """
        with proxy_privileges(GET_LOCATIONS, GET_GLOBAL_PROPERTIES):
            value = self._properties.get(metadata.GP_DEFAULT_LOCATION)
            if not value:
                return None
            try:
                location_id = int(value)
            except ValueError as exc:
                raise ConfigError(
                    f"Global property {metadata.GP_DEFAULT_LOCATION} holds '{value}', not a location id",
                ) from exc
            return self._locations.get_by_id(location_id)

    def get_default_location_mfl_code(self) -> Optional[str]:
        with proxy_privileges(GET_LOCATION_ATTRIBUTE_TYPES):
            location = self.get_default_location()
            return location.mfl_code if location is not None else None

    def get_location_by_mfl_code(self, mfl_code: str) -> Optional[Location]:
        return self._locations.get_by_mfl_code(mfl_code)

    # =========================================================================
    # IDENTIFIERS
    # =========================================================================

    def get_next_hiv_unique_patient_number(self, comment: Optional[str] = None) -> str:
        """
        Mint the next HIV unique patient number: facility MFL code + sequence.

        Raises:
            ConfigError: If the default location or its MFL code is not set.
                Checked before minting so no sequence value is spent.
        """
        mfl_code = self.get_default_location_mfl_code()
        if not mfl_code:
            raise ConfigError("The default location must have an MFL code to issue unique patient numbers")

        sequential_number = self._identifiers.mint_next(
            metadata.UNIQUE_PATIENT_NUMBER_UUID,
            comment=comment or DEFAULT_UPN_COMMENT,
        )
        return mfl_code + sequential_number

    # =========================================================================
    # VISITS
    # =========================================================================

    def get_visits_by_patient_and_day(self, patient_id: int, day: Union[date, datetime]) -> List[Visit]:
        """Visits of a patient that were open at any moment of the day, oldest first."""
        start_of_day, end_of_day = day_bounds(day)
        return self._visits.get_overlapping(patient_id, start_of_day, end_of_day)
