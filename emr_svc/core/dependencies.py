"""
FastAPI Dependency Injection configuration for the EMR Service API.

Architecture Flow:
    API Layer (Routers)
         ↓ Depends()
    Service Layer (QueryService, IdentifierService, EmrService, ...)
         ↓ Injected
    Repository Layer (Data Access)
         ↓ Injected
    Database (SQLite, one connection per call)

Process-wide singletons: the Database, the QueryRegistry (templates are read
once at startup) and the SequentialIdentifierGenerator (its per-source locks
must be shared by every request thread). Everything else is built per request.

Usage in Routers:
    from emr_svc.core.dependencies import get_query_service

    @router.get("/queries/{query_id}")
    def run_query(query_id: str, service: QueryService = Depends(get_query_service)):
        return service.execute(query_id, params)

Testing:
    app.dependency_overrides[get_database] = lambda: test_database
"""
import logging
import threading
from typing import Optional

from emr_svc.core.config import settings

logger = logging.getLogger(__name__)


# =============================================================================
# PROCESS-WIDE SINGLETONS
# =============================================================================

# Lazy imports inside the getters avoid circular imports with repositories
_database_instance: Optional["Database"] = None
_registry_instance: Optional["QueryRegistry"] = None
_generator_instance: Optional["SequentialIdentifierGenerator"] = None
_singleton_lock = threading.RLock()


def get_database() -> "Database":
    """
    Get the database instance (singleton).

    Returns:
        Database: The configured database instance.
    """
    global _database_instance

    if _database_instance is None:
        from emr_svc.repositories.base import Database

        with _singleton_lock:
            if _database_instance is None:
                logger.info(f"Initializing database: {settings.database_path}")
                _database_instance = Database(
                    db_path=settings.database_path,
                    busy_timeout=settings.emr_svc_db_busy_timeout
                )
                logger.info("Database initialized successfully")

    return _database_instance


def get_query_registry() -> "QueryRegistry":
    """
    Get the query registry built from the configured template file (singleton).
    """
    global _registry_instance

    if _registry_instance is None:
        from emr_svc.core.query_registry import QueryRegistry

        with _singleton_lock:
            if _registry_instance is None:
                _registry_instance = QueryRegistry.from_yaml(settings.queries_path)
                logger.info(f"Query registry ready with {len(_registry_instance)} templates")

    return _registry_instance


def get_identifier_generator() -> "SequentialIdentifierGenerator":
    """
    Get the identifier generator (singleton), backed by the identifier repository.
    """
    global _generator_instance

    if _generator_instance is None:
        from emr_svc.services.idgen.generator import SequentialIdentifierGenerator

        with _singleton_lock:
            if _generator_instance is None:
                _generator_instance = SequentialIdentifierGenerator(store=get_identifier_repository())

    return _generator_instance


def reset_database() -> None:
    """
    Drop every singleton (for testing only).

    The next getter call rebuilds them from the current settings.
    """
    global _database_instance, _registry_instance, _generator_instance
    _database_instance = None
    _registry_instance = None
    _generator_instance = None


# =============================================================================
# REPOSITORY DEPENDENCIES
# =============================================================================

def get_global_property_repository() -> "GlobalPropertyRepository":
    from emr_svc.repositories import GlobalPropertyRepository

    return GlobalPropertyRepository(db=get_database())


def get_location_repository() -> "LocationRepository":
    from emr_svc.repositories import LocationRepository

    return LocationRepository(db=get_database())


def get_visit_repository() -> "VisitRepository":
    from emr_svc.repositories import VisitRepository

    return VisitRepository(db=get_database())


def get_identifier_repository() -> "IdentifierRepository":
    """
    Get an IdentifierRepository instance with database injected.

    Returns:
        IdentifierRepository: Identifier types, sources and sequence cursors.
    """
    from emr_svc.repositories import IdentifierRepository

    return IdentifierRepository(db=get_database())


# =============================================================================
# SERVICE DEPENDENCIES
# =============================================================================

def get_query_service() -> "QueryService":
    """
    Get a QueryService instance with database and registry injected.

    Returns:
        QueryService: Service for executing named queries.
    """
    from emr_svc.services.search.query_service import QueryService

    return QueryService(
        db=get_database(),
        registry=get_query_registry(),
        page_size=settings.emr_svc_default_page_size
    )


def get_identifier_service() -> "IdentifierService":
    """
    Get an IdentifierService instance with repository and generator injected.

    Returns:
        IdentifierService: Service for identifier sources.
    """
    from emr_svc.services.identifier_service import IdentifierService

    return IdentifierService(
        identifier_repository=get_identifier_repository(),
        generator=get_identifier_generator()
    )


def get_emr_service() -> "EmrService":
    """
    Get an EmrService instance with repositories and identifier service injected.

    Returns:
        EmrService: Service for facility setup and lookups.
    """
    from emr_svc.services.emr_service import EmrService

    return EmrService(
        global_property_repository=get_global_property_repository(),
        location_repository=get_location_repository(),
        visit_repository=get_visit_repository(),
        identifier_service=get_identifier_service()
    )


def get_lab_results_evaluator() -> "LabResultsEvaluator":
    from emr_svc.services.lab_results_evaluator import LabResultsEvaluator

    return LabResultsEvaluator(query_service=get_query_service())


def get_sms_service() -> "SmsService":
    """
    Get an SmsService instance configured from settings.

    Raises:
        ConfigError: If KENYAEMR_SMS_URL is not configured.
    """
    from emr_svc.services.sms_service import SmsService

    return SmsService()
