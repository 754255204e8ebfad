"""
Shared pytest fixtures.

Key patterns:

1. Database Isolation: Each test gets a fresh SQLite file under tmp_path
2. DI Override: app.dependency_overrides injects the test services
3. Service Injection: Services are created with test repositories

Fixture Hierarchy:
    temp_db → repositories → services → test_app → client
"""
from datetime import datetime

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from emr_svc.core import dependencies as deps
from emr_svc.core.config import DEFAULT_QUERIES_FILE
from emr_svc.core.exceptions import setup_exception_handlers
from emr_svc.core.query_registry import QueryRegistry
from emr_svc.repositories import (
    Database,
    GlobalPropertyRepository,
    IdentifierRepository,
    LabResultRepository,
    LocationRepository,
    VisitRepository,
)
from emr_svc.services.emr_service import EmrService, SetupState
from emr_svc.services.identifier_service import IdentifierService
from emr_svc.services.idgen.generator import SequentialIdentifierGenerator
from emr_svc.services.lab_results_evaluator import LabResultsEvaluator
from emr_svc.services.search.query_service import QueryService
from emr_svc.services.sms_service import SmsService

SMS_URL = "https://sms.example.test/api/send"


@pytest.fixture
def temp_db(tmp_path):
    """
    Create a temporary database for testing.

    tmp_path is removed by pytest, together with the WAL side files.
    """
    return Database(db_path=str(tmp_path / "kenyaemr-test.db"))


@pytest.fixture
def registry():
    """The packaged query templates."""
    return QueryRegistry.from_yaml(DEFAULT_QUERIES_FILE)


# =============================================================================
# REPOSITORIES
# =============================================================================

@pytest.fixture
def property_repo(temp_db):
    return GlobalPropertyRepository(db=temp_db)


@pytest.fixture
def location_repo(temp_db):
    return LocationRepository(db=temp_db)


@pytest.fixture
def visit_repo(temp_db):
    return VisitRepository(db=temp_db)


@pytest.fixture
def identifier_repo(temp_db):
    return IdentifierRepository(db=temp_db)


@pytest.fixture
def lab_repo(temp_db):
    return LabResultRepository(db=temp_db)


# =============================================================================
# SERVICES
# =============================================================================

@pytest.fixture
def query_service(temp_db, registry):
    """QueryService with a small page size so results span several fetches."""
    return QueryService(db=temp_db, registry=registry, page_size=2)


@pytest.fixture
def generator(identifier_repo):
    return SequentialIdentifierGenerator(store=identifier_repo)


@pytest.fixture
def identifier_service(identifier_repo, generator):
    return IdentifierService(identifier_repository=identifier_repo, generator=generator)


@pytest.fixture
def setup_state():
    """A private setup latch so tests never see each other's state."""
    return SetupState()


@pytest.fixture
def emr_service(property_repo, location_repo, visit_repo, identifier_service, setup_state):
    return EmrService(
        global_property_repository=property_repo,
        location_repository=location_repo,
        visit_repository=visit_repo,
        identifier_service=identifier_service,
        state=setup_state,
    )


@pytest.fixture
def lab_results_evaluator(query_service):
    return LabResultsEvaluator(query_service=query_service)


@pytest.fixture
def sms_requests():
    """Requests received by the fake SMS gateway."""
    return []


@pytest.fixture
def sms_service(sms_requests):
    """SmsService talking to an in-process gateway that accepts everything."""
    def handler(request: httpx.Request) -> httpx.Response:
        sms_requests.append(request)
        return httpx.Response(200, text='{"status": "queued"}')

    return SmsService(
        url=SMS_URL,
        api_token="token-123",
        sender_id="KENYAEMR",
        gateway="test-gateway",
        transport=httpx.MockTransport(handler),
    )


# =============================================================================
# SEED DATA
# =============================================================================

@pytest.fixture
def facility(location_repo):
    """Two locations; the first carries MFL code 13939."""
    main = location_repo.add("Kapsabet County Referral Hospital", mfl_code="13939")
    satellite = location_repo.add("Kapsabet Satellite Clinic", mfl_code="13940")
    return main, satellite


@pytest.fixture
def visits(visit_repo, facility):
    """Five visits across both locations; two are still open."""
    main, satellite = facility
    return [
        visit_repo.add(1, datetime(2024, 1, 15, 8, 0), datetime(2024, 1, 15, 9, 0), main.id, "OUTPATIENT"),
        visit_repo.add(2, datetime(2024, 1, 15, 9, 30), None, main.id, "OUTPATIENT"),
        visit_repo.add(3, datetime(2024, 1, 15, 10, 0), datetime(2024, 1, 17, 12, 0), main.id, "INPATIENT"),
        visit_repo.add(4, datetime(2024, 1, 16, 7, 45), None, main.id, "CASUALTY"),
        visit_repo.add(5, datetime(2024, 1, 16, 11, 0), datetime(2024, 1, 16, 11, 30), satellite.id, "OUTPATIENT"),
    ]


@pytest.fixture
def upn_source(identifier_service):
    return identifier_service.setup_hiv_unique_identifier_source("00001")


@pytest.fixture
def configured_facility(emr_service, identifier_service, facility, upn_source):
    """Default location, MRN source and UPN source all in place."""
    emr_service.set_default_location(facility[0].id)
    identifier_service.setup_mrn_identifier_source()
    return facility[0]


# =============================================================================
# APP
# =============================================================================

@pytest.fixture
def test_app(temp_db, registry, query_service, identifier_service, emr_service, sms_service):
    """
    FastAPI test app using the real routers with test services injected.
    """
    from emr_svc.api.routers import (
        facility_router,
        health_router,
        identifiers_router,
        queries_router,
        sms_router,
    )

    app = FastAPI(title="KenyaEMR Service API Test")
    setup_exception_handlers(app)

    app.dependency_overrides[deps.get_database] = lambda: temp_db
    app.dependency_overrides[deps.get_query_registry] = lambda: registry
    app.dependency_overrides[deps.get_query_service] = lambda: query_service
    app.dependency_overrides[deps.get_identifier_service] = lambda: identifier_service
    app.dependency_overrides[deps.get_emr_service] = lambda: emr_service
    app.dependency_overrides[deps.get_sms_service] = lambda: sms_service

    app.include_router(health_router)
    app.include_router(queries_router)
    app.include_router(identifiers_router)
    app.include_router(facility_router)
    app.include_router(sms_router)

    yield app

    app.dependency_overrides.clear()


@pytest.fixture
def client(test_app):
    """Create a test client for the API."""
    return TestClient(test_app)

