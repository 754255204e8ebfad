"""
Service layer for business logic.

Note: the query engine and identifier generation live in the search/ and
idgen/ subpackages; the services below compose them.
"""
from emr_svc.services.emr_service import EmrService, SetupState, setup_state
from emr_svc.services.identifier_service import IdentifierService
from emr_svc.services.lab_results_evaluator import LabResultsEvaluator
from emr_svc.services.search.query_service import QueryService
from emr_svc.services.sms_service import SmsResult, SmsService

__all__ = [
    "EmrService",
    "SetupState",
    "setup_state",
    "IdentifierService",
    "LabResultsEvaluator",
    "QueryService",
    "SmsResult",
    "SmsService",
]
