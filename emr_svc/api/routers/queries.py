"""
Queries router - run named query templates.

Architecture:
    HTTP Request → Router (this file) → QueryService → QueryRegistry / binder → Database

GET takes parameters from the query string (a repeated key becomes a list,
for IN (...) filters; every value arrives as text); POST takes them as a
JSON object, where lists and typed values (numbers, booleans) are passed
as-is.
"""
import logging
from typing import Any, Dict, List, Union

from fastapi import APIRouter, Depends, Request

from emr_svc.core.dependencies import get_query_service
from emr_svc.schemas import QueryListResponse, QueryRequest, QueryResultResponse
from emr_svc.services.search.materializer import ResultRow
from emr_svc.services.search.query_service import QueryService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/queries",
    tags=["Queries"],
)


def _query_string_params(request: Request) -> Dict[str, Union[str, List[str]]]:
    """Query-string parameters; keys given more than once become lists."""
    params: Dict[str, Union[str, List[str]]] = {}
    for key in request.query_params.keys():
        values = request.query_params.getlist(key)
        params[key] = values if len(values) > 1 else values[0]
    return params


def _to_response(query_id: str, rows: List[ResultRow]) -> QueryResultResponse:
    return QueryResultResponse(query_id=query_id, count=len(rows), rows=[row.to_dict() for row in rows])


@router.get(
    "",
    response_model=QueryListResponse,
    summary="List registered queries"
)
def list_queries(query_service: QueryService = Depends(get_query_service)):
    return QueryListResponse(queries=list(query_service.registry.query_ids()))


@router.get(
    "/{query_id}",
    response_model=QueryResultResponse,
    summary="Run a query with query-string parameters",
    description="Runs the named query. Placeholders without a parameter bind NULL; "
                "repeat a key (?visit_type=A&visit_type=B) to bind a list."
)
def run_query(
    query_id: str,
    request: Request,
    query_service: QueryService = Depends(get_query_service)
):
    """
    Run a named query.

    Returns 404 for an unknown query id and 400 for a parameter that
    cannot be bound; both are raised by the service and handled by the
    exception handlers registered in main.py.
    """
    rows = query_service.execute(query_id, _query_string_params(request))
    return _to_response(query_id, rows)


@router.post(
    "/{query_id}",
    response_model=QueryResultResponse,
    summary="Run a query with a JSON parameter object"
)
def run_query_with_body(
    query_id: str,
    body: QueryRequest,
    query_service: QueryService = Depends(get_query_service)
):
    rows = query_service.execute(query_id, body.params)
    return _to_response(query_id, rows)
