"""
Named query engine: parameter binding, row materialization and execution.
"""
from emr_svc.services.search.binder import BoundStatement, bind, parse_template, with_visit_location
from emr_svc.services.search.materializer import FieldValue, ResultRow, RowMaterializer, ValueKind
from emr_svc.services.search.query_service import QueryService

__all__ = [
    "BoundStatement",
    "bind",
    "parse_template",
    "with_visit_location",
    "FieldValue",
    "ResultRow",
    "RowMaterializer",
    "ValueKind",
    "QueryService",
]
