"""
Service layer for named query execution.

Architecture:
    API Layer (routers) → QueryService → QueryRegistry + binder → Database
                                       → RowMaterializer → List[ResultRow]

The registry lookup and binding run before a connection is opened, so an
unknown query id or a bad parameter never touches the database. Everything
after the connection is opened runs inside closing() blocks: the connection
and cursor are released on every exit path, and a failure discards any rows
already read.

Dependency Injection:
    Use emr_svc.core.dependencies.get_query_service() in routers with Depends().
"""
import logging
import time
from contextlib import closing
from typing import List, Optional

from emr_svc.core.exceptions import QueryExecutionError, TemplateError
from emr_svc.core.query_registry import QueryRegistry, QueryTemplate, is_read_only
from emr_svc.repositories.base import Database
from emr_svc.services.search.binder import BoundStatement, ParameterSet, bind, with_visit_location
from emr_svc.services.search.materializer import ResultRow, RowMaterializer

logger = logging.getLogger(__name__)

INLINE_QUERY_ID = "<inline>"


class QueryService:
    """
    Executes registered query templates against the database.
    """

    def __init__(self, db: Database, registry: QueryRegistry, page_size: int = 1000):
        """
        Initialize the query service.

        Args:
            db: Database that hands out a fresh connection per call.
            registry: Resolves query ids to templates.
            page_size: Rows fetched from the cursor per round trip.
        """
        self._db = db
        self._registry = registry
        self._page_size = page_size

    @property
    def registry(self) -> QueryRegistry:
        return self._registry

    def execute(self, query_id: str, params: Optional[ParameterSet] = None) -> List[ResultRow]:
        """
        Run the query registered under query_id.

        Args:
            query_id: Registered query id.
            params: Named parameters; `location_uuid` is also offered to the
                template as `visit_location_uuid`.

        Returns:
            List[ResultRow]: All rows, in result-set order.

        Raises:
            QueryNotFoundError: If query_id is not registered.
            TemplateError: If the template text is malformed.
            BindingError: If a parameter value cannot be bound.
            QueryExecutionError: If the database fails; the cause is chained.
        """
        template = self._registry.resolve(query_id)
        statement = bind(template, with_visit_location(params))
        return self._run(template.id, statement)

    def execute_sql(self, sql: str, params: Optional[ParameterSet] = None) -> List[ResultRow]:
        """
        Run inline SQL with `:name` placeholders through the same binder.

        No location derivation is applied.

        Raises:
            TemplateError: If the SQL is not a SELECT statement or is malformed.
        """
        if not is_read_only(sql):
            raise TemplateError(reason="only SELECT statements can be run", query_id=INLINE_QUERY_ID)
        statement = bind(QueryTemplate(id=INLINE_QUERY_ID, sql=sql), params)
        return self._run(INLINE_QUERY_ID, statement)

    def _run(self, query_id: str, statement: BoundStatement) -> List[ResultRow]:
        logger.debug(
            "Executing query",
            extra={"query_id": query_id, "placeholder_count": statement.placeholder_count}
        )
        started = time.perf_counter()
        try:
            with closing(self._db.get_connection()) as conn:
                with closing(conn.cursor()) as cursor:
                    cursor.execute(statement.sql, statement.parameters)
                    rows = list(RowMaterializer(cursor, page_size=self._page_size))
        except Exception as exc:
            logger.error(
                "Query execution failed",
                extra={"query_id": query_id, "error": f"{type(exc).__name__}: {exc}"},
                exc_info=True,
            )
            raise QueryExecutionError(query_id=query_id, cause=exc) from exc

        logger.info(
            "Query executed",
            extra={
                "query_id": query_id,
                "row_count": len(rows),
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            }
        )
        return rows
