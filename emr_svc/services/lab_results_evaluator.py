"""
OPD lab register column: lab results per encounter over a date range.
"""
import logging
from datetime import date, datetime
from typing import Any, Dict, Union

from emr_svc.core.datetime_utils import parse_date
from emr_svc.core.exceptions import BindingError
from emr_svc.services.search.query_service import QueryService

logger = logging.getLogger(__name__)

OPD_LAB_RESULTS_QUERY = "kenyaemr.reports.opdLabResults"


class LabResultsEvaluator:
    """Runs the registered OPD lab results query for a reporting period."""

    def __init__(self, query_service: QueryService):
        self._queries = query_service

    def evaluate(
        self,
        start_date: Union[str, date, datetime],
        end_date: Union[str, date, datetime],
    ) -> Dict[int, Any]:
        """
        Map each encounter in [start_date, end_date] to its test result.

        Panel tests come back as "<test>|<result>, ..." and single tests as
        their result alone.
        """
        start, end = parse_date(start_date), parse_date(end_date)
        if start > end:
            raise BindingError(parameter="startDate", reason=f"{start} is after endDate {end}")

        rows = self._queries.execute(OPD_LAB_RESULTS_QUERY, {"startDate": start, "endDate": end})
        results = {row["encounter_id"]: row["test_result"] for row in rows}
        logger.info(f"Lab results evaluated for {len(results)} encounters", extra={"start": str(start), "end": str(end)})
        return results
