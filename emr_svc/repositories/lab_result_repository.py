"""
Repository for the laboratory extract table read by the lab register report.
"""
import logging
from datetime import date
from typing import Optional

from emr_svc.repositories.base import Database

logger = logging.getLogger(__name__)


class LabResultRepository:
    """Write access to laboratory_extract rows."""

    def __init__(self, db: Database):
        self._db = db

    def add(
        self,
        encounter_id: int,
        patient_id: int,
        visit_date: date,
        lab_test: str,
        result_name: Optional[str],
        result_test_name: Optional[str] = None,
        is_panel: bool = False,
    ) -> int:
        """
        Add one lab result row.

        Returns:
            int: The ID of the inserted row.
        """
        conn = self._db.get_connection()
        try:
            cursor = conn.execute(
                """
                INSERT INTO laboratory_extract
                (encounter_id, patient_id, visit_date, lab_test, is_panel, result_test_name, result_name)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    encounter_id,
                    patient_id,
                    visit_date.isoformat(),
                    lab_test,
                    1 if is_panel else 0,
                    result_test_name,
                    result_name,
                ),
            )
            conn.commit()
            return cursor.lastrowid
        finally:
            conn.close()
