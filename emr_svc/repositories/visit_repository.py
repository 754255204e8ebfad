"""
Repository for patient visits.
"""
import logging
import uuid
from datetime import datetime
from typing import List, Optional

from emr_svc.core.datetime_utils import to_db_string
from emr_svc.models.visit import Visit
from emr_svc.repositories.base import Database

logger = logging.getLogger(__name__)

_COLUMNS = "id, uuid, patient_id, location_id, visit_type, date_started, date_stopped"


class VisitRepository:
    """Repository for visit CRUD operations."""

    def __init__(self, db: Database):
        self._db = db

    def add(
        self,
        patient_id: int,
        date_started: datetime,
        date_stopped: Optional[datetime] = None,
        location_id: Optional[int] = None,
        visit_type: Optional[str] = None,
    ) -> Visit:
        """Add a visit and return it."""
        conn = self._db.get_connection()
        try:
            cursor = conn.execute(
                """
                INSERT INTO visits (uuid, patient_id, location_id, visit_type, date_started, date_stopped)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    str(uuid.uuid4()),
                    patient_id,
                    location_id,
                    visit_type,
                    to_db_string(date_started),
                    to_db_string(date_stopped),
                ),
            )
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM visits WHERE id = ?", (cursor.lastrowid,)
            ).fetchone()
            conn.commit()
        finally:
            conn.close()
        return Visit.from_row(row)

    def get_overlapping(self, patient_id: int, start: datetime, end: datetime) -> List[Visit]:
        """
        Get non-voided visits for a patient that overlap [start, end].

        A visit overlaps when it started on or before `end` and has either
        not stopped or stopped on or after `start`.

        Returns:
            List[Visit]: Visits ordered by start date, oldest first.
        """
        conn = self._db.get_connection()
        try:
            rows = conn.execute(
                f"""
                SELECT {_COLUMNS} FROM visits
                WHERE patient_id = ?
                  AND voided = 0
                  AND date_started <= ?
                  AND (date_stopped IS NULL OR date_stopped >= ?)
                ORDER BY date_started ASC, id ASC
                """,
                (patient_id, to_db_string(end), to_db_string(start)),
            ).fetchall()
        finally:
            conn.close()
        return [Visit.from_row(row) for row in rows]
