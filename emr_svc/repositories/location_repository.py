"""
Repository for location (facility) lookups.

All SQL for locations is encapsulated here - no SQL in service or API layers.
"""
import logging
import uuid
from typing import Optional

from emr_svc.models.location import Location
from emr_svc.repositories.base import Database

logger = logging.getLogger(__name__)

_COLUMNS = "id, uuid, name, mfl_code, retired"


class LocationRepository:
    """Read-mostly repository for locations."""

    def __init__(self, db: Database):
        """
        Initialize the location repository.

        Args:
            db: Database instance for data access.
        """
        self._db = db

    def add(
        self,
        name: str,
        mfl_code: Optional[str] = None,
        location_uuid: Optional[str] = None,
        retired: bool = False,
    ) -> Location:
        """Add a location and return it."""
        conn = self._db.get_connection()
        try:
            cursor = conn.execute(
                "INSERT INTO locations (uuid, name, mfl_code, retired) VALUES (?, ?, ?, ?)",
                (location_uuid or str(uuid.uuid4()), name, mfl_code, int(retired)),
            )
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM locations WHERE id = ?", (cursor.lastrowid,)
            ).fetchone()
            conn.commit()
        finally:
            conn.close()
        return Location.from_row(row)

    def _get_one(self, where: str, value: object) -> Optional[Location]:
        conn = self._db.get_connection()
        try:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM locations WHERE {where} ORDER BY id LIMIT 1", (value,)
            ).fetchone()
        finally:
            conn.close()
        return Location.from_row(row) if row else None

    def get_by_id(self, location_id: int) -> Optional[Location]:
        return self._get_one("id = ?", location_id)

    def get_by_uuid(self, location_uuid: str) -> Optional[Location]:
        return self._get_one("uuid = ?", location_uuid)

    def get_by_mfl_code(self, mfl_code: str) -> Optional[Location]:
        """
        Get the first non-retired location carrying an MFL code.

        Returns:
            Optional[Location]: The location, or None if no location matches.
        """
        return self._get_one("mfl_code = ? AND retired = 0", mfl_code)
