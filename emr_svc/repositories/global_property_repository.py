"""
Repository for global properties (key/value settings stored in the database).

Unlike the startup Settings, global properties are edited at runtime, e.g.
the facility's default location chosen during setup.
"""
import logging
from typing import Optional

from emr_svc.core.privileges import current_proxy_privileges
from emr_svc.repositories.base import Database

logger = logging.getLogger(__name__)


class GlobalPropertyRepository:
    """Repository for reading and writing global properties."""

    def __init__(self, db: Database):
        """
        Initialize the global property repository.

        Args:
            db: Database instance for data access.
        """
        self._db = db

    def get(self, name: str) -> Optional[str]:
        """
        Get a global property value.

        Returns:
            Optional[str]: The value, or None if the property is unset.
        """
        conn = self._db.get_connection()
        try:
            row = conn.execute(
                "SELECT value FROM global_properties WHERE property = ?", (name,)
            ).fetchone()
        finally:
            conn.close()
        logger.debug(
            "Global property read",
            extra={"property": name, "proxy_privileges": sorted(current_proxy_privileges())}
        )
        return row[0] if row else None

    def set(self, name: str, value: Optional[str], description: Optional[str] = None) -> None:
        """Create or update a global property."""
        conn = self._db.get_connection()
        try:
            conn.execute(
                """
                INSERT INTO global_properties (property, value, description)
                VALUES (?, ?, ?)
                ON CONFLICT(property) DO UPDATE SET
                    value = excluded.value,
                    description = COALESCE(excluded.description, global_properties.description)
                """,
                (name, value, description),
            )
            conn.commit()
        finally:
            conn.close()
        logger.info("Global property saved", extra={"property": name})
