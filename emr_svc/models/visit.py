"""
Domain model for patient visits.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Visit:
    """A patient visit at a location; open while date_stopped is None."""

    id: int
    uuid: str
    patient_id: int
    location_id: Optional[int]
    visit_type: Optional[str]
    date_started: datetime
    date_stopped: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.date_stopped is None

    def to_dict(self) -> Dict[str, Any]:
        """Convert visit to dictionary for API responses."""
        return {
            "id": self.id,
            "uuid": self.uuid,
            "patient_id": self.patient_id,
            "location_id": self.location_id,
            "visit_type": self.visit_type,
            "date_started": self.date_started.isoformat(),
            "date_stopped": self.date_stopped.isoformat() if self.date_stopped else None,
        }

    @classmethod
    def from_row(cls, row: tuple) -> "Visit":
        """
        Create a Visit from a database row tuple.

        Args:
            row: Tuple of (id, uuid, patient_id, location_id, visit_type,
                date_started, date_stopped); the datetime columns arrive
                already parsed by the connection.
        """
        return cls(
            id=row[0],
            uuid=row[1],
            patient_id=row[2],
            location_id=row[3],
            visit_type=row[4],
            date_started=row[5],
            date_stopped=row[6],
        )
