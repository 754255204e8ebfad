"""
Domain model for locations (facilities).
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Location:
    """A facility, identified nationally by its Master Facility List (MFL) code."""

    id: int
    uuid: str
    name: str
    mfl_code: Optional[str] = None
    retired: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert location to dictionary for API responses."""
        return {
            "id": self.id,
            "uuid": self.uuid,
            "name": self.name,
            "mfl_code": self.mfl_code,
            "retired": self.retired,
        }

    @classmethod
    def from_row(cls, row: tuple) -> "Location":
        """
        Create a Location from a database row tuple.

        Args:
            row: Tuple of (id, uuid, name, mfl_code, retired).
        """
        return cls(
            id=row[0],
            uuid=row[1],
            name=row[2],
            mfl_code=row[3],
            retired=bool(row[4]),
        )
