"""
Domain models for patient identifier types and identifier sources.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class IdentifierType:
    """A patient identifier type, optionally bound to a check-digit validator."""

    id: int
    uuid: str
    name: str
    validator: Optional[str] = None

    @classmethod
    def from_row(cls, row: tuple) -> "IdentifierType":
        """Create from a (id, uuid, name, validator) row."""
        return cls(id=row[0], uuid=row[1], name=row[2], validator=row[3])


@dataclass(frozen=True)
class IdentifierSourceConfig:
    """
    Sequential identifier source for one identifier type.

    The sequence cursor itself is not part of this model: it lives in the
    identifier_sources row and is only touched through
    IdentifierRepository.reserve_sequence_value().
    """

    id: int
    identifier_type: IdentifierType
    name: str
    description: Optional[str]
    prefix: Optional[str]
    base_character_set: str
    first_identifier_base: str
    max_length: Optional[int] = None
    auto_generation_enabled: bool = True
    manual_entry_enabled: bool = True

    @property
    def validator(self) -> Optional[str]:
        return self.identifier_type.validator

    def to_dict(self) -> Dict[str, Any]:
        """Convert source to dictionary for API responses."""
        return {
            "id": self.id,
            "identifier_type": self.identifier_type.uuid,
            "identifier_type_name": self.identifier_type.name,
            "name": self.name,
            "description": self.description,
            "prefix": self.prefix,
            "base_character_set": self.base_character_set,
            "first_identifier_base": self.first_identifier_base,
            "max_length": self.max_length,
            "validator": self.validator,
            "auto_generation_enabled": self.auto_generation_enabled,
            "manual_entry_enabled": self.manual_entry_enabled,
        }
