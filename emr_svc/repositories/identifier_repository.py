"""
Repository for identifier types, identifier sources and their sequence cursors.

The sequence cursor (identifier_sources.next_sequence_value) is only ever
read and advanced through reserve_sequence_value(), which does the
read-check-write inside one IMMEDIATE transaction. That transaction holds
SQLite's write lock for the whole round trip, so two callers - threads or
processes - can never reserve the same value.
"""
import logging
import sqlite3
import uuid
from typing import Optional

from emr_svc.core.exceptions import CapacityError
from emr_svc.models.identifier import IdentifierSourceConfig, IdentifierType
from emr_svc.repositories.base import Database

logger = logging.getLogger(__name__)

_SOURCE_QUERY = """
    SELECT s.id, s.name, s.description, s.prefix, s.base_character_set,
           s.first_identifier_base, s.max_length,
           s.auto_generation_enabled, s.manual_entry_enabled,
           t.id, t.uuid, t.name, t.validator
    FROM identifier_sources s
    INNER JOIN identifier_types t ON t.id = s.identifier_type_id
"""


def _source_from_row(row: tuple) -> IdentifierSourceConfig:
    return IdentifierSourceConfig(
        id=row[0],
        name=row[1],
        description=row[2],
        prefix=row[3],
        base_character_set=row[4],
        first_identifier_base=row[5],
        max_length=row[6],
        auto_generation_enabled=bool(row[7]),
        manual_entry_enabled=bool(row[8]),
        identifier_type=IdentifierType(id=row[9], uuid=row[10], name=row[11], validator=row[12]),
    )


class IdentifierRepository:
    """
    Repository for identifier metadata and sequence state.

    It should be instantiated via emr_svc.core.dependencies.get_identifier_repository().
    """

    def __init__(self, db: Database):
        """
        Initialize the identifier repository.

        Args:
            db: Database instance for data access.
        """
        self._db = db

    # =========================================================================
    # IDENTIFIER TYPES
    # =========================================================================

    def get_type(self, key: str) -> Optional[IdentifierType]:
        """
        Get an identifier type by uuid or by name.

        Returns:
            Optional[IdentifierType]: The type, or None if not found.
        """
        conn = self._db.get_connection()
        try:
            row = conn.execute(
                "SELECT id, uuid, name, validator FROM identifier_types WHERE uuid = ? OR name = ? LIMIT 1",
                (key, key),
            ).fetchone()
        finally:
            conn.close()
        return IdentifierType.from_row(row) if row else None

    def add_type(self, name: str, validator: Optional[str] = None, type_uuid: Optional[str] = None) -> IdentifierType:
        """Add an identifier type and return it."""
        type_uuid = type_uuid or str(uuid.uuid4())
        conn = self._db.get_connection()
        try:
            cursor = conn.execute(
                "INSERT INTO identifier_types (uuid, name, validator) VALUES (?, ?, ?)",
                (type_uuid, name, validator),
            )
            conn.commit()
            type_id = cursor.lastrowid
        finally:
            conn.close()
        logger.info(f"Identifier type created: {name} (id={type_id})")
        return IdentifierType(id=type_id, uuid=type_uuid, name=name, validator=validator)

    # =========================================================================
    # IDENTIFIER SOURCES
    # =========================================================================

    def get_source_for_type(self, identifier_type_id: int) -> Optional[IdentifierSourceConfig]:
        """Get the identifier source configured for a type, if any."""
        conn = self._db.get_connection()
        try:
            row = conn.execute(
                _SOURCE_QUERY + " WHERE s.identifier_type_id = ?", (identifier_type_id,)
            ).fetchone()
        finally:
            conn.close()
        return _source_from_row(row) if row else None

    def get_source(self, source_id: int) -> Optional[IdentifierSourceConfig]:
        conn = self._db.get_connection()
        try:
            row = conn.execute(_SOURCE_QUERY + " WHERE s.id = ?", (source_id,)).fetchone()
        finally:
            conn.close()
        return _source_from_row(row) if row else None

    def add_source(
        self,
        identifier_type: IdentifierType,
        name: str,
        description: Optional[str],
        prefix: Optional[str],
        base_character_set: str,
        first_identifier_base: str,
        first_sequence_value: int,
        max_length: Optional[int] = None,
        auto_generation_enabled: bool = True,
        manual_entry_enabled: bool = True,
    ) -> Optional[IdentifierSourceConfig]:
        """
        Add an identifier source and return it.

        Returns:
            Optional[IdentifierSourceConfig]: The created source, or None if the
                identifier type already has one (UNIQUE constraint violation).
        """
        conn = self._db.get_connection()
        try:
            cursor = conn.execute(
                """
                INSERT INTO identifier_sources
                (identifier_type_id, name, description, prefix, base_character_set,
                 first_identifier_base, max_length, next_sequence_value,
                 auto_generation_enabled, manual_entry_enabled)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    identifier_type.id,
                    name,
                    description,
                    prefix,
                    base_character_set,
                    first_identifier_base,
                    max_length,
                    first_sequence_value,
                    1 if auto_generation_enabled else 0,
                    1 if manual_entry_enabled else 0,
                ),
            )
            row = conn.execute(_SOURCE_QUERY + " WHERE s.id = ?", (cursor.lastrowid,)).fetchone()
            conn.commit()
        except sqlite3.IntegrityError:
            # Identifier type already has a source (UNIQUE constraint)
            return None
        finally:
            conn.close()
        return _source_from_row(row)

    # =========================================================================
    # SEQUENCE CURSOR
    # =========================================================================

    def reserve_sequence_value(self, source_id: int, limit: Optional[int] = None) -> int:
        """
        Atomically take the next sequence value of a source.

        Args:
            source_id: The identifier source.
            limit: Largest sequence value the source may issue, or None for no limit.

        Returns:
            int: The reserved value; the stored cursor now points past it.

        Raises:
            ValueError: If the source does not exist.
            CapacityError: If the next value would exceed `limit`. The cursor
                is left untouched, so every later call fails the same way.
        """
        conn = self._db.get_connection()
        try:
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute(
                "SELECT next_sequence_value, name FROM identifier_sources WHERE id = ?",
                (source_id,),
            ).fetchone()
            if row is None:
                raise ValueError(f"Identifier source {source_id} not found in database")

            value, name = row
            if limit is not None and value > limit:
                raise CapacityError(source_name=name, source_id=source_id, limit=limit)

            conn.execute(
                "UPDATE identifier_sources SET next_sequence_value = ? WHERE id = ?",
                (value + 1, source_id),
            )
            conn.commit()
            return value
        except BaseException:
            conn.rollback()
            raise
        finally:
            conn.close()

    def peek_sequence_value(self, source_id: int) -> Optional[int]:
        """Read the next value a source will issue, without reserving it."""
        conn = self._db.get_connection()
        try:
            row = conn.execute(
                "SELECT next_sequence_value FROM identifier_sources WHERE id = ?", (source_id,)
            ).fetchone()
        finally:
            conn.close()
        return row[0] if row else None

    def log_identifier(self, source_id: int, identifier: str, comment: Optional[str] = None) -> None:
        """Record an issued identifier with the caller's comment."""
        conn = self._db.get_connection()
        try:
            conn.execute(
                "INSERT INTO identifier_log (source_id, identifier, comment) VALUES (?, ?, ?)",
                (source_id, identifier, comment),
            )
            conn.commit()
        finally:
            conn.close()

    def count_logged(self, source_id: int) -> int:
        conn = self._db.get_connection()
        try:
            return conn.execute(
                "SELECT COUNT(*) FROM identifier_log WHERE source_id = ?", (source_id,)
            ).fetchone()[0]
        finally:
            conn.close()
