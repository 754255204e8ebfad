"""
Base database connection and initialization.

This module handles database connection management and schema initialization.
Optimized for SQLite concurrency with WAL mode and busy_timeout.

IMPORTANT: Database instantiation should be done through the DI layer.
Use emr_svc.core.dependencies.get_database() instead of instantiating directly.
"""
import logging
import sqlite3
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from emr_svc.core.config import DATABASE_BUSY_TIMEOUT, DATABASE_PATH
from emr_svc.core import metadata

logger = logging.getLogger(__name__)


# =============================================================================
# COLUMN TYPE CONVERTERS
# =============================================================================
# Declared column types are parsed on read so result rows carry real dates
# and booleans. Converter names are case-insensitive and receive raw bytes.

def _convert_date(value: bytes) -> date:
    return date.fromisoformat(value.decode()[:10])


def _convert_datetime(value: bytes) -> datetime:
    return datetime.fromisoformat(value.decode())


def _convert_boolean(value: bytes) -> bool:
    return value not in (b"0", b"", b"false", b"FALSE")


sqlite3.register_converter("DATE", _convert_date)
sqlite3.register_converter("DATETIME", _convert_datetime)
sqlite3.register_converter("TIMESTAMP", _convert_datetime)
sqlite3.register_converter("BOOLEAN", _convert_boolean)


SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS global_properties (
        property TEXT PRIMARY KEY,
        value TEXT,
        description TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS locations (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        uuid TEXT UNIQUE NOT NULL,
        name TEXT NOT NULL,
        mfl_code TEXT,
        retired BOOLEAN NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS identifier_types (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        uuid TEXT UNIQUE NOT NULL,
        name TEXT UNIQUE NOT NULL,
        validator TEXT
    )
    """,
    # identifier_type_id is UNIQUE: at most one source per identifier type
    """
    CREATE TABLE IF NOT EXISTS identifier_sources (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        identifier_type_id INTEGER NOT NULL UNIQUE,
        name TEXT NOT NULL,
        description TEXT,
        prefix TEXT,
        base_character_set TEXT NOT NULL,
        first_identifier_base TEXT NOT NULL,
        max_length INTEGER,
        next_sequence_value INTEGER NOT NULL,
        auto_generation_enabled BOOLEAN NOT NULL DEFAULT 1,
        manual_entry_enabled BOOLEAN NOT NULL DEFAULT 1,
        date_created DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
        FOREIGN KEY (identifier_type_id) REFERENCES identifier_types(id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS identifier_log (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        source_id INTEGER NOT NULL,
        identifier TEXT NOT NULL,
        comment TEXT,
        date_generated DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
        FOREIGN KEY (source_id) REFERENCES identifier_sources(id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS visits (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        uuid TEXT UNIQUE NOT NULL,
        patient_id INTEGER NOT NULL,
        location_id INTEGER,
        visit_type TEXT,
        date_started DATETIME NOT NULL,
        date_stopped DATETIME,
        voided BOOLEAN NOT NULL DEFAULT 0,
        FOREIGN KEY (location_id) REFERENCES locations(id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS laboratory_extract (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        encounter_id INTEGER NOT NULL,
        patient_id INTEGER NOT NULL,
        visit_date DATE NOT NULL,
        lab_test TEXT NOT NULL,
        is_panel BOOLEAN NOT NULL DEFAULT 0,
        result_test_name TEXT,
        result_name TEXT
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_visits_patient ON visits (patient_id, date_started)",
    "CREATE INDEX IF NOT EXISTS idx_lab_visit_date ON laboratory_extract (visit_date)",
)


class Database:
    """
    SQLite database connection manager with concurrency optimizations.

    Features:
    - WAL mode for better concurrent read/write performance
    - Busy timeout to handle lock contention gracefully
    - Foreign key constraints enabled by default
    - Declared DATE/DATETIME/BOOLEAN columns parsed into Python values

    Every call to get_connection() returns a new connection; callers own it
    and must close it. Connections are never shared between threads.

    Usage:
        # Via dependency injection (recommended):
        from emr_svc.core.dependencies import get_database
        db = get_database()

        # Direct instantiation (for testing):
        db = Database(db_path="/tmp/test.db")
    """

    def __init__(self, db_path: Optional[str] = None, busy_timeout: Optional[int] = None):
        """
        Initialize database connection.

        Args:
            db_path: Path to SQLite database file. Defaults to config DATABASE_PATH.
            busy_timeout: SQLite busy timeout in milliseconds. Defaults to config value.
        """
        self.db_path = db_path or DATABASE_PATH
        self.busy_timeout = busy_timeout if busy_timeout is not None else DATABASE_BUSY_TIMEOUT

        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        self._init_db()

    def _configure_connection(self, conn: sqlite3.Connection) -> None:
        """
        Configure connection with settings for concurrent access.

        Args:
            conn: SQLite connection to configure.
        """
        conn.execute(f"PRAGMA busy_timeout = {int(self.busy_timeout)}")
        conn.execute("PRAGMA foreign_keys = ON")

    def _init_db(self) -> None:
        """Initialize schema, enable WAL mode and install core metadata."""
        conn = sqlite3.connect(self.db_path)
        try:
            self._configure_connection(conn)
            cursor = conn.cursor()

            # WAL mode persists in the database file
            cursor.execute("PRAGMA journal_mode = WAL")
            result = cursor.fetchone()
            if result and result[0].lower() == "wal":
                logger.info(f"SQLite WAL mode enabled for {self.db_path}")
            else:
                logger.warning(f"Failed to enable WAL mode, current mode: {result}")

            for statement in SCHEMA:
                cursor.execute(statement)

            self._install_metadata(cursor)
            conn.commit()
        finally:
            conn.close()

        logger.info(
            f"Database initialized: {self.db_path} "
            f"(busy_timeout={self.busy_timeout}ms)"
        )

    def _install_metadata(self, cursor: sqlite3.Cursor) -> None:
        """Install the patient identifier types the identifier sources hang off."""
        cursor.executemany(
            "INSERT OR IGNORE INTO identifier_types (uuid, name, validator) VALUES (?, ?, ?)",
            [
                (metadata.OPENMRS_ID_UUID, metadata.OPENMRS_ID_NAME, metadata.OPENMRS_ID_VALIDATOR),
                (metadata.UNIQUE_PATIENT_NUMBER_UUID, metadata.UNIQUE_PATIENT_NUMBER_NAME, None),
            ],
        )

    def get_connection(self) -> sqlite3.Connection:
        """
        Get a new database connection with concurrency settings.

        Returns:
            sqlite3.Connection: A new connection with foreign keys enabled,
                busy timeout set and declared-type parsing switched on.
        """
        conn = sqlite3.connect(
            self.db_path,
            detect_types=sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES,
        )
        self._configure_connection(conn)
        return conn
