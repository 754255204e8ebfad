"""
Configuration module for the EMR Service API.
Uses Pydantic BaseSettings for validation - app fails fast if config is invalid.
"""
import logging
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_QUERIES_FILE = Path(__file__).parent / "queries.yaml"


class Settings(BaseSettings):
    """
    Application settings with validation.

    Every global lookup the service performs (database location, query
    templates, SMS gateway) is enumerated here and read once at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database Configuration
    emr_svc_db_dir: str = Field(default="data", description="Database directory")
    emr_svc_db_file: str = Field(default="kenyaemr.db", description="Database filename")
    emr_svc_db_busy_timeout: int = Field(default=5000, description="SQLite busy timeout in milliseconds")

    # API Configuration
    emr_svc_host: str = Field(default="0.0.0.0", description="API host")
    emr_svc_port: int = Field(default=8000, description="API port")
    emr_svc_reload: bool = Field(default=False, description="Enable hot reload")

    # Query Engine Configuration
    emr_svc_queries_file: str = Field(
        default="",
        description="YAML file holding the named query templates (defaults to the packaged queries.yaml)",
    )
    emr_svc_default_page_size: int = Field(
        default=1000,
        description="Number of rows fetched from the cursor per round trip",
    )

    # SMS Gateway Configuration (Optional)
    kenyaemr_sms_url: str = Field(default="", description="SMS gateway endpoint")
    kenyaemr_sms_api_token: str = Field(default="", description="SMS gateway api-token header")
    kenyaemr_sms_sender_id: str = Field(default="", description="SMS sender id")
    kenyaemr_sms_gateway: str = Field(default="", description="SMS gateway name")
    kenyaemr_sms_timeout: int = Field(default=30, description="SMS gateway timeout in seconds")

    @model_validator(mode="after")
    def validate_settings(self) -> "Settings":
        """
        Validate settings at startup and fail fast with clear error messages.
        """
        if self.emr_svc_default_page_size < 1:
            raise ValueError("EMR_SVC_DEFAULT_PAGE_SIZE must be a positive integer")

        if not self.kenyaemr_sms_url:
            logger.warning("KENYAEMR_SMS_URL not set - SMS notifications will be disabled")

        return self

    @property
    def database_path(self) -> str:
        """Get the full database path."""
        return str(Path(self.emr_svc_db_dir) / self.emr_svc_db_file)

    @property
    def queries_path(self) -> Path:
        """Get the query template file, falling back to the packaged one."""
        if self.emr_svc_queries_file:
            return Path(self.emr_svc_queries_file)
        return DEFAULT_QUERIES_FILE

    def ensure_directories(self) -> None:
        """Ensure required directories exist."""
        Path(self.emr_svc_db_dir).mkdir(parents=True, exist_ok=True)


# Create global settings instance - fails fast if config is invalid
settings = Settings()

DATABASE_PATH = settings.database_path
DATABASE_BUSY_TIMEOUT = settings.emr_svc_db_busy_timeout

API_HOST = settings.emr_svc_host
API_PORT = settings.emr_svc_port
API_RELOAD = settings.emr_svc_reload
