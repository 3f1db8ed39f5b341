"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

Mock mode enables local development without Google Cloud credentials.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.models import ClientConfig, ServiceAccountCredentials


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables
    (GCS_DEFAULT_BUCKET, GCS_MOCK_MODE, ...).
    """

    # API Configuration
    api_title: str = "gcs-easy API"
    api_version: str = "v1"

    # Google Cloud Storage Configuration
    gcs_project_id: Optional[str] = Field(
        default=None,
        description="Google Cloud project ID. Optional with application default credentials."
    )
    gcs_default_bucket: Optional[str] = Field(
        default=None,
        description="Bucket used when a call doesn't name one"
    )
    gcs_key_filename: Optional[str] = Field(
        default=None,
        description="Path to a service account JSON key file"
    )
    gcs_client_email: Optional[str] = Field(
        default=None,
        description="Service account email for inline credentials"
    )
    gcs_private_key: Optional[str] = Field(
        default=None,
        description="Service account PEM private key for inline credentials. Literal \\n sequences are unescaped."
    )
    gcs_mock_mode: bool = Field(
        default=False,
        description="Use in-memory mock instead of Google Cloud Storage. Enables local dev without credentials."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def gcs_credentials(self) -> Optional[ServiceAccountCredentials]:
        """Inline credentials, or None when neither field is set."""
        if not self.gcs_client_email and not self.gcs_private_key:
            return None
        private_key = self.gcs_private_key
        if private_key:
            # Keys pasted into env files usually carry escaped newlines
            private_key = private_key.replace("\\n", "\n")
        return ServiceAccountCredentials(
            client_email=self.gcs_client_email,
            private_key=private_key,
        )

    def to_client_config(self) -> ClientConfig:
        """Build the facade's ClientConfig from these settings."""
        return ClientConfig(
            project_id=self.gcs_project_id,
            default_bucket=self.gcs_default_bucket,
            key_filename=self.gcs_key_filename,
            credentials=self.gcs_credentials,
        )

    def validate_required_fields(self) -> list[str]:
        """
        Validate settings that depend on each other.

        Returns list of missing or inconsistent fields. Nothing is strictly
        required: without credentials the client falls back to application
        default credentials, and without a default bucket every call must
        name one. Half-filled inline credentials are the one hard error.
        """
        missing = []

        if not self.gcs_mock_mode:
            if self.gcs_client_email and not self.gcs_private_key:
                missing.append("GCS_PRIVATE_KEY")
            if self.gcs_private_key and not self.gcs_client_email:
                missing.append("GCS_CLIENT_EMAIL")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache means we only load settings once per process.
    For tests, call get_settings.cache_clear() to reset.
    """
    return Settings()
