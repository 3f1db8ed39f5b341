"""
Unit tests for environment-driven settings.
"""

import pytest

from gcs_easy.config.settings import Settings, get_settings
from gcs_easy.core.models import ClientConfig, ServiceAccountCredentials


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep a developer's .env and GCS_* variables out of these tests."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "GCS_PROJECT_ID",
        "GCS_DEFAULT_BUCKET",
        "GCS_KEY_FILENAME",
        "GCS_CLIENT_EMAIL",
        "GCS_PRIVATE_KEY",
        "GCS_MOCK_MODE",
    ):
        monkeypatch.delenv(name, raising=False)


class TestSettings:

    def test_defaults(self):
        settings = Settings()

        assert settings.gcs_default_bucket is None
        assert settings.gcs_mock_mode is False
        assert settings.to_client_config() == ClientConfig()

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("GCS_PROJECT_ID", "proj")
        monkeypatch.setenv("GCS_DEFAULT_BUCKET", "b1")
        monkeypatch.setenv("GCS_KEY_FILENAME", "/keys/sa.json")
        monkeypatch.setenv("GCS_MOCK_MODE", "true")

        settings = Settings()

        assert settings.gcs_mock_mode is True
        assert settings.to_client_config() == ClientConfig(
            project_id="proj",
            default_bucket="b1",
            key_filename="/keys/sa.json",
        )

    def test_private_key_newlines_are_unescaped(self):
        settings = Settings(
            gcs_client_email="sa@p.iam",
            gcs_private_key="-----BEGIN-----\\nabc\\n-----END-----",
        )

        assert settings.gcs_credentials == ServiceAccountCredentials(
            client_email="sa@p.iam",
            private_key="-----BEGIN-----\nabc\n-----END-----",
        )

    def test_half_filled_credentials_are_reported(self):
        settings = Settings(gcs_client_email="sa@p.iam")
        assert settings.validate_required_fields() == ["GCS_PRIVATE_KEY"]

        settings = Settings(gcs_private_key="KEY")
        assert settings.validate_required_fields() == ["GCS_CLIENT_EMAIL"]

    def test_nothing_is_required_for_ambient_credentials(self):
        assert Settings().validate_required_fields() == []

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()
