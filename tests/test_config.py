"""Tests for Settings (project id + environment detection) and error serialization."""

from gcp_logger.config import UNKNOWN_PROJECT, Settings
from gcp_logger.errors import serialize_error


def test_project_id_precedence():
    settings = Settings(google_cloud_project="primary", gcloud_project="legacy")

    assert settings.resolve_project_id("explicit") == "explicit"
    assert settings.resolve_project_id() == "primary"
    assert Settings(gcloud_project="legacy").resolve_project_id() == "legacy"
    assert Settings().resolve_project_id() == UNKNOWN_PROJECT


def test_project_id_read_from_env(monkeypatch):
    monkeypatch.setenv("GOOGLE_CLOUD_PROJECT", "env-project")
    monkeypatch.setenv("GCLOUD_PROJECT", "other-project")

    assert Settings().resolve_project_id() == "env-project"


def test_environment_defaults_to_development():
    assert Settings().detect_environment() == "development"


def test_cloud_run_detected_as_production(monkeypatch):
    monkeypatch.setenv("K_SERVICE", "my-service")

    settings = Settings()

    assert settings.on_cloud_run
    assert settings.detect_environment() == "production"


def test_explicit_environment_wins(monkeypatch):
    monkeypatch.setenv("K_CONFIGURATION", "my-service")
    monkeypatch.setenv("GCP_LOGGER_ENVIRONMENT", "staging")

    assert Settings().detect_environment() == "staging"


def test_environment_override_is_normalized(monkeypatch):
    monkeypatch.setenv("GCP_LOGGER_ENVIRONMENT", " Production ")

    assert Settings().gcp_logger_environment == "production"
    assert Settings().detect_environment() == "production"


def test_blank_environment_override_is_unset(monkeypatch):
    monkeypatch.setenv("K_SERVICE", "my-service")
    monkeypatch.setenv("GCP_LOGGER_ENVIRONMENT", "   ")

    assert Settings().gcp_logger_environment is None
    assert Settings().detect_environment() == "production"


def test_serialize_error_follows_cause():
    try:
        try:
            raise KeyError("inner")
        except KeyError as inner:
            raise RuntimeError("outer") from inner
    except RuntimeError as exc:
        data = serialize_error(exc)

    assert data["name"] == "RuntimeError"
    assert data["message"] == "outer"
    assert data["cause"]["name"] == "KeyError"
    assert "cause" not in data["cause"]


def test_serialize_error_without_traceback():
    data = serialize_error(ValueError("never raised"))

    assert data == {
        "name": "ValueError",
        "message": "never raised",
        "stack": "ValueError: never raised\n",
    }
