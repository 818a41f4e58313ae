"""Runtime configuration via environment variables.

Uses pydantic-settings to read the variables Google Cloud already sets on
Cloud Run / GCE / App Engine (GOOGLE_CLOUD_PROJECT, K_SERVICE, ...) plus
one package-specific override, GCP_LOGGER_ENVIRONMENT. Field names match
the env var names (case-insensitive), so no prefix is applied.

Learn: Settings is injected into the middleware and the logger factory
rather than read ad hoc from os.environ, so tests can pass
Settings(google_cloud_project="x") instead of patching the process env.
"""

from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

UNKNOWN_PROJECT = "unknown-project"

PRODUCTION = "production"
DEVELOPMENT = "development"


class Settings(BaseSettings):
    """Project and environment detection. Set via env vars."""

    # Explicit environment override ("production", "development", ...)
    gcp_logger_environment: Optional[str] = None

    # Project id, checked in this order
    google_cloud_project: Optional[str] = None
    gcloud_project: Optional[str] = None

    # Cloud Run service metadata; any of these set means we're deployed
    k_service: Optional[str] = None
    k_revision: Optional[str] = None
    k_configuration: Optional[str] = None

    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")

    @field_validator("gcp_logger_environment")
    @classmethod
    def normalize_environment(cls, value: Optional[str]) -> Optional[str]:
        """Case and surrounding whitespace are ignored; blank means unset."""
        if value is None:
            return None
        return value.strip().lower() or None

    @property
    def on_cloud_run(self) -> bool:
        return bool(self.k_service or self.k_revision or self.k_configuration)

    def resolve_project_id(self, explicit: Optional[str] = None) -> str:
        """Explicit value > GOOGLE_CLOUD_PROJECT > GCLOUD_PROJECT > sentinel."""
        for candidate in (explicit, self.google_cloud_project, self.gcloud_project):
            if candidate is not None:
                return candidate
        return UNKNOWN_PROJECT

    def detect_environment(self) -> str:
        """Configured environment, else "production" on Cloud Run, else "development"."""
        if self.gcp_logger_environment:
            return self.gcp_logger_environment
        if self.on_cloud_run:
            return PRODUCTION
        return DEVELOPMENT


def get_settings() -> Settings:
    """Read a fresh Settings from the current environment."""
    return Settings()
