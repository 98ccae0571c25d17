"""Application configuration."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables."""

    auth_provider: Literal["mock", "firebase"] = "firebase"
    firebase_project_id: str | None = None
    firebase_client_email: str | None = None
    firebase_private_key: SecretStr | None = None
    firebase_api_key: SecretStr | None = None

    verification_timeout_seconds: float = Field(default=10.0, ge=1.0, le=30.0)
    client_request_timeout_seconds: float = Field(default=10.0, gt=0)
    session_settle_timeout_seconds: float = Field(default=5.0, gt=0)
    session_policy: Literal["verify_with_backend", "trust_provider"] = "verify_with_backend"

    api_base_url: str = "http://localhost:8000"
    federated_provider_id: str = "google.com"
    federated_request_uri: str = "http://localhost"

    model_config = SettingsConfigDict(env_prefix="AUTHSYNC_", extra="ignore")

    def firebase_service_account(self) -> dict[str, str] | None:
        """Return service-account info for the Admin SDK, or None to use default credentials."""
        if not (self.firebase_project_id and self.firebase_client_email and self.firebase_private_key):
            return None
        # Deployment secrets usually carry the PEM with escaped newlines.
        private_key = self.firebase_private_key.get_secret_value().replace("\\n", "\n")
        return {
            "type": "service_account",
            "project_id": self.firebase_project_id,
            "client_email": self.firebase_client_email,
            "private_key": private_key,
            "token_uri": "https://oauth2.googleapis.com/token",
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
