"""
Shared configuration management for the identity administration layer.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class IdentitySettings(BaseSettings):
    """Identity layer settings, read from IDENTITY_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="IDENTITY_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Project
    project_id: Optional[str] = Field(default=None)
    service_account_email: Optional[str] = Field(default=None)

    # Backends
    directory_url: str = Field(default="https://identitytoolkit.googleapis.com")
    iam_url: str = Field(default="https://iamcredentials.googleapis.com/v1")
    id_token_certs_url: str = Field(
        default="https://www.googleapis.com/robot/v1/metadata/x509/securetoken@system.gserviceaccount.com"
    )
    session_cookie_certs_url: str = Field(
        default="https://www.googleapis.com/identitytoolkit/v3/relyingparty/publicKeys"
    )

    # HTTP
    http_timeout: float = Field(default=10.0)

    # Public key cache; used when the certificate response has no max-age
    key_cache_ttl: int = Field(default=3600)


def get_settings(**overrides) -> IdentitySettings:
    """Build settings from the environment, with explicit overrides."""
    return IdentitySettings(**overrides)
