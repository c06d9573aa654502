"""Application settings and configuration.

This module defines all configuration options for DocGate. Settings are
loaded from environment variables (or an ``.env`` file) with sensible
defaults. The two secrets have no default: the gate refuses to start until
both are provided.
"""

from __future__ import annotations

import binascii

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from docgate.core.exceptions import ConfigurationError

SECRET_LENGTH_BYTES = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="DocGate", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Secrets (hex encoded, 32 bytes each)
    encryption_key: SecretStr | None = Field(default=None, alias="DOCGATE_ENCRYPTION_KEY")
    session_signing_key: SecretStr | None = Field(
        default=None,
        alias="DOCGATE_SESSION_SIGNING_KEY",
    )

    # Session tokens
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    session_ttl_seconds: int = Field(default=3600, gt=0, alias="SESSION_TTL_SECONDS")

    # Login challenges
    challenge_ttl_seconds: int = Field(default=300, gt=0, alias="CHALLENGE_TTL_SECONDS")
    challenge_domain: str = Field(default="docgate", alias="CHALLENGE_DOMAIN")
    challenge_max_pending: int = Field(default=10_000, gt=0, alias="CHALLENGE_MAX_PENDING")

    # Data sources
    allowlist_path: str = Field(default="allowlist.json", alias="ALLOWLIST_PATH")
    documents_dir: str = Field(default="content", alias="DOCUMENTS_DIR")

    # CORS configuration for the documentation frontend
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(default=["GET", "POST"], alias="CORS_ALLOW_METHODS")
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        populate_by_name=True,
        extra="ignore",
    )

    def encryption_key_bytes(self) -> bytes:
        """Return the decoded content encryption key.

        Raises:
            ConfigurationError: If the key is missing, not hex, or the wrong length.
        """
        return decode_secret("DOCGATE_ENCRYPTION_KEY", self.encryption_key)

    def session_signing_key_bytes(self) -> bytes:
        """Return the decoded session signing key.

        Raises:
            ConfigurationError: If the key is missing, not hex, or the wrong length.
        """
        return decode_secret("DOCGATE_SESSION_SIGNING_KEY", self.session_signing_key)


def decode_secret(name: str, value: SecretStr | None) -> bytes:
    """Decode a hex secret, enforcing :data:`SECRET_LENGTH_BYTES`.

    Error messages name the setting but never echo its value.
    """
    if value is None or not value.get_secret_value().strip():
        raise ConfigurationError(f"{name} is not set")
    raw = value.get_secret_value().strip()
    if raw.startswith(("0x", "0X")):
        raw = raw[2:]
    try:
        secret = binascii.unhexlify(raw)
    except (binascii.Error, ValueError) as err:
        raise ConfigurationError(f"{name} must be hex encoded") from err
    if len(secret) != SECRET_LENGTH_BYTES:
        raise ConfigurationError(
            f"{name} must decode to exactly {SECRET_LENGTH_BYTES} bytes (got {len(secret)})"
        )
    return secret


settings = Settings()  # type: ignore[call-arg]
