"""Schemas for system and transparency endpoints."""

from pydantic import BaseModel


class PublicConfig(BaseModel):
    """Sanitized runtime configuration. Never includes secrets."""

    app_name: str
    app_version: str
    jwt_algorithm: str
    session_ttl_seconds: int
    challenge_ttl_seconds: int
    allowlist_size: int
