"""Pydantic schemas for the HTTP API."""

from .auth import (
    ChallengeRequest,
    ChallengeResponse,
    LoginRequest,
    LoginResponse,
    SessionResponse,
)
from .system import PublicConfig

__all__ = [
    "ChallengeRequest",
    "ChallengeResponse",
    "LoginRequest",
    "LoginResponse",
    "PublicConfig",
    "SessionResponse",
]
