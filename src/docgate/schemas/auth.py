"""Authentication-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class ChallengeRequest(BaseModel):
    """Request to obtain a login challenge."""

    address: str | None = Field(
        None,
        max_length=64,
        description="Optional address to bind the challenge to (0x-prefixed hex)",
    )


class ChallengeResponse(BaseModel):
    """Challenge the wallet must sign with ``personal_sign``."""

    challenge_id: str = Field(..., description="Opaque identifier to return on login")
    message: str = Field(..., description="Exact text the wallet must sign")
    expires_at: datetime = Field(..., description="Instant after which the challenge is void")


class LoginRequest(BaseModel):
    """Signed challenge submitted to obtain a session."""

    challenge_id: str = Field(..., min_length=1, max_length=128)
    address: str = Field(..., max_length=64, description="Address the client claims to control")
    signature: str = Field(..., max_length=200, description="0x-prefixed hex wallet signature")


class LoginResponse(BaseModel):
    """Response returned after successful login."""

    access_token: str = Field(..., description="Session bearer token")
    token_type: str = Field("bearer", description="Token type (always 'bearer')")
    expires_at: datetime = Field(..., description="Session expiry")
    address: str = Field(..., description="Canonical authenticated address")


class SessionResponse(BaseModel):
    """Identity attached to a valid session."""

    address: str = Field(..., description="Canonical authenticated address")
    checksum_address: str = Field(..., description="EIP-55 display form of the address")
