# src/docgate/api/v1/endpoints/auth.py
"""Wallet login endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from docgate.api.v1.dependencies import CurrentAddressDep, GateDep, access_denied
from docgate.core.exceptions import (
    AuthenticationError,
    InvalidAddressFormat,
    TooManyPendingChallenges,
)
from docgate.schemas.auth import (
    ChallengeRequest,
    ChallengeResponse,
    LoginRequest,
    LoginResponse,
    SessionResponse,
)
from docgate.services.address import to_checksum

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post(
    "/challenge",
    summary="Issue a single-use login challenge",
    response_model=ChallengeResponse,
)
async def issue_challenge(payload: ChallengeRequest, gate: GateDep) -> ChallengeResponse:
    """Provide clients with a message for their wallet to sign."""
    try:
        challenge = gate.start_login(payload.address)
    except InvalidAddressFormat as err:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid address format",
        ) from err
    except TooManyPendingChallenges as err:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many pending challenges, try again later",
            headers={"Retry-After": str(int(gate.challenges.ttl.total_seconds()))},
        ) from err

    return ChallengeResponse(
        challenge_id=challenge.challenge_id,
        message=challenge.message,
        expires_at=challenge.expires_at,
    )


@router.post(
    "/login",
    summary="Exchange a signed challenge for a session",
    status_code=status.HTTP_200_OK,
    response_model=LoginResponse,
)
async def login(payload: LoginRequest, gate: GateDep) -> LoginResponse:
    """Authenticate by providing a wallet signature over a challenge.

    Every failure (unknown challenge, bad signature, address not allow-listed)
    yields the same 403 response.
    """
    try:
        session = gate.complete_login(payload.challenge_id, payload.address, payload.signature)
    except AuthenticationError as err:
        raise access_denied() from err

    return LoginResponse(
        access_token=session.token,
        token_type="bearer",
        expires_at=session.expires_at,
        address=session.address,
    )


@router.get(
    "/session",
    summary="Describe the current session",
    response_model=SessionResponse,
)
async def current_session(address: CurrentAddressDep) -> SessionResponse:
    """Return the identity behind a valid, still authorized session."""
    return SessionResponse(address=address, checksum_address=to_checksum(address))
