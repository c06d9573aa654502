"""Shared API dependencies for authentication and gate access."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from docgate.core.exceptions import GateError
from docgate.services.address import Address
from docgate.services.gate import AccessGate

ACCESS_DENIED_DETAIL = "Access denied"

# Missing credentials are reported like any other denial, so no auto_error.
bearer_scheme = HTTPBearer(auto_error=False)


def access_denied() -> HTTPException:
    """Return the single error every authentication failure is reported as."""
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=ACCESS_DENIED_DETAIL,
    )


def get_gate(request: Request) -> AccessGate:
    """Return the gate built at application startup.

    Raises:
        HTTPException: 503 if the gate is not available.
    """
    gate: AccessGate | None = getattr(request.app.state, "gate", None)
    if gate is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not configured",
        )
    return gate


GateDep = Annotated[AccessGate, Depends(get_gate)]


def get_session_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str:
    """Extract the bearer token or deny."""
    if credentials is None or not credentials.credentials:
        raise access_denied()
    return credentials.credentials


SessionTokenDep = Annotated[str, Depends(get_session_token)]


def get_current_address(gate: GateDep, token: SessionTokenDep) -> Address:
    """Return the authenticated, still allow-listed address for the request."""
    try:
        return gate.authenticate(token)
    except GateError as err:
        raise access_denied() from err


CurrentAddressDep = Annotated[Address, Depends(get_current_address)]
