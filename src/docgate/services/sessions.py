"""Self-contained session credentials.

Sessions are HMAC-signed JWTs (``python-jose``) carrying the address and the
issue/expiry instants. There is no server-side session table: a token is
valid until it expires, and the allow-list is re-checked on every request by
the gate.
"""

from __future__ import annotations

import base64
import binascii
import json
import math
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import jws, jwt
from jose.exceptions import JWSError

from docgate.core.exceptions import (
    InvalidAddressFormat,
    SessionExpired,
    SessionMalformed,
    SessionTampered,
)
from docgate.services.address import Address, canonicalize

DEFAULT_ALGORITHM = "HS256"
_SUPPORTED_ALGORITHMS = frozenset({"HS256", "HS384", "HS512"})
_SEGMENT_COUNT = 3


@dataclass(frozen=True)
class Session:
    """An issued session and its bearer token."""

    address: Address
    issued_at: datetime
    expires_at: datetime
    token: str


def _check_algorithm(algorithm: str) -> str:
    if algorithm not in _SUPPORTED_ALGORITHMS:
        raise ValueError(f"Unsupported session algorithm: {algorithm}")
    return algorithm


def _encode_b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode().rstrip("=")


def _decode_b64(data: str) -> bytes:
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


class SessionIssuer:
    """Create signed session tokens for verified, allow-listed addresses."""

    def __init__(self, signing_key: bytes, algorithm: str = DEFAULT_ALGORITHM) -> None:
        if not signing_key:
            raise ValueError("Session signing key must not be empty")
        self._key = signing_key
        self._algorithm = _check_algorithm(algorithm)

    def issue(self, address: Address, now: datetime, ttl: timedelta) -> Session:
        """Issue a session for ``address`` valid from ``now`` for ``ttl``.

        ``iat`` is truncated to whole seconds and ``exp`` rounded up, so the
        session never expires before ``now + ttl``.

        Args:
            address: Canonical address that passed signature and allow-list checks.
            now: Current instant (timezone-aware).
            ttl: Session lifetime; at least one second.

        Returns:
            The session, including its token.
        """
        ttl_seconds = ttl.total_seconds()
        if ttl_seconds < 1:
            raise ValueError("Session TTL must be at least one second")
        canonical = canonicalize(address)
        issued_at = int(now.timestamp())
        expires_at = math.ceil(now.timestamp() + ttl_seconds)
        claims: dict[str, Any] = {"sub": canonical, "iat": issued_at, "exp": expires_at}
        token: str = jwt.encode(claims, self._key, algorithm=self._algorithm)
        return Session(
            address=canonical,
            issued_at=datetime.fromtimestamp(issued_at, UTC),
            expires_at=datetime.fromtimestamp(expires_at, UTC),
            token=token,
        )


class SessionValidator:
    """Validate session tokens produced by :class:`SessionIssuer`."""

    def __init__(self, signing_key: bytes, algorithm: str = DEFAULT_ALGORITHM) -> None:
        if not signing_key:
            raise ValueError("Session signing key must not be empty")
        self._key = signing_key
        self._algorithm = _check_algorithm(algorithm)

    def validate(self, session_token: bytes | str, now: datetime) -> Address:
        """Return the authenticated address embedded in ``session_token``.

        Args:
            session_token: Bearer token as received from the client.
            now: Current instant (timezone-aware).

        Raises:
            SessionMalformed: If the token is not ASCII text, or its claims are
                missing or ill-typed under a valid integrity tag.
            SessionTampered: If the text cannot be verified as a signed token:
                wrong segment count, non-canonical encoding or a bad tag.
            SessionExpired: If ``now`` is past the embedded expiry.
        """
        token = self._as_text(session_token)
        segments = token.split(".")
        if len(segments) != _SEGMENT_COUNT or not all(segments):
            raise SessionTampered("Session token failed integrity check")

        for segment in segments:
            try:
                decoded = _decode_b64(segment)
            except (binascii.Error, ValueError) as err:
                raise SessionTampered("Session token failed integrity check") from err
            if _encode_b64(decoded) != segment:
                raise SessionTampered("Session token failed integrity check")

        try:
            payload = jws.verify(token, self._key, algorithms=[self._algorithm])
        except JWSError as err:
            raise SessionTampered("Session token failed integrity check") from err

        claims = self._parse_claims(payload)
        expires_at = datetime.fromtimestamp(claims["exp"], UTC)
        if now > expires_at:
            raise SessionExpired("Session has expired")
        return claims["sub"]

    @staticmethod
    def _as_text(session_token: bytes | str) -> str:
        if isinstance(session_token, (bytes, bytearray)):
            try:
                return bytes(session_token).decode("ascii")
            except UnicodeDecodeError as err:
                raise SessionMalformed("Session token must be ASCII") from err
        if not isinstance(session_token, str):
            raise SessionMalformed("Session token must be text")
        if not session_token.isascii():
            raise SessionMalformed("Session token must be ASCII")
        return session_token

    @staticmethod
    def _parse_claims(payload: bytes) -> dict[str, Any]:
        try:
            claims = json.loads(payload)
        except (UnicodeDecodeError, ValueError) as err:
            raise SessionMalformed("Session claims are not valid JSON") from err
        if not isinstance(claims, dict):
            raise SessionMalformed("Session claims must be an object")

        for name in ("iat", "exp"):
            value = claims.get(name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise SessionMalformed(f"Session claim {name!r} must be an integer")
        if claims["exp"] < claims["iat"]:
            raise SessionMalformed("Session expires before it was issued")

        try:
            claims["sub"] = canonicalize(claims.get("sub"))  # type: ignore[arg-type]
        except InvalidAddressFormat as err:
            raise SessionMalformed("Session subject is not a valid address") from err
        return claims
