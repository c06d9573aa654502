"""Single-use login challenges."""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from threading import Lock
from typing import Final

from docgate.core.exceptions import (
    ChallengeExpired,
    ChallengeNotFound,
    TooManyPendingChallenges,
)
from docgate.services.address import Address

logger = logging.getLogger(__name__)

CHALLENGE_ID_BYTES: Final[int] = 16
DEFAULT_MAX_PENDING: Final[int] = 10_000


@dataclass(frozen=True)
class LoginChallenge:
    """An unpredictable message a wallet must sign to log in."""

    challenge_id: str
    message: str
    issued_at: datetime
    expires_at: datetime
    address: Address | None = None

    @property
    def message_bytes(self) -> bytes:
        return self.message.encode("utf-8")

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


def render_challenge_message(
    domain: str,
    challenge_id: str,
    issued_at: datetime,
    expires_at: datetime,
    address: Address | None,
) -> str:
    """Build the human-readable text shown in the wallet signing prompt."""
    return (
        f"{domain} wants you to sign in.\n"
        "\n"
        f"Address: {address or 'any'}\n"
        f"Nonce: {challenge_id}\n"
        f"Issued At: {issued_at.isoformat()}\n"
        f"Expiration Time: {expires_at.isoformat()}"
    )


class ChallengeStore:
    """In-process store with exactly-once consumption of challenges.

    Issue and consume are serialized by a lock; consumption removes the entry
    before returning it so two concurrent consumers can never both succeed.
    At most ``max_pending`` unexpired challenges are held at once.
    """

    def __init__(
        self,
        ttl: timedelta,
        domain: str = "docgate",
        max_pending: int = DEFAULT_MAX_PENDING,
    ) -> None:
        if ttl <= timedelta(0):
            raise ValueError("Challenge TTL must be positive")
        if max_pending < 1:
            raise ValueError("Challenge capacity must be positive")
        self._max_pending = max_pending
        self._ttl = ttl
        self._domain = domain
        self._pending: dict[str, LoginChallenge] = {}
        self._lock = Lock()

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    @property
    def max_pending(self) -> int:
        return self._max_pending

    def issue(self, now: datetime, address: Address | None = None) -> LoginChallenge:
        """Create and remember a new challenge, optionally bound to ``address``.

        Raises:
            TooManyPendingChallenges: If the store is full after dropping
                expired entries.
        """
        challenge_id = secrets.token_hex(CHALLENGE_ID_BYTES)
        expires_at = now + self._ttl
        challenge = LoginChallenge(
            challenge_id=challenge_id,
            message=render_challenge_message(self._domain, challenge_id, now, expires_at, address),
            issued_at=now,
            expires_at=expires_at,
            address=address,
        )
        with self._lock:
            self._purge_locked(now)
            if len(self._pending) >= self._max_pending:
                logger.warning("Refusing challenge: %d pending", len(self._pending))
                raise TooManyPendingChallenges("Too many pending login challenges")
            self._pending[challenge_id] = challenge
        return challenge

    def consume(self, challenge_id: str, now: datetime) -> LoginChallenge:
        """Remove and return a pending challenge.

        Raises:
            ChallengeNotFound: If the id is unknown or was already consumed.
            ChallengeExpired: If the challenge outlived its window; it is
                discarded either way.
        """
        with self._lock:
            challenge = self._pending.pop(challenge_id, None)
        if challenge is None:
            raise ChallengeNotFound("Unknown or already used challenge")
        if challenge.is_expired(now):
            raise ChallengeExpired("Challenge has expired")
        return challenge

    def is_pending(self, challenge_id: str, now: datetime) -> bool:
        """Return True if ``challenge_id`` was issued, not consumed, and not expired."""
        with self._lock:
            challenge = self._pending.get(challenge_id)
        return challenge is not None and not challenge.is_expired(now)

    def purge_expired(self, now: datetime) -> int:
        """Drop expired challenges and return how many were removed."""
        with self._lock:
            return self._purge_locked(now)

    def _purge_locked(self, now: datetime) -> int:
        stale = [key for key, value in self._pending.items() if value.is_expired(now)]
        for key in stale:
            del self._pending[key]
        if stale:
            logger.debug("Purged %d expired challenge(s)", len(stale))
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)
