"""Access gate orchestrating login and protected content fetches.

Per-client lifecycle::

    ANONYMOUS --start_login--> CHALLENGE_ISSUED --complete_login--> AUTHENTICATED
        ^                                                              |
        +--------------------------- session expired ------------------+

Only the challenge store is stateful; sessions are self-verifying tokens.
Allow-list membership is checked at login and again on every content fetch.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

from docgate.core.exceptions import (
    AddressNotWhitelisted,
    AuthenticationError,
    ConfigurationError,
    ContentError,
    ContentStorageError,
    InvalidAddressFormat,
    SignatureMismatch,
)
from docgate.core.security import verify_signature
from docgate.core.settings import Settings
from docgate.services.address import Address, canonicalize
from docgate.services.allowlist import AllowList, AllowListSource
from docgate.services.challenges import ChallengeStore, LoginChallenge
from docgate.services.cipher import ContentCipher
from docgate.services.documents import DocumentStore, FileSystemDocumentStore
from docgate.services.sessions import Session, SessionIssuer, SessionValidator

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
SignatureVerifier = Callable[[bytes, Any, Address], bool]


def utc_now() -> datetime:
    return datetime.now(UTC)


class ClientState(str, Enum):
    """Where a client stands in the login lifecycle."""

    ANONYMOUS = "anonymous"
    CHALLENGE_ISSUED = "challenge_issued"
    AUTHENTICATED = "authenticated"


class AccessGate:
    """The only component the web layer talks to."""

    def __init__(
        self,
        *,
        allowlist: AllowList,
        issuer: SessionIssuer,
        validator: SessionValidator,
        cipher: ContentCipher,
        documents: DocumentStore,
        challenges: ChallengeStore,
        session_ttl: timedelta,
        verifier: SignatureVerifier = verify_signature,
        clock: Clock = utc_now,
        allowlist_source: AllowListSource | None = None,
    ) -> None:
        self.allowlist = allowlist
        self.challenges = challenges
        self.documents = documents
        self.session_ttl = session_ttl
        self._issuer = issuer
        self._validator = validator
        self._cipher = cipher
        self._verifier = verifier
        self._clock = clock
        self._allowlist_source = allowlist_source

    @classmethod
    def from_settings(
        cls,
        config: Settings,
        *,
        documents: DocumentStore | None = None,
        clock: Clock = utc_now,
    ) -> AccessGate:
        """Build a gate from configuration, failing fast on any problem.

        Raises:
            ConfigurationError: If a secret is missing, malformed, or reused, or
                the allow-list file is missing.
            MalformedAllowListSource: If the allow-list file cannot be parsed.
            InvalidAddressFormat: If the allow-list contains a bad address.
        """
        encryption_key = config.encryption_key_bytes()
        signing_key = config.session_signing_key_bytes()
        if encryption_key == signing_key:
            raise ConfigurationError("Encryption and session signing keys must differ")

        try:
            issuer = SessionIssuer(signing_key, config.jwt_algorithm)
            validator = SessionValidator(signing_key, config.jwt_algorithm)
        except ValueError as err:
            raise ConfigurationError(str(err)) from err

        allowlist = AllowList.load(config.allowlist_path)
        gate = cls(
            allowlist=allowlist,
            issuer=issuer,
            validator=validator,
            cipher=ContentCipher(encryption_key),
            documents=documents or FileSystemDocumentStore(config.documents_dir),
            challenges=ChallengeStore(
                timedelta(seconds=config.challenge_ttl_seconds),
                domain=config.challenge_domain,
                max_pending=config.challenge_max_pending,
            ),
            session_ttl=timedelta(seconds=config.session_ttl_seconds),
            clock=clock,
            allowlist_source=config.allowlist_path,
        )
        logger.info(
            "Access gate ready: %d allow-listed address(es), session TTL %ss",
            len(allowlist),
            config.session_ttl_seconds,
        )
        return gate

    # --- Login ----------------------------------------------------------------------
    def start_login(self, address: str | None = None) -> LoginChallenge:
        """Issue a single-use challenge, optionally bound to ``address``.

        Raises:
            InvalidAddressFormat: If ``address`` is given but malformed.
        """
        bound = canonicalize(address) if address is not None else None
        return self.challenges.issue(self._clock(), bound)

    def complete_login(
        self,
        challenge_id: str,
        claimed_address: str,
        signature: bytes | str,
    ) -> Session:
        """Exchange a signed challenge for a session.

        The challenge is consumed before anything else is checked, so a
        rejected attempt cannot be retried against the same challenge.

        Raises:
            ChallengeNotFound: Unknown or already consumed challenge.
            ChallengeExpired: Challenge outlived its window.
            SignatureMismatch: Bad signature, malformed claimed address, or an
                address other than the one the challenge was bound to.
            AddressNotWhitelisted: Valid signer that is not allow-listed.
        """
        now = self._clock()
        try:
            challenge = self.challenges.consume(challenge_id, now)
            try:
                address = canonicalize(claimed_address)
            except InvalidAddressFormat as err:
                raise SignatureMismatch("Claimed address is malformed") from err
            if challenge.address is not None and challenge.address != address:
                raise SignatureMismatch("Challenge was issued for a different address")
            if not self._verifier(challenge.message_bytes, signature, address):
                raise SignatureMismatch("Signature does not match claimed address")
            if not self.allowlist.is_member(address):
                raise AddressNotWhitelisted("Address is not allow-listed")
        except AuthenticationError as err:
            logger.warning("Login denied (%s) for %s", type(err).__name__, claimed_address)
            raise

        session = self._issuer.issue(address, now, self.session_ttl)
        logger.info("Session issued for %s until %s", address, session.expires_at.isoformat())
        return session

    # --- Protected requests ---------------------------------------------------------
    def authenticate(self, session_token: bytes | str) -> Address:
        """Validate a session and re-check allow-list membership.

        Raises:
            SessionMalformed | SessionTampered | SessionExpired: Invalid session.
            AddressNotWhitelisted: The address was removed since login.
        """
        try:
            address = self._validator.validate(session_token, self._clock())
            if not self.allowlist.is_member(address):
                raise AddressNotWhitelisted("Address is no longer allow-listed")
        except AuthenticationError as err:
            logger.warning("Session rejected (%s)", type(err).__name__)
            raise
        return address

    def fetch_content(self, session_token: bytes | str, document_id: str) -> bytes:
        """Return the decrypted document for an authorized session.

        Raises:
            AuthenticationError: Any session or allow-list failure (see
                :meth:`authenticate`).
            ContentNotFound: No such document.
            ContentStorageError: The store failed; eligible for retry.
            DecryptionFailed: The stored document did not authenticate.
        """
        address = self.authenticate(session_token)
        try:
            document = self.documents.get(document_id)
        except ContentError:
            raise
        except OSError as err:
            raise ContentStorageError(f"Document store failed for {document_id!r}") from err

        try:
            plaintext = self._cipher.decrypt(document, associated_data=document_id.encode("utf-8"))
        except ContentError as err:
            logger.error("Document %s failed to decrypt (%s)", document_id, type(err).__name__)
            raise
        logger.debug("Served %s to %s", document_id, address)
        return plaintext

    def client_state(
        self,
        session_token: bytes | str | None,
        challenge_id: str | None = None,
    ) -> ClientState:
        """Classify where a client stands in the login lifecycle.

        A valid session wins. Without one, a client holding an unconsumed,
        unexpired ``challenge_id`` is mid-login; anyone else is anonymous.
        """
        now = self._clock()
        if session_token and self._session_is_valid(session_token, now):
            return ClientState.AUTHENTICATED
        if challenge_id and self.challenges.is_pending(challenge_id, now):
            return ClientState.CHALLENGE_ISSUED
        return ClientState.ANONYMOUS

    def _session_is_valid(self, session_token: bytes | str, now: datetime) -> bool:
        try:
            self._validator.validate(session_token, now)
        except AuthenticationError:
            return False
        return True

    # --- Administration -------------------------------------------------------------
    def reload_allowlist(self, source: AllowListSource | None = None) -> int:
        """Atomically replace the allow-list and return its new size.

        Raises:
            ConfigurationError: If no source is given and none was configured.
        """
        source = source if source is not None else self._allowlist_source
        if source is None:
            raise ConfigurationError("No allow-list source configured")
        self.allowlist.reload(source)
        return len(self.allowlist)
