# src/docgate/core/exceptions.py
"""Error hierarchy for the access gate.

Every failure the gate can produce is a subclass of :class:`GateError`. The
fine-grained classes exist for logging and tests; callers facing end users
collapse all of :class:`AuthenticationError` and :class:`ContentError` (except
``ContentNotFound``/``ContentStorageError`` after authorization) into a single
"access denied" answer.
"""

from __future__ import annotations


class GateError(RuntimeError):
    """Base exception raised by gate components.

    Attributes:
        retryable: True when the caller may retry the same request and expect a
            different outcome. Cryptographic and allow-list verdicts never change
            on retry.
    """

    retryable = False


class ConfigurationError(GateError):
    """Raised at startup when secrets or required sources are missing or invalid."""


class InvalidAddressFormat(GateError, ValueError):
    """Raised when a string is not a well-formed account address."""


class MalformedAllowListSource(GateError):
    """Raised when the allow-list document cannot be parsed."""


class EncryptionUnavailable(GateError):
    """Raised when encryption cannot run at all (e.g. no randomness source)."""


class AuthenticationError(GateError):
    """Base class for login and session failures."""


class ChallengeNotFound(AuthenticationError):
    """Raised for unknown or already-consumed login challenges."""


class ChallengeExpired(AuthenticationError):
    """Raised when a login challenge is used after its validity window."""


class TooManyPendingChallenges(GateError):
    """Raised when the challenge store is full of unexpired challenges."""

    retryable = True


class SignatureMismatch(AuthenticationError):
    """Raised when a wallet signature does not belong to the claimed address."""


class AddressNotWhitelisted(AuthenticationError):
    """Raised when an authenticated address is not on the allow-list."""


class SessionMalformed(AuthenticationError):
    """Raised when a session token cannot be parsed into its claims."""


class SessionTampered(AuthenticationError):
    """Raised when a session token's integrity tag does not verify."""


class SessionExpired(AuthenticationError):
    """Raised when a session token is presented after its expiry."""


class ContentError(GateError):
    """Base class for failures while producing document plaintext."""


class DecryptionFailed(ContentError):
    """Raised when an encrypted document fails authentication.

    Deliberately carries no detail about whether the key or the ciphertext was
    at fault.
    """

    def __init__(self, message: str = "Decryption failed") -> None:
        super().__init__(message)


class ContentNotFound(ContentError):
    """Raised by document stores when no document exists for an id."""

    retryable = True


class ContentStorageError(ContentError):
    """Raised by document stores when the backing storage fails."""

    retryable = True
