"""Authenticated encryption of document payloads (AES-256-GCM)."""

from __future__ import annotations

import base64
import binascii
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from docgate.core.exceptions import (
    ConfigurationError,
    DecryptionFailed,
    EncryptionUnavailable,
)

KEY_LENGTH_BYTES = 32
IV_LENGTH_BYTES = 12  # 96-bit nonce for GCM
TAG_LENGTH_BYTES = 16


@dataclass(frozen=True)
class EncryptedDocument:
    """Nonce, integrity tag and ciphertext of one protected document."""

    iv: bytes
    auth_tag: bytes
    ciphertext: bytes

    def __post_init__(self) -> None:
        if len(self.iv) != IV_LENGTH_BYTES:
            raise ValueError(f"IV must be {IV_LENGTH_BYTES} bytes, got {len(self.iv)}")
        if len(self.auth_tag) != TAG_LENGTH_BYTES:
            raise ValueError(
                f"Auth tag must be {TAG_LENGTH_BYTES} bytes, got {len(self.auth_tag)}"
            )

    def to_dict(self) -> dict[str, str]:
        """Serialize to a JSON-friendly mapping of base64 strings."""
        return {
            "iv": base64.b64encode(self.iv).decode("ascii"),
            "auth_tag": base64.b64encode(self.auth_tag).decode("ascii"),
            "ciphertext": base64.b64encode(self.ciphertext).decode("ascii"),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EncryptedDocument:
        """Inverse of :meth:`to_dict`.

        Raises:
            ValueError: If a field is missing, not base64, or the wrong length.
        """
        try:
            return cls(
                iv=base64.b64decode(data["iv"], validate=True),
                auth_tag=base64.b64decode(data["auth_tag"], validate=True),
                ciphertext=base64.b64decode(data["ciphertext"], validate=True),
            )
        except KeyError as err:
            raise ValueError(f"Encrypted document is missing field {err}") from err
        except (binascii.Error, TypeError) as err:
            raise ValueError(f"Encrypted document field is not base64: {err}") from err


def _check_key(key: bytes) -> None:
    if len(key) != KEY_LENGTH_BYTES:
        raise ValueError(f"Key must be {KEY_LENGTH_BYTES} bytes, got {len(key)}")


def encrypt(plaintext: bytes, key: bytes, associated_data: bytes | None = None) -> EncryptedDocument:
    """Encrypt ``plaintext`` under ``key`` with a fresh random nonce.

    Args:
        plaintext: Document bytes.
        key: 32-byte content key.
        associated_data: Optional context (e.g. the document id) authenticated
            but not encrypted; the same value must be supplied to :func:`decrypt`.

    Raises:
        EncryptionUnavailable: If the operating system cannot supply randomness.
    """
    _check_key(key)
    try:
        nonce = os.urandom(IV_LENGTH_BYTES)
    except (NotImplementedError, OSError) as err:
        raise EncryptionUnavailable("No randomness source available") from err
    sealed = AESGCM(key).encrypt(nonce, plaintext, associated_data)
    return EncryptedDocument(
        iv=nonce,
        auth_tag=sealed[-TAG_LENGTH_BYTES:],
        ciphertext=sealed[:-TAG_LENGTH_BYTES],
    )


def decrypt(doc: EncryptedDocument, key: bytes, associated_data: bytes | None = None) -> bytes:
    """Decrypt ``doc`` or fail closed.

    Raises:
        DecryptionFailed: For any authentication failure. Wrong key, tampered
            ciphertext/tag/iv, and mismatched associated data are
            indistinguishable to the caller.
    """
    _check_key(key)
    try:
        return AESGCM(key).decrypt(doc.iv, doc.ciphertext + doc.auth_tag, associated_data)
    except InvalidTag as err:
        raise DecryptionFailed() from err


class ContentCipher:
    """Encrypt and decrypt documents with a server-held key.

    The key lives only on this object; it is excluded from ``repr``.
    """

    def __init__(self, key: bytes) -> None:
        if len(key) != KEY_LENGTH_BYTES:
            raise ConfigurationError(f"Encryption key must be {KEY_LENGTH_BYTES} bytes")
        self._key = bytes(key)

    def encrypt(self, plaintext: bytes, associated_data: bytes | None = None) -> EncryptedDocument:
        return encrypt(plaintext, self._key, associated_data)

    def decrypt(self, doc: EncryptedDocument, associated_data: bytes | None = None) -> bytes:
        return decrypt(doc, self._key, associated_data)

    def __repr__(self) -> str:
        return "ContentCipher(key=<redacted>)"
