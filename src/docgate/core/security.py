"""Wallet signature utilities built on secp256k1 public-key recovery."""

from __future__ import annotations

import binascii
import logging

from eth_account import Account
from eth_account.messages import encode_defunct

from docgate.core.exceptions import InvalidAddressFormat
from docgate.services.address import Address, canonicalize

logger = logging.getLogger(__name__)

SIGNATURE_LENGTH_BYTES = 65  # r || s || v


def decode_signature(signature: bytes | str) -> bytes:
    """Return raw signature bytes from bytes or a (0x-prefixed) hex string.

    Raises:
        ValueError: If the value is not hex or not 65 bytes long.
    """
    if isinstance(signature, str):
        cleaned = signature.strip()
        if cleaned.startswith(("0x", "0X")):
            cleaned = cleaned[2:]
        try:
            signature = binascii.unhexlify(cleaned)
        except (binascii.Error, ValueError) as err:
            raise ValueError("Signature must be hex encoded") from err
    if len(signature) != SIGNATURE_LENGTH_BYTES:
        raise ValueError(f"Signature must be {SIGNATURE_LENGTH_BYTES} bytes")
    return bytes(signature)


def recover_address(message: bytes, signature: bytes | str) -> Address:
    """Recover the address that produced a ``personal_sign`` signature.

    Args:
        message: Exact bytes the wallet was asked to sign.
        signature: 65-byte recoverable signature (raw or hex).

    Returns:
        Canonical address of the signer.

    Raises:
        ValueError: If the signature is malformed or recovery fails.
    """
    signable = encode_defunct(primitive=message)
    try:
        recovered = Account.recover_message(signable, signature=decode_signature(signature))
    except Exception as err:  # eth_keys raises its own BadSignature/ValidationError types
        raise ValueError(f"Signature recovery failed: {err}") from err
    return canonicalize(recovered)


def verify_signature(message: bytes, signature: bytes | str, claimed_address: Address) -> bool:
    """Verify that ``signature`` over ``message`` was made by ``claimed_address``.

    Args:
        message: Exact bytes that were signed on the client.
        signature: Wallet signature, raw bytes or hex.
        claimed_address: Canonical address the caller claims to control.

    Returns:
        True if the recovered signer equals ``claimed_address``; False for a
        malformed signature, a recovery failure, or a mismatch.

    Raises:
        ValueError: If ``message`` is empty (a caller bug, not a client error).
    """
    if not message:
        raise ValueError("Message to verify must not be empty")
    try:
        expected = canonicalize(claimed_address)
    except InvalidAddressFormat:
        return False
    try:
        recovered = recover_address(message, signature)
    except ValueError as err:
        logger.debug("Signature rejected: %s", err)
        return False
    return recovered == expected
