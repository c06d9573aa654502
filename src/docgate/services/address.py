"""Canonical account address handling."""

from __future__ import annotations

import re
from typing import NewType

from eth_utils import to_checksum_address

from docgate.core.exceptions import InvalidAddressFormat

Address = NewType("Address", str)

ADDRESS_HEX_LENGTH = 40  # 20 bytes
_ADDRESS_PATTERN = re.compile(r"0[xX][0-9a-fA-F]{%d}" % ADDRESS_HEX_LENGTH)


def canonicalize(raw: str) -> Address:
    """Return the canonical (``0x`` + lowercase hex) form of an address.

    Mixed-case input is accepted without enforcing the EIP-55 checksum, so the
    checksummed and lowercase spellings of an account collapse to one value.
    The function is idempotent: ``canonicalize(canonicalize(x)) == canonicalize(x)``.

    Args:
        raw: Address string as supplied by a client or configuration file.

    Returns:
        Canonical address.

    Raises:
        InvalidAddressFormat: If ``raw`` is not a string of the right length/charset.
    """
    if not isinstance(raw, str):
        raise InvalidAddressFormat(f"Address must be a string, got {type(raw).__name__}")
    candidate = raw.strip()
    if not _ADDRESS_PATTERN.fullmatch(candidate):
        raise InvalidAddressFormat(f"Invalid address format: {raw!r}")
    return Address("0x" + candidate[2:].lower())


def is_valid(raw: str) -> bool:
    """Return True if ``raw`` would canonicalize without error."""
    try:
        canonicalize(raw)
    except InvalidAddressFormat:
        return False
    return True


def to_checksum(address: str) -> str:
    """Render an address in its EIP-55 mixed-case display form."""
    return str(to_checksum_address(canonicalize(address)))
