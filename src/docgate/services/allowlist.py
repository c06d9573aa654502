"""Administrator-maintained allow-list of account addresses."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, StrictStr, ValidationError

from docgate.core.exceptions import (
    ConfigurationError,
    InvalidAddressFormat,
    MalformedAllowListSource,
)
from docgate.services.address import Address, canonicalize

logger = logging.getLogger(__name__)

AllowListSource = Union[str, os.PathLike[str], bytes, Mapping[str, Any]]


class AllowListDocument(BaseModel):
    """On-disk schema of the allow-list: ``{"addresses": ["0x...", ...]}``."""

    addresses: list[StrictStr]

    model_config = ConfigDict(extra="ignore")


def _read_document(source: AllowListSource) -> AllowListDocument:
    """Parse any supported source form into an :class:`AllowListDocument`.

    Paths (``str`` or path-like) are read from disk, ``bytes`` are treated as a
    JSON document and mappings as an already-parsed document.
    """
    try:
        if isinstance(source, Mapping):
            return AllowListDocument.model_validate(source)
        if isinstance(source, (bytes, bytearray)):
            return AllowListDocument.model_validate_json(bytes(source))
        if isinstance(source, (str, os.PathLike)):
            path = Path(source)
            try:
                payload = path.read_bytes()
            except FileNotFoundError as err:
                raise ConfigurationError(f"Allow-list source not found: {path}") from err
            except OSError as err:
                raise ConfigurationError(f"Allow-list source unreadable: {path}: {err}") from err
            return AllowListDocument.model_validate_json(payload)
    except ValidationError as err:
        raise MalformedAllowListSource(
            f"Allow-list source is not a valid {{addresses: [...]}} document: "
            f"{err.error_count()} error(s)"
        ) from err
    raise MalformedAllowListSource(f"Unsupported allow-list source type: {type(source).__name__}")


def parse_addresses(entries: Iterable[str]) -> frozenset[Address]:
    """Canonicalize entries into a set, collapsing duplicates.

    Raises:
        InvalidAddressFormat: If any entry is not a valid address; the whole
            batch is rejected.
    """
    parsed: set[Address] = set()
    for index, entry in enumerate(entries):
        try:
            parsed.add(canonicalize(entry))
        except InvalidAddressFormat as err:
            raise InvalidAddressFormat(f"Allow-list entry {index} is invalid: {err}") from err
    return frozenset(parsed)


class AllowList:
    """Set of authorized addresses backed by an immutable snapshot.

    Readers always see one complete snapshot: :meth:`reload` builds the new
    ``frozenset`` fully before rebinding the attribute, so a concurrent
    :meth:`is_member` observes either the old or the new contents, never a mix.
    """

    def __init__(self, addresses: Iterable[str] = ()) -> None:
        self._entries: frozenset[Address] = parse_addresses(addresses)

    @classmethod
    def load(cls, source: AllowListSource) -> AllowList:
        """Build an allow-list from a path, JSON bytes, or parsed mapping.

        Raises:
            ConfigurationError: If a path source does not exist or cannot be read.
            MalformedAllowListSource: If the document does not match the schema.
            InvalidAddressFormat: If any listed address is malformed.
        """
        allowlist = cls()
        allowlist.reload(source)
        return allowlist

    def reload(self, source: AllowListSource) -> None:
        """Replace the whole set with the contents of ``source``.

        On failure the current snapshot stays in place.
        """
        document = _read_document(source)
        snapshot = parse_addresses(document.addresses)
        self._entries = snapshot
        logger.info("Allow-list loaded with %d address(es)", len(snapshot))

    def is_member(self, address: str) -> bool:
        """Return True if ``address`` is allow-listed. Never raises."""
        try:
            canonical = canonicalize(address)
        except InvalidAddressFormat:
            return False
        return canonical in self._entries

    @property
    def addresses(self) -> frozenset[Address]:
        """Current snapshot of canonical addresses."""
        return self._entries

    def __contains__(self, address: object) -> bool:
        return isinstance(address, str) and self.is_member(address)

    def __len__(self) -> int:
        return len(self._entries)
