"""Encrypted document storage collaborators.

The gate only needs keyed lookup; two implementations are provided: a
dict-backed store for tests and embedding, and a directory of JSON files as
produced by ``docgate.scripts.encrypt_docs``.
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from pathlib import Path
from threading import Lock
from typing import Protocol

from docgate.core.exceptions import ContentNotFound, ContentStorageError
from docgate.services.cipher import EncryptedDocument

logger = logging.getLogger(__name__)

_DOCUMENT_ID_PATTERN = re.compile(r"[A-Za-z0-9][A-Za-z0-9._/-]*")
_FILE_SUFFIX = ".json"


class DocumentStore(Protocol):
    """Keyed lookup of encrypted documents."""

    def get(self, document_id: str) -> EncryptedDocument:
        """Return the document for ``document_id``.

        Raises:
            ContentNotFound: If no such document exists.
            ContentStorageError: If the backing storage fails.
        """
        ...


def validate_document_id(document_id: str) -> str:
    """Return ``document_id`` if it is a safe relative identifier.

    Ids are POSIX-style relative paths (``guide/intro.md``) without ``.`` or
    ``..`` segments, so they can never resolve outside a store root.

    Raises:
        ContentNotFound: If the id is not acceptable; such a document cannot exist.
    """
    if not isinstance(document_id, str) or not _DOCUMENT_ID_PATTERN.fullmatch(document_id):
        raise ContentNotFound(f"Invalid document id: {document_id!r}")
    if any(part in ("", ".", "..") for part in document_id.split("/")):
        raise ContentNotFound(f"Invalid document id: {document_id!r}")
    return document_id


class InMemoryDocumentStore:
    """Dict-backed store."""

    def __init__(self, documents: dict[str, EncryptedDocument] | None = None) -> None:
        self._documents: dict[str, EncryptedDocument] = dict(documents or {})
        self._lock = Lock()

    def put(self, document_id: str, document: EncryptedDocument) -> None:
        validate_document_id(document_id)
        with self._lock:
            self._documents[document_id] = document

    def get(self, document_id: str) -> EncryptedDocument:
        with self._lock:
            document = self._documents.get(document_id)
        if document is None:
            raise ContentNotFound(f"No document {document_id!r}")
        return document

    def __len__(self) -> int:
        return len(self._documents)


class FileSystemDocumentStore:
    """One JSON file (``<document_id>.json``) per encrypted document."""

    def __init__(self, root: str | os.PathLike[str]) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def _path_for(self, document_id: str) -> Path:
        parts = validate_document_id(document_id).split("/")
        parts[-1] += _FILE_SUFFIX
        return self._root.joinpath(*parts)

    def get(self, document_id: str) -> EncryptedDocument:
        path = self._path_for(document_id)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError as err:
            raise ContentNotFound(f"No document {document_id!r}") from err
        except IsADirectoryError as err:
            raise ContentNotFound(f"No document {document_id!r}") from err
        except OSError as err:
            logger.error("Failed to read document %s: %s", document_id, err)
            raise ContentStorageError(f"Could not read document {document_id!r}") from err

        try:
            return EncryptedDocument.from_dict(json.loads(raw))
        except (ValueError, TypeError) as err:
            logger.error("Stored document %s is corrupt: %s", document_id, err)
            raise ContentStorageError(f"Stored document {document_id!r} is corrupt") from err

    def put(self, document_id: str, document: EncryptedDocument) -> Path:
        """Write ``document`` atomically and return its path."""
        path = self._path_for(document_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".tmp-", suffix=_FILE_SUFFIX)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(document.to_dict(), handle)
            os.replace(tmp_name, path)
        except OSError as err:
            Path(tmp_name).unlink(missing_ok=True)
            raise ContentStorageError(f"Could not write document {document_id!r}") from err
        return path
