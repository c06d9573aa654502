# src/docgate/scripts/encrypt_docs.py
"""Encrypt a documentation tree into a DocGate document store.

Every regular file below SRC_DIR is encrypted with the configured
DOCGATE_ENCRYPTION_KEY and written to DEST_DIR as ``<relative path>.json``.
The relative POSIX path (e.g. ``guide/intro.md``) becomes the document id,
and is bound to the ciphertext so documents cannot be swapped on disk.

Usage:
    python -m docgate.scripts.encrypt_docs docs/ content/
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from docgate.core.exceptions import GateError
from docgate.core.settings import Settings
from docgate.services.cipher import ContentCipher
from docgate.services.documents import FileSystemDocumentStore, validate_document_id

logger = logging.getLogger(__name__)


def encrypt_tree(source: Path, store: FileSystemDocumentStore, cipher: ContentCipher) -> list[str]:
    """Encrypt every non-hidden file under ``source`` into ``store``.

    Args:
        source: Directory of plaintext documents.
        store: Destination store.
        cipher: Cipher holding the content key.

    Returns:
        Sorted list of document ids written.
    """
    written: list[str] = []
    for path in sorted(p for p in source.rglob("*") if p.is_file()):
        if any(part.startswith(".") for part in path.relative_to(source).parts):
            continue
        document_id = validate_document_id(path.relative_to(source).as_posix())
        document = cipher.encrypt(path.read_bytes(), associated_data=document_id.encode("utf-8"))
        store.put(document_id, document)
        logger.info("Encrypted %s", document_id)
        written.append(document_id)
    return written


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Encrypt a documentation tree for DocGate")
    parser.add_argument("source", type=Path, help="Directory of plaintext documents")
    parser.add_argument("destination", type=Path, help="Document store directory to write")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    if not args.source.is_dir():
        parser.error(f"{args.source} is not a directory")

    try:
        cipher = ContentCipher(Settings().encryption_key_bytes())
        written = encrypt_tree(args.source, FileSystemDocumentStore(args.destination), cipher)
    except GateError as err:
        print(f"error: {err}", file=sys.stderr)
        return 1

    print(f"Encrypted {len(written)} document(s) into {args.destination}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
