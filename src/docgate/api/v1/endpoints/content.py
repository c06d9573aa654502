# src/docgate/api/v1/endpoints/content.py
"""Protected document delivery."""

from __future__ import annotations

import mimetypes

from fastapi import APIRouter, HTTPException, Response, status

from docgate.api.v1.dependencies import GateDep, SessionTokenDep, access_denied
from docgate.core.exceptions import (
    AuthenticationError,
    ContentNotFound,
    ContentStorageError,
    DecryptionFailed,
)

router = APIRouter(prefix="/content", tags=["content"])

_TEXT_TYPES = {
    ".md": "text/markdown; charset=utf-8",
    ".mdx": "text/markdown; charset=utf-8",
}


def media_type_for(document_id: str) -> str:
    """Pick a response media type from the document id's extension."""
    for suffix, media_type in _TEXT_TYPES.items():
        if document_id.endswith(suffix):
            return media_type
    guessed, _ = mimetypes.guess_type(document_id)
    return guessed or "application/octet-stream"


@router.get("/{document_id:path}", summary="Fetch a decrypted document")
async def fetch_document(document_id: str, gate: GateDep, token: SessionTokenDep) -> Response:
    """Return the plaintext of ``document_id`` for an authorized session."""
    try:
        plaintext = gate.fetch_content(token, document_id)
    except (AuthenticationError, DecryptionFailed) as err:
        raise access_denied() from err
    except ContentNotFound as err:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Document not found",
        ) from err
    except ContentStorageError as err:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Document storage unavailable",
        ) from err

    return Response(
        content=plaintext,
        media_type=media_type_for(document_id),
        headers={"Cache-Control": "no-store"},
    )
