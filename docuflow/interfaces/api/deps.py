"""
API Dependencies - Dependency injection for FastAPI routes.

Provides the singleton document session and upload helpers.
"""

from __future__ import annotations

import mimetypes
from functools import lru_cache

from fastapi import UploadFile

from docuflow.domains.session import DocumentSession, create_session
from docuflow.domains.transcription import DocumentPayload

GENERIC_MEDIA_TYPES = {"", "application/octet-stream"}


@lru_cache
def get_session() -> DocumentSession:
    """Get document session singleton."""
    return create_session()


async def read_upload(file: UploadFile) -> DocumentPayload:
    """Materialize an uploaded file, preferring its declared content type."""
    media_type = file.content_type or ""
    if media_type in GENERIC_MEDIA_TYPES and file.filename:
        media_type = mimetypes.guess_type(file.filename)[0] or ""

    return DocumentPayload(
        data=await file.read(),
        media_type=media_type,
        name=file.filename,
    )
