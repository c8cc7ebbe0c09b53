"""
Health Routes - System health and status endpoints.
"""

from typing import Any

from fastapi import APIRouter

from docuflow import __version__

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": "docuflow"}


@router.get("/api")
async def api_info() -> dict[str, Any]:
    """API info endpoint."""
    return {
        "name": "DocuFlow API",
        "version": __version__,
        "description": "Page-by-page document transcription and answer-script grading",
        "docs": "/docs",
    }
