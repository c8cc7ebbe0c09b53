"""
Transcription Routes - Start, poll and reset the page pipeline.
"""

from __future__ import annotations

import logging
from collections.abc import Coroutine
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, File, UploadFile
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from docuflow.domains.session import DocumentSession
from docuflow.domains.transcription import (
    PageRecord,
    PageStatus,
    PipelineState,
    PipelineStatus,
)

from ..deps import get_session, read_upload

logger = logging.getLogger(__name__)

router = APIRouter()


class PageView(BaseModel):
    """One page as shown to a client."""

    page_number: int
    status: PageStatus
    content: str
    preview_url: str | None = None

    @classmethod
    def from_record(cls, record: PageRecord) -> PageView:
        return cls(
            page_number=record.page_number,
            status=record.status,
            content=record.content,
            preview_url=record.preview_data_url,
        )


class TranscriptionStateResponse(BaseModel):
    """Pipeline snapshot."""

    status: PipelineStatus
    total_pages: int
    current_page: int
    completed_count: int
    failed_count: int
    error_message: str | None
    pages: list[PageView]

    @classmethod
    def from_state(cls, state: PipelineState) -> TranscriptionStateResponse:
        return cls(
            status=state.status,
            total_pages=state.total_pages,
            current_page=state.current_page,
            completed_count=state.completed_count,
            failed_count=state.failed_count,
            error_message=state.error_message,
            pages=[PageView.from_record(page) for page in state.pages],
        )


class StartResponse(BaseModel):
    """Acknowledgement of an accepted upload."""

    filename: str | None
    media_type: str
    size_bytes: int


async def _run_transcription(run: Coroutine[Any, Any, PipelineState]) -> None:
    state = await run
    logger.info("Background transcription finished: %s", state.status.value)


@router.post("/start", response_model=StartResponse, status_code=202)
async def start_transcription(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    session: DocumentSession = Depends(get_session),
) -> StartResponse:
    """
    Upload a document and transcribe it page by page in the background.

    Poll ``GET /state`` for progress. Rejected with 409 while a run is active.
    """
    document = await read_upload(file)
    # Reserved here so a competing upload gets its 409 before this one returns.
    run = session.claim_transcription(document)
    background_tasks.add_task(_run_transcription, run)

    return StartResponse(
        filename=document.name,
        media_type=document.media_type,
        size_bytes=len(document.data),
    )


@router.get("/state", response_model=TranscriptionStateResponse)
async def get_transcription_state(
    session: DocumentSession = Depends(get_session),
) -> TranscriptionStateResponse:
    """Current pipeline snapshot, previews included as data URLs."""
    return TranscriptionStateResponse.from_state(session.pipeline.state)


@router.get("/transcript", response_class=PlainTextResponse)
async def get_transcript(session: DocumentSession = Depends(get_session)) -> str:
    """Completed pages' text joined in page order."""
    return session.pipeline.combined_transcript


@router.post("/reset", response_model=TranscriptionStateResponse)
async def reset_session(
    session: DocumentSession = Depends(get_session),
) -> TranscriptionStateResponse:
    """Clear the document, answer key and all results."""
    session.reset()
    return TranscriptionStateResponse.from_state(session.pipeline.state)
