"""
Evaluation Routes - Grade the transcribed document against an answer key.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel

from docuflow.domains.evaluation import EvaluationReport, EvaluationState, EvaluationStatus
from docuflow.domains.session import DocumentSession

from ..deps import get_session, read_upload

router = APIRouter()


class EvaluationStateResponse(BaseModel):
    """Evaluation slot snapshot."""

    status: EvaluationStatus
    can_evaluate: bool
    report: EvaluationReport | None = None
    error_message: str | None = None

    @classmethod
    def build(cls, state: EvaluationState, can_evaluate: bool) -> EvaluationStateResponse:
        return cls(
            status=state.status,
            can_evaluate=can_evaluate,
            report=state.report,
            error_message=state.error_message,
        )


@router.post("/evaluate", response_model=EvaluationStateResponse)
async def evaluate(
    key: UploadFile = File(...),
    session: DocumentSession = Depends(get_session),
) -> EvaluationStateResponse:
    """
    Grade the session's document against the uploaded answer key.

    A failed grading call is reported in the body (``status: failed``).
    Returns 409 until the document's transcription has completed.
    """
    state = await session.evaluate(await read_upload(key))
    return EvaluationStateResponse.build(state, session.can_evaluate)


@router.get("/state", response_model=EvaluationStateResponse)
async def get_evaluation_state(
    session: DocumentSession = Depends(get_session),
) -> EvaluationStateResponse:
    """Latest evaluation report or error."""
    return EvaluationStateResponse.build(session.evaluation.state, session.can_evaluate)
