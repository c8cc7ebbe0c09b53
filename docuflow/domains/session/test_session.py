"""
Tests for the document session.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest

from docuflow.config import EvaluationNotReadyError, Settings
from docuflow.domains.evaluation import (
    EvaluationReport,
    EvaluationStatus,
    EvaluationTrigger,
    GeminiSubmissionGrader,
)
from docuflow.domains.transcription import (
    DocumentPayload,
    GeminiPageExtractor,
    PipelineStatus,
    RenderProfile,
    TranscriptionPipeline,
)

from .session import DocumentSession, create_session

SCRIPT = DocumentPayload(data=b"%PDF script", name="script.pdf")
KEY = DocumentPayload(data=b"%PDF key", name="key.pdf")
PREVIEW = RenderProfile(name="preview", scale=1.0, jpeg_quality=60)
EXTRACTION = RenderProfile(name="extraction", scale=1.5, jpeg_quality=80)

REPORT = EvaluationReport(
    items=[],
    total_score=0,
    max_possible_score=0,
    summary="Nothing to grade.",
    improvement_areas=[],
)


class StubSource:
    def __init__(self, pages: int = 2, broken: bool = False) -> None:
        self.pages = pages
        self.broken = broken

    async def page_count(self, document: DocumentPayload) -> int:
        if self.broken:
            raise RuntimeError("unreadable")
        return self.pages

    async def render_page(
        self, document: DocumentPayload, page_number: int, profile: RenderProfile
    ) -> bytes:
        return f"{profile.name}-{page_number}".encode()


class StubExtractor:
    async def extract(self, image: bytes) -> str:
        return image.decode()


class StubGrader:
    def __init__(self) -> None:
        self.calls: list[tuple[DocumentPayload, DocumentPayload]] = []

    async def grade(
        self, primary: DocumentPayload, key: DocumentPayload
    ) -> EvaluationReport:
        self.calls.append((primary, key))
        return REPORT


@pytest.fixture
def grader() -> StubGrader:
    return StubGrader()


def _session(grader: StubGrader, source: StubSource | None = None) -> DocumentSession:
    pipeline = TranscriptionPipeline(
        source or StubSource(), StubExtractor(), PREVIEW, EXTRACTION
    )
    return DocumentSession(pipeline, EvaluationTrigger(grader))


async def test_cannot_evaluate_before_transcription(grader: StubGrader) -> None:
    session = _session(grader)
    session.set_answer_key(KEY)

    assert not session.can_evaluate
    with pytest.raises(EvaluationNotReadyError):
        await session.evaluate()
    assert grader.calls == []


async def test_cannot_evaluate_without_answer_key(grader: StubGrader) -> None:
    session = _session(grader)
    await session.transcribe(SCRIPT)

    assert session.pipeline.state.status is PipelineStatus.COMPLETED
    assert not session.can_evaluate
    with pytest.raises(EvaluationNotReadyError):
        await session.evaluate()


async def test_cannot_evaluate_after_failed_run(grader: StubGrader) -> None:
    session = _session(grader, StubSource(broken=True))
    await session.transcribe(SCRIPT)

    with pytest.raises(EvaluationNotReadyError):
        await session.evaluate(KEY)


async def test_evaluate_after_completed_run(grader: StubGrader) -> None:
    session = _session(grader)
    state = await session.transcribe(SCRIPT)
    assert state.combined_transcript == "extraction-1\n\nextraction-2"

    result = await session.evaluate(KEY)

    assert result.status is EvaluationStatus.SUCCEEDED
    assert grader.calls == [(SCRIPT, KEY)]
    assert session.answer_key == KEY


async def test_new_transcription_clears_previous_evaluation(grader: StubGrader) -> None:
    session = _session(grader)
    await session.transcribe(SCRIPT)
    await session.evaluate(KEY)

    await session.transcribe(SCRIPT)

    assert session.evaluation.state.status is EvaluationStatus.NONE
    assert session.can_evaluate  # key is kept for the new document


async def test_reset_clears_everything(grader: StubGrader) -> None:
    session = _session(grader)
    await session.transcribe(SCRIPT)
    await session.evaluate(KEY)

    session.reset()

    assert session.document is None
    assert session.answer_key is None
    assert session.pipeline.state.status is PipelineStatus.IDLE
    assert session.pipeline.state.pages == ()
    assert session.evaluation.state.status is EvaluationStatus.NONE
    assert not session.can_evaluate


def test_create_session_wires_gemini_and_pymupdf() -> None:
    settings = Settings(
        google_api_key=None,
        extraction_model="flash-model",
        evaluation_model="pro-model",
        preview_scale=0.75,
    )

    with patch("docuflow.adapters.gemini.client.genai"):
        session = create_session(settings)

    extractor = session.pipeline._extractor
    grader = session.evaluation._grader
    assert isinstance(extractor, GeminiPageExtractor)
    assert isinstance(grader, GeminiSubmissionGrader)
    assert extractor._client.config.model == "flash-model"
    assert grader._client.config.model == "pro-model"
    assert session.pipeline._preview_profile.scale == 0.75
