"""
Document Session - One document, its optional answer key, and their results.

Couples a TranscriptionPipeline with an EvaluationTrigger and enforces the
gate between them: grading is only offered once an answer key is present
and the document's extraction run has completed.
"""

from __future__ import annotations

import logging
from collections.abc import Coroutine
from typing import Any

from docuflow.adapters.gemini import GeminiClient, GeminiConfig
from docuflow.adapters.pymupdf import PyMuPDFSource
from docuflow.config import EvaluationNotReadyError, Settings, get_settings
from docuflow.domains.evaluation import (
    EvaluationState,
    EvaluationTrigger,
    GeminiSubmissionGrader,
)
from docuflow.domains.transcription import (
    DocumentPayload,
    GeminiPageExtractor,
    PipelineState,
    PipelineStatus,
    RenderProfile,
    TranscriptionPipeline,
)

logger = logging.getLogger(__name__)

__all__ = ["DocumentSession", "create_session"]


class DocumentSession:
    """
    Session state for one student script.

    Example:
        >>> session = create_session()
        >>> await session.transcribe(DocumentPayload(data=script_bytes, name="script.pdf"))
        >>> session.set_answer_key(DocumentPayload(data=key_bytes, name="key.pdf"))
        >>> if session.can_evaluate:
        ...     state = await session.evaluate()
    """

    def __init__(
        self,
        pipeline: TranscriptionPipeline,
        evaluation: EvaluationTrigger,
    ) -> None:
        self.pipeline = pipeline
        self.evaluation = evaluation
        self._document: DocumentPayload | None = None
        self._answer_key: DocumentPayload | None = None

    @property
    def document(self) -> DocumentPayload | None:
        return self._document

    @property
    def answer_key(self) -> DocumentPayload | None:
        return self._answer_key

    @property
    def can_evaluate(self) -> bool:
        """Answer key present and the document's extraction completed."""
        return (
            self._document is not None
            and self._answer_key is not None
            and self.pipeline.state.status is PipelineStatus.COMPLETED
        )

    def set_answer_key(self, key: DocumentPayload | None) -> None:
        self._answer_key = key

    async def transcribe(self, document: DocumentPayload) -> PipelineState:
        """
        Run the pipeline on a new document.

        Any stored evaluation belongs to the previous document and is cleared.

        Raises:
            PipelineBusyError: A run is already in flight
        """
        return await self.claim_transcription(document)

    def claim_transcription(
        self, document: DocumentPayload
    ) -> Coroutine[Any, Any, PipelineState]:
        """
        Reserve the pipeline for ``document`` and return the run to await.

        Raises:
            PipelineBusyError: A run is already in flight
        """
        run = self.pipeline.claim(document)
        self.evaluation.reset()
        self._document = document
        return run

    async def evaluate(self, key: DocumentPayload | None = None) -> EvaluationState:
        """
        Grade the session's document against its answer key.

        Args:
            key: Answer key to use (replaces any previously set key)

        Raises:
            EvaluationNotReadyError: No answer key, or extraction not completed
            EvaluationBusyError: An evaluation is already running
        """
        if key is not None:
            self._answer_key = key

        document, answer_key = self._document, self._answer_key
        if document is None or answer_key is None or not self.can_evaluate:
            raise EvaluationNotReadyError(
                "Evaluation needs an answer key and a completed extraction",
                details={
                    "pipeline_status": self.pipeline.state.status.value,
                    "has_answer_key": answer_key is not None,
                },
            )

        return await self.evaluation.evaluate(document, answer_key)

    def reset(self) -> None:
        """Forget the document, the answer key and every result."""
        self.pipeline.reset()
        self.evaluation.reset()
        self._document = None
        self._answer_key = None
        logger.info("Session reset")


def create_session(settings: Settings | None = None) -> DocumentSession:
    """Build a session wired to PyMuPDF and Gemini from settings."""
    settings = settings or get_settings()

    extraction_client = GeminiClient(
        GeminiConfig.for_model(settings.extraction_model, settings),
        api_key=settings.google_api_key,
    )
    evaluation_client = GeminiClient(
        GeminiConfig.for_model(settings.evaluation_model, settings),
        api_key=settings.google_api_key,
    )

    pipeline = TranscriptionPipeline(
        PyMuPDFSource(),
        GeminiPageExtractor(extraction_client),
        preview_profile=RenderProfile.preview(settings),
        extraction_profile=RenderProfile.extraction(settings),
    )
    evaluation = EvaluationTrigger(GeminiSubmissionGrader(evaluation_client))
    return DocumentSession(pipeline, evaluation)
