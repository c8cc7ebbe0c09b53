"""
Transcription Pipeline - Sequential page-by-page extraction state machine.

Drives one document through:

    idle -> loading -> processing -> completed
                  \\            \\
                   -> error      -> error   (page count / preview failures)

Pages are handled strictly one at a time in increasing order. For each page
the preview is rendered and attached (page becomes ``processing``), then an
extraction-quality image is rendered and sent to the extractor (page becomes
``completed`` or ``error``). An extraction failure only marks that page; the
run carries on with the next one.

Every run is tagged with a generation number. ``reset()`` bumps the
generation, so any step of an abandoned run that resumes afterwards sees a
stale tag and drops its update instead of touching the new state.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Coroutine
from typing import Any

from docuflow.config import DocuFlowError, PipelineBusyError

from .contracts import DocumentSource, PageExtractor, StateObserver
from .models import (
    DOCUMENT_FAILED_MESSAGE,
    DocumentPayload,
    PageRecord,
    PipelineState,
    PipelineStatus,
    RenderProfile,
)

logger = logging.getLogger(__name__)

__all__ = ["TranscriptionPipeline"]

StateTransform = Callable[[PipelineState], PipelineState]


class TranscriptionPipeline:
    """
    Page pipeline controller.

    Example:
        >>> pipeline = TranscriptionPipeline(PyMuPDFSource(), GeminiPageExtractor(client))
        >>> unsubscribe = pipeline.subscribe(lambda state: print(state.current_page))
        >>> state = await pipeline.start(DocumentPayload(data=pdf_bytes))
        >>> print(pipeline.combined_transcript)
    """

    def __init__(
        self,
        source: DocumentSource,
        extractor: PageExtractor,
        preview_profile: RenderProfile | None = None,
        extraction_profile: RenderProfile | None = None,
    ) -> None:
        """
        Initialize pipeline.

        Args:
            source: Page counting and rendering backend
            extractor: Page image to text backend
            preview_profile: Rendering used for page thumbnails
            extraction_profile: Rendering used for the extraction call
        """
        self._source = source
        self._extractor = extractor
        self._preview_profile = preview_profile or RenderProfile.preview()
        self._extraction_profile = extraction_profile or RenderProfile.extraction()

        self._state = PipelineState()
        self._generation = 0
        self._active_generation: int | None = None
        self._observers: list[StateObserver] = []

    @property
    def state(self) -> PipelineState:
        """Latest published snapshot."""
        return self._state

    @property
    def combined_transcript(self) -> str:
        return self._state.combined_transcript

    @property
    def is_running(self) -> bool:
        """True while a run started on this instance has not finished or been reset."""
        return self._active_generation is not None

    def subscribe(self, observer: StateObserver) -> Callable[[], None]:
        """
        Register a callback receiving every published snapshot.

        Returns:
            Function that removes the observer again
        """
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    async def start(self, document: DocumentPayload) -> PipelineState:
        """
        Process every page of ``document`` in order.

        Args:
            document: Document to transcribe

        Returns:
            Snapshot after the run ends (``completed`` or ``error``)

        Raises:
            PipelineBusyError: A run is already in flight on this instance
        """
        return await self.claim(document)

    def claim(self, document: DocumentPayload) -> Coroutine[Any, Any, PipelineState]:
        """
        Reserve this instance for ``document`` and return the run to await.

        The busy check and the reservation happen before this returns, so a
        caller can reject a competing request before scheduling the run.

        Raises:
            PipelineBusyError: A run is already in flight on this instance
        """
        if self._active_generation is not None:
            raise PipelineBusyError()

        self._generation += 1
        generation = self._generation
        self._active_generation = generation
        return self._execute(document, generation)

    async def _execute(self, document: DocumentPayload, generation: int) -> PipelineState:
        try:
            await self._run(document, generation)
        finally:
            if self._active_generation == generation:
                self._active_generation = None

        return self._state

    def reset(self) -> None:
        """Drop all state and return to idle, abandoning any run in flight."""
        self._generation += 1
        self._active_generation = None
        self._state = PipelineState()
        logger.info("Pipeline reset (generation %d)", self._generation)
        self._publish()

    async def _run(self, document: DocumentPayload, generation: int) -> None:
        logger.info("Starting transcription: %s", document.name or "<unnamed>")

        if not self._apply(generation, lambda _: PipelineState(status=PipelineStatus.LOADING)):
            return

        try:
            total = await self._source.page_count(document)
        except Exception as e:
            self._abort(generation, e, DOCUMENT_FAILED_MESSAGE)
            return

        pages = tuple(PageRecord(page_number=n) for n in range(1, total + 1))
        allocated = PipelineState(
            status=PipelineStatus.PROCESSING,
            total_pages=total,
            current_page=1 if total else 0,
            pages=pages,
        )
        if not self._apply(generation, lambda _: allocated):
            return

        for page_number in range(1, total + 1):
            if not await self._process_page(document, page_number, generation):
                return

        if self._apply(
            generation,
            lambda state: state.model_copy(update={"status": PipelineStatus.COMPLETED}),
        ):
            logger.info(
                "Transcription complete: %d/%d pages extracted, %d failed",
                self._state.completed_count,
                total,
                self._state.failed_count,
            )

    async def _process_page(
        self,
        document: DocumentPayload,
        page_number: int,
        generation: int,
    ) -> bool:
        """Run one page through preview, render and extract. False stops the loop."""
        try:
            preview = await self._source.render_page(
                document, page_number, self._preview_profile
            )
        except Exception as e:
            self._abort(
                generation, e, f"Failed to render page {page_number}.", current_page=page_number
            )
            return False

        def begin(state: PipelineState) -> PipelineState:
            state = state.model_copy(update={"current_page": page_number})
            return state.with_page(state.page(page_number).begin(preview))

        if not self._apply(generation, begin):
            return False
        logger.debug("Page %d: processing", page_number)

        transform: StateTransform
        try:
            image = await self._source.render_page(
                document, page_number, self._extraction_profile
            )
            text = await self._extractor.extract(image)
        except Exception as e:
            logger.warning("Extraction failed for page %d: %s", page_number, e)
            transform = lambda state: state.with_page(state.page(page_number).fail())
        else:
            logger.debug("Page %d: completed (%d chars)", page_number, len(text))
            transform = lambda state: state.with_page(
                state.page(page_number).complete(text)
            )

        return self._apply(generation, transform)

    def _abort(
        self,
        generation: int,
        error: Exception,
        message: str,
        current_page: int | None = None,
    ) -> None:
        """Fatal failure: surface ``message`` and log the underlying cause."""
        if generation != self._generation:
            return

        if isinstance(error, DocuFlowError):
            logger.error("Transcription run failed: %s", error)
        else:
            logger.exception("Transcription run failed with unexpected error")

        self._apply(
            generation,
            lambda state: state.model_copy(
                update={
                    "status": PipelineStatus.ERROR,
                    "error_message": message,
                    "current_page": current_page or state.current_page,
                }
            ),
        )

    def _apply(self, generation: int, transform: StateTransform) -> bool:
        """Commit a transition unless it belongs to an abandoned run."""
        if generation != self._generation:
            logger.debug("Discarding update from abandoned run %d", generation)
            return False

        self._state = transform(self._state)
        self._publish()
        return True

    def _publish(self) -> None:
        snapshot = self._state
        for observer in list(self._observers):
            try:
                observer(snapshot)
            except Exception:
                logger.exception("State observer raised; continuing run")
