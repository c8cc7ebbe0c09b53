"""
Transcription Models - Data types for the page pipeline.

Snapshots are frozen: every transition produces new objects, so an observer
holding a PipelineState never sees it change underneath it.
"""

from __future__ import annotations

import base64
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from docuflow.config import InvalidTransitionError, Settings, get_settings

EXTRACTION_FAILED_CONTENT = "Failed to extract content."
DOCUMENT_FAILED_MESSAGE = "Failed to process file. Make sure it is a valid PDF."
TRANSCRIPT_SEPARATOR = "\n\n"


class PageStatus(str, Enum):
    """Per-page processing status."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (PageStatus.COMPLETED, PageStatus.ERROR)


class PipelineStatus(str, Enum):
    """Overall run status."""

    IDLE = "idle"
    LOADING = "loading"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class DocumentPayload(BaseModel):
    """Fully materialized document contents plus a declared media type."""

    data: bytes
    media_type: str = "application/pdf"
    name: str | None = None

    model_config = {"frozen": True}

    @model_validator(mode="before")
    @classmethod
    def default_media_type(cls, data: object) -> object:
        """Treat a missing or blank media type as PDF."""
        if isinstance(data, dict) and not data.get("media_type"):
            data = {**data, "media_type": "application/pdf"}
        return data


class RenderProfile(BaseModel):
    """How a page is rasterised: zoom factor and JPEG quality."""

    name: str
    scale: float = Field(gt=0.0)
    jpeg_quality: int = Field(ge=1, le=100)

    model_config = {"frozen": True}

    @classmethod
    def preview(cls, settings: Settings | None = None) -> "RenderProfile":
        """Low-weight thumbnail shown while a page is being processed."""
        settings = settings or get_settings()
        return cls(
            name="preview",
            scale=settings.preview_scale,
            jpeg_quality=settings.preview_jpeg_quality,
        )

    @classmethod
    def extraction(cls, settings: Settings | None = None) -> "RenderProfile":
        """Higher-resolution image sent to the extraction backend."""
        settings = settings or get_settings()
        return cls(
            name="extraction",
            scale=settings.extraction_scale,
            jpeg_quality=settings.extraction_jpeg_quality,
        )


class PageRecord(BaseModel):
    """Processing state of one page (1-indexed)."""

    page_number: int = Field(ge=1)
    status: PageStatus = PageStatus.PENDING
    content: str = ""
    preview_image: bytes | None = None

    model_config = {"frozen": True}

    @property
    def preview_data_url(self) -> str | None:
        """Preview as an embeddable ``data:`` URI."""
        if self.preview_image is None:
            return None
        encoded = base64.b64encode(self.preview_image).decode("ascii")
        return f"data:image/jpeg;base64,{encoded}"

    def begin(self, preview_image: bytes) -> PageRecord:
        """pending -> processing, attaching the rendered preview."""
        self._require(PageStatus.PENDING, PageStatus.PROCESSING)
        return self.model_copy(
            update={"status": PageStatus.PROCESSING, "preview_image": preview_image}
        )

    def complete(self, content: str) -> PageRecord:
        """processing -> completed with the extracted text."""
        self._require(PageStatus.PROCESSING, PageStatus.COMPLETED)
        return self.model_copy(
            update={"status": PageStatus.COMPLETED, "content": content}
        )

    def fail(self) -> PageRecord:
        """processing -> error with the placeholder content."""
        self._require(PageStatus.PROCESSING, PageStatus.ERROR)
        return self.model_copy(
            update={"status": PageStatus.ERROR, "content": EXTRACTION_FAILED_CONTENT}
        )

    def _require(self, expected: PageStatus, target: PageStatus) -> None:
        if self.status is not expected:
            raise InvalidTransitionError(
                f"Page {self.page_number} cannot move from "
                f"{self.status.value} to {target.value}",
                details={"page_number": self.page_number},
            )


class PipelineState(BaseModel):
    """Aggregate snapshot of a pipeline run."""

    status: PipelineStatus = PipelineStatus.IDLE
    total_pages: int = Field(default=0, ge=0)
    current_page: int = Field(default=0, ge=0)
    pages: tuple[PageRecord, ...] = ()
    error_message: str | None = None

    model_config = {"frozen": True}

    @property
    def combined_transcript(self) -> str:
        """Completed pages' content in page order, separated by a blank line."""
        return combine_transcript(self.pages)

    @property
    def completed_count(self) -> int:
        return sum(1 for page in self.pages if page.status is PageStatus.COMPLETED)

    @property
    def failed_count(self) -> int:
        return sum(1 for page in self.pages if page.status is PageStatus.ERROR)

    @property
    def is_running(self) -> bool:
        return self.status in (PipelineStatus.LOADING, PipelineStatus.PROCESSING)

    def page(self, page_number: int) -> PageRecord:
        """Look up a page record by its 1-based number."""
        return self.pages[page_number - 1]

    def with_page(self, record: PageRecord) -> PipelineState:
        """Copy of this state with ``record`` replacing its page slot."""
        pages = list(self.pages)
        pages[record.page_number - 1] = record
        return self.model_copy(update={"pages": tuple(pages)})


def combine_transcript(pages: tuple[PageRecord, ...] | list[PageRecord]) -> str:
    """Join the content of completed pages in page-number order."""
    ordered = sorted(pages, key=lambda page: page.page_number)
    return TRANSCRIPT_SEPARATOR.join(
        page.content for page in ordered if page.status is PageStatus.COMPLETED
    )
