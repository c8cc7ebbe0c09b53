"""
Transcription Contracts - Collaborators consumed by the page pipeline.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, runtime_checkable

from .models import DocumentPayload, PipelineState, RenderProfile

StateObserver = Callable[[PipelineState], None]


@runtime_checkable
class DocumentSource(Protocol):
    """
    Contract for page counting and rasterisation.

    Example:
        >>> class MySource:
        ...     async def page_count(self, document: DocumentPayload) -> int: ...
        ...     async def render_page(self, document, page_number, profile) -> bytes: ...
        >>> assert isinstance(MySource(), DocumentSource)
    """

    async def page_count(self, document: DocumentPayload) -> int:
        """
        Count the pages of a document.

        Raises:
            DocumentError: Document is corrupt or unsupported
        """
        ...

    async def render_page(
        self,
        document: DocumentPayload,
        page_number: int,
        profile: RenderProfile,
    ) -> bytes:
        """
        Render one page (1-indexed) to JPEG bytes.

        Raises:
            RenderError: Page could not be rendered
        """
        ...


@runtime_checkable
class PageExtractor(Protocol):
    """Contract for turning one page image into text."""

    async def extract(self, image: bytes) -> str:
        """
        Extract text from a JPEG page image.

        Raises:
            ExtractionError: Backend failed for this page
        """
        ...
