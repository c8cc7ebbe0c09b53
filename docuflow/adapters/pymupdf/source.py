"""
PyMuPDF Source - Page counting and rasterisation with PyMuPDF.

Implements the transcription ``DocumentSource`` contract. PDFs and single
images (PNG, JPEG, ...) are both opened as documents; an image counts as
one page. MuPDF calls are blocking, so each one runs in a worker thread.
"""

from __future__ import annotations

import asyncio
import logging

import fitz  # PyMuPDF

from docuflow.config import DocumentError, RenderError
from docuflow.domains.transcription.models import DocumentPayload, RenderProfile

logger = logging.getLogger(__name__)

__all__ = ["PyMuPDFSource", "filetype_for"]

# MIME subtype -> MuPDF filetype hint
_FILETYPES = {
    "pdf": "pdf",
    "png": "png",
    "jpeg": "jpeg",
    "jpg": "jpeg",
    "gif": "gif",
    "bmp": "bmp",
    "tiff": "tiff",
    "webp": "webp",
}


def filetype_for(media_type: str) -> str:
    """Map a MIME type such as ``image/png`` to a MuPDF filetype hint."""
    subtype = media_type.split(";")[0].split("/")[-1].strip().lower()
    return _FILETYPES.get(subtype, "pdf")


class PyMuPDFSource:
    """
    Document source backed by PyMuPDF.

    Example:
        >>> source = PyMuPDFSource()
        >>> document = DocumentPayload(data=Path("script.pdf").read_bytes())
        >>> await source.page_count(document)
        3
        >>> jpeg = await source.render_page(document, 1, RenderProfile.preview())
    """

    async def page_count(self, document: DocumentPayload) -> int:
        """
        Count pages.

        Raises:
            DocumentError: MuPDF could not open the document
        """
        return await asyncio.to_thread(self._page_count, document)

    async def render_page(
        self,
        document: DocumentPayload,
        page_number: int,
        profile: RenderProfile,
    ) -> bytes:
        """
        Render page ``page_number`` (1-indexed) as JPEG bytes.

        Raises:
            RenderError: Page out of range or MuPDF failed to rasterise it
        """
        return await asyncio.to_thread(self._render, document, page_number, profile)

    def _open(self, document: DocumentPayload) -> fitz.Document:
        try:
            return fitz.open(stream=document.data, filetype=filetype_for(document.media_type))
        except Exception as e:
            raise DocumentError(
                f"Cannot open document: {e}",
                details={"name": document.name, "media_type": document.media_type},
            ) from e

    def _page_count(self, document: DocumentPayload) -> int:
        with self._open(document) as doc:
            count = doc.page_count
        logger.debug("Opened %s: %d pages", document.name or "<unnamed>", count)
        return count

    def _render(
        self,
        document: DocumentPayload,
        page_number: int,
        profile: RenderProfile,
    ) -> bytes:
        try:
            doc = self._open(document)
        except DocumentError as e:
            raise RenderError(e.message, details=e.details) from e

        with doc:
            if not 1 <= page_number <= doc.page_count:
                raise RenderError(
                    f"Page {page_number} out of range (1-{doc.page_count})",
                    details={"page_number": page_number},
                )
            try:
                page = doc.load_page(page_number - 1)
                matrix = fitz.Matrix(profile.scale, profile.scale)
                pix = page.get_pixmap(matrix=matrix, alpha=False)
                return pix.tobytes("jpeg", jpg_quality=profile.jpeg_quality)
            except Exception as e:
                raise RenderError(
                    f"Failed to render page {page_number}: {e}",
                    details={"page_number": page_number, "profile": profile.name},
                ) from e
