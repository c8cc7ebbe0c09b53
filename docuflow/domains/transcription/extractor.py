"""
Gemini Page Extractor - Page image to text using the Gemini vision API.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from docuflow.adapters.gemini import MediaPart
from docuflow.config import ExtractionError

if TYPE_CHECKING:
    from docuflow.adapters.gemini import GeminiClient

logger = logging.getLogger(__name__)

__all__ = ["GeminiPageExtractor"]

EXTRACTION_PROMPT = (
    "Extract all text and meaningful data from this document page. "
    "Use Markdown for formatting tables or headers if present. "
    "Be thorough and accurate."
)

EMPTY_PAGE_CONTENT = "No content extracted."


class GeminiPageExtractor:
    """
    Page extractor backed by Gemini.

    Example:
        >>> extractor = GeminiPageExtractor(GeminiClient())
        >>> text = await extractor.extract(jpeg_bytes)
    """

    def __init__(self, client: GeminiClient, mime_type: str = "image/jpeg") -> None:
        """
        Initialize extractor.

        Args:
            client: Gemini API client
            mime_type: MIME type of the page images handed to ``extract``
        """
        self._client = client
        self._mime_type = mime_type

    async def extract(self, image: bytes) -> str:
        """
        Extract text from a single page image.

        Returns:
            Markdown text, or a placeholder when the model returned nothing

        Raises:
            ExtractionError: Gemini call failed
        """
        start_time = time.time()
        try:
            response = await self._client.generate_with_media(
                EXTRACTION_PROMPT,
                media=[MediaPart(mime_type=self._mime_type, data=image)],
            )
        except Exception as e:
            raise ExtractionError(
                f"Page extraction failed: {e}",
                details={"model": self._client.config.model},
            ) from e

        logger.debug(
            "Extracted %d chars in %.1fs (%d tokens)",
            len(response.text),
            time.time() - start_time,
            response.total_tokens,
        )
        return response.text or EMPTY_PAGE_CONTENT
