"""
Adapters - External service integrations.

All third-party calls (Gemini, PyMuPDF) are wrapped here to isolate domains
from library changes.
"""

from .gemini import GeminiClient
from .pymupdf import PyMuPDFSource

__all__ = [
    "GeminiClient",
    "PyMuPDFSource",
]
