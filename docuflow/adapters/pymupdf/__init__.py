"""
PyMuPDF Adapter - Page counting and page rasterisation.
"""

from .source import PyMuPDFSource, filetype_for

__all__ = ["PyMuPDFSource", "filetype_for"]
