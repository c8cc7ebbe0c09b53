"""
CLI Interface - Command-line tools for DocuFlow.

Provides commands for:
- Page-by-page transcription of a document
- Grading a transcribed script against an answer key
- Running the API server
"""

from .main import app, main

__all__ = ["app", "main"]
