"""
Session Domain - Gating evaluation on a completed extraction.

This domain handles:
- Holding the current document and answer key
- Running transcription and grading for them
- Resetting both together
"""

from .session import DocumentSession, create_session

__all__ = ["DocumentSession", "create_session"]
