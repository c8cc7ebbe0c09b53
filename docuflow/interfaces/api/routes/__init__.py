"""
API Routes.
"""

from . import evaluation, health, transcription

__all__ = ["health", "transcription", "evaluation"]
