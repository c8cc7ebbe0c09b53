"""
Transcription Domain - Page-by-page document transcription.

This domain handles:
- Per-page status tracking (pending -> processing -> completed/error)
- Sequential rendering and extraction of each page
- Combined transcript aggregation
- Reset with abandonment of in-flight runs
"""

from .contracts import DocumentSource, PageExtractor, StateObserver
from .extractor import GeminiPageExtractor
from .models import (
    DocumentPayload,
    PageRecord,
    PageStatus,
    PipelineState,
    PipelineStatus,
    RenderProfile,
    combine_transcript,
)
from .pipeline import TranscriptionPipeline

__all__ = [
    # Contracts
    "DocumentSource",
    "PageExtractor",
    "StateObserver",
    # Models
    "DocumentPayload",
    "PageRecord",
    "PageStatus",
    "PipelineState",
    "PipelineStatus",
    "RenderProfile",
    "combine_transcript",
    # Implementations
    "GeminiPageExtractor",
    "TranscriptionPipeline",
]
