"""
Error Taxonomy - Consistent error codes across the application.

Usage:
    from docuflow.config.errors import ErrorCode, DocuFlowError

    raise DocuFlowError(ErrorCode.DOCUMENT_UNREADABLE, "Page count unavailable")
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes for machine-readable error responses."""

    # Document source errors
    DOCUMENT_UNREADABLE = "DOCUMENT_UNREADABLE"
    RENDER_FAILED = "RENDER_FAILED"

    # Extraction errors
    EXTRACTION_FAILED = "EXTRACTION_FAILED"

    # Evaluation errors
    EVALUATION_FAILED = "EVALUATION_FAILED"
    EVALUATION_IN_PROGRESS = "EVALUATION_IN_PROGRESS"
    EVALUATION_NOT_READY = "EVALUATION_NOT_READY"

    # Pipeline errors
    PIPELINE_BUSY = "PIPELINE_BUSY"
    INVALID_TRANSITION = "INVALID_TRANSITION"

    # LLM/Model errors
    LLM_UNAVAILABLE = "LLM_UNAVAILABLE"
    LLM_RATE_LIMITED = "LLM_RATE_LIMITED"

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class DocuFlowError(Exception):
    """Base exception with error code support."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to API-friendly dictionary."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


# Domain-specific exceptions for cleaner imports
class DocumentError(DocuFlowError):
    """Page count could not be determined (corrupt or unsupported document)."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.DOCUMENT_UNREADABLE, message, details)


class RenderError(DocuFlowError):
    """A specific page could not be rendered to an image."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.RENDER_FAILED, message, details)


class ExtractionError(DocuFlowError):
    """Text extraction for a single page image failed."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.EXTRACTION_FAILED, message, details)


class EvaluationError(DocuFlowError):
    """Grading call failed or its response did not match the report shape."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.EVALUATION_FAILED, message, details)


class EvaluationBusyError(DocuFlowError):
    """An evaluation is already in flight for this session."""

    def __init__(self, message: str = "An evaluation is already running") -> None:
        super().__init__(ErrorCode.EVALUATION_IN_PROGRESS, message)


class EvaluationNotReadyError(DocuFlowError):
    """Evaluation requested before an answer key and a completed extraction."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.EVALUATION_NOT_READY, message, details)


class PipelineBusyError(DocuFlowError):
    """A pipeline run is already in flight on this controller."""

    def __init__(self, message: str = "A pipeline run is already in progress") -> None:
        super().__init__(ErrorCode.PIPELINE_BUSY, message)


class InvalidTransitionError(DocuFlowError):
    """A page record was asked to move outside pending -> processing -> terminal."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.INVALID_TRANSITION, message, details)


class LLMError(DocuFlowError):
    """LLM/model errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        code: ErrorCode = ErrorCode.LLM_UNAVAILABLE,
    ) -> None:
        super().__init__(code, message, details)
