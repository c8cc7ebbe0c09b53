"""
Configuration - Application settings and error taxonomy.
"""

from .errors import (
    DocuFlowError,
    DocumentError,
    ErrorCode,
    EvaluationBusyError,
    EvaluationError,
    EvaluationNotReadyError,
    ExtractionError,
    InvalidTransitionError,
    LLMError,
    PipelineBusyError,
    RenderError,
)
from .settings import Settings, get_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # Errors
    "ErrorCode",
    "DocuFlowError",
    "DocumentError",
    "RenderError",
    "ExtractionError",
    "EvaluationError",
    "EvaluationBusyError",
    "EvaluationNotReadyError",
    "PipelineBusyError",
    "InvalidTransitionError",
    "LLMError",
]
