"""
Evaluation Domain - Grading a submission against an answer key.

This domain handles:
- The single structured-output grading call
- Parsing the reply into a typed report
- Storing the latest report or error per session
"""

from .contracts import SubmissionGrader
from .grader import GeminiSubmissionGrader
from .models import (
    EvaluationItem,
    EvaluationReport,
    EvaluationState,
    EvaluationStatus,
)
from .trigger import EvaluationTrigger

__all__ = [
    # Contracts
    "SubmissionGrader",
    # Models
    "EvaluationItem",
    "EvaluationReport",
    "EvaluationState",
    "EvaluationStatus",
    # Implementations
    "GeminiSubmissionGrader",
    "EvaluationTrigger",
]
