"""
Evaluation Contracts - Interfaces for evaluation domain.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from docuflow.domains.transcription.models import DocumentPayload

from .models import EvaluationReport


@runtime_checkable
class SubmissionGrader(Protocol):
    """
    Contract for grading a submission against an answer key.

    Example:
        >>> class MyGrader:
        ...     async def grade(self, primary, key) -> EvaluationReport:
        ...         ...
        >>> assert isinstance(MyGrader(), SubmissionGrader)
    """

    async def grade(
        self,
        primary: DocumentPayload,
        key: DocumentPayload,
    ) -> EvaluationReport:
        """
        Grade ``primary`` (student submission) against ``key``.

        Raises:
            EvaluationError: Backend failed or returned an unparseable report
        """
        ...
