"""
Evaluation Trigger - Owns the single evaluation slot of a session.

Calls the grader once per request and stores either the report or the
error. Failures stay here as state; they never reach the pipeline.
"""

from __future__ import annotations

import asyncio
import logging

from docuflow.config import EvaluationBusyError, EvaluationError
from docuflow.domains.transcription.models import DocumentPayload

from .contracts import SubmissionGrader
from .models import EvaluationState, EvaluationStatus

logger = logging.getLogger(__name__)

__all__ = ["EvaluationTrigger"]

GENERIC_FAILURE_MESSAGE = "Evaluation failed. Please check your files and try again."


class EvaluationTrigger:
    """
    Single-flight wrapper around a SubmissionGrader.

    Example:
        >>> trigger = EvaluationTrigger(GeminiSubmissionGrader(client))
        >>> state = await trigger.evaluate(script, answer_key)
        >>> if state.status is EvaluationStatus.SUCCEEDED:
        ...     print(state.report.summary)
    """

    def __init__(self, grader: SubmissionGrader) -> None:
        self._grader = grader
        self._state = EvaluationState()
        self._generation = 0

    @property
    def state(self) -> EvaluationState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state.status is EvaluationStatus.IN_PROGRESS

    async def evaluate(
        self,
        primary: DocumentPayload,
        key: DocumentPayload,
    ) -> EvaluationState:
        """
        Grade ``primary`` against ``key`` and store the outcome.

        A later call replaces whatever the previous call stored.

        Returns:
            The stored state: ``succeeded`` with a report or ``failed`` with a message

        Raises:
            EvaluationBusyError: Another evaluation is still in flight
        """
        if self.is_running:
            raise EvaluationBusyError()

        self._generation += 1
        generation = self._generation
        previous = self._state
        self._state = EvaluationState(status=EvaluationStatus.IN_PROGRESS)

        try:
            report = await self._grader.grade(primary, key)
        except asyncio.CancelledError:
            if generation == self._generation:
                logger.info("Evaluation %d cancelled", generation)
                self._state = previous
            raise
        except EvaluationError as e:
            logger.warning("Evaluation failed: %s", e)
            outcome = EvaluationState(status=EvaluationStatus.FAILED, error_message=e.message)
        except Exception:
            logger.exception("Evaluation failed with unexpected error")
            outcome = EvaluationState(
                status=EvaluationStatus.FAILED, error_message=GENERIC_FAILURE_MESSAGE
            )
        else:
            for issue in report.score_discrepancies():
                logger.warning("Evaluation report inconsistency: %s", issue)
            outcome = EvaluationState(status=EvaluationStatus.SUCCEEDED, report=report)

        if generation != self._generation:
            logger.debug("Discarding result of abandoned evaluation %d", generation)
            return self._state

        self._state = outcome
        return outcome

    def reset(self) -> None:
        """Clear the slot, abandoning any evaluation in flight."""
        self._generation += 1
        self._state = EvaluationState()
