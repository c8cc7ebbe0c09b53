"""
Gemini Submission Grader - Single structured-output grading call.

Sends the student's script and the model answer key to Gemini in one
request and parses the JSON reply into an EvaluationReport.
"""

from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING

from pydantic import ValidationError

from docuflow.adapters.gemini import MediaPart
from docuflow.config import EvaluationError

from .models import EvaluationReport

if TYPE_CHECKING:
    from docuflow.adapters.gemini import GeminiClient
    from docuflow.domains.transcription.models import DocumentPayload

logger = logging.getLogger(__name__)

__all__ = ["GeminiSubmissionGrader"]

PARSE_FAILED_MESSAGE = "Failed to process evaluation report."

GRADING_PROMPT = """You are an expert exam evaluator. I am providing two documents (images or PDFs):
1. A Student's Answer Script.
2. An Official Model Answer Key.

Your task is to:
1. PREPROCESS: Extract the text from both documents.
2. ALIGN: Match the student's handwritten or typed answers to the corresponding questions in the model answer key.
3. EVALUATE: Grade each of the student's answers based on the model key. Be fair and provide constructive feedback.

Ensure you capture the student's answer exactly as written (handle handwriting extraction carefully from images or documents).

Return a JSON object with these keys:
- items: array of objects, one per question, each with
  id (string, unique), questionNumber (string, as numbered in the key),
  questionText, modelAnswer, studentAnswer (strings),
  score (number), maxScore (number), feedback (string)
- totalScore: number
- maxPossibleScore: number
- summary: string
- improvementAreas: array of strings"""


class GeminiSubmissionGrader:
    """
    Grader backed by Gemini.

    Example:
        >>> grader = GeminiSubmissionGrader(GeminiClient(GeminiConfig(model="gemini-3-pro-preview")))
        >>> report = await grader.grade(script, answer_key)
        >>> print(report.total_score, "/", report.max_possible_score)
    """

    def __init__(self, client: GeminiClient) -> None:
        """
        Initialize grader.

        Args:
            client: Gemini client configured with the grading model
        """
        self._client = client

    async def grade(
        self,
        primary: DocumentPayload,
        key: DocumentPayload,
    ) -> EvaluationReport:
        """
        Grade a student script against an answer key.

        Args:
            primary: Student answer script
            key: Model answer key

        Returns:
            Report with items in the order the model returned them

        Raises:
            EvaluationError: Gemini call failed or reply did not match the report shape
        """
        start_time = time.time()
        media = [
            MediaPart(mime_type=primary.media_type, data=primary.data),
            MediaPart(mime_type=key.media_type, data=key.data),
        ]

        try:
            data = await self._client.generate_json_with_media(GRADING_PROMPT, media=media)
        except json.JSONDecodeError as e:
            logger.error("Failed to parse Gemini grading response: %s", e)
            raise EvaluationError(PARSE_FAILED_MESSAGE) from e
        except Exception as e:
            raise EvaluationError(
                f"Evaluation request failed: {e}",
                details={"model": self._client.config.model},
            ) from e

        try:
            report = EvaluationReport.model_validate(data)
        except ValidationError as e:
            logger.error("Grading response did not match report shape: %s", e)
            raise EvaluationError(
                PARSE_FAILED_MESSAGE,
                details={"validation_errors": e.error_count()},
            ) from e

        logger.info(
            "Graded %s against %s: %g/%g over %d items in %.1fs",
            primary.name or "script",
            key.name or "answer key",
            report.total_score,
            report.max_possible_score,
            len(report.items),
            time.time() - start_time,
        )
        return report
