"""
Tests for evaluation models, the Gemini grader and the evaluation trigger.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from docuflow.adapters.gemini import GeminiAPIError, MediaPart
from docuflow.config import EvaluationBusyError, EvaluationError
from docuflow.domains.transcription.models import DocumentPayload

from .grader import GRADING_PROMPT, PARSE_FAILED_MESSAGE, GeminiSubmissionGrader
from .models import EvaluationItem, EvaluationReport, EvaluationState, EvaluationStatus
from .trigger import GENERIC_FAILURE_MESSAGE, EvaluationTrigger

SCRIPT = DocumentPayload(data=b"%PDF script", name="script.pdf")
KEY = DocumentPayload(data=b"png key", media_type="image/png", name="key.png")


def _backend_report() -> dict[str, Any]:
    return {
        "items": [
            {
                "id": "q2",
                "questionNumber": "2(b)",
                "questionText": "Define osmosis.",
                "modelAnswer": "Movement of water across a membrane.",
                "studentAnswer": "water moves through membrane",
                "score": 1.5,
                "maxScore": 2,
                "feedback": "Mention the concentration gradient.",
            },
            {
                "id": "q1",
                "questionNumber": 1,
                "questionText": "Name the powerhouse of the cell.",
                "modelAnswer": "Mitochondria",
                "studentAnswer": "mitochondria",
                "score": 1,
                "maxScore": 1,
                "feedback": "Correct.",
            },
        ],
        "totalScore": 2.5,
        "maxPossibleScore": 3,
        "summary": "Good grasp of basics.",
        "improvementAreas": ["Use precise terminology"],
    }


# --- Model Tests ---


def test_report_parses_camel_case() -> None:
    report = EvaluationReport.model_validate(_backend_report())
    assert report.total_score == 2.5
    assert report.max_possible_score == 3
    assert report.improvement_areas == ["Use precise terminology"]
    assert report.items[0].question_number == "2(b)"
    assert report.items[0].max_score == 2


def test_item_numbering_kept_as_text() -> None:
    report = EvaluationReport.model_validate(_backend_report())
    assert report.items[1].question_number == "1"


def test_item_accepts_snake_case_names() -> None:
    item = EvaluationItem(
        id="a",
        question_number="iv",
        question_text="",
        model_answer="",
        student_answer="",
        score=0,
        max_score=3,
        feedback="",
    )
    assert item.question_number == "iv"
    assert item.within_bounds


def test_report_consistent_totals_have_no_discrepancies() -> None:
    report = EvaluationReport.model_validate(_backend_report())
    assert report.score_discrepancies() == []
    assert report.percentage == pytest.approx(83.333, rel=1e-3)


def test_report_inconsistent_totals_are_kept_and_flagged() -> None:
    data = _backend_report()
    data["totalScore"] = 10
    data["items"][1]["score"] = 4  # above its maxScore of 1

    report = EvaluationReport.model_validate(data)

    assert report.total_score == 10
    issues = report.score_discrepancies()
    assert any("totalScore" in issue for issue in issues)
    assert any("question 1" in issue for issue in issues)


def test_report_missing_field_rejected() -> None:
    data = _backend_report()
    del data["summary"]
    with pytest.raises(ValueError):
        EvaluationReport.model_validate(data)


# --- GeminiSubmissionGrader Tests ---


@pytest.fixture
def mock_gemini_client() -> AsyncMock:
    """Create a mock GeminiClient."""
    mock = AsyncMock()
    mock.config = MagicMock()
    mock.config.model = "gemini-3-pro-preview"
    mock.generate_json_with_media.return_value = _backend_report()
    return mock


@pytest.fixture
def grader(mock_gemini_client: AsyncMock) -> GeminiSubmissionGrader:
    return GeminiSubmissionGrader(mock_gemini_client)


async def test_grader_sends_script_then_key(
    grader: GeminiSubmissionGrader, mock_gemini_client: AsyncMock
) -> None:
    await grader.grade(SCRIPT, KEY)

    mock_gemini_client.generate_json_with_media.assert_awaited_once_with(
        GRADING_PROMPT,
        media=[
            MediaPart(mime_type="application/pdf", data=b"%PDF script"),
            MediaPart(mime_type="image/png", data=b"png key"),
        ],
    )


async def test_grader_preserves_item_order(grader: GeminiSubmissionGrader) -> None:
    report = await grader.grade(SCRIPT, KEY)
    assert [item.id for item in report.items] == ["q2", "q1"]


async def test_grader_wraps_backend_failure(
    grader: GeminiSubmissionGrader, mock_gemini_client: AsyncMock
) -> None:
    mock_gemini_client.generate_json_with_media.side_effect = GeminiAPIError("down")

    with pytest.raises(EvaluationError) as exc_info:
        await grader.grade(SCRIPT, KEY)

    assert "down" in exc_info.value.message


async def test_grader_wraps_unparseable_json(
    grader: GeminiSubmissionGrader, mock_gemini_client: AsyncMock
) -> None:
    mock_gemini_client.generate_json_with_media.side_effect = json.JSONDecodeError(
        "Expecting value", "nope", 0
    )

    with pytest.raises(EvaluationError) as exc_info:
        await grader.grade(SCRIPT, KEY)

    assert exc_info.value.message == PARSE_FAILED_MESSAGE


async def test_grader_wraps_wrong_shape(
    grader: GeminiSubmissionGrader, mock_gemini_client: AsyncMock
) -> None:
    mock_gemini_client.generate_json_with_media.return_value = {"items": "none"}

    with pytest.raises(EvaluationError) as exc_info:
        await grader.grade(SCRIPT, KEY)

    assert exc_info.value.message == PARSE_FAILED_MESSAGE


# --- EvaluationTrigger Tests ---


class FakeGrader:
    """Grader replaying a scripted sequence of reports and exceptions."""

    def __init__(self, *outcomes: EvaluationReport | Exception) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[tuple[DocumentPayload, DocumentPayload]] = []

    async def grade(
        self, primary: DocumentPayload, key: DocumentPayload
    ) -> EvaluationReport:
        self.calls.append((primary, key))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class GatedGrader:
    def __init__(self, report: EvaluationReport) -> None:
        self.report = report
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def grade(
        self, primary: DocumentPayload, key: DocumentPayload
    ) -> EvaluationReport:
        self.entered.set()
        await self.release.wait()
        return self.report


@pytest.fixture
def report() -> EvaluationReport:
    return EvaluationReport.model_validate(_backend_report())


def test_trigger_starts_empty(report: EvaluationReport) -> None:
    trigger = EvaluationTrigger(FakeGrader(report))
    assert trigger.state == EvaluationState()
    assert trigger.state.status is EvaluationStatus.NONE


async def test_trigger_success_matches_backend(report: EvaluationReport) -> None:
    trigger = EvaluationTrigger(FakeGrader(report))

    state = await trigger.evaluate(SCRIPT, KEY)

    assert state.status is EvaluationStatus.SUCCEEDED
    assert state.report is not None
    assert len(state.report.items) == 2
    assert state.report.total_score == 2.5
    assert state.report.max_possible_score == 3
    assert state.error_message is None
    assert trigger.state == state


async def test_trigger_stores_evaluation_error() -> None:
    trigger = EvaluationTrigger(FakeGrader(EvaluationError(PARSE_FAILED_MESSAGE)))

    state = await trigger.evaluate(SCRIPT, KEY)

    assert state.status is EvaluationStatus.FAILED
    assert state.error_message == PARSE_FAILED_MESSAGE
    assert state.report is None


async def test_trigger_stores_unexpected_error_generically() -> None:
    trigger = EvaluationTrigger(FakeGrader(RuntimeError("socket closed")))

    state = await trigger.evaluate(SCRIPT, KEY)

    assert state.status is EvaluationStatus.FAILED
    assert state.error_message == GENERIC_FAILURE_MESSAGE


async def test_trigger_retry_after_failure_replaces_state(
    report: EvaluationReport,
) -> None:
    grader = FakeGrader(EvaluationError("backend down"), report)
    trigger = EvaluationTrigger(grader)

    first = await trigger.evaluate(SCRIPT, KEY)
    second = await trigger.evaluate(SCRIPT, KEY)

    assert first.status is EvaluationStatus.FAILED
    assert second.status is EvaluationStatus.SUCCEEDED
    assert trigger.state.status is EvaluationStatus.SUCCEEDED
    assert trigger.state.error_message is None
    assert trigger.state.report == report
    assert len(grader.calls) == 2


async def test_trigger_rejects_concurrent_evaluation(report: EvaluationReport) -> None:
    grader = GatedGrader(report)
    trigger = EvaluationTrigger(grader)

    task = asyncio.create_task(trigger.evaluate(SCRIPT, KEY))
    await grader.entered.wait()
    assert trigger.state.status is EvaluationStatus.IN_PROGRESS

    with pytest.raises(EvaluationBusyError):
        await trigger.evaluate(SCRIPT, KEY)

    grader.release.set()
    state = await task
    assert state.status is EvaluationStatus.SUCCEEDED


async def test_trigger_reset_discards_in_flight_result(report: EvaluationReport) -> None:
    grader = GatedGrader(report)
    trigger = EvaluationTrigger(grader)

    task = asyncio.create_task(trigger.evaluate(SCRIPT, KEY))
    await grader.entered.wait()
    trigger.reset()
    grader.release.set()
    await task

    assert trigger.state == EvaluationState()


async def test_trigger_cancelled_evaluation_frees_the_slot(
    report: EvaluationReport,
) -> None:
    grader = GatedGrader(report)
    trigger = EvaluationTrigger(grader)

    task = asyncio.create_task(trigger.evaluate(SCRIPT, KEY))
    await grader.entered.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert trigger.state == EvaluationState()
    assert not trigger.is_running

    grader.release.set()
    state = await trigger.evaluate(SCRIPT, KEY)
    assert state.status is EvaluationStatus.SUCCEEDED


async def test_trigger_cancel_keeps_previous_report(report: EvaluationReport) -> None:
    trigger = EvaluationTrigger(FakeGrader(report))
    done = await trigger.evaluate(SCRIPT, KEY)

    gated = GatedGrader(report)
    trigger._grader = gated
    task = asyncio.create_task(trigger.evaluate(SCRIPT, KEY))
    await gated.entered.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert trigger.state == done
