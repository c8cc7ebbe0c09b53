"""
Evaluation Models - Grading report and evaluation state.

Reports are parsed from the grader's camelCase JSON (``questionNumber``,
``maxScore``, ...) and exposed with snake_case attributes.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _ReportModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class EvaluationItem(_ReportModel):
    """One graded question."""

    id: str
    question_number: str
    question_text: str
    model_answer: str
    student_answer: str
    score: float
    max_score: float
    feedback: str

    @field_validator("id", "question_number", mode="before")
    @classmethod
    def keep_source_numbering(cls, value: Any) -> Any:
        """Numbering like 1, "2b" or "iv" is kept as text."""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    def within_bounds(self) -> bool:
        return 0 <= self.score <= self.max_score


class EvaluationReport(_ReportModel):
    """Itemized grading of a submission against an answer key."""

    items: list[EvaluationItem] = Field(default_factory=list)
    total_score: float
    max_possible_score: float
    summary: str
    improvement_areas: list[str] = Field(default_factory=list)

    @property
    def item_score_sum(self) -> float:
        return sum(item.score for item in self.items)

    @property
    def item_max_sum(self) -> float:
        return sum(item.max_score for item in self.items)

    @property
    def percentage(self) -> float:
        if not self.max_possible_score:
            return 0.0
        return 100.0 * self.total_score / self.max_possible_score

    def score_discrepancies(self, tolerance: float = 1e-6) -> list[str]:
        """
        Describe where reported totals or item scores look inconsistent.

        The report is never corrected; this only surfaces divergence.
        """
        issues = []
        if abs(self.total_score - self.item_score_sum) > tolerance:
            issues.append(
                f"totalScore {self.total_score:g} != sum of item scores "
                f"{self.item_score_sum:g}"
            )
        if abs(self.max_possible_score - self.item_max_sum) > tolerance:
            issues.append(
                f"maxPossibleScore {self.max_possible_score:g} != sum of item "
                f"maxScores {self.item_max_sum:g}"
            )
        for item in self.items:
            if not item.within_bounds:
                issues.append(
                    f"question {item.question_number}: score {item.score:g} "
                    f"outside 0..{item.max_score:g}"
                )
        return issues


class EvaluationStatus(str, Enum):
    """Lifecycle of the single evaluation slot of a session."""

    NONE = "none"
    IN_PROGRESS = "in_progress"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class EvaluationState(BaseModel):
    """Snapshot of the evaluation slot: nothing, running, a report, or an error."""

    status: EvaluationStatus = EvaluationStatus.NONE
    report: EvaluationReport | None = None
    error_message: str | None = None

    model_config = {"frozen": True}
