"""
Template validation - report every problem, raise nothing.

Philosophy:
- Integrity issues (an answer key that cannot be graded) block attempts
- Configuration issues (out-of-range settings) are reported to the author
  at save time; grading of existing attempts is unaffected
- Each question kind declares what it needs
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum

from loguru import logger

from .errors import (
    AttemptStateError,
    QuizConfigurationError,
    QuizEngineError,
    TemplateIntegrityError,
)
from .models import FALSE_WORDS, TRUE_WORDS, Question, QuestionKind, QuizTemplate
from .remapper import check_correct_answer

MIN_PAIRS = 2


class IssueCategory(str, Enum):
    INTEGRITY = "integrity"
    CONFIGURATION = "configuration"
    ATTEMPT = "attempt"


@dataclass(frozen=True)
class ValidationIssue:
    """A single problem found in a template."""

    code: str
    message: str
    category: IssueCategory
    path: str | None = None

    @classmethod
    def from_error(cls, code: str, error: QuizEngineError) -> "ValidationIssue":
        if isinstance(error, TemplateIntegrityError):
            category = IssueCategory.INTEGRITY
        elif isinstance(error, AttemptStateError):
            category = IssueCategory.ATTEMPT
        else:
            category = IssueCategory.CONFIGURATION
        return cls(code=code, message=error.message, category=category, path=error.path)

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
            "path": self.path,
        }


@dataclass
class ValidationReport:
    """All issues found in one template."""

    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.issues

    @property
    def integrity_issues(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.category == IssueCategory.INTEGRITY]

    @property
    def configuration_issues(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.category == IssueCategory.CONFIGURATION]

    @property
    def can_start_attempt(self) -> bool:
        """Configuration issues do not stop an attempt; integrity issues do."""
        return not self.integrity_issues

    def codes(self) -> list[str]:
        return [i.code for i in self.issues]

    def add(self, code: str, message: str, category: IssueCategory, path: str | None = None) -> None:
        self.issues.append(ValidationIssue(code=code, message=message, category=category, path=path))

    def to_dict(self) -> dict:
        return {"ok": self.ok, "issues": [i.to_dict() for i in self.issues]}


# ============================================================================
# Question checks
# ============================================================================


def _check_question(question: Question, report: ValidationReport) -> None:
    path = f"questions.{question.id}"
    kind = question.kind

    if kind.is_choice:
        try:
            check_correct_answer(question)
        except TemplateIntegrityError as e:
            code = "missing_options" if not question.options else "invalid_correct_answer"
            report.issues.append(ValidationIssue.from_error(code, e))

    elif kind == QuestionKind.TRUE_FALSE:
        answer = question.correct_answer
        if isinstance(answer, bool):
            pass
        elif isinstance(answer, int) and question.options and 0 <= answer < len(question.options):
            pass
        elif isinstance(answer, int) and not question.options and answer in (0, 1):
            pass
        elif isinstance(answer, str) and answer.strip().lower() in TRUE_WORDS | FALSE_WORDS:
            pass
        else:
            report.add(
                "invalid_correct_answer",
                f"Question {question.id} needs a true/false answer or a valid option index",
                IssueCategory.INTEGRITY,
                f"{path}.correct_answer",
            )

    elif kind == QuestionKind.FILL_IN_BLANK:
        if not isinstance(question.correct_answer, str) and not question.accepted_answers:
            report.add(
                "missing_accepted_answers",
                f"Question {question.id} needs at least one accepted answer",
                IssueCategory.INTEGRITY,
                f"{path}.accepted_answers",
            )

    elif kind == QuestionKind.MATCHING:
        if len(question.matching_pairs) < MIN_PAIRS:
            report.add(
                "missing_matching_pairs",
                f"Question {question.id} needs at least {MIN_PAIRS} matching pairs",
                IssueCategory.INTEGRITY,
                f"{path}.matching_pairs",
            )

    elif kind == QuestionKind.ORDERING:
        items = question.ordering_items
        if len(items) < MIN_PAIRS:
            report.add(
                "missing_ordering_items",
                f"Question {question.id} needs at least {MIN_PAIRS} ordering items",
                IssueCategory.INTEGRITY,
                f"{path}.ordering_items",
            )
        elif sorted(i.correct_position for i in items) != list(range(len(items))):
            report.add(
                "invalid_ordering_positions",
                f"Question {question.id} positions must cover 0..{len(items) - 1} exactly once",
                IssueCategory.INTEGRITY,
                f"{path}.ordering_items",
            )

    if question.weight is not None and question.weight <= 0:
        report.add(
            "non_positive_weight",
            f"Question {question.id} has weight {question.weight}; weights must be positive",
            IssueCategory.CONFIGURATION,
            f"{path}.weight",
        )


# ============================================================================
# Template checks
# ============================================================================


def check_passing_score(passing_score: int) -> None:
    """Raise QuizConfigurationError if the threshold is not a percentage."""
    if not 0 <= passing_score <= 100:
        raise QuizConfigurationError(
            f"Passing score {passing_score} is outside [0, 100]",
            path="passing_score",
        )


def _check_settings(template: QuizTemplate, report: ValidationReport) -> None:
    try:
        check_passing_score(template.passing_score)
    except QuizConfigurationError as e:
        report.issues.append(ValidationIssue.from_error("passing_score_out_of_range", e))

    count = len(template.questions)
    for position, weight in sorted(template.question_weights.items()):
        if not 0 <= position < count:
            report.add(
                "weight_position_out_of_range",
                f"Weight given for position {position} but the quiz has {count} questions",
                IssueCategory.CONFIGURATION,
                f"question_weights.{position}",
            )
        if weight <= 0:
            report.add(
                "non_positive_weight",
                f"Weight {weight} at position {position} must be positive",
                IssueCategory.CONFIGURATION,
                f"question_weights.{position}",
            )

    if template.time_limit_per_question is not None and template.time_limit_per_question <= 0:
        report.add(
            "invalid_time_limit",
            "Time limit per question must be positive (or unset for no limit)",
            IssueCategory.CONFIGURATION,
            "time_limit_per_question",
        )

    if template.max_attempts is not None and template.max_attempts <= 0:
        report.add(
            "invalid_max_attempts",
            "Maximum attempts must be positive (or unset for unlimited)",
            IssueCategory.CONFIGURATION,
            "max_attempts",
        )


def validate_template(template: QuizTemplate) -> ValidationReport:
    """
    Check a template before it is saved or used.

    Returns:
        ValidationReport listing every issue found (empty when valid)
    """
    report = ValidationReport()

    duplicates = [qid for qid, n in Counter(q.id for q in template.questions).items() if n > 1]
    for qid in duplicates:
        report.add(
            "duplicate_question_id",
            f"Question id {qid} is used more than once",
            IssueCategory.INTEGRITY,
            f"questions.{qid}",
        )

    for question in template.questions:
        _check_question(question, report)

    _check_settings(template, report)

    if not report.ok:
        logger.warning(f"Template {template.id}: {len(report.issues)} issue(s): {', '.join(report.codes())}")
    return report
