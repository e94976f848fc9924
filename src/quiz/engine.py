"""
QuizEngine - the attempt lifecycle behind one boundary.

Flow:
1. load_template / validate_template: report problems, never raise
2. start_attempt: bind weights, shuffle questions, remap options (once)
3. record_answer: store answers while the attempt is open
4. submit: score, evaluate pass/fail, finalize, hand the record to the sink
5. explanation_for: gate explanations by feedback mode

Questions can be flagged for review while the attempt is open.

Every method returns a result object; engine errors become issues on it.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

from loguru import logger
from pydantic import ValidationError

from config import Settings, get_settings
from src.grading.evaluator import FeedbackView, evaluate, explanation_visible
from src.grading.scoring import ScoreResult, compute_score, grade_answer

from .attempt import AnswerRecord, AttemptConfig, QuizAttempt, new_attempt_id
from .errors import AttemptStateError, QuizEngineError
from .models import QuizTemplate
from .randomizer import bind_weights, randomize_question_order
from .remapper import remap_options
from .shuffler import RandomSource, seeded_rng
from .sink import AttemptSink
from .validation import IssueCategory, ValidationIssue, ValidationReport, validate_template


@dataclass
class StartResult:
    """A new attempt, or the issues that prevented it."""

    attempt: QuizAttempt | None
    report: ValidationReport = field(default_factory=ValidationReport)

    @property
    def ok(self) -> bool:
        return self.attempt is not None


@dataclass
class AnswerFeedback:
    """
    Outcome of recording one answer.

    ``is_correct`` and ``explanation`` stay None unless the feedback mode
    shows them while the attempt is in progress.
    """

    position: int
    accepted: bool
    timed_out: bool = False
    is_correct: bool | None = None
    explanation: str | None = None
    issue: ValidationIssue | None = None


@dataclass
class SubmissionResult:
    """Finalized score and verdict, or the reason submission failed."""

    attempt: QuizAttempt
    score: ScoreResult | None = None
    is_passing: bool | None = None
    persisted: bool = False
    issue: ValidationIssue | None = None

    @property
    def ok(self) -> bool:
        return self.issue is None


@dataclass
class FlagResult:
    """Flag state of one position after a toggle, or why the toggle was refused."""

    position: int
    accepted: bool
    flagged: bool = False
    issue: ValidationIssue | None = None


@dataclass(frozen=True)
class ExplanationResult:
    visible: bool
    explanation: str | None = None


class QuizEngine:
    """
    Runs quiz attempts.

    Example:
        engine = QuizEngine(sink=MemoryAttemptSink())
        started = engine.start_attempt(template, learner_id="u1")
        engine.record_answer(started.attempt, 0, 2)
        result = engine.submit(started.attempt)
    """

    def __init__(self, settings: Settings | None = None, sink: AttemptSink | None = None):
        self.settings = settings or get_settings()
        self.sink = sink

    # ========================================================================
    # Templates
    # ========================================================================

    def load_template(
        self, data: QuizTemplate | Mapping[str, Any]
    ) -> tuple[QuizTemplate | None, ValidationReport]:
        """Parse and validate a template; the template is None if it cannot be parsed."""
        if isinstance(data, QuizTemplate):
            return data, self.validate_template(data)

        try:
            template = QuizTemplate.model_validate(data)
        except ValidationError as e:
            report = ValidationReport()
            for error in e.errors():
                report.add(
                    "invalid_template",
                    error["msg"],
                    IssueCategory.INTEGRITY,
                    ".".join(str(p) for p in error["loc"]) or None,
                )
            logger.warning(f"Template rejected: {e.error_count()} validation error(s)")
            return None, report

        return template, self.validate_template(template)

    def validate_template(self, template: QuizTemplate) -> ValidationReport:
        return validate_template(template)

    # ========================================================================
    # Attempt lifecycle
    # ========================================================================

    def start_attempt(
        self,
        template: QuizTemplate | Mapping[str, Any],
        *,
        learner_id: str = "default",
        attempt_number: int | None = None,
        attempts_used: int = 0,
        rng: RandomSource | None = None,
    ) -> StartResult:
        """
        Create an attempt with its frozen question and option order.

        Args:
            template: Quiz template (or its raw mapping)
            learner_id: Who is taking the quiz
            attempt_number: Defaults to ``attempts_used + 1``; pass it explicitly
                for a reproducible order under ``seed_secret``
            attempts_used: Finalized attempts the learner already has
            rng: Random source; derived from settings when omitted

        Returns:
            StartResult with the attempt, or None and the blocking issues
        """
        loaded, report = self.load_template(template)
        if loaded is None:
            return StartResult(attempt=None, report=report)

        if not report.can_start_attempt:
            logger.warning(f"Quiz {loaded.id}: attempt refused, template has integrity issues")
            return StartResult(attempt=None, report=report)

        if loaded.max_attempts is not None and 0 < loaded.max_attempts <= attempts_used:
            report.add(
                "max_attempts_reached",
                f"Learner {learner_id} has used {attempts_used} of {loaded.max_attempts} attempts",
                IssueCategory.ATTEMPT,
                "max_attempts",
            )
            logger.info(f"Quiz {loaded.id}: no attempts left for {learner_id}")
            return StartResult(attempt=None, report=report)

        number = attempt_number if attempt_number is not None else attempts_used + 1
        attempt_id = new_attempt_id()
        if rng is None:
            # Without an explicit number the seed also takes the new attempt id
            rng = self._rng_for(
                learner_id,
                loaded.id,
                number,
                attempt_id=None if attempt_number is not None else attempt_id,
            )
        binding = self.settings.weight_binding

        questions = loaded.questions
        if binding == "question":
            questions = bind_weights(questions, loaded.question_weights)

        ordered = randomize_question_order(questions, rng, enabled=loaded.randomize_questions)

        try:
            remapped = [remap_options(q, rng, enabled=loaded.randomize_answers) for q in ordered]
        except QuizEngineError as e:
            report.issues.append(ValidationIssue.from_error(e.code, e))
            logger.error(f"Quiz {loaded.id}: option remap failed: {e.message}")
            return StartResult(attempt=None, report=report)

        attempt = QuizAttempt(
            quiz_id=loaded.id,
            ordered_questions=tuple(r.question.model_copy(deep=True) for r in remapped),
            option_orders=tuple(r.option_order for r in remapped),
            config=AttemptConfig.from_template(loaded, weight_binding=binding),
            learner_id=learner_id,
            attempt_number=number,
            attempt_id=attempt_id,
        )
        logger.info(
            f"Started attempt {attempt.attempt_id} of quiz {loaded.id} "
            f"for {learner_id} ({attempt.question_count} questions)"
        )
        return StartResult(attempt=attempt, report=report)

    def record_answer(
        self,
        attempt: QuizAttempt,
        position: int,
        answer: Any,
        *,
        elapsed_seconds: float | None = None,
    ) -> AnswerFeedback:
        """
        Store an answer for the question at ``position``.

        An answer given after the per-question time limit is kept but marked
        timed out, so it scores as unanswered.
        """
        limit = attempt.config.time_limit_per_question
        timed_out = (
            self.settings.enforce_time_limits
            and limit is not None
            and limit > 0
            and elapsed_seconds is not None
            and elapsed_seconds > limit
        )
        record = AnswerRecord(
            value=answer,
            answered_at=datetime.now(),
            elapsed_seconds=elapsed_seconds,
            timed_out=timed_out,
        )

        try:
            attempt.record_answer(position, record)
        except AttemptStateError as e:
            logger.warning(f"Answer rejected: {e.message}")
            return AnswerFeedback(
                position=position,
                accepted=False,
                issue=ValidationIssue.from_error(e.code, e),
            )

        if timed_out:
            logger.debug(f"Attempt {attempt.attempt_id}: position {position} answered after {limit}s limit")

        feedback = AnswerFeedback(position=position, accepted=True, timed_out=timed_out)
        if explanation_visible(attempt.config.feedback_mode, FeedbackView.QUESTION, answered=True):
            question = attempt.question_at(position)
            result = grade_answer(
                question,
                record.scored_value,
                case_sensitive=self.settings.text_answer_case_sensitive,
            )
            feedback.is_correct = result.is_correct
            feedback.explanation = question.explanation
        return feedback

    def submit(self, attempt: QuizAttempt) -> SubmissionResult:
        """Score and finalize the attempt, then persist it. Only the first call counts."""
        if attempt.is_finalized:
            error = AttemptStateError(f"Attempt {attempt.attempt_id} is already submitted")
            return SubmissionResult(
                attempt=attempt,
                score=attempt.score,
                is_passing=attempt.is_passing,
                issue=ValidationIssue.from_error(error.code, error),
            )

        config = attempt.config
        positional = config.question_weights if config.weight_binding == "position" else None
        score = compute_score(
            attempt.ordered_questions,
            attempt.answer_values(),
            question_weights=positional,
            case_sensitive=self.settings.text_answer_case_sensitive,
        )
        is_passing = evaluate(score.percentage, config.passing_score)
        attempt.finalize(score, is_passing)

        logger.info(
            f"Attempt {attempt.attempt_id} submitted: {score.earned_weight}/{score.total_weight} "
            f"({score.percentage:.1f}%) {'PASS' if is_passing else 'FAIL'}"
        )

        return SubmissionResult(
            attempt=attempt,
            score=score,
            is_passing=is_passing,
            persisted=self._persist(attempt),
        )

    def explanation_for(
        self,
        attempt: QuizAttempt,
        position: int,
        view: FeedbackView | str | None = None,
    ) -> ExplanationResult:
        """
        The explanation for one question, if the feedback mode allows it.

        ``view`` defaults to QUESTION while the attempt is open and RESULTS
        once it is submitted. Review and results views need a submitted attempt.
        """
        if not 0 <= position < attempt.question_count:
            return ExplanationResult(visible=False)

        if view is None:
            view = FeedbackView.RESULTS if attempt.is_finalized else FeedbackView.QUESTION
        try:
            view = FeedbackView(view)
        except ValueError:
            logger.warning(f"Unknown feedback view {view!r}")
            return ExplanationResult(visible=False)

        if view != FeedbackView.QUESTION and not attempt.is_finalized:
            return ExplanationResult(visible=False)

        answered = attempt.answers[position] is not None
        if not explanation_visible(attempt.config.feedback_mode, view, answered=answered):
            return ExplanationResult(visible=False)
        return ExplanationResult(visible=True, explanation=attempt.question_at(position).explanation)

    def toggle_flag(self, attempt: QuizAttempt, position: int) -> FlagResult:
        """Flag or unflag a question for review before submission."""
        try:
            flagged = attempt.toggle_flag(position)
        except AttemptStateError as e:
            logger.warning(f"Flag rejected: {e.message}")
            return FlagResult(
                position=position,
                accepted=False,
                flagged=position in attempt.flagged,
                issue=ValidationIssue.from_error(e.code, e),
            )
        return FlagResult(position=position, accepted=True, flagged=flagged)

    def flagged_review(self, attempt: QuizAttempt) -> list[int]:
        """Positions to revisit in a flagged-question review, in attempt order."""
        return attempt.flagged_positions()

    # ========================================================================
    # Helpers
    # ========================================================================

    def _rng_for(
        self,
        learner_id: str,
        quiz_id: str,
        attempt_number: int,
        attempt_id: str | None = None,
    ) -> random.Random:
        secret = self.settings.seed_secret
        if secret:
            key = f"{secret}:{learner_id}:{quiz_id}:{attempt_number}"
            return seeded_rng(f"{key}:{attempt_id}" if attempt_id else key)
        return seeded_rng()

    def _persist(self, attempt: QuizAttempt) -> bool:
        if self.sink is None:
            return False
        try:
            self.sink.save(attempt.to_dict())
        except Exception as e:
            logger.error(f"Failed to persist attempt {attempt.attempt_id}: {e}")
            return False
        return True
