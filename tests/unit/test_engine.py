"""
Unit tests for the QuizEngine attempt lifecycle.

Tests:
- Template loading and refusal of broken templates
- Frozen per-attempt arrangement
- Answer recording with time limits and instant feedback
- Submission, verdict and persistence
- Explanation gating by feedback mode
- Attempt limits and weight binding modes

Run: pytest tests/unit/test_engine.py -v
"""

import random

import pytest

from config import Settings
from src.quiz.engine import QuizEngine
from src.quiz.models import QuizTemplate
from src.quiz.sink import MemoryAttemptSink


class FailingSink:
    def save(self, record):
        raise OSError("disk full")


@pytest.fixture
def sink():
    return MemoryAttemptSink()


@pytest.fixture
def engine(settings, sink):
    return QuizEngine(settings=settings, sink=sink)


def _correct_answers(attempt):
    """Answer every question of the attempt correctly."""
    answers = []
    for question in attempt.ordered_questions:
        answers.append(question.correct_answer)
    return answers


def _choice_template(n=4, **settings):
    return {
        "id": "choice",
        "questions": [
            {"id": f"q{i}", "options": [f"{i}-A", f"{i}-B", f"{i}-C"], "correctAnswer": i % 3}
            for i in range(n)
        ],
        **settings,
    }


# ========================================
# Templates
# ========================================


class TestLoadTemplate:
    """Test load_template()."""

    def test_valid_mapping(self, engine, sample_template):
        template, report = engine.load_template(sample_template)
        assert isinstance(template, QuizTemplate)
        assert report.ok

    def test_shape_errors_become_issues(self, engine):
        template, report = engine.load_template({"questions": [{"text": "no id"}]})
        assert template is None
        assert report.codes() == ["invalid_template"]
        assert not report.can_start_attempt

    def test_model_passthrough(self, engine, sample_template):
        model = QuizTemplate.model_validate(sample_template)
        template, _ = engine.load_template(model)
        assert template is model


# ========================================
# Starting attempts
# ========================================


class TestStartAttempt:
    """Test start_attempt()."""

    def test_integrity_issue_blocks_attempt(self, engine):
        started = engine.start_attempt({"questions": [{"id": "q", "options": ["A"], "correctAnswer": 3}]})
        assert not started.ok
        assert started.report.codes() == ["invalid_correct_answer"]

    def test_configuration_issue_does_not_block(self, engine):
        started = engine.start_attempt(_choice_template(passingScore=120))
        assert started.ok
        assert started.report.codes() == ["passing_score_out_of_range"]

    def test_arrangement_is_frozen(self, engine):
        template = _choice_template(6, randomizeQuestions=True, randomizeAnswers=True)
        attempt = engine.start_attempt(template, rng=random.Random(5)).attempt

        first = [q.model_dump() for q in attempt.ordered_questions]
        engine.record_answer(attempt, 0, 1)
        engine.submit(attempt)
        assert [q.model_dump() for q in attempt.ordered_questions] == first

    def test_randomized_answers_keep_correct_content(self, engine):
        template = QuizTemplate.model_validate(_choice_template(5, randomizeQuestions=True, randomizeAnswers=True))
        by_id = {q.id: q for q in template.questions}

        for seed in range(10):
            attempt = engine.start_attempt(template, rng=random.Random(seed)).attempt
            for question, order in zip(attempt.ordered_questions, attempt.option_orders):
                source = by_id[question.id]
                assert question.options[question.correct_answer] == source.options[source.correct_answer]
                assert [question.options[i] for i in range(len(order))] == [source.options[o] for o in order]

    def test_no_randomization_keeps_template_order(self, engine):
        attempt = engine.start_attempt(_choice_template(4)).attempt
        assert [q.id for q in attempt.ordered_questions] == ["q0", "q1", "q2", "q3"]
        assert attempt.option_orders == ((0, 1, 2),) * 4

    def _order(self, started):
        return tuple(q.id for q in started.attempt.ordered_questions)

    def test_seed_secret_reproducible_for_explicit_number(self, sink):
        engine = QuizEngine(settings=Settings(_env_file=None, seed_secret="k"), sink=sink)
        template = _choice_template(8, randomizeQuestions=True)
        first = engine.start_attempt(template, learner_id="ana", attempt_number=2)
        second = engine.start_attempt(template, learner_id="ana", attempt_number=2)
        assert self._order(first) == self._order(second)

    def test_seed_secret_distinct_numbers_reshuffle(self, sink):
        engine = QuizEngine(settings=Settings(_env_file=None, seed_secret="k"), sink=sink)
        template = _choice_template(8, randomizeQuestions=True)
        orders = {
            self._order(engine.start_attempt(template, learner_id="ana", attempt_number=n))
            for n in range(1, 6)
        }
        assert len(orders) > 1

    def test_seed_secret_new_attempts_without_number_reshuffle(self, sink):
        engine = QuizEngine(settings=Settings(_env_file=None, seed_secret="k"), sink=sink)
        template = _choice_template(8, randomizeQuestions=True)
        orders = {self._order(engine.start_attempt(template, learner_id="ana")) for _ in range(5)}
        assert len(orders) > 1

    def test_attempt_does_not_share_template_lists(self, engine):
        template = QuizTemplate.model_validate(_choice_template(2))
        first = engine.start_attempt(template).attempt
        second = engine.start_attempt(template).attempt

        first.ordered_questions[0].options.append(first.ordered_questions[0].options[0])
        assert len(template.questions[0].options) == 3
        assert len(second.ordered_questions[0].options) == 3
        assert first.ordered_questions[0].options is not template.questions[0].options

    def test_attempt_number_defaults_from_attempts_used(self, engine):
        attempt = engine.start_attempt(_choice_template(), attempts_used=2).attempt
        assert attempt.attempt_number == 3

    def test_max_attempts(self, engine):
        template = _choice_template(maxAttempts=2)
        assert engine.start_attempt(template, attempts_used=1).ok

        refused = engine.start_attempt(template, attempts_used=2)
        assert not refused.ok
        assert refused.report.codes() == ["max_attempts_reached"]


# ========================================
# Answers and submission
# ========================================


class TestRecordAnswer:
    """Test record_answer()."""

    def test_instant_feedback(self, engine, sample_template):
        attempt = engine.start_attempt(sample_template).attempt
        feedback = engine.record_answer(attempt, 0, 2)
        assert feedback.accepted
        assert feedback.is_correct is True
        assert feedback.explanation == "Routers forward packets at Layer 3."

    @pytest.mark.parametrize("mode", ["delayed", "final"])
    def test_no_feedback_outside_instant(self, engine, sample_template, mode):
        attempt = engine.start_attempt({**sample_template, "feedbackMode": mode}).attempt
        feedback = engine.record_answer(attempt, 0, 2)
        assert feedback.accepted
        assert feedback.is_correct is None
        assert feedback.explanation is None

    def test_bad_position_is_reported(self, engine, sample_template):
        attempt = engine.start_attempt(sample_template).attempt
        feedback = engine.record_answer(attempt, 9, 0)
        assert not feedback.accepted
        assert feedback.issue.code == "attempt_state"

    def test_time_limit(self, engine):
        attempt = engine.start_attempt(_choice_template(2, timeLimitPerQuestion=30)).attempt
        late = engine.record_answer(attempt, 0, 0, elapsed_seconds=31)
        on_time = engine.record_answer(attempt, 1, 1, elapsed_seconds=30)
        assert late.timed_out
        assert not on_time.timed_out

        result = engine.submit(attempt)
        assert result.score.earned_weight == 1
        assert attempt.answers[0].value == 0

    def test_time_limit_not_enforced(self, sink):
        engine = QuizEngine(settings=Settings(_env_file=None, enforce_time_limits=False), sink=sink)
        attempt = engine.start_attempt(_choice_template(1, timeLimitPerQuestion=5)).attempt
        assert not engine.record_answer(attempt, 0, 0, elapsed_seconds=60).timed_out


class TestSubmit:
    """Test submit()."""

    def test_all_correct_passes(self, engine, sink):
        template = _choice_template(5, randomizeQuestions=True, randomizeAnswers=True)
        attempt = engine.start_attempt(template, learner_id="ana", rng=random.Random(9)).attempt
        for position, answer in enumerate(_correct_answers(attempt)):
            engine.record_answer(attempt, position, answer)

        result = engine.submit(attempt)
        assert result.ok
        assert result.score.percentage == 100.0
        assert result.is_passing
        assert result.persisted
        assert sink.attempts_used("ana", "choice") == 1
        assert sink.records[0]["is_passing"] is True

    def test_threshold_is_inclusive(self, engine):
        template = _choice_template(10, passingScore=70)
        attempt = engine.start_attempt(template).attempt
        for position, answer in enumerate(_correct_answers(attempt)[:7]):
            engine.record_answer(attempt, position, answer)
        assert engine.submit(attempt).is_passing

    def test_unanswered_attempt_fails(self, engine):
        result = engine.submit(engine.start_attempt(_choice_template(3)).attempt)
        assert result.score.percentage == 0.0
        assert result.is_passing is False

    def test_second_submit_rejected(self, engine, sink):
        attempt = engine.start_attempt(_choice_template(2)).attempt
        first = engine.submit(attempt)
        second = engine.submit(attempt)
        assert first.ok
        assert not second.ok
        assert second.issue.code == "attempt_state"
        assert second.score is first.score
        assert len(sink.records) == 1

    def test_answers_rejected_after_submit(self, engine):
        attempt = engine.start_attempt(_choice_template(2)).attempt
        engine.submit(attempt)
        assert not engine.record_answer(attempt, 0, 0).accepted

    def test_sink_failure_does_not_raise(self, settings):
        engine = QuizEngine(settings=settings, sink=FailingSink())
        result = engine.submit(engine.start_attempt(_choice_template(1)).attempt)
        assert result.ok
        assert not result.persisted

    def test_no_sink(self, settings):
        engine = QuizEngine(settings=settings)
        assert not engine.submit(engine.start_attempt(_choice_template(1)).attempt).persisted


class TestWeightBinding:
    """Weights follow questions by default; positions in legacy mode."""

    @pytest.fixture
    def template(self):
        return _choice_template(4, randomizeQuestions=True, questionWeights={"0": 5})

    def _answer_only(self, engine, attempt, question_id):
        for position, question in enumerate(attempt.ordered_questions):
            if question.id == question_id:
                engine.record_answer(attempt, position, question.correct_answer)

    def test_weight_follows_question(self, engine, template):
        for seed in range(6):
            attempt = engine.start_attempt(template, rng=random.Random(seed)).attempt
            self._answer_only(engine, attempt, "q0")
            score = engine.submit(attempt).score
            assert (score.earned_weight, score.total_weight) == (5, 8)

    def test_position_binding(self, sink):
        engine = QuizEngine(settings=Settings(_env_file=None, weight_binding="position"), sink=sink)
        template = _choice_template(4, questionWeights={"0": 5})
        attempt = engine.start_attempt(template).attempt
        assert attempt.config.weight_binding == "position"
        assert attempt.ordered_questions[0].weight is None

        engine.record_answer(attempt, 0, attempt.ordered_questions[0].correct_answer)
        score = engine.submit(attempt).score
        assert (score.earned_weight, score.total_weight) == (5, 8)


# ========================================
# Explanations
# ========================================


class TestExplanationFor:
    """Test explanation_for()."""

    def _attempt(self, engine, sample_template, mode):
        return engine.start_attempt({**sample_template, "feedbackMode": mode}).attempt

    def test_instant_after_answer(self, engine, sample_template):
        attempt = self._attempt(engine, sample_template, "instant")
        assert not engine.explanation_for(attempt, 0).visible
        engine.record_answer(attempt, 0, 1)
        assert engine.explanation_for(attempt, 0).explanation == "Routers forward packets at Layer 3."

    def test_delayed_after_submit(self, engine, sample_template):
        attempt = self._attempt(engine, sample_template, "delayed")
        engine.record_answer(attempt, 0, 1)
        assert not engine.explanation_for(attempt, 0).visible
        assert not engine.explanation_for(attempt, 0, view="review").visible

        engine.submit(attempt)
        assert engine.explanation_for(attempt, 0, view="review").visible
        assert engine.explanation_for(attempt, 0).visible

    def test_final_only_on_results(self, engine, sample_template):
        attempt = self._attempt(engine, sample_template, "final")
        engine.submit(attempt)
        assert not engine.explanation_for(attempt, 1, view="review").visible
        assert engine.explanation_for(attempt, 1, view="results").explanation == "8.8.8.0/24 is public."

    def test_position_out_of_range(self, engine, sample_template):
        attempt = self._attempt(engine, sample_template, "instant")
        assert not engine.explanation_for(attempt, 10).visible

    def test_unknown_view_is_hidden(self, engine, sample_template):
        attempt = self._attempt(engine, sample_template, "instant")
        engine.record_answer(attempt, 0, 2)
        result = engine.explanation_for(attempt, 0, view="summary")
        assert not result.visible
        assert result.explanation is None


class TestEmptyQuiz:
    """A template without questions."""

    def test_zero_questions_scores_zero_and_fails(self, engine):
        started = engine.start_attempt({"id": "empty", "questions": []})
        assert started.ok
        result = engine.submit(started.attempt)
        assert result.score.percentage == 0.0
        assert result.score.total_weight == 0
        assert result.is_passing is False


# ========================================
# Flagging
# ========================================


class TestFlagging:
    """Test toggle_flag() and flagged_review()."""

    def test_toggle_on_and_off(self, engine, sample_template):
        attempt = engine.start_attempt(sample_template).attempt
        assert engine.toggle_flag(attempt, 2).flagged is True
        assert engine.toggle_flag(attempt, 0).flagged is True
        assert engine.flagged_review(attempt) == [0, 2]

        result = engine.toggle_flag(attempt, 2)
        assert result.accepted
        assert result.flagged is False
        assert engine.flagged_review(attempt) == [0]

    def test_bad_position(self, engine, sample_template):
        attempt = engine.start_attempt(sample_template).attempt
        result = engine.toggle_flag(attempt, 7)
        assert not result.accepted
        assert result.issue.code == "attempt_state"

    def test_frozen_after_submit(self, engine, sink, sample_template):
        attempt = engine.start_attempt(sample_template).attempt
        engine.toggle_flag(attempt, 1)
        engine.submit(attempt)

        result = engine.toggle_flag(attempt, 1)
        assert not result.accepted
        assert result.flagged is True
        assert engine.flagged_review(attempt) == [1]
        assert sink.records[0]["flagged"] == [1]

    def test_flags_do_not_affect_score(self, engine, sample_template):
        attempt = engine.start_attempt(sample_template).attempt
        engine.record_answer(attempt, 0, 2)
        engine.toggle_flag(attempt, 0)
        assert engine.submit(attempt).score.earned_weight == 1
