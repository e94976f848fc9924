"""
Unit tests for question-order randomization and weight binding.

Run: pytest tests/unit/test_randomizer.py -v
"""

import random

from src.quiz.models import Question
from src.quiz.randomizer import bind_weights, randomize_question_order


def _questions(n, **extra):
    return [Question(id=f"q{i}", options=["A", "B"], correct_answer=0, **extra) for i in range(n)]


class TestBindWeights:
    """Test bind_weights()."""

    def test_positional_weights_attach_to_questions(self):
        bound = bind_weights(_questions(3), {0: 2, 2: 5})
        assert [q.weight for q in bound] == [2, None, 5]

    def test_question_weight_wins(self):
        questions = [Question(id="a", weight=4), Question(id="b")]
        bound = bind_weights(questions, {0: 9, 1: 3})
        assert [q.weight for q in bound] == [4, 3]

    def test_non_positive_entries_ignored(self):
        bound = bind_weights(_questions(2), {0: 0, 1: -2})
        assert [q.weight for q in bound] == [None, None]

    def test_no_map(self):
        questions = _questions(2)
        assert bind_weights(questions, None) == questions

    def test_weights_follow_questions_through_shuffle(self):
        bound = bind_weights(_questions(5), {0: 10})
        shuffled = randomize_question_order(bound, random.Random(3))
        heavy = [q for q in shuffled if q.weight == 10]
        assert [q.id for q in heavy] == ["q0"]


class TestRandomizeQuestionOrder:
    """Test randomize_question_order()."""

    def test_same_questions_new_order(self, rng):
        questions = _questions(10)
        ordered = randomize_question_order(questions, rng)
        assert sorted(q.id for q in ordered) == sorted(q.id for q in questions)

    def test_disabled_keeps_order(self, rng):
        questions = _questions(4)
        assert randomize_question_order(questions, rng, enabled=False) == tuple(questions)

    def test_template_list_untouched(self, rng):
        questions = _questions(6)
        ids = [q.id for q in questions]
        randomize_question_order(questions, rng)
        assert [q.id for q in questions] == ids
