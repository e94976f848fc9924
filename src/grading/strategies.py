"""
Grading Strategy Implementations.

One strategy per QuestionKind. Importing this module registers them all.
"""

from __future__ import annotations

from typing import Any

from src.quiz.models import (
    FALSE_WORDS,
    TRUE_FALSE_DEFAULT_OPTIONS,
    TRUE_WORDS,
    Question,
    QuestionKind,
)

from .base import GradingStrategy, StrategyRegistry


def _as_index(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


# =============================================================================
# Choice Strategies
# =============================================================================


@StrategyRegistry.register(QuestionKind.SINGLE_CHOICE)
class SingleChoiceStrategy(GradingStrategy):
    """Exact index match against the (remapped) correct option."""

    name = "single_choice"

    def _compare(self, question: Question, answer: Any):
        expected = _as_index(question.correct_answer)
        actual = _as_index(answer)
        is_correct = expected is not None and actual == expected
        return is_correct, expected, answer, {}


@StrategyRegistry.register(QuestionKind.MULTI_CHOICE)
class MultiChoiceStrategy(GradingStrategy):
    """
    Set equality: every correct option selected and nothing else.

    Duplicate selections collapse; order does not matter.
    """

    name = "multi_choice"

    def _compare(self, question: Question, answer: Any):
        expected = set(question.correct_indices)
        if _as_index(answer) is not None:
            selected = {answer}
        elif isinstance(answer, (list, tuple, set, frozenset)):
            if any(_as_index(a) is None for a in answer):
                # Non-index entries can never be correct
                return False, sorted(expected), answer, {"invalid_entries": True}
            selected = set(answer)
        else:
            return False, sorted(expected), answer, {}

        details = {
            "missing": sorted(expected - selected),
            "extra": sorted(selected - expected),
        }
        is_correct = bool(expected) and selected == expected
        return is_correct, sorted(expected), sorted(selected), details


@StrategyRegistry.register(QuestionKind.TRUE_FALSE)
class TrueFalseStrategy(GradingStrategy):
    """
    Boolean match.

    Answers and correct answers may be booleans, words ("true", "f", ...) or
    an index into the question's True/False options.
    """

    name = "true_false"

    def _resolve(self, question: Question, value: Any) -> bool | None:
        if isinstance(value, bool):
            return value
        if isinstance(value, int):
            labels = [o.text for o in question.options] or list(TRUE_FALSE_DEFAULT_OPTIONS)
            if not 0 <= value < len(labels):
                return None
            value = labels[value]
        if isinstance(value, str):
            word = value.strip().lower()
            if word in TRUE_WORDS:
                return True
            if word in FALSE_WORDS:
                return False
        return None

    def _expected(self, question: Question) -> Any:
        return self._resolve(question, question.correct_answer)

    def _compare(self, question: Question, answer: Any):
        expected = self._resolve(question, question.correct_answer)
        actual = self._resolve(question, answer)
        is_correct = expected is not None and actual is expected
        return is_correct, expected, actual, {}


# =============================================================================
# Text Strategies
# =============================================================================


@StrategyRegistry.register(QuestionKind.FILL_IN_BLANK)
class FillInBlankStrategy(GradingStrategy):
    """
    Match against the correct answer and any accepted alternatives.

    Whitespace is trimmed; comparison is case-insensitive unless the strategy
    was built with ``case_sensitive=True``.
    """

    name = "fill_in_blank"

    def _accepted(self, question: Question) -> list[str]:
        accepted = list(question.accepted_answers)
        if isinstance(question.correct_answer, str):
            accepted.insert(0, question.correct_answer)
        return accepted

    def _expected(self, question: Question) -> Any:
        return self._accepted(question)

    def _compare(self, question: Question, answer: Any):
        accepted = self._accepted(question)
        if not isinstance(answer, str):
            return False, accepted, answer, {}

        normalized = self._normalize(answer)
        is_correct = any(self._normalize(a) == normalized for a in accepted)
        return is_correct, accepted, normalized, {}


@StrategyRegistry.register(QuestionKind.SHORT_ANSWER)
class ShortAnswerStrategy(FillInBlankStrategy):
    """Accepted-answer match, unless the question needs an instructor."""

    name = "short_answer"

    def _compare(self, question: Question, answer: Any):
        if question.requires_manual_grading:
            return False, None, answer, {"manual_grading": True}
        return super()._compare(question, answer)

    def _generate_feedback(self, is_correct: bool, question: Question) -> str:
        if question.requires_manual_grading:
            return "This question requires manual grading by an instructor."
        return super()._generate_feedback(is_correct, question)


# =============================================================================
# Structured Strategies
# =============================================================================


@StrategyRegistry.register(QuestionKind.MATCHING)
class MatchingStrategy(GradingStrategy):
    """
    Answer maps each left pair id to the id of the pair whose right side was chosen.

    Correct only when every pair is matched and every match lands on the
    same right-hand text.
    """

    name = "matching"

    def _expected(self, question: Question) -> Any:
        return {p.id: p.id for p in question.matching_pairs}

    def _compare(self, question: Question, answer: Any):
        expected = self._expected(question)
        if not isinstance(answer, dict):
            return False, expected, answer, {}

        right_by_id = {p.id: p.right for p in question.matching_pairs}
        matches: dict[int, int] = {}
        for left, right in answer.items():
            try:
                matches[int(left)] = int(right)
            except (TypeError, ValueError):
                return False, expected, answer, {}

        wrong = [
            left
            for left, right in matches.items()
            if left not in right_by_id or right_by_id.get(right) != right_by_id[left]
        ]
        is_correct = not wrong and len(matches) == len(question.matching_pairs) > 0
        return is_correct, expected, matches, {"wrong": sorted(wrong)}


@StrategyRegistry.register(QuestionKind.ORDERING)
class OrderingStrategy(GradingStrategy):
    """Answer lists item ids; each must sit at its ``correct_position``."""

    name = "ordering"

    def _expected(self, question: Question) -> Any:
        ordered = sorted(question.ordering_items, key=lambda item: item.correct_position)
        return [item.id for item in ordered]

    def _compare(self, question: Question, answer: Any):
        expected = self._expected(question)
        if not isinstance(answer, (list, tuple)):
            return False, expected, answer, {}

        position_by_id = {item.id: item.correct_position for item in question.ordering_items}
        if any(_as_index(item_id) is None for item_id in answer):
            return False, expected, list(answer), {}

        misplaced = [
            index
            for index, item_id in enumerate(answer)
            if position_by_id.get(item_id) != index
        ]
        is_correct = (
            not misplaced
            and len(answer) == len(question.ordering_items) > 0
        )
        return is_correct, expected, list(answer), {"misplaced": misplaced}


@StrategyRegistry.register(QuestionKind.OTHER)
class ExactValueStrategy(GradingStrategy):
    """Plain equality for kinds without dedicated rules."""

    name = "exact_value"

    def _compare(self, question: Question, answer: Any):
        expected = question.correct_answer
        # True == 1 in Python; a boolean must not match an integer key
        is_correct = (
            expected is not None
            and type(answer) is type(expected)
            and answer == expected
        )
        return is_correct, expected, answer, {}
