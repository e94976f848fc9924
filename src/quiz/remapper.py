"""
Answer-option remapping.

Shuffles a choice question's options and rewrites ``correct_answer`` so it
still points at the same option content after the move.
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from .errors import TemplateIntegrityError
from .models import Question, QuestionKind
from .shuffler import RandomSource, shuffle


@dataclass(frozen=True)
class RemapResult:
    """The remapped question and ``option_order[display_index] = original_index``."""

    question: Question
    option_order: tuple[int, ...]


def check_correct_answer(question: Question) -> None:
    """
    Raise TemplateIntegrityError if a choice question cannot be graded.

    Only single/multi choice questions are checked here; other kinds are
    validated by ``src.quiz.validation``.
    """
    if not question.kind.is_choice:
        return

    if not question.options:
        raise TemplateIntegrityError(
            f"Question {question.id} has no options",
            path=f"questions.{question.id}.options",
        )

    answer = question.correct_answer
    if question.kind == QuestionKind.SINGLE_CHOICE:
        valid_shape = isinstance(answer, int) and not isinstance(answer, bool)
    else:
        valid_shape = isinstance(answer, list) and len(answer) > 0

    if not valid_shape:
        raise TemplateIntegrityError(
            f"Question {question.id} has no usable correct answer for kind {question.kind.value}",
            path=f"questions.{question.id}.correct_answer",
        )

    for index in question.correct_indices:
        if not 0 <= index < len(question.options):
            raise TemplateIntegrityError(
                f"Question {question.id} marks option {index} correct "
                f"but has only {len(question.options)} options",
                path=f"questions.{question.id}.correct_answer",
            )


def remap_options(question: Question, rng: RandomSource, enabled: bool = True) -> RemapResult:
    """
    Shuffle a question's options and remap its correct answer.

    Non-choice kinds, or ``enabled=False``, pass through with the identity order.
    """
    identity = tuple(range(len(question.options)))
    if not enabled or not question.kind.is_choice:
        return RemapResult(question=question, option_order=identity)

    check_correct_answer(question)

    result = shuffle(question.options, rng)
    inverse = result.inverse()

    if question.kind == QuestionKind.SINGLE_CHOICE:
        new_correct: int | list[int] = inverse[question.correct_answer]
    else:
        new_correct = sorted(inverse[old] for old in question.correct_indices)

    remapped = question.model_copy(
        update={"options": list(result.items), "correct_answer": new_correct},
        deep=True,
    )
    logger.debug(f"Remapped options of {question.id}: order={result.permutation}")
    return RemapResult(question=remapped, option_order=result.permutation)
