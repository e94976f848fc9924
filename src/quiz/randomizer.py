"""
Question-order randomization and weight binding.

Both run once, when an attempt is created. Weights are attached to the
questions BEFORE the order is shuffled so that a weight keeps following the
question it was authored for.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from loguru import logger

from .models import Question
from .shuffler import RandomSource, shuffle


def bind_weights(
    questions: Sequence[Question],
    question_weights: Mapping[int, int] | None,
) -> list[Question]:
    """
    Copy positional weights onto the questions they belong to.

    A question that already carries its own positive weight keeps it.
    Missing or non-positive entries leave the question unweighted, which
    scores as weight 1.
    """
    weights = question_weights or {}
    bound = []
    for position, question in enumerate(questions):
        weight = weights.get(position)
        if question.weight is not None and question.weight > 0:
            bound.append(question)
        elif weight is not None and weight > 0:
            bound.append(question.model_copy(update={"weight": weight}))
        else:
            bound.append(question)
    return bound


def randomize_question_order(
    questions: Sequence[Question],
    rng: RandomSource,
    enabled: bool = True,
) -> tuple[Question, ...]:
    """Shuffle the question sequence once; identity when disabled."""
    if not enabled:
        return tuple(questions)

    result = shuffle(questions, rng)
    logger.debug(f"Question order: {result.permutation}")
    return result.items
