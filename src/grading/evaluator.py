"""
Pass/fail verdict and feedback visibility.
"""

from __future__ import annotations

from enum import Enum

from src.quiz.models import FeedbackMode

MIN_PASSING_SCORE = 0
MAX_PASSING_SCORE = 100


class FeedbackView(str, Enum):
    """Where the explanation is being requested from."""

    QUESTION = "question"  # while the attempt is in progress
    REVIEW = "review"  # answer review after submission
    RESULTS = "results"  # the results screen


# feedback mode -> views in which the explanation is shown
FEEDBACK_VISIBILITY: dict[FeedbackMode, frozenset[FeedbackView]] = {
    FeedbackMode.INSTANT: frozenset({FeedbackView.QUESTION, FeedbackView.REVIEW, FeedbackView.RESULTS}),
    FeedbackMode.DELAYED: frozenset({FeedbackView.REVIEW, FeedbackView.RESULTS}),
    FeedbackMode.FINAL: frozenset({FeedbackView.RESULTS}),
}


def evaluate(percentage: float, passing_score: float) -> bool:
    """Pass when the score reaches the threshold; equal counts as passing."""
    return percentage >= passing_score


def is_valid_passing_score(passing_score: object) -> bool:
    return (
        isinstance(passing_score, (int, float))
        and not isinstance(passing_score, bool)
        and MIN_PASSING_SCORE <= passing_score <= MAX_PASSING_SCORE
    )


def explanation_visible(
    feedback_mode: FeedbackMode | str,
    view: FeedbackView | str,
    answered: bool = True,
) -> bool:
    """
    Whether a question's explanation may be shown.

    In the QUESTION view, instant feedback still waits for that question to
    be answered.
    """
    mode = FeedbackMode(feedback_mode)
    view = FeedbackView(view)
    if view == FeedbackView.QUESTION and not answered:
        return False
    return view in FEEDBACK_VISIBILITY[mode]
