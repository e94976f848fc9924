"""
Grading.

Strategy Pattern implementation for per-kind answer checking, plus the
weighted scoring engine and the pass/fail evaluator built on top of it.
"""

from .base import GradingResult, GradingStrategy, StrategyRegistry
from .evaluator import FeedbackView, evaluate, explanation_visible
from .scoring import QuestionOutcome, ScoreResult, compute_score, grade_answer
from .strategies import (
    ExactValueStrategy,
    FillInBlankStrategy,
    MatchingStrategy,
    MultiChoiceStrategy,
    OrderingStrategy,
    ShortAnswerStrategy,
    SingleChoiceStrategy,
    TrueFalseStrategy,
)

__all__ = [
    # Base classes
    "GradingResult",
    "GradingStrategy",
    "StrategyRegistry",
    # Strategies
    "SingleChoiceStrategy",
    "MultiChoiceStrategy",
    "TrueFalseStrategy",
    "FillInBlankStrategy",
    "ShortAnswerStrategy",
    "MatchingStrategy",
    "OrderingStrategy",
    "ExactValueStrategy",
    # Scoring
    "QuestionOutcome",
    "ScoreResult",
    "compute_score",
    "grade_answer",
    # Verdict
    "FeedbackView",
    "evaluate",
    "explanation_visible",
]
