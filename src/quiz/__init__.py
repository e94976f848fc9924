"""
Quiz module: templates, attempts and the engine that runs them.

Question kinds:
- single_choice: one correct option index
- multi_choice: a set of correct option indices
- true_false: boolean (or an index into True/False options)
- fill_in_blank / short_answer: text compared against accepted answers
- matching: pair left items with right items
- ordering: put items in their correct positions

Feedback modes:
- instant: explanation after each answer
- delayed: explanations on review, after submission
- final: explanations on the results screen only

The engine itself lives in ``src.quiz.engine``; it is not imported here so
that ``src.grading`` can depend on the models without a cycle.
"""

from .errors import (
    AttemptStateError,
    QuizConfigurationError,
    QuizEngineError,
    TemplateIntegrityError,
)
from .models import (
    FeedbackMode,
    MatchingPair,
    Option,
    OrderingItem,
    Question,
    QuestionKind,
    QuizTemplate,
)

__all__ = [
    # Template models
    "QuizTemplate",
    "Question",
    "QuestionKind",
    "Option",
    "MatchingPair",
    "OrderingItem",
    "FeedbackMode",
    # Errors
    "QuizEngineError",
    "TemplateIntegrityError",
    "QuizConfigurationError",
    "AttemptStateError",
]
