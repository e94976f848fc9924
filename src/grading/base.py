"""
Base Grading Strategy.

Provides the abstract base for per-kind answer checking and a registry
that picks the strategy for a question.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar

from loguru import logger

from src.quiz.models import Question, QuestionKind


# =============================================================================
# Grading Result
# =============================================================================


@dataclass
class GradingResult:
    """
    Result of checking one answer against one question.

    ``answered`` is False for a missing answer; such a result is never correct.
    """

    is_correct: bool
    feedback_message: str
    answered: bool = True

    kind: QuestionKind = QuestionKind.OTHER
    expected: Any = None
    actual: Any = None
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def passed(self) -> bool:
        """Alias for is_correct."""
        return self.is_correct

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "is_correct": self.is_correct,
            "feedback_message": self.feedback_message,
            "answered": self.answered,
            "kind": self.kind.value,
            "expected": self.expected,
            "actual": self.actual,
            "details": self.details,
        }


# =============================================================================
# Strategy Registry
# =============================================================================


class StrategyRegistry:
    """
    Registry for grading strategies.

    Example:
        @StrategyRegistry.register(QuestionKind.SINGLE_CHOICE)
        class SingleChoiceStrategy(GradingStrategy):
            ...

        strategy = StrategyRegistry.for_question(question)
        result = strategy.grade(question, answer)
    """

    _strategies: ClassVar[dict[QuestionKind, type[GradingStrategy]]] = {}

    @classmethod
    def register(cls, kind: QuestionKind):
        """Decorator to register a grading strategy for a question kind."""

        def decorator(strategy_class: type[GradingStrategy]):
            cls._strategies[kind] = strategy_class
            strategy_class.kind = kind
            logger.debug(f"Registered strategy: {kind.value} -> {strategy_class.__name__}")
            return strategy_class

        return decorator

    @classmethod
    def get(cls, kind: QuestionKind) -> type[GradingStrategy]:
        """Get strategy class by question kind."""
        if kind not in cls._strategies:
            raise KeyError(f"No strategy registered for kind: {kind.value}")
        return cls._strategies[kind]

    @classmethod
    def for_question(cls, question: Question, case_sensitive: bool = False) -> GradingStrategy:
        """Create the strategy instance for a question."""
        return cls.get(question.kind)(case_sensitive=case_sensitive)

    @classmethod
    def list_strategies(cls) -> dict[str, type[GradingStrategy]]:
        """List all registered strategies."""
        return {kind.value: cls._strategies[kind] for kind in cls._strategies}


# =============================================================================
# Base Grading Strategy
# =============================================================================


class GradingStrategy(ABC):
    """
    Abstract base class for grading strategies.

    ``grade`` handles the unanswered case; subclasses implement ``_compare``
    for a present answer. Grading never raises on a malformed answer; it is
    simply incorrect.
    """

    kind: ClassVar[QuestionKind] = QuestionKind.OTHER
    name: ClassVar[str] = "base_strategy"

    def __init__(self, case_sensitive: bool = False):
        self.case_sensitive = case_sensitive

    def grade(self, question: Question, answer: Any) -> GradingResult:
        """Grade one answer to one question."""
        is_valid, error = self._validate_response(answer)
        if not is_valid:
            return GradingResult(
                is_correct=False,
                feedback_message=error or "Invalid response",
                answered=False,
                kind=question.kind,
                expected=self._expected(question),
            )

        is_correct, expected, actual, details = self._compare(question, answer)
        return GradingResult(
            is_correct=is_correct,
            feedback_message=self._generate_feedback(is_correct, question),
            kind=question.kind,
            expected=expected,
            actual=actual,
            details=details,
        )

    @abstractmethod
    def _compare(self, question: Question, answer: Any) -> tuple[bool, Any, Any, dict[str, Any]]:
        """Return (is_correct, expected, actual, details) for a present answer."""
        ...

    def _expected(self, question: Question) -> Any:
        return question.correct_answer

    def _validate_response(self, response: Any) -> tuple[bool, str | None]:
        if response is None:
            return False, "Unanswered"
        return True, None

    def _normalize(self, text: Any) -> str:
        """Normalize text for comparison."""
        text = text if isinstance(text, str) else str(text)
        text = text.strip()
        return text if self.case_sensitive else text.lower()

    def _generate_feedback(self, is_correct: bool, question: Question) -> str:
        if is_correct:
            return "Correct!"
        return "Incorrect."
