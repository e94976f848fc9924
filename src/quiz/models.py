"""
Quiz template models.

Templates arrive from the authoring/storage collaborator as plain dictionaries
(camelCase from the web client, snake_case from Python callers). These models
check their SHAPE only; semantic problems such as an out-of-range correct
answer or a negative weight are collected by ``src.quiz.validation`` so they
can be reported to the author instead of failing the load.

All models are frozen: an attempt copies what it needs and never writes back
into the template.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel


class QuestionKind(str, Enum):
    """Question variants understood by the grading strategies."""

    SINGLE_CHOICE = "single_choice"
    MULTI_CHOICE = "multi_choice"
    TRUE_FALSE = "true_false"
    FILL_IN_BLANK = "fill_in_blank"
    SHORT_ANSWER = "short_answer"
    MATCHING = "matching"
    ORDERING = "ordering"
    OTHER = "other"

    @property
    def is_choice(self) -> bool:
        """Kinds whose options may be shuffled and remapped."""
        return self in (QuestionKind.SINGLE_CHOICE, QuestionKind.MULTI_CHOICE)


# Names used by the web client's question bank
KIND_ALIASES = {
    "multiple_choice_single": QuestionKind.SINGLE_CHOICE,
    "multiple_choice_multiple": QuestionKind.MULTI_CHOICE,
    "multiple_choice": QuestionKind.SINGLE_CHOICE,
    "mcq": QuestionKind.SINGLE_CHOICE,
    "fill_blank": QuestionKind.FILL_IN_BLANK,
}


class FeedbackMode(str, Enum):
    """When a question's explanation may be shown to the student."""

    INSTANT = "instant"  # right after each answer
    DELAYED = "delayed"  # once the whole attempt is submitted
    FINAL = "final"  # only on the results view


# Spellings accepted for true/false answers and answer keys
TRUE_FALSE_DEFAULT_OPTIONS = ("True", "False")
TRUE_WORDS = {"true", "t", "yes", "y"}
FALSE_WORDS = {"false", "f", "no", "n"}


def _fold_correct_answers(data: dict[str, Any]) -> dict[str, Any]:
    """
    The question bank keeps multi-select answers in a separate
    ``correctAnswers`` column; fold it into ``correct_answer``.
    """
    data = dict(data)
    multi = data.pop("correctAnswers", None) or data.pop("correct_answers", None)
    if multi and data.get("correctAnswer") is None and data.get("correct_answer") is None:
        data["correct_answer"] = sorted(multi)
    return data


class _TemplateModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class Option(_TemplateModel):
    """One answer choice. Its identity is its index at authoring time."""

    text: str


class MatchingPair(_TemplateModel):
    """A left/right pair of a matching question."""

    id: int
    left: str
    right: str


class OrderingItem(_TemplateModel):
    """An item of an ordering question and the slot it belongs in."""

    id: int
    text: str
    correct_position: int


class Question(_TemplateModel):
    """A single exam item."""

    id: str = Field(..., description="Stable identifier, unique within a template")
    kind: QuestionKind = Field(QuestionKind.SINGLE_CHOICE, alias="questionType")
    text: str = ""
    options: list[Option] = Field(default_factory=list)
    correct_answer: bool | int | list[int] | str | None = Field(
        None,
        description="Index, index set, boolean or text depending on kind",
    )
    accepted_answers: list[str] = Field(default_factory=list)
    matching_pairs: list[MatchingPair] = Field(default_factory=list)
    ordering_items: list[OrderingItem] = Field(default_factory=list)
    requires_manual_grading: bool = False
    explanation: str | None = None
    weight: int | None = Field(None, description="Weight bound to this question")

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("kind", mode="before")
    @classmethod
    def _normalize_kind(cls, value: Any) -> Any:
        if isinstance(value, str):
            key = value.strip().lower().replace("-", "_")
            return KIND_ALIASES.get(key, key)
        return value

    @field_validator("options", mode="before")
    @classmethod
    def _wrap_plain_options(cls, value: Any) -> Any:
        # The quiz builder stores bare strings for simple choice lists
        if isinstance(value, list):
            return [{"text": item} if isinstance(item, str) else item for item in value]
        return value

    @field_validator("correct_answer", mode="before")
    @classmethod
    def _merge_correct_answers(cls, value: Any) -> Any:
        if isinstance(value, (set, tuple)):
            return sorted(value)
        return value

    @property
    def correct_indices(self) -> list[int]:
        """Correct option indices for choice kinds (empty otherwise)."""
        answer = self.correct_answer
        if isinstance(answer, bool) or answer is None or isinstance(answer, str):
            return []
        if isinstance(answer, int):
            return [answer]
        return list(answer)

    @classmethod
    def from_source(cls, data: dict[str, Any]) -> "Question":
        """Build a question from a question-bank record."""
        return cls.model_validate(_fold_correct_answers(data))


class QuizTemplate(_TemplateModel):
    """The reusable definition of a quiz."""

    id: str = "quiz"
    title: str = ""
    questions: list[Question] = Field(default_factory=list)
    randomize_questions: bool = False
    randomize_answers: bool = False
    question_weights: dict[int, int] = Field(
        default_factory=dict,
        description="Template position (0-based) -> weight; absent entries weigh 1",
    )
    passing_score: int = Field(70, description="Passing percentage threshold")
    feedback_mode: FeedbackMode = FeedbackMode.INSTANT
    time_limit_per_question: int | None = Field(None, description="Seconds, None for no limit")
    max_attempts: int | None = Field(None, description="None for unlimited")

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("questions", mode="before")
    @classmethod
    def _load_questions(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [_fold_correct_answers(q) if isinstance(q, dict) else q for q in value]
        return value

    @field_validator("question_weights", "passing_score", "feedback_mode", mode="before")
    @classmethod
    def _drop_nulls(cls, value: Any, info: ValidationInfo) -> Any:
        # Stored templates use null for "not configured"
        if value is None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return value
