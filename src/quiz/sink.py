"""
Persistence sinks for finalized attempts.
"""

from __future__ import annotations

from typing import Any, Protocol


class AttemptSink(Protocol):
    """Anything that can store a finalized attempt record."""

    def save(self, record: dict[str, Any]) -> None: ...


class MemoryAttemptSink:
    """Keeps attempt records in a list."""

    def __init__(self):
        self.records: list[dict[str, Any]] = []

    def save(self, record: dict[str, Any]) -> None:
        self.records.append(record)

    def for_learner(self, learner_id: str, quiz_id: str | None = None) -> list[dict[str, Any]]:
        return [
            r
            for r in self.records
            if r["learner_id"] == learner_id and (quiz_id is None or r["quiz_id"] == quiz_id)
        ]

    def attempts_used(self, learner_id: str, quiz_id: str) -> int:
        return len(self.for_learner(learner_id, quiz_id))
