"""
Answer parsing for the presentation boundary.

The UI stores every answer as a string; this turns it back into the shape
the grading strategies expect. Unparseable input is returned unchanged and
will simply grade as incorrect.
"""

from __future__ import annotations

import json
from typing import Any

from .models import QuestionKind


def parse_answer(raw: Any, kind: QuestionKind | str) -> Any:
    """
    Convert a raw answer string into a typed answer.

    Returns:
        int for single choice and true/false, list[int] for multi choice and
        ordering, dict for matching, str for text kinds. Non-string input is
        returned as-is; unparseable strings and unknown kinds come back
        unchanged.
    """
    if not isinstance(raw, str):
        return raw

    try:
        kind = QuestionKind(kind)
    except ValueError:
        return raw
    text = raw.strip()

    if kind in (QuestionKind.SINGLE_CHOICE, QuestionKind.TRUE_FALSE):
        try:
            return int(text)
        except ValueError:
            return raw

    if kind in (QuestionKind.FILL_IN_BLANK, QuestionKind.SHORT_ANSWER):
        return raw

    if kind == QuestionKind.MULTI_CHOICE:
        try:
            value = json.loads(text)
        except json.JSONDecodeError:
            # "1 3" or "1,3"
            parts = text.replace(",", " ").split()
            if parts and all(p.lstrip("-").isdigit() for p in parts):
                return [int(p) for p in parts]
            return raw
        return [value] if isinstance(value, int) else value

    if kind in (QuestionKind.MATCHING, QuestionKind.ORDERING):
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return {} if kind == QuestionKind.MATCHING else []

    return raw
