"""Answer grading per question type."""

import json
from typing import Any

from assessment_engine.core.errors import ValidationError
from assessment_engine.models.content import QuestionType


def parse_answer(answer: Any) -> list[str]:
    """
    Normalise a raw answer to a list of option ids.

    Accepts a single id (``"a"``), a JSON array string (``'["a", "c"]'``) or
    a list/tuple of ids. ``None`` means unanswered and yields ``[]``.
    """
    if answer is None:
        return []
    if isinstance(answer, (list, tuple)):
        return [str(item) for item in answer]
    if isinstance(answer, str):
        text = answer.strip()
        if text.startswith("["):
            try:
                parsed = json.loads(text)
            except json.JSONDecodeError as exc:
                raise ValidationError("Answer is not a valid JSON array", {"answer": answer}) from exc
            if not isinstance(parsed, list):
                raise ValidationError("Answer JSON must be an array", {"answer": answer})
            return [str(item) for item in parsed]
        return [text] if text else []
    if isinstance(answer, (int, float)) and not isinstance(answer, bool):
        return [str(answer)]
    raise ValidationError(f"Unsupported answer type: {type(answer).__name__}")


def grade(question_type: QuestionType, options: list[dict[str, Any]], answer: Any) -> bool:
    """
    Grade an answer against a question's options.

    Args:
        question_type: Question format
        options: ``[{id, text, is_correct}]`` in declared order
        answer: Raw answer as accepted by parse_answer

    Returns:
        True if the answer is correct
    """
    selected = parse_answer(answer)
    if not selected:
        return False

    correct_ids = [str(o["id"]) for o in options if o.get("is_correct")]
    question_type = QuestionType(question_type)

    if question_type in (QuestionType.MULTIPLE_CHOICE, QuestionType.TRUE_FALSE, QuestionType.HOTSPOT):
        return len(selected) == 1 and selected[0] in correct_ids

    if question_type == QuestionType.MULTI_SELECT:
        return len(selected) == len(set(selected)) and set(selected) == set(correct_ids)

    # drag_drop: exact ordering of the correct options
    return selected == correct_ids
