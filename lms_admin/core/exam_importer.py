"""Utilities for importing exam questions from loosely structured JSON.

Question banks arrive from many places (other LMS exports, spreadsheets
converted by hand, AI tools), so the importer does not insist on a schema.
It looks for the first array of question-like objects and resolves each
field through an ordered list of candidate key fragments:

    {
      "title": "Math Exam",
      "shuffleQuestions": true,
      "questions": [
        {"text": "2+2?", "type": "multiple-choice",
         "options": ["3", "4", "5"], "correctAnswer": 1}
      ]
    }

is the canonical shape, but ``[{"question": ..., "choices": [...],
"answer": 2}]`` imports just as well.

Architecture note:
    Key matching is substring based and evaluated independently per field,
    so a key literally named ``answers`` can satisfy both the options search
    and the correct-answer search. That is an accepted limitation of the
    heuristic; the candidate lists below are the single place to tune it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
import math
import logging
from pathlib import Path
from typing import Any, Callable

from lms_admin.constants.exam_constants import (
    MIN_CHOICE_OPTIONS,
    PLACEHOLDER_OPTION_COUNT,
    TRUE_FALSE_OPTIONS,
)
from lms_admin.core.models import Question, QuestionType, new_question_id
from lms_admin.core.scientific_formatter import format_scientific_text

logger = logging.getLogger(__name__)

# Ordered candidate key fragments, matched case-insensitively against key names.
QUESTION_ARRAY_KEYS: tuple[str, ...] = ("questions", "data")
PROMPT_KEYS: tuple[str, ...] = ("text", "question", "prompt")
OPTION_KEYS: tuple[str, ...] = ("options", "choices", "answers")
CORRECT_ANSWER_KEYS: tuple[str, ...] = ("correct", "answer")
ANSWER_TEXT_KEYS: tuple[str, ...] = ("answertext",)

# Exam metadata: source key(s) -> (attribute name, converter).
_META_FIELDS: tuple[tuple[tuple[str, ...], str, str], ...] = (
    (("title",), "title", "str"),
    (("description",), "description", "str"),
    (("durationMinutes", "duration"), "duration_minutes", "int"),
    (("difficulty",), "difficulty", "str"),
    (("totalMarks",), "total_marks", "number"),
    (("maxAttempts",), "max_attempts", "int"),
    (("shuffleQuestions",), "shuffle_questions", "bool"),
    (("negativeMarking",), "negative_marking", "float"),
    (("targetClass",), "target_class", "str"),
    (("targetDivision",), "target_division", "str"),
)


class ExamImportError(Exception):
    """Raised when exam data cannot be imported."""


class ExamSyntaxError(ExamImportError):
    """The import text is not valid JSON."""


class ExamStructureError(ExamImportError):
    """The JSON parsed but does not contain recognisable questions."""


@dataclass(slots=True)
class ImportedExam:
    """Normalized import outcome.

    ``meta`` holds only the exam attributes present in the source, keyed by
    :class:`~lms_admin.core.models.Exam` attribute name, so callers can merge
    it over existing state. When ``error`` is set, ``questions`` and ``meta``
    are empty and nothing should be applied.
    """

    questions: list[Question] = field(default_factory=list)
    meta: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_exam_json(text: str) -> ImportedExam:
    """Parse raw JSON text and normalize it; errors are reported, not raised."""
    try:
        return _normalize(_load_json(text))
    except ExamImportError as exc:
        logger.info("Exam import rejected: %s", exc)
        return ImportedExam(error=str(exc))


def normalize_exam_data(value: Any) -> ImportedExam:
    """Normalize an already parsed JSON value; errors are reported, not raised."""
    try:
        return _normalize(value)
    except ExamImportError as exc:
        logger.info("Exam import rejected: %s", exc)
        return ImportedExam(error=str(exc))


def load_exam_from_file(file_path: Path) -> ImportedExam:
    """Read a ``.json`` question bank from disk and normalize it."""
    text = file_path.read_text(encoding="utf-8")
    return parse_exam_json(text)


def _load_json(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ExamSyntaxError(f"Invalid JSON syntax: {exc.msg} (line {exc.lineno}, column {exc.colno})") from exc


def _normalize(value: Any) -> ImportedExam:
    meta: dict[str, Any] = {}
    if isinstance(value, list):
        candidates: list[Any] | None = value
    elif isinstance(value, dict):
        root = value.get("exam") if isinstance(value.get("exam"), dict) else value
        meta = _extract_meta(root)
        candidates = _find_question_array(root)
        if candidates is None and root is not value:
            candidates = _find_question_array(value)
    else:
        candidates = None

    if candidates is None:
        raise ExamStructureError(
            "Structure Error: JSON must be an array or contain a 'questions' array."
        )

    questions = [_build_question(item) for item in candidates if isinstance(item, dict)]
    if not questions:
        raise ExamStructureError("Structure Error: no question objects were found in the JSON.")
    return ImportedExam(questions=questions, meta=meta)


def _find_question_array(root: dict[str, Any]) -> list[Any] | None:
    for key in QUESTION_ARRAY_KEYS:
        if isinstance(root.get(key), list):
            return root[key]
    for candidate in root.values():
        if isinstance(candidate, list) and candidate and isinstance(candidate[0], dict):
            return candidate
    return None


def _extract_meta(root: dict[str, Any]) -> dict[str, Any]:
    meta: dict[str, Any] = {}
    for source_keys, attribute, kind in _META_FIELDS:
        raw = next((root[key] for key in source_keys if root.get(key) is not None), None)
        if raw is None:
            continue
        converted = _convert_meta(raw, kind)
        if converted is not None:
            meta[attribute] = converted
    return meta


def _convert_meta(raw: Any, kind: str) -> Any:
    if kind == "str":
        return _to_text(raw)
    if kind == "bool":
        return bool(raw)
    number = _to_number(raw)
    if number is None:
        return None
    if kind == "int":
        try:
            return int(number)
        except (OverflowError, ValueError):
            return None
    if kind == "float":
        return float(number)
    return number


def _build_question(item: dict[str, Any]) -> Question:
    question_type = _resolve_type(item.get("type"))
    text_key = _find_key(item, PROMPT_KEYS)
    text = _to_text(item[text_key]) if text_key is not None and item[text_key] else ""

    options_key = _find_key(item, OPTION_KEYS, accept=lambda value: isinstance(value, list))
    options = [_to_text(option) for option in item[options_key]] if options_key is not None else []
    if question_type is QuestionType.MULTIPLE_CHOICE and len(options) < MIN_CHOICE_OPTIONS:
        options = [""] * PLACEHOLDER_OPTION_COUNT
    elif question_type is QuestionType.TRUE_FALSE:
        options = list(TRUE_FALSE_OPTIONS)
    elif question_type is QuestionType.SHORT_ANSWER:
        options = []

    correct_key = _find_key(item, CORRECT_ANSWER_KEYS)
    correct_value = item[correct_key] if correct_key is not None else None
    correct_answer = _resolve_correct_index(correct_value, len(options))

    answer_text = _resolve_answer_text(item, question_type, correct_value)

    return Question(
        id=new_question_id(),
        type=question_type,
        text=format_scientific_text(text),
        options=[format_scientific_text(option) for option in options],
        correct_answer=correct_answer,
        correct_answer_text=None if answer_text is None else format_scientific_text(answer_text),
    )


def _resolve_type(raw: Any) -> QuestionType:
    if not isinstance(raw, str):
        return QuestionType.MULTIPLE_CHOICE
    lowered = raw.lower()
    if "short" in lowered:
        return QuestionType.SHORT_ANSWER
    if "true" in lowered or lowered == "tf":
        return QuestionType.TRUE_FALSE
    return QuestionType.MULTIPLE_CHOICE


def _resolve_correct_index(value: Any, option_count: int) -> int:
    number = _to_number(value) if isinstance(value, (int, float)) else None
    if number is None or not float(number).is_integer():
        return 0
    index = int(number)
    if option_count and not 0 <= index < option_count:
        return 0
    return index


def _resolve_answer_text(item: dict[str, Any], question_type: QuestionType, correct_value: Any) -> str | None:
    text_key = _find_key(item, ANSWER_TEXT_KEYS, accept=lambda value: value is None or isinstance(value, str))
    if text_key is not None:
        return item[text_key]
    if question_type is not QuestionType.SHORT_ANSWER:
        return None
    if isinstance(correct_value, str):
        return correct_value
    return ""


def _find_key(
    item: dict[str, Any],
    fragments: tuple[str, ...],
    accept: Callable[[Any], bool] | None = None,
) -> str | None:
    for key, value in item.items():
        lowered = str(key).lower()
        if any(fragment in lowered for fragment in fragments):
            if accept is None or accept(value):
                return key
    return None


def _to_number(value: Any) -> float | int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return None
        if not math.isfinite(number):
            return None
        return int(number) if number.is_integer() else number
    return None


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
