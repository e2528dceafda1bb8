"""Utilities for exporting exams to the JSON shape accepted by the importer."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from lms_admin.core.models import Exam, Question


def exam_to_export_dict(exam: Exam) -> dict[str, Any]:
    """Project an exam onto its portable form.

    Question ids are left out on purpose: they are regenerated on import.
    """
    return {
        "title": exam.title,
        "description": exam.description,
        "difficulty": exam.difficulty,
        "durationMinutes": exam.duration_minutes,
        "totalMarks": exam.total_marks,
        "maxAttempts": exam.max_attempts,
        "shuffleQuestions": exam.shuffle_questions,
        "negativeMarking": exam.negative_marking,
        "targetClass": exam.target_class,
        "targetDivision": exam.target_division,
        "questions": [_serialize_question(question) for question in exam.questions],
    }


def serialize_exam_json(exam: Exam) -> str:
    return json.dumps(exam_to_export_dict(exam), indent=2, ensure_ascii=False)


def save_exam_to_file(file_path: Path, exam: Exam) -> None:
    """Persist the exam to disk in the JSON import format."""

    if not exam.questions:
        raise ValueError("Cannot export an exam without questions.")

    file_path = file_path.resolve()
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(serialize_exam_json(exam) + "\n", encoding="utf-8")


def _serialize_question(question: Question) -> dict[str, Any]:
    return {
        "text": question.text,
        "type": question.type.value,
        "options": list(question.options),
        "correctAnswer": question.correct_answer,
        "correctAnswerText": question.correct_answer_text,
    }
