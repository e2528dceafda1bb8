"""Authoring operations on an exam draft."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from enum import Enum
import logging

from lms_admin.constants.exam_constants import (
    CLONE_SUFFIX,
    DIFFICULTY_LEVELS,
    MIN_CHOICE_OPTIONS,
    PLACEHOLDER_OPTION_COUNT,
    TRUE_FALSE_OPTIONS,
)
from lms_admin.core.exam_importer import ImportedExam
from lms_admin.core.models import Exam, Question, QuestionType, new_question_id
from lms_admin.core.scientific_formatter import format_scientific_text
from lms_admin.utils.timestamps import utc_now

logger = logging.getLogger(__name__)


class ImportMode(str, Enum):
    APPEND = "append"
    REPLACE = "replace"


def new_exam_draft() -> Exam:
    """Return an empty draft carrying the default delivery policy."""
    return Exam()


def blank_question() -> Question:
    return Question(
        id=new_question_id(),
        type=QuestionType.MULTIPLE_CHOICE,
        text="",
        options=[""] * PLACEHOLDER_OPTION_COUNT,
        correct_answer=0,
    )


class ExamEditor:
    """Mutates a draft exam the way the authoring surface does.

    Text edits pass through the scientific formatter as they happen, so the
    draft always holds the rendered text.
    """

    def __init__(self, exam: Exam | None = None) -> None:
        self._exam = exam if exam is not None else new_exam_draft()

    @property
    def exam(self) -> Exam:
        return self._exam

    # --- Exam settings ---

    def set_title(self, title: str) -> None:
        self._exam.title = format_scientific_text(title)

    def set_description(self, description: str) -> None:
        self._exam.description = description

    def set_difficulty(self, difficulty: str) -> None:
        if difficulty not in DIFFICULTY_LEVELS:
            raise ValueError(f"Difficulty must be one of {', '.join(DIFFICULTY_LEVELS)}.")
        self._exam.difficulty = difficulty

    def set_negative_marking(self, marks: float) -> None:
        if marks < 0:
            raise ValueError("Negative marking cannot be below zero.")
        self._exam.negative_marking = float(marks)

    def set_max_attempts(self, attempts: int) -> None:
        if attempts < 0:
            raise ValueError("Max attempts cannot be negative (use 0 for unlimited).")
        self._exam.max_attempts = attempts

    def set_target_class(self, class_name: str) -> None:
        # Divisions belong to a class, so changing the class clears the division.
        self._exam.target_class = class_name
        self._exam.target_division = ""

    def set_target_division(self, division: str) -> None:
        if division and not self._exam.target_class:
            raise ValueError("Choose a target class before a division.")
        self._exam.target_division = division

    def set_schedule(self, enabled: bool, when: datetime | None = None) -> None:
        if not enabled:
            self._exam.scheduled_date = None
            return
        self._exam.scheduled_date = when or self._exam.scheduled_date or utc_now()

    def toggle_published(self) -> bool:
        self._exam.is_published = not self._exam.is_published
        return self._exam.is_published

    def toggle_shuffle(self) -> bool:
        self._exam.shuffle_questions = not self._exam.shuffle_questions
        return self._exam.shuffle_questions

    # --- Questions ---

    def add_question(self) -> int:
        """Append a blank multiple-choice question and return its index."""
        self._exam.questions.append(blank_question())
        return len(self._exam.questions) - 1

    def get_question(self, index: int) -> Question:
        self._check_index(index)
        return self._exam.questions[index]

    def delete_question(self, index: int) -> None:
        self._check_index(index)
        self._exam.questions.pop(index)

    def move_question(self, from_index: int, to_index: int) -> None:
        self._check_index(from_index)
        self._check_index(to_index)
        question = self._exam.questions.pop(from_index)
        self._exam.questions.insert(to_index, question)

    def clone_question(self, index: int) -> int:
        """Insert a copy right after the source question and return its index."""
        source = self.get_question(index)
        copy = replace(
            source,
            id=new_question_id(),
            text=source.text + CLONE_SUFFIX,
            options=list(source.options),
        )
        self._exam.questions.insert(index + 1, copy)
        return index + 1

    def change_question_type(self, index: int, question_type: QuestionType) -> None:
        """Switch type and reset options/answer to that type's canonical default."""
        question = self.get_question(index)
        question.type = question_type
        if question_type is QuestionType.TRUE_FALSE:
            question.options = list(TRUE_FALSE_OPTIONS)
            question.correct_answer = 0
        elif question_type is QuestionType.SHORT_ANSWER:
            question.options = []
            question.correct_answer_text = ""
        else:
            question.options = [""] * PLACEHOLDER_OPTION_COUNT
            question.correct_answer = 0

    def update_question_text(self, index: int, text: str) -> None:
        self.get_question(index).text = format_scientific_text(text)

    def update_correct_answer_text(self, index: int, text: str) -> None:
        question = self.get_question(index)
        if question.type is not QuestionType.SHORT_ANSWER:
            raise ValueError("Only short-answer questions carry an answer text.")
        question.correct_answer_text = format_scientific_text(text)

    def set_correct_answer(self, index: int, option_index: int) -> None:
        question = self.get_question(index)
        if question.type is QuestionType.SHORT_ANSWER:
            raise ValueError("Short-answer questions are keyed by answer text.")
        if not 0 <= option_index < len(question.options):
            raise IndexError(f"Option index {option_index} out of range")
        question.correct_answer = option_index

    def update_option(self, index: int, option_index: int, text: str) -> None:
        question = self.get_question(index)
        if not 0 <= option_index < len(question.options):
            raise IndexError(f"Option index {option_index} out of range")
        question.options[option_index] = format_scientific_text(text)

    def add_option(self, index: int) -> None:
        question = self.get_question(index)
        if question.type is not QuestionType.MULTIPLE_CHOICE:
            raise ValueError("Options can only be added to multiple-choice questions.")
        question.options.append("")

    def remove_option(self, index: int, option_index: int) -> None:
        question = self.get_question(index)
        if question.type is not QuestionType.MULTIPLE_CHOICE:
            raise ValueError("Options can only be removed from multiple-choice questions.")
        if not 0 <= option_index < len(question.options):
            raise IndexError(f"Option index {option_index} out of range")
        if len(question.options) <= MIN_CHOICE_OPTIONS:
            raise ValueError(f"A multiple-choice question needs at least {MIN_CHOICE_OPTIONS} options.")
        question.options.pop(option_index)
        if question.correct_answer >= len(question.options):
            question.correct_answer = 0

    # --- Import ---

    def apply_import(self, imported: ImportedExam, mode: ImportMode = ImportMode.APPEND) -> int:
        """Merge an import onto the draft and return the number of questions taken.

        Metadata only overwrites the attributes present in the import. In
        replace mode an import without questions keeps the current list.
        """
        if imported.error is not None:
            raise ValueError(imported.error)
        for attribute, value in imported.meta.items():
            setattr(self._exam, attribute, value)
        if mode is ImportMode.APPEND:
            self._exam.questions.extend(imported.questions)
        elif imported.questions:
            self._exam.questions = list(imported.questions)
        logger.info(
            "Applied import (%s) to exam %r: %d question(s), %d metadata field(s)",
            mode.value,
            self._exam.title,
            len(imported.questions),
            len(imported.meta),
        )
        return len(imported.questions)

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._exam.questions):
            raise IndexError(f"Question index {index} out of range")
