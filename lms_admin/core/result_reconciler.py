"""Scoring and answer-key reconciliation for result review.

The student-facing app computes and stores ``score`` at submission time,
negative marking included. Nothing here recomputes it: review compares the
stored answer indices with the exam's current answer key and reports the
stored score as a percentage.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import math

from lms_admin.constants.exam_constants import PASS_THRESHOLD_PERCENT, SKIPPED_ANSWER
from lms_admin.core.models import Exam, Question, QuestionType, Result
from lms_admin.utils.timestamps import sort_key


@dataclass(slots=True)
class OptionMark:
    index: int
    text: str
    is_selected: bool
    is_correct_option: bool


@dataclass(slots=True)
class QuestionVerdict:
    """Correctness breakdown for one question of a reviewed attempt."""

    index: int
    question_id: str
    question_type: QuestionType
    text: str
    student_answer: int
    is_correct: bool
    options: list[OptionMark] = field(default_factory=list)
    correct_answer_text: str | None = None
    # Results only store an index per question, so typed short answers
    # cannot be shown or re-checked.
    answer_text_available: bool = True

    @property
    def is_skipped(self) -> bool:
        return self.student_answer == SKIPPED_ANSWER


@dataclass(slots=True)
class ResultReview:
    """Everything the admin review screen shows for one result."""

    result_id: str
    score: float | int
    total_marks: float | int
    percentage: int
    passed: bool
    attempt_number: int
    total_attempts: int
    exam_available: bool
    verdicts: list[QuestionVerdict] = field(default_factory=list)

    @property
    def correct_count(self) -> int:
        return sum(1 for verdict in self.verdicts if verdict.is_correct)

    @property
    def skipped_count(self) -> int:
        return sum(1 for verdict in self.verdicts if verdict.is_skipped)

    @property
    def incorrect_count(self) -> int:
        return len(self.verdicts) - self.correct_count - self.skipped_count


def score_percentage(score: float | int, total_marks: float | int) -> int:
    """Percentage rounded half up; an exam without marks scores 0."""
    if not total_marks or total_marks <= 0:
        return 0
    return math.floor(score / total_marks * 100 + 0.5)


def is_passing(percentage: float | int) -> bool:
    return percentage >= PASS_THRESHOLD_PERCENT


def student_answer_at(answers: list[object], index: int) -> int:
    """Answer index for a question, or ``SKIPPED_ANSWER`` when absent or invalid.

    Exams edited after submission can have more questions than the result has
    answers; missing entries count as skipped.
    """
    if not 0 <= index < len(answers):
        return SKIPPED_ANSWER
    value = answers[index]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return SKIPPED_ANSWER
    if isinstance(value, float) and not value.is_integer():
        return SKIPPED_ANSWER
    value = int(value)
    return value if value >= 0 else SKIPPED_ANSWER


def reconcile_question(index: int, question: Question, student_answer: int) -> QuestionVerdict:
    is_skipped = student_answer == SKIPPED_ANSWER
    is_correct = not is_skipped and student_answer == question.correct_answer
    if question.type is QuestionType.SHORT_ANSWER:
        return QuestionVerdict(
            index=index,
            question_id=question.id,
            question_type=question.type,
            text=question.text,
            student_answer=student_answer,
            is_correct=is_correct,
            correct_answer_text=question.correct_answer_text,
            answer_text_available=False,
        )
    marks = [
        OptionMark(
            index=option_index,
            text=option,
            is_selected=option_index == student_answer,
            is_correct_option=option_index == question.correct_answer,
        )
        for option_index, option in enumerate(question.options)
    ]
    return QuestionVerdict(
        index=index,
        question_id=question.id,
        question_type=question.type,
        text=question.text,
        student_answer=student_answer,
        is_correct=is_correct,
        options=marks,
    )


def reconcile_answers(answers: list[object], questions: list[Question]) -> list[QuestionVerdict]:
    return [
        reconcile_question(index, question, student_answer_at(answers, index))
        for index, question in enumerate(questions)
    ]


def attempt_position(results: list[Result], result: Result) -> tuple[int, int]:
    """Return ``(attempt_number, total_attempts)`` for a result.

    Attempts are the results of the same student on the same exam ordered by
    submission time, so the numbering does not depend on the order in which
    documents arrived from the store.
    """
    attempts = [
        other
        for other in results
        if other.student_id == result.student_id and other.exam_id == result.exam_id
    ]
    if not any(other.id == result.id for other in attempts):
        attempts.append(result)
    attempts.sort(key=lambda other: (sort_key(other.submitted_at), other.id))
    position = next(i for i, other in enumerate(attempts) if other.id == result.id)
    return position + 1, len(attempts)


def build_review(result: Result, exam: Exam | None, all_results: list[Result]) -> ResultReview:
    """Assemble the review of ``result``; ``exam`` is ``None`` when it was deleted."""
    percentage = score_percentage(result.score, result.total_marks)
    attempt_number, total_attempts = attempt_position(all_results, result)
    verdicts = reconcile_answers(result.answers, exam.questions) if exam is not None else []
    return ResultReview(
        result_id=result.id,
        score=result.score,
        total_marks=result.total_marks,
        percentage=percentage,
        passed=is_passing(percentage),
        attempt_number=attempt_number,
        total_attempts=total_attempts,
        exam_available=exam is not None,
        verdicts=verdicts,
    )
