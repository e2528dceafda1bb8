"""Domain models for the admin console.

Records are plain dataclasses. Store documents use the camelCase field names
shared with the student-facing app, so every record knows how to convert to
and from its document shape; the store assigns ``id`` separately.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from lms_admin.constants.exam_constants import (
    DEFAULT_DIFFICULTY,
    DEFAULT_DURATION_MINUTES,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_TOTAL_MARKS,
)
from lms_admin.utils.timestamps import parse_timestamp, to_iso


def new_question_id() -> str:
    return uuid4().hex


def _as_number(value: Any, default: float | int = 0) -> float | int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return default
        return int(number) if number.is_integer() else number
    return default


def _as_int(value: Any, default: int = 0) -> int:
    number = _as_number(value, default)
    return int(number)


def _as_str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return str(value)


def _as_optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "multiple-choice"
    TRUE_FALSE = "true-false"
    SHORT_ANSWER = "short-answer"

    @classmethod
    def from_value(cls, value: Any) -> QuestionType:
        try:
            return cls(value)
        except ValueError:
            return cls.MULTIPLE_CHOICE


@dataclass(slots=True)
class Question:
    """One assessable item of an exam."""

    id: str
    type: QuestionType
    text: str
    options: list[str] = field(default_factory=list)
    correct_answer: int = 0
    correct_answer_text: str | None = None

    def to_document(self) -> dict[str, Any]:
        document: dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "text": self.text,
            "options": list(self.options),
            "correctAnswer": self.correct_answer,
        }
        if self.correct_answer_text is not None:
            document["correctAnswerText"] = self.correct_answer_text
        return document

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> Question:
        return cls(
            id=_as_str(data.get("id")) or new_question_id(),
            type=QuestionType.from_value(data.get("type")),
            text=_as_str(data.get("text")),
            options=[_as_str(option) for option in data.get("options") or []],
            correct_answer=_as_int(data.get("correctAnswer")),
            correct_answer_text=_as_optional_str(data.get("correctAnswerText")),
        )


@dataclass(slots=True)
class Exam:
    """A named collection of questions plus delivery policy."""

    id: str | None = None
    title: str = ""
    description: str = ""
    duration_minutes: int = DEFAULT_DURATION_MINUTES
    questions: list[Question] = field(default_factory=list)
    total_marks: float | int = DEFAULT_TOTAL_MARKS
    difficulty: str = DEFAULT_DIFFICULTY
    scheduled_date: datetime | None = None
    is_published: bool = False
    max_attempts: int = DEFAULT_MAX_ATTEMPTS  # 0 means unlimited
    shuffle_questions: bool = False
    negative_marking: float = 0.0
    target_class: str = ""
    target_division: str = ""

    @property
    def question_count(self) -> int:
        return len(self.questions)

    def to_document(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "durationMinutes": self.duration_minutes,
            "questionCount": self.question_count,
            "questions": [question.to_document() for question in self.questions],
            "totalMarks": self.total_marks,
            "difficulty": self.difficulty,
            "scheduledDate": to_iso(self.scheduled_date),
            "isPublished": self.is_published,
            "maxAttempts": self.max_attempts,
            "shuffleQuestions": self.shuffle_questions,
            "negativeMarking": self.negative_marking,
            "targetClass": self.target_class,
            "targetDivision": self.target_division,
        }

    @classmethod
    def from_document(cls, doc_id: str | None, data: dict[str, Any]) -> Exam:
        # questionCount is a derived cache and deliberately not read back.
        questions = [
            Question.from_document(item)
            for item in data.get("questions") or []
            if isinstance(item, dict)
        ]
        max_attempts = data.get("maxAttempts")
        return cls(
            id=doc_id,
            title=_as_str(data.get("title")),
            description=_as_str(data.get("description")),
            duration_minutes=_as_int(data.get("durationMinutes"), DEFAULT_DURATION_MINUTES),
            questions=questions,
            total_marks=_as_number(data.get("totalMarks"), DEFAULT_TOTAL_MARKS),
            difficulty=_as_str(data.get("difficulty"), DEFAULT_DIFFICULTY),
            scheduled_date=parse_timestamp(data.get("scheduledDate")),
            is_published=bool(data.get("isPublished", False)),
            max_attempts=DEFAULT_MAX_ATTEMPTS if max_attempts is None else _as_int(max_attempts),
            shuffle_questions=bool(data.get("shuffleQuestions", False)),
            negative_marking=float(_as_number(data.get("negativeMarking"), 0.0)),
            target_class=_as_str(data.get("targetClass")),
            target_division=_as_str(data.get("targetDivision")),
        )


@dataclass(slots=True)
class Result:
    """One student's completed attempt against one exam."""

    id: str
    exam_id: str
    student_id: str
    score: float | int
    total_marks: float | int
    answers: list[int] = field(default_factory=list)
    exam_title: str = ""
    student_name: str = ""
    student_email: str | None = None
    submitted_at: datetime | None = None
    time_taken_seconds: int = 0
    is_hidden: bool = False

    def to_document(self) -> dict[str, Any]:
        return {
            "examId": self.exam_id,
            "examTitle": self.exam_title,
            "studentId": self.student_id,
            "studentName": self.student_name,
            "studentEmail": self.student_email,
            "score": self.score,
            "totalMarks": self.total_marks,
            "submittedAt": to_iso(self.submitted_at),
            "answers": list(self.answers),
            "timeTakenSeconds": self.time_taken_seconds,
            "isHidden": self.is_hidden,
        }

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> Result:
        raw_answers = data.get("answers")
        answers = list(raw_answers) if isinstance(raw_answers, list) else []
        return cls(
            id=doc_id,
            exam_id=_as_str(data.get("examId")),
            student_id=_as_str(data.get("studentId")),
            score=_as_number(data.get("score")),
            total_marks=_as_number(data.get("totalMarks")),
            answers=answers,
            exam_title=_as_str(data.get("examTitle")),
            student_name=_as_str(data.get("studentName")),
            student_email=_as_optional_str(data.get("studentEmail")),
            submitted_at=parse_timestamp(data.get("submittedAt")),
            time_taken_seconds=_as_int(data.get("timeTakenSeconds")),
            is_hidden=bool(data.get("isHidden", False)),
        )


@dataclass(slots=True)
class HelpRequest:
    """Support ticket raised by a student."""

    id: str
    student_id: str
    student_name: str
    email: str
    subject: str
    message: str
    status: str = "open"
    created_at: datetime | None = None
    is_starred: bool = False
    admin_notes: str = ""

    def to_document(self) -> dict[str, Any]:
        return {
            "studentId": self.student_id,
            "studentName": self.student_name,
            "email": self.email,
            "subject": self.subject,
            "message": self.message,
            "status": self.status,
            "createdAt": to_iso(self.created_at),
            "isStarred": self.is_starred,
            "adminNotes": self.admin_notes,
        }

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> HelpRequest:
        return cls(
            id=doc_id,
            student_id=_as_str(data.get("studentId")),
            student_name=_as_str(data.get("studentName")),
            email=_as_str(data.get("email")),
            subject=_as_str(data.get("subject")),
            message=_as_str(data.get("message")),
            status=_as_str(data.get("status"), "open"),
            created_at=parse_timestamp(data.get("createdAt")),
            is_starred=bool(data.get("isStarred", False)),
            admin_notes=_as_str(data.get("adminNotes")),
        )


@dataclass(slots=True)
class Notice:
    id: str
    title: str
    content: str
    date: datetime | None = None
    priority: str = "medium"
    is_pinned: bool = False

    def to_document(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "content": self.content,
            "date": to_iso(self.date),
            "priority": self.priority,
            "isPinned": self.is_pinned,
        }

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> Notice:
        return cls(
            id=doc_id,
            title=_as_str(data.get("title")),
            content=_as_str(data.get("content")),
            date=parse_timestamp(data.get("date")),
            priority=_as_str(data.get("priority"), "medium"),
            is_pinned=bool(data.get("isPinned", False)),
        )


@dataclass(slots=True)
class Resource:
    """A hosted file distributed to students."""

    id: str
    title: str
    type: str
    url: str
    category: str = "General"
    is_protected: bool = True
    can_download: bool = True
    target_class: str = ""
    target_division: str = ""

    def to_document(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "type": self.type,
            "url": self.url,
            "isProtected": self.is_protected,
            "category": self.category,
            "canDownload": self.can_download,
            "targetClass": self.target_class,
            "targetDivision": self.target_division,
        }

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> Resource:
        return cls(
            id=doc_id,
            title=_as_str(data.get("title")),
            type=_as_str(data.get("type"), "image"),
            url=_as_str(data.get("url")),
            category=_as_str(data.get("category"), "General"),
            is_protected=bool(data.get("isProtected", True)),
            can_download=bool(data.get("canDownload", True)),
            target_class=_as_str(data.get("targetClass")),
            target_division=_as_str(data.get("targetDivision")),
        )


@dataclass(slots=True)
class UserProfile:
    uid: str
    email: str | None = None
    display_name: str | None = None
    phone_number: str | None = None
    photo_url: str | None = None
    role: str = "student"
    status: str = "active"
    joined_at: datetime | None = None
    last_login: datetime | None = None
    assigned_class: str = ""
    assigned_division: str = ""

    def to_document(self) -> dict[str, Any]:
        return {
            "email": self.email,
            "displayName": self.display_name,
            "phoneNumber": self.phone_number,
            "photoURL": self.photo_url,
            "role": self.role,
            "status": self.status,
            "joinedAt": to_iso(self.joined_at),
            "lastLogin": to_iso(self.last_login),
            "assignedClass": self.assigned_class,
            "assignedDivision": self.assigned_division,
        }

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> UserProfile:
        return cls(
            uid=doc_id,
            email=_as_optional_str(data.get("email")),
            display_name=_as_optional_str(data.get("displayName")),
            phone_number=_as_optional_str(data.get("phoneNumber")),
            photo_url=_as_optional_str(data.get("photoURL")),
            role=_as_str(data.get("role"), "student") or "student",
            status=_as_str(data.get("status"), "active") or "active",
            joined_at=parse_timestamp(data.get("joinedAt") or data.get("createdAt")),
            last_login=parse_timestamp(data.get("lastLogin")),
            assigned_class=_as_str(data.get("assignedClass")),
            assigned_division=_as_str(data.get("assignedDivision")),
        )


@dataclass(slots=True)
class ClassGroup:
    """Audience-targeting taxonomy entry, e.g. "Grade 10" with divisions A-C."""

    id: str
    name: str
    divisions: list[str] = field(default_factory=list)

    def to_document(self) -> dict[str, Any]:
        return {"name": self.name, "divisions": list(self.divisions)}

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> ClassGroup:
        return cls(
            id=doc_id,
            name=_as_str(data.get("name")),
            divisions=[_as_str(item) for item in data.get("divisions") or []],
        )
