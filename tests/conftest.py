from __future__ import annotations

from datetime import datetime, timezone

import pytest

from lms_admin.core.admin_manager import AdminManager
from lms_admin.core.models import Exam, Question, QuestionType, Result
from lms_admin.core.services.document_store import InMemoryDocumentStore

ADMIN_HEADERS = {"X-User-Id": "admin-1", "X-User-Role": "admin"}


def make_exam(exam_id: str | None = "exam-1") -> Exam:
    return Exam(
        id=exam_id,
        title="Chemistry Basics",
        questions=[
            Question(id="q1", type=QuestionType.MULTIPLE_CHOICE, text="Water is?", options=["H₂O", "CO₂", "O₂"], correct_answer=0),
            Question(id="q2", type=QuestionType.TRUE_FALSE, text="Ice floats", options=["True", "False"], correct_answer=0),
            Question(id="q3", type=QuestionType.SHORT_ANSWER, text="Symbol of gold", correct_answer_text="Au"),
        ],
    )


def make_result(
    result_id: str,
    *,
    student_id: str = "s1",
    exam_id: str = "exam-1",
    score: float | int = 8,
    total_marks: float | int = 10,
    submitted_at: datetime | None = None,
    answers: list[int] | None = None,
    is_hidden: bool = False,
) -> Result:
    return Result(
        id=result_id,
        exam_id=exam_id,
        student_id=student_id,
        score=score,
        total_marks=total_marks,
        answers=answers if answers is not None else [0, 1, 0],
        exam_title="Chemistry Basics",
        student_name="Stored Name",
        student_email="stored@example.com",
        submitted_at=submitted_at or datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
        time_taken_seconds=120,
        is_hidden=is_hidden,
    )


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def seeded_store() -> InMemoryDocumentStore:
    exam = make_exam()
    results = [
        make_result("r1", submitted_at=datetime(2024, 1, 1, tzinfo=timezone.utc)),
        make_result("r2", submitted_at=datetime(2024, 1, 3, tzinfo=timezone.utc), score=4),
        make_result("r3", submitted_at=datetime(2024, 1, 2, tzinfo=timezone.utc), score=5),
    ]
    return InMemoryDocumentStore(
        seed={
            "exams": {exam.id: exam.to_document()},
            "results": {result.id: result.to_document() for result in results},
            "users": {
                "s1": {
                    "email": "alice@example.com",
                    "displayName": "Alice",
                    "role": "student",
                    "assignedClass": "Grade 10",
                    "assignedDivision": "A",
                },
            },
            "class_groups": {"g10": {"name": "Grade 10", "divisions": ["A", "B"]}},
            "help_requests": {
                "t1": {"studentName": "Alice", "email": "alice@example.com", "subject": "Login issue", "status": "open", "createdAt": "2024-01-01T00:00:00Z"},
                "t2": {"studentName": "Bob", "email": "bob@example.com", "subject": "Exam timer", "status": "open", "createdAt": "2024-01-05T00:00:00Z"},
            },
        }
    )


@pytest.fixture
def manager(seeded_store: InMemoryDocumentStore) -> AdminManager:
    admin_manager = AdminManager(store=seeded_store)
    admin_manager.start()
    yield admin_manager
    admin_manager.stop()
