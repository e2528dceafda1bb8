"""Service for persisting exams in the document store."""

from __future__ import annotations

from datetime import date
import logging

from lms_admin.constants.store_constants import EXAMS_COLLECTION
from lms_admin.core.models import Exam
from lms_admin.core.services.document_store import DocumentStore

logger = logging.getLogger(__name__)


class ExamRepository:
    """Loads and saves exams; ``questionCount`` is recomputed on every save."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def list_exams(self) -> list[Exam]:
        return [Exam.from_document(doc["id"], doc) for doc in self._store.list_documents(EXAMS_COLLECTION)]

    def get_exam(self, exam_id: str) -> Exam | None:
        document = self._store.get(EXAMS_COLLECTION, exam_id)
        if document is None:
            return None
        return Exam.from_document(exam_id, document)

    def save_exam(self, exam: Exam) -> str:
        """Create or overwrite the exam document and return its id.

        Concurrent saves of the same exam are last-write-wins.
        """
        if not exam.title.strip():
            raise ValueError("Exam title must not be empty.")
        if exam.negative_marking < 0:
            raise ValueError("Negative marking cannot be below zero.")
        document = exam.to_document()
        if exam.id:
            self._store.update(EXAMS_COLLECTION, exam.id, document)
            logger.info("Updated exam %s (%d question(s))", exam.id, exam.question_count)
        else:
            exam.id = self._store.create(EXAMS_COLLECTION, document)
            logger.info("Created exam %s (%d question(s))", exam.id, exam.question_count)
        return exam.id

    def delete_exam(self, exam_id: str) -> None:
        self._store.delete(EXAMS_COLLECTION, exam_id)
        logger.info("Deleted exam %s", exam_id)

    def exams_on_day(self, day: date) -> list[Exam]:
        """Exams whose scheduled release falls on ``day`` (UTC)."""
        return [
            exam
            for exam in self.list_exams()
            if exam.scheduled_date is not None and exam.scheduled_date.date() == day
        ]
