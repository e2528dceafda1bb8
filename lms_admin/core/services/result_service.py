"""Service for reviewing and adjusting stored results."""

from __future__ import annotations

import logging

from lms_admin.constants.store_constants import RESULTS_COLLECTION
from lms_admin.core.models import Result
from lms_admin.core.result_reconciler import ResultReview, build_review
from lms_admin.core.services.document_store import DocumentStore, DocumentNotFoundError
from lms_admin.core.services.exam_repository import ExamRepository

logger = logging.getLogger(__name__)


class ResultService:
    def __init__(self, store: DocumentStore, exams: ExamRepository) -> None:
        self._store = store
        self._exams = exams

    def get_result(self, result_id: str) -> Result:
        document = self._store.get(RESULTS_COLLECTION, result_id)
        if document is None:
            raise DocumentNotFoundError(RESULTS_COLLECTION, result_id)
        return Result.from_document(result_id, document)

    def review(self, result: Result, all_results: list[Result]) -> ResultReview:
        """Reconcile ``result`` against its exam as it is stored right now."""
        exam = self._exams.get_exam(result.exam_id) if result.exam_id else None
        if exam is None:
            logger.warning("Exam %s for result %s no longer exists", result.exam_id, result.id)
        return build_review(result, exam, all_results)

    def override_score(self, result: Result, score: float | int) -> None:
        """Overwrite the stored score. Admins may award extra credit, so no clamping."""
        if score < 0 or (result.total_marks and score > result.total_marks):
            logger.warning(
                "Score override for result %s is outside 0..%s: %s",
                result.id,
                result.total_marks,
                score,
            )
        self._store.update(RESULTS_COLLECTION, result.id, {"score": score})
        result.score = score

    def toggle_hidden(self, result: Result) -> bool:
        hidden = not result.is_hidden
        self._store.update(RESULTS_COLLECTION, result.id, {"isHidden": hidden})
        result.is_hidden = hidden
        return hidden

    def delete_result(self, result_id: str) -> None:
        self._store.delete(RESULTS_COLLECTION, result_id)
        logger.info("Deleted result %s", result_id)
