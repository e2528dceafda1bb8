"""FastAPI server that exposes the admin console endpoints."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import date, datetime
import logging
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool
import uvicorn

from lms_admin.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME, APP_VERSION, HELP_TEXT
from lms_admin.constants.exam_constants import (
    DEFAULT_DIFFICULTY,
    DEFAULT_DURATION_MINUTES,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_TOTAL_MARKS,
)
from lms_admin.constants.network_constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    USER_ID_HEADER,
    USER_ROLE_HEADER,
)
from lms_admin.core.admin_manager import AdminManager
from lms_admin.core.exam_editor import ExamEditor, ImportMode
from lms_admin.core.exam_exporter import serialize_exam_json
from lms_admin.core.exam_importer import ImportedExam, parse_exam_json
from lms_admin.core.models import Exam, HelpRequest, Notice, Question, QuestionType, Resource, UserProfile
from lms_admin.core.result_reconciler import ResultReview
from lms_admin.core.results_view import ResultFilter, ResultRow, ResultSort, unique_exam_titles
from lms_admin.core.scientific_formatter import format_scientific_text
from lms_admin.core.services.document_store import DocumentNotFoundError, PermissionDeniedError, StoreError
from lms_admin.core.services.media_uploader import MediaUploadError
from lms_admin.core.services.roster_service import UserFilter
from lms_admin.core.services.ticket_service import filter_tickets
from lms_admin.core.session_context import CurrentUser
from lms_admin.utils.timestamps import to_iso, utc_now

logger = logging.getLogger(__name__)


# --- Request bodies ---


class QuestionPayload(BaseModel):
    id: str | None = None
    type: QuestionType = QuestionType.MULTIPLE_CHOICE
    text: str = ""
    options: list[str] = Field(default_factory=list)
    correct_answer: int = 0
    correct_answer_text: str | None = None


class ExamPayload(BaseModel):
    title: str
    description: str = ""
    duration_minutes: int = DEFAULT_DURATION_MINUTES
    total_marks: float = DEFAULT_TOTAL_MARKS
    difficulty: str = DEFAULT_DIFFICULTY
    scheduled_date: datetime | None = None
    is_published: bool = False
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    shuffle_questions: bool = False
    negative_marking: float = 0.0
    target_class: str = ""
    target_division: str = ""
    questions: list[QuestionPayload] = Field(default_factory=list)


class JsonTextPayload(BaseModel):
    text: str


class FormatPayload(BaseModel):
    text: str = ""


class ScorePayload(BaseModel):
    score: float


class TicketUpdatePayload(BaseModel):
    status: str | None = None
    admin_notes: str | None = None
    is_starred: bool | None = None


class IdsPayload(BaseModel):
    ids: list[str]


class NoticePayload(BaseModel):
    title: str
    content: str
    priority: str = "medium"
    is_pinned: bool = False


class ResourceUpdatePayload(BaseModel):
    title: str | None = None
    category: str | None = None
    is_protected: bool | None = None
    can_download: bool | None = None
    target_class: str | None = None
    target_division: str | None = None


class ProfileUpdatePayload(BaseModel):
    display_name: str | None = None
    phone_number: str | None = None
    role: str | None = None
    status: str | None = None
    assigned_class: str | None = None
    assigned_division: str | None = None


class ClassGroupPayload(BaseModel):
    name: str


class DivisionPayload(BaseModel):
    name: str


class ThemePayload(BaseModel):
    theme: str


# --- Conversions ---


def _exam_from_payload(
    payload: ExamPayload,
    exam_id: str | None = None,
    known_question_ids: frozenset[str] = frozenset(),
) -> Exam:
    """Build a validated exam from a request body.

    Question ids listed in ``known_question_ids`` are kept; any other question
    gets a fresh id.
    """
    editor = ExamEditor(Exam(id=exam_id))
    editor.set_title(payload.title)
    editor.set_description(payload.description)
    editor.set_difficulty(payload.difficulty)
    editor.set_negative_marking(payload.negative_marking)
    editor.set_max_attempts(payload.max_attempts)
    editor.set_target_class(payload.target_class)
    editor.set_target_division(payload.target_division)
    editor.set_schedule(payload.scheduled_date is not None, payload.scheduled_date)
    exam = editor.exam
    exam.duration_minutes = payload.duration_minutes
    exam.total_marks = payload.total_marks
    exam.is_published = payload.is_published
    exam.shuffle_questions = payload.shuffle_questions

    used_ids: set[str] = set()
    for item in payload.questions:
        index = editor.add_question()
        if item.id in known_question_ids and item.id not in used_ids:
            editor.get_question(index).id = item.id
            used_ids.add(item.id)
        editor.change_question_type(index, item.type)
        editor.update_question_text(index, item.text)
        if item.type is QuestionType.SHORT_ANSWER:
            editor.update_correct_answer_text(index, item.correct_answer_text or "")
            continue
        if item.type is QuestionType.MULTIPLE_CHOICE and item.options:
            question = editor.get_question(index)
            question.options = [""] * max(len(item.options), 2)
            for option_index, option in enumerate(item.options):
                editor.update_option(index, option_index, option)
        editor.set_correct_answer(index, item.correct_answer)
    return exam


def _question_to_json(question: Question) -> dict[str, Any]:
    return {
        "id": question.id,
        "type": question.type.value,
        "text": question.text,
        "options": list(question.options),
        "correct_answer": question.correct_answer,
        "correct_answer_text": question.correct_answer_text,
    }


def _exam_to_json(exam: Exam) -> dict[str, Any]:
    return {
        "id": exam.id,
        "title": exam.title,
        "description": exam.description,
        "duration_minutes": exam.duration_minutes,
        "total_marks": exam.total_marks,
        "difficulty": exam.difficulty,
        "scheduled_date": to_iso(exam.scheduled_date),
        "is_published": exam.is_published,
        "max_attempts": exam.max_attempts,
        "shuffle_questions": exam.shuffle_questions,
        "negative_marking": exam.negative_marking,
        "target_class": exam.target_class,
        "target_division": exam.target_division,
        "question_count": exam.question_count,
        "questions": [_question_to_json(question) for question in exam.questions],
    }


def _import_to_json(imported: ImportedExam) -> dict[str, Any]:
    return {
        "question_count": len(imported.questions),
        "questions": [_question_to_json(question) for question in imported.questions],
        "meta": imported.meta,
    }


def _row_to_json(row: ResultRow) -> dict[str, Any]:
    result = row.result
    return {
        "id": result.id,
        "exam_id": result.exam_id,
        "exam_title": result.exam_title,
        "student_id": result.student_id,
        "student_name": row.student_name,
        "student_email": row.student_email,
        "student_class": row.student_class,
        "student_division": row.student_division,
        "score": result.score,
        "total_marks": result.total_marks,
        "percentage": row.percentage,
        "passed": row.passed,
        "submitted_at": to_iso(result.submitted_at),
        "time_taken_seconds": result.time_taken_seconds,
        "is_hidden": result.is_hidden,
    }


def _review_to_json(review: ResultReview) -> dict[str, Any]:
    data = asdict(review)
    data["correct_count"] = review.correct_count
    data["incorrect_count"] = review.incorrect_count
    data["skipped_count"] = review.skipped_count
    for verdict, source in zip(data["verdicts"], review.verdicts):
        verdict["question_type"] = source.question_type.value
        verdict["is_skipped"] = source.is_skipped
    return data


def _ticket_to_json(ticket: HelpRequest) -> dict[str, Any]:
    return {"id": ticket.id, **ticket.to_document()}


def _notice_to_json(notice: Notice) -> dict[str, Any]:
    return {"id": notice.id, **notice.to_document()}


def _resource_to_json(resource: Resource) -> dict[str, Any]:
    return {"id": resource.id, **resource.to_document()}


def _user_to_json(user: UserProfile) -> dict[str, Any]:
    return {"uid": user.uid, **user.to_document()}


# --- Dependencies ---


def _get_admin_manager_dependency(admin_manager: AdminManager):
    def dependency() -> AdminManager:
        return admin_manager

    return dependency


def require_admin(
    user_id: str | None = Header(default=None, alias=USER_ID_HEADER),
    user_role: str | None = Header(default=None, alias=USER_ROLE_HEADER),
) -> CurrentUser:
    """Resolve the acting user from request headers; only admins and instructors pass."""
    if not user_id:
        raise HTTPException(status_code=401, detail="Missing user identity.")
    user = CurrentUser(uid=user_id, role=(user_role or "").lower())
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin or instructor role required.")
    return user


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(DocumentNotFoundError)
    def handle_not_found(request: Request, exc: DocumentNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(PermissionDeniedError)
    def handle_permission_denied(request: Request, exc: PermissionDeniedError) -> JSONResponse:
        logger.warning("Store denied %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=403, content={"detail": str(exc)})

    @app.exception_handler(StoreError)
    def handle_store_error(request: Request, exc: StoreError) -> JSONResponse:
        logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=502, content={"detail": str(exc)})

    @app.exception_handler(MediaUploadError)
    def handle_upload_error(request: Request, exc: MediaUploadError) -> JSONResponse:
        return JSONResponse(status_code=502, content={"detail": str(exc)})


def create_api_app(admin_manager: AdminManager) -> FastAPI:
    """Create a FastAPI application wired to the provided admin manager."""
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        admin_manager.start()
        yield
        admin_manager.stop()

    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION, lifespan=lifespan)
    manager_dep = _get_admin_manager_dependency(admin_manager)
    router = APIRouter(dependencies=[Depends(require_admin)])
    _install_error_handlers(app)

    @app.get("/health")
    def health() -> dict[str, object]:
        return {"status": "ok", "version": APP_VERSION}

    @app.get("/about")
    def about() -> dict[str, str]:
        return {
            "name": APP_NAME,
            "version": APP_VERSION,
            "license": APP_LICENSE,
            "about": APP_ABOUT_TEXT,
            "import_help": HELP_TEXT,
        }

    # --- Exams ---

    @router.get("/exams")
    def list_exams(manager: AdminManager = Depends(manager_dep)) -> list[dict[str, Any]]:
        return [_exam_to_json(exam) for exam in manager.exams.list_exams()]

    @router.get("/exams/calendar")
    def exams_on_day(day: date, manager: AdminManager = Depends(manager_dep)) -> list[dict[str, Any]]:
        return [_exam_to_json(exam) for exam in manager.exams.exams_on_day(day)]

    @router.get("/exams/{exam_id}")
    def get_exam(exam_id: str, manager: AdminManager = Depends(manager_dep)) -> dict[str, Any]:
        exam = manager.exams.get_exam(exam_id)
        if exam is None:
            raise HTTPException(status_code=404, detail=f"Exam {exam_id} does not exist.")
        return _exam_to_json(exam)

    @router.post("/exams", status_code=201)
    def create_exam(payload: ExamPayload, manager: AdminManager = Depends(manager_dep)) -> dict[str, Any]:
        try:
            exam = _exam_from_payload(payload)
            manager.exams.save_exam(exam)
        except (ValueError, IndexError) as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return _exam_to_json(exam)

    @router.put("/exams/{exam_id}")
    def update_exam(
        exam_id: str,
        payload: ExamPayload,
        manager: AdminManager = Depends(manager_dep),
    ) -> dict[str, Any]:
        try:
            stored = manager.exams.get_exam(exam_id)
            known_ids = frozenset(question.id for question in stored.questions) if stored else frozenset()
            exam = _exam_from_payload(payload, exam_id=exam_id, known_question_ids=known_ids)
            manager.exams.save_exam(exam)
        except (ValueError, IndexError) as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return _exam_to_json(exam)

    @router.delete("/exams/{exam_id}", status_code=204)
    def delete_exam(exam_id: str, manager: AdminManager = Depends(manager_dep)) -> Response:
        manager.exams.delete_exam(exam_id)
        return Response(status_code=204)

    @router.post("/exams/normalize")
    def normalize_exam(payload: JsonTextPayload) -> dict[str, Any]:
        imported = parse_exam_json(payload.text)
        if imported.error is not None:
            raise HTTPException(status_code=422, detail=imported.error)
        return _import_to_json(imported)

    @router.post("/exams/{exam_id}/import")
    def import_questions(
        exam_id: str,
        payload: JsonTextPayload,
        mode: ImportMode = ImportMode.APPEND,
        manager: AdminManager = Depends(manager_dep),
    ) -> dict[str, Any]:
        exam = manager.exams.get_exam(exam_id)
        if exam is None:
            raise HTTPException(status_code=404, detail=f"Exam {exam_id} does not exist.")
        imported = parse_exam_json(payload.text)
        if imported.error is not None:
            raise HTTPException(status_code=422, detail=imported.error)
        editor = ExamEditor(exam)
        count = editor.apply_import(imported, mode)
        manager.exams.save_exam(editor.exam)
        return {"imported": count, "exam": _exam_to_json(editor.exam)}

    @router.get("/exams/{exam_id}/export")
    def export_exam(exam_id: str, manager: AdminManager = Depends(manager_dep)) -> Response:
        exam = manager.exams.get_exam(exam_id)
        if exam is None:
            raise HTTPException(status_code=404, detail=f"Exam {exam_id} does not exist.")
        filename = (exam.title or "exam").replace(" ", "_").replace('"', "")
        return Response(
            content=serialize_exam_json(exam),
            media_type="application/json",
            headers={"Content-Disposition": f'attachment; filename="{filename}.json"'},
        )

    @router.get("/exams/{exam_id}/preview", response_class=HTMLResponse)
    def preview_exam(exam_id: str, manager: AdminManager = Depends(manager_dep)) -> str:
        exam = manager.exams.get_exam(exam_id)
        if exam is None:
            raise HTTPException(status_code=404, detail=f"Exam {exam_id} does not exist.")
        return manager.preview_exam(exam)

    @router.post("/format")
    def format_text(payload: FormatPayload) -> dict[str, str]:
        return {"text": format_scientific_text(payload.text)}

    # --- Results ---

    def _result_filter(
        search: str = "",
        exam_title: str | None = None,
        class_name: str | None = None,
        division: str | None = None,
        show_hidden: bool = False,
    ) -> ResultFilter:
        return ResultFilter(
            search=search,
            exam_title=exam_title,
            class_name=class_name,
            division=division,
            show_hidden=show_hidden,
        )

    @router.get("/results")
    def list_results(
        result_filter: ResultFilter = Depends(_result_filter),
        sort: ResultSort = ResultSort.DATE_DESC,
        manager: AdminManager = Depends(manager_dep),
    ) -> dict[str, Any]:
        rows = manager.result_rows(result_filter, sort)
        summary = manager.results_summary(rows)
        return {
            "rows": [_row_to_json(row) for row in rows],
            "exam_titles": unique_exam_titles(manager.result_rows(ResultFilter(show_hidden=True))),
            "summary": {
                "total": summary.total,
                "average_percentage": round(summary.average_percentage, 2),
                "passed_count": summary.passed_count,
                "pass_rate": round(summary.pass_rate, 2),
                "top_performer": _row_to_json(summary.top_performer) if summary.top_performer else None,
            },
        }

    @router.get("/results/export.csv", response_class=PlainTextResponse)
    def export_results_csv(
        result_filter: ResultFilter = Depends(_result_filter),
        sort: ResultSort = ResultSort.DATE_DESC,
        manager: AdminManager = Depends(manager_dep),
    ) -> Response:
        return Response(
            content=manager.results_csv(result_filter, sort),
            media_type="text/csv",
            headers={"Content-Disposition": 'attachment; filename="results.csv"'},
        )

    @router.get("/results/{result_id}/review")
    def review_result(result_id: str, manager: AdminManager = Depends(manager_dep)) -> dict[str, Any]:
        return _review_to_json(manager.review_result(result_id))

    @router.put("/results/{result_id}/score")
    def override_score(
        result_id: str,
        payload: ScorePayload,
        manager: AdminManager = Depends(manager_dep),
    ) -> dict[str, Any]:
        result = manager.results.get_result(result_id)
        manager.results.override_score(result, payload.score)
        return {"id": result.id, "score": result.score}

    @router.post("/results/{result_id}/toggle-hidden")
    def toggle_result_hidden(result_id: str, manager: AdminManager = Depends(manager_dep)) -> dict[str, Any]:
        result = manager.results.get_result(result_id)
        return {"id": result.id, "is_hidden": manager.results.toggle_hidden(result)}

    @router.delete("/results/{result_id}", status_code=204)
    def delete_result(result_id: str, manager: AdminManager = Depends(manager_dep)) -> Response:
        manager.results.delete_result(result_id)
        return Response(status_code=204)

    # --- Tickets ---

    @router.get("/tickets")
    def list_tickets(
        search: str = "",
        status: str = "open",
        manager: AdminManager = Depends(manager_dep),
    ) -> list[dict[str, Any]]:
        tickets = filter_tickets(manager.tickets.list_tickets(), search=search, status=status)
        return [_ticket_to_json(ticket) for ticket in tickets]

    @router.patch("/tickets/{ticket_id}")
    def update_ticket(
        ticket_id: str,
        payload: TicketUpdatePayload,
        manager: AdminManager = Depends(manager_dep),
    ) -> dict[str, Any]:
        try:
            if payload.status is not None:
                manager.tickets.set_status(ticket_id, payload.status)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        if payload.admin_notes is not None:
            manager.tickets.save_notes(ticket_id, payload.admin_notes)
        if payload.is_starred is not None:
            manager.tickets.set_starred(ticket_id, payload.is_starred)
        ticket = next((t for t in manager.tickets.list_tickets() if t.id == ticket_id), None)
        if ticket is None:
            raise HTTPException(status_code=404, detail=f"Ticket {ticket_id} does not exist.")
        return _ticket_to_json(ticket)

    @router.delete("/tickets/{ticket_id}", status_code=204)
    def delete_ticket(ticket_id: str, manager: AdminManager = Depends(manager_dep)) -> Response:
        manager.tickets.delete_ticket(ticket_id)
        return Response(status_code=204)

    @router.post("/tickets/bulk-resolve")
    def bulk_resolve(payload: IdsPayload, manager: AdminManager = Depends(manager_dep)) -> dict[str, int]:
        return {"resolved": manager.tickets.bulk_resolve(payload.ids)}

    @router.post("/tickets/bulk-delete")
    def bulk_delete(payload: IdsPayload, manager: AdminManager = Depends(manager_dep)) -> dict[str, int]:
        return {"deleted": manager.tickets.bulk_delete(payload.ids)}

    # --- Notices ---

    @router.get("/notices")
    def list_notices(manager: AdminManager = Depends(manager_dep)) -> list[dict[str, Any]]:
        return [_notice_to_json(notice) for notice in manager.notices.list_notices()]

    @router.post("/notices", status_code=201)
    def post_notice(payload: NoticePayload, manager: AdminManager = Depends(manager_dep)) -> dict[str, Any]:
        try:
            notice = manager.notices.post_notice(
                payload.title,
                payload.content,
                priority=payload.priority,
                is_pinned=payload.is_pinned,
            )
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return _notice_to_json(notice)

    @router.get("/notices/{notice_id}/html", response_class=HTMLResponse)
    def render_notice(notice_id: str, manager: AdminManager = Depends(manager_dep)) -> str:
        return manager.notices.render_notice_html(notice_id)

    @router.delete("/notices/{notice_id}", status_code=204)
    def delete_notice(notice_id: str, manager: AdminManager = Depends(manager_dep)) -> Response:
        manager.notices.delete_notice(notice_id)
        return Response(status_code=204)

    # --- Resources ---

    @router.get("/resources")
    def list_resources(manager: AdminManager = Depends(manager_dep)) -> list[dict[str, Any]]:
        return [_resource_to_json(resource) for resource in manager.resources.list_resources()]

    @router.get("/resources/categories")
    def resource_categories(manager: AdminManager = Depends(manager_dep)) -> list[str]:
        return manager.resources.categories()

    @router.post("/resources/upload", status_code=201)
    async def upload_resource(
        request: Request,
        filename: str,
        title: str,
        category: str = "General",
        is_protected: bool = True,
        can_download: bool = True,
        target_class: str = "",
        target_division: str = "",
        manager: AdminManager = Depends(manager_dep),
    ) -> dict[str, Any]:
        content = await request.body()
        if not content:
            raise HTTPException(status_code=422, detail="Upload body is empty.")
        content_type = request.headers.get("content-type", "application/octet-stream")
        try:
            resource = await run_in_threadpool(
                manager.resources.upload_resource,
                filename=filename,
                content=content,
                content_type=content_type,
                title=title,
                category=category,
                is_protected=is_protected,
                can_download=can_download,
                target_class=target_class,
                target_division=target_division,
            )
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return _resource_to_json(resource)

    @router.patch("/resources/{resource_id}", status_code=204)
    def update_resource(
        resource_id: str,
        payload: ResourceUpdatePayload,
        manager: AdminManager = Depends(manager_dep),
    ) -> Response:
        manager.resources.update_resource(resource_id, **payload.model_dump(exclude_none=True))
        return Response(status_code=204)

    @router.delete("/resources/{resource_id}", status_code=204)
    def delete_resource(resource_id: str, manager: AdminManager = Depends(manager_dep)) -> Response:
        manager.resources.delete_resource(resource_id)
        return Response(status_code=204)

    # --- Users and class groups ---

    @router.get("/users")
    def list_users(
        search: str = "",
        role: str | None = None,
        status: str | None = None,
        class_name: str | None = None,
        division: str | None = None,
        manager: AdminManager = Depends(manager_dep),
    ) -> list[dict[str, Any]]:
        user_filter = UserFilter(search=search, role=role, status=status, class_name=class_name, division=division)
        return [_user_to_json(user) for user in manager.find_users(user_filter)]

    @router.patch("/users/{uid}", status_code=204)
    def update_user(
        uid: str,
        payload: ProfileUpdatePayload,
        manager: AdminManager = Depends(manager_dep),
    ) -> Response:
        try:
            manager.roster.update_profile(uid, **payload.model_dump(exclude_none=True))
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return Response(status_code=204)

    @router.delete("/users/{uid}", status_code=204)
    def delete_user(uid: str, manager: AdminManager = Depends(manager_dep)) -> Response:
        manager.roster.delete_user(uid)
        return Response(status_code=204)

    @router.get("/class-groups")
    def list_class_groups(manager: AdminManager = Depends(manager_dep)) -> dict[str, Any]:
        return {
            "available": manager.class_groups_available(),
            "groups": [asdict(group) for group in manager.class_groups()],
        }

    @router.post("/class-groups", status_code=201)
    def create_class_group(
        payload: ClassGroupPayload,
        manager: AdminManager = Depends(manager_dep),
    ) -> dict[str, Any]:
        try:
            group = manager.roster.create_class_group(payload.name)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return asdict(group)

    @router.delete("/class-groups/{group_id}", status_code=204)
    def delete_class_group(group_id: str, manager: AdminManager = Depends(manager_dep)) -> Response:
        manager.roster.delete_class_group(group_id)
        return Response(status_code=204)

    @router.post("/class-groups/{group_id}/divisions")
    def add_division(
        group_id: str,
        payload: DivisionPayload,
        manager: AdminManager = Depends(manager_dep),
    ) -> dict[str, list[str]]:
        try:
            divisions = manager.roster.add_division(group_id, payload.name)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return {"divisions": divisions}

    @router.delete("/class-groups/{group_id}/divisions/{division}")
    def remove_division(
        group_id: str,
        division: str,
        manager: AdminManager = Depends(manager_dep),
    ) -> dict[str, list[str]]:
        return {"divisions": manager.roster.remove_division(group_id, division)}

    # --- Dashboard, backup and settings ---

    @router.get("/dashboard")
    def dashboard(manager: AdminManager = Depends(manager_dep)) -> dict[str, Any]:
        stats = manager.dashboard()
        data = asdict(stats)
        data["recent_activity"] = [
            {**asdict(item), "timestamp": to_iso(item.timestamp)} for item in stats.recent_activity
        ]
        return data

    @router.get("/backup")
    def backup(
        user: CurrentUser = Depends(require_admin),
        manager: AdminManager = Depends(manager_dep),
    ) -> Response:
        stamp = utc_now().strftime("%Y-%m-%d")
        return Response(
            content=manager.backup.export_json(exported_by=user.uid),
            media_type="application/json",
            headers={"Content-Disposition": f'attachment; filename="lms_backup_{stamp}.json"'},
        )

    @router.get("/session")
    def current_session(
        user: CurrentUser = Depends(require_admin),
        manager: AdminManager = Depends(manager_dep),
    ) -> dict[str, str]:
        session = manager.session.for_user(user)
        return {"uid": session.user.uid, "role": session.user.role, "theme": session.theme}

    @router.get("/settings/theme")
    def get_theme(manager: AdminManager = Depends(manager_dep)) -> dict[str, str]:
        return {"theme": manager.session.theme}

    @router.put("/settings/theme")
    def set_theme(payload: ThemePayload, manager: AdminManager = Depends(manager_dep)) -> dict[str, str]:
        try:
            manager.session.set_theme(payload.theme)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return {"theme": manager.session.theme}

    @router.post("/settings/theme/toggle")
    def toggle_theme(manager: AdminManager = Depends(manager_dep)) -> dict[str, str]:
        return {"theme": manager.session.toggle_theme()}

    app.include_router(router)
    return app


def run_api_server(
    admin_manager: AdminManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    log_level: str = "info",
) -> None:
    """Serve the API with uvicorn in the current thread until interrupted."""
    app = create_api_app(admin_manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level=log_level.lower())
    server = uvicorn.Server(config)
    server.run()
