from datetime import date, datetime, timedelta, timezone
import json
import logging

import pytest

from lms_admin.core.models import HelpRequest, Result, UserProfile
from lms_admin.core.services.backup_service import BackupService
from lms_admin.core.services.dashboard_service import build_dashboard
from lms_admin.core.services.document_store import BatchCommitError, DocumentNotFoundError
from lms_admin.core.services.exam_repository import ExamRepository
from lms_admin.core.services.notice_service import NoticeService
from lms_admin.core.services.result_service import ResultService
from lms_admin.core.services.roster_service import RosterService, UserFilter, filter_users, is_user_online
from lms_admin.core.services.ticket_service import TicketService, filter_tickets

from conftest import make_exam, make_result

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


# --- Exams ---


def test_save_exam_creates_then_updates(store):
    repository = ExamRepository(store)
    exam = make_exam(exam_id=None)
    exam_id = repository.save_exam(exam)
    assert exam.id == exam_id
    stored = store.get("exams", exam_id)
    assert stored["questionCount"] == 3
    assert stored["scheduledDate"] is None
    exam.questions.pop()
    repository.save_exam(exam)
    assert store.get("exams", exam_id)["questionCount"] == 2
    assert repository.get_exam(exam_id).question_count == 2


def test_question_count_is_never_read_back(store):
    store.set("exams", "e1", {"title": "Stale", "questionCount": 99, "questions": []})
    assert ExamRepository(store).get_exam("e1").question_count == 0


def test_save_exam_requires_title(store):
    exam = make_exam(exam_id=None)
    exam.title = "  "
    with pytest.raises(ValueError):
        ExamRepository(store).save_exam(exam)


def test_exams_on_day(store):
    repository = ExamRepository(store)
    exam = make_exam(exam_id=None)
    exam.scheduled_date = datetime(2024, 3, 4, 10, tzinfo=timezone.utc)
    repository.save_exam(exam)
    repository.save_exam(make_exam(exam_id=None))
    assert [e.id for e in repository.exams_on_day(date(2024, 3, 4))] == [exam.id]
    assert repository.exams_on_day(date(2024, 3, 5)) == []


# --- Results ---


def test_override_score_is_not_clamped(seeded_store, caplog):
    service = ResultService(seeded_store, ExamRepository(seeded_store))
    result = service.get_result("r1")
    with caplog.at_level(logging.WARNING):
        service.override_score(result, 12)
    assert seeded_store.get("results", "r1")["score"] == 12
    assert "outside" in caplog.text


def test_toggle_hidden_and_delete(seeded_store):
    service = ResultService(seeded_store, ExamRepository(seeded_store))
    result = service.get_result("r2")
    assert service.toggle_hidden(result) is True
    assert seeded_store.get("results", "r2")["isHidden"] is True
    service.delete_result("r2")
    with pytest.raises(DocumentNotFoundError):
        service.get_result("r2")


def test_review_uses_current_exam(seeded_store):
    service = ResultService(seeded_store, ExamRepository(seeded_store))
    results = [Result.from_document(doc["id"], doc) for doc in seeded_store.list_documents("results")]
    review = service.review(service.get_result("r3"), results)
    assert (review.attempt_number, review.total_attempts) == (2, 3)
    assert len(review.verdicts) == 3
    seeded_store.delete("exams", "exam-1")
    assert not service.review(service.get_result("r3"), results).exam_available


# --- Tickets ---


def _ticket(ticket_id, subject, status="open", day=1):
    return HelpRequest(
        id=ticket_id,
        student_id="s1",
        student_name="Alice",
        email="alice@example.com",
        subject=subject,
        message="",
        status=status,
        created_at=datetime(2024, 1, day, tzinfo=timezone.utc),
    )


def test_filter_tickets():
    tickets = [_ticket("a", "Login", day=1), _ticket("b", "Timer", day=3), _ticket("c", "Login again", status="resolved", day=2)]
    assert [t.id for t in filter_tickets(tickets)] == ["b", "a"]
    assert [t.id for t in filter_tickets(tickets, status="all")] == ["b", "c", "a"]
    assert [t.id for t in filter_tickets(tickets, search="login", status="all")] == ["c", "a"]


def test_ticket_updates(seeded_store):
    service = TicketService(seeded_store)
    service.set_status("t1", "resolved")
    service.save_notes("t1", "Reset password")
    ticket = next(t for t in service.list_tickets() if t.id == "t1")
    assert ticket.status == "resolved" and ticket.admin_notes == "Reset password"
    assert service.toggle_star(ticket) is True
    with pytest.raises(ValueError):
        service.set_status("t1", "pending")


def test_bulk_resolve_and_delete(seeded_store):
    service = TicketService(seeded_store)
    assert service.bulk_resolve(["t1", "t2", "t1"]) == 2
    assert {t.status for t in service.list_tickets()} == {"resolved"}
    with pytest.raises(BatchCommitError):
        service.bulk_delete(["t1", "missing"])
    assert len(service.list_tickets()) == 2
    assert service.bulk_delete(["t1", "t2"]) == 2
    assert service.list_tickets() == []


# --- Notices ---


def test_notices_newest_first_and_rendered(store):
    service = NoticeService(store)
    older = service.post_notice("Old", "first")
    store.update("notices", older.id, {"date": "2020-01-01T00:00:00Z"})
    newer = service.post_notice("Exam week", "**Bring** a pencil", priority="high", is_pinned=True)
    assert [n.id for n in service.list_notices()] == [newer.id, older.id]
    html = service.render_notice_html(newer.id)
    assert "<strong>Bring</strong>" in html
    assert "priority-high pinned" in html


def test_notice_validation(store):
    service = NoticeService(store)
    with pytest.raises(ValueError):
        service.post_notice("", "content")
    with pytest.raises(ValueError):
        service.post_notice("Title", "content", priority="urgent")


# --- Roster ---


def test_online_window():
    assert is_user_online(NOW - timedelta(minutes=4), NOW)
    assert not is_user_online(NOW - timedelta(minutes=6), NOW)
    assert not is_user_online(None, NOW)


def test_filter_users():
    users = [
        UserProfile(uid="a", display_name="Alice", email="a@x.com", last_login=NOW - timedelta(minutes=1), assigned_class="Grade 10", assigned_division="A"),
        UserProfile(uid="b", display_name="Bob", email="b@x.com", status="suspended", last_login=NOW),
        UserProfile(uid="c", display_name="Carol", email="c@x.com", role="instructor"),
    ]
    ids = lambda f: [u.uid for u in filter_users(users, f, NOW)]
    assert ids(UserFilter(search="ALI")) == ["a"]
    assert ids(UserFilter(role="instructor")) == ["c"]
    assert ids(UserFilter(status="online")) == ["a"]
    assert ids(UserFilter(status="banned")) == ["b"]
    assert ids(UserFilter(class_name="Grade 10", division="A")) == ["a"]


def test_profile_updates(seeded_store):
    roster = RosterService(seeded_store)
    roster.update_profile("s1", assigned_class="Grade 11", assigned_division="")
    assert seeded_store.get("users", "s1")["assignedClass"] == "Grade 11"
    with pytest.raises(ValueError):
        roster.update_profile("s1", role="superuser")
    with pytest.raises(ValueError):
        roster.update_profile("s1", email="new@example.com")
    roster.delete_user("s1")
    assert roster.list_users() == []


def test_class_groups(store):
    roster = RosterService(store)
    group = roster.create_class_group(" Grade 9 ")
    assert group.name == "Grade 9"
    assert roster.add_division(group.id, "A") == ["A"]
    assert roster.add_division(group.id, "B") == ["A", "B"]
    assert roster.remove_division(group.id, "A") == ["B"]
    with pytest.raises(ValueError):
        roster.create_class_group("   ")
    roster.delete_class_group(group.id)
    with pytest.raises(DocumentNotFoundError):
        roster.add_division(group.id, "C")


# --- Dashboard and backup ---


def test_dashboard_counts_and_activity():
    users = [
        UserProfile(uid=f"s{i}", display_name=f"Student {i}", joined_at=NOW - timedelta(days=i), last_login=NOW - timedelta(minutes=10 * i))
        for i in range(7)
    ] + [UserProfile(uid="admin", role="admin", last_login=NOW)]
    results = [make_result(f"r{i}", submitted_at=NOW - timedelta(hours=i)) for i in range(1, 7)]
    tickets = [_ticket("a", "x"), _ticket("b", "y", status="resolved")]
    stats = build_dashboard(users, results, tickets, exam_count=2, resource_count=5, now=NOW)
    assert stats.students == 7
    # 0, 10 minutes and the admin are inside the 15-minute window.
    assert stats.online_students == 3
    assert (stats.exams, stats.resources, stats.open_tickets) == (2, 5, 1)
    assert len(stats.recent_activity) == 6
    timestamps = [item.timestamp for item in stats.recent_activity]
    assert timestamps == sorted(timestamps, reverse=True)
    assert stats.recent_activity[0].kind == "join"


def test_backup_contains_every_collection(seeded_store):
    backup = json.loads(BackupService(seeded_store).export_json(exported_by="admin-1"))
    assert backup["metadata"]["version"] == "1.0"
    assert backup["metadata"]["exportedBy"] == "admin-1"
    assert len(backup["results"]) == 3
    assert backup["classes"][0]["name"] == "Grade 10"
    assert len(backup["helpRequests"]) == 2
    assert backup["notices"] == []
