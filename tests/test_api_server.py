import json

from fastapi.testclient import TestClient
import httpx
import pytest

from lms_admin.core.admin_manager import AdminManager
from lms_admin.core.services.media_uploader import CloudinaryUploader
from lms_admin.server.api_server import create_api_app

from conftest import ADMIN_HEADERS


@pytest.fixture
def client(manager):
    with TestClient(create_api_app(manager), headers=ADMIN_HEADERS) as test_client:
        yield test_client


EXAM_BODY = {
    "title": "H2O Quiz",
    "questions": [
        {"type": "multiple-choice", "text": "Formula of water?", "options": ["H2O", "CO2", "NaCl"], "correct_answer": 0},
        {"type": "true-false", "text": "x^2 is never negative", "correct_answer": 0},
        {"type": "short-answer", "text": "Symbol of iron", "correct_answer_text": "Fe"},
    ],
}


def test_health_needs_no_identity(manager):
    with TestClient(create_api_app(manager)) as anonymous:
        assert anonymous.get("/health").json()["status"] == "ok"
        assert anonymous.get("/exams").status_code == 401
        student = {"X-User-Id": "s1", "X-User-Role": "student"}
        assert anonymous.get("/exams", headers=student).status_code == 403
        instructor = {"X-User-Id": "i1", "X-User-Role": "Instructor"}
        assert anonymous.get("/exams", headers=instructor).status_code == 200


def test_create_exam_formats_text(client):
    response = client.post("/exams", json=EXAM_BODY)
    assert response.status_code == 201
    exam = response.json()
    assert exam["title"] == "H₂O Quiz"
    assert exam["question_count"] == 3
    choice, true_false, short = exam["questions"]
    assert choice["options"] == ["H₂O", "CO₂", "NaCl"]
    assert true_false["text"] == "x² is never negative"
    assert true_false["options"] == ["True", "False"]
    assert short["options"] == [] and short["correct_answer_text"] == "Fe"
    assert client.get(f"/exams/{exam['id']}").json()["title"] == "H₂O Quiz"


def test_invalid_exam_is_rejected(client):
    body = {**EXAM_BODY, "difficulty": "Impossible"}
    assert client.post("/exams", json=body).status_code == 422
    body = {"title": "Bad", "questions": [{"text": "Q", "options": ["a", "b"], "correct_answer": 5}]}
    assert client.post("/exams", json=body).status_code == 422


def test_import_appends_questions(client):
    bank = {"questions": [{"question": "2+2?", "type": "multiple-choice", "options": ["3", "4", "5"], "correctAnswer": 1}]}
    response = client.post("/exams/exam-1/import", json={"text": json.dumps(bank)})
    assert response.status_code == 200
    assert response.json()["imported"] == 1
    assert response.json()["exam"]["question_count"] == 4


def test_import_replace(client):
    bank = [{"text": "Only one"}]
    response = client.post("/exams/exam-1/import", params={"mode": "replace"}, json={"text": json.dumps(bank)})
    assert [q["text"] for q in response.json()["exam"]["questions"]] == ["Only one"]


def test_import_errors_are_reported(client):
    response = client.post("/exams/exam-1/import", json={"text": '{"data": []}'})
    assert response.status_code == 422
    assert response.json()["detail"].startswith("Structure Error")
    response = client.post("/exams/normalize", json={"text": "{oops"})
    assert response.status_code == 422
    assert response.json()["detail"].startswith("Invalid JSON syntax")
    assert client.get("/exams/exam-1").json()["question_count"] == 3


def test_normalize_preview(client):
    response = client.post("/exams/normalize", json={"text": '[{"text": "CO2?", "options": ["a", "b"]}]'})
    assert response.json()["question_count"] == 1
    assert response.json()["questions"][0]["text"] == "CO₂?"


def test_export_and_preview(client):
    export = client.get("/exams/exam-1/export")
    assert export.headers["content-type"].startswith("application/json")
    assert "attachment" in export.headers["content-disposition"]
    assert all("id" not in q for q in export.json()["questions"])
    preview = client.get("/exams/exam-1/preview")
    assert preview.headers["content-type"].startswith("text/html")
    assert "<h1>Chemistry Basics</h1>" in preview.text
    assert client.get("/exams/missing/export").status_code == 404


def test_delete_missing_exam_is_404(client):
    assert client.delete("/exams/missing").status_code == 404


def test_format_endpoint(client):
    assert client.post("/format", json={"text": "Ca2+"}).json() == {"text": "Ca₂+"}


def test_results_listing(client):
    body = client.get("/results", params={"sort": "score_desc"}).json()
    assert [row["id"] for row in body["rows"]] == ["r1", "r3", "r2"]
    assert body["rows"][0]["student_name"] == "Alice"
    assert body["summary"]["total"] == 3
    assert body["summary"]["passed_count"] == 2
    assert body["exam_titles"] == ["Chemistry Basics"]
    assert client.get("/results", params={"search": "nobody"}).json()["rows"] == []


def test_results_csv(client):
    response = client.get("/results/export.csv")
    assert response.headers["content-type"].startswith("text/csv")
    lines = response.text.splitlines()
    assert lines[0].startswith('"Student Name","Email"')
    assert len(lines) == 4


def test_review_and_overrides(client):
    review = client.get("/results/r3/review").json()
    assert (review["attempt_number"], review["total_attempts"]) == (2, 3)
    assert review["verdicts"][2]["answer_text_available"] is False
    assert client.put("/results/r3/score", json={"score": 11}).json()["score"] == 11
    assert client.post("/results/r3/toggle-hidden").json()["is_hidden"] is True
    visible = [row["id"] for row in client.get("/results").json()["rows"]]
    assert "r3" not in visible
    assert client.delete("/results/r3").status_code == 204
    assert client.get("/results/r3/review").status_code == 404


def test_tickets(client):
    assert [t["id"] for t in client.get("/tickets").json()] == ["t2", "t1"]
    updated = client.patch("/tickets/t1", json={"is_starred": True, "admin_notes": "Call back"}).json()
    assert updated["isStarred"] is True and updated["adminNotes"] == "Call back"
    assert client.patch("/tickets/t1", json={"status": "pending"}).status_code == 422
    assert client.post("/tickets/bulk-resolve", json={"ids": ["t1", "t2"]}).json() == {"resolved": 2}
    assert client.get("/tickets").json() == []
    assert client.post("/tickets/bulk-delete", json={"ids": ["t1", "gone"]}).status_code == 502
    assert len(client.get("/tickets", params={"status": "all"}).json()) == 2


def test_notices(client):
    created = client.post("/notices", json={"title": "Holiday", "content": "School is *closed*"})
    assert created.status_code == 201
    notice_id = created.json()["id"]
    assert "<em>closed</em>" in client.get(f"/notices/{notice_id}/html").text
    assert client.post("/notices", json={"title": "x", "content": "y", "priority": "urgent"}).status_code == 422
    assert client.delete(f"/notices/{notice_id}").status_code == 204
    assert client.get("/notices").json() == []


def test_permission_denied_maps_to_403(client, manager):
    manager.store.deny_access("notices")
    response = client.get("/notices")
    assert response.status_code == 403
    assert "Permission denied" in response.json()["detail"]


def test_upload_without_media_host_is_502(client):
    response = client.post(
        "/resources/upload",
        params={"filename": "a.png", "title": "Diagram"},
        content=b"png-bytes",
        headers={"content-type": "image/png"},
    )
    assert response.status_code == 502
    assert "configuration missing" in response.json()["detail"]


def test_upload_resource(seeded_store):
    def handler(request):
        return httpx.Response(200, json={"secure_url": "https://cdn.example.com/notes.pdf"})

    uploader = CloudinaryUploader("demo", "preset", client=httpx.Client(transport=httpx.MockTransport(handler)))
    admin_manager = AdminManager(store=seeded_store, uploader=uploader)
    with TestClient(create_api_app(admin_manager), headers=ADMIN_HEADERS) as client:
        response = client.post(
            "/resources/upload",
            params={"filename": "notes.pdf", "title": "Notes", "target_class": "Grade 10"},
            content=b"%PDF-1.4",
            headers={"content-type": "application/pdf"},
        )
        assert response.status_code == 201
        resource = response.json()
        assert resource["type"] == "pdf"
        assert resource["url"] == "https://cdn.example.com/notes.pdf"
        assert client.patch(f"/resources/{resource['id']}", json={"can_download": False}).status_code == 204
        assert client.get("/resources").json()[0]["canDownload"] is False
        assert "General" in client.get("/resources/categories").json()


def test_users_and_class_groups(client):
    users = client.get("/users", params={"search": "alice"}).json()
    assert [u["uid"] for u in users] == ["s1"]
    assert client.patch("/users/s1", json={"role": "instructor"}).status_code == 204
    assert client.get("/users", params={"role": "instructor"}).json()[0]["uid"] == "s1"
    assert client.patch("/users/s1", json={"status": "gone"}).status_code == 422

    groups = client.get("/class-groups").json()
    assert groups["available"] is True
    assert groups["groups"][0]["divisions"] == ["A", "B"]
    created = client.post("/class-groups", json={"name": "Grade 12"}).json()
    assert client.post(f"/class-groups/{created['id']}/divisions", json={"name": "C"}).json() == {"divisions": ["C"]}
    assert client.delete(f"/class-groups/{created['id']}/divisions/C").json() == {"divisions": []}
    assert client.delete(f"/class-groups/{created['id']}").status_code == 204


def test_dashboard_and_backup(client):
    stats = client.get("/dashboard").json()
    assert stats["students"] == 1
    assert stats["exams"] == 1
    assert stats["open_tickets"] == 2
    assert stats["recent_activity"]

    backup = client.get("/backup")
    assert "lms_backup_" in backup.headers["content-disposition"]
    data = backup.json()
    assert data["metadata"]["exportedBy"] == "admin-1"
    assert set(data) == {"metadata", "exams", "users", "resources", "results", "classes", "notices", "helpRequests"}


def test_theme_settings(client):
    assert client.get("/settings/theme").json() == {"theme": "light"}
    assert client.post("/settings/theme/toggle").json() == {"theme": "dark"}
    assert client.put("/settings/theme", json={"theme": "light"}).json() == {"theme": "light"}
    assert client.put("/settings/theme", json={"theme": "blue"}).status_code == 422


def test_about_describes_import_format(client):
    about = client.get("/about").json()
    assert about["name"] == "LMS Admin Console"
    assert '"questions"' in about["import_help"]


def test_update_exam_replaces_document(client):
    body = {**EXAM_BODY, "title": "Renamed", "is_published": True, "target_class": "Grade 10", "target_division": "A"}
    response = client.put("/exams/exam-1", json=body)
    assert response.status_code == 200
    stored = client.get("/exams/exam-1").json()
    assert stored["title"] == "Renamed"
    assert stored["is_published"] is True
    assert stored["target_division"] == "A"
    assert client.put("/exams/missing", json=body).status_code == 404


def test_update_exam_keeps_question_ids(client):
    created = client.post("/exams", json=EXAM_BODY).json()
    original_ids = [question["id"] for question in created["questions"]]

    questions = [{**item, "id": question_id} for item, question_id in zip(EXAM_BODY["questions"], original_ids)]
    questions.append({"type": "true-false", "text": "Added later", "id": "forged-id"})
    response = client.put(f"/exams/{created['id']}", json={**EXAM_BODY, "title": "Renamed", "questions": questions})

    assert response.status_code == 200
    stored_ids = [question["id"] for question in client.get(f"/exams/{created['id']}").json()["questions"]]
    assert stored_ids[:3] == original_ids
    assert stored_ids[3] not in original_ids
    assert stored_ids[3] != "forged-id"


def test_session_reports_acting_user_and_theme(client):
    client.put("/settings/theme", json={"theme": "dark"})
    session = client.get("/session", headers={"X-User-Id": "i7", "X-User-Role": "Instructor"}).json()
    assert session == {"uid": "i7", "role": "instructor", "theme": "dark"}
