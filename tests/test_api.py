import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from api.dependencies import get_coordinator, get_course_service
from syllabus_scanner.pipeline import CourseService, IcsCalendarStore
from syllabus_scanner.pipeline.errors import ApiError

from conftest import FakeParser, build_pipeline, png_bytes, syllabus

PARSED = syllabus(
    ("Midterm Exam", "2026-03-05", "exam"),
    ("Quiz 1", "2026-02-03", "quiz"),
)


@pytest.fixture
def client_for(repo):
    def make(parser):
        coordinator = build_pipeline(repo, parser)
        app = create_app()
        app.dependency_overrides[get_coordinator] = lambda: coordinator
        app.dependency_overrides[get_course_service] = lambda: CourseService(repo)
        return TestClient(app)

    return make


def upload(client):
    return client.post("/scans/pages", files=[("files", ("p1.png", png_bytes(), "image/png"))])


def test_healthz(client_for):
    with client_for(FakeParser([])) as client:
        assert client.get("/healthz").json() == {"status": "ok"}


def test_scan_review_and_commit_over_http(client_for):
    with client_for(FakeParser([PARSED])) as client:
        assert client.post("/scans").json() == {"state": "scanning"}

        resp = upload(client)
        assert resp.status_code == 200
        body = resp.json()
        assert body["state"] == "reviewing"
        rows = body["review"]["assignments"]
        assert [r["title"] for r in rows] == ["Midterm Exam", "Quiz 1"]

        resp = client.post(f"/scans/review/assignments/{rows[1]['id']}/toggle")
        assert resp.json()["review"]["selected_count"] == 1

        resp = client.post("/scans/commit")
        assert resp.status_code == 200
        body = resp.json()
        assert body["state"] == "success"
        assert body["result"]["saved_count"] == 1
        course_id = body["result"]["course_id"]

        courses = client.get("/courses").json()
        assert [c["id"] for c in courses] == [course_id]
        assert courses[0]["remaining_count"] == 1

        assert client.post("/scans/dismiss").json() == {"state": "home"}


def test_parse_failure_is_reported_with_retry(client_for):
    with client_for(FakeParser([ApiError("Overloaded", status_code=500), PARSED])) as client:
        client.post("/scans")
        body = upload(client).json()
        assert body["state"] == "loading"
        assert body["error"] == "Overloaded"
        assert body["can_retry"] is True

        assert client.post("/scans/retry").json()["state"] == "reviewing"


def test_out_of_order_calls_conflict(client_for):
    with client_for(FakeParser([])) as client:
        assert client.post("/scans/commit").status_code == 409
        assert client.post("/scans/retry").status_code == 409
        client.post("/scans")
        assert client.post("/scans").status_code == 409
        assert client.post("/scans/cancel").json() == {"state": "home"}


def test_course_routes(client_for):
    with client_for(FakeParser([PARSED])) as client:
        client.post("/scans")
        upload(client)
        course_id = client.post("/scans/commit").json()["result"]["course_id"]

        resp = client.post(f"/courses/{course_id}/assignments", json={"title": "Essay", "date": "2026-02-20", "type": "HW"})
        assert resp.status_code == 200
        essay_id = resp.json()["id"]

        resp = client.patch(f"/courses/assignments/{essay_id}", json={"time": "17:00"})
        assert resp.json()["due_date"] == "2026-02-20T17:00:00"

        assert client.post(f"/courses/assignments/{essay_id}/toggle").json()["is_completed"] is True

        bad = client.post(f"/courses/{course_id}/assignments", json={"title": "X", "date": "TBD"})
        assert bad.status_code == 422

        day = client.get("/courses/schedule", params={"day": "2026-03-05"}).json()
        assert [a["title"] for a in day["assignments"]] == ["Midterm Exam"]

        assert client.delete(f"/courses/assignments/{essay_id}").status_code == 200
        assert client.delete(f"/courses/{course_id}").status_code == 200
        assert client.get(f"/courses/{course_id}").status_code == 404


def test_parser_crash_is_reported_with_retry(client_for):
    with client_for(FakeParser([RuntimeError("boom"), PARSED])) as client:
        client.post("/scans")
        body = upload(client).json()
        assert body["state"] == "loading"
        assert body["can_retry"] is True
        assert body["busy"] is False

        assert client.post("/scans/retry").json()["state"] == "reviewing"


def test_export_consent_is_not_kept_between_requests(repo, tmp_path):
    store = IcsCalendarStore(tmp_path / "calendar")
    coordinator = build_pipeline(repo, FakeParser([PARSED]), calendar_store=store)
    app = create_app()
    app.dependency_overrides[get_coordinator] = lambda: coordinator
    with TestClient(app) as client:
        client.post("/scans")
        upload(client)
        client.post("/scans/commit")

        response = client.post("/scans/export", json={"allow_access": False})
        assert response.status_code == 403
        assert store.consent is None
