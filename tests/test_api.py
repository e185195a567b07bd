from __future__ import annotations

import pytest

from src.school_ops.school_ops.container import build_container
from src.school_ops.school_ops.database.bootstrap import ensure_demo_users
from src.school_ops.school_ops.main import create_app


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    container = build_container(backend="memory")
    ensure_demo_users(container)
    app = create_app(container)
    return app.test_client()


def _login(client, email, password):
    client.post("/api/logout")
    return client.post("/api/login", json={"email": email, "password": password})


def test_health(client):
    assert client.get("/api/health").get_json() == {"status": "ok"}


def test_login_required(client):
    res = client.get("/api/me")

    assert res.status_code == 401
    assert res.get_json()["error"] == "LOGIN_REQUIRED"


def test_login_errors_carry_codes(client):
    unknown = _login(client, "ghost@school.test", "x")
    wrong = _login(client, "admin@school.test", "nope")

    assert unknown.status_code == 404
    assert unknown.get_json()["error"] == "USER_NOT_FOUND"
    assert wrong.status_code == 401
    assert wrong.get_json()["error"] == "INVALID_CREDENTIAL"


def test_student_session_is_short_and_not_persistent(client):
    res = _login(client, "student@school.test", "  garcia")
    body = res.get_json()

    assert res.status_code == 200
    assert body["principal"]["role"] == "student"
    assert body["persistent"] is False
    assert body["expiresIn"] == 8 * 3600
    assert client.get("/api/me").get_json()["principal"]["id"] == "demo-student"


def test_staff_session_is_persistent(client):
    body = _login(client, "teacher@school.test", "teacher123").get_json()

    assert body["persistent"] is True
    assert body["expiresIn"] == 7 * 24 * 3600


def test_workshop_enrollment_and_attendance_flow(client):
    _login(client, "admin@school.test", "admin123")
    res = client.post(
        "/api/workshops",
        json={
            "title": "Robotics",
            "teacherId": "demo-teacher",
            "schedule": "Mon 15:00",
            "maxParticipants": 1,
            "enrollmentDeadline": "2999-12-31",
        },
    )
    assert res.status_code == 201
    workshop_id = res.get_json()["workshop"]["id"]

    _login(client, "student@school.test", "Garcia")
    enrolled = client.post(f"/api/workshops/{workshop_id}/enrollment")
    again = client.post(f"/api/workshops/{workshop_id}/enrollment")
    assert enrolled.get_json()["workshop"]["participants"] == ["demo-student"]
    assert again.status_code == 409
    assert again.get_json()["error"] == "ALREADY_ENROLLED"

    _login(client, "teacher@school.test", "teacher123")
    assert client.get(f"/api/workshops/{workshop_id}/roster").get_json() == {"participants": ["demo-student"]}
    for status in ("present", "late"):
        res = client.post(
            "/api/attendance",
            json={
                "date": "2024-05-20",
                "workshopId": workshop_id,
                "records": [{"studentId": "demo-student", "status": status}],
            },
        )
        assert res.status_code == 200
    dup = client.post(
        "/api/attendance",
        json={
            "date": "2024-05-21",
            "grade": "1ro",
            "section": "A",
            "records": [
                {"studentId": "demo-student", "status": "present"},
                {"studentId": "demo-student", "status": "absent"},
            ],
        },
    )
    assert dup.status_code == 400
    assert dup.get_json()["error"] == "DUPLICATE_STUDENT_IN_BATCH"

    _login(client, "student@school.test", "garcia")
    body = client.get("/api/students/demo-student/attendance").get_json()
    assert body["history"] == [
        {"date": "2024-05-20", "context": {"workshopId": workshop_id}, "status": "late"}
    ]
    assert body["stats"]["total"] == 1
    assert body["stats"]["attendanceRate"] == 100


def test_student_cannot_publish_announcements(client):
    _login(client, "student@school.test", "garcia")
    res = client.post("/api/announcements", json={"title": "x", "message": "y"})

    assert res.status_code == 403
    assert res.get_json()["error"] == "UNAUTHORIZED"


def test_announcement_feed_per_role(client):
    _login(client, "admin@school.test", "admin123")
    client.post("/api/announcements", json={"title": "Reunion", "message": "Viernes", "targetAudience": "parents"})
    hidden = client.post(
        "/api/announcements", json={"title": "Old", "message": "...", "targetAudience": "parents"}
    ).get_json()["announcement"]
    client.put(f"/api/announcements/{hidden['id']}/active", json={"active": False})

    _login(client, "parent@school.test", "parent123")
    feed = client.get("/api/announcements").get_json()["announcements"]
    assert [a["title"] for a in feed] == ["Reunion"]
    assert client.get("/api/announcements/unread-count").get_json() == {"unread": 1}


def test_parent_links_child_and_sees_summary(client):
    _login(client, "parent@school.test", "parent123")
    res = client.post(
        "/api/children",
        json={"apellidoPaterno": "garcia", "apellidoMaterno": "LOPEZ", "grade": "1ro", "section": "a"},
    )
    assert res.status_code == 201
    assert res.get_json()["child"]["id"] == "demo-student"

    summary = client.get("/api/attendance/summary").get_json()
    assert summary["children"]["demo-student"]["total"] == 0
    assert summary["combined"]["attendanceRate"] == 0


def test_register_parent(client):
    res = client.post(
        "/api/register",
        json={"firstName": "Ana", "lastName": "Ruiz", "email": "ana@school.test", "password": "abcdef"},
    )
    dup = client.post(
        "/api/register",
        json={"firstName": "Ana", "lastName": "Ruiz", "email": "ana@school.test", "password": "abcdef"},
    )

    assert res.status_code == 201
    assert res.get_json()["user"]["role"] == "parent"
    assert dup.status_code == 409
    assert _login(client, "ana@school.test", "abcdef").status_code == 200


def test_malformed_attendance_records_are_a_bad_request(client):
    _login(client, "teacher@school.test", "teacher123")
    res = client.post(
        "/api/attendance",
        json={"date": "2024-05-20", "grade": "1ro", "section": "A", "records": ["demo-student"]},
    )

    assert res.status_code == 400
    assert res.get_json()["error"] == "VALIDATION_ERROR"


def test_non_text_password_is_a_bad_request(client):
    res = client.post("/api/login", json={"email": "student@school.test", "password": 123})

    assert res.status_code == 400
