# tests/test_students_api.py
from datetime import date

from huda.core.records import StudentStatus
from huda.models.all_models import AttendanceRecord, Student, User


def register(client, headers, **overrides):
    payload = {"first_name": "Yusuf", "last_name": "Demir", "class_name": "Klasse A"}
    payload.update(overrides)
    return client.post("/api/students/", json=payload, headers=headers)


def test_registered_student_starts_active(client, principal_headers):
    response = register(client, principal_headers, gender="Junge", birth_date="2014-02-03")

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "active"
    assert body["report_released_halbjahr"] is False
    assert body["report_released_abschluss"] is False


def test_only_principal_registers(client, teacher_headers):
    assert register(client, teacher_headers).status_code == 403


def test_registration_with_login(client, principal_headers, db_session):
    response = register(client, principal_headers, username="yusuf", password="yusuf123")

    assert response.status_code == 201
    account = db_session.query(User).filter(User.username == "yusuf").one()
    assert str(account.student_id) == response.json()["id"]

    assert register(client, principal_headers, username="yusuf", password="other123").status_code == 400
    assert register(client, principal_headers, username="nopass").status_code == 400


def test_blank_names_are_rejected(client, principal_headers):
    assert register(client, principal_headers, first_name="  ").status_code == 422


def test_roster_visibility(client, principal_headers, teacher_headers, make_student):
    make_student(first_name="Ali", class_name="Klasse A")
    make_student(first_name="Zayd", class_name="Klasse B")
    make_student(first_name="Musa", class_name="Klasse A", status=StudentStatus.DISMISSED)

    everyone = client.get("/api/students/", headers=principal_headers).json()
    assert everyone["total_count"] == 3

    mine = client.get("/api/students/", headers=teacher_headers).json()
    assert sorted(s["first_name"] for s in mine["students"]) == ["Ali", "Musa"]

    active = client.get("/api/students/", params={"status": "active"}, headers=teacher_headers).json()
    assert [s["first_name"] for s in active["students"]] == ["Ali"]

    red_list = client.get("/api/students/", params={"status": "dismissed"}, headers=principal_headers).json()
    assert [s["first_name"] for s in red_list["students"]] == ["Musa"]


def test_search(client, principal_headers, make_student):
    make_student(first_name="Ali", last_name="Kaya")
    make_student(first_name="Aisha", last_name="Celik")

    result = client.get("/api/students/", params={"search": "kaya"}, headers=principal_headers).json()

    assert [s["first_name"] for s in result["students"]] == ["Ali"]


def test_teacher_cannot_view_other_class(client, teacher_headers, make_student):
    student = make_student(class_name="Klasse B")

    assert client.get(f"/api/students/{student.id}", headers=teacher_headers).status_code == 403


def test_update_does_not_touch_status(client, teacher_headers, make_student):
    student = make_student()

    response = client.patch(
        f"/api/students/{student.id}",
        json={"guardian": "Fatma Demir", "status": "dismissed"},
        headers=teacher_headers,
    )

    assert response.status_code == 200
    assert response.json()["guardian"] == "Fatma Demir"
    assert response.json()["status"] == "active"


def test_administrative_removal(client, principal_headers, teacher_headers, make_student, db_session):
    student = make_student()
    student_id = student.id
    client.put(
        "/api/attendance/",
        json={"student_id": str(student_id), "date": date(2021, 5, 1).isoformat(), "is_present": True},
        headers=teacher_headers,
    )

    assert client.delete(f"/api/students/{student_id}", headers=teacher_headers).status_code == 403
    assert client.delete(f"/api/students/{student_id}", headers=principal_headers).status_code == 204

    db_session.expire_all()
    assert db_session.query(Student).filter(Student.id == student_id).first() is None
    assert db_session.query(AttendanceRecord).filter(AttendanceRecord.student_id == student_id).count() == 0
    assert client.get(f"/api/students/{student_id}", headers=principal_headers).status_code == 404
