# tests/test_attendance_api.py
from datetime import date, timedelta

from huda.core.records import StudentStatus
from huda.models.all_models import EscalationRunHistory, Notification, local_today


def mark(client, headers, student_id, day, is_present):
    return client.put(
        "/api/attendance/",
        json={"student_id": str(student_id), "date": day.isoformat(), "is_present": is_present},
        headers=headers,
    )


def this_month(day):
    return local_today().replace(day=day)


def notifications(client, headers, kind=None):
    response = client.get("/api/notifications/", headers=headers)
    assert response.status_code == 200
    return [n for n in response.json() if kind is None or n["kind"] == kind]


def test_sixteen_absences_dismiss_student(client, teacher_headers, principal_headers, make_student):
    student = make_student()
    start = date(2020, 1, 6)

    for i in range(15):
        response = mark(client, teacher_headers, student.id, start + timedelta(days=i), False)
        assert response.status_code == 200
        assert response.json()["dismissed"] == []

    response = mark(client, teacher_headers, student.id, start + timedelta(days=15), False)

    assert response.status_code == 200
    assert response.json()["dismissed"] == [str(student.id)]
    assert response.json()["notifications_emitted"] == 1

    detail = client.get(f"/api/students/{student.id}", headers=principal_headers).json()
    assert detail["status"] == StudentStatus.DISMISSED.value

    dismissals = notifications(client, principal_headers, "dismissal")
    assert len(dismissals) == 1
    assert str(student.id) in dismissals[0]["message"]
    assert notifications(client, teacher_headers, "dismissal") == []


def test_further_marks_do_not_repeat_dismissal(client, teacher_headers, principal_headers, make_student):
    student = make_student()
    start = date(2020, 1, 6)
    for i in range(18):
        mark(client, teacher_headers, student.id, start + timedelta(days=i), False)

    assert len(notifications(client, principal_headers, "dismissal")) == 1


def test_monthly_warning_sent_once(client, teacher_headers, make_student):
    student = make_student()

    for day in range(1, 6):
        mark(client, teacher_headers, student.id, this_month(day), False)
    assert notifications(client, teacher_headers, "monthly-absence-warning") == []

    response = mark(client, teacher_headers, student.id, this_month(6), False)
    assert response.json()["notifications_emitted"] == 1

    response = mark(client, teacher_headers, student.id, this_month(7), False)
    assert response.json()["notifications_emitted"] == 0

    warnings = notifications(client, teacher_headers, "monthly-absence-warning")
    assert len(warnings) == 1
    assert str(student.id) in warnings[0]["message"]

    flagged = client.get("/api/attendance/flagged", headers=teacher_headers).json()
    assert [s["student_id"] for s in flagged["students"]] == [str(student.id)]
    assert flagged["students"][0]["monthly_absences"] == 7


def test_overwrite_keeps_one_record_per_day(client, teacher_headers, make_student):
    student = make_student()
    day = date(2021, 5, 1)

    mark(client, teacher_headers, student.id, day, False)
    mark(client, teacher_headers, student.id, day, True)

    history = client.get(f"/api/attendance/student/{student.id}", headers=teacher_headers).json()
    assert history == [{"student_id": str(student.id), "date": day.isoformat(), "is_present": True}]


def test_clear_record(client, teacher_headers, make_student):
    student = make_student()
    day = date(2021, 5, 1)
    mark(client, teacher_headers, student.id, day, False)

    response = client.delete(f"/api/attendance/{student.id}/{day.isoformat()}", headers=teacher_headers)
    assert response.status_code == 204
    assert client.get(f"/api/attendance/student/{student.id}", headers=teacher_headers).json() == []

    response = client.delete(f"/api/attendance/{student.id}/{day.isoformat()}", headers=teacher_headers)
    assert response.status_code == 404


def test_clearing_a_presence_can_complete_a_streak(client, teacher_headers, make_student):
    student = make_student()
    start = date(2020, 1, 6)
    for i in range(16):
        mark(client, teacher_headers, student.id, start + timedelta(days=i), False)
        if i == 7:
            mark(client, teacher_headers, student.id, start + timedelta(days=i), True)

    assert client.get(f"/api/students/{student.id}", headers=teacher_headers).json()["status"] == "active"

    day = (start + timedelta(days=7)).isoformat()
    client.delete(f"/api/attendance/{student.id}/{day}", headers=teacher_headers)
    mark(client, teacher_headers, student.id, start + timedelta(days=7), False)

    assert client.get(f"/api/students/{student.id}", headers=teacher_headers).json()["status"] == "dismissed"


def test_history_is_newest_first_and_filterable(client, teacher_headers, make_student):
    student = make_student()
    for i in range(5):
        mark(client, teacher_headers, student.id, date(2021, 5, 1) + timedelta(days=i), True)

    history = client.get(
        f"/api/attendance/student/{student.id}",
        params={"start_date": "2021-05-02", "end_date": "2021-05-04"},
        headers=teacher_headers,
    ).json()

    assert [r["date"] for r in history] == ["2021-05-04", "2021-05-03", "2021-05-02"]


def test_mark_all_present_skips_dismissed(client, teacher_headers, make_student):
    first = make_student(first_name="Ali")
    second = make_student(first_name="Aisha")
    make_student(first_name="Musa", status=StudentStatus.DISMISSED)
    make_student(first_name="Zayd", class_name="Klasse B")

    response = client.post(
        "/api/attendance/class/Klasse A/present",
        params={"attendance_date": "2021-05-01"},
        headers=teacher_headers,
    )

    assert response.status_code == 200
    marked = {r["student_id"] for r in response.json()["records"]}
    assert marked == {str(first.id), str(second.id)}


def test_teacher_cannot_mark_other_classes(client, teacher_headers, make_student):
    student = make_student(class_name="Klasse B")

    assert mark(client, teacher_headers, student.id, date(2021, 5, 1), False).status_code == 403
    response = client.post("/api/attendance/class/Klasse B/present", headers=teacher_headers)
    assert response.status_code == 403


def test_unknown_student(client, teacher_headers):
    response = mark(client, teacher_headers, "00000000-0000-0000-0000-000000000000", date(2021, 5, 1), False)
    assert response.status_code == 404


def test_restore_then_rerun_dismisses_again(client, teacher_headers, principal_headers, make_student):
    student = make_student()
    start = date(2020, 1, 6)
    for i in range(16):
        mark(client, teacher_headers, student.id, start + timedelta(days=i), False)

    response = client.post(f"/api/students/{student.id}/restore", headers=principal_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "active"

    response = client.post("/api/schedulers/trigger-escalation", headers=principal_headers)
    assert response.status_code == 200
    assert response.json()["dismissed"] == [str(student.id)]
    assert len(notifications(client, principal_headers, "dismissal")) == 2


def test_restore_then_presence_keeps_student_active(client, teacher_headers, principal_headers, make_student):
    student = make_student()
    start = date(2020, 1, 6)
    for i in range(16):
        mark(client, teacher_headers, student.id, start + timedelta(days=i), False)

    client.post(f"/api/students/{student.id}/restore", headers=principal_headers)
    response = mark(client, teacher_headers, student.id, start + timedelta(days=16), True)

    assert response.json()["dismissed"] == []
    assert client.get(f"/api/students/{student.id}", headers=principal_headers).json()["status"] == "active"


def test_restore_requires_dismissed_student(client, principal_headers, make_student):
    student = make_student()

    response = client.post(f"/api/students/{student.id}/restore", headers=principal_headers)

    assert response.status_code == 400


def test_monthly_summary(client, teacher_headers, make_student):
    student = make_student()
    mark(client, teacher_headers, student.id, date(2021, 5, 1), True)
    mark(client, teacher_headers, student.id, date(2021, 5, 2), False)
    mark(client, teacher_headers, student.id, date(2021, 6, 1), False)

    response = client.get(
        "/api/attendance/class/Klasse A/monthly",
        params={"year": 2021, "month": 5},
        headers=teacher_headers,
    )

    assert response.status_code == 200
    row = response.json()["students"][0]
    assert row["present_days"] == 1
    assert row["absent_days"] == 1
    assert row["attendance_percentage"] == 50.0

    response = client.get(
        "/api/attendance/class/Klasse A/monthly",
        params={"year": 2021, "month": 13},
        headers=teacher_headers,
    )
    assert response.status_code == 422


def test_every_write_records_a_run(client, teacher_headers, make_student, db_session):
    student = make_student()
    mark(client, teacher_headers, student.id, date(2021, 5, 1), True)
    mark(client, teacher_headers, student.id, date(2021, 5, 2), True)

    runs = db_session.query(EscalationRunHistory).all()
    assert len(runs) == 2
    assert {r.trigger for r in runs} == {"attendance"}
    assert db_session.query(Notification).count() == 0


def test_monthly_summary_leaves_out_dismissed(client, teacher_headers, make_student):
    here = make_student(first_name="Here")
    gone = make_student(first_name="Gone", status=StudentStatus.DISMISSED)
    params = {"year": 2021, "month": 5}

    rows = client.get("/api/attendance/class/Klasse A/monthly", params=params, headers=teacher_headers).json()["students"]
    assert [r["student_id"] for r in rows] == [str(here.id)]
    assert all(r["status"] == "active" for r in rows)

    params["include_dismissed"] = True
    rows = client.get("/api/attendance/class/Klasse A/monthly", params=params, headers=teacher_headers).json()["students"]
    assert {r["student_id"] for r in rows} == {str(here.id), str(gone.id)}
