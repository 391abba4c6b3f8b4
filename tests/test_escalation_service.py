# tests/test_escalation_service.py
from datetime import date, datetime, timedelta

import pytest

from huda.config import settings
from huda.models.all_models import AttendanceRecord, EscalationRunHistory, Notification
from huda.services import escalation as escalation_service
from huda.services.escalation import get_last_run, run_escalation

NOW = datetime(2024, 3, 20)


def absent_days(db, student, count, start=date(2024, 3, 1)):
    for i in range(count):
        db.add(AttendanceRecord(student_id=student.id, date=start + timedelta(days=i), is_present=False))
    db.commit()


def test_warnings_stay_sent_after_the_sink_overflows(db_session, make_student, monkeypatch):
    monkeypatch.setattr(settings, "NOTIFICATION_CAP", 3)
    for i in range(5):
        absent_days(db_session, make_student(first_name=f"Kind{i}"), 6)

    first = run_escalation(db_session, now=NOW)
    second = run_escalation(db_session, now=NOW)
    third = run_escalation(db_session, now=NOW)

    assert len(first.notifications) == 5
    assert len(second.notifications) == 0
    assert len(third.notifications) == 0
    assert len(second.flagged) == 5
    assert db_session.query(Notification).count() == 3


def test_failed_run_is_recorded(db_session, make_student, monkeypatch):
    student = make_student()
    absent_days(db_session, student, 1)

    def broken(*args, **kwargs):
        raise RuntimeError("snapshot unreadable")

    monkeypatch.setattr(escalation_service, "evaluate_attendance", broken)

    # the pending write is rolled back with the run
    db_session.add(AttendanceRecord(student_id=student.id, date=date(2024, 3, 2), is_present=True))
    with pytest.raises(RuntimeError):
        run_escalation(db_session, now=NOW, trigger="manual")

    run = db_session.query(EscalationRunHistory).one()
    assert run.status == "failed"
    assert run.trigger == "manual"
    assert run.error_message == "snapshot unreadable"
    assert db_session.query(AttendanceRecord).count() == 1

    last = get_last_run(db_session)
    assert last["status"] == "failed"
    assert last["error_message"] == "snapshot unreadable"


def test_completed_run_is_recorded(db_session, make_student):
    absent_days(db_session, make_student(), 16)

    result = run_escalation(db_session, now=NOW, trigger="scheduled")

    run = db_session.query(EscalationRunHistory).one()
    assert run.status == "completed"
    assert run.dismissed_count == len(result.dismissed) == 1
    assert run.evaluated_students == 1
