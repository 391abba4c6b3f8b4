# crud/attendance.py

from calendar import monthrange
from datetime import date
from typing import Dict, List, Optional
from uuid import UUID
from sqlalchemy.orm import Session

from huda.core.records import AttendanceEntry, StudentStatus
from huda.models.all_models import AttendanceRecord, Student


def get_attendance_record(db: Session, student_id: UUID, on_date: date) -> Optional[AttendanceRecord]:
    return db.query(AttendanceRecord).filter(
        AttendanceRecord.student_id == student_id,
        AttendanceRecord.date == on_date
    ).first()


def upsert_attendance(
    db: Session,
    student_id: UUID,
    on_date: date,
    is_present: bool,
    marked_by_user_id: Optional[UUID] = None,
) -> AttendanceRecord:
    """Create or overwrite the single record for (student, date). Does not commit."""
    record = get_attendance_record(db, student_id, on_date)
    if record:
        record.is_present = is_present
        record.marked_by_user_id = marked_by_user_id
    else:
        record = AttendanceRecord(
            student_id=student_id,
            date=on_date,
            is_present=is_present,
            marked_by_user_id=marked_by_user_id,
        )
        db.add(record)
    db.flush()
    return record


def clear_attendance(db: Session, student_id: UUID, on_date: date) -> bool:
    """Remove the record for (student, date), leaving "no record". Does not commit."""
    record = get_attendance_record(db, student_id, on_date)
    if not record:
        return False
    db.delete(record)
    db.flush()
    return True


def mark_class_present(
    db: Session,
    class_name: str,
    on_date: date,
    marked_by_user_id: Optional[UUID] = None,
) -> List[AttendanceRecord]:
    students = db.query(Student).filter(
        Student.class_name == class_name,
        Student.status == StudentStatus.ACTIVE
    ).all()
    return [
        upsert_attendance(db, student.id, on_date, True, marked_by_user_id)
        for student in students
    ]


def get_student_history(
    db: Session,
    student_id: UUID,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[AttendanceRecord]:
    query = db.query(AttendanceRecord).filter(AttendanceRecord.student_id == student_id)
    if start_date:
        query = query.filter(AttendanceRecord.date >= start_date)
    if end_date:
        query = query.filter(AttendanceRecord.date <= end_date)
    return query.order_by(AttendanceRecord.date.desc()).all()


def load_attendance_snapshot(db: Session) -> List[AttendanceEntry]:
    rows = db.query(
        AttendanceRecord.student_id,
        AttendanceRecord.date,
        AttendanceRecord.is_present
    ).all()
    return [
        AttendanceEntry(student_id=row.student_id, date=row.date, is_present=row.is_present)
        for row in rows
    ]


def monthly_class_summary(
    db: Session,
    class_name: str,
    year: int,
    month: int,
    include_dismissed: bool = False,
) -> List[Dict]:
    """Present/absent counts per student of a class for one calendar month.
    Dismissed students are left out unless asked for."""
    first_day = date(year, month, 1)
    last_day = date(year, month, monthrange(year, month)[1])

    query = db.query(Student).filter(Student.class_name == class_name)
    if not include_dismissed:
        query = query.filter(Student.status == StudentStatus.ACTIVE)
    students = query.order_by(Student.last_name, Student.first_name).all()
    records = db.query(AttendanceRecord).filter(
        AttendanceRecord.student_id.in_([s.id for s in students]),
        AttendanceRecord.date >= first_day,
        AttendanceRecord.date <= last_day
    ).all()

    summary = []
    for student in students:
        own = [r for r in records if r.student_id == student.id]
        present_days = sum(1 for r in own if r.is_present)
        absent_days = len(own) - present_days
        summary.append({
            "student_id": student.id,
            "student_name": f"{student.first_name} {student.last_name}",
            "status": student.status,
            "recorded_days": len(own),
            "present_days": present_days,
            "absent_days": absent_days,
            "attendance_percentage": round(present_days / len(own) * 100, 2) if own else 0.0,
        })
    return summary
