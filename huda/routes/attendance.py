from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import List, Optional
import datetime
from datetime import date

from huda.config import settings
from huda.core.escalation import group_by_student, monthly_absences, trailing_absence_streak
from huda.core.records import StudentStatus
from huda.crud.attendance import (
    clear_attendance, get_student_history, load_attendance_snapshot,
    mark_class_present, monthly_class_summary, upsert_attendance,
)
from huda.database import get_db
from huda.models.all_models import Student, User, local_now, local_today
from huda.routes.students import get_student_or_404
from huda.services.escalation import run_escalation
from huda.utils.auth import get_current_user, verify_staff
from huda.utils.visibility import ensure_can_see_class, ensure_can_see_student, visible_students_query

router = APIRouter(prefix="/api/attendance", tags=["Attendance"])


class AttendanceMark(BaseModel):
    student_id: UUID
    date: datetime.date
    is_present: bool

class AttendanceResponse(BaseModel):
    student_id: UUID
    date: datetime.date
    is_present: bool

    class Config:
        from_attributes = True

class AttendanceWriteResponse(BaseModel):
    records: List[AttendanceResponse]
    dismissed: List[UUID] = []
    notifications_emitted: int = 0

class MonthlySummaryRow(BaseModel):
    student_id: UUID
    student_name: str
    status: StudentStatus
    recorded_days: int
    present_days: int
    absent_days: int
    attendance_percentage: float

class MonthlySummaryResponse(BaseModel):
    class_name: str
    year: int
    month: int
    students: List[MonthlySummaryRow]

class FlaggedStudentResponse(BaseModel):
    student_id: UUID
    student_name: str
    class_name: str
    monthly_absences: int
    trailing_streak: int

class FlaggedListResponse(BaseModel):
    year: int
    month: int
    threshold: int
    students: List[FlaggedStudentResponse]


def attendance_write_response(db: Session, records) -> AttendanceWriteResponse:
    result = run_escalation(db, trigger="attendance")
    return AttendanceWriteResponse(
        records=[AttendanceResponse.model_validate(r) for r in records],
        dismissed=list(result.dismissed),
        notifications_emitted=len(result.notifications),
    )


@router.put("/", response_model=AttendanceWriteResponse)
def mark_attendance(
    mark: AttendanceMark,
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_staff)
):
    """
    Record presence or absence for one student on one date. An existing
    record for that date is overwritten.
    """
    student = get_student_or_404(db, mark.student_id)
    ensure_can_see_student(current_user, student)

    record = upsert_attendance(db, student.id, mark.date, mark.is_present, current_user.id)
    return attendance_write_response(db, [record])

@router.delete("/{student_id}/{attendance_date}", status_code=status.HTTP_204_NO_CONTENT)
def clear_attendance_record(
    student_id: UUID,
    attendance_date: date,
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_staff)
):
    """
    Remove the record for a date. No record is not the same as absent.
    """
    student = get_student_or_404(db, student_id)
    ensure_can_see_student(current_user, student)

    if not clear_attendance(db, student.id, attendance_date):
        raise HTTPException(status_code=404, detail="Attendance record not found")
    run_escalation(db, trigger="attendance")
    return None

@router.post("/class/{class_name}/present", response_model=AttendanceWriteResponse)
def mark_all_present(
    class_name: str,
    attendance_date: Optional[date] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_staff)
):
    """
    Mark every active student of a class present for a date (default today).
    """
    ensure_can_see_class(current_user, class_name)
    records = mark_class_present(db, class_name, attendance_date or local_today(), current_user.id)
    return attendance_write_response(db, records)

@router.get("/student/{student_id}", response_model=List[AttendanceResponse])
def get_student_attendance_history(
    student_id: UUID,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Attendance history for a student, newest first.
    """
    student = get_student_or_404(db, student_id)
    ensure_can_see_student(current_user, student)
    return get_student_history(db, student_id, start_date, end_date)

@router.get("/class/{class_name}/monthly", response_model=MonthlySummaryResponse)
def get_monthly_summary(
    class_name: str,
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    include_dismissed: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_staff)
):
    ensure_can_see_class(current_user, class_name)
    return MonthlySummaryResponse(
        class_name=class_name,
        year=year,
        month=month,
        students=monthly_class_summary(db, class_name, year, month, include_dismissed),
    )

@router.get("/flagged", response_model=FlaggedListResponse)
def get_flagged_students(
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_staff)
):
    """
    Yellow list: active students at or above the monthly absence threshold.
    """
    now = local_now()
    ledger = group_by_student(load_attendance_snapshot(db))
    students = visible_students_query(db.query(Student), current_user).filter(
        Student.status == StudentStatus.ACTIVE
    ).order_by(Student.class_name, Student.last_name).all()

    flagged = []
    for student in students:
        records = ledger.get(student.id, [])
        absences = monthly_absences(records, now.year, now.month)
        if absences >= settings.WARNING_ABSENCE_THRESHOLD:
            flagged.append(FlaggedStudentResponse(
                student_id=student.id,
                student_name=f"{student.first_name} {student.last_name}",
                class_name=student.class_name,
                monthly_absences=absences,
                trailing_streak=trailing_absence_streak(records),
            ))

    return FlaggedListResponse(
        year=now.year,
        month=now.month,
        threshold=settings.WARNING_ABSENCE_THRESHOLD,
        students=flagged,
    )
