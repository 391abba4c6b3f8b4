# routers/reports.py

import logging
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from huda.core.grading import MAX_POINTS_PER_SUBJECT, final_grade, german_grade
from huda.core.records import Term, UserRole
from huda.core.release_gate import NotComplete
from huda.crud.grades import get_catalog, get_participation, get_student_grades
from huda.crud.students import get_fullname, to_record
from huda.database import get_db
from huda.models.all_models import User
from huda.routes.students import get_student_or_404
from huda.schemas.grades_schemas import (
    CompletenessResponse, ParticipationResponse, ReleaseRequest, ReportResponse,
    StudentCompletenessResponse,
)
from huda.schemas.student import StudentResponse
from huda.services.reports import student_progress, toggle_release
from huda.utils.auth import get_current_user, verify_staff
from huda.utils.visibility import ensure_can_see_student

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reports", tags=["Report Cards"])


@router.get("/{student_id}/completeness", response_model=StudentCompletenessResponse)
def get_completeness(
    student_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_staff)
):
    student = get_student_or_404(db, student_id)
    ensure_can_see_student(current_user, student)

    record = to_record(student)
    return StudentCompletenessResponse(
        student_id=student.id,
        terms=[
            CompletenessResponse(
                term=p.term,
                graded=p.graded,
                required=p.required,
                percentage=p.percentage,
                is_complete=p.is_complete,
                is_released=record.is_released(p.term),
            )
            for p in student_progress(db, student)
        ],
    )

@router.post("/{student_id}/release", response_model=StudentResponse)
def set_report_release(
    student_id: UUID,
    request: ReleaseRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_staff)
):
    """
    Release a term's report to the student, or lock it again. Releasing
    requires a grade for every subject in the catalog; locking always works.
    """
    student = get_student_or_404(db, student_id)
    ensure_can_see_student(current_user, student)

    try:
        toggle_release(db, student, request.term, request.released)
    except NotComplete as e:
        logger.warning(str(e))
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "error": "NotComplete",
                "message": "Report is incomplete; subjects are missing grades",
                "term": e.term.value,
                "graded": e.graded,
                "required": e.required,
            },
        )
    return student

@router.get("/{student_id}/{term}", response_model=ReportResponse)
def get_report(
    student_id: UUID,
    term: Term,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Report card data. Students only see their own, and only once released.
    """
    student = get_student_or_404(db, student_id)
    ensure_can_see_student(current_user, student)

    released = to_record(student).is_released(term)
    if current_user.role == UserRole.STUDENT and not released:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Report has not been released yet")

    catalog = get_catalog(db)
    points = {g.subject: g.points for g in get_student_grades(db, student.id, term)}
    grades = {subject: points.get(subject) for subject in catalog}

    participation = get_participation(db, student.id, term)
    if participation is None:
        participation = ParticipationResponse(student_id=student.id, term=term)
    else:
        participation = ParticipationResponse.model_validate(participation)
    # bonus points count towards the total but not towards max_points
    total_points = sum(p for p in grades.values() if p is not None) + participation.bonus_points

    return ReportResponse(
        student_id=student.id,
        student_name=get_fullname(student),
        class_name=student.class_name,
        term=term,
        released=released,
        grades=grades,
        subject_grades={
            subject: german_grade(p, MAX_POINTS_PER_SUBJECT) if p is not None else None
            for subject, p in grades.items()
        },
        participation=participation,
        bonus_points=participation.bonus_points,
        total_points=total_points,
        max_points=len(catalog) * MAX_POINTS_PER_SUBJECT,
        final_grade=final_grade(total_points, len(catalog)),
    )
