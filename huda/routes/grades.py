# routers/grades.py

from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from huda.core.records import Term
from huda.crud.grades import get_participation, get_student_grades, upsert_grade, upsert_participation
from huda.database import get_db
from huda.models.all_models import User
from huda.routes.students import get_student_or_404
from huda.schemas.grades_schemas import GradeInput, GradeResponse, ParticipationInput, ParticipationResponse
from huda.utils.auth import verify_staff
from huda.utils.visibility import ensure_can_see_student


router = APIRouter(prefix="/api/grades", tags=["Grades"])

@router.put("/", response_model=GradeResponse)
def submit_grade(
    data: GradeInput,
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_staff)
):
    """
    Enter or replace the points for one subject in one term.
    """
    ensure_can_see_student(current_user, get_student_or_404(db, data.student_id))
    return upsert_grade(db, data.student_id, data.subject, data.term, data.points)

@router.get("/student/{student_id}", response_model=List[GradeResponse])
def list_student_grades(
    student_id: UUID,
    term: Optional[Term] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_staff)
):
    ensure_can_see_student(current_user, get_student_or_404(db, student_id))
    return get_student_grades(db, student_id, term)

@router.put("/participation", response_model=ParticipationResponse)
def submit_participation(
    data: ParticipationInput,
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_staff)
):
    """
    Rate behaviour, presentation and punctuality, and award up to 5 bonus
    points. Fields left out keep their current value.
    """
    ensure_can_see_student(current_user, get_student_or_404(db, data.student_id))
    fields = data.model_dump(exclude={"student_id", "term"}, exclude_none=True)
    return upsert_participation(db, data.student_id, data.term, **fields)

@router.get("/participation/{student_id}", response_model=ParticipationResponse)
def read_participation(
    student_id: UUID,
    term: Term,
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_staff)
):
    ensure_can_see_student(current_user, get_student_or_404(db, student_id))
    participation = get_participation(db, student_id, term)
    if participation is None:
        return ParticipationResponse(student_id=student_id, term=term)
    return participation
