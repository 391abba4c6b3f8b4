import logging
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from huda.core.records import StudentStatus
from huda.crud.students import create_student_with_account
from huda.database import get_db
from huda.models.all_models import Student, User
from huda.schemas.student import StudentCreate, StudentListResponse, StudentResponse, StudentUpdate
from huda.utils.auth import get_current_user, verify_principal, verify_staff
from huda.utils.visibility import ensure_can_see_student, visible_students_query

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/students", tags=["students"])


# Helper Functions
def get_student_or_404(db: Session, student_id: UUID) -> Student:
    student = db.query(Student).filter(Student.id == student_id).first()
    if not student:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
    return student


@router.post("/", response_model=StudentResponse, status_code=status.HTTP_201_CREATED)
def register_student(
    student_in: StudentCreate,
    db: Session = Depends(get_db),
    _: User = Depends(verify_principal)
):
    """
    Register a new student. Students always start out active.
    """
    if student_in.username:
        if not student_in.password:
            raise HTTPException(status_code=400, detail="A password is required with a username")
        if db.query(User).filter(User.username == student_in.username).first():
            raise HTTPException(status_code=400, detail="Username already registered")

    return create_student_with_account(db, **student_in.model_dump())

@router.get("/", response_model=StudentListResponse)
def list_students(
    student_status: Optional[StudentStatus] = Query(None, alias="status"),
    class_name: Optional[str] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Roster visible to the caller: everyone for the principal, assigned
    classes for teachers, the own record for students.
    """
    query = visible_students_query(db.query(Student), current_user)
    if student_status:
        query = query.filter(Student.status == student_status)
    if class_name:
        query = query.filter(Student.class_name == class_name)
    students = query.order_by(Student.class_name, Student.last_name, Student.first_name).all()

    if search:
        needle = search.lower()
        students = [s for s in students if needle in f"{s.first_name} {s.last_name}".lower()]

    return {"students": students, "total_count": len(students)}

@router.get("/{student_id}", response_model=StudentResponse)
def get_student(
    student_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    student = get_student_or_404(db, student_id)
    ensure_can_see_student(current_user, student)
    return student

@router.patch("/{student_id}", response_model=StudentResponse)
def update_student(
    student_id: UUID,
    update: StudentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_staff)
):
    student = get_student_or_404(db, student_id)
    ensure_can_see_student(current_user, student)

    for field, value in update.model_dump(exclude_unset=True).items():
        setattr(student, field, value)
    db.commit()
    db.refresh(student)
    return student

@router.post("/{student_id}/restore", response_model=StudentResponse)
def restore_student(
    student_id: UUID,
    db: Session = Depends(get_db),
    _: User = Depends(verify_principal)
):
    """
    Move a dismissed student back to the active roster.

    The next escalation run still sees the full attendance history, so a
    student whose latest records remain a long absence run is dismissed again.
    """
    student = get_student_or_404(db, student_id)
    if student.status != StudentStatus.DISMISSED:
        raise HTTPException(status_code=400, detail="Student is not dismissed")

    student.status = StudentStatus.ACTIVE
    db.commit()
    db.refresh(student)
    logger.info(f"Student {student.id} restored to active")
    return student

@router.delete("/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_student(
    student_id: UUID,
    db: Session = Depends(get_db),
    _: User = Depends(verify_principal)
):
    """
    Administrative removal, including attendance, grades and login.
    Not the same as dismissal.
    """
    student = get_student_or_404(db, student_id)
    db.delete(student)
    db.commit()
    logger.info(f"Student {student_id} removed")
    return None
