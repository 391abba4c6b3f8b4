# crud/grades.py

from typing import List, Optional
from uuid import UUID
from sqlalchemy import func
from sqlalchemy.orm import Session
from fastapi import HTTPException

from huda.core.records import GradeEntry, Term
from huda.models.all_models import Grade, Participation, Subject, Student, local_today


def get_catalog(db: Session) -> List[str]:
    """Subject names in catalog order"""
    return [s.name for s in db.query(Subject).order_by(Subject.position, Subject.name).all()]


def add_subject(db: Session, name: str) -> Subject:
    if db.query(Subject).filter(Subject.name == name).first():
        raise HTTPException(status_code=400, detail="Subject already exists")

    next_position = (db.query(func.max(Subject.position)).scalar() or 0) + 1
    subject = Subject(name=name, position=next_position)
    db.add(subject)
    db.commit()
    db.refresh(subject)
    return subject


def remove_subject(db: Session, name: str) -> None:
    """Drop a subject from the catalog. Existing grades are kept."""
    subject = db.query(Subject).filter(Subject.name == name).first()
    if not subject:
        raise HTTPException(status_code=404, detail="Subject not found")
    db.delete(subject)
    db.commit()


def upsert_grade(db: Session, student_id: UUID, subject: str, term: Term, points: int) -> Grade:
    # Check student
    student = db.query(Student).filter_by(id=student_id).first()
    if not student:
        raise HTTPException(status_code=404, detail="Student not found")

    if not db.query(Subject).filter_by(name=subject).first():
        raise HTTPException(status_code=400, detail=f"Unknown subject: {subject}")

    grade = db.query(Grade).filter_by(student_id=student_id, subject=subject, term=term).first()
    if grade:
        grade.points = points
        grade.date = local_today()
    else:
        grade = Grade(student_id=student_id, subject=subject, term=term, points=points)
        db.add(grade)

    db.commit()
    db.refresh(grade)
    return grade


def get_student_grades(db: Session, student_id: UUID, term: Optional[Term] = None) -> List[Grade]:
    query = db.query(Grade).filter(Grade.student_id == student_id)
    if term:
        query = query.filter(Grade.term == term)
    return query.order_by(Grade.term, Grade.subject).all()


def load_grade_snapshot(db: Session, student_id: Optional[UUID] = None) -> List[GradeEntry]:
    query = db.query(Grade)
    if student_id:
        query = query.filter(Grade.student_id == student_id)
    return [GradeEntry.model_validate(g) for g in query.all()]


def get_participation(db: Session, student_id: UUID, term: Term) -> Optional[Participation]:
    return db.query(Participation).filter_by(student_id=student_id, term=term).first()


def upsert_participation(db: Session, student_id: UUID, term: Term, **fields) -> Participation:
    """Create or update the term's participation record. Unset fields keep
    their current value, or the default on a new record."""
    if not db.query(Student).filter_by(id=student_id).first():
        raise HTTPException(status_code=404, detail="Student not found")

    participation = get_participation(db, student_id, term)
    if participation is None:
        participation = Participation(student_id=student_id, term=term)
        db.add(participation)
    for field, value in fields.items():
        setattr(participation, field, value)

    db.commit()
    db.refresh(participation)
    return participation
