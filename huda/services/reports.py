# huda/services/reports.py
import logging
from typing import List
from sqlalchemy.orm import Session

from huda.core.records import StudentRecord, Term
from huda.core.release_gate import GradingProgress, grading_progress, set_released
from huda.crud.grades import get_catalog, load_grade_snapshot
from huda.crud.students import apply_student_snapshot, to_record
from huda.models.all_models import Student

logger = logging.getLogger(__name__)


def student_progress(db: Session, student: Student) -> List[GradingProgress]:
    grades = load_grade_snapshot(db, student.id)
    catalog = get_catalog(db)
    return [grading_progress(student.id, term, grades, catalog) for term in Term]


def toggle_release(db: Session, student: Student, term: Term, desired: bool = True) -> StudentRecord:
    """Release or lock a student's report for one term.

    Propagates ``NotComplete`` without touching the database.
    """
    updated = set_released(
        to_record(student),
        term,
        load_grade_snapshot(db, student.id),
        get_catalog(db),
        desired=desired,
    )
    apply_student_snapshot(db, [updated])
    db.commit()
    db.refresh(student)
    logger.info(f"Report {term.value} for student {student.id} {'released' if desired else 'locked'}")
    return updated
