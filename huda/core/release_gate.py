# huda/core/release_gate.py
"""Report-card completeness and release toggling.

A report for (student, term) is complete when the student holds a grade for
at least as many distinct subjects as the catalog currently lists, and the
catalog is not empty. Releasing requires completeness; revoking never does.
"""

from typing import Iterable, Optional, Sequence
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from huda.core.records import GradeEntry, StudentRecord, Term


class NotComplete(Exception):
    """Raised when a release is requested for an incomplete report."""

    def __init__(self, student_id: UUID, term: Term, graded: int, required: int):
        self.student_id = student_id
        self.term = term
        self.graded = graded
        self.required = required
        super().__init__(
            f"Report for student {student_id} ({term.value}) is incomplete: "
            f"{graded} of {required} subjects graded"
        )


class GradingProgress(BaseModel):
    model_config = ConfigDict(frozen=True)

    student_id: UUID
    term: Term
    graded: int
    required: int

    @property
    def is_complete(self) -> bool:
        return self.required > 0 and self.graded >= self.required

    @property
    def percentage(self) -> float:
        if self.required == 0:
            return 0.0
        return round(min(self.graded / self.required, 1.0) * 100, 2)


def grading_progress(
    student_id: UUID,
    term: Term,
    grades: Iterable[GradeEntry],
    catalog: Optional[Sequence[str]],
) -> GradingProgress:
    graded_subjects = {
        g.subject for g in grades or ()
        if g.student_id == student_id and g.term == term
    }
    return GradingProgress(
        student_id=student_id,
        term=term,
        graded=len(graded_subjects),
        required=len(catalog or ()),
    )


def is_complete(
    student_id: UUID,
    term: Term,
    grades: Iterable[GradeEntry],
    catalog: Optional[Sequence[str]],
) -> bool:
    return grading_progress(student_id, term, grades, catalog).is_complete


def set_released(
    student: StudentRecord,
    term: Term,
    grades: Iterable[GradeEntry],
    catalog: Optional[Sequence[str]],
    desired: bool = True,
) -> StudentRecord:
    """Return ``student`` with the release flag for ``term`` set to ``desired``.

    Raises ``NotComplete`` when releasing an incomplete report; the input
    record is never modified.
    """
    if desired:
        progress = grading_progress(student.id, term, grades, catalog)
        if not progress.is_complete:
            raise NotComplete(student.id, term, progress.graded, progress.required)

    field = "report_released_halbjahr" if term == Term.HALBJAHR else "report_released_abschluss"
    return student.model_copy(update={field: desired})
