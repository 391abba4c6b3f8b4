# schemas/grades.py

import datetime
from pydantic import BaseModel, field_validator
from uuid import UUID
from typing import Dict, List, Optional

from huda.core.grading import MAX_BONUS_POINTS
from huda.core.records import Term
from huda.models.all_models import Rating


class GradeInput(BaseModel):
    student_id: UUID
    subject: str
    term: Term
    points: int

    @field_validator('points')
    def validate_points(cls, v):
        if v < 0 or v > 20:
            raise ValueError('Points must be between 0 and 20')
        return v

class GradeResponse(BaseModel):
    id: UUID
    student_id: UUID
    subject: str
    term: Term
    points: int
    date: Optional[datetime.date] = None

    class Config:
        from_attributes = True

class SubjectCreate(BaseModel):
    name: str

    @field_validator('name')
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('Subject name must not be blank')
        return v.strip()

class SubjectListResponse(BaseModel):
    subjects: List[str]

class CompletenessResponse(BaseModel):
    term: Term
    graded: int
    required: int
    percentage: float
    is_complete: bool
    is_released: bool

class StudentCompletenessResponse(BaseModel):
    student_id: UUID
    terms: List[CompletenessResponse]

class ReleaseRequest(BaseModel):
    term: Term
    released: bool = True

class ParticipationInput(BaseModel):
    student_id: UUID
    term: Term
    behaviour: Optional[Rating] = None
    presentation: Optional[Rating] = None
    punctuality: Optional[Rating] = None
    bonus_points: Optional[int] = None

    @field_validator('bonus_points')
    def validate_bonus_points(cls, v):
        if v is not None and (v < 0 or v > MAX_BONUS_POINTS):
            raise ValueError(f'Bonus points must be between 0 and {MAX_BONUS_POINTS}')
        return v

class ParticipationResponse(BaseModel):
    student_id: UUID
    term: Term
    behaviour: Rating = Rating.VERY_GOOD
    presentation: Rating = Rating.VERY_GOOD
    punctuality: Rating = Rating.VERY_GOOD
    bonus_points: int = 0

    class Config:
        from_attributes = True

class ReportResponse(BaseModel):
    student_id: UUID
    student_name: str
    class_name: str
    term: Term
    released: bool
    grades: Dict[str, Optional[int]]
    subject_grades: Dict[str, Optional[str]]
    participation: ParticipationResponse
    bonus_points: int
    total_points: int
    max_points: int
    final_grade: Optional[str] = None
