from datetime import date
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel, field_validator

from huda.core.records import StudentStatus
from huda.models.all_models import Gender


class StudentBase(BaseModel):
    first_name: str
    last_name: str
    class_name: str
    gender: Optional[Gender] = None
    birth_date: Optional[date] = None
    guardian: Optional[str] = None
    address: Optional[str] = None
    whatsapp: Optional[str] = None
    lesson_times: Optional[str] = None

    @field_validator('first_name', 'last_name', 'class_name')
    def validate_not_blank(cls, v):
        if not v.strip():
            raise ValueError('Field must not be blank')
        return v.strip()

class StudentCreate(StudentBase):
    # Optional login for the student-facing view
    username: Optional[str] = None
    password: Optional[str] = None

class StudentUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    class_name: Optional[str] = None
    gender: Optional[Gender] = None
    birth_date: Optional[date] = None
    guardian: Optional[str] = None
    address: Optional[str] = None
    whatsapp: Optional[str] = None
    lesson_times: Optional[str] = None

class StudentResponse(StudentBase):
    id: UUID
    status: StudentStatus
    registration_date: Optional[date] = None
    report_released_halbjahr: bool
    report_released_abschluss: bool

    class Config:
        from_attributes = True

class StudentListResponse(BaseModel):
    students: List[StudentResponse]
    total_count: int
