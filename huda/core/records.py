# huda/core/records.py
"""Immutable snapshots handed to and returned from the escalation engine and
the report release gate. The host converts ORM rows into these, calls the
core, and writes the results back in one transaction."""

import datetime
from enum import Enum
from typing import Optional, Tuple
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class StudentStatus(str, Enum):
    ACTIVE = "active"
    DISMISSED = "dismissed"

class Term(str, Enum):
    HALBJAHR = "Halbjahr"
    ABSCHLUSS = "Abschluss"

class UserRole(str, Enum):
    PRINCIPAL = "principal"
    TEACHER = "teacher"
    STUDENT = "student"

class NotificationKind(str, Enum):
    MONTHLY_ABSENCE_WARNING = "monthly-absence-warning"
    DISMISSAL = "dismissal"
    SYSTEM = "system"

# Broadcast target for staff-wide notifications
ALL_USERS = "ALL"


class StudentRecord(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: UUID
    first_name: str
    last_name: str
    class_name: str
    status: StudentStatus = StudentStatus.ACTIVE
    report_released_halbjahr: bool = False
    report_released_abschluss: bool = False

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def is_released(self, term: Term) -> bool:
        if term == Term.HALBJAHR:
            return self.report_released_halbjahr
        return self.report_released_abschluss


class AttendanceEntry(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    student_id: UUID
    date: datetime.date
    is_present: bool


class GradeEntry(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    student_id: UUID
    subject: str
    term: Term
    points: int = Field(ge=0, le=20)


class NotificationKey(BaseModel):
    """Idempotency key recorded alongside an emitted notification."""
    model_config = ConfigDict(frozen=True)

    student_id: UUID
    year: int
    month: int
    kind: NotificationKind

    def as_string(self) -> str:
        return f"{self.kind.value}:{self.student_id}:{self.year:04d}-{self.month:02d}"

    @classmethod
    def parse(cls, value: str) -> Optional["NotificationKey"]:
        try:
            kind, student_id, period = value.split(":")
            year, month = period.split("-")
            return cls(
                student_id=UUID(student_id),
                year=int(year),
                month=int(month),
                kind=NotificationKind(kind),
            )
        except ValueError:
            return None


class NotificationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str = ALL_USERS
    role: Optional[UserRole] = None
    title: str
    message: str
    kind: NotificationKind = NotificationKind.SYSTEM
    key: Optional[NotificationKey] = None


class EscalationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    students: Tuple[StudentRecord, ...]
    notifications: Tuple[NotificationRequest, ...] = ()
    flagged: Tuple[UUID, ...] = ()
    dismissed: Tuple[UUID, ...] = ()

    @property
    def has_changes(self) -> bool:
        return bool(self.notifications or self.dismissed)
