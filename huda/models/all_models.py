from sqlalchemy import Column, String, Integer, Date, DateTime, Boolean, Text, ForeignKey, Enum as SQLEnum, JSON, UniqueConstraint, Uuid
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime, date
from enum import Enum
import uuid
from pytz import timezone

from huda.config import settings
from huda.core.records import NotificationKind, StudentStatus, Term, UserRole

Base = declarative_base()


def local_now():
    return datetime.now(timezone(settings.TIMEZONE))


def local_today() -> date:
    return local_now().date()


# Enum Classes
class Gender(str, Enum):
    BOY = "Junge"
    GIRL = "Mädchen"

class Rating(str, Enum):
    VERY_GOOD = "Sehr gut"
    SATISFACTORY = "Befriedigend"
    INSUFFICIENT = "Unzureichend"


# Model Classes
class User(Base):
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    username = Column(String(50), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(SQLEnum(UserRole), nullable=False)
    whatsapp = Column(String(30))
    assigned_classes = Column(JSON, default=list)
    # Set for student accounts only
    student_id = Column(Uuid(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), unique=True)
    is_active = Column(Boolean, default=True)
    last_seen = Column(DateTime)
    created_at = Column(DateTime, default=local_now)

    student = relationship("Student", back_populates="account")


class Student(Base):
    __tablename__ = "students"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    gender = Column(SQLEnum(Gender))
    birth_date = Column(Date)
    class_name = Column(String(50), nullable=False, index=True)
    guardian = Column(String(100))
    address = Column(Text)
    whatsapp = Column(String(30))
    lesson_times = Column(String(100))
    registration_date = Column(Date, default=local_today)
    status = Column(SQLEnum(StudentStatus), nullable=False, default=StudentStatus.ACTIVE)
    report_released_halbjahr = Column(Boolean, nullable=False, default=False)
    report_released_abschluss = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=local_now)
    updated_at = Column(DateTime, default=local_now, onupdate=local_now)

    account = relationship("User", back_populates="student", uselist=False, cascade="all, delete-orphan")
    attendance = relationship("AttendanceRecord", back_populates="student", cascade="all, delete-orphan")
    grades = relationship("Grade", back_populates="student", cascade="all, delete-orphan")
    participation = relationship("Participation", back_populates="student", cascade="all, delete-orphan")


class AttendanceRecord(Base):
    """One attendance fact per student per calendar day"""
    __tablename__ = "attendance_records"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    is_present = Column(Boolean, nullable=False)
    marked_by_user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"))
    updated_at = Column(DateTime, default=local_now, onupdate=local_now)

    __table_args__ = (
        UniqueConstraint('student_id', 'date', name='unique_student_daily_attendance'),
    )
    student = relationship("Student", back_populates="attendance")


class Subject(Base):
    __tablename__ = "subjects"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), unique=True, nullable=False)
    position = Column(Integer, nullable=False, default=0)


class Grade(Base):
    __tablename__ = "grades"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    subject = Column(String(100), nullable=False)
    term = Column(SQLEnum(Term), nullable=False)
    points = Column(Integer, nullable=False)
    date = Column(Date, default=local_today)

    __table_args__ = (
        UniqueConstraint('student_id', 'subject', 'term', name='unique_student_subject_term_grade'),
    )
    student = relationship("Student", back_populates="grades")


class Participation(Base):
    """Conduct ratings and bonus points for one student in one term"""
    __tablename__ = "participation"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    term = Column(SQLEnum(Term), nullable=False)
    behaviour = Column(SQLEnum(Rating), nullable=False, default=Rating.VERY_GOOD)
    presentation = Column(SQLEnum(Rating), nullable=False, default=Rating.VERY_GOOD)
    punctuality = Column(SQLEnum(Rating), nullable=False, default=Rating.VERY_GOOD)
    bonus_points = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime, default=local_now, onupdate=local_now)

    __table_args__ = (
        UniqueConstraint('student_id', 'term', name='unique_student_term_participation'),
    )
    student = relationship("Student", back_populates="participation")


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(String(50), nullable=False)  # user uuid or "ALL"
    role = Column(SQLEnum(UserRole))
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    kind = Column(SQLEnum(NotificationKind), nullable=False, default=NotificationKind.SYSTEM)
    dedup_key = Column(String(120), index=True)
    is_read = Column(Boolean, default=False)
    created_at = Column(DateTime, default=local_now)


class SentNotificationKey(Base):
    """Idempotency keys of emitted notifications. Outlives the capped notification rows."""
    __tablename__ = "sent_notification_keys"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    key = Column(String(120), unique=True, nullable=False)
    kind = Column(SQLEnum(NotificationKind), nullable=False)
    created_at = Column(DateTime, default=local_now)


class EscalationRunHistory(Base):
    __tablename__ = "escalation_run_history"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    started_at = Column(DateTime(timezone=True), nullable=False)
    completed_at = Column(DateTime(timezone=True))
    trigger = Column(String(20))  # 'attendance', 'scheduled', 'manual'
    evaluated_students = Column(Integer)
    dismissed_count = Column(Integer)
    notification_count = Column(Integer)
    status = Column(String(20))  # 'running', 'completed', 'failed'
    error_message = Column(Text)
