from datetime import date
from typing import Iterable, List, Optional
from uuid import UUID, uuid4
from sqlalchemy.orm import Session

from huda.core.records import StudentRecord, StudentStatus, UserRole
from huda.models.all_models import Student, User
from huda.utils.auth import get_password_hash


def get_fullname(student: Student) -> str:
    """
    Utility function to get the full name of a student.
    """
    return f"{student.first_name} {student.last_name}"


def to_record(student: Student) -> StudentRecord:
    return StudentRecord.model_validate(student)


def load_student_snapshot(db: Session) -> List[StudentRecord]:
    students = db.query(Student).order_by(Student.class_name, Student.last_name, Student.first_name).all()
    return [to_record(s) for s in students]


def apply_student_snapshot(db: Session, records: Iterable[StudentRecord]) -> int:
    """Write status and release flags back onto the ORM rows. Does not commit."""
    changed = 0
    by_id = {r.id: r for r in records}
    if not by_id:
        return 0
    for student in db.query(Student).filter(Student.id.in_(by_id.keys())).all():
        record = by_id[student.id]
        if (
            student.status != record.status
            or student.report_released_halbjahr != record.report_released_halbjahr
            or student.report_released_abschluss != record.report_released_abschluss
        ):
            student.status = record.status
            student.report_released_halbjahr = record.report_released_halbjahr
            student.report_released_abschluss = record.report_released_abschluss
            changed += 1
    return changed


def create_user(
    db: Session,
    username: str,
    password: str,
    name: str,
    role: UserRole,
    whatsapp: Optional[str] = None,
    assigned_classes: Optional[List[str]] = None,
    student_id: Optional[UUID] = None,
) -> User:
    """Add a user to the session. Does not commit."""
    user = User(
        id=uuid4(),
        username=username,
        name=name,
        password_hash=get_password_hash(password),
        role=role,
        whatsapp=whatsapp,
        assigned_classes=assigned_classes or [],
        student_id=student_id,
        is_active=True,
    )
    db.add(user)
    return user


def create_student_with_account(
    db: Session,
    first_name: str,
    last_name: str,
    class_name: str,
    gender: Optional[str] = None,
    birth_date: Optional[date] = None,
    guardian: Optional[str] = None,
    address: Optional[str] = None,
    whatsapp: Optional[str] = None,
    lesson_times: Optional[str] = None,
    username: Optional[str] = None,
    password: Optional[str] = None,
) -> Student:
    try:
        new_student = Student(
            id=uuid4(),
            first_name=first_name,
            last_name=last_name,
            class_name=class_name,
            gender=gender,
            birth_date=birth_date,
            guardian=guardian,
            address=address,
            whatsapp=whatsapp,
            lesson_times=lesson_times,
            status=StudentStatus.ACTIVE,
            report_released_halbjahr=False,
            report_released_abschluss=False,
        )
        db.add(new_student)
        db.flush()

        if username and password:
            create_user(
                db,
                username=username,
                password=password,
                name=get_fullname(new_student),
                role=UserRole.STUDENT,
                whatsapp=whatsapp,
                student_id=new_student.id,
            )

        db.commit()
        db.refresh(new_student)
        return new_student

    except Exception as e:
        db.rollback()
        raise e
