from fastapi import HTTPException, status

from huda.core.records import UserRole
from huda.models.all_models import Student, User


def can_see_student(user: User, student: Student) -> bool:
    """Principal sees everyone, teachers their assigned classes, students themselves."""
    if user.role == UserRole.PRINCIPAL:
        return True
    if user.role == UserRole.TEACHER:
        return student.class_name in (user.assigned_classes or [])
    return user.student_id == student.id


def can_see_class(user: User, class_name: str) -> bool:
    if user.role == UserRole.PRINCIPAL:
        return True
    if user.role == UserRole.TEACHER:
        return class_name in (user.assigned_classes or [])
    return False


def visible_students_query(query, user: User):
    if user.role == UserRole.PRINCIPAL:
        return query
    if user.role == UserRole.TEACHER:
        return query.filter(Student.class_name.in_(user.assigned_classes or []))
    return query.filter(Student.id == user.student_id)


def ensure_can_see_student(user: User, student: Student):
    if not can_see_student(user, student):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to access this student"
        )


def ensure_can_see_class(user: User, class_name: str):
    if not can_see_class(user, class_name):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to access this class"
        )
