# huda/core/escalation.py
"""Attendance-driven status escalation.

Every change to the attendance ledger triggers a full recomputation over the
current snapshot. For each active student two independent rules are checked:

* yellow list: ``warning_threshold`` or more absences dated in the calendar
  month of ``now``. Advisory only, alerts teachers once per student and month.
* red list: a leading run of ``dismissal_threshold`` or more absences over the
  student's existing records, newest first. Missing dates neither break nor
  extend the run. The student is dismissed and the principal is alerted.

Dismissed students are skipped entirely.
"""

from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Sequence, Set
from uuid import UUID

from huda.core.records import (
    ALL_USERS,
    AttendanceEntry,
    EscalationResult,
    NotificationKey,
    NotificationKind,
    NotificationRequest,
    StudentRecord,
    StudentStatus,
    UserRole,
)

WARNING_ABSENCE_THRESHOLD = 6
DISMISSAL_STREAK_THRESHOLD = 16

WARNING_TITLE = "Gelbe Liste Warnung"
DISMISSAL_TITLE = "Rote Liste: Ausschluss"


def group_by_student(attendance: Iterable[AttendanceEntry]) -> Dict[UUID, List[AttendanceEntry]]:
    """Index the ledger per student, each list sorted newest date first."""
    grouped: Dict[UUID, List[AttendanceEntry]] = defaultdict(list)
    for entry in attendance:
        grouped[entry.student_id].append(entry)
    for entries in grouped.values():
        entries.sort(key=lambda e: e.date, reverse=True)
    return grouped


def monthly_absences(records: Sequence[AttendanceEntry], year: int, month: int) -> int:
    return sum(
        1 for r in records
        if not r.is_present and r.date.year == year and r.date.month == month
    )


def trailing_absence_streak(records: Sequence[AttendanceEntry]) -> int:
    """Length of the absence run starting at the most recent record.

    ``records`` must already be ordered newest first."""
    streak = 0
    for record in records:
        if record.is_present:
            break
        streak += 1
    return streak


def warning_notification(student: StudentRecord, absences: int, key: NotificationKey) -> NotificationRequest:
    return NotificationRequest(
        user_id=ALL_USERS,
        role=UserRole.TEACHER,
        title=WARNING_TITLE,
        message=(
            f"SCHÜLER {student.full_name} ({student.id}) hat {absences} Fehltage "
            f"in diesem Monat erreicht. Bitte Kontakt aufnehmen."
        ),
        kind=NotificationKind.MONTHLY_ABSENCE_WARNING,
        key=key,
    )


def dismissal_notification(student: StudentRecord, streak: int, key: NotificationKey) -> NotificationRequest:
    return NotificationRequest(
        user_id=ALL_USERS,
        role=UserRole.PRINCIPAL,
        title=DISMISSAL_TITLE,
        message=(
            f"{student.full_name} ({student.id}) wurde nach {streak} aufeinanderfolgenden "
            f"Fehltagen in die Rote Liste verschoben."
        ),
        kind=NotificationKind.DISMISSAL,
        key=key,
    )


def evaluate_attendance(
    students: Sequence[StudentRecord],
    attendance: Iterable[AttendanceEntry],
    now: date,
    sent_keys: Iterable[NotificationKey] = (),
    warning_threshold: int = WARNING_ABSENCE_THRESHOLD,
    dismissal_threshold: int = DISMISSAL_STREAK_THRESHOLD,
) -> EscalationResult:
    """Recompute disciplinary status for every active student.

    ``now`` only supplies the evaluation month; a ``datetime`` works as well.
    ``sent_keys`` are the idempotency keys of notifications already
    emitted. Returns the full replacement student list (input order kept) and the
    notifications to append; the inputs are left untouched.
    """
    ledger = group_by_student(attendance)
    already_sent: Set[NotificationKey] = set(sent_keys)

    updated: List[StudentRecord] = []
    notifications: List[NotificationRequest] = []
    flagged: List[UUID] = []
    dismissed: List[UUID] = []

    for student in students:
        records = ledger.get(student.id)
        if student.status == StudentStatus.DISMISSED or not records:
            updated.append(student)
            continue

        absences = monthly_absences(records, now.year, now.month)
        if absences >= warning_threshold:
            flagged.append(student.id)
            key = NotificationKey(
                student_id=student.id,
                year=now.year,
                month=now.month,
                kind=NotificationKind.MONTHLY_ABSENCE_WARNING,
            )
            if key not in already_sent:
                notifications.append(warning_notification(student, absences, key))
                already_sent.add(key)

        streak = trailing_absence_streak(records)
        if streak >= dismissal_threshold:
            student = student.model_copy(update={"status": StudentStatus.DISMISSED})
            dismissed.append(student.id)
            key = NotificationKey(
                student_id=student.id,
                year=now.year,
                month=now.month,
                kind=NotificationKind.DISMISSAL,
            )
            notifications.append(dismissal_notification(student, streak, key))

        updated.append(student)

    return EscalationResult(
        students=tuple(updated),
        notifications=tuple(notifications),
        flagged=tuple(flagged),
        dismissed=tuple(dismissed),
    )

