# huda/services/escalation.py
import logging
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session

from huda.config import settings
from huda.core.escalation import evaluate_attendance
from huda.core.records import EscalationResult
from huda.crud.attendance import load_attendance_snapshot
from huda.crud.notifications import append_notifications, sent_keys
from huda.crud.students import apply_student_snapshot, load_student_snapshot
from huda.models.all_models import EscalationRunHistory, local_now

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def run_escalation(db: Session, now: Optional[datetime] = None, trigger: str = "attendance") -> EscalationResult:
    """Recompute attendance escalation over the full snapshot and apply it.

    Any pending changes in ``db`` (e.g. the attendance write that triggered
    the run) are committed together with the resulting status changes and
    notifications, or rolled back together on failure. A failed run is
    still recorded in the run history.
    """
    now = now or local_now()
    started_at = local_now()
    try:
        students = load_student_snapshot(db)
        result = evaluate_attendance(
            students,
            load_attendance_snapshot(db),
            now,
            sent_keys=sent_keys(db),
            warning_threshold=settings.WARNING_ABSENCE_THRESHOLD,
            dismissal_threshold=settings.DISMISSAL_STREAK_THRESHOLD,
        )

        apply_student_snapshot(db, result.students)
        append_notifications(db, result.notifications)

        db.add(EscalationRunHistory(
            started_at=started_at,
            completed_at=local_now(),
            trigger=trigger,
            evaluated_students=len(students),
            dismissed_count=len(result.dismissed),
            notification_count=len(result.notifications),
            status="completed",
        ))
        db.commit()

    except Exception as e:
        logger.error(f"Escalation run ({trigger}) failed: {str(e)}")
        db.rollback()
        db.add(EscalationRunHistory(
            started_at=started_at,
            completed_at=local_now(),
            trigger=trigger,
            status="failed",
            error_message=str(e)[:500],
        ))
        db.commit()
        raise

    if result.dismissed:
        logger.info(f"Dismissed {len(result.dismissed)} student(s): {', '.join(str(i) for i in result.dismissed)}")
    if result.notifications:
        logger.info(f"Escalation run ({trigger}) emitted {len(result.notifications)} notification(s)")
    return result


def get_last_run(db: Session):
    last_run = db.query(EscalationRunHistory).order_by(
        EscalationRunHistory.completed_at.desc()
    ).first()

    if last_run:
        return {
            "last_run": last_run.completed_at,
            "trigger": last_run.trigger,
            "status": last_run.status,
            "evaluated_students": last_run.evaluated_students,
            "dismissed_count": last_run.dismissed_count,
            "notification_count": last_run.notification_count,
            "error_message": last_run.error_message,
        }
    return {"message": "No runs recorded"}
