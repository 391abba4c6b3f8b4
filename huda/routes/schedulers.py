# huda/routes/schedulers.py
from contextlib import asynccontextmanager
import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import APIRouter, Depends, FastAPI
from pytz import timezone
from sqlalchemy.orm import Session

from huda.config import settings
from huda.database import SessionLocal, get_db
from huda.models.all_models import User
from huda.services.escalation import get_last_run, run_escalation
from huda.utils.auth import verify_principal

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/schedulers", tags=['escalation schedulers'])

scheduler = AsyncIOScheduler(timezone=timezone(settings.TIMEZONE))


def scheduled_escalation():
    """Daily recompute so a new month is reflected without an attendance edit"""
    db = SessionLocal()
    try:
        logger.info("Starting scheduled escalation run")
        run_escalation(db, trigger="scheduled")
    except Exception as e:
        logger.error(f"Error in scheduled escalation run: {str(e)}")
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # On startup
    if settings.ENABLE_SCHEDULER:
        scheduler.add_job(
            scheduled_escalation,
            'cron',
            hour=settings.ESCALATION_CRON_HOUR,
            minute=0,
            id='daily_escalation',
            replace_existing=True
        )
        scheduler.start()
        logger.info(f"Escalation scheduled daily at {settings.ESCALATION_CRON_HOUR:02d}:00 {settings.TIMEZONE}")
    try:
        yield
    finally:
        # On shutdown
        if scheduler.running:
            scheduler.shutdown(wait=False)


@router.post("/trigger-escalation")
def manual_trigger(
    db: Session = Depends(get_db),
    _: User = Depends(verify_principal)
):
    """Manually run the attendance escalation now"""
    result = run_escalation(db, trigger="manual")
    return {
        "message": "Escalation run completed",
        "flagged": [str(i) for i in result.flagged],
        "dismissed": [str(i) for i in result.dismissed],
        "notifications_emitted": len(result.notifications),
    }

@router.get("/escalation-status")
def get_task_status(
    db: Session = Depends(get_db),
    _: User = Depends(verify_principal)
):
    """Check status of the daily escalation job"""
    job = scheduler.get_job('daily_escalation') if scheduler.running else None
    return {
        "running": scheduler.running,
        "next_run": job.next_run_time if job else None,
        "last_run": get_last_run(db),
    }
